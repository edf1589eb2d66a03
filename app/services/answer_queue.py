"""Offline answer queue.

Researchers must never lose an answer because the store was unreachable.
Answers that cannot be written immediately are kept in a pending queue,
persisted to local storage on every change, and flushed to the store in one
batch when a sync is requested (or when connectivity comes back).
"""

import json
import threading
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional

from pydantic import TypeAdapter, ValidationError

from app.schemas.answer import AnswerCreate, AnswerRecord, SubmitStatus
from app.services.answer_store import AnswerStore, PersistenceError
from app.services.connectivity import ConnectivityMonitor
from app.services.local_storage import LocalStorage, LocalStorageError
from app.logging_config import get_logger

logger = get_logger(__name__)

_pending_adapter = TypeAdapter(list[AnswerRecord])


class NoConnectionError(Exception):
    """Raised when a sync is attempted while offline."""
    pass


@dataclass
class SubmitOutcome:
    """Which path a submitted answer took.

    Attributes:
        status: delivered, queued_offline or failed
        answer: The answer with its assigned ID and timestamp
        reason: Why the answer was not delivered (None when delivered)
    """
    status: SubmitStatus
    answer: AnswerRecord
    reason: Optional[str] = None

    @property
    def delivered(self) -> bool:
        return self.status == SubmitStatus.DELIVERED


@dataclass
class SyncResult:
    """Result of a successful sync.

    Attributes:
        synced: Number of pending answers handed to the store
        remaining: Answers still pending (queued while the sync ran)
        synced_at: When the sync completed
    """
    synced: int
    remaining: int
    synced_at: datetime


class OfflineAnswerQueue:
    """Submits answers to the store, falling back to a durable local queue.

    Per-answer lifecycle: an answer is either delivered straight away, or it
    becomes pending and stays pending until a sync succeeds while online.

    Usage:
        queue = OfflineAnswerQueue(store, connectivity, storage)
        outcome = queue.submit_answer(AnswerCreate(...))
        if outcome.status == SubmitStatus.QUEUED_OFFLINE:
            ...
        queue.sync_pending_answers()  # later, once online
    """

    def __init__(
        self,
        store: AnswerStore,
        connectivity: ConnectivityMonitor,
        storage: LocalStorage,
        queue_key: str = "offlineAnswers",
        last_sync_key: str = "lastSyncTime",
    ):
        """Initialize the queue and reload anything pending from local storage.

        Args:
            store: Durable answer store
            connectivity: Online/offline state and change notifications
            storage: Local key/value storage for the pending queue
            queue_key: Storage key holding pending answers
            last_sync_key: Storage key holding the last sync time
        """
        self.store = store
        self.connectivity = connectivity
        self.storage = storage
        self.queue_key = queue_key
        self.last_sync_key = last_sync_key

        self._lock = threading.Lock()
        self._sync_lock = threading.Lock()
        self._unsubscribe: Optional[Callable[[], None]] = None
        # Explicit syncs in progress; reconnect-triggered syncs defer to them
        self._explicit_syncs = 0

        self._pending: list[AnswerRecord] = self._load_pending()
        self._last_sync_time: Optional[datetime] = self._load_last_sync_time()

        if self._pending:
            logger.info(f"Restored {len(self._pending)} pending answer(s) from local storage")

    # Accessors

    @property
    def pending_answers(self) -> list[AnswerRecord]:
        """Copy of the pending queue in submission order."""
        with self._lock:
            return list(self._pending)

    @property
    def pending_count(self) -> int:
        with self._lock:
            return len(self._pending)

    @property
    def last_sync_time(self) -> Optional[datetime]:
        return self._last_sync_time

    # Operations

    def submit_answer(self, answer: AnswerCreate) -> SubmitOutcome:
        """Store an answer now, or queue it for the next sync.

        Store errors are absorbed: when offline or when the write fails the
        answer is queued instead and the call still succeeds.

        Args:
            answer: Answer to submit (ID and timestamp are assigned here)

        Returns:
            SubmitOutcome; status is FAILED only when the answer could be
            neither delivered nor saved to local storage
        """
        record = AnswerRecord(
            **answer.model_dump(),
            id=str(uuid.uuid4()),
            created_at=datetime.now(timezone.utc),
        )
        log_extra = {"survey_id": record.survey_id, "researcher_id": record.researcher_id}

        if not self.connectivity.is_online:
            logger.info(f"Offline, queueing answer {record.id}", extra=log_extra)
            return self._enqueue(record, "offline")

        try:
            self.store.insert_answer(record)
        except PersistenceError as e:
            logger.warning(f"Store write failed, queueing answer {record.id}: {e}", extra=log_extra)
            outcome = self._enqueue(record, str(e))
            # An unreachable store goes offline here, so its recovery triggers auto-sync
            self.connectivity.check()
            return outcome

        logger.debug(f"Delivered answer {record.id}", extra=log_extra)
        return SubmitOutcome(status=SubmitStatus.DELIVERED, answer=record)

    def sync_pending_answers(self, refresh: bool = False) -> SyncResult:
        """Flush the pending queue to the store as a single batch.

        The batch is all-or-nothing. Only the answers that were in the batch
        are removed afterwards, so answers queued while the sync was running
        stay pending.

        Args:
            refresh: Re-check connectivity first. A reconnect seen by that
                check does not start an automatic sync; this call syncs and
                counts those answers itself.

        Returns:
            SyncResult with the number of answers synced

        Raises:
            NoConnectionError: If offline; nothing is changed
            PersistenceError: If the batch write fails; the queue is unchanged
        """
        if refresh:
            with self._lock:
                self._explicit_syncs += 1
            try:
                self.connectivity.check()
            finally:
                with self._lock:
                    self._explicit_syncs -= 1

        if not self.connectivity.is_online:
            logger.warning("Sync requested while offline")
            raise NoConnectionError("No connection to the answer store")

        with self._sync_lock:
            with self._lock:
                batch = list(self._pending)

            if batch:
                logger.info(f"Syncing {len(batch)} pending answer(s)")
                # PersistenceError propagates with the queue untouched
                self.store.insert_answers(batch)

            synced_at = datetime.now(timezone.utc)
            synced_ids = {record.id for record in batch}

            with self._lock:
                self._pending = [r for r in self._pending if r.id not in synced_ids]
                self._last_sync_time = synced_at
                remaining = len(self._pending)
                try:
                    self._persist_locked()
                    self.storage.set(self.last_sync_key, synced_at.isoformat())
                except LocalStorageError as e:
                    # Already stored; a resend after restart is deduplicated by ID
                    logger.error(f"Synced answers but could not update local storage: {e}")

        logger.info(f"Sync complete: {len(batch)} synced, {remaining} still pending")
        return SyncResult(synced=len(batch), remaining=remaining, synced_at=synced_at)

    def enable_auto_sync(self) -> None:
        """Sync automatically whenever connectivity is restored."""
        if self._unsubscribe is None:
            self._unsubscribe = self.connectivity.subscribe(self._on_connectivity_change)

    def disable_auto_sync(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    # Internals

    def _on_connectivity_change(self, online: bool) -> None:
        with self._lock:
            deferred = self._explicit_syncs > 0
            idle = not self._pending
        if not online or idle or deferred:
            return
        try:
            self.sync_pending_answers()
        except (NoConnectionError, PersistenceError) as e:
            logger.warning(f"Automatic sync after reconnect failed: {e}")

    def _enqueue(self, record: AnswerRecord, reason: str) -> SubmitOutcome:
        with self._lock:
            self._pending.append(record)
            try:
                self._persist_locked()
            except LocalStorageError as e:
                self._pending.pop()
                logger.error(
                    f"Answer {record.id} could not be delivered or saved locally: {e}",
                    extra={"survey_id": record.survey_id, "researcher_id": record.researcher_id},
                )
                return SubmitOutcome(
                    status=SubmitStatus.FAILED,
                    answer=record,
                    reason=f"{reason}; local storage unavailable: {e}",
                )

        return SubmitOutcome(status=SubmitStatus.QUEUED_OFFLINE, answer=record, reason=reason)

    def _persist_locked(self) -> None:
        """Write the pending queue to local storage. Caller holds ``_lock``."""
        if not self._pending:
            self.storage.remove(self.queue_key)
            return
        payload = json.dumps([r.model_dump(mode="json") for r in self._pending])
        self.storage.set(self.queue_key, payload)

    def _load_pending(self) -> list[AnswerRecord]:
        raw = self.storage.get(self.queue_key)
        if not raw:
            return []
        try:
            return _pending_adapter.validate_json(raw)
        except ValidationError as e:
            # Keep the unreadable blob so nothing is lost, and start fresh
            backup_key = f"{self.queue_key}.corrupt"
            logger.error(f"Pending queue in local storage is unreadable, moved to {backup_key}: {e}")
            self.storage.set(backup_key, raw)
            self.storage.remove(self.queue_key)
            return []

    def _load_last_sync_time(self) -> Optional[datetime]:
        raw = self.storage.get(self.last_sync_key)
        if not raw:
            return None
        try:
            return datetime.fromisoformat(raw)
        except ValueError:
            logger.warning(f"Ignoring unreadable last sync time: {raw!r}")
            return None
