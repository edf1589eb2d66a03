"""Connectivity tracking for the offline answer queue.

Exposes a synchronous "are we online" flag plus change notifications that
fire only on online/offline transitions.
"""

import threading
from typing import Callable

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from app.logging_config import get_logger

logger = get_logger(__name__)

ConnectivityListener = Callable[[bool], None]


class ConnectivityMonitor:
    """Holds the current connectivity state and notifies subscribers.

    The state is set from outside (a probe, a health check, a test). Listeners
    are called with the new state after each transition, outside the lock.
    """

    def __init__(self, online: bool = True):
        self._online = online
        self._listeners: list[ConnectivityListener] = []
        self._lock = threading.Lock()

    @property
    def is_online(self) -> bool:
        return self._online

    def subscribe(self, listener: ConnectivityListener) -> Callable[[], None]:
        """Register a transition listener.

        Args:
            listener: Called with the new state on every transition

        Returns:
            A function that removes the listener when called
        """
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def set_online(self, online: bool) -> None:
        """Update the state; listeners fire only if it actually changed."""
        with self._lock:
            if online == self._online:
                return
            self._online = online
            listeners = list(self._listeners)

        logger.info(f"Connectivity changed: {'online' if online else 'offline'}")
        for listener in listeners:
            try:
                listener(online)
            except Exception as e:
                logger.error(f"Connectivity listener failed: {e}", exc_info=True)

    def check(self) -> bool:
        """Re-evaluate connectivity. Without a probe the state is unchanged."""
        return self._online


class DatabaseConnectivityProbe(ConnectivityMonitor):
    """Connectivity monitor that treats the database as "the network".

    ``check()`` runs ``SELECT 1`` and records the outcome, so a health check
    that calls it also drives reconnect notifications.
    """

    def __init__(self, session_factory: sessionmaker, online: bool = True):
        super().__init__(online=online)
        self.session_factory = session_factory

    def check(self) -> bool:
        """Ping the database and update the online flag.

        Returns:
            True if the database answered
        """
        try:
            with self.session_factory() as db:
                db.execute(text("SELECT 1"))
            reachable = True
        except SQLAlchemyError as e:
            logger.warning(f"Database unreachable: {e}")
            reachable = False

        self.set_online(reachable)
        return reachable
