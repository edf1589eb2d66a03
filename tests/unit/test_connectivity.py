"""Unit tests for connectivity tracking."""

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app.services.connectivity import ConnectivityMonitor, DatabaseConnectivityProbe


class TestConnectivityMonitor:
    """Tests for ConnectivityMonitor."""

    def test_initial_state(self):
        assert ConnectivityMonitor().is_online is True
        assert ConnectivityMonitor(online=False).is_online is False

    def test_listeners_fire_on_transition_only(self):
        monitor = ConnectivityMonitor(online=True)
        events = []
        monitor.subscribe(events.append)

        monitor.set_online(True)
        monitor.set_online(False)
        monitor.set_online(False)
        monitor.set_online(True)

        assert events == [False, True]

    def test_unsubscribe(self):
        monitor = ConnectivityMonitor(online=False)
        events = []
        unsubscribe = monitor.subscribe(events.append)

        unsubscribe()
        unsubscribe()
        monitor.set_online(True)

        assert events == []

    def test_failing_listener_does_not_block_others(self):
        monitor = ConnectivityMonitor(online=False)
        events = []

        def broken(online):
            raise RuntimeError("listener bug")

        monitor.subscribe(broken)
        monitor.subscribe(events.append)
        monitor.set_online(True)

        assert monitor.is_online is True
        assert events == [True]

    def test_check_reports_current_state(self):
        monitor = ConnectivityMonitor(online=False)
        events = []
        monitor.subscribe(events.append)

        assert monitor.check() is False
        assert events == []


class TestDatabaseConnectivityProbe:
    """Tests for DatabaseConnectivityProbe."""

    def test_reachable_database(self, session_factory):
        probe = DatabaseConnectivityProbe(session_factory, online=False)

        assert probe.check() is True
        assert probe.is_online is True

    def test_unreachable_database(self, tmp_path):
        # Parent directory does not exist, so SQLite cannot open the file
        engine = create_engine(f"sqlite:///{tmp_path / 'missing' / 'db.sqlite'}")
        probe = DatabaseConnectivityProbe(sessionmaker(bind=engine))
        events = []
        probe.subscribe(events.append)

        assert probe.check() is False
        assert probe.is_online is False
        assert events == [False]
