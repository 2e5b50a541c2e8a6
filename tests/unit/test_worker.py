"""
Unit tests for ConnectionWorker, driven with stub services.
"""

import socket

import pytest

from httpcap.core.connection import Connection, ConnectionState
from httpcap.core.worker import ConnectionWorker
from httpcap.errors import ConnectionClosed, ProtocolViolation


class StubService:
    """Records handle_one() calls and runs `action` for each one."""

    def __init__(self, action=None):
        self.action = action
        self.calls = 0

    def handle_one(self, conn):
        self.calls += 1
        if self.action is not None:
            self.action(conn)


def raising(exc):
    def action(conn):
        raise exc
    return action


@pytest.fixture
def conn(monkeypatch):
    server_sock, client_sock = socket.socketpair()
    connection = Connection(socket=server_sock, address=("127.0.0.1", 40000), timeout=5.0)

    releases = []
    release = connection._release

    def counting_release():
        releases.append(connection.id)
        release()

    monkeypatch.setattr(connection, "_release", counting_release)
    connection.releases = releases
    yield connection
    connection.shutdown()
    client_sock.close()


class TestConnectionWorker:

    def test_thread_identity(self, conn):
        worker = ConnectionWorker(conn, StubService())

        assert worker.name == f"httpcap-worker-{conn.id}"
        assert worker.daemon is True
        assert worker.cancelled is False

    def test_unexpected_error_still_releases_once(self, conn):
        service = StubService(raising(RuntimeError("boom")))
        worker = ConnectionWorker(conn, service)

        with pytest.raises(RuntimeError):
            worker.run()

        assert service.calls == 1
        assert conn.state == ConnectionState.CLOSED
        assert len(conn.releases) == 1

    @pytest.mark.parametrize("exc", [
        ConnectionClosed("Client closed connection"),
        ProtocolViolation("bad request line"),
        OSError("timed out"),
    ])
    def test_expected_errors_end_loop(self, conn, exc):
        service = StubService(raising(exc))
        worker = ConnectionWorker(conn, service)

        worker.start()
        worker.join(timeout=5.0)

        assert not worker.is_alive()
        assert service.calls == 1
        assert conn.state == ConnectionState.CLOSED
        assert len(conn.releases) == 1

    def test_cancel_before_start(self, conn):
        service = StubService()
        worker = ConnectionWorker(conn, service)

        worker.cancel()
        worker.start()
        worker.join(timeout=5.0)

        assert worker.cancelled is True
        assert service.calls == 0
        assert conn.state == ConnectionState.CLOSED
        assert len(conn.releases) == 1

    def test_cancel_stops_after_current_request(self, conn):
        service = StubService()
        worker = ConnectionWorker(conn, service)
        service.action = lambda c: worker.cancel()

        worker.start()
        worker.join(timeout=5.0)

        assert service.calls == 1
        assert conn.state == ConnectionState.CLOSED

    def test_loop_ends_when_service_closes(self, conn):
        service = StubService(lambda c: c.close())
        worker = ConnectionWorker(conn, service)

        worker.start()
        worker.join(timeout=5.0)

        assert service.calls == 1
        assert len(conn.releases) == 1
