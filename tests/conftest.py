from typing import Iterable, List, Optional, Union

import pytest

from passive_ftp.session import FtpSession

LOGIN_REPLIES = [
    b"220 Welcome to the test server\r\n",
    b"331 Password required for alice\r\n",
    b"230 Logged on\r\n",
]


class StubConnection:
    """Connection double: replays scripted reads and records what is sent."""

    def __init__(
        self,
        reads: Iterable[Union[bytes, BaseException]] = (),
        send_error: Optional[BaseException] = None,
    ):
        self.reads: List[Union[bytes, BaseException]] = list(reads)
        self.sent: List[bytes] = []
        self.send_error = send_error
        self.recv_calls = 0
        self.closed = False

    def send(self, data: bytes) -> None:
        if self.send_error is not None:
            raise self.send_error
        self.sent.append(data)

    def recv(self, size: int) -> bytes:
        self.recv_calls += 1
        if not self.reads:
            return b""
        item = self.reads.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item

    def close(self) -> None:
        self.closed = True

    @property
    def commands(self) -> List[str]:
        return [data.decode() for data in self.sent]


class ConnectionFactoryStub:
    """Hands out the given connections in order; refuses once they run out."""

    def __init__(self, *connections: Union[StubConnection, BaseException]):
        self.connections = list(connections)
        self.calls = []

    def __call__(self, host: str, port: int) -> StubConnection:
        self.calls.append((host, port))
        if not self.connections:
            raise ConnectionRefusedError(111, "Connection refused")
        connection = self.connections.pop(0)
        if isinstance(connection, BaseException):
            raise connection
        return connection


@pytest.fixture
def session_factory():
    """Build a session wired to stub connections: (session, factory)."""
    def _make(*connections, host="ftp.example.com", port=21, username="alice", password="secret", **kwargs):
        factory = ConnectionFactoryStub(*connections)
        session = FtpSession(host, port, username, password, connection_factory=factory, **kwargs)
        return session, factory
    return _make


@pytest.fixture
def logged_in_session(session_factory):
    """A session that has already connected and logged in.

    CONTROL_REPLIES are queued after the login replies; DATA_CONNECTIONS are
    handed out for the following passive mode requests.
    """
    def _make(control_replies=(), data_connections=(), **kwargs):
        control = StubConnection(LOGIN_REPLIES + list(control_replies))
        session, factory = session_factory(control, *data_connections, **kwargs)
        assert session.connect_to_server().code == "220"
        assert session.authenticate_on_server().code == "230"
        control.sent.clear()
        return session, control, factory
    return _make
