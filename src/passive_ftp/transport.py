import socket
from typing import Callable, Optional, Protocol

from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from passive_ftp.constants import CODE_FAIL_TRANSPORT, TRANSPORT_ERRNO_PREFIX
from passive_ftp.utils.config import settings
from passive_ftp.utils.logging import get_logger

logger = get_logger(__name__)


class Connection(Protocol):
    """Byte stream the session talks through. Errors surface as OSError."""

    def send(self, data: bytes) -> None:
        ...

    def recv(self, size: int) -> bytes:
        ...

    def close(self) -> None:
        ...


ConnectionFactory = Callable[[str, int], Connection]


class SocketConnection:
    """A connected TCP socket"""

    def __init__(self, sock: socket.socket, host: str, port: int):
        self.sock = sock
        self.host = host
        self.port = port

    def send(self, data: bytes) -> None:
        self.sock.sendall(data)

    def recv(self, size: int) -> bytes:
        return self.sock.recv(size)

    def close(self) -> None:
        try:
            self.sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            # Already closed by the peer
            pass
        self.sock.close()
        logger.debug(f"Closed connection to {self.host}:{self.port}")

    def __repr__(self) -> str:
        return f"SocketConnection({self.host}:{self.port})"


@retry(
    stop=stop_after_attempt(settings.CONNECT_ATTEMPTS),
    wait=wait_exponential(multiplier=0.5, min=0.5, max=5),
    retry=retry_if_exception_type(OSError),
    reraise=True,
)
def open_connection(host: str, port: int, timeout: Optional[float] = None) -> SocketConnection:
    """Open a TCP connection to HOST:PORT, retrying transient failures"""
    if timeout is None:
        timeout = settings.SOCKET_TIMEOUT
    logger.debug(f"Connecting to {host}:{port} (timeout={timeout}s)")
    try:
        sock = socket.create_connection((host, int(port)), timeout=timeout)
    except OSError as e:
        logger.warning(f"Failed to connect to {host}:{port} - {e}")
        raise
    logger.debug(f"Connected to {host}:{port}")
    return SocketConnection(sock, host, int(port))


def transport_error_code(error: BaseException) -> str:
    """Local response code for a transport failure.

    Carries the OS error number when there is one (E111 for a refused
    connection), so it never reads as a three digit server reply.
    """
    errno = getattr(error, "errno", None)
    if isinstance(errno, int) and errno > 0:
        return f"{TRANSPORT_ERRNO_PREFIX}{errno}"
    return CODE_FAIL_TRANSPORT
