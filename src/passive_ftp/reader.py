"""Reading replies off the control connection and payloads off the data connection.

A control reply is complete once its terminal line has arrived: a line made of
the three digit code followed by a space (or nothing). A first line of the form
``ddd-text`` opens a multi-line reply which only ends at a line starting with
the same code and a space. Several reads may be needed for one reply, and one
read may carry the start of the next reply, so the reader keeps a buffer.
"""

import re
from typing import List, Optional, Tuple

from passive_ftp.constants import (
    CODE_CONNECTION_CLOSED,
    CODE_TRANSFER_COMPLETE,
    MESSAGE_CONNECTION_CLOSED,
)
from passive_ftp.exceptions import PassiveReplyError
from passive_ftp.models import FtpResponse
from passive_ftp.transport import Connection, transport_error_code
from passive_ftp.utils.logging import get_logger

logger = get_logger(__name__)

REPLY_LINE_RE = re.compile(rb"^(\d{3})([ -]|$)")
PASV_ADDRESS_RE = re.compile(r"\(([^)]*)\)")


def find_reply_end(buffer: bytes) -> Optional[int]:
    """Offset just past the terminal line of the first reply in BUFFER.

    Returns None while the reply is still incomplete.
    """
    first_end = buffer.find(b"\n")
    if first_end < 0:
        return None

    first = REPLY_LINE_RE.match(buffer[:first_end].rstrip(b"\r"))
    if first is None or first.group(2) != b"-":
        # Single line reply, or a line without a code which is passed on as is
        return first_end + 1

    code = first.group(1)
    start = first_end + 1
    while True:
        end = buffer.find(b"\n", start)
        if end < 0:
            return None
        line = buffer[start:end].rstrip(b"\r")
        if line == code or line.startswith(code + b" "):
            return end + 1
        start = end + 1


class ReplyReader:
    """Collects complete replies from one control connection"""

    def __init__(self, connection: Connection, read_size: int = 2048, encoding: str = "utf-8"):
        self.connection = connection
        self.read_size = read_size
        self.encoding = encoding
        self._buffer = b""

    def _to_response(self, raw: bytes) -> FtpResponse:
        text = raw.decode(self.encoding, errors="replace")
        logger.debug(f"<- {text.rstrip()}")
        return FtpResponse(code=text[:3], message=text)

    def read_reply(self) -> FtpResponse:
        """Read one complete reply. Transport failures come back as local responses."""
        while True:
            self._buffer = self._buffer.lstrip(b"\r\n")
            end = find_reply_end(self._buffer)
            if end is not None:
                raw, self._buffer = self._buffer[:end], self._buffer[end:]
                return self._to_response(raw)

            try:
                chunk = self.connection.recv(self.read_size)
            except OSError as e:
                logger.warning(f"Failed to read from control connection: {e}")
                return FtpResponse(code=transport_error_code(e), message=str(e))

            if not chunk:
                return self._closed()
            self._buffer += chunk

    def _closed(self) -> FtpResponse:
        partial, self._buffer = self._buffer, b""
        if REPLY_LINE_RE.match(partial):
            # Last reply sent without its line ending before the server hung up
            return self._to_response(partial)
        logger.warning("Control connection closed by remote host")
        message = MESSAGE_CONNECTION_CLOSED
        if partial:
            message += " " + partial.decode(self.encoding, errors="replace")
        return FtpResponse(code=CODE_CONNECTION_CLOSED, message=message)

    def wait_for_transfer_complete(self) -> FtpResponse:
        """Read replies until the transfer outcome is known.

        Stops at a 226 reply, at any other final (non 1xx) reply, or at the
        first local transport error, which is returned as is.
        """
        while True:
            response = self.read_reply()
            if response.is_local_error:
                return response
            if response.code == CODE_TRANSFER_COMPLETE or not response.is_preliminary:
                return response
            logger.debug(f"Transfer still running ({response.code}), waiting for completion")


def drain(connection: Connection, read_size: int = 4096) -> bytes:
    """Read CONNECTION until end-of-stream, then close it"""
    chunks: List[bytes] = []
    try:
        while True:
            chunk = connection.recv(read_size)
            if not chunk:
                break
            chunks.append(chunk)
    finally:
        connection.close()

    payload = b"".join(chunks)
    logger.debug(f"Drained {len(payload)} bytes from data connection")
    return payload


def parse_passive_reply(message: str) -> Tuple[str, int]:
    """Extract (host, port) from a 227 reply.

    "227 Entering Passive Mode (127,0,0,1,4,1)." gives ("127.0.0.1", 1025).
    """
    match = PASV_ADDRESS_RE.search(message)
    if match is None:
        raise PassiveReplyError(f"No address in passive mode reply: {message.strip()}")

    fields = [field.strip() for field in match.group(1).split(",")]
    if len(fields) != 6:
        raise PassiveReplyError(
            f"Expected 6 fields in passive mode address, found {len(fields)}: {match.group(0)}"
        )

    numbers = []
    for field in fields:
        if not field.isascii() or not field.isdigit() or int(field) > 255:
            raise PassiveReplyError(f"Invalid field {field!r} in passive mode address: {match.group(0)}")
        numbers.append(int(field))

    h1, h2, h3, h4, p1, p2 = numbers
    return f"{h1}.{h2}.{h3}.{h4}", p1 * 256 + p2
