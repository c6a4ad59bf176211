import socket
import threading
from typing import Dict

import pytest

from passive_ftp.session import FtpSession

pytestmark = pytest.mark.integration


class LoopbackFtpServer(threading.Thread):
    """Single-client FTP server on 127.0.0.1, just enough for the session."""

    def __init__(self, files: Dict[str, bytes], password: str = "secret"):
        super().__init__(daemon=True)
        self.files = files
        self.password = password
        self.listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self.listener.bind(("127.0.0.1", 0))
        self.listener.listen(1)
        self.port = self.listener.getsockname()[1]
        self.received = []

    def run(self) -> None:
        connection, _ = self.listener.accept()
        data_listener = None
        with connection, connection.makefile("rb") as lines:
            def reply(text: str) -> None:
                connection.sendall(text.encode() + b"\r\n")

            reply("220-Loopback FTP\r\n220 Ready")
            for raw in lines:
                line = raw.decode().strip()
                self.received.append(line)
                verb, _, argument = line.partition(" ")

                if verb == "USER":
                    reply("331 Password required")
                elif verb == "PASS":
                    reply("230 Logged on" if argument == self.password else "530 Login incorrect.")
                elif verb == "CWD":
                    reply("250 CWD successful.")
                elif verb == "PASV":
                    data_listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
                    data_listener.bind(("127.0.0.1", 0))
                    data_listener.listen(1)
                    port = data_listener.getsockname()[1]
                    reply(f"227 Entering Passive Mode (127,0,0,1,{port >> 8},{port & 0xFF}).")
                elif verb == "NLST":
                    reply("150 Here comes the directory listing.")
                    self._send_data(data_listener, "".join(f"{name}\r\n" for name in sorted(self.files)).encode())
                    reply("226 Directory send OK.")
                elif verb == "RETR" and argument in self.files:
                    reply(f"150 Opening BINARY mode data connection for {argument}.")
                    self._send_data(data_listener, self.files[argument])
                    reply("226 Transfer complete.")
                elif verb == "RETR":
                    data_listener.close()
                    reply("550 No such file.")
                else:
                    reply("502 Command not implemented.")
        self.listener.close()

    @staticmethod
    def _send_data(data_listener: socket.socket, payload: bytes) -> None:
        data_connection, _ = data_listener.accept()
        with data_connection:
            data_connection.sendall(payload)
        data_listener.close()


@pytest.fixture
def ftp_server():
    server = LoopbackFtpServer({
        "readme.txt": b"hello from loopback\r\n",
        "archive_226.bin": bytes(range(256)) * 64,
    })
    server.start()
    yield server
    server.join(timeout=5)


def test_full_session(ftp_server):
    session = FtpSession("127.0.0.1", ftp_server.port, "alice", "secret")

    with session:
        greeting = session.connect_to_server()
        assert greeting.code == "220"
        assert greeting.message.startswith("220-Loopback FTP")

        assert session.authenticate_on_server().code == "230"
        assert session.change_directory("/pub").code == "250"

        listing = session.get_list_directory()
        assert listing.code == "226"
        assert listing.message.split() == ["archive_226.bin", "readme.txt"]

        text = session.get_file("readme.txt")
        assert text.code == "226"
        assert text.message == "hello from loopback\r\n"

        binary = session.get_file_bytes("archive_226.bin")
        assert binary.code == "226"
        assert binary.content == bytes(range(256)) * 64

        missing = session.get_file("nope.txt")
        assert missing.code == "550"

        assert session.get_system().code == "502"

    assert ftp_server.received[:3] == ["USER alice", "PASS secret", "CWD /pub"]


def test_connection_refused():
    # Grab a free port and release it so nothing is listening there
    probe = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    probe.bind(("127.0.0.1", 0))
    port = probe.getsockname()[1]
    probe.close()

    session = FtpSession("127.0.0.1", port, "alice", "secret")
    response = session.connect_to_server()

    assert response.is_local_error
    assert not session.is_authenticated()
