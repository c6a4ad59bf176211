#!/usr/bin/env python3

from typing import Optional, Union

from passive_ftp.catalog import create_command
from passive_ftp.constants import (
    CODE_CHANGE_DIRECTORY,
    CODE_FAIL_NOT_CONNECTED,
    CODE_FAIL_PASSIVE_MODE,
    CODE_FAIL_WRITE_ON_SOCKET,
    CODE_LOGGED_ON,
    CODE_NULL_SETTINGS,
    CODE_PASSIVE_MODE,
    CODE_PASSWORD_REQUIRED,
    CODE_SOCKET_CONNECTED,
    CODE_TRANSFER_COMPLETE,
    CODE_TRANSFER_START,
    MESSAGE_FAIL_CONNECTED,
    MESSAGE_FAIL_PASSIVE_MODE,
    MESSAGE_FAIL_TRANSFER,
    MESSAGE_FAIL_TRANSFER_START,
    MESSAGE_FAIL_WRITE_ON_SOCKET,
    MESSAGE_NULL_CREDENTIALS_SETTINGS,
    MESSAGE_NULL_IP_PORT,
    OK,
)
from passive_ftp.exceptions import PassiveReplyError
from passive_ftp.models import FtpCommand, FtpFileResponse, FtpResponse, Operation
from passive_ftp.reader import ReplyReader, drain, parse_passive_reply
from passive_ftp.transport import Connection, ConnectionFactory, open_connection, transport_error_code
from passive_ftp.utils.config import settings
from passive_ftp.utils.logging import get_logger

logger = get_logger(__name__)


class FtpSession:
    """Client side of one FTP session.

    Owns the control connection, the authenticated flag and the last working
    directory. Data connections are opened through passive mode and live only
    for the duration of one listing or download.

    No public method raises: every outcome, including transport failures, is
    returned as an FtpResponse. Codes that are not three digits are local
    errors (see passive_ftp.constants).
    """

    def __init__(
        self,
        host: Optional[str],
        port: Optional[Union[int, str]],
        username: Optional[str],
        password: Optional[str],
        connection_factory: Optional[ConnectionFactory] = None,
        trust_pasv_host: Optional[bool] = None,
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password

        self._connection_factory = connection_factory or open_connection
        self._trust_pasv_host = settings.TRUST_PASV_HOST if trust_pasv_host is None else trust_pasv_host
        self._encoding = settings.ENCODING

        self._control: Optional[Connection] = None
        self._reader: Optional[ReplyReader] = None
        self._data_connection: Optional[Connection] = None
        self._authenticated = False
        self._last_path: Optional[str] = None

        self._response_not_connected = FtpResponse(
            code=CODE_FAIL_NOT_CONNECTED, message=MESSAGE_FAIL_CONNECTED
        )

    def __enter__(self) -> "FtpSession":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"FtpSession({self.username}@{self.host}:{self.port}, authenticated={self._authenticated})"

    @property
    def last_path(self) -> Optional[str]:
        """Directory replayed by reconnect(). Recorded before the server confirms it."""
        return self._last_path

    def is_authenticated(self) -> bool:
        """True once the login sequence ended with 230 on this connection"""
        return self._authenticated

    # Connection lifecycle

    def connect_to_server(self) -> FtpResponse:
        """Open the control connection and return the greeting (220 on success)"""
        if not self.host or self.port is None or self.port == "":
            return FtpResponse(code=CODE_NULL_SETTINGS, message=MESSAGE_NULL_IP_PORT)

        if self._control is not None:
            logger.warning(f"Replacing open control connection to {self.host}:{self.port}")
            self._dispose_control()

        try:
            connection = self._connection_factory(self.host, int(self.port))
        except (OSError, ValueError) as e:
            logger.error(f"Failed to connect to {self.host}:{self.port} - {e}")
            return FtpResponse(code=transport_error_code(e), message=str(e))

        self._control = connection
        self._reader = ReplyReader(connection, settings.CONTROL_READ_SIZE, self._encoding)
        response = self._reader.read_reply()
        logger.info(f"Connected to {self.host}:{self.port}: {response}")
        return response

    def authenticate_on_server(self) -> FtpResponse:
        """Log in with USER/PASS (230 on success)"""
        if self.username is None or self.password is None:
            return FtpResponse(code=CODE_NULL_SETTINGS, message=MESSAGE_NULL_CREDENTIALS_SETTINGS)

        response = self._execute_request(Operation.SET_USER, self.username)
        if response.code != CODE_PASSWORD_REQUIRED:
            return response

        response = self._execute_request(Operation.SET_PASSWORD, self.password)
        if response.code == CODE_LOGGED_ON:
            self._authenticated = True
            logger.info(f"Logged on to {self.host} as {self.username}")
        else:
            logger.warning(f"Login as {self.username} refused: {response}")
        return response

    def reconnect(self) -> FtpResponse:
        """Drop the control connection and replay connect, login and the last CWD.

        Returns the first reply that does not carry the expected code, or the
        final CWD reply (250 on success). In-flight transfers are not resumed.
        """
        logger.info(f"Reconnecting to {self.host}:{self.port}")
        self._dispose_control()

        response = self.connect_to_server()
        if response.code != CODE_SOCKET_CONNECTED:
            return response

        response = self.authenticate_on_server()
        if response.code != CODE_LOGGED_ON:
            return response

        if self._last_path is None:
            return response

        response = self.change_directory(self._last_path)
        if response.code != CODE_CHANGE_DIRECTORY:
            logger.warning(f"Could not return to {self._last_path}: {response}")
        return response

    def close(self) -> None:
        """Close the control connection. The session can connect again afterwards."""
        self._dispose_control()

    def _dispose_control(self) -> None:
        self._authenticated = False
        self._reader = None
        control, self._control = self._control, None
        if control is None:
            return
        try:
            control.close()
        except OSError as e:
            logger.debug(f"Error while closing control connection: {e}")

    # Commands on the control connection

    def change_directory(self, path: str) -> FtpResponse:
        """Send CWD (250 on success)"""
        if not self.is_authenticated():
            return self._response_not_connected

        self._last_path = path
        return self._execute_request(Operation.CHANGE_DIRECTORY, path)

    def get_current_path(self) -> FtpResponse:
        """Send PWD (257 on success)"""
        if not self.is_authenticated():
            return self._response_not_connected
        return self._execute_request(Operation.GET_CURRENT_PATH)

    def get_system(self) -> FtpResponse:
        """Send SYST (215 on success)"""
        if not self.is_authenticated():
            return self._response_not_connected
        return self._execute_request(Operation.GET_SYSTEM)

    def get_features(self) -> FtpResponse:
        """Send FEAT. The multi-line 211 reply comes back as one response."""
        if not self.is_authenticated():
            return self._response_not_connected
        return self._execute_request(Operation.GET_FEATURE)

    def set_type(self, mode: str) -> FtpResponse:
        """Send TYPE, e.g. "A" for ASCII or "I" for binary (200 on success)"""
        if not self.is_authenticated():
            return self._response_not_connected
        return self._execute_request(Operation.SET_TYPE, mode)

    # Data connection operations

    def get_list_directory(self) -> FtpResponse:
        """List the working directory with NLST (226 and the listing on success)"""
        if not self.is_authenticated():
            return self._response_not_connected

        response = self._set_server_to_passive_mode()
        if response.code != CODE_PASSIVE_MODE:
            return response

        try:
            failure = self._send_request(Operation.GET_LIST)
            if failure is not None:
                return failure

            # The listing is drained before looking at the NLST reply
            file_response = self._finish_transfer(self._read_socket_data_receiver(), wait_for_completion=True)
        finally:
            self._close_data_connection()

        return self._to_text_response(file_response)

    def get_file(self, file_name: str) -> FtpResponse:
        """Download FILE_NAME as text (226 and the content on success)"""
        return self._to_text_response(self.get_file_bytes(file_name))

    def get_file_bytes(self, file_name: str) -> FtpFileResponse:
        """Download FILE_NAME as raw bytes (226 on success)

        The RETR reply is read as a single reply. On 150 the data channel is
        drained before waiting for the 226, so large files cannot deadlock.
        """
        if not self.is_authenticated():
            return FtpFileResponse(code=CODE_FAIL_NOT_CONNECTED, message=MESSAGE_FAIL_CONNECTED)

        response = self._set_server_to_passive_mode()
        if response.code != CODE_PASSIVE_MODE:
            return FtpFileResponse(code=response.code, message=response.message)

        try:
            response = self._execute_request(Operation.GET_FILE, file_name)
            if response.code not in (CODE_TRANSFER_START, CODE_TRANSFER_COMPLETE):
                logger.warning(f"Transfer of {file_name} did not start: {response}")
                return FtpFileResponse(code=response.code, message=MESSAGE_FAIL_TRANSFER_START + response.message)

            file_response = self._finish_transfer(
                self._read_socket_data_receiver(),
                wait_for_completion=response.code == CODE_TRANSFER_START,
            )
        finally:
            self._close_data_connection()

        if file_response.code == CODE_TRANSFER_COMPLETE:
            logger.info(f"Downloaded {file_name} ({len(file_response.content)} bytes)")
        return file_response

    def _set_server_to_passive_mode(self) -> FtpResponse:
        """Send PASV and open the data connection it advertises (227 on success)"""
        response = self._execute_request(Operation.PASSIVE_MODE)
        if response.code != CODE_PASSIVE_MODE:
            return FtpResponse(code=response.code, message=MESSAGE_FAIL_PASSIVE_MODE + response.message)

        try:
            host, port = parse_passive_reply(response.message)
        except PassiveReplyError as e:
            logger.error(str(e))
            return FtpResponse(code=CODE_FAIL_PASSIVE_MODE, message=str(e))

        if not self._trust_pasv_host:
            host = self.host

        try:
            self._data_connection = self._connection_factory(host, port)
        except (OSError, ValueError) as e:
            logger.error(f"Failed to open data connection to {host}:{port} - {e}")
            return FtpResponse(code=transport_error_code(e), message=str(e))

        logger.debug(f"Data connection open to {host}:{port}")
        return response

    def _read_socket_data_receiver(self) -> FtpFileResponse:
        connection, self._data_connection = self._data_connection, None
        if connection is None:
            return FtpFileResponse(code=CODE_FAIL_NOT_CONNECTED, message="Data connection is not open.")

        try:
            payload = drain(connection, settings.DATA_READ_SIZE)
        except OSError as e:
            logger.error(f"Failed to read data connection: {e}")
            return FtpFileResponse(code=transport_error_code(e), message=str(e))
        return FtpFileResponse(code=CODE_TRANSFER_COMPLETE, content=payload)

    def _finish_transfer(self, file_response: FtpFileResponse, wait_for_completion: bool) -> FtpFileResponse:
        """Consume the completion reply so the control channel stays in sync"""
        if not wait_for_completion:
            return file_response

        completion = self._reader.wait_for_transfer_complete() if self._reader else self._response_not_connected
        if file_response.is_local_error:
            return file_response
        if completion.is_error:
            return FtpFileResponse(code=completion.code, message=MESSAGE_FAIL_TRANSFER + completion.message)
        if completion.is_local_error:
            # Everything arrived on the data connection, only the status line is missing
            logger.warning(f"No completion reply after transfer: {completion}")
        return file_response

    def _close_data_connection(self) -> None:
        connection, self._data_connection = self._data_connection, None
        if connection is None:
            return
        try:
            connection.close()
        except OSError as e:
            logger.debug(f"Error while closing data connection: {e}")

    def _to_text_response(self, file_response: FtpFileResponse) -> FtpResponse:
        if file_response.code == CODE_TRANSFER_COMPLETE:
            return FtpResponse(
                code=file_response.code,
                message=file_response.content.decode(self._encoding, errors="replace"),
            )
        return FtpResponse(code=file_response.code, message=file_response.message)

    # Wire helpers

    def _execute_request(self, operation: Operation, argument: Optional[str] = None) -> FtpResponse:
        """Send one command and read its complete reply"""
        failure = self._send_request(operation, argument)
        if failure is not None:
            return failure
        return self._reader.read_reply()

    def _send_request(self, operation: Operation, argument: Optional[str] = None) -> Optional[FtpResponse]:
        """Send one command. Returns a failure response, or None once written."""
        command = create_command(operation, argument)
        result = self._write_on_socket(command)
        if result != OK:
            return FtpResponse(code=CODE_FAIL_WRITE_ON_SOCKET, message=MESSAGE_FAIL_WRITE_ON_SOCKET + result)
        return None

    def _write_on_socket(self, command: FtpCommand) -> str:
        if self._control is None or self._reader is None:
            return "Control connection is not open."

        data = command.render().encode(self._encoding, errors="replace").replace(b"\x00", b"")
        try:
            self._control.send(data)
        except OSError as e:
            logger.error(f"Failed to send {command.verb}: {e}")
            return f"{type(e).__name__}: {e}"

        logger.debug(f"-> {command.to_log_text()}")
        return OK
