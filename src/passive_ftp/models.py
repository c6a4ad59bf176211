from enum import Enum
from typing import Optional

from pydantic import BaseModel

from passive_ftp.constants import CRLF


class Operation(str, Enum):
    """Logical client intents, each sent as exactly one command verb"""
    GET_CURRENT_PATH = "GetCurrentPath"
    GET_FEATURE = "GetFeature"
    GET_LIST = "GetList"
    GET_SYSTEM = "GetSystem"
    SET_TYPE = "SetType"
    PASSIVE_MODE = "PassiveMode"
    SET_PASSWORD = "SetPassword"
    SET_USER = "SetUser"
    SET_PORT = "SetPort"
    CHANGE_DIRECTORY = "ChangeDirectory"
    GET_FILE = "GetFile"
    UPLOAD_FILE = "UploadFile"


def is_protocol_code(code: str) -> bool:
    """True for a three digit server reply code, False for local error codes"""
    return len(code) == 3 and code.isascii() and code.isdigit()


class FtpResponse(BaseModel):
    """A server reply, or a locally synthesized failure using the same shape"""
    code: str
    message: str

    class Config:
        frozen = True

    @property
    def is_local_error(self) -> bool:
        return not is_protocol_code(self.code)

    @property
    def is_preliminary(self) -> bool:
        return not self.is_local_error and self.code.startswith("1")

    @property
    def is_success(self) -> bool:
        return not self.is_local_error and self.code.startswith("2")

    @property
    def is_error(self) -> bool:
        """4xx and 5xx replies"""
        return not self.is_local_error and self.code[0] in "45"

    def __str__(self) -> str:
        # Server replies already start with their code
        if self.is_local_error:
            return f"{self.code} {self.message.strip()}"
        return self.message.strip()


class FtpFileResponse(BaseModel):
    """Raw bytes of a downloaded file"""
    code: str
    content: bytes = b""
    message: str = ""

    class Config:
        frozen = True

    @property
    def is_local_error(self) -> bool:
        return not is_protocol_code(self.code)


class FtpCommand(BaseModel):
    """An outbound command: a verb and an optional argument"""
    verb: str
    argument: Optional[str] = None

    class Config:
        frozen = True

    def render(self) -> str:
        """Wire form of the command, CRLF terminated"""
        if self.argument is None:
            return self.verb + CRLF
        return f"{self.verb} {self.argument}{CRLF}"

    def to_log_text(self) -> str:
        """Rendered command without the line ending, password masked"""
        if self.verb == "PASS" and self.argument is not None:
            return "PASS ****"
        return self.render().rstrip(CRLF)
