from typing import Dict, Optional, Tuple

from passive_ftp.constants import (
    COMMAND_CWD,
    COMMAND_FEAT,
    COMMAND_NLST,
    COMMAND_PASS,
    COMMAND_PASV,
    COMMAND_PORT,
    COMMAND_PWD,
    COMMAND_RETR,
    COMMAND_STOR,
    COMMAND_SYST,
    COMMAND_TYPE,
    COMMAND_USER,
    MESSAGE_FAIL_CREATE_REQUEST,
)
from passive_ftp.exceptions import RequestNotFoundError
from passive_ftp.models import FtpCommand, Operation

# Operation -> (verb, takes an argument)
OPERATION_COMMAND_MAP: Dict[Operation, Tuple[str, bool]] = {
    Operation.GET_CURRENT_PATH: (COMMAND_PWD, False),
    Operation.GET_FEATURE: (COMMAND_FEAT, False),
    Operation.GET_LIST: (COMMAND_NLST, False),
    Operation.GET_SYSTEM: (COMMAND_SYST, False),
    Operation.SET_TYPE: (COMMAND_TYPE, True),
    Operation.PASSIVE_MODE: (COMMAND_PASV, False),
    Operation.SET_PASSWORD: (COMMAND_PASS, True),
    Operation.SET_USER: (COMMAND_USER, True),
    Operation.SET_PORT: (COMMAND_PORT, True),
    Operation.CHANGE_DIRECTORY: (COMMAND_CWD, True),
    Operation.GET_FILE: (COMMAND_RETR, True),
    Operation.UPLOAD_FILE: (COMMAND_STOR, True),
}


def create_command(operation: Operation, argument: Optional[str] = None) -> FtpCommand:
    """Build the command for OPERATION.

    The argument is passed through untouched for operations that take one and
    dropped for the others. Unknown operations raise RequestNotFoundError.
    """
    try:
        verb, takes_argument = OPERATION_COMMAND_MAP[operation]
    except (KeyError, TypeError):
        raise RequestNotFoundError(MESSAGE_FAIL_CREATE_REQUEST) from None

    return FtpCommand(verb=verb, argument=argument if takes_argument else None)
