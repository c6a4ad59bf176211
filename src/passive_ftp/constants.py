# Command verbs
COMMAND_PWD = "PWD"
COMMAND_CWD = "CWD"
COMMAND_RETR = "RETR"
COMMAND_STOR = "STOR"
COMMAND_USER = "USER"
COMMAND_PASS = "PASS"
COMMAND_SYST = "SYST"
COMMAND_FEAT = "FEAT"
COMMAND_TYPE = "TYPE"
COMMAND_PASV = "PASV"
COMMAND_NLST = "NLST"
COMMAND_PORT = "PORT"

# Protocol reply codes
CODE_TRANSFER_START = "150"
CODE_COMMAND_OK = "200"
CODE_SOCKET_CONNECTED = "220"
CODE_TRANSFER_COMPLETE = "226"
CODE_PASSIVE_MODE = "227"
CODE_LOGGED_ON = "230"
CODE_CHANGE_DIRECTORY = "250"
CODE_CURRENT_PATH = "257"
CODE_PASSWORD_REQUIRED = "331"
CODE_NO_SUCH_FILE = "550"

# Local error codes. Always four characters so they never collide with a
# three digit server reply.
CODE_FAIL_WRITE_ON_SOCKET = "0000"
CODE_FAIL_NOT_CONNECTED = "0001"
CODE_FAIL_PASSIVE_MODE = "0002"
CODE_NULL_SETTINGS = "0003"
CODE_CONNECTION_CLOSED = "0004"
CODE_FAIL_TRANSPORT = "0005"
TRANSPORT_ERRNO_PREFIX = "E"

# Messages
OK = "OK"
MESSAGE_FAIL_CONNECTED = "Socket is not connected or authenticated."
MESSAGE_FAIL_WRITE_ON_SOCKET = "Fail to write on socket. "
MESSAGE_FAIL_CREATE_REQUEST = "Request not found."
MESSAGE_FAIL_TRANSFER_START = "Fail to start transfer. "
MESSAGE_FAIL_TRANSFER = "Transfer failed. "
MESSAGE_FAIL_PASSIVE_MODE = "Set to passive mode failed. "
MESSAGE_CONNECTION_CLOSED = "Connection closed by remote host."
MESSAGE_NULL_IP_PORT = "Ip address or port value is null."
MESSAGE_NULL_CREDENTIALS_SETTINGS = "Username or password is null."

CRLF = "\r\n"
