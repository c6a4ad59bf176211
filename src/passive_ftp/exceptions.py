class FtpError(Exception):
    """Base class for errors raised inside the client.

    Errors never escape FtpSession; they are turned into FtpResponse values.
    """


class RequestNotFoundError(FtpError, ValueError):
    """An operation has no command verb"""


class PassiveReplyError(FtpError, ValueError):
    """A 227 reply does not carry a valid (h1,h2,h3,h4,p1,p2) address"""
