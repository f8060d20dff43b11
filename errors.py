"""
Error taxonomy shared by the storage gateway, the mailer and the routers.

Routers translate these into HTTP responses; pure services never raise them.
"""


class ForumError(Exception):
    pass


class NotFound(ForumError):
    """A referenced post, comment, notification or user does not exist."""


class Conflict(ForumError):
    """A uniqueness rule was violated. Raised by the user and post CRUD layer, not by this service."""


class UpstreamFailure(ForumError):
    """A storage or mail call failed. The original exception is chained as __cause__."""

    def __init__(self, operation: str, message: str = ""):
        self.operation = operation
        super().__init__(f"{operation} failed" + (f": {message}" if message else ""))
