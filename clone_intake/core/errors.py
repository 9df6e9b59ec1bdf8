"""
Error taxonomy shared by the upload client and the intake server.

Caller mistakes (ValidationError, NotFoundError) are never retried.
RemoteTransportError is retried by the chunk transport up to its limit;
RemoteOperationError is logged to the activity trail and surfaced.
"""
from typing import Optional


class IntakeError(Exception):
    """Base class for all domain errors"""


class ValidationError(IntakeError):
    """Missing or malformed required input"""


class NotFoundError(IntakeError):
    """Submission or video does not exist"""


class RemoteTransportError(IntakeError):
    """Network failure, timeout or bad status while talking to the media store"""


class UploadChunkFailed(RemoteTransportError):
    """A chunk exhausted its retries"""

    def __init__(self, index: int, total: int, cause: Optional[BaseException] = None):
        self.index = index
        self.total = total
        self.cause = cause
        super().__init__(f"Upload failed at chunk {index + 1}/{total}: {cause}")


class RemoteOperationError(IntakeError):
    """Delete or download against the media store failed"""

    def __init__(self, message: str, response: Optional[dict] = None):
        self.response = response
        super().__init__(message)


class InconsistentStateError(IntakeError):
    """Local upload state disagrees with what the remote store returned"""


class EmptyResultError(InconsistentStateError):
    """All chunks are committed but no final upload result was captured"""


class ConcurrentUploadError(IntakeError):
    """Another upload of the same file is already running in this process"""
