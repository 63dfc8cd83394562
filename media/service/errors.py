"""
Errors raised by the media service layer.

All of them carry a human-readable message that callers can show to a user as-is.
"""


class MediaError(Exception):
    """Base class for media pipeline failures"""

    pass


class AcquireError(MediaError):
    """Raised when the remote fetch or the extractor fails"""

    pass


class NotFoundError(MediaError):
    """Raised when a download reported success but produced no file"""

    pass


class EmptyFileError(MediaError):
    """Raised when a download produced a zero-byte file"""

    pass


class TranscodeError(MediaError):
    """
    Raised when ffmpeg fails.

    Keeps the exit code and the tail of ffmpeg's diagnostic output.
    """

    def __init__(self, message, returncode=None, stderr_tail=''):
        super().__init__(message)
        self.returncode = returncode
        self.stderr_tail = stderr_tail


class UploadError(MediaError):
    """Raised when uploading to the file host fails"""

    pass
