# platewatch/exceptions.py

class APIException(Exception):
    """Base class for errors surfaced to the HTTP layer"""
    def __init__(self, message: str, status_code: int = 400):
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)

class EngineUnavailable(APIException):
    """Text extraction engine failed to initialize or crashed (retryable)"""
    def __init__(self, message: str = "Recognition temporarily unavailable"):
        super().__init__(message, 503)

class PersistenceFailure(APIException):
    """A store write or read failed"""
    def __init__(self, message: str = "Failed to persist record"):
        super().__init__(message, 500)

class InvalidImageError(APIException):
    """Unreadable or corrupted image"""
    def __init__(self, message: str = "Invalid image format"):
        super().__init__(message, 400)

class FileSizeError(APIException):
    """Uploaded image exceeds the size limit"""
    def __init__(self, message: str = "File size too large"):
        super().__init__(message, 413)

class NotFoundError(APIException):
    def __init__(self, message: str = "Not found"):
        super().__init__(message, 404)

class NotificationFailure(Exception):
    """One notification channel failed. Recorded in the alert audit trail, never raised to callers."""
    def __init__(self, channel: str, reason: str):
        self.channel = channel
        self.reason = reason
        super().__init__(f"{channel}: {reason}")
