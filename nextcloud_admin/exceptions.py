"""
Exceptions for the Nextcloud Admin client.

Every error carries the name of the operation that failed. Logical failures
reported by the server (e.g. "user already exists") are not exceptions: they
come back as a regular OCS envelope whose meta status says so.
"""

from typing import Optional


class NextcloudError(Exception):
    """Base exception for all client errors."""
    
    def __init__(self, message: str, operation: str = "", cause: Optional[BaseException] = None):
        self.message = message
        self.operation = operation
        self.cause = cause
        super().__init__(f"{operation}: {message}" if operation else message)


class TransportError(NextcloudError):
    """Network, timeout or request construction failure."""
    pass


class DecodeError(NextcloudError):
    """Response body is not a well-formed OCS XML document."""
    pass


class ValidationError(NextcloudError):
    """Client-side input validation failed; no request was sent."""
    pass
