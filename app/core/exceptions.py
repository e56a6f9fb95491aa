"""Error taxonomy shared by the resolver, the message store and the routes."""
from typing import Any, Dict, Optional


class InboxError(Exception):
    """Base exception for the inbox service."""

    def __init__(
        self,
        message: str,
        error_code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(InboxError):
    """Raised when a message body is empty after trimming."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "VALIDATION_ERROR", details)


class AdminAuthError(InboxError):
    """Raised when an admin route is reached without the admin context."""

    def __init__(self, message: str = "admin login required"):
        super().__init__(message, "AUTH_ERROR")


class ConversationNotFoundError(InboxError):
    """Raised when a conversation id does not exist."""

    def __init__(self, conversation_id: int):
        message = f"Conversation with identifier '{conversation_id}' not found"
        super().__init__(message, "NOT_FOUND", {"conversation_id": conversation_id})


class StorageError(InboxError):
    """Raised when the database cannot complete an operation."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "STORAGE_ERROR", details)
