"""
Error taxonomy shared by every service.

Each error carries a stable ``code`` that clients branch on and the HTTP status
the facade renders it with.
"""
from typing import Any, Dict, Optional


class ChatServiceError(Exception):
    code = "ERROR"
    status_code = 400
    default_message = "Request failed."

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_detail(self) -> Dict[str, Any]:
        return {"code": self.code, "message": self.message}


class ValidationError(ChatServiceError):
    code = "VALIDATION_ERROR"
    status_code = 422
    default_message = "Invalid input."


class DuplicateOrInvalid(ValidationError):
    code = "DUPLICATE_OR_INVALID"
    default_message = "Registration data is missing or malformed."


class AuthenticationFailed(ChatServiceError):
    code = "AUTHENTICATION_FAILED"
    status_code = 401
    default_message = "Invalid user id or password."


class InvalidSession(ChatServiceError):
    code = "INVALID_SESSION"
    status_code = 401
    default_message = "Session is unknown, expired or closed."


class Forbidden(ChatServiceError):
    code = "FORBIDDEN"
    status_code = 403
    default_message = "Not allowed to access this chat."


class NotAMember(Forbidden):
    code = "NOT_A_MEMBER"
    default_message = "Only chat members can invite other users."


class UnknownUser(ChatServiceError):
    code = "UNKNOWN_USER"
    status_code = 404
    default_message = "User not found."


class UnknownChat(ChatServiceError):
    code = "UNKNOWN_CHAT"
    status_code = 404
    default_message = "Chat not found."


class InternalError(ChatServiceError):
    code = "INTERNAL"
    status_code = 500
    default_message = "Internal storage error."
