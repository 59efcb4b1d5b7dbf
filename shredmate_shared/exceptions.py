"""
Exception hierarchy for the ShredMate API client.

This module defines structured exceptions with error codes, context information,
and recovery suggestions. Every failure of an API call surfaces to the caller as
a ClientError carrying one of a closed set of error codes.
"""

from datetime import datetime
from typing import Optional, Dict, Any, List
from enum import Enum


class ErrorCode(Enum):
    """Closed set of error kinds surfaced by the API client."""

    # Request construction (1000-1099)
    INVALID_URL = "REQUEST_1001"
    ENCODING_FAILED = "REQUEST_1002"

    # Authentication (2000-2099)
    UNAUTHORIZED = "AUTH_2001"
    SESSION_EXPIRED = "AUTH_2002"

    # Response handling (3000-3099)
    REQUEST_FAILED = "RESPONSE_3001"
    DECODING_FAILED = "RESPONSE_3002"
    NO_DATA = "RESPONSE_3003"

    # Network (4000-4099)
    TRANSPORT_ERROR = "NETWORK_4001"

    # Local infrastructure (9000-9099)
    TOKEN_STORAGE_FAILED = "STORAGE_9001"
    CONFIG_INVALID_VALUE = "CONFIG_9002"
    INTERNAL_UNEXPECTED_ERROR = "INTERNAL_9003"


class ErrorSeverity(Enum):
    """Error severity levels for logging and handling."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class RecoveryAction(Enum):
    """Suggested recovery actions for errors."""
    RETRY = "retry"
    RETRY_WITH_BACKOFF = "retry_with_backoff"
    REFRESH_TOKEN = "refresh_token"
    RELOGIN = "relogin"
    USER_INTERVENTION = "user_intervention"
    CONTACT_ADMIN = "contact_admin"
    IGNORE = "ignore"


class ShredMateError(Exception):
    """
    Base exception class for all ShredMate client errors.

    Provides structured error information including error codes, context,
    and recovery suggestions for consistent error handling.
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        context: Optional[Dict[str, Any]] = None,
        recovery_actions: Optional[List[RecoveryAction]] = None,
        cause: Optional[BaseException] = None,
        user_message: Optional[str] = None
    ):
        super().__init__(message)

        self.message = message
        self.error_code = error_code
        self.severity = severity
        self.context = context or {}
        self.recovery_actions = recovery_actions or []
        self.cause = cause
        self.user_message = user_message or message
        self.timestamp = datetime.now()

        if cause:
            self.context['cause_type'] = type(cause).__name__
            self.context['cause_message'] = str(cause)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary format for serialization."""
        return {
            'error': {
                'code': self.error_code.value,
                'message': self.message,
                'user_message': self.user_message,
                'severity': self.severity.value,
                'timestamp': self.timestamp.isoformat(),
                'context': self.context,
                'recovery_actions': [action.value for action in self.recovery_actions],
                'cause': {
                    'type': self.context.get('cause_type'),
                    'message': self.context.get('cause_message')
                } if self.cause else None
            }
        }


_DEFAULT_RECOVERY = {
    ErrorCode.INVALID_URL: [RecoveryAction.USER_INTERVENTION],
    ErrorCode.ENCODING_FAILED: [RecoveryAction.USER_INTERVENTION],
    ErrorCode.UNAUTHORIZED: [RecoveryAction.REFRESH_TOKEN, RecoveryAction.RELOGIN],
    ErrorCode.SESSION_EXPIRED: [RecoveryAction.RELOGIN],
    ErrorCode.REQUEST_FAILED: [RecoveryAction.RETRY],
    ErrorCode.DECODING_FAILED: [RecoveryAction.CONTACT_ADMIN],
    ErrorCode.NO_DATA: [RecoveryAction.RETRY],
    ErrorCode.TRANSPORT_ERROR: [RecoveryAction.RETRY_WITH_BACKOFF],
}

_DEFAULT_SEVERITY = {
    ErrorCode.UNAUTHORIZED: ErrorSeverity.HIGH,
    ErrorCode.SESSION_EXPIRED: ErrorSeverity.HIGH,
    ErrorCode.DECODING_FAILED: ErrorSeverity.HIGH,
}


class ClientError(ShredMateError):
    """
    Typed failure of a single API call.

    The error kind is carried by ``error_code``; ``status_code`` is set for
    REQUEST_FAILED and ``reason`` for TRANSPORT_ERROR. Two ClientErrors compare
    equal when their kind, status code and reason match, so the same failure
    broadcast to several callers can be compared directly.
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode,
        status_code: Optional[int] = None,
        reason: Optional[str] = None,
        **kwargs
    ):
        context = kwargs.pop('context', {})
        if status_code is not None:
            context['status_code'] = status_code
        if reason is not None:
            context['reason'] = reason

        severity = kwargs.pop('severity', _DEFAULT_SEVERITY.get(error_code, ErrorSeverity.MEDIUM))
        recovery_actions = kwargs.pop('recovery_actions', _DEFAULT_RECOVERY.get(error_code, []))

        super().__init__(
            message=message,
            error_code=error_code,
            severity=severity,
            context=context,
            recovery_actions=recovery_actions,
            **kwargs
        )
        self.status_code = status_code
        self.reason = reason

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ClientError):
            return NotImplemented
        return (
            self.error_code == other.error_code
            and self.status_code == other.status_code
            and self.reason == other.reason
        )

    def __hash__(self) -> int:
        return hash((self.error_code, self.status_code, self.reason))

    def __repr__(self) -> str:
        parts = [self.error_code.name]
        if self.status_code is not None:
            parts.append(f"status_code={self.status_code}")
        if self.reason is not None:
            parts.append(f"reason={self.reason!r}")
        return f"ClientError({', '.join(parts)})"

    @property
    def is_auth_failure(self) -> bool:
        """True for errors that mean the user is no longer authenticated."""
        return self.error_code in (ErrorCode.UNAUTHORIZED, ErrorCode.SESSION_EXPIRED)

    # Constructors, one per error kind

    @classmethod
    def invalid_url(cls, url: str) -> 'ClientError':
        return cls(f"Invalid URL: {url}", ErrorCode.INVALID_URL, context={'url': url})

    @classmethod
    def encoding_failed(cls, cause: Optional[BaseException] = None) -> 'ClientError':
        return cls("Failed to encode request body", ErrorCode.ENCODING_FAILED, cause=cause)

    @classmethod
    def unauthorized(cls, detail: Optional[str] = None) -> 'ClientError':
        message = "Unauthorized - no valid access token"
        if detail:
            message = f"{message} ({detail})"
        return cls(message, ErrorCode.UNAUTHORIZED, user_message="Please sign in again.")

    @classmethod
    def session_expired(cls, cause: Optional[BaseException] = None) -> 'ClientError':
        return cls(
            "Session expired - token refresh was rejected",
            ErrorCode.SESSION_EXPIRED,
            cause=cause,
            user_message="Your session has expired. Please sign in again."
        )

    @classmethod
    def request_failed(cls, status_code: int) -> 'ClientError':
        return cls(
            f"Request failed with status code: {status_code}",
            ErrorCode.REQUEST_FAILED,
            status_code=status_code
        )

    @classmethod
    def decoding_failed(cls, cause: Optional[BaseException] = None) -> 'ClientError':
        return cls("Failed to decode response", ErrorCode.DECODING_FAILED, cause=cause)

    @classmethod
    def transport_error(cls, reason: str, cause: Optional[BaseException] = None) -> 'ClientError':
        return cls(f"Network error: {reason}", ErrorCode.TRANSPORT_ERROR, reason=reason, cause=cause)

    @classmethod
    def no_data(cls) -> 'ClientError':
        return cls("No data received", ErrorCode.NO_DATA)


class TokenStorageError(ShredMateError):
    """Token store read/write failures."""

    def __init__(self, message: str, **kwargs):
        super().__init__(
            message=message,
            error_code=ErrorCode.TOKEN_STORAGE_FAILED,
            severity=ErrorSeverity.HIGH,
            recovery_actions=[RecoveryAction.RELOGIN],
            **kwargs
        )


class ConfigurationError(ShredMateError):
    """Configuration related errors."""

    def __init__(self, message: str, config_key: Optional[str] = None, **kwargs):
        context = kwargs.pop('context', {})
        if config_key:
            context['config_key'] = config_key

        super().__init__(
            message=message,
            error_code=ErrorCode.CONFIG_INVALID_VALUE,
            severity=ErrorSeverity.HIGH,
            recovery_actions=[RecoveryAction.USER_INTERVENTION],
            context=context,
            **kwargs
        )


def handle_exception(
    exception: BaseException,
    context: Optional[Dict[str, Any]] = None
) -> ShredMateError:
    """
    Convert a generic exception to a structured ShredMateError.

    Args:
        exception: The original exception
        context: Additional context information

    Returns:
        Structured ShredMateError
    """
    if isinstance(exception, ShredMateError):
        return exception

    if isinstance(exception, (ConnectionError, TimeoutError)):
        error = ClientError.transport_error(str(exception) or type(exception).__name__, cause=exception)
        if context:
            error.context.update(context)
        return error

    if isinstance(exception, (PermissionError, FileNotFoundError)):
        return TokenStorageError(str(exception), context=context, cause=exception)

    return ShredMateError(
        message=str(exception),
        error_code=ErrorCode.INTERNAL_UNEXPECTED_ERROR,
        context=context,
        cause=exception
    )
