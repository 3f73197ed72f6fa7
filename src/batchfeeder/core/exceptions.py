"""
Core Exception Hierarchy for BatchFeeder

Provides error classification with error codes and context information
for item processing, configuration and input validation failures.
"""

import sys
import time
import uuid
from enum import Enum
from typing import Dict, Any, Optional, Callable, Sequence
from dataclasses import dataclass, field


class ErrorCode(Enum):
    """Standard error codes for different error categories."""

    # Configuration errors (3000-3999)
    CONFIG_INVALID_FORMAT = 3001
    CONFIG_MISSING_REQUIRED = 3002
    CONFIG_INVALID_VALUE = 3003
    CONFIG_FILE_NOT_FOUND = 3004

    # Processing errors (4000-4999)
    PROCESSING_OPERATION_FAILED = 4006
    PROCESSING_COMMAND_FAILED = 4007
    PROCESSING_FETCH_FAILED = 4008

    # Validation errors (5000-5999)
    VALIDATION_INVALID_INPUT = 5001
    VALIDATION_RANGE_ERROR = 5004

    # Generic/unknown errors (9000-9999)
    UNKNOWN_ERROR = 9000
    INTERNAL_ERROR = 9001
    OPERATION_CANCELLED = 9002


@dataclass
class ErrorContext:
    """Contextual information about an error occurrence."""

    operation: str = ""
    item: Optional[str] = None
    file_path: Optional[str] = None
    correlation_id: Optional[str] = None
    timestamp: float = field(default_factory=time.time)
    system_info: Dict[str, Any] = field(default_factory=dict)
    user_context: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert context to dictionary for serialization."""
        return {
            'operation': self.operation,
            'item': self.item,
            'file_path': self.file_path,
            'correlation_id': self.correlation_id,
            'timestamp': self.timestamp,
            'system_info': self.system_info,
            'user_context': self.user_context
        }


class BatchFeederError(Exception):
    """
    Base exception for all BatchFeeder errors.

    Carries an error code, the originating exception (if any) and
    contextual information for debugging and reporting.
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.UNKNOWN_ERROR,
        context: Optional[ErrorContext] = None,
        cause: Optional[BaseException] = None,
        recoverable: bool = True
    ):
        """
        Initialize BatchFeeder error.

        Args:
            message: Human-readable error description
            error_code: Standardized error code
            context: Contextual information about the error
            cause: Original exception that caused this error
            recoverable: Whether the error can potentially be recovered
        """
        super().__init__(message)

        self.message = message
        self.error_code = error_code
        self.context = context or ErrorContext()
        self.cause = cause
        self.recoverable = recoverable

        if not self.context.correlation_id:
            self.context.correlation_id = str(uuid.uuid4())[:8]

        if not self.context.system_info:
            self.context.system_info = {
                'platform': sys.platform,
                'python_version': sys.version,
            }

    def to_dict(self) -> Dict[str, Any]:
        """Get comprehensive debug information."""
        return {
            'error_type': self.__class__.__name__,
            'message': self.message,
            'error_code': self.error_code.value,
            'recoverable': self.recoverable,
            'context': self.context.to_dict(),
            'cause': {
                'type': type(self.cause).__name__ if self.cause else None,
                'message': str(self.cause) if self.cause else None
            },
        }


class ConfigurationError(BatchFeederError):
    """Exception for configuration-related errors."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.CONFIG_INVALID_FORMAT,
        config_key: Optional[str] = None,
        config_value: Optional[Any] = None,
        **kwargs
    ):
        context = kwargs.get('context') or ErrorContext()
        if config_key:
            context.user_context['config_key'] = config_key
            context.user_context['config_value'] = config_value

        kwargs['context'] = context
        kwargs['error_code'] = error_code

        super().__init__(message, **kwargs)


class ValidationError(BatchFeederError):
    """Exception for input validation errors."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.VALIDATION_INVALID_INPUT,
        field_name: Optional[str] = None,
        field_value: Optional[Any] = None,
        **kwargs
    ):
        context = kwargs.get('context') or ErrorContext()
        if field_name:
            context.user_context['field_name'] = field_name
            context.user_context['field_value'] = field_value

        kwargs['context'] = context
        kwargs['error_code'] = error_code

        super().__init__(message, **kwargs)


class ItemProcessingError(BatchFeederError):
    """Error reported for an item whose processing failed."""

    def __init__(
        self,
        message: str,
        item: Any = None,
        error_code: ErrorCode = ErrorCode.PROCESSING_OPERATION_FAILED,
        **kwargs
    ):
        context = kwargs.get('context') or ErrorContext(operation="act")
        if item is not None:
            context.item = repr(item)

        kwargs['context'] = context
        kwargs['error_code'] = error_code

        super().__init__(message, **kwargs)
        self.item = item


class SourceError(BatchFeederError):
    """
    Raised after a run whose item source failed to fetch.

    A failed fetch ends the run early, so some items may never have been
    read. ``stats`` holds the counters of the run as it finished and
    ``errors`` the exceptions raised by the fetch operation.
    """

    def __init__(
        self,
        message: str,
        errors: Sequence[BaseException] = (),
        stats: Any = None,
        **kwargs
    ):
        kwargs.setdefault('context', ErrorContext(operation="get"))
        kwargs.setdefault('error_code', ErrorCode.PROCESSING_FETCH_FAILED)
        if errors:
            kwargs.setdefault('cause', errors[0])

        super().__init__(message, **kwargs)
        self.errors = list(errors)
        self.stats = stats


class AbortedError(ItemProcessingError):
    """Error reported for an item that was abandoned rather than processed."""

    def __init__(self, message: str = "Processing aborted", item: Any = None, **kwargs):
        kwargs.setdefault('recoverable', False)
        super().__init__(message, item=item, error_code=ErrorCode.OPERATION_CANCELLED, **kwargs)


def abort_act(reason: str = "Processing aborted") -> Callable[[Any, Callable[[Any, Optional[BaseException]], None]], None]:
    """
    Build an act operation that reports every item as aborted.

    Assign the result to ``Feeder.act`` to abandon the items that have not
    been dispatched yet; items already in flight run to completion.
    """
    def act(item, did_act):
        did_act(item, AbortedError(reason, item=item))
    return act

