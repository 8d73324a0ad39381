"""Error types and handling patterns for casegraph.

The resolution and graph algorithms never raise for bad names, missing
record fields or unknown node ids; they degrade to empty results. These
errors cover the edges of the system instead: persisted state, configuration
and record validation.
"""

import functools
from typing import Any, Callable, Dict, Optional, Type

from .logging_config import get_logger, log_error

logger = get_logger(__name__)


class CaseGraphError(Exception):
    """Base exception for all casegraph-specific errors."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.context = context or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for logging."""
        return {
            "error_type": self.__class__.__name__,
            "error_message": self.message,
            "error_code": self.error_code,
            "context": self.context,
        }


class StoreError(CaseGraphError):
    """Error reading or writing persisted graph state or report archives."""

    def __init__(
        self,
        message: str,
        path: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, error_code="store_error", context=context)
        self.path = path


class ConfigurationError(CaseGraphError):
    """Error from configuration validation and setup issues."""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, error_code="configuration_error", context=context)
        self.config_key = config_key


class ValidationError(CaseGraphError):
    """Error from validating an incoming record."""

    def __init__(
        self,
        message: str,
        field_name: Optional[str] = None,
        field_value: Any = None,
        context: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, error_code="validation_error", context=context)
        self.field_name = field_name
        self.field_value = field_value


class ErrorHandler:
    """Centralized error handling with consistent logging and context propagation."""

    def __init__(
        self,
        context: Optional[Dict[str, Any]] = None,
        log_errors: bool = True,
        raise_on_critical: bool = True
    ):
        """Initialize error handler.

        Args:
            context: Base context to include with all errors
            log_errors: Whether to log errors when handled
            raise_on_critical: Whether to raise critical errors
        """
        self.context = context or {}
        self.log_errors = log_errors
        self.raise_on_critical = raise_on_critical

    def handle_error(
        self,
        error: Exception,
        critical: bool = False,
        additional_context: Optional[Dict[str, Any]] = None
    ) -> Exception:
        """Handle an error with consistent logging and context.

        Args:
            error: The exception to handle
            critical: Whether this is a critical error
            additional_context: Additional context for this error

        Returns:
            The error (possibly enhanced)

        Raises:
            Exception: If critical=True and raise_on_critical=True
        """
        if isinstance(error, CaseGraphError):
            error.context.update(self.context)
            if additional_context:
                error.context.update(additional_context)

        if self.log_errors:
            log_error(
                __name__,
                "error_handled",
                error,
                critical=critical,
                **self.context,
                **(additional_context or {})
            )

        if critical and self.raise_on_critical:
            raise error

        return error


def handle_errors(
    log_errors: bool = True,
    reraise: bool = False,
    default_return: Any = None,
    context: Optional[Dict[str, Any]] = None,
    convert_to: Optional[Type[CaseGraphError]] = None
):
    """Decorator to handle errors in functions consistently.

    Args:
        log_errors: Whether to log caught errors
        reraise: Whether to reraise the exception after handling
        default_return: Value to return if error is caught and not reraised
        context: Additional context to include with errors
        convert_to: Convert non-CaseGraphError exceptions to this type

    Returns:
        Decorated function
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            handler = ErrorHandler(
                context=context,
                log_errors=log_errors,
                raise_on_critical=reraise
            )

            try:
                return func(*args, **kwargs)
            except CaseGraphError as e:
                handler.handle_error(e, critical=reraise)
                return default_return
            except Exception as e:
                if convert_to is None:
                    handler.handle_error(e, critical=reraise)
                    return default_return

                converted = convert_to(
                    f"Error in {func.__name__}: {str(e)}",
                    context={
                        **(context or {}),
                        "original_error": type(e).__name__,
                        "function": func.__name__,
                    },
                )
                if reraise:
                    handler.handle_error(converted, critical=False)
                    raise converted from e
                handler.handle_error(converted, critical=False)
                return default_return

        return wrapper

    return decorator
