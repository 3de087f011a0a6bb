"""
Centralized error handling decorators for database operations.

Service methods are wrapped so that database failures are logged with a
classification and then propagated unchanged to the caller. Domain errors
(NotFoundError, ValidationError) pass through without database logging.
"""
import functools
import logging
from typing import Any, Callable, Optional

from sqlalchemy.exc import (
    DisconnectionError,
    IntegrityError,
    OperationalError,
    SQLAlchemyError,
    StatementError,
    TimeoutError,
)
from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import DomainError

logger = logging.getLogger(__name__)


class DatabaseErrorHandler:
    """Centralized database error handling utilities."""

    DATABASE_EXCEPTIONS = (SQLAlchemyError, ConnectionError)

    @staticmethod
    def classify(exc: Exception, operation: str) -> tuple[bool, str]:
        """
        Classify a database error and build its log message.

        Returns:
            Tuple of (is_recoverable, error_message)
        """
        if isinstance(exc, IntegrityError):
            return False, f"Database integrity error during {operation}: {exc}"
        if isinstance(exc, (ConnectionError, DisconnectionError)):
            return True, f"Database connection error during {operation}: {exc}"
        if isinstance(exc, TimeoutError):
            return True, f"Database timeout during {operation}: {exc}"
        if isinstance(exc, OperationalError):
            return True, f"Database operational error during {operation}: {exc}"
        if isinstance(exc, StatementError):
            return False, f"Database statement error during {operation}: {exc}"
        return False, f"Unexpected database error during {operation}: {type(exc).__name__}: {exc}"


def _find_session(args: tuple, kwargs: dict) -> Optional[AsyncSession]:
    for value in (*args, *kwargs.values()):
        if isinstance(value, AsyncSession):
            return value
    return None


def handle_database_exceptions(
    operation_name: Optional[str] = None,
    reraise: bool = True,
    default_return: Any = None,
    log_level: str = "error",
) -> Callable:
    """
    Wrap an async database operation with classified error logging.

    Args:
        operation_name: Name of the operation for logging (defaults to function name)
        reraise: Whether to re-raise the exception after logging
        default_return: Value to return if an error occurs and reraise=False
        log_level: Logging level for database errors
    """

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def async_wrapper(*args, **kwargs) -> Any:
            operation = operation_name or func.__name__
            try:
                return await func(*args, **kwargs)
            except DomainError:
                raise
            except DatabaseErrorHandler.DATABASE_EXCEPTIONS as exc:
                is_recoverable, error_msg = DatabaseErrorHandler.classify(exc, operation)
                getattr(logger, log_level)(f"{error_msg} (recoverable={is_recoverable})")
                if reraise:
                    raise
                logger.info(f"Operation {operation} failed, returning default: {default_return!r}")
                return default_return

        return async_wrapper

    return decorator


def database_transaction(operation_name: Optional[str] = None) -> Callable:
    """
    Commit the session found in the call arguments when the wrapped
    coroutine succeeds, roll it back when it raises.
    """

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def async_wrapper(*args, **kwargs) -> Any:
            operation = operation_name or func.__name__
            db_session = _find_session(args, kwargs)
            if db_session is None:
                logger.warning(f"No AsyncSession found for transaction operation {operation}")
                return await func(*args, **kwargs)

            try:
                result = await func(*args, **kwargs)
                await db_session.commit()
                logger.debug(f"Transaction committed for {operation}")
                return result
            except Exception:
                try:
                    await db_session.rollback()
                except SQLAlchemyError as rollback_exc:
                    logger.error(f"Failed to rollback transaction for {operation}: {rollback_exc}")
                raise

        return async_wrapper

    return decorator


def log_database_operation(operation: str, level: str = "debug") -> Callable:
    """
    Log start, completion and failure of an async operation.

    Args:
        operation: Description of the operation
        level: Logging level ('debug', 'info', 'warning', 'error')
    """

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def async_wrapper(*args, **kwargs) -> Any:
            logger_method = getattr(logger, level)
            logger_method(f"Starting {operation} via {func.__name__}")
            try:
                result = await func(*args, **kwargs)
            except Exception as exc:
                logger_method(f"Failed {operation} via {func.__name__}: {exc}")
                raise
            logger_method(f"Completed {operation} via {func.__name__}")
            return result

        return async_wrapper

    return decorator


def safe_database_query(func=None, operation_name: Optional[str] = None, default_return: Any = None) -> Callable:
    """
    Read decorator that logs database errors and returns a default instead.

    Only for listings where an empty result is an acceptable degradation.
    Can be used with or without parentheses, or with the operation name as
    the first positional argument.
    """

    def decorator(f: Callable) -> Callable:
        return handle_database_exceptions(
            operation_name=operation_name,
            reraise=False,
            default_return=default_return,
            log_level="warning",
        )(f)

    if func is None:
        return decorator
    if callable(func):
        return decorator(func)
    return safe_database_query(operation_name=func, default_return=default_return)


def critical_database_operation(func=None, operation_name: Optional[str] = None) -> Callable:
    """
    Decorator that always logs database errors and re-raises them.
    Use for reads and writes whose failure must reach the caller.
    """

    def decorator(f: Callable) -> Callable:
        return handle_database_exceptions(operation_name=operation_name, reraise=True)(f)

    if func is None:
        return decorator
    if callable(func):
        return decorator(func)
    return critical_database_operation(operation_name=func)


def transactional_database_operation(func=None, operation_name: Optional[str] = None) -> Callable:
    """
    Combined decorator: commit/rollback handling plus classified error logging.

    Usable as @transactional_database_operation, @transactional_database_operation()
    or @transactional_database_operation("operation_name").
    """

    def decorator(f: Callable) -> Callable:
        transaction_decorated = database_transaction(operation_name=operation_name)(f)
        return handle_database_exceptions(operation_name=operation_name, reraise=True)(transaction_decorated)

    if func is None:
        return decorator
    if callable(func):
        return decorator(func)
    return transactional_database_operation(operation_name=func)
