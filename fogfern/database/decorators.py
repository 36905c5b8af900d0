#!/usr/bin/env python3
"""
decorators.py
--------------------
Shared decorators for store operations.

- log_database_operation: timing and outcome logging (sync and async)
- handle_db_errors: rewrap raw SQLAlchemy errors into DatabaseError
"""
import inspect
from datetime import datetime
from functools import wraps
from typing import Callable

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from fogfern.core.exceptions import DatabaseError


def _log_start(self, operation_name: str, operation_id: str, args, kwargs) -> None:
    if getattr(self, "logger", None):
        self.logger.log_debug(
            f"Starting {operation_name}",
            {
                "operation_id": operation_id,
                "args_count": len(args),
                "kwargs_keys": list(kwargs.keys()),
            },
        )


def _log_end(self, operation_name: str, operation_id: str, start_time: datetime) -> None:
    if getattr(self, "logger", None):
        self.logger.log_operation(
            f"{operation_name}_completed",
            {
                "operation_id": operation_id,
                "duration_seconds": (datetime.now() - start_time).total_seconds(),
                "success": True,
            },
        )


def _log_failure(
    self, error: Exception, operation_name: str, operation_id: str, start_time: datetime
) -> None:
    if getattr(self, "logger", None):
        self.logger.log_error(
            error,
            {
                "operation": operation_name,
                "operation_id": operation_id,
                "duration_seconds": (datetime.now() - start_time).total_seconds(),
            },
        )


def log_database_operation(operation_name: str):
    """
    Decorator to log store operations with timing and context.

    Works on plain methods and on ``async def`` repository methods. The
    decorated object must expose a ``logger`` attribute (may be None).

    Args:
        operation_name: Name of the operation being logged

    Returns:
        Decorator function
    """

    def decorator(function: Callable) -> Callable:
        if inspect.iscoroutinefunction(function):

            @wraps(function)
            async def async_wrapper(self, *args, **kwargs):
                start_time = datetime.now()
                operation_id = f"{operation_name}_{start_time.strftime('%Y%m%d_%H%M%S_%f')}"
                _log_start(self, operation_name, operation_id, args, kwargs)
                try:
                    result = await function(self, *args, **kwargs)
                except Exception as e:
                    _log_failure(self, e, operation_name, operation_id, start_time)
                    raise
                _log_end(self, operation_name, operation_id, start_time)
                return result

            return async_wrapper

        @wraps(function)
        def wrapper(self, *args, **kwargs):
            start_time = datetime.now()
            operation_id = f"{operation_name}_{start_time.strftime('%Y%m%d_%H%M%S_%f')}"
            _log_start(self, operation_name, operation_id, args, kwargs)
            try:
                result = function(self, *args, **kwargs)
            except Exception as e:
                _log_failure(self, e, operation_name, operation_id, start_time)
                raise
            _log_end(self, operation_name, operation_id, start_time)
            return result

        return wrapper

    return decorator


def handle_db_errors(function: Callable) -> Callable:
    """
    Decorator to handle common database errors.

    Args:
        function: Function to wrap

    Returns:
        Wrapped function raising DatabaseError for SQLAlchemy failures
    """

    @wraps(function)
    def wrapper(*args, **kwargs):
        try:
            return function(*args, **kwargs)
        except IntegrityError as e:
            raise DatabaseError(f"Data integrity violation: {e}") from e
        except SQLAlchemyError as e:
            raise DatabaseError(f"Database operation failed: {e}") from e

    return wrapper
