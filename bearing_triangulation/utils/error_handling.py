#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Error handling utilities.
This module provides decorators and utilities for consistent error handling
at the batch and configuration boundaries. The solvers themselves report
geometric failures through their result flag and never use these helpers.
"""

import functools
import logging
import enum
import traceback
from typing import Any, Callable, TypeVar, Optional, Union, Tuple, Type, Iterator
from contextlib import contextmanager

logger = logging.getLogger(__name__)

# Type variable for function return type
T = TypeVar('T')


class ErrorAction(enum.Enum):
    """Enum defining actions to take when an error occurs."""
    RETURN_DEFAULT = 'return_default'
    RETURN_FALSE = 'return_false'  # Specifically for returning False
    RAISE = 'raise'
    LOG_ONLY = 'log_only'


def _log_error(error: BaseException, message: str, log_level: int, log_traceback: bool) -> None:
    error_message = message.format(error=str(error))
    if log_traceback:
        logger.log(log_level, f"{error_message}\n{traceback.format_exc()}")
    else:
        logger.log(log_level, error_message)


def handle_errors(action: ErrorAction = ErrorAction.RETURN_DEFAULT,
                  default_return: Any = None,
                  default_factory: Optional[Callable[[], Any]] = None,
                  message: str = "An error occurred: {error}",
                  log_level: int = logging.ERROR,
                  log_traceback: bool = False,
                  exception_types: Tuple[Type[BaseException], ...] = (Exception,)) -> Callable:
    """
    Decorator that provides consistent error handling.

    Args:
        action: Action to take when an exception occurs
        default_return: Value to return if action is RETURN_DEFAULT
        default_factory: Callable building a fresh default value; takes
                         precedence over default_return
        message: Message template for the error log (can use {error} placeholder)
        log_level: Logging level to use
        log_traceback: Whether to log the full traceback
        exception_types: Exception types to intercept; others propagate

    Returns:
        Decorated function with error handling
    """
    def decorator(func: Callable[..., T]) -> Callable[..., Union[T, Any]]:
        @functools.wraps(func)
        def wrapper(*args, **kwargs) -> Union[T, Any]:
            try:
                return func(*args, **kwargs)
            except exception_types as error:
                _log_error(error, message, log_level, log_traceback)

                if action == ErrorAction.RAISE:
                    raise
                elif action == ErrorAction.RETURN_DEFAULT:
                    return default_factory() if default_factory is not None else default_return
                elif action == ErrorAction.RETURN_FALSE:
                    return False
                # LOG_ONLY falls through and returns None
                return None

        return wrapper
    return decorator


class ErrorResult:
    """Holder yielded by error_handler, reporting whether the block failed."""

    def __init__(self, default_return: Any = None):
        self.result = default_return
        self.error_occurred = False
        self.error: Optional[BaseException] = None


@contextmanager
def error_handler(
    message: str = "An error occurred: {error}",
    action: ErrorAction = ErrorAction.LOG_ONLY,
    default_return: Any = None,
    log_level: int = logging.ERROR,
    log_traceback: bool = False,
    exception_types: Tuple[Type[BaseException], ...] = (Exception,)
) -> Iterator[ErrorResult]:
    """
    Context manager for handling errors in a block of code.

    Args:
        message: Message template for the error log (can use {error} placeholder)
        action: Action to take when an exception occurs
        default_return: Value stored in ``result`` if action is RETURN_DEFAULT
        log_level: Logging level to use
        log_traceback: Whether to log the full traceback
        exception_types: Tuple of exception types to catch

    Yields:
        ErrorResult describing whether the block raised

    Example:
        >>> with error_handler("Failed to load configuration: {error}") as handled:
        ...     config = json.load(f)
        >>> if handled.error_occurred:
        ...     config = defaults
    """
    handler = ErrorResult(default_return)

    try:
        yield handler
    except exception_types as error:
        handler.error_occurred = True
        handler.error = error
        _log_error(error, message, log_level, log_traceback)

        if action == ErrorAction.RAISE:
            raise
        elif action == ErrorAction.RETURN_DEFAULT:
            handler.result = default_return
        elif action == ErrorAction.RETURN_FALSE:
            handler.result = False
