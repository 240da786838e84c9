#!/usr/bin/env python3

"""Logging helpers shared by every module."""

import logging
from collections.abc import Callable
from functools import wraps
from time import perf_counter
from typing import Any, TypeVar, cast

F = TypeVar("F", bound=Callable[..., Any])


def get_logger(name: str) -> logging.Logger:
    """
    Return the logger for a module.

    Args:
        name: Module name, normally ``__name__``

    Returns:
        Logger instance
    """
    return logging.getLogger(name)


def log_timing(func: F) -> F:
    """
    Log how long the decorated callable runs, and log failures before re-raising.

    Args:
        func: Callable to wrap

    Returns:
        The wrapped callable
    """

    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        logger = get_logger(func.__module__)
        name = func.__qualname__
        start = perf_counter()
        logger.debug(f"Starting {name}")

        try:
            result = func(*args, **kwargs)
        except Exception as e:
            logger.error(f"Failed {name} after {perf_counter() - start:.3f}s: {e}")
            raise

        logger.debug(f"Completed {name} in {perf_counter() - start:.3f}s")
        return result

    return cast("F", wrapper)
