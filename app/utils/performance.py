"""
Timing helpers shared by the trend and re-ranking code.
"""

import inspect
from functools import wraps
from time import perf_counter

from app.log.logging import logger


SLOW_THRESHOLD = 1.0
NOTICE_THRESHOLD = 0.5


def log_performance(func_name: str, elapsed: float, **kwargs) -> None:
    """
    Log the elapsed time of an operation.

    Args:
        func_name: Function name
        elapsed: Elapsed time in seconds
        **kwargs: Additional context
    """
    log_data = {"function": func_name, "elapsed_time": f"{elapsed:.6f}s", **kwargs}

    if elapsed > SLOW_THRESHOLD:
        logger.warning(f"Slow operation detected: {func_name}", **log_data)
    elif elapsed > NOTICE_THRESHOLD:
        logger.info(f"Operation timing: {func_name}", **log_data)
    else:
        logger.debug(f"Operation completed: {func_name}", **log_data)


def _log_failure(func_name: str, error: Exception, elapsed: float) -> None:
    logger.error(
        f"Error in {func_name}",
        error=str(error),
        error_type=type(error).__name__,
        elapsed_time=f"{elapsed:.6f}s",
    )


def performance_log(func):
    """
    Decorator logging how long a sync or async function takes.

    Exceptions are logged and re-raised unchanged.
    """
    if inspect.iscoroutinefunction(func):

        @wraps(func)
        async def async_wrapper(*args, **kwargs):
            start = perf_counter()
            try:
                result = await func(*args, **kwargs)
            except Exception as e:
                _log_failure(func.__name__, e, perf_counter() - start)
                raise
            log_performance(func.__name__, perf_counter() - start)
            return result

        return async_wrapper

    @wraps(func)
    def sync_wrapper(*args, **kwargs):
        start = perf_counter()
        try:
            result = func(*args, **kwargs)
        except Exception as e:
            _log_failure(func.__name__, e, perf_counter() - start)
            raise
        log_performance(func.__name__, perf_counter() - start)
        return result

    return sync_wrapper

