import asyncio
import functools
from typing import Callable, Dict, Tuple, Type

from loguru import logger

from ..exceptions import VidGuardException


def handle_exceptions(
    retries: int = 3,
    exceptions: Tuple[Type[Exception], ...] = (Exception,),
    backoff_factor: float = 2.0,
    max_delay: float = 60.0,
):
    """
    Retry an async call on the given exceptions with exponential backoff.

    The last exception is re-raised once all attempts are spent.
    """
    def decorator(func: Callable):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            for attempt in range(1, retries + 1):
                try:
                    return await func(*args, **kwargs)
                except exceptions as e:
                    if attempt == retries:
                        logger.error(f"{func.__name__}: all {retries} attempts failed: {e}")
                        raise
                    delay = min(backoff_factor ** (attempt - 1), max_delay)
                    logger.warning(f"{func.__name__}: attempt {attempt} failed: {e}. Retrying in {delay}s...")
                    await asyncio.sleep(delay)

        return wrapper

    return decorator


def log_exceptions(log_level: str = "ERROR", include_traceback: bool = True, custom_message: str = None):
    """Log an exception escaping an async call, then re-raise it."""
    def decorator(func: Callable):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            try:
                return await func(*args, **kwargs)
            except Exception as e:
                message = f"{custom_message or f'Exception in {func.__name__}'}: {e}"
                logger.opt(exception=include_traceback).log(log_level, message)
                raise

        return wrapper

    return decorator


def convert_exceptions(exception_map: Dict[Type[Exception], Type[VidGuardException]]):
    """Map library exceptions raised by an async call onto the vidguard hierarchy."""
    def decorator(func: Callable):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            try:
                return await func(*args, **kwargs)
            except VidGuardException:
                raise
            except tuple(exception_map) as e:
                target = next(t for source, t in exception_map.items() if isinstance(e, source))
                raise target(str(e), details={"original_exception": type(e).__name__}) from e

        return wrapper

    return decorator
