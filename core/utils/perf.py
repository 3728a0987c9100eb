import time
import functools
import asyncio
import logging
from contextlib import contextmanager
from typing import Dict, Iterator, Optional

logger = logging.getLogger(__name__)


def profile_stage(stage_name: str):
    """Decorator to log how long each stage takes (works with async or sync)."""
    def decorator(func):
        if asyncio.iscoroutinefunction(func):
            @functools.wraps(func)
            async def wrapper(*args, **kwargs):
                t0 = time.perf_counter()
                try:
                    return await func(*args, **kwargs)
                finally:
                    logger.info(f"[PERF] {stage_name}: {(time.perf_counter() - t0)*1000:.1f} ms")
            return wrapper
        else:
            @functools.wraps(func)
            def wrapper(*args, **kwargs):
                t0 = time.perf_counter()
                try:
                    return func(*args, **kwargs)
                finally:
                    logger.info(f"[PERF] {stage_name}: {(time.perf_counter() - t0)*1000:.1f} ms")
            return wrapper
    return decorator


@contextmanager
def stage_timer(stage_name: str, sink: Optional[Dict[str, float]] = None) -> Iterator[None]:
    """Time a block of a request and store the elapsed milliseconds in ``sink``."""
    t0 = time.perf_counter()
    try:
        yield
    finally:
        elapsed = round((time.perf_counter() - t0) * 1000, 1)
        if sink is not None:
            sink[stage_name] = elapsed
        logger.debug(f"[PERF] {stage_name}: {elapsed:.1f} ms")
