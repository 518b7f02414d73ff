# file: crisp_relay/utils/profiler.py

import logging
import time

logger = logging.getLogger("profiler")


def now() -> float:
    return time.perf_counter()


def step(start_ts: float, label: str) -> float:
    """
    Logs the milliseconds elapsed since `start_ts` and returns them.
    """
    elapsed_ms = (time.perf_counter() - start_ts) * 1000
    logger.info(f"[DISPATCH PROFILER] {label}: {elapsed_ms:.2f} ms")
    return elapsed_ms
