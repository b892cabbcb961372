"""
Lightweight timing of the interactive hot paths (matrix builds, path
resolution). Timings are emitted at DEBUG level on the caller's logger.
"""

import logging
import time
from contextlib import contextmanager
from typing import Iterator, Optional

logger = logging.getLogger(__name__)


@contextmanager
def profile_code(name: str, log: Optional[logging.Logger] = None) -> Iterator[None]:
    """Log how long the enclosed block took, under `name`."""
    start = time.perf_counter()
    try:
        yield
    finally:
        elapsed_ms = (time.perf_counter() - start) * 1000.0
        (log or logger).debug(f"{name}: {elapsed_ms:.2f}ms")
