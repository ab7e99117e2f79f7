"""Simple span helper for recording phase timings on a conversation."""
from __future__ import annotations

import time
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List


@contextmanager
def span(events: List[Dict[str, Any]], name: str) -> Iterator[None]:
    start = time.perf_counter()
    try:
        yield
    finally:
        elapsed_ms = int((time.perf_counter() - start) * 1000)
        events.append({"span": name, "ms": elapsed_ms})


__all__ = ["span"]
