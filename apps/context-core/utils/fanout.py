from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Dict, List, Optional, Tuple
from config import settings
import logging

logger = logging.getLogger(__name__)

# (key, zero-argument call, value to use if the call raises)
Call = Tuple[str, Callable[[], Any], Any]


def run_parallel(calls: List[Call], max_workers: Optional[int] = None) -> Dict[str, Any]:
    """Run independent reads concurrently and wait for all of them

    A call that raises is logged and replaced by its fallback value, so one
    failed read never stalls or fails the others.
    """
    if not calls:
        return {}

    workers = min(max_workers or settings.BRIEF_FANOUT_WORKERS, len(calls))
    results: Dict[str, Any] = {}
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="brief-fanout") as executor:
        futures = [(key, executor.submit(call), fallback) for key, call, fallback in calls]
        for key, future, fallback in futures:
            try:
                results[key] = future.result()
            except Exception as e:
                logger.error(f"Parallel read '{key}' failed: {e}", exc_info=True)
                results[key] = fallback
    return results
