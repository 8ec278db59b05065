"""Worker pool for fanning screening work out across holdings.

Wraps ThreadPoolExecutor. Results come back in input order so callers can
zip them against the holdings they were built from.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any, Callable, Sequence


class WorkerPool:
    """ThreadPoolExecutor wrapper with per-item exception capture."""

    def __init__(self, max_workers: int = 8, logger=None):
        """
        Initialize worker pool.

        Args:
            max_workers: Maximum number of concurrent worker threads; 1 runs inline
            logger: Optional logger instance for logging
        """
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self.max_workers = max_workers
        self.logger = logger or logging.getLogger(__name__)
        self._stats_lock = threading.Lock()
        self.stats = {
            "max_workers": max_workers,
            "total_submitted": 0,
            "total_successful": 0,
            "total_failed": 0,
        }

    def _record(self, success: bool) -> None:
        with self._stats_lock:
            self.stats["total_successful" if success else "total_failed"] += 1

    def map(self, func: Callable[[Any], Any], items: Sequence, desc: str = "Processing") -> list:
        """
        Apply ``func`` to every item.

        Args:
            func: Worker function to execute
            items: Items to process
            desc: Description for log lines

        Returns:
            List of tuples ``(success, item, result_or_error)`` in input order
        """
        results: list = [None] * len(items)
        with self._stats_lock:
            self.stats["total_submitted"] += len(items)

        if self.max_workers == 1 or len(items) <= 1:
            for index, item in enumerate(items):
                results[index] = self._run_one(func, item, desc)
        else:
            with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                future_to_index = {executor.submit(func, item): i for i, item in enumerate(items)}
                for future in as_completed(future_to_index):
                    index = future_to_index[future]
                    item = items[index]
                    try:
                        result = future.result()
                    except Exception as e:
                        self._record(False)
                        results[index] = (False, item, e)
                        self.logger.error(f"{desc}: Failed for item {item}: {e}", exc_info=True)
                    else:
                        self._record(True)
                        results[index] = (True, item, result)

        self.logger.debug(
            f"{desc} complete: {self.stats['total_successful']} successful, {self.stats['total_failed']} failed"
        )
        return results

    def _run_one(self, func, item, desc: str) -> tuple:
        try:
            result = func(item)
        except Exception as e:
            self._record(False)
            self.logger.error(f"{desc}: Failed for item {item}: {e}", exc_info=True)
            return (False, item, e)
        self._record(True)
        return (True, item, result)

    def get_stats(self) -> dict:
        """Get worker pool statistics."""
        with self._stats_lock:
            return dict(self.stats)
