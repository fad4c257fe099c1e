import asyncio
import sys
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Iterable, List

MAX_WORKERS = 32
PACE_INTERVAL = 0.2


class BatchController:
    """
    Runs a blocking per-target callable over many targets with a concurrency cap.

    Each target holds one semaphore slot from before its task is launched
    until after the pacing sleep that follows its work. The slot is released
    on every exit path.
    """

    def __init__(
        self,
        run_target: Callable[[str], Any],
        max_workers: int = MAX_WORKERS,
        pace_interval: float = PACE_INTERVAL,
        verbose: bool = False
    ):
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self.run_target = run_target
        self.max_workers = max_workers
        self.pace_interval = pace_interval
        self.verbose = verbose

    def _make_semaphore(self) -> asyncio.Semaphore:
        return asyncio.Semaphore(self.max_workers)

    def run(self, targets: Iterable[str]) -> int:
        """Run every target to completion and return how many were attempted."""
        return asyncio.run(self.execute(targets))

    async def execute(self, targets: Iterable[str]) -> int:
        """
        Dispatch one task per target, at most max_workers at a time.

        Returns only after every launched task has finished. The return value
        counts attempts, not successes.
        """
        semaphore = self._make_semaphore()
        tasks: List[asyncio.Task] = []

        with ThreadPoolExecutor(
            max_workers=self.max_workers,
            thread_name_prefix="rtrbatch"
        ) as pool:
            for target in targets:
                await semaphore.acquire()
                try:
                    task = asyncio.create_task(self._run_in_slot(semaphore, pool, target))
                except BaseException:
                    semaphore.release()
                    raise
                tasks.append(task)

            if self.verbose:
                print(f"[BatchController] Dispatched {len(tasks)} targets, waiting for completion", file=sys.stderr)

            await asyncio.gather(*tasks)

        if self.verbose:
            print(f"[BatchController] All {len(tasks)} targets finished", file=sys.stderr)

        return len(tasks)

    async def _run_in_slot(
        self,
        semaphore: asyncio.Semaphore,
        pool: ThreadPoolExecutor,
        target: str
    ):
        """Run one target while holding its slot, then pace and release."""
        loop = asyncio.get_running_loop()
        try:
            try:
                await loop.run_in_executor(pool, self.run_target, target)
            except Exception as e:
                print(f"[BatchController] Target {target} failed: {type(e).__name__}: {e}", file=sys.stderr)

            if self.pace_interval > 0:
                await asyncio.sleep(self.pace_interval)
        finally:
            semaphore.release()
