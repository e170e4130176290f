import asyncio
import functools
from concurrent.futures import ThreadPoolExecutor

from deferflow.runtime.protocols import WorkUnit

from .base import FutureWorkerPool


class ThreadWorkerPool(FutureWorkerPool):
    """
    Runs synchronous actions on a thread pool and coroutine actions on the
    event loop. At most `workers` units are in flight at once.
    """

    def __init__(self, workers: int = 4):
        super().__init__(capacity=workers)
        self._executor = ThreadPoolExecutor(
            max_workers=workers, thread_name_prefix="deferflow_worker"
        )

    def _start(self, unit: WorkUnit) -> asyncio.Future:
        if unit.is_async:
            return asyncio.ensure_future(unit.func(*unit.args, **unit.kwargs))

        loop = asyncio.get_running_loop()
        # run_in_executor only accepts positional arguments for the target function
        func_to_run = functools.partial(unit.func, *unit.args, **unit.kwargs)
        return loop.run_in_executor(self._executor, func_to_run)

    def shutdown(self) -> None:
        self._executor.shutdown(wait=False, cancel_futures=True)
