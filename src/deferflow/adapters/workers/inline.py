import asyncio

from deferflow.runtime.protocols import WorkUnit

from .base import FutureWorkerPool


class InlineWorkerPool(FutureWorkerPool):
    """
    Runs each unit synchronously in the coordinator at submission time.
    There is no parallelism, which makes runs fully deterministic.
    """

    def __init__(self):
        super().__init__(capacity=1)

    def _start(self, unit: WorkUnit) -> asyncio.Future:
        if unit.is_async:
            return asyncio.ensure_future(unit.func(*unit.args, **unit.kwargs))

        future = asyncio.get_running_loop().create_future()
        try:
            result = unit.func(*unit.args, **unit.kwargs)
        except Exception as e:
            future.set_exception(e)
        else:
            future.set_result(result)
        return future
