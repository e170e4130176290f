import asyncio
import functools
import inspect
from concurrent.futures import ProcessPoolExecutor
from typing import Any, Dict, Union

from deferflow.graph.serialize import _get_func_path, _load_func_from_path
from deferflow.runtime.protocols import WorkUnit

from .base import FutureWorkerPool


def _invoke(target: Union[Dict[str, str], Any], args: tuple, kwargs: Dict[str, Any]) -> Any:
    """Entry point executed inside the worker process."""
    func = _load_func_from_path(target) if isinstance(target, dict) else target
    result = func(*args, **kwargs)
    if inspect.iscoroutine(result):
        result = asyncio.run(result)
    return result


def _shippable(func: Any) -> Union[Dict[str, str], Any]:
    """
    Decorated task functions are shadowed in their module by the Task wrapper,
    so pickle cannot find them by reference. Such functions are sent by
    import path and resolved in the child; everything else is pickled as is.
    """
    path = _get_func_path(func)
    if path is None:
        return func
    try:
        resolved = _load_func_from_path(path)
    except ValueError:
        return func
    return path if resolved is func else func


class ProcessWorkerPool(FutureWorkerPool):
    """
    Runs actions out-of-process. Actions, arguments and results must be
    picklable.
    """

    def __init__(self, workers: int = 4):
        super().__init__(capacity=workers)
        self._executor = ProcessPoolExecutor(max_workers=workers)

    def _start(self, unit: WorkUnit) -> asyncio.Future:
        loop = asyncio.get_running_loop()
        func_to_run = functools.partial(
            _invoke, _shippable(unit.func), unit.args, unit.kwargs
        )
        return loop.run_in_executor(self._executor, func_to_run)

    def shutdown(self) -> None:
        self._executor.shutdown(wait=True, cancel_futures=True)
