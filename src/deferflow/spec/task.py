import functools
import inspect
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Generic, Optional, TypeVar, Union
from uuid import uuid4

T = TypeVar("T")


@dataclass
class LazyResult(Generic[T]):
    """
    A placeholder for the result of a task execution.
    It holds the task that produces it and the arguments passed to that task.
    Arguments may themselves be LazyResults; they become dependencies when
    the graph is built.
    """

    task: "Task[T]"
    args: tuple
    kwargs: Dict[str, Any]
    _uuid: str = field(default_factory=lambda: str(uuid4()))

    def __hash__(self):
        return hash(self._uuid)

    @property
    def name(self) -> str:
        return self.task.name


class Task(Generic[T]):
    """
    Wraps a callable to make it return a LazyResult when called.
    """

    def __init__(self, func: Callable[..., T], name: Optional[str] = None):
        self.func = func
        self.name = name or getattr(func, "__name__", None) or repr(func)
        self.is_async = inspect.iscoroutinefunction(func)

    def __call__(self, *args, **kwargs) -> LazyResult[T]:
        return LazyResult(task=self, args=args, kwargs=kwargs)

    def __repr__(self):
        return f"<Task {self.name}>"


def task(
    func: Optional[Callable[..., T]] = None, *, name: Optional[str] = None
) -> Union[Task[T], Callable[[Callable[..., T]], Task[T]]]:
    """
    Decorator to convert a function into a Task.
    Can be used as a simple decorator (`@task`) or as a factory with
    arguments (`@task(name='custom_name')`).
    """

    def wrapper(f: Callable[..., T]) -> Task[T]:
        return Task(f, name=name)

    if func:
        return wrapper(func)
    else:
        return wrapper


def _constant(value: Any) -> Any:
    return value


def delayed(value: Any, name: Optional[str] = None) -> LazyResult:
    """
    Marks a literal value as a deferred, zero-argument leaf.

    The returned LazyResult can be shared between several call sites; it is
    compiled into a single node and evaluated once.
    """
    if isinstance(value, LazyResult):
        return value
    thunk = functools.partial(_constant, value)
    return LazyResult(task=Task(thunk, name=name or "delayed"), args=(), kwargs={})
