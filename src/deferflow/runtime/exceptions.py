from deferflow.exceptions import DeferflowError


class DeferflowRuntimeError(DeferflowError):
    """Base class for runtime errors in deferflow."""

    pass


class ExecutionError(DeferflowRuntimeError):
    """
    Raised when a task's own action raises while running.
    The original exception is kept in `original` and chained as `__cause__`.
    """

    def __init__(self, node_id: int, task_name: str, original: BaseException):
        self.node_id = node_id
        self.task_name = task_name
        self.original = original
        super().__init__(
            f"Task '{task_name}' (node {node_id}) failed: "
            f"{type(original).__name__}: {original}"
        )
        self.__cause__ = original


class DependencyFailedError(DeferflowRuntimeError):
    """
    Marks a task that was never run because one of its transitive
    dependencies failed. `cause` is the originating ExecutionError.
    """

    def __init__(self, node_id: int, task_name: str, cause: ExecutionError):
        self.node_id = node_id
        self.task_name = task_name
        self.cause = cause
        super().__init__(
            f"Task '{task_name}' (node {node_id}) was not run because "
            f"upstream task '{cause.task_name}' (node {cause.node_id}) failed: "
            f"{type(cause.original).__name__}: {cause.original}"
        )
        self.__cause__ = cause


class SchedulerConsistencyError(DeferflowRuntimeError):
    """
    An internal invariant of the scheduler was violated, e.g. the graph is
    stuck with unresolved nodes that can never become ready.
    """

    pass
