from deferflow.common.messaging import bus as messaging_bus

from .bus import MessageBus
from .events import (
    NodeStatusChanged,
    RunFinished,
    RunStarted,
    TaskExecutionFinished,
    TaskExecutionStarted,
    TaskSkipped,
)


class HumanReadableLogSubscriber:
    """
    Listens to runtime events and translates them into semantic messages
    on the messaging bus. It acts as a bridge between the event domain
    and the user-facing message domain.
    """

    def __init__(self, event_bus: MessageBus):
        event_bus.subscribe(RunStarted, self.on_run_started)
        event_bus.subscribe(RunFinished, self.on_run_finished)
        event_bus.subscribe(TaskExecutionStarted, self.on_task_started)
        event_bus.subscribe(TaskExecutionFinished, self.on_task_finished)
        event_bus.subscribe(TaskSkipped, self.on_task_skipped)
        event_bus.subscribe(NodeStatusChanged, self.on_status_changed)

    def on_run_started(self, event: RunStarted):
        messaging_bus.info(
            "run.started", targets=", ".join(event.target_tasks), workers=event.workers
        )

    def on_run_finished(self, event: RunFinished):
        if event.status == "Succeeded":
            messaging_bus.info("run.finished_success", duration=event.duration)
        else:
            messaging_bus.error(
                "run.finished_failure", duration=event.duration, error=event.error
            )

    def on_task_started(self, event: TaskExecutionStarted):
        messaging_bus.info("task.started", task_name=event.task_name)

    def on_task_finished(self, event: TaskExecutionFinished):
        if event.status == "Succeeded":
            messaging_bus.info(
                "task.finished_success", task_name=event.task_name, duration=event.duration
            )
        else:
            messaging_bus.error(
                "task.finished_failure",
                task_name=event.task_name,
                duration=event.duration,
                error=event.error,
            )

    def on_task_skipped(self, event: TaskSkipped):
        messaging_bus.warning(
            "task.skipped",
            task_name=event.task_name,
            reason=event.reason,
            upstream_task=event.upstream_task,
        )

    def on_status_changed(self, event: NodeStatusChanged):
        messaging_bus.debug(
            "task.status_changed",
            task_id=event.task_id,
            task_name=event.task_name,
            from_status=event.from_status,
            to_status=event.to_status,
        )
