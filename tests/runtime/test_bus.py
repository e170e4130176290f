import io

from deferflow.common.messaging import bus as ui_bus
from deferflow.common.renderers import CliRenderer
from deferflow.runtime.bus import MessageBus as EventBus
from deferflow.runtime.events import (
    NodeStatusChanged,
    RunStarted,
    TaskExecutionFinished,
    TaskSkipped,
)
from deferflow.runtime.subscribers import HumanReadableLogSubscriber


def test_message_bus_dispatch(bus_and_spy):
    bus, spy = bus_and_spy

    specific_received = []

    def specific_handler(event: RunStarted):
        specific_received.append(event)

    bus.subscribe(RunStarted, specific_handler)

    event1 = RunStarted()
    bus.publish(event1)
    assert len(specific_received) == 1

    event2 = TaskExecutionFinished()
    bus.publish(event2)
    assert len(specific_received) == 1

    # The spy (wildcard) received everything
    assert spy.events == [event1, event2]


def test_message_bus_wildcard(bus_and_spy):
    bus, spy = bus_and_spy

    bus.publish(RunStarted(target_tasks=[], workers=1))
    bus.publish(TaskExecutionFinished(task_id=1, task_name="t", status="OK", duration=0.0))

    assert len(spy.events) == 2
    assert isinstance(spy.events_of_type(RunStarted)[0], RunStarted)
    assert isinstance(spy.events_of_type(TaskExecutionFinished)[0], TaskExecutionFinished)


def test_event_ids_are_unique():
    assert RunStarted().event_id != RunStarted().event_id


def test_human_readable_subscriber_integration():
    event_bus = EventBus()
    output = io.StringIO()
    ui_bus.set_renderer(CliRenderer(store=ui_bus.store, stream=output, min_level="INFO"))

    HumanReadableLogSubscriber(event_bus)

    event_bus.publish(RunStarted(target_tasks=["report"], workers=4))
    event_bus.publish(
        TaskExecutionFinished(task_id=3, task_name="load", status="Succeeded", duration=1.23)
    )
    event_bus.publish(
        TaskExecutionFinished(
            task_id=4, task_name="clean", status="Failed", duration=0.05, error="KeyError: 'x'"
        )
    )
    event_bus.publish(
        TaskSkipped(task_id=5, task_name="plot", reason="UpstreamFailed", upstream_task="clean")
    )
    event_bus.publish(
        NodeStatusChanged(task_id=5, task_name="plot", from_status="Waiting", to_status="Failed")
    )

    logs = output.getvalue()
    assert "Starting run for targets: [report] on 4 worker(s)" in logs
    assert "Finished task `load` in 1.23s" in logs
    assert "Failed task `clean` after 0.05s: KeyError: 'x'" in logs
    assert "Skipped task `plot` (Reason: UpstreamFailed, upstream: clean)" in logs
    # Status transitions are DEBUG level
    assert "Waiting -> Failed" not in logs


def test_human_readable_subscriber_log_level():
    event_bus = EventBus()
    output = io.StringIO()
    ui_bus.set_renderer(CliRenderer(store=ui_bus.store, stream=output, min_level="ERROR"))
    HumanReadableLogSubscriber(event_bus)

    event_bus.publish(
        TaskExecutionFinished(task_id=1, task_name="ok", status="Succeeded", duration=0.1)
    )
    event_bus.publish(
        TaskExecutionFinished(
            task_id=2, task_name="bad", status="Failed", duration=0.1, error="Boom"
        )
    )

    logs = output.getvalue()
    assert "`ok`" not in logs
    assert "Failed task `bad`" in logs


def test_unsubscribed_handlers_stop_receiving(bus_and_spy):
    bus, spy = bus_and_spy
    received = []
    bus.subscribe(RunStarted, received.append)
    bus.unsubscribe(RunStarted, received.append)

    bus.publish(RunStarted())

    assert received == []
    assert len(spy.events) == 1
