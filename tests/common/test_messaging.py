import io
import json

import pytest
from rich.console import Console

from deferflow.common.messaging import MessageBus, MessageStore
from deferflow.common.renderers import (
    CliRenderer,
    JsonRenderer,
    RichCliRenderer,
    create_renderer,
    custom_theme,
)


@pytest.fixture
def store():
    return MessageStore(locale="en")


def test_store_formats_known_messages(store):
    assert store.get("task.started", task_name="load") == "  ⏳ Running task `load`..."


def test_store_handles_unknown_ids_and_missing_keys(store):
    assert store.get("no.such.message") == "<no.such.message>"
    assert "missing key" in store.get("task.started")


def test_store_with_unknown_locale_is_empty():
    assert MessageStore(locale="xx").get("task.started") == "<task.started>"


def test_bus_without_renderer_is_silent(store):
    bus = MessageBus(store=store)
    bus.info("task.started", task_name="anything")


def test_cli_renderer_filters_by_level(store):
    output = io.StringIO()
    renderer = CliRenderer(store=store, stream=output, min_level="WARNING")
    bus = MessageBus(store=store)
    bus.set_renderer(renderer)

    bus.info("task.started", task_name="quiet")
    bus.error("task.finished_failure", task_name="loud", duration=0.5, error="E")

    assert "quiet" not in output.getvalue()
    assert "Failed task `loud` after 0.50s: E" in output.getvalue()


def test_json_renderer_emits_structured_records():
    output = io.StringIO()
    renderer = JsonRenderer(stream=output)
    renderer.render("task.started", "info", task_name="load", payload=object())

    record = json.loads(output.getvalue())
    assert record["level"] == "INFO"
    assert record["event_id"] == "task.started"
    assert record["data"]["task_name"] == "load"
    assert record["data"]["payload"].startswith("<object object")


def test_rich_renderer_prints_through_console(store):
    console = Console(file=io.StringIO(), force_terminal=False, theme=custom_theme)
    renderer = RichCliRenderer(store=store, console=console)

    renderer.render("task.started", "info", task_name="[bold]load[/bold]")
    renderer.render("task.started", "debug", task_name="hidden")

    text = console.file.getvalue()
    assert "[bold]load[/bold]" in text
    assert "hidden" not in text


def test_create_renderer_selects_format(store):
    assert isinstance(create_renderer("human", store=store), CliRenderer)
    assert isinstance(create_renderer("rich", store=store), RichCliRenderer)
    assert isinstance(create_renderer("json"), JsonRenderer)
    with pytest.raises(ValueError, match="Unknown log format"):
        create_renderer("xml")


def test_json_renderer_includes_text_when_given_a_store(store):
    output = io.StringIO()
    JsonRenderer(stream=output, store=store, min_level="DEBUG").render(
        "task.skipped", "warning", task_name="plot", reason="UpstreamFailed", upstream_task="clean"
    )

    record = json.loads(output.getvalue())
    assert record["level"] == "WARNING"
    assert "Skipped task `plot`" in record["message"]


def test_store_loads_custom_locale_directory(tmp_path):
    (tmp_path / "fr").mkdir()
    (tmp_path / "fr" / "runtime.json").write_text(
        json.dumps({"task.started": "Tâche `{task_name}` lancée"}), encoding="utf-8"
    )

    store = MessageStore(locale="fr", locales_dir=tmp_path)

    assert "task.started" in store
    assert store.get("task.started", task_name="load") == "Tâche `load` lancée"
