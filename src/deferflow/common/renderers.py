import json
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional, TextIO

from rich.console import Console
from rich.theme import Theme

from deferflow.common.messaging import MessageStore, bus, protocols

LOG_LEVELS = {
    "DEBUG": 10,
    "INFO": 20,
    "WARNING": 30,
    "ERROR": 40,
}

custom_theme = Theme(
    {
        "debug": "dim",
        "info": "cyan",
        "warning": "yellow",
        "error": "bold red",
    }
)


class _LevelFilter:
    def __init__(self, min_level: str):
        self._min_level_val = LOG_LEVELS.get(min_level.upper(), LOG_LEVELS["INFO"])

    def _enabled(self, level: str) -> bool:
        return LOG_LEVELS.get(level.upper(), LOG_LEVELS["INFO"]) >= self._min_level_val


class CliRenderer(_LevelFilter, protocols.Renderer):
    """Plain text, one message per line."""

    def __init__(
        self,
        store: MessageStore,
        stream: Optional[TextIO] = None,
        min_level: str = "INFO",
    ):
        super().__init__(min_level)
        self._store = store
        self._stream = stream if stream is not None else sys.stderr

    def render(self, msg_id: str, level: str, **kwargs):
        if self._enabled(level):
            print(self._store.get(msg_id, **kwargs), file=self._stream)


class JsonRenderer(_LevelFilter, protocols.Renderer):
    """
    One JSON record per line, for log shippers. Values that are not JSON
    serializable are written as their repr. When a store is given, the
    rendered text is included under "message".
    """

    def __init__(
        self,
        stream: Optional[TextIO] = None,
        min_level: str = "INFO",
        store: Optional[MessageStore] = None,
    ):
        super().__init__(min_level)
        self._stream = stream if stream is not None else sys.stderr
        self._store = store

    def render(self, msg_id: str, level: str, **kwargs):
        if not self._enabled(level):
            return

        record: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": level.upper(),
            "event_id": msg_id,
            "data": kwargs,
        }
        if self._store is not None:
            record["message"] = self._store.get(msg_id, **kwargs)
        print(json.dumps(record, default=repr), file=self._stream)


class RichCliRenderer(_LevelFilter, protocols.Renderer):
    """Colourised output through a rich Console, styled by level."""

    def __init__(
        self,
        store: MessageStore,
        min_level: str = "INFO",
        console: Optional[Console] = None,
    ):
        super().__init__(min_level)
        self._store = store
        self._console = console or Console(theme=custom_theme, stderr=True)

    def render(self, msg_id: str, level: str, **kwargs):
        if not self._enabled(level):
            return

        message = self._store.get(msg_id, **kwargs)
        style = level.lower() if level.lower() in custom_theme.styles else ""
        # Task names may contain brackets, which rich would read as markup
        self._console.print(message, style=style, markup=False, highlight=False)


def create_renderer(
    log_format: str = "human", min_level: str = "INFO", store: Optional[MessageStore] = None
) -> protocols.Renderer:
    store = store or bus.store
    if log_format == "json":
        return JsonRenderer(min_level=min_level, store=store)
    if log_format == "rich":
        return RichCliRenderer(store=store, min_level=min_level)
    if log_format == "human":
        return CliRenderer(store=store, min_level=min_level)
    raise ValueError(
        f"Unknown log format '{log_format}'. Choose one of 'human', 'rich', 'json'."
    )
