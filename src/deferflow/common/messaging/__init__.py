import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

from .protocols import Renderer

logger = logging.getLogger(__name__)

DEFAULT_LOCALES_DIR = Path(__file__).parent.parent / "locales"


class MessageStore:
    """
    Message templates keyed by semantic id, loaded from
    `<locales_dir>/<locale>/*.json`. Files are merged in name order.
    """

    def __init__(
        self,
        locale: str = "en",
        locales_dir: Optional[Union[str, Path]] = None,
    ):
        self.locale = locale
        self.locales_dir = Path(locales_dir) if locales_dir else DEFAULT_LOCALES_DIR
        self._messages: Dict[str, str] = {}
        self._load_messages()

    def _load_messages(self):
        locale_path = self.locales_dir / self.locale
        if not locale_path.is_dir():
            logger.warning(
                "No messages found for locale '%s' in %s.", self.locale, self.locales_dir
            )
            return

        for message_file in sorted(locale_path.glob("*.json")):
            try:
                with open(message_file, "r", encoding="utf-8") as f:
                    self._messages.update(json.load(f))
            except (json.JSONDecodeError, OSError) as e:
                logger.error("Failed to load message file %s: %s", message_file, e)

    def __contains__(self, msg_id: str) -> bool:
        return msg_id in self._messages

    def get(self, msg_id: str, default: str = "", **kwargs) -> str:
        template = self._messages.get(msg_id, default or f"<{msg_id}>")
        try:
            return template.format(**kwargs)
        except KeyError as e:
            return f"<Formatting error for '{msg_id}': missing key {e}>"


class MessageBus:
    """
    User-facing message channel. Code emits semantic message ids; the
    attached renderer decides how (and whether) they are shown. Without a
    renderer every message is dropped.
    """

    def __init__(self, store: MessageStore):
        self._store = store
        self._renderer: Optional[Renderer] = None

    @property
    def store(self) -> MessageStore:
        return self._store

    @property
    def renderer(self) -> Optional[Renderer]:
        return self._renderer

    def set_renderer(self, renderer: Optional[Renderer]):
        self._renderer = renderer

    def log(self, level: str, msg_id: str, **kwargs: Any) -> None:
        if self._renderer is not None:
            self._renderer.render(msg_id, level, **kwargs)

    def debug(self, msg_id: str, **kwargs: Any) -> None:
        self.log("debug", msg_id, **kwargs)

    def info(self, msg_id: str, **kwargs: Any) -> None:
        self.log("info", msg_id, **kwargs)

    def warning(self, msg_id: str, **kwargs: Any) -> None:
        self.log("warning", msg_id, **kwargs)

    def error(self, msg_id: str, **kwargs: Any) -> None:
        self.log("error", msg_id, **kwargs)


bus = MessageBus(store=MessageStore(locale="en"))
