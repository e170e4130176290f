import pytest

from deferflow.common.messaging import bus as messaging_bus
from deferflow.runtime.bus import MessageBus
from deferflow.testing import SpySubscriber


@pytest.fixture
def bus_and_spy():
    """Provides a MessageBus instance and an attached SpySubscriber."""
    bus = MessageBus()
    spy = SpySubscriber(bus)
    return bus, spy


@pytest.fixture(autouse=True)
def reset_messaging_renderer():
    yield
    messaging_bus.set_renderer(None)
