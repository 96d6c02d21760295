# tests/conftest.py
import pytest

from helperbars.core.cache import TTLCache
from helperbars.core.templating import RenderEnvironment


class FakeClock:
    """Manually advanced monotonic clock for cache tests."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def env(clock):
    """A fresh environment whose caches run on the fake clock."""
    return RenderEnvironment(
        template_cache=TTLCache(sweep_interval=60, clock=clock),
        token_cache=TTLCache(sweep_interval=60, clock=clock),
    )


@pytest.fixture
def render(env):
    def _render(source, data=None):
        return env.interpolate(data if data is not None else {}, source)
    return _render
