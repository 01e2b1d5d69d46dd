import pytest

from gopixel.config import PixelConfig, TrackingContext
from gopixel.config.main import ENV_VARS

from tests.helpers import ENDPOINT, FakeClock


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """
    Keep GOPIXEL_* variables of the machine running the tests out of the way.
    """
    for env_var in ENV_VARS.values():
        monkeypatch.delenv(env_var, raising=False)


@pytest.fixture
def context() -> TrackingContext:
    return TrackingContext(client="licence-123", visitor="visitor-456")


@pytest.fixture
def config() -> PixelConfig:
    return PixelConfig(licence="licence-123", endpoint=ENDPOINT)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
