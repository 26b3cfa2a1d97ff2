import pytest
import structlog

from tests.fakes import FakeClock, FakeNoticeSink


@pytest.fixture(autouse=True)
def _reset_structlog():
    yield
    structlog.reset_defaults()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def notices() -> FakeNoticeSink:
    return FakeNoticeSink()
