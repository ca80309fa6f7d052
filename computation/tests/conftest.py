import pytest

from computation.config import ComputationConfig
from computation.store import InMemoryStore

from .helpers import INSTANCE, FakeClock


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(clock):
    return InMemoryStore(clock=clock)


@pytest.fixture
def config():
    return ComputationConfig(
        instance_dir=INSTANCE,
        generation_wait_seconds=240,
        upload_poll_seconds=60,
        recommend_how_many=2,
        recommend_workers=2,
    )


@pytest.fixture(autouse=True)
def cpu_limit(monkeypatch):
    """Pin the worker limit so worker counts do not depend on the host."""
    monkeypatch.setattr("computation.stages.recommend.default_worker_count", lambda: 8)
    return 8
