import pytest

from volvid.pipeline.orchestrator import PipelineOrchestrator
from volvid.pipeline.run_tracker import RunTracker
from tests.helpers.fake_backend import FakeBackend, fake_executor


@pytest.fixture
def tracker(temp_dir):
    with RunTracker(temp_dir / "runs.db") as t:
        yield t


@pytest.fixture
def make_orchestrator(output_dirs):
    """Build an orchestrator whose tools are one FakeBackend.

    Returns ``(orchestrator, backend)``.
    """
    def _make(config, backend=None, dirs=None):
        executor, backend = fake_executor(backend or FakeBackend())
        return PipelineOrchestrator(config, dirs or output_dirs, executor=executor), backend

    return _make
