import logging
import sys
import threading

import pytest

from volvid.contracts import Cancelled, ExternalFailure
from volvid.frames.naming import ArtifactNamer
from volvid.stages.backends import SubprocessBackend
from volvid.stages.executor import StageExecutor
from volvid.stages.invocation import StageInvocation
from tests.helpers.fake_backend import FakeBackend, fake_executor

pytestmark = [pytest.mark.unit]


@pytest.fixture
def namer(temp_dir):
    return ArtifactNamer(temp_dir, temp_dir, "vol", "val", "max")


def _touch(path):
    return StageInvocation("render", "render", ("mrender",), args=(("-o", str(path)),), outputs=(path,))


def _python(code, operation="render", outputs=()):
    return StageInvocation(operation, "toolkit", (sys.executable, "-c", code), outputs=tuple(outputs))


def test_run_produces_missing_artifact(namer):
    executor, backend = fake_executor()
    art = namer.artifact("render", "k1", "nrrd")

    executor.run(art, _touch(art.path))

    assert art.exists()
    assert backend.count("render") == 1
    assert (executor.invocations, executor.skips) == (1, 0)


def test_run_skips_existing_artifact(namer, caplog):
    executor, backend = fake_executor()
    art = namer.artifact("render", "k1", "nrrd")
    art.path.write_bytes(b"old")

    with caplog.at_level(logging.INFO):
        executor.run(art, _touch(art.path))

    assert backend.calls == []
    assert executor.skips == 1
    assert art.path.read_bytes() == b"old"
    assert f"Skipped render: {art.path.name} exists" in caplog.text


def test_nonzero_exit_is_external_failure(namer):
    executor, _ = fake_executor(FakeBackend(fail_on={"render"}))
    art = namer.artifact("render", "k1", "nrrd")

    with pytest.raises(ExternalFailure) as exc:
        executor.run(art, _touch(art.path))
    assert "boom" in exc.value.diagnostics
    assert exc.value.stage == "render"


def test_clean_exit_without_output_is_external_failure(namer):
    executor, _ = fake_executor(FakeBackend(silent_on={"render"}))
    art = namer.artifact("render", "k1", "nrrd")

    with pytest.raises(ExternalFailure, match="did not write"):
        executor.run(art, _touch(art.path))


def test_failed_run_removes_partial_output(namer):
    executor, backend = fake_executor(FakeBackend(partial_on={"render"}))
    art = namer.artifact("render", "k1", "nrrd")

    with pytest.raises(ExternalFailure, match="status 1"):
        executor.run(art, _touch(art.path))
    assert not art.exists()

    backend.partial_on.clear()
    executor.run(art, _touch(art.path))
    assert art.path.read_bytes() == b"fake"
    assert backend.count("render") == 2
    assert executor.skips == 0


def test_failed_run_removes_every_declared_output(namer):
    executor, _ = fake_executor(FakeBackend(partial_on={"manifest"}))
    art = namer.artifact("manifest", "k1", "txt")
    side = namer.artifact("manifest", "k1", "log")
    inv = StageInvocation("manifest", "encoder", ("true",), outputs=(art.path, side.path))

    with pytest.raises(ExternalFailure):
        executor.run(art, inv)
    assert not art.exists()
    assert not side.exists()


def test_call_leaves_outputs_on_failure(namer):
    executor, _ = fake_executor(FakeBackend(partial_on={"render"}))
    art = namer.artifact("render", "k1", "nrrd")

    with pytest.raises(ExternalFailure):
        executor.call(_touch(art.path))
    assert art.path.read_bytes() == b"partial"


def test_concurrent_runs_of_one_artifact_produce_once(namer):
    executor, backend = fake_executor()
    art = namer.artifact("render", "k1", "nrrd")

    threads = [threading.Thread(target=executor.run, args=(art, _touch(art.path))) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert backend.count("render") == 1
    assert executor.skips == 7


def test_from_config(make_config):
    config = make_config(executor={"timeout_sec": 5, "stream_progress": True})
    executor = StageExecutor.from_config(config)
    assert executor.timeout == 5
    assert executor.stream_progress is True
    assert isinstance(executor.backends["render"], SubprocessBackend)


@pytest.mark.integration
class TestSubprocessBackend:

    def test_captures_stdout(self):
        out = StageExecutor().call(_python("print('min: 1'); print('max: 2')", "minmax"))
        assert out.stdout.splitlines() == ["min: 1", "max: 2"]

    def test_failure_carries_stderr(self):
        code = "import sys; sys.stderr.write('cannot read volume\\n'); sys.exit(3)"
        with pytest.raises(ExternalFailure) as exc:
            StageExecutor().call(_python(code))
        assert "status 3" in str(exc.value)
        assert "cannot read volume" in exc.value.summary()

    def test_missing_program(self):
        inv = StageInvocation("render", "render", ("volvid-no-such-program",))
        with pytest.raises(ExternalFailure, match="cannot start"):
            StageExecutor().call(inv)

    def test_timeout_cancels(self):
        executor = StageExecutor(timeout=0.3)
        with pytest.raises(Cancelled, match="timed out"):
            executor.call(_python("import time; time.sleep(30)"))

    def test_timeout_removes_partial_output(self, namer):
        art = namer.artifact("render", "k1", "nrrd")
        code = "import sys, time; open(sys.argv[1], 'w').write('partial'); time.sleep(30)"
        inv = StageInvocation("render", "render", (sys.executable, "-c", code),
                              operands=(str(art.path),), outputs=(art.path,))
        executor = StageExecutor(timeout=1.0)

        with pytest.raises(Cancelled, match="timed out"):
            executor.run(art, inv)
        assert not art.exists()
        assert executor.skips == 0

    def test_cancel_event_terminates(self):
        executor = StageExecutor()
        timer = threading.Timer(0.2, executor.cancel)
        timer.start()
        try:
            with pytest.raises(Cancelled, match="cancelled"):
                executor.call(_python("import time; time.sleep(30)"))
        finally:
            timer.cancel()

    def test_progress_lines_streamed(self, caplog):
        code = "import sys\nfor p in (10, 50, 100):\n    sys.stderr.write(f'rendering {p}%\\n')"
        executor = StageExecutor(stream_progress=True)
        with caplog.at_level(logging.DEBUG, logger="volvid.stages.executor"):
            executor.call(_python(code))
        assert "render progress: 50%" in caplog.text
        assert "render progress: 100%" in caplog.text
