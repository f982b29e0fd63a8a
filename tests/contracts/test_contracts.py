import pytest

from volvid.contracts import (
    Cancelled,
    ConfigurationError,
    ContractViolation,
    ExternalFailure,
    StageError,
    VolvidError,
    assert_diced,
    assert_sequence,
    require,
)

pytestmark = [pytest.mark.unit]


def test_require_passes_and_fails():
    require(True, "fine")
    with pytest.raises(ContractViolation, match="broken"):
        require(False, "broken")


def test_assert_sequence_rejects_empty_and_duplicates():
    assert_sequence([1, 2, 3])
    with pytest.raises(ConfigurationError, match="Empty parameter sequence"):
        assert_sequence([])
    with pytest.raises(ConfigurationError, match="Frame 2 duplicates"):
        assert_sequence([1, 2, 1])


def test_assert_diced(temp_dir):
    paths = [temp_dir / f"s{i}" for i in range(2)]
    for p in paths:
        p.touch()
    assert_diced(paths, 2)

    with pytest.raises(ContractViolation, match="2 slices for 3 frames"):
        assert_diced(paths, 3)

    paths[1].unlink()
    with pytest.raises(ContractViolation, match="missing"):
        assert_diced(paths, 2)


def test_error_hierarchy():
    assert issubclass(ExternalFailure, StageError)
    assert issubclass(Cancelled, StageError)
    assert issubclass(StageError, VolvidError)
    assert issubclass(ConfigurationError, ValueError)
    assert not issubclass(ContractViolation, VolvidError)


def test_stage_error_summary_keeps_last_stderr_lines():
    diagnostics = "\n".join(f"line {i}" for i in range(10))
    err = ExternalFailure("render", "mrender -i x.nrrd", diagnostics, "render exited with status 1")
    summary = err.summary()

    assert summary.splitlines()[0] == "render exited with status 1"
    assert "command: mrender -i x.nrrd" in summary
    assert "line 9" in summary and "line 5" in summary
    assert "line 4" not in summary


def test_stage_error_default_message():
    err = StageError("quantize", "unu quantize")
    assert str(err) == "quantize failed: unu quantize"
    assert "stderr" not in err.summary()
