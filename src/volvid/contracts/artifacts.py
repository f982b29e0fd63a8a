"""Stage-boundary contracts for artifacts and frame sequences."""

from pathlib import Path
from typing import Iterable, Sequence

from volvid.contracts.base import require
from volvid.contracts.failure import ConfigurationError


def assert_sequence(frames: Sequence) -> None:
    """Planned sequence is non-empty and free of repeated frames; raises ConfigurationError otherwise."""
    if not frames:
        raise ConfigurationError("Empty parameter sequence")
    seen = set()
    for i, frame in enumerate(frames):
        if frame in seen:
            raise ConfigurationError(f"Frame {i} duplicates an earlier frame: {frame!r}")
        seen.add(frame)


def assert_artifacts_exist(paths: Iterable[Path], stage: str) -> None:
    """Every artifact a stage promised is on disk."""
    missing = [str(p) for p in paths if not Path(p).exists()]
    require(
        not missing,
        f"{stage} contract violated: missing artifacts {missing}"
    )


def assert_diced(paths: Sequence[Path], expected: int) -> None:
    """Dice produced one slice per frame."""
    require(
        len(paths) == expected,
        f"Dice contract violated: {len(paths)} slices for {expected} frames"
    )
    assert_artifacts_exist(paths, "Dice")
