"""Artifact identity and on-disk naming.

Every artifact is ``{stem}-{query}-{measure}-{tag}-{key}.{ext}`` inside the
run's frame (or video) directory. The naming is the cache: a rerun finds
yesterday's artifacts only if these names are reproduced exactly.
"""

from dataclasses import dataclass
from pathlib import Path

__all__ = ['Artifact', 'ArtifactNamer']


@dataclass(frozen=True)
class Artifact:
    """A named file produced by one stage for one frame or the whole sequence."""
    path: Path
    stem: str
    query: str
    measure: str
    tag: str
    key: str

    def exists(self) -> bool:
        return self.path.exists()

    def __str__(self) -> str:
        return str(self.path)


class ArtifactNamer:
    """Builds artifact names for one (stem, query, measure) run."""

    def __init__(self, frames_dir, videos_dir, stem: str, query: str, measure: str):
        self.frames_dir = Path(frames_dir)
        self.videos_dir = Path(videos_dir)
        self.stem = stem
        self.query = query
        self.measure = measure

    @property
    def prefix(self) -> str:
        return f"{self.stem}-{self.query}-{self.measure}"

    def artifact(self, tag: str, key: str, ext: str) -> Artifact:
        path = self.frames_dir / f"{self.prefix}-{tag}-{key}.{ext}"
        return Artifact(path, self.stem, self.query, self.measure, tag, key)

    def video(self, key: str, ext: str) -> Artifact:
        path = self.videos_dir / f"{self.prefix}-video-{key}.{ext}"
        return Artifact(path, self.stem, self.query, self.measure, "video", key)

    def dice_prefix(self, key: str) -> Path:
        """Prefix the toolkit's dice operation numbers its slices after."""
        return self.frames_dir / f"{self.prefix}-dice-{key}-"
