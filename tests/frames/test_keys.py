import hashlib
from pathlib import Path

import pytest

from volvid.frames.keys import ArtifactKeyer, canonical
from volvid.frames.naming import ArtifactNamer
from volvid.frames.planner import ParameterPlanner

pytestmark = [pytest.mark.unit]


@pytest.fixture
def frames(make_config):
    return ParameterPlanner(make_config(angles=(0, 3))).plan()


def test_key_is_deterministic(frames):
    keyer = ArtifactKeyer()
    value = {"frame": frames[0], "query": "val", "measure": "max"}
    assert keyer.key(value) == ArtifactKeyer().key(dict(reversed(list(value.items()))))
    assert len(keyer.key(value)) == 10


def test_key_tracks_frame_parameters(frames):
    keyer = ArtifactKeyer()
    assert keyer.key(frames[0]) != keyer.key(frames[1])


def test_key_tracks_colormap_content_not_path():
    keyer = ArtifactKeyer()
    a = keyer.key({"colormap": b"0 0 0\n1 1 1\n"})
    b = keyer.key({"colormap": b"0 0 0\n1 0 0\n"})
    assert a != b
    assert a == keyer.key({"colormap": b"0 0 0\n1 1 1\n"})


def test_heq_token_false_differs_from_any_key():
    keyer = ArtifactKeyer()
    assert keyer.key({"heq": False}) != keyer.key({"heq": keyer.key("anything")})


def test_key_length_and_digest_configurable(make_config):
    config = make_config(cache={"digest": "sha256", "key_length": 16})
    keyer = ArtifactKeyer.from_config(config)
    expected = hashlib.sha256(canonical([1, 2]).encode("utf-8")).hexdigest()[:16]
    assert keyer.key([1, 2]) == expected


def test_callable_digest():
    keyer = ArtifactKeyer(digest=lambda data: "f" * 40, length=6)
    assert keyer.key({"x": 1}) == "ffffff"


def test_canonical_is_compact_and_sorted():
    assert canonical({"b": 1, "a": (Path("x"), 2)}) == '{"a":["x",2],"b":1}'


def test_artifact_names(temp_dir):
    namer = ArtifactNamer(temp_dir / "frames", temp_dir / "videos", "engine", "val", "max")

    art = namer.artifact("render", "abc123", "nrrd")
    assert art.path == temp_dir / "frames" / "engine-val-max-render-abc123.nrrd"
    assert (art.stem, art.query, art.measure, art.tag, art.key) == ("engine", "val", "max", "render", "abc123")
    assert not art.exists()

    video = namer.video("def456", "avi")
    assert video.path == temp_dir / "videos" / "engine-val-max-video-def456.avi"
    assert video.tag == "video"

    assert namer.dice_prefix("k1").name == "engine-val-max-dice-k1-"
