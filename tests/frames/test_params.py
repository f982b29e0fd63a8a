import pytest
from pydantic import ValidationError

from volvid.frames.params import FrameParameters, orbit_eye
from volvid.frames.planner import ParameterPlanner

pytestmark = [pytest.mark.unit]


@pytest.fixture
def defaults(internal_config):
    return ParameterPlanner(internal_config).defaults()


def test_orbit_eye_quarter_turns():
    assert orbit_eye(0, (0, 0, 0), (0, 0, 1), 10, 0) == (10.0, 0.0, 0.0)
    assert orbit_eye(90, (0, 0, 0), (0, 0, 1), 10, 0) == (0.0, 10.0, 0.0)
    assert orbit_eye(180, (0, 0, 0), (0, 0, 1), 10, 0) == (-10.0, 0.0, 0.0)


def test_orbit_eye_offsets_by_at_and_height():
    assert orbit_eye(0, (1, 2, 3), (0, 0, 1), 2, 5) == (3.0, 2.0, 8.0)


def test_orbit_eye_stays_perpendicular_to_up():
    eye = orbit_eye(37, (0, 0, 0), (1, 0, 0), 4, 0)
    assert eye[0] == pytest.approx(0.0)
    assert eye[1] ** 2 + eye[2] ** 2 == pytest.approx(16.0)


def test_orbit_eye_rejects_zero_up():
    with pytest.raises(ValueError):
        orbit_eye(0, (0, 0, 0), (0, 0, 0), 1, 0)


def test_explicit_eye_wins_over_angle(defaults):
    frame = FrameParameters.model_validate({**defaults, "angle": 90, "fr": "1 2 3"})
    assert frame.eye_position() == (1.0, 2.0, 3.0)
    assert frame.describe() == "eye=(1,2,3)"


def test_angle_eye_uses_orbit(defaults):
    frame = FrameParameters.model_validate({**defaults, "angle": 90})
    assert frame.eye_position() == (0.0, 10.0, 0.0)
    assert frame.describe() == "angle=90"


def test_vector_strings_parse(defaults):
    frame = FrameParameters.model_validate({**defaults, "angle": 0, "at": "1,2,3", "ur": "-2 2"})
    assert frame.at == (1.0, 2.0, 3.0)
    assert frame.u_range == (-2.0, 2.0)


def test_frames_are_immutable_and_hashable(defaults):
    a = FrameParameters.model_validate({**defaults, "angle": 0})
    b = FrameParameters.model_validate({**defaults, "angle": 0})
    assert a == b
    assert len({a, b}) == 1
    with pytest.raises(ValidationError):
        a.step = 1.0


def test_non_positive_step_rejected(defaults):
    with pytest.raises(ValidationError):
        FrameParameters.model_validate({**defaults, "angle": 0, "step": 0})


def test_has_pose(defaults):
    assert not FrameParameters.model_validate(defaults).has_pose()
    assert FrameParameters.model_validate({**defaults, "angle": 0}).has_pose()
