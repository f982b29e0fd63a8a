"""Root-level pytest fixtures for the volvid test suite.

Provides shared configuration fixtures following the Pydantic-based
configuration layers. Tests build configs through these fixtures instead
of raw dicts.
"""

import pytest
from pathlib import Path
import tempfile
import shutil

from volvid.schemas import ParamConfig, UserConfig, resolve_config
from volvid.setup_directories import setup_output_directories


# =============================================================================
# Configuration Fixtures (Pydantic-based)
# =============================================================================

@pytest.fixture
def param_config():
    """Expert configuration with all defaults."""
    return ParamConfig()


@pytest.fixture
def volume(temp_dir):
    """Placeholder input volume; fake backends never read it."""
    path = temp_dir / "engine.nrrd"
    path.write_bytes(b"NRRD0004\n")
    return path


@pytest.fixture
def internal_config(param_config, volume):
    """Fully validated runtime configuration with one query and measure.

    Examples
    --------
    >>> def test_planner_defaults(internal_config):
    ...     planner = ParameterPlanner(internal_config)
    ...     assert len(planner.plan()) == 360
    """
    user = UserConfig(input=str(volume), queries="val", measures="max")
    return resolve_config(param_config, user, None)


@pytest.fixture
def make_config(param_config, volume):
    """Factory fixture for creating custom test configs.

    Accepts UserConfig-compatible kwargs. ``input``, ``queries`` and
    ``measures`` default to the placeholder volume, ``val`` and ``max``.

    Examples
    --------
    >>> def test_interval(make_config):
    ...     config = make_config(angles=(0, 9), interval=3)
    ...     assert config.camera.interval == 3
    """
    def _make(**user_overrides):
        user_overrides.setdefault("input", str(volume))
        user_overrides.setdefault("queries", "val")
        user_overrides.setdefault("measures", "max")
        return resolve_config(param_config, UserConfig(**user_overrides), None)

    return _make


# =============================================================================
# Directory Fixtures
# =============================================================================

@pytest.fixture
def temp_dir():
    """Temporary directory that is cleaned up after test."""
    d = tempfile.mkdtemp()
    yield Path(d)
    shutil.rmtree(d, ignore_errors=True)


@pytest.fixture
def output_dirs(temp_dir):
    """base/frames/videos/logs under the temp directory."""
    return setup_output_directories(temp_dir / "out")
