"""Test config resolution and validation with Pydantic."""

import pytest
from pydantic import ValidationError

from volvid.contracts import ConfigurationError
from volvid.schemas import ParamConfig, UserConfig, CLIConfig, InternalConfig
from volvid.schemas.resolve import resolve_config, deep_merge

pytestmark = [pytest.mark.unit]

REQUIRED = {"input": "engine.nrrd", "queries": "val", "measures": "max"}


class TestConfigResolution:
    """Test resolve_config() precedence and merging."""

    def test_defaults_fill_everything_else(self):
        config = resolve_config(ParamConfig(), UserConfig(**REQUIRED), None)

        assert isinstance(config, InternalConfig)
        assert config.camera.angle_start == 0
        assert config.camera.angle_end == 359
        assert config.camera.interval == 1
        assert config.render.resolution == (640, 480)
        assert config.video.fps == 25
        assert config.video.bitrate_factor == 60.0
        assert config.quantize.bits == 8
        assert config.equalize.enabled is False
        assert config.colormap.path is None
        assert config.cache.key_length == 10

    def test_user_overrides_param(self):
        user = UserConfig(**REQUIRED, interval=5, heq=True, threads=8)
        config = resolve_config(ParamConfig(), user, None)

        assert config.camera.interval == 5
        assert config.equalize.enabled is True
        assert config.render.threads == 8

    def test_cli_overrides_user(self):
        user = UserConfig(**REQUIRED, heq=True, workers=2)
        cli = CLIConfig(queries="gmag", heq=False, workers=6)
        config = resolve_config(ParamConfig(), user, cli)

        assert config.queries == ["gmag"]
        assert config.equalize.enabled is False
        assert config.executor.workers == 6
        assert config.input == "engine.nrrd"

    def test_cli_does_not_mutate_user(self):
        user = UserConfig(**REQUIRED)
        resolve_config(ParamConfig(), user, CLIConfig(measures="mean"))
        assert user.measures == ["max"]

    def test_nested_user_section_merges_with_defaults(self):
        user = UserConfig(**REQUIRED, video={"fps": 30})
        config = resolve_config(ParamConfig(), user, None)

        assert config.video.fps == 30
        assert config.video.codec == "mpeg4"

    def test_nested_section_is_validated(self):
        user = UserConfig(**REQUIRED, video={"fps": 0})
        with pytest.raises(ValidationError):
            resolve_config(ParamConfig(), user, None)

    def test_unknown_nested_key_rejected(self):
        user = UserConfig(**REQUIRED, render={"zoom": 2})
        with pytest.raises(ValidationError):
            resolve_config(ParamConfig(), user, None)

    def test_resolved_config_is_frozen(self):
        config = resolve_config(ParamConfig(), UserConfig(**REQUIRED), None)
        with pytest.raises(ValidationError):
            config.input = "other.nrrd"


class TestRequiredRunFields:

    @pytest.mark.parametrize("missing, message", [
        ("input", "input volume"),
        ("queries", "query"),
        ("measures", "measure"),
    ])
    def test_missing_field_is_configuration_error(self, missing, message):
        values = {k: v for k, v in REQUIRED.items() if k != missing}
        with pytest.raises(ConfigurationError, match=message):
            resolve_config(ParamConfig(), UserConfig(**values), None)

    def test_empty_query_list_is_configuration_error(self):
        with pytest.raises(ConfigurationError):
            resolve_config(ParamConfig(), UserConfig(**{**REQUIRED, "queries": " , "}), None)

    def test_cli_can_supply_required_fields(self):
        cli = CLIConfig(input="head.nrrd", queries="val", measures="max")
        config = resolve_config(ParamConfig(), None, cli)
        assert config.input == "head.nrrd"


class TestUserAliases:

    def test_uppercase_keys(self):
        user = UserConfig.model_validate({
            "INPUT": "engine.nrrd",
            "QUERIES": "val, gmag",
            "MEASURES": ["max"],
            "ANGLES": (10, 20),
            "INTERVAL": 2,
            "HEQ": True,
            "COLORMAP": "bbr.txt",
            "KEEP_INTERMEDIATES": True,
            "KEEP_STAGES": "render,quant",
            "RESOLUTION": (320, 240),
            "STEP": "0.005",
        })
        config = resolve_config(ParamConfig(), user, None)

        assert config.queries == ["val", "gmag"]
        assert (config.camera.angle_start, config.camera.angle_end) == (10, 20)
        assert config.camera.interval == 2
        assert config.equalize.enabled is True
        assert config.colormap.path == "bbr.txt"
        assert config.cleanup.keep_intermediates is True
        assert config.cleanup.keep_stages == ["render", "quant"]
        assert config.render.resolution == (320, 240)
        assert config.render.step == 0.005

    def test_unknown_user_keys_ignored(self):
        user = UserConfig.model_validate({**REQUIRED, "LEGACY_OPTION": 1})
        assert resolve_config(ParamConfig(), user, None).queries == ["val"]

    def test_interval_below_one_rejected(self):
        with pytest.raises(ValidationError):
            resolve_config(ParamConfig(), UserConfig(**REQUIRED, interval=0), None)


def test_deep_merge_nested():
    base = {"a": 1, "b": {"c": 2, "d": 3}}
    assert deep_merge(base, {"b": {"d": 4, "e": 5}, "f": 6}) == {"a": 1, "b": {"c": 2, "d": 4, "e": 5}, "f": 6}
    assert base == {"a": 1, "b": {"c": 2, "d": 3}}
