"""Registry settings loading from TOML files and the environment."""

from pathlib import Path

import pytest

from srcreg_core import Registry, RegistrySettings, ReservedNameError, default_config_path


def test_defaults() -> None:
    settings = RegistrySettings()

    assert settings.self_name == "Src"
    assert settings.dedupe_dependencies is True
    assert settings.max_layer_depth == 32


def test_default_config_path_is_toml() -> None:
    assert default_config_path().name == "config.toml"


def test_load_missing_file_uses_defaults(tmp_path: Path) -> None:
    settings = RegistrySettings.load(tmp_path / "missing.toml", env={})

    assert settings == RegistrySettings()


def test_load_registry_table(tmp_path: Path) -> None:
    config_file = tmp_path / "config.toml"
    config_file.write_text(
        '[registry]\nself_name = "Container"\ndedupe_dependencies = false\nunknown = 1\n'
    )

    settings = RegistrySettings.load(config_file, env={})

    assert settings.self_name == "Container"
    assert settings.dedupe_dependencies is False


def test_load_top_level_keys(tmp_path: Path) -> None:
    config_file = tmp_path / "config.toml"
    config_file.write_text("max_layer_depth = 4\n")

    assert RegistrySettings.load(config_file, env={}).max_layer_depth == 4


def test_unreadable_file_falls_back(tmp_path: Path) -> None:
    config_file = tmp_path / "config.toml"
    config_file.write_text("not = [valid toml")

    assert RegistrySettings.load(config_file, env={}) == RegistrySettings()


def test_environment_overrides_file(tmp_path: Path) -> None:
    config_file = tmp_path / "config.toml"
    config_file.write_text('self_name = "FromFile"\n')

    settings = RegistrySettings.load(
        config_file,
        env={
            "SRCREG_SELF_NAME": "FromEnv",
            "SRCREG_DEDUPE_DEPENDENCIES": "off",
            "SRCREG_MAX_LAYER_DEPTH": "8",
        },
    )

    assert settings.self_name == "FromEnv"
    assert settings.dedupe_dependencies is False
    assert settings.max_layer_depth == 8


@pytest.mark.parametrize(
    "overrides",
    [
        {"dedupe_dependencies": "maybe"},
        {"max_layer_depth": "many"},
        {"max_layer_depth": 0},
        {"self_name": ""},
        {"self_name": "service::Src"},
    ],
)
def test_invalid_values_raise(overrides: dict) -> None:
    with pytest.raises(ValueError):
        RegistrySettings().updated(**overrides)


def test_custom_self_name() -> None:
    registry = Registry(RegistrySettings(self_name="Container"))

    assert registry.service("Container") is registry
    with pytest.raises(ReservedNameError):
        registry.service("Container", lambda _: None)
    assert registry.service("Src", lambda _: "plain").service("Src") == "plain"
