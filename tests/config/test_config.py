from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from addrlibgen.config import (
    DEFAULT_WORKERS,
    MODIFIED_MIN_CONFIDENCE_ENV,
    ROOT_DIR_ENV,
    WORKERS_ENV,
    ConfigurationError,
    GeneratorConfig,
    MissingConfigurationError,
    get_generator_config,
    get_root_dir,
    require_env_vars,
)

if TYPE_CHECKING:
    from pathlib import Path


def test_defaults_without_environment() -> None:
    config = get_generator_config()

    assert config.workers == DEFAULT_WORKERS
    assert config.modified_min_confidence == 0.0
    assert config.policy().modified_min_confidence == 0.0


def test_environment_values_are_used(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv(WORKERS_ENV, "6")
    monkeypatch.setenv(MODIFIED_MIN_CONFIDENCE_ENV, "0.8")

    config = get_generator_config()

    assert config.workers == 6
    assert config.modified_min_confidence == 0.8


def test_explicit_values_win_over_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv(WORKERS_ENV, "6")

    assert get_generator_config(workers=2).workers == 2


def test_blank_environment_values_fall_back_to_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv(WORKERS_ENV, "   ")

    assert get_generator_config().workers == DEFAULT_WORKERS


def test_non_numeric_environment_value_is_a_configuration_error(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv(WORKERS_ENV, "many")

    with pytest.raises(ConfigurationError, match=WORKERS_ENV):
        get_generator_config()


@pytest.mark.parametrize(
    ("workers", "confidence"),
    [(0, 0.0), (-3, 0.0), (1, 1.5), (1, -0.1), (1, float("nan"))],
)
def test_out_of_range_values_are_rejected(workers: int, confidence: float) -> None:
    with pytest.raises(ConfigurationError):
        GeneratorConfig(workers=workers, modified_min_confidence=confidence)


def test_root_dir_from_argument_or_environment(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    assert get_root_dir(str(tmp_path)) == tmp_path

    monkeypatch.setenv(ROOT_DIR_ENV, str(tmp_path))
    assert get_root_dir() == tmp_path


def test_missing_root_dir_is_reported(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv(ROOT_DIR_ENV, raising=False)

    with pytest.raises(MissingConfigurationError, match=ROOT_DIR_ENV):
        get_root_dir()


def test_root_dir_must_be_a_directory(tmp_path: Path) -> None:
    file_path = tmp_path / "inputs.txt"
    file_path.write_text("")

    with pytest.raises(ConfigurationError, match="not a directory"):
        get_root_dir(str(file_path))


def test_require_env_vars_lists_every_missing_name(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("FIRST_VAR", raising=False)
    monkeypatch.setenv("SECOND_VAR", "")

    with pytest.raises(MissingConfigurationError, match="FIRST_VAR, SECOND_VAR"):
        require_env_vars(["SECOND_VAR", "FIRST_VAR"])
