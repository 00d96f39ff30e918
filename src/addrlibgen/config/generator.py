"""Settings for a bin-generation run."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Final

from addrlibgen.domain.propagation import InheritancePolicy

from .env import env_float, env_int, require_env_vars
from .errors import ConfigurationError

WORKERS_ENV: Final[str] = "ADDRLIBGEN_WORKERS"
MODIFIED_MIN_CONFIDENCE_ENV: Final[str] = "ADDRLIBGEN_MODIFIED_MIN_CONFIDENCE"
ROOT_DIR_ENV: Final[str] = "ADDRLIBGEN_ROOT_DIR"

DEFAULT_WORKERS: Final[int] = 4
DEFAULT_MODIFIED_MIN_CONFIDENCE: Final[float] = 0.0


@dataclass(frozen=True, slots=True)
class GeneratorConfig:
    """Worker pool size and inheritance policy knobs."""

    workers: int = DEFAULT_WORKERS
    modified_min_confidence: float = DEFAULT_MODIFIED_MIN_CONFIDENCE

    def __post_init__(self) -> None:
        if self.workers < 1:
            raise ConfigurationError(f"workers must be at least 1, got {self.workers}")
        if not 0.0 <= self.modified_min_confidence <= 1.0:
            raise ConfigurationError(
                "modified_min_confidence must be within [0, 1], got "
                f"{self.modified_min_confidence}"
            )

    def policy(self) -> InheritancePolicy:
        return InheritancePolicy(modified_min_confidence=self.modified_min_confidence)


def get_generator_config(
    *,
    workers: int | None = None,
    modified_min_confidence: float | None = None,
) -> GeneratorConfig:
    """Build the run configuration; explicit arguments win over the environment."""

    return GeneratorConfig(
        workers=workers if workers is not None else env_int(WORKERS_ENV, DEFAULT_WORKERS),
        modified_min_confidence=(
            modified_min_confidence
            if modified_min_confidence is not None
            else env_float(MODIFIED_MIN_CONFIDENCE_ENV, DEFAULT_MODIFIED_MIN_CONFIDENCE)
        ),
    )


def get_root_dir(explicit: str | None = None) -> Path:
    """Return the input folder, falling back to ``ADDRLIBGEN_ROOT_DIR``."""

    value = explicit if explicit else require_env_vars((ROOT_DIR_ENV,))[ROOT_DIR_ENV]
    root = Path(value).expanduser()
    if not root.is_dir():
        raise ConfigurationError(f"Root directory does not exist or is not a directory: {root}")
    return root
