"""Configuration loading and management for Test Insight.

Configuration sources are merged in priority order:
    1. Defaults (defined in AnalyzerConfig)
    2. Global config (~/.test-insight.toml)
    3. Project config (./test-insight.toml)
    4. Explicit config file
    5. Environment variables (TEST_INSIGHT_* prefix)
    6. CLI overrides (passed as kwargs)

Example:
    >>> config = load_config(days=30, workers=4)
    >>> config.days
    30

    A project config file maps system IDs and author e-mails to display names::

        days = 30
        pathspecs = ["*.kt"]

        [system_names]
        CI01337 = "Payments"

        [author_names]
        "ivanov@company.com" = "Ivan Ivanov"
        "ivan.ivanov@company.com" = "Ivan Ivanov"
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal, Optional, get_type_hints

from .exceptions import ConfigurationError, InvalidConfigError

Verbosity = Literal["quiet", "normal", "verbose"]

ENV_PREFIX = "TEST_INSIGHT_"
GLOBAL_CONFIG_NAME = ".test-insight.toml"
PROJECT_CONFIG_NAME = "test-insight.toml"

DEFAULT_TEST_MARKERS = ("Test", "ParameterizedTest", "RepeatedTest")


@dataclass(frozen=True)
class AnalyzerConfig:
    """Configuration for a test-mining run.

    Attributes:
        Repository:
            repo_path: Path to the analyzed git repository
            pathspecs: Git pathspecs selecting test source files
            diff_context_lines: Context lines requested per diff (whole file by default,
                so class-level system annotations are always visible)
            git_timeout_seconds: Timeout for a single git subprocess

        Period:
            days: Console report window in days (None = all time)

        Performance tuning:
            workers: Maximum concurrent git processes (None = CPU count)
            batch_multiplier: Batch size as a multiple of workers

        Recognition:
            test_markers: Annotation names marking a test function
            system_marker: Annotation name carrying the owning system ID

        Display:
            system_names: System ID -> human-readable name
            author_names: Author e-mail -> display name; e-mails sharing a
                display name are merged in reports
            verbosity: Logging verbosity level
    """

    # Repository
    repo_path: str = "."
    pathspecs: list[str] = field(default_factory=lambda: ["*.kt"])
    diff_context_lines: int = 999999
    git_timeout_seconds: int = 120

    # Period
    days: Optional[int] = 7

    # Performance tuning
    workers: Optional[int] = None  # None = auto-detect from CPU cores
    batch_multiplier: int = 4

    # Recognition
    test_markers: list[str] = field(default_factory=lambda: list(DEFAULT_TEST_MARKERS))
    system_marker: str = "System"

    # Display
    system_names: dict[str, str] = field(default_factory=dict)
    author_names: dict[str, str] = field(default_factory=dict)
    verbosity: Verbosity = "normal"

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if not self.pathspecs:
            raise InvalidConfigError("pathspecs", self.pathspecs, "at least one pathspec required")
        if self.diff_context_lines < 0:
            raise InvalidConfigError(
                "diff_context_lines", self.diff_context_lines, "must be non-negative"
            )
        if self.git_timeout_seconds < 1:
            raise InvalidConfigError(
                "git_timeout_seconds", self.git_timeout_seconds, "must be at least 1"
            )

        if self.days is not None and self.days < 0:
            raise InvalidConfigError("days", self.days, "must be non-negative")

        if self.workers is not None and self.workers < 1:
            raise InvalidConfigError("workers", self.workers, "must be at least 1")
        if self.batch_multiplier < 1:
            raise InvalidConfigError("batch_multiplier", self.batch_multiplier, "must be at least 1")

        if not self.test_markers:
            raise InvalidConfigError("test_markers", self.test_markers, "at least one marker required")
        for marker in (*self.test_markers, self.system_marker):
            if not marker or marker.startswith("@"):
                raise InvalidConfigError(
                    "marker", marker, "use the bare annotation name, without '@'"
                )

        if self.verbosity not in ("quiet", "normal", "verbose"):
            raise InvalidConfigError("verbosity", self.verbosity, "expected quiet/normal/verbose")

    @property
    def effective_workers(self) -> int:
        """Worker count with auto-detection applied."""
        return self.workers or os.cpu_count() or 1

    @property
    def period_label(self) -> str:
        return f"Last {self.days} days" if self.days is not None else "All time"

    def display_author(self, author: str) -> str:
        """Map an author e-mail to its configured display name."""
        return self.author_names.get(author, author)

    def display_system(self, system_id: Optional[str]) -> str:
        if system_id is None:
            return "(no system)"
        name = self.system_names.get(system_id)
        return f"{name} ({system_id})" if name else system_id


def load_config(config_file: Optional[Path] = None, **overrides) -> AnalyzerConfig:
    """Load configuration with auto-discovery and merging.

    Args:
        config_file: Optional explicit config file path
        **overrides: Direct overrides (typically from CLI flags). ``None``
            values are ignored so unset CLI options never mask file values.

    Returns:
        Validated AnalyzerConfig instance

    Raises:
        ConfigurationError: If a config file is invalid or missing
        InvalidConfigError: If a merged value fails validation
    """
    merged: dict = {}

    global_config = Path.home() / GLOBAL_CONFIG_NAME
    if global_config.exists():
        try:
            merged.update(_load_toml_file(global_config))
        except ConfigurationError:
            raise
        except Exception as e:
            raise ConfigurationError(f"Invalid global config '{global_config}': {e}")

    project_config = Path.cwd() / PROJECT_CONFIG_NAME
    if project_config.exists():
        try:
            merged.update(_load_toml_file(project_config))
        except ConfigurationError:
            raise
        except Exception as e:
            raise ConfigurationError(f"Invalid project config '{project_config}': {e}")

    if config_file is not None:
        if not config_file.exists():
            raise ConfigurationError(f"Config file not found: {config_file}")
        try:
            merged.update(_load_toml_file(config_file))
        except ConfigurationError:
            raise
        except Exception as e:
            raise ConfigurationError(f"Invalid config file '{config_file}': {e}")

    merged.update(_load_env_vars())

    # Convert verbosity boolean flags to string
    if "verbose" in overrides:
        if overrides["verbose"]:
            overrides["verbosity"] = "verbose"
        del overrides["verbose"]
    if "quiet" in overrides:
        if overrides["quiet"]:
            overrides["verbosity"] = "quiet"
        del overrides["quiet"]

    # "all_time" clears the window explicitly; a plain None means "not given"
    if overrides.pop("all_time", False):
        merged["days"] = None

    merged.update({k: v for k, v in overrides.items() if v is not None})

    for table in ("system_names", "author_names"):
        value = merged.get(table)
        if value is not None and not isinstance(value, dict):
            raise InvalidConfigError(table, value, "expected a table of string -> string")
        if value is not None:
            merged[table] = {str(k): str(v) for k, v in value.items()}

    try:
        return AnalyzerConfig(**merged)
    except TypeError as e:
        # Unknown field in config
        raise ConfigurationError(f"Invalid configuration: {e}")


def _load_env_vars() -> dict[str, Any]:
    """Load configuration from TEST_INSIGHT_* environment variables.

    Only scalar fields are supported (e.g. TEST_INSIGHT_DAYS=30,
    TEST_INSIGHT_WORKERS=8, TEST_INSIGHT_REPO_PATH=/repo). An empty
    TEST_INSIGHT_DAYS means "all time".
    """
    type_hints = get_type_hints(AnalyzerConfig)

    result: dict[str, Any] = {}

    for field_name in AnalyzerConfig.__dataclass_fields__:
        env_key = f"{ENV_PREFIX}{field_name.upper()}"
        env_value = os.environ.get(env_key)

        if env_value is None:
            continue

        type_hint = type_hints.get(field_name)
        if type_hint is None:
            continue

        try:
            parsed = _parse_env_value(env_value, type_hint)
        except ValueError as e:
            raise InvalidConfigError(env_key, env_value, str(e))

        if parsed is _UNSUPPORTED:
            continue
        result[field_name] = parsed

    return result


_UNSUPPORTED = object()


def _parse_env_value(value: str, type_hint: Any) -> Any:
    """Parse environment variable string to the correct type.

    Raises:
        ValueError: If value can't be parsed to expected type
    """
    origin = getattr(type_hint, "__origin__", None)

    # Optional[X] is Union[X, None]: an empty string means None
    args = getattr(type_hint, "__args__", ())
    if type(None) in args:
        if value.strip() == "":
            return None
        non_none_types = [t for t in args if t is not type(None)]
        if non_none_types:
            type_hint = non_none_types[0]
            origin = getattr(type_hint, "__origin__", None)

    # Lists and tables are too complex for env vars
    if origin in (list, dict) or type_hint in (list, dict):
        return _UNSUPPORTED

    if type_hint is bool:
        lower = value.lower()
        if lower in ("true", "1", "yes", "on"):
            return True
        if lower in ("false", "0", "no", "off"):
            return False
        raise ValueError(f"expected true/false, got '{value}'")

    if type_hint is int:
        return int(value)

    if type_hint is float:
        return float(value)

    # String (including Literal types like Verbosity)
    if type_hint is str or origin is Literal:
        return value

    return _UNSUPPORTED


def _load_toml_file(path: Path) -> dict:
    """Load TOML file and return parsed dict.

    Raises:
        ConfigurationError: If tomllib/tomli not available
        Exception: If TOML parsing fails
    """
    try:
        # Python 3.11+ has tomllib in stdlib
        import tomllib
    except ModuleNotFoundError:
        try:
            # Fallback to tomli for Python 3.9-3.10
            import tomli as tomllib  # type: ignore
        except ImportError:
            raise ConfigurationError(
                "TOML support requires Python 3.11+ or 'tomli' package. "
                "Install with: pip install tomli"
            )

    with open(path, "rb") as f:
        return tomllib.load(f)
