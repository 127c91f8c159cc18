"""Configuration file support for vcf-table."""

import logging
import tomllib
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from .hooks import DEFAULT_REPORT_INTERVAL
from .table import BufferStrategy

logger = logging.getLogger(__name__)

VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}

PASS = "PASS"
DEFAULT_CHUNK_SIZE = 10_000


class MaskPolicy(Enum):
    """Which rows a masked write drops, judged by the FILTER column."""

    DROP_NON_PASS = "drop_non_pass"
    DROP_PASS = "drop_pass"

    @classmethod
    def from_string(cls, value: str) -> "MaskPolicy":
        value_lower = value.lower()
        for policy in cls:
            if policy.value == value_lower:
                return policy
        raise ValueError(
            f"Unknown mask policy: '{value}'. Valid values: {', '.join(p.value for p in cls)}"
        )

    def skips(self, filter_value: str | None) -> bool:
        passed = filter_value == PASS
        if self is MaskPolicy.DROP_NON_PASS:
            return not passed
        return passed


class ConfigValidationError(Exception):
    """Raised when configuration validation fails."""

    pass


@dataclass
class ReaderConfig:
    """Configuration for reading VCF files."""

    strategy: BufferStrategy = BufferStrategy.PRESIZED
    strict: bool = True
    progress_interval: int = DEFAULT_REPORT_INTERVAL


@dataclass
class WriterConfig:
    """Configuration for writing VCF files."""

    mask: bool = False
    policy: MaskPolicy = MaskPolicy.DROP_NON_PASS
    chunk_size: int = DEFAULT_CHUNK_SIZE
    compress: bool | None = None


@dataclass
class VCFTableConfig:
    """Top-level configuration."""

    reader: ReaderConfig = field(default_factory=ReaderConfig)
    writer: WriterConfig = field(default_factory=WriterConfig)
    log_level: str = "INFO"


READER_FIELDS = {"strategy", "strict", "progress_interval"}
WRITER_FIELDS = {"mask", "policy", "chunk_size", "compress"}


def _require_type(section: str, key: str, value: Any, expected: type) -> None:
    # bool is a subclass of int; reject it where an integer is expected
    if expected is int and isinstance(value, bool):
        raise ConfigValidationError(f"{section}.{key} must be an integer, got bool")
    if not isinstance(value, expected):
        raise ConfigValidationError(
            f"{section}.{key} must be {expected.__name__}, got {type(value).__name__}"
        )


def validate_config(config_dict: dict[str, Any]) -> None:
    """Validate configuration values.

    Raises:
        ConfigValidationError: If any configuration value is invalid.
    """
    reader = config_dict.get("reader", {})
    writer = config_dict.get("writer", {})

    if not isinstance(reader, dict) or not isinstance(writer, dict):
        raise ConfigValidationError("reader and writer must be tables")

    if "strategy" in reader:
        _require_type("reader", "strategy", reader["strategy"], str)
        try:
            BufferStrategy.from_string(reader["strategy"])
        except ValueError as e:
            raise ConfigValidationError(str(e)) from None

    if "strict" in reader:
        _require_type("reader", "strict", reader["strict"], bool)

    if "progress_interval" in reader:
        _require_type("reader", "progress_interval", reader["progress_interval"], int)
        if reader["progress_interval"] <= 0:
            raise ConfigValidationError(
                f"reader.progress_interval must be positive, got {reader['progress_interval']}"
            )

    if "mask" in writer:
        _require_type("writer", "mask", writer["mask"], bool)

    if "policy" in writer:
        _require_type("writer", "policy", writer["policy"], str)
        try:
            MaskPolicy.from_string(writer["policy"])
        except ValueError as e:
            raise ConfigValidationError(str(e)) from None

    if "chunk_size" in writer:
        _require_type("writer", "chunk_size", writer["chunk_size"], int)
        if writer["chunk_size"] <= 0:
            raise ConfigValidationError(
                f"writer.chunk_size must be positive, got {writer['chunk_size']}"
            )

    if "compress" in writer:
        _require_type("writer", "compress", writer["compress"], bool)

    if "log_level" in config_dict:
        log_level = config_dict["log_level"]
        if not isinstance(log_level, str):
            raise ConfigValidationError(
                f"log_level must be a string, got {type(log_level).__name__}"
            )
        if log_level.upper() not in VALID_LOG_LEVELS:
            raise ConfigValidationError(
                f"log_level must be one of {VALID_LOG_LEVELS}, got '{log_level}'"
            )


def _warn_unknown(section: str, values: dict[str, Any], valid: set[str]) -> None:
    unknown = sorted(set(values) - valid)
    if unknown:
        logger.warning("Ignoring unknown %s settings: %s", section, ", ".join(unknown))


def load_config(config_path: Path, overrides: dict[str, Any] | None = None) -> VCFTableConfig:
    """Load configuration from a TOML file.

    Settings live under ``[vcf_table]``, ``[vcf_table.reader]`` and
    ``[vcf_table.writer]``.

    Args:
        config_path: Path to the TOML configuration file.
        overrides: Optional dict merged over the loaded ``vcf_table`` table
            (nested ``reader``/``writer`` dicts are merged key by key).

    Returns:
        VCFTableConfig instance with loaded values.

    Raises:
        FileNotFoundError: If the config file doesn't exist.
        ConfigValidationError: If any configuration value is invalid.
    """
    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path, "rb") as f:
        toml_data = tomllib.load(f)

    config_dict = toml_data.get("vcf_table", {})

    if overrides:
        for key, value in overrides.items():
            if key in ("reader", "writer") and isinstance(value, dict):
                config_dict.setdefault(key, {}).update(value)
            else:
                config_dict[key] = value

    validate_config(config_dict)

    reader = config_dict.get("reader", {})
    writer = config_dict.get("writer", {})
    _warn_unknown("reader", reader, READER_FIELDS)
    _warn_unknown("writer", writer, WRITER_FIELDS)

    reader_config = ReaderConfig(
        strategy=BufferStrategy.from_string(reader.get("strategy", BufferStrategy.PRESIZED.value)),
        strict=reader.get("strict", True),
        progress_interval=reader.get("progress_interval", DEFAULT_REPORT_INTERVAL),
    )
    writer_config = WriterConfig(
        mask=writer.get("mask", False),
        policy=MaskPolicy.from_string(writer.get("policy", MaskPolicy.DROP_NON_PASS.value)),
        chunk_size=writer.get("chunk_size", DEFAULT_CHUNK_SIZE),
        compress=writer.get("compress"),
    )

    return VCFTableConfig(
        reader=reader_config,
        writer=writer_config,
        log_level=config_dict.get("log_level", "INFO").upper(),
    )
