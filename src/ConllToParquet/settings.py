"""
Pydantic v2 settings for the CoNLL → Parquet conversion.

Settings layer CLI overrides over ``CONLL2PQ_``-prefixed environment variables
over the defaults declared here. ``cfg_hash`` fingerprints the effective
configuration so every output file can record what produced it.
"""

from __future__ import annotations

import hashlib
import json
from enum import Enum

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

__all__ = [
    "LogFormat",
    "LogLevel",
    "Settings",
    "TITLE_PREFIX_LENGTH",
]

# Length of "http://en.wikipedia.org/wiki/", the namespace every title URL in
# the annotated corpus starts with. A different upstream prefix silently
# corrupts titles, so keep this in sync with the corpus release.
TITLE_PREFIX_LENGTH = 29

_CODECS = {"zstd", "snappy", "gzip", "brotli", "lz4", "none"}
# Inclusive level bounds for codecs that take a level; others ignore it.
_LEVEL_RANGES = {"zstd": (1, 22), "gzip": (1, 9), "brotli": (1, 11)}


class LogLevel(str, Enum):
    """Supported logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


class LogFormat(str, Enum):
    """Supported log output formats."""

    CONSOLE = "console"
    JSON = "json"


class Settings(BaseSettings):
    """Effective configuration for one conversion run."""

    model_config = SettingsConfigDict(
        env_prefix="CONLL2PQ_",
        case_sensitive=False,
        extra="ignore",
    )

    title_prefix_length: int = Field(
        TITLE_PREFIX_LENGTH,
        description="Characters stripped from the title URL field before normalisation",
        ge=0,
    )
    compression: str = Field("zstd", description="Parquet compression codec")
    compression_level: int = Field(5, description="Codec compression level", ge=1, le=22)
    row_group_size: int = Field(65536, description="Maximum rows per Parquet row group", ge=1)
    log_level: LogLevel = Field(LogLevel.INFO, description="Root logging level")
    log_format: LogFormat = Field(
        LogFormat.CONSOLE, description="Pretty console or structured JSON"
    )

    @field_validator("compression", mode="before")
    @classmethod
    def normalize_compression(cls, v: object) -> object:
        """Lower-case the codec name and reject codecs Parquet does not support."""
        if isinstance(v, str):
            v = v.strip().lower()
            if v not in _CODECS:
                raise ValueError(f"Unsupported compression codec {v!r}")
        return v

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: object) -> object:
        if isinstance(v, str):
            return v.strip().upper()
        return v

    @model_validator(mode="after")
    def validate_compression_level(self) -> Settings:
        """Ensure the level is within the range the chosen codec accepts."""
        bounds = _LEVEL_RANGES.get(self.compression)
        if bounds is not None and not bounds[0] <= self.compression_level <= bounds[1]:
            low, high = bounds
            raise ValueError(
                f"compression_level {self.compression_level} is outside {low}-{high} "
                f"for {self.compression}"
            )
        return self

    @property
    def parquet_compression(self) -> str | None:
        """Codec name as accepted by ``pyarrow.parquet``."""
        return None if self.compression == "none" else self.compression

    def cfg_hash(self) -> str:
        """Return a stable SHA-256 digest of the settings that shape the output."""

        payload = self.model_dump(
            mode="json",
            include={"title_prefix_length", "compression", "compression_level", "row_group_size"},
        )
        blob = json.dumps(payload, sort_keys=True, separators=(",", ":"))
        return hashlib.sha256(blob.encode("utf-8")).hexdigest()
