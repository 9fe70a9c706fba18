"""Configuration management with Pydantic models."""

import tomllib
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field


class Strictness(str, Enum):
    """How chapter failures affect the run."""

    BEST_EFFORT = "best-effort"
    FAIL_FAST = "fail-fast"


class FetcherConfig(BaseModel):
    """Configuration for page fetching."""

    timeout_ms: int = Field(default=30000, ge=1000, le=180000)
    user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0 Safari/537.36"
    )
    max_retries: int = Field(default=3, ge=0, le=10)
    retry_base_delay: float = Field(default=0.5, ge=0.0, le=30.0)


class DiscoveryConfig(BaseModel):
    """Configuration for table-of-contents discovery."""

    max_toc_pages: int = Field(default=50, ge=1, le=1000)
    max_chapter_pages: int = Field(default=20, ge=1, le=200)


class RateLimitConfig(BaseModel):
    """Configuration for rate limiting."""

    delay_seconds: float = Field(default=0.1, ge=0.0, le=60.0)
    max_concurrent: int | None = Field(default=None, ge=1, le=32)  # None = site default


class OutputConfig(BaseModel):
    """Configuration for output."""

    path: Path | None = None  # None = "<author>_<title>.txt" in the current dir
    missing_markers: bool = True
    cache_dir: Path | None = None


class AppConfig(BaseModel):
    """Main application configuration."""

    entry_url: str
    strictness: Strictness = Strictness.BEST_EFFORT
    fetcher: FetcherConfig = Field(default_factory=FetcherConfig)
    discovery: DiscoveryConfig = Field(default_factory=DiscoveryConfig)
    rate_limit: RateLimitConfig = Field(default_factory=RateLimitConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    verbose: bool = False

    @classmethod
    def from_toml(cls, path: Path, **overrides) -> "AppConfig":
        """Load config from a TOML file, letting keyword overrides win."""
        with open(path, "rb") as f:
            data = tomllib.load(f)
        data.update({k: v for k, v in overrides.items() if v is not None})
        return cls.model_validate(data)
