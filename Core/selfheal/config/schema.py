from __future__ import annotations

from pydantic import BaseModel, Field, field_validator


class OracleConfig(BaseModel):
    provider: str = "chat"
    endpoint: str = ""
    model: str = "gpt-4o-mini"
    api_key: str = "EMPTY"
    connect_timeout_seconds: float = 30
    read_timeout_seconds: float = 60
    batch_protocol: str = "lines"

    @field_validator("provider")
    @classmethod
    def validate_provider(cls, value: str) -> str:
        normalized = value.lower()
        if normalized not in {"chat", "structural"}:
            raise ValueError("provider must be 'chat' or 'structural'")
        return normalized

    @field_validator("batch_protocol")
    @classmethod
    def validate_batch_protocol(cls, value: str) -> str:
        normalized = value.lower()
        if normalized not in {"lines", "xpath_scan"}:
            raise ValueError("batch_protocol must be 'lines' or 'xpath_scan'")
        return normalized

    @field_validator("connect_timeout_seconds", "read_timeout_seconds")
    @classmethod
    def validate_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("timeouts must be positive")
        return value


class ResolverConfig(BaseModel):
    wait_timeout_seconds: float = 10
    poll_interval_seconds: float = 0.2
    healing_enabled: bool = True


class ValidationConfig(BaseModel):
    max_scroll_attempts: int = Field(default=5, ge=1)
    scroll_increment_px: int = 400
    scroll_pause_seconds: float = 0.5
    top_reset_pause_seconds: float = 1.0


class SnapshotConfig(BaseModel):
    output_dir: str = "html_snapshots"
    sample_size: int = Field(default=10, ge=0)
    trim_limit: int = Field(default=20000, gt=0)


class ScoringConfig(BaseModel):
    min_score: float = 25.0


class BrowserConfig(BaseModel):
    name: str = "chrome"
    headless: bool = True
    page_load_timeout_seconds: int = 30

    @field_validator("name")
    @classmethod
    def validate_browser(cls, value: str) -> str:
        normalized = value.lower()
        if normalized not in {"chrome", "firefox"}:
            raise ValueError(f"Unsupported browser: {value}")
        return normalized


class HealingConfig(BaseModel):
    oracle: OracleConfig = Field(default_factory=OracleConfig)
    resolver: ResolverConfig = Field(default_factory=ResolverConfig)
    validation: ValidationConfig = Field(default_factory=ValidationConfig)
    snapshot: SnapshotConfig = Field(default_factory=SnapshotConfig)
    scoring: ScoringConfig = Field(default_factory=ScoringConfig)
    browser: BrowserConfig = Field(default_factory=BrowserConfig)
    artifacts_root: str = "artifacts"
