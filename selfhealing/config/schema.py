from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field, field_validator


class BrowserConfig(BaseModel):
    name: str = "chrome"
    headless: bool = False
    page_load_timeout_seconds: int = Field(default=30, gt=0)

    @field_validator("name")
    @classmethod
    def validate_browser(cls, value: str) -> str:
        normalized = value.lower()
        if normalized not in {"chrome", "firefox"}:
            raise ValueError(f"Unsupported browser: {value}")
        return normalized


class HealingConfig(BaseModel):
    service_url: str = "http://localhost:8080"
    request_timeout_seconds: float = Field(default=30, gt=0)
    healing_enabled: bool = True
    async_registration: bool = True
    registration_workers: int = Field(default=2, ge=1)
    audit_root: Path | None = None
    browser: BrowserConfig = Field(default_factory=BrowserConfig)

    @field_validator("service_url")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        stripped = value.strip().rstrip("/")
        if not stripped.startswith(("http://", "https://")):
            raise ValueError("service_url must be an http(s) URL")
        return stripped
