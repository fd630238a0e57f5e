from __future__ import annotations

from uuid import UUID, uuid4

from pydantic import BaseModel, Field, field_validator


class ElementFingerprint(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    attributes: dict[str, str] = Field(default_factory=dict)
    selectors: list[str] = Field(default_factory=list)

    @field_validator("selectors")
    @classmethod
    def drop_duplicate_selectors(cls, value: list[str]) -> list[str]:
        unique: list[str] = []
        for selector in value:
            if selector not in unique:
                unique.append(selector)
        return unique


class RegisterRequest(BaseModel):
    fingerprint: ElementFingerprint


class HealRequest(BaseModel):
    failed_selector: str
    context: dict[str, str] = Field(default_factory=dict)


class HealResponse(BaseModel):
    healed_selector: str | None = None
    confidence: float = 0.0
    details: str | None = None

    @field_validator("confidence", mode="before")
    @classmethod
    def default_missing_confidence(cls, value):
        return 0.0 if value is None else value

    @property
    def has_suggestion(self) -> bool:
        return bool(self.healed_selector)
