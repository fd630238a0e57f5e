from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class HealOutcome(str, Enum):
    """Terminal state of one locate-with-healing sequence."""

    HEAL_UNAVAILABLE = "heal_unavailable"
    HEAL_NO_SUGGESTION = "heal_no_suggestion"
    RETRY_SUCCESS = "retry_success"
    RETRY_NOT_FOUND = "retry_not_found"

    @property
    def healed(self) -> bool:
        return self is HealOutcome.RETRY_SUCCESS


class RegistrationStatus(str, Enum):
    REGISTERED = "registered"
    DUPLICATE = "duplicate"
    FAILED = "failed"


@dataclass(slots=True)
class RegistrationOutcome:
    selector_key: str
    status: RegistrationStatus
    error: Exception | None = None


@dataclass(slots=True)
class HealAttempt:
    failed_selector: str
    page_url: str
    outcome: HealOutcome
    healed_selector: str = ""
    confidence: float = 0.0
    details: str = ""
    failure_type: str = ""
