from __future__ import annotations

import json
import threading
from pathlib import Path

from selfhealing.core.metadata import HealAttempt


class HealingAuditLogger:
    """Appends every heal attempt to a JSONL file."""

    def __init__(self, root: str | Path = "artifacts") -> None:
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)
        self.heal_attempts_path = self.root / "heal_attempts.jsonl"
        self._lock = threading.Lock()

    def write(self, attempt: HealAttempt) -> None:
        payload = {
            "failed_selector": attempt.failed_selector,
            "page_url": attempt.page_url,
            "failure_type": attempt.failure_type,
            "outcome": attempt.outcome.value,
            "healed": attempt.outcome.healed,
            "healed_selector": attempt.healed_selector,
            "confidence": attempt.confidence,
            "details": attempt.details,
        }
        with self._lock, self.heal_attempts_path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(payload) + "\n")

    def read_attempts(self) -> list[dict]:
        if not self.heal_attempts_path.exists():
            return []
        with self.heal_attempts_path.open("r", encoding="utf-8") as handle:
            return [json.loads(line) for line in handle if line.strip()]
