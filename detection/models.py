import math
from enum import Enum
from dataclasses import dataclass, field
from datetime import datetime, timezone

class DetectionStatus(Enum):
    REPORTED = "REPORTED"
    SUPPRESSED_ABSENT = "SUPPRESSED_ABSENT"
    SUPPRESSED_LISTED = "SUPPRESSED_LISTED"
    SUPPRESSED_BELOW_THRESHOLD = "SUPPRESSED_BELOW_THRESHOLD"

    @property
    def is_reported(self) -> bool:
        return self is DetectionStatus.REPORTED

@dataclass(frozen=True)
class Verdict:
    """
    Immutable suspicion that a candidate impersonates its base domain.
    Only built when the score is strictly above the configured threshold.
    """
    candidate_url: str
    similarity_score: float
    parent_hostname: str = ""
    detected_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc), compare=False)

    @property
    def percentage(self) -> float:
        # Half-up, one decimal: 0.8125 -> 81.3
        return math.floor(self.similarity_score * 1000 + 0.5) / 10

    def describe(self) -> str:
        return f"Possible phishing URL found! {self.candidate_url} ({self.percentage}%)"
