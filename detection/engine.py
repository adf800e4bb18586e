import difflib
from collections import Counter
from typing import Callable, Dict, Iterable, Optional, Tuple

from detection.models import Verdict, DetectionStatus


def _bigrams(text: str) -> Counter:
    return Counter(text[i:i + 2] for i in range(len(text) - 1))


def dice_coefficient(first: str, second: str) -> float:
    """
    Sorensen-Dice over character bigrams, whitespace ignored.
    Identical strings -> 1.0; otherwise either side shorter than two characters -> 0.0.
    """
    first = "".join((first or "").split())
    second = "".join((second or "").split())

    if first == second:
        return 1.0
    if len(first) < 2 or len(second) < 2:
        return 0.0

    a, b = _bigrams(first), _bigrams(second)
    overlap = sum((a & b).values())
    return (2.0 * overlap) / (len(first) + len(second) - 2)


# SequenceMatcher is quadratic; whole pages are compared by their leading slice only
SEQUENCE_MAX_CHARS = 2000


def sequence_ratio(first: str, second: str) -> float:
    """difflib ratio over the first SEQUENCE_MAX_CHARS characters, made symmetric by averaging both argument orders."""
    first = (first or "")[:SEQUENCE_MAX_CHARS]
    second = (second or "")[:SEQUENCE_MAX_CHARS]
    if first == second:
        return 1.0
    forward = difflib.SequenceMatcher(None, first, second, autojunk=False).ratio()
    backward = difflib.SequenceMatcher(None, second, first, autojunk=False).ratio()
    return (forward + backward) / 2.0


METRICS: Dict[str, Callable[[str, str], float]] = {
    "dice": dice_coefficient,
    "sequence": sequence_ratio,
}


class PhishingDetector:
    """
    Decides whether a probed candidate is "the same page" as its trusted base.
    Pure and deterministic: no I/O, list membership is exact full-hostname match.
    """

    def __init__(self, threshold: float, blacklist: Iterable[str] = (), whitelist: Iterable[str] = (), metric: str = "dice"):
        if not 0.0 <= threshold <= 1.0:
            raise ValueError(f"threshold must be within [0, 1], got {threshold}")
        if metric not in METRICS:
            raise ValueError(f"unknown similarity metric: {metric}")
        self.threshold = threshold
        self.blacklist = frozenset(blacklist)
        self.whitelist = frozenset(whitelist)
        self.metric = metric
        self._similarity = METRICS[metric]

    def is_listed(self, candidate_url: str) -> bool:
        return candidate_url in self.blacklist or candidate_url in self.whitelist

    def similarity(self, probed_content: str, base_content: Optional[str]) -> float:
        return self._similarity(probed_content, base_content or "")

    def evaluate(self, candidate_url: str, probed_content: Optional[str], base_content: Optional[str]) -> Tuple[DetectionStatus, Optional[float]]:
        """Terminal state for one candidate plus the score when one was computed."""
        if not probed_content:
            return DetectionStatus.SUPPRESSED_ABSENT, None
        if self.is_listed(candidate_url):
            return DetectionStatus.SUPPRESSED_LISTED, None

        score = self.similarity(probed_content, base_content)
        if score > self.threshold:
            return DetectionStatus.REPORTED, score
        return DetectionStatus.SUPPRESSED_BELOW_THRESHOLD, score

    def classify(self, candidate_url: str, probed_content: Optional[str], base_content: Optional[str], parent_hostname: str = "") -> Optional[Verdict]:
        status, score = self.evaluate(candidate_url, probed_content, base_content)
        if not status.is_reported:
            return None
        return Verdict(candidate_url=candidate_url, similarity_score=score, parent_hostname=parent_hostname)
