from dataclasses import dataclass
from typing import Optional

@dataclass(frozen=True)
class BaseDomain:
    """
    A whitelisted site and the one-time snapshot of its page.
    Invariant: taken before any candidate is probed, never mutated afterwards.
    content is None when the trusted site itself could not be fetched.
    """
    hostname: str
    content: Optional[str] = None

@dataclass(frozen=True)
class Candidate:
    """
    Synthesized look-alike hostname ("label.tld").
    parent_hostname points back (by name) to the BaseDomain it was derived from.
    """
    url: str
    parent_hostname: str

@dataclass(frozen=True)
class ProbeResult:
    """
    Transient pairing of a candidate with what the probe returned.
    Never persisted; handed to the classifier and discarded.
    """
    candidate: Candidate
    content: Optional[str] = None
