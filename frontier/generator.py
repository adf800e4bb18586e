"""
Candidate generation for the scan frontier.
Every base label is recombined with every TLD; the flat result is shuffled before probing
so that variants of one brand are not hit back to back.
"""

import random
from typing import Iterable, List, Optional, Sequence
from frontier.models import BaseDomain, Candidate


def generate_candidates(hostname: str, tlds: Sequence[str]) -> List[Candidate]:
    """Cartesian product {hostname}.{tld}. Empty TLD corpus -> no candidates."""
    return [Candidate(url=f"{hostname}.{tld}", parent_hostname=hostname) for tld in tlds]


def expand_all(base_domains: Iterable[BaseDomain], tlds: Sequence[str]) -> List[Candidate]:
    candidates = []
    for base in base_domains:
        candidates.extend(generate_candidates(base.hostname, tlds))
    return candidates


def shuffle_candidates(candidates: Iterable[Candidate], rng: Optional[random.Random] = None) -> List[Candidate]:
    """Returns a shuffled copy; the input is left untouched."""
    shuffled = list(candidates)
    (rng or random).shuffle(shuffled)
    return shuffled
