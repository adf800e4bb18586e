"""
Verification Scenarios for candidate generation and ordering
"""

import random
import re
import unittest
from frontier.models import BaseDomain, Candidate
from frontier.generator import generate_candidates, expand_all, shuffle_candidates


class TestCandidateGeneration(unittest.TestCase):
    def test_one_candidate_per_tld(self):
        candidates = generate_candidates("myetherwallet", ["com", "net", "io"])
        self.assertEqual(
            candidates,
            [
                Candidate("myetherwallet.com", "myetherwallet"),
                Candidate("myetherwallet.net", "myetherwallet"),
                Candidate("myetherwallet.io", "myetherwallet"),
            ],
        )

    def test_empty_corpus_yields_nothing(self):
        self.assertEqual(generate_candidates("myetherwallet", []), [])

    def test_n_times_m_candidates_with_valid_parents(self):
        """Scenario: 4 TLDs x 3 base domains."""
        tlds = ["com", "net", "org", "xn--p1ai"]
        bases = [BaseDomain("mycrypto", "a"), BaseDomain("binance", "b"), BaseDomain("kraken", "c")]

        candidates = expand_all(bases, tlds)

        self.assertEqual(len(candidates), len(tlds) * len(bases))
        parents = {b.hostname for b in bases}
        shape = re.compile(r"^[a-z0-9-]+\.[a-z0-9-]+$")
        for c in candidates:
            self.assertIn(c.parent_hostname, parents)
            self.assertRegex(c.url, shape)
            self.assertTrue(c.url.startswith(c.parent_hostname + "."))
        self.assertEqual(len({c.url for c in candidates}), len(candidates))


class TestCandidateShuffle(unittest.TestCase):
    def setUp(self):
        self.candidates = expand_all(
            [BaseDomain("mycrypto", "a"), BaseDomain("binance", "b")],
            ["com", "net", "org", "io", "xyz", "app", "dev", "info"],
        )

    def test_shuffle_keeps_the_same_set(self):
        shuffled = shuffle_candidates(self.candidates, rng=random.Random(7))
        self.assertCountEqual(shuffled, self.candidates)

    def test_shuffle_does_not_mutate_input(self):
        before = list(self.candidates)
        shuffle_candidates(self.candidates, rng=random.Random(7))
        self.assertEqual(self.candidates, before)

    def test_seeded_shuffle_is_reproducible(self):
        a = shuffle_candidates(self.candidates, rng=random.Random(42))
        b = shuffle_candidates(self.candidates, rng=random.Random(42))
        self.assertEqual(a, b)

    def test_shuffle_changes_order(self):
        orders = {tuple(shuffle_candidates(self.candidates, rng=random.Random(seed))) for seed in range(5)}
        self.assertGreater(len(orders), 1)


if __name__ == "__main__":
    unittest.main()
