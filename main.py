import sys
import time
import argparse
import random
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, List, Optional

# Component Imports
from scanner.core import (
    ScanConfig, load_config, setup_logger, add_file_handler, logger,
    ScannerError, ConfigError, HostnameError,
)
from scanner.sources import ListSources
from scanner.processor import HostnameUtility, RateLimiter, PageFetcher
from scanner.engine import CandidateFrontier, ProgressTracker, VerdictReporter, ProbePool
from frontier.models import BaseDomain
from frontier.generator import expand_all, shuffle_candidates
from detection.engine import PhishingDetector
from detection.models import Verdict


class ScanSessionManager:
    """
    Orchestrates one scan:
    lists -> whitelist snapshots -> candidates -> shuffle -> rate-limited probes -> classification -> report.
    The snapshot phase completes before any candidate is probed.
    """
    def __init__(self, config: ScanConfig, sources=None, fetcher=None, show_progress=True, rng: Optional[random.Random] = None):
        self.config = config
        self.sources = sources or ListSources(config, timeout=config.request_timeout)
        # One limiter per run, shared by the snapshot and candidate phases
        self.limiter = RateLimiter(min_time_ms=config.min_time_ms, max_concurrent=config.max_concurrent)
        self.fetcher = fetcher or PageFetcher(self.limiter, timeout=config.request_timeout)
        self.show_progress = show_progress
        self.rng = rng
        self.start_time = time.time()
        self.skipped_entries: List[str] = []
        self.outcomes: Dict[str, int] = {}
        self.candidate_count = 0
        self.frontier_stats = {"queued": 0, "enqueued": 0, "completed": 0}

    # 1. Lists (fatal on failure)
    def load_lists(self):
        tlds = self.sources.get_tlds()
        blacklist = self.sources.get_blacklist()
        whitelist = self.sources.get_whitelist()
        return tlds, blacklist, whitelist

    # 2. Snapshots
    def _resolve_entries(self, whitelist):
        """Pairs each whitelist entry with its label; entries without one are skipped, never guessed."""
        resolved = []
        for entry in whitelist:
            try:
                resolved.append((entry, HostnameUtility.extract_hostname(entry)))
            except HostnameError as e:
                self.skipped_entries.append(entry)
                logger.warning(f"Skipping whitelist entry {entry!r}: {e}")
        return resolved

    def snapshot_whitelist(self, whitelist) -> Dict[str, BaseDomain]:
        """
        Probes every resolvable whitelist entry once and returns hostname -> BaseDomain.
        Several entries sharing a label collapse into one snapshot: the first entry that returned content wins.
        """
        logger.info("Parsing whitelist...")
        resolved = self._resolve_entries(whitelist)
        if not resolved:
            return {}

        with ThreadPoolExecutor(max_workers=min(self.config.max_concurrent, len(resolved))) as pool:
            contents = list(pool.map(lambda pair: self.fetcher.probe(pair[0]), resolved))

        snapshots: Dict[str, BaseDomain] = {}
        for (entry, hostname), content in zip(resolved, contents):
            current = snapshots.get(hostname)
            if current is None or (current.content is None and content):
                snapshots[hostname] = BaseDomain(hostname=hostname, content=content or None)
            if not content:
                logger.info(f"No content for whitelisted {entry}")

        logger.info(f"Captured {len(snapshots)} base domains from {len(whitelist)} whitelist entries")
        return snapshots

    # 3-5. Candidates
    def run(self) -> List[Verdict]:
        tlds, blacklist, whitelist = self.load_lists()
        snapshots = self.snapshot_whitelist(whitelist)

        logger.info("Extracting whitelist entries...")
        # Nothing can resemble a page that was never captured
        bases = [base for base in snapshots.values() if base.content]
        for hostname in sorted(set(snapshots) - {base.hostname for base in bases}):
            logger.warning(f"No snapshot for {hostname}, not generating candidates for it")
        candidates = shuffle_candidates(expand_all(bases, tlds), rng=self.rng)
        self.candidate_count = len(candidates)
        logger.info(f"Generated {self.candidate_count} candidates from {len(bases)} base domains x {len(tlds)} TLDs")

        detector = PhishingDetector(
            threshold=self.config.similarity_threshold,
            blacklist=blacklist,
            whitelist=whitelist,
            metric=self.config.similarity_metric,
        )
        progress = ProgressTracker(total=self.candidate_count, show_bar=self.show_progress)
        reporter = VerdictReporter(progress=progress)

        frontier = CandidateFrontier(candidates)
        try:
            if candidates:
                pool = ProbePool(
                    size=min(self.config.max_concurrent, len(candidates)),
                    frontier=frontier,
                    probe=self.fetcher.probe,
                    detector=detector,
                    snapshots=snapshots,
                    reporter=reporter,
                    progress=progress,
                )
                self.outcomes = pool.run()
        finally:
            progress.close()
            self.frontier_stats = frontier.get_stats()

        self._print_summary(reporter.verdicts)
        return reporter.verdicts

    def _print_summary(self, verdicts):
        duration = time.time() - self.start_time
        stats = self.limiter.get_stats()
        print("\n==============================")
        print("SCAN SESSION SUMMARY")
        print("==============================")
        print(f"Duration:           {duration:.2f} seconds")
        print(f"Candidates:         {self.candidate_count}")
        print(f"Processed:          {self.frontier_stats['completed']}/{self.frontier_stats['enqueued']}")
        print(f"Requests sent:      {stats['dispatched']}")
        print(f"Peak in flight:     {stats['peak_in_flight']}")
        print(f"Skipped entries:    {len(self.skipped_entries)}")
        print(f"Outcomes:")
        for key in ("SUPPRESSED_ABSENT", "SUPPRESSED_LISTED", "SUPPRESSED_BELOW_THRESHOLD", "ERROR"):
            print(f"  - {key.lower():<27} {self.outcomes.get(key, 0)}")
        print(f"Possible phishing:  {len(verdicts)}")
        for verdict in sorted(verdicts, key=lambda v: -v.similarity_score):
            print(f"  - {verdict.candidate_url} ({verdict.percentage}%)")
        print("==============================\n")


def build_parser():
    parser = argparse.ArgumentParser(description="Crypto typosquat / phishing domain scanner")
    parser.add_argument("--min-time", dest="min_time_ms", type=int, help="Minimum milliseconds between request dispatches")
    parser.add_argument("--max-concurrent", dest="max_concurrent", type=int, help="Maximum requests in flight")
    parser.add_argument("--threshold", dest="similarity_threshold", type=float, help="Similarity above which a candidate is reported (0-1)")
    parser.add_argument("--metric", dest="similarity_metric", choices=["dice", "sequence"], help="Similarity metric")
    parser.add_argument("--timeout", dest="request_timeout", type=float, help="Per-request timeout in seconds")
    parser.add_argument("--log-file", dest="log_file", help="Also write logs to this file")
    parser.add_argument("--log-level", dest="log_level", help="Logging level (DEBUG, INFO, ...)")
    parser.add_argument("--no-progress", action="store_true", help="Disable the progress bar")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    try:
        config = load_config(
            min_time_ms=args.min_time_ms,
            max_concurrent=args.max_concurrent,
            similarity_threshold=args.similarity_threshold,
            similarity_metric=args.similarity_metric,
            request_timeout=args.request_timeout,
            log_file=args.log_file,
            log_level=args.log_level,
        )
    except ConfigError as e:
        logger.error(f"CONFIG_ERROR: {e}")
        return 2

    setup_logger(level=config.log_level)
    if config.log_file:
        add_file_handler(config.log_file, level=config.log_level)

    logger.info(
        f"Starting scan | min_time={config.min_time_ms}ms max_concurrent={config.max_concurrent} "
        f"threshold={config.similarity_threshold} metric={config.similarity_metric}"
    )
    manager = ScanSessionManager(config, show_progress=not args.no_progress)
    try:
        manager.run()
    except ScannerError as e:
        logger.error(f"SESSION_ABORT: {e}")
        return 1
    except KeyboardInterrupt:
        logger.warning("SESSION_ABORT: interrupted")
        return 130
    return 0


if __name__ == "__main__":
    sys.exit(main())
