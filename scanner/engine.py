"""
FILE DESCRIPTION: Probe pipeline managing the candidate queue, worker threads and progress/verdict sinks.
KEY FUNCTIONS/CLASSES: CandidateFrontier, ProgressTracker, VerdictReporter, ProbeWorker, ProbePool
"""

import threading
from collections import Counter
from queue import Queue, Empty
from typing import Callable, Dict, List, Optional

from tqdm import tqdm

from scanner.core import logger
from frontier.models import BaseDomain, Candidate, ProbeResult
from detection.engine import PhishingDetector
from detection.models import DetectionStatus, Verdict


# === FRONTIER MANAGEMENT ===

class CandidateFrontier:
    """
    FLOW: Holds the shuffled candidates in a FIFO queue -> Hands each one out exactly once ->
    Tracks how many were dequeued and completed.
    """
    def __init__(self, candidates=()):
        self.queue = Queue(maxsize=0)
        self.lock = threading.Lock()
        self.enqueued = 0
        self.completed = 0
        for candidate in candidates:
            self.enqueue(candidate)

    def enqueue(self, candidate: Candidate):
        self.queue.put(candidate)
        with self.lock:
            self.enqueued += 1

    def dequeue(self, timeout=0.5) -> Optional[Candidate]:
        try:
            return self.queue.get(timeout=timeout)
        except Empty:
            return None

    def mark_done(self):
        with self.lock:
            self.completed += 1
        self.queue.task_done()

    def is_drained(self) -> bool:
        return self.queue.empty()

    def get_stats(self):
        with self.lock:
            return {
                "queued": self.queue.qsize(),
                "enqueued": self.enqueued,
                "completed": self.completed,
            }


# === SINKS ===

class ProgressTracker:
    """Thread-safe counter advanced once per candidate, mirrored on a tqdm bar when one is attached."""

    BAR_FORMAT = "Requests completed |{bar}| {percentage:3.0f}% || {n_fmt}/{total_fmt} "

    def __init__(self, total: int, show_bar: bool = True):
        self.total = total
        self.count = 0
        self.lock = threading.Lock()
        self.bar = tqdm(total=total, bar_format=self.BAR_FORMAT, ascii=False, leave=True) if show_bar else None

    def advance(self):
        with self.lock:
            self.count += 1
            if self.bar is not None:
                self.bar.update(1)

    def write(self, message: str):
        with self.lock:
            if self.bar is not None:
                self.bar.write(message)
            else:
                print(message)

    def close(self):
        if self.bar is not None:
            self.bar.close()


class VerdictReporter:
    """Streams every verdict the moment it is produced and keeps the list for the summary."""

    def __init__(self, progress: Optional[ProgressTracker] = None):
        self.progress = progress
        self.verdicts: List[Verdict] = []
        self.lock = threading.Lock()

    def report(self, verdict: Verdict):
        with self.lock:
            self.verdicts.append(verdict)
        line = verdict.describe()
        if self.progress is not None:
            self.progress.write(line)
        logger.warning(f"[VERDICT] {verdict.candidate_url} resembles {verdict.parent_hostname} ({verdict.percentage}%)")


# === PROBE WORKER ===

class ProbeWorker(threading.Thread):
    """
    FLOW: Dequeues a candidate -> Probes it through the shared rate-limited fetcher ->
    Classifies against the parent's snapshot -> Reports a verdict if any -> Advances progress.
    One candidate's failure never stops the worker.
    """

    def __init__(self, frontier: CandidateFrontier, probe: Callable[[str], Optional[str]], detector: PhishingDetector,
                 snapshots: Dict[str, BaseDomain], reporter: VerdictReporter, progress: ProgressTracker,
                 outcomes: Counter, outcomes_lock: threading.Lock, name: str):
        super().__init__(name=name, daemon=True)
        self.frontier = frontier
        self.probe = probe
        self.detector = detector
        self.snapshots = snapshots
        self.reporter = reporter
        self.progress = progress
        self.outcomes = outcomes
        self.outcomes_lock = outcomes_lock
        self.running = True
        self.processed = 0

    def stop(self):
        self.running = False

    def log(self, level, msg):
        getattr(logger, level)(msg, extra={'context': self.name})

    def _record(self, outcome: str):
        with self.outcomes_lock:
            self.outcomes[outcome] += 1

    def fetch(self, candidate: Candidate) -> ProbeResult:
        return ProbeResult(candidate=candidate, content=self.probe(candidate.url))

    def classify(self, result: ProbeResult) -> DetectionStatus:
        candidate = result.candidate
        base = self.snapshots[candidate.parent_hostname]
        status, score = self.detector.evaluate(candidate.url, result.content, base.content)
        if status.is_reported:
            self.reporter.report(Verdict(candidate_url=candidate.url, similarity_score=score, parent_hostname=base.hostname))
        elif score is not None:
            self.log("debug", f"{candidate.url} scored {score:.3f} against {base.hostname}")
        return status

    def run(self):
        self.log("debug", "started")
        while self.running:
            candidate = self.frontier.dequeue()
            if candidate is None:
                if self.frontier.is_drained():
                    break
                continue

            try:
                status = self.classify(self.fetch(candidate))
                self._record(status.value)
            except Exception as e:
                self._record("ERROR")
                self.log("error", f"Process error for {candidate.url}: {e}")
            finally:
                self.processed += 1
                self.progress.advance()
                self.frontier.mark_done()
        self.log("debug", f"stopped after {self.processed} candidates")


class ProbePool:
    """Fixed-size pool of ProbeWorkers draining one CandidateFrontier."""

    def __init__(self, size: int, **worker_kwargs):
        if size < 1:
            raise ValueError("pool size must be >= 1")
        self.outcomes = Counter()
        self.outcomes_lock = threading.Lock()
        self.workers = [
            ProbeWorker(outcomes=self.outcomes, outcomes_lock=self.outcomes_lock, name=f"Worker-{i}", **worker_kwargs)
            for i in range(size)
        ]

    def start(self):
        for worker in self.workers:
            worker.start()

    def stop(self):
        """Workers stop pulling new candidates; in-flight probes finish on their own."""
        for worker in self.workers:
            worker.stop()

    def join(self, timeout=None):
        for worker in self.workers:
            worker.join(timeout)

    def run(self):
        self.start()
        try:
            self.join()
        except KeyboardInterrupt:
            logger.warning("Interrupted, waiting for in-flight probes to finish...")
            self.stop()
            self.join()
            raise
        return dict(self.outcomes)
