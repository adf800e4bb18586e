"""
FILE DESCRIPTION: Network layer handling hostname extraction, the shared rate budget and page probing.
KEY FUNCTIONS/CLASSES: HostnameUtility, RateLimiter, PageFetcher
"""

import requests
import time
import tldextract
import threading
from collections import deque
from contextlib import contextmanager
from functools import wraps
from typing import Optional
from scanner.core import USER_AGENT, REQUEST_TIMEOUT, HostnameError, logger

# === HOSTNAME UTILITY ===

class HostnameUtility:

    # Offline extractor, bundled public suffix snapshot only
    _EXTRACTOR = tldextract.TLDExtract(suffix_list_urls=())

    @classmethod
    def extract_hostname(cls, url: str) -> str:
        """
        Registrable label of a URL, without subdomain or suffix.
        "https://www.myetherwallet.com/" -> "myetherwallet"
        """
        if not url or not url.strip():
            raise HostnameError("empty whitelist entry")
        try:
            ext = cls._EXTRACTOR(url.strip())
        except Exception as e:
            raise HostnameError(f"could not parse {url!r}: {e}") from e
        label = (ext.domain or "").lower()
        if not label:
            raise HostnameError(f"no registrable domain in {url!r}")
        return label

    @staticmethod
    def to_fetch_url(entry: str) -> str:
        """Plain http:// unless the entry already names its scheme."""
        entry = (entry or "").strip()
        if "://" in entry:
            return entry
        return "http://" + entry


# === RATE LIMITER ===

class RateLimiter:
    """
    FLOW: Callers take a ticket and join a FIFO queue -> The head ticket waits until a concurrency
    slot is free AND min_time has elapsed since the previous dispatch -> Dispatch is recorded and the
    slot is held until release().

    One instance is shared by every probe in a run; it is the only owner of the rate budget.
    """

    def __init__(self, min_time_ms=0, max_concurrent=1, clock=time.monotonic):
        if max_concurrent < 1:
            raise ValueError("max_concurrent must be >= 1")
        if min_time_ms < 0:
            raise ValueError("min_time_ms must be >= 0")
        self.min_interval = min_time_ms / 1000.0
        self.max_concurrent = max_concurrent
        self.in_flight = 0
        self._clock = clock
        self._cond = threading.Condition(threading.Lock())
        self._waiters = deque()
        self._next_ticket = 0
        self._last_dispatch = None
        self._dispatched = 0
        self._peak_in_flight = 0

    def _wait_time(self, now):
        """Seconds until the time-spacing bound admits the next dispatch (0 if it already does)."""
        if self._last_dispatch is None:
            return 0.0
        return max(0.0, self._last_dispatch + self.min_interval - now)

    def acquire(self) -> float:
        """Blocks until dispatched. Returns the monotonic dispatch timestamp."""
        with self._cond:
            ticket = self._next_ticket
            self._next_ticket += 1
            self._waiters.append(ticket)
            try:
                while True:
                    if self._waiters[0] == ticket and self.in_flight < self.max_concurrent:
                        now = self._clock()
                        delay = self._wait_time(now)
                        if delay <= 0:
                            break
                        self._cond.wait(delay)
                    else:
                        self._cond.wait()
            except BaseException:
                # Interrupted while queued: leave the line without taking a slot
                self._waiters.remove(ticket)
                self._cond.notify_all()
                raise

            self._waiters.popleft()
            self.in_flight += 1
            self._dispatched += 1
            self._peak_in_flight = max(self._peak_in_flight, self.in_flight)
            self._last_dispatch = now
            # The next ticket may be admissible already (or needs to start its own spacing timer)
            self._cond.notify_all()
            return now

    def release(self):
        with self._cond:
            if self.in_flight <= 0:
                raise RuntimeError("release() called without a matching acquire()")
            self.in_flight -= 1
            self._cond.notify_all()

    @contextmanager
    def slot(self):
        dispatched_at = self.acquire()
        try:
            yield dispatched_at
        finally:
            self.release()

    def wrap(self, fn):
        """Returns fn guarded by this limiter, same return value and exceptions."""
        @wraps(fn)
        def limited(*args, **kwargs):
            with self.slot():
                return fn(*args, **kwargs)
        return limited

    def get_stats(self):
        with self._cond:
            return {
                "in_flight": self.in_flight,
                "waiting": len(self._waiters),
                "dispatched": self._dispatched,
                "peak_in_flight": self._peak_in_flight,
            }


# === PAGE FETCHER ===

class PageFetcher:
    """
    FLOW: Waits for the shared RateLimiter -> Executes a plain HTTP GET (redirects followed, no cookies kept) ->
    Returns the final page body text, or None on any transport error, timeout or empty body.
    """
    HEADERS = {
        "User-Agent": USER_AGENT,
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
        "Accept-Language": "en-US,en;q=0.9",
    }

    def __init__(self, limiter: RateLimiter, timeout=REQUEST_TIMEOUT):
        self.limiter = limiter
        self.timeout = timeout

    def raw_fetch(self, hostname: str) -> Optional[str]:
        """Unthrottled primitive. Never raises for network conditions."""
        url = HostnameUtility.to_fetch_url(hostname)
        start_time = time.time()
        try:
            # Sessionless request: redirects are followed to the final page, cookies never outlive the call
            r = requests.get(url, timeout=self.timeout, headers=self.HEADERS, allow_redirects=True)
            body = r.text
        except requests.exceptions.RequestException as e:
            logger.debug(f"[FETCH] {url} failed after {int((time.time() - start_time) * 1000)}ms: {e}")
            return None

        if not body:
            logger.debug(f"[FETCH] {url} returned an empty body (status {r.status_code})")
            return None
        logger.debug(f"[FETCH] {url} -> {r.status_code}, {len(body)} chars in {int((time.time() - start_time) * 1000)}ms")
        return body

    def probe(self, hostname: str) -> Optional[str]:
        with self.limiter.slot():
            return self.raw_fetch(hostname)
