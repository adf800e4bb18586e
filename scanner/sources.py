"""
FILE DESCRIPTION: Loads the three upstream lists a scan needs: TLDs, blacklist and whitelist.
Any failure here is fatal for the run and surfaces as SourceError.
KEY FUNCTIONS/CLASSES: ListSources, parse_tld_list, parse_json_list
"""

import json
import requests
from typing import List
from scanner.core import REQUEST_TIMEOUT, SourceError, ScanConfig, logger


def parse_tld_list(body: str) -> List[str]:
    """IANA format: one TLD per line, '#' comment lines, upper-case entries."""
    tlds = []
    for line in (body or "").splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        tlds.append(line.lower())
    return tlds


def parse_json_list(body) -> List[str]:
    """Accepts a bare JSON array of strings or a {"result": [...]} envelope."""
    data = json.loads(body) if isinstance(body, (str, bytes)) else body
    if isinstance(data, dict):
        data = data.get("result")
    if not isinstance(data, list):
        raise ValueError(f"expected a JSON array, got {type(data).__name__}")
    return [str(entry).strip() for entry in data if isinstance(entry, str) and entry.strip()]


class ListSources:
    """
    FLOW: GET each source URL -> Raises SourceError on transport/HTTP/format problems ->
    Parses into plain string lists.
    """

    def __init__(self, config: ScanConfig, timeout=REQUEST_TIMEOUT):
        self.config = config
        self.timeout = timeout

    def _get(self, name, url) -> str:
        try:
            r = requests.get(url, timeout=self.timeout)
            r.raise_for_status()
        except requests.exceptions.RequestException as e:
            raise SourceError(f"could not fetch {name} from {url}: {e}") from e
        return r.text

    def get_tlds(self) -> List[str]:
        logger.info("Getting list of TLDs...")
        body = self._get("TLD list", self.config.tld_url)
        tlds = parse_tld_list(body)
        if not tlds:
            raise SourceError(f"TLD list from {self.config.tld_url} is empty")
        logger.info(f"Loaded {len(tlds)} TLDs")
        return tlds

    def get_blacklist(self) -> List[str]:
        logger.info("Getting blacklist...")
        body = self._get("blacklist", self.config.blacklist_url)
        try:
            entries = parse_json_list(body)
        except ValueError as e:
            raise SourceError(f"blacklist from {self.config.blacklist_url} is malformed: {e}") from e
        # www. variants are covered by their bare hostname
        blacklist = [entry for entry in entries if not entry.startswith("www.")]
        logger.info(f"Loaded {len(blacklist)} blacklisted domains")
        return blacklist

    def get_whitelist(self) -> List[str]:
        logger.info("Getting whitelist...")
        body = self._get("whitelist", self.config.whitelist_url)
        try:
            whitelist = parse_json_list(body)
        except ValueError as e:
            raise SourceError(f"whitelist from {self.config.whitelist_url} is malformed: {e}") from e
        logger.info(f"Loaded {len(whitelist)} whitelisted entries")
        return whitelist
