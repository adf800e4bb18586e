"""
FILE DESCRIPTION: Foundational module for global configuration, logging and error types.
KEY FUNCTIONS/CLASSES: ScanConfig, load_config, setup_logger, ScannerFormatter, ScannerError
"""

import logging
import sys
import os
from dataclasses import dataclass, replace
from datetime import datetime
from pathlib import Path
from typing import Optional
from dotenv import load_dotenv

# === CONFIGURATION SECTION ===

# Load .env at the beginning of core
load_dotenv(Path(__file__).resolve().parents[1] / '.env')

# Upstream list sources
BLACKLIST_URL = os.getenv("BLACKLIST_URL", "https://cryptoscamdb.org/api/blacklist")
WHITELIST_URL = os.getenv("WHITELIST_URL", "https://cryptoscamdb.org/api/whitelist")
TLD_URL = os.getenv("TLD_URL", "http://data.iana.org/TLD/tlds-alpha-by-domain.txt")

# Defaults for the numeric settings; env values are parsed by load_config()
REQUEST_TIMEOUT = 10.0
MIN_TIME_MS = 100
MAX_CONCURRENT = 50
SIMILARITY_THRESHOLD = 0.8

# Similarity
SIMILARITY_METRIC = os.getenv("SIMILARITY_METRIC", "dice").lower()

LOG_FILE = os.getenv("LOG_FILE") or None
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/126.0.0.0 Safari/537.36"


# === ERRORS ===

class ScannerError(Exception):
    """Base class for every error the scanner raises on purpose."""


class ConfigError(ScannerError):
    pass


class SourceError(ScannerError):
    """A list source (TLDs, blacklist, whitelist) could not be obtained. Fatal."""


class HostnameError(ScannerError):
    """No registrable label could be extracted from a whitelist entry."""


@dataclass(frozen=True)
class ScanConfig:
    min_time_ms: int = MIN_TIME_MS
    max_concurrent: int = MAX_CONCURRENT
    similarity_threshold: float = SIMILARITY_THRESHOLD
    similarity_metric: str = SIMILARITY_METRIC
    request_timeout: float = REQUEST_TIMEOUT
    blacklist_url: str = BLACKLIST_URL
    whitelist_url: str = WHITELIST_URL
    tld_url: str = TLD_URL
    log_file: Optional[str] = LOG_FILE
    log_level: str = LOG_LEVEL

    def validate(self):
        if not 0.0 <= self.similarity_threshold <= 1.0:
            raise ConfigError(f"similarity threshold must be within [0, 1], got {self.similarity_threshold}")
        if self.max_concurrent < 1:
            raise ConfigError(f"max concurrent must be at least 1, got {self.max_concurrent}")
        if self.min_time_ms < 0:
            raise ConfigError(f"min time must not be negative, got {self.min_time_ms}")
        if self.similarity_metric not in ("dice", "sequence"):
            raise ConfigError(f"unknown similarity metric: {self.similarity_metric}")
        if self.request_timeout <= 0:
            raise ConfigError(f"request timeout must be positive, got {self.request_timeout}")
        return self


def _env_number(name, cast, default):
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return cast(raw.strip())
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from None


def load_config(**overrides) -> ScanConfig:
    """
    FLOW: Parses numeric env values (ConfigError when malformed) -> Applies non-None overrides (CLI flags) ->
    Validates ranges -> Returns an immutable ScanConfig.
    """
    cfg = ScanConfig(
        min_time_ms=_env_number("MIN_TIME_MS", int, MIN_TIME_MS),
        max_concurrent=_env_number("MAX_CONCURRENT", int, MAX_CONCURRENT),
        similarity_threshold=_env_number("SIMILARITY_THRESHOLD", float, SIMILARITY_THRESHOLD),
        request_timeout=_env_number("REQUEST_TIMEOUT", float, REQUEST_TIMEOUT),
    )
    updates = {k: v for k, v in overrides.items() if v is not None}
    if updates:
        cfg = replace(cfg, **updates)
    cfg = replace(cfg, similarity_metric=cfg.similarity_metric.lower(), log_level=cfg.log_level.upper())
    return cfg.validate()


# === LOGGING SECTION ===

class ScannerFormatter(logging.Formatter):
    """
    FLOW: Receives a log record -> Extracts timestamp -> Formats it
    (e.g., [ Tue Jan 06 05:32:41 AM UTC 2026 ]) -> Prepends level and context -> Returns final string.
    """
    def format(self, record):
        dt = datetime.fromtimestamp(record.created)
        timestamp = dt.strftime("%a %b %d %I:%M:%S %p UTC %Y")
        context = getattr(record, 'context', 'root')
        return f"[ {timestamp} ] : {record.levelname} : {context} : {record.getMessage()}"

def setup_logger(name="scanner", log_file=None, level=logging.INFO):
    """
    FLOW: Initializes/Retrieves logger -> Checks for existing handlers to prevent duplicates ->
    Sets propagation for child loggers -> Attaches Console and optional File handlers with ScannerFormatter.
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    logger = logging.getLogger(name)
    logger.setLevel(level)

    if logger.handlers:
        return logger

    if name != "scanner":
        logger.propagate = True
        setup_logger("scanner", log_file=log_file, level=level)
        return logger

    formatter = ScannerFormatter()

    # Console handler
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    # File handler (optional)
    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger

def add_file_handler(log_file, level=None):
    """Attach a file handler to the root scanner logger after startup (CLI --log-file)."""
    root = logging.getLogger("scanner")
    for h in root.handlers:
        if isinstance(h, logging.FileHandler) and os.path.abspath(h.baseFilename) == os.path.abspath(log_file):
            return root
    file_handler = logging.FileHandler(log_file)
    file_handler.setFormatter(ScannerFormatter())
    root.addHandler(file_handler)
    if level:
        root.setLevel(getattr(logging, str(level).upper(), logging.INFO))
    return root

# Global logger instance
logger = setup_logger(log_file=LOG_FILE, level=LOG_LEVEL)
