"""
FILE DESCRIPTION: Foundational module for global configuration and logging.
KEY FUNCTIONS/CLASSES: setup_logger, CompanyFormatter, config constants
"""

import json
import logging
import sys
import os
from datetime import datetime
from pathlib import Path
from dotenv import load_dotenv

# === CONFIGURATION SECTION ===

# Load .env from the repository root
load_dotenv(Path(__file__).resolve().parents[2] / '.env')

# Network timeout for HTTP requests (seconds), applied per fetch
REQUEST_TIMEOUT = float(os.getenv("REQUEST_TIMEOUT", 15))

# Retries for 429/503 responses and transient connection failures
MAX_RETRIES = int(os.getenv("MAX_RETRIES", 2))
RETRY_DELAY = float(os.getenv("RETRY_DELAY", 2))

# Some sites block non-browser agents
USER_AGENT = os.getenv(
    "USER_AGENT",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/126.0.0.0 Safari/537.36",
)

# Concurrency limits
MAX_CONCURRENT_FETCHES = int(os.getenv("MAX_CONCURRENT_FETCHES", 3))
MAX_DETECTOR_WORKERS = int(os.getenv("MAX_DETECTOR_WORKERS", 4))

# Blog discovery
BLOG_POST_LIMIT = int(os.getenv("BLOG_POST_LIMIT", 20))

# Detector pattern data
DEFAULT_LOCALE_PATTERNS = Path(__file__).resolve().parents[1] / 'detection' / 'data' / 'locales.json'
LOCALE_PATTERNS_PATH = Path(os.getenv("EEAT_LOCALE_PATTERNS", DEFAULT_LOCALE_PATTERNS))
ENABLED_LOCALES = [l.strip() for l in os.getenv("EEAT_LOCALES", "").split(",") if l.strip()]


def load_weight_overrides():
    """
    Reads EEAT_WEIGHTS (a JSON object of detector id -> weight).
    Returns None when unset so the scorer falls back to its defaults.
    """
    raw = os.getenv("EEAT_WEIGHTS")
    if not raw:
        return None
    try:
        weights = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValueError(f"EEAT_WEIGHTS is not valid JSON: {e}") from e
    if not isinstance(weights, dict):
        raise ValueError("EEAT_WEIGHTS must be a JSON object of detector id -> weight")
    return {str(k): float(v) for k, v in weights.items()}


# === LOGGING SECTION ===

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FILE = os.getenv("LOG_FILE") or None


class CompanyFormatter(logging.Formatter):
    """
    FLOW: Receives a log record -> Extracts timestamp -> Formats according to company standard
    (e.g., [ Tue Jan 06 05:32:41 AM UTC 2026 ]) -> Prepends level and context -> Returns final string.
    """
    def format(self, record):
        dt = datetime.fromtimestamp(record.created)
        timestamp = dt.strftime("%a %b %d %I:%M:%S %p UTC %Y")
        context = getattr(record, 'context', 'root')
        return f"[ {timestamp} ] : {record.levelname} : {context} : {record.getMessage()}"

def setup_logger(name="crawler", log_file=None, level=logging.INFO):
    """
    FLOW: Initializes/Retrieves logger -> Checks for existing handlers to prevent duplicates ->
    Sets propagation for child loggers -> Attaches Console and optional File handlers with CompanyFormatter.
    """
    logger = logging.getLogger(name)

    if name != "crawler":
        # Children inherit level and handlers from the "crawler" logger
        logger.propagate = True
        if not logging.getLogger("crawler").handlers:
            setup_logger("crawler", log_file=log_file, level=level)
        return logger

    logger.setLevel(level)
    if logger.handlers:
        return logger

    formatter = CompanyFormatter()

    # Console handler (stderr keeps stdout clean for JSON output)
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    # File handler (optional)
    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger

# Global logger instance
logger = setup_logger(log_file=LOG_FILE, level=getattr(logging, LOG_LEVEL, logging.INFO))


def configure_logging(level=None, log_file=None):
    """
    Adjusts the already-initialized "crawler" logger from CLI flags:
    a new level and/or an additional file handler.
    """
    root = logging.getLogger("crawler")
    if level is not None:
        root.setLevel(level)
    if log_file and not any(isinstance(h, logging.FileHandler) and h.baseFilename == os.path.abspath(log_file)
                            for h in root.handlers):
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(CompanyFormatter())
        root.addHandler(file_handler)
    return root
