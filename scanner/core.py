"""
FILE DESCRIPTION: Foundational module for global configuration and logging.
KEY FUNCTIONS/CLASSES: setup_logger, CompanyFormatter, configuration constants
"""

import logging
import sys
import os
from datetime import datetime
from pathlib import Path
from dotenv import load_dotenv

# === CONFIGURATION SECTION ===

# Load .env from the repository root before reading any setting
load_dotenv(Path(__file__).resolve().parents[1] / '.env')

# Canonical data directory (sqlite database lives here)
DATA_DIR = Path(os.getenv("SCANNER_DATA_DIR", Path(__file__).resolve().parents[1] / 'data'))
DB_PATH = Path(os.getenv("SCANNER_DB_PATH", DATA_DIR / "scanner.db"))

# Network limits for a single page fetch
REQUEST_TIMEOUT = float(os.getenv("SCANNER_REQUEST_TIMEOUT", 15))  # seconds, whole fetch
MAX_REDIRECTS = 5
MAX_PAYLOAD_BYTES = 5 * 1024 * 1024
CHUNK_SIZE = 64 * 1024
USER_AGENT = "A11yScanner/1.0 (WCAG Accessibility Scanner)"

# Scan history cap (oldest evicted first)
MAX_HISTORY = int(os.getenv("SCANNER_MAX_HISTORY", 1000))

# Monitor scheduler cadence (seconds)
MONITOR_TICK_SECONDS = int(os.getenv("MONITOR_TICK_SECONDS", 3600))
MONITOR_STARTUP_DELAY = int(os.getenv("MONITOR_STARTUP_DELAY", 30))

# Batch scan ceiling per request
MAX_BATCH_URLS = 20

LOG_FILE = os.getenv("SCANNER_LOG_FILE") or None


# === LOGGING SECTION ===

class CompanyFormatter(logging.Formatter):
    """
    FLOW: Receives a log record -> Extracts timestamp -> Formats according to company standard
    (e.g., [ Tue Jan 06 05:32:41 AM UTC 2026 ]) -> Prepends level and context -> Returns final string.
    """
    def format(self, record):
        dt = datetime.fromtimestamp(record.created)
        timestamp = dt.strftime("%a %b %d %I:%M:%S %p UTC %Y")
        context = getattr(record, 'context', 'root')
        message = f"[ {timestamp} ] : {record.levelname} : {context} : {record.getMessage()}"
        if record.exc_info:
            message += "\n" + self.formatException(record.exc_info)
        return message

def setup_logger(name="scanner", log_file=None, level=logging.INFO):
    """
    FLOW: Initializes/Retrieves logger -> Checks for existing handlers to prevent duplicates ->
    Sets propagation for child loggers -> Attaches Console and optional File handlers with CompanyFormatter.
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    if logger.handlers:
        return logger

    if name != "scanner":
        logger.propagate = True
        setup_logger("scanner", log_file=log_file, level=level)
        return logger

    formatter = CompanyFormatter()

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

# Global logger instance
logger = setup_logger(log_file=LOG_FILE)
