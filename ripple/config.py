"""RIPPLE configuration loaded from environment variables."""
import os
from typing import List
from pathlib import Path
from dotenv import load_dotenv

# Load .env file if it exists
env_path = Path(__file__).parent.parent / '.env'
if env_path.exists():
    load_dotenv(env_path)


def _float_list(raw: str) -> List[float]:
    return [float(v) for v in raw.split(',') if v.strip()]


# ============================================================================
# Scoring Configuration
# ============================================================================

PRICE_WEIGHT = float(os.getenv('PRICE_WEIGHT', '1.5'))
VOLUME_WEIGHT = float(os.getenv('VOLUME_WEIGHT', '1.0'))
OI_WEIGHT = float(os.getenv('OI_WEIGHT', '0.5'))

# Empirical calibration inputs, not physical constants
TIME_DECAY_WEIGHT = float(os.getenv('TIME_DECAY_WEIGHT', '2.0'))
SCORE_THRESHOLD = float(os.getenv('SCORE_THRESHOLD', '5.0'))

MIN_HOURS_TO_EXPIRY = float(os.getenv('MIN_HOURS_TO_EXPIRY', '0.5'))
MAX_HOURS_TO_EXPIRY = float(os.getenv('MAX_HOURS_TO_EXPIRY', '48'))

# ============================================================================
# Alert Configuration
# ============================================================================

ALERT_COOLDOWN_HOURS = float(os.getenv('ALERT_COOLDOWN_HOURS', '6'))
ALERT_HISTORY_SIZE = int(os.getenv('ALERT_HISTORY_SIZE', '100'))
RECIPIENT_EMAIL = os.getenv('RECIPIENT_EMAIL', '')

EMAILJS_CONFIG = {
    'url': os.getenv('EMAILJS_URL', 'https://api.emailjs.com/api/v1.0/email/send'),
    'service_id': os.getenv('EMAILJS_SERVICE_ID', ''),
    'template_id': os.getenv('EMAILJS_TEMPLATE_ID', ''),
    'public_key': os.getenv('EMAILJS_PUBLIC_KEY', ''),
}

# ============================================================================
# Backtest Configuration
# ============================================================================

SIGNIFICANT_MOVE_PCT = float(os.getenv('SIGNIFICANT_MOVE_PCT', '0.02'))
MIN_APPLY_SUCCESS_RATE = float(os.getenv('MIN_APPLY_SUCCESS_RATE', '30'))

PRICE_WEIGHT_CANDIDATES: List[float] = _float_list(
    os.getenv('PRICE_WEIGHT_CANDIDATES', '0.5,1.0,1.5,2.0,2.5,3.0')
)
VOLUME_WEIGHT_CANDIDATES: List[float] = _float_list(
    os.getenv('VOLUME_WEIGHT_CANDIDATES', '0.5,1.0,1.5,2.0,2.5')
)
OI_WEIGHT_CANDIDATES: List[float] = _float_list(
    os.getenv('OI_WEIGHT_CANDIDATES', '0.3,0.5,0.7,1.0')
)

# Live sample collection: snapshots wait this long for their outcome price
COLLECTION_INTERVAL_MINUTES = float(os.getenv('COLLECTION_INTERVAL_MINUTES', '10'))
COLLECTION_HORIZON_HOURS = float(os.getenv('COLLECTION_HORIZON_HOURS', '24'))
COLLECTION_MAX_PENDING = int(os.getenv('COLLECTION_MAX_PENDING', '1000'))
COLLECTION_SAMPLES_PATH = os.getenv('COLLECTION_SAMPLES_PATH', 'samples.jsonl')

# ============================================================================
# Market Data Configuration
# ============================================================================

DERIBIT_API_URL = os.getenv('DERIBIT_API_URL', 'https://www.deribit.com/api/v2')
DERIBIT_CURRENCY = os.getenv('DERIBIT_CURRENCY', 'ETH')
HTTP_TIMEOUT_SECONDS = float(os.getenv('HTTP_TIMEOUT_SECONDS', '15'))

# ============================================================================
# Logging Configuration
# ============================================================================

LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()
LOG_FILE = os.getenv('LOG_FILE', '')
LOG_FORMAT = os.getenv('LOG_FORMAT', 'detailed').lower()

# ============================================================================
# Validation
# ============================================================================

def validate_config() -> None:
    """Validate configuration values."""
    errors = []

    # Validate expiry window
    if MIN_HOURS_TO_EXPIRY < 0:
        errors.append("MIN_HOURS_TO_EXPIRY must be non-negative")

    if MAX_HOURS_TO_EXPIRY <= MIN_HOURS_TO_EXPIRY:
        errors.append("MAX_HOURS_TO_EXPIRY must be greater than MIN_HOURS_TO_EXPIRY")

    # Validate scoring
    if SCORE_THRESHOLD <= 0:
        errors.append("SCORE_THRESHOLD must be positive")

    if min(PRICE_WEIGHT, VOLUME_WEIGHT, OI_WEIGHT, TIME_DECAY_WEIGHT) < 0:
        errors.append("Scoring weights must be non-negative")

    # Validate alerting
    if ALERT_COOLDOWN_HOURS < 0:
        errors.append("ALERT_COOLDOWN_HOURS must be non-negative")

    if ALERT_HISTORY_SIZE < 1:
        errors.append("ALERT_HISTORY_SIZE must be at least 1")

    # Validate backtest parameters
    if not (0 < SIGNIFICANT_MOVE_PCT < 1):
        errors.append("SIGNIFICANT_MOVE_PCT must be between 0 and 1")

    if not (0 <= MIN_APPLY_SUCCESS_RATE <= 100):
        errors.append("MIN_APPLY_SUCCESS_RATE must be between 0 and 100")

    if COLLECTION_INTERVAL_MINUTES <= 0:
        errors.append("COLLECTION_INTERVAL_MINUTES must be positive")

    if COLLECTION_HORIZON_HOURS <= 0:
        errors.append("COLLECTION_HORIZON_HOURS must be positive")

    if COLLECTION_MAX_PENDING < 1:
        errors.append("COLLECTION_MAX_PENDING must be at least 1")

    for name, candidates in (
        ('PRICE_WEIGHT_CANDIDATES', PRICE_WEIGHT_CANDIDATES),
        ('VOLUME_WEIGHT_CANDIDATES', VOLUME_WEIGHT_CANDIDATES),
        ('OI_WEIGHT_CANDIDATES', OI_WEIGHT_CANDIDATES),
    ):
        if not candidates:
            errors.append(f"{name} must contain at least one value")

    # Validate logging
    if LOG_FORMAT not in LOG_FORMATS:
        errors.append(f"LOG_FORMAT must be one of: {', '.join(LOG_FORMATS)}")

    if errors:
        raise ValueError(f"Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors))


# ============================================================================
# Logging Setup
# ============================================================================

LOG_FORMATS = {
    'detailed': '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    'json': '{"timestamp": "%(asctime)s", "level": "%(levelname)s", "name": "%(name)s", "message": "%(message)s"}',
    'simple': '%(levelname)s: %(message)s',
}

# HTTP client libraries log every request at DEBUG/INFO
QUIET_LOGGERS = ('urllib3', 'requests')


def _log_handlers(formatter: 'logging.Formatter') -> List['logging.Handler']:
    import logging
    import sys

    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if LOG_FILE:
        handlers.append(logging.FileHandler(LOG_FILE))

    for handler in handlers:
        handler.setFormatter(formatter)
    return handlers


def setup_logging() -> None:
    """Route the root and ``ripple`` loggers to stdout (and LOG_FILE when set)."""
    import logging

    level = getattr(logging, LOG_LEVEL, logging.INFO)
    formatter = logging.Formatter(LOG_FORMATS[LOG_FORMAT])

    logging.basicConfig(level=level, handlers=_log_handlers(formatter), force=True)
    logging.getLogger('ripple').setLevel(level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


# ============================================================================
# Initialization
# ============================================================================

# Validate config on import
validate_config()

# Setup logging
setup_logging()
