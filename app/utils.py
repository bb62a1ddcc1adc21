import logging
import re
import os
from datetime import date, datetime, timezone


# Custom logging formatter to support colors
class ColoredFormatter(logging.Formatter):
    COLORS = {
        'DEBUG': '\033[94m',   # Blue
        'INFO': '\033[92m',    # Green
        'WARNING': '\033[93m', # Yellow
        'ERROR': '\033[91m',   # Red
        'CRITICAL': '\033[95m' # Magenta
    }
    RESET = '\033[0m'

    def format(self, record):
        levelname = record.levelname
        if levelname in self.COLORS:
            record.levelname = f"{self.COLORS[levelname]}{levelname}{self.RESET}"

        return super().format(record)


# Filter to remove date from http access logs
class FilterRemoveDateFromWerkzeugLogs(logging.Filter):
    # '192.168.0.102 - - [30/Jun/2024 01:14:03] "%s" %s %s' -> '192.168.0.102 - "%s" %s %s'
    pattern: re.Pattern = re.compile(r' - - \[.+?] "')

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            record.msg = self.pattern.sub(' - "', record.msg)
        return True


def get_or_create_secret_key():
    """
    Generate or load a persistent secret key for Flask sessions.
    The key is stored in CONFIG_DIR/.secret_key with restricted permissions.

    Returns:
        str: 64-character hex secret key
    """
    import secrets
    from constants import CONFIG_DIR

    env_key = os.environ.get('SECRET_KEY')
    if env_key:
        return env_key

    logger = logging.getLogger('main')
    secret_key_file = os.path.join(CONFIG_DIR, '.secret_key')

    if os.path.exists(secret_key_file):
        try:
            with open(secret_key_file, 'r') as f:
                key = f.read().strip()
                if len(key) == 64:
                    return key
                logger.warning("Invalid secret key found, generating new one")
        except OSError as e:
            logger.error(f"Error reading secret key: {e}")

    key = secrets.token_hex(32)  # 32 bytes = 64 hex chars

    try:
        os.makedirs(CONFIG_DIR, exist_ok=True)
        with open(secret_key_file, 'w') as f:
            f.write(key)
        os.chmod(secret_key_file, 0o600)
        logger.info("Generated new secret key and saved to disk")
    except OSError as e:
        logger.error(f"Error saving secret key: {e}")
        logger.warning("Using non-persistent secret key")

    return key


def sanitize_sensitive_data(data, sensitive_keys=None):
    """
    Remove or mask sensitive data before logging.

    Args:
        data: Dictionary, list or other data to sanitize
        sensitive_keys: List of keys to mask (default: common sensitive keys)

    Returns:
        Sanitized version of the data
    """
    if sensitive_keys is None:
        sensitive_keys = [
            'password', 'passwd', 'pwd',
            'secret', 'api_key', 'apikey',
            'token', 'authorization',
        ]

    if isinstance(data, dict):
        sanitized = {}
        for k, v in data.items():
            key_lower = str(k).lower()
            if any(sens in key_lower for sens in sensitive_keys):
                if isinstance(v, str) and len(v) > 4:
                    sanitized[k] = f"{v[:2]}***{v[-2:]}"
                else:
                    sanitized[k] = "***"
            elif isinstance(v, (dict, list)):
                sanitized[k] = sanitize_sensitive_data(v, sensitive_keys)
            else:
                sanitized[k] = v
        return sanitized

    if isinstance(data, list):
        return [sanitize_sensitive_data(item, sensitive_keys) if isinstance(item, (dict, list)) else item for item in data]

    return data


def now_utc():
    """Returns current datetime in UTC (aware)"""
    return datetime.now(timezone.utc)


def ensure_utc(dt):
    """
    Ensure a datetime object is aware and in UTC.
    Handles ISO strings, None, and naive datetimes.
    """
    if dt is None:
        return None

    if isinstance(dt, str):
        try:
            dt = datetime.fromisoformat(dt.replace('Z', '+00:00'))
        except (ValueError, TypeError, AttributeError):
            return None

    if not hasattr(dt, 'tzinfo'):
        return None

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)

    return dt.astimezone(timezone.utc)


def parse_date(value):
    """Parse a calendar date from a date, datetime or 'YYYY-MM-DD' string.

    Returns None for empty values and raises ValueError for garbage.
    """
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def parse_year(value):
    """Year from a provider date string such as '1999-10-15', or None."""
    if not value:
        return None
    match = re.match(r'^(\d{4})', str(value))
    return int(match.group(1)) if match else None


def format_datetime(dt):
    if dt is None:
        return None
    dt = ensure_utc(dt)
    return dt.isoformat() if dt else None
