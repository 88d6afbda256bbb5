"""
Application configuration settings.
"""
import os
import sys
from pathlib import Path

# Base directory
BASE_DIR = Path(__file__).resolve().parent.parent

# Load .env file if it exists (for local development)
env_file = BASE_DIR / ".env"
if env_file.exists():
    with open(env_file) as f:
        for line in f:
            line = line.strip()
            if line and not line.startswith('#') and '=' in line:
                key, value = line.split('=', 1)
                os.environ.setdefault(key.strip(), value.strip())

APP_NAME = "ChitFund Ledger"
APP_VERSION = "1.0.0"

# Packaged builds (PyInstaller and friends) set sys.frozen
IS_PACKAGED = bool(getattr(sys, "frozen", False))
ENVIRONMENT = os.getenv("CHITFUND_ENV", "production" if IS_PACKAGED else "development")
IS_DEVELOPMENT = ENVIRONMENT == "development"

DATABASE_FILENAME = "chitfund.db"


def get_user_data_dir() -> Path:
    """Per-user application data directory used by packaged builds."""
    if os.name == 'nt':
        appdata = os.getenv('APPDATA') or os.path.expanduser('~\\AppData\\Roaming')
        return Path(appdata) / 'ChitFund'
    return Path(os.path.expanduser('~')) / '.chitfund'


def get_bundled_resources_dir() -> Path:
    """Directory holding read-only resources shipped with the build."""
    return Path(getattr(sys, "_MEIPASS", BASE_DIR))


# Database
if os.getenv("CHITFUND_DATABASE_PATH"):
    DATABASE_PATH = Path(os.environ["CHITFUND_DATABASE_PATH"])
elif IS_DEVELOPMENT:
    DATABASE_PATH = BASE_DIR / DATABASE_FILENAME
else:
    DATABASE_PATH = get_user_data_dir() / DATABASE_FILENAME

BUNDLED_DATABASE_PATH = get_bundled_resources_dir() / "database" / DATABASE_FILENAME

# Security
SECRET_KEY = os.getenv("SECRET_KEY", "chitfund-secret-key-change-in-production")
SESSION_COOKIE_NAME = "chitfund_session"
SESSION_MAX_AGE = 60 * 60 * 24  # 24 hours in seconds
MAX_LOGIN_ATTEMPTS = int(os.getenv("MAX_LOGIN_ATTEMPTS", "5"))
LOCKOUT_DURATION = int(os.getenv("LOCKOUT_DURATION", "15"))  # minutes

# Seeded on first boot when the username is absent. Change the password
# with scripts/create_admin.py after installing.
DEFAULT_ADMIN_USERNAME = os.getenv("DEFAULT_ADMIN_USERNAME", "admin")
DEFAULT_ADMIN_PASSWORD = os.getenv("DEFAULT_ADMIN_PASSWORD", "admin123")
DEFAULT_ADMIN_EMAIL = os.getenv("DEFAULT_ADMIN_EMAIL", "admin@nxq.com")

# Customer codes
CUSTOMER_CODE_PREFIX = os.getenv("CUSTOMER_CODE_PREFIX", "GD7")
# Prefix and number separated by a space or hyphen ("GD7 001", "GOLD-12");
# unseparated codes are accepted only with CUSTOMER_CODE_PREFIX ("GD7001").
CUSTOMER_CODE_PATTERN = r"^[A-Za-z][A-Za-z0-9]*[ -](\d+)$"
CUSTOMER_CODE_MIN = int(os.getenv("CUSTOMER_CODE_MIN", "1"))
CUSTOMER_CODE_MAX = int(os.getenv("CUSTOMER_CODE_MAX", "9999"))

# Digits, spaces, +, -, parentheses; 7 to 15 characters
PHONE_PATTERN = r"^[0-9+\-() ]{7,15}$"

DEFAULT_START_DATE = os.getenv("DEFAULT_START_DATE", "2024-12-15")
CURRENCY_SYMBOL = os.getenv("CURRENCY_SYMBOL", "₹")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
