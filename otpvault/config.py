"""
config.py — default parameters and environment-driven settings.

Defaults for tokens created by hand live here as plain constants; paths and
keys for the adapters come from the environment (``.env`` is honoured).
"""

import os

from dotenv import load_dotenv

# --- Token defaults ----------------------------------------------------------
DEFAULT_DIGITS = 6          # standard passcode length
DEFAULT_PERIOD = 30         # TOTP step (seconds)
DEFAULT_COUNTER = 0         # HOTP starting counter
DEFAULT_ALGORITHM = "SHA1"
MIN_DIGITS = 1
MAX_DIGITS = 9              # 10^9 still fits a 31-bit truncated hash

# --- Adapter defaults ----------------------------------------------------------
DATABASE_FILE = "otpvault.db"
REFS_FILE = "otpvault_refs.json"
KEY_FILE = "otpvault.key"


class Config:
    """Settings read from the environment; one instance per application."""

    def __init__(self, **overrides):
        load_dotenv()
        self.DATABASE = os.environ.get("OTPVAULT_DATABASE", DATABASE_FILE)
        self.REFS_FILE = os.environ.get("OTPVAULT_REFS_FILE", REFS_FILE)
        self.KEY_FILE = os.environ.get("OTPVAULT_KEY_FILE", KEY_FILE)
        # Inline key wins over the key file
        self.FERNET_KEY = os.environ.get("OTPVAULT_FERNET_KEY")
        self.LOG_LEVEL = os.environ.get("OTPVAULT_LOG_LEVEL", "INFO")
        self.SECRET_KEY = os.environ.get("SECRET_KEY", "otpvault-dev")
        for name, value in overrides.items():
            setattr(self, name, value)
