"""otpvault: HOTP/TOTP passcode manager with an encrypted secret store."""

__version__ = "0.1.0"
