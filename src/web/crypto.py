"""Fernet helpers for per-user secrets (Gemini / LLM API keys) stored in SQLite."""

import structlog
from cryptography.fernet import Fernet, InvalidToken

logger = structlog.get_logger()


def _get_fernet(secret_key: str | bytes) -> Fernet:
    """Create Fernet instance from SECRET_KEY (must be 32-byte url-safe base64)."""
    return Fernet(secret_key.encode() if isinstance(secret_key, str) else secret_key)


def encrypt_value(secret_key: str, value: str) -> str:
    """Encrypt a single string, return url-safe token text."""
    return _get_fernet(secret_key).encrypt(value.encode()).decode()


def decrypt_value(secret_key: str, token: str, key_name: str = "") -> str | None:
    """Decrypt a token produced by encrypt_value.

    Returns None when the token was written with a different SECRET_KEY or is
    corrupt, so one bad row doesn't break the rest of a user's settings.
    """
    try:
        return _get_fernet(secret_key).decrypt(token.encode()).decode()
    except InvalidToken:
        logger.warning("crypto.decrypt_failed", key_name=key_name)
        return None


def generate_key() -> str:
    """New SECRET_KEY value for `personasim init`."""
    return Fernet.generate_key().decode()
