"""
Utility helpers for secrets, labels and code display.
"""

import base64
import hmac
import re
import secrets
import unicodedata

from core.errors import ConfigurationError

SECRET_SIZE = 20        # 160-bit secret, RFC 4226 §4 R6 recommendation
MIN_DIGITS = 1
MAX_DIGITS = 9          # 10**10 exceeds the 31-bit truncated value


# ── Secrets ───────────────────────────────────────────────────────────────────

def generate_secret(length: int = SECRET_SIZE) -> bytes:
    """
    Return ``length`` cryptographically random bytes.

    RFC 4226 requires at least 16 bytes and recommends 20.

    Raises:
        ValueError: If ``length`` is less than 1.
    """
    if length < 1:
        raise ValueError("Secret length must be at least 1 byte.")
    return secrets.token_bytes(length)


# ── Base32 ────────────────────────────────────────────────────────────────────

def normalize_secret(secret: str) -> str:
    """
    Normalise a base32 secret: strip spaces, uppercase, add padding.

    Args:
        secret: Raw user-supplied secret string.

    Returns:
        Uppercase base32 string with correct padding.

    Raises:
        ValueError: If the string contains invalid base32 characters.
    """
    secret = secret.strip().upper().replace(" ", "").replace("-", "")
    # Base32 alphabet: A-Z and 2-7
    if not re.fullmatch(r"[A-Z2-7=]+", secret):
        raise ValueError("Secret contains invalid base32 characters.")
    secret = secret.rstrip("=")
    pad = (8 - len(secret) % 8) % 8
    return secret + "=" * pad


def decode_secret(secret: str) -> bytes:
    """
    Decode a base32-encoded secret string to raw bytes.

    Args:
        secret: Base32 secret (spaces and dashes are stripped).

    Returns:
        Raw bytes.

    Raises:
        ValueError: On invalid base32 input.
    """
    try:
        return base64.b32decode(normalize_secret(secret), casefold=True)
    except Exception as exc:
        raise ValueError(f"Invalid base32 secret: {exc}") from exc


def encode_secret(raw: bytes) -> str:
    """Encode raw bytes as a base32 string (no padding)."""
    return base64.b32encode(raw).decode("ascii").rstrip("=")


def constant_time_compare(a: str, b: str) -> bool:
    """Return True if *a* == *b* in constant time (timing-safe)."""
    return hmac.compare_digest(a.encode(), b.encode())


# ── Labels ────────────────────────────────────────────────────────────────────

def sanitise_label(text: str) -> str:
    """Remove control characters and limit label length."""
    text = unicodedata.normalize("NFC", text)
    text = "".join(ch for ch in text if unicodedata.category(ch)[0] != "C")
    return text[:128].strip()


# ── Display ───────────────────────────────────────────────────────────────────

def format_otp(code: str, group: int = 3) -> str:
    """
    Format an OTP code with spaces for readability.

    Example::

        >>> format_otp("123456")
        "123 456"

    Args:
        code:  Digit string.
        group: Digit grouping size.

    Returns:
        Spaced OTP string.
    """
    return " ".join(code[i : i + group] for i in range(0, len(code), group))


# ── Validation ────────────────────────────────────────────────────────────────

def validate_digits(digits: int) -> None:
    if isinstance(digits, bool) or not isinstance(digits, int):
        raise ConfigurationError("Digits must be an integer.")
    if digits < MIN_DIGITS or digits > MAX_DIGITS:
        raise ConfigurationError(
            f"Digits must be between {MIN_DIGITS} and {MAX_DIGITS}."
        )
