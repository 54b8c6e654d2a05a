"""
HOTP (HMAC-based One-Time Password) implementation following RFC 4226.

Pipeline::

    counter --(8 bytes, big-endian)--> HMAC(secret) --> dynamic truncation
            --> 31-bit int --> mod 10^digits --> zero-padded string

The functions here are pure; :class:`core.session.HotpSession` wraps them
with counter state and look-ahead resynchronisation.
"""

import struct
from enum import Enum
from typing import Union

from cryptography.exceptions import InternalError, UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.hmac import HMAC

from core.errors import InternalHashFailure, UnsupportedAlgorithmError
from core.utils import constant_time_compare, validate_digits

DEFAULT_DIGITS = 6
MAX_COUNTER = 2**64 - 1


class Algorithm(str, Enum):
    """Supported HMAC algorithms."""

    SHA1 = "SHA1"
    SHA256 = "SHA256"
    SHA512 = "SHA512"

    @classmethod
    def parse(cls, value: Union["Algorithm", str]) -> "Algorithm":
        """
        Resolve ``value`` to a member.

        Accepts a member or a case-insensitive name, with or without a dash
        (``"sha1"``, ``"SHA-256"``).

        Raises:
            UnsupportedAlgorithmError: For anything outside the closed set.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            name = value.strip().upper().replace("-", "")
            try:
                return cls(name)
            except ValueError:
                pass
        raise UnsupportedAlgorithmError(
            f"Unsupported algorithm {value!r}. Supported: SHA1, SHA256, SHA512."
        )

    @property
    def digest_size(self) -> int:
        """HMAC output length in bytes (20, 32 or 64)."""
        return _HASHES[self].digest_size


_HASHES: dict[Algorithm, type] = {
    Algorithm.SHA1: hashes.SHA1,
    Algorithm.SHA256: hashes.SHA256,
    Algorithm.SHA512: hashes.SHA512,
}


# ── Truncation engine ─────────────────────────────────────────────────────────

def check_secret(secret: bytes) -> None:
    """Raise if ``secret`` is not a non-empty byte string."""
    if not isinstance(secret, (bytes, bytearray)):
        raise TypeError(f"Secret must be bytes, got {type(secret).__name__}.")
    if not secret:
        raise ValueError("Secret must not be empty.")


def check_counter(counter: int) -> None:
    """Raise if ``counter`` is not a 64-bit unsigned integer."""
    if isinstance(counter, bool) or not isinstance(counter, int):
        raise TypeError(f"Counter must be an int, got {type(counter).__name__}.")
    if counter < 0 or counter > MAX_COUNTER:
        raise ValueError(f"Counter must be between 0 and {MAX_COUNTER}.")


def hmac_digest(
    secret: bytes,
    counter: int,
    algorithm: Algorithm = Algorithm.SHA1,
) -> bytes:
    """
    HMAC of the 8-byte big-endian ``counter`` under ``secret``.

    Raises:
        InternalHashFailure: If the HMAC backend itself fails.
    """
    check_secret(secret)
    check_counter(counter)
    msg = struct.pack(">Q", counter)
    try:
        mac = HMAC(bytes(secret), _HASHES[Algorithm.parse(algorithm)]())
        mac.update(msg)
        return mac.finalize()
    except (UnsupportedAlgorithm, InternalError) as exc:
        raise InternalHashFailure(f"HMAC computation failed: {exc}") from exc


def truncate_digest(digest: bytes) -> int:
    """
    Dynamic truncation (RFC 4226 §5.3) of an HMAC digest.

    The low nibble of the last byte selects a 4-byte window; the top bit of
    the window is cleared so the result lies in ``[0, 2**31 - 1]``.

    Raises:
        InternalHashFailure: If the window runs past the end of ``digest``.
            Digests of 20 bytes or more can never trigger this.
    """
    offset = digest[-1] & 0x0F
    if offset + 4 > len(digest):
        raise InternalHashFailure(
            f"Truncation offset {offset} out of range for a "
            f"{len(digest)}-byte digest."
        )
    return (
        (digest[offset] & 0x7F) << 24
        | (digest[offset + 1] & 0xFF) << 16
        | (digest[offset + 2] & 0xFF) << 8
        | (digest[offset + 3] & 0xFF)
    )


def dynamic_truncate(
    secret: bytes,
    counter: int,
    algorithm: Algorithm = Algorithm.SHA1,
) -> int:
    """Return the 31-bit truncated HMAC value for ``counter``."""
    return truncate_digest(hmac_digest(secret, counter, algorithm))


# ── Code formatter ────────────────────────────────────────────────────────────

def format_code(value: int, digits: int = DEFAULT_DIGITS) -> str:
    """
    Reduce ``value`` modulo ``10**digits`` and zero-pad it.

    Example::

        >>> format_code(82, 6)
        '000082'
        >>> format_code(1234567, 6)
        '234567'
    """
    validate_digits(digits)
    return f"{value % 10**digits:0{digits}d}"


def canonical_code(code: Union[int, str], digits: int = DEFAULT_DIGITS) -> str:
    """
    Canonical, zero-padded string form of a submitted code.

    Integers are padded but not reduced, so an integer longer than
    ``digits`` stays longer and can never match. Strings are stripped of
    whitespace (including display grouping such as ``"755 224"``) and
    left-padded with zeros.

    Raises:
        TypeError: If ``code`` is neither ``int`` nor ``str``.
    """
    validate_digits(digits)
    if isinstance(code, bool):
        raise TypeError("Code must be an int or str, not bool.")
    if isinstance(code, int):
        return f"{code:0{digits}d}"
    if isinstance(code, str):
        return "".join(code.split()).zfill(digits)
    raise TypeError(f"Code must be an int or str, got {type(code).__name__}.")


# ── One-shot helpers ──────────────────────────────────────────────────────────

def generate_hotp(
    secret_bytes: bytes,
    counter: int,
    digits: int = DEFAULT_DIGITS,
    algorithm: Algorithm = Algorithm.SHA1,
) -> str:
    """
    Generate an HOTP code.

    Args:
        secret_bytes: Raw decoded secret bytes.
        counter:      Synchronisation counter value.
        digits:       Number of OTP digits (1-9).
        algorithm:    HMAC algorithm.

    Returns:
        Zero-padded OTP string.
    """
    validate_digits(digits)
    return format_code(dynamic_truncate(secret_bytes, counter, algorithm), digits)


def validate_hotp(
    token: Union[int, str],
    secret_bytes: bytes,
    counter: int,
    digits: int = DEFAULT_DIGITS,
    algorithm: Algorithm = Algorithm.SHA1,
) -> bool:
    """
    Check ``token`` against the code for exactly ``counter``.

    Stateless: there is no look-ahead and nothing is advanced. Use
    :class:`core.session.HotpSession` for resynchronising validation.
    """
    expected = generate_hotp(secret_bytes, counter, digits, algorithm)
    return constant_time_compare(canonical_code(token, digits), expected)
