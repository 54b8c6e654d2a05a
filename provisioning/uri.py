"""
Build and parse ``otpauth://hotp/`` provisioning URIs.

Reference: https://github.com/google/google-authenticator/wiki/Key-Uri-Format
"""

import urllib.parse
from dataclasses import dataclass
from typing import Optional

from core.hotp import DEFAULT_DIGITS, Algorithm
from core.session import HotpSession
from core.utils import (
    decode_secret,
    encode_secret,
    normalize_secret,
    sanitise_label,
    validate_digits,
)
from provisioning.config import IssuerConfig


@dataclass
class HotpURI:
    """Parsed representation of an otpauth://hotp URI."""

    label: str          # full label (issuer:account or just account)
    secret: str         # normalised base32 secret
    issuer: str         # issuer parameter (may be empty)
    account_name: str   # account name extracted from label
    algorithm: Algorithm = Algorithm.SHA1
    digits: int = DEFAULT_DIGITS
    counter: int = 0

    def to_session(self, look_ahead_window: int = 0) -> HotpSession:
        """Create a verifier session seeded from this URI."""
        return HotpSession(
            decode_secret(self.secret),
            counter=self.counter,
            digits=self.digits,
            algorithm=self.algorithm,
            look_ahead_window=look_ahead_window,
        )


def parse_hotp_uri(uri: str) -> HotpURI:
    """
    Parse and validate an ``otpauth://hotp/`` URI.

    Args:
        uri: Full otpauth URI string.

    Returns:
        Populated :class:`HotpURI` dataclass.

    Raises:
        ValueError: If the URI is malformed or contains invalid values.
            Unknown algorithms raise
            :class:`~core.errors.UnsupportedAlgorithmError` and bad digit
            counts :class:`~core.errors.ConfigurationError`, both of which
            are ``ValueError`` subclasses.
    """
    parsed = urllib.parse.urlparse(uri.strip())

    if parsed.scheme.lower() != "otpauth":
        raise ValueError(f"Expected 'otpauth' scheme, got '{parsed.scheme}'.")

    otp_type = parsed.netloc.lower()
    if otp_type != "hotp":
        raise ValueError(f"Unsupported OTP type '{otp_type}'. Expected hotp.")

    raw_label = urllib.parse.unquote(parsed.path.lstrip("/"))
    if not raw_label:
        raise ValueError("Missing label in otpauth URI.")

    # "Issuer:AccountName"
    if ":" in raw_label:
        label_issuer, account_name = raw_label.split(":", 1)
        label_issuer = sanitise_label(label_issuer.strip())
    else:
        label_issuer = ""
        account_name = raw_label
    account_name = sanitise_label(account_name.strip())

    params = dict(urllib.parse.parse_qsl(parsed.query))

    raw_secret = params.get("secret", "")
    if not raw_secret:
        raise ValueError("Missing 'secret' parameter in otpauth URI.")
    secret = normalize_secret(raw_secret)

    # query param wins over the label prefix
    issuer = sanitise_label(params.get("issuer", label_issuer).strip())

    algorithm = Algorithm.parse(params.get("algorithm", Algorithm.SHA1.value))

    try:
        digits = int(params.get("digits", DEFAULT_DIGITS))
    except ValueError:
        raise ValueError("'digits' must be an integer.")
    validate_digits(digits)

    raw_counter = params.get("counter")
    if raw_counter is None:
        raise ValueError("HOTP URI requires a 'counter' parameter.")
    try:
        counter = int(raw_counter)
    except ValueError:
        raise ValueError("'counter' must be an integer.")
    if counter < 0:
        raise ValueError("'counter' must be non-negative.")

    full_label = f"{issuer}:{account_name}" if issuer else account_name

    return HotpURI(
        label=full_label,
        secret=secret,
        issuer=issuer,
        account_name=account_name,
        algorithm=algorithm,
        digits=digits,
        counter=counter,
    )


def build_hotp_uri(
    session: HotpSession,
    config: Optional[IssuerConfig] = None,
    account_name: str = "",
) -> str:
    """
    Serialise a session's current state as an otpauth://hotp URI.

    Args:
        session:      Session to describe. Only its public getters are read.
        config:       Issuer settings; defaults to ``IssuerConfig()``.
        account_name: Optional account shown after the issuer in the label.

    Returns:
        ``otpauth://hotp/<label>?secret=...&algorithm=...&digits=...&counter=...``
    """
    config = config or IssuerConfig()
    issuer = sanitise_label(config.issuer)
    account_name = sanitise_label(account_name)

    if issuer and account_name:
        label = f"{issuer}:{account_name}"
    else:
        label = account_name or issuer

    params: dict = {
        "secret": encode_secret(session.secret),
        "algorithm": session.algorithm.value,
        "digits": str(session.digits),
        "counter": str(session.counter),
    }
    if issuer:
        params["issuer"] = issuer

    query = urllib.parse.urlencode(params)
    label_encoded = urllib.parse.quote(label, safe="")
    return f"otpauth://hotp/{label_encoded}?{query}"
