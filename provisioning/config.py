"""
Issuer configuration for provisioning URIs.

The issuer is display metadata only; it never influences code generation.
It is passed explicitly to :func:`provisioning.uri.build_hotp_uri` rather
than held in module state.
"""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from core.utils import sanitise_label

DEFAULT_ISSUER = "hotp"
ISSUER_ENV_VAR = "ISSUER"


@dataclass(frozen=True)
class IssuerConfig:
    """Name shown by authenticator apps next to the account."""

    issuer: str = DEFAULT_ISSUER

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "IssuerConfig":
        """
        Build a config from the ``ISSUER`` environment variable.

        Falls back to ``"hotp"`` when the variable is unset, blank, or only
        contains characters stripped by :func:`core.utils.sanitise_label`.

        Args:
            environ: Mapping to read instead of ``os.environ`` (for tests).
        """
        env = os.environ if environ is None else environ
        issuer = sanitise_label(env.get(ISSUER_ENV_VAR, ""))
        return cls(issuer=issuer or DEFAULT_ISSUER)
