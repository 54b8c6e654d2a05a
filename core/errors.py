"""
Exception hierarchy for HOTP generation and validation.

A code that simply does not match is *not* an error: validation returns
``False`` in that case. The classes below are reserved for misconfiguration
and for faults in the keyed-hash layer.
"""


class HotpError(Exception):
    """Base class for all HOTP errors."""


class ConfigurationError(HotpError, ValueError):
    """Raised for an out-of-range look-ahead window or digit count."""


class UnsupportedAlgorithmError(HotpError, ValueError):
    """Raised when a hash algorithm outside SHA1/SHA256/SHA512 is requested."""


class InternalHashFailure(HotpError, RuntimeError):
    """
    The keyed-hash primitive failed, or dynamic truncation found its 4-byte
    window outside the digest.

    Should never be observed with valid inputs. Treat it as a defect; it is
    not worth retrying.
    """
