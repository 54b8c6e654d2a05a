"""
Stateful HOTP verifier with look-ahead resynchronisation (RFC 4226 §7.4).

Counter advance rule
--------------------
``validate`` moves the counter differently depending on where the match was
found:

* match at the current counter ``c``      -> counter becomes ``c + 1``
* match at ``c + i`` inside the window    -> counter becomes ``c + i``

The look-ahead branch lands *on* the matched counter, not one past it.
Callers that treat the stored counter as "next value the client will use"
may need to call :meth:`HotpSession.increment_counter` after a look-ahead
match. Both branches are covered by tests; keep them as they are.

Sessions are not thread-safe. ``validate`` reads and then conditionally
writes the counter, so concurrent callers must hold a lock per session.
"""

import logging
from typing import Union

from core.errors import ConfigurationError
from core.hotp import (
    DEFAULT_DIGITS,
    MAX_COUNTER,
    Algorithm,
    canonical_code,
    check_counter,
    check_secret,
    dynamic_truncate,
    format_code,
)
from core.utils import constant_time_compare, validate_digits

logger = logging.getLogger(__name__)

MAX_LOOK_AHEAD = 10


class HotpSession:
    """
    One shared secret plus its moving counter.

    Usage::

        session = HotpSession(secret, counter=0, digits=6)
        session.look_ahead_window = 5
        if session.validate(user_input):
            persist(session.counter)
    """

    def __init__(
        self,
        secret: bytes,
        counter: int = 0,
        digits: int = DEFAULT_DIGITS,
        algorithm: Union[Algorithm, str] = Algorithm.SHA1,
        look_ahead_window: int = 0,
    ) -> None:
        """
        Args:
            secret:            Raw shared secret (non-empty).
            counter:           Initial counter, 0 <= counter < 2**64.
            digits:            Code length, 1-9. Fixed for the session.
            algorithm:         SHA1, SHA256 or SHA512.
            look_ahead_window: Future counters probed on mismatch, 0-10.
        """
        check_secret(secret)
        validate_digits(digits)
        self._secret = bytes(secret)
        self._digits = digits
        self._counter = 0
        self._algorithm = Algorithm.SHA1
        self._look_ahead_window = 0

        self.counter = counter
        self.algorithm = algorithm
        self.look_ahead_window = look_ahead_window

    def __repr__(self) -> str:
        return (
            f"HotpSession(counter={self._counter}, digits={self._digits}, "
            f"algorithm={self._algorithm.value}, "
            f"look_ahead_window={self._look_ahead_window})"
        )

    # ── Properties ───────────────────────────────────────────────────────

    @property
    def secret(self) -> bytes:
        return self._secret

    @property
    def digits(self) -> int:
        return self._digits

    @property
    def counter(self) -> int:
        return self._counter

    @counter.setter
    def counter(self, value: int) -> None:
        check_counter(value)
        self._counter = value

    @property
    def algorithm(self) -> Algorithm:
        return self._algorithm

    @algorithm.setter
    def algorithm(self, value: Union[Algorithm, str]) -> None:
        # parse before assigning so a bad id leaves the session untouched
        self._algorithm = Algorithm.parse(value)

    @property
    def look_ahead_window(self) -> int:
        return self._look_ahead_window

    @look_ahead_window.setter
    def look_ahead_window(self, size: int) -> None:
        if isinstance(size, bool) or not isinstance(size, int):
            raise ConfigurationError("Look-ahead window must be an integer.")
        if size < 0 or size > MAX_LOOK_AHEAD:
            raise ConfigurationError(
                f"Look-ahead window must be between 0 and {MAX_LOOK_AHEAD}, got {size}."
            )
        self._look_ahead_window = size

    # ── Setters (method form) ────────────────────────────────────────────

    def set_look_ahead_window(self, size: int) -> None:
        """Set the look-ahead window; raises :class:`ConfigurationError` if > 10."""
        self.look_ahead_window = size

    def set_algorithm(self, algorithm: Union[Algorithm, str]) -> None:
        """Switch the HMAC algorithm; raises :class:`UnsupportedAlgorithmError`."""
        self.algorithm = algorithm

    def set_counter(self, counter: int) -> None:
        self.counter = counter

    def get_counter(self) -> int:
        return self._counter

    def increment_counter(self) -> None:
        self.counter = self._counter + 1

    # ── Codes ────────────────────────────────────────────────────────────

    def code_at(self, counter: int) -> str:
        """Code for an arbitrary ``counter`` under this session's settings."""
        return format_code(
            dynamic_truncate(self._secret, counter, self._algorithm), self._digits
        )

    def calculate(self) -> str:
        """Code for the current counter. Does not advance the counter."""
        return self.code_at(self._counter)

    def validate(self, code: Union[int, str]) -> bool:
        """
        Check a client-submitted code, resynchronising on a look-ahead hit.

        Returns:
            True if ``code`` matched the current counter or one of the next
            ``look_ahead_window`` counters. The counter is only modified on
            success (see module docstring for the advance rule).
        """
        submitted = canonical_code(code, self._digits)

        if constant_time_compare(submitted, self.calculate()):
            self.increment_counter()
            return True

        if self._look_ahead_window == 0:
            logger.debug("HOTP mismatch at counter %d (no look-ahead)", self._counter)
            return False

        for i in range(1, self._look_ahead_window + 1):
            candidate = self._counter + i
            if candidate > MAX_COUNTER:
                break
            if constant_time_compare(submitted, self.code_at(candidate)):
                logger.info(
                    "HOTP counter resynchronised from %d to %d",
                    self._counter,
                    candidate,
                )
                self._counter = candidate
                return True

        logger.debug(
            "HOTP mismatch at counter %d (look-ahead %d)",
            self._counter,
            self._look_ahead_window,
        )
        return False
