"""Tests for core.hotp."""

import pytest
from cryptography.exceptions import UnsupportedAlgorithm

import core.hotp
from core.errors import ConfigurationError, InternalHashFailure, UnsupportedAlgorithmError
from core.hotp import (
    MAX_COUNTER,
    Algorithm,
    canonical_code,
    dynamic_truncate,
    format_code,
    generate_hotp,
    hmac_digest,
    truncate_digest,
    validate_hotp,
)


# ── RFC 4226 Appendix D test vectors ─────────────────────────────────────────
# Secret: "12345678901234567890" (as bytes)
RFC_SECRET = b"12345678901234567890"

RFC_HMAC = [
    "cc93cf18508d94934c64b65d8ba7667fb7cde4b0",
    "75a48a19d4cbe100644e8ac1397eea747a2d33ab",
    "0bacb7fa082fef30782211938bc1c5e70416ff44",
    "66c28227d03a2d5529262ff016a1e6ef76557ece",
    "a904c900a64b35909874b33e61c5938a8e15ed1c",
    "a37e783d7b7233c083d4f62926c7a25f238d0316",
    "bc9cd28561042c83f219324d3c607256c03272ae",
    "a4fb960c0bc06e1eabb804e5b397cdc4b45596fa",
    "1b3c89f65e6c9e883012052823443f048b4332db",
    "1637409809a679dc698207310c8c7fc07290d9e5",
]
RFC_TRUNCATED = [
    1284755224, 1094287082, 137359152, 1726969429, 1640338314,
    868254676, 1918287922, 82162583, 673399871, 645520489,
]
RFC_HOTP_8 = [
    "84755224", "94287082", "37359152", "26969429", "40338314",
    "68254676", "18287922", "82162583", "73399871", "45520489",
]
RFC_HOTP_7 = [
    "4755224", "4287082", "7359152", "6969429", "0338314",
    "8254676", "8287922", "2162583", "3399871", "5520489",
]
RFC_HOTP_6 = [
    "755224", "287082", "359152", "969429", "338314",
    "254676", "287922", "162583", "399871", "520489",
]


@pytest.mark.parametrize("counter,expected", enumerate(RFC_HMAC))
def test_hmac_digest_rfc4226(counter: int, expected: str) -> None:
    assert hmac_digest(RFC_SECRET, counter).hex() == expected


@pytest.mark.parametrize("counter,expected", enumerate(RFC_TRUNCATED))
def test_dynamic_truncate_rfc4226(counter: int, expected: int) -> None:
    assert dynamic_truncate(RFC_SECRET, counter) == expected


@pytest.mark.parametrize(
    "digits,table", [(8, RFC_HOTP_8), (7, RFC_HOTP_7), (6, RFC_HOTP_6)]
)
def test_hotp_rfc4226_vectors(digits: int, table: list) -> None:
    for counter, expected in enumerate(table):
        code = generate_hotp(RFC_SECRET, counter=counter, digits=digits)
        assert code == expected, f"HOTP counter={counter}: got {code}, expected {expected}"


def test_seven_digit_code_keeps_leading_zero() -> None:
    assert generate_hotp(RFC_SECRET, counter=4, digits=7) == "0338314"


# ── Algorithms ────────────────────────────────────────────────────────────────
# RFC 6238 Appendix B secrets and values, used here as plain HOTP counters
# (T // 30).

SHA1_SECRET = b"12345678901234567890"
SHA256_SECRET = b"12345678901234567890123456789012"
SHA512_SECRET = b"1234567890123456789012345678901234567890123456789012345678901234"

_ALG_VECTORS = [
    # (counter,   algorithm,        secret,        expected)
    (1,           Algorithm.SHA1,   SHA1_SECRET,   "94287082"),
    (1,           Algorithm.SHA256, SHA256_SECRET, "46119246"),
    (1,           Algorithm.SHA512, SHA512_SECRET, "90693936"),
    (37037036,    Algorithm.SHA1,   SHA1_SECRET,   "07081804"),
    (37037036,    Algorithm.SHA256, SHA256_SECRET, "68084774"),
    (37037036,    Algorithm.SHA512, SHA512_SECRET, "25091201"),
    (37037037,    Algorithm.SHA1,   SHA1_SECRET,   "14050471"),
    (37037037,    Algorithm.SHA256, SHA256_SECRET, "67062674"),
    (37037037,    Algorithm.SHA512, SHA512_SECRET, "99943326"),
    (666666666,   Algorithm.SHA1,   SHA1_SECRET,   "65353130"),
    (666666666,   Algorithm.SHA256, SHA256_SECRET, "77737706"),
    (666666666,   Algorithm.SHA512, SHA512_SECRET, "47863826"),
]


@pytest.mark.parametrize("counter,alg,secret,expected", _ALG_VECTORS)
def test_hotp_algorithm_vectors(
    counter: int, alg: Algorithm, secret: bytes, expected: str
) -> None:
    assert generate_hotp(secret, counter, digits=8, algorithm=alg) == expected


@pytest.mark.parametrize(
    "alg,size", [(Algorithm.SHA1, 20), (Algorithm.SHA256, 32), (Algorithm.SHA512, 64)]
)
def test_digest_size(alg: Algorithm, size: int) -> None:
    assert alg.digest_size == size
    assert len(hmac_digest(RFC_SECRET, 0, alg)) == size


def test_algorithms_produce_different_codes() -> None:
    sha1 = generate_hotp(RFC_SECRET, 0, digits=8, algorithm=Algorithm.SHA1)
    sha256 = generate_hotp(RFC_SECRET, 0, digits=8, algorithm=Algorithm.SHA256)
    assert sha1 != sha256
    assert sha256 == generate_hotp(RFC_SECRET, 0, digits=8, algorithm=Algorithm.SHA256)


@pytest.mark.parametrize(
    "name,expected",
    [
        ("SHA1", Algorithm.SHA1),
        ("sha256", Algorithm.SHA256),
        ("SHA-512", Algorithm.SHA512),
        (Algorithm.SHA256, Algorithm.SHA256),
    ],
)
def test_algorithm_parse(name: str, expected: Algorithm) -> None:
    assert Algorithm.parse(name) is expected


@pytest.mark.parametrize("name", ["MD5", "sha3", "", 1])
def test_algorithm_parse_rejects_unknown(name) -> None:
    with pytest.raises(UnsupportedAlgorithmError):
        Algorithm.parse(name)


def test_generate_hotp_accepts_algorithm_name() -> None:
    assert generate_hotp(SHA256_SECRET, 1, digits=8, algorithm="sha256") == "46119246"


# ── Truncation ────────────────────────────────────────────────────────────────

def test_truncate_digest_rfc_example() -> None:
    # RFC 4226 §5.4 worked example
    digest = bytes.fromhex("1f8698690e02ca16618550ef7f19da8e945b555a")
    assert truncate_digest(digest) == 0x50EF7F19
    assert format_code(truncate_digest(digest), 6) == "872921"


def test_truncate_digest_clears_sign_bit() -> None:
    digest = b"\xff" * 19 + b"\xf0"
    assert truncate_digest(digest) == 2**31 - 1


def test_truncate_digest_uses_last_window() -> None:
    # offset 15 on a 20-byte digest reads bytes 15..18
    digest = bytes(range(15)) + b"\x81\x02\x03\x04" + b"\x0f"
    assert truncate_digest(digest) == 0x01020304


def test_truncate_digest_short_digest_is_internal_fault() -> None:
    with pytest.raises(InternalHashFailure, match="offset 15"):
        truncate_digest(b"\x00\x00\x00\x00\x0f")


def test_hmac_backend_failure_is_wrapped(monkeypatch: pytest.MonkeyPatch) -> None:
    class BrokenHMAC:
        def __init__(self, *args, **kwargs) -> None:
            raise UnsupportedAlgorithm("sha1 disabled")

    monkeypatch.setattr(core.hotp, "HMAC", BrokenHMAC)
    with pytest.raises(InternalHashFailure) as excinfo:
        generate_hotp(RFC_SECRET, 0)
    assert isinstance(excinfo.value.__cause__, UnsupportedAlgorithm)


# ── Input checks ──────────────────────────────────────────────────────────────

def test_empty_secret_rejected() -> None:
    with pytest.raises(ValueError, match="empty"):
        generate_hotp(b"", 0)


def test_text_secret_rejected() -> None:
    with pytest.raises(TypeError):
        generate_hotp("12345678901234567890", 0)  # type: ignore[arg-type]


def test_bytearray_secret_accepted() -> None:
    assert generate_hotp(bytearray(RFC_SECRET), 0) == "755224"


@pytest.mark.parametrize("counter", [-1, MAX_COUNTER + 1])
def test_counter_out_of_range(counter: int) -> None:
    with pytest.raises(ValueError, match="Counter"):
        generate_hotp(RFC_SECRET, counter)


def test_counter_upper_bound_accepted() -> None:
    code = generate_hotp(RFC_SECRET, MAX_COUNTER)
    assert len(code) == 6 and code.isdigit()


# ── Formatting ────────────────────────────────────────────────────────────────

def test_format_code_pads() -> None:
    assert format_code(82, 6) == "000082"


def test_format_code_reduces_modulo() -> None:
    assert format_code(1234567, 6) == "234567"
    assert format_code(1234567, 6) == format_code(1234567 % 1_000_000, 6)


def test_format_code_single_digit() -> None:
    assert format_code(1284755224, 1) == "4"


@pytest.mark.parametrize("digits", [0, 10, -1])
def test_format_code_rejects_bad_digits(digits: int) -> None:
    with pytest.raises(ConfigurationError):
        format_code(82, digits)


@pytest.mark.parametrize(
    "code,expected",
    [
        (42, "000042"),
        ("42", "000042"),
        (" 755224\n", "755224"),
        ("755 224", "755224"),
        (1234567, "1234567"),
    ],
)
def test_canonical_code(code, expected: str) -> None:
    assert canonical_code(code, 6) == expected


@pytest.mark.parametrize("code", [True, 1.0, None, b"755224"])
def test_canonical_code_rejects_other_types(code) -> None:
    with pytest.raises(TypeError):
        canonical_code(code, 6)


# ── One-shot validation ──────────────────────────────────────────────────────

def test_validate_hotp_string_and_int() -> None:
    assert validate_hotp("755224", RFC_SECRET, counter=0)
    assert validate_hotp(755224, RFC_SECRET, counter=0)


def test_validate_hotp_int_with_dropped_leading_zero() -> None:
    assert validate_hotp(338314, RFC_SECRET, counter=4, digits=7)


def test_validate_hotp_no_look_ahead() -> None:
    # code for counter 1 is not accepted at counter 0
    assert not validate_hotp("287082", RFC_SECRET, counter=0)


def test_validate_hotp_overlong_int_does_not_match() -> None:
    assert not validate_hotp(84755224, RFC_SECRET, counter=0, digits=6)


def test_validate_hotp_garbage() -> None:
    assert not validate_hotp("abcdef", RFC_SECRET, counter=0)
    assert not validate_hotp("٧٥٥٢٢٤", RFC_SECRET, counter=0)
