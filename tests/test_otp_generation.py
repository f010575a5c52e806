"""Tests for OTP code generation."""

from collections import Counter

from banking_portal.core import security
from banking_portal.core.security import generate_otp


def test_codes_are_six_digit_strings_in_range():
    codes = [generate_otp() for _ in range(10_000)]

    for code in codes:
        assert len(code) == 6
        assert code.isdigit()
        assert 100000 <= int(code) <= 999999


def test_codes_have_no_fixed_prefix_or_suffix():
    codes = [generate_otp() for _ in range(10_000)]

    first_digits = Counter(code[0] for code in codes)
    last_digits = Counter(code[-1] for code in codes)

    # Expected ~1111 per leading digit and ~1000 per trailing digit
    assert set(first_digits) == set("123456789")
    assert all(800 < count < 1450 for count in first_digits.values())
    assert set(last_digits) == set("0123456789")
    assert all(700 < count < 1300 for count in last_digits.values())


def test_generation_uses_the_secrets_module(monkeypatch):
    calls = []

    def fake_randbelow(n):
        calls.append(n)
        return 0

    monkeypatch.setattr(security.secrets, "randbelow", fake_randbelow)
    assert generate_otp() == "100000"
    assert calls == [900000]

    monkeypatch.setattr(security.secrets, "randbelow", lambda n: n - 1)
    assert generate_otp() == "999999"
