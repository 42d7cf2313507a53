"""
Tests for the secret generator and its fallback tiers.
"""

import subprocess

import pytest

from slemp.core.services import passwords
from slemp.core.services.passwords import (
    ALPHABET,
    generate_password,
    openssl_source,
    pseudo_random_source,
    urandom_source,
)


def _empty(length):
    return ""


def _broken(length):
    raise RuntimeError("no entropy")


class TestGeneratePassword:
    @pytest.mark.parametrize("length", [1, 8, 16, 20, 64])
    def test_exact_length_and_alphabet(self, length):
        secret = generate_password(length)
        assert len(secret) == length
        assert set(secret) <= set(ALPHABET)

    def test_zero_length(self):
        assert generate_password(0) == ""

    def test_first_tier(self):
        secret = generate_password(24, sources=[urandom_source])
        assert len(secret) == 24
        assert set(secret) <= set(ALPHABET)

    def test_falls_through_empty_and_broken_tiers(self):
        secret = generate_password(16, sources=[_empty, _broken, pseudo_random_source])
        assert len(secret) == 16
        assert set(secret) <= set(ALPHABET)

    def test_short_tier_output_is_padded(self):
        secret = generate_password(6, sources=[lambda n: "ab"])
        assert secret == "abABCD"

    def test_disallowed_characters_are_filtered(self):
        secret = generate_password(4, sources=[lambda n: "a b\nc~d"])
        assert secret == "abcd"

    def test_all_tiers_empty_still_yields_exact_length(self):
        secret = generate_password(5, sources=[_empty, _broken])
        assert secret == "ABCDE"

    def test_secrets_differ(self):
        assert generate_password(20) != generate_password(20)


class TestTiers:
    """Each tier alone still yields an exact-length secret from ALPHABET."""

    @pytest.mark.parametrize("length", [1, 16, 20, 64])
    def test_urandom_only(self, length):
        secret = generate_password(length, sources=[urandom_source])
        assert len(secret) == length
        assert set(secret) <= set(ALPHABET)

    @pytest.mark.parametrize("length", [1, 16, 20, 64])
    def test_openssl_only(self, length, monkeypatch):
        def run(cmd, **kwargs):
            assert cmd[:3] == ["openssl", "rand", "-base64"]
            stdout = "aB3+/x9Z=Qk7\n" * length
            return subprocess.CompletedProcess(cmd, 0, stdout=stdout, stderr="")

        monkeypatch.setattr(passwords.subprocess, "run", run)
        secret = generate_password(length, sources=[openssl_source])
        assert len(secret) == length
        assert set(secret) <= set(ALPHABET)
        assert "/" not in secret

    def test_openssl_missing_yields_nothing(self, monkeypatch):
        def run(cmd, **kwargs):
            raise FileNotFoundError("openssl")

        monkeypatch.setattr(passwords.subprocess, "run", run)
        assert openssl_source(16) == ""

    def test_openssl_nonzero_exit_yields_nothing(self, monkeypatch):
        def run(cmd, **kwargs):
            return subprocess.CompletedProcess(cmd, 1, stdout="garbage", stderr="error")

        monkeypatch.setattr(passwords.subprocess, "run", run)
        assert openssl_source(16) == ""

    @pytest.mark.parametrize("length", [1, 16, 20, 64])
    def test_pseudo_random_only(self, length):
        secret = generate_password(length, sources=[pseudo_random_source])
        assert len(secret) == length
        assert set(secret) <= set(ALPHABET)

    def test_urandom_failure_falls_back_to_openssl(self, monkeypatch):
        def urandom(n):
            raise NotImplementedError

        def run(cmd, **kwargs):
            return subprocess.CompletedProcess(cmd, 0, stdout="Zz9" * 20, stderr="")

        monkeypatch.setattr(passwords.os, "urandom", urandom)
        monkeypatch.setattr(passwords.subprocess, "run", run)
        secret = generate_password(12, sources=[urandom_source, openssl_source])
        assert secret == "Zz9" * 4
