"""
Tests for mute tokens (alerts.mute_token.MuteTokenSigner).
"""

from __future__ import annotations

import hashlib
import hmac

import pytest

from backend_sifa.alerts.mute_token import MuteTokenSigner

IDS = ["backup", "nightly-report", "db:replica-2", "ünïcode", ""]


@pytest.mark.parametrize("target_id", IDS)
def test_round_trip(target_id):
    signer = MuteTokenSigner("secret")
    assert signer.verify(target_id, signer.generate(target_id)) is True


def test_token_bound_to_target():
    signer = MuteTokenSigner("secret")
    for a in IDS:
        for b in IDS:
            if a != b:
                assert signer.verify(a, signer.generate(b)) is False


def test_deterministic_hmac_sha256_hex():
    """Same secret → same token across instances (stable across restarts)."""
    expected = hmac.new(b"secret", b"backup", hashlib.sha256).hexdigest()
    assert MuteTokenSigner("secret").generate("backup") == expected
    assert MuteTokenSigner(b"secret").generate("backup") == expected
    assert len(expected) == 64


def test_rotating_secret_invalidates_tokens():
    old = MuteTokenSigner("old-secret").generate("backup")
    assert MuteTokenSigner("new-secret").verify("backup", old) is False


@pytest.mark.parametrize("token", ["", "abc", "z" * 64])
def test_rejects_malformed_tokens(token):
    assert MuteTokenSigner("secret").verify("backup", token) is False


def test_accepts_uppercase_hex():
    signer = MuteTokenSigner("secret")
    assert signer.verify("backup", signer.generate("backup").upper()) is True


def test_mute_url():
    signer = MuteTokenSigner("secret")
    url = signer.mute_url("https://sifa.example.com/", "db replica")
    assert url == f"https://sifa.example.com/mute/db%20replica/{signer.generate('db replica')}"
