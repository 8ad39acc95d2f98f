"""Tests for email normalization, hashing and masking helpers."""

from __future__ import annotations

import hashlib

from matchmaking_auth import hash_email, mask_email, normalize_email, throttle_key


def test_normalize_email() -> None:
    assert normalize_email("  Jane.Doe@Example.COM \n") == "jane.doe@example.com"


def test_hash_email_is_sha256_hex() -> None:
    expected = hashlib.sha256(b"jane@example.com").hexdigest()
    assert hash_email("jane@example.com") == expected
    assert len(hash_email("x")) == 64


def test_throttle_key() -> None:
    assert throttle_key(" Jane@Example.com", "10.0.0.1") == "jane@example.com|10.0.0.1"
    assert throttle_key("jane@example.com", None) == "jane@example.com|unknown"


def test_throttle_key_transliterates() -> None:
    assert throttle_key("jöe@example.com", "1.1.1.1") == "joe@example.com|1.1.1.1"


def test_mask_email() -> None:
    assert mask_email("jane.doe@example.com") == "jan*****@example.com"
    assert mask_email("tester@example.com") == "tes***@example.com"
    assert mask_email("jo@example.com") == "jo@example.com"
    assert mask_email("not-an-email") == "not-an-email"
