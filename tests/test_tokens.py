from __future__ import annotations

import pytest

from core.config import TokenSpec
from core.errors import ConfigError
from core.tokens import make_token


def test_md5_token_regression_fixture() -> None:
    spec = TokenSpec(prefix="Y", postfix="X", size=6, type="MD5")
    assert make_token("Hello World", spec) == "2d1105"


def test_token_is_deterministic_and_sized() -> None:
    spec = TokenSpec(prefix="room-", postfix="", size=10, type="sha256")
    first = make_token("weekly sync", spec)
    assert first == make_token("weekly sync", spec)
    assert len(first) == 10
    assert first == first.lower()


def test_salt_changes_the_token() -> None:
    plain = TokenSpec(size=8, type="MD5")
    salted = TokenSpec(prefix="Y", postfix="X", size=8, type="MD5")
    assert make_token("Hello World", plain) == "b10a8db1"
    assert make_token("Hello World", salted) != make_token("Hello World", plain)


def test_unknown_hash_type_fails_construction() -> None:
    with pytest.raises(ConfigError):
        TokenSpec(type="NOT-A-HASH")


def test_non_positive_size_fails_construction() -> None:
    with pytest.raises(ConfigError):
        TokenSpec(size=0)
