from __future__ import annotations

import pytest

from core.errors import URLBuildError
from core.url_builder import build_url


def test_static_url_without_captures() -> None:
    assert build_url("https://example.com/page", []) == "https://example.com/page"


def test_captures_are_substituted_left_to_right() -> None:
    url = build_url("https://example.com/%s/items/%s", ["books", "42"])
    assert url == "https://example.com/books/items/42"


def test_extra_captures_are_ignored() -> None:
    assert build_url("https://example.com/%s", ["a", "b", "c"]) == "https://example.com/a"


def test_captures_are_percent_escaped() -> None:
    assert build_url("%s", ["example space"]) == "example%20space"
    assert build_url("q=%s", ["a/b&c"]) == "q=a%2Fb%26c"


@pytest.mark.parametrize("captures", [[], ["only-one"]])
def test_too_few_captures_fail(captures: list[str]) -> None:
    with pytest.raises(URLBuildError):
        build_url("https://example.com/%s/%s", captures)
