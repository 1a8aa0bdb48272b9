"""Selector and field resolution over fetched content.

HTML content is a BeautifulSoup tree queried with CSS selectors; JSON content
is the decoded value queried with key paths; regex content is the raw body
searched with compiled patterns. In every case the selectors are
tried in priority order and the first one with any match wins.
"""

from __future__ import annotations

import json
import random
import re
from typing import Any, List, Optional, Sequence

from bs4 import BeautifulSoup

from core.config import CaptureSpec, HandleMultiple
from core.errors import ExtractionEmpty
from core.templating import count_placeholders, render

_MISSING = object()


def choose(values: Sequence[str], policy: HandleMultiple, rng: random.Random) -> Optional[str]:
    """Pick one value per policy; None when there is nothing to pick."""

    if not values:
        return None
    if policy is HandleMultiple.FIRST:
        return values[0]
    if policy is HandleMultiple.LAST:
        return values[-1]
    if policy is HandleMultiple.RANDOM:
        return rng.choice(list(values))
    raise ValueError(f"Unhandled policy: {policy}")


def select_html(soup: BeautifulSoup, selectors: Sequence[str]) -> List[str]:
    """Text of every element matched by the first productive selector."""

    for selector in selectors:
        nodes = soup.select(selector)
        if nodes:
            return [node.get_text(" ", strip=True) for node in nodes]
    return []


def select_regex(text: str, patterns: Sequence[re.Pattern]) -> List[str]:
    """One value per match of the first productive pattern.

    A match contributes its groups joined by a space, or the whole match
    when the pattern has no groups.
    """

    for pattern in patterns:
        values = []
        for found in pattern.finditer(text):
            groups = found.groups()
            values.append(" ".join(group or "" for group in groups) if groups else found.group(0))
        if values:
            return values
    return []


def _walk_path(data: Any, path: str) -> Any:
    node = data
    for segment in path.split("."):
        if isinstance(node, dict):
            if segment not in node:
                return _MISSING
            node = node[segment]
        elif isinstance(node, list):
            try:
                node = node[int(segment)]
            except (ValueError, IndexError):
                return _MISSING
        else:
            return _MISSING
    return node


def _lookup(data: Any, selector: str) -> Any:
    # An exact key wins over a dotted path so keys containing dots still work.
    if isinstance(data, dict) and selector in data:
        return data[selector]
    if "." in selector:
        return _walk_path(data, selector)
    return _MISSING


def _as_text(value: Any) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False)


def select_json(data: Any, selectors: Sequence[str]) -> List[str]:
    """Values at the first selector present in ``data``; lists fan out."""

    for selector in selectors:
        value = _lookup(data, selector)
        if value is _MISSING or value is None:
            continue
        if isinstance(value, list):
            matches = [_as_text(item) for item in value if item is not None]
            if matches:
                return matches
            continue
        return [_as_text(value)]
    return []


def resolve(matches: Sequence[str], spec: CaptureSpec, rng: random.Random) -> str:
    """Turn raw matches into the final text for one capture spec.

    With no match, a template without placeholders is its own value;
    otherwise ExtractionEmpty is raised for the caller to report.
    """

    value = choose(matches, spec.handle_multiple, rng)
    if value is None:
        if count_placeholders(spec.template) == 0:
            return spec.template
        raise ExtractionEmpty(f"No match for selectors {list(spec.selectors)}")
    return render(value, spec.replacements, spec.template)
