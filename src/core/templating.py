"""Literal replacements and ``%s`` templates for reply text."""

from __future__ import annotations

from typing import Iterable, Sequence, Tuple

PLACEHOLDER = "%s"


def count_placeholders(template: str) -> int:
    return template.count(PLACEHOLDER)


def apply_replacements(value: str, replacements: Iterable[Tuple[str, str]]) -> str:
    """Apply literal (old, new) pairs in order; later pairs see earlier output."""

    for old, new in replacements:
        if old:
            value = value.replace(old, new)
    return value


def fill_template(template: str, values: Sequence[str]) -> str:
    """Substitute ``values`` into the ``%s`` placeholders of ``template``.

    Values are consumed left to right. When the template asks for more
    substitutions than there are values, every remaining placeholder gets the
    last value used. Callers that need a strict count (the URL builder) check
    it before calling.
    """

    parts = template.split(PLACEHOLDER)
    if len(parts) == 1:
        return template
    if not values:
        raise ValueError("template has placeholders but no values were given")

    out = [parts[0]]
    for index, part in enumerate(parts[1:]):
        out.append(values[min(index, len(values) - 1)])
        out.append(part)
    return "".join(out)


def render(value: str, replacements: Iterable[Tuple[str, str]], template: str) -> str:
    """Replace then template one resolved value."""

    return fill_template(template, [apply_replacements(value, replacements)])
