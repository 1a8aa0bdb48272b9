"""Fill a rule's URL template with command capture groups."""

from __future__ import annotations

from typing import Sequence
from urllib.parse import quote

from core.errors import URLBuildError
from core.templating import count_placeholders, fill_template


def build_url(template: str, captures: Sequence[str]) -> str:
    """Substitute the first captures into ``template``, percent-escaped.

    ``captures`` excludes the full match. Extra captures are ignored; too few
    raise URLBuildError so nothing is fetched.
    """

    needed = count_placeholders(template)
    if needed == 0:
        return template
    if len(captures) < needed:
        raise URLBuildError(
            f"URL template needs {needed} capture(s), got {len(captures)}"
        )
    return fill_template(template, [quote(capture, safe="") for capture in captures[:needed]])
