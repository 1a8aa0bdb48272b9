"""Deterministic short tokens derived from captured text."""

from __future__ import annotations

import hashlib

from core.config import TokenSpec


def make_token(text: str, spec: TokenSpec) -> str:
    """Return the first ``spec.size`` hex characters of the salted digest.

    The prefix and postfix are literal salt around the input, so the same text
    yields different tokens for rules with different salts.
    """

    payload = f"{spec.prefix}{text}{spec.postfix}"
    digest = hashlib.new(spec.type.lower(), payload.encode("utf-8")).hexdigest()
    return digest[: spec.size]
