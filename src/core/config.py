"""Scrape rule definitions and their JSON record format.

Rules are parsed from a JSON array once at startup into frozen dataclasses.
Regular expressions, CSS selectors and hash names are validated while building, so a bad
rule fails loudly before the bot starts answering commands.
"""

from __future__ import annotations

import hashlib
import json
import logging
import os
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, Iterator, List, Optional, TextIO, Tuple

import soupsieve

from core.errors import ConfigError

LOGGER = logging.getLogger(__name__)


class HandleMultiple(Enum):
    """Which value to keep when a selector matches several elements."""

    FIRST = "First"
    LAST = "Last"
    RANDOM = "Random"

    @classmethod
    def parse(cls, raw: object) -> "HandleMultiple":
        if raw is None or raw == "":
            return cls.FIRST
        if isinstance(raw, str):
            for member in cls:
                if member.value.lower() == raw.strip().lower():
                    return member
        raise ConfigError(f"Unknown handle_multiple value: {raw!r}")


class ContentType(Enum):
    HTML = "html"
    JSON = "json"
    REGEX = "regex"


@dataclass(frozen=True)
class CaptureSpec:
    """How to pull one value out of fetched content and format it."""

    selectors: Tuple[str, ...] = ()
    template: str = ""
    handle_multiple: HandleMultiple = HandleMultiple.FIRST
    replacements: Tuple[Tuple[str, str], ...] = ()


@dataclass(frozen=True)
class ReplyCapture:
    """One reply field: a body value and an optional field title."""

    body: CaptureSpec
    title: Optional[CaptureSpec] = None


@dataclass(frozen=True)
class TokenSpec:
    """Salted, truncated digest settings."""

    prefix: str = ""
    postfix: str = ""
    type: str = "MD5"
    size: int = 6

    def __post_init__(self) -> None:
        try:
            hashlib.new(self.type.lower())
        except (ValueError, TypeError) as exc:
            raise ConfigError(f"Unsupported token hash type: {self.type!r}") from exc
        if self.size <= 0:
            raise ConfigError(f"Token size must be positive, got {self.size}")


def _compile(pattern: str, label: str) -> re.Pattern:
    try:
        return re.compile(pattern)
    except re.error as exc:
        raise ConfigError(f"Invalid {label} regex {pattern!r}: {exc}") from exc


def _check_css(selector: str) -> None:
    try:
        soupsieve.compile(selector)
    except soupsieve.SelectorSyntaxError as exc:
        raise ConfigError(f"Invalid CSS selector {selector!r}: {exc}") from exc


@dataclass(frozen=True)
class ScrapeConfig:
    """Immutable scraper rule shared read-only by every invocation."""

    trigger: str
    url: str
    capture: str = ""
    content_type: ContentType = ContentType.HTML
    title: CaptureSpec = field(default_factory=CaptureSpec)
    captures: Tuple[ReplyCapture, ...] = ()
    help: str = ""
    description: str = ""
    grouped: bool = False
    token: Optional[TokenSpec] = None
    delay: float = 0.0
    trigger_pattern: re.Pattern = field(init=False, repr=False, compare=False)
    capture_pattern: re.Pattern = field(init=False, repr=False, compare=False)
    selector_patterns: Dict[str, re.Pattern] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "trigger_pattern", _compile(self.trigger, "trigger"))
        object.__setattr__(self, "capture_pattern", _compile(self.capture, "capture"))
        if self.delay < 0:
            raise ConfigError(f"Delay must not be negative, got {self.delay}")
        object.__setattr__(self, "selector_patterns", self._check_selectors())

    def capture_specs(self) -> Iterator[CaptureSpec]:
        yield self.title
        for capture in self.captures:
            yield capture.body
            if capture.title is not None:
                yield capture.title

    def _check_selectors(self) -> Dict[str, re.Pattern]:
        """Validate every selector for the content type.

        CSS selectors are compiled once to reject syntax errors; regex
        selectors are kept compiled for the scraper.
        """

        patterns: Dict[str, re.Pattern] = {}
        for spec in self.capture_specs():
            for selector in spec.selectors:
                if self.content_type is ContentType.HTML:
                    _check_css(selector)
                elif self.content_type is ContentType.REGEX and selector not in patterns:
                    patterns[selector] = _compile(selector, "selector")
        return patterns


# Record parsing ---------------------------------------------------------


def _require_str(record: dict, key: str, default: Optional[str] = None) -> str:
    value = record.get(key, default)
    if value is None:
        raise ConfigError(f"Missing required field {key!r}")
    if not isinstance(value, str):
        raise ConfigError(f"Field {key!r} must be a string")
    return value


def _require_bool(record: dict, key: str, default: bool) -> bool:
    value = record.get(key, default)
    if not isinstance(value, bool):
        raise ConfigError(f"Field {key!r} must be true or false")
    return value


def _parse_replacements(raw: object) -> Tuple[Tuple[str, str], ...]:
    if raw is None:
        return ()
    if not isinstance(raw, list):
        raise ConfigError("'replacements' must be a list")

    pairs: List[Tuple[str, str]] = []
    for entry in raw:
        # Each entry is a JSON object; multi-key objects apply in key order.
        if isinstance(entry, dict):
            for old, new in entry.items():
                if not isinstance(new, str):
                    raise ConfigError(f"Replacement for {old!r} must be a string")
                pairs.append((old, new))
        elif isinstance(entry, list) and len(entry) == 2 and all(isinstance(v, str) for v in entry):
            pairs.append((entry[0], entry[1]))
        else:
            raise ConfigError(f"Invalid replacement entry: {entry!r}")
    return tuple(pairs)


def _parse_capture_spec(raw: object) -> CaptureSpec:
    if raw is None:
        return CaptureSpec()
    if not isinstance(raw, dict):
        raise ConfigError("Capture spec must be an object")

    selectors = raw.get("selectors", []) or []
    if isinstance(selectors, str):
        selectors = [selectors]
    if not isinstance(selectors, list) or not all(isinstance(s, str) for s in selectors):
        raise ConfigError("'selectors' must be a list of strings")

    return CaptureSpec(
        selectors=tuple(selectors),
        template=_require_str(raw, "template", ""),
        handle_multiple=HandleMultiple.parse(raw.get("handle_multiple")),
        replacements=_parse_replacements(raw.get("replacements")),
    )


def _parse_reply_capture(raw: object) -> ReplyCapture:
    if not isinstance(raw, dict):
        raise ConfigError("Each entry of 'captures' must be an object")
    if "body" not in raw:
        raise ConfigError("Capture entry is missing 'body'")
    title = raw.get("title")
    return ReplyCapture(
        body=_parse_capture_spec(raw["body"]),
        title=_parse_capture_spec(title) if title is not None else None,
    )


def _parse_token(raw: object) -> Optional[TokenSpec]:
    if raw is None:
        return None
    if not isinstance(raw, dict):
        raise ConfigError("'token' must be an object")
    try:
        size = int(raw.get("size", 6))
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Token size must be an integer: {raw.get('size')!r}") from exc
    return TokenSpec(
        prefix=_require_str(raw, "prefix", ""),
        postfix=_require_str(raw, "postfix", ""),
        type=_require_str(raw, "type", "MD5"),
        size=size,
    )


def _parse_content_type(raw: object) -> ContentType:
    if raw is None:
        return ContentType.HTML
    try:
        return ContentType(str(raw).strip().lower())
    except ValueError as exc:
        raise ConfigError(f"Unknown content_type: {raw!r}") from exc


def parse_scrape_config(record: dict) -> ScrapeConfig:
    """Build one ScrapeConfig from a decoded JSON record."""

    if not isinstance(record, dict):
        raise ConfigError("Scrape rule must be a JSON object")

    captures = record.get("captures", []) or []
    if not isinstance(captures, list):
        raise ConfigError("'captures' must be a list")

    try:
        delay = float(record.get("delay", 0) or 0)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Delay must be a number: {record.get('delay')!r}") from exc

    return ScrapeConfig(
        trigger=_require_str(record, "trigger"),
        url=_require_str(record, "url", ""),
        capture=_require_str(record, "capture", ""),
        content_type=_parse_content_type(record.get("content_type")),
        title=_parse_capture_spec(record.get("title")),
        captures=tuple(_parse_reply_capture(entry) for entry in captures),
        help=_require_str(record, "help", ""),
        description=_require_str(record, "description", ""),
        grouped=_require_bool(record, "grouped", False),
        token=_parse_token(record.get("token")),
        delay=delay,
    )


def build_scrape_configs(records: Iterable[dict]) -> List[ScrapeConfig]:
    """Build every rule, naming the offending record on failure."""

    configs: List[ScrapeConfig] = []
    for index, record in enumerate(records):
        try:
            configs.append(parse_scrape_config(record))
        except ConfigError as exc:
            raise ConfigError(f"Scrape rule #{index}: {exc}") from exc
    return configs


# Record encoding --------------------------------------------------------


def _capture_spec_to_record(spec: CaptureSpec) -> dict[str, Any]:
    return {
        "template": spec.template,
        "selectors": list(spec.selectors),
        "handle_multiple": spec.handle_multiple.value,
        "replacements": [{old: new} for old, new in spec.replacements],
    }


def scrape_config_to_record(config: ScrapeConfig) -> dict[str, Any]:
    """Inverse of parse_scrape_config."""

    captures = []
    for capture in config.captures:
        entry: dict[str, Any] = {"body": _capture_spec_to_record(capture.body)}
        if capture.title is not None:
            entry["title"] = _capture_spec_to_record(capture.title)
        captures.append(entry)

    record: dict[str, Any] = {
        "trigger": config.trigger,
        "capture": config.capture,
        "url": config.url,
        "content_type": config.content_type.value,
        "title": _capture_spec_to_record(config.title),
        "captures": captures,
        "help": config.help,
        "description": config.description,
        "grouped": config.grouped,
        "delay": config.delay,
    }
    if config.token is not None:
        record["token"] = {
            "prefix": config.token.prefix,
            "postfix": config.token.postfix,
            "type": config.token.type,
            "size": config.token.size,
        }
    return record


def dump_scrape_configs(configs: Iterable[ScrapeConfig]) -> str:
    return json.dumps([scrape_config_to_record(c) for c in configs], indent=2)


# Files ------------------------------------------------------------------


def load_scrape_configs(stream: TextIO) -> List[ScrapeConfig]:
    """Read a JSON array of rule records from an open text stream."""

    try:
        raw = stream.read()
    except OSError as exc:
        raise ConfigError(f"Unable to read scrape rules: {exc}") from exc

    try:
        records = json.loads(raw) if raw.strip() else []
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Scrape rules are not valid JSON: {exc}") from exc
    if not isinstance(records, list):
        raise ConfigError("Scrape rules must be a JSON array")
    return build_scrape_configs(records)


EXAMPLE_RULES: List[dict[str, Any]] = [
    {
        "trigger": "wiki",
        "capture": "(.+)",
        "url": "https://en.wikipedia.org/wiki/%s",
        "content_type": "html",
        "title": {"template": "%s", "selectors": ["h1"], "handle_multiple": "First"},
        "captures": [
            {
                "body": {
                    "template": "%s",
                    "selectors": ["#mw-content-text p:not(.mw-empty-elt)"],
                    "handle_multiple": "First",
                    "replacements": [{"\n": " "}],
                }
            }
        ],
        "help": "wiki <topic> - first paragraph of the Wikipedia article",
    }
]


def write_example_config(path: str) -> None:
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(path, "w", encoding="utf-8") as handle:
        json.dump(EXAMPLE_RULES, handle, indent=2)


def load_scrape_configs_from_path(path: str) -> List[ScrapeConfig]:
    """Load rules from ``path``; write an example there if it is missing.

    A missing file is still an error: the operator should review the example
    before the bot answers anything with it.
    """

    if not os.path.exists(path):
        write_example_config(path)
        LOGGER.warning("Scrape rule file %s did not exist, an example was written", path)
        raise ConfigError(f"File {path} did not exist, an example has been written")

    with open(path, "r", encoding="utf-8") as handle:
        return load_scrape_configs(handle)
