from __future__ import annotations

from dataclasses import dataclass
from typing import FrozenSet, Optional, Protocol

from adblockparser import AdblockParsingError, AdblockRule


# ABP / uBO network-filter notes (subset this adapter understands):
# - '@@' marks an exception rule
# - '||host^' anchors at a hostname boundary, '|' at the start of the URL
# - options follow the first '$', comma separated, '~' negates a flag
# Any option outside the sets below makes the rule "not recognised" so that
# it is handed to the textual fallback rules instead.

_RESOURCE_TYPES: FrozenSet[str] = frozenset(
    {
        "script",
        "image",
        "stylesheet",
        "xmlhttprequest",
        "xhr",
        "subdocument",
        "object",
        "object-subrequest",
        "font",
        "media",
        "ping",
        "websocket",
        "other",
        "background",
        "css",
        "frame",
    }
)

_DOCUMENT_OPTIONS: FrozenSet[str] = frozenset({"document", "doc", "all"})
_HIDE_OPTIONS: FrozenSet[str] = frozenset({"elemhide", "ehide", "generichide", "ghide", "specifichide", "shide"})
_REDIRECT_OPTIONS: FrozenSet[str] = frozenset({"redirect", "redirect-rule", "rewrite"})
_PARTY_OPTIONS: FrozenSet[str] = frozenset({"third-party", "3p", "first-party", "1p"})
_MISC_OPTIONS: FrozenSet[str] = frozenset({"match-case", "important", "badfilter", "csp", "domain", "popup"})

_KNOWN_OPTIONS: FrozenSet[str] = (
    _RESOURCE_TYPES | _DOCUMENT_OPTIONS | _HIDE_OPTIONS | _REDIRECT_OPTIONS | _PARTY_OPTIONS | _MISC_OPTIONS
)

_SCHEME_PREFIXES = ("|https://", "|http://")
_HOST_END = ("^", "/", "|")
_PLAIN_TAILS = ("", "^", "^|")


@dataclass(frozen=True)
class StructuredFilter:
    """What a strict filter-syntax parser could tell about one network rule."""

    raw: str
    hostname: Optional[str]
    hostname_anchor: bool
    is_plain: bool
    is_regex: bool
    is_exception: bool
    is_bad_filter: bool
    is_hide: bool
    is_redirect: bool
    is_csp: bool
    has_domains: bool
    from_any: bool
    from_document: bool
    first_party: bool
    third_party: bool

    @property
    def unsupported(self) -> bool:
        # Semantics a plain domain rule can not carry.
        return (
            self.is_hide
            or self.is_redirect
            or self.is_csp
            or self.has_domains
            or (not self.from_any and not self.from_document)
        )


class FilterParser(Protocol):
    def parse(self, line: str) -> Optional[StructuredFilter]:
        ...


def _split_host(pattern: str):
    # Returns (hostname, hostname_anchor, tail) or (None, False, pattern).
    if pattern.startswith("||"):
        rest, anchor = pattern[2:], True
    else:
        for prefix in _SCHEME_PREFIXES:
            if pattern.startswith(prefix):
                rest, anchor = pattern[len(prefix):], False
                break
        else:
            return None, False, pattern

    host = rest
    tail = ""
    for i, ch in enumerate(rest):
        if ch in _HOST_END:
            host = rest[:i]
            tail = rest[i:]
            break
    host = host.strip().lower()
    if not host:
        return None, anchor, tail
    return host, anchor, tail


class AdblockFilterParser:
    """Strict-grammar adapter over adblockparser.AdblockRule.

    parse() returns None when the library rejects the rule or when it uses
    options this adapter does not know; callers treat both as "not
    recognised".
    """

    def parse(self, line: str) -> Optional[StructuredFilter]:
        s = (line or "").strip()
        if not s:
            return None
        try:
            rule = AdblockRule(s)
        except AdblockParsingError:
            return None
        if rule.is_comment:
            return None

        opts = dict(rule.options or {})
        if any(k not in _KNOWN_OPTIONS for k in opts):
            return None

        pattern = (rule.rule_text or "").strip()
        is_regex = len(pattern) >= 2 and pattern.startswith("/") and pattern.endswith("/")
        hostname, anchor, tail = (None, False, pattern) if is_regex else _split_host(pattern)

        positive_types = [k for k in opts if k in _RESOURCE_TYPES and opts[k] is True]
        from_document = any(opts.get(k) is True for k in _DOCUMENT_OPTIONS)

        # adblockparser keeps '~' negations as False values.
        third = opts.get("third-party", opts.get("3p"))
        first = opts.get("first-party", opts.get("1p"))
        if first is not None and third is None:
            third = not first
        first_party = third is not True
        third_party = third is not False

        return StructuredFilter(
            raw=s,
            hostname=hostname,
            hostname_anchor=anchor,
            is_plain=(tail in _PLAIN_TAILS) and "*" not in pattern,
            is_regex=is_regex,
            is_exception=bool(rule.is_exception),
            is_bad_filter=bool(opts.get("badfilter")),
            is_hide=bool(rule.is_html_rule) or any(opts.get(k) for k in _HIDE_OPTIONS),
            is_redirect=any(k in opts for k in _REDIRECT_OPTIONS),
            is_csp="csp" in opts,
            has_domains="domain" in opts,
            from_any=not positive_types,
            from_document=from_document,
            first_party=first_party,
            third_party=third_party,
        )
