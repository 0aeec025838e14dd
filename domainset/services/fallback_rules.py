from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple

from domainset.services.diagnostics import Diagnostics
from domainset.services.directive import Directive, allow, block
from domainset.services.domain_normalizer import DomainNormalizer


# Shapes the strict parser does not understand, seen in real upstream lists:
#   @@||cmechina.net^$genericblock     @@|ftp.bmp.ovh^|     @@://say.ac^|
#   ||m.faz.net^$cname                 |adsterra.com^|
#   .ay.delivery^                      ://mine.torrent.pw^   |http://x.o2.pl^
#   _vmind.qqvideo.tc.qq.com^          .m.bookben.com        t.yesware.com
#
# Rules are tried in order and the first matching predicate owns the line,
# so every predicate may assume all earlier shapes were already excluded.


@dataclass(frozen=True)
class LineShape:
    line: str

    @property
    def first(self) -> str:
        return self.line[:1]

    @property
    def ends_with_caret(self) -> bool:
        return self.line.endswith("^")

    @property
    def ends_with_caret_bar(self) -> bool:
        return self.line.endswith("^|")

    @property
    def ends_at_boundary(self) -> bool:
        return self.ends_with_caret or self.ends_with_caret_bar

    @property
    def starts_with_single_dot(self) -> bool:
        return self.first == "."


Transform = Callable[[LineShape, DomainNormalizer, Diagnostics], Optional[Directive]]


@dataclass(frozen=True)
class FallbackRule:
    name: str
    code: str
    matches: Callable[[LineShape, DomainNormalizer], bool]
    transform: Transform


class FallbackResult:
    """Outcome of the fallback stage: which rule owned the line and what it produced."""

    __slots__ = ("rule", "directive")

    def __init__(self, rule: Optional[FallbackRule], directive: Optional[Directive]) -> None:
        self.rule = rule
        self.directive = directive


def _strip_prefix(s: str, prefixes: Sequence[str]) -> str:
    for p in prefixes:
        if s.startswith(p):
            return s[len(p):]
    return s


def _strip_suffix(s: str, suffixes: Sequence[str]) -> str:
    for p in suffixes:
        if s.endswith(p):
            return s[: -len(p)]
    return s


def _strip_boundary(s: str) -> str:
    if s.endswith("^|"):
        return s[:-2]
    if s.endswith("^"):
        return s[:-1]
    return s


def _reject(diags: Diagnostics, rule: FallbackRule, text: str) -> None:
    diags.reject(rule.name, rule.code, text)


# 0. option-scoped forms

def _is_option_scoped(shape: LineShape, normalizer: DomainNormalizer) -> bool:
    line = shape.line
    if "$third-party" in line or "$frame" in line:
        return True
    return line.startswith("@@") and line.endswith("$cname")


def _option_scoped(shape: LineShape, normalizer: DomainNormalizer, diags: Diagnostics) -> Optional[Directive]:
    _reject(diags, OPTION_SCOPED, shape.line)
    return None


# 1. exception forms

_EXCEPTION_PREFIXES = ("@@||", "@@://", "@@|", "@@.")
_EXCEPTION_SUFFIXES = ("^|", "^$genericblock", "$genericblock", "^$document", "$document")


def _is_exception_form(shape: LineShape, normalizer: DomainNormalizer) -> bool:
    line = shape.line
    if not line.startswith("@@"):
        return False
    head = line[2:]
    if not (head.startswith("|") or head.startswith(".") or head.startswith("://")):
        return False
    return shape.ends_at_boundary or line.endswith("$genericblock") or line.endswith("$document")


def _exception_form(shape: LineShape, normalizer: DomainNormalizer, diags: Diagnostics) -> Optional[Directive]:
    line = shape.line
    # A leading dot marks the whole subtree, as in the domain-set convention.
    subtree = line.startswith("@@||") or line.startswith("@@.")
    s = _strip_prefix(line, _EXCEPTION_PREFIXES)
    s = _strip_suffix(s, _EXCEPTION_SUFFIXES)
    s = s.replace("^", "").strip()
    host = normalizer.normalize(s)
    if host:
        return allow(host, subtree)
    _reject(diags, EXCEPTION_FORM, s)
    return None


# 2. anchored forms

def _is_anchored_form(shape: LineShape, normalizer: DomainNormalizer) -> bool:
    return shape.first == "|" and (shape.ends_at_boundary or shape.line.endswith("$cname"))


def _anchored_form(shape: LineShape, normalizer: DomainNormalizer, diags: Diagnostics) -> Optional[Directive]:
    line = shape.line
    subtree = line.startswith("||")
    s = line[2:] if subtree else line[1:]
    if s.endswith("$cname"):
        s = s[: -len("$cname")]
    s = _strip_boundary(s)
    # '|http://host^' is a scheme-anchored host, not a path.
    s = _strip_prefix(s, ("https://", "http://")).strip()
    host = normalizer.normalize(s)
    if host:
        return block(host, subtree)
    _reject(diags, ANCHORED_FORM, s)
    return None


# 3. leading-dot forms ending at a boundary

def _is_dot_boundary_form(shape: LineShape, normalizer: DomainNormalizer) -> bool:
    return shape.starts_with_single_dot and shape.ends_at_boundary


def _dot_boundary_form(shape: LineShape, normalizer: DomainNormalizer, diags: Diagnostics) -> Optional[Directive]:
    s = _strip_boundary(shape.line[1:])
    # Excludes resource names that merely look like domains, e.g. '1.1.4.514.js'.
    if not normalizer.public_suffix(s):
        _reject(diags, DOT_BOUNDARY_FORM, s)
        return None
    host = normalizer.normalize(s)
    if host:
        return block(host, True)
    _reject(diags, DOT_BOUNDARY_FORM, s)
    return None


# 4. scheme forms

_SCHEME_PREFIXES = ("|https://", "https://", "|http://", "http://", "://")


def _is_scheme_form(shape: LineShape, normalizer: DomainNormalizer) -> bool:
    return shape.line.startswith(_SCHEME_PREFIXES) and shape.ends_at_boundary


def _scheme_form(shape: LineShape, normalizer: DomainNormalizer, diags: Diagnostics) -> Optional[Directive]:
    s = _strip_prefix(shape.line, _SCHEME_PREFIXES)
    s = _strip_boundary(s).replace("^", "").strip()
    host = normalizer.normalize(s)
    if host:
        return block(host, False)
    _reject(diags, SCHEME_FORM, s)
    return None


# 5. boundary-terminated forms

def _is_boundary_form(shape: LineShape, normalizer: DomainNormalizer) -> bool:
    return shape.first != "|" and shape.ends_with_caret


def _boundary_form(shape: LineShape, normalizer: DomainNormalizer, diags: Diagnostics) -> Optional[Directive]:
    s = shape.line[:-1]
    # Excludes '_social_tracking.js^' and friends.
    if not normalizer.public_suffix(s):
        _reject(diags, BOUNDARY_FORM, s)
        return None
    host = normalizer.normalize(s)
    if host:
        return block(host, False)
    _reject(diags, BOUNDARY_FORM, s)
    return None


# 6. leading-dot forms without a boundary

def _is_dot_form(shape: LineShape, normalizer: DomainNormalizer) -> bool:
    return shape.starts_with_single_dot


def _dot_form(shape: LineShape, normalizer: DomainNormalizer, diags: Diagnostics) -> Optional[Directive]:
    s = shape.line[1:]
    # '.gatracking.js', '.cookielaw.js' and '.ads.css' stop here.
    if normalizer.public_suffix(s) and normalizer.normalize(s) == s:
        return block(s, True)
    _reject(diags, DOT_FORM, s)
    return None


# 7. bare domains

def _is_bare_domain(shape: LineShape, normalizer: DomainNormalizer) -> bool:
    return normalizer.normalize(shape.line) == shape.line


def _bare_domain(shape: LineShape, normalizer: DomainNormalizer, diags: Diagnostics) -> Optional[Directive]:
    return block(shape.line, True)


# 8. everything else

def _is_anything(shape: LineShape, normalizer: DomainNormalizer) -> bool:
    return True


def _can_not_parse(shape: LineShape, normalizer: DomainNormalizer, diags: Diagnostics) -> Optional[Directive]:
    _reject(diags, CAN_NOT_PARSE, shape.line)
    return None


OPTION_SCOPED = FallbackRule("option-scoped form", "E0007", _is_option_scoped, _option_scoped)
EXCEPTION_FORM = FallbackRule("exception form", "E0001", _is_exception_form, _exception_form)
ANCHORED_FORM = FallbackRule("anchored form", "E0002", _is_anchored_form, _anchored_form)
DOT_BOUNDARY_FORM = FallbackRule("leading-dot boundary form", "E0003", _is_dot_boundary_form, _dot_boundary_form)
SCHEME_FORM = FallbackRule("scheme form", "E0004", _is_scheme_form, _scheme_form)
BOUNDARY_FORM = FallbackRule("boundary-terminated form", "E0005", _is_boundary_form, _boundary_form)
DOT_FORM = FallbackRule("leading-dot form", "E0006", _is_dot_form, _dot_form)
BARE_DOMAIN = FallbackRule("bare domain", "E0010", _is_bare_domain, _bare_domain)
CAN_NOT_PARSE = FallbackRule("can not parse", "E0010", _is_anything, _can_not_parse)

FALLBACK_RULES: Tuple[FallbackRule, ...] = (
    OPTION_SCOPED,
    EXCEPTION_FORM,
    ANCHORED_FORM,
    DOT_BOUNDARY_FORM,
    SCHEME_FORM,
    BOUNDARY_FORM,
    DOT_FORM,
    BARE_DOMAIN,
    CAN_NOT_PARSE,
)


def run_fallback(
    line: str,
    normalizer: DomainNormalizer,
    diags: Diagnostics,
    rules: Sequence[FallbackRule] = FALLBACK_RULES,
) -> FallbackResult:
    shape = LineShape(line)
    for rule in rules:
        if rule.matches(shape, normalizer):
            return FallbackResult(rule, rule.transform(shape, normalizer, diags))
    return FallbackResult(None, None)


def rule_names(rules: Sequence[FallbackRule] = FALLBACK_RULES) -> List[str]:
    return [r.name for r in rules]
