from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Set

from domainset.services.classifier import LineClassifier
from domainset.services.diagnostics import Diagnostics
from domainset.services.directive import Directive, Polarity, Scope, block
from domainset.services.domain_dedupe import dedupe
from domainset.services.domain_normalizer import DomainNormalizer
from domainset.services.domain_sort import sort_domains
from domainset.services.domain_trie import DomainTrie
from domainset.services.errors import DirectiveError


logger = logging.getLogger(__name__)


_SKIP_FIRST = ("#", "!", " ", "\r", "\n")


def process_line(line: str) -> Optional[str]:
    """Comment and blank line filter shared by every list format."""
    if not line:
        return None
    if line[0] in _SKIP_FIRST:
        return None
    s = line.strip()
    return s or None


@dataclass
class FilterRulesResult:
    allow: Set[str] = field(default_factory=set)
    block: Set[str] = field(default_factory=set)
    found_debug_domain: bool = False
    diagnostics: Optional[Diagnostics] = None


def add_directive(allow: Set[str], block: Set[str], directive: Directive) -> None:
    """Map a classified directive into the allow or block domain set."""
    scope = getattr(directive, "scope", None)
    polarity = getattr(directive, "polarity", None)
    if not isinstance(scope, Scope) or not isinstance(polarity, Polarity):
        raise DirectiveError(f"Unknown directive: {directive!r}")

    if polarity is Polarity.ALLOW:
        allow.add(directive.to_domain())
    elif polarity is Polarity.BLOCK:
        block.add(directive.to_domain())
    else:
        raise DirectiveError(f"Unknown polarity: {polarity!r}")


def process_filter_rules(
    lines: Iterable[str],
    normalizer: DomainNormalizer,
    *,
    source: str = "",
    diagnostics: Optional[Diagnostics] = None,
    classifier: Optional[LineClassifier] = None,
) -> FilterRulesResult:
    """Classify an adblock-style list into allow and block domain sets.

    Lines are not trimmed before classification; a bad line only drops
    that line.
    """
    started = time.monotonic()
    diags = diagnostics if diagnostics is not None else Diagnostics(source)
    clf = classifier or LineClassifier(normalizer)
    res = FilterRulesResult(diagnostics=diags)

    total = 0
    for line in lines:
        total += 1
        directive = clf.classify(line, diags)
        if directive is not None:
            add_directive(res.allow, res.block, directive)

    res.found_debug_domain = diags.found_debug_domain
    logger.info(
        "processFilterRules (%s): lines=%d allow=%d block=%d rejected=%d in %.3fs",
        source or "-",
        total,
        len(res.allow),
        len(res.block),
        sum(diags.counts().values()),
        time.monotonic() - started,
    )
    return res


def process_hosts(
    lines: Iterable[str],
    normalizer: DomainNormalizer,
    *,
    include_all_subdomain: bool = False,
    source: str = "",
    diagnostics: Optional[Diagnostics] = None,
) -> Set[str]:
    """hosts-file syntax: '0.0.0.0 ads.example.com'. The address column is dropped."""
    diags = diagnostics if diagnostics is not None else Diagnostics(source)
    out: Set[str] = set()
    for raw in lines:
        line = process_line(raw)
        if not line:
            continue
        # Inline comments: "0.0.0.0 ads.example.com # tracker".
        parts = line.split("#", 1)[0].split()
        token = " ".join(parts[1:]).strip()
        domain = normalizer.normalize(token)
        if not domain:
            continue
        directive = block(domain, include_all_subdomain)
        diags.trace(directive)
        out.add(directive.to_domain())
    logger.info("processHosts (%s): %d domains", source or "-", len(out))
    return out


def process_domain_lists(
    lines: Iterable[str],
    *,
    source: str = "",
    diagnostics: Optional[Diagnostics] = None,
) -> Set[str]:
    """Plain one-domain-per-line lists, kept verbatim (leading dot included)."""
    diags = diagnostics if diagnostics is not None else Diagnostics(source)
    out: Set[str] = set()
    for raw in lines:
        if raw and raw[0] == "!":
            continue
        line = process_line(raw)
        if not line:
            continue
        diags.trace(Directive.from_domain(line, Polarity.BLOCK))
        out.add(line)
    return out


def remove_allowlisted(domains: Set[str], allowlist: Iterable[str]) -> Set[str]:
    """Carve every allow-listed domain's subtree out of `domains`.

    Returns a new set; entries equal to an allow-listed host are removed
    whichever scope they carry.
    """
    out = set(domains)
    trie = DomainTrie(out)
    removed = 0
    for white in allowlist:
        for hit in trie.find(white, include_self=True):
            if hit in out:
                out.discard(hit)
                removed += 1
    if removed:
        logger.info("allowlist removed %d domains", removed)
    return out


def build_domainset(lines: Iterable[str], normalizer: DomainNormalizer) -> List[str]:
    """Filter, dedupe and stably sort a hand-maintained domain set."""
    kept: List[str] = []
    for raw in lines:
        line = process_line(raw)
        if line:
            kept.append(line)
    return sort_domains(dedupe(kept), normalizer)
