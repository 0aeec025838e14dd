from __future__ import annotations

import logging
import re
from typing import Optional

from domainset.services.diagnostics import Diagnostics
from domainset.services.directive import Directive, allow, block
from domainset.services.domain_normalizer import DomainNormalizer
from domainset.services.fallback_rules import FALLBACK_RULES, run_fallback
from domainset.services.filter_syntax import AdblockFilterParser, FilterParser, StructuredFilter


logger = logging.getLogger(__name__)


_NOT_NETWORK_CHARS = frozenset("!?*[](),#%&=~")
_NOT_DOMAIN_SCOPED_RE = re.compile(r"\$(?:popup|removeparam|popunder|csp)")
_BAD_LAST_CHARS = frozenset(".-_")


def fast_reject(line: str) -> bool:
    """True when line can not possibly be a domain rule."""
    if "." not in line:
        return True
    if any(ch in _NOT_NETWORK_CHARS for ch in line):
        return True
    if line[0] == "/" or line[-1] in _BAD_LAST_CHARS:
        return True
    if _NOT_DOMAIN_SCOPED_RE.search(line):
        return True
    # Path or port bearing rules are URL filters, not host rules.
    if ("/" in line or ":" in line) and "://" not in line:
        return True
    return False


_UNRESOLVED = object()


class LineClassifier:
    """Turns one raw filter-list line into a Directive or None.

    The strict filter parser is consulted first; lines it does not recognise
    go through the ordered fallback rules. The classifier keeps no state of
    its own, diagnostics are written to the collector passed per call.
    """

    def __init__(self, normalizer: DomainNormalizer, parser: Optional[FilterParser] = None, rules=FALLBACK_RULES) -> None:
        self.normalizer = normalizer
        self.parser = parser or AdblockFilterParser()
        self.rules = tuple(rules)

    def _from_structured(self, filt: StructuredFilter):
        if filt.unsupported:
            logger.debug("unsupported filter semantics: %s", filt.raw)
            return None
        if not (filt.hostname and filt.is_plain and not filt.is_regex):
            return _UNRESOLVED

        if not self.normalizer.apex(filt.hostname):
            logger.debug("no registrable domain: %s", filt.raw)
            return None
        hostname = self.normalizer.normalize(filt.hostname)
        if not hostname:
            logger.debug("invalid hostname: %s", filt.raw)
            return None

        subtree = filt.hostname_anchor
        if filt.is_exception or filt.is_bad_filter:
            return allow(hostname, subtree)

        # Party-restricted rules can not become unconditional domain rules.
        if filt.first_party and filt.third_party:
            return block(hostname, subtree)
        logger.debug("party restricted filter: %s", filt.raw)
        return None

    def classify(self, raw_line: str, diagnostics: Optional[Diagnostics] = None) -> Optional[Directive]:
        diags = diagnostics if diagnostics is not None else Diagnostics()
        line = (raw_line or "").strip()
        if not line or fast_reject(line):
            return None

        filt = self.parser.parse(line)
        if filt is not None:
            res = self._from_structured(filt)
            if res is not _UNRESOLVED:
                if res is not None:
                    diags.trace(res)
                return res

        directive = run_fallback(line, self.normalizer, diags, self.rules).directive
        if directive is not None:
            diags.trace(directive)
        return directive


def classify(
    raw_line: str,
    normalizer: DomainNormalizer,
    diagnostics: Optional[Diagnostics] = None,
) -> Optional[Directive]:
    return LineClassifier(normalizer).classify(raw_line, diagnostics)
