from __future__ import annotations

import logging
from typing import Iterable, List

from domainset.services.directive import Scope, split_scope
from domainset.services.domain_trie import DomainTrie


logger = logging.getLogger(__name__)


def dedupe(domains: Iterable[str]) -> List[str]:
    """Reduce a single-polarity domain set to its minimal covering set.

    An exact entry goes when a subtree entry covers it (itself included);
    a subtree entry goes when a shorter subtree entry covers it. Allow and
    block sets must be passed separately. Output order is not meaningful.
    """
    items = sorted({d for d in domains if d})
    trie = DomainTrie(d for d in items if d.startswith("."))

    out: List[str] = []
    for d in items:
        host, scope = split_scope(d)
        if trie.ancestors(host, include_self=(scope is Scope.EXACT), scope=Scope.SUBTREE):
            continue
        out.append(d)

    if len(out) != len(items):
        logger.debug("dedupe: %d -> %d domains", len(items), len(out))
    return out
