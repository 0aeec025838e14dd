from __future__ import annotations

from functools import cmp_to_key
from typing import Callable, Iterable, List, Tuple

from domainset.services.directive import Scope, split_scope
from domainset.services.domain_normalizer import DomainNormalizer


SortKey = Tuple[str, Tuple[str, ...], int, str]


def domain_sort_key(normalizer: DomainNormalizer) -> Callable[[str], SortKey]:
    """Key grouping domains by apex, apex first, then by reversed labels.

    Hosts without a registrable apex (bare suffixes, unlisted TLDs) form a
    group of their own. For the same host the exact entry sorts before the
    subtree one.
    """

    def key(domain: str) -> SortKey:
        host, scope = split_scope(domain)
        apex = normalizer.apex(host) or host
        labels = host.split(".")
        below = labels[: len(labels) - len(apex.split("."))] if host != apex else []
        return apex, tuple(reversed(below)), (0 if scope is Scope.EXACT else 1), domain

    return key


def compare_domains(a: str, b: str, normalizer: DomainNormalizer) -> int:
    key = domain_sort_key(normalizer)
    ka, kb = key(a), key(b)
    if ka < kb:
        return -1
    if ka > kb:
        return 1
    return 0


def sort_domains(domains: Iterable[str], normalizer: DomainNormalizer) -> List[str]:
    return sorted(domains, key=domain_sort_key(normalizer))


def domain_comparator(normalizer: DomainNormalizer):
    """functools-style comparator, for callers that sort with cmp_to_key."""
    return cmp_to_key(lambda a, b: compare_domains(a, b, normalizer))
