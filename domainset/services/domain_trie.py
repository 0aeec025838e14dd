from __future__ import annotations

from typing import Dict, Iterable, Iterator, List, Optional, Set, Tuple

from domainset.services.directive import Scope, split_scope


class TrieNode:
    """One label position; `scopes` is non-empty when a stored domain ends here."""

    __slots__ = ("children", "scopes")

    def __init__(self) -> None:
        self.children: Dict[str, "TrieNode"] = {}
        self.scopes: Set[Scope] = set()


def _labels(host: str) -> List[str]:
    # Suffix-side label first: 'ads.example.com' -> ['com', 'example', 'ads'].
    return [p for p in reversed(host.split(".")) if p]


def _render(labels: List[str], scope: Scope) -> str:
    host = ".".join(reversed(labels))
    return "." + host if scope is Scope.SUBTREE else host


class DomainTrie:
    """Domain strings keyed by reversed labels, so subdomain queries become prefix walks.

    Domains are stored in the leading-dot convention: '.example.com' is the
    subtree entry, 'example.com' the exact one. Both may coexist.
    """

    def __init__(self, domains: Optional[Iterable[str]] = None) -> None:
        self.root = TrieNode()
        self._size = 0
        for d in domains or ():
            self.insert(d)

    def __len__(self) -> int:
        return self._size

    def __contains__(self, domain: str) -> bool:
        return self.has(domain)

    def insert(self, domain: str) -> None:
        host, scope = split_scope(domain)
        node = self.root
        for label in _labels(host):
            child = node.children.get(label)
            if child is None:
                child = TrieNode()
                node.children[label] = child
            node = child
        if scope not in node.scopes:
            node.scopes.add(scope)
            self._size += 1

    def _node(self, host: str) -> Optional[TrieNode]:
        node = self.root
        for label in _labels(host):
            node = node.children.get(label)
            if node is None:
                return None
        return node

    def has(self, domain: str) -> bool:
        host, _ = split_scope(domain)
        node = self._node(host)
        return node is not None and bool(node.scopes)

    def _walk(self, node: TrieNode, path: List[str]) -> Iterator[Tuple[List[str], TrieNode]]:
        stack = [(node, path)]
        while stack:
            n, p = stack.pop()
            yield p, n
            for label, child in n.children.items():
                stack.append((child, p + [label]))

    def find(self, domain: str, include_self: bool = True) -> List[str]:
        """Every stored domain at or below `domain`, in its stored form.

        With include_self=False entries for `domain` itself (either scope)
        are left out.
        """
        host, _ = split_scope(domain)
        base = _labels(host)
        start = self._node(host)
        if start is None:
            return []
        out: List[str] = []
        for path, node in self._walk(start, base):
            if not node.scopes:
                continue
            if node is start and not include_self:
                continue
            for scope in sorted(node.scopes, key=lambda s: s.value):
                out.append(_render(path, scope))
        return out

    def ancestors(self, domain: str, include_self: bool = False, scope: Optional[Scope] = None) -> List[str]:
        """Stored domains that `domain` sits under, nearest the root first."""
        host, _ = split_scope(domain)
        labels = _labels(host)
        out: List[str] = []
        node = self.root
        for i, label in enumerate(labels):
            node = node.children.get(label)
            if node is None:
                break
            if i == len(labels) - 1 and not include_self:
                break
            for s in sorted(node.scopes, key=lambda s: s.value):
                if scope is None or s is scope:
                    out.append(_render(labels[: i + 1], s))
        return out
