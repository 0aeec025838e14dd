from __future__ import annotations

import enum
from dataclasses import dataclass


class Polarity(enum.Enum):
    ALLOW = "allow"
    BLOCK = "block"


class Scope(enum.Enum):
    EXACT = "exact"
    SUBTREE = "subtree"


@dataclass(frozen=True)
class Directive:
    hostname: str
    scope: Scope
    polarity: Polarity

    def to_domain(self) -> str:
        # Leading dot marks the subtree scope in every domain set.
        if self.scope is Scope.SUBTREE:
            return "." + self.hostname
        return self.hostname

    @classmethod
    def from_domain(cls, domain: str, polarity: Polarity) -> "Directive":
        if domain.startswith("."):
            return cls(hostname=domain[1:], scope=Scope.SUBTREE, polarity=polarity)
        return cls(hostname=domain, scope=Scope.EXACT, polarity=polarity)


def allow(hostname: str, subtree: bool) -> Directive:
    return Directive(hostname, Scope.SUBTREE if subtree else Scope.EXACT, Polarity.ALLOW)


def block(hostname: str, subtree: bool) -> Directive:
    return Directive(hostname, Scope.SUBTREE if subtree else Scope.EXACT, Polarity.BLOCK)


def split_scope(domain: str) -> tuple[str, Scope]:
    if domain.startswith("."):
        return domain[1:], Scope.SUBTREE
    return domain, Scope.EXACT
