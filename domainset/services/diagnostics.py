from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass
from typing import Dict, List, Optional, Set, Tuple

from domainset.services.directive import Directive, Polarity
from domainset.services.errors import clean_text


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Diagnostic:
    stage: str
    code: str
    text: str
    source: str


class Diagnostics:
    """Collects rejections and debug traces for a single upstream list.

    One instance belongs to one invocation; nothing is shared between
    lists, so several lists can be classified concurrently.
    """

    def __init__(
        self,
        source: str = "",
        *,
        debug_domain: str = "",
        max_len: int = 200,
        max_records_per_code: int = 100,
    ) -> None:
        self.source = source
        self.debug_domain = (debug_domain or "").strip().lower()
        self.max_len = int(max_len)
        self.found_debug_domain = False
        self.max_records_per_code = int(max_records_per_code)
        self._records: List[Diagnostic] = []
        self._counts: Counter = Counter()
        self._warned: Set[Tuple[str, str]] = set()

    def _should_log(self, key: str, kind: str) -> bool:
        k = (key, kind)
        if k in self._warned:
            return False
        self._warned.add(k)
        return True

    def reject(self, stage: str, code: str, text: str) -> None:
        rec = Diagnostic(stage=stage, code=code, text=clean_text(text, max_len=self.max_len), source=self.source)
        self._counts[code] += 1
        # Counts stay exact; only the first records per code are kept.
        if self._counts[code] <= self.max_records_per_code:
            self._records.append(rec)
        if self._should_log(code, "reject"):
            logger.warning("[%s] %s (%s): %s", code, stage, self.source or "-", rec.text)

    def trace(self, directive: Directive) -> None:
        if not self.debug_domain or self.debug_domain not in directive.hostname:
            return
        self.found_debug_domain = True
        kind = "white" if directive.polarity is Polarity.ALLOW else "black"
        if self._should_log(self.debug_domain, kind):
            logger.warning("%s (%s) %s -> %s", self.source or "-", kind, self.debug_domain, directive.to_domain())

    @property
    def records(self) -> List[Diagnostic]:
        return list(self._records)

    def counts(self) -> Dict[str, int]:
        return dict(sorted(self._counts.items()))

    def first(self, code: str) -> Optional[Diagnostic]:
        for r in self._records:
            if r.code == code:
                return r
        return None
