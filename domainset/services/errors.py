from __future__ import annotations

import re


class DirectiveError(RuntimeError):
    """A classified directive reached the domain-set mapping without a known meaning.

    Unlike a rejected line this is not a data-quality problem: it means the
    classifier produced a value the rest of the pipeline cannot interpret.
    """


def clean_text(text: str, *, max_len: int = 200) -> str:
    s = (text or "").replace("\r", " ").replace("\n", " ").strip()
    # Remove other control chars.
    s = "".join(ch if (ch >= " " and ch != "\x7f") else " " for ch in s)
    s = re.sub(r"\s+", " ", s).strip()
    if max_len and len(s) > max_len:
        s = s[: max_len - 3].rstrip() + "..."
    return s
