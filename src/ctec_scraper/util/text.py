from __future__ import annotations

import re
from typing import Optional, Sequence, Tuple


MarkerChain = Tuple[str, Optional[str]]

_WS_RE = re.compile(r"\s+")

# Tried in order; a missing end marker runs to the end of the text.
ESSAY_MARKER_CHAINS: tuple[MarkerChain, ...] = (
    ("ESSAY QUESTIONS", "DEMOGRAPHICS"),
    ("ESSAY QUESTIONS", "Creation Date"),
    ("ESSAY QUESTIONS", "Download PDF"),
    ("ESSAY QUESTIONS", None),
)


def norm(s: Optional[str]) -> str:
    """Collapse runs of whitespace to single spaces and trim."""
    return _WS_RE.sub(" ", s or "").strip()


def section_between(text: str, start_marker: str, end_marker: Optional[str]) -> Optional[str]:
    """
    Return the trimmed text after the first `start_marker`, up to the first `end_marker` after it.

    A None end marker, or one that does not occur after the start, means "to the end of the text".
    Returns None only when `start_marker` is absent.
    """
    start = text.find(start_marker)
    if start == -1:
        return None

    after_start = start + len(start_marker)
    end = text.find(end_marker, after_start) if end_marker else -1

    chunk = text[after_start:] if end == -1 else text[after_start:end]
    return chunk.strip()


def extract(full_text: str, marker_chains: Sequence[MarkerChain]) -> Optional[str]:
    """
    Boundary extraction with an ordered fallback chain.

    The first chain whose start marker is present wins, even if the bounded region is empty
    ("" is not None). Later chains only matter when an earlier start marker is missing.
    """
    text = full_text or ""
    for start_marker, end_marker in marker_chains:
        chunk = section_between(text, start_marker, end_marker)
        if chunk is not None:
            return chunk
    return None


def extract_essay(full_text: str) -> Optional[str]:
    return extract(full_text, ESSAY_MARKER_CHAINS)
