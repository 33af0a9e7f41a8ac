"""layout.py — Rebuild reading-order lines and pages from positioned text fragments."""

import math
from collections import defaultdict
from collections.abc import Iterable

from models import Page, PositionedFragment
from text_utils import count_words

# Horizontal gap (page units) above which two fragments are separate words.
# Kerned glyph runs usually touch or overlap, so they stay joined.
WORD_GAP_THRESHOLD = 1.0


def cluster_fragments(
    fragments: Iterable[PositionedFragment],
) -> list[tuple[int, list[PositionedFragment]]]:
    """
    Group fragments into lines by rounded baseline.
    Returns (bucket, fragments) pairs, top of page first, each line sorted left to right.
    """
    buckets: dict[int, list[PositionedFragment]] = defaultdict(list)
    for frag in fragments:
        if not frag.text:
            continue
        buckets[math.floor(frag.baseline_y + 0.5)].append(frag)

    lines = []
    for y in sorted(buckets, reverse=True):
        lines.append((y, sorted(buckets[y], key=lambda f: f.origin_x)))
    return lines


def join_line(fragments: list[PositionedFragment]) -> str:
    """Concatenate one line's fragments, spacing them where the gap says so."""
    parts = []
    prev = None
    for frag in fragments:
        if prev is not None:
            gap = frag.origin_x - (prev.origin_x + prev.width)
            if gap > WORD_GAP_THRESHOLD:
                parts.append(" ")
        parts.append(frag.text)
        prev = frag
    return "".join(parts).strip()


def build_lines(fragments: Iterable[PositionedFragment]) -> list[str]:
    """Reconstruct the non-empty text lines of one page in reading order."""
    lines = []
    for _, line_fragments in cluster_fragments(fragments):
        text = join_line(line_fragments)
        if text:
            lines.append(text)
    return lines


def assemble_page(page_number: int, lines: list[str]) -> Page:
    text = "\n".join(lines)
    return Page(page_number=page_number, text=text, word_count=count_words(text))


def build_page(page_number: int, fragments: Iterable[PositionedFragment]) -> Page:
    return assemble_page(page_number, build_lines(fragments))
