"""chapters.py — Detect chapter boundaries in assembled pages and build page-range chapters."""

import logging
import re
from dataclasses import dataclass

from models import Chapter, ChapterCandidate, Page

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SegmenterConfig:
    """Tunable anti-noise guards for heading detection."""
    sparse_page_words: int = 150          # Pages below this are "mostly whitespace around a heading"
    max_candidates: int = 50              # More than this means the heuristics are firing on noise
    short_heading_max_words: int = 6
    numbered_heading_max_words: int = 10
    isolated_min_words: int = 2
    isolated_max_words: int = 12
    isolated_min_chars: int = 11
    isolated_max_chars: int = 99
    neighbour_max_chars: int = 19         # Neighbour lines this short count as whitespace
    fallback_pages_per_chapter: int = 10


EXPLICIT_CHAPTER_PATTERNS = [
    re.compile(r"^chapter\s+\d+", re.IGNORECASE),
    re.compile(r"^chapter\s+[ivxlcdm]+\b", re.IGNORECASE),
    re.compile(r"^capítulo\s+\d+", re.IGNORECASE),
    re.compile(r"^capítulo\s+[ivxlcdm]+\b", re.IGNORECASE),
    re.compile(r"^parte\s+\d+", re.IGNORECASE),
    re.compile(r"^part\s+\d+", re.IGNORECASE),
    re.compile(r"^seção\s+\d+", re.IGNORECASE),
    re.compile(r"^section\s+\d+", re.IGNORECASE),
]

FRONT_MATTER_PATTERNS = [
    re.compile(p, re.IGNORECASE)
    for p in (
        r"^sum[aá]rio", r"^summary",
        r"^introdu[cç][aã]o", r"^introduction",
        r"^pref[aá]cio", r"^preface",
        r"^apresenta[cç][aã]o", r"^presentation",
        r"^nota", r"^note",
        r"^agradecimentos", r"^acknowledge?ments",
        r"^dedicat[oó]ria", r"^dedication",
        r"^conte[uú]do", r"^contents", r"^table of contents",
        r"^[ií]ndice", r"^index",
    )
]

_STARTS_CAPITAL = re.compile(r"^[A-Z]")
_END_PUNCTUATION = re.compile(r"[.!?;,]$")
_NUMBERED_HEADING = re.compile(r"^\d+[.:]?\s+[A-Z]")
_ROMAN_HEADING = re.compile(r"^[IVXLCDM]+[.:]\s*[A-Z]")


def is_front_matter(title: str) -> bool:
    lowered = title.strip().lower()
    return any(p.search(lowered) for p in FRONT_MATTER_PATTERNS)


def is_likely_chapter_start(
    line: str,
    next_line: str,
    line_after_next: str,
    page_word_count: int,
    config: SegmenterConfig = SegmenterConfig(),
) -> bool:
    """Apply the explicit-pattern, short-heading and numbered-heading rules to one line."""
    line = line.strip()
    if not line:
        return False

    window = f"{line} {next_line} {line_after_next}".lower()
    for pattern in EXPLICIT_CHAPTER_PATTERNS:
        if pattern.search(line) or pattern.search(window):
            return True

    word_count = len(line.split())
    is_short = 1 <= word_count <= config.short_heading_max_words
    is_sparse_page = page_word_count < config.sparse_page_words
    is_all_caps = line.isupper() and len(line) > 2

    if is_short and is_sparse_page:
        if _STARTS_CAPITAL.search(line) and not _END_PUNCTUATION.search(line):
            return True
        if is_all_caps:
            return True

    if _NUMBERED_HEADING.search(line) or _ROMAN_HEADING.search(line):
        return word_count <= config.numbered_heading_max_words

    return False


def _is_isolated_title(
    lines: list[str],
    i: int,
    config: SegmenterConfig,
) -> bool:
    """Title-like line surrounded by short (or no) neighbours, away from the page top."""
    if i == 0:
        return False
    line = lines[i]
    prev_line = lines[i - 1]
    next_line = lines[i + 1] if i + 1 < len(lines) else ""
    if len(prev_line) > config.neighbour_max_chars or len(next_line) > config.neighbour_max_chars:
        return False
    if not config.isolated_min_chars <= len(line) <= config.isolated_max_chars:
        return False
    word_count = len(line.split())
    if not config.isolated_min_words <= word_count <= config.isolated_max_words:
        return False
    return bool(_STARTS_CAPITAL.search(line)) and not _END_PUNCTUATION.search(line)


def find_candidates(
    pages: list[Page],
    config: SegmenterConfig = SegmenterConfig(),
) -> list[ChapterCandidate]:
    """Scan every line of every page, in order, for chapter boundary candidates."""
    candidates = []
    for page_index, page in enumerate(pages):
        lines = [line.strip() for line in page.text.split("\n") if line.strip()]
        for i, line in enumerate(lines):
            next_line = lines[i + 1] if i + 1 < len(lines) else ""
            line_after_next = lines[i + 2] if i + 2 < len(lines) else ""

            matched = is_likely_chapter_start(
                line, next_line, line_after_next, page.word_count, config
            ) or _is_isolated_title(lines, i, config)

            if matched and not is_front_matter(line):
                candidates.append(ChapterCandidate(page_index=page_index, line_index=i, title=line))
    return candidates


def page_range_chapters(
    pages: list[Page],
    pages_per_chapter: int = 10,
) -> list[Chapter]:
    """Fallback: partition the document into fixed-size page ranges."""
    chapters = []
    for i in range(0, len(pages), pages_per_chapter):
        chunk = pages[i:i + pages_per_chapter]
        start, end = chunk[0].page_number, chunk[-1].page_number
        chapters.append(Chapter(
            title=f"Pages {start}-{end}",
            start_page=start,
            end_page=end,
            page_count=len(chunk),
            word_count=sum(p.word_count for p in chunk),
        ))
    return chapters


def chapters_from_candidates(
    pages: list[Page],
    candidates: list[ChapterCandidate],
) -> list[Chapter]:
    """
    Turn boundary candidates into contiguous chapters.
    Only the first candidate on a page starts a chapter, and pages before the
    first candidate belong to the first chapter.
    """
    starts: list[ChapterCandidate] = []
    for cand in candidates:
        if starts and starts[-1].page_index == cand.page_index:
            continue
        starts.append(cand)

    chapters = []
    for i, cand in enumerate(starts):
        first = 0 if i == 0 else cand.page_index
        last = starts[i + 1].page_index - 1 if i + 1 < len(starts) else len(pages) - 1
        members = pages[first:last + 1]
        chapters.append(Chapter(
            title=cand.title,
            start_page=members[0].page_number,
            end_page=members[-1].page_number,
            page_count=len(members),
            word_count=sum(p.word_count for p in members),
        ))
    return chapters


def detect_chapters(
    pages: list[Page],
    config: SegmenterConfig = SegmenterConfig(),
) -> list[Chapter]:
    """
    Build the chapter list for a document.
    Strategy: (1) heading candidates, (2) fixed page ranges when there are none or too many.
    """
    if not pages:
        return []

    candidates = find_candidates(pages, config)
    if not candidates or len(candidates) > config.max_candidates:
        logger.info(
            "Found %d chapter candidates; using %d-page ranges",
            len(candidates), config.fallback_pages_per_chapter,
        )
        return page_range_chapters(pages, config.fallback_pages_per_chapter)

    logger.info("Found %d chapter candidates across %d pages", len(candidates), len(pages))
    return chapters_from_candidates(pages, candidates)


def chapters_from_outline(
    outline: list[tuple[int, str, int]],
    pages: list[Page],
) -> list[Chapter] | None:
    """
    Build chapters from a PDF bookmark outline of (level, title, 1-based page).
    Returns None when the outline has fewer than two usable top-level entries.
    """
    if not outline or not pages:
        return None

    min_level = min(level for level, _, _ in outline)
    top_level = []
    for level, title, page_number in outline:
        if level != min_level or not title.strip():
            continue
        page_index = min(max(page_number - 1, 0), len(pages) - 1)
        if top_level and page_index <= top_level[-1].page_index:
            continue
        top_level.append(ChapterCandidate(page_index=page_index, line_index=0, title=title.strip()))

    if len(top_level) < 2:
        return None
    return chapters_from_candidates(pages, top_level)


def extract_text_from_pages(pages: list[Page], start_page: int, end_page: int) -> str:
    """Concatenate the text of an inclusive page range, pages separated by a blank line."""
    return "\n\n".join(
        p.text for p in pages if start_page <= p.page_number <= end_page
    ).strip()
