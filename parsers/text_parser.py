"""parsers/text_parser.py — Parse typed text, plain-text and Markdown files into pages and chapters."""

import re
from pathlib import Path

from chapters import SegmenterConfig
from layout import assemble_page
from models import DocumentMetadata
from parsers.base import (
    ParseResult,
    ProgressCallback,
    build_document,
    clean_text,
    report,
    title_from_filename,
)
from text_utils import generate_title

PAGE_BREAK = "\f"
_MD_HEADING = re.compile(r"^(\f?)#{1,6}[ \t]+", re.MULTILINE)


def _extract_frontmatter(content: str) -> tuple[dict, str]:
    """Extract YAML frontmatter (--- delimited) if present. Returns (meta, body)."""
    m = re.match(r"^---\s*\n(.*?)\n---\s*\n", content, re.DOTALL)
    if not m:
        return {}, content
    meta = {}
    for line in m.group(1).split("\n"):
        if ":" in line:
            key, _, value = line.partition(":")
            meta[key.strip().lower()] = value.strip().strip("\"'")
    return meta, content[m.end():]


def parse_plain_text(
    text: str,
    title: str | None = None,
    author: str | None = None,
    on_progress: ProgressCallback | None = None,
    segmenter_config: SegmenterConfig | None = None,
) -> ParseResult:
    """
    Structure typed or pasted text. Form feeds separate pages; without them
    the whole text is a single page.
    """
    raw_pages = text.split(PAGE_BREAK)
    if len(raw_pages) > 1 and not raw_pages[-1].strip():
        raw_pages.pop()  # trailing form feed

    pages = []
    total = len(raw_pages)
    for page_num, raw in enumerate(raw_pages, start=1):
        report(on_progress, page_num, total, f"Loading page {page_num} of {total}")
        lines = [line for line in clean_text(raw).split("\n") if line]
        pages.append(assemble_page(page_num, lines))

    metadata = DocumentMetadata(
        title=title or generate_title(text) or "Untitled",
        author=author,
        num_pages=len(pages),
        source_format="text",
    )
    return ParseResult.ok(build_document(pages, metadata, segmenter_config))


def parse_text(
    file_path: Path,
    on_progress: ProgressCallback | None = None,
    segmenter_config: SegmenterConfig | None = None,
) -> ParseResult:
    """Parse a .txt or .md file. Markdown heading markers are dropped so headings read as plain lines."""
    file_path = Path(file_path)
    try:
        content = file_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        return ParseResult.failed(f"Could not read {file_path.name}: {e}")

    frontmatter, body = _extract_frontmatter(content)
    if file_path.suffix.lower() in (".md", ".markdown"):
        body = _MD_HEADING.sub(r"\1", body)

    return parse_plain_text(
        body,
        title=frontmatter.get("title") or title_from_filename(file_path.stem),
        author=frontmatter.get("author"),
        on_progress=on_progress,
        segmenter_config=segmenter_config,
    )
