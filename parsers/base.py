"""parsers/base.py — Shared parser utilities and types."""

import re
from collections.abc import Callable
from dataclasses import dataclass

from chapters import SegmenterConfig, detect_chapters
from models import DocumentMetadata, Page, ParseProgress, StructuredDocument

ProgressCallback = Callable[[ParseProgress], None]


@dataclass
class ParseResult:
    """Standard return type for all parsers. Failures carry a message and no document."""
    success: bool
    document: StructuredDocument | None = None
    error: str | None = None

    @classmethod
    def ok(cls, document: StructuredDocument) -> "ParseResult":
        return cls(success=True, document=document)

    @classmethod
    def failed(cls, error: str) -> "ParseResult":
        return cls(success=False, error=error)


def clean_text(text: str) -> str:
    """Normalize typographic characters and collapse blank-line runs."""
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = text.replace("\u00ad", "")
    text = text.replace("\u2018", "'").replace("\u2019", "'")
    text = text.replace("\u201c", '"').replace("\u201d", '"')
    lines = text.split("\n")
    lines = [re.sub(r"[ \t]+", " ", line).strip() for line in lines]
    cleaned_lines = []
    prev_blank = False
    for line in lines:
        if not line:
            if not prev_blank:
                cleaned_lines.append("")
            prev_blank = True
        else:
            cleaned_lines.append(line)
            prev_blank = False
    return "\n".join(cleaned_lines).strip()


def title_from_filename(stem: str) -> str:
    return stem.strip() or "Untitled"


def report(on_progress: ProgressCallback | None, current: int, total: int, status: str) -> None:
    if on_progress:
        on_progress(ParseProgress(current_page=current, total_pages=total, status=status))


def build_document(
    pages: list[Page],
    metadata: DocumentMetadata,
    segmenter_config: SegmenterConfig | None = None,
) -> StructuredDocument:
    chapters = detect_chapters(pages, segmenter_config or SegmenterConfig())
    return StructuredDocument(metadata=metadata, pages=pages, chapters=chapters)
