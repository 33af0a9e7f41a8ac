"""parsers/pdf_parser.py — Decode PDFs into positioned fragments with pymupdf and structure them."""

import logging
from pathlib import Path

from chapters import SegmenterConfig, chapters_from_outline
from layout import build_page
from models import DocumentMetadata, Page, PositionedFragment
from parsers.base import ParseResult, ProgressCallback, build_document, report, title_from_filename

logger = logging.getLogger(__name__)


def page_fragments(page) -> list[PositionedFragment]:
    """
    Collect text spans of one pymupdf page as fragments.
    pymupdf measures y downward from the top edge; flip it so y grows upward.
    """
    height = page.rect.height
    fragments = []
    for block in page.get_text("dict")["blocks"]:
        if block.get("type") != 0:  # not a text block
            continue
        for line in block["lines"]:
            for span in line["spans"]:
                if not span["text"]:
                    continue
                x0, _, x1, _ = span["bbox"]
                origin_x, origin_y = span["origin"]
                fragments.append(PositionedFragment(
                    text=span["text"],
                    baseline_y=height - origin_y,
                    origin_x=origin_x,
                    width=x1 - x0,
                ))
    return fragments


def _metadata_value(pdf_meta: dict, key: str) -> str | None:
    value = pdf_meta.get(key)
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def parse_pdf(
    file_path: Path,
    on_progress: ProgressCallback | None = None,
    use_outline: bool = False,
    segmenter_config: SegmenterConfig | None = None,
) -> ParseResult:
    """
    Parse a PDF into pages and chapters.
    Strategy: (1) PDF bookmarks when use_outline is set, (2) heading heuristics, (3) fixed page ranges.
    """
    import fitz  # pymupdf

    file_path = Path(file_path)
    try:
        doc = fitz.open(str(file_path))
    except Exception as e:
        logger.warning("Could not open %s: %s", file_path, e)
        return ParseResult.failed(str(e) or "PDF parsing failed")

    try:
        total = doc.page_count
        pages: list[Page] = []
        for page_num in range(1, total + 1):
            report(on_progress, page_num, total, f"Loading page {page_num} of {total}")
            pages.append(build_page(page_num, page_fragments(doc[page_num - 1])))

        pdf_meta = doc.metadata or {}
        metadata = DocumentMetadata(
            title=_metadata_value(pdf_meta, "title") or title_from_filename(file_path.stem),
            author=_metadata_value(pdf_meta, "author"),
            subject=_metadata_value(pdf_meta, "subject"),
            num_pages=total,
            source_format="pdf",
        )

        document = build_document(pages, metadata, segmenter_config)
        if use_outline:
            outline_chapters = chapters_from_outline(doc.get_toc(), pages)
            if outline_chapters:
                document.chapters = outline_chapters
            else:
                logger.info("No usable outline in %s; keeping detected chapters", file_path.name)
    except Exception as e:
        logger.warning("Failed to decode %s: %s", file_path, e)
        return ParseResult.failed(str(e) or "PDF parsing failed")
    finally:
        doc.close()

    return ParseResult.ok(document)
