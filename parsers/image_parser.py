"""parsers/image_parser.py — OCR an image with Tesseract and structure the recognised text."""

import logging
from pathlib import Path

from chapters import SegmenterConfig
from parsers.base import ParseResult, ProgressCallback, report, title_from_filename
from parsers.text_parser import parse_plain_text

logger = logging.getLogger(__name__)

SUPPORTED_LANGUAGES = {
    "eng": "English",
    "por": "Portuguese",
    "spa": "Spanish",
    "fra": "French",
    "deu": "German",
    "ita": "Italian",
    "jpn": "Japanese",
    "kor": "Korean",
    "chi_sim": "Chinese (Simplified)",
    "rus": "Russian",
}


def parse_image(
    file_path: Path,
    language: str = "eng",
    on_progress: ProgressCallback | None = None,
    segmenter_config: SegmenterConfig | None = None,
) -> ParseResult:
    """Recognise the text of a single image as a one-page document."""
    import pytesseract
    from PIL import Image

    file_path = Path(file_path)
    report(on_progress, 1, 1, f"Recognizing text ({SUPPORTED_LANGUAGES.get(language, language)})")
    try:
        with Image.open(file_path) as img:
            text = pytesseract.image_to_string(img, lang=language)
    except (OSError, pytesseract.TesseractError, pytesseract.TesseractNotFoundError) as e:
        logger.warning("OCR failed for %s: %s", file_path, e)
        return ParseResult.failed(f"OCR failed: {e}")

    result = parse_plain_text(
        text.strip(),
        title=title_from_filename(file_path.stem),
        segmenter_config=segmenter_config,
    )
    result.document.metadata.source_format = "image"
    return result
