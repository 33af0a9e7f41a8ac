"""parsers/ — Input adapters that turn PDFs, text files and images into structured documents."""

from pathlib import Path

from parsers.base import ParseResult

PDF_EXTENSIONS = {".pdf"}
TEXT_EXTENSIONS = {".txt", ".text", ".md", ".markdown"}
IMAGE_EXTENSIONS = {".png", ".jpg", ".jpeg", ".tif", ".tiff", ".bmp", ".webp"}
SUPPORTED_EXTENSIONS = PDF_EXTENSIONS | TEXT_EXTENSIONS | IMAGE_EXTENSIONS


def parse_file(
    file_path: Path,
    on_progress=None,
    language: str = "eng",
    use_outline: bool = False,
    segmenter_config=None,
) -> ParseResult:
    """Dispatch to the appropriate parser based on file extension."""
    file_path = Path(file_path)
    suffix = file_path.suffix.lower()

    if suffix in PDF_EXTENSIONS:
        from parsers.pdf_parser import parse_pdf
        return parse_pdf(file_path, on_progress, use_outline, segmenter_config)
    elif suffix in TEXT_EXTENSIONS:
        from parsers.text_parser import parse_text
        return parse_text(file_path, on_progress, segmenter_config)
    elif suffix in IMAGE_EXTENSIONS:
        from parsers.image_parser import parse_image
        return parse_image(file_path, language, on_progress, segmenter_config)
    else:
        raise ValueError(
            f"Unsupported file format: '{suffix}'. "
            f"Supported: {', '.join(sorted(SUPPORTED_EXTENSIONS))}"
        )
