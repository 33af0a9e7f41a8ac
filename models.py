"""models.py — Shared data types for speedread."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class PositionedFragment:
    text: str
    baseline_y: float    # PDF user space, Y grows upward
    origin_x: float
    width: float = 0.0


@dataclass(frozen=True)
class Page:
    page_number: int     # 1-based
    text: str            # Reconstructed lines joined by "\n"
    word_count: int


@dataclass(frozen=True)
class ChapterCandidate:
    page_index: int      # 0-based index into the page list
    line_index: int
    title: str


@dataclass(frozen=True)
class Chapter:
    title: str
    start_page: int
    end_page: int        # Inclusive
    page_count: int
    word_count: int


@dataclass
class DocumentMetadata:
    title: str
    num_pages: int
    author: str | None = None
    subject: str | None = None
    source_format: str = ""         # "pdf", "text", "image"


@dataclass
class StructuredDocument:
    metadata: DocumentMetadata
    pages: list[Page] = field(default_factory=list)
    chapters: list[Chapter] = field(default_factory=list)

    @property
    def word_count(self) -> int:
        return sum(p.word_count for p in self.pages)


@dataclass(frozen=True)
class ParseProgress:
    current_page: int
    total_pages: int
    status: str
