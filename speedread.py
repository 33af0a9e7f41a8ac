#!/usr/bin/env python3
"""
speedread — Read documents word by word (RSVP) in the terminal.

Supported input formats: PDF, plain text / Markdown, images (OCR via Tesseract),
typed text on stdin

Quick start:
  1. Optionally tune defaults in .env (SPEEDREAD_WPM=350, ...)
  2. python speedread.py book.pdf --dry-run
  3. python speedread.py book.pdf --chapter 2 --wpm 400
  4. Ctrl-C pauses and saves your place; run the same command again to resume.
"""

import argparse
import asyncio
import hashlib
import json
import logging
import sys
from pathlib import Path

from tqdm import tqdm

STDIN_PATH = "-"


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Speed-read PDFs, text files and images one word at a time",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # List detected chapters and reading times:
  python speedread.py book.pdf --dry-run

  # Read chapter 3 at 450 words per minute:
  python speedread.py book.pdf --chapter 3 --wpm 450

  # Read pages 10 to 14 without punctuation pauses:
  python speedread.py book.pdf --pages 10-14 --no-pauses

  # OCR a photographed page in Portuguese:
  python speedread.py page.jpg --lang por

  # Read pasted or piped text:
  pbpaste | python speedread.py -
        """,
    )
    parser.add_argument(
        "input_path", type=Path,
        help="Path to a PDF, .txt/.md or image file, or - to read typed text from stdin",
    )
    selection = parser.add_mutually_exclusive_group()
    selection.add_argument(
        "--chapter", type=int, default=None, metavar="N",
        help="Read only chapter N (1-based, see --dry-run)",
    )
    selection.add_argument(
        "--pages", type=str, default=None, metavar="RANGE",
        help="Read only these pages, e.g. '3-7' or '5'",
    )
    parser.add_argument(
        "--wpm", type=float, default=None, metavar="N",
        help="Words per minute (default: SPEEDREAD_WPM or 300)",
    )
    parser.add_argument(
        "--lang", type=str, default=None, metavar="CODE",
        help="Tesseract language for images (default: SPEEDREAD_OCR_LANGUAGE or eng)",
    )
    parser.add_argument(
        "--use-outline", action="store_true", default=False,
        help="Prefer PDF bookmarks over heading detection for chapters",
    )
    parser.add_argument(
        "--no-pauses", action="store_true", default=False,
        help="Disable extra pauses after commas, sentences and paragraphs",
    )
    parser.add_argument(
        "--no-resume", action="store_true", default=False,
        help="Ignore saved progress and start from the first word",
    )
    parser.add_argument(
        "--progress-file", type=Path, default=None, metavar="PATH",
        help="Where reading positions are stored (default: SPEEDREAD_PROGRESS_FILE)",
    )
    parser.add_argument(
        "--dry-run", action="store_true",
        help="Parse input and list chapters without starting playback",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log parsing details")
    return parser.parse_args(argv)


def parse_page_range(range_str: str) -> tuple[int, int]:
    """Parse '3-7' or '5' into an inclusive (start, end) page pair."""
    if "-" in range_str:
        start, end = range_str.split("-", 1)
        return int(start), int(end)
    n = int(range_str)
    return n, n


def words_hash(words) -> str:
    return hashlib.sha256("\n".join(words).encode("utf-8")).hexdigest()[:16]


def load_progress(path: Path) -> dict:
    if path.exists():
        try:
            return json.loads(path.read_text())
        except json.JSONDecodeError:
            print(f"WARNING: Ignoring unreadable progress file {path}")
    return {}


def save_progress(progress: dict, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(progress, indent=2))


def print_chapter_list(document, wpm: float) -> None:
    from text_utils import format_reading_time, truncate

    meta = document.metadata
    print(f"Title:   {meta.title}")
    if meta.author:
        print(f"Author:  {meta.author}")
    if meta.subject:
        print(f"Subject: {meta.subject}")
    print(f"Format:  {meta.source_format}")
    print(f"Pages:   {meta.num_pages}")
    print(f"\nFound {len(document.chapters)} chapters:")
    print("-" * 78)
    for i, ch in enumerate(document.chapters, start=1):
        pages = f"p.{ch.start_page}-{ch.end_page}"
        minutes = format_reading_time(ch.word_count / wpm * 60)
        print(f"  {i:2d}. {truncate(ch.title, 40):<40} {pages:>11} {ch.word_count:>7} words  {minutes:>8}")
    print("-" * 78)
    total_words = document.word_count
    print(f"  Total: {total_words:,} words | ~{format_reading_time(total_words / wpm * 60)} at {wpm:g} WPM")
    print()


def select_text(document, chapter: int | None, pages: str | None) -> tuple[str, str]:
    """Return (selection label, text) for the requested chapter or page range."""
    from chapters import extract_text_from_pages

    if chapter is not None:
        if not 1 <= chapter <= len(document.chapters):
            raise ValueError(
                f"No chapter {chapter} (document has {len(document.chapters)} chapters)"
            )
        ch = document.chapters[chapter - 1]
        return f"chapter {chapter}: {ch.title}", extract_text_from_pages(
            document.pages, ch.start_page, ch.end_page
        )
    if pages:
        start, end = parse_page_range(pages)
        return f"pages {start}-{end}", extract_text_from_pages(document.pages, start, end)
    last = document.metadata.num_pages
    return "whole document", extract_text_from_pages(document.pages, 1, last)


def render_state(state) -> None:
    """Redraw the current word on one terminal line."""
    if not state.total_words:
        return
    shown = min(state.current_index + 1, state.total_words)
    percent = shown / state.total_words * 100
    print(f"\r  {state.current_word:^32}  [{percent:5.1f}%] ", end="", flush=True)


def play_text(text: str, wpm: float, pauses, start_index: int = 0):
    """Play text until it finishes or Ctrl-C. Returns the final ReaderState."""
    from pacing import PacingEngine, ReaderConfig, ReaderState, tokenize
    from scheduler import AsyncioScheduler

    holder = {}

    async def _run():
        loop = asyncio.get_running_loop()
        done = loop.create_future()
        engine = PacingEngine(AsyncioScheduler(loop))
        holder["engine"] = engine
        engine.initialize(text, ReaderConfig(
            initial_wpm=wpm,
            pause_settings=pauses,
            on_state_change=render_state,
            on_complete=lambda: done.done() or done.set_result(None),
        ))
        engine.jump_to_word(start_index)
        engine.play()
        await done

    try:
        asyncio.run(_run())
        print()
    except KeyboardInterrupt:
        print("\nPaused.")

    engine = holder.get("engine")
    if engine is None:
        return ReaderState(words=tokenize(text), words_per_minute=wpm)
    state = engine.state
    engine.destroy()
    return state


def read_stdin(on_progress, segmenter_config):
    """Structure typed or piped text; the title comes from its first line."""
    from parsers.base import ParseResult
    from parsers.text_parser import parse_plain_text

    text = sys.stdin.read()
    if not text.strip():
        return ParseResult.failed("Text cannot be empty")
    return parse_plain_text(text, on_progress=on_progress, segmenter_config=segmenter_config)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)

    import config
    from pacing import PauseSettings, tokenize, total_time_from_index
    from parsers import SUPPORTED_EXTENSIONS, parse_file
    from text_utils import format_reading_time, preview, text_stats

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    from_stdin = str(args.input_path) == STDIN_PATH
    if not from_stdin:
        if not args.input_path.exists():
            print(f"ERROR: File not found: {args.input_path}")
            return 1
        if args.input_path.suffix.lower() not in SUPPORTED_EXTENSIONS:
            print(f"ERROR: Unsupported file format '{args.input_path.suffix}'.")
            print(f"Supported: {', '.join(sorted(SUPPORTED_EXTENSIONS))}")
            return 1

    wpm = args.wpm if args.wpm and args.wpm > 0 else config.DEFAULT_WPM
    pauses = PauseSettings() if args.no_pauses else config.default_pause_settings()
    progress_file = args.progress_file or config.PROGRESS_FILE

    # Parse input
    print(f"Parsing: {'standard input' if from_stdin else args.input_path}")
    bar = None

    def on_progress(p):
        nonlocal bar
        if bar is None:
            bar = tqdm(total=p.total_pages, desc="  Pages", unit="page")
        bar.set_postfix_str(p.status)
        bar.update(p.current_page - bar.n)

    if from_stdin:
        result = read_stdin(on_progress, config.default_segmenter_config())
    else:
        result = parse_file(
            args.input_path,
            on_progress=on_progress,
            language=args.lang or config.OCR_LANGUAGE,
            use_outline=args.use_outline,
            segmenter_config=config.default_segmenter_config(),
        )
    if bar is not None:
        bar.close()
    if not result.success:
        name = "standard input" if from_stdin else args.input_path.name
        print(f"ERROR: Could not read {name}: {result.error}")
        return 1

    document = result.document
    print_chapter_list(document, wpm)
    if args.dry_run:
        print("Dry run complete.")
        return 0

    try:
        label, text = select_text(document, args.chapter, args.pages)
    except ValueError as e:
        print(f"ERROR: {e}")
        return 1

    words = tokenize(text)
    if not words:
        print(f"Nothing to read in {label}.")
        return 0

    # One saved position per source and selection, reused only while the words are unchanged
    key = STDIN_PATH if from_stdin else str(args.input_path.resolve())
    progress = load_progress(progress_file)
    entries = progress.get(key)
    if not isinstance(entries, dict) or "selection" in entries:
        entries = {}
    saved = {} if args.no_resume else entries.get(label, {})

    if args.wpm is None and saved.get("words_per_minute", 0) > 0:
        wpm = saved["words_per_minute"]

    start_index = 0
    if saved.get("words_hash") == words_hash(words) and 0 < saved.get("current_index", 0) < len(words):
        start_index = saved["current_index"]
        print(f"Resuming {label} at word {start_index + 1} of {len(words)} ({wpm:g} WPM)")
    else:
        stats = text_stats(text, wpm)
        print(f"Reading {label}: {stats.word_count:,} words, {stats.character_count:,} characters at {wpm:g} WPM")
        print(f"  {preview(text, 12)}")

    remaining_s = total_time_from_index(words, start_index, wpm, pauses) / 1000
    print(f"Time remaining: {format_reading_time(remaining_s)}  (Ctrl-C to pause)\n")

    state = play_text(text, wpm, pauses, start_index)

    finished = state.current_index >= state.total_words
    entries[label] = {
        "words_hash": words_hash(state.words),
        "current_index": 0 if finished else state.current_index,
        "words_per_minute": state.words_per_minute,
    }
    progress[key] = entries
    save_progress(progress, progress_file)
    if finished:
        print("Finished.")
    else:
        print(f"Saved position: word {state.current_index + 1} of {state.total_words}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
