"""pacing.py — RSVP pacing: word timing, playback state transitions and the scheduler-driven engine."""

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any

from scheduler import Scheduler
from text_utils import split_words

logger = logging.getLogger(__name__)

DEFAULT_WPM = 300
SENTENCE_ENDINGS = (".", "!", "?")


@dataclass(frozen=True)
class PauseRule:
    enabled: bool = False
    duration_ms: float = 0.0

    @property
    def effective_ms(self) -> float:
        return self.duration_ms if self.enabled else 0.0


@dataclass(frozen=True)
class PauseSettings:
    comma: PauseRule = PauseRule()
    period: PauseRule = PauseRule()
    paragraph: PauseRule = PauseRule()


class PlaybackStatus(Enum):
    IDLE = "idle"
    PLAYING = "playing"
    PAUSED = "paused"
    FINISHED = "finished"


@dataclass(frozen=True)
class ReaderState:
    words: tuple[str, ...] = ()
    current_index: int = 0          # len(words) once playback has finished
    words_per_minute: float = DEFAULT_WPM
    is_playing: bool = False
    has_started: bool = False

    @property
    def total_words(self) -> int:
        return len(self.words)

    @property
    def status(self) -> PlaybackStatus:
        if self.is_playing:
            return PlaybackStatus.PLAYING
        if not self.has_started:
            return PlaybackStatus.IDLE
        if self.current_index >= self.total_words:
            return PlaybackStatus.FINISHED
        return PlaybackStatus.PAUSED

    @property
    def current_word(self) -> str:
        if 0 <= self.current_index < self.total_words:
            return self.words[self.current_index]
        return ""

    def snapshot(self) -> dict[str, Any]:
        return {
            "words": list(self.words),
            "current_index": self.current_index,
            "words_per_minute": self.words_per_minute,
            "is_playing": self.is_playing,
            "total_words": self.total_words,
        }


# --- Timing -----------------------------------------------------------------

def tokenize(text: str) -> tuple[str, ...]:
    return tuple(split_words(text))


def is_sentence_end(word: str) -> bool:
    return word.endswith(SENTENCE_ENDINGS)


def pause_after(words: Sequence[str], index: int, pauses: PauseSettings) -> float:
    """Extra milliseconds to hold words[index] before moving on."""
    word = words[index]
    extra = 0.0
    if word.endswith(","):
        extra += pauses.comma.effective_ms
    if is_sentence_end(word):
        extra += pauses.period.effective_ms
        # Sentence end followed by a capitalised word approximates a paragraph break
        if index + 1 < len(words):
            next_word = words[index + 1]
            if next_word[:1].isascii() and next_word[:1].isupper():
                extra += pauses.paragraph.effective_ms
    return extra


def base_delay_ms(words_per_minute: float) -> float:
    return 60000 / words_per_minute


def word_delay_ms(
    words: Sequence[str],
    index: int,
    words_per_minute: float,
    pauses: PauseSettings,
) -> float:
    return base_delay_ms(words_per_minute) + pause_after(words, index, pauses)


def total_time_from_index(
    words: Sequence[str],
    start_index: int,
    words_per_minute: float,
    pauses: PauseSettings,
) -> float:
    """
    Milliseconds from showing words[start_index] until the last word is shown,
    following exactly the delays the engine schedules.
    """
    total = 0.0
    for i in range(max(start_index, 0), len(words) - 1):
        total += word_delay_ms(words, i, words_per_minute, pauses)
    return total


# --- State transitions ------------------------------------------------------

def load_words(
    state: ReaderState,
    words: tuple[str, ...],
    words_per_minute: float,
) -> tuple[ReaderState, bool]:
    """Load a word sequence. Identical content keeps position and play state."""
    if words == state.words:
        return replace(state, words_per_minute=words_per_minute), True
    return ReaderState(words=words, words_per_minute=words_per_minute), False


def play(state: ReaderState) -> ReaderState:
    index = 0 if state.current_index >= state.total_words else state.current_index
    return replace(state, current_index=index, is_playing=True, has_started=True)


def pause(state: ReaderState) -> ReaderState:
    return replace(state, is_playing=False)


def restart(state: ReaderState) -> ReaderState:
    return replace(state, current_index=0, is_playing=False)


def seek(state: ReaderState, index: int) -> ReaderState:
    if 0 <= index < state.total_words:
        return replace(state, current_index=index)
    return state


def step(state: ReaderState, delta: int) -> ReaderState:
    return seek(state, state.current_index + delta)


def set_rate(state: ReaderState, words_per_minute: float) -> ReaderState:
    return replace(state, words_per_minute=words_per_minute)


def advance(state: ReaderState) -> tuple[ReaderState, bool]:
    """One tick. Returns the new state and whether playback just finished."""
    if state.current_index < state.total_words - 1:
        return replace(state, current_index=state.current_index + 1), False
    return replace(state, current_index=state.total_words, is_playing=False), True


# --- Engine -----------------------------------------------------------------

@dataclass
class ReaderConfig:
    initial_wpm: float = DEFAULT_WPM
    pause_settings: PauseSettings = field(default_factory=PauseSettings)
    on_state_change: Callable[[ReaderState], None] | None = None
    on_complete: Callable[[], None] | None = None


class PacingEngine:
    """
    Owns one ReaderState and at most one pending tick on a Scheduler.
    Every operation cancels the pending tick before changing state, then
    notifies the state observer synchronously.
    """

    def __init__(self, scheduler: Scheduler):
        self._scheduler = scheduler
        self._state = ReaderState()
        self._pauses = PauseSettings()
        self._handle = None
        self._wake_at: float | None = None
        self._completion_sent = False
        self._on_state_change: Callable[[ReaderState], None] | None = None
        self._on_complete: Callable[[], None] | None = None

    @property
    def state(self) -> ReaderState:
        return self._state

    @property
    def current_word(self) -> str:
        return self._state.current_word

    @property
    def pause_settings(self) -> PauseSettings:
        return self._pauses

    @property
    def next_wake_time(self) -> float | None:
        """Scheduler time (ms) at which the pending tick fires, if any."""
        return self._wake_at

    def initialize(self, text: str, config: ReaderConfig | None = None) -> None:
        config = config or ReaderConfig()
        self._cancel()
        was_playing = self._state.is_playing
        wpm = config.initial_wpm if config.initial_wpm and config.initial_wpm > 0 else DEFAULT_WPM

        state, same_text = load_words(self._state, tokenize(text), wpm)
        if not same_text:
            logger.debug("Loaded %d words", state.total_words)
        self._state = state
        self._pauses = config.pause_settings
        self._on_state_change = config.on_state_change
        self._on_complete = config.on_complete

        self._notify()
        if same_text and was_playing:
            self._schedule()

    def play(self) -> None:
        self._cancel()
        self._state = play(self._state)
        self._completion_sent = False
        if not self._state.words:
            self._state, _ = advance(self._state)
            self._notify()
            self._send_completion()
            return
        self._schedule()
        self._notify()

    def pause(self) -> None:
        self._cancel()
        self._state = pause(self._state)
        self._notify()

    def toggle_play_pause(self) -> None:
        if self._state.is_playing:
            self.pause()
        else:
            self.play()

    def restart(self) -> None:
        self._cancel()
        self._state = restart(self._state)
        self._notify()

    def next_word(self) -> None:
        self._move_to(step(self._state, 1))

    def previous_word(self) -> None:
        self._move_to(step(self._state, -1))

    def jump_to_word(self, index: int) -> None:
        self._move_to(seek(self._state, index))

    def set_words_per_minute(self, words_per_minute: float) -> None:
        if words_per_minute <= 0:
            return
        self._cancel()
        self._state = set_rate(self._state, words_per_minute)
        if self._state.is_playing:
            self._schedule()
        self._notify()

    def get_total_time_from_index(self, start_index: int) -> float:
        return total_time_from_index(
            self._state.words, start_index, self._state.words_per_minute, self._pauses
        )

    def get_time_remaining(self) -> float:
        return self.get_total_time_from_index(self._state.current_index)

    def get_progress(self) -> float:
        """Percentage of words shown, 0-100."""
        if not self._state.words:
            return 0.0
        shown = min(self._state.current_index + 1, self._state.total_words)
        return shown / self._state.total_words * 100

    def destroy(self) -> None:
        self._cancel()
        self._state = ReaderState()
        self._on_state_change = None
        self._on_complete = None

    def _move_to(self, state: ReaderState) -> None:
        if state.current_index == self._state.current_index:
            return
        self._cancel()
        self._state = state
        if state.is_playing:
            self._schedule()
        self._notify()

    def _schedule(self) -> None:
        delay = word_delay_ms(
            self._state.words, self._state.current_index, self._state.words_per_minute, self._pauses
        )
        self._wake_at = self._scheduler.now() + delay
        self._handle = self._scheduler.call_later(delay, self._tick)

    def _cancel(self) -> None:
        if self._handle is not None:
            self._scheduler.cancel(self._handle)
        self._handle = None
        self._wake_at = None

    def _tick(self) -> None:
        self._handle = None
        self._wake_at = None
        if not self._state.is_playing:
            return
        self._state, finished = advance(self._state)
        if not finished:
            self._schedule()
        self._notify()
        if finished:
            self._send_completion()

    def _send_completion(self) -> None:
        if self._completion_sent:
            return
        self._completion_sent = True
        logger.debug("Playback finished after %d words", self._state.total_words)
        if self._on_complete:
            self._on_complete()

    def _notify(self) -> None:
        if self._on_state_change:
            self._on_state_change(self._state)
