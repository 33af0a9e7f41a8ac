"""
Tests for RSVP pacing: word delays, state transitions and scheduler-driven playback.

Playback runs on ManualScheduler, so every timing assertion is against a
simulated clock rather than real waits.
"""

import unittest

from pacing import (
    PacingEngine,
    PauseRule,
    PauseSettings,
    PlaybackStatus,
    ReaderConfig,
    ReaderState,
    advance,
    load_words,
    pause_after,
    play,
    seek,
    tokenize,
    total_time_from_index,
    word_delay_ms,
)
from scheduler import ManualScheduler

SCENARIO_TEXT = "Hello, world. Next Sentence here."
SCENARIO_PAUSES = PauseSettings(
    comma=PauseRule(True, 200),
    period=PauseRule(True, 300),
    paragraph=PauseRule(True, 400),
)


class Recorder:
    """Collects engine notifications together with the simulated time they arrived."""

    def __init__(self, scheduler):
        self.scheduler = scheduler
        self.states = []
        self.times = []
        self.completions = 0

    def on_state_change(self, state):
        self.states.append(state)
        self.times.append(self.scheduler.now())

    def on_complete(self):
        self.completions += 1

    def config(self, wpm=300, pauses=None):
        return ReaderConfig(
            initial_wpm=wpm,
            pause_settings=pauses or PauseSettings(),
            on_state_change=self.on_state_change,
            on_complete=self.on_complete,
        )

    def index_times(self):
        """Simulated time at which each index was first shown."""
        seen = {}
        for state, t in zip(self.states, self.times):
            seen.setdefault(state.current_index, t)
        return seen


def make_engine(text, wpm=300, pauses=None):
    scheduler = ManualScheduler()
    recorder = Recorder(scheduler)
    engine = PacingEngine(scheduler)
    engine.initialize(text, recorder.config(wpm, pauses))
    return engine, scheduler, recorder


class TestTiming(unittest.TestCase):

    def test_tokenize_discards_empty_tokens(self):
        self.assertEqual(tokenize(SCENARIO_TEXT), ("Hello,", "world.", "Next", "Sentence", "here."))
        self.assertEqual(tokenize("  a \n\n b\t"), ("a", "b"))
        self.assertEqual(tokenize("   "), ())

    def test_scenario_delays(self):
        words = tokenize(SCENARIO_TEXT)
        self.assertAlmostEqual(word_delay_ms(words, 0, 300, SCENARIO_PAUSES), 200 + 200)
        self.assertAlmostEqual(word_delay_ms(words, 1, 300, SCENARIO_PAUSES), 200 + 300 + 400)
        self.assertAlmostEqual(word_delay_ms(words, 2, 300, SCENARIO_PAUSES), 200)
        self.assertAlmostEqual(word_delay_ms(words, 4, 300, SCENARIO_PAUSES), 200 + 300)

    def test_scenario_total_time(self):
        words = tokenize(SCENARIO_TEXT)
        self.assertAlmostEqual(total_time_from_index(words, 0, 300, SCENARIO_PAUSES), 1700)
        self.assertAlmostEqual(total_time_from_index(words, 2, 300, SCENARIO_PAUSES), 400)
        self.assertEqual(total_time_from_index(words, 4, 300, SCENARIO_PAUSES), 0)
        self.assertEqual(total_time_from_index(words, 10, 300, SCENARIO_PAUSES), 0)

    def test_disabled_rules_add_nothing(self):
        words = ("Wait,", "what?", "Yes.")
        self.assertEqual(pause_after(words, 0, PauseSettings()), 0)
        self.assertEqual(pause_after(words, 1, PauseSettings()), 0)
        only_period = PauseSettings(period=PauseRule(True, 250), paragraph=PauseRule(False, 900))
        self.assertEqual(pause_after(words, 1, only_period), 250)

    def test_paragraph_pause_needs_capitalised_next_word(self):
        pauses = PauseSettings(paragraph=PauseRule(True, 400))
        self.assertEqual(pause_after(("Wow!", "then"), 0, pauses), 0)
        self.assertEqual(pause_after(("Wow!", "Then"), 0, pauses), 400)
        self.assertEqual(pause_after(("Wow!",), 0, pauses), 0)
        self.assertEqual(pause_after(("Wow", "Then"), 0, pauses), 0)

    def test_exclamation_and_question_count_as_sentence_end(self):
        pauses = PauseSettings(period=PauseRule(True, 300))
        for word in ("Stop!", "Why?", "End."):
            with self.subTest(word=word):
                self.assertEqual(pause_after((word,), 0, pauses), 300)


class TestTransitions(unittest.TestCase):

    def test_load_same_words_keeps_position(self):
        state = ReaderState(words=("a", "b", "c"), current_index=2, is_playing=True, has_started=True)
        new, same = load_words(state, ("a", "b", "c"), 500)
        self.assertTrue(same)
        self.assertEqual(new.current_index, 2)
        self.assertTrue(new.is_playing)
        self.assertEqual(new.words_per_minute, 500)

    def test_load_new_words_resets(self):
        state = ReaderState(words=("a", "b"), current_index=1, is_playing=True, has_started=True)
        new, same = load_words(state, ("x",), 300)
        self.assertFalse(same)
        self.assertEqual(new, ReaderState(words=("x",), words_per_minute=300))

    def test_play_rewinds_when_finished(self):
        state = ReaderState(words=("a", "b"), current_index=2, has_started=True)
        self.assertEqual(state.status, PlaybackStatus.FINISHED)
        self.assertEqual(play(state).current_index, 0)

    def test_advance_past_last_word_finishes(self):
        state = ReaderState(words=("a", "b"), current_index=1, is_playing=True, has_started=True)
        new, finished = advance(state)
        self.assertTrue(finished)
        self.assertEqual(new.current_index, 2)
        self.assertFalse(new.is_playing)
        self.assertEqual(new.current_word, "")

    def test_seek_out_of_range_is_noop(self):
        state = ReaderState(words=("a", "b"))
        self.assertIs(seek(state, 5), state)
        self.assertIs(seek(state, -1), state)
        self.assertEqual(seek(state, 1).current_index, 1)

    def test_snapshot(self):
        state = ReaderState(words=("a", "b"), current_index=1, words_per_minute=250)
        self.assertEqual(state.snapshot(), {
            "words": ["a", "b"],
            "current_index": 1,
            "words_per_minute": 250,
            "is_playing": False,
            "total_words": 2,
        })


class TestPacingEngine(unittest.TestCase):

    def test_initialize_notifies_and_idles(self):
        engine, scheduler, rec = make_engine(SCENARIO_TEXT)
        self.assertEqual(len(rec.states), 1)
        self.assertEqual(engine.state.status, PlaybackStatus.IDLE)
        self.assertEqual(engine.state.total_words, 5)
        self.assertEqual(engine.current_word, "Hello,")
        self.assertEqual(scheduler.pending, 0)

    def test_scenario_playback_schedule(self):
        engine, scheduler, rec = make_engine(SCENARIO_TEXT, 300, SCENARIO_PAUSES)
        self.assertAlmostEqual(engine.get_time_remaining(), 1700)

        engine.play()
        self.assertEqual(engine.state.status, PlaybackStatus.PLAYING)
        self.assertAlmostEqual(engine.next_wake_time, 400)

        scheduler.run_until_idle()
        times = rec.index_times()
        self.assertAlmostEqual(times[1], 400)
        self.assertAlmostEqual(times[2], 1300)
        self.assertAlmostEqual(times[3], 1500)
        self.assertAlmostEqual(times[4], 1700)
        self.assertAlmostEqual(times[5], 2200)
        self.assertEqual(engine.state.status, PlaybackStatus.FINISHED)
        self.assertEqual(rec.completions, 1)

    def test_projection_matches_simulated_playback(self):
        text = ("It was late, and the rain kept falling. Nobody came! Why not? "
                "perhaps the road, flooded again, was closed. The end.")
        pauses = PauseSettings(PauseRule(True, 150), PauseRule(True, 350), PauseRule(True, 500))
        for wpm in (120, 300, 733):
            with self.subTest(wpm=wpm):
                engine, scheduler, rec = make_engine(text, wpm, pauses)
                expected = engine.get_total_time_from_index(0)
                engine.play()
                scheduler.run_until_idle()
                last = engine.state.total_words - 1
                self.assertAlmostEqual(rec.index_times()[last], expected, places=6)

    def test_projection_from_middle_index(self):
        engine, scheduler, rec = make_engine(SCENARIO_TEXT, 300, SCENARIO_PAUSES)
        engine.jump_to_word(2)
        expected = engine.get_time_remaining()
        start = scheduler.now()
        engine.play()
        scheduler.run_until_idle()
        self.assertAlmostEqual(rec.index_times()[4] - start, expected)

    def test_pause_cancels_pending_tick(self):
        engine, scheduler, rec = make_engine(SCENARIO_TEXT)
        engine.play()
        scheduler.advance(250)
        self.assertEqual(engine.state.current_index, 1)
        engine.pause()
        self.assertEqual(scheduler.pending, 0)
        self.assertIsNone(engine.next_wake_time)
        scheduler.advance(10_000)
        self.assertEqual(engine.state.current_index, 1)
        self.assertEqual(engine.state.status, PlaybackStatus.PAUSED)

    def test_toggle_play_pause(self):
        engine, scheduler, _ = make_engine(SCENARIO_TEXT)
        engine.toggle_play_pause()
        self.assertTrue(engine.state.is_playing)
        engine.toggle_play_pause()
        self.assertFalse(engine.state.is_playing)
        self.assertEqual(scheduler.pending, 0)

    def test_only_one_tick_outstanding(self):
        engine, scheduler, _ = make_engine(SCENARIO_TEXT)
        engine.play()
        engine.play()
        engine.set_words_per_minute(500)
        engine.next_word()
        engine.jump_to_word(0)
        engine.set_words_per_minute(200)
        self.assertEqual(scheduler.pending, 1)

    def test_rate_change_reschedules_from_now(self):
        engine, scheduler, _ = make_engine("one two three four")
        engine.play()
        self.assertAlmostEqual(engine.next_wake_time, 200)
        scheduler.advance(100)
        engine.set_words_per_minute(150)
        self.assertAlmostEqual(engine.next_wake_time, 100 + 400)
        scheduler.advance(399)
        self.assertEqual(engine.state.current_index, 0)
        scheduler.advance(1)
        self.assertEqual(engine.state.current_index, 1)
        self.assertAlmostEqual(engine.next_wake_time, 500 + 400)

    def test_rate_change_while_paused_does_not_schedule(self):
        engine, scheduler, rec = make_engine("one two")
        engine.set_words_per_minute(600)
        self.assertEqual(engine.state.words_per_minute, 600)
        self.assertEqual(scheduler.pending, 0)
        self.assertEqual(len(rec.states), 2)

    def test_non_positive_rate_ignored(self):
        engine, _, rec = make_engine("one two")
        engine.set_words_per_minute(0)
        engine.set_words_per_minute(-50)
        self.assertEqual(engine.state.words_per_minute, 300)
        self.assertEqual(len(rec.states), 1)

    def test_reinitialize_same_text_while_playing(self):
        engine, scheduler, rec = make_engine(SCENARIO_TEXT, 300, SCENARIO_PAUSES)
        engine.play()
        scheduler.advance(1300)
        self.assertEqual(engine.state.current_index, 2)

        engine.initialize("Hello,  world.\nNext Sentence   here.", rec.config(300, SCENARIO_PAUSES))
        self.assertEqual(engine.state.current_index, 2)
        self.assertTrue(engine.state.is_playing)
        self.assertEqual(scheduler.pending, 1)
        scheduler.advance(200)
        self.assertEqual(engine.state.current_index, 3)

    def test_reinitialize_different_text_resets(self):
        engine, scheduler, rec = make_engine(SCENARIO_TEXT)
        engine.play()
        scheduler.advance(600)
        engine.initialize("Something else entirely", rec.config())
        self.assertEqual(engine.state.current_index, 0)
        self.assertFalse(engine.state.is_playing)
        self.assertEqual(scheduler.pending, 0)
        self.assertEqual(engine.state.status, PlaybackStatus.IDLE)

    def test_step_is_clamped_and_silent_at_bounds(self):
        engine, _, rec = make_engine("a b c")
        engine.previous_word()
        self.assertEqual(len(rec.states), 1)
        engine.next_word()
        engine.next_word()
        self.assertEqual(engine.state.current_index, 2)
        self.assertEqual(len(rec.states), 3)
        engine.next_word()
        self.assertEqual(engine.state.current_index, 2)
        self.assertEqual(len(rec.states), 3)
        engine.previous_word()
        self.assertEqual(engine.state.current_index, 1)
        self.assertFalse(engine.state.is_playing)

    def test_step_keeps_playing_flag(self):
        engine, scheduler, _ = make_engine("a b c d")
        engine.play()
        engine.next_word()
        self.assertTrue(engine.state.is_playing)
        self.assertEqual(scheduler.pending, 1)

    def test_jump_to_word(self):
        engine, _, rec = make_engine("a b c d")
        engine.jump_to_word(3)
        self.assertEqual(engine.current_word, "d")
        engine.jump_to_word(4)
        engine.jump_to_word(-1)
        self.assertEqual(engine.state.current_index, 3)
        self.assertEqual(len(rec.states), 2)

    def test_completion_fires_once_per_run(self):
        engine, scheduler, rec = make_engine("a b")
        engine.play()
        scheduler.run_until_idle()
        self.assertEqual(rec.completions, 1)
        self.assertEqual(engine.state.current_index, 2)
        self.assertFalse(engine.state.is_playing)

        scheduler.run_until_idle()
        self.assertEqual(rec.completions, 1)

        engine.play()
        self.assertEqual(engine.state.current_index, 0)
        scheduler.run_until_idle()
        self.assertEqual(rec.completions, 2)

    def test_previous_word_after_finish(self):
        engine, scheduler, _ = make_engine("a b c")
        engine.play()
        scheduler.run_until_idle()
        engine.previous_word()
        self.assertEqual(engine.current_word, "c")

    def test_empty_text_completes_immediately(self):
        engine, scheduler, rec = make_engine("   ")
        engine.play()
        self.assertEqual(rec.completions, 1)
        self.assertFalse(engine.state.is_playing)
        self.assertEqual(engine.state.status, PlaybackStatus.FINISHED)
        self.assertEqual(scheduler.pending, 0)
        self.assertEqual(engine.get_time_remaining(), 0)
        self.assertEqual(engine.get_progress(), 0)

    def test_restart(self):
        engine, scheduler, _ = make_engine("a b c")
        engine.play()
        scheduler.advance(450)
        engine.restart()
        self.assertEqual(engine.state.current_index, 0)
        self.assertFalse(engine.state.is_playing)
        self.assertEqual(scheduler.pending, 0)

    def test_progress(self):
        engine, _, _ = make_engine("a b c d")
        self.assertAlmostEqual(engine.get_progress(), 25)
        engine.jump_to_word(3)
        self.assertAlmostEqual(engine.get_progress(), 100)

    def test_default_rate(self):
        scheduler = ManualScheduler()
        engine = PacingEngine(scheduler)
        engine.initialize("a b", ReaderConfig(initial_wpm=0))
        self.assertEqual(engine.state.words_per_minute, 300)
        engine.initialize("a b")
        self.assertEqual(engine.state.words_per_minute, 300)

    def test_destroy_releases_everything(self):
        engine, scheduler, rec = make_engine("a b c")
        engine.play()
        engine.destroy()
        self.assertEqual(scheduler.pending, 0)
        self.assertEqual(engine.state, ReaderState())
        notified = len(rec.states)
        scheduler.advance(10_000)
        engine.jump_to_word(0)
        self.assertEqual(len(rec.states), notified)
        self.assertEqual(rec.completions, 0)

    def test_engines_are_isolated(self):
        scheduler = ManualScheduler()
        first = PacingEngine(scheduler)
        second = PacingEngine(scheduler)
        first.initialize("a b c", ReaderConfig(initial_wpm=600))
        second.initialize("x y z", ReaderConfig(initial_wpm=300))
        first.play()
        second.play()
        scheduler.advance(100)
        self.assertEqual(first.state.current_index, 1)
        self.assertEqual(second.state.current_index, 0)
        first.pause()
        scheduler.advance(100)
        self.assertEqual(second.state.current_index, 1)


if __name__ == "__main__":
    unittest.main()
