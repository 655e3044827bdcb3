"""Tests for the sequential playback engine."""

import asyncio

import numpy as np
import pytest

from podcast_network import pcm
from podcast_network.errors import GenerationFailure, OutputFailure
from podcast_network.models import Episode, Persisted, ScriptLine
from podcast_network.player import CancellationToken, PlaybackEngine
from podcast_network.resolver import AudioResolver

from conftest import tone


class FakeHandle:
    """Finishes on its own after `duration` seconds unless stopped first."""

    def __init__(self, samples, duration):
        self.samples = samples
        self.duration = duration
        self.stopped = False
        self._event = asyncio.Event()

    def stop(self):
        self.stopped = True
        self._event.set()

    async def wait(self):
        try:
            await asyncio.wait_for(self._event.wait(), self.duration)
        except asyncio.TimeoutError:
            pass


class FakeOutput:
    def __init__(self, duration=0.01, fail=False):
        self.duration = duration
        self.fail = fail
        self.handles = []

    def start(self, samples, sample_rate):
        if self.fail:
            raise OutputFailure("no device")
        handle = FakeHandle(samples, self.duration)
        self.handles.append(handle)
        return handle


class StubResolver:
    """Per-index results: samples, None (silent) or an exception to raise."""

    def __init__(self, results, gates=None):
        self.results = results
        self.gates = gates or {}
        self.calls = []
        self.waiting = set()

    async def resolve(self, episode, line):
        index = int(line.id[1:])
        self.calls.append(index)
        gate = self.gates.get(index)
        if gate is not None:
            self.waiting.add(index)
            await gate.wait()
        result = self.results[index]
        if isinstance(result, Exception):
            raise result
        return result


class FakeVoice:
    async def generate_audio(self, text, voice):
        return pcm.encode_payload(tone(48))


def _episode(n=3):
    return Episode(
        id="ep1", program_id="show", title="T", date="",
        script=[ScriptLine(f"l{i}", "moff", f"line {i}") for i in range(n)],
    )


def _samples():
    return pcm.int16_to_float(tone(48))


def _engine(resolver, output, changes, episode=None):
    return PlaybackEngine(
        episode or _episode(),
        resolver,
        output,
        fallback_delay=0.01,
        silent_delay=0.01,
        on_line_change=changes.append,
    )


async def _until(condition, timeout=2.0):
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not condition():
        if loop.time() > deadline:
            raise AssertionError("condition not reached")
        await asyncio.sleep(0.005)


def test_cancellation_token():
    token = CancellationToken()
    assert not token.cancelled
    token.cancel()
    assert token.cancelled


def test_plays_every_line_then_goes_idle():
    changes = []
    output = FakeOutput()
    resolver = StubResolver({0: _samples(), 1: _samples(), 2: _samples()})

    async def scenario():
        engine = _engine(resolver, output, changes)
        engine.play()
        assert engine.is_playing
        await engine.wait()
        return engine

    engine = asyncio.run(scenario())
    assert changes == [0, 1, 2, None]
    assert len(output.handles) == 3
    assert not any(h.stopped for h in output.handles)
    assert engine.cursor is None
    assert not engine.is_playing


def test_failed_line_is_skipped_after_fallback():
    """A, failing B, C: A and C play, B is skipped, then idle with cursor cleared."""
    changes = []
    output = FakeOutput()
    resolver = StubResolver({0: _samples(), 1: GenerationFailure("quota"), 2: _samples()})

    async def scenario():
        engine = _engine(resolver, output, changes)
        engine.play()
        await engine.wait()
        return engine

    engine = asyncio.run(scenario())
    assert changes == [0, 1, 2, None]
    assert len(output.handles) == 2
    assert engine.cursor is None


def test_silent_line_is_skipped():
    changes = []
    output = FakeOutput()
    resolver = StubResolver({0: _samples(), 1: None, 2: _samples()})

    async def scenario():
        engine = _engine(resolver, output, changes)
        engine.play()
        await engine.wait()

    asyncio.run(scenario())
    assert changes == [0, 1, 2, None]
    assert len(output.handles) == 2


def test_output_failure_advances():
    changes = []
    resolver = StubResolver({0: _samples(), 1: _samples(), 2: _samples()})

    async def scenario():
        engine = _engine(resolver, FakeOutput(fail=True), changes)
        engine.play()
        await engine.wait()

    asyncio.run(scenario())
    assert changes == [0, 1, 2, None]


def test_play_while_playing_is_noop():
    changes = []
    output = FakeOutput(duration=0.02)
    resolver = StubResolver({0: _samples(), 1: _samples(), 2: _samples()})

    async def scenario():
        engine = _engine(resolver, output, changes)
        engine.play()
        await asyncio.sleep(0)
        engine.play()
        await engine.wait()

    asyncio.run(scenario())
    assert resolver.calls == [0, 1, 2]
    assert len(output.handles) == 3


def test_pause_keeps_cursor_and_play_resumes():
    changes = []
    output = FakeOutput(duration=10)
    resolver = StubResolver({0: _samples(), 1: _samples(), 2: _samples()})

    async def scenario():
        engine = _engine(resolver, output, changes)
        engine.play()
        await _until(lambda: len(output.handles) == 1)
        engine.pause()
        await engine.wait()
        assert output.handles[0].stopped
        assert engine.cursor == 0
        assert not engine.is_playing

        output.duration = 0.01
        engine.play()
        await engine.wait()

    asyncio.run(scenario())
    assert resolver.calls == [0, 0, 1, 2]
    assert changes == [0, 0, 1, 2, None]


def test_play_from_hard_stops_current_line():
    """Jumping stops the active handle and its completion never advances."""
    changes = []
    output = FakeOutput(duration=10)
    resolver = StubResolver({0: _samples(), 1: _samples(), 2: _samples()})

    async def scenario():
        engine = _engine(resolver, output, changes)
        engine.play()
        await _until(lambda: len(output.handles) == 1)
        output.duration = 0.01
        engine.play_from(2)
        await engine.wait()

    asyncio.run(scenario())
    assert output.handles[0].stopped
    assert resolver.calls == [0, 2]
    assert changes == [0, 2, None]


def test_play_from_out_of_range():
    engine = PlaybackEngine(_episode(), StubResolver({}), FakeOutput())
    with pytest.raises(IndexError):
        engine.play_from(3)


def test_dispose_while_next_line_resolves():
    """No cursor move or output start once disposed, even if resolution finishes later."""
    changes = []
    output = FakeOutput()
    gate_holder = {}

    async def scenario():
        gate = asyncio.Event()
        gate_holder["gate"] = gate
        resolver = StubResolver({0: _samples(), 1: _samples(), 2: _samples()}, gates={1: gate})
        engine = _engine(resolver, output, changes)
        engine.play()
        await _until(lambda: 1 in resolver.waiting)
        engine.dispose()
        gate.set()
        await asyncio.sleep(0.05)
        await engine.wait()

        engine.play()
        assert not engine.is_playing
        return engine

    engine = asyncio.run(scenario())
    assert changes == [0, 1]
    assert len(output.handles) == 1
    assert engine.disposed


def test_dispose_stops_active_output():
    changes = []
    output = FakeOutput(duration=10)
    resolver = StubResolver({0: _samples(), 1: _samples(), 2: _samples()})

    async def scenario():
        engine = _engine(resolver, output, changes)
        engine.play()
        await _until(lambda: len(output.handles) == 1)
        engine.dispose()
        await asyncio.sleep(0.02)

    asyncio.run(scenario())
    assert output.handles[0].stopped
    assert changes == [0]


def test_playback_generates_and_persists_missing_audio(library, store):
    episode = library.get_episode("ep1")
    resolver = AudioResolver(library, store, FakeVoice())
    output = FakeOutput()
    changes = []

    async def scenario():
        engine = _engine(resolver, output, changes, episode=episode)
        engine.play()
        await engine.wait()
        await resolver.drain()

    asyncio.run(scenario())
    assert changes == [0, 1, 2, None]
    assert all(isinstance(line.audio, Persisted) for line in episode.script)
    np.testing.assert_allclose(output.handles[0].samples, pcm.int16_to_float(tone(48)))


class SlowVoice:
    def __init__(self):
        self.calls = 0

    async def generate_audio(self, text, voice):
        self.calls += 1
        await asyncio.sleep(0.05)
        return pcm.encode_payload(tone(48))


def test_pause_and_resume_during_generation_generates_once(library, store):
    episode = library.get_episode("ep1")
    voice = SlowVoice()
    resolver = AudioResolver(library, store, voice)
    output = FakeOutput()
    changes = []

    async def scenario():
        engine = _engine(resolver, output, changes, episode=episode)
        engine.play()
        await asyncio.sleep(0.01)
        engine.pause()
        engine.play()
        await engine.wait()
        await resolver.drain()

    asyncio.run(scenario())
    assert voice.calls == 3
    assert changes == [0, 0, 1, 2, None]
    assert len(output.handles) == 3
    assert all(isinstance(line.audio, Persisted) for line in episode.script)
