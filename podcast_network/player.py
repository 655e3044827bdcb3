"""Sequential, line-by-line episode playback."""

import asyncio
import logging

from podcast_network.constants import (
    FALLBACK_DELAY_SECONDS,
    SAMPLE_RATE,
    SILENT_LINE_DELAY_SECONDS,
)
from podcast_network.errors import OutputFailure, PodcastError
from podcast_network.models import Episode
from podcast_network.resolver import AudioResolver

logger = logging.getLogger(__name__)


class CancellationToken:
    """Marks one playback session; cancelled when a newer session starts."""

    def __init__(self):
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


class PlaybackEngine:
    """Plays an episode's script one line at a time.

    Idle -> PlayingLine(i) -> PlayingLine(i + 1) ... -> Idle. Each start
    opens a new session with its own token; everything a session does is
    gated on that token, so a superseded session can't move the cursor,
    start output or advance after it has been replaced, paused or disposed.

    Must be driven from a running event loop.
    """

    def __init__(
        self,
        episode: Episode,
        resolver: AudioResolver,
        output,
        fallback_delay: float = FALLBACK_DELAY_SECONDS,
        silent_delay: float = SILENT_LINE_DELAY_SECONDS,
        on_line_change=None,
    ):
        self.episode = episode
        self.resolver = resolver
        self.output = output
        self.fallback_delay = fallback_delay
        self.silent_delay = silent_delay
        self.on_line_change = on_line_change
        self.cursor: int | None = None
        self._token: CancellationToken | None = None
        self._task: asyncio.Task | None = None
        self._handle = None
        self._disposed = False

    @property
    def is_playing(self) -> bool:
        return self._token is not None and not self._token.cancelled

    @property
    def disposed(self) -> bool:
        return self._disposed

    def play(self) -> None:
        """Start at line 0, or resume at the remembered cursor. No-op while playing."""
        if self._disposed or self.is_playing:
            return
        self._start(self.cursor if self.cursor is not None else 0)

    def pause(self) -> None:
        """Hard-stop output and go idle, keeping the cursor."""
        self._end_session()

    def toggle(self) -> None:
        if self.is_playing:
            self.pause()
        else:
            self.play()

    def play_from(self, index: int) -> None:
        if self._disposed:
            return
        if not 0 <= index < len(self.episode.script):
            raise IndexError(f"No line {index} in a {len(self.episode.script)}-line script")
        self._start(index)

    def dispose(self) -> None:
        """Stop for good; nothing started before this may touch state afterwards."""
        self._disposed = True
        self._end_session()
        if self._task is not None and not self._task.done():
            self._task.cancel()

    async def wait(self) -> None:
        """Return once the engine is idle (end of script, pause or dispose)."""
        while self._task is not None and not self._task.done():
            task = self._task
            try:
                await task
            except asyncio.CancelledError:
                if not task.cancelled():
                    raise

    def _start(self, index: int) -> None:
        self._end_session()
        token = CancellationToken()
        self._token = token
        self._task = asyncio.get_running_loop().create_task(self._run(index, token))

    def _end_session(self) -> None:
        if self._token is not None:
            self._token.cancel()
            self._token = None
        self._stop_output()

    def _stop_output(self) -> None:
        handle, self._handle = self._handle, None
        if handle is not None:
            handle.stop()

    def _set_cursor(self, index: int | None) -> None:
        self.cursor = index
        if self.on_line_change:
            self.on_line_change(index)

    async def _run(self, index: int, token: CancellationToken) -> None:
        while not token.cancelled:
            if index >= len(self.episode.script):
                self._token = None
                self._set_cursor(None)
                return
            self._set_cursor(index)
            await self._play_line(index, token)
            index += 1

    async def _play_line(self, index: int, token: CancellationToken) -> None:
        line = self.episode.script[index]
        try:
            samples = await self.resolver.resolve(self.episode, line)
        except PodcastError as e:
            logger.warning("Line %d (%s) failed: %s", index, line.id, e)
            await asyncio.sleep(self.fallback_delay)
            return

        if token.cancelled:
            return
        if samples is None:
            # Nothing to play; hold the line briefly so playback still advances
            await asyncio.sleep(self.silent_delay)
            return

        try:
            handle = self.output.start(samples, SAMPLE_RATE)
        except OutputFailure as e:
            logger.error("Line %d (%s): %s", index, line.id, e)
            return

        if token.cancelled:
            handle.stop()
            return
        self._handle = handle
        await handle.wait()
        if self._handle is handle:
            self._handle = None
