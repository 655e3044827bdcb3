"""Find, fetch or generate the audio for a script line."""

import asyncio
import logging

import numpy as np

from podcast_network import pcm
from podcast_network.errors import PodcastError, TransferFailure
from podcast_network.library import PodcastLibrary
from podcast_network.models import Cached, Episode, Pending, Persisted, ScriptLine
from podcast_network.storage import AudioStore

logger = logging.getLogger(__name__)


class AudioResolver:
    """Turns a line into samples, in strict priority order.

    Persisted lines are fetched from the store, Cached lines decoded in place,
    Pending lines generated with the speaking character's voice. A generated
    payload is cached on the line at once and uploaded in the background;
    the upload promotes the line to Persisted when it lands.
    """

    def __init__(self, library: PodcastLibrary, store: AudioStore, voice):
        self.library = library
        self.store = store
        self.voice = voice
        self._uploads: dict[tuple[str, str], asyncio.Task] = {}
        self._generations: dict[tuple[str, str], asyncio.Task] = {}

    async def resolve(self, episode: Episode, line: ScriptLine) -> np.ndarray | None:
        """Float32 samples for a line, or None when there is no way to get audio.

        Raises TransferFailure, MalformedAudioData or GenerationFailure; all of
        them are per-line failures.
        """
        source = line.audio
        if isinstance(source, Persisted):
            data = await asyncio.to_thread(self.store.fetch, source.url)
            return pcm.decode_raw_bytes(data)
        if isinstance(source, Cached):
            return pcm.decode(source.payload)

        character = self.library.get_character(line.character_id)
        if character is None:
            logger.warning("Line %s: unknown character %s, no voice to generate with", line.id, line.character_id)
            return None

        key = (episode.id, line.id)
        task = self._generations.get(key)
        if task is None:
            task = asyncio.get_running_loop().create_task(self._generate(episode.id, line, character.voice))
            self._generations[key] = task
            task.add_done_callback(lambda t: self._generation_done(key, t))
        # Shared by every caller; a cancelled caller leaves it running for the rest
        payload = await asyncio.shield(task)
        return pcm.decode(payload)

    async def _generate(self, episode_id: str, line: ScriptLine, voice: str) -> str:
        payload = await self.voice.generate_audio(line.text, voice)
        if self.library.cache_line_audio(episode_id, line.id, payload):
            self._schedule_upload(episode_id, line.id, payload)
        return payload

    def _generation_done(self, key: tuple[str, str], task: asyncio.Task) -> None:
        if self._generations.get(key) is task:
            del self._generations[key]
        if not task.cancelled() and task.exception() is not None:
            logger.debug("Generation for line %s failed: %s", key[1], task.exception())

    def load_int16(self, line: ScriptLine) -> np.ndarray | None:
        """Int16 samples of a line that already has audio; None for Pending lines."""
        source = line.audio
        if isinstance(source, Persisted):
            return pcm.raw_bytes_to_int16(self.store.fetch(source.url))
        if isinstance(source, Cached):
            return pcm.decode_to_int16(source.payload)
        return None

    def _schedule_upload(self, episode_id: str, line_id: str, payload: str) -> None:
        key = (episode_id, line_id)
        running = self._uploads.get(key)
        if running is not None and not running.done():
            return
        task = asyncio.get_running_loop().create_task(self._upload(episode_id, line_id, payload))
        self._uploads[key] = task
        task.add_done_callback(lambda t: self._uploads.pop(key, None) if self._uploads.get(key) is t else None)

    async def _upload(self, episode_id: str, line_id: str, payload: str) -> None:
        try:
            url = await asyncio.to_thread(self.store.upload, episode_id, line_id, payload)
        except TransferFailure as e:
            logger.error("Failed to upload audio for line %s: %s", line_id, e)
            return
        self.library.promote_line_audio(episode_id, line_id, url, payload)

    @property
    def pending_uploads(self) -> int:
        return sum(1 for t in self._uploads.values() if not t.done())

    async def drain(self) -> None:
        """Wait for every background generation and upload to finish."""
        while True:
            tasks = [*self._generations.values(), *self._uploads.values()]
            running = [t for t in tasks if not t.done()]
            if not running:
                return
            await asyncio.gather(*running, return_exceptions=True)

    async def render(self, episode: Episode, on_progress=None) -> tuple[int, int]:
        """Generate audio for every Pending line. Returns (generated, failed)."""
        generated = failed = 0
        pending = [line for line in episode.script if isinstance(line.audio, Pending)]
        for i, line in enumerate(pending):
            if on_progress:
                on_progress(i + 1, len(pending), line)
            try:
                samples = await self.resolve(episode, line)
            except PodcastError as e:
                logger.warning("Skipping line %s: %s", line.id, e)
                failed += 1
                continue
            if samples is None:
                failed += 1
            else:
                generated += 1
        await self.drain()
        return generated, failed
