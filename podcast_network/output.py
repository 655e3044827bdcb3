"""Speaker output: one stoppable handle per played buffer."""

import asyncio
import logging

import numpy as np

from podcast_network.constants import CHANNELS
from podcast_network.errors import OutputFailure

logger = logging.getLogger(__name__)


class SpeakerHandle:
    """A buffer playing on a sounddevice stream.

    The stream's audio thread reports completion back to the event loop;
    wait() returns on natural completion and after stop().
    """

    def __init__(self, sd, samples: np.ndarray, sample_rate: int, loop: asyncio.AbstractEventLoop):
        self._sd = sd
        self._samples = np.asarray(samples, dtype=np.float32)
        self._pos = 0
        self._loop = loop
        self._finished = asyncio.Event()
        self._stream = sd.OutputStream(
            samplerate=sample_rate,
            channels=CHANNELS,
            dtype="float32",
            callback=self._audio_callback,
            finished_callback=self._on_finished,
        )

    def start(self) -> None:
        self._stream.start()

    def _audio_callback(self, outdata: np.ndarray, frames: int, time_info, status):
        """Runs on the audio thread."""
        if status:
            logger.debug("Output status: %s", status)
        chunk = self._samples[self._pos:self._pos + frames]
        outdata[:len(chunk), 0] = chunk
        outdata[len(chunk):] = 0
        self._pos += frames
        if len(chunk) < frames:
            raise self._sd.CallbackStop

    def _on_finished(self) -> None:
        self._loop.call_soon_threadsafe(self._finished.set)

    @property
    def done(self) -> bool:
        return self._finished.is_set()

    def stop(self) -> None:
        """Hard stop: drop whatever is still buffered."""
        self._stream.abort(ignore_errors=True)
        self._stream.close(ignore_errors=True)
        self._finished.set()

    async def wait(self) -> None:
        await self._finished.wait()
        self._stream.close(ignore_errors=True)


class SpeakerOutput:
    """Default output device via sounddevice (PortAudio)."""

    def __init__(self, device=None):
        import sounddevice as sd

        self._sd = sd
        if device is not None:
            sd.default.device = device

    def start(self, samples: np.ndarray, sample_rate: int) -> SpeakerHandle:
        """Begin playing; must be called from the event loop thread."""
        try:
            handle = SpeakerHandle(self._sd, samples, sample_rate, asyncio.get_running_loop())
            handle.start()
        except self._sd.PortAudioError as e:
            raise OutputFailure(f"Audio playback error: {e}") from e
        return handle
