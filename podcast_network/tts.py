"""Line audio generation with retry logic.

Both backends return the same thing: base64 text of raw 16-bit PCM, mono,
24 kHz. GeminiVoice gets that straight from the TTS model; EdgeVoice
renders MP3 with edge-tts and converts it with pydub.
"""

import asyncio
import base64
import logging
import os
import tempfile

import edge_tts
from google import genai
from google.genai import types
from pydub import AudioSegment

from podcast_network.constants import (
    API_KEY_ENV,
    CHANNELS,
    EDGE_DEFAULT_VOICE,
    EDGE_VOICE_MAP,
    SAMPLE_RATE,
    SAMPLE_WIDTH,
    TTS_MODEL,
    TTS_RATE,
    TTS_RETRY_BASE_DELAY,
    TTS_RETRY_COUNT,
)
from podcast_network.errors import GenerationFailure

logger = logging.getLogger(__name__)


def get_client(api_key: str | None = None) -> genai.Client:
    """Initialize the Gemini client from an explicit key or the environment."""
    key = api_key or os.environ.get(API_KEY_ENV)
    if not key:
        raise GenerationFailure(f"{API_KEY_ENV} environment variable not set.")
    return genai.Client(api_key=key)


async def generate_with_retry(attempt_fn, text: str) -> str:
    """Run attempt_fn until it returns a non-empty payload.

    Retries on any exception or an empty result, with exponential backoff.
    Raises GenerationFailure once TTS_RETRY_COUNT attempts are used up.
    """
    last_error = None
    for attempt in range(TTS_RETRY_COUNT):
        try:
            payload = await attempt_fn()
            if payload:
                return payload
            last_error = GenerationFailure(f"No audio data returned for: {text[:50]}...")
        except Exception as e:
            last_error = e
            logger.warning("Audio generation attempt %d failed: %s", attempt + 1, e)

        if attempt < TTS_RETRY_COUNT - 1:
            delay = TTS_RETRY_BASE_DELAY * (2 ** attempt)
            await asyncio.sleep(delay)

    if isinstance(last_error, GenerationFailure):
        raise last_error
    raise GenerationFailure(f"Audio generation failed: {last_error}") from last_error


def segment_to_payload(segment: AudioSegment) -> str:
    """Resample any pydub segment to the pipeline's PCM format and base64 it."""
    pcm = segment.set_frame_rate(SAMPLE_RATE).set_channels(CHANNELS).set_sample_width(SAMPLE_WIDTH)
    return base64.b64encode(pcm.raw_data).decode("ascii")


class GeminiVoice:
    """Prebuilt Gemini voices (Puck, Kore, Fenrir, ...)."""

    def __init__(self, client: genai.Client | None = None, model: str = TTS_MODEL):
        self.client = client or get_client()
        self.model = model

    async def _synthesize(self, text: str, voice: str) -> str:
        response = await self.client.aio.models.generate_content(
            model=self.model,
            contents=text,
            config=types.GenerateContentConfig(
                response_modalities=["AUDIO"],
                speech_config=types.SpeechConfig(
                    voice_config=types.VoiceConfig(
                        prebuilt_voice_config=types.PrebuiltVoiceConfig(voice_name=voice),
                    ),
                ),
            ),
        )
        if not response.candidates or response.candidates[0].content is None:
            return ""
        parts = response.candidates[0].content.parts or []
        if not parts or parts[0].inline_data is None or not parts[0].inline_data.data:
            return ""
        data = parts[0].inline_data.data
        if isinstance(data, str):
            return data
        return base64.b64encode(data).decode("ascii")

    async def generate_audio(self, text: str, voice: str) -> str:
        return await generate_with_retry(lambda: self._synthesize(text, voice), text)


class EdgeVoice:
    """edge-tts voices; Gemini voice names are mapped through EDGE_VOICE_MAP."""

    def __init__(self, rate: str = TTS_RATE, audio_format: str = "mp3"):
        self.rate = rate
        self.audio_format = audio_format

    def edge_voice(self, voice: str) -> str:
        if voice in EDGE_VOICE_MAP:
            return EDGE_VOICE_MAP[voice]
        # Already an edge-tts short name like "en-US-AriaNeural"
        if voice.endswith("Neural"):
            return voice
        return EDGE_DEFAULT_VOICE

    async def _synthesize(self, text: str, voice: str) -> str:
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, f"line.{self.audio_format}")
            communicate = edge_tts.Communicate(text, self.edge_voice(voice), rate=self.rate)
            await communicate.save(path)

            # 0-byte file counts as failure
            if not os.path.exists(path) or os.path.getsize(path) == 0:
                return ""
            segment = AudioSegment.from_file(path, format=self.audio_format)
        return segment_to_payload(segment)

    async def generate_audio(self, text: str, voice: str) -> str:
        return await generate_with_retry(lambda: self._synthesize(text, voice), text)


def make_voice(backend: str, rate: str = TTS_RATE):
    """Build the audio generator for a backend name ("gemini" or "edge")."""
    if backend == "edge":
        return EdgeVoice(rate=rate)
    if backend == "gemini":
        return GeminiVoice()
    raise ValueError(f"Unknown audio backend: {backend}")
