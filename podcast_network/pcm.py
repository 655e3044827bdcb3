"""PCM codec and WAV container encoder.

Every source is raw 16-bit signed little-endian mono PCM at 24 kHz. The
generation service hands it over base64 encoded, the audio store keeps the
raw bytes. Playback works on normalised float32 samples, export stays in
int16 space since it only concatenates.
"""

import base64
import binascii
import struct

import numpy as np

from podcast_network.constants import (
    SAMPLE_RATE,
    CHANNELS,
    SAMPLE_WIDTH,
    BITS_PER_SAMPLE,
    WAV_HEADER_SIZE,
    INT16_SCALE,
)
from podcast_network.errors import MalformedAudioData, InvalidAudioParameters

_INT16 = np.dtype("<i2")


def raw_bytes_to_int16(data: bytes) -> np.ndarray:
    """Reinterpret raw bytes as little-endian int16 samples."""
    if len(data) % SAMPLE_WIDTH:
        raise MalformedAudioData(f"PCM byte length {len(data)} is not a multiple of {SAMPLE_WIDTH}")
    return np.frombuffer(data, dtype=_INT16).copy()


def payload_to_bytes(payload: str) -> bytes:
    """Base64 text payload to raw PCM bytes."""
    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise MalformedAudioData(f"Invalid base64 audio payload: {e}") from e


def decode_to_int16(payload: str) -> np.ndarray:
    """Decode a base64 payload into int16 samples."""
    return raw_bytes_to_int16(payload_to_bytes(payload))


def int16_to_float(samples: np.ndarray) -> np.ndarray:
    return samples.astype(np.float32) / np.float32(INT16_SCALE)


def float_to_int16(samples: np.ndarray) -> np.ndarray:
    """Scale normalised floats back to int16, clamping to the int16 range."""
    scaled = np.rint(np.asarray(samples, dtype=np.float64) * INT16_SCALE)
    return np.clip(scaled, -32768, 32767).astype(_INT16)


def decode(payload: str) -> np.ndarray:
    """Decode a base64 payload into float32 samples in [-1.0, 1.0).

    Result length is half the decoded byte length. Raises MalformedAudioData
    for an invalid encoding or an odd byte count.
    """
    return int16_to_float(decode_to_int16(payload))


def decode_raw_bytes(data: bytes) -> np.ndarray:
    """Decode raw PCM bytes (as fetched from the audio store) into float32 samples."""
    return int16_to_float(raw_bytes_to_int16(data))


def encode_payload(samples: np.ndarray) -> str:
    """Base64 text encoding of int16 samples, as the generation service returns it."""
    return base64.b64encode(np.asarray(samples, dtype=_INT16).tobytes()).decode("ascii")


def concatenate(chunks: list[np.ndarray]) -> np.ndarray:
    """Join int16 chunks in order."""
    if not chunks:
        return np.zeros(0, dtype=_INT16)
    return np.concatenate([np.asarray(c, dtype=_INT16) for c in chunks])


def _as_int16(samples) -> np.ndarray:
    arr = np.asarray(samples)
    if arr.dtype.kind == "f":
        return float_to_int16(arr)
    return arr.astype(_INT16)


def encode_container(
    samples,
    sample_rate: int = SAMPLE_RATE,
    channels: int = CHANNELS,
    bits_per_sample: int = BITS_PER_SAMPLE,
) -> bytes:
    """Serialise samples into a complete RIFF/WAVE file.

    Layout is the canonical 44-byte PCM header followed by the samples as
    signed 16-bit little-endian integers. Float samples are scaled with
    float_to_int16, integer samples are written as is.
    """
    if channels < 1:
        raise InvalidAudioParameters(f"channels must be >= 1, got {channels}")
    if sample_rate < 1:
        raise InvalidAudioParameters(f"sample_rate must be >= 1, got {sample_rate}")
    if bits_per_sample != BITS_PER_SAMPLE:
        raise InvalidAudioParameters(f"only {BITS_PER_SAMPLE}-bit PCM is supported, got {bits_per_sample}")

    data = _as_int16(samples).tobytes()
    block_align = channels * SAMPLE_WIDTH
    byte_rate = sample_rate * block_align

    header = struct.pack(
        "<4sI4s4sIHHIIHH4sI",
        b"RIFF",
        WAV_HEADER_SIZE - 8 + len(data),   # RIFF size excludes "RIFF" and itself
        b"WAVE",
        b"fmt ",
        16,
        1,
        channels,
        sample_rate,
        byte_rate,
        block_align,
        bits_per_sample,
        b"data",
        len(data),
    )
    return header + data


def duration_seconds(sample_count: int, sample_rate: int = SAMPLE_RATE) -> float:
    return sample_count / sample_rate
