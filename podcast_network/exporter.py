"""Export a whole episode as a single WAV file."""

import json
import logging
import os
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone

import numpy as np

from podcast_network import pcm
from podcast_network.constants import (
    EXPORT_DIR,
    EXPORT_EXTENSION,
    EXPORT_TITLE_MAX_CHARS,
    SAMPLE_RATE,
    VERSION,
)
from podcast_network.errors import NoAudioAvailable, PodcastError
from podcast_network.models import Episode
from podcast_network.resolver import AudioResolver

logger = logging.getLogger(__name__)


@dataclass
class CollectedAudio:
    samples: np.ndarray
    included: list[str] = field(default_factory=list)   # line ids, script order
    skipped: list[str] = field(default_factory=list)


def export_filename(title: str) -> str:
    """Episode title to download filename.

    "Is AI Art Real Art?" → "Is_AI_Art_Real_Art_.wav". The title part is
    capped at 50 characters.
    """
    stem = re.sub(r"[^a-zA-Z0-9]", "_", title)[:EXPORT_TITLE_MAX_CHARS]
    return f"{stem or 'episode'}{EXPORT_EXTENSION}"


def collect_samples(episode: Episode, resolver: AudioResolver) -> CollectedAudio:
    """Concatenate the int16 audio of every line that has some, in script order.

    Lines without audio are skipped silently; lines whose audio can't be
    fetched or decoded are logged and left out.
    """
    chunks = []
    included = []
    skipped = []
    for line in episode.script:
        if not line.has_audio:
            skipped.append(line.id)
            continue
        try:
            samples = resolver.load_int16(line)
        except PodcastError as e:
            logger.warning("Skipping line %s: %s", line.id, e)
            skipped.append(line.id)
            continue
        chunks.append(samples)
        included.append(line.id)
    return CollectedAudio(samples=pcm.concatenate(chunks), included=included, skipped=skipped)


def export_episode(
    episode: Episode,
    resolver: AudioResolver,
    output_dir: str = EXPORT_DIR,
) -> str:
    """Write <sanitized-title>.wav plus an export.json manifest.

    Raises NoAudioAvailable, writing nothing, when no line has usable audio.
    Returns path to the WAV file.
    """
    collected = collect_samples(episode, resolver)
    if len(collected.samples) == 0:
        raise NoAudioAvailable(
            "No audio content available to download. Play or render the episode first to generate audio."
        )

    os.makedirs(output_dir, exist_ok=True)
    output_path = os.path.join(output_dir, export_filename(episode.title))
    with open(output_path, "wb") as f:
        f.write(pcm.encode_container(collected.samples, SAMPLE_RATE))

    manifest = {
        "episode": episode.id,
        "title": episode.title,
        "file": os.path.basename(output_path),
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "producer_version": VERSION,
        "lines": {
            "included": collected.included,
            "skipped": collected.skipped,
        },
        "stats": {
            "samples": int(len(collected.samples)),
            "sample_rate": SAMPLE_RATE,
            "duration_seconds": round(pcm.duration_seconds(len(collected.samples)), 1),
        },
    }
    manifest_path = os.path.join(output_dir, "export.json")
    with open(manifest_path, "w") as f:
        json.dump(manifest, f, indent=2, ensure_ascii=False)

    return output_path
