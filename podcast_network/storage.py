"""Durable audio store: raw PCM files addressed by URL."""

import os
from pathlib import Path
from urllib.parse import urlparse
from urllib.request import url2pathname

import requests

from podcast_network.constants import DATA_DIR, AUDIO_STORE_DIR, FETCH_TIMEOUT_SECONDS
from podcast_network.errors import MalformedAudioData, TransferFailure
from podcast_network.pcm import payload_to_bytes


class AudioStore:
    """Writes uploads under <root>/audio/<episode>/<line>.pcm.

    URLs handed back are file:// URIs, or <public_base_url>/audio/... when the
    directory is served over HTTP. fetch() accepts both forms.
    """

    def __init__(
        self,
        root: str = DATA_DIR,
        public_base_url: str | None = None,
        timeout: float = FETCH_TIMEOUT_SECONDS,
    ):
        self.root = root
        self.public_base_url = public_base_url.rstrip("/") if public_base_url else None
        self.timeout = timeout

    def _relative_path(self, episode_id: str, line_id: str) -> str:
        return f"{AUDIO_STORE_DIR}/{episode_id}/{line_id}.pcm"

    def upload(self, episode_id: str, line_id: str, payload: str) -> str:
        """Persist a base64 payload as raw PCM and return its public URL."""
        try:
            data = payload_to_bytes(payload)
        except MalformedAudioData as e:
            raise TransferFailure(f"Refusing to upload line {line_id}: {e}") from e

        relative = self._relative_path(episode_id, line_id)
        path = os.path.join(self.root, *relative.split("/"))
        try:
            os.makedirs(os.path.dirname(path), exist_ok=True)
            with open(path, "wb") as f:
                f.write(data)
        except OSError as e:
            raise TransferFailure(f"Upload failed for line {line_id}: {e}") from e

        if self.public_base_url:
            return f"{self.public_base_url}/{relative}"
        return Path(path).resolve().as_uri()

    def fetch(self, url: str) -> bytes:
        """Download the raw PCM bytes behind a URL."""
        parsed = urlparse(url)
        if parsed.scheme == "file":
            try:
                with open(url2pathname(parsed.path), "rb") as f:
                    return f.read()
            except OSError as e:
                raise TransferFailure(f"Cannot read {url}: {e}") from e

        if parsed.scheme not in ("http", "https"):
            raise TransferFailure(f"Unsupported audio URL: {url}")
        try:
            response = requests.get(url, timeout=self.timeout)
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            raise TransferFailure(f"Fetch failed for {url}: {e}") from e
        return response.content
