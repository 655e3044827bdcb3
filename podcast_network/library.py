"""Characters, programs and episodes, persisted as one JSON file."""

import json
import logging
import os
from datetime import date

from podcast_network.constants import DATA_DIR, LIBRARY_FILE
from podcast_network.models import (
    Cached,
    Character,
    DistributionInfo,
    Episode,
    EpisodeHistoryItem,
    Persisted,
    Platform,
    PlatformStatus,
    Program,
)
from podcast_network.seed import initial_characters, initial_programs, initial_episodes

logger = logging.getLogger(__name__)


def write_json(path: str, data: dict) -> str:
    """Write JSON to path, creating parent dirs. Returns the path."""
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    with open(path, "w") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)
    return path


def load_json(path: str) -> dict | None:
    """Read JSON. Returns None if the file doesn't exist."""
    if not os.path.exists(path):
        return None
    with open(path) as f:
        return json.load(f)


class PodcastLibrary:
    """Repository for the whole network.

    Lookups return None and deletions return False for unknown ids; every
    mutation is written through to disk.
    """

    def __init__(self, data_dir: str = DATA_DIR):
        self.data_dir = data_dir
        self.path = os.path.join(data_dir, LIBRARY_FILE)
        self.characters: list[Character] = []
        self.programs: list[Program] = []
        self.episodes: list[Episode] = []

    @classmethod
    def open(cls, data_dir: str = DATA_DIR) -> "PodcastLibrary":
        library = cls(data_dir)
        library.load()
        return library

    @property
    def exists(self) -> bool:
        return os.path.exists(self.path)

    def load(self) -> None:
        try:
            data = load_json(self.path)
        except json.JSONDecodeError:
            logger.warning("Malformed library file: %s, starting empty", self.path)
            data = None
        data = data or {}
        self.characters = [Character.from_dict(c) for c in data.get("characters", [])]
        self.programs = [Program.from_dict(p) for p in data.get("programs", [])]
        self.episodes = [Episode.from_dict(e) for e in data.get("episodes", [])]

    def save(self) -> str:
        return write_json(self.path, {
            "characters": [c.to_dict() for c in self.characters],
            "programs": [p.to_dict() for p in self.programs],
            "episodes": [e.to_dict() for e in self.episodes],
        })

    def seed(self) -> bool:
        """Fill an empty library with the demo network. Returns True if seeded."""
        if self.characters or self.programs:
            return False
        logger.info("Library empty. Seeding initial data...")
        self.characters = initial_characters()
        self.programs = initial_programs()
        if not self.episodes:
            self.episodes = initial_episodes()
        self.save()
        return True

    # --- Characters ---

    def get_character(self, character_id: str) -> Character | None:
        return next((c for c in self.characters if c.id == character_id), None)

    def add_character(self, character: Character) -> Character:
        self.characters.append(character)
        self.save()
        return character

    def update_character(self, character: Character) -> bool:
        for i, existing in enumerate(self.characters):
            if existing.id == character.id:
                self.characters[i] = character
                self.save()
                return True
        return False

    def delete_character(self, character_id: str) -> bool:
        before = len(self.characters)
        self.characters = [c for c in self.characters if c.id != character_id]
        if len(self.characters) == before:
            return False
        self.save()
        return True

    def update_character_memory(
        self,
        character_id: str,
        episode_id: str,
        topic: str,
        program_name: str = "Unknown",
    ) -> bool:
        """Record an episode appearance: bump the count, prepend a history item."""
        character = self.get_character(character_id)
        if character is None:
            return False
        character.memory.total_episodes += 1
        character.memory.episode_history.insert(0, EpisodeHistoryItem(
            episode_id=episode_id,
            program_name=program_name,
            topic_summary=topic,
            date=date.today().isoformat(),
        ))
        self.save()
        return True

    # --- Programs ---

    def get_program(self, program_id: str) -> Program | None:
        return next((p for p in self.programs if p.id == program_id), None)

    def add_program(self, program: Program) -> Program:
        self.programs.append(program)
        self.save()
        return program

    def update_program(self, program: Program) -> bool:
        for i, existing in enumerate(self.programs):
            if existing.id == program.id:
                self.programs[i] = program
                self.save()
                return True
        return False

    def delete_program(self, program_id: str) -> bool:
        before = len(self.programs)
        self.programs = [p for p in self.programs if p.id != program_id]
        if len(self.programs) == before:
            return False
        self.save()
        return True

    # --- Episodes ---

    def get_episode(self, episode_id: str) -> Episode | None:
        return next((e for e in self.episodes if e.id == episode_id), None)

    def add_episode(self, episode: Episode) -> Episode:
        """Newest episodes come first."""
        self.episodes.insert(0, episode)
        self.save()
        return episode

    def delete_episode(self, episode_id: str) -> bool:
        before = len(self.episodes)
        self.episodes = [e for e in self.episodes if e.id != episode_id]
        if len(self.episodes) == before:
            return False
        self.save()
        return True

    def cache_line_audio(self, episode_id: str, line_id: str, payload: str) -> bool:
        """Store freshly generated audio on a line so it is playable immediately.

        A line that already points at stored audio keeps it; audio only ever
        moves from cached to stored.
        """
        episode = self.get_episode(episode_id)
        line = episode.find_line(line_id) if episode else None
        if line is None:
            return False
        if isinstance(line.audio, Persisted):
            logger.warning("Line %s already has stored audio; not caching over it", line_id)
            return False
        line.audio = Cached(payload)
        self.save()
        return True

    def promote_line_audio(self, episode_id: str, line_id: str, url: str, payload: str | None = None) -> bool:
        """Swap a line's cached payload for its durable URL.

        Idempotent: promoting to the URL the line already has is a no-op. When
        payload is given, the swap only happens if the line still caches
        exactly that payload, so a stale upload can't overwrite newer audio.
        """
        episode = self.get_episode(episode_id)
        line = episode.find_line(line_id) if episode else None
        if line is None:
            return False
        if line.audio == Persisted(url):
            return True
        if payload is not None and line.audio != Cached(payload):
            logger.warning("Line %s changed during upload; keeping current audio", line_id)
            return False
        line.audio = Persisted(url)
        self.save()
        return True

    def update_distribution(
        self,
        episode_id: str,
        platform: Platform,
        status: PlatformStatus,
        url: str = "",
    ) -> bool:
        episode = self.get_episode(episode_id)
        if episode is None:
            return False
        episode.distribution[Platform(platform)] = DistributionInfo(PlatformStatus(status), url)
        self.save()
        return True
