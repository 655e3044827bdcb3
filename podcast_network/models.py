"""Data models for the podcast network."""

from dataclasses import dataclass, field
from enum import Enum


class MemoryDepth(str, Enum):
    SHALLOW = "shallow"
    MEDIUM = "medium"
    DEEP = "deep"
    CUSTOM = "custom"


class InputType(str, Enum):
    MANUAL = "manual_dialogue"
    NEWS_LINK = "news_link"
    TOPIC = "topic"


class Platform(str, Enum):
    SPOTIFY = "spotify"
    YOUTUBE = "youtube"
    APPLE = "apple"
    INSTAGRAM = "instagram"
    TIKTOK = "tiktok"


class PlatformStatus(str, Enum):
    DRAFT = "draft"
    UPLOADED = "uploaded"
    SCHEDULED = "scheduled"


# --- Audio source variants ---

@dataclass(frozen=True)
class Pending:
    """No audio has been generated for the line yet."""


@dataclass(frozen=True)
class Cached:
    payload: str       # base64 raw 16-bit PCM, transient until uploaded


@dataclass(frozen=True)
class Persisted:
    url: str           # durable location in the audio store


AudioSource = Pending | Cached | Persisted


def audio_source_from_dict(data: dict) -> AudioSource:
    """Read the audio variant from a stored line; audioUrl wins over audioData."""
    if data.get("audioUrl"):
        return Persisted(data["audioUrl"])
    if data.get("audioData"):
        return Cached(data["audioData"])
    return Pending()


# --- Characters ---

@dataclass
class Relationship:
    interaction_count: int
    level: str
    last_interaction: str

    def to_dict(self) -> dict:
        return {
            "interactionCount": self.interaction_count,
            "level": self.level,
            "lastInteraction": self.last_interaction,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Relationship":
        return cls(
            interaction_count=data.get("interactionCount", 0),
            level=data.get("level", ""),
            last_interaction=data.get("lastInteraction", ""),
        )


@dataclass
class EpisodeHistoryItem:
    episode_id: str
    program_name: str
    topic_summary: str
    date: str

    def to_dict(self) -> dict:
        return {
            "episodeId": self.episode_id,
            "programName": self.program_name,
            "topicSummary": self.topic_summary,
            "date": self.date,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "EpisodeHistoryItem":
        return cls(
            episode_id=data["episodeId"],
            program_name=data.get("programName", ""),
            topic_summary=data.get("topicSummary", ""),
            date=data.get("date", ""),
        )


@dataclass
class CharacterMemory:
    total_episodes: int = 0
    relationships: dict[str, Relationship] = field(default_factory=dict)  # keyed by other character id
    episode_history: list[EpisodeHistoryItem] = field(default_factory=list)  # newest first

    def to_dict(self) -> dict:
        return {
            "totalEpisodes": self.total_episodes,
            "relationships": {k: r.to_dict() for k, r in self.relationships.items()},
            "episodeHistory": [h.to_dict() for h in self.episode_history],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CharacterMemory":
        return cls(
            total_episodes=data.get("totalEpisodes", 0),
            relationships={
                k: Relationship.from_dict(v) for k, v in data.get("relationships", {}).items()
            },
            episode_history=[EpisodeHistoryItem.from_dict(h) for h in data.get("episodeHistory", [])],
        )


@dataclass
class Character:
    id: str
    name: str
    voice: str         # prebuilt voice name: Puck, Kore, Fenrir, ...
    core_personality: str = ""
    avatar_url: str = ""
    memory_depth: MemoryDepth = MemoryDepth.MEDIUM
    memory: CharacterMemory = field(default_factory=CharacterMemory)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "voice": self.voice,
            "avatarUrl": self.avatar_url,
            "corePersonality": self.core_personality,
            "memoryDepth": self.memory_depth.value,
            "memory": self.memory.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Character":
        return cls(
            id=data["id"],
            name=data["name"],
            voice=data["voice"],
            core_personality=data.get("corePersonality", ""),
            avatar_url=data.get("avatarUrl", ""),
            memory_depth=MemoryDepth(data.get("memoryDepth", MemoryDepth.MEDIUM.value)),
            memory=CharacterMemory.from_dict(data.get("memory", {})),
        )


# --- Programs ---

@dataclass
class ProgramRole:
    name: str
    responsibilities: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"name": self.name, "responsibilities": list(self.responsibilities)}

    @classmethod
    def from_dict(cls, data: dict) -> "ProgramRole":
        return cls(name=data["name"], responsibilities=list(data.get("responsibilities", [])))


@dataclass
class Program:
    id: str
    name: str
    description: str = ""
    format: str = ""
    cover_image: str = ""
    default_host_id: str | None = None
    host: ProgramRole = field(default_factory=lambda: ProgramRole("Host"))
    co_host: ProgramRole | None = None
    guest: ProgramRole | None = None
    color_class: str = ""

    def to_dict(self) -> dict:
        roles = {"host": self.host.to_dict()}
        if self.co_host:
            roles["coHost"] = self.co_host.to_dict()
        if self.guest:
            roles["guest"] = self.guest.to_dict()
        data = {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "format": self.format,
            "coverImage": self.cover_image,
            "roles": roles,
            "colorClass": self.color_class,
        }
        if self.default_host_id:
            data["defaultHostId"] = self.default_host_id
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Program":
        roles = data.get("roles", {})
        return cls(
            id=data["id"],
            name=data["name"],
            description=data.get("description", ""),
            format=data.get("format", ""),
            cover_image=data.get("coverImage", ""),
            default_host_id=data.get("defaultHostId"),
            host=ProgramRole.from_dict(roles["host"]) if "host" in roles else ProgramRole("Host"),
            co_host=ProgramRole.from_dict(roles["coHost"]) if "coHost" in roles else None,
            guest=ProgramRole.from_dict(roles["guest"]) if "guest" in roles else None,
            color_class=data.get("colorClass", ""),
        )

    @property
    def second_role_name(self) -> str:
        """Name of the co-host seat: co-host role, else guest role, else "Guest"."""
        if self.co_host:
            return self.co_host.name
        if self.guest:
            return self.guest.name
        return "Guest"


# --- Episodes ---

@dataclass
class ScriptLine:
    id: str
    character_id: str
    text: str
    audio: AudioSource = field(default_factory=Pending)

    @property
    def has_audio(self) -> bool:
        return not isinstance(self.audio, Pending)

    def to_dict(self) -> dict:
        data = {"id": self.id, "characterId": self.character_id, "text": self.text}
        if isinstance(self.audio, Cached):
            data["audioData"] = self.audio.payload
        elif isinstance(self.audio, Persisted):
            data["audioUrl"] = self.audio.url
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "ScriptLine":
        return cls(
            id=data["id"],
            character_id=data["characterId"],
            text=data["text"],
            audio=audio_source_from_dict(data),
        )


@dataclass
class DistributionInfo:
    status: PlatformStatus = PlatformStatus.DRAFT
    url: str = ""

    def to_dict(self) -> dict:
        data = {"status": self.status.value}
        if self.url:
            data["url"] = self.url
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "DistributionInfo":
        return cls(status=PlatformStatus(data.get("status", "draft")), url=data.get("url") or "")


def _default_distribution() -> dict[Platform, DistributionInfo]:
    return {p: DistributionInfo() for p in Platform}


@dataclass
class Episode:
    id: str
    program_id: str
    title: str
    date: str
    summary: str = ""
    characters: list[str] = field(default_factory=list)   # participant character ids
    script: list[ScriptLine] = field(default_factory=list)  # canonical playback order
    is_generated: bool = True
    cover_image: str = ""
    distribution: dict[Platform, DistributionInfo] = field(default_factory=_default_distribution)

    def find_line(self, line_id: str) -> ScriptLine | None:
        for line in self.script:
            if line.id == line_id:
                return line
        return None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "programId": self.program_id,
            "title": self.title,
            "date": self.date,
            "summary": self.summary,
            "characters": list(self.characters),
            "script": [line.to_dict() for line in self.script],
            "isGenerated": self.is_generated,
            "coverImage": self.cover_image,
            "distribution": {p.value: self.distribution[p].to_dict() for p in Platform},
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Episode":
        stored = data.get("distribution") or {}
        distribution = {
            p: DistributionInfo.from_dict(stored[p.value]) if p.value in stored else DistributionInfo()
            for p in Platform
        }
        return cls(
            id=data["id"],
            program_id=data["programId"],
            title=data["title"],
            date=data.get("date", ""),
            summary=data.get("summary", ""),
            characters=list(data.get("characters", [])),
            script=[ScriptLine.from_dict(line) for line in data.get("script", [])],
            is_generated=data.get("isGenerated", True),
            cover_image=data.get("coverImage", ""),
            distribution=distribution,
        )
