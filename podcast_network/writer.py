"""Episode script generation and episode creation."""

import json
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime

from google import genai
from google.genai import types

from podcast_network.constants import (
    DEFAULT_NEW_EPISODE_SUMMARY,
    DEFAULT_NEW_EPISODE_TITLE,
    NEWS_TOPIC_SUMMARY,
    SCRIPT_MODEL,
)
from podcast_network.errors import GenerationFailure
from podcast_network.library import PodcastLibrary
from podcast_network.models import Character, Episode, InputType, Program, ScriptLine
from podcast_network.tts import get_client

logger = logging.getLogger(__name__)


@dataclass
class ScriptDraft:
    title: str
    summary: str
    lines: list[ScriptLine] = field(default_factory=list)


def _character_profiles(characters: list[Character]) -> str:
    profiles = []
    for c in characters:
        relationships = {k: r.to_dict() for k, r in c.memory.relationships.items()}
        profiles.append(
            f"ID: {c.id}\n"
            f"NAME: {c.name}\n"
            f"VOICE: {c.voice}\n"
            f"CORE PERSONALITY: {c.core_personality}\n"
            f"MEMORY DEPTH: {c.memory_depth.value}\n"
            f"RELATIONSHIPS: {json.dumps(relationships)}"
        )
    return "\n---\n".join(profiles)


def _task_instructions(topic: str, input_type: InputType, host_id: str, news_content: str | None) -> str:
    if input_type == InputType.MANUAL:
        return (
            "MODE: MANUAL SCRIPT PARSING\n"
            "Parse the user's raw script below into the required JSON format. Do not add new content. "
            "Map speaker names to the closest character ID. "
            f'Lines without a speaker belong to the host, ID "{host_id}". '
            "Extract a title and summary from the dialogue.\n\n"
            f'USER RAW INPUT:\n"""\n{topic}\n"""'
        )
    if input_type == InputType.NEWS_LINK:
        text = (
            "MODE: NEWS ANALYSIS & DISCUSSION\n"
            f"News URL: {topic}\n"
            "Simulate an episode discussing this news item. The host introduces it, "
            "the others react in character."
        )
        if news_content:
            text += f'\n\nARTICLE CONTENT:\n"""\n{news_content}\n"""'
        return text
    return (
        "MODE: CREATIVE GENERATION\n"
        f"Topic: {topic}\n"
        "Write an entertaining, original episode: open with the host's signature opening, "
        "let the characters discuss in character, and end with a clear conclusion."
    )


def build_prompt(
    program: Program,
    characters: list[Character],
    topic: str,
    input_type: InputType,
    news_content: str | None = None,
) -> str:
    host_id = characters[0].id if characters else ""
    return (
        f'You are the showrunner and scriptwriter for the podcast program "{program.name}".\n\n'
        f"PROGRAM FORMAT RULES:\n{program.format}\n\n"
        f"AVAILABLE CHARACTERS:\n{_character_profiles(characters)}\n\n"
        f"{_task_instructions(topic, input_type, host_id, news_content)}\n\n"
        "OUTPUT FORMAT:\n"
        "Return valid JSON only, shaped as "
        '{"title": "...", "summary": "max 2 sentences", '
        '"lines": [{"characterId": "...", "text": "..."}]}'
    )


def parse_script(text: str, id_prefix: str | None = None) -> ScriptDraft:
    """Turn the model's JSON reply into a draft with fresh line ids."""
    try:
        data = json.loads(text or "{}")
    except json.JSONDecodeError as e:
        raise GenerationFailure(f"Script reply is not valid JSON: {e}") from e

    lines = data.get("lines") if isinstance(data, dict) else None
    if not isinstance(lines, list):
        raise GenerationFailure("Invalid JSON structure received from the script model")

    prefix = id_prefix or f"line_{int(time.time() * 1000)}"
    script = [
        ScriptLine(id=f"{prefix}_{i}", character_id=line["characterId"], text=line["text"])
        for i, line in enumerate(lines)
        if isinstance(line, dict) and "characterId" in line and "text" in line
    ]
    return ScriptDraft(
        title=data.get("title") or DEFAULT_NEW_EPISODE_TITLE,
        summary=data.get("summary") or DEFAULT_NEW_EPISODE_SUMMARY,
        lines=script,
    )


class ScriptWriter:
    def __init__(self, client: genai.Client | None = None, model: str = SCRIPT_MODEL):
        self.client = client or get_client()
        self.model = model

    async def generate_script(
        self,
        program: Program,
        characters: list[Character],
        topic: str,
        input_type: InputType,
        news_content: str | None = None,
    ) -> ScriptDraft:
        prompt = build_prompt(program, characters, topic, input_type, news_content)
        try:
            response = await self.client.aio.models.generate_content(
                model=self.model,
                contents=prompt,
                config=types.GenerateContentConfig(response_mime_type="application/json"),
            )
        except Exception as e:
            logger.error("Error generating script: %s", e)
            raise GenerationFailure(f"Script generation failed: {e}") from e
        return parse_script(response.text)


async def create_episode(
    library: PodcastLibrary,
    writer: ScriptWriter,
    program_id: str,
    topic: str,
    input_type: InputType = InputType.TOPIC,
    host_id: str | None = None,
    co_host_id: str | None = None,
    news_content: str | None = None,
) -> Episode:
    """Generate a script and file it as a new episode.

    Host goes first, then the co-host. Every participant's memory records the
    episode afterwards. Raises GenerationFailure if the script can't be written.
    """
    program = library.get_program(program_id)
    if program is None:
        raise GenerationFailure(f"Unknown program: {program_id}")

    host_id = host_id or program.default_host_id
    cast = [library.get_character(cid) for cid in (host_id, co_host_id) if cid]
    cast = [c for c in cast if c is not None]
    if not cast:
        raise GenerationFailure("An episode needs at least a host")

    draft = await writer.generate_script(program, cast, topic, input_type, news_content)

    stamp = int(time.time() * 1000)
    episode = Episode(
        id=f"ep_{stamp}",
        program_id=program.id,
        title=draft.title,
        date=datetime.now().isoformat(timespec="seconds"),
        summary=draft.summary,
        characters=[c.id for c in cast],
        script=draft.lines,
        is_generated=True,
        cover_image=f"https://picsum.photos/seed/{stamp}/400/300",
    )
    library.add_episode(episode)

    memory_topic = NEWS_TOPIC_SUMMARY if input_type == InputType.NEWS_LINK else topic
    for character in cast:
        library.update_character_memory(character.id, episode.id, memory_topic, program.name)

    return episode
