"""CLI interface with subcommand routing."""

import argparse
import asyncio
import logging
import os
import re
import sys

from podcast_network.constants import (
    DATA_DIR,
    DEFAULT_BACKEND,
    EDGE_VOICE_MAP,
    EXPORT_DIR,
    GEMINI_VOICES,
    TTS_RATE,
    VERSION,
)
from podcast_network.errors import GenerationFailure, NoAudioAvailable, PodcastError
from podcast_network.exporter import export_episode
from podcast_network.library import PodcastLibrary
from podcast_network.models import (
    Cached,
    Character,
    InputType,
    MemoryDepth,
    Persisted,
    Platform,
    PlatformStatus,
    Program,
    ProgramRole,
)
from podcast_network.output import SpeakerOutput
from podcast_network.player import PlaybackEngine
from podcast_network.resolver import AudioResolver
from podcast_network.storage import AudioStore
from podcast_network.tts import make_voice
from podcast_network.writer import ScriptWriter, create_episode


def _fail(message: str, hint: str | None = None):
    print(f"Error: {message}", file=sys.stderr)
    if hint:
        print(hint, file=sys.stderr)
    raise SystemExit(1)


def _data_dir(args) -> str:
    return args.data_dir or DATA_DIR


def _open_library(args) -> PodcastLibrary:
    """Load the library, verify it exists."""
    library = PodcastLibrary.open(_data_dir(args))
    if not library.exists:
        _fail(f"No library found in '{_data_dir(args)}'.", "Run 'podcast seed' to create one.")
    return library


def _get_episode(library: PodcastLibrary, episode_id: str):
    episode = library.get_episode(episode_id)
    if episode is None:
        _fail(f"Episode '{episode_id}' not found.", "Run 'podcast episodes' to list episodes.")
    return episode


def _build_resolver(library: PodcastLibrary, args, with_voice: bool = True) -> AudioResolver:
    voice = None
    if with_voice:
        try:
            voice = make_voice(args.backend, rate=args.voice_rate)
        except GenerationFailure as e:
            _fail(str(e), "Set the API key, or use '--backend edge'.")
    return AudioResolver(library, AudioStore(library.data_dir), voice)


def _slugify(name: str) -> str:
    return re.sub(r"[^a-zA-Z0-9]+", "-", name).strip("-").lower()


def _audio_marker(line) -> str:
    if isinstance(line.audio, Persisted):
        return "[stored]"
    if isinstance(line.audio, Cached):
        return "[cached]"
    return "[------]"


def cmd_seed(args):
    """Create the library with the demo network."""
    library = PodcastLibrary.open(_data_dir(args))
    if library.seed():
        print(f"Seeded {len(library.characters)} characters, {len(library.programs)} programs, "
              f"{len(library.episodes)} episode(s) into {library.path}")
    else:
        print(f"Library already has data: {library.path}")


def cmd_characters(args):
    """List characters."""
    library = _open_library(args)
    if not library.characters:
        print("No characters found.")
        return
    print("Characters:")
    for c in library.characters:
        print(f"  {c.id:<12} {c.name:<16} voice={c.voice:<8} episodes={c.memory.total_episodes}")


def cmd_character_add(args):
    """Add a character."""
    library = _open_library(args)
    character_id = args.id or _slugify(args.name)
    if library.get_character(character_id):
        _fail(f"Character '{character_id}' already exists.")
    library.add_character(Character(
        id=character_id,
        name=args.name,
        voice=args.voice,
        core_personality=args.personality or "",
        memory_depth=MemoryDepth(args.depth),
    ))
    print(f"Added character: {character_id}")


def cmd_character_delete(args):
    library = _open_library(args)
    if not library.delete_character(args.character):
        _fail(f"Character '{args.character}' not found.")
    print(f"Deleted character: {args.character}")


def cmd_programs(args):
    """List programs."""
    library = _open_library(args)
    if not library.programs:
        print("No programs found.")
        return
    print("Programs:")
    for p in library.programs:
        host = p.default_host_id or "-"
        print(f"  {p.id:<16} {p.name:<20} host={host:<10} {p.host.name} / {p.second_role_name}")


def cmd_program_add(args):
    """Add a program."""
    library = _open_library(args)
    program_id = args.id or _slugify(args.name)
    if library.get_program(program_id):
        _fail(f"Program '{program_id}' already exists.")
    if args.host and library.get_character(args.host) is None:
        _fail(f"Character '{args.host}' not found.")
    library.add_program(Program(
        id=program_id,
        name=args.name,
        description=args.description or "",
        format=args.format or "",
        default_host_id=args.host,
        host=ProgramRole(args.host_role),
        co_host=ProgramRole(args.co_host_role) if args.co_host_role else None,
    ))
    print(f"Added program: {program_id}")


def cmd_program_delete(args):
    library = _open_library(args)
    if not library.delete_program(args.program):
        _fail(f"Program '{args.program}' not found.")
    print(f"Deleted program: {args.program}")


def cmd_episodes(args):
    """List episodes, newest first."""
    library = _open_library(args)
    if not library.episodes:
        print("No episodes found.")
        return
    print("Episodes:")
    for e in library.episodes:
        voiced = sum(1 for line in e.script if line.has_audio)
        print(f"  {e.id:<20} [{voiced}/{len(e.script)} voiced] {e.title}")


def cmd_episode_delete(args):
    library = _open_library(args)
    if not library.delete_episode(args.episode):
        _fail(f"Episode '{args.episode}' not found.")
    print(f"Deleted episode: {args.episode}")


def cmd_show(args):
    """Print an episode's transcript and distribution state."""
    library = _open_library(args)
    episode = _get_episode(library, args.episode)
    program = library.get_program(episode.program_id)
    print(f"{episode.title}")
    print(f"  Program: {program.name if program else episode.program_id}")
    print(f"  Date:    {episode.date}")
    if episode.summary:
        print(f"  {episode.summary}")
    print()
    if not episode.script:
        print("  (no script)")
    for i, line in enumerate(episode.script):
        character = library.get_character(line.character_id)
        speaker = character.name if character else line.character_id
        print(f"  {i:>3} {_audio_marker(line)} {speaker}: {line.text}")
    print()
    print("Distribution:")
    for platform in Platform:
        info = episode.distribution[platform]
        suffix = f" {info.url}" if info.url else ""
        print(f"  {platform.value:<10} {info.status.value}{suffix}")


def cmd_create(args):
    """Generate a new episode script."""
    library = _open_library(args)
    if library.get_program(args.program) is None:
        _fail(f"Program '{args.program}' not found.")

    news_content = None
    if args.news_file:
        if not os.path.exists(args.news_file):
            _fail(f"File not found: {args.news_file}")
        with open(args.news_file) as f:
            news_content = f.read()

    print("Consulting character memories...")
    try:
        writer = ScriptWriter()
        print("Writing the script...")
        episode = asyncio.run(create_episode(
            library,
            writer,
            args.program,
            args.topic,
            input_type=InputType(args.type),
            host_id=args.host,
            co_host_id=args.co_host,
            news_content=news_content,
        ))
    except GenerationFailure as e:
        _fail(f"Script generation failed: {e}", "Check the API key and try again.")

    print(f"Created episode: {episode.id}")
    print(f"  {episode.title} ({len(episode.script)} lines)")
    print(f"Run 'podcast play {episode.id}' to listen.")


def _line_printer(library: PodcastLibrary, episode):
    def on_line_change(index):
        if index is None:
            print("End of episode.")
            return
        line = episode.script[index]
        character = library.get_character(line.character_id)
        speaker = character.name if character else line.character_id
        print(f"  [{index + 1}/{len(episode.script)}] {speaker}: {line.text}")
    return on_line_change


async def _play(engine: PlaybackEngine, resolver: AudioResolver, start: int | None):
    if start is None:
        engine.play()
    else:
        engine.play_from(start)
    try:
        await engine.wait()
    finally:
        engine.dispose()
        await resolver.drain()


def cmd_play(args):
    """Play an episode on the speakers, generating missing audio on the way."""
    library = _open_library(args)
    episode = _get_episode(library, args.episode)
    if not episode.script:
        _fail(f"Episode '{episode.id}' has no script.")
    if args.start is not None and not 0 <= args.start < len(episode.script):
        _fail(f"--from must be between 0 and {len(episode.script) - 1}")

    resolver = _build_resolver(library, args)
    try:
        output = SpeakerOutput()
    except OSError as e:
        _fail(f"No audio output available: {e}")

    engine = PlaybackEngine(episode, resolver, output, on_line_change=_line_printer(library, episode))
    try:
        asyncio.run(_play(engine, resolver, args.start))
    except KeyboardInterrupt:
        print("\nStopped.")


def cmd_render(args):
    """Generate audio for every line that has none yet."""
    library = _open_library(args)
    episode = _get_episode(library, args.episode)
    resolver = _build_resolver(library, args)

    def progress(i, total, line):
        print(f"  Generating line {i}/{total}: {line.id}")

    generated, failed = asyncio.run(resolver.render(episode, on_progress=progress))
    print(f"Generated {generated} line(s), {failed} failed.")


def cmd_export(args):
    """Export the episode's audio as one WAV file."""
    library = _open_library(args)
    episode = _get_episode(library, args.episode)
    resolver = _build_resolver(library, args, with_voice=False)
    output_dir = args.output or os.path.join(_data_dir(args), EXPORT_DIR)
    try:
        path = export_episode(episode, resolver, output_dir)
    except NoAudioAvailable as e:
        _fail(str(e))
    except PodcastError as e:
        _fail(f"Failed to export audio file: {e}")
    print(f"Exported: {path}")


def cmd_distribute(args):
    """Record an episode's status on a distribution platform."""
    library = _open_library(args)
    _get_episode(library, args.episode)
    library.update_distribution(args.episode, Platform(args.platform), PlatformStatus(args.status), args.url or "")
    print(f"Updated: {args.platform} → {args.status}")


def cmd_voices(args):
    """List available voices."""
    print("Available voices:")
    for voice_id, description in GEMINI_VOICES.items():
        print(f"  {voice_id:<8} {description:<32} edge: {EDGE_VOICE_MAP[voice_id]}")


def main():
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="podcast",
        description="AI podcast network: characters, programs and AI-voiced episodes",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {VERSION}")
    parser.add_argument("--data-dir", help=f"Library and audio directory (default: {DATA_DIR})")
    parser.add_argument("--backend", choices=["gemini", "edge"], default=DEFAULT_BACKEND,
                        help="Voice generation backend")
    parser.add_argument("--voice-rate", default=TTS_RATE, help="Speech rate for the edge backend, e.g. -10%%")
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose logging")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    seed_parser = subparsers.add_parser("seed", help="Create a library with the demo network")
    seed_parser.set_defaults(func=cmd_seed)

    chars_parser = subparsers.add_parser("characters", help="List characters")
    chars_parser.set_defaults(func=cmd_characters)

    char_add = subparsers.add_parser("character-add", help="Add a character")
    char_add.add_argument("name", help="Display name")
    char_add.add_argument("--id", help="Character id (default: from name)")
    char_add.add_argument("--voice", choices=list(GEMINI_VOICES), default="Puck")
    char_add.add_argument("--personality", help="Core personality description")
    char_add.add_argument("--depth", choices=[d.value for d in MemoryDepth], default=MemoryDepth.MEDIUM.value)
    char_add.set_defaults(func=cmd_character_add)

    char_del = subparsers.add_parser("character-delete", help="Delete a character")
    char_del.add_argument("character", help="Character id")
    char_del.set_defaults(func=cmd_character_delete)

    progs_parser = subparsers.add_parser("programs", help="List programs")
    progs_parser.set_defaults(func=cmd_programs)

    prog_add = subparsers.add_parser("program-add", help="Add a program")
    prog_add.add_argument("name", help="Program name")
    prog_add.add_argument("--id", help="Program id (default: from name)")
    prog_add.add_argument("--description")
    prog_add.add_argument("--format", help="Format rules given to the script writer")
    prog_add.add_argument("--host", help="Default host character id")
    prog_add.add_argument("--host-role", default="Host")
    prog_add.add_argument("--co-host-role")
    prog_add.set_defaults(func=cmd_program_add)

    prog_del = subparsers.add_parser("program-delete", help="Delete a program")
    prog_del.add_argument("program", help="Program id")
    prog_del.set_defaults(func=cmd_program_delete)

    eps_parser = subparsers.add_parser("episodes", help="List episodes")
    eps_parser.set_defaults(func=cmd_episodes)

    ep_del = subparsers.add_parser("episode-delete", help="Delete an episode")
    ep_del.add_argument("episode", help="Episode id")
    ep_del.set_defaults(func=cmd_episode_delete)

    show_parser = subparsers.add_parser("show", help="Show an episode transcript")
    show_parser.add_argument("episode", help="Episode id")
    show_parser.set_defaults(func=cmd_show)

    create_parser = subparsers.add_parser("create", help="Generate a new episode")
    create_parser.add_argument("program", help="Program id")
    create_parser.add_argument("topic", help="Topic, news URL or raw dialogue")
    create_parser.add_argument("--type", choices=[t.value for t in InputType], default=InputType.TOPIC.value)
    create_parser.add_argument("--host", help="Host character id (default: program's default host)")
    create_parser.add_argument("--co-host", help="Co-host character id")
    create_parser.add_argument("--news-file", help="Article text for news_link episodes")
    create_parser.set_defaults(func=cmd_create)

    play_parser = subparsers.add_parser("play", help="Play an episode")
    play_parser.add_argument("episode", help="Episode id")
    play_parser.add_argument("--from", dest="start", type=int, help="Line index to start from")
    play_parser.set_defaults(func=cmd_play)

    render_parser = subparsers.add_parser("render", help="Generate audio for all unvoiced lines")
    render_parser.add_argument("episode", help="Episode id")
    render_parser.set_defaults(func=cmd_render)

    export_parser = subparsers.add_parser("export", help="Export an episode as a WAV file")
    export_parser.add_argument("episode", help="Episode id")
    export_parser.add_argument("-o", "--output", help="Output directory")
    export_parser.set_defaults(func=cmd_export)

    dist_parser = subparsers.add_parser("distribute", help="Set distribution status")
    dist_parser.add_argument("episode", help="Episode id")
    dist_parser.add_argument("platform", choices=[p.value for p in Platform])
    dist_parser.add_argument("status", choices=[s.value for s in PlatformStatus])
    dist_parser.add_argument("--url", help="Public episode URL on the platform")
    dist_parser.set_defaults(func=cmd_distribute)

    voices_parser = subparsers.add_parser("voices", help="List available voices")
    voices_parser.set_defaults(func=cmd_voices)

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if not args.command:
        parser.print_help()
        return

    args.func(args)


if __name__ == "__main__":
    main()
