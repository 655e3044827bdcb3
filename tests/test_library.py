"""Tests for the JSON-backed library."""

import json
from datetime import date

from podcast_network.library import PodcastLibrary
from podcast_network.models import (
    Cached,
    Character,
    Episode,
    Pending,
    Persisted,
    Platform,
    PlatformStatus,
    Program,
    ProgramRole,
)


def test_seed_fresh_library(data_dir):
    library = PodcastLibrary.open(data_dir)
    assert not library.exists
    assert library.seed()
    assert library.exists
    assert {c.id for c in library.characters} == {"moff", "pico", "alex"}
    assert {p.id for p in library.programs} == {"yarim-hakli", "tech-pulse"}
    assert library.get_episode("ep_demo_01") is not None


def test_seed_is_noop_when_populated(library):
    assert not library.seed()
    assert len(library.characters) == 2


def test_mutations_are_persisted(library, data_dir):
    library.add_character(Character(id="alex", name="Alex", voice="Puck"))
    reopened = PodcastLibrary.open(data_dir)
    assert reopened.get_character("alex").name == "Alex"


def test_missing_ids_return_none_or_false(library):
    assert library.get_character("nobody") is None
    assert library.get_program("nothing") is None
    assert library.get_episode("ep_missing") is None
    assert library.delete_character("nobody") is False
    assert library.delete_episode("ep_missing") is False
    assert library.update_character(Character(id="nobody", name="N", voice="Puck")) is False
    assert library.cache_line_audio("ep1", "no_line", "AAAA") is False


def test_update_and_delete(library):
    moff = library.get_character("moff")
    moff.voice = "Charon"
    assert library.update_character(moff)
    assert library.get_character("moff").voice == "Charon"
    assert library.delete_program("show")
    assert library.get_program("show") is None


def test_update_program(library, data_dir):
    program = library.get_program("show")
    program.format = "Two rounds, then a verdict."
    program.co_host = ProgramRole("Challenger")
    assert library.update_program(program)

    reopened = PodcastLibrary.open(data_dir).get_program("show")
    assert reopened.format == "Two rounds, then a verdict."
    assert reopened.second_role_name == "Challenger"
    assert library.update_program(Program(id="nothing", name="N")) is False


def test_add_episode_goes_first(library):
    library.add_episode(Episode(id="ep2", program_id="show", title="Second", date=""))
    assert [e.id for e in library.episodes] == ["ep2", "ep1"]


def test_update_character_memory(library):
    assert library.update_character_memory("moff", "ep1", "AI art", "The Show")
    memory = library.get_character("moff").memory
    assert memory.total_episodes == 1
    assert memory.episode_history[0].episode_id == "ep1"
    assert memory.episode_history[0].topic_summary == "AI art"
    assert memory.episode_history[0].date == date.today().isoformat()

    library.update_character_memory("moff", "ep2", "Robots")
    assert [h.episode_id for h in memory.episode_history] == ["ep2", "ep1"]


def test_cache_then_promote(library):
    assert library.cache_line_audio("ep1", "l0", "AAAA")
    assert library.get_episode("ep1").script[0].audio == Cached("AAAA")
    assert library.promote_line_audio("ep1", "l0", "file:///l0.pcm", "AAAA")
    assert library.get_episode("ep1").script[0].audio == Persisted("file:///l0.pcm")


def test_promote_is_idempotent(library):
    library.cache_line_audio("ep1", "l0", "AAAA")
    library.promote_line_audio("ep1", "l0", "file:///l0.pcm", "AAAA")
    assert library.promote_line_audio("ep1", "l0", "file:///l0.pcm", "AAAA")
    assert library.get_episode("ep1").script[0].audio == Persisted("file:///l0.pcm")


def test_cache_never_replaces_stored_audio(library):
    library.promote_line_audio("ep1", "l0", "file:///l0.pcm")
    assert not library.cache_line_audio("ep1", "l0", "AAAA")
    assert library.get_episode("ep1").script[0].audio == Persisted("file:///l0.pcm")


def test_promote_refuses_stale_payload(library):
    """An upload of older audio doesn't replace newer cached audio."""
    library.cache_line_audio("ep1", "l0", "BBBB")
    assert not library.promote_line_audio("ep1", "l0", "file:///old.pcm", "AAAA")
    assert library.get_episode("ep1").script[0].audio == Cached("BBBB")


def test_promoted_line_saved_without_payload(library, data_dir):
    library.cache_line_audio("ep1", "l1", "AAAA")
    library.promote_line_audio("ep1", "l1", "file:///l1.pcm", "AAAA")
    with open(library.path) as f:
        stored = json.load(f)
    line = stored["episodes"][0]["script"][1]
    assert line["audioUrl"] == "file:///l1.pcm"
    assert "audioData" not in line
    assert PodcastLibrary.open(data_dir).get_episode("ep1").script[2].audio == Pending()


def test_update_distribution(library):
    assert library.update_distribution("ep1", Platform.YOUTUBE, PlatformStatus.UPLOADED, "https://youtu.be/x")
    info = library.get_episode("ep1").distribution[Platform.YOUTUBE]
    assert info.status == PlatformStatus.UPLOADED
    assert info.url == "https://youtu.be/x"
    assert not library.update_distribution("ep_missing", Platform.YOUTUBE, PlatformStatus.DRAFT)


def test_malformed_library_file(data_dir, tmp_path):
    (tmp_path / "data").mkdir(exist_ok=True)
    (tmp_path / "data" / "library.json").write_text("{not json")
    library = PodcastLibrary.open(data_dir)
    assert library.characters == []
    assert library.episodes == []
