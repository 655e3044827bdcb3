"""Shared fixtures for podcast network tests."""

import numpy as np
import pytest

from podcast_network import pcm
from podcast_network.library import PodcastLibrary
from podcast_network.models import Character, Episode, Program, ProgramRole, ScriptLine
from podcast_network.storage import AudioStore


def tone(n=240, start=0):
    """Deterministic int16 ramp of n samples."""
    return (np.arange(start, start + n) % 2000 - 1000).astype(np.int16)


@pytest.fixture
def data_dir(tmp_path):
    return str(tmp_path / "data")


@pytest.fixture
def library(data_dir):
    """Library with two hosts, one program and a three-line pending episode."""
    lib = PodcastLibrary(data_dir)
    lib.characters = [
        Character(id="moff", name="Moff", voice="Fenrir"),
        Character(id="pico", name="Pico", voice="Kore"),
    ]
    lib.programs = [
        Program(id="show", name="The Show", format="Debate.", default_host_id="moff",
                host=ProgramRole("Moderator"), co_host=ProgramRole("Debater")),
    ]
    lib.episodes = [
        Episode(
            id="ep1",
            program_id="show",
            title="Is AI Art Real Art?",
            date="2025-12-14T10:00:00",
            characters=["moff", "pico"],
            script=[
                ScriptLine(id="l0", character_id="moff", text="Welcome back."),
                ScriptLine(id="l1", character_id="pico", text="Glad to be here."),
                ScriptLine(id="l2", character_id="moff", text="Let's begin."),
            ],
        ),
    ]
    lib.save()
    return lib


@pytest.fixture
def store(data_dir):
    return AudioStore(data_dir)


@pytest.fixture
def payload():
    """Base64 PCM payload of a short ramp."""
    return pcm.encode_payload(tone(240))
