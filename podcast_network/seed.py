"""Demo cast, programs and episode for a fresh library."""

from podcast_network.models import (
    Character,
    CharacterMemory,
    Episode,
    MemoryDepth,
    Program,
    ProgramRole,
    Relationship,
)


def initial_characters() -> list[Character]:
    return [
        Character(
            id="moff",
            name="Moff",
            voice="Fenrir",
            avatar_url="https://picsum.photos/seed/moff/200/200",
            core_personality=(
                "Energetic, skeptical, values fairness but loves a good conspiracy theory. "
                "Speaks with high energy radio-host vibes."
            ),
            memory_depth=MemoryDepth.DEEP,
            memory=CharacterMemory(
                total_episodes=12,
                relationships={"pico": Relationship(12, "regular partner", "2025-12-10")},
            ),
        ),
        Character(
            id="pico",
            name="Pico",
            voice="Kore",
            avatar_url="https://picsum.photos/seed/pico/200/200",
            core_personality=(
                "Analytical, optimistic about technology, calm and fact-focused. "
                "Often corrects Moff's wild theories politely."
            ),
            memory_depth=MemoryDepth.MEDIUM,
            memory=CharacterMemory(
                total_episodes=10,
                relationships={"moff": Relationship(12, "regular partner", "2025-12-10")},
            ),
        ),
        Character(
            id="alex",
            name="Alex",
            voice="Puck",
            avatar_url="https://picsum.photos/seed/alex/200/200",
            core_personality=(
                "Casual, witty, pop-culture obsessed. "
                "Brings complex topics down to earth with memes and metaphors."
            ),
            memory_depth=MemoryDepth.SHALLOW,
            memory=CharacterMemory(total_episodes=2),
        ),
    ]


def initial_programs() -> list[Program]:
    return [
        Program(
            id="yarim-hakli",
            name="Yarım Haklı",
            description="A debate show where two sides discuss controversial topics. Neither is fully right.",
            format="Energetic debate. Host asks tough questions. Closing requires a call to action for voting.",
            cover_image="https://picsum.photos/seed/yarim/800/400",
            default_host_id="moff",
            color_class="from-orange-500 to-red-600",
            host=ProgramRole("Moderator", ["Open show", "Keep time", "Press for answers"]),
            co_host=ProgramRole("Debater", ["Counter arguments", "Provide data"]),
        ),
        Program(
            id="tech-pulse",
            name="Tech Pulse",
            description="Deep dive into emerging technology and its impact on humanity.",
            format=(
                "Analytical, slower paced, interview style. "
                "Focus on technical details and future implications."
            ),
            cover_image="https://picsum.photos/seed/tech/800/400",
            default_host_id="pico",
            color_class="from-blue-500 to-cyan-600",
            host=ProgramRole("Lead Analyst", ["Explain concepts", "Interview guest"]),
            guest=ProgramRole("Expert", ["Provide deep insight", "Share experiences"]),
        ),
    ]


def initial_episodes() -> list[Episode]:
    return [
        Episode(
            id="ep_demo_01",
            program_id="yarim-hakli",
            title="Is AI Art Real Art?",
            date="2025-12-14T10:00:00",
            summary="Moff and Pico clash over the soul of creativity in the age of generative models.",
            characters=["moff", "pico"],
            cover_image="https://picsum.photos/seed/ep1/400/300",
        ),
    ]
