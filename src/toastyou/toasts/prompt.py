"""Prompt composition for weekly toasts."""

from __future__ import annotations

from collections.abc import Iterable

from toastyou.db.models import Note

SYSTEM_PROMPT = (
    "You are a motivational coach who creates personalized weekly celebrations based on "
    "reflection notes. Keep the tone warm, encouraging, and celebratory. Highlight patterns, "
    "progress, and growth. Keep responses under 200 words."
)


def dedupe_contents(notes: Iterable[Note]) -> list[str]:
    """Stripped, non-empty note texts with case-insensitive duplicates removed, order kept."""
    seen: set[str] = set()
    contents: list[str] = []
    for note in notes:
        text = (note.content or "").strip()
        if not text:
            continue
        key = " ".join(text.casefold().split())
        if key in seen:
            continue
        seen.add(key)
        contents.append(text)
    return contents


def compose_prompt(notes: list[Note], user_name: str | None = None) -> str:
    """Build the user prompt for a week's worth of notes."""
    contents = dedupe_contents(notes)
    audio_only = sum(1 for n in notes if not (n.content or "").strip() and n.audio_url)
    first_name = (user_name or "").split(" ")[0] or "friend"

    lines = [
        f"Create a personalized celebratory toast for {first_name} based on their reflection "
        "notes from the past week.",
        f"Reflections this week: {len(notes)}",
    ]
    if audio_only:
        lines.append(f"Audio-only reflections (no transcript): {audio_only}")
    if contents:
        lines.append("")
        lines.extend(f"- {c}" for c in contents)
    return "\n".join(lines)
