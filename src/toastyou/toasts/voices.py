"""Voice catalogue: one slug per narrator, mapped onto each speech provider."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Voice:
    slug: str
    name: str
    description: str
    elevenlabs_id: str
    openai_voice: str


VOICE_CATALOGUE: dict[str, Voice] = {
    v.slug: v
    for v in (
        Voice("amelia", "Amelia", "Warm and encouraging", "ZF6FPAbjXT4488VcRRnw", "nova"),
        Voice("david-antfield", "David", "Professional and clear", "jvcMcno3QtjOzGtfpjoI", "echo"),
        Voice("giovanni", "Giovanni", "Smooth and confident", "zcAOhNBS3c14rBihAFp1", "onyx"),
        Voice("grandpa", "Grandpa Spuds Oxley", "Wise and comforting", "NOpBlnGInO9m6vDvFkFC", "echo"),
        Voice("maeve", "Maeve", "Gentle and soothing", "XB0fDUnXU5powFXDhCwa", "shimmer"),
        Voice("rachel", "Rachel", "Friendly and upbeat", "21m00Tcm4TlvDq8ikWAM", "alloy"),
        Voice("ranger", "Ranger", "Strong and motivational", "MF3mGyEYCl7XYWbV9V6O", "onyx"),
        Voice("sam", "Sam", "Casual and relatable", "yoZ06aMxZJJ28mfd3POQ", "nova"),
    )
}

DEFAULT_VOICE = "rachel"


def get_voice(slug: str | None) -> Voice:
    """Look up a voice by slug, falling back to the default narrator."""
    if slug and slug in VOICE_CATALOGUE:
        return VOICE_CATALOGUE[slug]
    return VOICE_CATALOGUE[DEFAULT_VOICE]
