# app/core/prompts.py
import re
from typing import Optional

from app.core.config import IMAGE_QUALITY_TAGS

_NON_ALPHANUMERIC = re.compile(r"[^a-z0-9]+")


def generate_slug(name: str) -> str:
    """
    URL-friendly slug: lowercase, runs of anything outside [a-z0-9] become
    a single hyphen, no leading/trailing hyphens.

    >>> generate_slug("  Sakura Haruno!! ")
    'sakura-haruno'
    """
    return _NON_ALPHANUMERIC.sub("-", name.lower()).strip("-")


def build_character_prompt(
    user_prompt: str,
    personality: str,
    appearance: str,
    setting: Optional[str] = None,
    age: Optional[str] = None,
    special_traits: Optional[str] = None,
) -> str:
    """
    Combine a character's traits with the user's instruction.

    Order is fixed: instruction, appearance, personality, then age, setting
    and special traits when they are set.
    """
    parts = [user_prompt, appearance, f"personality: {personality}"]

    if age:
        parts.append(f"age: {age}")
    if setting:
        parts.append(f"setting: {setting}")
    if special_traits:
        parts.append(special_traits)

    return ", ".join(parts)


def build_prompt_for(character, user_prompt: str) -> str:
    """Same as build_character_prompt, reading traits off a Character row."""
    return build_character_prompt(
        user_prompt=user_prompt,
        personality=character.personality,
        appearance=character.appearance,
        setting=character.setting,
        age=character.age,
        special_traits=character.special_traits,
    )


def enhance_variation_prompt(full_prompt: str) -> str:
    # Quality tags the anime img2img model was trained with
    return f"{IMAGE_QUALITY_TAGS}, {full_prompt}"
