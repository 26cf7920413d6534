"""
Recipe text parsing.

Recipe bodies arrive as free text in one of two shapes:
- "digitized": unstructured paragraphs produced by the external analysis service
- "manual": text built by format_manual_recipe(), recognizable by the literal
  section headers "Zutaten:" (ingredients) and "Zubereitung:" (preparation)

This module detects the shape, splits the text into displayable sections and
extracts a title heuristically when a recipe has none stored.
"""

import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

INGREDIENTS_HEADER = "Zutaten:"
PREPARATION_HEADER = "Zubereitung:"
DEFAULT_TITLE = "Mein Rezept"

# Lines containing any of these are section labels or metadata, never a title
_TITLE_STOPWORDS = (
    "ingredient",
    "zutaten",
    "instruction",
    "schritt",
    "portion",
    "serving",
    "cook",
    "prep",
    "total",
    "difficulty",
)
_TITLE_MAX_LENGTH = 60
_TITLE_SCAN_LINES = 5

_SECTION_SPLIT_RE = re.compile(r"(?=Zutaten:|Zubereitung:)")
_BULLET_RE = re.compile(r"^\s*•\s*", re.MULTILINE)
_CREATED_BY_RE = re.compile(r"\nErstellt von:[\s\S]*$")
_CREATED_AT_RE = re.compile(r"\nErstellt am:[\s\S]*$")


@dataclass
class ParsedRecipe:
    """
    Result of splitting a recipe body into sections.

    Attributes:
        sections: Display sections in order (title, description, ingredients, preparation
                  for manual recipes; paragraphs for digitized ones)
        is_manual: True if the text uses the manual "Zutaten:/Zubereitung:" format
    """
    sections: List[str] = field(default_factory=list)
    is_manual: bool = False


def is_manual_recipe(text: Optional[str]) -> bool:
    """Return True if the text contains both manual-format section headers."""
    if not text:
        return False
    return INGREDIENTS_HEADER in text and PREPARATION_HEADER in text


def _is_meaningful_section(section: str) -> bool:
    trimmed = section.strip()
    if not trimmed:
        return False
    if trimmed.isdigit():
        return False
    # Short letter-only fragments ("q", "qqq") are typing leftovers
    if len(trimmed) <= 3 and re.fullmatch(r"[a-zA-Z]+", trimmed):
        return False
    return True


def parse_recipe_sections(text: Optional[str]) -> ParsedRecipe:
    """
    Split a recipe body into display sections.

    Manual recipes produce up to four sections: title, description (if any), the
    ingredients block with bullet markers removed, and the preparation block with the
    trailing "Erstellt von:" / "Erstellt am:" creator lines removed. Meaningless
    fragments (pure numbers, very short letter-only strings) are dropped.

    Digitized recipes are split on blank lines.

    Args:
        text: Recipe body

    Returns:
        ParsedRecipe with the sections and the detected format
    """
    if not text:
        return ParsedRecipe(sections=[], is_manual=False)

    if not is_manual_recipe(text):
        return ParsedRecipe(sections=text.split("\n\n"), is_manual=False)

    parts = _SECTION_SPLIT_RE.split(text)
    sections: List[str] = []

    title_and_description = parts[0].strip()
    if title_and_description:
        lines = [line for line in title_and_description.split("\n") if line.strip()]
        if lines:
            sections.append(lines[0])
            if len(lines) > 1:
                sections.append("\n".join(lines[1:]).strip())

    ingredients = next((p for p in parts if p.strip().startswith(INGREDIENTS_HEADER)), None)
    if ingredients is not None:
        processed = ingredients.strip()
        if "•" in processed:
            processed = _BULLET_RE.sub("", processed)
        sections.append(processed)

    preparation = next((p for p in parts if p.strip().startswith(PREPARATION_HEADER)), None)
    if preparation is not None:
        cleaned = preparation.strip()
        cleaned = _CREATED_BY_RE.sub("", cleaned)
        cleaned = _CREATED_AT_RE.sub("", cleaned)
        sections.append(cleaned.strip())

    return ParsedRecipe(
        sections=[s for s in sections if _is_meaningful_section(s)],
        is_manual=True,
    )


def extract_title(text: Optional[str]) -> str:
    """
    Heuristically extract a title from a recipe body.

    Scans the first five non-empty lines and returns the first one that is shorter than
    60 characters and does not look like a section label or metadata line.

    Args:
        text: Recipe body

    Returns:
        Extracted title, or "Mein Rezept" if nothing suitable is found

    Examples:
        >>> extract_title("Apfelkuchen\\n\\nZutaten:\\n• 3 Äpfel")
        'Apfelkuchen'
        >>> extract_title("")
        'Mein Rezept'
    """
    if not text:
        return DEFAULT_TITLE

    lines = [line for line in text.split("\n") if line.strip()]
    for line in lines[:_TITLE_SCAN_LINES]:
        candidate = line.strip()
        lowered = candidate.lower()
        if len(candidate) >= _TITLE_MAX_LENGTH:
            continue
        if any(word in lowered for word in _TITLE_STOPWORDS):
            continue
        return candidate
    return DEFAULT_TITLE


def _section_body(text: Optional[str], header: str) -> Optional[str]:
    if not is_manual_recipe(text):
        return None
    for section in parse_recipe_sections(text).sections:
        if section.startswith(header):
            return section[len(header):].strip()
    return None


def extract_ingredients(text: Optional[str]) -> List[str]:
    """
    Return the ingredient lines of a manual recipe.

    Returns an empty list for digitized recipes.
    """
    body = _section_body(text, INGREDIENTS_HEADER)
    if not body:
        return []
    return [line.strip() for line in body.split("\n") if line.strip()]


def extract_preparation(text: Optional[str]) -> Optional[str]:
    """Return the preparation block of a manual recipe, or None for digitized recipes."""
    return _section_body(text, PREPARATION_HEADER)


def _format_created_at(created_at: Optional[datetime]) -> str:
    created_at = created_at or datetime.now()
    return created_at.strftime("%d.%m.%Y, %H:%M")


def format_manual_recipe(
    title: str,
    ingredients: List[str],
    preparation: str,
    description: Optional[str] = None,
    estimated_time: Optional[str] = None,
    servings: Optional[int] = None,
    author: Optional[str] = None,
    created_at: Optional[datetime] = None,
) -> str:
    """
    Build the text body for a manually created recipe.

    The output is what parse_recipe_sections() recognizes as the manual format.

    Args:
        title: Recipe title (first line)
        ingredients: Ingredient lines, rendered as bullets
        preparation: Preparation instructions
        description: Optional description placed between title and ingredients
        estimated_time: Optional preparation time text (e.g., "30 min")
        servings: Number of servings
        author: Creator display name
        created_at: Creation time (defaults to now)

    Returns:
        Recipe body text
    """
    description_block = f"{description}\n\n" if description else ""
    ingredient_lines = "\n".join(f"• {ingredient}" for ingredient in ingredients)
    time_line = f"Zubereitungszeit: {estimated_time}\n" if estimated_time else ""
    servings_text = servings if servings is not None else ""

    return (
        f"{title}\n\n"
        f"{description_block}{INGREDIENTS_HEADER}\n"
        f"{ingredient_lines}\n\n"
        f"{PREPARATION_HEADER}\n"
        f"{preparation}\n\n"
        f"{time_line}Portionen: {servings_text}\n\n"
        f"Erstellt von: {author or 'Unbekannt'}\n"
        f"Erstellt am: {_format_created_at(created_at)}"
    )
