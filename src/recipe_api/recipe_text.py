"""Conversion between a recipe and the plain-text block users edit.

The block has three labelled sections that must appear in this order::

    Recipe Name: Chili

    Ingredients:
    beans
    meat

    Instructions:
    cook
    serve

Blank lines are ignored when parsing. Leading ``- `` bullets are stripped from
ingredient lines and leading ``1. `` numbering from instruction lines, so the
add-mode template can be filled in as a list.
"""
import re
from typing import List, NamedTuple

NAME_MARKER = "recipe name:"
INGREDIENTS_MARKER = "ingredients:"
INSTRUCTIONS_MARKER = "instructions:"

_BULLET = re.compile(r"^-\s*")
_NUMBERING = re.compile(r"^\d+\.\s*")


class RecipeTextError(ValueError):
    pass


class MissingNameSection(RecipeTextError):
    def __init__(self):
        super().__init__('Include "Recipe Name:" in your recipe')


class EmptyName(RecipeTextError):
    def __init__(self):
        super().__init__('Enter a recipe name after "Recipe Name:"')


class MissingOrMisorderedSections(RecipeTextError):
    def __init__(self):
        super().__init__("Include both Ingredients and Instructions sections in order")


class ParsedRecipe(NamedTuple):
    name: str
    ingredients: str
    instructions: str


def _find_marker(lines: List[str], marker: str) -> int:
    for index, line in enumerate(lines):
        if marker in line.lower():
            return index
    return -1


def parse_recipe_text(text: str) -> ParsedRecipe:
    lines = [line.rstrip("\r") for line in text.split("\n")]
    lines = [line for line in lines if line.strip()]

    name_index = _find_marker(lines, NAME_MARKER)
    if name_index == -1:
        raise MissingNameSection()

    name = lines[name_index].split(":", 1)[1].strip()
    if not name:
        raise EmptyName()

    ingredients_index = _find_marker(lines, INGREDIENTS_MARKER)
    instructions_index = _find_marker(lines, INSTRUCTIONS_MARKER)
    if (
        ingredients_index == -1
        or instructions_index == -1
        or ingredients_index >= instructions_index
    ):
        raise MissingOrMisorderedSections()

    ingredients = "\n".join(
        _BULLET.sub("", line)
        for line in lines[ingredients_index + 1 : instructions_index]
    )
    instructions = "\n".join(
        _NUMBERING.sub("", line) for line in lines[instructions_index + 1 :]
    )

    return ParsedRecipe(name=name, ingredients=ingredients, instructions=instructions)


def render_recipe_text(recipe) -> str:
    """Render a recipe (mapping or object with name/ingredients/instructions)."""
    if isinstance(recipe, dict):
        name = recipe["name"]
        ingredients = recipe["ingredients"]
        instructions = recipe["instructions"]
    else:
        name, ingredients, instructions = (
            recipe.name,
            recipe.ingredients,
            recipe.instructions,
        )

    return (
        f"Recipe Name: {name}\n\n"
        f"Ingredients:\n{ingredients}\n\n"
        f"Instructions:\n{instructions}"
    )


def new_recipe_template() -> str:
    return "Recipe Name: \n\nIngredients:\n- \n\nInstructions:\n1. "
