import sqlite3
from typing import Dict, List, Optional, Tuple

from recipe_api.config import recipes_table_name
from recipe_api.utils.db import execute_db_operation, get_new_db_connection


class RecipeNotFound(Exception):
    pass


class DuplicateRecipeName(Exception):
    pass


class UnknownRecipeAuthor(Exception):
    pass


RECIPE_COLUMNS = "id, name, ingredients, instructions, created_by, created_at"


def convert_recipe_db_to_dict(row: Tuple) -> Optional[Dict]:
    if not row:
        return None

    return {
        "id": row[0],
        "name": row[1],
        "ingredients": row[2],
        "instructions": row[3],
        "created_by": row[4],
        "created_at": row[5],
    }


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _translate_integrity_error(e: sqlite3.IntegrityError) -> Optional[Exception]:
    message = str(e)
    if "UNIQUE constraint failed" in message and ".name" in message:
        return DuplicateRecipeName("Recipe name already exists")
    if "FOREIGN KEY constraint failed" in message:
        return UnknownRecipeAuthor("created_by does not refer to an existing user")
    return None


async def create_recipe(
    name: str, ingredients: str, instructions: str, created_by: Optional[int] = None
) -> Dict:
    """Insert a recipe and return the stored record.

    Raises DuplicateRecipeName if another recipe already uses `name`, and
    UnknownRecipeAuthor if `created_by` names no user.
    """
    try:
        recipe_id = await execute_db_operation(
            f"""
            INSERT INTO {recipes_table_name} (name, ingredients, instructions, created_by)
            VALUES (?, ?, ?, ?)
            """,
            params=(name, ingredients, instructions, created_by),
            get_last_row_id=True,
        )
    except sqlite3.IntegrityError as e:
        error = _translate_integrity_error(e)
        if error is None:
            raise
        raise error from e

    return await get_recipe(recipe_id)


async def get_recipe(recipe_id: int) -> Optional[Dict]:
    row = await execute_db_operation(
        f"SELECT {RECIPE_COLUMNS} FROM {recipes_table_name} WHERE id = ?",
        (recipe_id,),
        fetch_one=True,
    )
    return convert_recipe_db_to_dict(row)


async def list_recipe_names() -> List[Dict]:
    rows = await execute_db_operation(
        f"SELECT id, name FROM {recipes_table_name} ORDER BY name COLLATE NOCASE",
        fetch_all=True,
    )
    return [{"id": row[0], "name": row[1]} for row in rows]


async def search_recipes_by_name(term: str) -> List[Dict]:
    """Case-insensitive substring match on recipe names."""
    if not term or not term.strip():
        raise ValueError("Search term is required")

    # SQLite's LOWER and LIKE only fold ASCII, so both sides go through str.casefold
    rows = await execute_db_operation(
        f"""
        SELECT {RECIPE_COLUMNS} FROM {recipes_table_name}
        WHERE casefold(name) LIKE ? ESCAPE '\\'
        ORDER BY name COLLATE NOCASE
        """,
        (f"%{_escape_like(term.strip().casefold())}%",),
        fetch_all=True,
    )
    return [convert_recipe_db_to_dict(row) for row in rows]


async def update_recipe(
    recipe_id: int, name: str, ingredients: str, instructions: str
) -> Dict:
    """Replace a recipe's name, ingredients and instructions."""
    async with get_new_db_connection() as conn:
        cursor = await conn.cursor()
        try:
            await cursor.execute(
                f"""
                UPDATE {recipes_table_name}
                SET name = ?, ingredients = ?, instructions = ?
                WHERE id = ?
                """,
                (name, ingredients, instructions, recipe_id),
            )
        except sqlite3.IntegrityError as e:
            error = _translate_integrity_error(e)
            if error is None:
                raise
            raise error from e

        if cursor.rowcount == 0:
            raise RecipeNotFound(f"Recipe {recipe_id} not found")

        await conn.commit()

    return await get_recipe(recipe_id)


async def delete_recipe(recipe_id: int) -> None:
    row_count = await execute_db_operation(
        f"DELETE FROM {recipes_table_name} WHERE id = ?",
        (recipe_id,),
        get_row_count=True,
    )

    if not row_count:
        raise RecipeNotFound(f"Recipe {recipe_id} not found")
