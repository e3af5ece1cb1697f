import json
import sqlite3
from typing import Dict, List, Optional, Tuple

from recipe_api.config import users_table_name
from recipe_api.utils.db import execute_db_operation


class DuplicateUser(Exception):
    pass


USER_COLUMNS = "id, username, password_hash, roles, refresh_token"


def convert_user_db_to_dict(row: Tuple) -> Optional[Dict]:
    if not row:
        return None

    return {
        "id": row[0],
        "username": row[1],
        "password_hash": row[2],
        "roles": json.loads(row[3]) if row[3] else {},
        "refresh_token": row[4],
    }


async def get_user_by_username(username: str) -> Optional[Dict]:
    row = await execute_db_operation(
        f"SELECT {USER_COLUMNS} FROM {users_table_name} WHERE username = ?",
        (username,),
        fetch_one=True,
    )
    return convert_user_db_to_dict(row)


async def get_user_by_refresh_token(refresh_token: str) -> Optional[Dict]:
    row = await execute_db_operation(
        f"SELECT {USER_COLUMNS} FROM {users_table_name} WHERE refresh_token = ?",
        (refresh_token,),
        fetch_one=True,
    )
    return convert_user_db_to_dict(row)


async def create_user(username: str, password_hash: str, roles: Dict[str, int]) -> Dict:
    """Insert a user and return its public fields.

    Raises DuplicateUser when the username is already taken.
    """
    try:
        user_id = await execute_db_operation(
            f"""
            INSERT INTO {users_table_name} (username, password_hash, roles)
            VALUES (?, ?, ?)
            """,
            params=(username, password_hash, json.dumps(roles)),
            get_last_row_id=True,
        )
    except sqlite3.IntegrityError as e:
        raise DuplicateUser(f"Username {username} already exists") from e

    return {"id": user_id, "username": username, "roles": roles}


async def set_refresh_token(user_id: int, refresh_token: str) -> None:
    """Store the user's live refresh token, replacing any previous one."""
    await execute_db_operation(
        f"UPDATE {users_table_name} SET refresh_token = ? WHERE id = ?",
        (refresh_token, user_id),
    )


async def clear_refresh_token(refresh_token: str) -> bool:
    """Drop a stored refresh token. Returns whether any user held it."""
    row_count = await execute_db_operation(
        f"UPDATE {users_table_name} SET refresh_token = NULL WHERE refresh_token = ?",
        (refresh_token,),
        get_row_count=True,
    )
    return bool(row_count)


async def get_active_refresh_tokens() -> List[Tuple[int, str]]:
    rows = await execute_db_operation(
        f"SELECT id, refresh_token FROM {users_table_name} WHERE refresh_token IS NOT NULL",
        fetch_all=True,
    )
    return [(row[0], row[1]) for row in rows]
