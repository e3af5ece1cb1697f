import os
from contextlib import asynccontextmanager
from typing import Any, Iterable

import aiosqlite

from recipe_api.config import users_table_name, recipes_table_name
from recipe_api.settings import settings


@asynccontextmanager
async def get_new_db_connection():
    conn = await aiosqlite.connect(settings.database_path)
    try:
        await conn.execute("PRAGMA foreign_keys = ON")
        await conn.create_function("casefold", 1, str.casefold, deterministic=True)
        yield conn
    finally:
        await conn.close()


async def execute_db_operation(
    operation: str,
    params: Iterable[Any] = (),
    fetch_one: bool = False,
    fetch_all: bool = False,
    get_last_row_id: bool = False,
    get_row_count: bool = False,
):
    """Run a single statement on a fresh connection and commit it.

    At most one of the fetch/return flags is honoured, checked in the order
    they are declared.
    """
    async with get_new_db_connection() as conn:
        cursor = await conn.cursor()
        await cursor.execute(operation, tuple(params))

        if fetch_one:
            return await cursor.fetchone()

        if fetch_all:
            return await cursor.fetchall()

        await conn.commit()

        if get_last_row_id:
            return cursor.lastrowid

        if get_row_count:
            return cursor.rowcount

        return None


async def create_users_table(cursor):
    await cursor.execute(
        f"""CREATE TABLE IF NOT EXISTS {users_table_name} (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                username TEXT NOT NULL UNIQUE,
                password_hash TEXT NOT NULL,
                roles TEXT NOT NULL,
                refresh_token TEXT,
                created_at DATETIME DEFAULT CURRENT_TIMESTAMP
            )"""
    )

    await cursor.execute(
        f"""CREATE INDEX IF NOT EXISTS idx_user_refresh_token ON {users_table_name} (refresh_token)"""
    )


async def create_recipes_table(cursor):
    await cursor.execute(
        f"""CREATE TABLE IF NOT EXISTS {recipes_table_name} (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT NOT NULL UNIQUE,
                ingredients TEXT NOT NULL,
                instructions TEXT NOT NULL,
                created_by INTEGER,
                created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
                FOREIGN KEY (created_by) REFERENCES {users_table_name}(id) ON DELETE SET NULL
            )"""
    )


async def init_db():
    db_dir = os.path.dirname(settings.database_path)
    if db_dir:
        os.makedirs(db_dir, exist_ok=True)

    async with get_new_db_connection() as conn:
        cursor = await conn.cursor()
        await create_users_table(cursor)
        await create_recipes_table(cursor)
        await conn.commit()
