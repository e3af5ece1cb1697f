import pytest
from unittest.mock import patch, ANY

from recipe_api.db.user import (
    DuplicateUser,
    clear_refresh_token,
    convert_user_db_to_dict,
    create_user,
    get_active_refresh_tokens,
    get_user_by_refresh_token,
    get_user_by_username,
    set_refresh_token,
)


class TestConvertUser:
    def test_none_row(self):
        assert convert_user_db_to_dict(None) is None

    def test_roles_are_decoded(self):
        row = (1, "alice", "$2b$10$hash", '{"User": 2000}', None)
        assert convert_user_db_to_dict(row) == {
            "id": 1,
            "username": "alice",
            "password_hash": "$2b$10$hash",
            "roles": {"User": 2000},
            "refresh_token": None,
        }


@pytest.mark.asyncio
class TestUserQueries:
    @patch("recipe_api.db.user.execute_db_operation")
    async def test_get_user_by_username_queries_by_name(self, mock_execute):
        mock_execute.return_value = None

        assert await get_user_by_username("ghost") is None
        mock_execute.assert_called_once_with(ANY, ("ghost",), fetch_one=True)

    async def test_create_and_fetch(self, test_db):
        user = await create_user("alice", "digest", {"User": 2000})

        assert user == {"id": user["id"], "username": "alice", "roles": {"User": 2000}}

        stored = await get_user_by_username("alice")
        assert stored["password_hash"] == "digest"
        assert stored["roles"] == {"User": 2000}
        assert stored["refresh_token"] is None

    async def test_duplicate_username(self, test_db):
        await create_user("alice", "digest", {"User": 2000})

        with pytest.raises(DuplicateUser):
            await create_user("alice", "other", {"User": 2000})

    async def test_refresh_token_slot_is_overwritten(self, test_db):
        user = await create_user("alice", "digest", {"User": 2000})

        await set_refresh_token(user["id"], "first")
        await set_refresh_token(user["id"], "second")

        assert await get_user_by_refresh_token("first") is None
        assert (await get_user_by_refresh_token("second"))["username"] == "alice"

    async def test_clear_refresh_token(self, test_db):
        user = await create_user("alice", "digest", {"User": 2000})
        await set_refresh_token(user["id"], "token")

        assert await clear_refresh_token("token") is True
        assert await clear_refresh_token("token") is False
        assert (await get_user_by_username("alice"))["refresh_token"] is None

    async def test_get_active_refresh_tokens(self, test_db):
        alice = await create_user("alice", "digest", {"User": 2000})
        await create_user("bob", "digest", {"User": 2000})
        await set_refresh_token(alice["id"], "alice-token")

        assert await get_active_refresh_tokens() == [(alice["id"], "alice-token")]
