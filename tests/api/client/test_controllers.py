import pytest

from recipe_api.client import controllers as c
from recipe_api.client.controllers import (
    ADDING,
    EDITING,
    VIEW,
    Alert,
    ClientState,
    Confirm,
    Download,
    HttpCall,
    Navigate,
    StorageClear,
    StorageWrite,
)

RECIPE_TEXT = (
    "Recipe Name: Chili\n\nIngredients:\n- beans\n- meat\n\nInstructions:\n1. cook\n2. serve"
)


def _recipe(**overrides):
    recipe = {
        "id": 7,
        "name": "Chili",
        "ingredients": "beans\nmeat",
        "instructions": "cook\nserve",
    }
    recipe.update(overrides)
    return recipe


class TestRestoreSession:
    def test_empty_storage(self):
        state = c.restore_session({})
        assert state == ClientState()

    def test_reads_all_keys(self):
        state = c.restore_session(
            {"guestMode": "true", "currentRecipeId": "3", "tempToken": "abc"}
        )
        assert state.guest_mode is True
        assert state.current_recipe_id == 3
        assert state.access_token == "abc"

    @pytest.mark.parametrize("stored", ["abc", "", "3.5", "²"])
    def test_unusable_recipe_id_means_no_selection(self, stored):
        state = c.restore_session({"currentRecipeId": stored, "tempToken": "abc"})
        assert state.current_recipe_id is None
        assert state.access_token == "abc"

    def test_enter_guest_mode(self):
        transition = c.enter_guest_mode(ClientState())
        assert transition.state.guest_mode is True
        assert transition.effects == [
            StorageWrite(key="guestMode", value="true"),
            Navigate(url="index.html"),
        ]


class TestLogin:
    def test_requires_both_fields(self):
        transition = c.submit_login(ClientState(), "alice", "")
        assert transition.state.status.message == "Please enter both fields"
        assert transition.state.status.kind == "error"
        assert transition.effects == []

    def test_submit_sends_credentials(self):
        transition = c.submit_login(ClientState(), "alice", "pw")
        assert transition.state.busy is True
        (call,) = transition.effects
        assert isinstance(call, HttpCall)
        assert call.method == "POST"
        assert call.path == "/login"
        assert call.json_body == {"username": "alice", "password": "pw"}
        assert call.credentials is True

    def test_success_stores_token_and_redirects(self):
        busy = ClientState(busy=True, guest_mode=True)
        transition = c.login_result(
            busy, 200, {"success": True, "accessToken": "tok", "username": "alice"}
        )

        assert transition.state.busy is False
        assert transition.state.access_token == "tok"
        assert transition.state.guest_mode is False
        assert transition.state.status.message == "Login successful!"
        assert transition.effects == [
            StorageWrite(key="tempToken", value="tok"),
            StorageWrite(key="guestMode", value=None),
            Navigate(url="index.html", delay_ms=2000),
        ]

    def test_rejected_shows_server_message(self):
        transition = c.login_result(
            ClientState(busy=True),
            401,
            {"success": False, "message": "Invalid credentials, please try again!"},
        )
        assert transition.state.busy is False
        assert transition.state.status.message == "Invalid credentials, please try again!"
        assert transition.effects == []

    def test_success_without_token_is_a_failure(self):
        transition = c.login_result(
            ClientState(busy=True), 200, {"message": "<html>proxy page</html>"}
        )

        assert transition.state.busy is False
        assert transition.state.access_token is None
        assert transition.state.status.kind == "error"
        assert transition.effects == []

    def test_network_failure(self):
        transition = c.login_result(ClientState(busy=True), None, None)
        assert transition.state.busy is False
        assert transition.state.status.message == "Server unavailable. Try later."


class TestRegister:
    def test_requires_both_fields(self):
        transition = c.submit_register(ClientState(), "", "pw")
        assert transition.state.status.kind == "error"
        assert transition.effects == []

    def test_success_welcomes_user(self):
        transition = c.register_result(
            ClientState(busy=True),
            201,
            {"success": True, "user": {"id": 1, "username": "alice"}},
        )
        assert transition.state.busy is False
        assert transition.state.status.message == "Registration successful! Welcome alice"
        assert transition.state.status.kind == "success"

    def test_success_without_user_is_a_failure(self):
        transition = c.register_result(ClientState(busy=True), 201, {"message": "ok"})
        assert transition.state.busy is False
        assert transition.state.status.kind == "error"

    def test_conflict(self):
        transition = c.register_result(
            ClientState(busy=True),
            409,
            {"success": False, "message": "Username already exists"},
        )
        assert transition.state.busy is False
        assert transition.state.status.message == "Username already exists"


class TestLogout:
    def test_success_resets_everything(self):
        state = ClientState(access_token="tok", current_recipe_id=4, busy=True)
        transition = c.logout_result(state, 200, {"success": True})

        assert transition.state == ClientState()
        assert transition.effects == [StorageClear(), Navigate(url="/login.html")]

    def test_failure_keeps_session(self):
        state = ClientState(access_token="tok", busy=True)
        transition = c.logout_result(state, None, None)

        assert transition.state.access_token == "tok"
        assert transition.state.busy is False
        assert transition.effects == [Alert(message="Logout failed - please try again")]


class TestSearch:
    def test_load_names(self):
        names = [{"id": 1, "name": "Chili"}]
        transition = c.load_names_result(
            ClientState(), 200, {"success": True, "data": names}
        )
        assert transition.state.recipe_names == tuple(names)

    def test_load_names_failure_alerts(self):
        transition = c.load_names_result(ClientState(), 500, {"success": False})
        assert transition.state.recipe_names == ()
        assert transition.effects == [
            Alert(message="Error loading recipes. Please refresh the page.")
        ]

    def test_blank_term(self):
        transition = c.search(ClientState(), "   ")
        assert transition.effects == [Alert(message="Please enter a search term")]
        assert transition.state.busy is False

    def test_term_is_trimmed(self):
        (call,) = c.search(ClientState(), "  chi ").effects
        assert call.path == "/recipes/search"
        assert call.params == {"name": "chi"}

    def test_first_match_is_shown(self):
        transition = c.search_result(
            ClientState(busy=True),
            200,
            {"success": True, "data": [_recipe(), _recipe(id=8, name="Chili 2")]},
        )

        assert transition.state.busy is False
        assert transition.state.current_recipe_id == 7
        assert transition.state.view_read_only is True
        assert transition.state.view_text == (
            "Recipe Name: Chili\n\nIngredients:\nbeans\nmeat\n\nInstructions:\ncook\nserve"
        )
        assert transition.effects == [StorageWrite(key="currentRecipeId", value="7")]

    def test_not_found(self):
        transition = c.search_result(ClientState(busy=True), 404, {"success": False})
        assert transition.state.busy is False
        assert transition.effects == [
            Alert(message="No recipes found matching your search")
        ]

    def test_server_error(self):
        transition = c.search_result(
            ClientState(busy=True), 500, {"message": "An unexpected error occurred"}
        )
        assert transition.effects == [
            Alert(message="Search failed: An unexpected error occurred")
        ]


class TestAddRecipe:
    def test_first_press_opens_template(self):
        transition = c.add_or_save(ClientState())
        assert transition.state.mode == ADDING
        assert transition.state.view_read_only is False
        assert transition.state.view_text.startswith("Recipe Name:")
        assert transition.effects == []

    def test_allowed_in_guest_mode(self):
        transition = c.add_or_save(ClientState(guest_mode=True))
        assert transition.state.mode == ADDING

    def test_second_press_posts_parsed_recipe(self):
        state = ClientState(mode=ADDING, view_read_only=False, view_text=RECIPE_TEXT)
        transition = c.add_or_save(state)

        assert transition.state.busy is True
        assert transition.state.status.message == "Saving..."
        (call,) = transition.effects
        assert call.method == "POST"
        assert call.path == "/recipes"
        assert call.json_body == {
            "name": "Chili",
            "ingredients": "beans\nmeat",
            "instructions": "cook\nserve",
        }

    def test_parse_error_is_shown(self):
        state = ClientState(mode=ADDING, view_text="Ingredients:\nbeans")
        transition = c.add_or_save(state)

        assert transition.state.status.message == (
            'Error: Include "Recipe Name:" in your recipe'
        )
        assert transition.effects == []

    def test_save_result(self):
        state = ClientState(mode=ADDING, view_read_only=False, busy=True)
        transition = c.save_result(state, 201, {"success": True, "data": _recipe()})

        assert transition.state.mode == VIEW
        assert transition.state.view_read_only is True
        assert transition.state.current_recipe_id == 7
        assert transition.state.status.message == "Recipe Saved!"
        assert transition.effects == [StorageWrite(key="currentRecipeId", value="7")]

    def test_save_success_without_data(self):
        state = ClientState(mode=ADDING, view_read_only=False, busy=True)
        transition = c.save_result(state, 201, {"message": "Created"})

        assert transition.state.busy is False
        assert transition.state.mode == ADDING
        assert transition.state.status.message == "Error: Created"
        assert transition.effects == []

    def test_save_failure_keeps_editing(self):
        state = ClientState(mode=ADDING, view_read_only=False, busy=True)
        transition = c.save_result(
            state, 400, {"success": False, "message": "Recipe name already exists"}
        )

        assert transition.state.busy is False
        assert transition.state.mode == ADDING
        assert transition.state.status.message == "Error: Recipe name already exists"


class TestEditRecipe:
    def test_guest_mode_blocks(self):
        state = ClientState(guest_mode=True, current_recipe_id=7)
        transition = c.edit_or_save(state)
        assert transition.state == state
        assert len(transition.effects) == 1
        assert isinstance(transition.effects[0], Alert)

    def test_needs_a_recipe(self):
        transition = c.edit_or_save(ClientState())
        assert transition.effects == [Alert(message="Please search for a recipe first")]

    def test_first_press_unlocks(self):
        transition = c.edit_or_save(ClientState(current_recipe_id=7))
        assert transition.state.mode == EDITING
        assert transition.state.view_read_only is False

    def test_second_press_puts(self):
        state = ClientState(current_recipe_id=7, mode=EDITING, view_text=RECIPE_TEXT)
        (call,) = c.edit_or_save(state).effects
        assert call.method == "PUT"
        assert call.path == "/recipes/7"
        assert call.json_body["ingredients"] == "beans\nmeat"

    def test_parse_error(self):
        state = ClientState(
            current_recipe_id=7,
            mode=EDITING,
            view_text="Recipe Name: Chili\nInstructions:\ncook\nIngredients:\nbeans",
        )
        transition = c.edit_or_save(state)
        assert transition.state.status.message == (
            "Error! Try Again: Include both Ingredients and Instructions sections in order"
        )
        assert transition.effects == []

    def test_edit_result_rerenders(self):
        state = ClientState(current_recipe_id=7, mode=EDITING, busy=True)
        transition = c.edit_result(
            state, 200, {"success": True, "data": _recipe(name="Hot Chili")}
        )

        assert transition.state.mode == VIEW
        assert transition.state.view_read_only is True
        assert transition.state.view_text.startswith("Recipe Name: Hot Chili")
        assert transition.state.status.message == "Changes saved!"

    def test_edit_success_without_data(self):
        state = ClientState(current_recipe_id=7, mode=EDITING, busy=True)
        transition = c.edit_result(state, 200, None)
        assert transition.state.busy is False
        assert transition.state.status.message == "Error! Try Again: Update failed"

    def test_edit_failure(self):
        state = ClientState(current_recipe_id=7, mode=EDITING, busy=True)
        transition = c.edit_result(state, 404, {"message": "Recipe not found"})
        assert transition.state.busy is False
        assert transition.state.mode == EDITING
        assert transition.state.status.message == "Error! Try Again: Recipe not found"


class TestDeleteRecipe:
    def test_guest_mode_blocks(self):
        transition = c.request_delete(ClientState(guest_mode=True, current_recipe_id=7))
        assert all(not isinstance(e, Confirm) for e in transition.effects)

    def test_needs_a_recipe(self):
        transition = c.request_delete(ClientState())
        assert transition.effects == [Alert(message="No recipe selected")]

    def test_asks_for_confirmation(self):
        transition = c.request_delete(ClientState(current_recipe_id=7))
        assert transition.effects == [
            Confirm(message="Permanently delete this recipe?", tag="delete")
        ]

    def test_declined(self):
        state = ClientState(current_recipe_id=7)
        transition = c.confirm_delete(state, False)
        assert transition.state == state
        assert transition.effects == []

    def test_confirmed(self):
        transition = c.confirm_delete(ClientState(current_recipe_id=7), True)
        (call,) = transition.effects
        assert call.method == "DELETE"
        assert call.path == "/recipes/7"

    def test_delete_result_clears_view(self):
        state = ClientState(current_recipe_id=7, view_text=RECIPE_TEXT, busy=True)
        transition = c.delete_result(state, 200, {"success": True})

        assert transition.state.current_recipe_id is None
        assert transition.state.view_text == ""
        assert transition.state.busy is False
        assert transition.effects == [
            StorageWrite(key="currentRecipeId", value=None),
            Alert(message="Recipe deleted"),
        ]

    def test_delete_failure(self):
        state = ClientState(current_recipe_id=7, busy=True)
        transition = c.delete_result(state, 404, {"message": "Recipe not found"})
        assert transition.state.current_recipe_id == 7
        assert transition.effects == [Alert(message="Failed to delete recipe")]


class TestDownload:
    def test_needs_a_recipe(self):
        transition = c.download(ClientState())
        assert transition.effects == [
            Alert(message="Please save or open a recipe before downloading.")
        ]

    def test_points_at_pdf(self):
        transition = c.download(ClientState(current_recipe_id=7))
        assert transition.effects == [Download(path="/recipes/7/download")]


def test_every_request_tag_has_a_handler():
    calls = [
        c.submit_login(ClientState(), "a", "b").effects[0],
        c.submit_register(ClientState(), "a", "b").effects[0],
        c.logout(ClientState()).effects[0],
        c.load_names(ClientState()).effects[0],
        c.search(ClientState(), "x").effects[0],
        c.confirm_delete(ClientState(current_recipe_id=1), True).effects[0],
    ]
    for call in calls:
        assert call.tag in c.RESULT_HANDLERS
