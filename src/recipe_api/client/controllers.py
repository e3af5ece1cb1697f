"""Browser-side controllers as pure state transitions.

Each controller takes the current `ClientState` plus the user's input (or a
server response) and returns a `Transition`: the next state and a list of
effects for the host to carry out. Nothing here touches the network, storage
or the DOM, so the same logic runs in tests and in `EffectRunner`.

Controllers that start a request set `busy`; every `*_result` handler clears
it again, on failure paths included, so buttons are always re-enabled.
"""
from typing import Any, Dict, List, NamedTuple, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict

from recipe_api.recipe_text import (
    RecipeTextError,
    new_recipe_template,
    parse_recipe_text,
    render_recipe_text,
)

GUEST_MODE_KEY = "guestMode"
CURRENT_RECIPE_KEY = "currentRecipeId"
ACCESS_TOKEN_KEY = "tempToken"

VIEW = "view"
ADDING = "adding"
EDITING = "editing"


class Status(BaseModel):
    model_config = ConfigDict(frozen=True)

    message: str = ""
    kind: str = ""  # "", "success" or "error"


class ClientState(BaseModel):
    model_config = ConfigDict(frozen=True)

    guest_mode: bool = False
    current_recipe_id: Optional[int] = None
    access_token: Optional[str] = None
    recipe_names: Tuple[Dict[str, Any], ...] = ()
    view_text: str = ""
    view_read_only: bool = True
    mode: str = VIEW
    status: Status = Status()
    busy: bool = False


class HttpCall(BaseModel):
    model_config = ConfigDict(frozen=True)

    method: str
    path: str
    tag: str
    json_body: Optional[Dict[str, Any]] = None
    params: Optional[Dict[str, str]] = None
    # only these calls carry stored cookies, like fetch with credentials: "include"
    credentials: bool = False


class StorageWrite(BaseModel):
    model_config = ConfigDict(frozen=True)

    key: str
    value: Optional[str] = None  # None removes the key


class StorageClear(BaseModel):
    model_config = ConfigDict(frozen=True)


class Navigate(BaseModel):
    model_config = ConfigDict(frozen=True)

    url: str
    delay_ms: int = 0


class Download(BaseModel):
    model_config = ConfigDict(frozen=True)

    path: str


class Alert(BaseModel):
    model_config = ConfigDict(frozen=True)

    message: str


class Confirm(BaseModel):
    model_config = ConfigDict(frozen=True)

    message: str
    tag: str


Effect = Union[HttpCall, StorageWrite, StorageClear, Navigate, Download, Alert, Confirm]


class Transition(NamedTuple):
    state: ClientState
    effects: List[Effect]


def _update(state: ClientState, **changes) -> ClientState:
    return state.model_copy(update=changes)


def _error(message: str) -> Status:
    return Status(message=message, kind="error")


def _success(message: str) -> Status:
    return Status(message=message, kind="success")


def _ok(status_code: Optional[int]) -> bool:
    return status_code is not None and 200 <= status_code < 300


def _message(body: Optional[Dict], default: str) -> str:
    return (body or {}).get("message") or default


def restore_session(storage: Dict[str, str]) -> ClientState:
    """Build the initial state from session storage on page load."""
    try:
        recipe_id = int(storage.get(CURRENT_RECIPE_KEY) or "")
    except ValueError:
        # anything that is not a stored id counts as no selection
        recipe_id = None

    return ClientState(
        guest_mode=storage.get(GUEST_MODE_KEY) == "true",
        current_recipe_id=recipe_id,
        access_token=storage.get(ACCESS_TOKEN_KEY),
    )


# Guest mode


def enter_guest_mode(state: ClientState) -> Transition:
    return Transition(
        _update(state, guest_mode=True),
        [StorageWrite(key=GUEST_MODE_KEY, value="true"), Navigate(url="index.html")],
    )


# Login / register / logout


def submit_login(state: ClientState, username: str, password: str) -> Transition:
    if not username or not password:
        return Transition(_update(state, status=_error("Please enter both fields")), [])

    return Transition(
        _update(state, busy=True, status=Status()),
        [
            HttpCall(
                method="POST",
                path="/login",
                tag="login",
                json_body={"username": username, "password": password},
                credentials=True,
            )
        ],
    )


def login_result(
    state: ClientState, status_code: Optional[int], body: Optional[Dict]
) -> Transition:
    if status_code is None:
        return Transition(
            _update(state, busy=False, status=_error("Server unavailable. Try later.")),
            [],
        )

    if not _ok(status_code):
        return Transition(
            _update(state, busy=False, status=_error(_message(body, "Login failed"))),
            [],
        )

    token = (body or {}).get("accessToken")
    if not token:
        return Transition(
            _update(state, busy=False, status=_error("Login failed")), []
        )

    return Transition(
        _update(
            state,
            busy=False,
            access_token=token,
            guest_mode=False,
            status=_success("Login successful!"),
        ),
        [
            StorageWrite(key=ACCESS_TOKEN_KEY, value=token),
            StorageWrite(key=GUEST_MODE_KEY, value=None),
            Navigate(url="index.html", delay_ms=2000),
        ],
    )


def submit_register(state: ClientState, username: str, password: str) -> Transition:
    if not username or not password:
        return Transition(
            _update(state, status=_error("Please enter both username and password")),
            [],
        )

    return Transition(
        _update(state, busy=True, status=Status()),
        [
            HttpCall(
                method="POST",
                path="/register",
                tag="register",
                json_body={"username": username, "password": password},
            )
        ],
    )


def register_result(
    state: ClientState, status_code: Optional[int], body: Optional[Dict]
) -> Transition:
    if status_code is None:
        status = _error("Network error. Please try again.")
    elif _ok(status_code) and ((body or {}).get("user") or {}).get("username"):
        username = body["user"]["username"]
        status = _success(f"Registration successful! Welcome {username}")
    else:
        status = _error(_message(body, "Registration failed"))

    return Transition(_update(state, busy=False, status=status), [])


def logout(state: ClientState) -> Transition:
    return Transition(
        _update(state, busy=True),
        [HttpCall(method="POST", path="/logout", tag="logout", credentials=True)],
    )


def logout_result(
    state: ClientState, status_code: Optional[int], body: Optional[Dict]
) -> Transition:
    if not _ok(status_code):
        return Transition(
            _update(state, busy=False),
            [Alert(message="Logout failed - please try again")],
        )

    return Transition(ClientState(), [StorageClear(), Navigate(url="/login.html")])


# Search


def load_names(state: ClientState) -> Transition:
    return Transition(
        state, [HttpCall(method="GET", path="/recipes/names", tag="load_names")]
    )


def load_names_result(
    state: ClientState, status_code: Optional[int], body: Optional[Dict]
) -> Transition:
    if _ok(status_code) and (body or {}).get("success"):
        return Transition(_update(state, recipe_names=tuple(body["data"])), [])

    return Transition(
        _update(state, recipe_names=()),
        [Alert(message="Error loading recipes. Please refresh the page.")],
    )


def search(state: ClientState, term: str) -> Transition:
    term = (term or "").strip()
    if not term:
        return Transition(state, [Alert(message="Please enter a search term")])

    return Transition(
        _update(state, busy=True),
        [
            HttpCall(
                method="GET",
                path="/recipes/search",
                tag="search",
                params={"name": term},
            )
        ],
    )


def search_result(
    state: ClientState, status_code: Optional[int], body: Optional[Dict]
) -> Transition:
    data = (body or {}).get("data") or []

    if status_code == 404 or (_ok(status_code) and not data):
        return Transition(
            _update(state, busy=False),
            [Alert(message="No recipes found matching your search")],
        )

    if not _ok(status_code):
        reason = _message(body, f"Server returned {status_code}")
        return Transition(
            _update(state, busy=False), [Alert(message=f"Search failed: {reason}")]
        )

    # the first match is shown
    recipe = data[0]
    return Transition(
        _update(
            state,
            busy=False,
            mode=VIEW,
            view_read_only=True,
            view_text=render_recipe_text(recipe),
            current_recipe_id=recipe["id"],
        ),
        [StorageWrite(key=CURRENT_RECIPE_KEY, value=str(recipe["id"]))],
    )


# Add / save a new recipe


def add_or_save(state: ClientState) -> Transition:
    """The add button toggles: first press opens the template, second saves."""
    if state.mode != ADDING:
        return Transition(
            _update(
                state,
                mode=ADDING,
                view_read_only=False,
                view_text=new_recipe_template(),
                status=Status(),
            ),
            [],
        )

    try:
        parsed = parse_recipe_text(state.view_text)
    except RecipeTextError as e:
        return Transition(_update(state, status=_error(f"Error: {e}")), [])

    return Transition(
        _update(state, busy=True, status=Status(message="Saving...")),
        [HttpCall(method="POST", path="/recipes", tag="save", json_body=parsed._asdict())],
    )


def save_result(
    state: ClientState, status_code: Optional[int], body: Optional[Dict]
) -> Transition:
    recipe = (body or {}).get("data")
    if not _ok(status_code) or not recipe:
        reason = _message(body, "Failed to save recipe")
        return Transition(_update(state, busy=False, status=_error(f"Error: {reason}")), [])

    return Transition(
        _update(
            state,
            busy=False,
            mode=VIEW,
            view_read_only=True,
            current_recipe_id=recipe["id"],
            status=_success("Recipe Saved!"),
        ),
        [StorageWrite(key=CURRENT_RECIPE_KEY, value=str(recipe["id"]))],
    )


# Edit an existing recipe


def edit_or_save(state: ClientState) -> Transition:
    """The edit button toggles between unlocking the view and saving it."""
    if state.guest_mode:
        return Transition(state, [Alert(message="Editing is disabled in guest mode")])

    if state.mode != EDITING:
        if state.current_recipe_id is None:
            return Transition(state, [Alert(message="Please search for a recipe first")])

        return Transition(
            _update(state, mode=EDITING, view_read_only=False, status=Status()), []
        )

    try:
        parsed = parse_recipe_text(state.view_text)
    except RecipeTextError as e:
        return Transition(_update(state, status=_error(f"Error! Try Again: {e}")), [])

    return Transition(
        _update(state, busy=True),
        [
            HttpCall(
                method="PUT",
                path=f"/recipes/{state.current_recipe_id}",
                tag="edit",
                json_body=parsed._asdict(),
            )
        ],
    )


def edit_result(
    state: ClientState, status_code: Optional[int], body: Optional[Dict]
) -> Transition:
    recipe = (body or {}).get("data")
    if not _ok(status_code) or not recipe:
        reason = _message(body, "Update failed")
        return Transition(
            _update(state, busy=False, status=_error(f"Error! Try Again: {reason}")), []
        )

    return Transition(
        _update(
            state,
            busy=False,
            mode=VIEW,
            view_read_only=True,
            view_text=render_recipe_text(recipe),
            status=_success("Changes saved!"),
        ),
        [],
    )


# Delete


def request_delete(state: ClientState) -> Transition:
    if state.guest_mode:
        return Transition(state, [Alert(message="Deleting is disabled in guest mode")])

    if state.current_recipe_id is None:
        return Transition(state, [Alert(message="No recipe selected")])

    return Transition(
        state, [Confirm(message="Permanently delete this recipe?", tag="delete")]
    )


def confirm_delete(state: ClientState, confirmed: bool) -> Transition:
    if not confirmed or state.current_recipe_id is None:
        return Transition(state, [])

    return Transition(
        _update(state, busy=True),
        [
            HttpCall(
                method="DELETE",
                path=f"/recipes/{state.current_recipe_id}",
                tag="delete",
            )
        ],
    )


def delete_result(
    state: ClientState, status_code: Optional[int], body: Optional[Dict]
) -> Transition:
    if not _ok(status_code):
        return Transition(
            _update(state, busy=False), [Alert(message="Failed to delete recipe")]
        )

    return Transition(
        _update(
            state,
            busy=False,
            mode=VIEW,
            view_read_only=True,
            view_text="",
            current_recipe_id=None,
        ),
        [StorageWrite(key=CURRENT_RECIPE_KEY, value=None), Alert(message="Recipe deleted")],
    )


# Download


def download(state: ClientState) -> Transition:
    if state.current_recipe_id is None:
        return Transition(
            state, [Alert(message="Please save or open a recipe before downloading.")]
        )

    return Transition(
        state, [Download(path=f"/recipes/{state.current_recipe_id}/download")]
    )


RESULT_HANDLERS = {
    "login": login_result,
    "register": register_result,
    "logout": logout_result,
    "load_names": load_names_result,
    "search": search_result,
    "save": save_result,
    "edit": edit_result,
    "delete": delete_result,
}
