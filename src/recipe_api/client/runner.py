from typing import Dict, List, Optional

import httpx

from recipe_api.client.controllers import (
    RESULT_HANDLERS,
    ClientState,
    Effect,
    HttpCall,
    StorageClear,
    StorageWrite,
    Transition,
)
from recipe_api.settings import settings
from recipe_api.utils.logging import logger


class EffectRunner:
    """Carries out controller effects against a live API.

    HTTP calls are sent with httpx and their responses fed back into the
    matching `*_result` controller. Cookies set by the API (the refresh
    cookie) are kept in the client jar and only sent on calls flagged
    `credentials`. Storage effects are applied to an in-memory
    session store. Effects that need a human or a browser (alerts, confirms,
    navigation, downloads) are collected in `ui_effects` for the host.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        storage: Optional[Dict[str, str]] = None,
    ):
        self.http_client = http_client or httpx.AsyncClient(
            base_url=base_url or settings.api_base_url
        )
        self.storage: Dict[str, str] = storage if storage is not None else {}
        self.ui_effects: List[Effect] = []

    async def aclose(self) -> None:
        await self.http_client.aclose()

    async def run(self, transition: Transition) -> ClientState:
        """Apply a transition's effects, following up on any HTTP responses."""
        state, pending = transition.state, list(transition.effects)

        while pending:
            effect = pending.pop(0)

            if isinstance(effect, HttpCall):
                status_code, body = await self._send(effect)
                follow_up = RESULT_HANDLERS[effect.tag](state, status_code, body)
                state = follow_up.state
                pending = list(follow_up.effects) + pending
            elif isinstance(effect, StorageWrite):
                if effect.value is None:
                    self.storage.pop(effect.key, None)
                else:
                    self.storage[effect.key] = effect.value
            elif isinstance(effect, StorageClear):
                self.storage.clear()
            else:
                self.ui_effects.append(effect)

        return state

    async def _send(self, call: HttpCall):
        request = self.http_client.build_request(
            call.method, call.path, json=call.json_body, params=call.params
        )
        if not call.credentials and "cookie" in request.headers:
            # the cookie jar is only attached to credentialed calls
            del request.headers["cookie"]

        try:
            response = await self.http_client.send(request)
        except httpx.HTTPError as e:
            logger.warning(f"{call.method} {call.path} failed: {type(e).__name__}: {e}")
            return None, None

        try:
            body = response.json()
        except ValueError:
            body = {"message": response.text}

        return response.status_code, body
