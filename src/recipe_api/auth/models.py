from typing import Dict

from pydantic import BaseModel


class AuthenticatedUser(BaseModel):
    username: str
    roles: Dict[str, int] = {}
