from typing import Dict, Optional

from pydantic import BaseModel


# Fields are optional so that missing values reach the handlers, which answer
# with a 400 and a readable message rather than a schema error.
class CredentialsRequest(BaseModel):
    username: Optional[str] = None
    password: Optional[str] = None


class RecipeRequest(BaseModel):
    name: Optional[str] = None
    ingredients: Optional[str] = None
    instructions: Optional[str] = None
    created_by: Optional[int] = None


class RecipeTextRequest(BaseModel):
    text: Optional[str] = None


class LoginResponse(BaseModel):
    success: bool = True
    accessToken: str
    username: str
    roles: Dict[str, int]
