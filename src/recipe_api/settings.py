import os
from os.path import join
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict
from dotenv import load_dotenv
from functools import lru_cache
from recipe_api.config import default_database_path

root_dir = os.path.dirname(os.path.abspath(__file__))
env_path = join(root_dir, ".env.local")
if os.path.exists(env_path):
    load_dotenv(env_path)


class Settings(BaseSettings):
    access_token_secret: str | None = None
    refresh_token_secret: str | None = None

    database_path: str = default_database_path

    # explicit origins plus a regex for local development hosts on any port
    allowed_origins: List[str] = []
    allowed_origin_regex: str = r"^https?://(localhost|127\.0\.0\.1)(:\d+)?$"

    # browsers drop SameSite=None cookies unless they are also Secure
    cookie_secure: bool = True

    api_base_url: str = "http://localhost:3500"

    log_level: str = "INFO"
    bugsnag_api_key: str | None = None
    env: str | None = None

    model_config = SettingsConfigDict(env_file=join(root_dir, ".env"))


@lru_cache
def get_settings():
    return Settings()


settings = get_settings()
