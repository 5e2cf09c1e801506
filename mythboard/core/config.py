from enum import Enum
from functools import lru_cache
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class IdentityMode(str, Enum):
    """How the acting identity is resolved"""
    ANONYMOUS = "anonymous"  # random token persisted by the browser
    ACCOUNT = "account"      # authenticated account id from a bearer token


class ReactionPolicy(str, Enum):
    """How many reactions one identity may hold on one target"""
    SINGLE = "single"  # one reaction per identity and target, re-selecting switches or removes it
    MULTI = "multi"    # each reaction type toggles independently


DEFAULT_REACTION_TYPES = ["👍", "❤️", "😂", "😮", "😢", "😱"]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    APP_ENV: str = "development"
    DATABASE_URL: Optional[str] = None

    # JWT
    SECRET_KEY: str = "your-secret-key"  # don't use this in production
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7

    # identity and reactions
    IDENTITY_MODE: IdentityMode = IdentityMode.ANONYMOUS
    IDENTIFIER_COOKIE: str = "user_identifier"
    IDENTIFIER_HEADER: str = "X-User-Identifier"
    REACTION_POLICY: ReactionPolicy = ReactionPolicy.SINGLE
    REACTION_TYPES: List[str] = DEFAULT_REACTION_TYPES

    # posts
    MAX_POST_IMAGES: int = 3


@lru_cache()
def get_settings() -> Settings:
    """Get the application settings"""
    return Settings()
