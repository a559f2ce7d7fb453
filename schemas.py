from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional
from datetime import datetime, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


# Embedded in the users collection
class Preferences(CamelModel):
    categories: List[str] = []
    theme: str = "light"
    language: str = "en"


class FavoriteEntry(CamelModel):
    article_id: str = Field(alias="articleId")
    title: str
    url: str
    source: str = "Unknown"
    saved_at: datetime = Field(default_factory=utcnow, alias="savedAt")


# Users collection for auth and profile data
class Account(CamelModel):
    id: Optional[str] = None
    email: str
    name: Optional[str] = None
    password_hash: str = ""
    salt: str = ""
    preferences: Preferences = Field(default_factory=Preferences)
    favorites: List[FavoriteEntry] = []
    created_at: datetime = Field(default_factory=utcnow, alias="createdAt")
    last_login: Optional[datetime] = Field(default=None, alias="lastLogin")

    def public(self) -> dict:
        """Client-facing view; credential fields are dropped."""
        return self.model_dump(
            mode="json", by_alias=True, exclude={"password_hash", "salt"}
        )


class Session(BaseModel):
    user_id: str
    token: str
    expires_at: datetime


class ProfileView(CamelModel):
    id: str
    name: Optional[str] = None
    email: str
    preferences: Preferences
    favorites_count: int = Field(alias="favoritesCount")
    created_at: datetime = Field(alias="createdAt")
    last_login: Optional[datetime] = Field(default=None, alias="lastLogin")
