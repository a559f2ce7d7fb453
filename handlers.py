"""User resource operations: profile, preferences and favorite articles.

Every operation takes the caller's ``user_id`` explicitly and raises one of
the errors in ``errors`` for known failures. Anything else the store raises
propagates untouched.
"""

import logging
from typing import List, Optional, Tuple

from errors import ConflictError, NotFoundError, ValidationError
from schemas import Account, FavoriteEntry, Preferences, ProfileView
from store import UserStore

logger = logging.getLogger(__name__)


def _load_user(store: UserStore, user_id: str) -> Account:
    user = store.find_user(user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user


def get_profile(store: UserStore, user_id: str) -> ProfileView:
    user = _load_user(store, user_id)
    return ProfileView(
        id=user.id,
        name=user.name,
        email=user.email,
        preferences=user.preferences,
        favorites_count=len(user.favorites),
        created_at=user.created_at,
        last_login=user.last_login,
    )


def update_profile(store: UserStore, user_id: str, name: Optional[str] = None, email: Optional[str] = None) -> Account:
    """Overwrite name/email when given. Empty strings count as not given."""
    user = _load_user(store, user_id)

    if name:
        user.name = name
    if email:
        user.email = email

    store.save_user(user)
    return user


def update_preferences(
    store: UserStore,
    user_id: str,
    categories: Optional[List[str]] = None,
    theme: Optional[str] = None,
    language: Optional[str] = None,
) -> Preferences:
    user = _load_user(store, user_id)

    if categories is not None:
        user.preferences.categories = list(dict.fromkeys(categories))
    if theme:
        user.preferences.theme = theme
    if language:
        user.preferences.language = language

    store.save_user(user)
    return user.preferences


def get_favorites(store: UserStore, user_id: str) -> Tuple[int, List[FavoriteEntry]]:
    """Favorites newest first. Entries saved at the same instant keep their stored order."""
    user = _load_user(store, user_id)
    favorites = sorted(user.favorites, key=lambda fav: fav.saved_at, reverse=True)
    return len(favorites), favorites


def add_favorite(
    store: UserStore,
    user_id: str,
    article_id: Optional[str],
    title: Optional[str],
    url: Optional[str],
    source: Optional[str] = None,
) -> List[FavoriteEntry]:
    if not article_id or not title or not url:
        raise ValidationError("Missing required fields: articleId, title, and url are required")

    logger.debug("Adding favorite %s for user %s", article_id, user_id)

    user = _load_user(store, user_id)

    if any(fav.article_id == article_id for fav in user.favorites):
        raise ConflictError("Article already in favorites")

    user.favorites.append(
        FavoriteEntry(article_id=article_id, title=title, url=url, source=source or "Unknown")
    )
    store.save_user(user)

    logger.debug("Favorite %s saved for user %s", article_id, user_id)
    return user.favorites


def remove_favorite(store: UserStore, user_id: str, article_id: str) -> List[FavoriteEntry]:
    user = _load_user(store, user_id)

    remaining = [fav for fav in user.favorites if fav.article_id != article_id]
    if len(remaining) == len(user.favorites):
        raise NotFoundError("Article not found in favorites")

    user.favorites = remaining
    store.save_user(user)
    return user.favorites
