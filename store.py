"""User Store: persistence for accounts and sessions.

Two implementations share one interface:
- MongoUserStore: pymongo collections ``account`` and ``session``
- InMemoryUserStore: process-local dictionaries, used by tests

``get_user_store`` picks one from the USER_STORE environment variable
("mongodb" or "inmemory"). Without it, MongoDB is used when a database
is configured and memory otherwise.
"""

import os
import logging
import secrets
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Dict, Optional

from bson import ObjectId

import database
from schemas import Account, Session

logger = logging.getLogger(__name__)

COLL_ACCOUNT = "account"
COLL_SESSION = "session"


class UserStore(ABC):
    @abstractmethod
    def find_user(self, user_id: str) -> Optional[Account]:
        pass

    @abstractmethod
    def find_user_by_email(self, email: str) -> Optional[Account]:
        pass

    @abstractmethod
    def create_user(self, account: Account) -> str:
        pass

    @abstractmethod
    def save_user(self, account: Account) -> None:
        pass

    @abstractmethod
    def create_session(self, session: Session) -> None:
        pass

    @abstractmethod
    def find_session(self, token: str) -> Optional[Session]:
        pass


class MongoUserStore(UserStore):
    """Accounts and sessions in MongoDB.

    ``save_user`` overwrites the mutable fields of the stored document with a
    plain ``$set``; concurrent read-modify-write cycles on the same user are
    not serialized.
    """

    def __init__(self, db):
        self.db = db

    @staticmethod
    def _to_account(doc: Optional[dict]) -> Optional[Account]:
        if not doc:
            return None
        data = dict(doc)
        data["id"] = str(data.pop("_id"))
        data.pop("updated_at", None)
        return Account.model_validate(data)

    def find_user(self, user_id: str) -> Optional[Account]:
        if not ObjectId.is_valid(user_id):
            return None
        return self._to_account(self.db[COLL_ACCOUNT].find_one({"_id": ObjectId(user_id)}))

    def find_user_by_email(self, email: str) -> Optional[Account]:
        return self._to_account(self.db[COLL_ACCOUNT].find_one({"email": email}))

    def create_user(self, account: Account) -> str:
        return database.create_document(COLL_ACCOUNT, account.model_dump(exclude={"id"}))

    def save_user(self, account: Account) -> None:
        fields = account.model_dump(include={"name", "email", "preferences", "favorites", "last_login"})
        fields["updated_at"] = datetime.now(timezone.utc)
        self.db[COLL_ACCOUNT].update_one({"_id": ObjectId(account.id)}, {"$set": fields})
        logger.info("Saved user %s", account.id)

    def create_session(self, session: Session) -> None:
        database.create_document(COLL_SESSION, session)

    def find_session(self, token: str) -> Optional[Session]:
        doc = self.db[COLL_SESSION].find_one({"token": token})
        if not doc:
            return None
        return Session(user_id=str(doc["user_id"]), token=doc["token"], expires_at=doc["expires_at"])


class InMemoryUserStore(UserStore):
    """Process-local store. Copies on read and write, like a real database would.

    ``writes`` counts ``save_user`` calls.
    """

    def __init__(self):
        self._users: Dict[str, Account] = {}
        self._sessions: Dict[str, Session] = {}
        self.writes = 0

    def find_user(self, user_id: str) -> Optional[Account]:
        user = self._users.get(user_id)
        return user.model_copy(deep=True) if user else None

    def find_user_by_email(self, email: str) -> Optional[Account]:
        for user in self._users.values():
            if user.email == email:
                return user.model_copy(deep=True)
        return None

    def create_user(self, account: Account) -> str:
        user_id = secrets.token_hex(12)
        self._users[user_id] = account.model_copy(update={"id": user_id}, deep=True)
        return user_id

    def save_user(self, account: Account) -> None:
        self._users[account.id] = account.model_copy(deep=True)
        self.writes += 1

    def create_session(self, session: Session) -> None:
        self._sessions[session.token] = session

    def find_session(self, token: str) -> Optional[Session]:
        return self._sessions.get(token)

    def clear(self) -> None:
        self._users.clear()
        self._sessions.clear()
        self.writes = 0


_store: Optional[UserStore] = None


def create_user_store() -> UserStore:
    kind = os.getenv("USER_STORE", "").lower()
    if not kind:
        kind = "mongodb" if database.db is not None else "inmemory"
    if kind == "mongodb":
        if database.db is None:
            raise RuntimeError("USER_STORE=mongodb requires DATABASE_URL and DATABASE_NAME")
        return MongoUserStore(database.db)
    if kind == "inmemory":
        logger.warning("Using in-memory user store; data is lost on restart")
        return InMemoryUserStore()
    raise ValueError(f"Unknown USER_STORE: {kind}")


def get_user_store() -> UserStore:
    global _store
    if _store is None:
        _store = create_user_store()
    return _store
