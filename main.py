import os
import secrets
import hashlib
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional, List

from fastapi import FastAPI, HTTPException, Depends, Header, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, EmailStr, Field

import handlers
from errors import UserResourceError
from schemas import Account, CamelModel, Session
from store import UserStore, get_user_store

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Newsly User API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",")],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(UserResourceError)
async def user_resource_error_handler(request: Request, exc: UserResourceError):
    return JSONResponse(status_code=exc.status_code, content={"status": "error", "message": exc.message})


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    problems = []
    for err in exc.errors():
        field = ".".join(str(part) for part in err["loc"] if part != "body")
        problems.append(f"{field}: {err['msg']}" if field else err["msg"])
    return JSONResponse(
        status_code=400,
        content={"status": "error", "message": "Invalid request body: " + "; ".join(problems)},
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"status": "error", "message": "Internal server error"})


@app.get("/")
def read_root():
    return {"message": "Newsly AI Backend Running"}


@app.get("/health")
def health():
    return {"status": "ok"}

# ---------------------- Auth Helpers ----------------------
class SignUpReq(BaseModel):
    email: EmailStr
    password: str
    name: Optional[str] = None

class SignInReq(BaseModel):
    email: EmailStr
    password: str

class AuthResp(BaseModel):
    token: str
    email: EmailStr
    name: Optional[str] = None

SESSION_TTL = timedelta(days=7)


def hash_password(password: str, salt: str) -> str:
    return hashlib.sha256((salt + password).encode("utf-8")).hexdigest()


def create_session(store: UserStore, user_id: str) -> str:
    token = secrets.token_urlsafe(32)
    expires_at = datetime.now(timezone.utc) + SESSION_TTL
    store.create_session(Session(user_id=user_id, token=token, expires_at=expires_at))
    return token


@app.post("/auth/signup", response_model=AuthResp)
def signup(payload: SignUpReq, store: UserStore = Depends(get_user_store)):
    if store.find_user_by_email(payload.email):
        raise HTTPException(status_code=400, detail="Email already registered")
    salt = secrets.token_hex(16)
    pwd_hash = hash_password(payload.password, salt)
    acc = Account(email=payload.email, name=payload.name, password_hash=pwd_hash, salt=salt)
    user_id = store.create_user(acc)
    token = create_session(store, user_id)
    logger.info("Registered user %s", user_id)
    return AuthResp(token=token, email=payload.email, name=payload.name)


@app.post("/auth/signin", response_model=AuthResp)
def signin(payload: SignInReq, store: UserStore = Depends(get_user_store)):
    acc = store.find_user_by_email(payload.email)
    if not acc:
        raise HTTPException(status_code=401, detail="Invalid credentials")
    if hash_password(payload.password, acc.salt) != acc.password_hash:
        raise HTTPException(status_code=401, detail="Invalid credentials")
    acc.last_login = datetime.now(timezone.utc)
    store.save_user(acc)
    token = create_session(store, acc.id)
    return AuthResp(token=token, email=payload.email, name=acc.name)


def require_user(
    authorization: Optional[str] = Header(default=None),
    store: UserStore = Depends(get_user_store),
) -> str:
    """Resolve the bearer token to the caller's user id."""
    if not authorization or not authorization.lower().startswith("bearer "):
        raise HTTPException(status_code=401, detail="Missing token")
    token = authorization.split(" ", 1)[1]
    sess = store.find_session(token)
    if not sess or sess.expires_at <= datetime.now(timezone.utc):
        raise HTTPException(status_code=401, detail="Invalid token")
    return sess.user_id

# ---------------------- User Resource ----------------------

class FavoriteReq(CamelModel):
    article_id: Optional[str] = Field(default=None, alias="articleId")
    title: Optional[str] = None
    url: Optional[str] = None
    source: Optional[str] = None

class PreferencesReq(BaseModel):
    categories: Optional[List[str]] = None
    theme: Optional[str] = None
    language: Optional[str] = None

class ProfileReq(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None


def _dump_favorites(favorites) -> list:
    return [fav.model_dump(mode="json", by_alias=True) for fav in favorites]


@app.get("/user/favorites")
def get_favorites(user_id: str = Depends(require_user), store: UserStore = Depends(get_user_store)):
    count, favorites = handlers.get_favorites(store, user_id)
    return {"status": "success", "results": count, "data": {"favorites": _dump_favorites(favorites)}}


@app.post("/user/favorites")
def add_favorite(payload: FavoriteReq, user_id: str = Depends(require_user), store: UserStore = Depends(get_user_store)):
    favorites = handlers.add_favorite(
        store, user_id, payload.article_id, payload.title, payload.url, payload.source
    )
    return {
        "status": "success",
        "message": "Article added to favorites",
        "data": {"favorites": _dump_favorites(favorites)},
    }


@app.delete("/user/favorites/{article_id}")
def remove_favorite(article_id: str, user_id: str = Depends(require_user), store: UserStore = Depends(get_user_store)):
    favorites = handlers.remove_favorite(store, user_id, article_id)
    return {
        "status": "success",
        "message": "Article removed from favorites",
        "data": {"favorites": _dump_favorites(favorites)},
    }


@app.put("/user/preferences")
def update_preferences(payload: PreferencesReq, user_id: str = Depends(require_user), store: UserStore = Depends(get_user_store)):
    prefs = handlers.update_preferences(store, user_id, payload.categories, payload.theme, payload.language)
    return {
        "status": "success",
        "message": "Preferences updated successfully",
        "data": {"preferences": prefs.model_dump(mode="json")},
    }


@app.get("/user/profile")
def get_profile(user_id: str = Depends(require_user), store: UserStore = Depends(get_user_store)):
    profile = handlers.get_profile(store, user_id)
    return {"status": "success", "data": {"user": profile.model_dump(mode="json", by_alias=True)}}


@app.put("/user/profile")
def update_profile(payload: ProfileReq, user_id: str = Depends(require_user), store: UserStore = Depends(get_user_store)):
    user = handlers.update_profile(store, user_id, payload.name, payload.email)
    return {"status": "success", "message": "Profile updated successfully", "data": {"user": user.public()}}


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)
