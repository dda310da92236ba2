"""HTTP service for Streaky: auth, lists and the overall streak."""

from __future__ import annotations

import logging
import os
from typing import Any

from fastapi import Body, Depends, FastAPI, HTTPException, Request, Response, status
from fastapi.responses import JSONResponse
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from streaky import __version__
from streaky.config import data_root, load_settings
from streaky.docstore import DocumentStore
from streaky.errors import AuthError
from streaky.identity import (
    check_token_version,
    decode_access_token,
    decode_refresh_token,
    hash_password,
    sign_access_token,
    sign_refresh_token,
    verify_password,
)

logging.basicConfig(
    level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("streaky.api")

app = FastAPI(title="Streaky API", version=__version__)

security = HTTPBearer(auto_error=False)


def _store() -> DocumentStore:
    return DocumentStore(data_root())


@app.exception_handler(HTTPException)
async def _error_body(request: Request, exc: HTTPException) -> JSONResponse:
    return JSONResponse({"error": exc.detail}, status_code=exc.status_code, headers=exc.headers)


# ── Auth ──────────────────────────────────────────────────────


def get_current_user(credentials: HTTPAuthorizationCredentials | None = Depends(security)) -> str:
    if credentials is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="missing token")
    try:
        payload = decode_access_token(credentials.credentials, load_settings())
    except AuthError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid/expired token")
    return str(payload["sub"])


def _token_pair(user: dict[str, Any]) -> dict[str, Any]:
    settings = load_settings()
    return {
        "accessToken": sign_access_token(user, settings),
        "refreshToken": sign_refresh_token(user, settings),
        "user": {"id": user["_id"], "email": user["email"]},
    }


@app.post("/auth/register", status_code=status.HTTP_201_CREATED)
def register(payload: dict[str, Any] = Body(default={})) -> dict[str, Any]:
    email = str(payload.get("email") or "").strip()
    password = str(payload.get("password") or "")
    if not email or not password:
        raise HTTPException(status_code=400, detail="email and password required")

    store = _store()
    if store.find_user_by_email(email):
        raise HTTPException(status_code=409, detail="email already in use")

    user = store.create_user(email, hash_password(password))
    logger.info("Registered user %s", user["_id"])
    return _token_pair(user)


@app.post("/auth/login")
def login(payload: dict[str, Any] = Body(default={})) -> dict[str, Any]:
    email = str(payload.get("email") or "").strip()
    password = str(payload.get("password") or "")
    user = _store().find_user_by_email(email)
    if not user or not verify_password(password, user["passwordHash"]):
        raise HTTPException(status_code=401, detail="invalid credentials")
    return _token_pair(user)


@app.post("/auth/refresh")
def refresh(payload: dict[str, Any] = Body(default={})) -> dict[str, str]:
    refresh_token = payload.get("refreshToken")
    if not refresh_token:
        raise HTTPException(status_code=400, detail="missing refreshToken")

    settings = load_settings()
    try:
        claims = decode_refresh_token(str(refresh_token), settings)
        user = _store().get_user(str(claims.get("sub")))
        check_token_version(claims, user)
    except AuthError as e:
        raise HTTPException(status_code=401, detail=f"invalid refresh token: {e}")
    return {"accessToken": sign_access_token(user, settings)}


@app.post("/auth/logout", status_code=status.HTTP_204_NO_CONTENT)
def logout(user_id: str = Depends(get_current_user)) -> Response:
    """Revoke every refresh token issued so far."""
    _store().bump_token_version(user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ── Overall ───────────────────────────────────────────────────


@app.get("/overall")
def get_overall(user_id: str = Depends(get_current_user)) -> dict[str, Any]:
    return _store().get_overall(user_id)


@app.put("/overall")
def put_overall(payload: dict[str, Any] = Body(...), user_id: str = Depends(get_current_user)) -> dict[str, Any]:
    return _store().put_overall(user_id, payload)


# ── Lists ─────────────────────────────────────────────────────


@app.get("/lists")
def get_lists(user_id: str = Depends(get_current_user)) -> list[dict[str, Any]]:
    return _store().get_lists(user_id)


@app.post("/lists", status_code=status.HTTP_201_CREATED)
def create_list(payload: dict[str, Any] = Body(default={}), user_id: str = Depends(get_current_user)) -> dict[str, Any]:
    return _store().create_list(user_id, payload)


@app.put("/lists/{list_id}")
def update_list(list_id: str, payload: dict[str, Any] = Body(...), user_id: str = Depends(get_current_user)) -> dict[str, Any]:
    updated = _store().update_list(user_id, list_id, payload)
    if updated is None:
        raise HTTPException(status_code=404, detail="not found")
    return updated


@app.delete("/lists/{list_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_list(list_id: str, user_id: str = Depends(get_current_user)) -> Response:
    if not _store().delete_list(user_id, list_id):
        raise HTTPException(status_code=404, detail="not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@app.get("/healthz")
def healthz() -> dict[str, str]:
    return {"ok": "true"}
