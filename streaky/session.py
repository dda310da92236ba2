"""Client credentials and the last seen day label.

The access token lives only in memory. The refresh token and the day label
are kept in session.json so they survive restarts.
"""

from __future__ import annotations

from pathlib import Path

from streaky.config import session_path
from streaky.fileio import read_json, write_json_atomic


class Session:
    def __init__(self, root: Path | None = None) -> None:
        self.path = session_path(root)
        self.access_token: str | None = None

    def _load(self) -> dict:
        return read_json(self.path)

    def _save(self, data: dict) -> None:
        write_json_atomic(self.path, data)

    @property
    def refresh_token(self) -> str | None:
        return self._load().get("refreshToken")

    def set_tokens(self, access_token: str | None = None, refresh_token: str | None = None) -> None:
        if access_token:
            self.access_token = access_token
        if refresh_token:
            data = self._load()
            data["refreshToken"] = refresh_token
            self._save(data)

    def clear(self) -> None:
        """Forget both tokens. The day label stays: it belongs to the data, not the login."""
        self.access_token = None
        data = self._load()
        if data.pop("refreshToken", None) is not None:
            self._save(data)

    def is_authenticated(self) -> bool:
        return bool(self.access_token) or bool(self.refresh_token)

    @property
    def day_key(self) -> str | None:
        return self._load().get("dayKey")

    def remember_day(self, day_key: str) -> None:
        data = self._load()
        if data.get("dayKey") == day_key:
            return
        data["dayKey"] = day_key
        self._save(data)
