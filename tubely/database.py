"""SQLite storage for users, refresh tokens and videos."""

from __future__ import annotations

import sqlite3
import threading
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Iterable, Optional, Sequence, Union

UUIDLike = Union[uuid.UUID, str]

_SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS users (
        id TEXT PRIMARY KEY,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        password TEXT NOT NULL,
        email TEXT UNIQUE NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS refresh_tokens (
        token TEXT PRIMARY KEY,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        revoked_at TIMESTAMP,
        user_id TEXT NOT NULL,
        expires_at TIMESTAMP NOT NULL,
        FOREIGN KEY(user_id) REFERENCES users(id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS videos (
        id TEXT PRIMARY KEY,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        title TEXT NOT NULL,
        description TEXT,
        thumbnail_url TEXT,
        video_url TEXT TEXT,
        user_id INTEGER,
        FOREIGN KEY(user_id) REFERENCES users(id)
    )
    """,
)

_VIDEO_COLUMNS = (
    "id, created_at, updated_at, title, description, thumbnail_url, video_url, user_id"
)


def _to_uuid(value: UUIDLike) -> uuid.UUID:
    return value if isinstance(value, uuid.UUID) else uuid.UUID(str(value))


def _parse_time(value: Optional[str]) -> Optional[datetime]:
    if value is None:
        return None
    parsed = datetime.fromisoformat(str(value))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _format_time(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(sep=" ")


@dataclass
class User:
    """A registered user; ``password`` holds the password hash."""

    id: uuid.UUID
    created_at: Optional[datetime]
    updated_at: Optional[datetime]
    email: str
    password: str

    @classmethod
    def _from_row(cls, row: Sequence[Any]) -> "User":
        id_, created_at, updated_at, email, password = row
        return cls(
            id=_to_uuid(id_),
            created_at=_parse_time(created_at),
            updated_at=_parse_time(updated_at),
            email=email,
            password=password,
        )


@dataclass
class RefreshToken:
    """A refresh token issued to a user."""

    token: str
    user_id: uuid.UUID
    expires_at: datetime
    created_at: Optional[datetime]
    updated_at: Optional[datetime]
    revoked_at: Optional[datetime]


@dataclass
class Video:
    """Metadata of an uploaded video."""

    id: uuid.UUID
    created_at: Optional[datetime]
    updated_at: Optional[datetime]
    thumbnail_url: Optional[str]
    video_url: Optional[str]
    title: str
    description: str
    user_id: uuid.UUID

    @classmethod
    def _from_row(cls, row: Sequence[Any]) -> "Video":
        (id_, created_at, updated_at, title, description,
         thumbnail_url, video_url, user_id) = row
        return cls(
            id=_to_uuid(id_),
            created_at=_parse_time(created_at),
            updated_at=_parse_time(updated_at),
            thumbnail_url=thumbnail_url,
            video_url=video_url,
            title=title,
            description=description if description is not None else "",
            user_id=_to_uuid(user_id),
        )


class Client:
    """Connection to the application database; creates the schema on open."""

    def __init__(self, path: str) -> None:
        self._conn = sqlite3.connect(
            path, check_same_thread=False, isolation_level=None
        )
        self._lock = threading.RLock()
        with self._lock:
            for statement in _SCHEMA:
                self._conn.execute(statement)

    def close(self) -> None:
        self._conn.close()

    def __enter__(self) -> "Client":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def _execute(self, query: str, params: Iterable[Any] = ()) -> None:
        with self._lock:
            self._conn.execute(query, tuple(params))

    def _fetch_one(self, query: str, params: Iterable[Any] = ()) -> Optional[tuple]:
        with self._lock:
            return self._conn.execute(query, tuple(params)).fetchone()

    def _fetch_all(self, query: str, params: Iterable[Any] = ()) -> list:
        with self._lock:
            return self._conn.execute(query, tuple(params)).fetchall()

    def reset(self) -> None:
        """Delete every row from every table."""
        for table in ("refresh_tokens", "users", "videos"):
            try:
                self._execute(f"DELETE FROM {table}")
            except sqlite3.Error as exc:
                raise sqlite3.OperationalError(
                    f"failed to reset table {table}: {exc}"
                ) from exc

    # Refresh tokens

    def create_refresh_token(
        self, token: str, user_id: UUIDLike, expires_at: datetime
    ) -> Optional[RefreshToken]:
        self._execute(
            """
            INSERT INTO refresh_tokens (token, created_at, updated_at, user_id, expires_at)
            VALUES (?, CURRENT_TIMESTAMP, CURRENT_TIMESTAMP, ?, ?)
            """,
            (token, str(_to_uuid(user_id)), _format_time(expires_at)),
        )
        return self.get_refresh_token(token)

    def revoke_refresh_token(self, token: str) -> None:
        self._execute(
            "UPDATE refresh_tokens SET revoked_at = CURRENT_TIMESTAMP WHERE token = ?",
            (token,),
        )

    def get_refresh_token(self, token: str) -> Optional[RefreshToken]:
        row = self._fetch_one(
            """
            SELECT token, created_at, updated_at, user_id, expires_at, revoked_at
            FROM refresh_tokens WHERE token = ?
            """,
            (token,),
        )
        if row is None:
            return None
        token_value, created_at, updated_at, user_id, expires_at, revoked_at = row
        return RefreshToken(
            token=token_value,
            user_id=_to_uuid(user_id),
            expires_at=_parse_time(expires_at),
            created_at=_parse_time(created_at),
            updated_at=_parse_time(updated_at),
            revoked_at=_parse_time(revoked_at),
        )

    def delete_refresh_token(self, token: str) -> None:
        self._execute("DELETE FROM refresh_tokens WHERE token = ?", (token,))

    # Users

    def get_users(self) -> list[User]:
        rows = self._fetch_all(
            "SELECT id, created_at, updated_at, email, password FROM users"
        )
        return [User._from_row(row) for row in rows]

    def get_user_by_email(self, email: str) -> Optional[User]:
        row = self._fetch_one(
            "SELECT id, created_at, updated_at, email, password FROM users WHERE email = ?",
            (email,),
        )
        return User._from_row(row) if row else None

    def get_user_by_refresh_token(self, token: str) -> Optional[User]:
        row = self._fetch_one(
            """
            SELECT u.id, u.created_at, u.updated_at, u.email, u.password
            FROM users u
            JOIN refresh_tokens rt ON u.id = rt.user_id
            WHERE rt.token = ?
            """,
            (token,),
        )
        return User._from_row(row) if row else None

    def create_user(self, email: str, password: str) -> Optional[User]:
        user_id = uuid.uuid4()
        self._execute(
            """
            INSERT INTO users (id, created_at, updated_at, email, password)
            VALUES (?, CURRENT_TIMESTAMP, CURRENT_TIMESTAMP, ?, ?)
            """,
            (str(user_id), email, password),
        )
        return self.get_user(user_id)

    def get_user(self, user_id: UUIDLike) -> Optional[User]:
        row = self._fetch_one(
            "SELECT id, created_at, updated_at, email, password FROM users WHERE id = ?",
            (str(_to_uuid(user_id)),),
        )
        return User._from_row(row) if row else None

    def delete_user(self, user_id: UUIDLike) -> None:
        self._execute("DELETE FROM users WHERE id = ?", (str(_to_uuid(user_id)),))

    # Videos

    def get_videos(self, user_id: UUIDLike) -> list[Video]:
        rows = self._fetch_all(
            f"SELECT {_VIDEO_COLUMNS} FROM videos WHERE user_id = ? "
            "ORDER BY created_at DESC",
            (str(_to_uuid(user_id)),),
        )
        return [Video._from_row(row) for row in rows]

    def create_video(
        self, title: str, description: str, user_id: UUIDLike
    ) -> Optional[Video]:
        video_id = uuid.uuid4()
        self._execute(
            """
            INSERT INTO videos (id, created_at, updated_at, title, description, user_id)
            VALUES (?, CURRENT_TIMESTAMP, CURRENT_TIMESTAMP, ?, ?, ?)
            """,
            (str(video_id), title, description, str(_to_uuid(user_id))),
        )
        return self.get_video(video_id)

    def get_video(self, video_id: UUIDLike) -> Optional[Video]:
        row = self._fetch_one(
            f"SELECT {_VIDEO_COLUMNS} FROM videos WHERE id = ?",
            (str(_to_uuid(video_id)),),
        )
        return Video._from_row(row) if row else None

    def update_video(self, video: Video) -> None:
        self._execute(
            """
            UPDATE videos
            SET title = ?, description = ?, thumbnail_url = ?, video_url = ?, user_id = ?
            WHERE id = ?
            """,
            (
                video.title,
                video.description,
                video.thumbnail_url,
                video.video_url,
                str(_to_uuid(video.user_id)),
                str(_to_uuid(video.id)),
            ),
        )

    def delete_video(self, video_id: UUIDLike) -> None:
        self._execute("DELETE FROM videos WHERE id = ?", (str(_to_uuid(video_id)),))