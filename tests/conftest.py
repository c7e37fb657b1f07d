"""Shared fixtures: in-memory toaster store, settings, services, HTTP client."""

import asyncio
from dataclasses import replace
from datetime import UTC, datetime
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from toastrank.comments.models import Comment
from toastrank.comments.service import CommentService
from toastrank.config.settings import Settings
from toastrank.core.exceptions import ToasterNotFoundError
from toastrank.moderation.service import ModerationService
from toastrank.storage.service import LocalImageStorage
from toastrank.toasters.models import Toaster, create_toaster
from toastrank.toasters.service import ToasterService
from toastrank.uploads.service import UploadService


class InMemoryRedis:
    """The few redis.asyncio calls the ranking cache makes, kept in a dict."""

    def __init__(self) -> None:
        self.data: dict[str, str] = {}

    async def get(self, key: str) -> str | None:
        return self.data.get(key)

    async def setex(self, key: str, ttl: int, value: str) -> None:
        self.data[key] = value

    async def incr(self, key: str) -> int:
        self.data[key] = str(int(self.data.get(key, 0)) + 1)
        return int(self.data[key])


class InMemoryToasterStore:
    """ToasterStore double.

    Every call yields to the event loop once, so concurrent votes interleave
    between the read and the compare-and-set just like they would against
    Cassandra.
    """

    def __init__(self) -> None:
        self.toasters: dict[int, Toaster] = {}
        self.comments: dict[int, list[Comment]] = {}
        self._next_toaster_id = 1
        self._next_comment_id = 1
        self.fail_create = False
        self.fail_delete = False
        self.fail_list = False
        self.cas_attempts = 0

    async def create_toaster(self, image: str) -> Toaster:
        await asyncio.sleep(0)
        if self.fail_create:
            msg = "store unavailable"
            raise RuntimeError(msg)
        toaster = create_toaster(self._next_toaster_id, image)
        self._next_toaster_id += 1
        self.toasters[toaster.id] = toaster
        return replace(toaster)

    async def get_toaster(self, toaster_id: int) -> Toaster | None:
        await asyncio.sleep(0)
        toaster = self.toasters.get(toaster_id)
        return replace(toaster) if toaster else None

    async def iter_toasters(self, page_size: int):
        if self.fail_list:
            msg = "store unavailable"
            raise RuntimeError(msg)
        rows = [replace(t) for t in self.toasters.values()]
        for start in range(0, len(rows), page_size):
            await asyncio.sleep(0)
            for toaster in rows[start : start + page_size]:
                yield toaster

    async def update_rating(
        self,
        toaster_id: int,
        expected_votes: int,
        rating: float,
        votes: int,
    ) -> bool:
        await asyncio.sleep(0)
        self.cas_attempts += 1
        toaster = self.toasters.get(toaster_id)
        if toaster is None or toaster.votes != expected_votes:
            return False
        toaster.rating = rating
        toaster.votes = votes
        return True

    async def delete_toaster(self, toaster_id: int) -> None:
        await asyncio.sleep(0)
        if self.fail_delete:
            msg = "store unavailable"
            raise RuntimeError(msg)
        self.toasters.pop(toaster_id, None)
        self.comments.pop(toaster_id, None)

    async def add_comment(self, toaster_id: int, text: str) -> Comment:
        await asyncio.sleep(0)
        if toaster_id not in self.toasters:
            raise ToasterNotFoundError
        comment = Comment(
            id=self._next_comment_id,
            toaster_id=toaster_id,
            comment=text,
            created_at=datetime.now(UTC),
        )
        self._next_comment_id += 1
        self.comments.setdefault(toaster_id, []).append(comment)
        return comment

    async def list_comments(self, toaster_id: int) -> list[Comment]:
        await asyncio.sleep(0)
        return sorted(
            self.comments.get(toaster_id, []),
            key=lambda c: (c.created_at, c.id),
            reverse=True,
        )


@pytest.fixture
def store() -> InMemoryToasterStore:
    """Fresh in-memory store."""
    return InMemoryToasterStore()


@pytest.fixture
def upload_dir(tmp_path: Path) -> Path:
    """Empty uploads directory."""
    path = tmp_path / "uploads"
    path.mkdir()
    return path


@pytest.fixture
def banner_dir(tmp_path: Path) -> Path:
    """Banner directory with a single banner."""
    path = tmp_path / "banners"
    path.mkdir()
    (path / "toast.gif").write_bytes(b"GIF89a")
    return path


@pytest.fixture
def settings(upload_dir: Path, banner_dir: Path) -> Settings:
    """Settings pointing at temporary directories."""
    return Settings(
        _env_file=None,
        environment="testing",
        upload_dir=str(upload_dir),
        banner_dir=str(banner_dir),
        vote_max_retries=50,
        moderator_username="admin",
        moderator_password="basic-secret",
        moderator_delete_password="delete-secret",
    )


@pytest.fixture
def storage(settings: Settings) -> LocalImageStorage:
    """Local image storage under the temporary uploads dir."""
    return LocalImageStorage(settings)


@pytest.fixture
def toaster_service(store: InMemoryToasterStore, settings: Settings) -> ToasterService:
    """ToasterService without a ranking cache."""
    return ToasterService(store, settings)


@pytest.fixture
def comment_service(store: InMemoryToasterStore) -> CommentService:
    """CommentService over the in-memory store."""
    return CommentService(store)


@pytest.fixture
def upload_service(
    store: InMemoryToasterStore, storage: LocalImageStorage, settings: Settings
) -> UploadService:
    """UploadService over the in-memory store."""
    return UploadService(store, storage, settings)


@pytest.fixture
def moderation_service(
    store: InMemoryToasterStore, storage: LocalImageStorage, settings: Settings
) -> ModerationService:
    """ModerationService over the in-memory store."""
    return ModerationService(store, storage, settings)


@pytest.fixture
def client(store: InMemoryToasterStore, settings: Settings) -> TestClient:
    """HTTP client with services wired to the in-memory store.

    The lifespan is not run, so no database connection is attempted.
    """
    from toastrank.main import create_app, install_services

    app = create_app()
    install_services(app, store, settings)
    return TestClient(app, follow_redirects=False)


@pytest.fixture
def bare_client() -> TestClient:
    """HTTP client with no services wired (database unavailable)."""
    from toastrank.main import create_app

    return TestClient(create_app(), follow_redirects=False)


@pytest.fixture
def redis_double() -> InMemoryRedis:
    """Dict-backed stand-in for the Redis client."""
    return InMemoryRedis()
