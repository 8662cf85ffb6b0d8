"""Shared pytest fixtures for imagegen tests."""

import shutil
import tempfile
import threading
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Generator

import pytest

from imagegen.collaborators.storage import LocalFileStorage
from imagegen.collaborators.synthesis import GeneratedImage, SynthesisClient, SynthesisRegistry
from imagegen.core.config import ImageGenConfig
from imagegen.core.errors import MetadataError
from imagegen.core.index_store import IndexStore
from imagegen.core.service import ImageGenerationService

# PNG signature followed by filler; nothing in the tests decodes it.
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"fake-image-data"


class FakeMetadata:
    """In-memory metadata tool.

    ``tags`` maps a file name (not path) to the tags ``read`` returns.  Names
    listed in ``unreadable`` raise :class:`MetadataError` on read; every
    write raises when ``fail_writes`` is set.
    """

    def __init__(self) -> None:
        self.sessions = 0
        self.tags: dict[str, dict[str, Any]] = {}
        self.unreadable: set[str] = set()
        self.fail_writes = False
        self.writes: list[tuple[str, dict[str, Any]]] = []

    @contextmanager
    def session(self):
        self.sessions += 1
        yield

    def read(self, path) -> dict[str, Any]:
        name = Path(path).name
        if name in self.unreadable:
            raise MetadataError(f"cannot read {name}")
        return dict(self.tags.get(name, {}))

    def write(self, path, tags: dict[str, Any]) -> None:
        if self.fail_writes:
            raise MetadataError("exiftool exploded")
        self.writes.append((str(path), tags))


class FakeSynthesisClient(SynthesisClient):
    """Synthesis client returning a fixed PNG and recording its calls.

    ``max_in_flight`` records the highest number of overlapping ``generate``
    calls seen; ``delay`` makes each call sleep so overlaps are observable.
    """

    name = "fake"
    description = "Test double"

    def __init__(
        self, media_type: str = "image/png", online: bool = True, delay: float = 0.0
    ) -> None:
        self.media_type = media_type
        self.online = online
        self.delay = delay
        self.calls: list[dict[str, Any]] = []
        self.closed = False
        self.in_flight = 0
        self.max_in_flight = 0
        self._counter_lock = threading.Lock()

    def is_online(self) -> bool:
        return self.online

    def generate(self, prompt, size, n=1, model=None):
        with self._counter_lock:
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                time.sleep(self.delay)
            self.calls.append({"prompt": prompt, "size": size, "n": n, "model": model})
            return [GeneratedImage(data=PNG_BYTES, media_type=self.media_type) for _ in range(n)]
        finally:
            with self._counter_lock:
                self.in_flight -= 1

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files.

    Yields:
        Path to temporary directory

    Cleanup:
        Directory is removed after test completes
    """
    temp_path = Path(tempfile.mkdtemp())
    try:
        yield temp_path
    finally:
        shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def output_dir(temp_dir: Path) -> Path:
    path = temp_dir / "images"
    path.mkdir()
    return path


@pytest.fixture
def test_config(temp_dir: Path, output_dir: Path) -> ImageGenConfig:
    """Create a test configuration with temporary directories."""
    return ImageGenConfig(
        _env_file=None,
        output_dir=str(output_dir),
        models_dir=str(temp_dir / "models"),
        model="test-model",
        provider="openai",
        api_key="test-key",
        device="cpu",
        torch_dtype="float32",
    )


@pytest.fixture
def storage() -> LocalFileStorage:
    return LocalFileStorage()


@pytest.fixture
def index_store(storage: LocalFileStorage) -> IndexStore:
    return IndexStore(storage)


@pytest.fixture
def fake_metadata() -> FakeMetadata:
    return FakeMetadata()


@pytest.fixture
def fake_client() -> FakeSynthesisClient:
    return FakeSynthesisClient()


@pytest.fixture
def registry(fake_client: FakeSynthesisClient) -> SynthesisRegistry:
    registry = SynthesisRegistry()
    registry.register(fake_client)
    return registry


@pytest.fixture
def service(
    output_dir: Path,
    registry: SynthesisRegistry,
    storage: LocalFileStorage,
    fake_metadata: FakeMetadata,
) -> ImageGenerationService:
    """Service wired to local storage in a temp dir and fake collaborators."""
    return ImageGenerationService(
        output_directory=output_dir,
        model="test-model",
        registry=registry,
        storage=storage,
        metadata=fake_metadata,
    )
