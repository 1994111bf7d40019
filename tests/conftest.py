import sys
import threading
from datetime import datetime, timezone
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"

if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from iMedia.domain.models.core import AssetHandle, MediaSubtypes, MediaType  # noqa: E402
from iMedia.infrastructure.stores.memory_store import InMemoryAssetStore  # noqa: E402
from iMedia.infrastructure.stores.sqlite_store import SQLiteAssetStore  # noqa: E402
from iMedia.library import MediaLibrary  # noqa: E402

T1 = datetime(2023, 1, 1, 9, 0, tzinfo=timezone.utc)
T2 = datetime(2023, 6, 1, 9, 0, tzinfo=timezone.utc)
T3 = datetime(2024, 1, 1, 9, 0, tzinfo=timezone.utc)


class CompletionRecorder:
    """Callable completion that records every result it receives."""

    def __init__(self):
        self.results = []
        self._event = threading.Event()
        self._lock = threading.Lock()

    def __call__(self, result):
        with self._lock:
            self.results.append(result)
        self._event.set()

    def wait(self, timeout: float = 5.0):
        assert self._event.wait(timeout), "completion was never called"
        return self.results[0]


@pytest.fixture
def recorder():
    return CompletionRecorder


@pytest.fixture
def dates():
    return T1, T2, T3


@pytest.fixture
def make_handle():
    def _make(
        local_identifier,
        media_type=MediaType.IMAGE,
        subtypes=MediaSubtypes.NONE,
        creation_date=None,
        **changes,
    ):
        return AssetHandle(
            local_identifier=local_identifier,
            media_type=media_type,
            media_subtypes=subtypes,
            creation_date=creation_date,
            modification_date=creation_date,
            **changes,
        )

    return _make


@pytest.fixture
def memory_store():
    store = InMemoryAssetStore()
    yield store
    store.shutdown()


@pytest.fixture
def sqlite_store(tmp_path):
    store = SQLiteAssetStore.open(tmp_path / "media_library.db")
    yield store
    store.shutdown()


@pytest.fixture
def library(memory_store):
    lib = MediaLibrary(memory_store)
    yield lib
    lib.shutdown()
