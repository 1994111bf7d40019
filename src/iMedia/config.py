"""Default configuration values for iMedia."""

from __future__ import annotations

from typing import Final

# Connection pool sizing for the SQLite-backed store.  SQLite serialises
# writers anyway, so a handful of connections is enough for concurrent readers.
DEFAULT_POOL_SIZE: Final[int] = 5
DEFAULT_POOL_TIMEOUT_SEC: Final[float] = 30.0

# Worker threads used by the bundled stores to run change requests and
# representation requests off the calling thread.
DEFAULT_STORE_WORKERS: Final[int] = 2

# Requested size of display representations when the caller does not care.
DEFAULT_TARGET_SIZE: Final[tuple[int, int]] = (512, 512)

# Bytes kept inline for the low quality preview delivered ahead of the full
# representation.
MICRO_THUMBNAIL_MAX_BYTES: Final[int] = 16 * 1024

DATABASE_FILE_NAME: Final[str] = "media_library.db"

SETTINGS_SCHEMA_ID: Final[str] = "iMedia/settings@1"

# Identifier suffix appended to store-generated identifiers, matching the
# ``<uuid>/L0/001`` shape callers already persist.
LOCAL_IDENTIFIER_SUFFIX: Final[str] = "/L0/001"
