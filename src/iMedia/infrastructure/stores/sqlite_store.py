import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterator, List, Optional, Tuple

from dateutil.parser import isoparse

from iMedia.config import DEFAULT_STORE_WORKERS, MICRO_THUMBNAIL_MAX_BYTES
from iMedia.domain.models.changes import (
    AlbumCreationRequest,
    AlbumMembershipChangeRequest,
    AssetCreationRequest,
    AssetDeletionRequest,
    FavoriteChangeRequest,
    ResourceType,
)
from iMedia.domain.models.core import (
    AlbumHandle,
    AlbumSubtype,
    AlbumType,
    AssetHandle,
    Location,
    MediaSubtypes,
    MediaType,
    SourceType,
)
from iMedia.domain.models.predicates import utc_text
from iMedia.domain.models.query import Query
from iMedia.domain.models.representation import ContentMode, RepresentationInfo
from iMedia.errors import ChangeRequestError, DatabaseError, InvalidArgumentError
from iMedia.infrastructure.db.pool import ConnectionPool
from iMedia.utils.hashutils import bytes_xxh3

from .base import BackgroundStore, Delivery
from .memory_store import new_local_identifier

_logger = logging.getLogger(__name__)

ASSET_COLUMNS = {
    "local_identifier": "a.local_identifier",
    "media_type": "a.media_type",
    "media_subtypes": "a.media_subtypes",
    "source_type": "a.source_type",
    "creation_date": "a.creation_date",
    "modification_date": "a.modification_date",
    "is_favorite": "a.is_favorite",
    "is_hidden": "a.is_hidden",
}

ALBUM_COLUMNS = {
    "local_identifier": "local_identifier",
    "localized_title": "localized_title",
    "album_type": "album_type",
    "album_subtype": "album_subtype",
    "creation_date": "creation_date",
}

_SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS assets (
        local_identifier TEXT PRIMARY KEY,
        media_type INTEGER NOT NULL,
        media_subtypes INTEGER NOT NULL DEFAULT 0,
        source_type INTEGER NOT NULL DEFAULT 1,
        creation_date TEXT,
        modification_date TEXT,
        latitude REAL,
        longitude REAL,
        altitude REAL,
        is_favorite INTEGER NOT NULL DEFAULT 0,
        is_hidden INTEGER NOT NULL DEFAULT 0,
        micro_thumbnail BLOB
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS resources (
        asset_id TEXT NOT NULL REFERENCES assets(local_identifier) ON DELETE CASCADE,
        resource_type TEXT NOT NULL,
        data BLOB NOT NULL,
        checksum TEXT NOT NULL,
        original_filename TEXT,
        PRIMARY KEY (asset_id, resource_type)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS albums (
        local_identifier TEXT PRIMARY KEY,
        localized_title TEXT NOT NULL,
        album_type INTEGER NOT NULL,
        album_subtype INTEGER NOT NULL,
        creation_date TEXT
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS album_members (
        album_id TEXT NOT NULL REFERENCES albums(local_identifier) ON DELETE CASCADE,
        asset_id TEXT NOT NULL REFERENCES assets(local_identifier) ON DELETE CASCADE,
        position INTEGER NOT NULL,
        PRIMARY KEY (album_id, asset_id)
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_assets_media_type ON assets(media_type)",
    "CREATE INDEX IF NOT EXISTS idx_assets_creation_date ON assets(creation_date)",
    "CREATE INDEX IF NOT EXISTS idx_album_members_album ON album_members(album_id, position)",
)


def _to_db_date(value: Optional[datetime]) -> Optional[str]:
    return utc_text(value) if value else None


def _from_db_date(value: Optional[str]) -> Optional[datetime]:
    return isoparse(value) if value else None


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _order_and_window(query: Query, columns, natural: str, params: List[Any]) -> str:
    """Return the ORDER BY and LIMIT tail for *query*, extending *params*.

    *natural* breaks ties so results follow insertion order.
    """
    unknown = [d.key for d in query.ordering if d.key not in columns]
    if unknown:
        raise InvalidArgumentError(f"Unsupported sort keys: {', '.join(unknown)}")
    order = [f"{columns[d.key]} {d.order.value}" for d in query.ordering]
    order.append(natural)
    tail = " ORDER BY " + ", ".join(order)
    if query.limit is not None:
        tail += " LIMIT ? OFFSET ?"
        params.extend([query.limit, query.offset])
    elif query.offset:
        tail += " LIMIT -1 OFFSET ?"
        params.append(query.offset)
    return tail


class SQLiteAssetStore(BackgroundStore):
    """Asset store persisted in a single SQLite database.

    Predicates are rendered to SQL through the column maps above; anything
    else a caller asks to filter or sort on is rejected before it reaches
    SQLite.  Each change request runs in one transaction.
    """

    def __init__(self, pool: ConnectionPool, max_workers: int = DEFAULT_STORE_WORKERS):
        super().__init__(max_workers=max_workers)
        self._pool = pool
        _logger.info("[STORE-INIT] SQLiteAssetStore created, db_path=%s", pool.db_path)
        self._init_schema()

    @classmethod
    def open(cls, db_path: Path, pool_size: int = 5, max_workers: int = DEFAULT_STORE_WORKERS) -> "SQLiteAssetStore":
        db_path = Path(db_path)
        db_path.parent.mkdir(parents=True, exist_ok=True)
        return cls(ConnectionPool(db_path, pool_size=pool_size), max_workers=max_workers)

    @contextmanager
    def _connection(self) -> Iterator[sqlite3.Connection]:
        try:
            with self._pool.connection() as conn:
                yield conn
        except sqlite3.Error as exc:
            raise DatabaseError(f"SQLite error on {self._pool.db_path}: {exc}") from exc

    def _init_schema(self) -> None:
        with self._connection() as conn:
            for statement in _SCHEMA:
                conn.execute(statement)

    # ------------------------------------------------------------------
    # Seeding
    # ------------------------------------------------------------------
    def insert_asset(self, handle: AssetHandle, thumbnail: Optional[bytes] = None) -> AssetHandle:
        with self._connection() as conn:
            self._insert_asset_row(conn, handle, thumbnail)
        return handle

    def insert_album(self, handle: AlbumHandle, members: Tuple[str, ...] = ()) -> AlbumHandle:
        with self._connection() as conn:
            self._insert_album_row(conn, handle)
            self._append_members(conn, handle.local_identifier, members)
        return handle

    def _insert_asset_row(self, conn: sqlite3.Connection, handle: AssetHandle, thumbnail: Optional[bytes]) -> None:
        location = handle.location
        if thumbnail is not None and len(thumbnail) > MICRO_THUMBNAIL_MAX_BYTES:
            _logger.warning(
                "[STORE-SAVE] Thumbnail for %s is %d bytes, not stored inline",
                handle.local_identifier, len(thumbnail),
            )
            thumbnail = None
        conn.execute(
            """
            INSERT INTO assets (
                local_identifier, media_type, media_subtypes, source_type,
                creation_date, modification_date, latitude, longitude, altitude,
                is_favorite, is_hidden, micro_thumbnail
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                handle.local_identifier,
                int(handle.media_type),
                int(handle.media_subtypes),
                int(handle.source_type),
                _to_db_date(handle.creation_date),
                _to_db_date(handle.modification_date),
                location.latitude if location else None,
                location.longitude if location else None,
                location.altitude if location else None,
                1 if handle.is_favorite else 0,
                1 if handle.is_hidden else 0,
                thumbnail,
            ),
        )

    def _insert_album_row(self, conn: sqlite3.Connection, handle: AlbumHandle) -> None:
        conn.execute(
            "INSERT INTO albums (local_identifier, localized_title, album_type, album_subtype, creation_date)"
            " VALUES (?, ?, ?, ?, ?)",
            (
                handle.local_identifier,
                handle.localized_title,
                int(handle.album_type),
                int(handle.album_subtype),
                _to_db_date(handle.creation_date),
            ),
        )

    def _append_members(self, conn: sqlite3.Connection, album_id: str, asset_ids) -> None:
        row = conn.execute(
            "SELECT COALESCE(MAX(position), -1) FROM album_members WHERE album_id = ?", (album_id,)
        ).fetchone()
        position = row[0] + 1
        for asset_id in asset_ids:
            cursor = conn.execute(
                "INSERT OR IGNORE INTO album_members (album_id, asset_id, position) VALUES (?, ?, ?)",
                (album_id, asset_id, position),
            )
            if cursor.rowcount:
                position += 1

    # ------------------------------------------------------------------
    # Fetching
    # ------------------------------------------------------------------
    def _build_sql(self, query: Query) -> Tuple[str, List[Any]]:
        where_sql, params = query.predicate.to_sql(ASSET_COLUMNS)
        if query.album_identifier is not None:
            sql = (
                "SELECT a.* FROM assets a"
                " JOIN album_members m ON m.asset_id = a.local_identifier"
                f" WHERE m.album_id = ? AND ({where_sql})"
            )
            params = [query.album_identifier] + params
            natural = "m.position"
        else:
            sql = f"SELECT a.* FROM assets a WHERE {where_sql}"
            natural = "a.rowid"
        sql += _order_and_window(query, ASSET_COLUMNS, natural, params)
        return sql, params

    def fetch(self, query: Query) -> List[AssetHandle]:
        sql, params = self._build_sql(query)
        with self._connection() as conn:
            rows = conn.execute(sql, params).fetchall()
        _logger.debug("[STORE-FETCH] %d assets for album=%s", len(rows), query.album_identifier)
        return [self._map_row_to_asset(row) for row in rows]

    def fetch_by_identifier(self, local_identifier: str) -> Optional[AssetHandle]:
        with self._connection() as conn:
            row = conn.execute("SELECT * FROM assets WHERE local_identifier = ?", (local_identifier,)).fetchone()
        return self._map_row_to_asset(row) if row else None

    def fetch_albums(self, query: Query) -> List[AlbumHandle]:
        where_sql, params = query.predicate.to_sql(ALBUM_COLUMNS)
        sql = f"SELECT * FROM albums WHERE {where_sql}"
        sql += _order_and_window(query, ALBUM_COLUMNS, "rowid", params)
        with self._connection() as conn:
            rows = conn.execute(sql, params).fetchall()
        return [self._map_row_to_album(row) for row in rows]

    def fetch_album_by_identifier(self, local_identifier: str) -> Optional[AlbumHandle]:
        with self._connection() as conn:
            row = conn.execute("SELECT * FROM albums WHERE local_identifier = ?", (local_identifier,)).fetchone()
        return self._map_row_to_album(row) if row else None

    def count(self, query: Query) -> int:
        where_sql, params = query.predicate.to_sql(ASSET_COLUMNS)
        with self._connection() as conn:
            return conn.execute(f"SELECT COUNT(*) FROM assets a WHERE {where_sql}", params).fetchone()[0]

    def _map_row_to_asset(self, row: sqlite3.Row) -> AssetHandle:
        location = None
        if row["latitude"] is not None and row["longitude"] is not None:
            location = Location(row["latitude"], row["longitude"], row["altitude"])
        return AssetHandle(
            local_identifier=row["local_identifier"],
            media_type=MediaType(row["media_type"]),
            media_subtypes=MediaSubtypes(row["media_subtypes"]),
            source_type=SourceType(row["source_type"]),
            creation_date=_from_db_date(row["creation_date"]),
            modification_date=_from_db_date(row["modification_date"]),
            location=location,
            is_favorite=bool(row["is_favorite"]),
            is_hidden=bool(row["is_hidden"]),
        )

    def _map_row_to_album(self, row: sqlite3.Row) -> AlbumHandle:
        return AlbumHandle(
            local_identifier=row["local_identifier"],
            localized_title=row["localized_title"],
            album_type=AlbumType(row["album_type"]),
            album_subtype=AlbumSubtype(row["album_subtype"]),
            creation_date=_from_db_date(row["creation_date"]),
        )

    # ------------------------------------------------------------------
    # Change requests
    # ------------------------------------------------------------------
    def _apply_favorite(self, request: FavoriteChangeRequest) -> AssetHandle:
        with self._connection() as conn:
            cursor = conn.execute(
                "UPDATE assets SET is_favorite = ?, modification_date = ? WHERE local_identifier = ?",
                (1 if request.is_favorite else 0, _to_db_date(_now()), request.local_identifier),
            )
            if cursor.rowcount == 0:
                raise ChangeRequestError(f"Asset {request.local_identifier} no longer exists")
            row = conn.execute(
                "SELECT * FROM assets WHERE local_identifier = ?", (request.local_identifier,)
            ).fetchone()
        _logger.info(
            "[STORE-SAVE] %s is_favorite=%s (db=%s)",
            request.local_identifier, request.is_favorite, self._pool.db_path,
        )
        return self._map_row_to_asset(row)

    def _apply_creation(self, request: AssetCreationRequest) -> AssetHandle:
        try:
            payloads = [(resource, resource.read_bytes()) for resource in request.resources]
        except OSError as exc:
            raise ChangeRequestError(f"Could not read resource: {exc}") from exc
        now = _now()
        handle = AssetHandle(
            local_identifier=new_local_identifier(),
            media_type=request.media_type,
            media_subtypes=request.media_subtypes,
            creation_date=request.creation_date or now,
            modification_date=now,
            location=request.location,
        )
        with self._connection() as conn:
            self._insert_asset_row(conn, handle, request.thumbnail)
            for resource, data in payloads:
                filename = resource.original_filename
                if filename is None and resource.file_path is not None:
                    filename = Path(resource.file_path).name
                conn.execute(
                    "INSERT INTO resources (asset_id, resource_type, data, checksum, original_filename)"
                    " VALUES (?, ?, ?, ?, ?)",
                    (handle.local_identifier, resource.resource_type.value, data, bytes_xxh3(data), filename),
                )
        for resource, _ in payloads:
            if resource.should_move_file:
                Path(resource.file_path).unlink(missing_ok=True)
        _logger.info("[STORE-SAVE] Created %s (%s)", handle.local_identifier, handle.media_type.name)
        return handle

    def _apply_deletion(self, request: AssetDeletionRequest) -> Tuple[str, ...]:
        ids = request.local_identifiers
        marks = ", ".join("?" for _ in ids)
        with self._connection() as conn:
            found = conn.execute(
                f"SELECT COUNT(*) FROM assets WHERE local_identifier IN ({marks})", ids
            ).fetchone()[0]
            if found != len(ids):
                raise ChangeRequestError("Some of the assets to delete no longer exist")
            conn.execute(f"DELETE FROM assets WHERE local_identifier IN ({marks})", ids)
        return ids

    def _apply_album_creation(self, request: AlbumCreationRequest) -> AlbumHandle:
        handle = AlbumHandle(
            local_identifier=new_local_identifier(),
            localized_title=request.title,
            album_type=AlbumType.USER,
            album_subtype=AlbumSubtype.REGULAR,
            creation_date=_now(),
        )
        with self._connection() as conn:
            self._insert_album_row(conn, handle)
        return handle

    def _apply_membership(self, request: AlbumMembershipChangeRequest) -> AlbumHandle:
        with self._connection() as conn:
            row = conn.execute(
                "SELECT * FROM albums WHERE local_identifier = ?", (request.album_identifier,)
            ).fetchone()
            if row is None:
                raise ChangeRequestError(f"Album {request.album_identifier} no longer exists")
            album = self._map_row_to_album(row)
            if album.album_type is not AlbumType.USER:
                raise ChangeRequestError(f"Album {album.localized_title!r} is managed by the library")
            for asset_id in request.added:
                exists = conn.execute(
                    "SELECT 1 FROM assets WHERE local_identifier = ?", (asset_id,)
                ).fetchone()
                if exists is None:
                    raise ChangeRequestError(f"Asset {asset_id} no longer exists")
            self._append_members(conn, album.local_identifier, request.added)
            for asset_id in request.removed:
                conn.execute(
                    "DELETE FROM album_members WHERE album_id = ? AND asset_id = ?",
                    (album.local_identifier, asset_id),
                )
        return album

    # ------------------------------------------------------------------
    # Representations
    # ------------------------------------------------------------------
    def _representations(
        self, handle: AssetHandle, target_size: Tuple[int, int], content_mode: ContentMode
    ) -> Iterator[Delivery]:
        with self._connection() as conn:
            row = conn.execute(
                "SELECT micro_thumbnail FROM assets WHERE local_identifier = ?", (handle.local_identifier,)
            ).fetchone()
            if row is None:
                raise ChangeRequestError(f"Asset {handle.local_identifier} no longer exists")
            primary = conn.execute(
                "SELECT data FROM resources WHERE asset_id = ? AND resource_type IN (?, ?)"
                " ORDER BY resource_type LIMIT 1",
                (handle.local_identifier, ResourceType.PHOTO.value, ResourceType.VIDEO.value),
            ).fetchone()
        thumbnail = row["micro_thumbnail"]
        full = bytes(primary["data"]) if primary else None
        if thumbnail is not None:
            yield bytes(thumbnail), RepresentationInfo(is_degraded=True, is_final=full is None)
        if full is not None:
            yield full, RepresentationInfo()
        elif thumbnail is None:
            yield None, RepresentationInfo()

    def shutdown(self) -> None:
        super().shutdown()
        self._pool.close_all()
