"""
Archive persistence for Marketwire.
"""
import json
import logging
import sqlite3
import threading
from contextlib import closing
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union

from marketwire.core.article import Article
from marketwire.core.errors import StorageError, StorageQuotaExceeded

logger = logging.getLogger(__name__)

# The version token invalidates archives written with an older record layout
ARCHIVE_KEY = "market_news_archive_v2"
RETENTION = timedelta(days=7)
OVERFLOW_LIMIT = 200


class KeyValueStorage:
    """
    Minimal string key-value storage used by the ArchiveStore.
    """
    def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set(self, key: str, value: str) -> None:
        raise NotImplementedError

    def delete(self, key: str) -> None:
        raise NotImplementedError


class MemoryStorage(KeyValueStorage):
    """
    In-process storage with an optional byte quota.
    """
    def __init__(self, max_bytes: Optional[int] = None):
        self.max_bytes = max_bytes
        self._data: Dict[str, str] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        size = len(value.encode('utf-8'))
        if self.max_bytes is not None and size > self.max_bytes:
            raise StorageQuotaExceeded(f"{size} bytes exceeds quota of {self.max_bytes}")
        with self._lock:
            self._data[key] = value

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)


class SQLiteStorage(KeyValueStorage):
    """
    Key-value storage in a single SQLite table.
    """
    def __init__(self, path: Union[str, Path], max_bytes: Optional[int] = None):
        self.path = Path(path)
        self.max_bytes = max_bytes
        self._init_db()

    def _init_db(self):
        """Initialize the SQLite database."""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with closing(sqlite3.connect(self.path)) as conn, conn:
                conn.execute("""
                    CREATE TABLE IF NOT EXISTS kv (
                        key TEXT PRIMARY KEY,
                        value TEXT,
                        updated_at DATETIME DEFAULT CURRENT_TIMESTAMP
                    )
                """)
        except (OSError, sqlite3.Error) as e:
            raise StorageError(f"Cannot open archive database {self.path}: {e}") from e

    def get(self, key: str) -> Optional[str]:
        try:
            with closing(sqlite3.connect(self.path)) as conn:
                row = conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
        except sqlite3.Error as e:
            raise StorageError(f"Cannot read {key} from {self.path}: {e}") from e
        return row[0] if row else None

    def set(self, key: str, value: str) -> None:
        size = len(value.encode('utf-8'))
        if self.max_bytes is not None and size > self.max_bytes:
            raise StorageQuotaExceeded(f"{size} bytes exceeds quota of {self.max_bytes}")
        try:
            with closing(sqlite3.connect(self.path)) as conn, conn:
                conn.execute(
                    """
                    INSERT OR REPLACE INTO kv (key, value, updated_at)
                    VALUES (?, ?, CURRENT_TIMESTAMP)
                    """,
                    (key, value)
                )
        except sqlite3.Error as e:
            # SQLITE_FULL surfaces as "database or disk is full"
            if 'full' in str(e).lower():
                raise StorageQuotaExceeded(f"Archive database {self.path} is full: {e}") from e
            raise StorageError(f"Cannot write {key} to {self.path}: {e}") from e

    def delete(self, key: str) -> None:
        try:
            with closing(sqlite3.connect(self.path)) as conn, conn:
                conn.execute("DELETE FROM kv WHERE key = ?", (key,))
        except sqlite3.Error as e:
            raise StorageError(f"Cannot delete {key} from {self.path}: {e}") from e


class SaveStatus(str, Enum):
    SAVED = "saved"
    TRUNCATED = "truncated"
    FAILED = "failed"
    SKIPPED_STALE = "skipped_stale"


@dataclass(frozen=True)
class SaveOutcome:
    status: SaveStatus
    stored: int
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status in (SaveStatus.SAVED, SaveStatus.TRUNCATED)


def _epoch_millis(moment: datetime) -> int:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return int(moment.timestamp() * 1000)


def newest_first(articles: Iterable[Article]) -> List[Article]:
    return sorted(articles, key=lambda a: a.published_at, reverse=True)


class ArchiveStore:
    """
    Rolling archive of articles kept under one storage key.

    Reads never fail (a corrupt archive reads as empty) and writes degrade
    to the newest overflow_limit articles when the full list does not fit.
    """
    def __init__(
        self,
        storage: KeyValueStorage,
        key: str = ARCHIVE_KEY,
        retention: timedelta = RETENTION,
        overflow_limit: int = OVERFLOW_LIMIT,
    ):
        """
        Initialize the ArchiveStore.

        Args:
            storage: Backend holding the serialized archive
            key: Storage key, including a schema version token
            retention: Articles older than this are pruned on merge
            overflow_limit: Number of articles kept when a write overflows
        """
        self.storage = storage
        self.key = key
        self.retention = retention
        self.overflow_limit = overflow_limit

    def load(self) -> List[Article]:
        """
        Load the archived articles.

        Returns:
            The archived articles, or an empty list if the archive is
            missing, unreadable or corrupt
        """
        try:
            raw = self.storage.get(self.key)
        except StorageError as e:
            logger.error(f"Failed to read news archive: {e}")
            return []
        except Exception:
            logger.exception("Storage backend failed reading news archive")
            return []

        if not raw:
            return []

        try:
            records = json.loads(raw)
        except (TypeError, ValueError) as e:
            logger.error(f"Failed to load news archive: {e}")
            return []

        if not isinstance(records, list):
            logger.error(f"News archive is a {type(records).__name__}, expected a list")
            return []

        articles = []
        skipped = 0
        for record in records:
            try:
                articles.append(Article.from_dict(record))
            except (KeyError, TypeError, ValueError, OverflowError):
                skipped += 1
        if skipped:
            logger.warning(f"Skipped {skipped} malformed archive records")

        return articles

    def merge(self, archived: Iterable[Article], fresh: Iterable[Article], now: Optional[datetime] = None) -> List[Article]:
        """
        Merge freshly fetched articles into the archived ones.

        Fresh copies replace archived copies with the same id, archived
        articles absent from the fetch are kept, then everything outside
        the retention window is dropped.

        Args:
            archived: Articles loaded from the archive
            fresh: Articles from the current fetch
            now: Reference time for the retention cutoff

        Returns:
            Articles sorted newest first
        """
        by_id: Dict[str, Article] = {}
        for article in archived:
            by_id[article.id] = article
        for article in fresh:
            by_id[article.id] = article

        now = now or datetime.now(timezone.utc)
        cutoff = _epoch_millis(now) - int(self.retention.total_seconds() * 1000)
        kept = [a for a in by_id.values() if a.published_at > cutoff]

        pruned = len(by_id) - len(kept)
        if pruned:
            logger.debug(f"Pruned {pruned} articles older than {self.retention.days} days")

        return newest_first(kept)

    def save(self, articles: List[Article]) -> SaveOutcome:
        """
        Persist the articles as a single blob.

        On a quota failure the write is retried once with the newest
        overflow_limit articles. The caller's list is never modified.

        Returns:
            What was stored; never raises
        """
        try:
            self._write(articles)
            return SaveOutcome(SaveStatus.SAVED, stored=len(articles))
        except StorageQuotaExceeded as e:
            if len(articles) <= self.overflow_limit:
                logger.error(f"News archive does not fit in storage: {e}")
                return SaveOutcome(SaveStatus.FAILED, stored=0, error=str(e))
            logger.warning(
                f"News archive of {len(articles)} articles exceeds storage quota, "
                f"keeping newest {self.overflow_limit}"
            )
        except (StorageError, TypeError, ValueError) as e:
            logger.error(f"Failed to save news archive: {e}")
            return SaveOutcome(SaveStatus.FAILED, stored=0, error=str(e))
        except Exception as e:
            logger.exception("Storage backend failed saving news archive")
            return SaveOutcome(SaveStatus.FAILED, stored=0, error=str(e))

        trimmed = newest_first(articles)[:self.overflow_limit]
        try:
            self._write(trimmed)
        except (StorageError, TypeError, ValueError) as e:
            logger.error(f"Failed to save truncated news archive: {e}")
            return SaveOutcome(SaveStatus.FAILED, stored=0, error=str(e))
        except Exception as e:
            logger.exception("Storage backend failed saving truncated news archive")
            return SaveOutcome(SaveStatus.FAILED, stored=0, error=str(e))
        return SaveOutcome(SaveStatus.TRUNCATED, stored=len(trimmed))

    def _write(self, articles: List[Article]) -> None:
        self.storage.set(self.key, json.dumps([a.to_dict() for a in articles]))

    def clear(self) -> None:
        self.storage.delete(self.key)
