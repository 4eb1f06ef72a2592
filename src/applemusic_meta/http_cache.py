from __future__ import annotations

import sqlite3
import time
from dataclasses import dataclass
from pathlib import Path

import httpx


@dataclass
class CacheStats:
    """Summary of cache contents."""

    entries: int
    expired: int
    total_bytes: int


class ResponseCache:
    """
    Short-lived HTTP response cache keyed by URL.

    Bodies and headers live in a single SQLite file; entries expire after
    `ttl_seconds`. Only successful and 404 responses are stored, so a transient
    server error is never replayed.
    """

    CACHEABLE_STATUS = frozenset({200, 203, 404})

    def __init__(self, cache_dir: Path, ttl_seconds: int = 3600):
        self.cache_dir = cache_dir
        self.ttl_seconds = ttl_seconds
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        self.db_path = self.cache_dir / "responses.sqlite"
        self._init_db()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_db(self) -> None:
        conn = self._connect()
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS responses (
                url TEXT PRIMARY KEY,
                status_code INTEGER NOT NULL,
                content_type TEXT,
                body BLOB NOT NULL,
                fetched_at REAL NOT NULL,
                expires_at REAL NOT NULL
            )
            """
        )
        conn.execute("CREATE INDEX IF NOT EXISTS idx_responses_expires ON responses(expires_at)")
        conn.commit()
        conn.close()

    def get(self, url: str) -> httpx.Response | None:
        """Return the cached response for `url`, or None if missing or expired."""
        conn = self._connect()
        row = conn.execute(
            "SELECT status_code, content_type, body FROM responses WHERE url = ? AND expires_at > ?",
            (url, time.time()),
        ).fetchone()
        conn.close()

        if row is None:
            return None

        headers = {"content-type": row["content_type"]} if row["content_type"] else {}
        return httpx.Response(
            status_code=row["status_code"],
            headers=headers,
            content=row["body"],
            request=httpx.Request("GET", url),
        )

    def put(self, url: str, response: httpx.Response) -> bool:
        """
        Store `response` under `url`.

        Returns:
            True if the response was cached, False if its status is not cacheable
        """
        if response.status_code not in self.CACHEABLE_STATUS:
            return False

        fetched_at = time.time()
        conn = self._connect()
        conn.execute(
            """
            INSERT OR REPLACE INTO responses
            (url, status_code, content_type, body, fetched_at, expires_at)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                url,
                response.status_code,
                response.headers.get("content-type"),
                response.content,
                fetched_at,
                fetched_at + self.ttl_seconds,
            ),
        )
        conn.commit()
        conn.close()
        return True

    def purge_expired(self) -> int:
        """Remove expired entries and return how many were removed."""
        conn = self._connect()
        cursor = conn.execute("DELETE FROM responses WHERE expires_at <= ?", (time.time(),))
        removed = cursor.rowcount
        conn.commit()
        conn.close()
        return removed

    def clear(self) -> int:
        conn = self._connect()
        cursor = conn.execute("DELETE FROM responses")
        removed = cursor.rowcount
        conn.commit()
        conn.close()
        return removed

    def stats(self) -> CacheStats:
        conn = self._connect()
        row = conn.execute(
            """
            SELECT COUNT(*) AS entries,
                   COALESCE(SUM(expires_at <= ?), 0) AS expired,
                   COALESCE(SUM(LENGTH(body)), 0) AS total_bytes
            FROM responses
            """,
            (time.time(),),
        ).fetchone()
        conn.close()
        return CacheStats(
            entries=row["entries"], expired=row["expired"], total_bytes=row["total_bytes"]
        )


## Tests


def _response(url: str, status_code: int = 200, content: bytes = b"<html></html>") -> httpx.Response:
    return httpx.Response(
        status_code=status_code,
        content=content,
        headers={"content-type": "text/html; charset=utf-8"},
        request=httpx.Request("GET", url),
    )


def test_response_cache_roundtrip(tmp_path):
    cache = ResponseCache(tmp_path / "cache")
    url = "https://music.apple.com/us/album/x/1"

    assert cache.put(url, _response(url, content=b"album page"))

    cached = cache.get(url)
    assert cached is not None
    assert cached.status_code == 200
    assert cached.text == "album page"
    assert cached.headers["content-type"].startswith("text/html")


def test_response_cache_skips_server_errors(tmp_path):
    cache = ResponseCache(tmp_path / "cache")
    url = "https://music.apple.com/us/search?term=x"

    assert not cache.put(url, _response(url, status_code=503))
    assert cache.get(url) is None


def test_response_cache_ttl(tmp_path):
    from freezegun import freeze_time

    with freeze_time("2024-05-01 12:00:00") as frozen:
        cache = ResponseCache(tmp_path / "cache", ttl_seconds=60)
        url = "https://music.apple.com/us/artist/y/2"
        cache.put(url, _response(url))
        assert cache.get(url) is not None

        frozen.tick(61)
        assert cache.get(url) is None
        assert cache.stats().expired == 1
        assert cache.purge_expired() == 1
        assert cache.stats().entries == 0


def test_response_cache_clear(tmp_path):
    cache = ResponseCache(tmp_path / "cache")
    urls = [f"https://music.apple.com/us/album/x/{i}" for i in range(3)]
    for url in urls:
        cache.put(url, _response(url))

    assert cache.stats().entries == 3
    assert cache.clear() == 3
    assert cache.get(urls[1]) is None
