import asyncio
import itertools
import json
import os
import sqlite3
import uuid
from abc import ABC, abstractmethod
from contextlib import closing, contextmanager
from datetime import datetime, timezone
from typing import Dict, Iterator, List, Optional, Tuple

from ..config import Settings
from ..errors import ScriptNotFound
from ..models import GenerateScriptRequest, StoredScript, VideoScriptContent


class ScriptStore(ABC):
    """Keeps generated scripts by id. Records are never updated or deleted."""

    @abstractmethod
    async def create(
        self, request: GenerateScriptRequest, artifact: Optional[VideoScriptContent]
    ) -> StoredScript:
        """Assign a fresh id and timestamp, store and return the record."""

    @abstractmethod
    async def get(self, script_id: str) -> StoredScript:
        """Return the record or raise ScriptNotFound."""

    @abstractmethod
    async def list_recent(self, limit: int = 10) -> List[StoredScript]:
        """Newest first, at most ``limit`` records."""

    @abstractmethod
    async def count(self) -> int:
        ...


def _new_record(
    request: GenerateScriptRequest, artifact: Optional[VideoScriptContent]
) -> StoredScript:
    return StoredScript(
        id=str(uuid.uuid4()),
        topic=request.topic,
        video_length=request.video_length,
        content_style=request.content_style,
        target_audience=request.target_audience,
        generated_content=artifact.model_copy(deep=True) if artifact is not None else None,
        created_at=datetime.now(timezone.utc),
    )


class MemoryScriptStore(ScriptStore):
    """Process-lifetime store. Callers always get copies."""

    def __init__(self):
        # id -> (insertion sequence, record); the sequence breaks timestamp ties
        self._scripts: Dict[str, Tuple[int, StoredScript]] = {}
        self._sequence = itertools.count()

    async def create(self, request, artifact):
        record = _new_record(request, artifact)
        self._scripts[record.id] = (next(self._sequence), record)
        return record.model_copy(deep=True)

    async def get(self, script_id):
        entry = self._scripts.get(script_id)
        if entry is None:
            raise ScriptNotFound(script_id)
        return entry[1].model_copy(deep=True)

    async def list_recent(self, limit=10):
        if limit < 1:
            return []
        ordered = sorted(
            self._scripts.values(),
            key=lambda entry: (entry[1].created_at, entry[0]),
            reverse=True,
        )
        return [record.model_copy(deep=True) for _, record in ordered[:limit]]

    async def count(self):
        return len(self._scripts)


class SqliteScriptStore(ScriptStore):
    def __init__(self, db_path: str):
        directory = os.path.dirname(os.path.abspath(db_path))
        os.makedirs(directory, exist_ok=True)
        self.db_path = db_path
        self._create_tables()

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        with closing(sqlite3.connect(self.db_path)) as conn:
            conn.row_factory = sqlite3.Row
            with conn:
                yield conn

    def _create_tables(self):
        """Create necessary tables if they don't exist"""
        with self._connect() as conn:
            conn.execute('''
                CREATE TABLE IF NOT EXISTS video_scripts (
                    id TEXT PRIMARY KEY,
                    topic TEXT NOT NULL,
                    video_length TEXT NOT NULL,
                    content_style TEXT NOT NULL,
                    target_audience TEXT,
                    generated_content TEXT,
                    created_at TEXT NOT NULL
                )
            ''')

    @staticmethod
    def _row_to_script(row: sqlite3.Row) -> StoredScript:
        content = row["generated_content"]
        return StoredScript(
            id=row["id"],
            topic=row["topic"],
            video_length=row["video_length"],
            content_style=row["content_style"],
            target_audience=row["target_audience"],
            generated_content=json.loads(content) if content else None,
            created_at=datetime.fromisoformat(row["created_at"]),
        )

    async def create(self, request, artifact):
        record = _new_record(request, artifact)
        content = (
            json.dumps(artifact.model_dump(by_alias=True)) if artifact is not None else None
        )

        def _sync_store():
            with self._connect() as conn:
                conn.execute(
                    'INSERT INTO video_scripts (id, topic, video_length, content_style, '
                    'target_audience, generated_content, created_at) VALUES (?, ?, ?, ?, ?, ?, ?)',
                    (
                        record.id,
                        record.topic,
                        record.video_length,
                        record.content_style,
                        record.target_audience,
                        content,
                        record.created_at.isoformat(timespec="microseconds"),
                    ),
                )

        await asyncio.to_thread(_sync_store)
        return record

    async def get(self, script_id):
        def _sync_get():
            with self._connect() as conn:
                return conn.execute(
                    'SELECT * FROM video_scripts WHERE id = ?', (script_id,)
                ).fetchone()

        row = await asyncio.to_thread(_sync_get)
        if row is None:
            raise ScriptNotFound(script_id)
        return self._row_to_script(row)

    async def list_recent(self, limit=10):
        if limit < 1:
            return []

        def _sync_list():
            with self._connect() as conn:
                return conn.execute(
                    'SELECT * FROM video_scripts ORDER BY created_at DESC, rowid DESC LIMIT ?',
                    (limit,),
                ).fetchall()

        rows = await asyncio.to_thread(_sync_list)
        return [self._row_to_script(row) for row in rows]

    async def count(self):
        def _sync_count():
            with self._connect() as conn:
                return conn.execute('SELECT COUNT(*) FROM video_scripts').fetchone()[0]

        return await asyncio.to_thread(_sync_count)


def build_store(config: Settings) -> ScriptStore:
    if config.SCRIPT_DB_PATH:
        return SqliteScriptStore(config.SCRIPT_DB_PATH)
    return MemoryScriptStore()
