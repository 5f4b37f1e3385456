"""
Persistence Gateway
Generic insert/select/upsert over a fixed set of SQLite collections.

List-valued columns are stored as JSON text and decoded on read.
`created_at` is assigned here, never by callers.
"""

import json
import logging
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable, Optional, Union

from mealfit.errors import PersistenceError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Collection:
    """A table and the columns callers may write"""
    name: str
    columns: dict[str, str]
    json_columns: frozenset = field(default_factory=frozenset)
    natural_key: Optional[str] = None

    def ddl(self) -> str:
        if self.natural_key:
            # not the PRIMARY KEY: an INTEGER one would alias rowid and
            # lose insertion order
            key_type = self.columns[self.natural_key]
            lines = [f"{self.natural_key} {key_type} NOT NULL UNIQUE"]
            lines += [
                f"{name} {sql_type}"
                for name, sql_type in self.columns.items()
                if name != self.natural_key
            ]
        else:
            lines = ["id INTEGER PRIMARY KEY AUTOINCREMENT"]
            lines += [f"{name} {sql_type}" for name, sql_type in self.columns.items()]
        lines.append("created_at TEXT NOT NULL")
        return f"CREATE TABLE IF NOT EXISTS {self.name} (\n    " + ",\n    ".join(lines) + "\n)"

    @property
    def readable_columns(self) -> set[str]:
        return set(self.columns) | {"id", "created_at"}


COLLECTIONS = {
    c.name: c for c in [
        Collection(
            name="user_preferences",
            columns={
                "ingredients_to_include": "TEXT NOT NULL",
                "ingredients_to_exclude": "TEXT NOT NULL",
                "dietary_preference": "TEXT NOT NULL",
                "body_part_trained": "TEXT NOT NULL",
                "meal_preference": "TEXT NOT NULL",
            },
            json_columns=frozenset({"ingredients_to_include", "ingredients_to_exclude"}),
        ),
        Collection(
            name="meal_data",
            columns={
                "id": "INTEGER",
                "title": "TEXT",
                "image": "TEXT",
                "likes": "INTEGER",
            },
            natural_key="id",
        ),
        Collection(
            name="exercise_data",
            columns={
                "id": "TEXT",
                "body_part": "TEXT",
                "equipment": "TEXT",
                "gif_url": "TEXT",
                "name": "TEXT",
                "target": "TEXT",
                "secondary_muscles": "TEXT",
                "instructions": "TEXT",
            },
            json_columns=frozenset({"secondary_muscles", "instructions"}),
            natural_key="id",
        ),
        Collection(
            name="user_meal",
            columns={"preference_id": "INTEGER", "meal_ids": "TEXT NOT NULL"},
            json_columns=frozenset({"meal_ids"}),
        ),
        Collection(
            name="user_exercise",
            columns={"preference_id": "INTEGER", "exercise_ids": "TEXT NOT NULL"},
            json_columns=frozenset({"exercise_ids"}),
        ),
        Collection(
            name="nutrition_data",
            columns={
                "food_name": "TEXT",
                "serving_qty": "REAL",
                "serving_unit": "TEXT",
                "calories": "REAL",
                "total_fat": "REAL",
                "saturated_fat": "REAL",
                "cholesterol": "REAL",
                "sodium": "REAL",
                "total_carbohydrate": "REAL",
                "dietary_fiber": "REAL",
                "sugars": "REAL",
                "protein": "REAL",
                "potassium": "REAL",
                "image_url": "TEXT",
            },
        ),
    ]
}


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class Store:
    """SQLite-backed gateway; opens one connection per operation"""

    def __init__(self, db_path: Union[str, Path]):
        self.db_path = Path(db_path)

    @contextmanager
    def _connect(self):
        try:
            conn = sqlite3.connect(self.db_path)
        except sqlite3.Error as e:
            logger.error("Cannot open datastore %s: %s", self.db_path, e)
            raise PersistenceError(str(e)) from e
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            logger.error("Datastore error on %s: %s", self.db_path, e)
            raise PersistenceError(str(e)) from e
        finally:
            conn.close()

    def init_schema(self) -> None:
        """Create every collection table if missing"""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        with self._connect() as conn:
            for collection in COLLECTIONS.values():
                conn.execute(collection.ddl())

    def ping(self) -> bool:
        try:
            with self._connect() as conn:
                conn.execute("SELECT 1")
            return True
        except PersistenceError:
            return False

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _collection(name: str) -> Collection:
        try:
            return COLLECTIONS[name]
        except KeyError:
            raise PersistenceError(f"Unknown collection: {name}") from None

    @staticmethod
    def _encode(collection: Collection, record: dict) -> dict:
        unknown = set(record) - set(collection.columns)
        if unknown:
            raise PersistenceError(
                f"Unknown columns for {collection.name}: {', '.join(sorted(unknown))}"
            )
        row = {}
        for name, value in record.items():
            if name in collection.json_columns and value is not None:
                value = json.dumps(value)
            row[name] = value
        row["created_at"] = _now()
        return row

    @staticmethod
    def _decode(collection: Collection, row: sqlite3.Row) -> dict:
        record = dict(row)
        for name in collection.json_columns:
            if record.get(name) is not None:
                record[name] = json.loads(record[name])
        return record

    # ------------------------------------------------------------------
    # operations
    # ------------------------------------------------------------------

    def insert(self, collection_name: str, records: Iterable[dict]) -> list[dict]:
        """Insert rows and return them as stored"""
        collection = self._collection(collection_name)
        rows = [self._encode(collection, record) for record in records]
        inserted = []
        with self._connect() as conn:
            for row in rows:
                names = list(row)
                cursor = conn.execute(
                    f"INSERT INTO {collection.name} ({', '.join(names)}) "
                    f"VALUES ({', '.join('?' for _ in names)})",
                    [row[name] for name in names],
                )
                stored = conn.execute(
                    f"SELECT * FROM {collection.name} WHERE rowid = ?",
                    (cursor.lastrowid,),
                ).fetchone()
                inserted.append(self._decode(collection, stored))
        return inserted

    def select(
        self,
        collection_name: str,
        filters: Optional[dict[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = True,
        limit: Optional[int] = None
    ) -> list[dict]:
        """Equality-filtered, ordered read; ties fall back to insertion order"""
        collection = self._collection(collection_name)
        filters = filters or {}

        for name in list(filters) + ([order_by] if order_by else []):
            if name not in collection.readable_columns:
                raise PersistenceError(f"Unknown column for {collection.name}: {name}")

        sql = f"SELECT * FROM {collection.name}"
        params: list[Any] = []
        if filters:
            sql += " WHERE " + " AND ".join(f"{name} = ?" for name in filters)
            params.extend(filters.values())

        direction = "DESC" if descending else "ASC"
        if order_by:
            sql += f" ORDER BY {order_by} {direction}, rowid {direction}"
        if limit is not None:
            sql += " LIMIT ?"
            params.append(limit)

        with self._connect() as conn:
            rows = conn.execute(sql, params).fetchall()
        return [self._decode(collection, row) for row in rows]

    def upsert(
        self,
        collection_name: str,
        records: Iterable[dict],
        conflict_key: str = "id"
    ) -> None:
        """Insert or overwrite rows sharing `conflict_key`"""
        collection = self._collection(collection_name)
        if collection.natural_key != conflict_key:
            raise PersistenceError(
                f"{collection.name} cannot be upserted on {conflict_key}"
            )
        rows = [self._encode(collection, record) for record in records]
        with self._connect() as conn:
            for row in rows:
                names = list(row)
                updates = ", ".join(
                    f"{name} = excluded.{name}" for name in names if name != conflict_key
                )
                conn.execute(
                    f"INSERT INTO {collection.name} ({', '.join(names)}) "
                    f"VALUES ({', '.join('?' for _ in names)}) "
                    f"ON CONFLICT({conflict_key}) DO UPDATE SET {updates}",
                    [row[name] for name in names],
                )
