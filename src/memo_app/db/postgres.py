"""PostgreSQL memo repository for Memo App."""

from __future__ import annotations

from collections.abc import Iterable
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Generator

import psycopg
import structlog
from psycopg import sql
from sqlalchemy.engine import URL

from memo_app.config import LakebaseSettings, get_settings
from memo_app.core.models import Memo, Priority

logger = structlog.get_logger()

_COLUMNS = "id, title, content, priority, created_at, updated_at"

_PRIORITY_RANK_SQL = """
    CASE priority
        WHEN 'HIGH' THEN 3
        WHEN 'MEDIUM' THEN 2
        WHEN 'LOW' THEN 1
        WHEN 'NONE' THEN 0
    END
"""

# Connection of the transaction() block running in the current context.
_active_connection: ContextVar[psycopg.Connection | None] = ContextVar(
    "memo_app_active_connection", default=None
)


class LakebaseConnectionFactory:
    """Creates connections, authenticating with OAuth unless a password is set."""

    def __init__(self, settings: LakebaseSettings | None = None):
        self._settings = settings or get_settings().lakebase
        self._host = self._settings.get_host()
        self._database = self._settings.database
        self._username = self._settings.get_user()

        logger.info(
            "lakebase_factory_initialized",
            host=self._host,
            database=self._database,
            branch=self._settings.branch_id,
            user=self._username,
        )

    def get_connection(self) -> psycopg.Connection:
        return psycopg.connect(
            host=self._host,
            port=self._settings.port,
            dbname=self._database,
            user=self._username,
            password=self._settings.get_password(),
            sslmode=self._settings.sslmode,
        )

    def sqlalchemy_url(self) -> str:
        """URL for SQLAlchemy and alembic, using the psycopg 3 dialect."""
        url = URL.create(
            "postgresql+psycopg",
            username=self._username,
            password=self._settings.get_password(),
            host=self._host,
            port=self._settings.port,
            database=self._database,
            query={"sslmode": self._settings.sslmode},
        )
        return url.render_as_string(hide_password=False)

    def ensure_database(self) -> None:
        """Create the memo database from the default ``postgres`` database if missing."""
        conn = psycopg.connect(
            host=self._host,
            port=self._settings.port,
            dbname="postgres",
            user=self._username,
            password=self._settings.get_password(),
            sslmode=self._settings.sslmode,
            autocommit=True,
        )
        try:
            conn.execute(sql.SQL("CREATE DATABASE {}").format(sql.Identifier(self._database)))
            logger.info("database_created", database=self._database)
        except psycopg.errors.DuplicateDatabase:
            pass
        finally:
            conn.close()


class PostgresMemoRepository:
    """Memo storage on the ``memos`` table using psycopg."""

    def __init__(self, factory: LakebaseConnectionFactory | None = None):
        self._factory = factory or LakebaseConnectionFactory()

    @contextmanager
    def session(self) -> Generator[psycopg.Connection, None, None]:
        active = _active_connection.get()
        if active is not None:
            yield active
            return

        conn = self._factory.get_connection()
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    @contextmanager
    def transaction(self) -> Generator[None, None, None]:
        if _active_connection.get() is not None:
            yield
            return

        with self.session() as conn:
            token = _active_connection.set(conn)
            try:
                yield
            finally:
                _active_connection.reset(token)

    def health_check(self) -> bool:
        try:
            with self.session() as conn:
                with conn.cursor() as cur:
                    cur.execute("SELECT 1")
            return True
        except Exception as e:
            logger.error("database_health_check_failed", error=str(e))
            return False

    # --- Queries ---

    def find_all(self) -> list[Memo]:
        return self._fetch_all(f"SELECT {_COLUMNS} FROM memos ORDER BY id")

    def find_by_id(self, memo_id: int) -> Memo | None:
        return self._fetch_one(f"SELECT {_COLUMNS} FROM memos WHERE id = %s", (memo_id,))

    def find_all_by_ids(self, memo_ids: Iterable[int]) -> list[Memo]:
        return self._fetch_all(
            f"SELECT {_COLUMNS} FROM memos WHERE id = ANY(%s) ORDER BY id",
            (list(memo_ids),),
        )

    def exists_by_id(self, memo_id: int) -> bool:
        with self.session() as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT EXISTS (SELECT 1 FROM memos WHERE id = %s)", (memo_id,))
                row = cur.fetchone()
        return bool(row[0])

    def find_by_priorities(self, priorities: Iterable[Priority]) -> list[Memo]:
        return self._fetch_all(
            f"""
            SELECT {_COLUMNS}
            FROM memos
            WHERE priority = ANY(%s)
            ORDER BY {_PRIORITY_RANK_SQL} DESC, created_at DESC, id DESC
            """,
            ([p.value for p in priorities],),
        )

    def find_all_ordered_by_priority(self, descending: bool = True) -> list[Memo]:
        direction = "DESC" if descending else "ASC"
        return self._fetch_all(
            f"""
            SELECT {_COLUMNS}
            FROM memos
            ORDER BY {_PRIORITY_RANK_SQL} {direction}, created_at DESC, id DESC
            """
        )

    def count_by_priority(self, priority: Priority) -> int:
        return self._count("SELECT COUNT(*) FROM memos WHERE priority = %s", (priority.value,))

    def count(self) -> int:
        return self._count("SELECT COUNT(*) FROM memos")

    # --- Writes ---

    def save(self, memo: Memo) -> Memo:
        priority = (memo.priority or Priority.NONE).value
        if memo.id is None:
            row = self._execute_returning(
                f"""
                INSERT INTO memos (title, content, priority)
                VALUES (%s, %s, %s)
                RETURNING {_COLUMNS}
                """,
                (memo.title, memo.content, priority),
            )
        else:
            row = self._execute_returning(
                f"""
                UPDATE memos
                SET title = %s, content = %s, priority = %s, updated_at = NOW()
                WHERE id = %s
                RETURNING {_COLUMNS}
                """,
                (memo.title, memo.content, priority, memo.id),
            )
        return self._row_to_memo(row)

    def save_all(self, memos: Iterable[Memo]) -> list[Memo]:
        with self.transaction():
            return [self.save(m) for m in memos]

    def delete_by_id(self, memo_id: int) -> None:
        with self.session() as conn:
            with conn.cursor() as cur:
                cur.execute("DELETE FROM memos WHERE id = %s", (memo_id,))

    # --- Helpers ---

    def _fetch_all(self, query: str, params: tuple = ()) -> list[Memo]:
        with self.session() as conn:
            with conn.cursor() as cur:
                cur.execute(query, params)
                rows = cur.fetchall()
        return [self._row_to_memo(row) for row in rows]

    def _fetch_one(self, query: str, params: tuple = ()) -> Memo | None:
        with self.session() as conn:
            with conn.cursor() as cur:
                cur.execute(query, params)
                row = cur.fetchone()
        if row is None:
            return None
        return self._row_to_memo(row)

    def _count(self, query: str, params: tuple = ()) -> int:
        with self.session() as conn:
            with conn.cursor() as cur:
                cur.execute(query, params)
                row = cur.fetchone()
        return row[0]

    def _execute_returning(self, query: str, params: tuple) -> tuple:
        with self.session() as conn:
            with conn.cursor() as cur:
                cur.execute(query, params)
                row = cur.fetchone()
        if row is None:
            raise LookupError(f"No memo row returned for {params!r}")
        return row

    @staticmethod
    def _row_to_memo(row: tuple) -> Memo:
        return Memo(
            id=row[0],
            title=row[1],
            content=row[2],
            priority=Priority.parse(row[3]),
            created_at=row[4],
            updated_at=row[5],
        )
