"""SQLite store for doc chunks, declarations and members."""

from __future__ import annotations

import json
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Sequence

from sdkdocs.models import Declaration, DocChunk, Member, Param, Returns

SCHEMA_STATEMENTS = (
    """
    CREATE TABLE docs (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        package TEXT NOT NULL,
        category TEXT NOT NULL,
        title TEXT NOT NULL,
        content TEXT NOT NULL,
        heading_level INTEGER,
        source_url TEXT,
        file_path TEXT,
        search_text TEXT
    )
    """,
    """
    CREATE TABLE classes (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        package TEXT NOT NULL,
        name TEXT NOT NULL,
        type TEXT NOT NULL,
        description TEXT,
        extends_clause TEXT,
        implements_clause TEXT,
        decorators TEXT,
        source_url TEXT,
        file_path TEXT,
        search_text TEXT
    )
    """,
    """
    CREATE TABLE members (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        class_id INTEGER NOT NULL REFERENCES classes(id),
        name TEXT NOT NULL,
        type TEXT NOT NULL,
        signature TEXT,
        visibility TEXT,
        is_static INTEGER DEFAULT 0,
        is_async INTEGER DEFAULT 0,
        description TEXT,
        params TEXT,
        returns TEXT,
        decorators TEXT,
        example_code TEXT,
        search_text TEXT
    )
    """,
)

# Built after the bulk load, not before.
SEARCH_INDEXES = {
    "idx_docs_package": "docs(package)",
    "idx_docs_category": "docs(category)",
    "idx_docs_search": "docs(search_text)",
    "idx_classes_package": "classes(package)",
    "idx_classes_name": "classes(name)",
    "idx_classes_type": "classes(type)",
    "idx_classes_search": "classes(search_text)",
    "idx_members_class_id": "members(class_id)",
    "idx_members_name": "members(name)",
    "idx_members_search": "members(search_text)",
}


def loads_json(value: Optional[str], default: Any) -> Any:
    if not value:
        return default
    try:
        return json.loads(value)
    except ValueError:
        return default


def chunk_search_text(chunk: DocChunk) -> str:
    return f"{chunk.title} {chunk.content}".lower()


def declaration_search_text(declaration: Declaration) -> str:
    return f"{declaration.name} {declaration.description} {' '.join(declaration.decorators)}".lower()


def member_search_text(member: Member) -> str:
    return (
        f"{member.name} {member.signature} {member.description} {' '.join(member.decorators)}"
    ).lower()


class DocStore:
    """Persistence layer for the documentation index.

    A store is either opened read-only against a finished index or created
    fresh for a build with ``recreate_schema``; rows are only ever inserted.
    """

    def __init__(self, db_path: Path, *, readonly: bool = False) -> None:
        self.db_path = Path(db_path)
        self.readonly = readonly
        if readonly:
            if not self.db_path.exists():
                raise FileNotFoundError(f"Database not found: {self.db_path}")
            uri = f"{self.db_path.resolve().as_uri()}?mode=ro"
            self._conn = sqlite3.connect(uri, uri=True, check_same_thread=False)
        else:
            self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA foreign_keys=ON;")

    @property
    def connection(self) -> sqlite3.Connection:
        return self._conn

    def close(self) -> None:
        self._conn.close()

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        try:
            yield self._conn
            self._conn.commit()
        except Exception:
            self._conn.rollback()
            raise

    def recreate_schema(self) -> None:
        """Drop every table and recreate the empty schema."""
        with self.transaction() as conn:
            for name in SEARCH_INDEXES:
                conn.execute(f"DROP INDEX IF EXISTS {name}")
            conn.execute("DROP TABLE IF EXISTS members")
            conn.execute("DROP TABLE IF EXISTS classes")
            conn.execute("DROP TABLE IF EXISTS docs")
            for statement in SCHEMA_STATEMENTS:
                conn.execute(statement)

    def rebuild_search_indexes(self) -> None:
        with self.transaction() as conn:
            for name, target in SEARCH_INDEXES.items():
                conn.execute(f"DROP INDEX IF EXISTS {name}")
                conn.execute(f"CREATE INDEX {name} ON {target}")
        self._conn.execute("ANALYZE")

    def insert_chunk(self, chunk: DocChunk) -> int:
        return self._conn.execute(
            """
            INSERT INTO docs (package, category, title, content, heading_level,
                              source_url, file_path, search_text)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                chunk.package,
                chunk.category,
                chunk.title,
                chunk.content,
                chunk.heading_level,
                chunk.source_url,
                chunk.file_path,
                chunk_search_text(chunk),
            ),
        ).lastrowid

    def insert_chunks(self, chunks: Sequence[DocChunk]) -> None:
        for chunk in chunks:
            self.insert_chunk(chunk)

    def insert_declaration(self, declaration: Declaration) -> int:
        """Insert a declaration and all of its members, returning the row id."""
        class_id = self._conn.execute(
            """
            INSERT INTO classes (package, name, type, description, extends_clause,
                                 implements_clause, decorators, source_url, file_path,
                                 search_text)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                declaration.package,
                declaration.name,
                declaration.kind,
                declaration.description,
                declaration.extends_clause,
                json.dumps(declaration.implements_clause),
                json.dumps(declaration.decorators),
                declaration.source_url,
                declaration.file_path,
                declaration_search_text(declaration),
            ),
        ).lastrowid

        for member in declaration.members:
            self._conn.execute(
                """
                INSERT INTO members (class_id, name, type, signature, visibility, is_static,
                                     is_async, description, params, returns, decorators,
                                     example_code, search_text)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    class_id,
                    member.name,
                    member.kind,
                    member.signature,
                    member.visibility,
                    int(member.is_static),
                    int(member.is_async),
                    member.description,
                    json.dumps([param.to_dict() for param in member.params]),
                    json.dumps(member.returns.to_dict()) if member.returns else None,
                    json.dumps(member.decorators),
                    member.example_code,
                    member_search_text(member),
                ),
            )
        return class_id

    def counts(self) -> Dict[str, int]:
        return {
            "doc_count": self._conn.execute("SELECT COUNT(*) FROM docs").fetchone()[0],
            "class_count": self._conn.execute("SELECT COUNT(*) FROM classes").fetchone()[0],
            "member_count": self._conn.execute("SELECT COUNT(*) FROM members").fetchone()[0],
        }

    def query(self, sql: str, params: Sequence[Any] = ()) -> List[sqlite3.Row]:
        return self._conn.execute(sql, tuple(params)).fetchall()


def row_to_declaration(row: sqlite3.Row, members: Sequence[Member] = ()) -> Declaration:
    return Declaration(
        name=row["name"],
        package=row["package"],
        kind=row["type"],
        description=row["description"] or "",
        extends_clause=row["extends_clause"],
        implements_clause=loads_json(row["implements_clause"], []),
        decorators=loads_json(row["decorators"], []),
        members=list(members),
        file_path=row["file_path"] or "",
        source_url=row["source_url"] or "",
    )


def row_to_member(row: sqlite3.Row) -> Member:
    returns = loads_json(row["returns"], None)
    return Member(
        name=row["name"],
        kind=row["type"],
        signature=row["signature"] or "",
        visibility=row["visibility"] or "public",
        is_static=bool(row["is_static"]),
        is_async=bool(row["is_async"]),
        description=row["description"] or "",
        params=[Param(**param) for param in loads_json(row["params"], [])],
        returns=Returns(**returns) if isinstance(returns, dict) else None,
        decorators=loads_json(row["decorators"], []),
        example_code=row["example_code"],
    )
