"""Lexical search and lookups over the documentation index."""

from __future__ import annotations

import re
from typing import Any, List, Optional, Sequence, Tuple

from sdkdocs.index.storage import DocStore, row_to_declaration, row_to_member
from sdkdocs.models import DeclarationSummary, MemberMatch, SearchResult, StoredDeclaration

SNIPPET_LENGTH = 150
SNIPPET_LEAD = 40
MAX_LIMIT = 20

DOC_TYPES = ("all", "guide")
CLASS_TYPES = ("all", "class", "interface")
MEMBER_TYPES = ("all", "method")


def tokenize(query: str) -> List[str]:
    return query.lower().split()


def clamp_limit(limit: int) -> int:
    return max(1, min(int(limit), MAX_LIMIT))


def relevance_score(text: str, terms: Sequence[str]) -> int:
    """Heuristic score for ``text`` against ``terms``; lower is better."""
    lowered = text.lower()
    words = text.split()
    first_word = words[0].lower() if words else ""
    score = 100
    for term in terms:
        if re.search(rf"\b{re.escape(term)}\b", lowered):
            score -= 20
        elif term in lowered:
            score -= 10
        if first_word and term in first_word:
            score -= 30
    if len(text) < 100:
        score -= 5
    if len(text) < 50:
        score -= 5
    return max(0, score)


def make_snippet(content: str, terms: Sequence[str], max_len: int = SNIPPET_LENGTH) -> str:
    """Window of ``content`` around the earliest term hit."""
    lowered = content.lower()
    hits = [index for index in (lowered.find(term) for term in terms) if index != -1]
    if not hits:
        return content[:max_len] + ("..." if len(content) > max_len else "")

    match_index = min(hits)
    start = max(0, match_index - SNIPPET_LEAD)
    end = min(len(content), match_index + max_len - SNIPPET_LEAD)
    snippet = content[start:end]
    if start > 0:
        snippet = "..." + snippet
    if end < len(content):
        snippet = snippet + "..."
    return snippet


def _package_or_none(package: Optional[str]) -> Optional[str]:
    if not package or package == "all":
        return None
    return package


def _term_conditions(column: str, terms: Sequence[str]) -> Tuple[str, List[Any]]:
    clause = " AND ".join(f"instr({column}, ?) > 0" for _ in terms)
    return clause, list(terms)


class QueryService:
    """Read-only queries against an open ``DocStore``."""

    def __init__(self, store: DocStore) -> None:
        self.store = store

    def search(
        self,
        query: str,
        *,
        package: str = "all",
        type_filter: str = "all",
        limit: int = 5,
    ) -> List[SearchResult]:
        terms = tokenize(query)
        if not terms:
            return []

        package_filter = _package_or_none(package)
        results: List[SearchResult] = []
        if type_filter in DOC_TYPES:
            results.extend(self._search_docs(terms, package_filter))
        if type_filter in CLASS_TYPES:
            results.extend(self._search_classes(terms, package_filter, type_filter))
        if type_filter in MEMBER_TYPES:
            results.extend(self._search_members(terms, package_filter))

        results.sort(key=lambda result: result.rank)
        return results[: clamp_limit(limit)]

    def _search_docs(self, terms: List[str], package: Optional[str]) -> List[SearchResult]:
        clause, params = _term_conditions("search_text", terms)
        rows = self.store.query(
            f"""
            SELECT id, title, content, package, category, source_url
            FROM docs
            WHERE {clause}
              AND (? IS NULL OR package = ?)
            ORDER BY id
            """,
            [*params, package, package],
        )
        return [
            SearchResult(
                id=row["id"],
                title=row["title"],
                snippet=make_snippet(row["content"], terms),
                package=row["package"],
                category=row["category"],
                type="doc",
                source_url=row["source_url"] or "",
                rank=relevance_score(f"{row['title']} {row['content']}", terms),
            )
            for row in rows
        ]

    def _search_classes(
        self, terms: List[str], package: Optional[str], type_filter: str
    ) -> List[SearchResult]:
        clause, params = _term_conditions("search_text", terms)
        kind = "interface" if type_filter == "interface" else None
        rows = self.store.query(
            f"""
            SELECT id, name, package, type, description, source_url
            FROM classes
            WHERE {clause}
              AND (? IS NULL OR package = ?)
              AND (? IS NULL OR type = ?)
            ORDER BY id
            """,
            [*params, package, package, kind, kind],
        )
        results = []
        for row in rows:
            description = row["description"] or ""
            results.append(
                SearchResult(
                    id=row["id"],
                    title=row["name"],
                    snippet=make_snippet(description, terms)
                    if description
                    else f"{row['type']} in {row['package']}",
                    package=row["package"],
                    category=row["type"],
                    type="class",
                    source_url=row["source_url"] or "",
                    rank=relevance_score(f"{row['name']} {description}", terms),
                )
            )
        return results

    def _search_members(self, terms: List[str], package: Optional[str]) -> List[SearchResult]:
        clause, params = _term_conditions("m.search_text", terms)
        rows = self.store.query(
            f"""
            SELECT m.id, m.name, m.type, m.signature, m.description,
                   c.name AS class_name, c.package, c.source_url
            FROM members m
            JOIN classes c ON m.class_id = c.id
            WHERE {clause}
              AND (? IS NULL OR c.package = ?)
            ORDER BY m.id
            """,
            [*params, package, package],
        )
        results = []
        for row in rows:
            description = row["description"] or ""
            signature = row["signature"] or ""
            if description:
                snippet = make_snippet(description, terms)
            else:
                snippet = signature or f"{row['type']} in {row['class_name']}"
            results.append(
                SearchResult(
                    id=row["id"],
                    title=f"{row['class_name']}.{row['name']}",
                    snippet=snippet,
                    package=row["package"] or "",
                    category=row["type"],
                    type="method",
                    source_url=row["source_url"] or "",
                    rank=relevance_score(f"{row['name']} {description} {signature}", terms),
                )
            )
        return results

    def get_declaration(
        self, name: str, package: Optional[str] = None
    ) -> Optional[StoredDeclaration]:
        package = _package_or_none(package)
        rows = self.store.query(
            """
            SELECT * FROM classes
            WHERE name = ?
              AND (? IS NULL OR package = ?)
            ORDER BY id
            LIMIT 1
            """,
            [name, package, package],
        )
        if not rows:
            return None
        row = rows[0]
        members = self.store.query(
            "SELECT * FROM members WHERE class_id = ? ORDER BY id", [row["id"]]
        )
        return StoredDeclaration(
            id=row["id"],
            declaration=row_to_declaration(row, [row_to_member(member) for member in members]),
        )

    def get_member(self, name: str, package: Optional[str] = None) -> List[MemberMatch]:
        """Find members by bare name or by ``Declaration.member``."""
        class_name: Optional[str] = None
        member_name = name
        if "." in name:
            class_name, _, member_name = name.partition(".")

        package = _package_or_none(package)
        rows = self.store.query(
            """
            SELECT m.*, c.name AS class_name, c.package AS package, c.source_url AS source_url
            FROM members m
            JOIN classes c ON m.class_id = c.id
            WHERE m.name = ?
              AND (? IS NULL OR c.name = ?)
              AND (? IS NULL OR c.package = ?)
            ORDER BY c.id, m.id
            """,
            [member_name, class_name, class_name, package, package],
        )
        return [
            MemberMatch(
                id=row["id"],
                member=row_to_member(row),
                class_name=row["class_name"],
                package=row["package"],
                source_url=row["source_url"] or "",
            )
            for row in rows
        ]

    def list_declarations(
        self, package: str = "all", type_filter: str = "all"
    ) -> List[DeclarationSummary]:
        package_filter = _package_or_none(package)
        kind = None if type_filter in ("", "all") else type_filter
        rows = self.store.query(
            """
            SELECT name, package, type, description
            FROM classes
            WHERE (? IS NULL OR package = ?)
              AND (? IS NULL OR type = ?)
            ORDER BY package, type, name
            """,
            [package_filter, package_filter, kind, kind],
        )
        return [
            DeclarationSummary(
                name=row["name"],
                package=row["package"],
                kind=row["type"],
                description=row["description"] or "",
            )
            for row in rows
        ]
