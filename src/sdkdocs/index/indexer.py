"""Documentation indexing pipeline."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Sequence

from sdkdocs.index.storage import DocStore
from sdkdocs.ingestion.fetch import fetch_repo
from sdkdocs.ingestion.guide_parser import iter_chunks
from sdkdocs.ingestion.paths import classify_path, iter_doc_files
from sdkdocs.ingestion.reference_parser import parse_reference

LOGGER = logging.getLogger(__name__)

SourceFetcher = Callable[[], Path]


@dataclass(slots=True)
class IndexStats:
    doc_count: int = 0
    class_count: int = 0
    member_count: int = 0
    failed: int = 0
    processed_files: list[Path] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "doc_count": self.doc_count,
            "class_count": self.class_count,
            "member_count": self.member_count,
            "failed": self.failed,
            "processed_files": [str(path) for path in self.processed_files],
        }


class IndexBuilder:
    """Rebuilds the whole index from the documentation checkout.

    Every build starts from an empty store: there is no incremental path.
    The new database is written next to ``destination`` and only moved into
    place once every file has been processed.
    """

    def __init__(self, fetch_source: SourceFetcher) -> None:
        self.fetch_source = fetch_source

    @classmethod
    def from_repo(cls, repo_url: str, repo_dir: Path) -> "IndexBuilder":
        return cls(lambda: fetch_repo(repo_url, repo_dir))

    def build(self, destination: Path) -> IndexStats:
        destination = Path(destination)
        LOGGER.info("Starting index build into %s", destination)

        # Fetch failures propagate: no index beats one built from nothing.
        repo_dir = self.fetch_source()
        files = list(iter_doc_files(repo_dir))
        LOGGER.info("Found %d files to index", len(files))

        destination.parent.mkdir(parents=True, exist_ok=True)
        staging = destination.with_name(destination.name + ".building")
        if staging.exists():
            staging.unlink()

        store = DocStore(staging)
        try:
            store.recreate_schema()
            stats = self.index_files(store, files)
            store.rebuild_search_indexes()
        except Exception:
            store.close()
            staging.unlink(missing_ok=True)
            raise
        store.close()

        os.replace(staging, destination)
        LOGGER.info(
            "Index complete: %d docs, %d classes, %d members",
            stats.doc_count,
            stats.class_count,
            stats.member_count,
        )
        return stats

    def index_files(self, store: DocStore, files: Sequence[Path]) -> IndexStats:
        stats = IndexStats()
        for path in files:
            try:
                self._index_single(store, path, stats)
            except Exception as exc:
                LOGGER.error("Failed to process %s: %s", path, exc)
                stats.failed += 1
        return stats

    def _index_single(self, store: DocStore, path: Path, stats: IndexStats) -> None:
        text = path.read_text(encoding="utf-8")
        docs = classes = members = 0

        with store.transaction():
            if classify_path(path).is_reference:
                for declaration in parse_reference(text, path):
                    store.insert_declaration(declaration)
                    classes += 1
                    members += len(declaration.members)

            for chunk in iter_chunks(text, path):
                store.insert_chunk(chunk)
                docs += 1

        # Counted only once the file's rows are committed.
        stats.doc_count += docs
        stats.class_count += classes
        stats.member_count += members
        stats.processed_files.append(path)
        LOGGER.debug("Indexed %s: %d docs, %d classes", path, docs, classes)

