"""Source path classification and discovery.

Both parsers and the index builder derive package, category and source URL
from here, so the three always agree on how a path is classified.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Tuple

# Ordered: first substring hit wins.
PACKAGE_MARKERS: Tuple[Tuple[str, str], ...] = (
    ("chain-api-docs", "chain-api"),
    ("chain-client-docs", "chain-client"),
    ("chain-test-docs", "chain-test"),
    ("chaincode-docs", "chaincode"),
    ("chain-cli", "chain-cli"),
)
DEFAULT_PACKAGE = "guides"

TUTORIAL_MARKERS = ("getting-started", "from-zero")
REFERENCE_MARKERS = ("README", "CLAUDE", "BREAKING")

REPO_BLOB_URL = "https://github.com/GalaChain/sdk/blob/main/"
DOCS_SITE_URL = "https://docs.galachain.com/"
CHECKOUT_DIR_NAME = "galachain-sdk"

EXTRA_FILES = (
    "chain-cli/README.md",
    "CLAUDE.md",
    "BREAKING_CHANGES.md",
    "README.md",
)

_REFERENCE_DIR_RE = re.compile(r"[^/]+-docs/")
_CHECKOUT_RE = re.compile(re.escape(CHECKOUT_DIR_NAME) + r"/(.+)$")


@dataclass(slots=True, frozen=True)
class SourceInfo:
    package: str
    category: str
    source_url: str
    is_reference: bool


def _posix(path: str | Path) -> str:
    return str(path).replace("\\", "/")


def is_reference_path(path: str | Path) -> bool:
    """Whether the file lives in a generated API-reference directory."""
    return bool(_REFERENCE_DIR_RE.search(_posix(path)))


def detect_package(path: str | Path) -> str:
    text = _posix(path)
    for marker, package in PACKAGE_MARKERS:
        if marker in text:
            return package
    return DEFAULT_PACKAGE


def detect_category(path: str | Path) -> str:
    text = _posix(path)
    if is_reference_path(text):
        return "api"
    if any(marker in text for marker in TUTORIAL_MARKERS):
        return "tutorial"
    if any(marker in text for marker in REFERENCE_MARKERS):
        return "reference"
    return "guide"


def source_url_for(path: str | Path) -> str:
    match = _CHECKOUT_RE.search(_posix(path))
    if match:
        return REPO_BLOB_URL + match.group(1)
    return DOCS_SITE_URL


def classify_path(path: str | Path) -> SourceInfo:
    return SourceInfo(
        package=detect_package(path),
        category=detect_category(path),
        source_url=source_url_for(path),
        is_reference=is_reference_path(path),
    )


def iter_doc_files(repo_dir: Path) -> Iterator[Path]:
    """Yield the markdown files that make up the documentation set.

    Covers ``docs/*.md``, every ``docs/*-docs/*.md`` reference export and a
    fixed list of root-level extras. Missing entries are skipped.
    """
    docs_dir = repo_dir / "docs"
    if docs_dir.is_dir():
        for entry in sorted(docs_dir.iterdir()):
            if entry.is_file() and entry.suffix == ".md":
                yield entry
            elif entry.is_dir() and entry.name.endswith("-docs"):
                yield from sorted(
                    child for child in entry.iterdir() if child.is_file() and child.suffix == ".md"
                )

    for extra in EXTRA_FILES:
        candidate = repo_dir / extra
        if candidate.is_file():
            yield candidate
