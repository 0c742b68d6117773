"""Tests for source path classification and discovery."""

from __future__ import annotations

from pathlib import Path

import pytest

from sdkdocs.ingestion.paths import (
    DOCS_SITE_URL,
    classify_path,
    detect_category,
    detect_package,
    is_reference_path,
    iter_doc_files,
    source_url_for,
)


class TestClassification:
    """Test package, category and source URL detection."""

    @pytest.mark.parametrize(
        "path, package",
        [
            ("docs/chain-api-docs/exports.md", "chain-api"),
            ("docs/chain-client-docs/exports.md", "chain-client"),
            ("docs/chain-test-docs/exports.md", "chain-test"),
            ("docs/chaincode-docs/exports.md", "chaincode"),
            ("chain-cli/README.md", "chain-cli"),
            ("docs/authorization.md", "guides"),
        ],
    )
    def test_detect_package(self, path: str, package: str) -> None:
        """Reference directories map to their package."""
        assert detect_package(path) == package

    @pytest.mark.parametrize(
        "path, category",
        [
            ("docs/chain-api-docs/exports.md", "api"),
            ("docs/getting-started.md", "tutorial"),
            ("docs/from-zero-to-hero.md", "tutorial"),
            ("README.md", "reference"),
            ("BREAKING_CHANGES.md", "reference"),
            ("docs/authorization.md", "guide"),
        ],
    )
    def test_detect_category(self, path: str, category: str) -> None:
        """Paths map to api, tutorial, reference or guide."""
        assert detect_category(path) == category

    def test_reference_path(self) -> None:
        """Only *-docs directories are reference paths."""
        assert is_reference_path("docs/chain-api-docs/exports.md")
        assert not is_reference_path("docs/getting-started.md")

    def test_windows_separators(self) -> None:
        """Backslash paths classify like forward-slash paths."""
        assert is_reference_path("docs\\chaincode-docs\\exports.md")

    def test_source_url_inside_checkout(self) -> None:
        """Checkout paths map to the GitHub blob URL."""
        url = source_url_for("/data/repos/galachain-sdk/docs/getting-started.md")

        assert url == "https://github.com/GalaChain/sdk/blob/main/docs/getting-started.md"

    def test_source_url_outside_checkout(self) -> None:
        """Other paths fall back to the docs site."""
        assert source_url_for("/elsewhere/notes.md") == DOCS_SITE_URL

    def test_classify_path(self) -> None:
        """classify_path bundles all derived fields."""
        info = classify_path("/x/galachain-sdk/docs/chain-api-docs/exports.md")

        assert info.package == "chain-api"
        assert info.category == "api"
        assert info.is_reference
        assert info.source_url.endswith("docs/chain-api-docs/exports.md")


class TestIterDocFiles:
    """Test file discovery in a checkout."""

    def test_discovers_docs_references_and_extras(self, fake_repo: Path) -> None:
        """Guides, reference exports and root extras are found in order."""
        files = [path.relative_to(fake_repo).as_posix() for path in iter_doc_files(fake_repo)]

        assert files == [
            "docs/chain-api-docs/exports.md",
            "docs/getting-started.md",
            "README.md",
        ]

    def test_ignores_other_files(self, fake_repo: Path) -> None:
        """Non-markdown files, other directories and unlisted root files are ignored."""
        (fake_repo / "docs" / "diagram.png").write_bytes(b"png")
        (fake_repo / "docs" / "assets").mkdir()
        (fake_repo / "docs" / "assets" / "notes.md").write_text("# Notes\n\ntext\n")
        (fake_repo / "CONTRIBUTING.md").write_text("# Contributing\n\ntext\n")

        names = {path.name for path in iter_doc_files(fake_repo)}

        assert names == {"exports.md", "getting-started.md", "README.md"}

    def test_empty_checkout(self, tmp_path: Path) -> None:
        """An empty directory yields no files."""
        assert list(iter_doc_files(tmp_path)) == []
