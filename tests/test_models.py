"""Tests for core data models."""

from __future__ import annotations

import json

from sdkdocs.models import (
    Declaration,
    DocChunk,
    Member,
    MemberMatch,
    Param,
    Returns,
    SearchResult,
    StoredDeclaration,
)


class TestDocChunk:
    """Test DocChunk dataclass."""

    def test_to_dict(self) -> None:
        """to_dict exposes every chunk field."""
        chunk = DocChunk(
            title="Intro",
            content="Hello world.",
            heading_level=1,
            package="guides",
            category="guide",
            source_url="https://docs.galachain.com/",
            file_path="docs/intro.md",
        )

        data = chunk.to_dict()
        assert data["title"] == "Intro"
        assert data["heading_level"] == 1
        assert data["package"] == "guides"


class TestMember:
    """Test Member defaults and serialization."""

    def test_defaults(self) -> None:
        """A bare member is a public method without params or returns."""
        member = Member(name="submit")

        assert member.kind == "method"
        assert member.visibility == "public"
        assert member.params == []
        assert member.returns is None
        assert member.example_code is None

    def test_default_lists_not_shared(self) -> None:
        """Each instance gets its own params and decorators."""
        first = Member(name="a")
        second = Member(name="b")
        first.params.append(Param(name="x"))

        assert second.params == []

    def test_to_dict_nests_params_and_returns(self) -> None:
        """Params and returns serialize as nested dicts."""
        member = Member(
            name="createToken",
            params=[Param(name="name", type="string")],
            returns=Returns(type="Promise<Token>"),
            is_async=True,
        )

        data = member.to_dict()
        assert data["params"] == [
            {"name": "name", "type": "string", "description": "", "optional": False}
        ]
        assert data["returns"] == {"type": "Promise<Token>", "description": ""}
        assert data["is_async"] is True


class TestStoredDeclaration:
    """Test the id-carrying wrappers."""

    def test_to_dict_includes_id_and_members(self) -> None:
        """StoredDeclaration adds its id next to the declaration fields."""
        declaration = Declaration(
            name="TokenBalance",
            package="chain-api",
            implements_clause=["Serializable"],
            members=[Member(name="quantity", kind="property")],
        )

        data = StoredDeclaration(id=7, declaration=declaration).to_dict()
        assert data["id"] == 7
        assert data["name"] == "TokenBalance"
        assert data["members"][0]["name"] == "quantity"
        # Must be JSON serializable for the HTTP layer
        json.dumps(data)

    def test_member_match_to_dict(self) -> None:
        """MemberMatch flattens the member and adds its owner."""
        match = MemberMatch(
            id=3,
            member=Member(name="submit"),
            class_name="GalaContract",
            package="chain-api",
            source_url="https://example.test",
        )

        data = match.to_dict()
        assert data["id"] == 3
        assert data["name"] == "submit"
        assert data["class_name"] == "GalaContract"


class TestSearchResult:
    def test_equality(self) -> None:
        """Search results compare by value."""
        first = SearchResult(1, "T", "s", "guides", "guide", "doc", "", 10)
        second = SearchResult(1, "T", "s", "guides", "guide", "doc", "", 10)

        assert first == second
        assert first.to_dict()["rank"] == 10
