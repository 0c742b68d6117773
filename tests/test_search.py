"""Tests for lexical search and lookups."""

from __future__ import annotations

from pathlib import Path

import pytest

from sdkdocs.index.search import QueryService, clamp_limit, make_snippet, relevance_score, tokenize
from sdkdocs.index.storage import DocStore
from sdkdocs.models import Declaration, Member


class TestHelpers:
    """Test ranking and snippet helpers."""

    def test_tokenize(self) -> None:
        """Queries split into lowercase terms."""
        assert tokenize("  Token   BALANCE ") == ["token", "balance"]
        assert tokenize("   ") == []

    def test_clamp_limit(self) -> None:
        """Limits are clamped into 1..20."""
        assert clamp_limit(0) == 1
        assert clamp_limit(5) == 5
        assert clamp_limit(100) == 20

    def test_whole_word_beats_substring(self) -> None:
        """Whole-word hits rank ahead of substring hits."""
        whole = relevance_score("x " + "pad " * 30 + "balance", ["balance"])
        partial = relevance_score("x " + "pad " * 30 + "tokenbalance", ["balance"])

        assert whole < partial

    def test_first_word_bonus(self) -> None:
        """A term in the first word ranks higher."""
        assert relevance_score("balance is here", ["balance"]) < relevance_score(
            "here is balance", ["balance"]
        )

    def test_short_text_bonus_and_floor(self) -> None:
        """Short texts get a bonus and scores never drop below zero."""
        assert relevance_score("", []) == 90
        assert relevance_score("a b c d e", list("abcde")) == 0

    def test_snippet_centers_on_match(self) -> None:
        """The snippet window surrounds the first hit."""
        content = "a" * 200 + " balance " + "b" * 200

        snippet = make_snippet(content, ["balance"])

        assert "balance" in snippet
        assert snippet.startswith("...")
        assert snippet.endswith("...")
        assert len(snippet) <= 150 + 6

    def test_snippet_without_match(self) -> None:
        """Without a hit the snippet is the text head."""
        assert make_snippet("short", ["zzz"]) == "short"
        assert make_snippet("x" * 200, ["zzz"]) == "x" * 150 + "..."


class TestSearch:
    """Test the merged search over the built fixture index."""

    def test_empty_query(self, queries: QueryService) -> None:
        """Blank queries return no results."""
        assert queries.search("") == []
        assert queries.search("   ") == []

    def test_ranked_results(self, queries: QueryService) -> None:
        """Results from all kinds are merged in rank order."""
        results = queries.search("balance", limit=20)

        ranks = [result.rank for result in results]
        assert ranks == sorted(ranks)
        assert results[0].type == "class"
        assert results[0].title == "TokenBalance"
        assert {result.type for result in results} == {"doc", "class", "method"}

    def test_every_term_must_match(self, queries: QueryService) -> None:
        """Rows must contain every query term."""
        results = queries.search("token owner")

        assert len(results) == 2
        assert {result.type for result in results} == {"doc", "class"}

    def test_limit_is_clamped(self, queries: QueryService) -> None:
        """The limit is clamped into 1..20."""
        assert len(queries.search("balance", limit=2)) == 2
        assert len(queries.search("balance", limit=0)) == 1
        assert len(queries.search("a", limit=500)) <= 20

    def test_type_filter_method(self, queries: QueryService) -> None:
        """The method filter returns members only."""
        results = queries.search("balance", type_filter="method", limit=20)

        assert results
        assert all(result.type == "method" for result in results)
        assert results[0].title == "TokenBalance.addQuantity"

    def test_type_filter_guide(self, queries: QueryService) -> None:
        """The guide filter returns doc chunks only."""
        results = queries.search("balance", type_filter="guide", limit=20)

        assert all(result.type == "doc" for result in results)

    def test_type_filter_interface(self, queries: QueryService) -> None:
        """The interface filter restricts declaration kind."""
        assert queries.search("balance", type_filter="interface") == []

    def test_package_filter(self, queries: QueryService) -> None:
        """The package filter restricts every result."""
        results = queries.search("network", package="guides")

        assert [result.package for result in results] == ["guides"]
        assert results[0].category == "tutorial"
        assert queries.search("balance", package="chain-client") == []

    def test_results_carry_source_url(self, queries: QueryService) -> None:
        """Every result links back to its source file."""
        for result in queries.search("balance", limit=20):
            assert result.source_url.startswith("https://github.com/GalaChain/sdk/blob/main/")


class TestLookups:
    """Test declaration, member and listing lookups."""

    def test_get_declaration(self, queries: QueryService) -> None:
        """A declaration comes back with its members."""
        stored = queries.get_declaration("TokenBalance")

        assert stored is not None
        assert stored.declaration.extends_clause == "ChainObject"
        assert stored.declaration.implements_clause == ["Serializable", "Comparable"]
        assert [m.name for m in stored.declaration.members] == [
            "constructor",
            "quantity",
            "addQuantity",
        ]

    def test_get_declaration_with_package(self, queries: QueryService) -> None:
        """The package filter applies to declaration lookup."""
        assert queries.get_declaration("TokenBalance", "chain-api") is not None
        assert queries.get_declaration("TokenBalance", "all") is not None
        assert queries.get_declaration("TokenBalance", "chain-client") is None

    def test_get_declaration_missing(self, queries: QueryService) -> None:
        """Unknown names return None."""
        assert queries.get_declaration("Missing") is None

    def test_get_member(self, queries: QueryService) -> None:
        """A bare member name is found with its owner."""
        matches = queries.get_member("submit")

        assert len(matches) == 1
        assert matches[0].class_name == "GalaContract"
        assert matches[0].member.is_async

    def test_get_member_qualified(self, queries: QueryService) -> None:
        """Class.member requires the owner to match."""
        assert len(queries.get_member("GalaContract.submit")) == 1
        assert queries.get_member("TokenBalance.submit") == []

    def test_get_member_missing(self, queries: QueryService) -> None:
        """Unknown members return an empty list."""
        assert queries.get_member("nothing") == []

    def test_list_declarations(self, queries: QueryService) -> None:
        """Listings are ordered and filtered."""
        names = [summary.name for summary in queries.list_declarations()]

        assert names == ["GalaContract", "TokenBalance"]
        assert queries.list_declarations(type_filter="interface") == []
        assert queries.list_declarations(package="chaincode") == []


class TestMemberMatchesAcrossClasses:
    """Test bare-name lookups that hit several declarations."""

    @pytest.fixture
    def service(self, tmp_path: Path):
        store = DocStore(tmp_path / "multi.db")
        store.recreate_schema()
        with store.transaction():
            store.insert_declaration(
                Declaration(name="Foo", package="chain-api", members=[Member(name="bar")])
            )
            store.insert_declaration(
                Declaration(name="Baz", package="chaincode", members=[Member(name="bar")])
            )
        yield QueryService(store)
        store.close()

    def test_bare_name_hits_all(self, service: QueryService) -> None:
        """A bare name matches the member on every class."""
        matches = service.get_member("bar")

        assert [match.class_name for match in matches] == ["Foo", "Baz"]

    def test_qualified_name_hits_one(self, service: QueryService) -> None:
        """A qualified name matches only its class."""
        matches = service.get_member("Foo.bar")

        assert [match.class_name for match in matches] == ["Foo"]

    def test_package_narrows(self, service: QueryService) -> None:
        """A package filter narrows member matches."""
        matches = service.get_member("bar", "chaincode")

        assert [match.package for match in matches] == ["chaincode"]
