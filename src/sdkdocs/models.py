"""Core sdkdocs data models."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(slots=True)
class DocChunk:
    """Heading-scoped slice of a guide or tutorial document."""

    title: str
    content: str
    heading_level: int
    package: str
    category: str
    source_url: str
    file_path: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(slots=True)
class Param:
    name: str
    type: str = ""
    description: str = ""
    optional: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(slots=True)
class Returns:
    type: str
    description: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(slots=True)
class Member:
    """Method, property, constructor or accessor owned by a declaration."""

    name: str
    kind: str = "method"
    signature: str = ""
    visibility: str = "public"
    is_static: bool = False
    is_async: bool = False
    description: str = ""
    params: List[Param] = field(default_factory=list)
    returns: Optional[Returns] = None
    decorators: List[str] = field(default_factory=list)
    example_code: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(slots=True)
class Declaration:
    """One exported class, interface, type alias, enum or function."""

    name: str
    package: str
    kind: str = "class"
    description: str = ""
    extends_clause: Optional[str] = None
    implements_clause: List[str] = field(default_factory=list)
    decorators: List[str] = field(default_factory=list)
    members: List[Member] = field(default_factory=list)
    file_path: str = ""
    source_url: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(slots=True)
class StoredDeclaration:
    """Declaration read back from the store, with its row id."""

    id: int
    declaration: Declaration

    def to_dict(self) -> Dict[str, Any]:
        data = self.declaration.to_dict()
        data["id"] = self.id
        return data


@dataclass(slots=True)
class MemberMatch:
    """Member lookup hit together with its owning declaration."""

    id: int
    member: Member
    class_name: str
    package: str
    source_url: str

    def to_dict(self) -> Dict[str, Any]:
        data = self.member.to_dict()
        data.update(
            id=self.id,
            class_name=self.class_name,
            package=self.package,
            source_url=self.source_url,
        )
        return data


@dataclass(slots=True)
class DeclarationSummary:
    name: str
    package: str
    kind: str
    description: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(slots=True)
class SearchResult:
    """Rankable hit over doc chunks, declarations and members."""

    id: int
    title: str
    snippet: str
    package: str
    category: str
    type: str
    source_url: str
    rank: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
