"""Tool definitions and text rendering for the four query operations.

``call_tool`` is the boundary the protocol layer talks to: it takes plain
arguments, checks the index status and always answers with readable text.
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from typing import Any, Callable, Dict, List, Literal, Optional

from pydantic import BaseModel, ValidationError

from sdkdocs.index.search import QueryService
from sdkdocs.index.state import BUILDING, ERROR, IndexState
from sdkdocs.models import DeclarationSummary, Member, MemberMatch, SearchResult, StoredDeclaration
from sdkdocs.utils.text import truncate

LOGGER = logging.getLogger(__name__)

PackageName = Literal["chain-api", "chain-client", "chain-test", "chaincode"]
SearchPackage = Literal["chain-api", "chain-client", "chain-test", "chaincode", "chain-cli", "guides", "all"]
ListPackage = Literal["chain-api", "chain-client", "chain-test", "chaincode", "all"]
SearchType = Literal["all", "guide", "class", "method", "interface"]
DeclarationKind = Literal["class", "interface", "type", "enum", "function", "all"]

BUILDING_MESSAGE = "Index is building (~60s on first run). Please wait and try again."


class SearchArgs(BaseModel):
    query: str
    package: SearchPackage = "all"
    type: SearchType = "all"
    limit: int = 5


class ClassArgs(BaseModel):
    name: str
    package: Optional[PackageName] = None


class MethodArgs(BaseModel):
    method_name: str
    package: Optional[PackageName] = None


class ModulesArgs(BaseModel):
    package: ListPackage = "all"
    type: DeclarationKind = "all"


def _in_package(package: Optional[str]) -> str:
    return f" in package {package}" if package and package != "all" else ""


def _of_type(kind: str) -> str:
    return f" of type {kind}" if kind != "all" else ""


def format_search_results(query: str, args: SearchArgs, results: List[SearchResult]) -> str:
    if not results:
        return f'No results found for "{query}"{_in_package(args.package)}{_of_type(args.type)}.'
    blocks = []
    for position, result in enumerate(results, start=1):
        blocks.append(
            "\n".join(
                [
                    f"**{position}. {result.title}**",
                    f"   Package: {result.package} | Type: {result.type}",
                    f"   {result.snippet}",
                    f"   Source: {result.source_url}",
                ]
            )
        )
    return f'Found {len(results)} result(s) for "{query}":\n\n' + "\n\n".join(blocks)


def _modifiers(member: Member) -> List[str]:
    modifiers = []
    if member.is_static:
        modifiers.append("static")
    if member.is_async:
        modifiers.append("async")
    if member.visibility != "public":
        modifiers.append(member.visibility)
    return modifiers


def _param_lines(member: Member) -> List[str]:
    lines = []
    for param in member.params:
        optional = "?" if param.optional else ""
        description = f": {param.description}" if param.description else ""
        lines.append(f"- `{param.name}{optional}` ({param.type}){description}")
    return lines


def _returns_line(member: Member) -> str:
    returns = member.returns
    suffix = f" - {returns.description}" if returns.description else ""
    return f"`{returns.type}`{suffix}"


def format_member(member: Member) -> str:
    decorators = "".join(f"@{name} " for name in member.decorators)
    modifiers = "".join(f"{word} " for word in _modifiers(member))
    lines = [f"### {decorators}{modifiers}{member.name}"]
    if member.signature:
        lines += ["```typescript", member.signature, "```"]
    if member.description:
        lines += ["", member.description]
    if member.params:
        lines += ["", "**Parameters:**", *_param_lines(member)]
    if member.returns:
        lines += ["", f"**Returns:** {_returns_line(member)}"]
    if member.example_code:
        lines += ["", "**Example:**", "```typescript", member.example_code, "```"]
    return "\n".join(lines)


MEMBER_GROUPS = (
    ("constructor", "Constructor"),
    ("property", "Properties"),
    ("accessor", "Accessors"),
    ("method", "Methods"),
)


def format_declaration(stored: StoredDeclaration) -> str:
    declaration = stored.declaration
    lines = [
        f"# {declaration.name}",
        "",
        f"**Package:** {declaration.package}",
        f"**Type:** {declaration.kind}",
    ]
    if declaration.extends_clause:
        lines.append(f"**Extends:** {declaration.extends_clause}")
    if declaration.implements_clause:
        lines.append(f"**Implements:** {', '.join(declaration.implements_clause)}")
    if declaration.decorators:
        lines.append(f"**Decorators:** {', '.join('@' + name for name in declaration.decorators)}")
    if declaration.description:
        lines += ["", "## Description", "", declaration.description]

    for kind, heading in MEMBER_GROUPS:
        group = [member for member in declaration.members if member.kind == kind]
        if group:
            lines += ["", f"## {heading}"]
            for member in group:
                lines += ["", format_member(member)]

    lines += ["", f"**Source:** {declaration.source_url}"]
    return "\n".join(lines)


def format_member_match(match: MemberMatch) -> str:
    member = match.member
    lines = [
        f"# {match.class_name}.{member.name}",
        "",
        f"**Package:** {match.package}",
        f"**Class:** {match.class_name}",
    ]
    modifiers = _modifiers(member)
    if modifiers:
        lines.append(f"**Modifiers:** {', '.join(modifiers)}")
    if member.decorators:
        lines.append(f"**Decorators:** {', '.join('@' + name for name in member.decorators)}")
    if member.signature:
        lines += ["", "## Signature", "```typescript", member.signature, "```"]
    if member.description:
        lines += ["", "## Description", "", member.description]
    if member.params:
        lines += ["", "## Parameters", *_param_lines(member)]
    if member.returns:
        lines += ["", "## Returns", _returns_line(member)]
    if member.example_code:
        lines += ["", "## Example", "```typescript", member.example_code, "```"]
    lines += ["", f"**Source:** {match.source_url}"]
    return "\n".join(lines)


def format_member_matches(method_name: str, matches: List[MemberMatch]) -> str:
    header = ""
    if len(matches) > 1:
        header = f'Found {len(matches)} methods matching "{method_name}":\n\n---\n\n'
    return header + "\n\n---\n\n".join(format_member_match(match) for match in matches)


KIND_HEADINGS = {
    "class": "Classes",
    "interface": "Interfaces",
    "type": "Types",
    "enum": "Enums",
    "function": "Functions",
}


def format_module_listing(args: ModulesArgs, modules: List[DeclarationSummary]) -> str:
    filters = f"{_in_package(args.package)}{_of_type(args.type)}"
    if not modules:
        return f"No modules found{filters}."

    by_package: "OrderedDict[str, OrderedDict[str, List[DeclarationSummary]]]" = OrderedDict()
    for module in modules:
        by_package.setdefault(module.package, OrderedDict()).setdefault(module.kind, []).append(module)

    lines = ["# SDK Modules", "", f"Found {len(modules)} module(s){filters}.", ""]
    for package, kinds in by_package.items():
        lines += [f"## {package}", ""]
        for kind, items in kinds.items():
            lines += [f"### {KIND_HEADINGS.get(kind, kind.capitalize())}", ""]
            for item in items:
                description = f" - {truncate(item.description, 80)}" if item.description else ""
                lines.append(f"- **{item.name}**{description}")
            lines.append("")
    return "\n".join(lines)


def search_tool(queries: QueryService, args: SearchArgs) -> str:
    if not args.query.strip():
        return "Please provide a search query."
    results = queries.search(
        args.query, package=args.package, type_filter=args.type, limit=args.limit
    )
    return format_search_results(args.query, args, results)


def class_tool(queries: QueryService, args: ClassArgs) -> str:
    if not args.name.strip():
        return "Please provide a class/interface name."
    stored = queries.get_declaration(args.name.strip(), args.package)
    if stored is None:
        return f'Class/interface "{args.name}" not found{_in_package(args.package)}.'
    return format_declaration(stored)


def method_tool(queries: QueryService, args: MethodArgs) -> str:
    if not args.method_name.strip():
        return 'Please provide a method name (e.g., "submit" or "GalaContract.submit").'
    matches = queries.get_member(args.method_name.strip(), args.package)
    if not matches:
        return f'Method "{args.method_name}" not found{_in_package(args.package)}.'
    return format_member_matches(args.method_name, matches)


def modules_tool(queries: QueryService, args: ModulesArgs) -> str:
    return format_module_listing(args, queries.list_declarations(args.package, args.type))


TOOL_HANDLERS: Dict[str, tuple[type[BaseModel], Callable[[QueryService, Any], str]]] = {
    "search_docs": (SearchArgs, search_tool),
    "get_class": (ClassArgs, class_tool),
    "get_method": (MethodArgs, method_tool),
    "list_modules": (ModulesArgs, modules_tool),
}

TOOL_DESCRIPTIONS = {
    "search_docs": "Search SDK guides, API references, classes and methods.",
    "get_class": "Get the API reference for a class, interface, type or enum with all members.",
    "get_method": "Get signature, parameters, return type and examples for a method. "
    "Accepts 'name' or 'Class.name'.",
    "list_modules": "List the classes, interfaces and types available in the SDK packages.",
}


def tool_definitions() -> List[Dict[str, Any]]:
    return [
        {
            "name": name,
            "description": TOOL_DESCRIPTIONS[name],
            "inputSchema": model.model_json_schema(),
        }
        for name, (model, _handler) in TOOL_HANDLERS.items()
    ]


def status_message(state: IndexState) -> Optional[str]:
    """Message to answer with instead of querying, or ``None`` when ready."""
    status = state.status()
    if status.state == BUILDING:
        return BUILDING_MESSAGE
    if status.state == ERROR:
        return f"Index build failed: {status.error}. Try running `sdkdocs index` to rebuild."
    return None


def call_tool(state: IndexState, name: str, arguments: Optional[Dict[str, Any]] = None) -> str:
    if name not in TOOL_HANDLERS:
        return f"Error: Unknown tool: {name}"

    blocked = status_message(state)
    if blocked is not None:
        return blocked
    queries = state.queries()
    if queries is None:
        return BUILDING_MESSAGE

    model, handler = TOOL_HANDLERS[name]
    try:
        args = model.model_validate(arguments or {})
    except ValidationError as exc:
        return f"Error: invalid arguments for {name}: {exc.errors()[0]['msg']}"

    try:
        return handler(queries, args)
    except Exception as exc:
        LOGGER.exception("Tool %s failed", name)
        return f"Error: {exc}"
