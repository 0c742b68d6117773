"""Extract declarations and members from generated API-reference markdown.

The input is prose-like generator output rather than a grammar, so every
field is pulled out with a pattern and falls back to a default when the
pattern does not match. Nothing in here raises for an unexpected shape; a
section that yields nothing useful just produces sparse records.

Two passes run over each file:

1. ``## Name`` sections, skipping the generator's group headers
   (``## Classes``, ``## Interfaces`` ...).
2. ``### Name`` sections, which catches symbols grouped under such a header.

A name seen in an earlier section wins over later ones.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Iterator, List, Optional, Set, Tuple

from sdkdocs.ingestion.paths import SourceInfo, classify_path
from sdkdocs.models import Declaration, Member, Param, Returns
from sdkdocs.utils.text import clean_markup, split_top_level

LOGGER = logging.getLogger(__name__)

_TOP_LEVEL_SPLIT = re.compile(
    r"^## (?!Classes|Interfaces|Type Aliases|Enumerations|Functions)", re.MULTILINE
)
_NESTED_SPLIT = re.compile(r"^### (?!\s)", re.MULTILINE)

SKIP_NAMES = frozenset(
    {
        "Classes",
        "Interfaces",
        "Type",
        "Enumerations",
        "Functions",
        "Variables",
        "References",
        "Exports",
        "Hierarchy",
        "Implements",
        "Extends",
        "Constructors",
        "Properties",
        "Methods",
        "Accessors",
        "Index",
        "Table",
    }
)

# Member-level headings that only group or annotate other members.
MEMBER_LABELS = frozenset(
    {
        "Constructor",
        "Constructors",
        "Methods",
        "Method",
        "Properties",
        "Property",
        "Accessors",
        "Accessor",
        "Parameters",
        "Parameter",
        "Returns",
        "Return",
        "Example",
        "Examples",
        "Overrides",
        "Implementation",
        "Inherited",
        "Defined",
        "Type",
        "Throws",
        "Remarks",
        "Deprecated",
        "Signature",
    }
)

MODIFIERS = ("public", "protected", "private", "static", "async", "readonly", "abstract", "get", "set")

_KIND_PREFIX = re.compile(
    r"^(?:abstract\s+)?(class|interface|enumeration|enum|type alias|function)\s*:\s*",
    re.IGNORECASE,
)
_KIND_PREFIX_MAP = {
    "class": "class",
    "interface": "interface",
    "enumeration": "enum",
    "enum": "enum",
    "type alias": "type",
    "function": "function",
}
_NAME_RE = re.compile(r"^[\[`*]*(\w+)")

_LABEL_LINE = re.compile(
    r"^(?:[*_]{1,2})?(?:Returns?|Parameters?|Examples?|Extends|Implements|Defined in|"
    r"Inherited from|Overrides|Implementation of)(?:[*_]{1,2})?\s*:",
    re.IGNORECASE,
)
_BULLET_LINE = re.compile(r"^(?:[-•]|[*+]\s)")
_EXTENDS_RE = re.compile(r"\bextends\b[ \t]*:?\s*(?:[-*•][ \t]*)?[`\[*_]*(\w+)", re.IGNORECASE)
_IMPLEMENTS_RE = re.compile(r"\bimplements\b[ \t]*:?\s*(.+)", re.IGNORECASE)
_DECORATOR_RE = re.compile(r"(?<![\w@])@(\w+)(?![\w/-])")

_MEMBER_HEADING = re.compile(r"^(#{4,5})[ \t]+(.+)$", re.MULTILINE)
_BLOCK_END = re.compile(r"^#{1,5}\s", re.MULTILINE)
_FENCE_RE = re.compile(r"^```([\w+-]*)[^\n]*\n(.*?)^```", re.MULTILINE | re.DOTALL)
_SIGNATURE_FENCE_LANGS = ("", "ts", "typescript")
_SIGNATURE_RE = re.compile(
    r"^\s*(?:(?:public|private|protected|static|async|readonly|abstract)\s+)*(\w+)\s*(?:<[^(]*>)?\s*\("
)
_CONSTRUCTOR_SIGNATURE = re.compile(r"^\s*(?:new\s+\w+|constructor)\s*[<(]")
_ACCESSOR_RE = re.compile(r"(?<![\w.])(?:get|set)\s+\w+\s*[(:]")
_VISIBILITY_FLAG = r"`{0}`|\*\*{0}\*\*"

_PARAM_RE = re.compile(
    r"^(?:\.\.\.)?\s*(?:(?:public|private|protected|readonly)\s+)*([\w$]+)(\?)?\s*:\s*(.+)$",
    re.DOTALL,
)
_BULLET_PARAM = re.compile(
    r"^\s*[-*•]\s*[`']?(\w+)(\?)?[`']?(?:\s*\(([^)]+)\))?(?:\s*[-–:]\s*(.+))?$", re.MULTILINE
)
_TABLE_PARAM = re.compile(r"^\|\s*`?(\w+)(\??)`?\s*\|\s*([^|]*?)\s*\|(?:\s*([^|]*?)\s*\|)?", re.MULTILINE)
_RETURNS_LABEL = re.compile(
    r"^\s*(?:[-*•]\s*)?(?:[*_]{1,2})?Returns?(?:[*_]{1,2})?\s*:(?:[*_]{1,2})?[ \t]*(.+)$",
    re.MULTILINE | re.IGNORECASE,
)
_RETURNS_HEADING = re.compile(r"^#{2,6}\s+Returns?\s*\n+\s*(.+)$", re.MULTILINE)
_EXAMPLE_RE = re.compile(r"[Ee]xamples?\b[^\n]*\n(?:[ \t]*\n)*```[^\n]*\n(.*?)\n```", re.DOTALL)


def parse_reference(text: str, file_path: str | Path) -> List[Declaration]:
    """Parse one reference export into its declarations."""
    info = classify_path(file_path)
    declarations: List[Declaration] = []
    seen: Set[str] = set()

    for splitter in (_TOP_LEVEL_SPLIT, _NESTED_SPLIT):
        for name, kind_hint, section in _iter_candidates(text, splitter):
            if name in seen or name in SKIP_NAMES:
                continue
            try:
                declaration = parse_section(name, section, info, str(file_path), kind_hint)
            except Exception as exc:  # pragma: no cover
                LOGGER.warning("Skipping section %s in %s: %s", name, file_path, exc)
                continue
            seen.add(name)
            declarations.append(declaration)

    LOGGER.debug("Parsed %d declarations from %s", len(declarations), file_path)
    return declarations


def _iter_candidates(text: str, splitter: re.Pattern) -> Iterator[Tuple[str, Optional[str], str]]:
    for section in splitter.split(text)[1:]:
        first_line = section.split("\n", 1)[0].strip()
        if not first_line or first_line.startswith("#"):
            continue
        kind_hint = None
        prefix = _KIND_PREFIX.match(first_line)
        if prefix:
            kind_hint = _KIND_PREFIX_MAP[prefix.group(1).lower()]
            first_line = first_line[prefix.end():]
        match = _NAME_RE.match(first_line)
        if not match:
            continue
        yield match.group(1), kind_hint, section


def parse_section(
    name: str,
    section: str,
    info: SourceInfo,
    file_path: str,
    kind_hint: Optional[str] = None,
) -> Declaration:
    lines = section.split("\n")
    return Declaration(
        name=name,
        package=info.package,
        kind=kind_hint or detect_kind(name, section),
        description=extract_description(lines[1:]),
        extends_clause=extract_extends(section),
        implements_clause=extract_implements(section),
        decorators=extract_decorators(section),
        members=extract_members(section),
        file_path=file_path,
        source_url=info.source_url,
    )


def detect_kind(name: str, section: str) -> str:
    lowered = section.lower()
    if "interface" in lowered or name.startswith("I"):
        return "interface"
    if "type alias" in lowered:
        return "type"
    if "enumeration" in lowered or name.endswith("Enum"):
        return "enum"
    if "function" in lowered:
        return "function"
    return "class"


def extract_description(lines: List[str]) -> str:
    """Prose between the name line and the first heading or code fence."""
    collected: List[str] = []
    for raw in lines:
        if raw.startswith("#") or raw.startswith("```"):
            break
        line = raw.strip()
        if not line or line.startswith("|") or _BULLET_LINE.match(line) or _LABEL_LINE.match(line):
            continue
        collected.append(line)
    return clean_markup(" ".join(collected))


def extract_extends(section: str) -> Optional[str]:
    match = _EXTENDS_RE.search(section)
    return match.group(1) if match else None


def extract_implements(section: str) -> List[str]:
    match = _IMPLEMENTS_RE.search(section)
    if not match:
        return []
    names = []
    for part in clean_markup(match.group(1)).split(","):
        item = part.strip().strip("`[]*_-• ").strip()
        if item:
            names.append(item)
    return names


def extract_decorators(text: str) -> List[str]:
    found: List[str] = []
    for name in _DECORATOR_RE.findall(text):
        if name not in found:
            found.append(name)
    return found


def _member_heading_name(heading: str) -> Tuple[Optional[str], Set[str]]:
    """Return the member name in a heading and any modifier words before it."""
    words = clean_markup(heading).replace("•", " ").strip("*_ ").split()
    modifiers: Set[str] = set()
    while len(words) > 1 and words[0].lower() in MODIFIERS:
        modifiers.add(words.pop(0).lower())
    if not words:
        return None, modifiers
    match = re.match(r"[\W_]*(\w+)", words[0])
    return (match.group(1) if match else None), modifiers


def extract_members(section: str) -> List[Member]:
    """Collect members from 4th/5th level headings and signature fences."""
    members: List[Member] = []

    for match in _MEMBER_HEADING.finditer(section):
        name, modifiers = _member_heading_name(match.group(2))
        if not name or name in MEMBER_LABELS:
            continue
        body_start = match.end()
        end = _BLOCK_END.search(section, body_start)
        block = section[match.start(): end.start() if end else len(section)]
        members.append(parse_member_block(name, block, modifiers))

    known = {member.name for member in members}
    for lang, body, _pos in _iter_fences(section):
        if lang not in _SIGNATURE_FENCE_LANGS:
            continue
        signature = body.strip().split("\n", 1)[0].strip()
        match = _SIGNATURE_RE.match(signature)
        if not match or match.group(1) in known:
            continue
        known.add(match.group(1))
        members.append(parse_member_from_signature(signature, body))

    return members


def _iter_fences(text: str) -> Iterator[Tuple[str, str, int]]:
    for match in _FENCE_RE.finditer(text):
        yield match.group(1).lower(), match.group(2), match.start()


def first_fence_line(block: str) -> str:
    for _lang, body, _pos in _iter_fences(block):
        stripped = body.strip()
        if stripped:
            return stripped.split("\n", 1)[0].strip()
        return ""
    return ""


def parse_member_block(name: str, block: str, modifiers: Optional[Set[str]] = None) -> Member:
    modifiers = modifiers or set()
    signature = first_fence_line(block)
    lines = block.split("\n")

    returns = extract_returns(block) or returns_from_signature(signature)
    return Member(
        name=name,
        kind=detect_member_kind(name, signature, block, modifiers),
        signature=signature,
        visibility=detect_visibility(signature, block, modifiers),
        is_static="static" in modifiers
        or bool(re.search(r"\bstatic\b", signature))
        or bool(re.search(r"`static`|\*\*static\*\*", block, re.IGNORECASE)),
        is_async=is_async_signature(signature, returns),
        description=extract_description(lines[1:]),
        params=parse_params(block, signature),
        returns=returns,
        decorators=extract_decorators(block),
        example_code=extract_example(block),
    )


def parse_member_from_signature(signature: str, context: str) -> Member:
    """Build a member from a bare signature fence with no heading of its own."""
    name = _SIGNATURE_RE.match(signature).group(1)
    returns = returns_from_signature(signature)
    constructor = name in ("constructor", "new") or bool(_CONSTRUCTOR_SIGNATURE.match(signature))
    return Member(
        name=name,
        kind="constructor" if constructor else "method",
        signature=signature,
        visibility=detect_visibility(signature, "", set()),
        is_static=bool(re.search(r"\bstatic\b", signature)),
        is_async=is_async_signature(signature, returns),
        params=parse_params("", signature),
        returns=returns,
        decorators=extract_decorators(context),
    )


def detect_member_kind(name: str, signature: str, block: str, modifiers: Set[str]) -> str:
    if name in ("constructor", "new") or _CONSTRUCTOR_SIGNATURE.match(signature):
        return "constructor"
    if "(" not in signature and "method" not in block.lower():
        return "property"
    if modifiers & {"get", "set"} or _ACCESSOR_RE.search(block):
        return "accessor"
    return "method"


def detect_visibility(signature: str, block: str, modifiers: Set[str]) -> str:
    for level in ("protected", "private"):
        if level in modifiers or re.search(rf"\b{level}\s", signature):
            return level
        if block and re.search(_VISIBILITY_FLAG.format(level), block, re.IGNORECASE):
            return level
    return "public"


def is_async_signature(signature: str, returns: Optional[Returns]) -> bool:
    if re.search(r"\basync\s", signature) or "Promise<" in signature:
        return True
    return bool(returns and "Promise<" in returns.type)


def argument_list(signature: str) -> Optional[str]:
    """Text inside the first balanced parenthesis pair, or ``None``."""
    start = signature.find("(")
    if start == -1:
        return None
    depth = 0
    for index in range(start, len(signature)):
        char = signature[index]
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
            if depth == 0:
                return signature[start + 1: index]
    return signature[start + 1:]


def returns_from_signature(signature: str) -> Optional[Returns]:
    args = argument_list(signature)
    if args is None:
        return None
    tail = signature[signature.find("(") + len(args) + 2:]
    match = re.match(r"\s*:\s*(.+?)\s*(?:\{.*)?;?\s*$", tail)
    if not match or not match.group(1):
        return None
    return Returns(type=match.group(1).rstrip(";").strip())


def _param_from_part(part: str) -> Param:
    default = None
    if " = " in part:
        part, default = part.split(" = ", 1)
    match = _PARAM_RE.match(part.strip())
    if match:
        return Param(
            name=match.group(1),
            type=match.group(3).strip(),
            optional=bool(match.group(2)) or default is not None,
        )
    name = part.strip().lstrip(".").rstrip("?").strip()
    return Param(name=name, optional=part.strip().endswith("?") or default is not None)


def parse_params(block: str, signature: str) -> List[Param]:
    """Parameters from the signature, enriched from bullets and tables.

    Every top-level comma group of the signature's argument list becomes one
    parameter. Bullet lines (``name (type) - description``) and parameter
    table rows only fill in a type or description the signature left empty;
    bullets add new parameters only when the signature has no argument list.
    """
    args = argument_list(signature)
    params = [_param_from_part(part) for part in split_top_level(args)] if args else []
    by_name = {param.name: param for param in params}

    for match in _BULLET_PARAM.finditer(block):
        name, optional_mark, type_text, description = match.groups()
        if not (type_text or description):
            continue
        existing = by_name.get(name)
        if existing is not None:
            if type_text and not existing.type:
                existing.type = type_text.strip("` ")
            if description and not existing.description:
                existing.description = clean_markup(description)
        elif args is None:
            param = Param(
                name=name,
                type=(type_text or "unknown").strip("` "),
                description=clean_markup(description or ""),
                optional=bool(optional_mark) or "optional" in match.group(0),
            )
            params.append(param)
            by_name[name] = param

    for match in _TABLE_PARAM.finditer(block):
        existing = by_name.get(match.group(1))
        if existing is None:
            continue
        type_text = clean_markup(match.group(3) or "")
        description = clean_markup(match.group(4) or "")
        if type_text and not existing.type:
            existing.type = type_text
        if description and not existing.description:
            existing.description = description

    return params


def extract_returns(block: str) -> Optional[Returns]:
    match = _RETURNS_LABEL.search(block) or _RETURNS_HEADING.search(block)
    if not match:
        return None
    text = match.group(1).strip()
    code = re.match(r"[`\[]([^`\]]+)[`\]](?:\([^)]*\))?\s*(?:[-–:]\s*(.*))?$", text)
    if code:
        return Returns(type=code.group(1).strip(), description=clean_markup(code.group(2) or ""))
    parts = re.split(r"\s[-–]\s", text, maxsplit=1)
    description = parts[1] if len(parts) > 1 else ""
    return Returns(type=clean_markup(parts[0]), description=clean_markup(description))


def extract_example(block: str) -> Optional[str]:
    match = _EXAMPLE_RE.search(block)
    return match.group(1).strip() if match else None
