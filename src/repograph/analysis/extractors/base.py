"""Tree-walk utilities shared by the per-language extractors."""

from __future__ import annotations

import functools
import logging
import re
from typing import Callable, Iterable, List, Optional, Tuple

from tree_sitter import Node

from ..entities import CodeEntity, Location, Parameter, Position
from ..errors import ExtractionError
from ..grammars import SyntaxTree

logger = logging.getLogger(__name__)

NameRule = Callable[[Node, bytes], Optional[str]]
TypeRule = Callable[[Node, bytes], Optional[str]]
Extract = Callable[..., List[CodeEntity]]


def get_text(node: Node, source_code: bytes) -> str:
    """Get text content of a node."""
    return source_code[node.start_byte : node.end_byte].decode("utf-8", errors="replace")


def get_location(node: Node) -> Location:
    """Node span as 1-based lines and 0-based columns."""
    start_row, start_col = node.start_point
    end_row, end_col = node.end_point
    return Location(
        start=Position(line=start_row + 1, column=start_col),
        end=Position(line=end_row + 1, column=end_col),
    )


def find_child(node: Node, type_: str) -> Optional[Node]:
    """First direct child of the given type."""
    for child in node.children:
        if child.type == type_:
            return child
    return None


def find_children(node: Node, type_: str) -> List[Node]:
    return [child for child in node.children if child.type == type_]


def traverse(node: Node, visitor: Callable[[Node], Optional[bool]]) -> None:
    """
    Pre-order walk. If visitor returns False the node's subtree is skipped.

    Iterative so deeply nested sources do not hit the recursion limit.
    """
    stack = [node]
    while stack:
        current = stack.pop()
        if visitor(current) is False:
            continue
        stack.extend(reversed(current.children))


def leading_tokens(node: Node, stop: Optional[Node]) -> List[str]:
    """Types of the children that appear before `stop` (keywords like static/async)."""
    tokens: List[str] = []
    for child in node.children:
        if stop is not None and child.start_byte >= stop.start_byte:
            break
        tokens.append(child.type)
    return tokens


def strip_type_annotation(text: Optional[str]) -> Optional[str]:
    """':  Foo' -> 'Foo' (TypeScript type_annotation nodes keep the colon)."""
    if text is None:
        return None
    stripped = text.lstrip()
    if stripped.startswith(":"):
        stripped = stripped[1:]
    return stripped.strip() or None


def extract_parameters(
    params_node: Optional[Node],
    source_code: bytes,
    name_rule: NameRule,
    type_rule: Optional[TypeRule] = None,
) -> Tuple[Parameter, ...]:
    """
    Walk the direct children of a parameter list node.

    Args:
        params_node: The parameter list node (None yields no parameters).
        source_code: Source bytes of the file.
        name_rule: Derives a parameter name from a child node, or None to skip it.
        type_rule: Derives an optional declared-type string from a child node.
    """
    if params_node is None:
        return ()
    params: List[Parameter] = []
    for child in params_node.children:
        name = name_rule(child, source_code)
        if not name:
            continue
        param_type = type_rule(child, source_code) if type_rule else None
        params.append(Parameter(name=name, type=param_type))
    return tuple(params)


_DOC_LINE_PREFIX = re.compile(r"^\s*\*\s?")


def clean_block_comment(text: str) -> Optional[str]:
    """Strip /** */ markers and leading '*' gutters from a doc comment."""
    body = text.strip()
    if body.startswith("/**"):
        body = body[3:]
    elif body.startswith("/*"):
        body = body[2:]
    if body.endswith("*/"):
        body = body[:-2]
    lines = [_DOC_LINE_PREFIX.sub("", line).rstrip() for line in body.splitlines()]
    cleaned = "\n".join(lines).strip()
    return cleaned or None


def leading_doc_comment(
    node: Node,
    source_code: bytes,
    wrapper_types: Iterable[str] = ("export_statement",),
) -> Optional[str]:
    """
    Return the /** ... */ comment right before a declaration, if any.

    When the declaration sits inside a wrapper (e.g. `export class ...`), the
    comment precedes the wrapper instead.
    """
    anchor = node
    parent = node.parent
    if parent is not None and parent.type in tuple(wrapper_types):
        anchor = parent
    sibling = anchor.prev_sibling
    if sibling is None or sibling.type not in ("comment", "block_comment"):
        return None
    text = get_text(sibling, source_code)
    if not text.startswith("/**"):
        return None
    return clean_block_comment(text)


def unique_by_id(entities: Iterable[CodeEntity]) -> List[CodeEntity]:
    """Keep the first entity for each id, preserving order."""
    seen: set[str] = set()
    result: List[CodeEntity] = []
    for entity in entities:
        if entity.id in seen:
            logger.debug("Dropping duplicate entity id %s", entity.id)
            continue
        seen.add(entity.id)
        result.append(entity)
    return result


def extract_or_raise(extractor: object, tree: SyntaxTree) -> List[CodeEntity]:
    """
    Run an extractor and surface any internal fault as ExtractionError.

    For extractors guarded by extraction_boundary the undecorated body is
    called, so the caller can record the file as failed instead of receiving
    an empty, successful-looking result.

    Raises:
        ExtractionError: The extractor raised while walking the tree.
    """
    method = getattr(type(extractor), "extract_entities", None)
    unguarded = getattr(method, "__wrapped__", None)
    try:
        if unguarded is not None:
            return unique_by_id(unguarded(extractor, tree))
        return list(extractor.extract_entities(tree))  # type: ignore[attr-defined]
    except Exception as e:
        raise ExtractionError(
            f"{type(extractor).__name__} failed on {getattr(tree, 'file_path', '<unknown>')}: {e}"
        ) from e


def extraction_boundary(extract: Extract) -> Extract:
    """
    Wrap an extract_entities method so no fault escapes it.

    Any exception is logged and the file contributes zero entities. The
    undecorated method stays reachable as ``__wrapped__`` for extract_or_raise.
    """

    @functools.wraps(extract)
    def wrapper(self, tree: SyntaxTree) -> List[CodeEntity]:
        try:
            return unique_by_id(extract(self, tree))
        except Exception:
            logger.exception(
                "%s failed on %s; file contributes no entities",
                type(self).__name__,
                getattr(tree, "file_path", "<unknown>"),
            )
            return []

    return wrapper
