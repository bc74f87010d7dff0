"""Python-specific entity extractor using tree-sitter."""

from __future__ import annotations

from typing import List, Optional, Tuple

from tree_sitter import Node

from ..entities import CodeEntity, EntityMetadata, EntityType, Language, Visibility
from ..errors import ExtractionError
from ..grammars import SyntaxTree
from .base import (
    extract_parameters,
    extraction_boundary,
    find_child,
    get_location,
    get_text,
    traverse,
)

_IMPLICIT_PARAMS = ("self", "cls")


def _extract_docstring_from_body(body: Optional[Node], source_code: bytes) -> Optional[str]:
    """Extract docstring from a class/function body (first string in block)."""
    if not body or not body.child_count:
        return None
    first = body.child(0)
    if first.type == "expression_statement":
        expr = first.child(0)
        if expr and expr.type == "string":
            doc = get_text(expr, source_code)
            for q in ('"""', "'''", '"', "'"):
                doc = doc.strip(q)
            return doc.strip() or None
    return None


def parameter_name(node: Node, source_code: bytes) -> Optional[str]:
    if node.type == "identifier":
        return get_text(node, source_code)
    if node.type in ("default_parameter", "typed_default_parameter"):
        name = node.child_by_field_name("name")
        return get_text(name, source_code) if name else None
    if node.type == "typed_parameter":
        # typed_parameter wraps identifier or a splat pattern: `*args: int`
        inner = node.named_children[0] if node.named_children else None
        return parameter_name(inner, source_code) if inner else None
    if node.type == "list_splat_pattern":
        ident = find_child(node, "identifier")
        return f"*{get_text(ident, source_code)}" if ident else None
    if node.type == "dictionary_splat_pattern":
        ident = find_child(node, "identifier")
        return f"**{get_text(ident, source_code)}" if ident else None
    return None


def parameter_type(node: Node, source_code: bytes) -> Optional[str]:
    if node.type not in ("typed_parameter", "typed_default_parameter"):
        return None
    type_node = node.child_by_field_name("type")
    return get_text(type_node, source_code) if type_node else None


def visibility_for(name: str) -> Visibility:
    """Name convention: __x -> private, _x -> protected, __x__ and x -> public."""
    if name.startswith("__") and not name.endswith("__"):
        return Visibility.PRIVATE
    if name.startswith("_") and not name.startswith("__"):
        return Visibility.PROTECTED
    return Visibility.PUBLIC


def _is_class_body(node: Optional[Node]) -> bool:
    return (
        node is not None
        and node.type == "block"
        and node.parent is not None
        and node.parent.type == "class_definition"
    )


def _is_method(node: Node) -> bool:
    """True for a function_definition directly in a class body (decorated or not)."""
    parent = node.parent
    if parent is not None and parent.type == "decorated_definition":
        parent = parent.parent
    return _is_class_body(parent)


def _decorators(node: Node, source_code: bytes) -> Tuple[str, ...]:
    """Decorators from a wrapping decorated_definition and from preceding decorator siblings."""
    decorators: List[str] = []
    parent = node.parent
    if parent is not None and parent.type == "decorated_definition":
        for child in parent.children:
            if child.type == "decorator":
                decorators.append(get_text(child, source_code).replace("@", "", 1).strip())
        return tuple(decorators)

    sibling = node.prev_sibling
    while sibling is not None and sibling.type == "decorator":
        decorators.insert(0, get_text(sibling, source_code).replace("@", "", 1).strip())
        sibling = sibling.prev_sibling
    return tuple(decorators)


def _is_async(node: Node) -> bool:
    if node.type == "async_function_definition":
        return True
    return bool(node.children) and node.children[0].type == "async"


class PythonExtractor:
    """Extract functions, classes and methods from a Python tree."""

    @extraction_boundary
    def extract_entities(self, tree: SyntaxTree) -> List[CodeEntity]:
        if tree.language is not Language.PYTHON:
            raise ExtractionError(f"Not a Python tree: {tree.file_path}")

        entities: List[CodeEntity] = []

        def visit(node: Node) -> bool:
            if node.type == "function_definition":
                # Methods are emitted with their class
                if not _is_method(node):
                    entity = self._extract_function(node, tree)
                    if entity:
                        entities.append(entity)
            elif node.type == "class_definition":
                entities.extend(self._extract_class(node, tree))
            return True

        traverse(tree.root_node, visit)
        return entities

    def _extract_class(self, node: Node, tree: SyntaxTree) -> List[CodeEntity]:
        """Extract a class and its methods."""
        source = tree.source
        name_node = node.child_by_field_name("name")
        if not name_node:
            return []

        extends_from: Optional[str] = None
        superclasses = node.child_by_field_name("superclasses")
        if superclasses:
            first = find_child(superclasses, "identifier")
            if first is not None:
                base_name = get_text(first, source)
                # `object` is implicit
                if base_name != "object":
                    extends_from = base_name

        body = node.child_by_field_name("body")
        class_entity = CodeEntity.create(
            name=get_text(name_node, source),
            type=EntityType.CLASS,
            language=tree.language,
            file_path=tree.file_path,
            location=get_location(node),
            metadata=EntityMetadata(
                extends_from=extends_from,
                decorators=_decorators(node, source),
                docstring=_extract_docstring_from_body(body, source),
            ),
        )
        entities = [class_entity]

        if body:
            for child in body.children:
                func = child
                if child.type == "decorated_definition":
                    func = child.child_by_field_name("definition") or find_child(
                        child, "function_definition"
                    )
                if func is None or func.type != "function_definition":
                    continue
                method = self._extract_function(func, tree, parent_id=class_entity.id)
                if method:
                    entities.append(method)
        return entities

    def _extract_function(
        self,
        node: Node,
        tree: SyntaxTree,
        parent_id: Optional[str] = None,
    ) -> Optional[CodeEntity]:
        """Extract a function, or a method when parent_id is given."""
        source = tree.source
        name_node = node.child_by_field_name("name")
        if not name_node:
            return None
        name = get_text(name_node, source)

        parameters = tuple(
            p
            for p in extract_parameters(
                node.child_by_field_name("parameters"), source, parameter_name, parameter_type
            )
            if p.name not in _IMPLICIT_PARAMS
        )
        decorators = _decorators(node, source)
        return_node = node.child_by_field_name("return_type")

        return CodeEntity.create(
            name=name,
            type=EntityType.METHOD if parent_id else EntityType.FUNCTION,
            language=tree.language,
            file_path=tree.file_path,
            location=get_location(node),
            metadata=EntityMetadata(
                parameters=parameters,
                decorators=decorators,
                is_async=_is_async(node),
                is_static=bool(parent_id)
                and ("staticmethod" in decorators or "classmethod" in decorators),
                visibility=visibility_for(name),
                return_type=get_text(return_node, source) if return_node else None,
                docstring=_extract_docstring_from_body(node.child_by_field_name("body"), source),
            ),
            parent_id=parent_id,
        )
