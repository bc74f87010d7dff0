"""Java entity extractor."""

from __future__ import annotations

from typing import List, Optional, Tuple

from tree_sitter import Node

from ..entities import CodeEntity, EntityMetadata, EntityType, Visibility
from ..grammars import SyntaxTree
from .base import (
    extract_parameters,
    extraction_boundary,
    find_child,
    find_children,
    get_location,
    get_text,
    leading_doc_comment,
    traverse,
)

_TYPE_NAME_NODES = ("type_identifier", "scoped_type_identifier")
_ANNOTATION_NODES = ("marker_annotation", "annotation")


def parameter_name(node: Node, source_code: bytes) -> Optional[str]:
    if node.type == "formal_parameter":
        name = node.child_by_field_name("name")
        return get_text(name, source_code) if name else None
    if node.type == "spread_parameter":
        declarator = find_child(node, "variable_declarator")
        name = declarator.child_by_field_name("name") if declarator else None
        return get_text(name, source_code) if name else None
    if node.type == "identifier":
        return get_text(node, source_code)
    return None


def parameter_type(node: Node, source_code: bytes) -> Optional[str]:
    if node.type == "formal_parameter":
        type_node = node.child_by_field_name("type")
        return get_text(type_node, source_code) if type_node else None
    if node.type == "spread_parameter":
        for child in node.named_children:
            if child.type not in ("modifiers", "variable_declarator"):
                return f"{get_text(child, source_code)}..."
    return None


def _type_names(node: Optional[Node], source_code: bytes) -> Tuple[str, ...]:
    """Type names under a superclass/super_interfaces/extends_interfaces node.

    Generic arguments are dropped: `Comparable<Foo>` yields `Comparable`.
    """
    if node is None:
        return ()
    names: List[str] = []

    def visit(n: Node) -> bool:
        if n.type == "type_arguments":
            return False
        if n.type in _TYPE_NAME_NODES:
            names.append(get_text(n, source_code))
            return False
        return True

    traverse(node, visit)
    return tuple(names)


def _modifiers(node: Node, source_code: bytes) -> Tuple[set, Tuple[str, ...]]:
    """(modifier keywords, annotation names) from a declaration's modifiers node."""
    modifiers = find_child(node, "modifiers")
    if modifiers is None:
        return set(), ()
    keywords = set()
    annotations: List[str] = []
    for child in modifiers.children:
        if child.type in _ANNOTATION_NODES:
            annotations.append(get_text(child, source_code).replace("@", "", 1).strip())
        else:
            keywords.add(get_text(child, source_code))
    return keywords, tuple(annotations)


def _visibility(keywords: set) -> Visibility:
    if "private" in keywords:
        return Visibility.PRIVATE
    if "protected" in keywords:
        return Visibility.PROTECTED
    return Visibility.PUBLIC


class JavaExtractor:
    """Extract classes, interfaces, enums and their methods from a Java tree."""

    @extraction_boundary
    def extract_entities(self, tree: SyntaxTree) -> List[CodeEntity]:
        entities: List[CodeEntity] = []

        def visit(node: Node) -> bool:
            if node.type in ("class_declaration", "enum_declaration"):
                entities.extend(self._extract_type(node, tree, EntityType.CLASS))
            elif node.type == "interface_declaration":
                entities.extend(self._extract_type(node, tree, EntityType.INTERFACE))
            return True

        traverse(tree.root_node, visit)
        return entities

    def _extract_type(
        self, node: Node, tree: SyntaxTree, entity_type: EntityType
    ) -> List[CodeEntity]:
        """A class/enum/interface entity followed by its methods and constructors."""
        source = tree.source
        name_node = node.child_by_field_name("name")
        if name_node is None:
            return []

        keywords, annotations = _modifiers(node, source)
        if entity_type is EntityType.INTERFACE:
            extends = _type_names(find_child(node, "extends_interfaces"), source)
            implements: Tuple[str, ...] = ()
        else:
            extends = _type_names(node.child_by_field_name("superclass"), source)
            implements = _type_names(node.child_by_field_name("interfaces"), source)

        type_entity = CodeEntity.create(
            name=get_text(name_node, source),
            type=entity_type,
            language=tree.language,
            file_path=tree.file_path,
            location=get_location(node),
            metadata=EntityMetadata(
                extends_from=extends[0] if extends else None,
                implements=implements,
                is_abstract="abstract" in keywords,
                visibility=_visibility(keywords),
                decorators=annotations,
                docstring=leading_doc_comment(node, source, wrapper_types=()),
            ),
        )
        entities = [type_entity]

        body = node.child_by_field_name("body")
        if body is None:
            return entities
        members = list(body.children)
        # Enum methods live in a nested enum_body_declarations node
        for nested in find_children(body, "enum_body_declarations"):
            members.extend(nested.children)
        for child in members:
            if child.type in ("method_declaration", "constructor_declaration"):
                method = self._extract_method(child, tree, type_entity.id)
                if method:
                    entities.append(method)
        return entities

    def _extract_method(
        self, node: Node, tree: SyntaxTree, parent_id: str
    ) -> Optional[CodeEntity]:
        source = tree.source
        name_node = node.child_by_field_name("name")
        if name_node is not None:
            name = get_text(name_node, source)
        elif node.type == "constructor_declaration":
            name = "constructor"
        else:
            return None

        keywords, annotations = _modifiers(node, source)
        type_node = node.child_by_field_name("type")

        return CodeEntity.create(
            name=name,
            type=EntityType.METHOD,
            language=tree.language,
            file_path=tree.file_path,
            location=get_location(node),
            metadata=EntityMetadata(
                parameters=extract_parameters(
                    node.child_by_field_name("parameters"), source, parameter_name, parameter_type
                ),
                is_static="static" in keywords,
                is_abstract="abstract" in keywords,
                visibility=_visibility(keywords),
                return_type=get_text(type_node, source) if type_node else None,
                decorators=annotations,
                docstring=leading_doc_comment(node, source, wrapper_types=()),
            ),
            parent_id=parent_id,
        )
