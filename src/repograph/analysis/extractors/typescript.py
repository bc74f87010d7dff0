"""TypeScript/TSX entity extractor.

Delegates to the JavaScript extractor for the shared entity set, then appends
the TypeScript-only constructs: interfaces (with their signatures), type
aliases (classified as interfaces), enums (classified as classes) and
abstract classes.
"""

from __future__ import annotations

from typing import List, Optional

from tree_sitter import Node

from ..entities import CodeEntity, EntityMetadata, EntityType
from ..grammars import SyntaxTree
from .base import (
    extract_or_raise,
    extraction_boundary,
    find_child,
    get_location,
    get_text,
    leading_doc_comment,
    strip_type_annotation,
    traverse,
)
from .javascript import JavaScriptExtractor, function_parameters, return_type, type_name


class TypeScriptExtractor:
    """Parse TypeScript/TSX trees to extract entities."""

    def __init__(self, javascript: Optional[JavaScriptExtractor] = None) -> None:
        self._javascript = javascript or JavaScriptExtractor()

    @extraction_boundary
    def extract_entities(self, tree: SyntaxTree) -> List[CodeEntity]:
        entities = extract_or_raise(self._javascript, tree)

        def visit(node: Node) -> bool:
            if node.type == "interface_declaration":
                entities.extend(self._extract_interface(node, tree))
            elif node.type == "type_alias_declaration":
                entity = self._extract_named(node, tree, EntityType.INTERFACE)
                if entity:
                    entities.append(entity)
            elif node.type == "enum_declaration":
                entity = self._extract_named(node, tree, EntityType.CLASS)
                if entity:
                    entities.append(entity)
            elif node.type == "abstract_class_declaration":
                entities.extend(self._javascript.extract_class(node, tree, is_abstract=True))
            return True

        traverse(tree.root_node, visit)
        return entities

    def _extract_interface(self, node: Node, tree: SyntaxTree) -> List[CodeEntity]:
        """Interface entity followed by its method and property signatures."""
        name_node = node.child_by_field_name("name")
        if name_node is None:
            return []
        source = tree.source

        extends_from: Optional[str] = None
        extends_clause = find_child(node, "extends_type_clause")
        if extends_clause is not None and extends_clause.named_children:
            extends_from = type_name(extends_clause.named_children[0], source)

        interface = CodeEntity.create(
            name=get_text(name_node, source),
            type=EntityType.INTERFACE,
            language=tree.language,
            file_path=tree.file_path,
            location=get_location(node),
            metadata=EntityMetadata(
                extends_from=extends_from,
                docstring=leading_doc_comment(node, source),
            ),
        )
        entities = [interface]

        body = node.child_by_field_name("body")
        if body is None:
            return entities
        for child in body.children:
            if child.type not in ("method_signature", "property_signature"):
                continue
            member_name = child.child_by_field_name("name")
            if member_name is None:
                continue
            member_type = None
            if child.type == "property_signature":
                annotation = child.child_by_field_name("type")
                if annotation is not None:
                    member_type = strip_type_annotation(get_text(annotation, source))
            else:
                member_type = return_type(child, source)
            entities.append(
                CodeEntity.create(
                    name=get_text(member_name, source),
                    type=EntityType.METHOD,
                    language=tree.language,
                    file_path=tree.file_path,
                    location=get_location(child),
                    metadata=EntityMetadata(
                        parameters=function_parameters(child, source),
                        return_type=member_type,
                    ),
                    parent_id=interface.id,
                )
            )
        return entities

    def _extract_named(
        self, node: Node, tree: SyntaxTree, entity_type: EntityType
    ) -> Optional[CodeEntity]:
        """Type aliases and enums: a bare entity under a proxy classification."""
        name_node = node.child_by_field_name("name")
        if name_node is None:
            return None
        return CodeEntity.create(
            name=get_text(name_node, tree.source),
            type=entity_type,
            language=tree.language,
            file_path=tree.file_path,
            location=get_location(node),
            metadata=EntityMetadata(docstring=leading_doc_comment(node, tree.source)),
        )
