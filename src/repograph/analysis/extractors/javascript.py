"""JavaScript entity extractor (also the common core of the TypeScript extractor)."""

from __future__ import annotations

from typing import List, Optional, Tuple

from tree_sitter import Node

from ..entities import CodeEntity, EntityMetadata, EntityType, Parameter, Visibility
from ..grammars import SyntaxTree
from .base import (
    extract_parameters,
    extraction_boundary,
    find_child,
    get_location,
    get_text,
    leading_doc_comment,
    leading_tokens,
    strip_type_annotation,
    traverse,
)

# "function" is the pre-0.21 grammar name for function expressions
FUNCTION_NODE_TYPES = (
    "function_declaration",
    "generator_function_declaration",
    "function",
    "function_expression",
)
VARIABLE_NODE_TYPES = ("lexical_declaration", "variable_declaration")
CLASS_NODE_TYPES = ("class_declaration", "class")
FUNCTION_VALUE_TYPES = (
    "arrow_function",
    "function",
    "function_expression",
    "generator_function",
)
_ACCESSIBILITY = {
    "public": Visibility.PUBLIC,
    "private": Visibility.PRIVATE,
    "protected": Visibility.PROTECTED,
}


def parameter_name(node: Node, source_code: bytes) -> Optional[str]:
    """Name of a JS/TS formal parameter; destructuring patterns are skipped."""
    if node.type == "identifier":
        return get_text(node, source_code)
    if node.type == "assignment_pattern":
        left = node.child_by_field_name("left")
        if left is not None and left.type == "identifier":
            return get_text(left, source_code)
        return None
    if node.type == "rest_pattern":
        ident = find_child(node, "identifier")
        return f"...{get_text(ident, source_code)}" if ident else None
    if node.type in ("required_parameter", "optional_parameter"):
        pattern = node.child_by_field_name("pattern")
        if pattern is None:
            pattern = find_child(node, "identifier")
        if pattern is None or pattern.type == "this":
            return None
        return parameter_name(pattern, source_code)
    return None


def parameter_type(node: Node, source_code: bytes) -> Optional[str]:
    """Declared type of a TypeScript parameter (None in plain JavaScript)."""
    if node.type not in ("required_parameter", "optional_parameter"):
        return None
    type_node = node.child_by_field_name("type")
    if type_node is None:
        return None
    return strip_type_annotation(get_text(type_node, source_code))


def type_name(node: Node, source_code: bytes) -> str:
    """Readable name for a heritage entry (`Foo`, `ns.Foo`, `Foo<T>` -> `Foo`)."""
    if node.type == "generic_type":
        name = node.child_by_field_name("name") or (
            node.named_children[0] if node.named_children else None
        )
        if name is not None:
            return get_text(name, source_code)
    return get_text(node, source_code)


def class_heritage(node: Node, source_code: bytes) -> Tuple[Optional[str], Tuple[str, ...]]:
    """(extends name, implements names) from a class's heritage clause."""
    heritage = find_child(node, "class_heritage")
    if heritage is None:
        return None, ()

    extends_from: Optional[str] = None
    extends_clause = find_child(heritage, "extends_clause")
    if extends_clause is not None:
        value = extends_clause.child_by_field_name("value")
        if value is None and extends_clause.named_children:
            value = extends_clause.named_children[0]
        if value is not None:
            extends_from = type_name(value, source_code)
    elif heritage.children and heritage.children[0].type == "extends":
        named = heritage.named_children
        if named:
            extends_from = type_name(named[0], source_code)

    implements: Tuple[str, ...] = ()
    implements_clause = find_child(heritage, "implements_clause")
    if implements_clause is not None:
        implements = tuple(
            type_name(child, source_code) for child in implements_clause.named_children
        )
    return extends_from, implements


def return_type(node: Node, source_code: bytes) -> Optional[str]:
    type_node = node.child_by_field_name("return_type")
    if type_node is None:
        return None
    return strip_type_annotation(get_text(type_node, source_code))


def function_parameters(node: Node, source_code: bytes) -> Tuple[Parameter, ...]:
    params = node.child_by_field_name("parameters")
    if params is not None:
        return extract_parameters(params, source_code, parameter_name, parameter_type)
    # Arrow functions with a single bare parameter: `x => x * 2`
    single = node.child_by_field_name("parameter")
    if single is not None:
        name = parameter_name(single, source_code)
        return (Parameter(name=name),) if name else ()
    return ()


class JavaScriptExtractor:
    """Extract functions, classes and methods from a JavaScript (or TypeScript) tree."""

    @extraction_boundary
    def extract_entities(self, tree: SyntaxTree) -> List[CodeEntity]:
        """
        Walk the tree and emit entities in source order.

        Functions, variable-bound function/arrow expressions and classes are
        found at any depth; a class is immediately followed by its methods.
        """
        entities: List[CodeEntity] = []

        def visit(node: Node) -> bool:
            if node.type in FUNCTION_NODE_TYPES:
                entity = self._extract_function(node, tree)
                if entity:
                    entities.append(entity)
            elif node.type in VARIABLE_NODE_TYPES:
                entities.extend(self._extract_variable_functions(node, tree))
            elif node.type in CLASS_NODE_TYPES:
                entities.extend(self.extract_class(node, tree))
            return True

        traverse(tree.root_node, visit)
        return entities

    def _extract_function(self, node: Node, tree: SyntaxTree) -> Optional[CodeEntity]:
        name_node = node.child_by_field_name("name")
        if name_node is None:
            return None
        source = tree.source
        return CodeEntity.create(
            name=get_text(name_node, source),
            type=EntityType.FUNCTION,
            language=tree.language,
            file_path=tree.file_path,
            location=get_location(node),
            metadata=EntityMetadata(
                parameters=function_parameters(node, source),
                is_async="async" in leading_tokens(node, name_node),
                return_type=return_type(node, source),
                docstring=leading_doc_comment(node, source),
            ),
        )

    def _extract_variable_functions(self, node: Node, tree: SyntaxTree) -> List[CodeEntity]:
        """Arrow functions and function expressions bound by const/let/var."""
        source = tree.source
        result: List[CodeEntity] = []
        for declarator in node.children:
            if declarator.type != "variable_declarator":
                continue
            name_node = declarator.child_by_field_name("name")
            value_node = declarator.child_by_field_name("value")
            if name_node is None or value_node is None:
                continue
            if value_node.type not in FUNCTION_VALUE_TYPES:
                continue
            result.append(
                CodeEntity.create(
                    name=get_text(name_node, source),
                    type=EntityType.FUNCTION,
                    language=tree.language,
                    file_path=tree.file_path,
                    location=get_location(declarator),
                    metadata=EntityMetadata(
                        parameters=function_parameters(value_node, source),
                        is_async=bool(value_node.children)
                        and value_node.children[0].type == "async",
                        return_type=return_type(value_node, source),
                        docstring=leading_doc_comment(node, source),
                    ),
                )
            )
        return result

    def extract_class(
        self, node: Node, tree: SyntaxTree, is_abstract: bool = False
    ) -> List[CodeEntity]:
        """Extract a class entity followed by its method entities."""
        name_node = node.child_by_field_name("name")
        if name_node is None:
            return []
        source = tree.source
        extends_from, implements = class_heritage(node, source)

        class_entity = CodeEntity.create(
            name=get_text(name_node, source),
            type=EntityType.CLASS,
            language=tree.language,
            file_path=tree.file_path,
            location=get_location(node),
            metadata=EntityMetadata(
                extends_from=extends_from,
                implements=implements,
                is_abstract=is_abstract,
                docstring=leading_doc_comment(node, source),
            ),
        )
        entities = [class_entity]

        body = node.child_by_field_name("body")
        if body is not None:
            for child in body.children:
                if child.type in ("method_definition", "method_signature", "abstract_method_signature"):
                    method = self._extract_method(child, tree, class_entity.id)
                    if method:
                        entities.append(method)
        return entities

    def _extract_method(
        self, node: Node, tree: SyntaxTree, parent_id: str
    ) -> Optional[CodeEntity]:
        name_node = node.child_by_field_name("name")
        if name_node is None:
            return None
        source = tree.source
        name = get_text(name_node, source)
        tokens = leading_tokens(node, name_node)

        visibility: Optional[Visibility] = None
        modifier = find_child(node, "accessibility_modifier")
        if modifier is not None and modifier.start_byte < name_node.start_byte:
            visibility = _ACCESSIBILITY.get(get_text(modifier, source).strip())
        elif name_node.type == "private_property_identifier":
            visibility = Visibility.PRIVATE

        return CodeEntity.create(
            name=name,
            type=EntityType.METHOD,
            language=tree.language,
            file_path=tree.file_path,
            location=get_location(node),
            metadata=EntityMetadata(
                parameters=function_parameters(node, source),
                is_static="static" in tokens,
                is_async="async" in tokens,
                is_abstract=node.type == "abstract_method_signature" or "abstract" in tokens,
                visibility=visibility,
                return_type=return_type(node, source),
                docstring=leading_doc_comment(node, source),
            ),
            parent_id=parent_id,
        )
