"""Unit tests for the JavaScript and TypeScript entity extractors."""

from __future__ import annotations

import pytest

from repograph.analysis.entities import EntityType, Language, Parameter, Visibility
from repograph.analysis.extractors.javascript import JavaScriptExtractor
from repograph.analysis.extractors.typescript import TypeScriptExtractor
from repograph.analysis.grammars import GrammarRegistry

JS_SOURCE = """\
/** Adds numbers. */
export function add(a, b = 1, ...rest) {
  return a + b;
}
const mul = (x, y) => x * y;
const sq = async x => x * x;
let label = "not a function";

class Animal {}

class Dog extends Animal {
  static create() {
    return new Dog();
  }
  async bark(times) {}
  #secret() {}
}
"""

TS_SOURCE = """\
interface Shape extends Base {
  area(): number;
  name: string;
}

type Id = string;

enum Color {
  Red,
  Green,
}

abstract class AbstractShape implements Shape {
  abstract area(): number;
}

class Circle extends AbstractShape implements Shape, Drawable {
  private radius: number;
  constructor(r: number) {
    super();
  }
  public area(): number {
    return 3.14;
  }
  protected static helper(x?: number): void {}
}

export function makeCircle(r: number): Circle {
  return new Circle(r);
}
"""


@pytest.fixture(scope="module")
def registry() -> GrammarRegistry:
    r = GrammarRegistry()
    r.initialize()
    yield r
    r.cleanup()


@pytest.fixture
def js_entities(registry: GrammarRegistry):
    return JavaScriptExtractor().extract_entities(registry.parse(JS_SOURCE, "src/animals.js"))


@pytest.fixture
def ts_entities(registry: GrammarRegistry):
    return TypeScriptExtractor().extract_entities(registry.parse(TS_SOURCE, "src/shapes.ts"))


def _by_name(entities):
    return {e.name: e for e in entities}


# --- JavaScript ---


def test_js_functions_and_arrows(js_entities) -> None:
    by_name = _by_name(js_entities)
    assert by_name["add"].type is EntityType.FUNCTION
    assert by_name["mul"].type is EntityType.FUNCTION
    assert by_name["sq"].type is EntityType.FUNCTION
    assert "label" not in by_name
    assert all(e.language is Language.JAVASCRIPT for e in js_entities)


def test_js_parameters(js_entities) -> None:
    by_name = _by_name(js_entities)
    assert by_name["add"].metadata.parameters == (
        Parameter("a"),
        Parameter("b"),
        Parameter("...rest"),
    )
    assert by_name["mul"].metadata.parameters == (Parameter("x"), Parameter("y"))
    assert by_name["sq"].metadata.parameters == (Parameter("x"),)


def test_js_async_and_doc_comment(js_entities) -> None:
    by_name = _by_name(js_entities)
    assert by_name["sq"].metadata.is_async is True
    assert by_name["mul"].metadata.is_async is False
    assert by_name["add"].metadata.docstring == "Adds numbers."


def test_js_class_with_methods(js_entities) -> None:
    by_name = _by_name(js_entities)
    dog = by_name["Dog"]
    assert dog.type is EntityType.CLASS
    assert dog.metadata.extends_from == "Animal"
    assert by_name["Animal"].metadata.extends_from is None

    create, bark, secret = by_name["create"], by_name["bark"], by_name["#secret"]
    for method in (create, bark, secret):
        assert method.type is EntityType.METHOD
        assert method.parent_id == dog.id
    assert create.metadata.is_static is True
    assert create.metadata.is_async is False
    assert bark.metadata.is_async is True
    assert bark.metadata.parameters == (Parameter("times"),)
    assert secret.metadata.visibility is Visibility.PRIVATE


def test_js_class_is_followed_by_its_methods(js_entities) -> None:
    names = [e.name for e in js_entities]
    dog_index = names.index("Dog")
    assert names[dog_index + 1 : dog_index + 4] == ["create", "bark", "#secret"]


def test_js_ids_are_path_line_name(js_entities) -> None:
    by_name = _by_name(js_entities)
    assert by_name["add"].id == "src/animals.js:2:add"
    assert by_name["Dog"].id == "src/animals.js:11:Dog"
    assert len({e.id for e in js_entities}) == len(js_entities)


# --- TypeScript ---


def test_ts_interface_and_signatures(ts_entities) -> None:
    by_name = _by_name(ts_entities)
    shape = by_name["Shape"]
    assert shape.type is EntityType.INTERFACE
    assert shape.metadata.extends_from == "Base"

    members = [e for e in ts_entities if e.parent_id == shape.id]
    assert [(m.name, m.type) for m in members] == [
        ("area", EntityType.METHOD),
        ("name", EntityType.METHOD),
    ]
    assert members[0].metadata.return_type == "number"
    assert members[1].metadata.return_type == "string"


def test_ts_type_alias_and_enum_proxy_classification(ts_entities) -> None:
    by_name = _by_name(ts_entities)
    assert by_name["Id"].type is EntityType.INTERFACE
    assert by_name["Color"].type is EntityType.CLASS


def test_ts_abstract_class(ts_entities) -> None:
    by_name = _by_name(ts_entities)
    abstract = by_name["AbstractShape"]
    assert abstract.type is EntityType.CLASS
    assert abstract.metadata.is_abstract is True
    assert abstract.metadata.implements == ("Shape",)
    abstract_area = [e for e in ts_entities if e.parent_id == abstract.id]
    assert [m.name for m in abstract_area] == ["area"]
    assert abstract_area[0].metadata.is_abstract is True


def test_ts_class_heritage(ts_entities) -> None:
    circle = _by_name(ts_entities)["Circle"]
    assert circle.metadata.extends_from == "AbstractShape"
    assert circle.metadata.implements == ("Shape", "Drawable")


def test_ts_method_modifiers_and_types(ts_entities) -> None:
    circle = _by_name(ts_entities)["Circle"]
    methods = {e.name: e for e in ts_entities if e.parent_id == circle.id}
    assert set(methods) == {"constructor", "area", "helper"}

    assert methods["constructor"].metadata.parameters == (Parameter("r", "number"),)
    assert methods["area"].metadata.visibility is Visibility.PUBLIC
    assert methods["area"].metadata.return_type == "number"
    helper = methods["helper"]
    assert helper.metadata.visibility is Visibility.PROTECTED
    assert helper.metadata.is_static is True
    assert helper.metadata.parameters == (Parameter("x", "number"),)
    assert helper.metadata.return_type == "void"


def test_ts_includes_the_javascript_entity_set(registry: GrammarRegistry, ts_entities) -> None:
    """Every entity the JavaScript extractor finds in a TS tree is kept."""
    tree = registry.parse(TS_SOURCE, "src/shapes.ts")
    js_ids = [e.id for e in JavaScriptExtractor().extract_entities(tree)]
    ts_ids = [e.id for e in ts_entities]
    assert ts_ids[: len(js_ids)] == js_ids
    function = _by_name(ts_entities)["makeCircle"]
    assert function.type is EntityType.FUNCTION
    assert function.language is Language.TYPESCRIPT
    assert function.metadata.return_type == "Circle"


def test_tsx_component(registry: GrammarRegistry) -> None:
    source = "export const App = (props: Props) => <div>{props.title}</div>;\n"
    entities = TypeScriptExtractor().extract_entities(registry.parse(source, "src/App.tsx"))
    assert [(e.name, e.type) for e in entities] == [("App", EntityType.FUNCTION)]
    assert entities[0].metadata.parameters == (Parameter("props", "Props"),)


def test_scenario_class_inheritance_entities(registry: GrammarRegistry) -> None:
    source = "class Animal {}\nclass Dog extends Animal {}\n"
    entities = JavaScriptExtractor().extract_entities(registry.parse(source, "zoo.js"))
    assert [(e.name, e.type) for e in entities] == [
        ("Animal", EntityType.CLASS),
        ("Dog", EntityType.CLASS),
    ]
    assert entities[1].metadata.extends_from == "Animal"
