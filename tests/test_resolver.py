import pytest

from doc2raml.errors import AliasCycleError, InvalidTypeExpressionError, MalformedMapError, TypeConflictError
from doc2raml.schema.registry import MapType, PrimitiveType, TypeKind, TypeRegistry
from doc2raml.schema.resolver import TypeResolver, map_type_name


@pytest.fixture
def registry():
    r = TypeRegistry()
    r.add(PrimitiveType(name="uuid", base="string"))
    return r


@pytest.fixture
def resolver(registry):
    return TypeResolver(registry)


class TestScalars:
    @pytest.mark.parametrize("expression, name", [
        ("string", "string"),
        ("str", "string"),
        ("int16", "integer"),
        ("uint64", "integer"),
        ("float64", "number"),
        ("bool", "boolean"),
        ("time.Time", "datetime"),
        ("date", "date-only"),
        ("bytes", "file"),
    ])
    def test_scalar_table(self, resolver, expression, name):
        d = resolver.resolve(expression)
        assert d.kind == TypeKind.SCALAR
        assert d.name == name
        assert d.dependents == []

    def test_pointer_is_forwarded(self, resolver):
        d = resolver.resolve("*time.Time")
        assert (d.kind, d.name) == (TypeKind.SCALAR, "datetime")

    def test_primitive_depends_on_itself(self, resolver):
        d = resolver.resolve("uuid")
        assert (d.kind, d.name, d.dependents) == (TypeKind.SCALAR, "uuid", ["uuid"])

    @pytest.mark.parametrize("expression", ["interface{}", "any", "object"])
    def test_any(self, resolver, expression):
        d = resolver.resolve(expression)
        assert (d.kind, d.name, d.dependents) == (TypeKind.ANY, "any", [])

    @pytest.mark.parametrize("expression", ["", "nil", "None"])
    def test_nil(self, resolver, expression):
        assert resolver.resolve(expression).kind == TypeKind.NIL


class TestComposites:
    def test_array(self, resolver):
        d = resolver.resolve("[]Book")
        assert d.kind == TypeKind.ARRAY
        assert d.name == "Book[]"
        assert "Book" in d.dependents

    def test_nested_array(self, resolver):
        d = resolver.resolve("[][]int")
        assert (d.kind, d.name) == (TypeKind.ARRAY, "integer[][]")

    def test_named_object(self, resolver):
        d = resolver.resolve("Book")
        assert (d.kind, d.name, d.dependents) == (TypeKind.OBJECT, "Book", ["Book"])

    def test_map_registers_one_definition(self, resolver, registry):
        before = len(registry)
        d = resolver.resolve("map[string]int")
        assert d.kind == TypeKind.OBJECT
        assert d.name == "map_string_integer"
        assert len(registry) == before + 1
        assert isinstance(registry.get("map_string_integer"), MapType)

        again = resolver.resolve("map[string]int")
        assert again == d
        assert len(registry) == before + 1

    def test_map_names_that_collide_conflict(self, resolver, registry):
        d = resolver.resolve("map[string][]int")
        assert d.name == "map_string_integerArray"
        with pytest.raises(TypeConflictError):
            resolver.resolve("map[string]integerArray")
        assert registry.get("map_string_integerArray").value.name == "integer[]"

    def test_equivalent_maps_share_a_definition(self, resolver, registry):
        registry.add_alias("BookId", "uuid")
        first = resolver.resolve("map[string]uuid")
        assert resolver.resolve("map[string]*BookId") == first

    def test_map_dependents(self, resolver):
        d = resolver.resolve("map[uuid][]Book")
        assert d.name == "map_uuid_BookArray"
        assert d.dependents == ["map_uuid_BookArray", "uuid", "Book"]

    def test_union(self, resolver):
        d = resolver.resolve("Cat | Dog")
        assert d.kind == TypeKind.OBJECT
        assert d.name == "Cat | Dog"
        assert d.dependents == ["Cat", "Dog"]

    def test_union_of_mixed_kinds_is_any(self, resolver):
        d = resolver.resolve("[]int | Book")
        assert d.kind == TypeKind.ANY
        assert d.name == "integer[] | Book"

    def test_map_type_name(self):
        assert map_type_name("string", "Book[]") == "map_string_BookArray"


class TestAliases:
    def test_alias_is_followed(self, resolver, registry):
        registry.add_alias("BookId", "uuid")
        assert resolver.resolve("BookId").name == "uuid"

    def test_alias_to_composite(self, resolver, registry):
        registry.add_alias("Books", "[]Book")
        assert resolver.resolve("Books").name == "Book[]"

    def test_self_alias_fails(self, resolver, registry):
        registry.add_alias("X", "X")
        with pytest.raises(AliasCycleError):
            resolver.resolve("X")

    def test_alias_loop_fails(self, resolver, registry):
        registry.add_alias("A", "B")
        registry.add_alias("B", "A")
        with pytest.raises(AliasCycleError):
            resolver.resolve("A")


class TestInvalid:
    @pytest.mark.parametrize("expression", ["map[string", "map[]int", "map[string]"])
    def test_malformed_map(self, resolver, expression):
        with pytest.raises(MalformedMapError):
            resolver.resolve(expression)

    @pytest.mark.parametrize("expression", ["Book<int>", "*", "my book"])
    def test_invalid_expression(self, resolver, expression):
        with pytest.raises(InvalidTypeExpressionError):
            resolver.resolve(expression)


class TestIdempotence:
    @pytest.mark.parametrize("expression", [
        "string",
        "*time.Time",
        "int16",
        "uuid",
        "Book",
        "[]Book",
        "[][]int",
        "map[string]Book",
        "map[int][]Book",
        "Cat | Dog",
        "int | string",
        "[]int | Book",
        "interface{}",
        "",
    ])
    def test_resolving_the_canonical_name(self, resolver, registry, expression):
        first = resolver.resolve(expression)
        count = len(registry)
        second = resolver.resolve(first.name)
        assert second.name == first.name
        assert second.kind == first.kind
        assert set(second.dependents) <= set(first.dependents)
        assert len(registry) == count
