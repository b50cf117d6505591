"""Tests for the zod definition parser and structural comparison."""

import pytest

from zarv.exceptions import ValidationError, ZodParseError
from zarv.models.diff import FieldChangeType
from zarv.utils.zod_parser import (
    MAX_NESTING_DEPTH,
    ROOT_PATH,
    compare_structures,
    flatten_fields,
    parse_schema,
    tokenize,
)

API_RESPONSE = """z.object({
  success: z.boolean(),
  data: z.object({
    items: z.array(
      z.object({
        id: z.string().uuid(),
        name: z.string(),
        price: z.number().positive(),
        quantity: z.number().int().min(0)
      })
    ),
    total: z.number().int().min(0),
  }),
  meta: z.object({
    requestId: z.string(),
    timestamp: z.number()
  }).optional()
})"""


class TestTokenize:
    """Test the tokenizer."""

    def test_comments_are_skipped(self):
        tokens = tokenize("z // line comment\n/* block */ .string()")

        assert [t.value for t in tokens] == ["z", ".", "string", "(", ")", ""]

    def test_string_escapes(self):
        tokens = tokenize(r'"a\"b"')

        assert tokens[0].kind == "string"
        assert tokens[0].value == 'a"b'

    def test_unterminated_string(self):
        with pytest.raises(ZodParseError):
            tokenize('z.literal("open')

    def test_unterminated_comment(self):
        with pytest.raises(ZodParseError):
            tokenize("z.string() /* never closed")


class TestParsePrimitives:
    """Test parsing scalar types and modifiers."""

    @pytest.mark.parametrize("kind", ["string", "number", "boolean", "date", "any", "unknown"])
    def test_primitive(self, kind):
        node = parse_schema(f"z.{kind}()")

        assert node.kind == kind
        assert node.optional is False

    def test_checks_are_kept(self):
        node = parse_schema('z.string().min(1, { message: "Required" }).email()')

        assert node.kind == "string"
        assert node.checks == ['min(1, { message: "Required" })', "email()"]

    def test_refinement_callback(self):
        node = parse_schema('z.string().refine((v) => v.length > 0, "empty")')

        assert node.checks == ['refine((v) => v.length > 0, "empty")']

    def test_modifiers(self):
        assert parse_schema("z.string().optional()").optional is True
        assert parse_schema("z.string().nullable()").nullable is True
        nullish = parse_schema("z.string().nullish()")
        assert nullish.optional is True
        assert nullish.nullable is True
        assert parse_schema("z.optional(z.number())").optional is True

    def test_default_makes_field_optional(self):
        node = parse_schema('z.string().default("guest")')

        assert node.default == '"guest"'
        assert node.optional is True

    def test_describe(self):
        node = parse_schema('z.number().describe("User id")')

        assert node.description == "User id"


class TestParseComposites:
    """Test parsing composite types."""

    def test_object(self):
        # Given: An object with quoted keys, comments and a trailing comma
        text = """z.object({
          id: z.number(), // primary key
          "display-name": z.string(),
          /* optional flag */
          isActive: z.boolean().optional(),
        })"""

        # When: Parsing
        node = parse_schema(text)

        # Then: Every field is in the shape, in order
        assert node.kind == "object"
        assert list(node.shape) == ["id", "display-name", "isActive"]
        assert node.shape["isActive"].optional is True

    def test_empty_object(self):
        assert parse_schema("z.object({})").shape == {}

    def test_array_forms(self):
        assert parse_schema("z.array(z.string())").type_name == "array<string>"
        assert parse_schema("z.string().array()").type_name == "array<string>"

    def test_enum_and_literal(self):
        assert parse_schema('z.enum(["admin", "user",])').type_name == "enum<admin|user>"
        assert parse_schema('z.literal("admin")').type_name == 'literal<"admin">'

    def test_union_forms(self):
        assert parse_schema("z.union([z.string(), z.number()])").type_name == "union<string|number>"
        assert parse_schema("z.string().or(z.number())").type_name == "union<string|number>"

    def test_discriminated_union(self):
        node = parse_schema(
            'z.discriminatedUnion("type", ['
            'z.object({ type: z.literal("a") }), z.object({ type: z.literal("b") })])'
        )

        assert node.kind == "union"
        assert len(node.items) == 2

    def test_record_and_tuple(self):
        assert parse_schema("z.record(z.number())").type_name == "record<string, number>"
        assert (
            parse_schema("z.record(z.string(), z.boolean())").type_name
            == "record<string, boolean>"
        )
        assert parse_schema("z.tuple([z.string(), z.number()])").type_name == (
            "tuple<string, number>"
        )

    def test_nullable_type_name(self):
        assert parse_schema("z.array(z.string()).nullable()").type_name == "array<string> | null"

    def test_extend_and_partial(self):
        node = parse_schema("z.object({ id: z.number() }).extend({ name: z.string() }).partial()")

        assert list(node.shape) == ["id", "name"]
        assert all(child.optional for child in node.shape.values())

    def test_reference_to_named_schema(self):
        node = parse_schema("z.object({ author: UserSchema })")

        assert node.shape["author"].kind == "reference"
        assert node.shape["author"].type_name == "UserSchema"

    @pytest.mark.parametrize(
        "text",
        [
            "const UserSchema = z.string();",
            "export const UserSchema = z.string()",
            "z.string();",
        ],
    )
    def test_declaration_wrappers(self, text):
        assert parse_schema(text).kind == "string"


class TestParseErrors:
    """Test rejection of unsupported input."""

    @pytest.mark.parametrize(
        "text",
        [
            "",
            "   ",
            "z.object({ id: z.number() ",
            "z.string() extra",
            "z.foo()",
            "z.object({ id z.number() })",
            "z.enum([1, 2])",
            "z.number().partial()",
        ],
    )
    def test_invalid_definitions(self, text):
        with pytest.raises(ZodParseError):
            parse_schema(text)

    def test_error_position(self):
        # Given: A field whose value is not a zod expression
        text = "z.object({\n  id: 42\n})"

        # When: Parsing
        with pytest.raises(ZodParseError) as exc_info:
            parse_schema(text)

        # Then: The error points at the offending token
        assert exc_info.value.line == 2
        assert exc_info.value.column == 7
        assert "line 2, column 7" in str(exc_info.value)

    def test_parse_error_is_validation_error(self):
        with pytest.raises(ValidationError):
            parse_schema("not zod")

    def test_nesting_limit(self):
        deep = "z.array(" * 1500 + "z.string()" + ")" * 1500

        with pytest.raises(ZodParseError) as exc_info:
            parse_schema(deep)
        assert "nested deeper" in str(exc_info.value)

    def test_nesting_at_limit(self):
        levels = MAX_NESTING_DEPTH - 1
        node = parse_schema("z.array(" * levels + "z.string()" + ")" * levels)

        assert node.kind == "array"


class TestFlattenFields:
    """Test field path extraction."""

    def test_nested_paths(self):
        fields = flatten_fields(parse_schema(API_RESPONSE))

        assert fields["success"].type_name == "boolean"
        assert fields["data.items"].type_name == "array<object>"
        assert fields["data.items[].price"].type_name == "number"
        assert fields["meta"].optional is True
        assert fields["meta.requestId"].optional is False
        assert "data.total" in fields

    def test_non_object_root(self):
        fields = flatten_fields(parse_schema("z.array(z.string())"))

        assert list(fields) == [ROOT_PATH]
        assert fields[ROOT_PATH].type_name == "array<string>"

    def test_array_of_objects_root(self):
        fields = flatten_fields(parse_schema("z.array(z.object({ id: z.number() }))"))

        assert set(fields) == {ROOT_PATH, f"{ROOT_PATH}[].id"}


class TestCompareStructures:
    """Test field-level comparison."""

    def test_identical_definitions(self):
        node = parse_schema(API_RESPONSE)

        assert compare_structures(node, node) == []

    def test_all_change_types(self):
        # Given: A field added, one removed, one retyped, one made required
        old = parse_schema(
            "z.object({ id: z.number(), name: z.string(), email: z.string().optional(),"
            " legacy: z.boolean() })"
        )
        new = parse_schema(
            "z.object({ id: z.string(), name: z.string(), email: z.string(),"
            " createdAt: z.string().datetime() })"
        )

        # When: Comparing
        changes = compare_structures(old, new)

        # Then: One entry per change, sorted by path
        assert [(c.path, c.change_type) for c in changes] == [
            ("createdAt", FieldChangeType.FIELD_ADDED),
            ("email", FieldChangeType.OPTIONALITY_CHANGED),
            ("id", FieldChangeType.TYPE_CHANGED),
            ("legacy", FieldChangeType.FIELD_REMOVED),
        ]
        email = changes[1]
        assert (email.old_type, email.new_type) == ("string?", "string")
        retyped = changes[2]
        assert (retyped.old_type, retyped.new_type) == ("number", "string")

    def test_nested_change(self):
        old = parse_schema("z.object({ author: z.object({ id: z.number() }) })")
        new = parse_schema("z.object({ author: z.object({ id: z.number(), name: z.string() }) })")

        changes = compare_structures(old, new)

        assert len(changes) == 1
        assert changes[0].path == "author.name"
        assert changes[0].change_type is FieldChangeType.FIELD_ADDED

    def test_type_and_optionality_change_together(self):
        old = parse_schema("z.object({ age: z.string() })")
        new = parse_schema("z.object({ age: z.number().optional() })")

        changes = compare_structures(old, new)

        assert [c.change_type for c in changes] == [
            FieldChangeType.TYPE_CHANGED,
            FieldChangeType.OPTIONALITY_CHANGED,
        ]
