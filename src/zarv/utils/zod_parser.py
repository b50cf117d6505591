"""Recursive-descent parser for zod validator definitions.

Schema definitions are stored as zod source text, e.g.::

    z.object({
      id: z.number(),
      email: z.string().email(),
      tags: z.array(z.string()).optional(),
    })

`parse_schema` turns such text into a `ZodNode` tree without evaluating
it. The tree drives the structural (field-level) comparison of two
definitions; the stored text itself is never rewritten.
"""

from dataclasses import dataclass

from pydantic import BaseModel, Field

from zarv.exceptions import ZodParseError
from zarv.models.diff import FieldChange, FieldChangeType, FieldSignature

# Path used for the definition itself when it is not an object
ROOT_PATH = "$"

# Deepest nesting of schema expressions the parser accepts
MAX_NESTING_DEPTH = 64

PRIMITIVE_KINDS = frozenset(
    {
        "any",
        "bigint",
        "boolean",
        "date",
        "nan",
        "never",
        "null",
        "number",
        "string",
        "symbol",
        "undefined",
        "unknown",
        "void",
    }
)

_OBJECT_FACTORIES = frozenset({"object", "strictObject", "looseObject"})
_DECLARATION_KEYWORDS = frozenset({"const", "let", "var"})
_PUNCTUATION = frozenset("()[]{},:.;=")
_OPENERS = "([{"
_CLOSERS = ")]}"
_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "0": "\0", "b": "\b", "f": "\f", "v": "\v"}


@dataclass(frozen=True)
class Token:
    """Lexical token with its source offsets."""

    kind: str  # ident, string, number, punct, other, eof
    value: str
    start: int
    end: int


def _read_string(text: str, start: int) -> tuple[str, int]:
    quote = text[start]
    parts: list[str] = []
    i = start + 1
    while i < len(text):
        ch = text[i]
        if ch == "\\" and i + 1 < len(text):
            parts.append(_ESCAPES.get(text[i + 1], text[i + 1]))
            i += 2
            continue
        if ch == quote:
            return "".join(parts), i + 1
        if ch == "\n" and quote != "`":
            break
        parts.append(ch)
        i += 1
    raise ZodParseError("Unterminated string", text, start)


def tokenize(text: str) -> list[Token]:
    """Split definition text into tokens.

    Comments and whitespace are dropped. Characters with no meaning to the
    parser (operators inside refinement callbacks, for instance) become
    single-character `other` tokens.

    Args:
        text: Definition source

    Returns:
        Tokens, always ending with an `eof` token

    Raises:
        ZodParseError: On an unterminated string or block comment
    """
    tokens: list[Token] = []
    i = 0
    n = len(text)

    while i < n:
        ch = text[i]
        if ch.isspace():
            i += 1
        elif text.startswith("//", i):
            newline = text.find("\n", i)
            i = n if newline == -1 else newline + 1
        elif text.startswith("/*", i):
            close = text.find("*/", i + 2)
            if close == -1:
                raise ZodParseError("Unterminated comment", text, i)
            i = close + 2
        elif ch in "'\"`":
            value, end = _read_string(text, i)
            tokens.append(Token("string", value, i, end))
            i = end
        elif ch.isdigit() or (ch == "-" and i + 1 < n and text[i + 1].isdigit()):
            end = i + 1
            while end < n and (text[end].isalnum() or text[end] in "._"):
                end += 1
            tokens.append(Token("number", text[i:end], i, end))
            i = end
        elif ch.isalpha() or ch in "_$":
            end = i + 1
            while end < n and (text[end].isalnum() or text[end] in "_$"):
                end += 1
            tokens.append(Token("ident", text[i:end], i, end))
            i = end
        elif ch in _PUNCTUATION:
            tokens.append(Token("punct", ch, i, i + 1))
            i += 1
        else:
            tokens.append(Token("other", ch, i, i + 1))
            i += 1

    tokens.append(Token("eof", "", n, n))
    return tokens


class ZodNode(BaseModel):
    """Node of a parsed zod definition.

    `shape` holds the fields of an object; `items` holds the element of an
    array, the options of a union, the members of a tuple, or the key and
    value of a record; `literals` holds enum members or a literal value.
    """

    kind: str
    optional: bool = False
    nullable: bool = False
    checks: list[str] = Field(default_factory=list)
    default: str | None = None
    description: str | None = None
    shape: dict[str, "ZodNode"] = Field(default_factory=dict)
    items: list["ZodNode"] = Field(default_factory=list)
    literals: list[str] = Field(default_factory=list)
    reference: str | None = None

    @property
    def type_name(self) -> str:
        """Compact type expression, e.g. `array<string>` or `enum<a|b> | null`."""
        if self.kind == "array" and self.items:
            name = f"array<{self.items[0].type_name}>"
        elif self.kind == "union":
            name = f"union<{'|'.join(item.type_name for item in self.items)}>"
        elif self.kind == "tuple":
            name = f"tuple<{', '.join(item.type_name for item in self.items)}>"
        elif self.kind == "record" and len(self.items) == 2:
            name = f"record<{self.items[0].type_name}, {self.items[1].type_name}>"
        elif self.kind == "enum":
            name = f"enum<{'|'.join(self.literals)}>"
        elif self.kind == "literal" and self.literals:
            name = f"literal<{self.literals[0]}>"
        elif self.kind == "reference" and self.reference:
            name = self.reference
        else:
            name = self.kind
        return f"{name} | null" if self.nullable else name


ZodNode.model_rebuild()


class _Parser:
    """Parser state over one definition text."""

    def __init__(self, text: str) -> None:
        self.text = text
        self.tokens = tokenize(text)
        self.index = 0
        self.depth = 0

    # Token helpers

    def peek(self, offset: int = 0) -> Token:
        return self.tokens[min(self.index + offset, len(self.tokens) - 1)]

    def advance(self) -> Token:
        token = self.peek()
        if token.kind != "eof":
            self.index += 1
        return token

    def at(self, kind: str, value: str | None = None) -> bool:
        token = self.peek()
        return token.kind == kind and (value is None or token.value == value)

    def accept(self, kind: str, value: str | None = None) -> Token | None:
        if self.at(kind, value):
            return self.advance()
        return None

    def expect(self, kind: str, value: str | None = None, what: str | None = None) -> Token:
        if not self.at(kind, value):
            expected = what or (repr(value) if value else kind)
            raise self.error(f"Expected {expected}, found {self.describe(self.peek())}")
        return self.advance()

    def error(self, message: str, token: Token | None = None) -> ZodParseError:
        return ZodParseError(message, self.text, (token or self.peek()).start)

    @staticmethod
    def describe(token: Token) -> str:
        if token.kind == "eof":
            return "end of input"
        return repr(token.value)

    def skip_balanced(self) -> str:
        """Consume tokens up to the `)` closing an already consumed `(`.

        Returns:
            The stripped source text between the parentheses
        """
        start = self.peek().start
        depth = 0
        while True:
            token = self.peek()
            if token.kind == "eof":
                raise self.error("Unclosed '('")
            if token.kind == "punct" and token.value in _OPENERS:
                depth += 1
            elif token.kind == "punct" and token.value in _CLOSERS:
                if depth == 0:
                    if token.value != ")":
                        raise self.error(f"Unexpected {token.value!r}")
                    self.advance()
                    return self.text[start : token.start].strip()
                depth -= 1
            self.advance()

    def finish_call(self) -> None:
        """Skip any remaining arguments (e.g. error messages) and the `)`."""
        if self.accept("punct", ","):
            self.skip_balanced()
        else:
            self.expect("punct", ")")

    # Grammar

    def parse_program(self) -> ZodNode:
        self.accept("ident", "export")
        if self.peek().kind == "ident" and self.peek().value in _DECLARATION_KEYWORDS:
            self.advance()
            self.expect("ident", what="variable name")
            self.expect("punct", "=")

        node = self.parse_expression()
        self.accept("punct", ";")
        if not self.at("eof"):
            raise self.error(f"Unexpected {self.describe(self.peek())} after definition")
        return node

    def parse_expression(self) -> ZodNode:
        if self.depth >= MAX_NESTING_DEPTH:
            raise self.error(f"Definition is nested deeper than {MAX_NESTING_DEPTH} levels")
        self.depth += 1
        try:
            node = self.parse_primary()
            while self.accept("punct", "."):
                method = self.expect("ident", what="method name")
                node = self.apply_method(node, method)
        finally:
            self.depth -= 1
        return node

    def parse_primary(self) -> ZodNode:
        token = self.peek()
        if token.kind == "ident" and token.value == "z" and self.peek(1).value == ".":
            self.advance()
            self.advance()
            factory = self.expect("ident", what="zod type")
            return self.parse_factory(factory)
        if token.kind == "ident":
            # Named schema defined elsewhere, e.g. `author: UserSchema`
            self.advance()
            return ZodNode(kind="reference", reference=token.value)
        raise self.error(f"Expected a zod expression, found {self.describe(token)}")

    def parse_factory(self, factory: Token) -> ZodNode:
        name = factory.value
        self.expect("punct", "(")

        if name in PRIMITIVE_KINDS:
            self.skip_balanced()
            return ZodNode(kind=name)

        if name in _OBJECT_FACTORIES:
            shape = {} if self.at("punct", ")") else self.parse_shape()
            self.finish_call()
            return ZodNode(kind="object", shape=shape)

        if name == "array":
            element = self.parse_expression()
            self.finish_call()
            return ZodNode(kind="array", items=[element])

        if name in ("optional", "nullable"):
            inner = self.parse_expression()
            self.finish_call()
            return inner.model_copy(update={name: True})

        if name in ("union", "discriminatedUnion", "tuple"):
            if name == "discriminatedUnion":
                self.expect("string", what="discriminator")
                self.expect("punct", ",")
            members = self.parse_node_list()
            self.finish_call()
            return ZodNode(kind="tuple" if name == "tuple" else "union", items=members)

        if name == "enum":
            literals = self.parse_string_list()
            self.finish_call()
            return ZodNode(kind="enum", literals=literals)

        if name == "nativeEnum":
            return ZodNode(kind="enum", literals=[self.skip_balanced()])

        if name == "literal":
            return ZodNode(kind="literal", literals=[self.skip_balanced()])

        if name == "record":
            first = self.parse_expression()
            if self.accept("punct", ",") and not self.at("punct", ")"):
                second = self.parse_expression()
                self.finish_call()
                return ZodNode(kind="record", items=[first, second])
            self.expect("punct", ")")
            return ZodNode(kind="record", items=[ZodNode(kind="string"), first])

        raise self.error(f"Unsupported zod type z.{name}()", factory)

    def apply_method(self, node: ZodNode, method: Token) -> ZodNode:
        name = method.value
        self.expect("punct", "(")

        if name == "optional":
            self.expect("punct", ")")
            return node.model_copy(update={"optional": True})
        if name == "nullable":
            self.expect("punct", ")")
            return node.model_copy(update={"nullable": True})
        if name == "nullish":
            self.expect("punct", ")")
            return node.model_copy(update={"optional": True, "nullable": True})
        if name == "array":
            self.expect("punct", ")")
            return ZodNode(kind="array", items=[node])
        if name == "or":
            other = self.parse_expression()
            self.finish_call()
            return ZodNode(kind="union", items=[node, other])
        if name in ("extend", "merge"):
            if node.kind != "object":
                raise self.error(f".{name}() requires an object schema", method)
            if name == "merge":
                other = self.parse_expression()
                self.finish_call()
                extra = other.shape
            else:
                extra = self.parse_shape()
                self.finish_call()
            return node.model_copy(update={"shape": {**node.shape, **extra}})
        if name == "partial":
            self.expect("punct", ")")
            if node.kind != "object":
                raise self.error(".partial() requires an object schema", method)
            shape = {
                key: child.model_copy(update={"optional": True})
                for key, child in node.shape.items()
            }
            return node.model_copy(update={"shape": shape})
        if name == "default":
            # A defaulted field may be omitted from input
            return node.model_copy(update={"default": self.skip_balanced(), "optional": True})
        if name == "describe":
            if self.at("string") and self.peek(1).value == ")":
                description = self.advance().value
                self.advance()
            else:
                description = self.skip_balanced()
            return node.model_copy(update={"description": description})

        # Refinements and checks: min, max, email, uuid, regex, refine, ...
        arguments = self.skip_balanced()
        return node.model_copy(update={"checks": [*node.checks, f"{name}({arguments})"]})

    def parse_shape(self) -> dict[str, ZodNode]:
        self.expect("punct", "{", what="object shape")
        shape: dict[str, ZodNode] = {}
        while not self.accept("punct", "}"):
            key = self.peek()
            if key.kind not in ("ident", "string"):
                raise self.error(f"Expected field name, found {self.describe(key)}")
            self.advance()
            self.expect("punct", ":")
            shape[key.value] = self.parse_expression()
            if not self.accept("punct", ","):
                self.expect("punct", "}")
                break
        return shape

    def parse_node_list(self) -> list[ZodNode]:
        self.expect("punct", "[")
        members: list[ZodNode] = []
        while not self.accept("punct", "]"):
            members.append(self.parse_expression())
            if not self.accept("punct", ","):
                self.expect("punct", "]")
                break
        return members

    def parse_string_list(self) -> list[str]:
        self.expect("punct", "[")
        values: list[str] = []
        while not self.accept("punct", "]"):
            values.append(self.expect("string", what="enum value").value)
            if not self.accept("punct", ","):
                self.expect("punct", "]")
                break
        return values


def parse_schema(text: str) -> ZodNode:
    """Parse a zod definition into a node tree.

    Accepts a bare expression, optionally preceded by `const Name =` (or
    `export const Name =`) and followed by `;`.

    Args:
        text: Definition source

    Returns:
        Root node of the definition

    Raises:
        ZodParseError: If the text is empty or not a supported definition
    """
    if not text or not text.strip():
        raise ZodParseError("Empty definition", text or "", 0)
    return _Parser(text).parse_program()


def _flatten(node: ZodNode, prefix: str, fields: dict[str, FieldSignature]) -> None:
    for key, child in node.shape.items():
        path = f"{prefix}.{key}" if prefix else key
        fields[path] = FieldSignature(type_name=child.type_name, optional=child.optional)
        if child.kind == "object":
            _flatten(child, path, fields)
        elif child.kind == "array" and child.items and child.items[0].kind == "object":
            _flatten(child.items[0], f"{path}[]", fields)


def flatten_fields(node: ZodNode) -> dict[str, FieldSignature]:
    """Map every field path of a definition to its signature.

    Nested object fields use dotted paths (`author.name`); fields of
    objects inside arrays use `[]` (`items[].price`). A definition that is
    not an object yields a single entry under `$`.

    Args:
        node: Parsed definition

    Returns:
        Field signatures keyed by path
    """
    fields: dict[str, FieldSignature] = {}
    if node.kind == "object":
        _flatten(node, "", fields)
    elif node.kind == "array" and node.items and node.items[0].kind == "object":
        fields[ROOT_PATH] = FieldSignature(type_name=node.type_name, optional=node.optional)
        _flatten(node.items[0], f"{ROOT_PATH}[]", fields)
    else:
        fields[ROOT_PATH] = FieldSignature(type_name=node.type_name, optional=node.optional)
    return fields


def _label(signature: FieldSignature) -> str:
    return f"{signature.type_name}?" if signature.optional else signature.type_name


def compare_structures(old: ZodNode, new: ZodNode) -> list[FieldChange]:
    """Compare two parsed definitions field by field.

    Args:
        old: Previous definition
        new: Current definition

    Returns:
        Changes sorted by path; a field whose type and optionality both
        changed yields two entries
    """
    old_fields = flatten_fields(old)
    new_fields = flatten_fields(new)
    changes: list[FieldChange] = []

    for path in sorted(old_fields.keys() | new_fields.keys()):
        before = old_fields.get(path)
        after = new_fields.get(path)

        if before is None and after is not None:
            changes.append(
                FieldChange(
                    path=path,
                    change_type=FieldChangeType.FIELD_ADDED,
                    new_type=_label(after),
                )
            )
        elif after is None and before is not None:
            changes.append(
                FieldChange(
                    path=path,
                    change_type=FieldChangeType.FIELD_REMOVED,
                    old_type=_label(before),
                )
            )
        elif before is not None and after is not None:
            if before.type_name != after.type_name:
                changes.append(
                    FieldChange(
                        path=path,
                        change_type=FieldChangeType.TYPE_CHANGED,
                        old_type=before.type_name,
                        new_type=after.type_name,
                    )
                )
            if before.optional != after.optional:
                changes.append(
                    FieldChange(
                        path=path,
                        change_type=FieldChangeType.OPTIONALITY_CHANGED,
                        old_type=_label(before),
                        new_type=_label(after),
                    )
                )

    return changes
