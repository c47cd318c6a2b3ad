"""Parser for C# type expressions as written in source.

Handles qualified and generic names, `global::`, arrays (including
multi-dimensional and jagged), pointers, nullable suffixes and tuples.
Name resolution happens later, against the declared types of the tree.
"""

import re
from dataclasses import dataclass, field
from typing import Optional


class TypeSyntaxError(ValueError):
    """A type expression could not be parsed."""


_TOKEN = re.compile(r"\s*(::|@?[A-Za-z_][A-Za-z0-9_]*|[<>,.\[\]*?()])")


@dataclass
class NamePart:
    name: str
    arguments: list["TypeSyntax"] = field(default_factory=list)


@dataclass
class TypeSyntax:
    """Unresolved type expression."""
    parts: list[NamePart] = field(default_factory=list)     # Qualified name, outermost first
    element: Optional["TypeSyntax"] = None                  # Array / pointer / nullable operand
    rank: int = 0                                           # Array rank, 0 if not an array
    pointer: bool = False
    nullable: bool = False
    tuple_elements: list["TypeSyntax"] = field(default_factory=list)

    @property
    def is_tuple(self) -> bool:
        return bool(self.tuple_elements)

    @property
    def simple(self) -> Optional[str]:
        """The bare identifier for single-part names without arguments."""
        if len(self.parts) == 1 and not self.parts[0].arguments and self.element is None:
            return self.parts[0].name
        return None


def _tokenize(text: str) -> list[str]:
    tokens = []
    pos = 0
    text = text.strip()
    while pos < len(text):
        match = _TOKEN.match(text, pos)
        if not match:
            raise TypeSyntaxError(f"Unexpected character {text[pos]!r} in type {text!r}")
        tokens.append(match.group(1))
        pos = match.end()
        while pos < len(text) and text[pos].isspace():
            pos += 1
    return tokens


class _Parser:
    def __init__(self, text: str):
        self.text = text
        self.tokens = _tokenize(text)
        self.pos = 0

    def peek(self) -> Optional[str]:
        return self.tokens[self.pos] if self.pos < len(self.tokens) else None

    def next(self) -> str:
        token = self.peek()
        if token is None:
            raise TypeSyntaxError(f"Unexpected end of type {self.text!r}")
        self.pos += 1
        return token

    def expect(self, token: str) -> None:
        actual = self.next()
        if actual != token:
            raise TypeSyntaxError(f"Expected {token!r}, got {actual!r} in type {self.text!r}")

    def identifier(self) -> str:
        token = self.next()
        if not (token[0].isalpha() or token[0] in "_@"):
            raise TypeSyntaxError(f"Expected identifier, got {token!r} in type {self.text!r}")
        return token.lstrip("@")

    def parse_type(self) -> TypeSyntax:
        if self.peek() == "(":
            result = self.parse_tuple()
        else:
            result = TypeSyntax(parts=self.parse_name())
        return self.parse_suffixes(result)

    def parse_tuple(self) -> TypeSyntax:
        self.expect("(")
        elements = []
        while True:
            elements.append(self.parse_type())
            # Element names are dropped: (int count, string name)
            if self.peek() not in (",", ")"):
                self.identifier()
            token = self.next()
            if token == ")":
                break
            if token != ",":
                raise TypeSyntaxError(f"Unexpected {token!r} in tuple type {self.text!r}")
        if len(elements) < 2:
            raise TypeSyntaxError(f"Tuple types need two elements: {self.text!r}")
        return TypeSyntax(tuple_elements=elements)

    def parse_name(self) -> list[NamePart]:
        parts = []
        first = self.identifier()
        if self.peek() == "::":
            self.next()
            # global:: only anchors lookup at the root namespace
            if first != "global":
                parts.append(NamePart(first))
            first = self.identifier()
        parts.append(NamePart(first, self.parse_arguments()))
        while self.peek() == ".":
            self.next()
            name = self.identifier()
            parts.append(NamePart(name, self.parse_arguments()))
        return parts

    def parse_arguments(self) -> list[TypeSyntax]:
        if self.peek() != "<":
            return []
        self.next()
        arguments = [self.parse_type()]
        while self.peek() == ",":
            self.next()
            arguments.append(self.parse_type())
        self.expect(">")
        return arguments

    def parse_suffixes(self, result: TypeSyntax) -> TypeSyntax:
        ranks = []
        while self.peek() in ("[", "*", "?"):
            token = self.next()
            if token == "?":
                if ranks:
                    # int[]? annotates the array reference, not the element
                    continue
                result = TypeSyntax(element=result, nullable=True)
            elif token == "*":
                result = TypeSyntax(element=result, pointer=True)
            else:
                rank = 1
                while self.peek() == ",":
                    self.next()
                    rank += 1
                self.expect("]")
                ranks.append(rank)
        # int[][,] is a single-rank array of two-rank arrays
        for rank in reversed(ranks):
            result = TypeSyntax(element=result, rank=rank)
        return result


def parse_type_syntax(text: str) -> TypeSyntax:
    """Parse a C# type expression.

    Raises:
        TypeSyntaxError: if the text is not a type expression
    """
    parser = _Parser(text)
    if not parser.tokens:
        raise TypeSyntaxError("Empty type")
    result = parser.parse_type()
    if parser.peek() is not None:
        raise TypeSyntaxError(f"Trailing {parser.peek()!r} in type {text!r}")
    return result
