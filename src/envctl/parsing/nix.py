"""Nix shell-expression descriptors (the ``shell.nix`` subset).

Accepts the shape every ``shell.nix`` shares::

    { pkgs ? import <nixpkgs> {} }:
      pkgs.mkShell {
        buildInputs = [ pkgs.llvm_10 pkgs.libxml2 pkgs.valgrind pkgs.clang ];
        shellHook = ''
          echo ready
        '';
      }

Nothing is evaluated. Header parameters defaulting to ``import <chan>``
become package sets bound to channel ``chan``; references such as
``pkgs.clang`` in the input lists become requirements. ``with pkgs;``
puts bare identifiers in scope, either for the whole shell or for one
value as in ``packages = with pkgs; [ cmake ];``. ``let``, functions, and ``${}``
interpolation are outside the subset and raise ParseError.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from envctl.domain.errors import ParseError
from envctl.domain.requirements import VARIABLE_PATTERN, EnvironmentDescriptor, ToolRequirement

# Token kinds
IDENT = "ident"
STRING = "string"
INT = "int"
FLOAT = "float"
ANGLE_PATH = "angle_path"
PATH = "path"
OP = "op"
EOF = "eof"

KEYWORDS = frozenset({"import", "with", "rec", "let", "in", "inherit", "if", "then", "else"})
SHELL_BUILDERS = frozenset({"mkShell", "mkShellNoCC"})
INPUT_ATTRS = ("buildInputs", "nativeBuildInputs", "packages", "propagatedBuildInputs")

_PUNCTUATION = "{}[]()=;:,.?@"
_IDENT_START = "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ_"
_IDENT_CHARS = _IDENT_START + "0123456789'-"
_PATH_CHARS = _IDENT_CHARS + "./+~"
_ESCAPES = {"n": "\n", "t": "\t", "r": "\r"}


@dataclass(frozen=True)
class Token:
    kind: str
    value: str
    position: int


@dataclass(frozen=True)
class _Ref:
    """An unevaluated attribute reference like ``pkgs.python3Packages.numpy``."""

    parts: tuple[str, ...]
    position: int
    scope: tuple[str | None, ...] = ()


def line_col(text: str, position: int) -> tuple[int, int]:
    """1-based (line, column) for a character offset."""
    line = text.count("\n", 0, position) + 1
    column = position - (text.rfind("\n", 0, position) + 1) + 1
    return line, column


# ---------------------------------------------------------------------------
# Tokenizer
# ---------------------------------------------------------------------------


class Lexer:
    """Convert Nix source into a flat token list."""

    def __init__(self, text: str) -> None:
        self.text = text
        self.index = 0
        self.tokens: list[Token] = []

    def error(self, message: str, position: int | None = None) -> ParseError:
        line, column = line_col(self.text, self.index if position is None else position)
        return ParseError(message, line=line, column=column)

    def tokenize(self) -> list[Token]:
        text = self.text
        while self.index < len(text):
            ch = text[self.index]
            nxt = text[self.index + 1] if self.index + 1 < len(text) else ""
            start = self.index

            if ch.isspace():
                self.index += 1
            elif ch == "#":
                end = text.find("\n", self.index)
                self.index = len(text) if end == -1 else end
            elif ch == "/" and nxt == "*":
                end = text.find("*/", self.index + 2)
                if end == -1:
                    raise self.error("unterminated block comment")
                self.index = end + 2
            elif ch == '"':
                self.tokens.append(Token(STRING, self._string(), start))
            elif ch == "'" and nxt == "'":
                self.tokens.append(Token(STRING, self._indented_string(), start))
            elif ch == "<" and nxt and nxt in _IDENT_START:
                self.tokens.append(Token(ANGLE_PATH, self._angle_path(), start))
            elif ch == "." and text.startswith("...", self.index):
                self.index += 3
                self.tokens.append(Token(OP, "...", start))
            elif nxt and ((ch == "." and nxt in "./") or (ch == "/" and nxt in _IDENT_START)):
                self.tokens.append(Token(PATH, self._read(_PATH_CHARS), start))
            elif ch.isdigit():
                self.tokens.append(self._number())
            elif ch in _IDENT_START:
                self.tokens.append(Token(IDENT, self._read(_IDENT_CHARS), start))
            elif ch in _PUNCTUATION:
                self.index += 1
                self.tokens.append(Token(OP, ch, start))
            else:
                raise self.error(f"unexpected character {ch!r}")

        self.tokens.append(Token(EOF, "", len(text)))
        return self.tokens

    def _read(self, allowed: str) -> str:
        start = self.index
        while self.index < len(self.text) and self.text[self.index] in allowed:
            self.index += 1
        return self.text[start : self.index]

    def _number(self) -> Token:
        start = self.index
        self._read("0123456789")
        kind = INT
        if self.text[self.index : self.index + 1] == "." and self.text[
            self.index + 1 : self.index + 2
        ].isdigit():
            self.index += 1
            self._read("0123456789")
            kind = FLOAT
        return Token(kind, self.text[start : self.index], start)

    def _angle_path(self) -> str:
        start = self.index
        self.index += 1
        value = self._read(_PATH_CHARS)
        if self.text[self.index : self.index + 1] != ">":
            raise self.error("unterminated <path>", start)
        self.index += 1
        return value

    def _string(self) -> str:
        start = self.index
        self.index += 1
        chars: list[str] = []
        while self.index < len(self.text):
            ch = self.text[self.index]
            if ch == '"':
                self.index += 1
                return "".join(chars)
            if ch == "\\":
                escaped = self.text[self.index + 1 : self.index + 2]
                chars.append(_ESCAPES.get(escaped, escaped))
                self.index += 2
                continue
            if ch == "$" and self.text[self.index + 1 : self.index + 2] == "{":
                raise self.error("string interpolation is not supported")
            chars.append(ch)
            self.index += 1
        raise self.error("unterminated string", start)

    def _indented_string(self) -> str:
        start = self.index
        self.index += 2
        chars: list[str] = []
        text = self.text
        while self.index < len(text):
            if text.startswith("'''", self.index):
                chars.append("''")
                self.index += 3
            elif text.startswith("''$", self.index):
                chars.append("$")
                self.index += 3
            elif text.startswith("''\\", self.index):
                escaped = text[self.index + 3 : self.index + 4]
                chars.append(_ESCAPES.get(escaped, escaped))
                self.index += 4
            elif text.startswith("''", self.index):
                self.index += 2
                return _strip_indentation("".join(chars))
            elif text.startswith("${", self.index):
                raise self.error("string interpolation is not supported")
            else:
                chars.append(text[self.index])
                self.index += 1
        raise self.error("unterminated indented string", start)


def _strip_indentation(raw: str) -> str:
    """Apply Nix's ``''`` de-indentation rules."""
    lines = raw.split("\n")
    if len(lines) > 1 and not lines[0].strip():
        lines = lines[1:]
    indents = [len(line) - len(line.lstrip(" ")) for line in lines if line.strip()]
    margin = min(indents) if indents else 0
    stripped = [line[margin:] if line.strip() else "" for line in lines]
    return "\n".join(stripped)


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


class Parser:
    """Recursive-descent parser producing an EnvironmentDescriptor."""

    def __init__(self, text: str) -> None:
        self.text = text
        self.tokens = Lexer(text).tokenize()
        self.index = 0
        # package-set name -> channel (None for unnamed sets)
        self.package_sets: dict[str, str | None] = {}
        self.with_scope: list[str | None] = []

    # --- token helpers ---

    @property
    def current(self) -> Token:
        return self.tokens[self.index]

    def peek(self, offset: int = 1) -> Token:
        return self.tokens[min(self.index + offset, len(self.tokens) - 1)]

    def advance(self) -> Token:
        token = self.current
        if token.kind != EOF:
            self.index += 1
        return token

    def at(self, kind: str, value: str | None = None) -> bool:
        token = self.current
        return token.kind == kind and (value is None or token.value == value)

    def accept(self, kind: str, value: str | None = None) -> Token | None:
        if self.at(kind, value):
            return self.advance()
        return None

    def expect(self, kind: str, value: str | None = None) -> Token:
        if not self.at(kind, value):
            wanted = value or kind
            found = self.current.value or self.current.kind
            raise self.error(f"expected {wanted!r}, found {found!r}")
        return self.advance()

    def error(self, message: str, position: int | None = None) -> ParseError:
        line, column = line_col(self.text, self.current.position if position is None else position)
        return ParseError(message, line=line, column=column)

    # --- grammar ---

    def parse(self) -> EnvironmentDescriptor:
        if self.at(OP, "{"):
            self._header()
        while self.at(IDENT, "with"):
            self._with()
        if self.at(IDENT, "let"):
            raise self.error("'let' expressions are not supported")

        call = self._reference()
        self._check_builder(call)
        if self.accept(IDENT, "rec") is None and not self.at(OP, "{"):
            raise self.error(f"expected attribute set after {'.'.join(call.parts)}")
        attrs = self._attrset()
        self.expect(EOF)
        return self._descriptor(attrs)

    def _header(self) -> None:
        self.expect(OP, "{")
        while not self.at(OP, "}"):
            if self.accept(OP, "..."):
                break
            name = self.expect(IDENT).value
            if self.accept(OP, "?"):
                if self.at(IDENT, "import"):
                    self.package_sets[name] = self._import()
                else:
                    self._value()
            else:
                self.package_sets[name] = None
            if not self.accept(OP, ","):
                break
        self.expect(OP, "}")
        if self.accept(OP, "@"):
            self.expect(IDENT)
        self.expect(OP, ":")

    def _import(self) -> str | None:
        """Parse ``import <chan> {...}`` and return the channel, if any."""
        self.expect(IDENT, "import")
        token = self.current
        if token.kind == ANGLE_PATH:
            channel: str | None = token.value
        elif token.kind in (PATH, STRING):
            channel = None
        else:
            raise self.error("only 'import <channel>' or 'import ./path' is supported")
        self.advance()
        if self.at(OP, "{"):
            self._attrset()
        return channel

    def _with(self) -> None:
        self.expect(IDENT, "with")
        if self.at(IDENT, "import"):
            self.with_scope.append(self._import())
        else:
            token = self.expect(IDENT)
            if token.value not in self.package_sets:
                raise self.error(f"unknown package set {token.value!r}", token.position)
            self.with_scope.append(self.package_sets[token.value])
        self.expect(OP, ";")

    def _reference(self) -> _Ref:
        token = self.expect(IDENT)
        if token.value in KEYWORDS:
            raise self.error(f"unexpected keyword {token.value!r}", token.position)
        parts = [token.value]
        while self.accept(OP, "."):
            part = self.current
            if part.kind not in (IDENT, STRING):
                raise self.error("expected attribute name after '.'")
            parts.append(self.advance().value)
        return _Ref(tuple(parts), token.position, tuple(self.with_scope))

    def _check_builder(self, call: _Ref) -> None:
        if call.parts[-1] not in SHELL_BUILDERS:
            raise self.error(
                f"expected a mkShell call, found {'.'.join(call.parts)!r}", call.position
            )
        if len(call.parts) == 1 and not self.with_scope:
            raise self.error("bare mkShell requires 'with <package set>;'", call.position)
        if len(call.parts) > 1 and call.parts[0] not in self.package_sets:
            raise self.error(f"unknown package set {call.parts[0]!r}", call.position)

    def _attrset(self) -> dict[str, Any]:
        start = self.expect(OP, "{")
        attrs: dict[str, Any] = {}
        positions: dict[str, int] = {}
        while not self.at(OP, "}"):
            if self.at(EOF):
                raise self.error("unterminated attribute set", start.position)
            if self.at(IDENT, "inherit"):
                raise self.error("'inherit' is not supported")
            key_token = self.current
            path = self._attr_path()
            self.expect(OP, "=")
            value = self._value()
            self.expect(OP, ";")
            self._assign(attrs, path, value, key_token.position)
            positions.setdefault(".".join(path), key_token.position)
        self.expect(OP, "}")
        attrs["__positions__"] = positions
        return attrs

    def _attr_path(self) -> list[str]:
        parts: list[str] = []
        while True:
            token = self.current
            if token.kind not in (IDENT, STRING):
                raise self.error("expected attribute name")
            parts.append(self.advance().value)
            if not self.accept(OP, "."):
                return parts

    def _assign(self, attrs: dict[str, Any], path: list[str], value: Any, position: int) -> None:
        target = attrs
        for part in path[:-1]:
            nested = target.setdefault(part, {"__positions__": {}})
            if not isinstance(nested, dict):
                raise self.error(f"attribute {'.'.join(path)!r} already defined", position)
            target = nested
        if path[-1] in target:
            raise self.error(f"attribute {'.'.join(path)!r} already defined", position)
        target[path[-1]] = value

    def _value(self) -> Any:
        token = self.current
        if token.kind == STRING:
            return self.advance().value
        if token.kind == INT:
            return int(self.advance().value)
        if token.kind == FLOAT:
            return float(self.advance().value)
        if token.kind in (PATH, ANGLE_PATH):
            return self.advance().value
        if token.kind == OP and token.value == "[":
            return self._list()
        if token.kind == OP and token.value == "{":
            return self._attrset()
        if token.kind == IDENT:
            if token.value == "rec":
                self.advance()
                return self._attrset()
            if token.value in ("true", "false"):
                self.advance()
                return token.value == "true"
            if token.value == "null":
                self.advance()
                return None
            if token.value == "with":
                # ``with X; value`` scopes X to this value only.
                self._with()
                value = self._value()
                self.with_scope.pop()
                return value
            if token.value == "import":
                return _Ref(("import", self._import() or ""), token.position)
            return self._reference()
        found = token.value or token.kind
        raise self.error(f"unexpected {found!r}")

    def _list(self) -> list[Any]:
        start = self.expect(OP, "[")
        items: list[Any] = []
        while not self.at(OP, "]"):
            if self.at(EOF):
                raise self.error("unterminated list", start.position)
            if self.at(OP, "("):
                raise self.error("function application is not supported in lists")
            items.append(self._value())
        self.expect(OP, "]")
        return items

    # --- descriptor assembly ---

    def _requirement(self, ref: _Ref) -> ToolRequirement:
        root, rest = ref.parts[0], ref.parts[1:]
        if root in self.package_sets and rest:
            channel = self.package_sets[root]
            attr = ".".join(rest)
        elif ref.scope:
            channel = ref.scope[-1]
            attr = ".".join(ref.parts)
        else:
            raise self.error(f"unknown package set {root!r}", ref.position)
        try:
            return ToolRequirement(name=attr, channel=channel, package=attr)
        except ParseError as exc:
            raise self.error(exc.message, ref.position) from exc

    def _descriptor(self, attrs: dict[str, Any]) -> EnvironmentDescriptor:
        positions: dict[str, int] = attrs.pop("__positions__")
        requirements: list[ToolRequirement] = []
        seen: set[str] = set()
        variables: dict[str, str] = {}
        name: str | None = None
        shell_hook: str | None = None

        for key, value in attrs.items():
            position = positions.get(key)
            if key in INPUT_ATTRS:
                if not isinstance(value, list):
                    raise self.error(f"{key} must be a list", position)
                for item in value:
                    if not isinstance(item, _Ref) or item.parts[0] == "import":
                        raise self.error(f"{key} entries must be package references", position)
                    requirement = self._requirement(item)
                    if requirement.name in seen:
                        raise self.error(
                            f"duplicate requirement {requirement.name!r}", item.position
                        )
                    seen.add(requirement.name)
                    requirements.append(requirement)
            elif key == "shellHook":
                if not isinstance(value, str):
                    raise self.error("shellHook must be a string", position)
                shell_hook = value
            elif key == "name":
                if not isinstance(value, str):
                    raise self.error("name must be a string", position)
                name = value
            else:
                if not VARIABLE_PATTERN.match(key):
                    raise self.error(f"invalid variable name {key!r}", position)
                variables[key] = self._stringify(key, value, position)

        return EnvironmentDescriptor.build(
            requirements,
            name=name,
            variables=variables,
            shell_hook=shell_hook,
            source_format="nix",
        )

    def _stringify(self, key: str, value: Any, position: int | None) -> str:
        if isinstance(value, list):
            return " ".join(self._stringify(key, item, position) for item in value)
        if isinstance(value, dict) or isinstance(value, _Ref):
            raise self.error(f"unsupported value for attribute {key!r}", position)
        if value is None or value is False:
            return ""
        if value is True:
            return "1"
        return str(value)


def parse_nix(text: str) -> EnvironmentDescriptor:
    """Parse a ``shell.nix`` expression into an EnvironmentDescriptor."""
    return Parser(text).parse()
