from __future__ import annotations

"""Validation of SPDX license expressions.

The grammar is the one used by ``project.license``::

    expr       := or_expr
    or_expr    := and_expr ( "OR" and_expr )*
    and_expr   := with_expr ( "AND" with_expr )*
    with_expr  := atom ( "WITH" exception_id )?
    atom       := license_id | "(" expr ")"

Keywords are case-insensitive. License and exception identifiers are checked
against the SPDX list shipped with ``packaging``; ``LicenseRef-`` and
``DocumentRef-...:LicenseRef-`` references (``AdditionRef-`` for exceptions)
are accepted as custom identifiers. Validation is a single recursive-descent
pass and no parse tree is kept; the first problem is raised with the character
offset of the offending token.
"""

import re
from dataclasses import dataclass
from typing import Iterable, List, Optional

# Private in packaging; the table layout is pinned to the 24.2 - 26.x releases in pyproject.toml.
from packaging.licenses._spdx import EXCEPTIONS, LICENSES

KEYWORDS = {"AND", "OR", "WITH"}

_TOKEN_CHARS = frozenset("ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789.-+:")
_IDSTRING = r"[A-Za-z0-9.\-]+"
_IDSTRING_RE = re.compile(_IDSTRING)
_LICENSE_REF_RE = re.compile(rf"(?:DocumentRef-{_IDSTRING}:)?LicenseRef-{_IDSTRING}", re.IGNORECASE)
_ADDITION_REF_RE = re.compile(rf"AdditionRef-{_IDSTRING}", re.IGNORECASE)


class LicenseError(ValueError):
    """Base class for license expression failures."""

    def __init__(self, expression: str, position: int, code: str, reason: str) -> None:
        super().__init__(f"{reason} at position {position} in license expression: `{expression}`")
        self.expression = expression
        self.position = position
        self.code = code
        self.reason = reason


class LicenseSyntaxError(LicenseError):
    """Raised for malformed expressions (bad tokens, parentheses or operators)."""


class UnknownLicenseIdentifier(LicenseError):
    """Raised for a well-formed identifier that is not a recognized license or exception."""

    def __init__(self, expression: str, position: int, identifier: str, code: str, reason: str) -> None:
        super().__init__(expression, position, code, reason)
        self.identifier = identifier


@dataclass(frozen=True)
class _Token:
    text: str
    position: int

    @property
    def keyword(self) -> Optional[str]:
        upper = self.text.upper()
        return upper if upper in KEYWORDS else None

    @property
    def is_paren(self) -> bool:
        return self.text in ("(", ")")


def _tokenize(expression: str) -> List[_Token]:
    tokens: List[_Token] = []
    start: Optional[int] = None
    for pos, char in enumerate(expression):
        if char in _TOKEN_CHARS:
            if start is None:
                start = pos
            continue
        if start is not None:
            tokens.append(_Token(expression[start:pos], start))
            start = None
        if char in "()":
            tokens.append(_Token(char, pos))
        elif not char.isspace():
            raise LicenseSyntaxError(
                expression, pos, "INVALID_CHARACTER", f"Invalid character `{char}`"
            )
    if start is not None:
        tokens.append(_Token(expression[start:], start))
    return tokens


class LicenseExpressionValidator:
    def __init__(
        self,
        license_ids: Iterable[str] = (),
        exception_ids: Iterable[str] = (),
        *,
        allow_license_refs: bool = True,
        allow_deprecated: bool = True,
    ) -> None:
        self.allow_license_refs = allow_license_refs
        self.allow_deprecated = allow_deprecated
        self._licenses = {key: entry["id"] for key, entry in LICENSES.items()}
        self._exceptions = {key: entry["id"] for key, entry in EXCEPTIONS.items()}
        self._deprecated = {key for key, entry in LICENSES.items() if entry["deprecated"]}
        self._deprecated |= {key for key, entry in EXCEPTIONS.items() if entry["deprecated"]}
        for license_id in license_ids:
            self._licenses[license_id.lower()] = license_id
        for exception_id in exception_ids:
            self._exceptions[exception_id.lower()] = exception_id

    @classmethod
    def from_settings(cls, settings) -> "LicenseExpressionValidator":
        return cls(
            settings.extra_license_ids,
            settings.extra_exception_ids,
            allow_license_refs=settings.allow_license_refs,
            allow_deprecated=settings.allow_deprecated_licenses,
        )

    def validate(self, expression: str) -> None:
        """Raise a :class:`LicenseError` if ``expression`` is not a valid SPDX expression."""

        self.canonicalize(expression)

    def canonicalize(self, expression: str) -> str:
        """Validate ``expression`` and return it with canonical id casing and spacing."""

        return _Parser(self, expression, _tokenize(expression)).parse()

    def _check_deprecated(self, expression: str, token: _Token, key: str) -> None:
        if key in self._deprecated and not self.allow_deprecated:
            raise UnknownLicenseIdentifier(
                expression,
                token.position,
                token.text,
                "DEPRECATED_LICENSE",
                f"Deprecated SPDX identifier `{token.text}`",
            )

    def _custom_reference(self, expression: str, token: _Token, pattern: re.Pattern) -> str:
        if not pattern.fullmatch(token.text):
            raise LicenseSyntaxError(
                expression, token.position, "INVALID_IDENTIFIER", f"Malformed reference `{token.text}`"
            )
        if not self.allow_license_refs:
            raise UnknownLicenseIdentifier(
                expression,
                token.position,
                token.text,
                "DISALLOWED_REFERENCE",
                f"Custom reference `{token.text}` is not allowed",
            )
        return token.text

    def _license_id(self, expression: str, token: _Token) -> str:
        text = token.text
        if text.lower().startswith(("licenseref-", "documentref-")):
            return self._custom_reference(expression, token, _LICENSE_REF_RE)

        or_later = text.endswith("+")
        base = text[:-1] if or_later else text
        if not _IDSTRING_RE.fullmatch(base):
            raise LicenseSyntaxError(
                expression, token.position, "INVALID_IDENTIFIER", f"Malformed license identifier `{text}`"
            )
        canonical = self._licenses.get(base.lower())
        if canonical is None:
            raise UnknownLicenseIdentifier(
                expression, token.position, text, "UNKNOWN_LICENSE", f"Unknown license identifier `{base}`"
            )
        self._check_deprecated(expression, token, base.lower())
        return canonical + "+" if or_later else canonical

    def _exception_id(self, expression: str, token: _Token) -> str:
        text = token.text
        if text.lower().startswith("additionref-"):
            return self._custom_reference(expression, token, _ADDITION_REF_RE)

        if not _IDSTRING_RE.fullmatch(text):
            raise LicenseSyntaxError(
                expression, token.position, "INVALID_IDENTIFIER", f"Malformed exception identifier `{text}`"
            )
        canonical = self._exceptions.get(text.lower())
        if canonical is None:
            raise UnknownLicenseIdentifier(
                expression, token.position, text, "UNKNOWN_EXCEPTION", f"Unknown license exception `{text}`"
            )
        self._check_deprecated(expression, token, text.lower())
        return canonical


class _Parser:
    def __init__(self, validator: LicenseExpressionValidator, expression: str, tokens: List[_Token]) -> None:
        self._validator = validator
        self._expression = expression
        self._tokens = tokens
        self._index = 0

    def _peek(self) -> Optional[_Token]:
        return self._tokens[self._index] if self._index < len(self._tokens) else None

    def _advance(self) -> _Token:
        token = self._tokens[self._index]
        self._index += 1
        return token

    def _error(self, position: int, code: str, reason: str) -> LicenseSyntaxError:
        return LicenseSyntaxError(self._expression, position, code, reason)

    def parse(self) -> str:
        if not self._tokens:
            raise self._error(0, "EMPTY_EXPRESSION", "Empty license expression")
        result = self._parse_or()
        token = self._peek()
        if token is not None:
            raise self._unexpected(token)
        return result

    def _parse_or(self) -> str:
        return self._parse_chain("OR", self._parse_and)

    def _parse_and(self) -> str:
        return self._parse_chain("AND", self._parse_with)

    def _parse_chain(self, keyword: str, operand) -> str:
        parts = [operand()]
        while True:
            token = self._peek()
            if token is None or token.keyword != keyword:
                break
            self._advance()
            self._require_operand(token)
            parts.append(operand())
        return f" {keyword} ".join(parts)

    def _require_operand(self, operator: _Token) -> None:
        following = self._peek()
        if following is None or following.text == ")" or following.keyword:
            raise self._error(
                operator.position, "DANGLING_OPERATOR", f"`{operator.text}` has no right operand"
            )

    def _parse_with(self) -> str:
        atom = self._parse_atom()
        token = self._peek()
        if token is None or token.keyword != "WITH":
            return atom
        self._advance()
        following = self._peek()
        if following is None or following.is_paren or following.keyword:
            raise self._error(token.position, "DANGLING_OPERATOR", f"`{token.text}` has no exception")
        self._advance()
        return f"{atom} WITH {self._validator._exception_id(self._expression, following)}"

    def _parse_atom(self) -> str:
        token = self._peek()
        if token is None:
            raise self._error(len(self._expression), "EMPTY_ATOM", "Expected a license identifier")
        if token.text == ")":
            raise self._error(token.position, "UNBALANCED_PARENS", "Unmatched closing parenthesis")
        if token.keyword:
            raise self._error(token.position, "DANGLING_OPERATOR", f"`{token.text}` has no left operand")
        if token.text != "(":
            self._advance()
            return self._validator._license_id(self._expression, token)

        self._advance()
        first = self._peek()
        if first is None:
            raise self._error(token.position, "UNBALANCED_PARENS", "Unclosed parenthesis")
        if first.text == ")":
            raise self._error(token.position, "EMPTY_ATOM", "Empty parentheses")
        inner = self._parse_or()
        closing = self._peek()
        if closing is None:
            raise self._error(token.position, "UNBALANCED_PARENS", "Unclosed parenthesis")
        if closing.text != ")":
            raise self._unexpected(closing)
        self._advance()
        return f"({inner})"

    def _unexpected(self, token: _Token) -> LicenseSyntaxError:
        if token.text == ")":
            return self._error(token.position, "UNBALANCED_PARENS", "Unmatched closing parenthesis")
        if token.text == "(" or token.keyword:
            return self._error(token.position, "TRAILING_INPUT", f"Unexpected `{token.text}` after expression")
        return self._error(
            token.position, "UNKNOWN_OPERATOR", f"Expected AND, OR or WITH, found `{token.text}`"
        )


DEFAULT_VALIDATOR = LicenseExpressionValidator()


def validate_license_expression(expression: str) -> None:
    DEFAULT_VALIDATOR.validate(expression)


def canonicalize_license_expression(expression: str) -> str:
    return DEFAULT_VALIDATOR.canonicalize(expression)
