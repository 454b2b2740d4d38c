"""Template lexer.

Splits template source into text, variable, tag and comment tokens.

Delimiter matching is non-greedy and nesting is not supported: the first
closing delimiter ends the token. An unterminated opening delimiter is not
an error; its characters simply stay part of the surrounding text.
"""

import re

from .types import Position, Token, TokenKind

# Regex to find {{ }}, {% %} and {# #} spans
DELIMITER_PATTERN = re.compile(
    r"\{\{(?P<variable>.+?)\}\}|\{%(?P<tag>.+?)%\}|\{#(?P<comment>.*?)#\}",
    re.DOTALL,
)

VARIABLE_START, VARIABLE_END = "{{", "}}"
TAG_START, TAG_END = "{%", "%}"
COMMENT_START, COMMENT_END = "{#", "#}"


class Lexer:
    """Tokenizer for a single template source."""

    def __init__(self, source: str):
        """Initialize lexer.

        Args:
            source: Template source text
        """
        self.source = source
        self._line = 1
        self._column = 1

    def tokenize(self) -> list[Token]:
        """Produce the ordered token sequence.

        Returns:
            Tokens covering the whole source, in source order
        """
        tokens: list[Token] = []
        last_end = 0

        for match in DELIMITER_PATTERN.finditer(self.source):
            if match.start() > last_end:
                text = self.source[last_end : match.start()]
                tokens.append(self._emit(TokenKind.TEXT, text, text, last_end))

            kind = TokenKind(match.lastgroup)
            tokens.append(self._emit(kind, match.group(kind.value).strip(), match.group(0), match.start()))
            last_end = match.end()

        if last_end < len(self.source):
            text = self.source[last_end:]
            tokens.append(self._emit(TokenKind.TEXT, text, text, last_end))

        return tokens

    def _emit(self, kind: TokenKind, content: str, raw: str, offset: int) -> Token:
        token = Token(
            kind=kind,
            content=content,
            position=Position(line=self._line, column=self._column, offset=offset),
            raw=raw,
        )
        self._advance(raw)
        return token

    def _advance(self, consumed: str) -> None:
        newlines = consumed.count("\n")
        if newlines:
            self._line += newlines
            self._column = len(consumed) - consumed.rfind("\n")
        else:
            self._column += len(consumed)


def tokenize(source: str) -> list[Token]:
    """Convenience function to tokenize a template source.

    Args:
        source: Template source text

    Returns:
        List of tokens
    """
    return Lexer(source).tokenize()


def reconstruct(tokens: list[Token]) -> str:
    """Rebuild source text from tokens, using the normalized ``{{ x }}`` spacing.

    Comments are dropped. For sources whose delimiters already use single
    spaces around their bodies this reproduces the source exactly.
    """
    parts: list[str] = []
    for token in tokens:
        if token.kind == TokenKind.TEXT:
            parts.append(token.content)
        elif token.kind == TokenKind.VARIABLE:
            parts.append(f"{VARIABLE_START} {token.content} {VARIABLE_END}")
        elif token.kind == TokenKind.TAG:
            parts.append(f"{TAG_START} {token.content} {TAG_END}")
    return "".join(parts)
