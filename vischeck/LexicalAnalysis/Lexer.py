from __future__ import annotations

import logging
import re

from vischeck.LexicalAnalysis.Tokens import Token, TokenType


logger = logging.getLogger(__name__)


class LexerError(Exception):
    def __init__(self, code: str, position: int):
        line = code.count("\n", 0, position) + 1
        column = position - (code.rfind("\n", 0, position) + 1) + 1
        Exception.__init__(self, f"Unknown token at {line}:{column}: {code[position]!r}")
        self.position = position


class Lexer:
    _code: str

    def __init__(self, code: str):
        self._code = code.replace("\r\n", "\n").replace("\t", "    ")

    @property
    def code(self) -> str:
        return self._code

    def lex(self) -> list[Token]:
        current = 0
        output = []

        # Sort the tokens and keywords by length, so that a longer symbol or keyword is always tried before any shorter
        # one that prefixes it.
        tokens = [t for t in TokenType if t.name.startswith("Tk") and t != TokenType.TkEOF]
        tokens.sort(key=lambda t: len(t.value), reverse=True)

        keywords = [t for t in TokenType if t.name.startswith("Kw")]
        keywords.sort(key=lambda t: len(t.value), reverse=True)

        # Lexemes are matched by regex, in declaration order.
        lexemes = [t for t in TokenType if t.name.startswith("Lx")]

        # Keywords go first so they aren't swallowed as identifiers.
        available_tokens = keywords + lexemes + tokens

        while current < len(self._code):
            for token in available_tokens:
                value = token.value
                upper = current + len(value)
                match token.name[:2]:
                    # A keyword only matches if the next character can't continue an identifier, so "checked" is an
                    # identifier rather than "check" followed by "ed".
                    case "Kw" if self._code[current:upper] == value and not self._continues_identifier(upper):
                        output.append(Token(value, token, current))
                        current = upper
                        break

                    # Lexemes take the longest regex match from the current position. Comments are consumed but not
                    # emitted.
                    case "Lx" if matched := re.match(value, self._code[current:]):
                        if token != TokenType.LxSingleLineComment:
                            output.append(Token(matched.group(0), token, current))
                        current += len(matched.group(0))
                        break

                    case "Tk" if self._code[current:upper] == value:
                        output.append(Token(value, token, current))
                        current = upper
                        break
            else:
                raise LexerError(self._code, current)

        logger.debug("lexed %d tokens", len(output))
        return output + [Token("", TokenType.TkEOF, len(self._code))]

    def _continues_identifier(self, index: int) -> bool:
        return index < len(self._code) and (self._code[index].isalnum() or self._code[index] == "_")
