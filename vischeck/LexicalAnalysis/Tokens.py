from dataclasses import dataclass
from enum import Enum


class TokenType(Enum):
    # Brackets (PAREN, BRACE)
    TkParenL = "("
    TkParenR = ")"
    TkBraceL = "{"
    TkBraceR = "}"

    # Other symbols
    TkDot = "."
    TkAt = "@"

    TkEOF = "\0"
    TkWhitespace = " "
    TkNewLine = "\n"

    # Keywords
    KwMod = "mod"
    KwCls = "cls"
    KwSup = "sup"
    KwFn = "fn"
    KwCheck = "check"
    KwWithin = "within"

    # Don't change order of these (regex are matched in this order)
    LxIdentifier = r"[a-z][_a-zA-Z0-9]*"
    LxUpperIdentifier = r"[A-Z][_a-zA-Z0-9]*"
    LxSingleLineComment = r"#.*"


@dataclass
class Token:
    token_metadata: str
    token_type: TokenType
    position: int = -1
