from __future__ import annotations

import functools
import logging

import colorama

from typing import Callable, Any, Optional, TypeVar, Generic
from vischeck.SyntacticAnalysis import Ast
from vischeck.LexicalAnalysis.Tokens import TokenType, Token


class ParseSyntaxError(Exception):
    ...

class ParserError(Exception):
    ...


logger = logging.getLogger(__name__)


@functools.cache
def init_colour() -> None:
    # Once per process, so ANSI excerpts also render on Windows consoles.
    colorama.init()


T = TypeVar("T")


class ErrFmt:
    """
    Formats a source excerpt pointing at a token, for prefixing onto error messages:

        -> bank.vis:2:24
          |
        2 | cls SavingsAccount sup Account {
          |                        ^^^^^^^ <- [0003] Unknown class 'Account' (parent of 'SavingsAccount').
    """

    _code: str
    _tokens: list[Token]
    _file_path: str
    _colour: bool

    def __init__(self, code: str, tokens: list[Token], file_path: str, colour: bool = True):
        self._code = code
        self._tokens = tokens
        self._file_path = file_path
        self._colour = colour
        if colour:
            init_colour()

    def _style(self, *styles: str) -> str:
        return "".join(styles) if self._colour else ""

    def err(self, start_token_index: int) -> str:
        # Move off any layout tokens so the caret lands on something visible. The EOF token is allowed, and points just
        # past the end of the code.
        while self._tokens[start_token_index].token_type in [TokenType.TkNewLine, TokenType.TkWhitespace]:
            start_token_index += 1
        token = self._tokens[start_token_index]
        position = token.position

        line_start = self._code.rfind("\n", 0, position) + 1
        line_end = self._code.find("\n", position)
        if line_end == -1:
            line_end = len(self._code)
        if position == len(self._code) and line_start == line_end and line_start > 0:
            # EOF straight after a trailing newline: point at the end of the last real line instead.
            line_end = line_start - 1
            line_start = self._code.rfind("\n", 0, line_end) + 1
            position = line_end

        line_number = self._code.count("\n", 0, line_start) + 1
        column = position - line_start
        error_length = max(1, len(token.token_metadata))

        bright = self._style(colorama.Fore.WHITE, colorama.Style.BRIGHT)
        reset = self._style(colorama.Style.RESET_ALL)
        margin = " " * len(str(line_number))

        file_path_string = f"-> {bright}{self._file_path}:{line_number}:{column + 1}{reset}"
        top_line_padding_string = f"{margin} {bright}|{reset}"
        line_containing_error_string = "".join([
            f"{bright}{line_number} |{reset} ",
            self._style(colorama.Fore.GREEN),
            self._code[line_start:line_end],
            reset])
        error_description_string = "".join([
            f"{margin} {bright}|{reset} ",
            self._style(colorama.Fore.RED, colorama.Style.BRIGHT),
            " " * column, "^" * error_length,
            reset,
            " <- "])

        return "\n".join([
            "",
            file_path_string,
            top_line_padding_string,
            line_containing_error_string,
            error_description_string])


class BoundParser(Generic[T]):
    _rule: Optional[Callable[[], T]]
    _parser: Parser
    _delayed: bool
    _ast: Optional[Any]

    def __init__(self, parser: Parser, rule: Optional[Callable[[], T]]):
        self._rule = rule
        self._parser = parser
        self._delayed = False
        self._ast = None

    def parse_once(self) -> T:
        # Run the rule. A ParseSyntaxError propagates up to whichever combinator can backtrack over it.
        results = self._rule()

        # Remove None from a list of results (where a parse_optional has added a None to the list).
        while isinstance(results, list) and None in results:
            results.remove(None)

        self._ast = results
        return self._ast

    def parse_optional(self) -> Optional[T]:
        # Save the current index of the parser, so it can be restored if the rule doesn't match, letting the next rule
        # start from the same place.
        restore_index = self._parser.current
        try:
            return self.parse_once()
        except ParseSyntaxError:
            self._parser.current = restore_index
            self._ast = None
            return self._ast

    def parse_zero_or_more(self) -> list[T]:
        results = []

        # Keep parsing until the rule fails; the failed attempt's tokens are given back.
        while True:
            restore_index = self._parser.current
            try:
                results.append(self.parse_once())
            except ParseSyntaxError:
                self._parser.current = restore_index
                self._ast = results
                return self._ast

    def delay_parse(self) -> BoundParser:
        self._delayed = True
        return self

    def __or__(self, that: BoundParser) -> BoundParser:
        # Chain alternatives; the first one that parses wins.
        if not (self._delayed and that._delayed):
            raise ParserError("Both parsers must be delayed")

        if isinstance(self, MultiBoundParser):
            self.add_bound_parser(that)
            return self

        multi_bound_parser = MultiBoundParser(self._parser)
        multi_bound_parser.delay_parse()
        multi_bound_parser.add_bound_parser(self)
        multi_bound_parser.add_bound_parser(that)
        return multi_bound_parser


class MultiBoundParser(BoundParser):
    _bound_parsers: list[BoundParser]

    def __init__(self, parser: Parser):
        super().__init__(parser, None)
        self._bound_parsers = []

    def add_bound_parser(self, bound_parser: BoundParser):
        self._bound_parsers.append(bound_parser)

    def parse_once(self):
        for bound_parser in self._bound_parsers:
            restore_index = self._parser.current
            try:
                return bound_parser.parse_once()
            except ParseSyntaxError:
                self._parser.current = restore_index

        raise ParseSyntaxError("Error parsing from selection")


class Parser:
    _tokens: list[Token]
    _current: int
    _err_fmt: ErrFmt

    # The furthest token index any rule failed at, and what was expected there. This is the error reported to the
    # user, as it is the point the parse got closest to succeeding.
    _furthest_error_index: int
    _expected_tokens: list[str]

    def __init__(self, tokens: list[Token], err_fmt: ErrFmt):
        self._tokens = tokens
        self._current = 0
        self._err_fmt = err_fmt

        self._furthest_error_index = -1
        self._expected_tokens = []

    def parse(self) -> Ast.ProgramAst:
        try:
            program = self._parse_program().parse_once()
        except ParseSyntaxError:
            got = self._describe_token(self._tokens[self._furthest_error_index].token_type)
            raise ParserError(
                self._err_fmt.err(self._furthest_error_index) +
                f"Expected one of {', '.join(self._expected_tokens)}, got: {got}.") from None

        logger.debug("parsed module '%s' with %d members", program.module.identifier, len(program.module.members))
        return program

    def _parse_program(self) -> BoundParser:
        """
        [Program] => [ModulePrototype] [EOF]

        The root rule. The [EOF] check is needed, as otherwise any valid prefix of the code would parse, leaving the
        rest of the code unparsed.
        """
        def inner():
            c1 = self._current_token_index()
            p1 = self._parse_module_prototype().parse_once()
            p2 = self._parse_token(TokenType.TkEOF).parse_once()
            return Ast.ProgramAst(p1, p2, c1)
        return BoundParser(self, inner)

    def _parse_module_prototype(self) -> BoundParser:
        """
        [ModulePrototype] => [Token(Mod)] [ModuleIdentifier] [ModuleMember]*
        """
        def inner():
            c1 = self._current_token_index()
            p1 = self._parse_token(TokenType.KwMod).parse_once()
            p2 = self._parse_module_identifier().parse_once()
            p3 = self._parse_module_member().parse_zero_or_more()
            return Ast.ModulePrototypeAst(p2, p3, c1)
        return BoundParser(self, inner)

    def _parse_module_identifier(self) -> BoundParser:
        def inner():
            c1 = self._current_token_index()
            p1 = self._parse_identifier().parse_once()
            p2 = self._parse_module_identifier_next_part().parse_zero_or_more()
            return Ast.ModuleIdentifierAst([p1, *p2], c1)
        return BoundParser(self, inner)

    def _parse_module_identifier_next_part(self) -> BoundParser:
        def inner():
            p1 = self._parse_token(TokenType.TkDot).parse_once()
            p2 = self._parse_identifier().parse_once()
            return p2
        return BoundParser(self, inner)

    def _parse_module_member(self) -> BoundParser:
        def inner():
            p1 = self._parse_class_prototype().delay_parse()
            p2 = self._parse_check_statement().delay_parse()
            p3 = (p1 | p2).parse_once()
            return p3
        return BoundParser(self, inner)

    # Classes

    def _parse_class_prototype(self) -> BoundParser:
        """
        [ClassPrototype] => [Token(Cls)] [ClassIdentifier] [SuperClass]? [Token(BraceL)] [ClassMember]* [Token(BraceR)]
        - [SuperClass] => [Token(Sup)] [ClassIdentifier]
        """
        def inner():
            c1 = self._current_token_index()
            p1 = self._parse_token(TokenType.KwCls).parse_once()
            p2 = self._parse_class_identifier().parse_once()
            p3 = self._parse_super_class().parse_optional()
            p4 = self._parse_token(TokenType.TkBraceL).parse_once()
            p5 = self._parse_class_member().parse_zero_or_more()
            p6 = self._parse_token(TokenType.TkBraceR).parse_once()
            return Ast.ClassPrototypeAst(p2, p3, p5, c1)
        return BoundParser(self, inner)

    def _parse_super_class(self) -> BoundParser:
        def inner():
            p1 = self._parse_token(TokenType.KwSup).parse_once()
            p2 = self._parse_class_identifier().parse_once()
            return p2
        return BoundParser(self, inner)

    def _parse_class_member(self) -> BoundParser:
        def inner():
            p1 = self._parse_class_method().delay_parse()
            p2 = self._parse_class_attribute().delay_parse()
            p3 = (p1 | p2).parse_once()
            return p3
        return BoundParser(self, inner)

    def _parse_class_method(self) -> BoundParser:
        """
        [ClassMethod] => [Decorator]* [Token(Fn)] [Identifier] [Token(ParenL)] [Token(ParenR)]
        """
        def inner():
            c1 = self._current_token_index()
            p1 = self._parse_decorators().parse_once()
            p2 = self._parse_token(TokenType.KwFn).parse_once()
            p3 = self._parse_identifier().parse_once()
            p4 = self._parse_token(TokenType.TkParenL).parse_once()
            p5 = self._parse_token(TokenType.TkParenR).parse_once()
            return Ast.ClassMethodAst(p1, p3, c1)
        return BoundParser(self, inner)

    def _parse_class_attribute(self) -> BoundParser:
        def inner():
            c1 = self._current_token_index()
            p1 = self._parse_decorators().parse_once()
            p2 = self._parse_identifier().parse_once()
            return Ast.ClassAttributeAst(p1, p2, c1)
        return BoundParser(self, inner)

    def _parse_class_identifier(self) -> BoundParser:
        def inner():
            p1 = self._parse_upper_identifier().parse_once()
            return p1
        return BoundParser(self, inner)

    # Checks

    def _parse_check_statement(self) -> BoundParser:
        """
        [CheckStatement] => [Token(Check)] [ClassIdentifier] [Token(Dot)] [Identifier] [Within]?
        - [Within] => [Token(Within)] [ClassIdentifier]

        A check without a [Within] clause is an access from outside any class.
        """
        def inner():
            c1 = self._current_token_index()
            p1 = self._parse_token(TokenType.KwCheck).parse_once()
            p2 = self._parse_class_identifier().parse_once()
            p3 = self._parse_token(TokenType.TkDot).parse_once()
            p4 = self._parse_identifier().parse_once()
            p5 = self._parse_within().parse_optional()
            return Ast.CheckStatementAst(p2, p4, p5, c1)
        return BoundParser(self, inner)

    def _parse_within(self) -> BoundParser:
        def inner():
            p1 = self._parse_token(TokenType.KwWithin).parse_once()
            p2 = self._parse_class_identifier().parse_once()
            return p2
        return BoundParser(self, inner)

    # Decorators

    def _parse_decorator(self) -> BoundParser:
        """
        [Decorator] => [Token(At)] [Identifier | UpperIdentifier]

        Any name parses, so that a misspelt decorator such as @Public is reported as an unknown decorator.
        """
        def inner():
            c1 = self._current_token_index()
            p1 = self._parse_token(TokenType.TkAt).parse_once()
            p2 = self._parse_identifier().delay_parse()
            p3 = self._parse_upper_identifier().delay_parse()
            p4 = (p2 | p3).parse_once()
            return Ast.DecoratorAst(p4, c1)
        return BoundParser(self, inner)

    def _parse_decorators(self) -> BoundParser:
        def inner():
            p1 = self._parse_decorator().parse_zero_or_more()
            return p1
        return BoundParser(self, inner)

    # Misc

    def _parse_identifier(self) -> BoundParser:
        def inner():
            c1 = self._current_token_index()
            p1 = self._parse_lexeme(TokenType.LxIdentifier).parse_once()
            return Ast.IdentifierAst(p1, c1)
        return BoundParser(self, inner)

    def _parse_upper_identifier(self) -> BoundParser:
        def inner():
            c1 = self._current_token_index()
            p1 = self._parse_lexeme(TokenType.LxUpperIdentifier).parse_once()
            return Ast.IdentifierAst(p1, c1)
        return BoundParser(self, inner)

    def _parse_token(self, token: TokenType) -> BoundParser:
        def inner():
            self._skip(TokenType.TkNewLine, TokenType.TkWhitespace)
            c1 = self._current_token_index()

            current_token = self._tokens[self._current]
            if current_token.token_type != token:
                self._record_expected(token)
                raise ParseSyntaxError(f"Expected {self._describe_token(token)}, got {self._describe_token(current_token.token_type)}")

            self._current += 1
            return Ast.TokenAst(current_token, c1)
        return BoundParser(self, inner)

    def _parse_lexeme(self, lexeme: TokenType) -> BoundParser:
        def inner():
            p1 = self._parse_token(lexeme).parse_once()
            return p1.tok.token_metadata
        return BoundParser(self, inner)

    def _record_expected(self, token: TokenType) -> None:
        expected = self._describe_token(token)
        if self._current > self._furthest_error_index:
            self._furthest_error_index = self._current
            self._expected_tokens = [expected]
        elif self._current == self._furthest_error_index and expected not in self._expected_tokens:
            self._expected_tokens.append(expected)

    @staticmethod
    def _describe_token(token: TokenType) -> str:
        match token.name[:2]:
            case "Lx": return token.name[2:]
            case _ if token == TokenType.TkEOF: return "<EOF>"
            case _: return f"'{token.value}'"

    def _current_token_index(self) -> int:
        return self._current

    def _skip(self, *tokens: TokenType):
        while self._current < len(self._tokens) and self._tokens[self._current].token_type in tokens:
            self._current += 1

    @property
    def current(self) -> int:
        return self._current

    @current.setter
    def current(self, value: int) -> None:
        self._current = value
