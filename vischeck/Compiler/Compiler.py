import dataclasses
import logging
import os
from typing import NamedTuple, Optional

from vischeck.LexicalAnalysis.Tokens import Token
from vischeck.LexicalAnalysis.Lexer import Lexer
from vischeck.SyntacticAnalysis.Ast import CheckStatementAst, ProgramAst
from vischeck.SyntacticAnalysis.Parser import ErrFmt, Parser

from vischeck.SemanticAnalysis.AccessControl import AccessAttempt, AccessOutcome, VisibilityChecker
from vischeck.SemanticAnalysis.ClassHierarchy import ClassHierarchy
from vischeck.SemanticAnalysis.HierarchyGeneration import HierarchyGeneration

from vischeck.Compiler.Printer import save_json, save_text
from vischeck.Compiler.Settings import Settings


logger = logging.getLogger(__name__)


class CheckResult(NamedTuple):
    statement: CheckStatementAst
    attempt: AccessAttempt
    outcome: AccessOutcome


class Compiler:
    _code: str
    _tokens: list[Token]
    _ast: ProgramAst
    _hierarchy: ClassHierarchy
    _results: list[CheckResult]

    def __init__(self, code: str, file_path: str, settings: Optional[Settings] = None):
        settings = settings or Settings.from_env()
        settings.apply_log_level()

        # Lex the code into a stream of tokens. The lexer normalises line endings and tabs, so error excerpts are
        # taken from its copy of the code.
        lexer = Lexer(code)
        self._tokens = lexer.lex()
        self._code = lexer.code
        err_fmt = ErrFmt(self._code, self._tokens, file_path, colour=settings.colour)

        # Parse the tokens into an AST.
        self._ast = Parser(self._tokens, err_fmt).parse()

        # Build the class hierarchy, and evaluate each check against it in source order.
        program = HierarchyGeneration.generate(self._ast, err_fmt)
        self._hierarchy = program.hierarchy
        self._results = [
            CheckResult(check.statement, check.attempt, VisibilityChecker.can_access(check.attempt))
            for check in program.checks]
        logger.info("%s: %d classes, %d checks, %d not allowed", file_path, len(self._hierarchy), len(self._results),
                    sum(not result.outcome for result in self._results))

        if settings.dump_dir:
            self._dump(settings.dump_dir)

    @property
    def ast(self) -> ProgramAst:
        return self._ast

    @property
    def hierarchy(self) -> ClassHierarchy:
        return self._hierarchy

    @property
    def results(self) -> list[CheckResult]:
        return self._results

    def report(self) -> list[str]:
        return [f"{str(result.statement).strip()}: {result.outcome.describe()}" for result in self._results]

    def _dump(self, dump_dir: str) -> None:
        save_json(dataclasses.asdict(self._ast), os.path.join(dump_dir, "ast.json"))
        save_text(str(self._ast), os.path.join(dump_dir, "new_code.vis"))
        save_json(self._hierarchy.json(), os.path.join(dump_dir, "hierarchy.json"))
        save_json([
            {"check": str(result.statement).strip(), **result.outcome.json()}
            for result in self._results], os.path.join(dump_dir, "results.json"))
