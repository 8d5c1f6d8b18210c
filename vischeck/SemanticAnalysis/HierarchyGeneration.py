"""
Turns a parsed program into its ClassHierarchy, and each 'check' statement into an AccessAttempt against it.
Structural errors come out as HierarchyErrors, located at the declaration that caused them.
"""

import logging
from typing import NamedTuple

from multimethod import multimethod

from vischeck.SyntacticAnalysis import Ast
from vischeck.SyntacticAnalysis.Parser import ErrFmt
from vischeck.SemanticAnalysis.AccessControl import AccessAttempt, CallingContext
from vischeck.SemanticAnalysis.ClassHierarchy import ClassDeclaration, ClassHierarchy
from vischeck.SemanticAnalysis.ClassModel import MemberDeclaration, Visibility
from vischeck.SemanticAnalysis.Exceptions import (
    ConflictingVisibilityError, DuplicateClassError, DuplicateMemberError, HierarchyError, InheritanceCycleError,
    UnknownClassError, UnknownDecoratorError)


logger = logging.getLogger(__name__)

VISIBILITY_DECORATORS = {visibility.value: visibility for visibility in Visibility}


class CheckedAccess(NamedTuple):
    statement: Ast.CheckStatementAst
    attempt: AccessAttempt


class GeneratedProgram(NamedTuple):
    hierarchy: ClassHierarchy
    checks: list[CheckedAccess]


def located(error: HierarchyError, err_fmt: ErrFmt, tok: int) -> HierarchyError:
    error.where = err_fmt.err(tok)
    return error


@multimethod
def collect_module_member(ast: Ast.ClassPrototypeAst, classes: list, checks: list) -> None:
    classes.append(ast)


@multimethod
def collect_module_member(ast: Ast.CheckStatementAst, classes: list, checks: list) -> None:
    checks.append(ast)


@multimethod
def generate_member_declaration(ast: Ast.ClassAttributeAst, err_fmt: ErrFmt) -> MemberDeclaration:
    return MemberDeclaration.field(ast.identifier.identifier, generate_visibility(ast, err_fmt))


@multimethod
def generate_member_declaration(ast: Ast.ClassMethodAst, err_fmt: ErrFmt) -> MemberDeclaration:
    return MemberDeclaration.method(ast.identifier.identifier, generate_visibility(ast, err_fmt))


def generate_visibility(ast: Ast.ClassMemberAst, err_fmt: ErrFmt) -> Visibility:
    # Members without a visibility decorator are public.
    decorators = []
    for decorator in ast.decorators:
        if decorator.identifier.identifier not in VISIBILITY_DECORATORS:
            raise located(UnknownDecoratorError(decorator.identifier.identifier), err_fmt, decorator._tok)
        decorators.append(decorator)

    if len(decorators) > 1:
        names = [d.identifier.identifier for d in decorators]
        raise located(ConflictingVisibilityError(ast.identifier.identifier, names), err_fmt, decorators[1]._tok)
    return VISIBILITY_DECORATORS[decorators[0].identifier.identifier] if decorators else Visibility.Public


class HierarchyGeneration:
    @staticmethod
    def generate(ast: Ast.ProgramAst, err_fmt: ErrFmt) -> GeneratedProgram:
        classes, checks = [], []
        for member in ast.module.members:
            collect_module_member(member, classes, checks)

        hierarchy = HierarchyGeneration.generate_hierarchy(classes, err_fmt)
        attempts = [HierarchyGeneration.generate_access_attempt(check, hierarchy, err_fmt) for check in checks]
        return GeneratedProgram(hierarchy, [CheckedAccess(check, attempt) for check, attempt in zip(checks, attempts)])

    @staticmethod
    def generate_hierarchy(asts: list[Ast.ClassPrototypeAst], err_fmt: ErrFmt) -> ClassHierarchy:
        declarations = []
        for ast in asts:
            members = tuple(generate_member_declaration(member, err_fmt) for member in ast.members)
            parent = ast.super_class.identifier if ast.super_class else None
            declarations.append(ClassDeclaration(ast.identifier.identifier, parent, members))

        try:
            hierarchy = ClassHierarchy.build(declarations)

        # Point each error at the declaration responsible. For duplicates that is the second definition.
        except DuplicateClassError as e:
            redefinition = [a for a in asts if a.identifier.identifier == e.class_name][1]
            raise located(e, err_fmt, redefinition.identifier._tok)

        except DuplicateMemberError as e:
            cls = next(a for a in asts if a.identifier.identifier == e.class_name)
            redefinition = [m for m in cls.members if m.identifier.identifier == e.member_name][1]
            raise located(e, err_fmt, redefinition.identifier._tok)

        except UnknownClassError as e:
            cls = next(a for a in asts if a.identifier.identifier == e.referenced_by)
            raise located(e, err_fmt, cls.super_class._tok)

        except InheritanceCycleError as e:
            cls = next(a for a in asts if a.identifier.identifier == e.cycle[0])
            raise located(e, err_fmt, cls.super_class._tok)

        logger.debug("generated hierarchy of %d classes", len(hierarchy))
        return hierarchy

    @staticmethod
    def generate_access_attempt(ast: Ast.CheckStatementAst, hierarchy: ClassHierarchy, err_fmt: ErrFmt) -> AccessAttempt:
        instance_class = HierarchyGeneration._get_class(ast.instance_class, hierarchy, err_fmt)
        context = CallingContext.outside()
        if ast.context is not None:
            context = CallingContext.inside(HierarchyGeneration._get_class(ast.context, hierarchy, err_fmt))
        return AccessAttempt(ast.member.identifier, instance_class, context)

    @staticmethod
    def _get_class(identifier: Ast.IdentifierAst, hierarchy: ClassHierarchy, err_fmt: ErrFmt):
        if identifier.identifier not in hierarchy:
            raise located(UnknownClassError(identifier.identifier), err_fmt, identifier._tok)
        return hierarchy.get(identifier.identifier)
