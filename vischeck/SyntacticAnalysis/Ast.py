from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from vischeck.LexicalAnalysis.Tokens import Token


@dataclass
class ProgramAst:
    module: ModulePrototypeAst
    eof: TokenAst
    _tok: int

    def __str__(self):
        return str(self.module)

@dataclass
class TokenAst:
    tok: Token
    _tok: int

    def __str__(self):
        return self.tok.token_metadata

@dataclass
class IdentifierAst:
    identifier: str
    _tok: int

    def __hash__(self):
        return hash(self.identifier)

    def __eq__(self, other):
        return isinstance(other, IdentifierAst) and self.identifier == other.identifier

    def __str__(self):
        return self.identifier

@dataclass
class ModuleIdentifierAst:
    parts: list[IdentifierAst]
    _tok: int

    def __str__(self):
        return ".".join([str(part) for part in self.parts])

@dataclass
class ModulePrototypeAst:
    identifier: ModuleIdentifierAst
    members: list[ModuleMemberAst]
    _tok: int

    def __str__(self):
        s = "mod " + str(self.identifier) + "\n"
        s += "".join(["\n" + str(member) for member in self.members])
        return s

@dataclass
class DecoratorAst:
    identifier: IdentifierAst
    _tok: int

    def __str__(self):
        return "@" + str(self.identifier)

@dataclass
class ClassAttributeAst:
    decorators: list[DecoratorAst]
    identifier: IdentifierAst
    _tok: int

    def __str__(self):
        s = " ".join([str(dec) for dec in self.decorators]) + " " if self.decorators else ""
        s += str(self.identifier)
        return s

@dataclass
class ClassMethodAst:
    decorators: list[DecoratorAst]
    identifier: IdentifierAst
    _tok: int

    def __str__(self):
        s = " ".join([str(dec) for dec in self.decorators]) + " " if self.decorators else ""
        s += "fn " + str(self.identifier) + "()"
        return s

@dataclass
class ClassPrototypeAst:
    identifier: IdentifierAst
    super_class: Optional[IdentifierAst]
    members: list[ClassMemberAst]
    _tok: int

    def __hash__(self):
        return hash(self.identifier)

    def __str__(self):
        s = "cls " + str(self.identifier)
        s += " sup " + str(self.super_class) if self.super_class else ""
        s += " {\n" + "".join(["    " + str(member) + "\n" for member in self.members]) + "}\n"
        return s

@dataclass
class CheckStatementAst:
    instance_class: IdentifierAst
    member: IdentifierAst
    context: Optional[IdentifierAst]
    _tok: int

    def __str__(self):
        s = "check " + str(self.instance_class) + "." + str(self.member)
        s += " within " + str(self.context) if self.context else ""
        return s + "\n"


ClassMemberAst = ClassAttributeAst | ClassMethodAst
ModuleMemberAst = ClassPrototypeAst | CheckStatementAst
