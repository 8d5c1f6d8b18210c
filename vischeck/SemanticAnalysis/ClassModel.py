"""
The declared shape of a class hierarchy: classes, their parent links, and the members each class declares itself.
Everything here is built once and read-only afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Iterator, NamedTuple, Optional

import inflection

from vischeck.SemanticAnalysis.Exceptions import DuplicateMemberError, InheritanceCycleError


class Visibility(Enum):
    Public = "public"
    Protected = "protected"
    Private = "private"

    def __str__(self):
        return self.value


class MemberKind(Enum):
    Field = "field"
    Method = "method"

    def __str__(self):
        return self.value


class MemberDeclaration(NamedTuple):
    name: str
    kind: MemberKind
    visibility: Visibility

    @staticmethod
    def field(name: str, visibility: Visibility = Visibility.Public) -> MemberDeclaration:
        return MemberDeclaration(name, MemberKind.Field, visibility)

    @staticmethod
    def method(name: str, visibility: Visibility = Visibility.Public) -> MemberDeclaration:
        return MemberDeclaration(name, MemberKind.Method, visibility)


@dataclass(frozen=True, eq=False)
class MemberDefinition:
    name: str
    kind: MemberKind
    visibility: Visibility
    owner: ClassDefinition = field(repr=False)

    @property
    def qualified_name(self) -> str:
        return f"{self.owner.name}::{self.name}"

    def json(self) -> dict:
        return {
            "name": self.name,
            "kind": inflection.underscore(self.kind.name),
            "visibility": inflection.underscore(self.visibility.name)
        }

    def __str__(self):
        return f"{self.visibility} {self.kind} {self.qualified_name}"


class ClassDefinition:
    _name: str
    _parent: Optional[ClassDefinition]
    _members: dict[str, MemberDefinition]

    def __init__(self, name: str, parent: Optional[ClassDefinition] = None, members: Iterable[MemberDeclaration] = ()):
        # A parent has to exist before its child, so a cycle can only appear through a name being reused further up the
        # chain. Reject that, so a name always means one class within a chain.
        chain = [name]
        for ancestor in (parent.lineage() if parent else []):
            chain.append(ancestor.name)
            if ancestor.name == name:
                raise InheritanceCycleError(chain)

        self._name = name
        self._parent = parent
        self._members = {}

        for declaration in members:
            if declaration.name in self._members:
                raise DuplicateMemberError(name, declaration.name)
            self._members[declaration.name] = MemberDefinition(*declaration, owner=self)

    @property
    def name(self) -> str:
        return self._name

    @property
    def parent(self) -> Optional[ClassDefinition]:
        return self._parent

    @property
    def members(self) -> tuple[MemberDefinition, ...]:
        return tuple(self._members.values())

    def lookup_declared(self, name: str) -> Optional[MemberDefinition]:
        # Only this class's own members; inherited ones are resolved by walking the lineage.
        return self._members.get(name)

    def lineage(self) -> Iterator[ClassDefinition]:
        # This class, then each ancestor up to the root.
        current = self
        while current is not None:
            yield current
            current = current.parent

    def ancestors(self) -> Iterator[ClassDefinition]:
        lineage = self.lineage()
        next(lineage)
        return lineage

    def is_subclass_of(self, other: ClassDefinition) -> bool:
        """
        Strict and transitive: a class is not its own subclass, but is a subclass of every ancestor at any depth.
        """
        return any(ancestor is other for ancestor in self.ancestors())

    def json(self) -> dict:
        return {
            "name": self._name,
            "parent": self._parent.name if self._parent else None,
            "members": [member.json() for member in self._members.values()]
        }

    def __repr__(self):
        return f"ClassDefinition({self._name!r})"

    def __str__(self):
        return self._name
