"""
Access modifiers are used to control the access of class members
- Public: Accessible from anywhere
- Protected: Accessible from the class and subclasses (at any depth)
- Private: Accessible only from the class - not from subclasses, not even direct ones

An access is an attempt to use a member on an instance of some runtime class, from a calling context: the class whose
code makes the access, or no class at all for code outside any class. The calling context is passed in explicitly,
never inferred from whatever happens to be executing.

Which member is accessed is resolved before any rule is applied
- A private member is only ever found from its own declaring class: if the calling class declares a private member of
  that name, and the instance is of the calling class (or a subclass), that is the member accessed
- Otherwise the most-derived declaration, walking up from the runtime class, is the member accessed
- A name nothing declares is "member not found", which is not a visibility failure
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Optional

import inflection

from vischeck.SemanticAnalysis.ClassModel import ClassDefinition, MemberDefinition, Visibility


logger = logging.getLogger(__name__)

PROTECTED_DENIAL = "protected member inaccessible outside class or subclass hierarchy"
PRIVATE_DENIAL = "private member inaccessible outside declaring class"


class ContextRelation(Enum):
    DeclaringClass = "inside the declaring class"
    Subclass = "inside a subclass of the declaring class"
    Unrelated = "outside any related class"


@dataclass(frozen=True)
class CallingContext:
    cls: Optional[ClassDefinition]

    @staticmethod
    def outside() -> CallingContext:
        return CallingContext(None)

    @staticmethod
    def inside(cls: ClassDefinition) -> CallingContext:
        return CallingContext(cls)

    def relation_to(self, declaring_class: ClassDefinition) -> ContextRelation:
        if self.cls is None:
            return ContextRelation.Unrelated
        if self.cls is declaring_class:
            return ContextRelation.DeclaringClass
        if self.cls.is_subclass_of(declaring_class):
            return ContextRelation.Subclass
        return ContextRelation.Unrelated

    def __str__(self):
        return f"class '{self.cls.name}'" if self.cls else "outside any class"


@dataclass(frozen=True)
class AccessAttempt:
    member: str
    instance_class: ClassDefinition
    context: CallingContext

    def __str__(self):
        return f"{self.instance_class.name}.{self.member} from {self.context}"


class AccessOutcome(ABC):
    @abstractmethod
    def describe(self) -> str:
        ...

    @abstractmethod
    def json(self) -> dict:
        ...


@dataclass(frozen=True)
class Allowed(AccessOutcome):
    member: MemberDefinition
    relation: ContextRelation

    def __bool__(self):
        return True

    def describe(self) -> str:
        return f"Can access {self.member.visibility} {self.member.kind} '{self.member.name}' of class '{self.member.owner.name}' from {self.relation.value}."

    def json(self) -> dict:
        return {"outcome": "allowed", "member": self.member.qualified_name, "relation": inflection.underscore(self.relation.name)}


@dataclass(frozen=True)
class Denied(AccessOutcome):
    member: MemberDefinition
    relation: ContextRelation
    reason: str

    def __bool__(self):
        return False

    def describe(self) -> str:
        # Matches the wording of a runtime error for the same access, ie "Cannot access private method ...".
        where = {
            ContextRelation.Subclass: "a subclass",
            ContextRelation.Unrelated: "outside the class hierarchy"}[self.relation]
        return f"Cannot access {self.member.visibility} {self.member.kind} '{self.member.name}' of class '{self.member.owner.name}' from {where}: {self.reason}."

    def json(self) -> dict:
        return {"outcome": "denied", "member": self.member.qualified_name, "relation": inflection.underscore(self.relation.name), "reason": self.reason}


@dataclass(frozen=True)
class MemberNotFound(AccessOutcome):
    member_name: str
    instance_class: ClassDefinition

    def __bool__(self):
        return False

    def describe(self) -> str:
        return f"Class '{self.instance_class.name}' has no member '{self.member_name}'."

    def json(self) -> dict:
        return {"outcome": "member_not_found", "member": self.member_name, "class": self.instance_class.name}


class VisibilityChecker:
    @staticmethod
    def can_access(attempt: AccessAttempt) -> AccessOutcome:
        member = VisibilityChecker.resolve(attempt.instance_class, attempt.member, attempt.context)
        if member is None:
            logger.debug("%s: member not found", attempt)
            return MemberNotFound(attempt.member, attempt.instance_class)

        relation = attempt.context.relation_to(member.owner)
        reason = VisibilityChecker.evaluate(member.visibility, relation)
        logger.debug("%s: resolved to %s, %s", attempt, member.qualified_name, reason or "allowed")
        return Allowed(member, relation) if reason is None else Denied(member, relation, reason)

    @staticmethod
    def resolve(instance_class: ClassDefinition, name: str, context: CallingContext) -> Optional[MemberDefinition]:
        # The calling class's own private member takes precedence, as long as the instance really is one of its kind.
        if context.cls is not None and (instance_class is context.cls or instance_class.is_subclass_of(context.cls)):
            own = context.cls.lookup_declared(name)
            if own is not None and own.visibility == Visibility.Private:
                return own

        for cls in instance_class.lineage():
            member = cls.lookup_declared(name)
            if member is not None:
                return member
        return None

    @staticmethod
    def evaluate(visibility: Visibility, relation: ContextRelation) -> Optional[str]:
        """
        The policy table on its own: given a member's visibility and how the calling context relates to the member's
        declaring class, return None if the access is allowed, or the reason it is denied.
        """
        match visibility:
            case Visibility.Public:
                return None
            case Visibility.Protected:
                return None if relation in (ContextRelation.DeclaringClass, ContextRelation.Subclass) else PROTECTED_DENIAL
            case Visibility.Private:
                return None if relation == ContextRelation.DeclaringClass else PRIVATE_DENIAL

    @staticmethod
    def accessible_members(instance_class: ClassDefinition, context: CallingContext) -> list[MemberDefinition]:
        # Every name the instance's lineage declares, resolved as an access would be, keeping the ones allowed.
        names = []
        for cls in instance_class.lineage():
            for member in cls.members:
                if member.name not in names:
                    names.append(member.name)

        accessible = []
        for name in names:
            outcome = VisibilityChecker.can_access(AccessAttempt(name, instance_class, context))
            if outcome:
                accessible.append(outcome.member)
        return accessible
