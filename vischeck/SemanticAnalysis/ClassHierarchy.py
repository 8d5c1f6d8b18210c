from __future__ import annotations

import logging
from typing import Iterable, Iterator, NamedTuple, Optional

from vischeck.SemanticAnalysis.ClassModel import ClassDefinition, MemberDeclaration
from vischeck.SemanticAnalysis.Exceptions import DuplicateClassError, InheritanceCycleError, UnknownClassError


logger = logging.getLogger(__name__)


class ClassDeclaration(NamedTuple):
    name: str
    parent: Optional[str]
    members: tuple[MemberDeclaration, ...] = ()


class ClassHierarchy:
    """
    Every class of a program by name. Declarations may reference parents declared after them; 'build' links them up,
    creating each parent's ClassDefinition before its children's.
    """

    _classes: dict[str, ClassDefinition]

    def __init__(self, classes: Iterable[ClassDefinition] = ()):
        self._classes = {}
        for cls in classes:
            if cls.name in self._classes:
                raise DuplicateClassError(cls.name)
            self._classes[cls.name] = cls

    @staticmethod
    def build(declarations: Iterable[ClassDeclaration]) -> ClassHierarchy:
        declared: dict[str, ClassDeclaration] = {}
        for declaration in declarations:
            if declaration.name in declared:
                raise DuplicateClassError(declaration.name)
            declared[declaration.name] = declaration

        built: dict[str, ClassDefinition] = {}

        for name in declared:
            # Walk up the parents until a built class or a root, then define the path top down.
            # Iterative, as chains can be arbitrarily deep.
            path = []
            current = name
            while current is not None and current not in built:
                if current in path:
                    raise InheritanceCycleError(path[path.index(current):] + [current])
                path.append(current)

                parent = declared[current].parent
                if parent is not None and parent not in declared:
                    raise UnknownClassError(parent, referenced_by=current)
                current = parent

            for class_name in reversed(path):
                declaration = declared[class_name]
                parent = built[declaration.parent] if declaration.parent is not None else None
                built[class_name] = ClassDefinition(class_name, parent, declaration.members)
                logger.debug("defined class '%s' (parent: %s, %d members)",
                             class_name, declaration.parent, len(declaration.members))

        # Keep declaration order rather than definition order.
        return ClassHierarchy(built[name] for name in declared)

    def get(self, name: str) -> ClassDefinition:
        if name not in self._classes:
            raise UnknownClassError(name)
        return self._classes[name]

    def subclasses_of(self, cls: ClassDefinition) -> list[ClassDefinition]:
        return [other for other in self._classes.values() if other.is_subclass_of(cls)]

    def __contains__(self, name: str) -> bool:
        return name in self._classes

    def __iter__(self) -> Iterator[ClassDefinition]:
        return iter(self._classes.values())

    def __len__(self) -> int:
        return len(self._classes)

    def json(self) -> dict:
        return {"classes": [cls.json() for cls in self._classes.values()]}
