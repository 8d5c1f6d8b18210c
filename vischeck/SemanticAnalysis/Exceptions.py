from typing import Optional


class HierarchyError(Exception):
    """
    Base for errors in the shape of a class hierarchy. The front end sets 'where' to a source excerpt pointing at the
    offending declaration, which is then prefixed onto the message.
    """

    where: str

    def __init__(self, message: str):
        Exception.__init__(self, message)
        self.where = ""

    def __str__(self):
        return self.where + Exception.__str__(self)

class DuplicateClassError(HierarchyError):
    def __init__(self, class_name: str):
        HierarchyError.__init__(self, f"[0001] Class '{class_name}' is already defined.")
        self.class_name = class_name

class DuplicateMemberError(HierarchyError):
    def __init__(self, class_name: str, member_name: str):
        HierarchyError.__init__(self, f"[0002] Member '{member_name}' is already defined in class '{class_name}'.")
        self.class_name = class_name
        self.member_name = member_name

class UnknownClassError(HierarchyError):
    def __init__(self, class_name: str, referenced_by: Optional[str] = None):
        via = f" (parent of '{referenced_by}')" if referenced_by else ""
        HierarchyError.__init__(self, f"[0003] Unknown class '{class_name}'{via}.")
        self.class_name = class_name
        self.referenced_by = referenced_by

class InheritanceCycleError(HierarchyError):
    def __init__(self, cycle: list[str]):
        HierarchyError.__init__(self, f"[0004] Inheritance cycle: {' -> '.join(cycle)}.")
        self.cycle = cycle

class UnknownDecoratorError(HierarchyError):
    def __init__(self, decorator: str):
        HierarchyError.__init__(self, f"[0005] Unknown decorator '@{decorator}'. Expected '@public', '@protected' or '@private'.")
        self.decorator = decorator

class ConflictingVisibilityError(HierarchyError):
    def __init__(self, member_name: str, decorators: list[str]):
        HierarchyError.__init__(self, f"[0006] Member '{member_name}' has more than one visibility: {', '.join('@' + d for d in decorators)}.")
        self.member_name = member_name
