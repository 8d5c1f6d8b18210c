import dataclasses
import unittest

from vischeck.SemanticAnalysis.ClassHierarchy import ClassDeclaration, ClassHierarchy
from vischeck.SemanticAnalysis.ClassModel import ClassDefinition, MemberDeclaration, MemberKind, Visibility
from vischeck.SemanticAnalysis.Exceptions import (
    DuplicateClassError, DuplicateMemberError, InheritanceCycleError, UnknownClassError)


class TestClassDefinition(unittest.TestCase):
    def setUp(self):
        self.base = ClassDefinition("Base", members=[
            MemberDeclaration.field("id"),
            MemberDeclaration.method("save", Visibility.Protected)])
        self.middle = ClassDefinition("Middle", self.base)
        self.leaf = ClassDefinition("Leaf", self.middle, [MemberDeclaration.field("id", Visibility.Private)])

    def test_members_bound_to_owner(self):
        self.assertEqual([m.name for m in self.base.members], ["id", "save"])
        for member in self.base.members:
            self.assertIs(member.owner, self.base)
        self.assertEqual(self.base.lookup_declared("save").kind, MemberKind.Method)
        self.assertEqual(self.base.lookup_declared("save").qualified_name, "Base::save")

    def test_lookup_declared_ignores_inherited(self):
        self.assertIsNone(self.middle.lookup_declared("id"))
        self.assertIs(self.leaf.lookup_declared("id").owner, self.leaf)

    def test_lineage_and_ancestors(self):
        self.assertEqual([c.name for c in self.leaf.lineage()], ["Leaf", "Middle", "Base"])
        self.assertEqual([c.name for c in self.leaf.ancestors()], ["Middle", "Base"])
        self.assertEqual(list(self.base.ancestors()), [])

    def test_is_subclass_of(self):
        self.assertTrue(self.leaf.is_subclass_of(self.base))
        self.assertTrue(self.leaf.is_subclass_of(self.middle))
        self.assertFalse(self.leaf.is_subclass_of(self.leaf))
        self.assertFalse(self.base.is_subclass_of(self.leaf))

    def test_duplicate_member(self):
        with self.assertRaises(DuplicateMemberError) as context:
            ClassDefinition("Twice", members=[MemberDeclaration.field("x"), MemberDeclaration.method("x")])
        self.assertEqual(str(context.exception), "[0002] Member 'x' is already defined in class 'Twice'.")

    def test_name_reused_up_the_chain(self):
        with self.assertRaises(InheritanceCycleError) as context:
            ClassDefinition("Middle", self.leaf)
        self.assertEqual(context.exception.cycle, ["Middle", "Leaf", "Middle"])

    def test_visibility_is_immutable(self):
        member = self.base.lookup_declared("save")
        with self.assertRaises(dataclasses.FrozenInstanceError):
            member.visibility = Visibility.Public

    def test_json(self):
        self.assertEqual(self.leaf.json(), {
            "name": "Leaf",
            "parent": "Middle",
            "members": [{"name": "id", "kind": "field", "visibility": "private"}]})


class TestClassHierarchy(unittest.TestCase):
    def test_parents_declared_after_children(self):
        hierarchy = ClassHierarchy.build([
            ClassDeclaration("Employee", "Person", (MemberDeclaration.field("salary", Visibility.Private),)),
            ClassDeclaration("Person", None, (MemberDeclaration.method("getAge", Visibility.Protected),))])

        self.assertEqual([c.name for c in hierarchy], ["Employee", "Person"])
        self.assertIs(hierarchy.get("Employee").parent, hierarchy.get("Person"))
        self.assertEqual(len(hierarchy), 2)
        self.assertIn("Person", hierarchy)
        self.assertNotIn("Manager", hierarchy)

    def test_subclasses_of(self):
        hierarchy = ClassHierarchy.build([
            ClassDeclaration("A", None),
            ClassDeclaration("B", "A"),
            ClassDeclaration("C", "B"),
            ClassDeclaration("D", None)])
        self.assertEqual([c.name for c in hierarchy.subclasses_of(hierarchy.get("A"))], ["B", "C"])

    def test_duplicate_class(self):
        with self.assertRaises(DuplicateClassError):
            ClassHierarchy.build([ClassDeclaration("A", None), ClassDeclaration("A", None)])

    def test_unknown_parent(self):
        with self.assertRaises(UnknownClassError) as context:
            ClassHierarchy.build([ClassDeclaration("B", "A")])
        self.assertEqual(context.exception.referenced_by, "B")
        self.assertEqual(str(context.exception), "[0003] Unknown class 'A' (parent of 'B').")

    def test_cycle(self):
        with self.assertRaises(InheritanceCycleError) as context:
            ClassHierarchy.build([ClassDeclaration("A", "B"), ClassDeclaration("B", "C"), ClassDeclaration("C", "A")])
        self.assertEqual(context.exception.cycle, ["A", "B", "C", "A"])

    def test_deep_chain_declared_leaf_first(self):
        depth = 2000
        hierarchy = ClassHierarchy.build(
            ClassDeclaration(f"C{i}", f"C{i - 1}" if i else None) for i in reversed(range(depth)))

        leaf = hierarchy.get(f"C{depth - 1}")
        self.assertEqual(len(list(leaf.lineage())), depth)
        self.assertTrue(leaf.is_subclass_of(hierarchy.get("C0")))
        self.assertEqual([c.name for c in hierarchy][:2], [f"C{depth - 1}", f"C{depth - 2}"])

    def test_self_parent(self):
        with self.assertRaises(InheritanceCycleError):
            ClassHierarchy.build([ClassDeclaration("A", "A")])

    def test_get_unknown(self):
        with self.assertRaises(UnknownClassError):
            ClassHierarchy().get("Nope")

    def test_json(self):
        hierarchy = ClassHierarchy.build([ClassDeclaration("A", None), ClassDeclaration("B", "A")])
        self.assertEqual(hierarchy.json(), {"classes": [
            {"name": "A", "parent": None, "members": []},
            {"name": "B", "parent": "A", "members": []}]})


if __name__ == "__main__":
    unittest.main()
