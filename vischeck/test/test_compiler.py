import json
import os
import tempfile
import unittest
from unittest import mock

from vischeck.Compiler.Compiler import Compiler
from vischeck.Compiler.Settings import Settings
from vischeck.SemanticAnalysis.AccessControl import Allowed, Denied, MemberNotFound
from vischeck.SemanticAnalysis.ClassModel import MemberKind, Visibility
from vischeck.SemanticAnalysis.Exceptions import (
    ConflictingVisibilityError, DuplicateClassError, DuplicateMemberError, InheritanceCycleError, UnknownClassError,
    UnknownDecoratorError)


BANK = """\
mod bank

# Balances are only readable by the account itself.
cls BankAccount {
    @public owner
    @private fn getBalance()
}

cls SavingsAccount sup BankAccount {
    @protected fn addInterest()
}

check BankAccount.getBalance within BankAccount
check SavingsAccount.getBalance within SavingsAccount
check SavingsAccount.owner
check SavingsAccount.addInterest
check SavingsAccount.overdraft
"""


def compile_code(code: str, **kwargs) -> Compiler:
    return Compiler(code, "bank.vis", Settings(colour=False, **kwargs))


class TestCompiler(unittest.TestCase):
    def setUp(self):
        self.compiler = compile_code(BANK)

    def test_hierarchy(self):
        hierarchy = self.compiler.hierarchy
        self.assertEqual([c.name for c in hierarchy], ["BankAccount", "SavingsAccount"])
        self.assertIs(hierarchy.get("SavingsAccount").parent, hierarchy.get("BankAccount"))

        get_balance = hierarchy.get("BankAccount").lookup_declared("getBalance")
        self.assertEqual(get_balance.kind, MemberKind.Method)
        self.assertEqual(get_balance.visibility, Visibility.Private)
        self.assertEqual(hierarchy.get("BankAccount").lookup_declared("owner").kind, MemberKind.Field)

    def test_outcomes(self):
        outcomes = [result.outcome for result in self.compiler.results]
        self.assertEqual([type(o) for o in outcomes], [Allowed, Denied, Allowed, Denied, MemberNotFound])
        self.assertEqual(outcomes[1].reason, "private member inaccessible outside declaring class")
        self.assertEqual(outcomes[3].reason, "protected member inaccessible outside class or subclass hierarchy")

    def test_report(self):
        self.assertEqual(self.compiler.report(), [
            "check BankAccount.getBalance within BankAccount: "
            "Can access private method 'getBalance' of class 'BankAccount' from inside the declaring class.",
            "check SavingsAccount.getBalance within SavingsAccount: "
            "Cannot access private method 'getBalance' of class 'BankAccount' from a subclass: "
            "private member inaccessible outside declaring class.",
            "check SavingsAccount.owner: "
            "Can access public field 'owner' of class 'BankAccount' from outside any related class.",
            "check SavingsAccount.addInterest: "
            "Cannot access protected method 'addInterest' of class 'SavingsAccount' from outside the class hierarchy: "
            "protected member inaccessible outside class or subclass hierarchy.",
            "check SavingsAccount.overdraft: Class 'SavingsAccount' has no member 'overdraft'."])

    def test_undecorated_member_is_public(self):
        compiler = compile_code("mod m\ncls A {\n    fn run()\n}\ncheck A.run\n")
        self.assertEqual(compiler.hierarchy.get("A").lookup_declared("run").visibility, Visibility.Public)
        self.assertIsInstance(compiler.results[0].outcome, Allowed)

    def test_classes_in_any_order(self):
        compiler = compile_code("mod m\ncls Employee sup Person {}\ncls Person {\n    @protected fn getAge()\n}\n"
                                "check Employee.getAge within Employee\n")
        self.assertIsInstance(compiler.results[0].outcome, Allowed)

    def test_dumps(self):
        with tempfile.TemporaryDirectory() as dump_dir:
            compile_code(BANK, dump_dir=dump_dir)
            self.assertEqual(
                sorted(os.listdir(dump_dir)), ["ast.json", "hierarchy.json", "new_code.vis", "results.json"])

            with open(os.path.join(dump_dir, "results.json")) as file:
                results = json.load(file)
            self.assertEqual([r["outcome"] for r in results], ["allowed", "denied", "allowed", "denied", "member_not_found"])
            self.assertEqual(results[1]["relation"], "subclass")

            with open(os.path.join(dump_dir, "hierarchy.json")) as file:
                self.assertEqual(json.load(file)["classes"][1]["parent"], "BankAccount")

            with open(os.path.join(dump_dir, "new_code.vis")) as file:
                self.assertEqual(len(compile_code(file.read()).results), 5)

    @mock.patch("vischeck.Compiler.Settings.load_dotenv")
    def test_settings_from_environment(self, load_dotenv):
        with tempfile.TemporaryDirectory() as dump_dir:
            with mock.patch.dict(os.environ, {"VISCHECK_DUMP_DIR": dump_dir, "VISCHECK_COLOUR": "0"}, clear=True):
                Compiler(BANK, "bank.vis")
            self.assertIn("results.json", os.listdir(dump_dir))
        load_dotenv.assert_called_once()


class TestCompilerErrors(unittest.TestCase):
    def assertCompileError(self, code: str, error: type, location: str, message: str):
        with self.assertRaises(error) as context:
            compile_code(code)
        self.assertIn(location, str(context.exception))
        self.assertTrue(str(context.exception).endswith(message), str(context.exception))

    def test_unknown_parent(self):
        self.assertCompileError(
            "mod bank\ncls SavingsAccount sup Account {\n}\n", UnknownClassError, "-> bank.vis:2:24",
            "^^^^^^^ <- [0003] Unknown class 'Account' (parent of 'SavingsAccount').")

    def test_duplicate_class(self):
        self.assertCompileError(
            "mod m\ncls A {}\ncls B {}\ncls A {}\n", DuplicateClassError, "-> bank.vis:4:5",
            "[0001] Class 'A' is already defined.")

    def test_duplicate_member(self):
        self.assertCompileError(
            "mod m\ncls A {\n    x\n    @private fn x()\n}\n", DuplicateMemberError, "-> bank.vis:4:17",
            "[0002] Member 'x' is already defined in class 'A'.")

    def test_inheritance_cycle(self):
        self.assertCompileError(
            "mod m\ncls A sup B {}\ncls B sup A {}\n", InheritanceCycleError, "-> bank.vis:2:11",
            "[0004] Inheritance cycle: A -> B -> A.")

    def test_unknown_decorator(self):
        self.assertCompileError(
            "mod m\ncls A {\n    @static fn x()\n}\n", UnknownDecoratorError, "-> bank.vis:3:5",
            "[0005] Unknown decorator '@static'. Expected '@public', '@protected' or '@private'.")

    def test_capitalised_decorator(self):
        self.assertCompileError(
            "mod m\ncls A {\n    @Public fn x()\n}\n", UnknownDecoratorError, "-> bank.vis:3:5",
            "[0005] Unknown decorator '@Public'. Expected '@public', '@protected' or '@private'.")

    def test_conflicting_visibility(self):
        self.assertCompileError(
            "mod m\ncls A {\n    @public @private x\n}\n", ConflictingVisibilityError, "-> bank.vis:3:13",
            "[0006] Member 'x' has more than one visibility: @public, @private.")

    def test_unknown_checked_class(self):
        self.assertCompileError(
            "mod m\ncls A {}\ncheck A.x within Z\n", UnknownClassError, "-> bank.vis:3:18",
            "[0003] Unknown class 'Z'.")


if __name__ == "__main__":
    unittest.main()
