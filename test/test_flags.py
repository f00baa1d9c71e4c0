"""
Flag declaration tests.

Scope
- Construction entry points (Flag(...), Flag.build_new(...)) and name validation.
- Declaration mismatch recovery (warning + zero value).
- Fluent mutators return new declarations and leave the receiver untouched.
- Lookup predicates and derived spellings.

Conventions
- Test method names follow CamelCase per project convention.
"""
import copy
import unittest
from unittest import TestCase

from flagtree import DeclarationMismatchWarning, Flag, FlagType, FlagValue


class FlagConstructionTest(TestCase):
    """Behavioral tests for flag construction."""

    def testNewUsesZeroValue(self):
        flag = Flag("count", "how many", FlagType.INT)
        self.assertEqual(flag.name, "count")
        self.assertEqual(flag.descr, "how many")
        self.assertIs(flag.flag_type, FlagType.INT)
        self.assertEqual(flag.default, FlagValue.Int(0))
        self.assertEqual(flag.short_aliases, ())
        self.assertEqual(flag.long_aliases, ())
        self.assertFalse(flag.local)

    def testNewDefaultsToString(self):
        flag = Flag("name")
        self.assertIs(flag.flag_type, FlagType.STRING)
        self.assertEqual(flag.default, FlagValue.String(""))

    def testBuildNew(self):
        flag = Flag.build_new("port", "listen port", ("p",), ("listen",), FlagType.INT, FlagValue.Int(8080))
        self.assertEqual(flag.short_aliases, ("p",))
        self.assertEqual(flag.long_aliases, ("listen",))
        self.assertEqual(flag.default, FlagValue.Int(8080))

    def testBuildNewMismatchFallsBackToZeroValue(self):
        for type in FlagType:
            for value in (FlagValue.Bool(True), FlagValue.String("x"), FlagValue.Int(3), FlagValue.Float(1.5)):
                if type.is_type_of(value):
                    continue
                with self.subTest(type=type, value=value):
                    with self.assertWarns(DeclarationMismatchWarning):
                        flag = Flag.build_new("flag", "", (), (), type, value)
                    self.assertEqual(flag.default, flag.flag_type.type_default())

    def testBuildNewNoneDefaultFallsBack(self):
        with self.assertWarns(DeclarationMismatchWarning) as context:
            flag = Flag.build_new("level", "", (), (), FlagType.FLOAT, FlagValue.NONE)
        self.assertEqual(flag.default, FlagValue.Float(0.0))
        self.assertEqual(context.warning.options["name"], "level")

    def testMismatchWarningPointsAtDeclaration(self):
        with self.assertWarns(DeclarationMismatchWarning) as context:
            Flag.build_new("level", "", (), (), FlagType.INT, FlagValue.String("high"))
        self.assertEqual(context.filename, __file__)

        with self.assertWarns(DeclarationMismatchWarning) as context:
            Flag("level", "", FlagType.INT).default_value(FlagValue.String("high"))
        self.assertEqual(context.filename, __file__)

    def testInvalidNames(self):
        for name in ("", "-v", "--verbose", "two words", "key=value", "tab\tbed"):
            with self.subTest(name=name):
                with self.assertRaises(ValueError):
                    Flag(name)
        with self.assertRaises(TypeError):
            Flag(5)

    def testInvalidArguments(self):
        with self.assertRaises(TypeError):
            Flag("name", None)
        with self.assertRaises(TypeError):
            Flag("name", "", "Int")
        with self.assertRaises(TypeError):
            Flag.build_new("name", "", "v", (), FlagType.BOOL, FlagValue.Bool(False))
        with self.assertRaises(TypeError):
            Flag.build_new("name", "", (), (), FlagType.INT, 0)

    def testDuplicateAliasesRejected(self):
        with self.assertRaises(ValueError):
            Flag.build_new("verbose", "", ("v", "v"), (), FlagType.BOOL, FlagValue.Bool(False))
        with self.assertRaises(ValueError):
            Flag("verbose", "", FlagType.BOOL).short("v").short("v")
        with self.assertRaises(ValueError):
            Flag("verbose", "", FlagType.BOOL).alias("loud").alias("loud")


class FlagMutatorTest(TestCase):
    """Behavioral tests for the fluent mutators."""

    def setUp(self) -> None:
        self.flag = Flag("verbose", "print more", FlagType.BOOL)

    def testMutatorsReturnNewFlags(self):
        changed = self.flag.short("v").alias("loud").usage("be loud").local_only()
        self.assertIsNot(changed, self.flag)
        self.assertEqual(changed.short_aliases, ("v",))
        self.assertEqual(changed.long_aliases, ("loud",))
        self.assertEqual(changed.descr, "be loud")
        self.assertTrue(changed.local)

        # the receiver is untouched
        self.assertEqual(self.flag.short_aliases, ())
        self.assertEqual(self.flag.long_aliases, ())
        self.assertEqual(self.flag.descr, "print more")
        self.assertFalse(self.flag.local)

    def testDefaultValue(self):
        changed = self.flag.default_value(FlagValue.Bool(True))
        self.assertEqual(changed.default, FlagValue.Bool(True))
        self.assertEqual(self.flag.default, FlagValue.Bool(False))

    def testDefaultValueMismatchIsIgnored(self):
        with self.assertWarns(DeclarationMismatchWarning):
            changed = self.flag.default_value(FlagValue.Int(1))
        self.assertIs(changed, self.flag)
        self.assertEqual(changed.default, FlagValue.Bool(False))

    def testUsageRejectsNonStrings(self):
        with self.assertRaises(TypeError):
            self.flag.usage(None)

    def testPredicates(self):
        flag = self.flag.short("v").alias("loud")
        self.assertTrue(flag.is_name("verbose"))
        self.assertFalse(flag.is_name("Verbose"))
        self.assertTrue(flag.is_short("v"))
        self.assertFalse(flag.is_short("V"))
        self.assertFalse(flag.is_short("loud"))
        self.assertTrue(flag.is_long("loud"))
        self.assertFalse(flag.is_long("verbose"))

    def testPredicatesWithoutAliases(self):
        self.assertFalse(self.flag.is_short("v"))
        self.assertFalse(self.flag.is_long("verbose"))

    def testSpellingsAndIdentifiers(self):
        flag = self.flag.short("v").alias("loud")
        self.assertEqual(flag.spellings, ("--verbose", "--loud", "-v"))
        self.assertEqual(flag.identifiers, frozenset(("verbose", "loud", "v")))


class FlagValueSemanticsTest(TestCase):
    """Equality, hashing, copying and representation."""

    def testEqualityByValue(self):
        one = Flag("port", "", FlagType.INT).short("p")
        two = Flag("port", "", FlagType.INT).short("p")
        self.assertEqual(one, two)
        self.assertEqual(hash(one), hash(two))
        self.assertNotEqual(one, two.local_only())

    def testCopyReturnsSelf(self):
        flag = Flag("port", "", FlagType.INT)
        self.assertIs(copy.copy(flag), flag)
        self.assertIs(copy.deepcopy(flag), flag)

    def testAttributesAreReadOnly(self):
        flag = Flag("port", "", FlagType.INT)
        with self.assertRaises(AttributeError):
            flag.name = "other"

    def testRepr(self):
        self.assertTrue(repr(Flag("port", "", FlagType.INT)).startswith("flag(name='port', descr=''"))


if __name__ == "__main__":
    unittest.main()
