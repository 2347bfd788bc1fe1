"""
Tests for the shared helpers.

This module verifies:
- The Unset sentinel (singleton, falsy, final, usable in isinstance unions).
- coalesce() only replaces Unset.
- mirror() exposes detached copies of private containers.
- pluralize() for the words used in fault messages.
"""
import unittest
from unittest import TestCase

from navarch.utils import *


class UnsetTest(TestCase):
    """
    Semantics of the Unset sentinel and coalesce().
    """

    def testSingleton(self):
        self.assertIs(UnsetType(), Unset)

    def testFalsyAndPrintable(self):
        self.assertFalse(Unset)
        self.assertEqual(repr(Unset), "Unset")
        self.assertIsNot(Unset, None)

    def testFinal(self):
        with self.assertRaises(TypeError):
            class Subclass(UnsetType):
                pass

    def testUnion(self):
        self.assertIsInstance(Unset, str | Unset)
        self.assertIsInstance("text", str | Unset)

    def testCoalesce(self):
        self.assertEqual(coalesce(Unset, "fallback"), "fallback")
        self.assertIsNone(coalesce(Unset))
        self.assertIs(coalesce(False, "fallback"), False)
        self.assertEqual(coalesce("", "fallback"), "")


class MirrorTest(TestCase):

    def testContainersAreDetached(self):
        class Holder:
            items = mirror("items")

            def __init__(self):
                self._items = {"a": [1, 2]}

        holder = Holder()
        items = holder.items
        items["a"].append(3)
        items["b"] = []
        self.assertEqual(holder.items, {"a": [1, 2]})

    def testReadOnly(self):
        class Holder:
            name = mirror("name")

            def __init__(self):
                self._name = "device"

        with self.assertRaises(AttributeError):
            Holder().name = "other"

    def testRename(self):
        @rename("renamed")
        def generated():
            pass

        self.assertEqual(generated.__name__, "renamed")
        self.assertEqual(generated.__qualname__, "renamed")


class PluralizeTest(TestCase):

    def testSingular(self):
        self.assertEqual(pluralize("argument", 1), "argument")

    def testRegular(self):
        self.assertEqual(pluralize("argument"), "arguments")
        self.assertEqual(pluralize("flag", 3), "flags")

    def testSibilantAndY(self):
        self.assertEqual(pluralize("switch"), "switches")
        self.assertEqual(pluralize("category"), "categories")
        self.assertEqual(pluralize("key"), "keys")


if __name__ == "__main__":
    unittest.main()
