"""
Positional parameter grammar: compilation and binding.

Scope
- compile_grammar(): slot shapes, multi-name slots, authoring faults.
- bind_params(): required/optional/variadic binding and usage faults.

Conventions
- Test method names follow CamelCase per project convention.
- Usage faults are raised by the binder; the dispatch layer captures them.
"""

from __future__ import annotations

import unittest
from unittest import TestCase

from navarch.faults import (
    FaultCode,
    RequiredParameterError,
    RequiredParameterPositionError,
    UnknownParametersError,
    VariadicParameterPositionError,
    VariadicParameterRequiredError,
)
from navarch.grammar import *


def bind(grammar, extra):
    return bind_params(compile_grammar(grammar), extra)


class TestCompile(TestCase):
    """Grammar compilation and authoring rules."""

    def testEmptyGrammar(self):
        self.assertEqual(compile_grammar(""), ())

    def testSlotShapes(self):
        device, files = compile_grammar("<device> [files...]")
        self.assertEqual(device, Parameter("device", ("device",), True, False))
        self.assertEqual(files, Parameter("files", ("files",), False, True))

    def testMultiNameSlot(self):
        slot, = compile_grammar("<a|b>")
        self.assertEqual(slot.names, ("a", "b"))
        self.assertEqual(slot.label, "a|b")

    def testVariadicMustBeLast(self):
        with self.assertRaises(VariadicParameterPositionError) as context:
            compile_grammar("[a] [b...] [c]")
        self.assertEqual(context.exception.data, "b")
        self.assertIs(context.exception.type, FaultCode.VARIADIC_PARAMETER_POSITION)

    def testRequiredAfterOptional(self):
        with self.assertRaises(RequiredParameterPositionError) as context:
            compile_grammar("[a] <b>")
        self.assertEqual(context.exception.data, "b")

    def testRequiredVariadicAfterOptionalIsAllowed(self):
        self.assertEqual(len(compile_grammar("[a] <b...>")), 2)

    def testRejectsNonString(self):
        with self.assertRaises(TypeError):
            compile_grammar(None)


class TestBind(TestCase):
    """Binding leftover positionals to compiled slots."""

    def testUnfilledOptional(self):
        self.assertEqual(bind("[a]", []), {"a": None})

    def testFilledOptional(self):
        self.assertEqual(bind("[a]", ["hey"]), {"a": "hey"})

    def testFilledRequired(self):
        self.assertEqual(bind("<a>", ["hey"]), {"a": "hey"})

    def testMultipleNames(self):
        self.assertEqual(bind("<a|b>", ["hey"]), {"a": "hey", "b": "hey"})

    def testMixedOptionalAndRequired(self):
        self.assertEqual(bind("<a> [b] [c]", ["1", "2"]), {"a": "1", "b": "2", "c": None})

    def testUnfilledOptionalVariadic(self):
        self.assertEqual(bind("<a> [b] [c...]", ["1", "2"]), {"a": "1", "b": "2", "c": []})

    def testFilledOptionalVariadic(self):
        self.assertEqual(bind("<a> [b] [c...]", ["1", "2", "3", "4"]), {"a": "1", "b": "2", "c": ["3", "4"]})

    def testMissingRequired(self):
        with self.assertRaises(RequiredParameterError) as context:
            bind("<a> <b>", ["1"])
        self.assertEqual(context.exception.data, "b")

    def testMissingRequiredVariadic(self):
        with self.assertRaises(VariadicParameterRequiredError) as context:
            bind("[a] <b...>", ["1"])
        self.assertEqual(context.exception.data, "b")

    def testSurplus(self):
        with self.assertRaises(UnknownParametersError) as context:
            bind("[a]", ["hey", "there", "you"])
        self.assertEqual(context.exception.data, ["there", "you"])

    def testSurplusWithoutGrammar(self):
        with self.assertRaises(UnknownParametersError):
            bind("", ["stragglers", "here"])

    def testDeviceIdsStayStrings(self):
        self.assertEqual(bind("<deviceid>", ["500000000000000000000000"]), {"deviceid": "500000000000000000000000"})


if __name__ == "__main__":
    unittest.main()
