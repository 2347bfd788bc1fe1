"""
Flag engine tokenization.

Scope
- Token forms (long, short, inline values, clusters, negation, "--").
- Value shapes (string, nargs, number, boolean, count, array, defaults).
- Alias mirroring and unknown flags.
- Engine faults (not enough arguments, missing demanded flags).

Conventions
- Test method names follow CamelCase per project convention.
"""

from __future__ import annotations

import unittest
from unittest import TestCase

from navarch.engine import Engine
from navarch.faults import FaultCode, MissingArgumentsError, NotEnoughArgumentsError


def engine():
    return Engine().options({
        "test": {"alias": "flag", "boolean": True},
        "string": {},
        "multipleStrings": {"nargs": 2},
        "number": {"number": True},
        "count": {"count": True, "alias": "c"},
        "files": {"array": True},
    })


class TestTokens(TestCase):
    """Token forms recognised by the engine."""

    def testPositionalsKeepOrder(self):
        argv = engine().parse(["one", "--flag", "two"]).argv
        self.assertEqual(argv["_"], ["one", "two"])
        self.assertIs(argv["test"], True)
        self.assertIs(argv["flag"], True)

    def testInlineValue(self):
        self.assertEqual(engine().parse(["--string=42"]).argv["string"], "42")

    def testDoubleDashEndsFlags(self):
        argv = engine().parse(["--", "--flag", "-c"]).argv
        self.assertEqual(argv["_"], ["--flag", "-c"])
        self.assertIs(argv["test"], False)

    def testNegativeNumbersArePositionals(self):
        self.assertEqual(engine().parse(["-5", "-0.5"]).argv["_"], ["-5", "-0.5"])

    def testShortCluster(self):
        argv = Engine().options({"a": {"boolean": True}, "b": {"boolean": True}, "s": {}}).parse(["-abs", "x"]).argv
        self.assertEqual((argv["a"], argv["b"], argv["s"]), (True, True, "x"))

    def testNegation(self):
        argv = engine().parse(["--no-test"]).argv
        self.assertIs(argv["test"], False)
        self.assertIs(argv["flag"], False)

    def testNegationOfUnknownFlag(self):
        self.assertIs(engine().parse(["--no-run"]).argv["run"], False)

    def testUnknownFlags(self):
        argv = engine().parse(["--ftlspeed", "--mode=fast", "--warp"]).argv
        self.assertEqual(argv["mode"], "fast")
        self.assertIs(argv["ftlspeed"], True)
        self.assertIs(argv["warp"], True)
        self.assertEqual(argv["_"], [])

    def testUnknownFlagTakesFollowingValue(self):
        argv = engine().parse(["cloud", "--target", "2.0", "flash"]).argv
        self.assertEqual(argv["target"], "2.0")
        self.assertEqual(argv["_"], ["cloud", "flash"])

    def testClusterValueFlagTakesRest(self):
        configured = Engine().options({"target": {"alias": "t"}, "verbose": {"alias": "v", "count": True}})
        argv = configured.parse(["-tv"]).argv
        self.assertEqual(argv["target"], "v")
        self.assertEqual(argv["verbose"], 0)

        argv = configured.parse(["-vt", "2.0"]).argv
        self.assertEqual((argv["target"], argv["verbose"]), ("2.0", 1))


class TestValues(TestCase):
    """Value shapes and defaults."""

    def testFlagsDefaultToStrings(self):
        self.assertEqual(engine().parse(["--string", "42"]).argv["string"], "42")

    def testFlagsRequireOneArgumentByDefault(self):
        with self.assertRaises(NotEnoughArgumentsError) as context:
            engine().parse(["--string"])
        self.assertEqual(context.exception.message, "Not enough arguments following: string")
        self.assertIs(context.exception.type, FaultCode.NOT_ENOUGH_ARGUMENTS)

    def testFlagValueCannotBeAnotherFlag(self):
        with self.assertRaises(NotEnoughArgumentsError):
            engine().parse(["--string", "--flag"])

    def testMultipleArguments(self):
        self.assertEqual(engine().parse(["--multipleStrings", "1", "2"]).argv["multipleStrings"], ["1", "2"])

    def testNumberConverted(self):
        self.assertEqual(engine().parse(["--number", "42"]).argv["number"], 42)
        self.assertEqual(engine().parse(["--number", "4.5"]).argv["number"], 4.5)
        self.assertEqual(engine().parse(["--number", "many"]).argv["number"], "many")

    def testCount(self):
        argv = engine().parse(["--count", "--count", "-c"]).argv
        self.assertEqual(argv["count"], 3)
        self.assertEqual(argv["c"], 3)

    def testArray(self):
        argv = engine().parse(["--files", "a", "b", "--flag", "--files", "c"]).argv
        self.assertEqual(argv["files"], ["a", "b", "c"])
        self.assertEqual(argv["_"], [])

    def testDefaults(self):
        argv = engine().parse([]).argv
        self.assertIs(argv["test"], False)
        self.assertEqual(argv["count"], 0)
        self.assertNotIn("string", argv)

    def testExplicitDefault(self):
        argv = Engine().options({"target": {"alias": "t", "default": "latest"}}).parse([]).argv
        self.assertEqual((argv["target"], argv["t"]), ("latest", "latest"))

    def testRepeatedScalarKeepsLast(self):
        self.assertEqual(engine().parse(["--string", "a", "--string", "b"]).argv["string"], "b")

    def testDemandedFlags(self):
        configured = Engine().options({"token": {"demand": True}, "user": {"demand": True}})
        with self.assertRaises(MissingArgumentsError) as context:
            configured.parse(["--token", "abc"])
        self.assertEqual(context.exception.data, ["user"])


class TestConfiguration(TestCase):

    def testOptionsAccumulate(self):
        configured = Engine().options({"a": {}}).options({"b": {"alias": "bee"}})
        self.assertEqual(configured.keys, {"a", "b"})
        self.assertEqual(configured.aliases, {"a": [], "b": ["bee"]})

    def testDemanded(self):
        self.assertEqual(Engine().options({"a": {"demand": True}, "b": {}}).demanded, {"a"})

    def testFreshEngineKnowsNothing(self):
        engine()
        self.assertEqual(Engine().keys, set())


if __name__ == "__main__":
    unittest.main()
