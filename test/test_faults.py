"""
Fault tests (errors, warnings, trigger, rendering).

Scope
- Fault codes and host normalization defaults.
- Options exposure, replacement and trigger() semantics for errors and warnings.
- Rich rendering of faults (plain and fancy).

Conventions
- Test method names follow CamelCase per project convention.
"""
import io
import unittest
from unittest import TestCase

from rich.console import Console

from flagtree import (
    ActionFailure,
    CommandException,
    CommandWarning,
    DeclarationMismatchWarning,
    FaultCode,
    MissingValueError,
    NoActionBoundError,
    ParseFailureError,
    UnknownTokenError,
    getdoc,
    trigger,
)


def _render(renderable):
    console = Console(file=io.StringIO(), width=100, color_system=None)
    console.print(renderable)
    return console.file.getvalue()


class FaultTest(TestCase):
    """Behavioral tests for faults."""

    def testHierarchy(self):
        for kind in (ParseFailureError, UnknownTokenError, NoActionBoundError, ActionFailure):
            self.assertTrue(issubclass(kind, CommandException))
        self.assertTrue(issubclass(MissingValueError, ParseFailureError))
        self.assertTrue(issubclass(DeclarationMismatchWarning, CommandWarning))
        self.assertTrue(issubclass(DeclarationMismatchWarning, Warning))

    def testCodes(self):
        self.assertEqual(FaultCode.UNKNOWN_TOKEN, 11112)
        self.assertEqual(FaultCode.UNKNOWN_TOKEN.normalize(), "11112")
        self.assertEqual(len({code.value for code in FaultCode}), len(FaultCode))

    def testMessageAndOptions(self):
        fault = UnknownTokenError("unknown flag '--x'", input="--x", index=3)
        self.assertEqual(str(fault), "unknown flag '--x'")
        self.assertEqual(fault.message, "unknown flag '--x'")
        self.assertEqual(fault.input, "--x")
        self.assertEqual(fault.index, 3)
        with self.assertRaises(AttributeError):
            fault.missing
        with self.assertRaises(TypeError):
            fault.options["index"] = 4

    def testReplaceMergesOptions(self):
        fault = ParseFailureError("bad value", value="x")
        replaced = fault.__replace__(index=2)
        self.assertIsInstance(replaced, ParseFailureError)
        self.assertEqual(replaced.message, "bad value")
        self.assertEqual(dict(replaced.options), {"value": "x", "index": 2})
        self.assertEqual(dict(fault.options), {"value": "x"})

    def testTriggerRaisesErrors(self):
        with self.assertRaises(NoActionBoundError) as context:
            trigger(NoActionBoundError("nothing to run"), path=("app",))
        self.assertEqual(context.exception.path, ("app",))

    def testTriggerWarns(self):
        with self.assertWarns(DeclarationMismatchWarning) as context:
            trigger(DeclarationMismatchWarning("mismatch"), name="port")
        self.assertEqual(context.warning.options["name"], "port")

    def testTriggerRejectsPlainObjects(self):
        with self.assertRaises(TypeError):
            trigger(ValueError("plain"))

    def testGetdoc(self):
        self.assertIsNone(getdoc(FaultCode.MISSING_VALUE))
        with self.assertRaises(TypeError):
            getdoc(11117)

    def testRender(self):
        fault = UnknownTokenError(
            "unknown flag '--prot'",
            prog="tool",
            code=FaultCode.UNKNOWN_TOKEN,
            title="unknown flag",
            hint="did you mean '--port'?",
        )
        output = _render(fault)
        self.assertIn("unknown flag '--prot'", output)
        self.assertIn("11112", output)
        self.assertIn("did you mean '--port'?", output)

    def testRenderFancy(self):
        output = _render(ActionFailure("disk is full", fancy=True, colorful=False))
        self.assertIn("disk is full", output)
        self.assertIn("╭", output)

    def testRenderWithoutMessage(self):
        self.assertIn("NoActionBoundError", _render(NoActionBoundError()))


if __name__ == "__main__":
    unittest.main()
