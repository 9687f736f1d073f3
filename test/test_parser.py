"""
Parser module behavioral tests (scan, option resolution, binding, groups, faults).

Scope
- Validate flags, keys, counters, and variadic keys in every accepted spelling.
- Validate stacked short options, the "--" terminator, "-" and negative numbers.
- Validate position-aware conversion and validation faults for keys and params.
- Validate option group restrictions and parse-scoped counters.
- Validate argv normalization and the shell runtime option.

Conventions
- Test method names follow CamelCase per project convention.
- Fixtures are rebuilt per test; descriptors are never shared between tests.
"""
import io
import unittest
from enum import Enum
from unittest import TestCase
from unittest.mock import patch

from rich.console import Console

from argbind import (
    ArgumentParser,
    Command,
    Flag,
    CounterFlag,
    Key,
    VariadicKey,
    Param,
    CollectedParam,
    OptionGroup,
    OptionSet,
    ValueConverter,
    parse,
    greater_than,
    allowing,
    rejecting,
    custom,
    UnrecognizedOptionError,
    FlagAssignmentError,
    MissingValueForKeyError,
    ConversionFailedError,
    ValidationFailedError,
    MissingRequiredParamError,
    ExtraArgumentsError,
    GroupRestrictionViolatedError,
)


class Speed(Enum):
    SLOW = "slow"
    FAST = "fast"


class Single(Enum):
    __explanation__ = "only can be 'value'"

    VALUE = "value"


def _test_command():
    return Command(
        "test",
        options=[
            Flag("-s", "--silent", descr="Silence all test output"),
            Key("-t", "--times", type=int, descr="Number of times to run the test"),
        ],
        params=[
            Param("testName"),
            Param("testerName", optional=True),
        ],
    )


class TestBasicParsing(TestCase):
    def setUp(self):
        self.parser = ArgumentParser(_test_command())

    def testFlagsKeysAndParams(self):
        invocation = self.parser.parse(["-s", "--times", "3", "widget"])
        self.assertIs(invocation["--silent"], True)
        self.assertEqual(invocation["--times"], 3)
        self.assertEqual(invocation.params, ("widget", None))

    def testArbitraryOrder(self):
        invocation = self.parser.parse(["widget", "-t", "2", "bob", "--silent"])
        self.assertEqual(invocation.params, ("widget", "bob"))
        self.assertEqual(invocation["-t"], 2)
        self.assertIs(invocation["-s"], True)

    def testInlineValues(self):
        self.assertEqual(self.parser.parse(["--times=4", "widget"])["--times"], 4)
        self.assertEqual(self.parser.parse(["-t=5", "widget"])["--times"], 5)

    def testInlineValueKeepsEqualSigns(self):
        command = Command("env", options=[Key("-e", "--env")])
        self.assertEqual(parse(command, ["--env=A=B"])["--env"], "A=B")

    def testRepeatedKeyLastWins(self):
        self.assertEqual(self.parser.parse(["-t", "1", "--times", "2", "widget"])["--times"], 2)

    def testShellString(self):
        invocation = self.parser.parse("-s --times 3 'widget gadget'")
        self.assertEqual(invocation["testName"], "widget gadget")

    def testArgvFromSys(self):
        with patch("sys.argv", ["prog", "widget"]):
            self.assertEqual(self.parser.parse()["testName"], "widget")

    def testArgvItemsMustBeStrings(self):
        with self.assertRaises(TypeError):
            self.parser.parse(["widget", 3])
        with self.assertRaises(TypeError):
            self.parser.parse(3)

    def testEmptyStringIsAValue(self):
        self.assertEqual(self.parser.parse(["", "bob"]).params, ("", "bob"))

    def testExtraArguments(self):
        with self.assertRaises(ExtraArgumentsError) as context:
            self.parser.parse(["widget", "bob", "2"])
        self.assertEqual(context.exception.tokens, ("2",))
        self.assertEqual(context.exception.index, 3)
        self.assertIn("from third position", str(context.exception))

    def testMissingRequiredParam(self):
        with self.assertRaises(MissingRequiredParamError) as context:
            self.parser.parse(["-s"])
        self.assertEqual(context.exception.name, "testName")

    def testParserIsReusable(self):
        first = self.parser.parse(["-s", "widget"])
        second = self.parser.parse(["widget"])
        self.assertIs(first["--silent"], True)
        self.assertIs(second["--silent"], False)

    def testModuleLevelParse(self):
        self.assertEqual(parse(_test_command(), ["widget"]).params, ("widget", None))

    def testCommandRequired(self):
        with self.assertRaises(TypeError):
            ArgumentParser("test")


class TestOptionResolution(TestCase):
    def setUp(self):
        self.parser = ArgumentParser(_test_command())

    def testUnrecognizedLongOption(self):
        with self.assertRaises(UnrecognizedOptionError) as context:
            self.parser.parse(["widget", "--silnt"])
        self.assertEqual(context.exception.token, "--silnt")
        self.assertIn("--silent", context.exception.suggestions)
        self.assertEqual(context.exception.index, 2)
        self.assertEqual(context.exception.hint, "did you mean '--silent'?")

    def testUnrecognizedShortOption(self):
        with self.assertRaises(UnrecognizedOptionError) as context:
            self.parser.parse(["-x", "widget"])
        self.assertEqual(context.exception.token, "-x")

    def testUnrecognizedReportsNameWithoutValue(self):
        with self.assertRaises(UnrecognizedOptionError) as context:
            self.parser.parse(["--count=3", "widget"])
        self.assertEqual(context.exception.token, "--count")

    def testFlagCannotTakeValue(self):
        with self.assertRaises(FlagAssignmentError) as context:
            self.parser.parse(["--silent=yes", "widget"])
        self.assertEqual(context.exception.name, "--silent")
        self.assertEqual(context.exception.value, "yes")

    def testMissingValueAtEnd(self):
        with self.assertRaises(MissingValueForKeyError) as context:
            self.parser.parse(["widget", "--times"])
        self.assertEqual(context.exception.name, "--times")
        self.assertEqual(context.exception.index, 2)

    def testEmptyInlineValueIsAValue(self):
        label = Key("-l", "--label")
        parser = ArgumentParser(Command("label", options=[label]))
        self.assertEqual(parser.parse(["--label="])[label], "")
        self.assertEqual(parser.parse(["-l="])[label], "")

    def testEmptyInlineValueLeftToConversionAndValidation(self):
        with self.assertRaises(ConversionFailedError) as context:
            self.parser.parse(["--times=", "widget"])
        self.assertEqual(context.exception.raw, "")
        self.assertEqual(context.exception.index, 1)

        label = Key("--label", validation=custom("must not be empty", bool))
        with self.assertRaises(ValidationFailedError):
            parse(Command("label", options=[label]), ["--label="])

    def testMissingValueWhenNextIsOption(self):
        with self.assertRaises(MissingValueForKeyError):
            self.parser.parse(["--times", "-s", "widget"])
        with self.assertRaises(MissingValueForKeyError):
            self.parser.parse(["--times", "--silent=1", "widget"])

    def testMissingValueWhenNextIsTerminator(self):
        with self.assertRaises(MissingValueForKeyError):
            self.parser.parse(["--times", "--", "widget"])

    def testKeyConversionFailure(self):
        with self.assertRaises(ConversionFailedError) as context:
            self.parser.parse(["widget", "--times", "three"])
        error = context.exception
        self.assertIs(error.target, int)
        self.assertEqual(error.raw, "three")
        self.assertEqual(error.input, "--times")
        self.assertEqual(error.index, 3)
        self.assertEqual(str(error), "value 'three' for '--times' at third position cannot be converted to int")

    def testInlineConversionFailureIndex(self):
        with self.assertRaises(ConversionFailedError) as context:
            self.parser.parse(["widget", "--times=x"])
        self.assertEqual(context.exception.index, 2)


class TestOptionKinds(TestCase):
    def setUp(self):
        self.alpha = Flag("-a")
        self.beta = Flag("-b")
        self.count = Key("-c", type=int)
        self.verbose = CounterFlag("-v", "--verbose")
        self.files = VariadicKey("-f", "--file")
        self.parser = ArgumentParser(Command(
            "kinds",
            options=[self.alpha, self.beta, self.count, self.verbose, self.files],
            params=[CollectedParam("rest")],
        ))

    def testCounterFlag(self):
        self.assertEqual(self.parser.parse(["-v", "--verbose", "-v"])[self.verbose], 3)
        self.assertEqual(self.parser.parse([])[self.verbose], 0)

    def testVariadicKey(self):
        invocation = self.parser.parse(["-f", "a", "--file=b", "x", "-f", "c"])
        self.assertEqual(invocation[self.files], ("a", "b", "c"))
        self.assertEqual(invocation.collected, ("x",))

    def testStackedFlags(self):
        invocation = self.parser.parse(["-ab"])
        self.assertIs(invocation[self.alpha], True)
        self.assertIs(invocation[self.beta], True)

    def testStackedCounter(self):
        self.assertEqual(self.parser.parse(["-vvv"])[self.verbose], 3)

    def testStackedLastTakesValue(self):
        self.assertEqual(self.parser.parse(["-abc", "7"])[self.count], 7)
        self.assertEqual(self.parser.parse(["-ac=8"])[self.count], 8)

    def testStackedKeyNotLast(self):
        with self.assertRaises(MissingValueForKeyError) as context:
            self.parser.parse(["-ca", "7"])
        self.assertEqual(context.exception.name, "-c")

    def testStackedFlagWithInlineValue(self):
        with self.assertRaises(FlagAssignmentError):
            self.parser.parse(["-ab=1"])

    def testStackedWithUnknownLetter(self):
        with self.assertRaises(UnrecognizedOptionError) as context:
            self.parser.parse(["-axb"])
        self.assertEqual(context.exception.token, "-axb")

    def testTerminator(self):
        invocation = self.parser.parse(["-a", "--", "-b", "--file", "--"])
        self.assertIs(invocation[self.alpha], True)
        self.assertIs(invocation[self.beta], False)
        self.assertEqual(invocation.collected, ("-b", "--file", "--"))

    def testLoneDashIsPositional(self):
        self.assertEqual(self.parser.parse(["-", "-a"]).collected, ("-",))

    def testNegativeNumbersArePositional(self):
        self.assertEqual(self.parser.parse(["-3", "-2.5", "-1e3"]).collected, ("-3", "-2.5", "-1e3"))

    def testNegativeNumberAsKeyValue(self):
        self.assertEqual(self.parser.parse(["-c", "-4"])[self.count], -4)


class TestValidatedValues(TestCase):
    def setUp(self):
        self.parser = ArgumentParser(Command(
            "validated",
            options=[
                Key("-n", "--name", validation=custom(
                    "Must be a capitalized first name", lambda name: name.capitalize() == name
                )),
                Key("-a", "--age", type=int, validation=greater_than(18)),
                Key("-l", "--location", validation=rejecting("Chicago", "Boston")),
                Key("--holiday", validation=allowing("Thanksgiving", "Halloween")),
                Key("-s", "--speed", type=Speed),
                Key("--single", type=Single),
            ],
        ))

    def testAcceptedValues(self):
        invocation = self.parser.parse(
            ["--name", "Jeff", "--age", "19", "--location", "Denver", "--holiday", "Halloween", "--speed", "fast"]
        )
        self.assertEqual(invocation["--name"], "Jeff")
        self.assertEqual(invocation["--age"], 19)
        self.assertIs(invocation["--speed"], Speed.FAST)

    def testCustomRule(self):
        with self.assertRaises(ValidationFailedError) as context:
            self.parser.parse(["-n", "jeff"])
        self.assertEqual(context.exception.reason, "Must be a capitalized first name")
        self.assertEqual(context.exception.input, "-n")

    def testGreaterThan(self):
        with self.assertRaises(ValidationFailedError) as context:
            self.parser.parse(["--age", "18"])
        self.assertEqual(context.exception.reason, "must be greater than 18")
        self.assertEqual(context.exception.value, 18)
        self.assertEqual(context.exception.index, 2)

    def testRejecting(self):
        with self.assertRaises(ValidationFailedError):
            self.parser.parse(["--location", "Boston"])

    def testAllowing(self):
        with self.assertRaises(ValidationFailedError):
            self.parser.parse(["--holiday", "Easter"])

    def testConversionBeforeValidation(self):
        with self.assertRaises(ConversionFailedError):
            self.parser.parse(["--age", "old"])

    def testEnumExplanations(self):
        with self.assertRaises(ConversionFailedError) as context:
            self.parser.parse(["--speed", "medium"])
        self.assertEqual(context.exception.explanation, "expected one of: slow, fast")
        with self.assertRaises(ConversionFailedError) as context:
            self.parser.parse(["--single", "other"])
        self.assertEqual(context.exception.explanation, "only can be 'value'")

    def testCustomConverter(self):
        converter = ValueConverter()
        converter.register(int, lambda raw: int(raw, 16))
        command = Command("hex", options=[Key("-n", type=int)])
        self.assertEqual(ArgumentParser(command, converter=converter).parse(["-n", "ff"])["-n"], 255)


class TestParamValues(TestCase):
    def testParamConversionFailure(self):
        command = Command("count", options=[Flag("-s")], params=[Param("count", type=int)])
        with self.assertRaises(ConversionFailedError) as context:
            parse(command, ["-s", "x"])
        self.assertEqual(context.exception.input, "count")
        self.assertEqual(context.exception.index, 2)
        self.assertIn("for param 'count' at second position", str(context.exception))

    def testCollectedItemsConvertedInOrder(self):
        command = Command("sum", params=[CollectedParam("numbers", type=int, validation=greater_than(0))])
        self.assertEqual(parse(command, ["1", "2", "3"]).collected, (1, 2, 3))
        with self.assertRaises(ValidationFailedError) as context:
            parse(command, ["1", "0", "-1"])
        self.assertEqual(context.exception.value, 0)
        self.assertEqual(context.exception.index, 2)

    def testCollectedMinimum(self):
        command = Command("ice", params=[Param("target"), CollectedParam("flavors", minimum=1)])
        with self.assertRaises(MissingRequiredParamError) as context:
            parse(command, ["cone"])
        self.assertEqual(context.exception.minimum, 1)
        self.assertEqual(context.exception.received, 0)

    def testOptionalParamConverted(self):
        command = Command("opt", params=[Param("count", type=int, optional=True)])
        self.assertIsNone(parse(command, []).params[0])
        self.assertEqual(parse(command, ["4"]).params[0], 4)


class TestOptionGroups(TestCase):
    def setUp(self):
        self.alpha = Flag("-a", "--alpha")
        self.beta = Flag("-b", "--beta")

    def testExactlyOne(self):
        parser = ArgumentParser(Command(
            "exactly", options=[self.alpha, self.beta], groups=[OptionGroup.exactly_one(self.alpha, self.beta)]
        ))
        parser.parse(["-a"])
        parser.parse(["--beta"])
        with self.assertRaises(GroupRestrictionViolatedError) as context:
            parser.parse([])
        self.assertEqual(context.exception.count, 0)
        self.assertEqual(context.exception.kind, "exactly-one")
        with self.assertRaises(GroupRestrictionViolatedError) as context:
            parser.parse(["-a", "-b"])
        self.assertEqual(context.exception.count, 2)

    def testRepeatedAliasesCountEachTime(self):
        parser = ArgumentParser(Command(
            "exactly", options=[self.alpha, self.beta], groups=[OptionGroup.exactly_one(self.alpha, self.beta)]
        ))
        with self.assertRaises(GroupRestrictionViolatedError):
            parser.parse(["-a", "--alpha"])

    def testMultipleRestrictions(self):
        gamma = Flag("-g", "--gamma")
        parser = ArgumentParser(Command(
            "multiple",
            options=[self.alpha, self.beta, gamma],
            groups=[OptionGroup.at_most_one(self.alpha, self.beta), OptionGroup.exactly_one(gamma, self.alpha)],
        ))
        parser.parse(["-g"])
        with self.assertRaises(GroupRestrictionViolatedError) as context:
            parser.parse(["-a", "-b", "-g"])
        self.assertEqual(context.exception.kind, "at-most-one")
        self.assertEqual(context.exception.names, ("--alpha", "--beta"))
        with self.assertRaises(GroupRestrictionViolatedError) as context:
            parser.parse(["-b"])
        self.assertEqual(context.exception.kind, "exactly-one")
        self.assertEqual(context.exception.names, ("--gamma", "--alpha"))

    def testParsersSharingGroupsKeepSeparateCounts(self):
        common = OptionSet(
            "common", options=[self.alpha, self.beta], groups=[OptionGroup.at_most_one(self.alpha, self.beta)]
        )
        other = ArgumentParser(Command("other", embeds=[common]))

        def nested(value):
            other.parse([])
            return True

        key = Key("-k", validation=custom("must parse", nested))
        first = ArgumentParser(Command("first", options=[key], embeds=[common]))
        with self.assertRaises(GroupRestrictionViolatedError) as context:
            first.parse(["-a", "-k", "x", "-b"])
        self.assertEqual(context.exception.count, 2)

    def testAtLeastOne(self):
        parser = ArgumentParser(Command(
            "least", options=[self.alpha, self.beta], groups=[OptionGroup.at_least_one(self.alpha, self.beta)]
        ))
        parser.parse(["-a", "-b"])
        with self.assertRaises(GroupRestrictionViolatedError):
            parser.parse([])

    def testStackedFlagsCountTowardGroups(self):
        parser = ArgumentParser(Command(
            "stacked", options=[self.alpha, self.beta], groups=[OptionGroup.at_most_one(self.alpha, self.beta)]
        ))
        with self.assertRaises(GroupRestrictionViolatedError):
            parser.parse(["-ab"])

    def testParamErrorsBeforeGroupErrors(self):
        parser = ArgumentParser(Command(
            "order",
            options=[self.alpha, self.beta],
            params=[Param("target")],
            groups=[OptionGroup.exactly_one(self.alpha, self.beta)],
        ))
        with self.assertRaises(MissingRequiredParamError):
            parser.parse([])


class TestShellMode(TestCase):
    def testFailurePrintsAndExits(self):
        stream = io.StringIO()
        with patch("argbind.faults.console", Console(file=stream, width=120)):
            with self.assertRaises(SystemExit) as context:
                ArgumentParser(_test_command(), shell=True, colorful=False).parse(["--silnt"])
        self.assertEqual(context.exception.code, 1)
        self.assertIn("unknown option '--silnt'", stream.getvalue())

    def testSuccessDoesNotPrint(self):
        stream = io.StringIO()
        with patch("argbind.faults.console", Console(file=stream)):
            invocation = parse(_test_command(), ["widget"], shell=True)
        self.assertEqual(invocation["testName"], "widget")
        self.assertEqual(stream.getvalue(), "")


if __name__ == "__main__":
    unittest.main()
