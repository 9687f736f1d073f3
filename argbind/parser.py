"""
Argbind argument parser: one left-to-right scan from argv to an invocation.

Token classes
- "--"                       → ends option processing; every later token is positional.
- "-" (lone dash)            → positional (conventionally stdin/stdout).
- negative numbers ("-3", "-2.5", "-1e3") that are not registered aliases
                             → positional.
- "-x", "--name", optionally with "=value"
                             → options, resolved through the registry.
- "-abc" when "-abc" itself is not registered but "-a", "-b", "-c" are
                             → stacked short options, read as "-a -b -c"; only
                               the last one may take a value.
- anything else              → positional, in original relative order.

Options
- Flag/CounterFlag: no value consumed; "--flag=value" is a FlagAssignmentError.
- Key/VariadicKey: the value is the inline "=value" suffix, or the next token.
  A missing value (end of argv, or a next token that is itself a recognized
  option) is a MissingValueForKeyError. "--name=" sets the empty string;
  rejecting it is left to the key's validation rules. Values are converted
  and validated as soon as they are read.

After the scan
1. positional tokens are bound to params (ParameterBinder);
2. bound params are converted and validated in declaration order (collected
   items one by one);
3. option groups are validated in declaration order.

The first failure is raised and the parse stops; there is no partial result.
Faults raised from conversion and validation are re-raised with the alias or
param name (`input`) and the 1-based argv position (`index`) of the value.

Quick example:
    >>> parser = ArgumentParser(command)
    >>> parser.parse("-s --times 3 widget")["--times"]
    3
"""
import copy
import re
import shlex
import sys
from collections import deque
from collections.abc import Iterable

from .commands import Command, CommandInvocation
from .conversion import default as _converter
from .faults import *
from .params import CollectedParam, ParameterBinder
from .registry import OptionRegistry
from .utils import *
from .validation import validate

_NEGATIVE = re.compile(r"-(\d+\.?\d*|\.\d+)([eE][-+]?\d+)?")
_STACKED = re.compile(r"-[^\W_]{2,}")


def _tokenize(argv, /):
    """
    Normalize the accepted argv forms into a list of strings.

    - Unset: sys.argv[1:].
    - str: shell-like string, split with shlex.split.
    - Iterable[str]: used as-is (items are not trimmed; "" is a valid value).

    Raises
    - TypeError: when argv is none of the above or holds a non-string item.
    """
    if argv is Unset:
        return sys.argv[1:]
    if isinstance(argv, str):
        return shlex.split(argv)
    if isinstance(argv, Iterable):
        tokens = list(argv)
        for token in tokens:
            if not isinstance(token, str):
                raise TypeError("parse() argument must be a string or an iterable of strings")
        return tokens
    raise TypeError("parse() argument must be a string or an iterable of strings")


class ArgumentParser:
    """
    Parser bound to one command.

    The registry and the binder are built once, here; counters are reset at
    the start of every parse, so a parser can be reused sequentially. Use one
    parser per thread when parsing concurrently.

    Parameters
    - command: Command to parse for.
    - converter: Unset | ValueConverter; defaults to the process-wide converter.
    - **options: runtime options forwarded to trigger() when a parse fails
      (shell, fancy, colorful, prog). With shell=True a failure is printed to
      stderr and the process exits with status 1 instead of raising.
    """

    def __init__(self, command, /, converter=Unset, **options):
        if not isinstance(command, Command):
            raise TypeError("ArgumentParser() argument must be a command")
        self._command = command
        self._converter = coalesce(converter, _converter)
        self._registry = OptionRegistry(command)
        self._binder = ParameterBinder(command.params)
        self._options = options

    @property
    def command(self):
        return self._command

    @property
    def registry(self):
        return self._registry

    @property
    def binder(self):
        return self._binder

    @property
    def converter(self):
        return self._converter

    def parse(self, argv=Unset, /):
        """
        Parse `argv` into a CommandInvocation.

        Raises
        - ParseError subclasses (see argbind.faults) on invalid input, unless
          the parser was built with shell=True.
        - TypeError: invalid argv type.
        """
        tokens = _tokenize(argv)
        try:
            return self._parse(tokens)
        except ParseError as error:
            trigger(error, **self._options)

    def _parse(self, tokens, /):
        self._registry.reset()
        values = {option.handle: option._initial() for option in self._registry.options}
        positionals = []

        queue = deque(enumerate(tokens, 1))
        while queue:
            index, token = queue.popleft()
            if token == "--":
                positionals.extend(queue)
                break
            if not self._is_option(token):
                positionals.append((index, token))
                continue
            resolved = self._resolve(token, index)
            for position, (alias, inline) in enumerate(resolved, 1):
                self._apply(alias, inline, index, queue, values, last=position == len(resolved))

        bindings = self._bind(positionals)
        self._registry.validate()

        return CommandInvocation(
            self._command,
            options=self._registry.options,
            values=values,
            aliases=self._registry.aliases,
            bindings=bindings,
        )

    def _is_option(self, token, /):
        if token in self._registry:
            return True
        if not token.startswith("-") or token == "-":
            return False
        return not _NEGATIVE.fullmatch(token)

    def _resolve(self, token, index, /):
        """
        Split an option token into (alias, inline value) pairs.

        Inline values are Unset when the token has no "=" and "" when it ends
        with "=". Stacked short options yield one pair per letter; only the
        last pair carries the inline value.
        """
        name, separator, value = token.partition("=")
        inline = value if separator else Unset

        if name in self._registry:
            return [(name, inline)]

        if _STACKED.fullmatch(name):
            aliases = ["-" + letter for letter in name[1:]]
            if all(alias in self._registry for alias in aliases):
                return [(alias, Unset) for alias in aliases[:-1]] + [(aliases[-1], inline)]

        raise UnrecognizedOptionError(name, suggestions=self._registry.suggest(name), index=index)

    def _takes_option(self, token, /):
        # a following token that would itself resolve as an option cannot be a value
        return token == "--" or token.partition("=")[0] in self._registry

    def _apply(self, alias, inline, index, queue, values, /, *, last=True):
        if (option := self._registry.lookup_flag(alias)) is not None:
            if inline is not Unset:
                raise FlagAssignmentError(alias, inline, index=index)
            values[option.handle] = option._merge(values[option.handle], True)
            return

        option = self._registry.lookup_key(alias)
        if inline is Unset:
            if not last or not queue or self._takes_option(queue[0][1]):
                raise MissingValueForKeyError(alias, index=index)
            position, raw = queue.popleft()
        else:
            position, raw = index, inline

        value = self._value(option, raw, input=alias, index=position)
        values[option.handle] = option._merge(values[option.handle], value)

    def _value(self, descriptor, raw, /, *, input, index):
        """
        Convert and validate one raw value, attaching where it came from to any fault.
        """
        try:
            value = self._converter.convert(raw, descriptor.type)
            validate(value, descriptor.validation, target=descriptor.type)
        except (ConversionFailedError, ValidationFailedError) as error:
            raise copy.replace(error, input=input, index=index) from None
        return value

    def _bind(self, positionals, /):
        indexes = [index for index, _ in positionals]
        tokens = [token for _, token in positionals]

        try:
            bindings = self._binder.bind(tokens)
        except ExtraArgumentsError as error:
            raise copy.replace(error, index=indexes[len(tokens) - len(error.tokens)]) from None

        bound = []
        position = 0
        for param, raw in bindings:
            if isinstance(param, CollectedParam):
                items = []
                for item in raw:
                    items.append(self._value(param, item, input=param.name, index=indexes[position]))
                    position += 1
                bound.append((param, tuple(items)))
            elif raw is Unset:
                bound.append((param, None))
            else:
                bound.append((param, self._value(param, raw, input=param.name, index=indexes[position])))
                position += 1
        return tuple(bound)

    def __repr__(self):
        return "ArgumentParser(%s)" % self._command.name


def parse(command, argv=Unset, /, **options):
    """
    Build an ArgumentParser for `command` and parse `argv` (see ArgumentParser.parse).
    """
    return ArgumentParser(command, **options).parse(argv)


__all__ = (
    "ArgumentParser",
    "parse",
)
