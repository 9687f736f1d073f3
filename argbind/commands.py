"""
Argbind command layer: declare a command surface and read back a parse result.

What this module provides
- Command: an explicit, ordered declaration of everything one command accepts:
  • options (Flag, CounterFlag, Key, VariadicKey),
  • positional params (Param, CollectedParam),
  • option groups (exactly-one / at-most-one / at-least-one),
  • embedded option sets shared with other commands.
- CommandInvocation: the immutable outcome of a successful parse. It owns a
  side-table of typed values keyed by option handle and param name; the
  descriptors themselves are never mutated by a parse.

Core ideas
- Declaration over discovery: nothing is inferred from a callable or a class;
  the builder keeps exactly the order it was given, which is the order params
  bind and groups are checked.
- Structural mistakes are definition errors (TypeError/ValueError) raised when
  the command is built, never when a user runs it.

Quick start
    from argbind import Command, Flag, Key, Param, parse

    test = Command(
        "test",
        options=[Flag("-s", "--silent"), Key("-t", "--times", type=int)],
        params=[Param("testName"), Param("testerName", optional=True)],
    )

    invocation = parse(test, ["-s", "--times", "3", "widget"])
    invocation["--times"]     # 3
    invocation["testerName"]  # None

See also
- argbind.parser for the scanning rules.
- argbind.faults for the errors a parse can raise.
"""
import functools
import operator
from types import MappingProxyType

from .options import ArgumentType, Flag, CounterFlag, Key, VariadicKey, _OPTIONS, _sanitize_source_metadata
from .params import Param, CollectedParam, _sanitize_params
from .utils import *


class Command(metaclass=ArgumentType):
    """
    Declared surface of one command.

    Parameters
    - name: str, label used in diagnostics (defaults to "command").
    - options: iterable of options owned by this command.
    - params: iterable of positional params, required before optional, with at
      most one trailing collected param.
    - groups: iterable of OptionGroup over options this command declares or embeds.
    - embeds: iterable of OptionSet merged before the command's own options.
    - descr: Unset | str, short description carried for help renderers.

    Raises
    - TypeError: wrong descriptor kinds, param ordering violations.
    - ValueError: an empty name, the same option listed twice, duplicated param
      names.
    """

    __introspectable__ = (
        "name",
        "descr",
        "options",
        "params",
        "groups",
        "embeds",
    )
    __displayable__ = (
        "name",
        "options",
        "params",
    )

    def __init__(self, name=Unset, /, options=(), params=(), groups=(), embeds=(), descr=Unset):
        metadata = {
            "name": name,
            "options": options,
            "groups": groups,
            "embeds": embeds,
        }
        _sanitize_source_metadata(type(self), metadata)
        metadata["params"] = _sanitize_params(type(self), params)

        if not isinstance(descr, str | Unset):
            raise TypeError(f"{type(self).__typename__} 'descr' must be a string")
        elif isinstance(descr, str) and not (descr := descr.strip()):
            raise ValueError(f"{type(self).__typename__} 'descr' cannot be empty")
        metadata["descr"] = coalesce(descr)

        for name, object in metadata.items():
            setattr(self, "_" + name, object)

    @property
    def collected(self):
        """
        The trailing collected param, or None when the command declares none.
        """
        return next((param for param in self._params if isinstance(param, CollectedParam)), None)


def _by_kind(options, values, kinds, /):
    return MappingProxyType({
        option.name: values[option.handle] for option in options if isinstance(option, kinds)
    })


class CommandInvocation:
    """
    Immutable result of a successful parse.

    Lookup (invocation[key])
    - an option descriptor        → its value (by handle);
    - a param descriptor          → its bound value (by name);
    - an alias ("-t", "--times")  → the value of the option owning that alias;
    - a param name ("testName")   → its bound value.
    Unknown keys raise KeyError; get() returns a default instead.

    Values
    - Flag → bool, CounterFlag → int, Key → converted value or its default,
      VariadicKey → tuple of converted values;
    - required Param → converted value, optional Param → converted value or
      None, CollectedParam → tuple of converted values.
    """

    def __init__(self, command, /, options, values, aliases, bindings):
        """
        Internal: built by ArgumentParser.

        - options: distinct registered options, in registration order.
        - values: mapping handle → final value for every registered option.
        - aliases: mapping alias → option, as resolved by the registry.
        - bindings: (param, value) pairs in declaration order.
        """
        self._command = command
        self._options = tuple(options)
        self._values = dict(values)
        self._aliases = MappingProxyType(dict(aliases))
        self._bindings = tuple(bindings)
        self._named = {param.name: value for param, value in self._bindings}

    @property
    def command(self):
        return self._command

    @property
    def flags(self):
        return _by_kind(self._options, self._values, Flag)

    @property
    def counters(self):
        return _by_kind(self._options, self._values, CounterFlag)

    @property
    def keys(self):
        return _by_kind(self._options, self._values, Key | VariadicKey)

    @property
    def params(self):
        """
        Bound values of the non-collected params, in declaration order.
        """
        return tuple(value for param, value in self._bindings if isinstance(param, Param))

    @property
    def collected(self):
        return next((value for param, value in self._bindings if isinstance(param, CollectedParam)), None)

    def __getitem__(self, key):
        if isinstance(key, _OPTIONS):
            if key.handle not in self._values:
                raise KeyError(key.name)
            return self._values[key.handle]
        if isinstance(key, Param | CollectedParam):
            if key.name not in self._named:
                raise KeyError(key.name)
            return self._named[key.name]
        if isinstance(key, str):
            if key in self._aliases:
                return self._values[self._aliases[key].handle]
            if key in self._named:
                return self._named[key]
        raise KeyError(key)

    def __contains__(self, key):
        try:
            self[key]
        except KeyError:
            return False
        return True

    def get(self, key, default=None, /):
        try:
            return self[key]
        except KeyError:
            return default

    def __eq__(self, other):
        if not isinstance(other, CommandInvocation):
            return NotImplemented
        return (
            self._command is other._command and
            self._values == other._values and
            self._named == other._named
        )

    __hash__ = None

    def __rich_repr__(self):
        yield "command", self._command.name
        if flags := self.flags:
            yield "flags", dict(flags)
        if counters := self.counters:
            yield "counters", dict(counters)
        if keys := self.keys:
            yield "keys", dict(keys)
        yield "params", self.params
        if self.collected is not None:
            yield "collected", self.collected

    def __repr__(self):
        return f"invocation({
            ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__()))
        })"


__all__ = (
    "Command",
    "CommandInvocation",
)
