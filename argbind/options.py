r"""
Argbind option descriptors, option groups, and option sets.

Overview
- Named options (all identified by one or more aliases such as -t/--times)
  • Flag: presence-only switch; its value is True when given, False otherwise.
  • CounterFlag: presence-only switch whose value is the number of occurrences.
  • Key[_T]: single-value option; a repeated key keeps the last value.
  • VariadicKey[_T]: re-occurrable option collecting an ordered tuple of values.

- Restrictions
  • OptionGroup: exactly-one / at-most-one / at-least-one over a set of options,
    checked once after the whole argv has been scanned.

- Composition
  • OptionSet: a reusable bundle of options and groups that commands (or other
    option sets) embed. Embedding replaces subclassing: the effective option
    table of a command is the union of its own options and everything it embeds.

Metadata (sanitized on construction)
- names: one or more aliases. Short form is a single dash and one character
  ("-t"); long form is a double dash and hyphen-separated words ("--dry-run").
  Duplicates inside one descriptor are rejected.
- descr: Unset | str (short help), non-empty when provided.
- completion: Completion hint carried opaquely (see argbind.completion).
- type/default/validation: value-bearing options only (Key, VariadicKey).

Identity
- Every option gets an opaque integer `handle` the first time it is registered
  in an OptionRegistry. Group membership and the invocation side-table use the
  handle, never the alias that happened to be typed.

Quick example:
    >>> silent = Flag("-s", "--silent", descr="Silence all test output")
    >>> times = Key("-t", "--times", type=int, validation=greater_than(0))
    >>> OptionGroup.at_most_one(silent, Flag("-v", "--verbose"))
"""
import builtins
import functools
import operator
import re
from enum import StrEnum

from .completion import _sanitize_completion
from .faults import GroupRestrictionViolatedError
from .utils import *
from .validation import _sanitize_rules


class ArgumentType(type):
    """
    Metaclass that turns descriptors into introspectable, read-only records.

    Responsibilities
    - Derive __typename__ from the class name ("VariadicKey" → "variadic-key"),
      used in definition-time error messages.
    - Expose every name listed in __introspectable__ as a read-only property
      over the private "_name" field (see mirror()).
    - Provide stable __repr__/__rich_repr__ implementations; __displayable__
      (when set) narrows what is shown.
    """
    __introspectable__ = ()
    __displayable__ = Unset

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ())
            },
        )

        @rename("__repr__")
        def __repr__(self):
            return f"{type(self).__typename__}({
                ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__()))
            })"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in coalesce(type(self).__displayable__, type(self).__introspectable__):
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        return self


def _sanitize_metadata(cls, metadata, /):
    """
    Internal: normalize metadata shared by every option kind.

    - names: required, each a valid short or long alias, no duplicates; the
      declaration order is kept (the first long alias becomes the display name).
    - descr: Unset → None; otherwise a non-empty trimmed string.
    - completion: normalized to a Completion (none when omitted).
    """
    names = []
    if not metadata["names"]:
        raise TypeError(f"{cls.__typename__} must specify at least one name")

    for name in metadata["names"]:
        if not isinstance(name, str):
            raise TypeError(f"{cls.__typename__} names must be strings")
        elif not (name := name.strip()):
            raise ValueError(f"{cls.__typename__} names cannot be empty-strings")
        elif not re.fullmatch(r"-[^\W_]|--[^\W\d_](-?[^\W_]+)*", name):
            raise ValueError(
                f"{cls.__typename__} names must look like -x or --long-name, got {name!r}"
            )
        elif name in names:
            raise ValueError(f"{cls.__typename__} names cannot contain duplicates")
        names.append(name)
    metadata["names"] = names

    if not isinstance(descr := metadata["descr"], str | Unset):
        raise TypeError(f"{cls.__typename__} 'descr' must be a string")
    elif isinstance(descr, str) and not (descr := descr.strip()):
        raise ValueError(f"{cls.__typename__} 'descr' cannot be empty")
    metadata["descr"] = coalesce(descr)

    metadata["completion"] = _sanitize_completion(cls, metadata["completion"])


def _sanitize_valued_metadata(cls, metadata, /):
    """
    Internal: validate metadata for value-bearing options (Key, VariadicKey).

    - type: the conversion target; any type or callable (see argbind.conversion).
    - validation: normalized into a tuple of rules.
    """
    if not callable(metadata["type"]):
        raise TypeError(f"{cls.__typename__} 'type' must be a type or a callable")
    metadata["validation"] = _sanitize_rules(cls, metadata["validation"])


class _Named:
    """
    Shared behavior of every named option (not exported).
    """
    @property
    def name(self):
        """
        Display name: the first long alias, or the first alias when none is long.
        """
        return next((name for name in self._names if name.startswith("--")), self._names[0])

    @property
    def handle(self):
        """
        Opaque registration handle (None until the option is first registered).
        """
        return coalesce(self._handle)

    def _assign(self, metadata, /):
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        self._handle = Unset

    def _initial(self):
        raise NotImplementedError

    def _merge(self, current, value, /):
        raise NotImplementedError


class Flag(_Named, metaclass=ArgumentType):
    """
    Presence-only option: True when any of its aliases appears, False otherwise.
    """

    __introspectable__ = (
        "names",
        "descr",
        "completion",
    )

    def __init__(self, *names, descr=Unset, completion=Unset):
        metadata = {
            "names": names,
            "descr": descr,
            "completion": completion,
        }
        _sanitize_metadata(type(self), metadata)
        self._assign(metadata)

    def _initial(self):
        return False

    def _merge(self, current, value, /):
        return True


class CounterFlag(_Named, metaclass=ArgumentType):
    """
    Presence-only option counting its occurrences (-v -v -v → 3).
    """

    __introspectable__ = (
        "names",
        "descr",
        "completion",
    )

    def __init__(self, *names, descr=Unset, completion=Unset):
        metadata = {
            "names": names,
            "descr": descr,
            "completion": completion,
        }
        _sanitize_metadata(type(self), metadata)
        self._assign(metadata)

    def _initial(self):
        return 0

    def _merge(self, current, value, /):
        return current + 1


class Key[_T](_Named, metaclass=ArgumentType):
    """
    Single-value option (--times 3, --times=3, -t 3, -t=3).

    The value is converted to `type` and checked against `validation` as soon
    as it is read. When the key is repeated the last value wins. When absent,
    the invocation reports `default` (None unless given); the default is used
    as-is and never converted or validated.
    """

    __introspectable__ = (
        "names",
        "type",
        "default",
        "descr",
        "completion",
        "validation",
    )

    def __init__(self, *names, type=str, default=None, descr=Unset, completion=Unset, validation=Unset):
        metadata = {
            "names": names,
            "type": type,
            "default": default,
            "descr": descr,
            "completion": completion,
            "validation": validation,
        }
        _sanitize_metadata(builtins.type(self), metadata)
        _sanitize_valued_metadata(builtins.type(self), metadata)
        self._assign(metadata)

    def _initial(self):
        return self._default

    def _merge(self, current, value, /):
        return value


class VariadicKey[_T](_Named, metaclass=ArgumentType):
    """
    Re-occurrable option collecting every value in order (-f a -f b → ("a", "b")).

    Each value is converted and validated on its own. When absent the value is ().
    """

    __introspectable__ = (
        "names",
        "type",
        "descr",
        "completion",
        "validation",
    )

    def __init__(self, *names, type=str, descr=Unset, completion=Unset, validation=Unset):
        metadata = {
            "names": names,
            "type": type,
            "descr": descr,
            "completion": completion,
            "validation": validation,
        }
        _sanitize_metadata(builtins.type(self), metadata)
        _sanitize_valued_metadata(builtins.type(self), metadata)
        self._assign(metadata)

    def _initial(self):
        return ()

    def _merge(self, current, value, /):
        return current + (value,)


_OPTIONS = (Flag, CounterFlag, Key, VariadicKey)


class Restriction(StrEnum):
    EXACTLY_ONE = "exactly-one"
    AT_MOST_ONE = "at-most-one"
    AT_LEAST_ONE = "at-least-one"


class OptionGroup(metaclass=ArgumentType):
    """
    Restriction over a set of options, validated once after the argv scan.

    Counting
    - every successful alias resolution of a member option adds one to the
      group's count, whichever alias was typed and however often;
    - an option may belong to several groups, each with its own count;
    - counts are parse-scoped and kept by the OptionRegistry, never by the
      group, so one group can serve any number of registries at once.

    Bounds
    - exactly-one  → count == 1
    - at-most-one  → count <= 1
    - at-least-one → count >= 1
    """

    __introspectable__ = (
        "kind",
        "options",
    )

    def __init__(self, kind, /, *options):
        try:
            kind = Restriction(kind)
        except ValueError:
            raise ValueError(
                f"{type(self).__typename__} kind must be one of: {", ".join(map(str, Restriction))}"
            ) from None
        if not options:
            raise TypeError(f"{type(self).__typename__} must govern at least one option")
        for option in options:
            if not isinstance(option, _OPTIONS):
                raise TypeError(f"{type(self).__typename__} members must be options")
        if len(set(map(id, options))) != len(options):
            raise ValueError(f"{type(self).__typename__} members cannot contain duplicates")
        self._kind = kind
        self._options = options

    @classmethod
    def exactly_one(cls, *options):
        return cls(Restriction.EXACTLY_ONE, *options)

    @classmethod
    def at_most_one(cls, *options):
        return cls(Restriction.AT_MOST_ONE, *options)

    @classmethod
    def at_least_one(cls, *options):
        return cls(Restriction.AT_LEAST_ONE, *options)

    @property
    def handles(self):
        return frozenset(option.handle for option in self._options if option.handle is not None)

    @property
    def names(self):
        return tuple(option.name for option in self._options)

    def __contains__(self, option):
        return any(member is option for member in self._options)

    def validate(self, count, /):
        """
        Raise GroupRestrictionViolatedError when `count` is out of bounds.
        """
        match self._kind:
            case Restriction.EXACTLY_ONE:
                satisfied = count == 1
            case Restriction.AT_MOST_ONE:
                satisfied = count <= 1
            case _:
                satisfied = count >= 1
        if not satisfied:
            raise GroupRestrictionViolatedError(self._kind, self.names, count)


class OptionSet(metaclass=ArgumentType):
    """
    Embeddable bundle of options and groups.

    Sets may embed other sets. A registry merges embedded sets first (depth
    first, in declaration order) and the embedding source's own options last,
    so an embedding source overrides aliases it shares with what it embeds.
    """

    __introspectable__ = (
        "name",
        "options",
        "groups",
        "embeds",
    )

    def __init__(self, name=Unset, /, options=(), groups=(), embeds=()):
        metadata = {
            "name": name,
            "options": options,
            "groups": groups,
            "embeds": embeds,
        }
        _sanitize_source_metadata(type(self), metadata)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)


def _sanitize_source_metadata(cls, metadata, /):
    """
    Internal: validate the option-bearing part of an OptionSet or a Command.

    - name: Unset → the typename; otherwise a non-empty trimmed string.
    - options: iterable of Flag/CounterFlag/Key/VariadicKey without repeats.
    - groups: iterable of OptionGroup.
    - embeds: iterable of OptionSet.
    """
    if not isinstance(name := metadata["name"], str | Unset):
        raise TypeError(f"{cls.__typename__} 'name' must be a string")
    elif isinstance(name, str) and not (name := name.strip()):
        raise ValueError(f"{cls.__typename__} 'name' cannot be empty")
    metadata["name"] = coalesce(name, cls.__typename__)

    options = list(metadata["options"])
    for option in options:
        if not isinstance(option, _OPTIONS):
            raise TypeError(f"{cls.__typename__} 'options' must contain options, got {option!r}")
    if len(set(map(id, options))) != len(options):
        raise ValueError(f"{cls.__typename__} 'options' cannot contain the same option twice")
    metadata["options"] = options

    groups = list(metadata["groups"])
    for group in groups:
        if not isinstance(group, OptionGroup):
            raise TypeError(f"{cls.__typename__} 'groups' must contain option groups")
    metadata["groups"] = groups

    embeds = list(metadata["embeds"])
    for embed in embeds:
        if not isinstance(embed, OptionSet):
            raise TypeError(f"{cls.__typename__} 'embeds' must contain option sets")
    metadata["embeds"] = embeds


__all__ = (
    "Flag",
    "CounterFlag",
    "Key",
    "VariadicKey",
    "Restriction",
    "OptionGroup",
    "OptionSet",
)
