"""
Argbind value conversion.

Turns raw argv text into typed values for a target type.

Overview
- ValueConverter keeps a table `target type -> (convert, explanation)`.
  • convert: callable(raw: str) -> value, raising ValueError (or TypeError,
    LookupError, ArithmeticError) when the text does not fit.
  • explanation: str, or callable(raw: str) -> str, used as the
    ConversionFailedError explanation when convert rejects the text.
- Default entries: str, int, float, bool.
- Enum subclasses convert by member value first, then by member name. An enum
  may declare `__explanation__` (string or callable taking the raw text); it is
  used verbatim instead of the generic "expected one of: ..." message.
- Any other callable target (pathlib.Path, decimal.Decimal, ...) is called with
  the raw text; failures get the generic "expected <typename>" explanation.

The module-level convert()/register() functions work on a process-wide default
converter; build a dedicated ValueConverter (or .copy() the default) when a
parser needs its own table.

Quick example:
    >>> convert("3", int)
    3
    >>> @register(Celsius, explanation="expected a temperature like 21.5C")
    ... def _celsius(raw):
    ...     return Celsius(float(raw.removesuffix("C")))
"""
import functools
from enum import Enum

from .faults import ConversionFailedError
from .utils import Unset, coalesce

_TRUTHY = frozenset({"true", "t", "yes", "y", "1"})
_FALSY = frozenset({"false", "f", "no", "n", "0"})

# Exceptions a converter may raise to reject its input.
_REJECTIONS = (ValueError, TypeError, LookupError, ArithmeticError)


def _boolean(raw, /):
    if (lowered := raw.strip().lower()) in _TRUTHY:
        return True
    if lowered in _FALSY:
        return False
    raise ValueError("not a boolean: %r" % raw)


def _text(raw, /):
    return raw


def _enumeration(target, raw, /):
    try:
        return target(raw)
    except ValueError:
        pass
    for member in target:
        if str(member.value) == raw:
            return member
    # by name, as a last resort
    return target[raw]


def _typename(target, /):
    return getattr(target, "__name__", None) or str(target)


def _enum_explanation(target, raw, /):
    explanation = getattr(target, "__explanation__", Unset)
    if explanation is Unset:
        return "expected one of: %s" % ", ".join(str(member.value) for member in target)
    if callable(explanation):
        return explanation(raw)
    return str(explanation)


class ValueConverter:
    """
    Converter registry keyed by target type.

    Lookup order for a target
    1. an exact entry in the table;
    2. an entry registered for one of its base classes (MRO order);
    3. Enum subclasses (value, then name);
    4. the target itself when callable.

    Targets that match none of these raise TypeError: that is a definition
    error of the command, not a user input error.
    """

    def __init__(self, table=Unset, /):
        self._table = {}
        for target, (convert, explanation) in coalesce(table, _DEFAULTS).items():
            self.register(target, convert, explanation=explanation)

    def register(self, target, convert=Unset, /, explanation=Unset):
        """
        Register (or override) the converter for `target`.

        Forms
        - register(Target, function, explanation=...)
        - @register(Target, explanation=...) decorating the function

        Parameters
        - target: type the converter produces (used as the lookup key).
        - convert: callable(raw: str) -> value.
        - explanation: Unset | str | callable(raw: str) -> str. When Unset, the
          generic "expected <typename>" text is used.
        """
        if not isinstance(target, type):
            raise TypeError("register() first argument must be a type")
        if explanation is not Unset and not isinstance(explanation, str) and not callable(explanation):
            raise TypeError("register() 'explanation' must be a string or a callable")

        if convert is Unset:
            def wrapper(convert, /):
                self.register(target, convert, explanation=explanation)
                return convert
            return wrapper

        if not callable(convert):
            raise TypeError("register() second argument must be callable")
        self._table[target] = (convert, explanation)
        return convert

    def __contains__(self, target):
        return self._lookup(target) is not None

    def _lookup(self, target, /):
        if target in self._table:
            return self._table[target]
        # IntEnum/StrEnum must not fall back to their int/str mixins
        if isinstance(target, type) and issubclass(target, Enum):
            return None
        for base in getattr(target, "__mro__", ())[1:]:
            if base in self._table and base is not object:
                return self._table[base]
        return None

    def explain(self, target, raw, /):
        """
        Return the failure explanation for converting `raw` to `target`.
        """
        if (entry := self._lookup(target)) is not None:
            explanation = entry[1]
            if explanation is Unset:
                return "expected %s" % _typename(target)
            return explanation(raw) if callable(explanation) else explanation
        if isinstance(target, type) and issubclass(target, Enum):
            return _enum_explanation(target, raw)
        return "expected %s" % _typename(target)

    def convert(self, raw, target, /):
        """
        Convert `raw` into a value of `target`.

        Raises
        - ConversionFailedError(target, raw, explanation) when the text is rejected.
        - TypeError when `raw` is not a string or `target` is not convertible.
        """
        if not isinstance(raw, str):
            raise TypeError("convert() first argument must be a string")

        if (entry := self._lookup(target)) is not None:
            function = entry[0]
        elif isinstance(target, type) and issubclass(target, Enum):
            function = functools.partial(_enumeration, target)
        elif callable(target):
            function = target
        else:
            raise TypeError("convert() target %r is not convertible" % (target,))

        try:
            return function(raw)
        except _REJECTIONS:
            raise ConversionFailedError(target, raw, self.explain(target, raw)) from None

    def copy(self):
        """
        Return an independent converter with the same table.
        """
        clone = type(self)({})
        clone._table.update(self._table)
        return clone

    def __repr__(self):
        return "ValueConverter(%s)" % ", ".join(map(_typename, self._table))


_DEFAULTS = {
    str: (_text, Unset),
    int: (int, "expected an integer"),
    float: (float, "expected a number"),
    bool: (_boolean, "expected a boolean (true/false, yes/no, 1/0)"),
}

default = ValueConverter()


def convert(raw, target, /):
    """
    Convert with the process-wide default converter (see ValueConverter.convert).
    """
    return default.convert(raw, target)


def register(target, convert=Unset, /, explanation=Unset):
    """
    Register on the process-wide default converter (see ValueConverter.register).
    """
    return default.register(target, convert, explanation=explanation)


__all__ = (
    "ValueConverter",
    "convert",
    "register",
)
