"""
Argbind faults (errors and warnings) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for every failure the engine
  can report. Codes are grouped by phase (option resolution, values, params,
  groups, warnings) to keep logs and searches predictable.
- ParseError / ArgbindWarning: base types that carry a message + options and
  know how to render themselves in a friendly, lowercased, and actionable way.
- One concrete error per failure kind, each exposing typed attributes
  (token, name, target, raw, explanation, tokens, kind, names, count, ...).
- trigger(): central entry point to surface any fault (raise, warn, or print).
- getdoc(): optional description lookup for a code from the host application.

Contract
- The engine never prints. It raises the first fault it meets and stops; the
  host decides how to show it, usually through trigger(fault, shell=True).
- Faults raised by leaf components (conversion, validation) do not know where
  the value came from. The parser re-raises them with copy.replace(...),
  adding `input` (alias or param name) and `index` (1-based argv position),
  which regenerates the message.

UX goals
- Position-first messages (“at third position”) so users can learn by trying.
- Soft but technical language: short titles, one-sentence bodies, one hint.
- Styling configurable via __styles__ in __main__; program name via __prog__.
"""
import copy
import sys
import warnings
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset, coalesce, ordinal, pluralize

console = Console(stderr=True)


class FaultCode(IntEnum):
    """
    canonical fault codes used by the engine (stable identifiers).

    grouping (by parse phase)
    - option resolution (1110x)
      • UNRECOGNIZED_OPTION, FLAG_ASSIGNMENT, MISSING_VALUE
    - values (1112x)
      • CONVERSION_FAILED, VALIDATION_FAILED
    - positional params (1113x)
      • MISSING_PARAM, EXTRA_ARGUMENTS
    - option groups (1114x)
      • GROUP_RESTRICTION
    - warnings (12xxx)
      • SHADOWED_ALIAS
    """
    # --- option resolution errors (11xxx) ---
    UNRECOGNIZED_OPTION = 11101
    FLAG_ASSIGNMENT     = 11102
    MISSING_VALUE       = 11103

    # --- value errors (11xxx) ---
    CONVERSION_FAILED   = 11121
    VALIDATION_FAILED   = 11122

    # --- param errors (11xxx) ---
    MISSING_PARAM       = 11131
    EXTRA_ARGUMENTS     = 11132

    # --- group errors (11xxx) ---
    GROUP_RESTRICTION   = 11141

    # --- warnings (12xxx) ---
    SHADOWED_ALIAS      = 12101

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels. when no mapping
        is present, the numeric value is returned as a string.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


def _where(options, /):
    # " at third position" when the parser attached an argv index
    if (index := options.get("index")) is None:
        return ""
    return " at %s position" % ordinal(index)


def _subject(options, /):
    # "'--times'" / "param 'name'" when the parser attached an input name
    if (input := options.get("input")) is None:
        return ""
    if input.startswith("-"):
        return " for %r" % input
    return " for param %r" % input


def _typename(target, /):
    return getattr(target, "__name__", None) or str(target)


def _render(fault, palette, /):
    """
    build the rich renderable shared by errors and warnings.

    layout
    - header: [ prog — code | Title ]
    - body:   message
    - hint:   → hint
    - fancy mode wraps the body in a Panel titled by the header.
    """
    main = __import__("__main__")
    colorful = fault.options.get("colorful", True)
    fancy = fault.options.get("fancy", False)

    styles = defaultdict(str, palette | getattr(main, "__styles__", {}))

    def text(fragment, style=""):
        if not fragment:
            return Text("")
        if isinstance(fragment, Text):
            return fragment
        return Text(str(fragment), styles[style] if colorful else "")

    prog = text(getattr(main, "__prog__", fault.options.get("prog", "argbind")), "prog-name")

    header = Text.assemble(
        "[ ",
        prog,
        " — ",
        text(fault.code.normalize(), "code"),
        " | ",
        text(fault.title.title(), "title"),
        " ]"
    )
    message = text(str(fault), "message")
    hint = Text.assemble(text(" → ", "hint-arrow"), text(fault.hint, "hint"))

    if fancy:
        return Panel(Group(message, hint), title=header, title_align="left")
    return Group(header, message, hint)


class ParseError(Exception):
    """
    base type of every error the engine raises.

    attributes
    - code: FaultCode of the concrete error class.
    - title: short lowercased title used in headers.
    - message: one-sentence description (also str(error)).
    - hint: a single actionable suggestion.
    - options: read-only context (input, index, prog, colorful, fancy, ...).
    """
    code = FaultCode.UNRECOGNIZED_OPTION
    title = "parse error"

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        self.message = coalesce(message, self.title)
        self.hint = options.get("hint") or self._hint(options)
        self.options = MappingProxyType(options)
        self._arguments = (message,)
        super().__init__(self.message)

    def _hint(self, options, /):
        return "run the command with valid arguments"

    @property
    def input(self):
        return self.options.get("input")

    @property
    def index(self):
        return self.options.get("index")

    def __str__(self):
        return self.message

    def __rich__(self):
        return _render(self, {
            "prog-name": "bold #E6E6F0",
            "code": "bold #00E5FF",
            "title": "bold #FF4DA6",
            "message": "#C8C8D0",
            "hint-arrow": "#9CE19C dim",
            "hint": "italic #9CE19C",
        })

    def __trigger__(self) -> None:
        if not self.options.get("shell", False):
            raise self from None
        console.print(self)
        sys.exit(1)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(*self._arguments, **{**self.options, **overrides})


class UnrecognizedOptionError(ParseError):
    code = FaultCode.UNRECOGNIZED_OPTION
    title = "unrecognized option"

    def __init__(self, token, /, **options):
        self.token = token
        self.suggestions = tuple(options.get("suggestions", ()))
        super().__init__("unknown option %r%s" % (token, _where(options)), **options)
        self._arguments = (token,)

    def _hint(self, options, /):
        if self.suggestions:
            return "did you mean %r?" % self.suggestions[0]
        return "check the spelling of the option or remove it"


class FlagAssignmentError(ParseError):
    code = FaultCode.FLAG_ASSIGNMENT
    title = "flag cannot take a value"

    def __init__(self, name, value, /, **options):
        self.name = name
        self.value = value
        super().__init__("flag %r%s cannot have an inline value" % (name, _where(options)), **options)
        self._arguments = (name, value)

    def _hint(self, options, /):
        return "remove everything from '=' (for example: %s)" % self.name


class MissingValueForKeyError(ParseError):
    code = FaultCode.MISSING_VALUE
    title = "missing value"

    def __init__(self, name, /, **options):
        self.name = name
        super().__init__("key %r%s requires a value" % (name, _where(options)), **options)
        self._arguments = (name,)

    def _hint(self, options, /):
        return "pass a value after the name (for example: %s <value> or %s=<value>)" % (self.name, self.name)


class ConversionFailedError(ParseError):
    code = FaultCode.CONVERSION_FAILED
    title = "conversion error"

    def __init__(self, target, raw, explanation, /, **options):
        self.target = target
        self.raw = raw
        self.explanation = explanation
        super().__init__(
            "value %r%s%s cannot be converted to %s" % (raw, _subject(options), _where(options), _typename(target)),
            **options
        )
        self._arguments = (target, raw, explanation)

    def _hint(self, options, /):
        return self.explanation


class ValidationFailedError(ParseError):
    """
    a converted value was rejected by one of its validation rules.

    `reason` is the failing rule's message, verbatim (e.g. "must be greater than 18").
    """
    code = FaultCode.VALIDATION_FAILED
    title = "invalid value"

    def __init__(self, target, value, reason, /, **options):
        self.target = target
        self.value = value
        self.reason = reason
        super().__init__(
            "value %r%s%s %s" % (value, _subject(options), _where(options), reason),
            **options
        )
        self._arguments = (target, value, reason)

    def _hint(self, options, /):
        return "the value %s" % self.reason


class MissingRequiredParamError(ParseError):
    code = FaultCode.MISSING_PARAM
    title = "missing param"

    def __init__(self, name, /, minimum=Unset, received=Unset, **options):
        self.name = name
        self.minimum = coalesce(minimum)
        self.received = coalesce(received)
        if self.minimum is None:
            message = "missing required param %r" % name
        else:
            message = "collected param %r expects at least %d %s but received %d" % (
                name, self.minimum, "value" if self.minimum == 1 else pluralize("value"), coalesce(received, 0)
            )
        super().__init__(message, **options)
        self._arguments = (name, minimum, received)

    def _hint(self, options, /):
        return "add the missing values; params are bound in declaration order"


class ExtraArgumentsError(ParseError):
    code = FaultCode.EXTRA_ARGUMENTS
    title = "extra arguments"

    def __init__(self, tokens, /, **options):
        self.tokens = tuple(tokens)
        super().__init__(
            "unexpected extra %s%s: %s" % (
                "argument" if len(self.tokens) == 1 else pluralize("argument"),
                _where(options).replace(" at ", " from "),
                " ".join(self.tokens)
            ),
            **options
        )
        self._arguments = (tokens,)

    def _hint(self, options, /):
        return "remove the extra arguments or quote values that contain spaces"


class GroupRestrictionViolatedError(ParseError):
    code = FaultCode.GROUP_RESTRICTION
    title = "conflicting options"

    _templates = {
        "exactly-one": "exactly one of %s must be given",
        "at-most-one": "at most one of %s may be given",
        "at-least-one": "at least one of %s must be given",
    }

    def __init__(self, kind, names, count, /, **options):
        self.kind = kind
        self.names = tuple(names)
        self.count = count
        super().__init__(
            "%s, but %s given" % (
                self._templates[str(kind)] % ", ".join(self.names),
                "none were" if not count else "%d %s" % (count, "was" if count == 1 else "were"),
            ),
            **options
        )
        self._arguments = (kind, names, count)

    def _hint(self, options, /):
        if self.count:
            return "keep only one of: %s" % ", ".join(self.names)
        return "add one of: %s" % ", ".join(self.names)


class ArgbindWarning(Warning):
    """
    base type of every warning the engine emits (never fatal).
    """
    code = FaultCode.SHADOWED_ALIAS
    title = "warning"

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        self.message = coalesce(message, self.title)
        self.hint = options.get("hint") or "no action required"
        self.options = MappingProxyType(options)
        self._arguments = (message,)
        super().__init__(self.message)

    def __str__(self):
        return self.message

    def __rich__(self):
        return _render(self, {
            "prog-name": "bold #E6E6F0",
            "code": "bold #FFB400",
            "title": "bold #FFC2E0",
            "message": "#D6D6DE",
            "hint-arrow": "#B8EFAF dim",
            "hint": "italic #B8EFAF",
        })

    def __trigger__(self) -> None:
        if not self.options.get("shell", False):
            return warnings.warn(self, stacklevel=self.options.get("stacklevel", 4))
        console.print(self)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(*self._arguments, **{**self.options, **overrides})


class ShadowedAliasWarning(ArgbindWarning):
    """
    a later registration took over an alias already owned by another option.
    """
    code = FaultCode.SHADOWED_ALIAS
    title = "shadowed alias"

    def __init__(self, alias, previous, current, /, **options):
        self.alias = alias
        self.previous = previous
        self.current = current
        options.setdefault(
            "hint",
            "rename one of the options if %r should stay reachable through %r" % (previous, alias)
        )
        super().__init__("alias %r now refers to %r instead of %r" % (alias, current, previous), **options)
        self._arguments = (alias, previous, current)


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ methods (see base classes).
    - options are merged into the fault via copy.replace(...) before triggering.
    - outside shell mode errors are raised and warnings go through warnings.warn;
      in shell mode both are printed to stderr with rich, and errors exit(1).

    typical options
    - shell, fancy, colorful, prog, hint, and any context the reporter may
      want to show (input, index, ...).
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    copy.replace(fault, **options).__trigger__()


def getdoc(code, /):
    """
    optional documentation fetch for a fault code.

    the host application may expose a __docs__ mapping in __main__ where keys
    are FaultCode instances and values are short documentation strings.
    when not found, returns None.
    """
    if not isinstance(code, FaultCode):
        raise TypeError("getdoc() argument must be a fault-code")
    try:
        return getattr(__import__("__main__"), "__docs__", {})[code]
    except KeyError:
        return None


__all__ = (
    "FaultCode",
    "ParseError",
    "UnrecognizedOptionError",
    "FlagAssignmentError",
    "MissingValueForKeyError",
    "ConversionFailedError",
    "ValidationFailedError",
    "MissingRequiredParamError",
    "ExtraArgumentsError",
    "GroupRestrictionViolatedError",
    "ArgbindWarning",
    "ShadowedAliasWarning",
    "trigger",
    "getdoc",
)
