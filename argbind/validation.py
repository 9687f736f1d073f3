"""
Argbind validation rules.

A rule is a predicate over an already-converted value plus the message shown
when the predicate rejects it. Rules attached to an option or a param are
checked in declaration order; the first failing rule wins and the remaining
rules are not evaluated.

Built-in rules
- greater_than(n)        → value > n
- less_than(n)           → value < n
- within(low, high)      → low <= value <= high
- allowing(*values)      → value in values
- rejecting(*values)     → value not in values
- custom(message, test)  → test(value) is truthy

Quick example:
    >>> capitalized = custom("must be a capitalized first name", lambda name: name.capitalize() == name)
    >>> validate("Ada", [capitalized])
    >>> validate(18, greater_than(18))
    Traceback (most recent call last):
    ...
    argbind.faults.ValidationFailedError: value 18 must be greater than 18
"""
from collections.abc import Iterable
from typing import NamedTuple

from .faults import ValidationFailedError
from .utils import Unset


class Rule(NamedTuple):
    """
    A single validation rule: `predicate(value) -> bool` and its failure message.
    """
    predicate: object
    message: str

    def __call__(self, value, /):
        return bool(self.predicate(value))


def _listing(values, /):
    return ", ".join(map(str, values))


def greater_than(bound, /):
    return Rule(lambda value: value > bound, "must be greater than %s" % (bound,))


def less_than(bound, /):
    return Rule(lambda value: value < bound, "must be less than %s" % (bound,))


def within(low, high, /):
    if low > high:
        raise ValueError("within() lower bound cannot exceed the upper bound")
    return Rule(lambda value: low <= value <= high, "must be between %s and %s" % (low, high))


def allowing(*values):
    if not values:
        raise TypeError("allowing() requires at least one value")
    return Rule(lambda value: value in values, "must be one of: %s" % _listing(values))


def rejecting(*values):
    if not values:
        raise TypeError("rejecting() requires at least one value")
    return Rule(lambda value: value not in values, "must not be: %s" % _listing(values))


def custom(message, predicate, /):
    if not isinstance(message, str) or not message.strip():
        raise TypeError("custom() message must be a non-empty string")
    if not callable(predicate):
        raise TypeError("custom() predicate must be callable")
    return Rule(predicate, message.strip())


def _sanitize_rules(cls, rules, /):
    """
    Internal: normalize a descriptor's `validation` metadata into a tuple of rules.

    Accepts Unset (no rules), a single rule, or an iterable of rules. A rule is
    anything callable exposing a string `message`.
    """
    if rules is Unset or rules is None:
        return ()
    if isinstance(rules, Rule) or not isinstance(rules, Iterable):
        rules = (rules,)
    rules = tuple(rules)
    for rule in rules:
        if not callable(rule) or not isinstance(getattr(rule, "message", None), str):
            raise TypeError(f"{cls.__typename__} 'validation' entries must be validation rules")
    return rules


def validate(value, rules, /, target=Unset):
    """
    Check `value` against `rules` in order.

    Parameters
    - value: the converted value.
    - rules: a single rule or an iterable of rules.
    - target: optional type reported by the error (defaults to type(value)).

    Raises
    - ValidationFailedError(target, value, reason) for the first rejecting rule.
    """
    if isinstance(rules, Rule) or not isinstance(rules, Iterable):
        rules = (rules,)
    for rule in rules:
        if not rule(value):
            raise ValidationFailedError(type(value) if target is Unset else target, value, rule.message)


__all__ = (
    "Rule",
    "greater_than",
    "less_than",
    "within",
    "allowing",
    "rejecting",
    "custom",
    "validate",
)
