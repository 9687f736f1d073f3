"""
Argbind positional params and the parameter binder.

Overview
- Param[_T]: one positional slot, required (default) or optional.
- CollectedParam[_T]: the trailing variadic slot; takes every remaining token
  and requires at least `minimum` of them (0 by default).
- ParameterBinder: assigns the positional tokens left over after option
  resolution to the declared slots.

Declaration order (checked when a command or a binder is built)
- required params come first, then optional params;
- at most one collected param, and it must be the last slot;
- param names are unique.

Binding
- one token per required param, in order (MissingRequiredParamError when short);
- then one token per optional param while tokens remain;
- then the collected param takes all remaining tokens (MissingRequiredParamError
  when fewer than its minimum), or ExtraArgumentsError when tokens are left and
  no collected param is declared.

Quick example:
    >>> binder = ParameterBinder([Param("testName"), Param("testerName", optional=True)])
    >>> [(param.name, raw) for param, raw in binder.bind(["widget"])]
    [('testName', 'widget'), ('testerName', Unset)]
"""
import builtins
import re

from .completion import _sanitize_completion
from .faults import MissingRequiredParamError, ExtraArgumentsError
from .options import ArgumentType
from .utils import *
from .validation import _sanitize_rules


def _sanitize_param_metadata(cls, metadata, /):
    """
    Internal: validate metadata shared by Param and CollectedParam.

    - name: identifier-like label ("testName", "file-name"); used in messages
      and as the accessor key on the invocation.
    - type: conversion target, any type or callable.
    - descr / completion / validation: as for options.
    """
    if not isinstance(name := metadata["name"], str):
        raise TypeError(f"{cls.__typename__} 'name' must be a string")
    elif not re.fullmatch(r"[^\W\d][\w-]*", name := name.strip()):
        raise ValueError(f"{cls.__typename__} 'name' must be an identifier-like label, got {name!r}")
    metadata["name"] = name

    if not callable(metadata["type"]):
        raise TypeError(f"{cls.__typename__} 'type' must be a type or a callable")

    if not isinstance(descr := metadata["descr"], str | Unset):
        raise TypeError(f"{cls.__typename__} 'descr' must be a string")
    elif isinstance(descr, str) and not (descr := descr.strip()):
        raise ValueError(f"{cls.__typename__} 'descr' cannot be empty")
    metadata["descr"] = coalesce(descr)

    metadata["completion"] = _sanitize_completion(cls, metadata["completion"])
    metadata["validation"] = _sanitize_rules(cls, metadata["validation"])


class Param[_T](metaclass=ArgumentType):
    """
    Positional slot bound to exactly one token.

    Optional params (optional=True) report None when no token is left for them.
    """

    __introspectable__ = (
        "name",
        "type",
        "optional",
        "descr",
        "completion",
        "validation",
    )

    def __init__(self, name, /, type=str, optional=False, descr=Unset, completion=Unset, validation=Unset):
        metadata = {
            "name": name,
            "type": type,
            "optional": bool(optional),
            "descr": descr,
            "completion": completion,
            "validation": validation,
        }
        _sanitize_param_metadata(builtins.type(self), metadata)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)

    @property
    def required(self):
        return not self._optional


class CollectedParam[_T](metaclass=ArgumentType):
    """
    Trailing variadic slot collecting every remaining token into a tuple.

    Each collected token is converted and validated on its own.
    """

    __introspectable__ = (
        "name",
        "type",
        "minimum",
        "descr",
        "completion",
        "validation",
    )

    def __init__(self, name, /, type=str, minimum=0, descr=Unset, completion=Unset, validation=Unset):
        metadata = {
            "name": name,
            "type": type,
            "minimum": minimum,
            "descr": descr,
            "completion": completion,
            "validation": validation,
        }
        _sanitize_param_metadata(builtins.type(self), metadata)
        if not isinstance(minimum, int) or isinstance(minimum, bool):
            raise TypeError(f"{builtins.type(self).__typename__} 'minimum' must be an integer")
        if minimum < 0:
            raise ValueError(f"{builtins.type(self).__typename__} 'minimum' cannot be negative")
        for name, object in metadata.items():
            setattr(self, "_" + name, object)

    @property
    def optional(self):
        return not self._minimum

    @property
    def required(self):
        return bool(self._minimum)


def _sanitize_params(cls, params, /):
    """
    Internal: validate the declaration order of a command's params.

    Returns
    - list of params, unchanged in order.

    Raises
    - TypeError: non-param entries, required after optional, a collected param
      that is not last, or more than one collected param.
    - ValueError: duplicated param names.
    """
    params = list(params)
    names = set()
    optional = None
    for position, param in enumerate(params):
        if not isinstance(param, Param | CollectedParam):
            raise TypeError(f"{cls.__typename__} 'params' must contain params, got {param!r}")
        if param.name in names:
            raise ValueError(f"{cls.__typename__} param names cannot contain duplicates ({param.name!r})")
        names.add(param.name)
        if isinstance(param, CollectedParam):
            if position != len(params) - 1:
                raise TypeError(f"{cls.__typename__} collected param {param.name!r} must be the last param")
        elif param.required and optional is not None:
            raise TypeError(
                f"{cls.__typename__} required param {param.name!r} cannot follow optional param {optional!r}"
            )
        elif param.optional:
            optional = param.name
    return params


class ParameterBinder:
    """
    Assigns positional tokens to declared param slots (see module docstring).
    """
    __typename__ = "parameter-binder"

    def __init__(self, params=(), /):
        params = _sanitize_params(type(self), params)
        self._required = tuple(param for param in params if isinstance(param, Param) and param.required)
        self._optional = tuple(param for param in params if isinstance(param, Param) and param.optional)
        self._collected = next((param for param in params if isinstance(param, CollectedParam)), None)

    @property
    def params(self):
        return self._required + self._optional + ((self._collected,) if self._collected else ())

    @property
    def collected(self):
        return self._collected

    def bind(self, tokens, /):
        """
        Bind `tokens` (ordered) to the declared slots.

        Returns
        - tuple of (param, raw) pairs in declaration order, where raw is a str
          for required params, a str or Unset for optional params, and a tuple
          of str for the collected param.

        Raises
        - MissingRequiredParamError: a required slot got no token, or the
          collected slot got fewer tokens than its minimum.
        - ExtraArgumentsError: tokens left over without a collected slot.
        """
        tokens = tuple(tokens)
        bindings = []
        position = 0

        for param in self._required:
            if position >= len(tokens):
                raise MissingRequiredParamError(param.name)
            bindings.append((param, tokens[position]))
            position += 1

        for param in self._optional:
            if position < len(tokens):
                bindings.append((param, tokens[position]))
                position += 1
            else:
                bindings.append((param, Unset))

        if self._collected is not None:
            remaining = tokens[position:]
            if len(remaining) < self._collected.minimum:
                raise MissingRequiredParamError(
                    self._collected.name,
                    minimum=self._collected.minimum,
                    received=len(remaining),
                )
            bindings.append((self._collected, remaining))
        elif position < len(tokens):
            raise ExtraArgumentsError(tokens[position:])

        return tuple(bindings)

    def __repr__(self):
        return "ParameterBinder(%s)" % ", ".join(param.name for param in self.params)


__all__ = (
    "Param",
    "CollectedParam",
    "ParameterBinder",
)
