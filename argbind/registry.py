"""
Argbind option registry.

The registry owns the alias → option table of one command, built once from the
command and everything it embeds, together with the option groups those
sources declare. During a parse it owns the group counters: every successful
lookup adds one to the count of each group containing the resolved option.
Groups themselves are never mutated, so commands and option sets can be
shared between registries (and parsers) without their counts leaking into
each other.

Lifecycle
- build: OptionRegistry(source) or OptionRegistry() + register(source).
- before every parse: reset() zeroes all group counters (the parser does it).
- during a parse: lookup_flag()/lookup_key() resolve aliases and count usage.

Duplicate aliases
- The later registration wins. The alias is moved to the new option and a
  ShadowedAliasWarning is emitted; the shadowed option stays registered, keeps
  its other aliases, and is still counted by its groups when resolved through
  one of them.
"""
import difflib
import itertools
from types import MappingProxyType

from .faults import ShadowedAliasWarning, trigger
from .options import Flag, CounterFlag, Key, VariadicKey

# Process-wide so that handles never collide between registries.
_handles = itertools.count(1)


class OptionRegistry:
    """
    Alias table plus group accounting for one command.
    """

    def __init__(self, source=None, /):
        self._aliases = {}
        self._options = {}
        self._groups = []
        self._counts = []
        self._members = {}
        if source is not None:
            self.register(source)

    @property
    def aliases(self):
        return MappingProxyType(self._aliases)

    @property
    def options(self):
        """
        Distinct registered options, in registration order.
        """
        return tuple(self._options.values())

    @property
    def groups(self):
        return tuple(self._groups)

    def count(self, group, /):
        """
        Current parse-scoped count of `group`; raise KeyError when it is not registered here.
        """
        for position, registered in enumerate(self._groups):
            if registered is group:
                return self._counts[position]
        raise KeyError(group)

    def register(self, source, /):
        """
        Merge the options and groups of `source` and, transitively, of every
        option set it embeds (embedded sets first, depth-first).

        Raises
        - TypeError when a group governs an option that was never registered
          here (the group could never be satisfied by the parser).
        """
        groups = len(self._groups)
        self._merge(source, seen=set())
        for group in self._groups[groups:]:
            for option in group.options:
                if option.handle not in self._options:
                    raise TypeError(
                        "option group %s governs %r, which %r does not declare"
                        % (group.kind, option.name, getattr(source, "name", source))
                    )
        return self

    def _merge(self, source, /, *, seen):
        if id(source) in seen:
            return
        seen.add(id(source))

        for embed in getattr(source, "embeds", ()):
            self._merge(embed, seen=seen)

        for option in source.options:
            if option.handle is None:
                option._handle = next(_handles)
            self._options.setdefault(option.handle, option)
            for alias in option.names:
                previous = self._aliases.get(alias)
                if previous is not None and previous is not option:
                    trigger(ShadowedAliasWarning(alias, previous.name, option.name))
                self._aliases[alias] = option

        for group in source.groups:
            if any(registered is group for registered in self._groups):
                continue
            for option in group.options:
                self._members.setdefault(option.handle, []).append(len(self._groups))
            self._groups.append(group)
            self._counts.append(0)

    def recognizes_option(self, alias, /):
        return alias in self._aliases

    def lookup_flag(self, alias, /):
        """
        Return the Flag/CounterFlag registered under `alias` (counting its use), or None.
        """
        option = self._aliases.get(alias)
        if not isinstance(option, Flag | CounterFlag):
            return None
        self._increment(option)
        return option

    def lookup_key(self, alias, /):
        """
        Return the Key/VariadicKey registered under `alias` (counting its use), or None.
        """
        option = self._aliases.get(alias)
        if not isinstance(option, Key | VariadicKey):
            return None
        self._increment(option)
        return option

    def _increment(self, option, /):
        for position in self._members.get(option.handle, ()):
            self._counts[position] += 1

    def reset(self):
        self._counts = [0] * len(self._groups)

    def validate(self):
        """
        Validate every group in declaration order; the first violation is raised.
        """
        for group, count in zip(self._groups, self._counts):
            group.validate(count)

    def suggest(self, alias, /, limit=3):
        return difflib.get_close_matches(alias, self._aliases.keys(), limit)

    def __contains__(self, alias):
        return self.recognizes_option(alias)

    def __repr__(self):
        return "OptionRegistry(%s)" % ", ".join(sorted(self._aliases))


__all__ = (
    "OptionRegistry",
)
