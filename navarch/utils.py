"""
Navarch utilities (small helpers shared by the dispatch layers)

Scope
- Building blocks used by the tree, grammar and fault modules for consistent
  semantics: a "not provided" sentinel, stable callable names, read-only
  mirrors of private state, and pluralization for fault messages.

Overview
- UnsetType / Unset
  • Singleton sentinel to represent "value not provided" without conflating with None.
  • Falsey (bool(Unset) is False), printable as "Unset", and non-subclassable.

- coalesce(value, default=None)
  • Replace Unset with a concrete default, but preserve legitimate falsey values like None/False/"".

- @rename("name")
  • Stable __name__/__qualname__ for functions generated at class creation.

- mirror("attr")
  • Read-only property exposing a private backing field (self._attr); containers are copied
    so the registered tree cannot be mutated through its public surface.

- pluralize(word, count)
  • English pluralization for fault messages ("argument" → "arguments").

Quick examples
    >>> coalesce(Unset, "fallback")
    'fallback'
    >>> coalesce(False, "fallback")
    False
    >>> pluralize("argument", 2)
    'arguments'
"""
import functools
import re
from collections.abc import Sequence, Mapping, Set
from typing import final


@final
class UnsetType:
    """
    Internal sentinel type representing a value that was not provided.

    A node description may legitimately be False (hidden node) and a parameter
    value may legitimately be None (optional slot left empty), so neither can
    double as "the caller did not say". Unset fills that role.

    Characteristics
    - Boolean-false: bool(Unset) is False, but it is distinct from None and False.
    - Printable: repr(Unset) -> "Unset".
    - Non-subclassable and a per-process singleton.
    """

    def __or__(self, other, /):
        """
        Support PEP 604 unions in isinstance checks (e.g., str | Unset).
        """
        try:
            return other | type(self)
        except TypeError:
            return NotImplemented

    def __ror__(self, other, /):
        try:
            return other | type(self)
        except TypeError:
            return NotImplemented

    @functools.cache
    def __new__(cls):
        return super().__new__(cls)

    def __bool__(self):
        return False

    def __repr__(self):
        return "Unset"

    def __init_subclass__(cls, **options):
        raise TypeError("type 'UnsetType' is not an acceptable base type")


def coalesce(object, default=None, /):
    """
    Resolve the Unset sentinel to a concrete default.

    Falsey values such as None, False, 0, "" or [] are preserved as-is; only
    Unset is replaced.

    Examples
    - coalesce("name", "fallback") -> "name"
    - coalesce(Unset, "fallback")  -> "fallback"
    - coalesce(False, "fallback")  -> False
    """
    return object if object is not Unset else default


def rename(name, /):
    """
    Decorator giving a generated function a stable __name__/__qualname__.

    Used for the properties and reprs the item metaclass builds, so tracebacks
    and introspection show "__repr__" or the mirrored attribute name instead
    of the enclosing factory's local names.
    """
    if not isinstance(name, str):
        raise TypeError("rename() argument must be a string")

    def decorate(function):
        function.__name__ = function.__qualname__ = name
        return function

    return decorate


def _detach(object):
    """
    Recursively copy container values so callers never hold the live ones.

    - Sequence (non-string): new list.
    - Mapping: new dict with the same keys, values processed.
    - Set: new set.
    - Anything else (nodes, callables, scalars): returned as-is.
    """
    if isinstance(object, Sequence) and not isinstance(object, str):
        return list(map(_detach, object))
    elif isinstance(object, Mapping):
        return dict(zip(object.keys(), map(_detach, object.values())))
    elif isinstance(object, Set):
        return set(map(_detach, object))
    return object


def mirror(name, /):
    """
    Define a read-only property that mirrors the private attribute "_{name}".

    Container values are returned as detached copies, everything else as-is.
    """
    if not isinstance(name, str):
        raise TypeError("mirror() argument must be a string")

    @rename(name)
    def getter(self):
        return _detach(getattr(self, "_" + name))

    return property(getter)


@functools.cache
def pluralize(word, count=2, /):
    """
    Best-effort English plural of a single lowercase word when count != 1.

    Only the forms that appear in fault messages are needed, so the rules are
    the regular ones: s/sh/ch/x/z → +es, consonant+y → -ies, otherwise +s.

    Examples
    - pluralize("argument", 1)  -> "argument"
    - pluralize("argument", 3)  -> "arguments"
    - pluralize("category")     -> "categories"
    """
    if not isinstance(word, str):
        raise TypeError("pluralize() argument must be a string")
    if count == 1 or not word:
        return word
    if re.search(r"(s|sh|ch|x|z)$", word):
        return word + "es"
    if re.search(r"[^aeiou]y$", word):
        return word[:-1] + "ies"
    return word + "s"


Unset = UnsetType()
"""
Internal sentinel for "not provided".

Use Unset as a default when None or False is a meaningful value, then
materialize it with coalesce(value, default).
"""


__all__ = (
    # Functions
    "coalesce",
    "rename",
    "mirror",
    "pluralize",

    # Types
    "UnsetType",

    # Constants
    "Unset",
)
