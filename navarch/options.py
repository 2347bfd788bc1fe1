r"""
Navarch option schemas: inheritance, normalization and alias bookkeeping.

Overview
- A flag schema maps a canonical flag name to its definition, a mapping with
  any of these keys:
  • alias: str | Iterable[str]: alternate names (e.g. "v" for "verbose").
  • boolean / count / array / number / string: value-shape markers.
  • nargs: int: exact number of values consumed after the flag.
  • default: value used when the flag is absent.
  • demand: bool: the flag must be present.
  • description: str | False: help text (False hides the flag).
- Registration options of a node hold the schema under "options" and may hold
  an "inherited" subset (same shape) handed down to every descendant.

Algorithms
- build_options(node): root → node, collect each ancestor's "inherited"
  subset, then the node's own options; later (deeper) entries win, and the
  nested "options" schema is merged flag by flag instead of replaced.
- normalize_schema(schema): flags with no arity marker take exactly one
  value; flags with no type marker are strings, so positional-looking values
  such as numeric device ids are never coerced.
- fetch_aliases(schema): alias → canonical name for later unaliasing.

Quick example:
    >>> merge_options({"options": {"v": {"count": True}}}, {"options": {"x": {}}})
    {'options': {'v': {'count': True}, 'x': {}}}
    >>> normalize_schema({"name": {}})
    {'name': {'nargs': 1, 'string': True}}
"""
from collections.abc import Iterable, Mapping

ARITY_MARKERS = ("nargs", "boolean", "count", "array")
TYPE_MARKERS = ("number", "boolean", "string", "count", "array")


def _validate_schema(schema, /):
    """
    Internal: make sure a flag schema is a mapping of names to definitions.
    """
    if not isinstance(schema, Mapping):
        raise TypeError("option schema must be a mapping")
    for name, definition in schema.items():
        if not isinstance(name, str) or not name:
            raise TypeError("option schema keys must be non-empty strings")
        if not isinstance(definition, Mapping):
            raise TypeError(f"option {name!r} definition must be a mapping")
        if "nargs" in definition and (not isinstance(definition["nargs"], int) or definition["nargs"] < 0):
            raise ValueError(f"option {name!r} 'nargs' must be a non-negative integer")


def merge_schema(inherited, own, /):
    """
    Merge two flag schemas into a new one; own definitions win per flag.

    Definitions are taken whole: a descendant redefining a flag replaces the
    ancestor's definition rather than mixing value-shape markers.
    """
    _validate_schema(inherited)
    _validate_schema(own)
    return {**{name: dict(definition) for name, definition in inherited.items()},
            **{name: dict(definition) for name, definition in own.items()}}


def merge_options(target, value, /):
    """
    Merge registration options `value` over `target` into a new mapping.

    Precedence
    - scalar keys (handler, params, examples, setup, ...): value wins.
    - "options": merged with merge_schema(), so a descendant extends the flag
      group of its ancestors instead of replacing it.

    Either side may be None (treated as empty).
    """
    target = dict(target or {})
    if not value:
        return target
    if not isinstance(value, Mapping):
        raise TypeError("registration options must be a mapping")
    schema = merge_schema(target.get("options") or {}, value.get("options") or {})
    target.update(value)
    target["options"] = schema
    return target


def build_options(node, /):
    """
    Compose the effective registration options of a node.

    Walks up to the root, then back down collecting each ancestor's
    "inherited" subset (the node's own "inherited" applies to itself too),
    and finally merges the node's own options on top.
    """
    chain = []
    current = node
    while current is not None:
        chain.append(current)
        current = current.parent

    target = {}
    for item in reversed(chain):
        target = merge_options(target, item.options.get("inherited"))
    return merge_options(target, node.options)


def normalize_schema(schema, /):
    """
    Return a copy of `schema` with arity and type defaults applied.

    - no "nargs", "boolean", "count" or "array" marker → nargs=1
    - no "number", "boolean", "string", "count" or "array" marker → string=True

    An explicit marker set to False still counts as "declared".
    """
    _validate_schema(schema)
    normalized = {}
    for name, definition in schema.items():
        definition = dict(definition)
        if not any(key in definition and (key == "nargs" or definition[key]) for key in ARITY_MARKERS):
            definition["nargs"] = 1
        if not any(key in definition for key in TYPE_MARKERS):
            definition["string"] = True
        normalized[name] = definition
    return normalized


def aliases_of(definition, /):
    """
    Return the declared aliases of one flag definition as a tuple.
    """
    match definition.get("alias"):
        case None:
            return ()
        case str() as alias:
            return (alias,)
        case Iterable() as aliases:
            aliases = tuple(aliases)
            if not all(isinstance(alias, str) for alias in aliases):
                raise TypeError("option 'alias' must be a string or an iterable of strings")
            return aliases
        case _:
            raise TypeError("option 'alias' must be a string or an iterable of strings")


def fetch_aliases(schema, /):
    """
    Build the alias → canonical name map of a schema.
    """
    _validate_schema(schema)
    return {alias: name for name, definition in schema.items() for alias in aliases_of(definition)}


__all__ = (
    "merge_schema",
    "merge_options",
    "build_options",
    "normalize_schema",
    "aliases_of",
    "fetch_aliases",
)
