r"""
Navarch flag engine: tokenize an argument vector against a flag schema.

The dispatch layer drives one Engine per parse() call and configures it level
by level; every level re-reads the whole token list with the schema gathered
so far. The engine knows nothing about commands: it splits tokens into flag
values and positionals, and reports the alias table it used.

Token forms
- "--name", "--name=value", "--name value"
- "-n", "-n=value", "-n value", "-abc" (a and b as switches, c as "-c"),
  "-tv" (t takes a value, so t="v")
- "--no-name": sets name to False
- "--": every following token is positional
- "-5", "-0.5": negative numbers are positionals, not flags

Value shapes (from the normalized definition)
- boolean: True when present, False by default; "--name=false" accepted.
- count: incremented each time present, 0 by default.
- array: every following non-flag token, accumulated across repeats.
- nargs=N: exactly N following tokens (a list when N > 1); fewer raise
  NotEnoughArgumentsError.
- number: converted with int(), then float(); other text is kept as given.
Unknown flags take their inline "=value", or else the next token when it is
not a flag, or else True; an ancestor level that does not know a descendant's
flag therefore still keeps its value out of the command path. Values are
mirrored under every alias of the flag so lookups by any name succeed.
"""
import logging
import re
from typing import NamedTuple

from .faults import missing_arguments_error, not_enough_arguments_error
from .options import aliases_of, merge_schema, normalize_schema

logger = logging.getLogger(__name__)

_NEGATIVE = re.compile(r"-\d+(\.\d+)?([eE][-+]?\d+)?")
_TOKEN = re.compile(r"(?P<dashes>--?)(?P<input>[^=]+)(=(?P<value>[\s\S]*))?")


def _is_flag(token):
    """
    a token that starts a flag (not "-", not "--", not a negative number).
    """
    return token.startswith("-") and token not in ("-", "--") and not _NEGATIVE.fullmatch(token)


def _number(value):
    try:
        return int(value)
    except ValueError:
        pass
    try:
        return float(value)
    except ValueError:
        return value


def _boolean(value):
    return value.strip().lower() not in ("false", "0", "no", "off", "")


class Parsed(NamedTuple):
    """
    result of one engine pass.

    - argv: flag values keyed by canonical name and every alias, plus "_"
      holding the positional tokens in order.
    - aliases: canonical name → list of its aliases (only for configured flags).
    """
    argv: dict
    aliases: dict


class Engine:
    """
    Accumulating flag parser.

    Configuration is cumulative within one Engine: options() merges new
    definitions over the ones installed by outer levels. A fresh Engine has
    no flags at all, so independent parse() calls never share state.
    """

    def __init__(self):
        self._schema = {}

    @property
    def schema(self):
        return {name: dict(definition) for name, definition in self._schema.items()}

    @property
    def keys(self):
        """
        canonical names of every configured flag.
        """
        return set(self._schema)

    @property
    def demanded(self):
        """
        canonical names of flags declared with demand=True.
        """
        return {name for name, definition in self._schema.items() if definition.get("demand")}

    @property
    def aliases(self):
        return {name: list(aliases_of(definition)) for name, definition in self._schema.items()}

    def options(self, schema, /):
        """
        install (merge) flag definitions, normalizing arity and type defaults.
        """
        self._schema = merge_schema(self._schema, normalize_schema(schema))
        logger.debug("engine configured with flags %s", sorted(self._schema))
        return self

    def _canonical(self, name):
        if name in self._schema:
            return name
        for canonical, definition in self._schema.items():
            if name in aliases_of(definition):
                return canonical
        return None

    def _store(self, argv, name, value):
        argv[name] = value
        if name in self._schema:
            for alias in aliases_of(self._schema[name]):
                argv[alias] = value

    def _consume(self, name, definition, inline, tokens, argv):
        """
        read the value(s) for one flag occurrence, popping spaced values from tokens.
        """
        if definition.get("count"):
            return argv.get(name, 0) + 1
        if definition.get("boolean"):
            return True if inline is None else _boolean(inline)

        convert = _number if definition.get("number") else str

        if definition.get("array"):
            values = [] if inline is None else [inline]
            while tokens and not _is_flag(tokens[0]) and tokens[0] != "--":
                values.append(tokens.pop(0))
            return [*argv.get(name, []), *map(convert, values)]

        nargs = definition.get("nargs", 1)
        if nargs == 0:
            return True if inline is None else _boolean(inline)

        values = [] if inline is None else [inline]
        available = 0
        for token in tokens:
            if _is_flag(token) or token == "--":
                break
            available += 1
        if len(values) + available < nargs:
            raise not_enough_arguments_error(name)
        while len(values) < nargs:
            values.append(tokens.pop(0))

        values = list(map(convert, values))
        return values[0] if nargs == 1 else values

    def _takes_value(self, name):
        definition = self._schema[name]
        return not (definition.get("count") or definition.get("boolean") or definition.get("nargs") == 0)

    def _flag(self, input, inline, tokens, argv):
        name = self._canonical(input)
        if name is None and input.startswith("no-") and inline is None:
            negated = self._canonical(input[3:]) or input[3:]
            self._store(argv, negated, False)
            return
        if name is None:
            # an unknown flag takes the next non-flag token as its value
            if inline is None and tokens and not _is_flag(tokens[0]) and tokens[0] != "--":
                inline = tokens.pop(0)
            argv[input] = True if inline is None else inline
            return
        self._store(argv, name, self._consume(name, self._schema[name], inline, tokens, argv))

    def _cluster(self, letters, tokens, argv):
        """
        "-abc": switches up to the first letter taking a value, which then
        takes the rest of the cluster as its inline value ("-tv" sets t="v").
        """
        for index, letter in enumerate(letters[:-1]):
            name = self._canonical(letter)
            if name is not None and self._takes_value(name):
                self._flag(letter, letters[index + 1:], tokens, argv)
                return
            if name is None:
                argv[letter] = True
            else:
                self._flag(letter, None, tokens, argv)
        self._flag(letters[-1], None, tokens, argv)

    def parse(self, tokens, /):
        """
        split tokens into flag values and positionals.

        raises
        - NotEnoughArgumentsError when a fixed-arity flag runs out of values.
        - MissingArgumentsError when demanded flags are absent.
        """
        tokens = list(tokens)
        argv = {"_": []}

        while tokens:
            token = tokens.pop(0)

            if token == "--":
                argv["_"].extend(tokens)
                break

            if not _is_flag(token):
                argv["_"].append(token)
                continue

            if not (match := _TOKEN.fullmatch(token)):
                argv["_"].append(token)
                continue
            input, inline = match["input"], match["value"]

            if match["dashes"] == "-" and len(input) > 1 and inline is None:
                self._cluster(input, tokens, argv)
            else:
                self._flag(input, inline, tokens, argv)

        for name, definition in self._schema.items():
            if name in argv:
                continue
            if "default" in definition:
                self._store(argv, name, definition["default"])
            elif definition.get("count"):
                self._store(argv, name, 0)
            elif definition.get("boolean"):
                self._store(argv, name, False)

        if missing := sorted(name for name in self.demanded if name not in argv):
            raise missing_arguments_error(missing)

        return Parsed(argv, self.aliases)


__all__ = (
    "Engine",
    "Parsed",
)
