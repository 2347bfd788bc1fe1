"""
Navarch command layer: register, route and validate CLI commands.

What this module provides
- CommandItem: a node of the command tree (name, description, registration
  options, children, weak parent link, derived path and alias map).
- CommandCategory / RootCategory: nodes that group children; the root has an
  empty path and lists its children sorted.
- Command: a leaf with a positional grammar, a handler, examples and a
  version callback.
- ParserContext: the per-invocation state (flag engine, usage, examples,
  epilogue) threaded through every level of one parse() call.
- ParsedArguments: the result record (flag values, params, clicommand or
  clierror).
- Factories and entry points: create_app_category(), create_category(),
  create_command(), parse().

Core ideas
- Registration is done once by command modules; the tree is read-only after.
- Each parse() builds a fresh ParserContext, so nothing leaks between runs.
- Every level configures the engine with its effective schema, re-reads the
  whole token list, and routes one level deeper when the positional at its
  depth names a child. The deepest level validates and produces the result.
- Usage errors are captured into `clierror`; application errors (grammars
  authored incorrectly) are raised at registration time.

Quick start
    from navarch import create_app_category, create_category, create_command, parse

    app = create_app_category({"inherited": {"options": {"v": {"alias": "verbose", "count": True}}}})
    cloud = create_category(app, "cloud", "Access cloud services")
    create_command(cloud, "flash", "Flash a device", {
        "params": "<device> [files...]",
        "options": {"target": {"alias": "t"}},
        "handler": lambda arguments: print(arguments.params),
    })

    arguments = parse(app, ["cloud", "flash", "my_device", "a.bin", "-t", "2.0.0", "-vv"])
    if arguments.clierror:
        report(arguments.clierror, usage=arguments.usage)
    else:
        asyncio.run(arguments.clicommand.exec(arguments))
"""
import functools
import inspect
import logging
import operator
import re
import shlex
import sys
import weakref
from abc import ABCMeta, abstractmethod
from collections.abc import Iterable, Mapping
from typing import NamedTuple

from rich.console import Console

from .engine import Engine
from .faults import UsageError, unknown_argument_error, unknown_command_error, _program
from .grammar import bind_params, compile_grammar
from .options import build_options, fetch_aliases
from .utils import *

logger = logging.getLogger(__name__)

# keys of a parsed record that never name a flag
RESERVED = ("$0", "_", "params")


class ItemType(ABCMeta):
    """
    Metaclass giving tree nodes read-only introspection and stable reprs.

    Responsibilities
    - Expose every name in __introspectable__ as a read-only property over the
      private "_{name}" field (via mirror()).
    - Provide __repr__/__rich_repr__ over __displayable__ (or __introspectable__).
    - Derive a hyphenated __typename__ from the class name for messages.
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


class ParsedArguments(dict):
    """
    Result of one parse() call.

    Mapping part
    - flag values keyed by canonical name (aliases are mirrored too).
    - "_": positional tokens that spelled the command path.

    Attributes
    - params: grammar name → str | list[str] | None (leaf commands only).
    - clicommand: the matched node, or None on error.
    - clierror: the captured usage fault, or None on success.
    - usage / examples / epilogue: text configured by the deepest level that
      ran, for help renderers.

    Flags are also readable as attributes (arguments.verbose) when their name
    does not collide with the attributes above.
    """

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.setdefault("_", [])
        self.params = {}
        self.clicommand = None
        self.clierror = None
        self.usage = None
        self.examples = ()
        self.epilogue = None

    def __getattr__(self, name):
        try:
            return self[name]
        except KeyError:
            raise AttributeError(f"parsed arguments have no flag {name!r}") from None

    @property
    def positionals(self):
        return list(self["_"])


class ParserContext:
    """
    Per-invocation parser state threaded through every level.

    Owns
    - engine: the flag Engine of the current level.
    - usage: usage text of the current level.
    - examples: (invocation, description) pairs of the current level.
    - epilogue: footer text of the current level.
    - program: program name substituted for "$0".

    A new context is built for every parse() call, and reset() is called on
    entering each level, so a level only sees the flags it inherits plus its
    own.
    """

    def __init__(self, program=Unset):
        self.program = coalesce(program, _program())
        self.reset()

    def reset(self):
        """
        forget the flags, usage, examples and epilogue of the previous level.
        """
        self.engine = Engine()
        self.usage = None
        self.examples = []
        self.epilogue = None
        return self

    def options(self, schema, /):
        """
        install flag definitions for the current level (used by setup hooks too).
        """
        self.engine.options(schema)
        return self

    def example(self, command, description, /):
        self.examples.append((command.replace("$0", self.program), description))
        return self


class Match(NamedTuple):
    node: object
    arguments: ParsedArguments


class Failure(NamedTuple):
    error: UsageError
    arguments: ParsedArguments


class CommandItem(metaclass=ItemType):
    """
    A node of the command tree.

    Registration options (all optional)
    - options: flag schema for this node (see navarch.options).
    - inherited: registration options handed down to every descendant.
    - alias: alternate name the node is also reachable by.
    - setup: callable(context, node) run when the node configures the engine.
    - parsed: callable(arguments) run after a successful match through this node.
    - examples: mapping invocation → description ("$command" is the node path).
    - version: callable(arguments) answering --version.
    - epilogue: footer text.
    - handler / params: leaf commands only (see Command).

    Lifecycle
    - created by a command module, attached with add_item(), then read-only.
    """
    __introspectable__ = (
        "name",
        "description",
        "options",
        "commands",
    )

    __displayable__ = (
        "name",
        "description",
        "path",
        "commands",
    )

    def __init__(self, name, description=Unset, options=None):
        if not name:
            raise ValueError(f"{type(self).__typename__} name must be defined")
        if not isinstance(name, str):
            raise TypeError(f"{type(self).__typename__} name must be a string")
        if not isinstance(description := coalesce(description, ""), str) and description is not False:
            raise TypeError(f"{type(self).__typename__} description must be a string or False")
        if not isinstance(options := coalesce(options, None) or {}, Mapping):
            raise TypeError(f"{type(self).__typename__} options must be a mapping")

        self._name = name
        self._description = description
        self._options = dict(options)
        self._commands = {}
        self._parent = None

    @property
    def parent(self):
        return self._parent() if self._parent is not None else None

    @property
    def path(self):
        """
        names from the root (exclusive) down to this node; aliases never appear.
        """
        parent = self.parent
        return (*parent.path, self.name) if parent is not None else (self.name,)

    @property
    def version(self):
        return build_options(self).get("version")

    @property
    def aliases(self):
        """
        alias → canonical flag name for the effective schema of this node.
        """
        return fetch_aliases(build_options(self).get("options") or {})

    def item(self, name, /):
        return self._commands.get(name)

    def find(self, path, /):
        """
        return the node reached by following `path` from here, or None.
        """
        if not path:
            return self
        item = self.item(path[0])
        return item and item.find(path[1:])

    def add_item(self, item, /):
        """
        register `item` under its name; an existing child with the same name
        is replaced (last registration wins).
        """
        if not isinstance(item, CommandItem):
            raise TypeError(f"{type(self).__typename__} children must be command items")
        if item.name in self._commands:
            logger.debug("replacing %s %r under %r", type(item).__typename__, item.name, self.name)
        self._commands[item.name] = item
        item._parent = weakref.ref(self)
        return self

    def unalias_option(self, name, /):
        """
        canonical name of a possibly aliased flag, looked up here then upwards.
        """
        try:
            return self.aliases[name]
        except KeyError:
            parent = self.parent
            return parent.unalias_option(name) if parent is not None else None

    def matches_name(self, name, /):
        return self.name == name or (bool(self._options.get("alias")) and self._options["alias"] == name)

    def matches_args(self, args, /):
        """
        True when the trailing tokens of `args` spell this node's chain.
        """
        if not self.path:
            return not args
        return bool(args) and self.matches_name(args[-1]) and (
            self.parent is None or self.parent.matches_args(args[:-1])
        )

    def matches(self, arguments, /):
        return self.matches_args(arguments["_"])

    def configure(self, context, /):
        """
        install this node's effective options into the context.
        """
        options = build_options(self)
        logger.debug("configuring %s %r", type(self).__typename__, " ".join(self.path) or context.program)

        if schema := options.get("options"):
            context.options(schema)

        if setup := options.get("setup"):
            setup(context, self)

        if examples := options.get("examples"):
            command = " ".join(self.path)
            for invocation, description in examples.items():
                context.example(invocation.replace("$command", command), description)

        if epilogue := options.get("epilogue"):
            context.epilogue = epilogue

        context.usage = self.usage(context)
        return context

    @abstractmethod
    def usage(self, context, /):
        """
        usage text of this node for the given context.
        """

    @abstractmethod
    def check(self, context, parsed, arguments, /):
        """
        validate a parse that stopped at this node; raise a usage fault on error.
        """

    def route(self, name, /):
        return None

    def exec(self, arguments, /):
        """
        return a coroutine running this node for `arguments`.

        - a handler is called with the arguments (awaited when it returns an awaitable);
        - otherwise a --version request calls the version callback;
        - otherwise the usage text is printed.
        The coroutine is not scheduled here; the caller awaits it.
        """
        handler = self._options.get("handler")
        version = self.version

        async def run():
            if handler:
                result = handler(arguments)
            elif arguments.get("version") and version:
                result = version(arguments)
            else:
                return Console().print(arguments.usage or self.usage(ParserContext()))
            if inspect.isawaitable(result):
                result = await result
            return result

        return run()


class CommandCategory(CommandItem):
    """
    A node grouping other categories and commands under a common path prefix.
    """

    @property
    def command_names(self):
        return list(self._commands)

    def route(self, name, /):
        """
        the child reached by `name`, by canonical name first, then by alias.
        """
        if item := self.item(name):
            return item
        for item in self._commands.values():
            if item.matches_name(name):
                return item
        return None

    def usage(self, context, /):
        path = [context.program, *self.path]
        return (
            (self.description + "\n" if self.description else "")
            + " ".join(["Usage:", *path, "<command>"]) + "\n"
            + " ".join(["Help: ", context.program, "help", *self.path, "<command>"])
        )

    def check(self, context, parsed, arguments, /):
        # an unknown command path wins over unknown flags
        if not self.matches(arguments):
            raise unknown_command_error(arguments.positionals, self)
        check_unknown_arguments(context, parsed, self)


class RootCategory(CommandCategory):
    """
    The root of the tree: reserved name "$0", empty path, sorted listings.
    """

    def __init__(self, options=None):
        options = coalesce(options, None) or {}
        super().__init__("$0", options.get("description", ""), options)

    @property
    def path(self):
        return ()

    @property
    def command_names(self):
        return sorted(super().command_names)


class Command(CommandItem):
    """
    A leaf command.

    Extra registration options
    - params: positional grammar ("<required> [optional] [rest...]"), compiled
      at registration so a malformed grammar fails immediately.
    - handler: callable(arguments), sync or async.
    """
    __introspectable__ = (
        "name",
        "description",
        "options",
        "commands",
        "params",
    )

    def __init__(self, name, description=Unset, options=None):
        super().__init__(name, description, options)
        self._options.setdefault("params", "")
        self._params = self._options["params"]
        compile_grammar(self._params)

    @property
    def handler(self):
        return self._options.get("handler")

    def usage(self, context, /):
        return (
            (self.description + "\n" if self.description else "")
            + " ".join(["Usage:", context.program, *self.path, "[options]"])
            + (" " + self.params if self.params else "")
        )

    def check(self, context, parsed, arguments, /):
        check_unknown_arguments(context, parsed, self)
        parse_params(arguments, self.path, self.params)


def check_unknown_arguments(context, parsed, item, /):
    """
    raise UnknownArgumentError for flags nobody along the matched chain declares.

    a key is known when it is reserved, demanded, a configured flag, an alias
    in the engine's table, or the positive form of a "no-" alias. a key is
    reported only when both its literal and its tree-unaliased form are unknown.
    """
    lookup = {alias: key for key, aliases in parsed.aliases.items() for alias in aliases}
    flags = context.engine.keys
    demanded = context.engine.demanded

    def unknown(key):
        return (
            key not in RESERVED and
            key not in demanded and
            key not in flags and
            "no-" + key not in lookup and
            key not in lookup
        )

    found = []
    for key in parsed.argv:
        alias = item.unalias_option(key)
        if unknown(key) and (not alias or unknown(alias)):
            found.append(key)

    if found:
        raise unknown_argument_error(found)


def parse_params(arguments, path, grammar, /):
    """
    bind the positionals after `path` to `grammar`, storing arguments.params.

    consumed positionals are removed from arguments["_"], which keeps only the
    command path.
    """
    extra = arguments["_"][len(path):]
    arguments["_"] = arguments["_"][:len(path)]
    arguments.params = bind_params(compile_grammar(grammar), extra)
    return arguments.params


def _dispatch(item, tokens, context, /):
    """
    configure `item`, parse, then either descend into a child or validate here.

    returns Match(node, arguments) or Failure(error, arguments); only usage
    faults are captured, application errors propagate.
    """
    item.configure(context.reset())

    try:
        parsed = context.engine.parse(tokens)
    except UsageError as error:
        return Failure(error, ParsedArguments({"_": []}))

    arguments = ParsedArguments(parsed.argv)
    positionals = arguments["_"]

    if len(positionals) > (depth := len(item.path)):
        if child := item.route(positionals[depth]):
            logger.debug("routing %r to %r", positionals[depth], child.name)
            return _dispatch(child, tokens, context)

    try:
        item.check(context, parsed, arguments)
    except UsageError as error:
        return Failure(error, arguments)

    if not item.matches(arguments):
        return Failure(unknown_command_error(arguments.positionals, item), arguments)

    return Match(item, arguments)


def _tokenize(prompt, /):
    if prompt is Unset:
        return sys.argv[1:]
    if isinstance(prompt, str):
        return shlex.split(prompt)
    if isinstance(prompt, Iterable):
        tokens = list(prompt)
        if not all(isinstance(token, str) for token in tokens):
            raise TypeError("parse() tokens must be a string or an iterable of strings")
        return tokens
    raise TypeError("parse() tokens must be a string or an iterable of strings")


def parse(command, tokens=Unset, /, *, program=Unset):
    """
    top-level invocation: route `tokens` through the tree rooted at `command`.

    parameters
    - command: the node to start from (normally the RootCategory).
    - tokens: list of strings, a shell-like string, or Unset for sys.argv[1:].
    - program: name substituted for "$0" (defaults to __main__.__prog__ or argv[0]).

    returns
    - ParsedArguments with exactly one of clicommand / clierror set.

    raises
    - ApplicationError subclasses for grammars authored incorrectly.
    """
    if not isinstance(command, CommandItem):
        raise TypeError("parse() first argument must be a command item")

    context = ParserContext(program)
    result = _dispatch(command, _tokenize(tokens), context)
    arguments = result.arguments

    match result:
        case Match(node=node):
            arguments.clicommand = node
            current = node
            while current is not None:
                if parsed := current.options.get("parsed"):
                    parsed(arguments)
                current = current.parent
            logger.debug("matched %r", " ".join(node.path) or context.program)
        case Failure(error=error):
            arguments.clierror = error
            logger.debug("parse failed: %s", error.message)

    arguments.usage = context.usage
    arguments.examples = tuple(context.examples)
    arguments.epilogue = context.epilogue
    return arguments


def create_app_category(options=None, /):
    """
    create the root category of an application.
    """
    return RootCategory(options)


def create_category(parent, name, description=Unset, options=None, /):
    """
    create a category under `parent`; a mapping passed as `description` is
    taken as the options.
    """
    if isinstance(description, Mapping):
        options, description = description, ""
    category = CommandCategory(name, description, options)
    parent.add_item(category)
    return category


def create_command(category, name, description=Unset, options=None, /):
    """
    create a leaf command under `category`; a mapping passed as `description`
    is taken as the options.

    raises
    - ApplicationError when the params grammar is malformed.
    """
    if isinstance(description, Mapping):
        options, description = description, ""
    command = Command(name, description, options)
    category.add_item(command)
    return command


__all__ = (
    "CommandItem",
    "CommandCategory",
    "RootCategory",
    "Command",
    "ParserContext",
    "ParsedArguments",
    "check_unknown_arguments",
    "parse",
    "create_app_category",
    "create_category",
    "create_command",
)
