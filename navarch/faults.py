"""
Navarch faults (usage and application errors) and rendering.

Scope
- FaultCode: the closed set of error kinds. Callers and tests compare
  `fault.type` against these members instead of comparing factories.
- CommandException: base type carrying message, data, type and item, and
  knowing how to render itself through rich.
- UsageError / ApplicationError: the two classifications. Usage errors are
  caused by end-user input and are captured into the parse result; application
  errors are caused by a command module authoring a bad grammar and are raised.
- Factories: one per condition, building a fully tagged fault.
- report() / create_error_handler(): print a fault the way the command line
  shows it (usage first for usage errors, message, optional traceback, exit).

Integration
- The dispatch layer builds faults through the factories and stores the first
  one as `clierror`. Application errors propagate out of `parse()`.
- Hosts may expose __prog__, __codes__, __docs__ and __styles__ in __main__ to
  adjust the program name, code labels, documentation and palette.
"""
import copy
import os.path
import sys
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType, SimpleNamespace

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text
from rich.traceback import Traceback

from . import logs
from .utils import Unset, coalesce, pluralize

console = Console(stderr=True)


class FaultCode(IntEnum):
    """
    canonical fault codes (stable identifiers).

    grouping (by high-level domain)
    - routing (1110x)
      • UNKNOWN_COMMAND
    - switches (1111x)
      • UNKNOWN_ARGUMENT, NOT_ENOUGH_ARGUMENTS, MISSING_ARGUMENTS
    - parameters (1112x)
      • UNKNOWN_PARAMETERS, REQUIRED_PARAMETER, VARIADIC_PARAMETER_REQUIRED
    - grammar authoring (1310x), application errors
      • VARIADIC_PARAMETER_POSITION, REQUIRED_PARAMETER_POSITION

    normalize() allows host remapping to custom labels while keeping the
    numeric identity stable.
    """
    # --- routing errors (11xxx) ---
    UNKNOWN_COMMAND             = 11101

    # --- switch errors (11xxx) ---
    UNKNOWN_ARGUMENT            = 11112
    NOT_ENOUGH_ARGUMENTS        = 11117
    MISSING_ARGUMENTS           = 11119

    # --- parameter errors (11xxx) ---
    UNKNOWN_PARAMETERS          = 11121
    REQUIRED_PARAMETER          = 11125
    VARIADIC_PARAMETER_REQUIRED = 11126

    # --- grammar authoring errors (13xxx) ---
    VARIADIC_PARAMETER_POSITION = 13101
    REQUIRED_PARAMETER_POSITION = 13102

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


def _program():
    return getattr(__import__("__main__"), "__prog__", os.path.basename(sys.argv[0]) or "navarch")


class CommandException(Exception):
    """
    Base fault raised or captured by the dispatch layer.

    Attributes
    - message: human message.
    - data: the offending token, token list or parameter name.
    - type: FaultCode identifying the kind of fault.
    - item: the command node involved, when one is known.
    - usage / application: classification flags (exactly one is True on
      concrete faults).
    - options: read-only rendering options (title, hint, colorful, fancy).
    """
    usage = False
    application = False

    def __init__(self, message=Unset, /, data=None, *, type, item=None, **options):
        assert isinstance(message, str | Unset)
        assert isinstance(type, FaultCode)
        super().__init__(coalesce(message, ""))
        self.message = coalesce(message, "")
        self.data = data
        self.type = type
        self.item = item
        self.options = MappingProxyType(options)

    @property
    def is_usage_error(self):
        return self.usage

    @property
    def is_application_error(self):
        return self.application

    def __rich__(self):
        main = __import__("__main__")

        styles = defaultdict(str, {
            # header parts
            "prog-name": "bold #E6E6F0",
            "code": "bold #00E5FF",
            "error-title": "bold #FF4DA6",

            # body
            "error-message": "#FF5F5F",
            "hint-arrow": "#9CE19C dim",
            "hint": "italic #9CE19C",
        } | getattr(main, "__styles__", {}))

        colorful = self.options.get("colorful", True)
        fancy = self.options.get("fancy", False)

        def text(fragment, style=""):
            if not fragment:
                return Text("")
            if not colorful:
                return Text(str(fragment))
            return Text(str(fragment), styles[style])

        header = Text.assemble(
            "[ ",
            text(_program(), "prog-name"),
            " — ",
            text(self.type.normalize(), "code"),
            " | ",
            text(self.options.get("title", self.type.name.replace("_", " ").lower()), "error-title"),
            " ]"
        )
        renders = [text(self.message, "error-message")]
        if hint := self.options.get("hint"):
            renders.append(Text.assemble(text(" → ", "hint-arrow"), text(hint, "hint")))

        if fancy:
            return Panel(Group(*renders), title=header, title_align="left")
        return Group(header, *renders)

    def __replace__(self, *unused, **overrides):
        assert not unused, "unused arguments are not allowed"
        return type(self)(
            self.message,
            self.data,
            type=self.type,
            item=self.item,
            **{**self.options, **overrides}
        )


class UsageError(CommandException):
    usage = True


class ApplicationError(CommandException):
    application = True


class UnknownCommandError(UsageError): ...
class UnknownArgumentError(UsageError): ...
class NotEnoughArgumentsError(UsageError): ...
class MissingArgumentsError(UsageError): ...
class UnknownParametersError(UsageError): ...
class RequiredParameterError(UsageError): ...
class VariadicParameterRequiredError(UsageError): ...
class VariadicParameterPositionError(ApplicationError): ...
class RequiredParameterPositionError(ApplicationError): ...


def unknown_command_error(command, item=None, /):
    """
    the positional tokens do not spell a registered command path.

    data is the full positional list; item is the node where matching failed.
    """
    return UnknownCommandError(
        "No such command '%s'" % " ".join(command),
        command,
        type=FaultCode.UNKNOWN_COMMAND,
        item=item,
        title="unknown command",
        hint="run '%s help' to see available commands" % _program(),
    )


def unknown_argument_error(argument, /):
    """
    one or more flags are not declared by the matched command or its ancestors.
    """
    return UnknownArgumentError(
        "Unknown %s '%s'" % (pluralize("argument", len(argument)), ", ".join(argument)),
        argument,
        type=FaultCode.UNKNOWN_ARGUMENT,
        title="unknown %s" % pluralize("argument", len(argument)),
        hint="remove the %s or check the command usage" % pluralize("flag", len(argument)),
    )


def not_enough_arguments_error(flag, /):
    """
    a flag declaring a fixed value count was not followed by enough values.
    """
    return NotEnoughArgumentsError(
        "Not enough arguments following: %s" % flag,
        flag,
        type=FaultCode.NOT_ENOUGH_ARGUMENTS,
        title="not enough arguments",
        hint="add a value after '--%s'" % flag,
    )


def missing_arguments_error(flags, /):
    """
    flags declared with demand=True were not supplied.
    """
    return MissingArgumentsError(
        "Missing required %s: %s" % (pluralize("argument", len(flags)), ", ".join(flags)),
        flags,
        type=FaultCode.MISSING_ARGUMENTS,
        title="missing %s" % pluralize("argument", len(flags)),
    )


def required_parameter_error(param, /):
    return RequiredParameterError(
        "Parameter '%s' is required." % param,
        param,
        type=FaultCode.REQUIRED_PARAMETER,
        title="missing parameter",
    )


def variadic_parameter_required_error(param, /):
    return VariadicParameterRequiredError(
        "Parameter '%s' must have at least one item." % param,
        param,
        type=FaultCode.VARIADIC_PARAMETER_REQUIRED,
        title="missing parameter",
    )


def variadic_parameter_position_error(param, /):
    return VariadicParameterPositionError(
        "Variadic parameter '%s' must be the final parameter." % param,
        param,
        type=FaultCode.VARIADIC_PARAMETER_POSITION,
        title="misplaced variadic parameter",
    )


def required_parameter_position_error(param, /):
    return RequiredParameterPositionError(
        "Required parameter '%s' must be placed before all optional parameters." % param,
        param,
        type=FaultCode.REQUIRED_PARAMETER_POSITION,
        title="misplaced required parameter",
    )


def unknown_parameters_error(params, /):
    return UnknownParametersError(
        "Command parameters '%s' are not expected here." % " ".join(params),
        params,
        type=FaultCode.UNKNOWN_PARAMETERS,
        title="unexpected parameters",
    )


errors = SimpleNamespace(
    unknown_command_error=unknown_command_error,
    unknown_argument_error=unknown_argument_error,
    not_enough_arguments_error=not_enough_arguments_error,
    missing_arguments_error=missing_arguments_error,
    required_parameter_error=required_parameter_error,
    variadic_parameter_required_error=variadic_parameter_required_error,
    variadic_parameter_position_error=variadic_parameter_position_error,
    required_parameter_position_error=required_parameter_position_error,
    unknown_parameters_error=unknown_parameters_error,
)


def report(fault, /, *, console=console, usage=None, exit=False, verbosity=Unset, colorful=True, fancy=False):
    """
    print a fault the way the command line surfaces it.

    behavior
    - usage errors (and a falsy fault) print the usage text first, when given.
    - faults render through their __rich__ form; any other object prints its
      message attribute, or its repr, in red.
    - non-usage exceptions print their traceback when the verbosity is above 1
      (defaults to the level installed through navarch.logs.install()).
    - exit=True terminates the process with status 1.
    """
    verbosity = coalesce(verbosity, logs.verbosity())
    usable = not fault or getattr(fault, "usage", False)
    if usable and usage:
        console.print(usage)

    if isinstance(fault, CommandException):
        console.print(copy.replace(fault, colorful=colorful, fancy=fancy))
    elif fault:
        console.print(Text(str(getattr(fault, "message", None) or repr(fault)), style="red" if colorful else ""))

    if not usable and verbosity > 1 and isinstance(fault, BaseException) and fault.__traceback__:
        console.print(Traceback.from_exception(type(fault), fault, fault.__traceback__))

    if exit:
        sys.exit(1)


def create_error_handler(*, console=console, usage=None, exit=True, colorful=True, fancy=False):
    """
    build a one-argument callable that reports a fault with fixed options.

    typical use is as the rejection handler of the coroutine returned by
    Command.exec().
    """
    def handler(fault, /):
        report(fault, console=console, usage=usage, exit=exit, colorful=colorful, fancy=fancy)
    return handler


def getdoc(code, /):
    """
    optional documentation fetch for a fault code from __main__.__docs__.
    """
    if not isinstance(code, FaultCode):
        raise TypeError("getdoc() argument must be a fault-code")
    return getattr(__import__("__main__"), "__docs__", {}).get(code)


__all__ = (
    "FaultCode",
    "CommandException",
    "UsageError",
    "ApplicationError",
    "UnknownCommandError",
    "UnknownArgumentError",
    "NotEnoughArgumentsError",
    "MissingArgumentsError",
    "UnknownParametersError",
    "RequiredParameterError",
    "VariadicParameterRequiredError",
    "VariadicParameterPositionError",
    "RequiredParameterPositionError",
    "unknown_command_error",
    "unknown_argument_error",
    "not_enough_arguments_error",
    "missing_arguments_error",
    "required_parameter_error",
    "variadic_parameter_required_error",
    "variadic_parameter_position_error",
    "required_parameter_position_error",
    "unknown_parameters_error",
    "errors",
    "report",
    "create_error_handler",
    "getdoc",
)
