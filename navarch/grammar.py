"""
Navarch parameter grammar: compile and bind positional parameters.

Grammar
- "<name>"       required slot
- "[name]"       optional slot
- "<name...>"    required variadic slot (at least one value)
- "[name...]"    optional variadic slot (zero or more values)
- "<a|b>"        one slot bound under several names

Slots are matched left to right; anything between brackets is ignored, so
"<device> [files...]" and "<device>[files...]" are the same grammar.

Authoring rules (raised as application errors, whatever the input is)
- a variadic slot must be the last one;
- a required scalar slot cannot follow an optional one. A required variadic
  slot may, since it is last and claims everything left over.

Binding rules (raised as usage errors)
- missing required scalar → RequiredParameterError
- empty required variadic → VariadicParameterRequiredError
- surplus values without a trailing variadic → UnknownParametersError
Optional scalars left empty bind None; optional variadics left empty bind [].
"""
import functools
import re
from typing import NamedTuple

from .faults import (
    required_parameter_error,
    required_parameter_position_error,
    unknown_parameters_error,
    variadic_parameter_position_error,
    variadic_parameter_required_error,
)


class Parameter(NamedTuple):
    """
    one compiled grammar slot.

    - label: the slot text without brackets and ellipsis ("a|b"), used in faults.
    - names: every name the bound value is stored under.
    - required / variadic: slot shape.
    """
    label: str
    names: tuple[str, ...]
    required: bool
    variadic: bool


@functools.cache
def compile_grammar(grammar, /):
    """
    compile a grammar string into a tuple of Parameter slots.

    raises
    - TypeError when the grammar is not a string.
    - VariadicParameterPositionError when a slot follows a variadic one.
    - RequiredParameterPositionError when a required scalar follows an optional one.
    """
    if not isinstance(grammar, str):
        raise TypeError("compile_grammar() argument must be a string")

    parameters = []
    variadic = None
    optional = False

    for match in re.finditer(r"<[^>]+>|\[[^\]]+\]", grammar):
        if variadic:
            raise variadic_parameter_position_error(variadic)

        token = match.group()
        required = token[0] == "<"
        label = token[1:-1]
        if label.endswith("..."):
            label = variadic = label[:-3]

        if required and optional and not variadic:
            raise required_parameter_position_error(label)
        optional |= not required

        parameters.append(Parameter(label, tuple(label.split("|")), required, bool(variadic)))

    return tuple(parameters)


def bind_params(parameters, extra, /):
    """
    bind leftover positional tokens to compiled slots.

    returns a dict mapping every slot name to a str, a list[str] or None.
    """
    params = {}
    extra = [str(value) for value in extra]

    for index, parameter in enumerate(parameters):
        if parameter.variadic:
            value = extra[index:]
            if parameter.required and not value:
                raise variadic_parameter_required_error(parameter.label)
        else:
            value = extra[index] if index < len(extra) else None
            if parameter.required and value is None:
                raise required_parameter_error(parameter.label)

        params.update(dict.fromkeys(parameter.names, value))

    if not (parameters and parameters[-1].variadic) and len(parameters) < len(extra):
        raise unknown_parameters_error(extra[len(parameters):])

    return params


__all__ = (
    "Parameter",
    "compile_grammar",
    "bind_params",
)
