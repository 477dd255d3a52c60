import functools
import inspect
from functools import wraps
from typing import Union, get_origin, get_args


class LambdaTypeError(TypeError):
    pass


class LambdaValueError(ValueError):
    pass


class LambdaSyntaxError(SyntaxError):
    """Malformed surface syntax.

    ``char`` is the offending character ('' at end of input) and
    ``offset`` its byte offset in the UTF-8 encoded source.
    """

    def __init__(self, message, char, offset):
        super().__init__(message)
        self.char = char
        self.offset = offset


def _bound_value(sig, param_name, args, kwargs):
    bound_args = sig.bind(*args, **kwargs)
    bound_args.apply_defaults()
    return bound_args.arguments.get(param_name)


def arg_value(pos: int,
              condition, error_msg="The parameter value is invalid."):

    def decorator(func):
        sig = inspect.signature(func)
        params = [
            p for p in sig.parameters.values()
            if p.kind in (
                inspect.Parameter.POSITIONAL_ONLY,
                inspect.Parameter.POSITIONAL_OR_KEYWORD,
                inspect.Parameter.KEYWORD_ONLY
            )
        ]

        @wraps(func)
        def wrapper(*args, **kwargs):
            if pos >= len(params):
                raise LambdaValueError(f"Parameter index {pos} out of range")

            param_name = params[pos].name
            value = _bound_value(sig, param_name, args, kwargs)

            if not condition(value):
                raise LambdaValueError(
                    f"{error_msg}: The value of parameter '{param_name}' is {value!r}"
                )
            return func(*args, **kwargs)

        return wrapper

    return decorator


def arg_type(pos: int, expected_type: Union[type, tuple]):
    def decorator(func):
        sig = inspect.signature(func)
        params = list(sig.parameters.values())

        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            if pos >= len(params):
                raise LambdaTypeError(
                    f"Positional parameter index {pos} exceeds the number of function parameters {len(params)}"
                )

            param_name = params[pos].name
            value = _bound_value(sig, param_name, args, kwargs)

            def check_type(value, hint_type):
                origin = get_origin(hint_type)
                args_ = get_args(hint_type)
                if origin is Union:
                    return any(check_type(value, t) for t in args_)
                elif origin is not None:
                    return isinstance(value, origin)
                else:
                    return isinstance(value, hint_type)

            if not check_type(value, expected_type):
                raise LambdaTypeError(
                    f"Parameter '{param_name}' should be {expected_type}, "
                    f"found {type(value)}"
                )
            return func(*args, **kwargs)

        return wrapper
    return decorator


def is_non_negative(value: int) -> bool:
    return value >= 0 if value is not None else True


def is_positive_or_none(value) -> bool:
    return value is None or value > 0
