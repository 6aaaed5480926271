## Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

import inspect
from types import UnionType
from typing import Any, ForwardRef, TypeVar, Callable, get_origin, get_args

from .types import Stack
from .errors import CompError


class CompSignatureError(CompError, TypeError):
    """Registration-time problem with the annotations of a Python operator."""
    pass


def get_python_name(comp_name: str) -> str:
    """Map an operation name to its Python function name."""
    return 'op_' + comp_name


def get_comp_name(py_name: str) -> str:
    """Inverse of `get_python_name`; symbolic names like `+` are registered as aliases instead."""
    if not py_name.startswith("op_"):
        raise CompSignatureError(f"Operator function `{py_name}` requires prefix `op_` by convention.", comp_token=py_name)
    return py_name[3:]


def _normalize_expected_type(tp):
    if tp is Any: return Any
    if isinstance(tp, TypeVar):
        if (bound := tp.__bound__):
            return _normalize_expected_type(bound)
        return Any
    if isinstance(tp, (type, tuple, UnionType)): return tp

    if (origin := get_origin(tp)) is not None:
        if origin in (list, tuple, dict, set, frozenset): return origin
        if isinstance(origin, type): return origin
        raise CompSignatureError(f"Unknown generic in type definition for {tp}.")

    if isinstance(tp, (ForwardRef, str)):
        raise CompSignatureError("Forward references and strings-as-types not supported.")
    raise CompSignatureError(f"Unknown type to normalize: {tp} {type(tp)}")


def _is_stack_annotation(annotation: Any) -> bool:
    if isinstance(annotation, ForwardRef) or hasattr(annotation, '__forward_arg__'):
        annotation = annotation.__forward_arg__
    if annotation is Stack:
        return True
    if isinstance(annotation, str):
        return annotation == 'Stack' or annotation.endswith('.Stack')
    return False


def get_stack_effects(*, fn: Callable, name: str = None) -> dict:
    """Parse the type annotations of a Python function to determine its stack effects.

    Arity (input) conventions:
        -2: pass entire stack as-is to function
        >=0: pop that many items from the stack

    Valency (output) conventions:
        -1: replace stack with retval
        0: no changes to stack
        1: single output expected
        >=1: tuple of multiple outputs expected

    Unannotated parameters accept any cell, and a missing return annotation means one output.
    """
    assert fn is not None, "Must specify the function to inspect."

    sig = inspect.signature(fn)
    params = list(sig.parameters.values())
    op_name = name or getattr(fn, '__name__', '<unnamed>')

    if any(p.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD) for p in params):
        raise CompSignatureError(f"Operation `{op_name}` cannot take variadic arguments.", comp_token=op_name)
    positional = [p for p in params if p.kind in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)
                                       and p.default is inspect.Parameter.empty]

    ret_ann = sig.return_annotation
    returns_stack_type = _is_stack_annotation(ret_ann)
    returns_none = (ret_ann is type(None) or ret_ann is None)
    returns_tuple = (ret_ann is tuple or get_origin(ret_ann) is tuple)

    if returns_none:
        outputs: list = []
    elif ret_ann is inspect.Signature.empty or returns_stack_type:
        outputs = [Any]
    else:
        raw_ret = get_args(ret_ann) if returns_tuple else (ret_ann,)
        outputs = [_normalize_expected_type(t) for t in raw_ret]

    def _input_type(p):
        return Any if p.annotation is inspect.Parameter.empty else _normalize_expected_type(p.annotation)

    # Special cases when stack be passed in directly and restored directly.
    pass_stack = (len(positional) == 1 and _is_stack_annotation(positional[0].annotation))

    meta = {
        'arity': -2 if pass_stack else len(positional),
        'valency': -1 if returns_stack_type else (0 if returns_none else (len(outputs) if returns_tuple else 1)),
        'inputs': [] if pass_stack else list(reversed([_input_type(p) for p in positional])),
        'outputs': list(reversed(outputs)),
    }
    return meta
