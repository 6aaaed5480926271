## Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

import re
from types import UnionType
from typing import Any, Callable, get_args
from dataclasses import dataclass, field

from .types import Stack, nil, Operation, Definition
from .errors import CompError, CompNameError, CompParseError, CompStackError, CompTypeError, CompDomainError
from .loader import get_stack_effects
from .formatting import warn


_NUMERIC_PREFIX = re.compile(r'[+-]?\.?\d')


@dataclass
class Library:
    functions: dict[str, Callable[..., Any]]
    commands: dict[str, Callable[..., Any]]
    combinators: dict[str, Callable[..., Any]]
    definitions: dict[str, Definition] = field(default_factory=dict)
    aliases: dict[str, str] = field(default_factory=dict)

    # Registration helpers
    def add_function(self, name: str, fn: Callable[..., Any]) -> None:
        fn, meta = _make_wrapper(fn, name)
        fn.__comp_meta__ = meta
        self.functions[name] = fn

    def add_definition(self, name: str, program: list, meta: dict, *, warnings: bool = False) -> None:
        if warnings and self.is_builtin(name):
            warn(f"function `{name}` is shadowed by the built-in of the same name and will never be called")
        elif warnings and name in self.definitions:
            warn(f"function `{name}` redefined, the previous definition is replaced")
        self.definitions[name] = Definition(name=name, program=program, meta=meta)

    def ensure_consistent(self) -> None:
        for _, fn in list(self.functions.items()):
            assert hasattr(fn, '__comp_meta__')
        for alias, target in self.aliases.items():
            assert target in self.functions or target in self.commands, f"Alias `{alias}` has no target."

    def is_builtin(self, name: str) -> bool:
        resolved_name = self.aliases.get(name, name)
        return resolved_name in self.functions or resolved_name in self.commands

    def get_function(self, name: str, *, meta: dict | None = None) -> Callable[..., Any]:
        resolved_name = self.aliases.get(name, name)
        if (function := self.functions.get(resolved_name)) is not None:
            return function
        raise CompNameError(f"Operation `{name}` not found in library.", comp_token=name, comp_meta=meta)

    def resolve(self, name: str, *, meta: dict | None = None) -> Operation:
        """Layered lookup at call time: built-ins first, then the function table."""
        resolved_name = self.aliases.get(name, name)
        if (function := self.functions.get(resolved_name)) is not None:
            return Operation(Operation.FUNCTION, function, name, meta)
        if (command := self.commands.get(resolved_name)) is not None:
            return Operation(Operation.COMMAND, command, name, meta)
        if (definition := self.definitions.get(name)) is not None:
            return Operation(Operation.EXECUTE, definition, name, meta)
        if _NUMERIC_PREFIX.match(name):
            meta = meta or {}
            raise CompParseError(f"Malformed number `{name}`.", filename=meta.get('filename'),
                                 line=meta.get('start'), column=meta.get('columns', (None,))[0], token=name)
        raise CompNameError(f"Unknown symbol `{name}`, not a number, built-in or defined function.", comp_token=name, comp_meta=meta)

    def names(self) -> list[str]:
        return sorted({*self.functions, *self.commands, *self.aliases, *self.definitions})


def _describe_type(tp) -> str:
    options = get_args(tp) if isinstance(tp, UnionType) else (tp,)
    if str in options and len(options) == 1: return 'symbol'
    if str in options: return 'number or symbol'
    return 'number'


def _describe_value(value) -> str:
    return 'symbol' if isinstance(value, str) else 'number'


def check_inputs(name: str, inputs: list, stack: Stack) -> None:
    """Validate depth and cell types for top-first `inputs` before anything is popped."""
    values, current = [], stack
    for _ in inputs:
        if current is nil:
            raise CompStackError(f"`{name}` needs at least {len(inputs)} item(s) on the stack, but {len(values)} available.",
                                 comp_token=name, comp_stack=stack)
        current, head = current
        values.append(head)

    for i, (actual, expected) in enumerate(zip(values, inputs)):
        if expected in (Any, None): continue
        if isinstance(actual, bool) or not isinstance(actual, expected):
            raise CompTypeError(f"`{name}` expects {_describe_type(expected)} at position {i+1} from top, got {_describe_value(actual)}.",
                                comp_token=name, comp_stack=stack)


def _make_wrapper(fn: Callable[..., Any], name: str) -> Callable[..., Any]:
    meta = get_stack_effects(fn=fn, name=name)
    inputs = meta['inputs']

    match meta['valency']:
        case -1:
            def push(_, res): return res
        case 0:
            def push(base, _): return base
        case 1:
            def push(base, res): return Stack(base, res)
        case _:
            def push(base, res):
                for v in res: base = Stack(base, v)
                return base

    def call(token, *args):
        try:
            return fn(*args)
        except CompError:
            raise
        except (ValueError, ArithmeticError) as exc:
            raise CompDomainError(f"`{token}` is undefined for these operands ({exc}).", comp_token=token) from exc

    match meta['arity']:
        case -2: # pass stack as-is
            def w_s(stk: Stack, token: str = name):
                return push(stk, call(token, stk))
            return w_s, meta
        case 0: # no arguments
            def w_0(stk: Stack, token: str = name):
                return push(stk, call(token))
            return w_0, meta
        case 1:
            def w_1(stk: Stack, token: str = name):
                check_inputs(token, inputs, stk)
                base, a = stk
                return push(base, call(token, a))
            return w_1, meta
        case 2:
            def w_2(stk: Stack, token: str = name):
                check_inputs(token, inputs, stk)
                (base, b), a = stk
                return push(base, call(token, b, a))
            return w_2, meta
        case _:
            def w_x(stk: Stack, token: str = name):
                check_inputs(token, inputs, stk)
                args, base = (), stk
                for _ in range(meta['arity']):
                    base, h = base
                    args = (h,) + args
                return push(base, call(token, *args))
            return w_x, meta
