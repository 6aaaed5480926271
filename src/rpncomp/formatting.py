## Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

import re
import sys
import math

from .types import stack_list, Stack, nil


def stack_to_list(stk: Stack) -> stack_list:
    """Items of the stack, top first."""
    result = []
    while stk is not nil:
        stk, head = stk
        result.append(head)
    return stack_list(result)

def list_to_stack(values: list, base=None) -> Stack:
    """Inverse of `stack_to_list`, the first value ends up on top."""
    stack = nil if base is None else base
    for value in reversed(values):
        stack = Stack(stack, value)
    return stack


def write_without_ansi(write_fn):
    """Wrapper function that strips ANSI codes before calling the original writer."""
    ansi_re = re.compile(r'\033\[[0-9;]*m')
    return lambda text: write_fn(ansi_re.sub('', text))

def warn(message: str, file=None) -> None:
    print(f"  \033[1;33mwarning\033[0m: {message}", file=file or sys.stderr)


def format_number(x, precision: int | None = None) -> str:
    if isinstance(x, bool): return str(x).lower()
    if isinstance(x, int): return str(x)
    if math.isnan(x): return 'NaN'
    if math.isinf(x): return '-inf' if x < 0 else 'inf'
    # Integral values print without a fractional part, like the numbers typed in.
    if abs(x) < 1e16 and x == int(x):
        return str(int(x))
    if precision is not None:
        return f"{x:.{precision}f}".rstrip('0').rstrip('.')
    return repr(x)

def format_item(it, precision: int | None = None) -> str:
    if isinstance(it, str): return it
    if isinstance(it, (int, float)): return format_number(it, precision)
    if isinstance(it, stack_list):
        return '<' + ' '.join(format_item(i, precision) for i in reversed(it)) + '>'
    if isinstance(it, list):
        return '[' + ' '.join(format_item(i, precision) for i in it) + ']'
    return repr(it)


def show_stack(stack, config=None, file=None):
    """Print the stack bottom to top, one item per line, with the top item highlighted."""
    items = list(reversed(stack_to_list(stack)))
    precision = getattr(config, 'precision', None)
    levels = getattr(config, 'show_stack_level', False)
    for i, item in enumerate(items):
        depth = len(items) - i
        color = '\033[1;92m' if depth == 1 else '\033[94m'
        prefix = f"\033[90m{depth:>3}:\033[0m " if levels else ''
        print(f"{prefix}{color}{format_item(item, precision)}\033[0m", file=file)

def show_program_and_stack(program, stack, width=72):
    prog_str = ' '.join(format_item(p) for p in program) if program else '∅'
    if len(prog_str) > width:
        prog_str = prog_str[:+width-2] + ' …'
    stack_str = ' '.join(format_item(s) for s in reversed(stack_to_list(stack))) if stack is not nil else '∅'
    if len(stack_str) > width:
        stack_str = '… ' + stack_str[-width+2:]
    print(f"{stack_str:>{width}} \033[36m <=> \033[0m {prog_str:<{width}}")
