## Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

import operator
import collections

from .types import Operation, Stack, nil, Word, Block, Conditional, Store, Recall, Context
from .errors import CompError, CompNameError, CompStackError
from .library import check_inputs
from .formatting import show_program_and_stack


num = int | float

COMPARISONS = {'ifeq': operator.eq, 'ifne': operator.ne, 'ifgt': operator.gt, 'iflt': operator.lt}


def execute(op: Operation, stack: Stack, ctx: Context) -> Stack:
    match op.type:
        case Operation.FUNCTION:
            return op.ptr(stack, op.name)
        case Operation.COMMAND:
            return op.ptr(op, stack, ctx)
        case Operation.EXECUTE:
            # Functions run in place on the caller's stack, recursion uses the host call stack.
            return interpret(op.ptr.program, stack, ctx)
    raise NotImplementedError(f"Unknown operation type {op.type}.")


def select_branch(cond: Conditional, stack: Stack) -> tuple[Stack, list]:
    """Pops `b` then `a` and picks the branch for `a <test> b`."""
    check_inputs(cond.test, [num, num], stack)
    (base, a), b = stack
    return base, (cond.then_branch if COMPARISONS[cond.test](a, b) else cond.else_branch)


def interpret_step(program, stack, ctx: Context):
    node = program.popleft()

    match node:
        case Word(name=name, meta=meta):
            stack = execute(ctx.lib.resolve(name, meta=meta), stack, ctx)
        case Operation():
            stack = execute(node, stack, ctx)
        case Block(combinator=combinator):
            stack = ctx.lib.combinators[combinator](node, stack, ctx)
        case Conditional():
            # Only the selected branch is ever evaluated.
            stack, branch = select_branch(node, stack)
            program.extendleft(reversed(branch))
        case Store(name=name):
            if stack is nil:
                raise CompStackError(f"`sto {name}` needs a value on the stack.", comp_token='sto')
            stack, ctx.memory.variables[name] = stack
        case Recall(name=name):
            if name not in ctx.memory.variables:
                raise CompNameError(f"Variable `{name}` was never stored.", comp_token=name)
            stack = Stack(stack, ctx.memory.variables[name])
        case _:
            stack = Stack(stack, node)

    return stack, program


def _token_of(node) -> str:
    match node:
        case Word(name=name) | Operation(name=name): return name
        case Block(combinator=combinator): return combinator
        case Conditional(test=test): return test
        case Store(): return 'sto'
        case Recall(): return 'rcl'
    return repr(node)


def interpret(program: list, stack: Stack | None, ctx: Context):
    stack = nil if stack is None else stack
    program = collections.deque(program)
    verbosity = ctx.verbosity

    def is_notable(node):
        if isinstance(node, (Block, Conditional)): return True
        return isinstance(node, Word) and node.name in ctx.lib.definitions

    step = 0
    while program:
        if verbosity == 2 or (verbosity == 1 and (is_notable(program[0]) or step == 0)):
            print(f"\033[90m{step:>3} :\033[0m  ", end='')
            show_program_and_stack(program, stack)

        step += 1
        try:
            node = program[0]
            stack, program = interpret_step(program, stack, ctx)
        except CompError as exc:
            # Innermost frame wins, outer frames only fill in what is missing.
            if exc.comp_token is None: exc.comp_token = _token_of(node)
            if exc.comp_meta is None: exc.comp_meta = getattr(node, 'meta', None)
            if exc.comp_stack is None: exc.comp_stack = stack
            raise

    if verbosity > 0:
        print(f"\033[90m{step:>3} :\033[0m  ", end='')
        show_program_and_stack(program, stack)
    if ctx.stats is not None:
        ctx.stats['steps'] = ctx.stats.get('steps', 0) + step

    return stack
