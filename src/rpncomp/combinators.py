## Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

from .types import Block, Context, Stack, nil
from .errors import CompStackError, CompBlockError
from .formatting import stack_to_list
from .interpreter import interpret


def comb_map(this: Block, stack: Stack, ctx: Context) -> Stack:
    """Runs the block on every item from bottom to top, each on a fresh stack holding only that item.
    The block must leave exactly one item, which replaces the original in place.
    """
    results = []
    for item in reversed(stack_to_list(stack)):
        out = interpret(this.program, Stack(nil, item), ctx)
        if out is nil or out.tail is not nil:
            raise CompBlockError(f"`map` block must leave exactly one item per element, but left {out.depth()}.",
                                 comp_token=this.combinator, comp_meta=this.meta, comp_stack=stack)
        results.append(out.head)
    return nil.pushed(*results)


def _accumulate(this: Block, stack: Stack, ctx: Context) -> list:
    """Pops the seed, then threads an accumulator through the block with each remaining item
    bottom to top on a fresh stack `[acc item]`.  Returns every intermediate accumulator.
    """
    if stack is nil:
        raise CompStackError(f"`{this.combinator}` needs a seed value on top of the stack.",
                             comp_token=this.combinator, comp_meta=this.meta, comp_stack=stack)
    rest, acc = stack
    steps = []
    for item in reversed(stack_to_list(rest)):
        out = interpret(this.program, nil.pushed(acc, item), ctx)
        if out is nil:
            raise CompBlockError(f"`{this.combinator}` block left an empty stack, no accumulator to keep.",
                                 comp_token=this.combinator, comp_meta=this.meta, comp_stack=stack)
        acc = out.head
        steps.append(acc)
    return steps or [acc]

def comb_fold(this: Block, stack: Stack, ctx: Context) -> Stack:
    """Replaces the whole stack with the final accumulator."""
    steps = _accumulate(this, stack, ctx)
    return Stack(nil, steps[-1])

def comb_scan(this: Block, stack: Stack, ctx: Context) -> Stack:
    """Like `fold`, but keeps every intermediate accumulator in order, without the seed."""
    if stack is not nil and stack.tail is nil:
        return nil
    return nil.pushed(*_accumulate(this, stack, ctx))
