## Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

import math

from .types import Operation, Stack, Context, nil
from .errors import CompStackError
from .library import check_inputs
from .formatting import stack_to_list, list_to_stack


num = int | float


def _require(this: Operation, stack: Stack, count: int) -> None:
    if (depth := stack.depth()) < count:
        raise CompStackError(f"`{this.name}` needs at least {count} item(s) on the stack, but {depth} available.",
                             comp_token=this.name, comp_stack=stack)


## WHOLE STACK
def cmd_cls(this: Operation, stack: Stack, ctx: Context) -> Stack:
    return nil

def cmd_roll(this: Operation, stack: Stack, ctx: Context):
    """Moves the top item to the bottom of the stack."""
    _require(this, stack, 1)
    items = stack_to_list(stack)
    return list_to_stack(items[1:] + items[:1])

def cmd_rot(this: Operation, stack: Stack, ctx: Context):
    """Moves the bottom item to the top of the stack."""
    _require(this, stack, 1)
    items = stack_to_list(stack)
    return list_to_stack(items[-1:] + items[:-1])

def _reduce_all(reducer):
    def cmd_reduce(this: Operation, stack: Stack, ctx: Context) -> Stack:
        _require(this, stack, 1)
        items = stack_to_list(stack)
        check_inputs(this.name, [num] * len(items), stack)
        return Stack(nil, reducer(items))
    return cmd_reduce

cmd_sum_all = _reduce_all(math.fsum)
cmd_prod_all = _reduce_all(math.prod)
cmd_min_all = _reduce_all(min)
cmd_max_all = _reduce_all(max)
cmd_avg_all = _reduce_all(lambda items: math.fsum(items) / len(items))


## MEMORY SLOTS
def store_slot(slot: str):
    def cmd_store(this: Operation, stack: Stack, ctx: Context) -> Stack:
        _require(this, stack, 1)
        tail, ctx.memory.slots[slot] = stack
        return tail
    return cmd_store

def recall_slot(slot: str):
    def cmd_recall(this: Operation, stack: Stack, ctx: Context) -> Stack:
        return Stack(stack, ctx.memory.slots[slot])
    return cmd_recall


## CONFIGURED CONVERSIONS
def _scale_by(factor):
    def cmd_scale(this: Operation, stack: Stack, ctx: Context) -> Stack:
        check_inputs(this.name, [num], stack)
        tail, value = stack
        return Stack(tail, value * factor(ctx.config))
    return cmd_scale

cmd_tip = _scale_by(lambda config: config.tip_percentage)
cmd_tip_plus = _scale_by(lambda config: 0.20)
cmd_a_b = _scale_by(lambda config: config.conversion_constant)
