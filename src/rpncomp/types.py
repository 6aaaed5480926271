## Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

from typing import Any
from collections import namedtuple
from dataclasses import dataclass, field

class stack_list(list): pass


# Stack type is a namedtuple to save memory, yet provide tail/head accessors.
class Stack(namedtuple('Stack', ['tail', 'head'])):
    __slots__ = ()
    _nil_singleton = None

    def __new__(cls, tail, head):
        if tail is None and head is None:
            # Only one singleton creation is allowed, and it's the one just below.
            if cls._nil_singleton is None:
                self = super(Stack, cls).__new__(cls, tail, head)
                cls._nil_singleton = self
                return self
            # By convention, all other code should use `nil` explicitly.
            raise ValueError("Use the canonical `nil` instance for empty stacks")
        return super(Stack, cls).__new__(cls, tail, head)

    def __repr__(self):
        if self is nil:
            return "< nil >"
        items = []
        current = self
        while current is not nil:
            items.append(repr(current.head))
            current = current.tail
        return "< " + " ".join(reversed(items)) + " >"

    def __bool__(self):
        raise TypeError("Stack truth value is ambiguous; compare with `is nil` or `is not nil`.")

    def pushed(self, *items):
        """Push items in order of tail (left) to head (right) onto new Stack and return."""
        stack = self
        for it in items:
            stack = Stack(stack, it)
        return stack

    def depth(self) -> int:
        count, current = 0, self
        while current is not nil:
            count, current = count + 1, current.tail
        return count


# All checks for empty stack must be done by comparing to this.
nil = Stack(None, None)


# Stack cells are numbers, or text for symbols and base-converted values.
Cell = int | float | str


class Operation:
    FUNCTION = 1    # pure built-in, wrapped from an annotated Python function
    COMMAND = 2     # built-in that needs the evaluation context
    EXECUTE = 3     # user-defined function from the function table

    def __init__(self, type, ptr, name, meta=None):
        self.type = type
        self.ptr = ptr
        self.name = name
        self.meta = meta or {}

    def __hash__(self):
        return hash((self.type, self.ptr, self.name))

    def __eq__(self, other):
        return isinstance(other, Operation) and self.type == other.type and self.ptr == other.ptr

    def __repr__(self):
        return f"{self.name}"


## PROGRAM NODES
@dataclass
class Word:
    """Name looked up when evaluated, so definitions may come after their use."""
    name: str
    meta: dict = field(default_factory=dict, repr=False)

    def __repr__(self):
        return self.name

@dataclass
class Block:
    program: list
    combinator: str
    meta: dict = field(default_factory=dict, repr=False)

    def __repr__(self):
        return '[ ' + ' '.join(map(repr, self.program)) + ' ] ' + self.combinator

@dataclass
class Conditional:
    test: str                     # ifeq, ifne, ifgt or iflt
    then_branch: list
    else_branch: list
    meta: dict = field(default_factory=dict, repr=False)

    def __repr__(self):
        return f'{self.test} … fi'

@dataclass
class Store:
    name: str
    meta: dict = field(default_factory=dict, repr=False)

    def __repr__(self):
        return f'sto {self.name}'

@dataclass
class Recall:
    name: str
    meta: dict = field(default_factory=dict, repr=False)

    def __repr__(self):
        return f'rcl {self.name}'


@dataclass
class Definition:
    name: str
    program: list                 # list of program nodes
    meta: dict                    # filename, start/finish lines


@dataclass
class Memory:
    """Variables shared by the main program, function bodies and blocks."""
    slots: dict[str, Cell] = field(default_factory=lambda: {'a': 0.0, 'b': 0.0, 'c': 0.0})
    variables: dict[str, Cell] = field(default_factory=dict)

    def clear(self) -> None:
        self.slots = {k: 0.0 for k in self.slots}
        self.variables.clear()


@dataclass
class Context:
    lib: Any                      # Library
    memory: Memory
    config: Any                   # Config
    verbosity: int = 0
    stats: dict | None = None
