## Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

from collections import deque

import pytest

from rpncomp.errors import CompFileError, CompNameError
from rpncomp.runtime import Runtime
from rpncomp.types import Operation
from rpncomp.interpreter import interpret_step


def test_runtime_apply():
    rt = Runtime()
    stack = rt.apply('+', rt.to_stack([3, 4]))
    assert rt.from_stack(stack) == [7]


def test_runtime_apply_operation_object():
    rt = Runtime()
    op = rt.operation('swap')
    assert isinstance(op, Operation) and op.type == Operation.FUNCTION
    assert rt.from_stack(rt.apply(op, rt.to_stack([1, 2]))) == [2, 1]


def test_runtime_interpret_step_manual_queue():
    rt = Runtime()
    queue = deque([2.0, 3.0, rt.operation('add')])
    stack = rt.to_stack([])
    while queue:
        stack, queue = interpret_step(queue, stack, rt.context())
    assert rt.from_stack(stack) == [5]


def test_runtime_run_file(tmp_path):
    path = tmp_path / "prog.comp"
    path.write_text("< squares >\n( sq dup x )\n3 sq\n", encoding='utf-8')
    rt = Runtime()
    assert rt.from_stack(rt.run_file(path)) == [9]
    assert 'sq' in rt.library.definitions


def test_runtime_run_file_missing(tmp_path):
    rt = Runtime()
    with pytest.raises(CompFileError) as exc:
        rt.run_file(tmp_path / "nowhere.comp")
    assert isinstance(exc.value, OSError)
    assert exc.value.filename.endswith("nowhere.comp")


def test_runtime_run_tokens():
    rt = Runtime()
    assert rt.from_stack(rt.run_tokens(['5', '2', '-'])) == [3]


def test_runtime_run_continues_from_given_stack():
    rt = Runtime()
    stack = rt.run("1 2")
    stack = rt.run("+", stack=stack)
    assert rt.from_stack(stack) == [3]


def test_runtime_state_persists_until_reset():
    rt = Runtime()
    rt.run("( sq dup x ) 7 sto seven 2 sa")
    assert rt.from_stack(rt.run("rcl seven sq _a")) == [2, 49]
    rt.reset()
    with pytest.raises(CompNameError):
        rt.run("3 sq")
    assert rt.from_stack(rt.run("_a")) == [0]


def test_runtimes_are_independent():
    first, second = Runtime(), Runtime()
    first.run("( f 1 )")
    second.register_operation('neg', lambda x: -x)
    with pytest.raises(CompNameError):
        second.run("f")
    with pytest.raises(CompNameError):
        first.run("1 neg")
