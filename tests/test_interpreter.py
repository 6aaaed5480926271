## Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

import pytest

from rpncomp.api import Runtime
from rpncomp.errors import CompStackError, CompNameError, CompParseError, CompTypeError


def values(source: str, rt: Runtime | None = None) -> list:
    """Evaluate and return the stack bottom to top, in the order it was typed."""
    rt = rt or Runtime()
    return list(reversed(rt.from_stack(rt.run(source, filename='<test>'))))


def test_binary_arithmetic_matches_infix():
    assert values("3 4 +") == [7]
    assert values("3 4 -") == [-1]
    assert values("3 4 x") == [12]
    assert values("3 4 /") == [0.75]


def test_literals_pushed_left_to_right():
    assert values("1 2.5 -3 'label") == [1, 2.5, -3, 'label']


def test_dup_drop_is_identity():
    assert values("1 2 3 dup drop") == values("1 2 3")


def test_swap_twice_is_identity():
    assert values("1 2 swap swap") == [1, 2]
    assert values("1 2 swap") == [2, 1]


def test_underflow_is_fatal_and_reports_operation():
    with pytest.raises(CompStackError) as exc:
        values("1 +")
    assert exc.value.comp_token == '+'
    assert "needs at least 2 item(s)" in str(exc.value)


def test_underflow_aborts_whole_evaluation():
    rt = Runtime()
    with pytest.raises(CompStackError):
        rt.run("1 sto before drop drop 2 sto after")
    assert 'before' in rt.memory.variables
    assert 'after' not in rt.memory.variables


def test_unknown_symbol_is_an_error_not_a_literal():
    with pytest.raises(CompNameError) as exc:
        values("1 2 frobnicate")
    assert exc.value.comp_token == 'frobnicate'
    assert exc.value.comp_meta['start'] == 1
    assert values_stack(exc.value) == [1, 2]


def values_stack(exc) -> list:
    return list(reversed(Runtime().from_stack(exc.comp_stack)))


def test_malformed_number_is_a_parse_error():
    with pytest.raises(CompParseError) as exc:
        values("1.2.3")
    assert exc.value.token == '1.2.3'


def test_symbol_in_numeric_operation_is_a_type_error():
    with pytest.raises(CompTypeError) as exc:
        values("'a 1 +")
    assert "expects number at position 2 from top, got symbol" in str(exc.value)


@pytest.mark.parametrize("source, expected", [
    ("3 3 ifeq 10 else 20 fi", [10]),
    ("3 4 ifeq 10 else 20 fi", [20]),
    ("3 4 ifne 10 else 20 fi", [10]),
    ("5 3 ifgt 10 else 20 fi", [10]),
    ("3 5 ifgt 10 else 20 fi", [20]),
    ("3 5 iflt 10 else 20 fi", [10]),
    ("1 2 ifeq 5 fi", []),
    ("7 1 1 ifeq 1 + fi", [8]),
])
def test_conditionals_select_one_branch(source, expected):
    assert values(source) == expected


def test_conditional_skips_unselected_branch_entirely():
    assert values("1 2 ifeq not_a_command fi 7") == [7]
    assert values("1 1 ifeq 7 else [ also_missing ] map fi") == [7]


def test_nested_conditionals():
    source = "1 1 ifeq 2 2 ifeq 'yes else 'no fi else 'outer fi"
    assert values(source) == ['yes']
    source = "1 1 ifeq 2 3 ifeq 'yes else 'no fi else 'outer fi"
    assert values(source) == ['no']


def test_conditional_needs_two_numbers():
    with pytest.raises(CompStackError):
        values("1 ifeq 2 fi")
    with pytest.raises(CompTypeError):
        values("'a 1 ifeq 2 fi")


def test_store_then_recall_is_lossless():
    assert values("0.1 sto x rcl x rcl x") == [0.1, 0.1]
    assert values("'name sto label rcl label") == ['name']


def test_store_removes_value_from_stack():
    assert values("1 2 sto two") == [1]


def test_recall_unbound_variable():
    with pytest.raises(CompNameError) as exc:
        values("rcl nowhere")
    assert "never stored" in str(exc.value)


def test_store_on_empty_stack():
    with pytest.raises(CompStackError):
        values("sto x")


def test_fixed_memory_slots_default_to_zero():
    assert values("5 sa 7 sb _a _b _c") == [5, 7, 0]


def test_memory_shared_across_runs_of_same_runtime():
    rt = Runtime()
    rt.run("3 sc 4 sto four")
    assert values("_c rcl four", rt) == [3, 4]


def test_verbose_tracing_prints_steps(capsys):
    Runtime().run("1 2 +", verbosity=2)
    out = capsys.readouterr().out
    assert out.count("<=>") == 4


def test_stats_count_steps():
    stats = {}
    Runtime().run("1 2 + ( f 1 ) f", stats=stats)
    assert stats['steps'] == 5


def test_errors_name_the_token_as_typed():
    with pytest.raises(CompTypeError) as exc:
        values("'a 2 ^")
    assert exc.value.comp_token == '^'
    assert str(exc.value).startswith("`^` expects number")
    with pytest.raises(ArithmeticError) as exc:
        values("0 log")
    assert exc.value.comp_token == 'log'
    assert "`log` is undefined" in str(exc.value)
