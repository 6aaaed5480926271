## Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

import pytest

from rpncomp.api import Runtime
from rpncomp.errors import CompNameError, CompParseError


FACTORIAL = "( fact dup 0 ifeq drop 1 else dup -- fact x fi )"


def values(source: str, rt: Runtime | None = None) -> list:
    rt = rt or Runtime()
    return list(reversed(rt.from_stack(rt.run(source))))


def test_recursive_factorial():
    assert values(f"{FACTORIAL} 5 fact") == [120]
    assert values(f"{FACTORIAL} 0 fact") == [1]


def test_function_runs_in_place_on_caller_stack():
    assert values("( addten 10 + ) 1 5 addten") == [1, 15]


def test_forward_reference_before_definition():
    assert values("3 sq ( sq dup x )") == [9]


def test_mutual_recursion():
    source = """
        ( even? dup 0 ifeq drop 1 else -- odd? fi )
        ( odd? dup 0 ifeq drop 0 else -- even? fi )
        10 even? 7 even?
    """
    assert values(source) == [1, 0]


def test_definitions_are_not_executed_as_instructions():
    rt = Runtime()
    assert values("( f 1 2 3 )", rt) == []
    assert 'f' in rt.library.definitions


def test_names_in_body_resolve_at_call_time():
    rt = Runtime()
    rt.run("( bad nope )")
    with pytest.raises(CompNameError) as exc:
        rt.run("bad")
    assert exc.value.comp_token == 'nope'
    rt.run("( nope 42 )")
    assert values("bad", rt) == [42]


def test_redefinition_overwrites_with_warning(capsys):
    rt = Runtime()
    assert values("( f 1 ) ( f 2 ) f", rt) == [2]
    assert "redefined" in capsys.readouterr().err
    rt.run("( f 3 )")
    assert values("f", rt) == [3]


def test_builtins_take_priority_over_functions(capsys):
    assert values("( dup 99 ) 5 dup") == [5, 5]
    assert "shadowed by the built-in" in capsys.readouterr().err


def test_unbounded_recursion_is_fatal():
    with pytest.raises(RecursionError):
        values("( forever forever ) forever")


def test_runtime_define_matches_inline_definition():
    rt = Runtime()
    rt.define('sq', 'dup x')
    assert values("4 sq", rt) == [16]
    with pytest.raises(CompParseError):
        rt.define('outer', '( inner 1 )')


def test_parse_error_registers_nothing():
    rt = Runtime()
    with pytest.raises(CompParseError):
        rt.run("( f 1 ) ]")
    assert 'f' not in rt.library.definitions


def test_recursion_reaches_thousands_of_levels():
    assert values("( countdown dup 0 ifeq else -- countdown fi ) 2000 countdown") == [0]
