## Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

import pytest

from rpncomp import parser
from rpncomp.linker import link_body
from rpncomp.types import Word, Block, Conditional, Store, Recall
from rpncomp.errors import CompParseError, CompIncompleteParse


def _items(source: str):
    return list(parser.parse(source, filename="<test>"))

def _program(source: str):
    tokens = [tok for typ, data in _items(source) if typ == 'term' for tok in data]
    program, _ = link_body(tokens, meta={'filename': '<test>', 'lines': (1, 1)})
    return program


def test_tokenize_discards_whitespace_and_comments():
    assert parser.tokenize("1   2\n< add them >  +") == [('NUMBER', '1'), ('NUMBER', '2'), ('WORD', '+')]


def test_tokenize_unterminated_comment_runs_to_end_of_input():
    assert parser.tokenize("1 < never closed 2 3") == [('NUMBER', '1')]


def test_tokenize_punctuation_attached_to_text_is_a_word():
    tokens = parser.tokenize("(foo [x] bar) mapx fi2")
    assert tokens == [('WORD', '(foo'), ('WORD', '[x]'), ('WORD', 'bar)'), ('WORD', 'mapx'), ('WORD', 'fi2')]


def test_tokenize_recognizes_structural_keywords():
    kinds = [typ for typ, _ in parser.tokenize("( f [ 1 ] map ifeq else fi sto rcl )")]
    assert kinds == ['DEF_START', 'WORD', 'BLOCK_OPEN', 'NUMBER', 'BLOCK_CLOSE', 'COMBINATOR',
                     'IF', 'ELSE', 'FI', 'STORE', 'RECALL', 'DEF_END']


@pytest.mark.parametrize("text", ["3", "-3", "+4", "1.5", ".5", "1.", "6.02e23", "1E-3"])
def test_tokenize_numbers(text):
    assert parser.tokenize(text) == [('NUMBER', text)]


@pytest.mark.parametrize("text", ["-", "--", "+_", "1.2.3", "12abc", "'"])
def test_tokenize_number_lookalikes_are_words(text):
    assert parser.tokenize(text) == [('WORD', text)]


def test_tokenize_symbol_literal():
    assert parser.tokenize("'total") == [('SYMBOL', "'total")]


def test_parse_extracts_definitions_in_source_order():
    items = _items("( sq dup x ) 3 sq")
    assert [typ for typ, _ in items] == ['definition', 'term', 'term']
    (head, body) = items[0][1]
    assert head[1] == 'sq'
    assert [value for _, value, _ in body] == ['dup', 'x']


def test_parse_tracks_positions():
    items = _items("1\n  nope")
    _, [(typ, value, meta)] = items[1]
    assert (typ, value) == ('WORD', 'nope')
    assert meta['filename'] == '<test>'
    assert meta['lines'] == (2, 2)
    assert meta['columns'][0] == 3


def test_link_builds_nested_program_nodes():
    program = _program("1 'a [ 2 x ] map sto total rcl total 3 4 ifgt 1 else 0 fi")
    assert program[0] == 1.0 and program[1] == 'a'
    block = program[2]
    assert isinstance(block, Block) and block.combinator == 'map'
    assert block.program[0] == 2.0 and isinstance(block.program[1], Word)
    assert isinstance(program[3], Store) and program[3].name == 'total'
    assert isinstance(program[4], Recall) and program[4].name == 'total'
    cond = program[7]
    assert isinstance(cond, Conditional) and cond.test == 'ifgt'
    assert cond.then_branch == [1.0] and cond.else_branch == [0.0]


def test_link_nested_conditionals_and_blocks():
    program = _program("ifeq [ ifne 1 fi ] fold else [ ] scan fi")
    [cond] = program
    [inner] = cond.then_branch
    assert isinstance(inner, Block) and inner.combinator == 'fold'
    assert isinstance(inner.program[0], Conditional) and inner.program[0].else_branch == []
    assert isinstance(cond.else_branch[0], Block) and cond.else_branch[0].program == []


@pytest.mark.parametrize("source, fragment", [
    ("1 ]", "without a matching `[`"),
    ("1 )", "without a matching `(`"),
    ("[ 1 + ] 2", "must be followed by"),
    ("1 2 map", "must directly follow"),
    ("1 fi", "outside of a conditional"),
    ("else", "outside of a conditional"),
    ("( f ( g ) )", "cannot be nested"),
    ("sto 5", "Expected a name"),
])
def test_parse_structural_errors(source, fragment):
    with pytest.raises(CompParseError) as exc:
        _items(source)
    assert fragment in str(exc.value)
    assert exc.value.filename == '<test>'
    assert exc.value.line == 1


@pytest.mark.parametrize("source", ["( f 1", "[ 1 +", "1 1 ifeq 2", "[ 1 ]", "sto"])
def test_parse_unfinished_input_is_incomplete(source):
    with pytest.raises(CompIncompleteParse):
        _items(source)


def test_parse_error_context_highlights_token():
    source = "1 2\n3 ] 4\n"
    with pytest.raises(CompParseError) as exc:
        _items(source)
    err = exc.value
    assert (err.line, err.column, err.token) == (2, 3, ']')
    context = parser.format_parse_error_context('<test>', err.line, err.column, err.token, source=source)
    assert 'line 2' in context
    assert '    1 |' in context and '    2 |' in context
    assert '\033[1;97m]\033[0m' in context
