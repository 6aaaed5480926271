## Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

import functools

import lark
from .errors import CompParseError, CompIncompleteParse


# Punctuation and keywords only count when whitespace-delimited, anything else is a WORD.
GRAMMAR = r"""start: (definition | _item)*
definition: DEF_START WORD _item* DEF_END
_item: NUMBER | SYMBOL | WORD | block | conditional | store | recall
block: BLOCK_OPEN _item* BLOCK_CLOSE COMBINATOR
conditional: IF _item* (ELSE _item*)? FI
store: STORE WORD
recall: RECALL WORD

// COMMENTS
COMMENT.9: /<(?!\S)(?:.*?(?<!\S)>(?!\S)|.*\Z)/s

// TOKENS
DEF_START.5: /\((?!\S)/
DEF_END.5: /\)(?!\S)/
BLOCK_OPEN.5: /\[(?!\S)/
BLOCK_CLOSE.5: /\](?!\S)/
COMBINATOR.5: /(?:map|fold|scan)(?!\S)/
IF.5: /if(?:eq|ne|gt|lt)(?!\S)/
ELSE.5: /else(?!\S)/
FI.5: /fi(?!\S)/
STORE.5: /sto(?!\S)/
RECALL.5: /rcl(?!\S)/
NUMBER.4: /[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?(?!\S)/
SYMBOL.3: /'\S+/
WORD: /\S+/

// WHITESPACE
%import common.WS
%ignore WS
%ignore COMMENT
"""


KEYWORDS = {'(', ')', '[', ']', 'map', 'fold', 'scan', 'ifeq', 'ifne', 'ifgt', 'iflt', 'else', 'fi', 'sto', 'rcl'}


@functools.lru_cache(maxsize=None)
def _get_parser() -> lark.Lark:
    return lark.Lark(GRAMMAR, start='start', parser="lalr", lexer="basic", propagate_positions=True)


def _describe_unexpected(exc: lark.exceptions.UnexpectedToken) -> str:
    token, expected = exc.token, set(exc.expected or ())
    match token.type:
        case '$END':
            return "Input ended inside an open definition, block or conditional."
        case 'BLOCK_CLOSE':
            return "Found `]` without a matching `[`."
        case 'DEF_END':
            return "Found `)` without a matching `(`."
        case 'ELSE' | 'FI':
            return f"Found `{token}` outside of a conditional."
        case 'DEF_START':
            return "Function definitions cannot be nested."
    if expected == {'COMBINATOR'}:
        return f"Block must be followed by `map`, `fold` or `scan`, found `{token}`."
    if token.type == 'COMBINATOR':
        return f"Combinator `{token}` must directly follow a `[ ... ]` block."
    if expected == {'WORD'}:
        return f"Expected a name, found `{token}`."
    return f"Unexpected `{token}`."


def parse(source: str, filename=None):
    """Parse program text, yielding `('definition', (head, body))` and `('term', tokens)` items in order.
    Tokens are flattened to `(type, value, meta)` tuples; nesting is restored by the linker.
    """
    def _flatten(node):
        if isinstance(node, lark.Tree):
            for child in node.children:
                yield from _flatten(child)
        else:
            meta = {'filename': filename, 'lines': (node.line, node.end_line),
                    'columns': (node.column, node.end_column)} if hasattr(node, 'line') else {}
            yield (node.type, node.value, meta)

    def _traverse(it):
        if isinstance(it, lark.Token):
            yield 'term', list(_flatten(it))
            return
        assert isinstance(it, lark.Tree)

        if it.data == 'definition':
            # DEF_START NAME body... DEF_END
            head = next(_flatten(it.children[1]))
            body = [tok for ch in it.children[2:-1] for tok in _flatten(ch)]
            yield 'definition', (head, body)
        elif it.data == 'start':
            for ch in it.children:
                yield from _traverse(ch)
        else:
            yield 'term', list(_flatten(it))

    try:
        tree = _get_parser().parse(source)
    except lark.exceptions.UnexpectedToken as exc:
        error_class = CompIncompleteParse if exc.token.type == '$END' else CompParseError
        raise error_class(_describe_unexpected(exc), filename=filename, line=exc.line,
                          column=exc.column, token=str(exc.token)) from None
    except (lark.exceptions.ParseError, lark.exceptions.UnexpectedInput) as exc:
        def attr(k): return getattr(exc, k, None)
        token_val = getattr(token, 'value', '') if (token := attr('token')) is not None else ''
        error_class = CompIncompleteParse if token_val == '' else CompParseError
        raise error_class(str(exc), filename=filename, line=attr('line'), column=attr('column'), token=token_val) from None
    yield from _traverse(tree)


def tokenize(source: str) -> list[tuple[str, str]]:
    """Flat `(type, value)` token list with whitespace and comments removed, no structure checked."""
    return [(tok.type, tok.value) for tok in _get_parser().lex(source)]


def format_parse_error_context(filename, line, column, token_value, source=None):
    if not isinstance(line, int) or line < 1: return ''
    lines = source.splitlines(keepends=True) if source is not None else open(filename, 'r', encoding='utf-8').readlines()
    start_line, end_line = max(0, line - 3), min(len(lines), line + 2)
    result = [f"\033[97m  File \"{filename}\", line {line}\033[0m"]

    token_value = token_value or ''
    for i in range(start_line, end_line):
        line_content = lines[i].rstrip('\n')
        line_color = '\033[90m'
        if i+1 == line:
            line_color = '\033[97m'
            if column is not None and column > 0 and column <= len(line_content):
                line_content = (
                    line_content[:column-1] +
                    f"\033[48;5;30m\033[1;97m{line_content[column-1:column+len(token_value)-1]}\033[0m" +
                    line_content[column+len(token_value)-1:]
                )
        result.append(f"{line_color}{i+1:>5} |\033[0m {line_content}")
    return '\n' + '\n'.join(result) + '\n'
