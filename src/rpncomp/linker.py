## Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

from .types import Word, Block, Conditional, Store, Recall
from .errors import CompParseError
from .library import Library


def _parse_error(message: str, token: str, mt: dict) -> CompParseError:
    return CompParseError(message, filename=mt.get('filename'), line=mt.get('start'),
                          column=mt.get('columns', (None,))[0], token=token)


def link_body(tokens: list, meta: dict):
    """Rebuild the nested program from flat `(type, value, meta)` tokens, as produced by the parser.
    Names stay unresolved `Word` nodes so the function table is consulted at call time.
    """
    assert meta is not None
    lines = meta.get('lines', (2**32, -1))

    # Open constructs as a linked list of `(parent, (saved_output, kind, token, meta))`.
    stack = tuple()
    output = []
    meta = {'filename': meta.get('filename'), 'start': lines[0], 'finish': lines[1]}
    directive = None

    for typ, token, mt in tokens:
        if 'lines' in mt:
            meta['start'] = min(meta['start'], mt['lines'][0])
            meta['finish'] = max(meta['finish'], mt['lines'][1])
            mt['start'] = mt['lines'][0]; mt['finish'] = mt['lines'][1]; del mt['lines']

        if directive is not None:
            kind, keyword, dmt = directive
            if typ != 'WORD':
                raise _parse_error(f"`{keyword}` needs a variable name, found `{token}`.", token, mt)
            output.append(kind(token, dmt))
            directive = None
            continue

        match typ:
            case 'NUMBER':
                output.append(float(token))
            case 'SYMBOL':
                output.append(token[1:])
            case 'WORD':
                output.append(Word(token, mt))
            case 'STORE':
                directive = (Store, token, mt)
            case 'RECALL':
                directive = (Recall, token, mt)
            case 'BLOCK_OPEN' | 'IF' | 'BLOCK_CLOSE':
                # A closed block stays open until the combinator that consumes it arrives.
                stack = (stack, (output, typ, token, mt))
                output = []
            case 'ELSE':
                if not stack or stack[1][1] != 'IF':
                    raise _parse_error("Found `else` outside of a conditional.", token, mt)
                stack = (stack, (output, typ, token, mt))
                output = []
            case 'COMBINATOR':
                if not stack or stack[1][1] != 'BLOCK_CLOSE':
                    raise _parse_error(f"Combinator `{token}` must directly follow a `[ ... ]` block.", token, mt)
                stack, (body, _, _, _) = stack
                stack, (output, _, _, open_mt) = stack
                output.append(Block(body, token, open_mt))
            case 'FI':
                else_branch = []
                if stack and stack[1][1] == 'ELSE':
                    else_branch = output
                    stack, (output, _, _, _) = stack
                if not stack or stack[1][1] != 'IF':
                    raise _parse_error("Found `fi` outside of a conditional.", token, mt)
                then_branch = output
                stack, (output, _, test, open_mt) = stack
                output.append(Conditional(test, then_branch, else_branch, open_mt))
            case _:
                raise _parse_error(f"Unexpected `{token}`.", token, mt)

    if stack or directive is not None:
        raise _parse_error("Input ended inside an open block, conditional or directive.", '', meta)
    return output, meta


def link_definitions(definitions: list, lib: Library, *, warnings: bool = False) -> None:
    """Bind every `(head, body)` pair in the function table, replacing earlier definitions of the same name."""
    for (_, name, mt), tokens in definitions:
        program, meta = link_body(tokens, meta={'filename': mt.get('filename'), 'lines': mt.get('lines', (2**32, -1))})
        lib.add_definition(name, program, meta, warnings=warnings)
