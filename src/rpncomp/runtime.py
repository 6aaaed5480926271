## Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

import sys
from pathlib import Path
from typing import Callable

from .types import Operation, Stack, Memory, Context, nil
from .errors import CompFileError, CompParseError
from .parser import parse
from .linker import link_body, link_definitions
from .library import Library
from .builtins import load_builtins_library
from .config import Config
from .formatting import list_to_stack as _list_to_stack, stack_to_list as _stack_to_list
from .interpreter import interpret, execute


# Each user function call takes three host frames.
RECURSION_LIMIT = 10_000


class Runtime:
    """Minimal runtime facade focused on embedding and extension.  Function definitions and
    variables persist across calls to `run`, as in an interactive session.
    """

    def __init__(self, library: Library | None = None, config: Config | None = None):
        self.library = library or load_builtins_library()
        self.config = config or Config()
        self.memory = Memory()
        sys.setrecursionlimit(max(sys.getrecursionlimit(), RECURSION_LIMIT))

    def context(self, verbosity: int = 0, stats: dict | None = None) -> Context:
        return Context(lib=self.library, memory=self.memory, config=self.config, verbosity=verbosity, stats=stats)

    # Assembly ────────────────────────────────────────────────────────────────────────────────
    def operation(self, name: str) -> Operation:
        return self.library.resolve(name)

    def define(self, name: str, source: str) -> None:
        """Bind `source` as the body of function `name`, exactly like `( name source )`."""
        tokens = []
        for typ, data in parse(source, filename=f'<DEFINE:{name}>'):
            if typ == 'definition':
                raise CompParseError("Function definitions cannot be nested.", filename=f'<DEFINE:{name}>', token=data[0][1])
            tokens.extend(data)
        program, meta = link_body(tokens, meta={'filename': f'<DEFINE:{name}>', 'lines': (1, 1)})
        self.library.add_definition(name, program, meta, warnings=self.config.show_warnings)

    # Execution ───────────────────────────────────────────────────────────────────────────────
    def run(self, source: str, stack: Stack | None = None, filename: str | None = None,
            verbosity: int = 0, stats: dict | None = None) -> Stack:
        return self._execute(source, stack, filename, verbosity, stats)

    def run_tokens(self, tokens: list[str], stack: Stack | None = None,
                   verbosity: int = 0, stats: dict | None = None) -> Stack:
        return self._execute(' '.join(tokens), stack, '<ARGS>', verbosity, stats)

    def run_file(self, path: str | Path, stack: Stack | None = None,
                 verbosity: int = 0, stats: dict | None = None) -> Stack:
        try:
            source = Path(path).read_text(encoding='utf-8')
        except (OSError, UnicodeDecodeError) as exc:
            reason = getattr(exc, 'strerror', None) or str(exc)
            raise CompFileError(f"Cannot read `{path}`: {reason}.", filename=str(path)) from exc
        return self._execute(source, stack, str(path), verbosity, stats)

    def apply(self, op_or_name: Operation | str, stack: Stack) -> Stack:
        op = op_or_name if isinstance(op_or_name, Operation) else self.operation(op_or_name)
        return execute(op, stack, self.context())

    def _execute(self, source: str, stack: Stack | None, filename: str | None,
                 verbosity: int, stats: dict | None) -> Stack:
        definitions, tokens = [], []
        for typ, data in parse(source, filename=filename):
            if typ == 'definition':
                definitions.append(data)
            else:
                tokens.extend(data)

        # Pre-pass: the whole function table is populated before anything runs.
        link_definitions(definitions, self.library, warnings=self.config.show_warnings)
        program, _ = link_body(tokens, meta={'filename': filename, 'lines': (2**32, -1)})
        return interpret(program, stack, self.context(verbosity, stats))

    def reset(self) -> None:
        """Forget user definitions and variables, keeping built-ins and registered operations."""
        self.library.definitions.clear()
        self.memory.clear()

    # Registration ────────────────────────────────────────────────────────────────────────────
    def register_operation(self, name: str, func: Callable) -> None:
        self.library.add_function(name, func)

    # Introspection ───────────────────────────────────────────────────────────────────────────
    def get_signature(self, name: str) -> dict:
        fn = self.library.get_function(name)
        return fn.__comp_meta__

    def list_operations(self) -> dict[str, dict]:
        return {n: fn.__comp_meta__ for n, fn in self.library.functions.items()}

    def to_stack(self, values: list) -> Stack:
        return _list_to_stack(values)

    def from_stack(self, stack: Stack) -> list:
        return _stack_to_list(stack)

    def is_empty(self, stack: Stack) -> bool:
        return stack is nil
