## Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘
#
# rpncomp — A small reverse Polish notation calculator and stack language.
#

import re
import sys
import time
import shutil
import traceback
from pathlib import Path
from dataclasses import dataclass

import click

from .types import nil, stack_list
from .errors import CompError, CompParseError, CompIncompleteParse, CompNameError, CompStackError, \
                    CompDomainError, CompTypeError, CompBlockError, CompFileError
from .parser import format_parse_error_context
from .config import load_config, save_config, default_config_path
from .formatting import write_without_ansi, format_item, show_stack

from . import api


@dataclass(frozen=True)
class RuntimeConfig:
    verbose: int
    stats: bool
    plain: bool
    config_path: str | None


ERROR_HEADERS = [
    (CompParseError, "SYNTAX ERROR."),
    (CompNameError, "UNKNOWN SYMBOL."),
    (CompStackError, "STACK UNDERFLOW."),
    (CompDomainError, "DOMAIN ERROR."),
    (CompTypeError, "TYPE ERROR."),
    (CompBlockError, "BLOCK ERROR."),
    (CompFileError, "FILE ERROR."),
]


class CompRunner:
    def __init__(self, options: RuntimeConfig):
        self.verbose = options.verbose
        self.stats_enabled = options.stats
        self.config = load_config(options.config_path)
        self.plain = options.plain or self.config.monochrome

        if self.plain:
            sys.stdout.write = write_without_ansi(sys.stdout.write)
            sys.stderr.write = write_without_ansi(sys.stderr.write)

        self.runtime = api._RUNTIME
        self.runtime.config = self.config
        self.total_stats = {'steps': 0, 'start': time.time()} if self.stats_enabled else None
        self.failure = False
        self.executed_items = 0

    def _fatal_error(self, message: str, detail: str, exc_type: str = None, context: str = '', is_repl: bool = False) -> None:
        header = detail if not exc_type else f"{detail} (Exception: \033[33m{exc_type}\033[0m)"
        print(f'\033[30;43m {message} \033[0m {header}\n{context}', file=sys.stderr)
        self.failure = True
        if not is_repl: sys.exit(1)

    def _source_context(self, exc: CompError, filename: str, source: str) -> str:
        meta = exc.comp_meta or {}
        origin = meta.get('filename') or filename
        if origin == filename: text = source
        elif origin and Path(origin).is_file(): text = None
        else: return ''
        return format_parse_error_context(origin, meta.get('start'), meta.get('columns', (None,))[0], exc.comp_token, source=text)

    def _stack_context(self, stack) -> str:
        if stack is None: return ''
        items = format_item(stack_list(api.from_stack(stack)), self.config.precision) if stack is not nil else '∅'
        return f'\033[1;33m  Stack content is\033[0;33m\n    {items}\033[0m\n'

    def _handle_exception(self, exc, filename: str, source: str, is_repl: bool = False) -> bool:
        """Report the error; returns True only when the REPL should wait for more input."""
        if isinstance(exc, CompParseError):
            if is_repl and isinstance(exc, CompIncompleteParse): return True
            context = format_parse_error_context(exc.filename or filename, exc.line, exc.column, exc.token,
                                                 source=source if (exc.filename or filename) == filename else None)
            context += f"\n\033[90m{str(exc).replace(chr(10), ' ').replace(chr(9), ' ')}\033[0m\n"
            self._fatal_error("SYNTAX ERROR.", f"Parsing `\033[97m{filename}\033[0m` caused a problem!", type(exc).__name__, context, is_repl)
        elif isinstance(exc, CompError):
            message = next(header for cls, header in ERROR_HEADERS if isinstance(exc, cls))
            detail = f"Term `\033[1;97m{exc.comp_token}\033[0m` from `\033[97m{filename}\033[0m` failed: {exc}"
            context = self._source_context(exc, filename, source) + '\n' + self._stack_context(exc.comp_stack)
            self._fatal_error(message, detail, type(exc).__name__, context, is_repl)
        elif isinstance(exc, RecursionError):
            detail = f"Program in `\033[97m{filename}\033[0m` recursed deeper than the host call stack allows."
            self._fatal_error("RECURSION ERROR.", detail, type(exc).__name__, '', is_repl)
        else:
            print(f'\033[30;43m RUNTIME ERROR. \033[0m Evaluating `\033[97m{filename}\033[0m` caused an error in interpret! (Exception: \033[33m{type(exc).__name__}\033[0m)', file=sys.stderr)
            traceback.print_exc()
            self.failure = True
            if not is_repl: sys.exit(1)
        return False

    def execute(self, run, source: str, filename: str, is_repl: bool = False) -> bool:
        try:
            stack = run(verbosity=self.verbose, stats=self.total_stats)
        except Exception as exc:
            return self._handle_exception(exc, filename, source, is_repl=is_repl)
        self.executed_items += 1
        show_stack(stack, self.config)
        return False

    def run_tokens(self, tokens: list[str]) -> None:
        source = ' '.join(tokens)
        self.execute(lambda **kw: self.runtime.run(source, filename='<ARGS>', **kw), source, '<ARGS>')

    def run_file(self, path: str, tokens: list[str]) -> None:
        if path == '-':
            source, filename = sys.stdin.read(), '<STDIN>'
            first = lambda **kw: self.runtime.run(source, filename=filename, **kw)
        else:
            filename = path
            source = Path(path).read_text(encoding='utf-8') if Path(path).is_file() else ''
            first = lambda **kw: self.runtime.run_file(path, **kw)

        def both(**kw):
            stack = first(**kw)
            return self.runtime.run(' '.join(tokens), stack=stack, filename='<ARGS>', **kw) if tokens else stack
        self.execute(both, source, filename)

    def repl(self) -> None:
        if sys.platform != "win32": import readline

        print('comp - Reverse Polish notation stack calculator; type Ctrl+C to exit.')
        source, stack = "", nil

        while True:
            try:
                prompt = "\033[36m<<< \033[0m" if not source.strip() else "\033[36m... \033[0m"
                line = input(prompt)
                if len(line.strip()) == 0: continue
                if line.strip() in ('quit', 'exit'): break
                source += line + "\n"

                try:
                    stack = self.runtime.run(source, stack=stack, filename='<REPL>', verbosity=self.verbose, stats=self.total_stats)
                    show_stack(stack, self.config)
                    source = ""
                except Exception as exc:
                    if not self._handle_exception(exc, '<REPL>', source, is_repl=True):
                        source = ""

            except (KeyboardInterrupt, EOFError):
                print(""); break

    def finalize(self) -> int:
        if self.total_stats and self.executed_items > 0:
            elapsed_time = time.time() - self.total_stats['start']
            print(f"\n\033[97m\033[48;5;30m STATISTICS. \033[0m", file=sys.stderr)
            print(f"step\t\033[97m{self.total_stats['steps']:,}\033[0m", file=sys.stderr)
            print(f"time\t\033[97m{elapsed_time:.3f}s\033[0m", file=sys.stderr)
        return 1 if self.failure else 0


@click.group(invoke_without_command=True)
@click.option('--verbose', '-v', default=0, count=True, help='Trace the interpreter, repeat for every step.')
@click.option('--stats', is_flag=True, help='Display execution statistics (e.g., number of steps).')
@click.option('--plain', '-p', is_flag=True, help='Strip ANSI color codes from the output.')
@click.option('--config', 'config_path', type=click.Path(dir_okay=False), default=None,
              help='Configuration file, instead of $COMP_CONFIG or ~/comp.toml.')
@click.version_option(package_name='rpncomp', prog_name='comp')
@click.pass_context
def cli(ctx: click.Context, verbose: int, stats: bool, plain: bool, config_path: str | None) -> None:
    ctx.ensure_object(dict)
    ctx.obj['config'] = RuntimeConfig(verbose=verbose, stats=stats, plain=plain, config_path=config_path)


@cli.command('run-args')
@click.argument('tokens', nargs=-1)
@click.pass_context
def run_args(ctx: click.Context, tokens: tuple[str, ...]) -> None:
    runner = CompRunner(ctx.obj['config'])
    runner.run_tokens(list(tokens))
    ctx.exit(runner.finalize())


@cli.command('run-file')
@click.argument('script')
@click.argument('tokens', nargs=-1)
@click.pass_context
def run_file(ctx: click.Context, script: str, tokens: tuple[str, ...]) -> None:
    runner = CompRunner(ctx.obj['config'])
    runner.run_file(script, list(tokens))
    ctx.exit(runner.finalize())


@cli.command('run-repl')
@click.pass_context
def run_repl(ctx: click.Context) -> None:
    runner = CompRunner(ctx.obj['config'])
    runner.repl()
    ctx.exit(runner.finalize())


@cli.command('show-config')
@click.option('--write', is_flag=True, help='Save the active settings, creating the file if needed.')
@click.pass_context
def show_config(ctx: click.Context, write: bool) -> None:
    options = ctx.obj['config']
    path = Path(options.config_path) if options.config_path else default_config_path()
    config = load_config(path)
    click.echo(f"# {path}{'' if path.is_file() else ' (not found, showing defaults)'}")
    for key, value in vars(config).items():
        click.echo(f"{key} = {value!r}")
    if write:
        try:
            save_config(config, path)
        except CompFileError as exc:
            raise click.ClickException(str(exc)) from exc
        click.echo(f"# saved to {path}")


@cli.command('list-ops')
def list_ops() -> None:
    names = api._RUNTIME.library.names()
    width = max(len(n) for n in names) + 2
    columns = max(1, shutil.get_terminal_size((80, 24)).columns // width)
    for i in range(0, len(names), columns):
        click.echo(''.join(n.ljust(width) for n in names[i:i+columns]).rstrip())


_GLOBAL_FLAG = re.compile(r'-v+|--verbose|--stats|--plain|-p')


def main(argv: list[str] | None = None) -> None:
    a = list(sys.argv[1:] if argv is None else argv)
    # Only leading options are for comp itself, the program may contain tokens like `--` or `-3`.
    g, i = [], 0
    while i < len(a):
        if _GLOBAL_FLAG.fullmatch(a[i]):
            g.append(a[i]); i += 1
        elif a[i] == '--config' and i + 1 < len(a):
            g.extend(a[i:i+2]); i += 2
        else:
            break
    r = a[i:]

    if len(r) == 0:
        # No args: if stdin has data, treat as file '-', else REPL
        cmd, tail = ('run-file', ['-']) if not sys.stdin.isatty() else ('run-repl', [])
    elif r[0] in ('-r', '--repl'):
        cmd, tail = 'run-repl', []
    elif r[0] in ('-f', '--file'):
        if len(r) < 2: raise SystemExit("Expected file name after -f.")
        cmd, tail = 'run-file', r[1:]
    elif r[0] in ('help', '--help', '-h'):
        cli.main(args=[*g, 'list-ops' if r[0] == 'help' else '--help'], prog_name='comp')
        return
    elif r[0] in ('version', '--version'):
        cli.main(args=['--version'], prog_name='comp')
        return
    elif r[0] == 'config':
        cli.main(args=[*g, 'show-config', *r[1:]], prog_name='comp')
        return
    else:
        cmd, tail = 'run-args', r

    cli.main(args=[*g, cmd, '--', *tail], prog_name='comp')


if __name__ == "__main__":
    main()
