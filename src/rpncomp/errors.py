## Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

import lark


class CompError(Exception):
    def __init__(self, message: str = "", *, comp_token=None, comp_meta=None, comp_stack=None):
        """Base class for all errors raised while parsing or evaluating a program."""
        super().__init__(message)
        self.comp_token: str = comp_token
        self.comp_meta: dict = comp_meta
        self.comp_stack = comp_stack

class CompParseError(CompError):
    def __init__(self, message, *, filename=None, line=None, column=None, token=None):
        super().__init__(message, comp_token=token)
        self.filename = filename
        self.line = line
        self.column = column
        self.token = token

class CompIncompleteParse(CompParseError, lark.exceptions.ParseError):
    """Input ended inside a definition, block or conditional; the REPL waits for more lines."""
    pass

class CompNameError(CompError, NameError):
    """Token is neither a literal, a built-in, a defined function nor a bound variable."""
    pass

class CompStackError(CompError, IndexError):
    """Operation needs more items than the stack currently holds."""
    pass

class CompDomainError(CompError, ArithmeticError):
    """Operands are outside the domain of the operation, or its result is not representable."""
    pass

class CompTypeError(CompError, TypeError):
    """A symbol reached an operation expecting a number, or vice versa."""
    pass

class CompBlockError(CompError, ValueError):
    """A block consumed by `map`, `fold` or `scan` left an unusable stack."""
    pass

class CompFileError(CompError, OSError):
    def __init__(self, message, *, filename=None, comp_meta=None):
        super().__init__(message, comp_token=filename, comp_meta=comp_meta)
        self.filename = filename
