## Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

from . import operators
from . import commands as M
from . import combinators as C
from .loader import get_comp_name
from .library import Library


def load_builtins_library():
    # Combinators, always paired with a `[ ... ]` block by the parser.
    combinators = {
        'map': C.comb_map,
        'fold': C.comb_fold,
        'scan': C.comb_scan,
    }
    # Commands that need the whole stack, the memory slots or the configuration.
    commands = {
        'cls': M.cmd_cls,
        'roll': M.cmd_roll,
        'rot': M.cmd_rot,
        'sum_all': M.cmd_sum_all,
        'prod_all': M.cmd_prod_all,
        'min_all': M.cmd_min_all,
        'max_all': M.cmd_max_all,
        'avg_all': M.cmd_avg_all,
        'sa': M.store_slot('a'), '_a': M.recall_slot('a'),
        'sb': M.store_slot('b'), '_b': M.recall_slot('b'),
        'sc': M.store_slot('c'), '_c': M.recall_slot('c'),
        'tip': M.cmd_tip,
        'tip+': M.cmd_tip_plus,
        'a_b': M.cmd_a_b,
    }
    aliases = {
        '+': 'add', '-': 'sub', 'x': 'mul', '*': 'mul', '/': 'div', '++': 'inc', '--': 'dec',
        '^': 'pow', 'exp': 'pow', '%': 'mod', '!': 'fact', 'int': 'round',
        'log': 'log10', 'C_F': 'c_f', 'F_C': 'f_c', 'clr': 'cls',
        '+_': 'sum_all', 'x_': 'prod_all', 'min_': 'min_all', 'max_': 'max_all', 'avg_': 'avg_all',
    }

    lib = Library(functions={}, commands=commands, combinators=combinators, aliases=aliases)

    # Functions (wrapped via Library helper)
    for k in dir(operators):
        if not k.startswith('op_'): continue
        lib.add_function(get_comp_name(k), getattr(operators, k))

    lib.ensure_consistent()
    return lib
