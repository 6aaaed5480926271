## Copyright © 2025, Alex J. Champandard.  Licensed under AGPLv3; see LICENSE! ⚘

import math
import random
from typing import Any, TypeVar

from .errors import CompDomainError
from .formatting import format_item


num = int | float
cell = int | float | str


def _ieee_div(b: float, a: float) -> float:
    # Division by zero follows IEEE 754 instead of raising.
    if a == 0:
        if b == 0 or math.isnan(b): return math.nan
        return math.copysign(math.inf, b) * math.copysign(1.0, a)
    return b / a

def _ieee_pow(b: float, a: float) -> float:
    # Overflow and a zero base with a negative exponent give a signed infinity instead of raising.
    odd = math.isfinite(a) and a == int(a) and int(a) % 2 == 1
    if b == 0 and a < 0:
        return math.copysign(math.inf, b) if odd else math.inf
    try:
        return math.pow(b, a)
    except OverflowError:
        return -math.inf if (b < 0 and odd) else math.inf

def _whole(x: num, what: str) -> int:
    if not math.isfinite(x) or x < 0:
        raise CompDomainError(f"{what} requires a non-negative finite number, got {x}.")
    return math.trunc(x)

def _exact_uint(x: cell, what: str) -> int:
    if isinstance(x, str) or not math.isfinite(x) or x < 0 or x != int(x):
        raise CompDomainError(f"{what} requires a non-negative integer, got {x}.")
    return int(x)

def _digits(x: cell, base: int) -> int:
    """Text is read in `base`, a number is read through its decimal digits, so `10` is 0x10."""
    text = x if isinstance(x, str) else str(_exact_uint(x, 'Base conversion'))
    try:
        return int(text.lower().removeprefix('0x' if base == 16 else '0b'), base)
    except ValueError:
        raise CompDomainError(f"`{text}` is not a valid base-{base} number.") from None


## STACK MANIPULATION
X, Y = (TypeVar(v, bound=Any) for v in ('X', 'Y'))
def op_swap(b: Y, a: X) -> tuple[X, Y]: return (a, b)
def op_dup(x: X) -> tuple[X, X]: return (x, x)
def op_drop(_: Any) -> None: return None
## ARITHMETIC
def op_add(b: num, a: num) -> num: return b + a
def op_sub(b: num, a: num) -> num: return b - a
def op_mul(b: num, a: num) -> num: return b * a
def op_div(b: num, a: num) -> num: return _ieee_div(b, a)
def op_inc(x: num) -> num: return x + 1
def op_dec(x: num) -> num: return x - 1
def op_chs(x: num) -> num: return -x
def op_abs(x: num) -> num: return abs(x)
def op_inv(x: num) -> num: return _ieee_div(1.0, x)
def op_sqrt(x: num) -> num: return math.sqrt(x)
def op_throot(b: num, a: num) -> num: return _ieee_pow(b, _ieee_div(1.0, a))
def op_pow(b: num, a: num) -> num: return _ieee_pow(b, a)
def op_mod(b: num, a: num) -> num: return math.nan if a == 0 or math.isinf(b) else math.fmod(b, a)
def op_min(b: num, a: num) -> num: return min(b, a)
def op_max(b: num, a: num) -> num: return max(b, a)
def op_avg(b: num, a: num) -> num: return (b + a) / 2.0

def op_round(x: num) -> num:
    """Round half away from zero."""
    if not math.isfinite(x): return x
    return float(math.copysign(math.floor(abs(x) + 0.5), x))

def op_fact(x: num) -> num:
    n = _whole(x, 'Factorial')
    if n > 170:
        raise CompDomainError(f"Factorial of {n} is too large for a double.")
    return float(math.factorial(n))

def op_gcd(b: num, a: num) -> num:
    return float(math.gcd(_whole(b, 'GCD'), _whole(a, 'GCD')))

def op_proot(a: num, b: num, c: num) -> tuple[num, num, num, num]:
    """Both roots of `a x² + b x + c` as (real, imaginary) pairs."""
    disc, denom = b * b - 4.0 * a * c, 2.0 * a
    if disc < 0:
        re, im = _ieee_div(-b, denom), _ieee_div(math.sqrt(-disc), denom)
        return (re, im, re, -im)
    root = math.sqrt(disc)
    return (_ieee_div(-b + root, denom), 0.0, _ieee_div(-b - root, denom), 0.0)

## CONSTANTS
def op_pi() -> num: return math.pi
def op_e() -> num: return math.e
def op_g() -> num: return 9.80665
## TRIGONOMETRY & LOGARITHMS
def op_deg_rad(x: num) -> num: return math.radians(x)
def op_rad_deg(x: num) -> num: return math.degrees(x)
def op_sin(x: num) -> num: return math.sin(x)
def op_asin(x: num) -> num: return math.asin(x)
def op_cos(x: num) -> num: return math.cos(x)
def op_acos(x: num) -> num: return math.acos(x)
def op_tan(x: num) -> num: return math.tan(x)
def op_atan(x: num) -> num: return math.atan(x)
def op_log2(x: num) -> num: return math.log2(x)
def op_log10(x: num) -> num: return math.log10(x)
def op_logn(b: num, a: num) -> num: return math.log(b, a)
def op_ln(x: num) -> num: return math.log(x)
## RANDOM
def op_rand(x: num) -> num: return float(math.floor(_whole(x, 'Random') * random.random()))
## CONVERSIONS
def op_dec_hex(x: num) -> str: return format(_exact_uint(x, 'Hexadecimal conversion'), 'x')
def op_dec_bin(x: num) -> str: return format(_exact_uint(x, 'Binary conversion'), 'b')
def op_hex_dec(x: cell) -> num: return float(_digits(x, 16))
def op_bin_dec(x: cell) -> num: return float(_digits(x, 2))
def op_hex_bin(x: cell) -> str: return format(_digits(x, 16), 'b')
def op_bin_hex(x: cell) -> str: return format(_digits(x, 2), 'x')
def op_c_f(x: num) -> num: return x * 9.0 / 5.0 + 32.0
def op_f_c(x: num) -> num: return (x - 32.0) * 5.0 / 9.0
def op_mi_km(x: num) -> num: return x * 1.609344
def op_km_mi(x: num) -> num: return x / 1.609344
def op_ft_m(x: num) -> num: return x / 3.281
def op_m_ft(x: num) -> num: return x * 3.281

def op_hex_rgb(x: cell) -> tuple[num, num, num]:
    text = (x if isinstance(x, str) else str(_exact_uint(x, 'Color conversion'))).lstrip('#')
    if len(text) != 6:
        raise CompDomainError(f"Color `{text}` must have exactly six hexadecimal digits.")
    r, g, b = (_digits(text[i:i+2], 16) for i in (0, 2, 4))
    return (float(r), float(g), float(b))

def op_rgb_hex(r: num, g: num, b: num) -> str:
    channels = [_exact_uint(v, 'Color conversion') for v in (r, g, b)]
    if any(v > 255 for v in channels):
        raise CompDomainError(f"Color channels must be within 0-255, got {channels}.")
    return "{:02x}{:02x}{:02x}".format(*channels)

## INPUT/OUTPUT
def op_pln(x: Any) -> None:
    print(format_item(x))
