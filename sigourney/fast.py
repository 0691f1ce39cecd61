"""Table-based approximations of exp2 and sine for audio-rate use."""

import math

_EXP2_LEN = 8192
_EXP2_LO, _EXP2_HI = -11, 11  # range of inputs covered by the table
_EXP2_OFFSET = (_EXP2_HI - _EXP2_LO) // 2
_EXP2_FACTOR = _EXP2_LEN // (_EXP2_HI - _EXP2_LO)

_SIN_LEN = 512
_SIN_FACTOR = _SIN_LEN / (2 * math.pi)


def _pow2(f: float) -> float:
    try:
        return 2.0**f
    except OverflowError:
        return math.inf


_EXP2_TABLE = tuple(_pow2(i / _EXP2_FACTOR - _EXP2_OFFSET) for i in range(_EXP2_LEN))

_SIN_TABLE = tuple(math.sin(i / _SIN_FACTOR) for i in range(_SIN_LEN))
_SIN_GRAD = tuple(
    nxt - cur for cur, nxt in zip(_SIN_TABLE, _SIN_TABLE[1:] + _SIN_TABLE[:1])
)


def exp2(f: float) -> float:
    """Return 2**f, interpolated from a table inside [-11, 11]."""
    f2 = (f + _EXP2_OFFSET) * _EXP2_FACTOR
    if not -1.0 < f2 < _EXP2_LEN - 1:
        return _pow2(f)
    i = int(f2)
    d = f2 - i
    return _EXP2_TABLE[i] * (1 - d) + _EXP2_TABLE[i + 1] * d


def sin(x: float) -> float:
    """Return sin(x) by table lookup with linear interpolation."""
    if not math.isfinite(x):
        return math.nan
    f = abs(x * _SIN_FACTOR)
    t = int(f)
    i = t & (_SIN_LEN - 1)
    res = _SIN_TABLE[i] + _SIN_GRAD[i] * (f - t)
    return -res if x < 0 else res