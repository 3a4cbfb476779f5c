# src/selene/core/rootfind.py
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable, List, Tuple

_SECONDS_PER_DAY = 86_400.0


@dataclass(frozen=True)
class RootResult:
    jd: float
    iterations: int


def bracket_by_scan(
    f: Callable[[float], float],
    start_jd: float,
    end_jd: float,
    step_days: float,
) -> List[Tuple[float, float]]:
    """
    Scan [start_jd, end_jd] by a fixed step and return sign-change brackets.

    An exact zero at a grid point yields (t, t). Non-finite samples reset the
    baseline instead of producing a bracket.
    """
    if step_days <= 0:
        raise ValueError("step_days must be positive")
    if not (start_jd < end_jd):
        return []

    out: List[Tuple[float, float]] = []
    t_prev = start_jd
    f_prev = f(t_prev)
    if f_prev == 0.0:
        out.append((t_prev, t_prev))

    t = start_jd
    while t < end_jd:
        t = min(t + step_days, end_jd)
        f_cur = f(t)

        if math.isfinite(f_cur):
            if f_cur == 0.0:
                out.append((t, t))
            elif math.isfinite(f_prev) and f_prev != 0.0 and f_prev * f_cur < 0.0:
                out.append((t_prev, t))

        t_prev, f_prev = t, f_cur

    return out


def brentq_jd(
    f: Callable[[float], float],
    a: float,
    b: float,
    *,
    tol_seconds: float = 0.5,
    max_iter: int = 100,
) -> RootResult:
    """
    Root of f on a Julian Date bracket [a, b] with f(a) * f(b) <= 0.

    Bisection keeps the bracket valid; odd iterations try a false-position
    step when it lands strictly inside the bracket.
    """
    if tol_seconds <= 0:
        raise ValueError("tol_seconds must be positive")
    if a > b:
        a, b = b, a

    fa = f(a)
    fb = f(b)
    if not (math.isfinite(fa) and math.isfinite(fb)):
        raise ValueError("Non-finite function value at bracket endpoints.")
    if fa == 0.0:
        return RootResult(a, 0)
    if fb == 0.0:
        return RootResult(b, 0)
    if fa * fb > 0.0:
        raise ValueError("Root is not bracketed (same sign).")

    # work in seconds relative to a
    a0 = a
    xa, xb = 0.0, (b - a) * _SECONDS_PER_DAY

    def at(x: float) -> float:
        return a0 + x / _SECONDS_PER_DAY

    for it in range(1, max_iter + 1):
        if (xb - xa) <= tol_seconds:
            return RootResult(at(0.5 * (xa + xb)), it)

        xm = 0.5 * (xa + xb)
        xc = xm
        # even iterations bisect
        if it % 2 == 1 and fb != fa:
            xs = xb - fb * (xb - xa) / (fb - fa)
            if xa < xs < xb and math.isfinite(xs):
                xc = xs

        fc = f(at(xc))
        if not math.isfinite(fc):
            xc = xm
            fc = f(at(xc))
            if not math.isfinite(fc):
                raise ValueError("Non-finite function value during root finding.")

        if fc == 0.0:
            return RootResult(at(xc), it)

        if fa * fc < 0.0:
            xb, fb = xc, fc
        else:
            xa, fa = xc, fc

    return RootResult(at(0.5 * (xa + xb)), max_iter)
