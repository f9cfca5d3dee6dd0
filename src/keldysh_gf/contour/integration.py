from typing import Callable
import numpy as np
from numba import njit
import keldysh_gf.contour.time_grid as tgrid


@njit(cache=True)
def _trapz_contour(fs: np.ndarray, zs: np.ndarray) -> complex:
    """Trapezoidal rule for values fs at complex contour positions zs.

    Parameters
    ----------
    fs : np.ndarray (dim,)
        Integrand at the contour positions

    zs : np.ndarray (dim,)
        Complex contour positions

    Returns
    -------
    out: complex
        Integral along the polygon through zs
    """
    result = 0.0 + 0.0j
    for i in range(len(zs) - 1):
        result += 0.5 * (fs[i] + fs[i + 1]) * (zs[i + 1] - zs[i])
    return result


def integrate(f: Callable, grid: "tgrid.TimeGrid", t1: "tgrid.TimeGridPoint",
              t2: "tgrid.TimeGridPoint") -> complex:
    """Integrate f along the contour from t1 to t2 with the trapezoidal rule.

    The contour measure is complex: dz is negative on the backward branch
    and -i*dtau on the imaginary branch.

    Parameters
    ----------
    f : Callable
        Integrand, called with a TimeGridPoint

    grid : TimeGrid
        Contour grid containing t1 and t2

    t1 : TimeGridPoint
        Lower bound

    t2 : TimeGridPoint
        Upper bound

    Returns
    -------
    out: complex
        Contour integral of f from t1 to t2
    """
    if t1.idx == t2.idx:
        return 0.0 + 0.0j
    if t2.idx < t1.idx:
        return -integrate(f, grid, t2, t1)

    points = grid.points[t1.idx:(t2.idx + 1)]
    fs = np.array([f(t) for t in points], dtype=np.complex128)
    zs = np.array([t.val.val for t in points], dtype=np.complex128)
    return _trapz_contour(fs, zs)
