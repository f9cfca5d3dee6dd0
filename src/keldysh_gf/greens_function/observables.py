from typing import Iterable, Union
import numpy as np
import keldysh_gf.contour.time_grid as tgrid
import keldysh_gf.contour.integration as cint
import keldysh_gf.greens_function.contour_greens_function as cgf
import keldysh_gf.util.fourier as dft


def density(green: "cgf.ContourGreen") -> np.ndarray:
    """Occupation n(t) = <c^dagger(t)c(t)> = -i G^<(t, t).

    Parameters
    ----------
    green : ContourGreen
        Contour Green's function

    Returns
    -------
    out: numpy.ndarray (dim,)
        Occupation at each real time of the grid
    """
    return -1.0j * np.diag(green.get_component(cgf.Component.lesser))


def equilibrium_spectrum(green: "cgf.ContourGreen",
                         omegas: Union[float, Iterable]) -> np.ndarray:
    """Spectral function A(w) = Im[-1/pi int dt G^R(t, 0) exp(iwt)].

    The time integral is done with the trapezoidal rule on the real times of
    the grid.

    Parameters
    ----------
    green : ContourGreen
        Contour Green's function

    omegas : Union[float, Iterable]
        Frequencies

    Returns
    -------
    out: numpy.ndarray (dim,)
        Spectral function at the frequencies omegas
    """
    ts = green.grid.realtimes()
    green_ret = green.get_component(cgf.Component.retarded)[:, 0]
    return np.imag((-1.0 / np.pi) * dft.dft(green_ret, ts, omegas, sign=1))


def _aux_spectrum_point(green: "cgf.ContourGreen", omega: float
                        ) -> np.ndarray:
    grid = green.grid

    def delta_f(t1, t2):
        return -1.0j * (tgrid.theta(t1, t2) - 1) * np.exp(
            -1.0j * (t1.val.val - t2.val.val) * omega)

    def delta_e(t1, t2):
        return -1.0j * (tgrid.theta(t1, t2) - 0) * np.exp(
            -1.0j * (t1.val.val - t2.val.val) * omega)

    forward = grid[tgrid.Branch.forward]
    backward = grid[tgrid.Branch.backward][::-1]
    spectrum = np.zeros(len(forward), dtype=np.complex128)
    for i, (t_plus, t_minus) in enumerate(zip(forward, backward)):
        integral_f = -2.0 * cint.integrate(
            lambda t: green[t_plus, t] * delta_f(t, t_minus),
            grid, t_plus, t_minus)
        integral_e = 2.0 * cint.integrate(
            lambda t: delta_e(t_plus, t) * green[t, t_minus],
            grid, t_plus, t_minus)
        spectrum[i] = (1 / (2 * np.pi)) * (integral_e - integral_f)
    return spectrum


def aux_spectrum(green: "cgf.ContourGreen", omega: Union[float, Iterable]
                 ) -> np.ndarray:
    """Auxiliary current spectral function A(w, t) of the Green's function,
    see Eq. 24 of

    Cohen, Reichman, Millis and Gull, "Green's Functions from Real-Time
    Bold-Line Monte Carlo", Phys. Rev. B 89, 115139 (2014).

    For every real time t the pair (t+, t-) of forward and backward branch
    points with real time t enters the contour integrals.

    Parameters
    ----------
    green : ContourGreen
        Contour Green's function

    omega : Union[float, Iterable]
        Frequency or frequencies

    Returns
    -------
    out: numpy.ndarray
        For a single frequency an array (dim,) over the real times, for
        several frequencies an array (len(omega), dim) whose rows are the
        complex conjugated (adjoint) single frequency results
    """
    if np.ndim(omega) == 0:
        return _aux_spectrum_point(green, omega)
    return np.vstack([_aux_spectrum_point(green, w).conj() for w in omega])
