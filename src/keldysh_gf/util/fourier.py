import numpy as np
from scipy.integrate import trapezoid


def dft_point(fs: np.ndarray, ts: np.ndarray, w: float, sign: int = -1
              ) -> complex:
    """Preforms the Fourier integral of fs with corresponding domain ts
    at conjugated domain value w in both directions (sign=1 or sign=-1).

    The integral is evaluated with the trapezoidal rule on the points ts,
    which don't have to be equidistant. No normalization factor is applied.

    Parameters
    ----------
    fs : np.ndarray
        Array to be transformed

    ts : np.ndarray
        Too fs corresponding time or frequency (domain)

    w : float
        Conjugated domain value, e.g a frequency, if ts is in time domain

    sign : int, optional
        Sign of the exponent, by default -1

    Returns
    -------
    out: complex
        Fourier integral of fs from domain ts at w
    """
    if len(fs) != len(ts):
        raise ValueError("ERROR: fs and ts must have same length")
    ts = np.asarray(ts, dtype=np.float64)
    fs_w = np.asarray(fs) * np.exp(sign * 1j * w * ts)
    return complex(trapezoid(fs_w, ts))


def dft(fs: np.ndarray, ts: np.ndarray, ws: np.ndarray, sign: int = -1
        ) -> np.ndarray:
    """Preforms the Fourier integral from given ts to ws.
    The transformed fs for all values of ws is returned.

    Parameters
    ----------
    fs : np.ndarray
        Array to be transformed

    ts : np.ndarray
        Too fs corresponding time or frequency (domain)

    ws : np.ndarray
        Conjugated domain of fs where Fourier transform is wanted

    sign : int, optional
        Sign of the exponent, by default -1

    Returns
    -------
    out: np.ndarray
        Fourier transformed fs from domain ts to domain ws
    """
    ws = np.atleast_1d(np.asarray(ws, dtype=np.float64))
    return np.array([dft_point(fs, ts, w, sign) for w in ws],
                    dtype=np.complex128)
