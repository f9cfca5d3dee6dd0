import logging
from enum import IntEnum
from typing import Dict, Iterator, List, NamedTuple, Tuple, Union
import numpy as np

logger = logging.getLogger(__name__)


class Branch(IntEnum):
    """Branches of the Keldysh contour in contour order."""
    forward = 0
    backward = 1
    imaginary = 2


class BranchPoint(NamedTuple):
    """Point on a branch of the contour.

    Attributes
    ----------
    val : complex
        Contour time. Real on the real-time branches, -i*tau on the
        imaginary branch.

    ref : float
        Relative position along the branch, 0 at the start and 1 at the end.

    domain : Branch
        Branch the point is located on.
    """
    val: complex
    ref: float
    domain: Branch


class TimeGridPoint(NamedTuple):
    """Point of a discretized contour.

    Attributes
    ----------
    idx : int
        Linear index of the point in contour order, used to address the
        storage of contour Green's functions.

    val : BranchPoint
        Position of the point on the contour.
    """
    idx: int
    val: BranchPoint


def heaviside(b1: BranchPoint, b2: BranchPoint) -> bool:
    """Return True if b1 is later than or equal to b2 along the contour."""
    if b1.domain != b2.domain:
        return b1.domain > b2.domain
    return b1.ref >= b2.ref


def theta(t1: TimeGridPoint, t2: TimeGridPoint) -> bool:
    """Contour step function theta(t1, t2).

    Parameters
    ----------
    t1 : TimeGridPoint
        First contour point

    t2 : TimeGridPoint
        Second contour point

    Returns
    -------
    out: bool
        True if t1 is later than or equal to t2 along the contour.
    """
    return heaviside(t1.val, t2.val)


class TimeGrid:
    """Discretized Keldysh contour. The forward branch runs from t=0 to
    t=tmax, the backward branch from t=tmax back to t=0 and the optional
    imaginary branch from 0 to -i*beta.

    Parameters
    ----------
    tmax : float
        Maximal real time.

    npts_real : int
        Number of points on each real-time branch.

    beta : Union[float, None], optional
        Inverse temperature. If None, no imaginary branch is added,
        by default None

    npts_imag : int, optional
        Number of points on the imaginary branch, by default 0

    Attributes
    ----------
    points : List[TimeGridPoint]
        All grid points in contour order.

    contour : Tuple[Branch, ...]
        Branches contained in the contour.

    step : numpy.ndarray (dim,)
        Complex steps between consecutive points on the same branch.

    Raises
    ------
    ValueError
        "tmax must be positive"

    ValueError
        "npts_real must be at least 2"

    ValueError
        "beta must be positive"

    ValueError
        "npts_imag must be at least 2"
    """

    def __init__(self, tmax: float, npts_real: int,
                 beta: Union[float, None] = None, npts_imag: int = 0
                 ) -> None:
        """Initialize self.  See help(type(self)) for accurate signature.
        """
        if tmax <= 0:
            raise ValueError("ERROR: tmax must be positive!")
        if npts_real < 2:
            raise ValueError("ERROR: npts_real must be at least 2!")
        if beta is not None:
            if beta <= 0:
                raise ValueError("ERROR: beta must be positive!")
            if npts_imag < 2:
                raise ValueError("ERROR: npts_imag must be at least 2!")

        self.tmax = tmax
        self.beta = beta
        self.npts_real = npts_real
        self.npts_imag = npts_imag if beta is not None else 0

        refs_real = np.linspace(0, 1, npts_real)
        values = {Branch.forward: (tmax * refs_real).astype(np.complex128),
                  Branch.backward: (tmax * (1 - refs_real)
                                    ).astype(np.complex128)}
        refs = {Branch.forward: refs_real, Branch.backward: refs_real}
        if beta is not None:
            refs_imag = np.linspace(0, 1, npts_imag)
            values[Branch.imaginary] = -1.0j * beta * refs_imag
            refs[Branch.imaginary] = refs_imag

        self.contour = tuple(sorted(values))
        self.points = []
        self._branches = {}
        for branch in self.contour:
            branch_points = [
                TimeGridPoint(len(self.points) + i,
                              BranchPoint(complex(v), float(r), branch))
                for i, (v, r) in enumerate(zip(values[branch], refs[branch]))]
            self._branches[branch] = branch_points
            self.points.extend(branch_points)

        self.step = np.concatenate([np.diff(values[branch])
                                    for branch in self.contour])
        if self.step.flags.writeable:
            self.step.flags.writeable = False
        logger.debug("created time grid with %d points on branches %s",
                     len(self.points), [b.name for b in self.contour])

    @classmethod
    def from_parameters(cls, parameters: Dict) -> "TimeGrid":
        """Create a time grid from a parameter dictionary.

        Parameters
        ----------
        parameters : Dict
            Has to contain the group 'contour' with the keys 'tmax' and
            'npts_real' and optionally 'beta' and 'npts_imag'.

        Returns
        -------
        out: TimeGrid
        """
        contour = parameters['contour']
        return cls(tmax=contour['tmax'], npts_real=contour['npts_real'],
                   beta=contour.get('beta', None),
                   npts_imag=contour.get('npts_imag', 0))

    def __len__(self) -> int:
        return len(self.points)

    def __iter__(self) -> Iterator[TimeGridPoint]:
        return iter(self.points)

    def __getitem__(self, key: Union[int, Branch]
                    ) -> Union[TimeGridPoint, List[TimeGridPoint]]:
        """Return grid point by linear index or all points of a branch in
        contour order.
        """
        if isinstance(key, Branch):
            return list(self._branches[key])
        return self.points[key]

    def branch_bounds(self, branch: Branch
                      ) -> Tuple[TimeGridPoint, TimeGridPoint]:
        """Return the first and last point of branch in contour order."""
        points = self._branches[branch]
        return points[0], points[-1]

    def realtimes(self) -> np.ndarray:
        """Return the real times of the forward branch."""
        return np.array([t.val.val.real for t in
                         self._branches[Branch.forward]])
