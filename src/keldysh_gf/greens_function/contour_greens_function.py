import logging
import numbers
from enum import Enum
from typing import Callable, Tuple, Union
import numpy as np
from numpy.lib.mixins import NDArrayOperatorsMixin
import keldysh_gf.contour.time_grid as tgrid

logger = logging.getLogger(__name__)


class Component(Enum):
    """Physical components of a contour Green's function."""
    greater = 'greater'
    lesser = 'lesser'
    matsubara = 'matsubara'
    retarded = 'retarded'

    @classmethod
    def from_name(cls, component: Union["Component", str]) -> "Component":
        """Return the component corresponding to 'component'.

        Raises
        ------
        ValueError
            If 'component' is not the name of a component.
        """
        if isinstance(component, cls):
            return component
        try:
            return cls(component)
        except ValueError:
            raise ValueError(
                f"ERROR: component {component} not recognized") from None


class TimeInvariantKernel:
    """Memoizing adapter for kernels f(t1, t2) that depend on the contour
    points only through the time difference t1 - t2 and the contour ordering
    theta(t1, t2), e.g. equilibrium correlators.

    Time differences are quantized in units of a tenth of the smallest grid
    step, so that numerically equal differences share a cache entry.

    Parameters
    ----------
    f : Callable
        Kernel f(t1, t2) taking two TimeGridPoints

    grid : TimeGrid
        Grid the kernel is evaluated on

    Attributes
    ----------
    delta : float
        Quantization unit of the time difference

    cache : dict
        Computed kernel values keyed by (quantized time difference, theta)

    hits : int
        Number of calls answered from the cache

    misses : int
        Number of calls that evaluated f
    """

    def __init__(self, f: Callable, grid: "tgrid.TimeGrid") -> None:
        """Initialize self.  See help(type(self)) for accurate signature.
        """
        if not callable(f):
            raise TypeError("ERROR: kernel f must be callable!")
        self.f = f
        self.delta = np.min(np.abs(grid.step)) / 10
        self.cache = {}
        self.hits = 0
        self.misses = 0

    def key(self, t1: "tgrid.TimeGridPoint", t2: "tgrid.TimeGridPoint"
            ) -> Tuple[complex, bool]:
        """Return the cache key of the pair (t1, t2)."""
        dt = (t1.val.val - t2.val.val) / self.delta
        return (complex(round(dt.real), round(dt.imag)),
                tgrid.theta(t1, t2))

    def __call__(self, t1: "tgrid.TimeGridPoint", t2: "tgrid.TimeGridPoint"):
        key = self.key(t1, t2)
        if key in self.cache:
            self.hits += 1
            return self.cache[key]
        self.misses += 1
        value = self.f(t1, t2)
        self.cache[key] = value
        return value


def find_contour_green(args: Tuple) -> Union["ContourGreen", None]:
    """Return the first ContourGreen among args, looking through transposed
    views, or None.
    """
    for arg in args:
        if isinstance(arg, ContourGreen):
            return arg
        if isinstance(arg, ContourGreenTranspose):
            return arg.green
    return None


class ContourGreen(NDArrayOperatorsMixin):
    """Two-time Green's function G(t1, t2) on a discretized Keldysh contour.

    The values are stored in a dense (N, N) complex matrix, where the
    element [t1.idx, t2.idx] belongs to the pair of grid points (t1, t2).
    The stored values are the raw values. At equal contour times the
    Green's function is discontinuous and the physical value is obtained by
    adding the jump across the initial time fold of the contour,
    see ContourGreen.jump.

    Elementwise arithmetic and numpy ufuncs return ContourGreen objects on
    the grid of the first ContourGreen operand, if the result is a (N, N)
    matrix.

    Parameters
    ----------
    grid : TimeGrid
        Contour grid

    data : Union[numpy.ndarray, None], optional
        (N, N) matrix that is wrapped without copying. If None a zero
        matrix is allocated, by default None

    Attributes
    ----------
    grid : TimeGrid
        Contour grid, shared and not copied

    data : numpy.ndarray (N, N)
        Raw values of the Green's function

    Raises
    ------
    ValueError
        "data must have shape (N, N)"
    """

    _HANDLED_TYPES = (np.ndarray, numbers.Number)

    def __init__(self, grid: "tgrid.TimeGrid",
                 data: Union[np.ndarray, None] = None) -> None:
        """Initialize self.  See help(type(self)) for accurate signature.
        """
        n = len(grid)
        if data is None:
            data = np.zeros((n, n), dtype=np.complex128)
        else:
            data = np.asarray(data)
            if data.shape != (n, n):
                raise ValueError(
                    f"ERROR: data must have shape ({n}, {n}), got "
                    f"{data.shape}!")
        self.grid = grid
        self.data = data

    @classmethod
    def from_kernel(cls, f: Callable, grid: "tgrid.TimeGrid",
                    lower: bool = False, time_invariant: bool = False,
                    dtype=np.complex128) -> "ContourGreen":
        """Evaluate the kernel f(t1, t2) on all pairs of grid points.

        Parameters
        ----------
        f : Callable
            Kernel taking two TimeGridPoints

        grid : TimeGrid
            Contour grid

        lower : bool, optional
            If True only pairs with t1.idx >= t2.idx are evaluated, the
            remaining elements are zero, by default False

        time_invariant : bool, optional
            If True the kernel is assumed to depend only on the time
            difference and the contour ordering of its arguments and is
            memoized accordingly, by default False

        dtype : optional
            Element type of the stored values, by default np.complex128

        Returns
        -------
        out: ContourGreen
        """
        if not callable(f):
            raise TypeError("ERROR: kernel f must be callable!")
        if time_invariant:
            kernel = TimeInvariantKernel(f, grid)
            green = cls.from_kernel(kernel, grid, lower=lower,
                                    time_invariant=False, dtype=dtype)
            logger.debug("time invariant kernel: %d cached values, "
                         "%d hits, %d misses", len(kernel.cache),
                         kernel.hits, kernel.misses)
            return green

        n = len(grid)
        scalar = np.dtype(dtype).type
        green = cls(grid, np.zeros((n, n), dtype=dtype))
        evaluations = 0
        for t1 in grid:
            for t2 in grid:
                if lower and t1.idx < t2.idx:
                    continue
                green[t1, t2] = scalar(f(t1, t2))
                evaluations += 1
        logger.debug("kernel evaluated on %d of %d pairs", evaluations, n * n)
        return green

    # array capabilities
    @property
    def shape(self) -> Tuple[int, int]:
        return self.data.shape

    @property
    def size(self) -> int:
        return self.data.size

    @property
    def ndim(self) -> int:
        return self.data.ndim

    @property
    def dtype(self):
        return self.data.dtype

    def __len__(self) -> int:
        return len(self.data)

    def __iter__(self):
        return iter(self.data)

    def __array__(self, dtype=None, copy=None) -> np.ndarray:
        if dtype is None:
            return self.data
        return self.data.astype(dtype)

    def __array_ufunc__(self, ufunc, method, *inputs, **kwargs):
        out = kwargs.get('out', ())
        if any(isinstance(x, ContourGreenTranspose) for x in out):
            # a transposed view can't be written through by numpy
            return NotImplemented
        for x in inputs + out:
            if not isinstance(x, self._HANDLED_TYPES + (
                    ContourGreen, ContourGreenTranspose)):
                return NotImplemented

        grid = find_contour_green(inputs + out).grid
        inputs = tuple(_unwrap(x) for x in inputs)
        if out:
            kwargs['out'] = tuple(_unwrap(x) for x in out)
        result = getattr(ufunc, method)(*inputs, **kwargs)

        if out:
            return out[0] if len(out) == 1 else out
        if method == 'at':
            return None
        if isinstance(result, tuple):
            return tuple(self._wrap(x, grid) for x in result)
        return self._wrap(result, grid)

    def _wrap(self, result, grid: "tgrid.TimeGrid"):
        if (isinstance(result, np.ndarray)
                and result.shape == (len(grid), len(grid))):
            return ContourGreen(grid, result)
        return result

    def similar(self, dtype=None) -> "ContourGreen":
        """Return a zero Green's function on the same grid."""
        return ContourGreen(self.grid, np.zeros_like(self.data, dtype=dtype))

    def copy(self) -> "ContourGreen":
        """Return a copy of the object sharing the grid.

        Returns
        -------
        out: ContourGreen
        """
        return ContourGreen(self.grid, self.data.copy())

    # indexing
    def __getitem__(self, key):
        if isinstance(key, (int, np.integer)):
            return self.data.flat[key]
        if isinstance(key, (Component, str)):
            return self.get_component(key)
        if isinstance(key, tuple):
            if (len(key) in (2, 3) and isinstance(key[0], tgrid.TimeGridPoint)
                    and isinstance(key[1], tgrid.TimeGridPoint)):
                return self.value(*key)
            if (len(key) == 2 and isinstance(key[0], tgrid.Branch)
                    and isinstance(key[1], tgrid.Branch)):
                return self.branch_pair(*key)
        return self.data[key]

    def __setitem__(self, key, value) -> None:
        if isinstance(key, (int, np.integer)):
            self.data.flat[key] = value
        elif (isinstance(key, tuple) and len(key) == 2
              and isinstance(key[0], tgrid.TimeGridPoint)
              and isinstance(key[1], tgrid.TimeGridPoint)):
            self.data[key[0].idx, key[1].idx] = value
        else:
            self.data[key] = value

    def value(self, t1: "tgrid.TimeGridPoint", t2: "tgrid.TimeGridPoint",
              physical: bool = True) -> complex:
        """Return G(t1, t2).

        Parameters
        ----------
        t1 : TimeGridPoint
            First contour time

        t2 : TimeGridPoint
            Second contour time

        physical : bool, optional
            If True the jump is added at equal contour times, otherwise the
            raw stored value is returned, by default True

        Returns
        -------
        out: complex
        """
        val = self.data[t1.idx, t2.idx]
        if physical and t1.idx == t2.idx:
            val += self.jump()
        return val

    def jump(self) -> complex:
        """Return the discontinuity at the initial time fold of the contour,
        G(t0+, t0-) - G(t0+, t0+), where t0+ is the first point of the forward
        branch and t0- the last point of the backward branch.
        """
        t0_plus = self.grid.branch_bounds(tgrid.Branch.forward)[0]
        t0_minus = self.grid.branch_bounds(tgrid.Branch.backward)[1]
        return (self.data[t0_plus.idx, t0_minus.idx]
                - self.data[t0_plus.idx, t0_plus.idx])

    def transpose_view(self) -> "ContourGreenTranspose":
        """Return the transposed view taking into account the diagonal
        discontinuity.
        """
        return ContourGreenTranspose(self)

    def branch_pair(self, branch1: "tgrid.Branch", branch2: "tgrid.Branch"
                    ) -> np.ndarray:
        """Return G(t1, t2) with t1 on branch1 and t2 on branch2 as dense
        matrix. Points of the backward branch are ordered by increasing real
        time. All elements are physical values.

        Parameters
        ----------
        branch1 : Branch
            Branch of the first time argument

        branch2 : Branch
            Branch of the second time argument

        Returns
        -------
        out: numpy.ndarray (len(branch1), len(branch2))
        """
        contour = self.grid.contour
        assert branch1 in contour and branch2 in contour, \
            f"branches {branch1.name}, {branch2.name} not in contour"

        idx = []
        for branch in (branch1, branch2):
            points = self.grid[branch]
            if branch == tgrid.Branch.backward:
                points = points[::-1]
            idx.append(np.array([t.idx for t in points], dtype=np.int64))

        green = self.data[np.ix_(idx[0], idx[1])].astype(np.complex128)
        diagonal = idx[0][:, None] == idx[1][None, :]
        if diagonal.any():
            green[diagonal] += self.jump()
        return green

    def get_component(self, component: Union[Component, str]) -> np.ndarray:
        """Return a physical component of the Green's function.

        Parameters
        ----------
        component : Union[Component, str]
            One of 'greater', 'lesser', 'matsubara' or 'retarded'

        Returns
        -------
        out: numpy.ndarray
            G^>(t, t') and G^<(t, t') and G^R(t, t') as matrices ordered by
            real time, G^M(tau) as vector

        Raises
        ------
        ValueError
            If component is not recognized
        """
        component = Component.from_name(component)
        if component is Component.greater:
            return self.branch_pair(tgrid.Branch.backward,
                                    tgrid.Branch.forward)
        if component is Component.lesser:
            return self.branch_pair(tgrid.Branch.forward,
                                    tgrid.Branch.backward)
        if component is Component.matsubara:
            return self.branch_pair(tgrid.Branch.imaginary,
                                    tgrid.Branch.imaginary)[:, 0]
        green_ret = (self.get_component(Component.greater)
                     - self.get_component(Component.lesser))
        return np.tril(np.ones(green_ret.shape)) * green_ret


class ContourGreenTranspose:
    """Transposed view of a ContourGreen taking into account the diagonal
    discontinuity. Reading (i, j) returns G[j, i] and reading (i, i) returns
    G[i, i] + jump. Writing (i, j) stores to G[j, i] without correction.

    Parameters
    ----------
    green : ContourGreen
        Viewed Green's function, the storage is not copied
    """

    def __init__(self, green: ContourGreen) -> None:
        self.green = green

    @property
    def shape(self) -> Tuple[int, int]:
        return self.green.shape

    def _index(self, key) -> Tuple[int, int]:
        i, j = key
        if isinstance(i, tgrid.TimeGridPoint):
            i = i.idx
        if isinstance(j, tgrid.TimeGridPoint):
            j = j.idx
        n = len(self.green)
        if i < 0:
            i += n
        if j < 0:
            j += n
        return i, j

    def __getitem__(self, key) -> complex:
        i, j = self._index(key)
        if i == j:
            return self.green.data[i, i] + self.green.jump()
        return self.green.data[j, i]

    def __setitem__(self, key, value) -> None:
        i, j = self._index(key)
        self.green.data[j, i] = value

    def __array__(self, dtype=None, copy=None) -> np.ndarray:
        data = self.green.data.T.copy()
        data[np.diag_indices_from(data)] += self.green.jump()
        if dtype is None:
            return data
        return data.astype(dtype)


def _unwrap(x):
    if isinstance(x, ContourGreen):
        return x.data
    if isinstance(x, ContourGreenTranspose):
        return np.asarray(x)
    return x
