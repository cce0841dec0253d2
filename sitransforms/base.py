# emacs: -*- mode: python-mode; py-indent-offset: 4; indent-tabs-mode: nil -*-
# vi: set ft=python sts=4 ts=4 sw=4 et:
### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ##
#
#   See COPYING file distributed along with the NiBabel package for the
#   copyright and license terms.
#
### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ##
"""Common interface for native transforms."""

from copy import deepcopy
from enum import Enum
import numpy as np

EQUALITY_TOL = 1e-5


class TransformError(TypeError):
    """A custom exception for transforms."""


class UnsupportedConfigurationError(TransformError):
    """The requested kind and dimension cannot be combined."""


class TypeMismatchError(TransformError):
    """The element type of some input is not supported by the operation."""


class InvalidArgumentError(TransformError, ValueError):
    """An argument is of the wrong kind for the requested operation."""


class InvalidOperationError(TransformError):
    """The operation is not available for this kind of transform."""


class DimensionMismatchError(TransformError, ValueError):
    """A vector or point does not have the length the transform expects."""


class NotBoundError(TransformError):
    """A specialized accessor was used while it was not bound to a transform."""


class TransformKind(Enum):
    """Enumerate the transform kinds a :class:`~sitransforms.Transform` can hold."""

    IDENTITY = "identity"
    TRANSLATION = "translation"
    SCALE = "scale"
    SCALE_LOGARITHMIC = "scale_logarithmic"
    EULER = "euler"
    SIMILARITY = "similarity"
    QUATERNION_RIGID = "quaternion_rigid"
    VERSOR = "versor"
    VERSOR_RIGID = "versor_rigid"
    AFFINE = "affine"
    COMPOSITE = "composite"
    DISPLACEMENT_FIELD = "displacement_field"


class ImageGrid:
    """Class to represent spaces of gridded data (images)."""

    __slots__ = ["_affine", "_inverse", "_ndindex", "_shape", "_ndim", "_npoints"]

    def __init__(self, shape, affine):
        """
        Create a gridded sampling reference.

        Examples
        --------
        >>> grid = ImageGrid((3, 4), np.diag((2.0, 2.0, 1.0)))
        >>> grid.ndim, grid.npoints
        (2, 12)
        >>> grid.index([(2.0, 4.0)]).tolist()
        [[1.0], [2.0]]

        """
        self._affine = np.array(affine, dtype="float64")
        self._shape = tuple(int(s) for s in shape)
        self._ndim = len(self._shape)

        if self._affine.shape != (self._ndim + 1, self._ndim + 1):
            raise DimensionMismatchError(
                f"An affine of shape {self._affine.shape} cannot index a "
                f"{self._ndim}D grid."
            )

        self._npoints = int(np.prod(self._shape))
        self._ndindex = None
        self._inverse = np.linalg.inv(self._affine)

    @property
    def affine(self):
        """Access the indexes-to-physical affine."""
        return self._affine

    @property
    def inverse(self):
        """Access the physical-to-indexes affine."""
        return self._inverse

    @property
    def shape(self):
        """Access the space's size of each dimension."""
        return self._shape

    @property
    def ndim(self):
        """Access the number of dimensions."""
        return self._ndim

    @property
    def npoints(self):
        """Access the total number of voxels."""
        return self._npoints

    @property
    def ndindex(self):
        """List the indexes corresponding to the space grid."""
        if self._ndindex is None:
            indexes = tuple([np.arange(s) for s in self._shape])
            self._ndindex = np.array(np.meshgrid(*indexes, indexing="ij")).reshape(
                self._ndim, self._npoints
            )
        return self._ndindex

    def ras(self, ijk):
        """Get physical coordinates from input indexes."""
        return _apply_affine(ijk, self._affine, self._ndim)

    def index(self, x):
        """Get the image array's indexes corresponding to coordinates."""
        return _apply_affine(x, self._inverse, self._ndim)

    def __eq__(self, other):
        """Overload equals operator."""
        return (
            np.allclose(self.affine, other.affine, rtol=EQUALITY_TOL)
            and self.shape == other.shape
        )

    def __ne__(self, other):
        """Overload not equal operator."""
        return not self == other


class NativeTransform:
    """
    Abstract class to represent the native (wrapped) transforms.

    Natives carry an explicit reference count: every owner (a
    :class:`~sitransforms.Transform` handle or a composite's queue)
    calls :meth:`register` when it takes hold of the object and
    :meth:`unregister` when it lets go.
    Owners use the count to decide whether the object is shared.

    """

    __slots__ = ("_ndim", "_refcount")

    name_of_class = "Transform"
    """The ITK class name of this transform."""

    def __init__(self, ndim=3):
        """Instantiate a transform."""
        if ndim not in (2, 3):
            raise UnsupportedConfigurationError(
                f"Invalid dimension for transform ({ndim})."
            )
        self._ndim = ndim
        self._refcount = 0

    def __call__(self, x):
        """Apply y = f(x)."""
        return self.map(x)

    def __repr__(self):
        """Beautify the python representation."""
        return f"<{self.__class__.__name__}[{self._ndim}D] {self.transform_type}>"

    @property
    def ndim(self):
        """Access the dimensions of the input and output spaces."""
        return self._ndim

    @property
    def transform_type(self):
        """Get the full ITK type string, e.g., ``AffineTransform_double_3_3``."""
        return f"{self.name_of_class}_double_{self._ndim}_{self._ndim}"

    @property
    def reference_count(self):
        """Number of owners currently holding this object."""
        return self._refcount

    def register(self):
        """Add one owner to this object."""
        self._refcount += 1
        return self

    def unregister(self):
        """Remove one owner from this object."""
        if self._refcount > 0:
            self._refcount -= 1

    @property
    def number_of_parameters(self):
        """Get the length of the parameters vector."""
        return len(self.get_parameters())

    @property
    def number_of_fixed_parameters(self):
        """Get the length of the fixed parameters vector."""
        return len(self.get_fixed_parameters())

    def get_parameters(self):
        """Get a copy of the parameters vector."""
        return np.zeros((0,))

    def set_parameters(self, parameters):
        """Set the parameters vector, which must keep its length."""
        self._set_parameters(
            _check_length(parameters, self.number_of_parameters, "parameters")
        )

    def get_fixed_parameters(self):
        """Get a copy of the fixed parameters vector."""
        return np.zeros((0,))

    def set_fixed_parameters(self, parameters):
        """Set the fixed parameters vector, which must keep its length."""
        self._set_fixed_parameters(
            _check_length(
                parameters, self.number_of_fixed_parameters, "fixed parameters"
            )
        )

    def _set_parameters(self, parameters):
        pass

    def _set_fixed_parameters(self, parameters):
        pass

    def map(self, x):
        r"""
        Apply :math:`y = f(x)`.

        The base class implements the identity transform.

        Parameters
        ----------
        x : N x D numpy.ndarray
            Input physical coordinates.

        Returns
        -------
        y : N x D numpy.ndarray
            Transformed (mapped) physical coordinates.

        """
        return np.array(x, dtype="float64")

    def clone(self):
        """Create a deep copy of this object, with no owners."""
        retval = deepcopy(self)
        retval._refcount = 0
        return retval

    def to_string(self, indent=0):
        """Generate a diagnostic, human-readable representation."""
        pad = " " * indent
        lines = [f"{pad}{self.transform_type}"]
        lines += [
            f"{pad}  {key}: {value}" for key, value in self._describe()
        ]
        return "\n".join(lines)

    def _describe(self):
        return [
            ("Dimension", self._ndim),
            ("Parameters", _format_vector(self.get_parameters())),
            ("FixedParameters", _format_vector(self.get_fixed_parameters())),
        ]

    def __str__(self):
        """Generate a string representation."""
        return self.to_string()


def _check_length(values, expected, what="parameters"):
    """
    Convert values into a float vector of the expected length.

    Examples
    --------
    >>> _check_length([1, 2], 2).tolist()
    [1.0, 2.0]
    >>> _check_length([1, 2], 3)  # doctest: +IGNORE_EXCEPTION_DETAIL
    Traceback (most recent call last):
    DimensionMismatchError:

    """
    values = np.array(values, dtype="float64").reshape(-1)
    if values.size != expected:
        raise DimensionMismatchError(
            f"Expected {expected} {what}, but {values.size} were given."
        )
    return values


def _format_vector(values):
    return "[" + ", ".join(f"{v:g}" for v in np.asanyarray(values).reshape(-1)) + "]"


def _as_homogeneous(xyz, dtype="float64", dim=3):
    """
    Convert 2D and 3D coordinates into homogeneous coordinates.

    Examples
    --------
    >>> _as_homogeneous((4, 5), dtype='int8', dim=2).tolist()
    [[4, 5, 1]]

    >>> _as_homogeneous((4, 5, 6),dtype='int8').tolist()
    [[4, 5, 6, 1]]

    >>> _as_homogeneous((4, 5, 6, 1),dtype='int8').tolist()
    [[4, 5, 6, 1]]

    >>> _as_homogeneous([(1, 2, 3), (4, 5, 6)]).tolist()
    [[1.0, 2.0, 3.0, 1.0], [4.0, 5.0, 6.0, 1.0]]

    """
    xyz = np.atleast_2d(np.array(xyz, dtype=dtype))
    if np.shape(xyz)[-1] == dim + 1:
        return xyz

    return np.hstack((xyz, np.ones((xyz.shape[0], 1), dtype=dtype)))


def _apply_affine(x, affine, dim):
    """Apply an homogeneous affine to N x D coordinates, return D x N."""
    return np.tensordot(
        affine,
        _as_homogeneous(x, dim=dim).T,
        axes=1,
    )[:dim, ...]
