# emacs: -*- mode: python-mode; py-indent-offset: 4; indent-tabs-mode: nil -*-
# vi: set ft=python sts=4 ts=4 sw=4 et:
### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ##
#
#   See COPYING file distributed along with the NiBabel package for the
#   copyright and license terms.
#
### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ##
"""The value-semantics transform handle."""

import warnings
from functools import partial
from pathlib import Path
import numpy as np

from sitransforms import io
from sitransforms.io import itk as itkio
from sitransforms.base import (
    NativeTransform,
    TransformError,
    TransformKind,
    UnsupportedConfigurationError,
    InvalidArgumentError,
    InvalidOperationError,
    DimensionMismatchError,
)
from sitransforms.linear import (
    Identity,
    Translation,
    Scale,
    ScaleLogarithmic,
    Euler2D,
    Euler3D,
    Similarity2D,
    Similarity3D,
    QuaternionRigid,
    Versor,
    VersorRigid3D,
    Affine,
)
from sitransforms.manip import Composite
from sitransforms.nonlinear import DisplacementField


class ExtraTransformsWarning(UserWarning):
    """A transform file holds more records than were used."""


_NATIVE_TYPES = {
    TransformKind.IDENTITY: {2: partial(Identity, ndim=2), 3: partial(Identity, ndim=3)},
    TransformKind.TRANSLATION: {
        2: partial(Translation, ndim=2),
        3: partial(Translation, ndim=3),
    },
    TransformKind.SCALE: {2: partial(Scale, ndim=2), 3: partial(Scale, ndim=3)},
    TransformKind.SCALE_LOGARITHMIC: {
        2: partial(ScaleLogarithmic, ndim=2),
        3: partial(ScaleLogarithmic, ndim=3),
    },
    TransformKind.EULER: {2: Euler2D, 3: Euler3D},
    TransformKind.SIMILARITY: {2: Similarity2D, 3: Similarity3D},
    TransformKind.QUATERNION_RIGID: {3: QuaternionRigid},
    TransformKind.VERSOR: {3: Versor},
    TransformKind.VERSOR_RIGID: {3: VersorRigid3D},
    TransformKind.AFFINE: {2: partial(Affine, ndim=2), 3: partial(Affine, ndim=3)},
}


def _as_kind(kind):
    """
    Normalize a transform kind given as a member or as its value.

    Examples
    --------
    >>> _as_kind("euler")
    <TransformKind.EULER: 'euler'>
    >>> _as_kind("spline")  # doctest: +IGNORE_EXCEPTION_DETAIL
    Traceback (most recent call last):
    InvalidArgumentError:

    """
    if isinstance(kind, TransformKind):
        return kind
    try:
        return TransformKind(str(kind).lower())
    except ValueError:
        raise InvalidArgumentError(f"Unknown transform kind <{kind}>.") from None


def _create_native(kind, ndim, base=None):
    """
    Build the native transform matching a kind and a dimension.

    Parameters
    ----------
    kind : :obj:`TransformKind`
        The kind of transform requested.
    ndim : :obj:`int`
        The dimension of the input and output spaces (2 or 3).
    base : :obj:`~sitransforms.manip.Composite`
        An existing composite, reused rather than built anew.

    """
    kind = _as_kind(kind)
    if ndim not in (2, 3):
        raise UnsupportedConfigurationError(
            f"Invalid dimension for transform ({ndim})."
        )

    if kind is TransformKind.DISPLACEMENT_FIELD:
        raise UnsupportedConfigurationError(
            "Incorrect constructor for transform type: displacement fields "
            "must be created from an image."
        )

    if kind is TransformKind.COMPOSITE:
        composite = Composite(ndim=ndim) if base is None else base
        if not isinstance(composite, Composite) or composite.ndim != ndim:
            raise TransformError(
                f"Unexpectedly unable to convert {composite!r} to a "
                f"{ndim}D composite transform."
            )
        if composite.is_transform_queue_empty():
            # Load an identity in case no transforms are loaded
            composite.add_transform(Identity(ndim=ndim))
        composite.set_only_most_recent_transform_to_optimize_on()
        return composite

    try:
        factory = _NATIVE_TYPES[kind][ndim]
    except KeyError:
        raise UnsupportedConfigurationError(
            f"A {kind.name} transform only works for 3D!"
        ) from None
    return factory()


class Transform:
    """
    A value-semantics handle over one native transform.

    Copies of a handle share their native transform until one of them
    is modified, at which point the modified handle takes a private
    deep copy (copy-on-write).

    Examples
    --------
    >>> xfm = Transform(2, TransformKind.TRANSLATION)
    >>> xfm.set_parameters((1.0, 2.0))
    >>> xfm.transform_point((0.0, 0.0))
    (1.0, 2.0)

    >>> from copy import copy
    >>> other = copy(xfm)
    >>> other.set_parameters((0.0, 0.0))
    >>> xfm.get_parameters(), other.get_parameters()
    ((1.0, 2.0), (0.0, 0.0))

    """

    __slots__ = ("_native",)

    def __init__(self, dimension=3, kind=TransformKind.IDENTITY):
        """
        Create a transform.

        Parameters
        ----------
        dimension : :obj:`int`, :obj:`Transform`, native transform, or image
            The dimension of the transform (2 or 3).
            Alternatively, another :obj:`Transform` to share the native with,
            a native transform to wrap, or a vector-valued nibabel image
            (or its path) to build a displacement field from.
        kind : :obj:`TransformKind` or :obj:`str`
            The kind of transform to create.

        """
        self._native = None

        if isinstance(dimension, Transform):
            native = dimension._native
        elif isinstance(dimension, Composite):
            native = _create_native(TransformKind.COMPOSITE, dimension.ndim, dimension)
        elif isinstance(dimension, NativeTransform):
            native = dimension
        elif isinstance(dimension, (str, Path)) or hasattr(dimension, "dataobj"):
            if _as_kind(kind) is not TransformKind.DISPLACEMENT_FIELD:
                raise InvalidArgumentError(
                    "Expected a displacement field kind for the transformation type!"
                )
            native = DisplacementField.from_image(dimension)
        else:
            native = _create_native(kind, dimension)

        self._set_native(native)

    def __del__(self):
        """Release the native transform."""
        native = getattr(self, "_native", None)
        if native is not None:
            native.unregister()

    def __copy__(self):
        """Share the native transform with a new handle."""
        return self.__class__(self)

    def __deepcopy__(self, memo):
        """Create a handle with a private copy of the native transform."""
        retval = self.__class__(self)
        retval._make_unique_for_write()
        return retval

    def __call__(self, x):
        """Apply y = f(x)."""
        return self.map(x)

    def __repr__(self):
        """Beautify the python representation."""
        return f"<{self.__class__.__name__}[{self.dimension}D] {self.get_name()}>"

    def __str__(self):
        """Generate a string representation."""
        return self.to_string()

    @property
    def native(self):
        """Access the wrapped native transform."""
        return self._native

    @property
    def dimension(self):
        """Get the dimension of the input and output spaces."""
        return self._native.ndim

    def get_dimension(self):
        """Get the dimension of the input and output spaces."""
        return self._native.ndim

    def get_name(self):
        """Get the class name of the native transform."""
        return self._native.name_of_class

    def _set_native(self, native):
        """Replace the native transform, updating ownership."""
        native.register()
        if self._native is not None:
            self._native.unregister()
        self._native = native

    def _make_unique_for_write(self):
        """Take a private copy of the native transform if it is shared."""
        if self._native.reference_count > 1:
            self._set_native(self._native.clone())

    def assign(self, other):
        """
        Make this handle share the native transform of another.

        Example
        -------
        >>> xfm = Transform(3, TransformKind.TRANSLATION)
        >>> xfm.assign(Transform(2, "affine")).get_name()
        'AffineTransform'

        """
        if not isinstance(other, Transform):
            raise InvalidArgumentError(f"Cannot assign {type(other).__name__}.")
        self._set_native(other._native)
        return self

    def get_parameters(self):
        """Get the parameters vector."""
        return tuple(self._native.get_parameters().tolist())

    def set_parameters(self, parameters):
        """Set the parameters vector, whose length cannot change."""
        self._make_unique_for_write()
        self._native.set_parameters(parameters)

    def get_fixed_parameters(self):
        """Get the fixed parameters vector."""
        return tuple(self._native.get_fixed_parameters().tolist())

    def set_fixed_parameters(self, parameters):
        """Set the fixed parameters vector, whose length cannot change."""
        self._make_unique_for_write()
        self._native.set_fixed_parameters(parameters)

    def add_transform(self, other):
        """
        Append a transform to a composite, as its only optimizable element.

        Example
        -------
        >>> chain = Transform(2, TransformKind.COMPOSITE)
        >>> shift = Transform(2, TransformKind.TRANSLATION)
        >>> shift.set_parameters((5.0, 0.0))
        >>> chain.add_transform(shift).native.number_of_transforms
        2
        >>> chain.transform_point((1.0, 1.0))
        (6.0, 1.0)

        """
        if not isinstance(self._native, Composite):
            raise InvalidOperationError(
                f"Cannot add transforms to a {self.get_name()}; "
                "only composite transforms hold a queue."
            )
        if not isinstance(other, Transform):
            raise InvalidArgumentError(f"Cannot add {type(other).__name__}.")
        if other.dimension != self.dimension:
            raise DimensionMismatchError(
                f"Cannot add a {other.dimension}D transform to a "
                f"{self.dimension}D composite."
            )

        # Hold other by value, so that adding a handle to itself is safe
        other = Transform(other)
        self._make_unique_for_write()
        self._native.add_transform(other._native)
        return self

    def transform_point(self, point):
        """Map one point."""
        point = np.array(point, dtype="float64")
        if point.shape != (self.dimension,):
            raise DimensionMismatchError(
                f"A {self.dimension}D transform cannot map point {tuple(point.tolist())}."
            )
        return tuple(self._native.map(point[np.newaxis, :])[0].tolist())

    def map(self, x):
        r"""
        Apply :math:`y = f(x)` to an array of points.

        Parameters
        ----------
        x : N x D numpy.ndarray
            Input physical coordinates.

        Returns
        -------
        y : N x D numpy.ndarray
            Transformed (mapped) physical coordinates.

        """
        x = np.atleast_2d(np.array(x, dtype="float64"))
        if x.ndim != 2 or x.shape[-1] != self.dimension:
            raise DimensionMismatchError(
                f"A {self.dimension}D transform cannot map points of shape {x.shape}."
            )
        return self._native.map(x)

    def to_string(self):
        """Get a diagnostic representation of the native transform."""
        return self._native.to_string()

    def write_transform(self, filename, fmt=None):
        """Store the transform in a file."""
        return write_transform(self, filename, fmt=fmt)


def read_transform(filename, fmt=None, warn=None):
    """
    Read a transform file into a composite :class:`Transform`.

    Parameters
    ----------
    filename : :obj:`os.pathlike`
        The file to read (``.tfm``/``.txt``, ``.h5``/``.hdf5`` or ``.mat``).
    fmt : :obj:`str`
        Force a format rather than guessing it from the extension.
    warn : callable
        Receives ``(message, category)`` for non-fatal conditions, such as
        records left unused.
        Defaults to :func:`warnings.warn`.

    Example
    -------
    >>> xfm = Transform(2, TransformKind.TRANSLATION)
    >>> xfm.set_parameters((1.0, 2.0))
    >>> fname = write_transform(xfm, os.path.join(tmpdir, "shift.tfm"))
    >>> read_transform(fname).transform_point((0.0, 0.0))
    (1.0, 2.0)

    """
    warn = warn or warnings.warn
    records = io.load(filename, fmt=fmt)

    if not records:
        raise io.TransformFileError(
            f'Read transform file: "{filename}", but there appears to be no '
            "transform in the file!"
        )

    front = records[0]
    dims = (front.input_dimension, front.output_dimension)
    if dims not in ((2, 2), (3, 3)):
        raise UnsupportedConfigurationError(
            f"Unable to transform with InputSpaceDimension: {dims[0]} and "
            f"OutputSpaceDimension: {dims[1]}. "
            f"Transform of type {front.name_of_class} is not supported."
        )

    if front.is_composite:
        composite = itkio.to_native(front)
        for rec in records[1:]:
            composite.add_transform(itkio.to_native(rec))
        return Transform(composite)

    if len(records) > 1:
        warn(
            f'There is more than one transform in "{filename}"! '
            "Only using the first transform.",
            ExtraTransformsWarning,
        )

    composite = Composite(ndim=dims[0])
    composite.add_transform(itkio.to_native(front))
    return Transform(composite)


def write_transform(transform, filename, fmt=None):
    """Store a :class:`Transform` (or a native transform) in a file."""
    native = transform.native if isinstance(transform, Transform) else transform
    return io.save(itkio.from_native(native), filename, fmt=fmt)
