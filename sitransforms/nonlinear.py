# emacs: -*- mode: python-mode; py-indent-offset: 4; indent-tabs-mode: nil -*-
# vi: set ft=python sts=4 ts=4 sw=4 et:
### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ##
#
#   See COPYING file distributed along with the NiBabel package for the
#   copyright and license terms.
#
### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ##
"""Nonlinear transforms."""

import warnings
from pathlib import Path
import numpy as np
from nibabel.affines import from_matvec
from nibabel.loadsave import load as _nbload
from scipy.ndimage import map_coordinates

from sitransforms.base import (
    EQUALITY_TOL,
    NativeTransform,
    ImageGrid,
    DimensionMismatchError,
    TypeMismatchError,
    UnsupportedConfigurationError,
    _check_length,
)

LPS = np.diag([-1, -1, 1, 1])
"""Flip between RAS+ (NIfTI) and LPS+ (ITK) physical frames."""


class DisplacementField(NativeTransform):
    """Represents dense fields of displacements, defined on a regular grid."""

    __slots__ = ("_field", "_grid")

    name_of_class = "DisplacementFieldTransform"

    def __init__(self, field, affine=None):
        r"""
        Create a displacement field transform.

        Points are mapped as :math:`y = x + \Delta(x)`, where :math:`\Delta`
        is linearly interpolated from the field.
        Points falling outside the grid are not displaced.

        Parameters
        ----------
        field : :obj:`numpy.array_like`
            A ``(*shape, D)`` array of displacements, in physical units.
        affine : :obj:`numpy.array_like`
            The ``(D + 1) x (D + 1)`` indexes-to-physical matrix of the grid.

        Example
        -------
        >>> field = np.zeros((4, 4, 2))
        >>> field[..., 0] = 1.0
        >>> xfm = DisplacementField(field, np.eye(3))
        >>> xfm.map([(1.0, 1.0), (10.0, 10.0)]).tolist()
        [[2.0, 1.0], [10.0, 10.0]]

        """
        field = np.array(field, dtype="float64")
        ndim = field.ndim - 1
        super().__init__(ndim)

        if field.shape[-1] != ndim:
            raise DimensionMismatchError(
                "The number of components of the field (%d) does not match "
                "the number of dimensions (%d)" % (field.shape[-1], ndim)
            )

        self._field = field
        self._grid = ImageGrid(
            field.shape[:-1], np.eye(ndim + 1) if affine is None else affine
        )

    @property
    def field(self):
        """Get a copy of the displacements array."""
        return self._field.copy()

    @property
    def grid(self):
        """Get the sampling grid of the field."""
        return self._grid

    def get_parameters(self):
        # ITK stores vector components first, and voxels in Fortran order
        return np.moveaxis(self._field, -1, 0).reshape(-1, order="F")

    def _set_parameters(self, parameters):
        self._field = np.moveaxis(
            parameters.reshape((self._ndim, *self._grid.shape), order="F"), 0, -1
        ).copy()

    def get_fixed_parameters(self):
        affine = self._grid.affine
        zooms = np.linalg.norm(affine[:-1, :-1], axis=0)
        directions = affine[:-1, :-1] / zooms
        return np.hstack(
            (self._grid.shape, affine[:-1, -1], zooms, directions.reshape(-1))
        ).astype("float64")

    def _set_fixed_parameters(self, parameters):
        shape, affine = _grid_from_fixed(parameters, self._ndim)
        if shape != self._grid.shape:
            raise DimensionMismatchError(
                f"Cannot resize a displacement field of shape {self._grid.shape} "
                f"to {shape}."
            )
        self._grid = ImageGrid(shape, affine)

    def map(self, x):
        x = np.atleast_2d(np.array(x, dtype="float64"))
        ijk = self._grid.index(x)
        upper = np.array(self._grid.shape)[:, np.newaxis] - 1
        inside = np.all(
            (ijk >= -EQUALITY_TOL) & (ijk <= upper + EQUALITY_TOL), axis=0
        )

        deltas = np.zeros_like(x)
        if np.any(inside):
            deltas[inside] = np.vstack(
                tuple(
                    map_coordinates(
                        self._field[..., i],
                        ijk[:, inside],
                        order=1,
                        mode="nearest",
                    )
                    for i in range(self._ndim)
                )
            ).T
        return x + deltas

    def _describe(self):
        return [
            ("Dimension", self._ndim),
            ("Size", list(self._grid.shape)),
            ("FixedParameters", self.get_fixed_parameters().round(6).tolist()),
            ("NumberOfParameters", self.number_of_parameters),
        ]

    @classmethod
    def from_parameters(cls, parameters, fixed_parameters, ndim=3):
        """Create a displacement field from ITK's parameter vectors."""
        shape, affine = _grid_from_fixed(fixed_parameters, ndim)
        parameters = _check_length(
            parameters, int(np.prod(shape)) * ndim, "parameters"
        )
        field = np.moveaxis(
            parameters.reshape((ndim, *shape), order="F"), 0, -1
        )
        return cls(field, affine)

    @classmethod
    def from_image(cls, imgobj):
        """
        Import a displacements field from a nibabel image object.

        The image must be vector-valued, with as many components as spatial
        dimensions; ITK's 5D layout ``(x, y, z, 1, 3)`` is also accepted.
        Data are given in RAS+ coordinates, and converted into ITK's LPS+.

        """
        if isinstance(imgobj, (str, Path)):
            imgobj = _nbload(str(imgobj))

        data = np.asanyarray(imgobj.dataobj)
        if not np.issubdtype(data.dtype, np.floating):
            raise TypeMismatchError(
                f"Displacement fields must have floating point elements, got {data.dtype}."
            )

        hdr = getattr(imgobj, "header", None)
        if hasattr(hdr, "get_intent") and hdr.get_intent()[0] != "vector":
            warnings.warn("Incorrect intent identified.")

        if data.ndim == 5 and data.shape[3] == 1:
            data = data[:, :, :, 0, :]

        ndim = data.ndim - 1
        if ndim not in (2, 3):
            raise UnsupportedConfigurationError(
                f"Displacement fields must be 2D or 3D, got an image of shape {data.shape}."
            )
        if data.shape[-1] != ndim:
            raise TypeMismatchError(
                f"A {ndim}D displacement field requires {ndim} components per voxel, "
                f"got {data.shape[-1]}."
            )

        field = np.array(data, dtype="float64")
        field[..., (0, 1)] *= -1.0

        affine = np.array(imgobj.affine, dtype="float64")
        if ndim == 2:
            affine = affine[np.ix_((0, 1, 3), (0, 1, 3))]
            flip = np.diag([-1, -1, 1])
        else:
            flip = LPS
        return cls(field, flip.dot(affine))


def _grid_from_fixed(fixed_parameters, ndim):
    """Decode ITK's (size, origin, spacing, direction) fixed parameters."""
    fixed = _check_length(
        fixed_parameters, 3 * ndim + ndim * ndim, "fixed parameters"
    )
    shape = tuple(int(round(s)) for s in fixed[:ndim])
    offset = fixed[ndim:2 * ndim]
    zooms = fixed[2 * ndim:3 * ndim]
    directions = np.reshape(fixed[3 * ndim:], (ndim, ndim))
    return shape, from_matvec(directions * zooms, offset)
