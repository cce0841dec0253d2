# emacs: -*- mode: python; py-indent-offset: 4; indent-tabs-mode: nil -*-
# vi: set ft=python sts=4 ts=4 sw=4 et:
"""Tests of the base module."""
import numpy as np
import pytest

from ..base import (
    ImageGrid,
    NativeTransform,
    TransformError,
    UnsupportedConfigurationError,
    DimensionMismatchError,
    InvalidArgumentError,
    _check_length,
)
from ..linear import Affine


@pytest.mark.parametrize("ndim", [2, 3])
def test_ImageGrid(ndim):
    """Check the grid object."""
    affine = np.eye(ndim + 1)
    affine[:ndim, :ndim] *= 2.0
    affine[:ndim, -1] = -3.0
    shape = tuple(range(4, 4 + ndim))
    grid = ImageGrid(shape, affine)

    assert grid.ndim == ndim
    assert grid.shape == shape
    assert grid.npoints == np.prod(shape)
    assert np.allclose(grid.affine, np.linalg.inv(grid.inverse))

    idxs = grid.ndindex
    assert idxs.shape == (ndim, grid.npoints)

    xyz = grid.ras(idxs.T)
    assert np.allclose(xyz, 2.0 * idxs - 3.0)
    assert np.allclose(grid.index(xyz.T), idxs)

    assert grid == ImageGrid(shape, affine.copy())
    assert grid != ImageGrid(shape, np.eye(ndim + 1))


def test_ImageGrid_mismatch():
    """An affine must match the dimensionality of the grid."""
    with pytest.raises(DimensionMismatchError):
        ImageGrid((3, 3), np.eye(4))


def test_refcount():
    """Check the explicit reference counting of natives."""
    xfm = NativeTransform()
    assert xfm.reference_count == 0
    assert xfm.register() is xfm
    xfm.register()
    assert xfm.reference_count == 2
    xfm.unregister()
    xfm.unregister()
    xfm.unregister()
    assert xfm.reference_count == 0


def test_clone():
    """Clones are deep and start without owners."""
    xfm = Affine(ndim=2).register()
    xfm.set_parameters((1, 2, 3, 4, 5, 6))
    other = xfm.clone()

    assert other is not xfm
    assert other.reference_count == 0
    assert xfm.reference_count == 1
    assert np.allclose(other.get_parameters(), xfm.get_parameters())

    other.set_parameters((1, 0, 0, 1, 0, 0))
    assert xfm.get_parameters().tolist() == [1, 2, 3, 4, 5, 6]


@pytest.mark.parametrize("ndim", [0, 1, 4])
def test_unsupported_dimension(ndim):
    with pytest.raises(UnsupportedConfigurationError):
        NativeTransform(ndim=ndim)


def test_identity_base(sample_points):
    """The base native has no parameters and maps points onto themselves."""
    xfm = NativeTransform(ndim=3)
    assert xfm.number_of_parameters == 0
    assert xfm.number_of_fixed_parameters == 0
    assert np.allclose(xfm(sample_points[3]), sample_points[3])
    xfm.set_parameters(())
    with pytest.raises(DimensionMismatchError):
        xfm.set_parameters((1.0,))
    assert xfm.transform_type == "Transform_double_3_3"
    assert str(xfm).startswith("Transform_double_3_3")


def test_check_length():
    assert _check_length(np.ones((2, 2)), 4).shape == (4,)
    with pytest.raises(DimensionMismatchError, match="Expected 3 center"):
        _check_length((1, 2), 3, "center")


def test_exceptions_hierarchy():
    """All errors derive from the same base, and value errors stay ValueErrors."""
    assert issubclass(UnsupportedConfigurationError, TransformError)
    assert issubclass(TransformError, TypeError)
    assert issubclass(DimensionMismatchError, ValueError)
    assert issubclass(InvalidArgumentError, ValueError)
