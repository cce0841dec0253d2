# emacs: -*- mode: python; py-indent-offset: 4; indent-tabs-mode: nil -*-
# vi: set ft=python sts=4 ts=4 sw=4 et:
"""Tests of nonlinear transforms."""

import pytest
import numpy as np
import nibabel as nb

from ..base import (
    DimensionMismatchError,
    TypeMismatchError,
    UnsupportedConfigurationError,
)
from ..nonlinear import DisplacementField


def test_from_image_3d(displacement_image):
    """RAS+ displacements are converted into ITK's LPS+ frame."""
    xfm = DisplacementField.from_image(displacement_image(3))

    assert xfm.ndim == 3
    assert xfm.grid.shape == (5, 5, 5)
    assert np.allclose(xfm.grid.affine, np.diag((-1.0, -1.0, 1.0, 1.0)))
    assert np.allclose(xfm.field[..., 0], -1.0)
    assert np.allclose(xfm.field[..., 1:], 0.0)

    points = np.array([[-2.0, -2.0, 2.0], [-1.5, 0.0, 0.0], [10.0, 10.0, 10.0]])
    assert np.allclose(
        xfm.map(points), [[-3.0, -2.0, 2.0], [-2.5, 0.0, 0.0], [10.0, 10.0, 10.0]]
    )


def test_from_image_2d(displacement_image):
    img = displacement_image(2, shape=(4, 6), delta=(0.0, 2.0))
    xfm = DisplacementField.from_image(img)

    assert xfm.ndim == 2
    assert xfm.grid.shape == (4, 6)
    assert np.allclose(xfm.grid.affine, np.diag((-1.0, -1.0, 1.0)))
    assert np.allclose(xfm.map((-1.0, -1.0)), (-1.0, -3.0))


def test_from_image_copies(displacement_image):
    """The input image is not modified."""
    img = displacement_image(3)
    xfm = DisplacementField.from_image(img)
    assert np.allclose(np.asanyarray(img.dataobj)[..., 0], 1.0)

    xfm.set_parameters(np.zeros(xfm.number_of_parameters))
    assert np.allclose(np.asanyarray(img.dataobj)[..., 0], 1.0)


def test_from_filename(tmp_path, displacement_image):
    displacement_image(3).to_filename(tmp_path / "field.nii.gz")
    xfm = DisplacementField.from_image(tmp_path / "field.nii.gz")
    assert xfm.grid.shape == (5, 5, 5)


def test_from_image_itk_layout(displacement_image):
    """ITK's 5D vector images are squeezed."""
    img = displacement_image(3)
    data = np.asanyarray(img.dataobj)[:, :, :, np.newaxis, :]
    itk_img = nb.Nifti1Image(data, img.affine)
    itk_img.header.set_intent("vector")

    xfm = DisplacementField.from_image(itk_img)
    assert xfm.grid.shape == (5, 5, 5)


def test_from_image_errors(displacement_image):
    img = displacement_image(3)
    int_img = nb.Nifti1Image(np.zeros((5, 5, 5, 3), dtype="int16"), np.eye(4))
    with pytest.raises(TypeMismatchError):
        DisplacementField.from_image(int_img)

    bad_components = nb.Nifti1Image(
        np.zeros((5, 5, 5, 2), dtype="float32"), img.affine
    )
    bad_components.header.set_intent("vector")
    with pytest.raises(TypeMismatchError):
        DisplacementField.from_image(bad_components)

    too_many = nb.Nifti1Image(
        np.zeros((3, 3, 3, 3, 4), dtype="float32"), img.affine
    )
    too_many.header.set_intent("vector")
    with pytest.raises(UnsupportedConfigurationError):
        DisplacementField.from_image(too_many)


def test_from_image_intent(displacement_image):
    img = displacement_image(3)
    img.header.set_intent("none")
    with pytest.warns(UserWarning, match="Incorrect intent"):
        DisplacementField.from_image(img)


def test_itk_parameters(rng):
    """Components are interleaved, and voxels run in Fortran order."""
    field = rng.normal(size=(2, 3, 4, 3))
    affine = np.diag((2.0, 3.0, 4.0, 1.0))
    affine[:3, 3] = (-1.0, 0.0, 1.0)
    xfm = DisplacementField(field, affine)

    params = xfm.get_parameters()
    assert params.size == field.size
    assert np.allclose(params[:3], field[0, 0, 0])
    assert np.allclose(params[3:6], field[1, 0, 0])

    fixed = xfm.get_fixed_parameters()
    assert fixed.tolist() == [
        2, 3, 4, -1, 0, 1, 2, 3, 4, 1, 0, 0, 0, 1, 0, 0, 0, 1
    ]

    other = DisplacementField.from_parameters(params, fixed, ndim=3)
    assert np.allclose(other.field, field)
    assert other.grid == xfm.grid

    xfm.set_fixed_parameters(fixed)
    fixed[0] = 5
    with pytest.raises(DimensionMismatchError):
        xfm.set_fixed_parameters(fixed)


def test_field_shape_mismatch():
    with pytest.raises(DimensionMismatchError):
        DisplacementField(np.zeros((4, 4, 3)))


@pytest.mark.parametrize("shape", [(3, 4), (2, 3, 4)])
def test_voxel_centers(random_field, shape):
    """At voxel centers, points are displaced by the stored vectors."""
    field, affine = random_field(shape)
    xfm = DisplacementField(field, affine)

    ijk = xfm.grid.ndindex
    xyz = xfm.grid.ras(ijk.T).T
    expected = xyz + np.moveaxis(field, -1, 0).reshape(len(shape), -1).T
    assert np.allclose(xfm.map(xyz), expected)

    clone = DisplacementField.from_parameters(
        xfm.get_parameters(), xfm.get_fixed_parameters(), ndim=len(shape)
    )
    assert np.allclose(clone.map(xyz), expected)
