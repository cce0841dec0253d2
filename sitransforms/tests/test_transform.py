# emacs: -*- mode: python; py-indent-offset: 4; indent-tabs-mode: nil -*-
# vi: set ft=python sts=4 ts=4 sw=4 et:
"""Tests of the transform handle."""
from copy import copy, deepcopy

import pytest
import numpy as np

from ..base import (
    TransformKind,
    UnsupportedConfigurationError,
    InvalidArgumentError,
    InvalidOperationError,
    DimensionMismatchError,
)
from ..linear import Affine
from ..manip import Composite
from ..transform import Transform, _create_native

SUPPORTED = [
    (TransformKind.IDENTITY, 2, "IdentityTransform"),
    (TransformKind.IDENTITY, 3, "IdentityTransform"),
    (TransformKind.TRANSLATION, 2, "TranslationTransform"),
    (TransformKind.TRANSLATION, 3, "TranslationTransform"),
    (TransformKind.SCALE, 2, "ScaleTransform"),
    (TransformKind.SCALE, 3, "ScaleTransform"),
    (TransformKind.SCALE_LOGARITHMIC, 2, "ScaleLogarithmicTransform"),
    (TransformKind.SCALE_LOGARITHMIC, 3, "ScaleLogarithmicTransform"),
    (TransformKind.EULER, 2, "Euler2DTransform"),
    (TransformKind.EULER, 3, "Euler3DTransform"),
    (TransformKind.SIMILARITY, 2, "Similarity2DTransform"),
    (TransformKind.SIMILARITY, 3, "Similarity3DTransform"),
    (TransformKind.QUATERNION_RIGID, 3, "QuaternionRigidTransform"),
    (TransformKind.VERSOR, 3, "VersorTransform"),
    (TransformKind.VERSOR_RIGID, 3, "VersorRigid3DTransform"),
    (TransformKind.AFFINE, 2, "AffineTransform"),
    (TransformKind.AFFINE, 3, "AffineTransform"),
    (TransformKind.COMPOSITE, 2, "CompositeTransform"),
    (TransformKind.COMPOSITE, 3, "CompositeTransform"),
]


@pytest.mark.parametrize("kind,dimension,name", SUPPORTED)
def test_selector(kind, dimension, name, sample_points):
    """Every supported combination builds an identity of the right class."""
    xfm = Transform(dimension, kind)
    assert xfm.get_name() == name
    assert xfm.dimension == xfm.get_dimension() == dimension
    assert xfm.native.reference_count == 1
    assert np.allclose(xfm.map(sample_points[dimension]), sample_points[dimension])
    assert repr(xfm) == f"<Transform[{dimension}D] {name}>"


@pytest.mark.parametrize(
    "kind", [TransformKind.QUATERNION_RIGID, TransformKind.VERSOR, TransformKind.VERSOR_RIGID]
)
def test_selector_3d_only(kind):
    with pytest.raises(UnsupportedConfigurationError):
        Transform(2, kind)


@pytest.mark.parametrize("dimension", [1, 4])
def test_selector_dimension(dimension):
    with pytest.raises(UnsupportedConfigurationError):
        Transform(dimension, TransformKind.AFFINE)


def test_selector_kinds():
    """Kinds may be given by value; unknown kinds are invalid arguments."""
    default = Transform()
    assert default.get_name() == "IdentityTransform"
    assert default.dimension == 3

    assert Transform(3, "versor_rigid").get_name() == "VersorRigid3DTransform"
    with pytest.raises(InvalidArgumentError):
        Transform(3, "bspline")
    with pytest.raises(UnsupportedConfigurationError):
        Transform(3, TransformKind.DISPLACEMENT_FIELD)


def test_selector_composite():
    """Composites are seeded with an identity, and existing ones are reused."""
    xfm = Transform(3, TransformKind.COMPOSITE)
    chain = xfm.native
    assert chain.number_of_transforms == 1
    assert chain[0].name_of_class == "IdentityTransform"
    assert xfm.get_parameters() == ()

    base = Composite(ndim=2, transforms=[Affine(ndim=2), Affine(ndim=2)])
    base.set_all_transforms_to_optimize(True)
    assert _create_native(TransformKind.COMPOSITE, 2, base) is base
    assert base.optimize_flags == (False, True)

    wrapped = Transform(base)
    assert wrapped.native is base
    assert base.reference_count == 1


def test_copy_on_write():
    """Copies share the native until one of them is modified."""
    xfm = Transform(3, TransformKind.TRANSLATION)
    xfm.set_parameters((1.0, 2.0, 3.0))

    other = copy(xfm)
    assert other.native is xfm.native
    assert xfm.native.reference_count == 2

    other.set_parameters((0.0, 0.0, 0.0))
    assert other.native is not xfm.native
    assert xfm.native.reference_count == other.native.reference_count == 1
    assert xfm.get_parameters() == (1.0, 2.0, 3.0)
    assert other.get_parameters() == (0.0, 0.0, 0.0)

    shared = Transform(xfm)
    shared.set_fixed_parameters(())
    assert shared.native is not xfm.native

    # An unshared handle is modified in place
    native = xfm.native
    xfm.set_parameters((4.0, 5.0, 6.0))
    assert xfm.native is native


def test_deepcopy():
    xfm = Transform(2, TransformKind.EULER)
    other = deepcopy(xfm)
    assert other.native is not xfm.native
    assert xfm.native.reference_count == 1
    other.set_parameters((0.5, 1.0, 1.0))
    assert xfm.get_parameters() == (0.0, 0.0, 0.0)


def test_release():
    """Dropping a handle releases its native."""
    xfm = Transform(3, TransformKind.AFFINE)
    native = xfm.native
    other = copy(xfm)
    assert native.reference_count == 2
    del other
    assert native.reference_count == 1


def test_parameters():
    xfm = Transform(3, TransformKind.EULER)
    xfm.set_parameters((0.1, 0.2, 0.3, 1.0, 2.0, 3.0))
    assert xfm.get_parameters() == (0.1, 0.2, 0.3, 1.0, 2.0, 3.0)
    xfm.set_fixed_parameters((1.0, 1.0, 1.0))
    assert xfm.get_fixed_parameters() == (1.0, 1.0, 1.0)

    with pytest.raises(DimensionMismatchError):
        xfm.set_parameters((0.1, 0.2))
    with pytest.raises(DimensionMismatchError):
        xfm.set_fixed_parameters((1.0, 1.0))
    assert xfm.get_parameters() == (0.1, 0.2, 0.3, 1.0, 2.0, 3.0)
    assert xfm.get_fixed_parameters() == (1.0, 1.0, 1.0)


def test_add_transform():
    chain = Transform(2, TransformKind.COMPOSITE)
    shift = Transform(2, TransformKind.TRANSLATION)
    shift.set_parameters((1.0, 2.0))

    assert chain.add_transform(shift) is chain
    assert chain.native.number_of_transforms == 2
    assert chain.native.optimize_flags == (False, True)
    assert chain.get_parameters() == (1.0, 2.0)
    assert chain.transform_point((0.0, 0.0)) == (1.0, 2.0)

    # The composite shares the native of the added transform
    assert chain.native[1] is shift.native
    assert shift.native.reference_count == 2

    with pytest.raises(InvalidOperationError):
        shift.add_transform(chain)
    assert shift.get_parameters() == (1.0, 2.0)
    assert shift.native.number_of_parameters == 2
    with pytest.raises(DimensionMismatchError):
        chain.add_transform(Transform(3, TransformKind.TRANSLATION))
    with pytest.raises(InvalidArgumentError):
        chain.add_transform(Affine(ndim=2))
    assert chain.native.number_of_transforms == 2


def test_add_transform_copy_on_write():
    chain = Transform(3, TransformKind.COMPOSITE)
    other = copy(chain)
    other.add_transform(Transform(3, TransformKind.AFFINE))
    assert chain.native.number_of_transforms == 1
    assert other.native.number_of_transforms == 2


def test_composite_writes_are_private():
    """Writing through a composite never changes handles sharing its children."""
    shift = Transform(2, TransformKind.TRANSLATION)
    shift.set_parameters((1.0, 2.0))
    chain = Transform(2, TransformKind.COMPOSITE).add_transform(shift)

    chain.set_parameters((9.0, 9.0))
    assert shift.get_parameters() == (1.0, 2.0)
    assert chain.get_parameters() == (9.0, 9.0)
    assert chain.native[1] is not shift.native
    assert shift.native.reference_count == 1
    assert chain.native[1].reference_count == 1

    chain.set_fixed_parameters(())
    assert chain.transform_point((0.0, 0.0)) == (9.0, 9.0)


def test_composites_sharing_a_child():
    shift = Transform(2, TransformKind.TRANSLATION)
    first = Transform(2, TransformKind.COMPOSITE).add_transform(shift)
    second = Transform(2, TransformKind.COMPOSITE).add_transform(shift)
    assert first.native[1] is second.native[1]

    first.set_parameters((5.0, 5.0))
    assert first.transform_point((0.0, 0.0)) == (5.0, 5.0)
    assert second.transform_point((0.0, 0.0)) == (0.0, 0.0)
    assert shift.get_parameters() == (0.0, 0.0)

    euler = Transform(3, TransformKind.EULER)
    chain = Transform(3, TransformKind.COMPOSITE).add_transform(euler)
    chain.set_fixed_parameters((1.0, 2.0, 3.0))
    assert euler.get_fixed_parameters() == (0.0, 0.0, 0.0)
    assert chain.get_fixed_parameters() == (1.0, 2.0, 3.0)


def test_add_transform_self():
    """Adding a composite to itself nests a snapshot of it."""
    chain = Transform(3, TransformKind.COMPOSITE)
    before = chain.native
    chain.add_transform(chain)

    assert chain.native is not before
    assert chain.native.number_of_transforms == 2
    assert chain.native[1] is before
    assert before.number_of_transforms == 1


def test_assign():
    xfm = Transform(3, TransformKind.TRANSLATION)
    old = xfm.native
    other = Transform(2, TransformKind.AFFINE)

    assert xfm.assign(other) is xfm
    assert xfm.native is other.native
    assert xfm.dimension == 2
    assert old.reference_count == 0
    assert other.native.reference_count == 2

    native = xfm.native
    xfm.assign(xfm)
    assert xfm.native is native
    assert native.reference_count == 2

    with pytest.raises(InvalidArgumentError):
        xfm.assign(Affine())


def test_transform_point():
    xfm = Transform(3, TransformKind.TRANSLATION)
    xfm.set_parameters((1.0, 1.0, 1.0))
    assert xfm.transform_point((1.0, 2.0, 3.0)) == (2.0, 3.0, 4.0)
    assert xfm((1.0, 2.0, 3.0)).tolist() == [[2.0, 3.0, 4.0]]

    with pytest.raises(DimensionMismatchError):
        xfm.transform_point((1.0, 2.0))
    with pytest.raises(DimensionMismatchError):
        xfm.map(np.zeros((4, 2)))


def test_displacement_field(displacement_image, tmp_path):
    img = displacement_image(3)
    xfm = Transform(img, TransformKind.DISPLACEMENT_FIELD)
    assert xfm.get_name() == "DisplacementFieldTransform"
    assert xfm.transform_point((-2.0, -2.0, 2.0)) == (-3.0, -2.0, 2.0)
    assert len(xfm.get_fixed_parameters()) == 18

    img.to_filename(tmp_path / "field.nii.gz")
    xfm = Transform(str(tmp_path / "field.nii.gz"), "displacement_field")
    assert xfm.dimension == 3

    with pytest.raises(InvalidArgumentError):
        Transform(img, TransformKind.AFFINE)


def test_to_string():
    xfm = Transform(2, TransformKind.COMPOSITE)
    assert str(xfm).startswith("CompositeTransform_double_2_2")
    assert "IdentityTransform_double_2_2" in xfm.to_string()
