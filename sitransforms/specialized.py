# emacs: -*- mode: python-mode; py-indent-offset: 4; indent-tabs-mode: nil -*-
# vi: set ft=python sts=4 ts=4 sw=4 et:
### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ##
#
#   See COPYING file distributed along with the NiBabel package for the
#   copyright and license terms.
#
### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ##
"""
Transforms with named accessors.

Each class below is a :class:`~sitransforms.transform.Transform` whose
named accessors are bound to the methods of one specific native transform.
The bindings are refreshed every time the handle's native changes, and
cleared when the native is not of the expected type.
"""

from sitransforms.base import NotBoundError, TransformKind
from sitransforms.linear import Affine, Euler2D, Euler3D, Translation, VersorRigid3D
from sitransforms.transform import Transform


class _BoundTransform(Transform):
    """Base for handles exposing accessors bound to their native transform."""

    __slots__ = ("_bindings",)

    _native_type = None
    _accessors = ()

    def __init__(self, *args, **kwargs):
        self._bindings = {}
        super().__init__(*args, **kwargs)

    def _set_native(self, native):
        super()._set_native(native)
        self._bind(native)

    def _bind(self, native):
        """Capture the accessors of the native, or clear them if unrecognized."""
        if isinstance(native, self._native_type):
            self._bindings = {name: getattr(native, name) for name in self._accessors}
        else:
            self._bindings = {}

    @property
    def is_bound(self):
        """Whether the named accessors are usable."""
        return bool(self._bindings)

    def _bound(self, name):
        try:
            return self._bindings[name]
        except KeyError:
            raise NotBoundError(
                f"{self.__class__.__name__}.{name}() is not bound: the transform "
                f"holds a {self.get_name()}, not a {self._native_type.name_of_class}."
            ) from None

    def _bound_for_write(self, name):
        self._make_unique_for_write()
        self._bind(self._native)
        return self._bound(name)


class Euler3DTransform(_BoundTransform):
    """
    A 3D rigid transform accessed through Euler angles.

    Examples
    --------
    >>> xfm = Euler3DTransform(center=(1, 1, 1), translation=(0, 0, 2))
    >>> xfm.get_center(), xfm.get_translation()
    ((1.0, 1.0, 1.0), (0.0, 0.0, 2.0))
    >>> xfm.set_rotation(0.0, 0.0, 0.5).get_angle_z()
    0.5

    """

    __slots__ = ()

    _native_type = Euler3D
    _accessors = (
        "set_center",
        "get_center",
        "set_translation",
        "get_translation",
        "set_rotation",
        "get_angle_x",
        "get_angle_y",
        "get_angle_z",
        "set_compute_zyx",
        "get_compute_zyx",
    )

    def __init__(self, center=None, angles=None, translation=None):
        """
        Create an Euler 3D transform, or share the native of another handle.

        Parameters
        ----------
        center : :obj:`tuple` or :obj:`~sitransforms.transform.Transform`
            The fixed center of rotation.
            If a transform is given, the new handle shares its native.
        angles : :obj:`tuple`
            The rotations about the X, Y and Z axes, in radians.
        translation : :obj:`tuple`
            The translation vector.

        """
        if isinstance(center, Transform):
            super().__init__(center)
            return

        super().__init__(3, TransformKind.EULER)
        if center is not None:
            self.set_center(center)
        if angles is not None:
            self.set_rotation(*angles)
        if translation is not None:
            self.set_translation(translation)

    def set_center(self, center):
        """Set the fixed center of rotation."""
        self._bound_for_write("set_center")(center)
        return self

    def get_center(self):
        """Get the fixed center of rotation."""
        return self._bound("get_center")()

    def set_translation(self, translation):
        """Set the translation vector."""
        self._bound_for_write("set_translation")(translation)
        return self

    def get_translation(self):
        """Get the translation vector."""
        return self._bound("get_translation")()

    def set_rotation(self, angle_x, angle_y, angle_z):
        """Set the rotations about the X, Y and Z axes, in radians."""
        self._bound_for_write("set_rotation")(angle_x, angle_y, angle_z)
        return self

    def get_angle_x(self):
        """Get the rotation about the X axis."""
        return self._bound("get_angle_x")()

    def get_angle_y(self):
        """Get the rotation about the Y axis."""
        return self._bound("get_angle_y")()

    def get_angle_z(self):
        """Get the rotation about the Z axis."""
        return self._bound("get_angle_z")()

    def set_compute_zyx(self, flag):
        """Select between Z-X-Y (default) and Z-Y-X orders of rotation."""
        self._bound_for_write("set_compute_zyx")(flag)
        return self

    def get_compute_zyx(self):
        """Whether the Z-Y-X order of rotation is selected."""
        return self._bound("get_compute_zyx")()


class Euler2DTransform(_BoundTransform):
    """A 2D rigid transform: an angle and a translation about a center."""

    __slots__ = ()

    _native_type = Euler2D
    _accessors = (
        "set_center",
        "get_center",
        "set_translation",
        "get_translation",
        "set_angle",
        "get_angle",
    )

    def __init__(self, center=None, angle=None, translation=None):
        if isinstance(center, Transform):
            super().__init__(center)
            return

        super().__init__(2, TransformKind.EULER)
        if center is not None:
            self.set_center(center)
        if angle is not None:
            self.set_angle(angle)
        if translation is not None:
            self.set_translation(translation)

    def set_center(self, center):
        self._bound_for_write("set_center")(center)
        return self

    def get_center(self):
        return self._bound("get_center")()

    def set_translation(self, translation):
        self._bound_for_write("set_translation")(translation)
        return self

    def get_translation(self):
        return self._bound("get_translation")()

    def set_angle(self, angle):
        """Set the rotation angle, in radians."""
        self._bound_for_write("set_angle")(angle)
        return self

    def get_angle(self):
        """Get the rotation angle, in radians."""
        return self._bound("get_angle")()


class VersorRigid3DTransform(_BoundTransform):
    """
    A 3D rigid transform whose rotation is represented by a versor.

    Example
    -------
    >>> xfm = VersorRigid3DTransform().set_rotation((0, 0, 1), np.pi / 2)
    >>> np.allclose(xfm.transform_point((1.0, 0.0, 0.0)), (0.0, 1.0, 0.0))
    True

    """

    __slots__ = ()

    _native_type = VersorRigid3D
    _accessors = (
        "set_center",
        "get_center",
        "set_translation",
        "get_translation",
        "set_versor",
        "get_versor",
        "set_rotation",
    )

    def __init__(self, center=None, versor=None, translation=None):
        if isinstance(center, Transform):
            super().__init__(center)
            return

        super().__init__(3, TransformKind.VERSOR_RIGID)
        if center is not None:
            self.set_center(center)
        if versor is not None:
            self.set_versor(versor)
        if translation is not None:
            self.set_translation(translation)

    def set_center(self, center):
        self._bound_for_write("set_center")(center)
        return self

    def get_center(self):
        return self._bound("get_center")()

    def set_translation(self, translation):
        self._bound_for_write("set_translation")(translation)
        return self

    def get_translation(self):
        return self._bound("get_translation")()

    def set_versor(self, versor):
        """Set the rotation from the vector part of a versor."""
        self._bound_for_write("set_versor")(versor)
        return self

    def get_versor(self):
        """Get the vector part of the rotation versor."""
        return self._bound("get_versor")()

    def set_rotation(self, axis, angle):
        """Set the rotation from an axis and an angle, in radians."""
        self._bound_for_write("set_rotation")(axis, angle)
        return self


class TranslationTransform(_BoundTransform):
    """A pure translation, accessed through its offset."""

    __slots__ = ()

    _native_type = Translation
    _accessors = ("set_offset", "get_offset")

    def __init__(self, dimension=3, offset=None):
        if isinstance(dimension, Transform):
            super().__init__(dimension)
            return

        super().__init__(dimension, TransformKind.TRANSLATION)
        if offset is not None:
            self.set_offset(offset)

    def set_offset(self, offset):
        """Set the translation vector."""
        self._bound_for_write("set_offset")(offset)
        return self

    def get_offset(self):
        """Get the translation vector."""
        return self._bound("get_offset")()


class AffineTransform(_BoundTransform):
    """
    A general linear transform, accessed through its matrix and translation.

    Example
    -------
    >>> xfm = AffineTransform(2, matrix=(0, -1, 1, 0), translation=(1, 0))
    >>> xfm.get_parameters()
    (0.0, -1.0, 1.0, 0.0, 1.0, 0.0)
    >>> xfm.transform_point((1.0, 0.0))
    (1.0, 1.0)

    """

    __slots__ = ()

    _native_type = Affine
    _accessors = (
        "set_center",
        "get_center",
        "set_translation",
        "get_translation",
        "set_matrix",
        "get_matrix",
    )

    def __init__(self, dimension=3, matrix=None, translation=None, center=None):
        if isinstance(dimension, Transform):
            super().__init__(dimension)
            return

        super().__init__(dimension, TransformKind.AFFINE)
        if center is not None:
            self.set_center(center)
        if matrix is not None:
            self.set_matrix(matrix)
        if translation is not None:
            self.set_translation(translation)

    def set_center(self, center):
        self._bound_for_write("set_center")(center)
        return self

    def get_center(self):
        return self._bound("get_center")()

    def set_translation(self, translation):
        self._bound_for_write("set_translation")(translation)
        return self

    def get_translation(self):
        return self._bound("get_translation")()

    def set_matrix(self, matrix):
        """Set the linear part, flattened in row-major order."""
        self._bound_for_write("set_matrix")(matrix)
        return self

    def get_matrix(self):
        """Get the linear part, flattened in row-major order."""
        return self._bound("get_matrix")()
