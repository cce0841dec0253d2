# emacs: -*- mode: python-mode; py-indent-offset: 4; indent-tabs-mode: nil -*-
# vi: set ft=python sts=4 ts=4 sw=4 et:
### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ##
#
#   See COPYING file distributed along with the NiBabel package for the
#   copyright and license terms.
#
### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ##
"""Linear transforms."""

import numpy as np

from nibabel.affines import from_matvec
from nibabel.quaternions import quat2mat

from sitransforms.base import (
    NativeTransform,
    UnsupportedConfigurationError,
    _as_homogeneous,
    _check_length,
    _format_vector,
)


def _as_tuple(values):
    return tuple(float(v) for v in np.asanyarray(values).reshape(-1))


class Identity(NativeTransform):
    """The identity transform, without parameters."""

    __slots__ = ()

    name_of_class = "IdentityTransform"


class Translation(NativeTransform):
    """A pure translation, parameterized by its offset vector."""

    __slots__ = ("_offset",)

    name_of_class = "TranslationTransform"

    def __init__(self, ndim=3):
        """
        Initialize a zero translation.

        Examples
        --------
        >>> xfm = Translation(ndim=2)
        >>> xfm.set_parameters((1, -1))
        >>> xfm.map([(0.0, 0.0), (1.0, 1.0)]).tolist()
        [[1.0, -1.0], [2.0, 0.0]]

        """
        super().__init__(ndim)
        self._offset = np.zeros((ndim,))

    def get_parameters(self):
        return self._offset.copy()

    def _set_parameters(self, parameters):
        self._offset = parameters

    def get_offset(self):
        """Get the translation vector."""
        return _as_tuple(self._offset)

    def set_offset(self, offset):
        """Set the translation vector."""
        self._offset = _check_length(offset, self._ndim, "offset components")

    def map(self, x):
        return np.atleast_2d(np.array(x, dtype="float64")) + self._offset


class MatrixOffsetTransform(NativeTransform):
    r"""
    Base for transforms represented by a matrix, a center and a translation.

    Points are mapped as :math:`y = M (x - c) + c + t`.
    Subclasses define how :math:`M` is computed from their parameters.

    """

    __slots__ = ("_center", "_translation")

    def __init__(self, ndim=3):
        """Initialize with a zero center and translation."""
        super().__init__(ndim)
        self._center = np.zeros((ndim,))
        self._translation = np.zeros((ndim,))

    @property
    def matrix(self):
        """Get the linear part of this transform."""
        return self._compute_matrix()

    @property
    def offset(self):
        """Get the offset, after folding the center in."""
        return self._translation + self._center - self.matrix.dot(self._center)

    @property
    def affine(self):
        """Get the homogeneous matrix of this transform."""
        return from_matvec(self.matrix, self.offset)

    def _compute_matrix(self):
        return np.eye(self._ndim)

    def get_fixed_parameters(self):
        return self._center.copy()

    def _set_fixed_parameters(self, parameters):
        self._center = parameters

    def get_center(self):
        """Get the center of rotation."""
        return _as_tuple(self._center)

    def set_center(self, center):
        """Set the center of rotation."""
        self._center = _check_length(center, self._ndim, "center components")

    def get_translation(self):
        """Get the translation vector."""
        return _as_tuple(self._translation)

    def set_translation(self, translation):
        """Set the translation vector."""
        self._translation = _check_length(
            translation, self._ndim, "translation components"
        )

    def map(self, x):
        affine = self.affine
        coords = _as_homogeneous(x, dim=self._ndim).T
        return affine.dot(coords).T[..., :-1]

    def _describe(self):
        return super()._describe() + [
            ("Matrix", self.matrix.round(6).tolist()),
            ("Center", _format_vector(self._center)),
            ("Translation", _format_vector(self._translation)),
        ]


class Scale(MatrixOffsetTransform):
    """Anisotropic scaling about a center."""

    __slots__ = ("_scale",)

    name_of_class = "ScaleTransform"

    def __init__(self, ndim=3):
        super().__init__(ndim)
        self._scale = np.ones((ndim,))

    def _compute_matrix(self):
        return np.diag(self._scale)

    def get_parameters(self):
        return self._scale.copy()

    def _set_parameters(self, parameters):
        self._scale = parameters

    def get_scale(self):
        """Get the scaling factors."""
        return _as_tuple(self._scale)


class ScaleLogarithmic(Scale):
    """Scaling parameterized by the logarithm of the factors."""

    __slots__ = ()

    name_of_class = "ScaleLogarithmicTransform"

    def get_parameters(self):
        return np.log(self._scale)

    def _set_parameters(self, parameters):
        self._scale = np.exp(parameters)


class Rigid2D(MatrixOffsetTransform):
    """Rigid 2D transform: one angle and a translation."""

    __slots__ = ("_angle",)

    name_of_class = "Rigid2DTransform"

    def __init__(self, ndim=2):
        if ndim != 2:
            raise UnsupportedConfigurationError(
                f"A {self.name_of_class} only works for 2D!"
            )
        super().__init__(ndim)
        self._angle = 0.0

    def _compute_matrix(self):
        c, s = np.cos(self._angle), np.sin(self._angle)
        return np.array([[c, -s], [s, c]])

    def get_parameters(self):
        return np.hstack(((self._angle,), self._translation))

    def _set_parameters(self, parameters):
        self._angle = float(parameters[0])
        self._translation = parameters[1:].copy()

    def get_angle(self):
        """Get the rotation angle, in radians."""
        return self._angle

    def set_angle(self, angle):
        """Set the rotation angle, in radians."""
        self._angle = float(angle)


class Euler2D(Rigid2D):
    """Rigid 2D transform, as parameterized by ITK's Euler 2D transform."""

    __slots__ = ()

    name_of_class = "Euler2DTransform"


class Similarity2D(Rigid2D):
    """Rigid 2D transform plus an isotropic scaling."""

    __slots__ = ("_scale",)

    name_of_class = "Similarity2DTransform"

    def __init__(self, ndim=2):
        super().__init__(ndim)
        self._scale = 1.0

    def _compute_matrix(self):
        return self._scale * super()._compute_matrix()

    def get_parameters(self):
        return np.hstack(((self._scale, self._angle), self._translation))

    def _set_parameters(self, parameters):
        self._scale = float(parameters[0])
        super()._set_parameters(parameters[1:])

    def get_scale(self):
        """Get the isotropic scaling factor."""
        return self._scale

    def set_scale(self, scale):
        """Set the isotropic scaling factor."""
        self._scale = float(scale)


class Euler3D(MatrixOffsetTransform):
    r"""
    Rigid 3D transform parameterized by three Euler angles and a translation.

    The rotation matrix is :math:`R_z R_x R_y`, or :math:`R_z R_y R_x` when
    the *compute ZYX* flag is set.

    """

    __slots__ = ("_angles", "_compute_zyx")

    name_of_class = "Euler3DTransform"

    def __init__(self, ndim=3):
        if ndim != 3:
            raise UnsupportedConfigurationError(
                f"A {self.name_of_class} only works for 3D!"
            )
        super().__init__(ndim)
        self._angles = np.zeros((3,))
        self._compute_zyx = False

    def _compute_matrix(self):
        cx, cy, cz = np.cos(self._angles)
        sx, sy, sz = np.sin(self._angles)
        rot_x = np.array([[1, 0, 0], [0, cx, -sx], [0, sx, cx]])
        rot_y = np.array([[cy, 0, sy], [0, 1, 0], [-sy, 0, cy]])
        rot_z = np.array([[cz, -sz, 0], [sz, cz, 0], [0, 0, 1]])
        if self._compute_zyx:
            return rot_z.dot(rot_y).dot(rot_x)
        return rot_z.dot(rot_x).dot(rot_y)

    def get_parameters(self):
        return np.hstack((self._angles, self._translation))

    def _set_parameters(self, parameters):
        self._angles = parameters[:3].copy()
        self._translation = parameters[3:].copy()

    def set_rotation(self, angle_x, angle_y, angle_z):
        """Set the three rotation angles, in radians."""
        self._angles = np.array((angle_x, angle_y, angle_z), dtype="float64")

    def get_angle_x(self):
        """Get the rotation about the X axis."""
        return float(self._angles[0])

    def get_angle_y(self):
        """Get the rotation about the Y axis."""
        return float(self._angles[1])

    def get_angle_z(self):
        """Get the rotation about the Z axis."""
        return float(self._angles[2])

    def set_compute_zyx(self, flag):
        """Select the Z-Y-X order of rotations."""
        self._compute_zyx = bool(flag)

    def get_compute_zyx(self):
        """Whether the Z-Y-X order of rotations is used."""
        return self._compute_zyx


class Versor(MatrixOffsetTransform):
    """
    Rotation about a center, parameterized by a versor.

    The versor is the vector part of a unit quaternion; its scalar part is
    derived so that the quaternion has unit norm.

    """

    __slots__ = ("_versor",)

    name_of_class = "VersorTransform"

    def __init__(self, ndim=3):
        if ndim != 3:
            raise UnsupportedConfigurationError(
                f"A {self.name_of_class} only works for 3D!"
            )
        super().__init__(ndim)
        self._versor = np.zeros((3,))

    def _compute_matrix(self):
        return quat2mat(self.quaternion)

    @property
    def quaternion(self):
        """Get the unit quaternion as ``(w, x, y, z)``."""
        w = np.sqrt(max(0.0, 1.0 - np.sum(self._versor**2)))
        return np.hstack(((w,), self._versor))

    def get_parameters(self):
        return self._versor.copy()

    def _set_parameters(self, parameters):
        self.set_versor(parameters[:3])

    def get_versor(self):
        """Get the vector part of the versor."""
        return _as_tuple(self._versor)

    def set_versor(self, versor):
        """Set the vector part of the versor; it is shrunk when not below 1."""
        versor = _check_length(versor, 3, "versor components")
        norm = np.linalg.norm(versor)
        epsilon = 1e-10
        if norm >= 1.0 - epsilon:
            versor = versor / (norm + epsilon * norm)
        self._versor = versor

    def set_rotation(self, axis, angle):
        """Set the rotation from an axis and an angle, in radians."""
        axis = _check_length(axis, 3, "axis components")
        self._versor = axis / np.linalg.norm(axis) * np.sin(0.5 * angle)


class VersorRigid3D(Versor):
    """Rotation parameterized by a versor, plus a translation."""

    __slots__ = ()

    name_of_class = "VersorRigid3DTransform"

    def get_parameters(self):
        return np.hstack((self._versor, self._translation))

    def _set_parameters(self, parameters):
        self.set_versor(parameters[:3])
        self._translation = parameters[3:6].copy()


class Similarity3D(VersorRigid3D):
    """Versor rigid transform plus an isotropic scaling."""

    __slots__ = ("_scale",)

    name_of_class = "Similarity3DTransform"

    def __init__(self, ndim=3):
        super().__init__(ndim)
        self._scale = 1.0

    def _compute_matrix(self):
        return self._scale * super()._compute_matrix()

    def get_parameters(self):
        return np.hstack((super().get_parameters(), (self._scale,)))

    def _set_parameters(self, parameters):
        super()._set_parameters(parameters[:6])
        self._scale = float(parameters[6])

    def get_scale(self):
        """Get the isotropic scaling factor."""
        return self._scale


class QuaternionRigid(MatrixOffsetTransform):
    """Rotation given by a quaternion ``(x, y, z, w)``, plus a translation."""

    __slots__ = ("_quaternion",)

    name_of_class = "QuaternionRigidTransform"

    def __init__(self, ndim=3):
        if ndim != 3:
            raise UnsupportedConfigurationError(
                f"A {self.name_of_class} only works for 3D!"
            )
        super().__init__(ndim)
        self._quaternion = np.array((0.0, 0.0, 0.0, 1.0))

    def _compute_matrix(self):
        x, y, z, w = self._quaternion
        return quat2mat((w, x, y, z))

    def get_parameters(self):
        return np.hstack((self._quaternion, self._translation))

    def _set_parameters(self, parameters):
        self._quaternion = parameters[:4].copy()
        self._translation = parameters[4:].copy()


class Affine(MatrixOffsetTransform):
    """Represents general linear transforms: a matrix plus a translation."""

    __slots__ = ("_matrix",)

    name_of_class = "AffineTransform"

    def __init__(self, ndim=3):
        """
        Initialize an identity affine.

        Examples
        --------
        >>> xfm = Affine(ndim=2)
        >>> xfm.set_parameters((2, 0, 0, 2, 1, 1))
        >>> xfm.map((1.0, 1.0)).tolist()
        [[3.0, 3.0]]

        """
        super().__init__(ndim)
        self._matrix = np.eye(ndim)

    def _compute_matrix(self):
        return self._matrix.copy()

    def get_parameters(self):
        return np.hstack((self._matrix.reshape(-1), self._translation))

    def _set_parameters(self, parameters):
        nmat = self._ndim * self._ndim
        self._matrix = parameters[:nmat].reshape((self._ndim, self._ndim))
        self._translation = parameters[nmat:].copy()

    def get_matrix(self):
        """Get the linear part, flattened in row-major order."""
        return _as_tuple(self._matrix)

    def set_matrix(self, matrix):
        """Set the linear part from a flattened, row-major sequence."""
        self._matrix = _check_length(
            matrix, self._ndim * self._ndim, "matrix elements"
        ).reshape((self._ndim, self._ndim))
