# emacs: -*- mode: python-mode; py-indent-offset: 4; indent-tabs-mode: nil -*-
# vi: set ft=python sts=4 ts=4 sw=4 et:
### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ##
#
#   See COPYING file distributed along with the NiBabel package for the
#   copyright and license terms.
#
### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ##
"""
Value-semantics geometric transforms for image registration.

.. currentmodule:: sitransforms

.. autosummary::
   :toctree: ../generated

   transform
"""
from . import base, io, linear, manip, nonlinear
from .base import (
    TransformKind,
    TransformError,
    UnsupportedConfigurationError,
    TypeMismatchError,
    InvalidArgumentError,
    InvalidOperationError,
    DimensionMismatchError,
    NotBoundError,
)
from .transform import (
    ExtraTransformsWarning,
    Transform,
    read_transform,
    write_transform,
)
from .specialized import (
    AffineTransform,
    Euler2DTransform,
    Euler3DTransform,
    TranslationTransform,
    VersorRigid3DTransform,
)

try:
    from ._version import __version__
except ModuleNotFoundError:
    __version__ = "0+unknown"

__packagename__ = "sitransforms"
__copyright__ = "Copyright (c) 2021 The sitransforms developers"

__all__ = [
    "base",
    "io",
    "linear",
    "manip",
    "nonlinear",
    "AffineTransform",
    "DimensionMismatchError",
    "Euler2DTransform",
    "Euler3DTransform",
    "ExtraTransformsWarning",
    "InvalidArgumentError",
    "InvalidOperationError",
    "NotBoundError",
    "Transform",
    "TransformError",
    "TransformKind",
    "TranslationTransform",
    "TypeMismatchError",
    "UnsupportedConfigurationError",
    "VersorRigid3DTransform",
    "read_transform",
    "write_transform",
    "__copyright__",
    "__packagename__",
    "__version__",
]
