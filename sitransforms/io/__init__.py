# emacs: -*- mode: python-mode; py-indent-offset: 4; indent-tabs-mode: nil -*-
# vi: set ft=python sts=4 ts=4 sw=4 et:
"""Read and write transforms."""

from pathlib import Path

from sitransforms.io import itk
from sitransforms.io.base import (
    TransformIOError,
    TransformFileError,
    TransformRecord,
)

__all__ = [
    "itk",
    "get_transform_io",
    "guess_format",
    "load",
    "save",
    "TransformFileError",
    "TransformIOError",
    "TransformRecord",
]

_IO_TYPES = {
    "itk": (itk, "ITKTransformFile"),
    "tfm": (itk, "ITKTransformFile"),
    "txt": (itk, "ITKTransformFile"),
    "h5": (itk, "ITKCompositeH5"),
    "hdf5": (itk, "ITKCompositeH5"),
    "mat": (itk, "ITKMatlabTransform"),
}


def get_transform_io(fmt):
    """
    Return the type required by a given format.

    Parameters
    ----------
    fmt : :obj:`str`
        A format identifying string.

    Returns
    -------
    type
        The class object (not an instance) reading and writing the format
        (for example, :obj:`~sitransforms.io.itk.ITKTransformFile`).

    Examples
    --------
    >>> get_transform_io("itk")
    <class 'sitransforms.io.itk.ITKTransformFile'>
    >>> get_transform_io("H5")
    <class 'sitransforms.io.itk.ITKCompositeH5'>
    >>> get_transform_io("fakepackage")  # doctest: +IGNORE_EXCEPTION_DETAIL
    Traceback (most recent call last):
    TypeError: Unsupported transform format <fakepackage>.

    """
    if fmt.lower() not in _IO_TYPES:
        raise TypeError(f"Unsupported transform format <{fmt}>.")

    module, classname = _IO_TYPES[fmt.lower()]
    return getattr(module, classname)


def guess_format(filename):
    """
    Identify the format of a transform file from its extension.

    Examples
    --------
    >>> guess_format("affine.tfm"), guess_format("chain.h5"), guess_format("xfm.mat")
    ('tfm', 'h5', 'mat')
    >>> guess_format("warp.nii.gz")  # doctest: +IGNORE_EXCEPTION_DETAIL
    Traceback (most recent call last):
    TransformFileError:

    """
    ext = Path(filename).suffix.lstrip(".").lower()
    if ext not in _IO_TYPES:
        raise TransformFileError(
            f"Cannot determine the transform format of <{filename}>."
        )
    return ext


def load(filename, fmt=None):
    """Read the list of transform records stored in a file."""
    return list(get_transform_io(fmt or guess_format(filename)).from_filename(filename))


def save(records, filename, fmt=None):
    """Write a list of transform records to a file."""
    writer = get_transform_io(fmt or guess_format(filename))
    writer(records).to_filename(filename)
    return filename
