"""Read/write transform records."""

import re
from pathlib import Path
import numpy as np


class TransformIOError(IOError):
    """General I/O exception while reading/writing transforms."""


class TransformFileError(TransformIOError):
    """Specific I/O exception when a file does not meet the expected format."""


_TYPE_PATTERN = re.compile(r"^(?P<name>\w+?)_(?P<scalar>double|float)_(?P<ndin>\d+)_(?P<ndout>\d+)$")


class TransformRecord:
    """
    A single transform entry of a file, not yet bound to a native object.

    Examples
    --------
    >>> rec = TransformRecord("Euler3DTransform_double_3_3", [0.1] * 6, [0] * 3)
    >>> rec.name_of_class, rec.input_dimension, rec.output_dimension
    ('Euler3DTransform', 3, 3)
    >>> rec.parameters.tolist()
    [0.1, 0.1, 0.1, 0.1, 0.1, 0.1]

    >>> TransformRecord("NotAnITKType")  # doctest: +IGNORE_EXCEPTION_DETAIL
    Traceback (most recent call last):
    TransformFileError:

    """

    __slots__ = (
        "name_of_class",
        "scalar",
        "input_dimension",
        "output_dimension",
        "parameters",
        "fixed_parameters",
    )

    def __init__(self, transform_type, parameters=None, fixed_parameters=None):
        """Create a record from an ITK type string and its parameters."""
        match = _TYPE_PATTERN.match(str(transform_type).strip())
        if match is None:
            raise TransformFileError(f"Malformed transform type <{transform_type}>.")

        self.name_of_class = match.group("name")
        self.scalar = match.group("scalar")
        self.input_dimension = int(match.group("ndin"))
        self.output_dimension = int(match.group("ndout"))
        self.parameters = _as_vector(parameters)
        self.fixed_parameters = _as_vector(fixed_parameters)

    def __repr__(self):
        """Beautify the python representation."""
        return f"<TransformRecord {self.transform_type}>"

    @property
    def transform_type(self):
        """Get the full ITK type string."""
        return (
            f"{self.name_of_class}_{self.scalar}_"
            f"{self.input_dimension}_{self.output_dimension}"
        )

    @property
    def is_composite(self):
        """Check whether this record opens a composite transform."""
        return self.name_of_class == "CompositeTransform"


class BaseTransformList:
    """A structure for series of transform records."""

    _xforms = None

    def __init__(self, xforms=None):
        """Initialize with (optionally) a list of records."""
        self.xforms = xforms or []

    @property
    def xforms(self):
        """Get the list of internal records."""
        return self._xforms

    @xforms.setter
    def xforms(self, value):
        self._xforms = list(value)

    def __getitem__(self, idx):
        """Allow indexed access to the records."""
        return self._xforms[idx]

    def __len__(self):
        """Enable using len()."""
        return len(self._xforms)

    def __iter__(self):
        """Enable iterating over the records."""
        return iter(self._xforms)

    def to_filename(self, filename):
        """Store the records to a file with the appropriate format."""
        raise NotImplementedError

    @classmethod
    def from_filename(cls, filename):
        """Read the records from a file given its path."""
        raise NotImplementedError


def _as_vector(values):
    if values is None:
        return np.zeros((0,))
    return np.array(values, dtype="float64").reshape(-1)


def _ensure_exists(filename):
    if not Path(filename).exists():
        raise FileNotFoundError(f"[Errno 2] No such file or directory: '{filename}'")
