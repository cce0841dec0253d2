"""Read/write ITK transforms."""
import numpy as np
from scipy.io import loadmat as _read_mat, savemat as _save_mat
from h5py import File as H5File

from sitransforms.base import DimensionMismatchError, UnsupportedConfigurationError
from sitransforms.linear import (
    Identity,
    Translation,
    Scale,
    ScaleLogarithmic,
    Rigid2D,
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
from sitransforms.io.base import (
    BaseTransformList,
    TransformFileError,
    TransformIOError,
    TransformRecord,
    _ensure_exists,
)

TRANSFORM_FACTORY = {
    "IdentityTransform": Identity,
    "TranslationTransform": Translation,
    "ScaleTransform": Scale,
    "ScaleLogarithmicTransform": ScaleLogarithmic,
    "Rigid2DTransform": Rigid2D,
    "Euler2DTransform": Euler2D,
    "Euler3DTransform": Euler3D,
    "Similarity2DTransform": Similarity2D,
    "Similarity3DTransform": Similarity3D,
    "QuaternionRigidTransform": QuaternionRigid,
    "VersorTransform": Versor,
    "VersorRigid3DTransform": VersorRigid3D,
    "AffineTransform": Affine,
    "MatrixOffsetTransformBase": Affine,
    "CompositeTransform": Composite,
    "DisplacementFieldTransform": DisplacementField,
}
"""Map ITK class names onto the native transform types."""


def to_native(record):
    """
    Build a native transform from a file record.

    Composite records are returned empty, their children being the
    records that follow them in the file.

    Examples
    --------
    >>> rec = TransformRecord("TranslationTransform_double_2_2", [1, 2], [])
    >>> to_native(rec).map((0.0, 0.0)).tolist()
    [[1.0, 2.0]]

    """
    try:
        klass = TRANSFORM_FACTORY[record.name_of_class]
    except KeyError:
        raise TransformFileError(
            f"Unsupported transform type {record.transform_type}"
        ) from None

    if record.input_dimension != record.output_dimension:
        raise UnsupportedConfigurationError(
            f"Unable to transform with InputSpaceDimension: {record.input_dimension} "
            f"and OutputSpaceDimension: {record.output_dimension}. "
            f"Transform of type {record.name_of_class} is not supported."
        )

    ndim = record.input_dimension
    if klass is Composite:
        return Composite(ndim=ndim)

    try:
        return _build_native(klass, ndim, record)
    except DimensionMismatchError as exc:
        raise TransformFileError(
            f"Malformed {record.transform_type} entry: {exc}"
        ) from exc


def _build_native(klass, ndim, record):
    if klass is DisplacementField:
        return DisplacementField.from_parameters(
            record.parameters, record.fixed_parameters, ndim=ndim
        )

    xfm = klass(ndim=ndim)
    fixed = record.fixed_parameters
    if klass is Euler3D and fixed.size == 4:
        # Newer ITK appends the ComputeZYX flag to the center
        xfm.set_compute_zyx(fixed[3] != 0)
        fixed = fixed[:3]

    xfm.set_fixed_parameters(fixed)
    xfm.set_parameters(record.parameters)
    return xfm


def from_native(xfm):
    """
    List the records representing one native transform.

    Composites produce a leading, parameter-less record followed by the
    records of their (flattened) queue.

    """
    if isinstance(xfm, Composite):
        return [TransformRecord(xfm.transform_type)] + [
            _as_record(child) for child in xfm.flatten()
        ]
    return [_as_record(xfm)]


def _as_record(xfm):
    fixed = xfm.get_fixed_parameters()
    if isinstance(xfm, Euler3D) and xfm.get_compute_zyx():
        # ITK >= 5 appends the ComputeZYX flag to the center
        fixed = np.hstack((fixed, (1.0,)))
    return TransformRecord(xfm.transform_type, xfm.get_parameters(), fixed)


class ITKTransformFile(BaseTransformList):
    """A string-based structure for ITK's Insight Transform File V1.0."""

    def to_string(self):
        """
        Convert to a string directly writeable to file.

        Example
        -------
        >>> rec = TransformRecord("TranslationTransform_double_2_2", [1, 2], [])
        >>> print(ITKTransformFile([rec]).to_string())
        #Insight Transform File V1.0
        #Transform 0
        Transform: TranslationTransform_double_2_2
        Parameters: 1.0 2.0
        FixedParameters:
        <BLANKLINE>

        """
        lines = ["#Insight Transform File V1.0"]
        for i, rec in enumerate(self.xforms):
            lines += [f"#Transform {i}", f"Transform: {rec.transform_type}"]
            if rec.is_composite:
                continue
            lines += [
                f"Parameters: {_format_values(rec.parameters)}".rstrip(),
                f"FixedParameters: {_format_values(rec.fixed_parameters)}".rstrip(),
            ]
        return "\n".join(lines) + "\n"

    def to_filename(self, filename):
        """Store this transform to a file with the appropriate format."""
        with open(str(filename), "w") as f:
            f.write(self.to_string())

    @classmethod
    def from_string(cls, string):
        """Read the struct from string."""
        lines = [line.strip() for line in string.splitlines() if line.strip()]

        if (
            not lines
            or not lines[0].startswith("#")
            or "Insight Transform File V1.0" not in lines[0]
        ):
            raise TransformFileError("Unknown Insight Transform File format.")

        blocks = []
        for line in lines[1:]:
            if line.startswith("#Transform"):
                blocks.append({})
                continue
            if line.startswith("#"):
                continue
            if not blocks or ":" not in line:
                raise TransformFileError(f"Unexpected line <{line}>.")
            key, value = line.split(":", 1)
            blocks[-1][key.strip()] = value.strip()

        _self = cls()
        for block in blocks:
            if "Transform" not in block:
                raise TransformFileError("Transform entry without a type.")
            _self.xforms.append(
                TransformRecord(
                    block["Transform"],
                    _parse_values(block.get("Parameters", "")),
                    _parse_values(block.get("FixedParameters", "")),
                )
            )
        return _self

    @classmethod
    def from_filename(cls, filename):
        """Read the struct from a file given its path."""
        _ensure_exists(filename)
        with open(str(filename)) as f:
            string = f.read()
        return cls.from_string(string)


class ITKCompositeH5(BaseTransformList):
    """A data structure for ITK's HDF5 files."""

    def to_filename(self, filename):
        """Store the records in ITK's HDF5 layout."""
        with H5File(str(filename), "w") as f:
            group = f.create_group("TransformGroup")
            for i, rec in enumerate(self.xforms):
                xfm = group.create_group(str(i))
                xfm.create_dataset(
                    "TransformType", data=[rec.transform_type.encode()]
                )
                if rec.is_composite:
                    continue
                xfm.create_dataset("TransformParameters", data=rec.parameters)
                xfm.create_dataset(
                    "TransformFixedParameters", data=rec.fixed_parameters
                )

    @classmethod
    def from_filename(cls, filename):
        """Read the struct from a file given its path."""
        _ensure_exists(filename)
        with H5File(str(filename), "r") as f:
            return cls.from_h5obj(f)

    @classmethod
    def from_h5obj(cls, fileobj):
        """Read the struct from a file object."""
        try:
            h5group = fileobj["TransformGroup"]
        except KeyError:
            raise TransformFileError("File does not contain a TransformGroup.") from None

        # Some ITK versions misspelled the datasets' names
        typo_fallback = "Transform"
        if any("TranformParameters" in xfm for xfm in h5group.values()):
            typo_fallback = "Tranform"

        _self = cls()
        for key in sorted(h5group.keys(), key=int):
            xfm = h5group[key]
            xfm_type = xfm["TransformType"][0]
            if isinstance(xfm_type, bytes):
                xfm_type = xfm_type.decode()

            params = xfm.get(f"{typo_fallback}Parameters")
            fixed = xfm.get(f"{typo_fallback}FixedParameters")
            _self.xforms.append(
                TransformRecord(
                    xfm_type,
                    None if params is None else np.asanyarray(params),
                    None if fixed is None else np.asanyarray(fixed),
                )
            )
        return _self


class ITKMatlabTransform(BaseTransformList):
    """ITK's MATLAB v4 files, which hold one single transform."""

    def to_filename(self, filename):
        """Store the transform as a MATLAB v4 file."""
        if len(self.xforms) != 1 or self.xforms[0].is_composite:
            raise TransformFileError(
                "Only single, non-composite transforms can be stored as .mat files."
            )
        rec = self.xforms[0]
        mdict = {
            rec.transform_type: rec.parameters[..., np.newaxis],
            "fixed": rec.fixed_parameters[..., np.newaxis],
        }
        _save_mat(str(filename), mdict, format="4")

    @classmethod
    def from_filename(cls, filename):
        """Read the struct from a file given its path."""
        _ensure_exists(filename)
        with open(str(filename), "rb") as fileobj:
            return cls.from_binary(fileobj)

    @classmethod
    def from_binary(cls, byte_stream):
        """Read the struct from a matlab binary file."""
        try:
            mdict = _read_mat(byte_stream)
        except ValueError as exc:
            raise TransformFileError(f"Could not read MATLAB file: {exc}") from exc
        return cls.from_matlab_dict(mdict)

    @classmethod
    def from_matlab_dict(cls, mdict):
        """Read the struct from a matlab dictionary."""
        names = [
            key for key in mdict if not key.startswith("__") and key != "fixed"
        ]
        if len(names) != 1:
            raise TransformIOError(
                f"Expected one transform in MATLAB file, found {len(names)}."
            )
        return cls(
            [
                TransformRecord(
                    names[0],
                    np.asanyarray(mdict[names[0]]).flatten(),
                    np.asanyarray(mdict.get("fixed", [])).flatten(),
                )
            ]
        )


def _format_values(values):
    return " ".join(repr(float(v)) for v in values)


def _parse_values(string):
    try:
        return np.array(string.split(), dtype="float64")
    except ValueError as exc:
        raise TransformFileError(f"Could not parse values <{string}>.") from exc
