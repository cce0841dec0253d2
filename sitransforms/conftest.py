"""py.test configuration."""
import os
from pathlib import Path
import numpy as np
import nibabel as nb
import pytest
import tempfile


@pytest.fixture(autouse=True)
def doctest_autoimport(doctest_namespace):
    """Make available some fundamental modules to doctest modules."""
    doctest_namespace["np"] = np
    doctest_namespace["nb"] = nb
    doctest_namespace["os"] = os
    doctest_namespace["Path"] = Path

    tmpdir = tempfile.TemporaryDirectory()
    doctest_namespace["tmpdir"] = tmpdir.name
    yield
    tmpdir.cleanup()


@pytest.fixture
def displacement_image():
    """Generate RAS+ displacement images of the requested dimension."""

    def _image(ndim=3, shape=None, delta=(1.0, 0.0, 0.0), affine=None):
        shape = shape or (5,) * ndim
        data = np.zeros((*shape, ndim), dtype="float32")
        data[...] = delta[:ndim]
        img = nb.Nifti1Image(data, np.eye(4) if affine is None else affine)
        img.header.set_intent("vector")
        return img

    return _image


@pytest.fixture
def sample_points():
    """Return a representative set of points per dimension."""
    return {
        2: np.array([[0.0, 0.0], [1.0, -2.0], [-3.5, 4.25], [10.0, 0.5]]),
        3: np.array(
            [
                [0.0, 0.0, 0.0],
                [1.0, 2.0, 3.0],
                [10.0, -10.0, 5.0],
                [-5.0, 7.0, -2.0],
                [12.0, 0.0, -11.0],
            ]
        ),
    }
