# emacs: -*- mode: python; py-indent-offset: 4; indent-tabs-mode: nil -*-
# vi: set ft=python sts=4 ts=4 sw=4 et:
"""Fixtures shared by the test suites."""
import numpy as np
import pytest

RNG_SEED = 20211011


@pytest.fixture
def rng():
    """Return a fixed-seed random number generator."""
    return np.random.default_rng(RNG_SEED)


@pytest.fixture
def random_field(rng):
    """Generate a random displacement field with an oblique, scaled grid."""

    def _field(shape=(2, 3, 4)):
        ndim = len(shape)
        affine = np.eye(ndim + 1)
        affine[:ndim, :ndim] = np.diag(rng.uniform(0.5, 2.0, size=ndim))
        affine[:ndim, -1] = rng.normal(size=ndim)
        return rng.normal(size=(*shape, ndim)), affine

    return _field
