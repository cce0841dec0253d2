# emacs: -*- mode: python-mode; py-indent-offset: 4; indent-tabs-mode: nil -*-
# vi: set ft=python sts=4 ts=4 sw=4 et:
### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ##
#
#   See COPYING file distributed along with the NiBabel package for the
#   copyright and license terms.
#
### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ### ##
"""Composition of transforms."""

import numpy as np

from sitransforms.base import (
    NativeTransform,
    DimensionMismatchError,
    TransformError,
    _check_length,
)


class Composite(NativeTransform):
    """
    Implements a queue of transforms applied in sequence.

    The queue is applied back to front: the most recently added transform
    maps the input point first, i.e., :math:`y = T_0(T_1(\\cdots T_{N-1}(x)))`.
    Only the transforms flagged for optimization expose their parameters.

    """

    __slots__ = ("_transforms", "_optimize", "_released")

    name_of_class = "CompositeTransform"

    def __init__(self, ndim=3, transforms=None):
        """
        Initialize a queue of transforms.

        Examples
        --------
        >>> from sitransforms.linear import Translation
        >>> first, second = Translation(ndim=2), Translation(ndim=2)
        >>> first.set_parameters((1, 0))
        >>> second.set_parameters((0, 2))
        >>> chain = Composite(ndim=2, transforms=[first, second])
        >>> len(chain)
        2
        >>> chain.map((0.0, 0.0)).tolist()
        [[1.0, 2.0]]

        """
        super().__init__(ndim)
        self._transforms = []
        self._optimize = []
        self._released = False

        for xfm in transforms or []:
            self.add_transform(xfm)

    def __len__(self):
        """Enable using len()."""
        return len(self._transforms)

    def __getitem__(self, i):
        """Enable indexed access of the transforms queue."""
        return self._transforms[i]

    @property
    def transforms(self):
        """Get the queue of transforms, as a tuple."""
        return tuple(self._transforms)

    @property
    def optimize_flags(self):
        """Get the per-transform optimization flags."""
        return tuple(self._optimize)

    @property
    def number_of_transforms(self):
        """Get the length of the queue."""
        return len(self._transforms)

    def get_nth_transform(self, n):
        """Access the n-th transform of the queue."""
        return self._transforms[n]

    def is_transform_queue_empty(self):
        """Check whether there are no transforms in the queue."""
        return not self._transforms

    def add_transform(self, xfm):
        """
        Append one transform to the queue, flagged as the only optimizable one.

        Example
        -------
        >>> from sitransforms.linear import Identity
        >>> chain = Composite(ndim=3)
        >>> chain.add_transform(Identity())
        >>> chain.add_transform(Identity())
        >>> chain.optimize_flags
        (False, True)

        """
        if not isinstance(xfm, NativeTransform):
            raise TransformError(f"Cannot add {type(xfm).__name__} to a composite.")
        if xfm.ndim != self._ndim:
            raise DimensionMismatchError(
                f"Cannot add a {xfm.ndim}D transform to a {self._ndim}D composite."
            )
        self._transforms.append(xfm if self._released else xfm.register())
        self._optimize.append(True)
        self.set_only_most_recent_transform_to_optimize_on()

    def clear_transform_queue(self):
        """Remove all transforms from the queue."""
        if not self._released:
            for xfm in self._transforms:
                xfm.unregister()
        self._transforms = []
        self._optimize = []

    def set_all_transforms_to_optimize(self, state):
        """Set the optimization flag of every transform in the queue."""
        self._optimize = [bool(state)] * len(self._transforms)

    def set_only_most_recent_transform_to_optimize_on(self):
        """Flag only the last transform of the queue for optimization."""
        self.set_all_transforms_to_optimize(False)
        if self._optimize:
            self._optimize[-1] = True

    def _optimized(self):
        """Iterate over the optimizable transforms, most recent first."""
        for xfm, flag in zip(reversed(self._transforms), reversed(self._optimize)):
            if flag:
                yield xfm

    def _optimized_for_write(self):
        """Iterate over the optimizable transforms, unsharing them first."""
        for i in reversed(range(len(self._transforms))):
            if not self._optimize[i]:
                continue
            xfm = self._transforms[i]
            if xfm.reference_count > 1:
                clone = xfm.clone().register()
                xfm.unregister()
                self._transforms[i] = xfm = clone
            yield xfm

    def get_parameters(self):
        params = [xfm.get_parameters() for xfm in self._optimized()]
        return np.hstack(params) if params else np.zeros((0,))

    def set_parameters(self, parameters):
        parameters = _check_length(
            parameters, self.number_of_parameters, "parameters"
        )
        start = 0
        for xfm in self._optimized_for_write():
            end = start + xfm.number_of_parameters
            xfm.set_parameters(parameters[start:end])
            start = end

    def get_fixed_parameters(self):
        params = [xfm.get_fixed_parameters() for xfm in self._optimized()]
        return np.hstack(params) if params else np.zeros((0,))

    def set_fixed_parameters(self, parameters):
        parameters = _check_length(
            parameters, self.number_of_fixed_parameters, "fixed parameters"
        )
        start = 0
        for xfm in self._optimized_for_write():
            end = start + xfm.number_of_fixed_parameters
            xfm.set_fixed_parameters(parameters[start:end])
            start = end

    def register(self):
        """Add one owner, taking hold of the queue again if it was released."""
        if self._released:
            for xfm in self._transforms:
                xfm.register()
            self._released = False
        return super().register()

    def unregister(self):
        """Remove one owner, releasing the queue when none are left."""
        was_owned = self._refcount > 0
        super().unregister()
        if was_owned and self._refcount == 0:
            for xfm in self._transforms:
                xfm.unregister()
            self._released = True

    def map(self, x):
        """
        Apply the queue of transforms, the most recent first.

        Example
        -------
        >>> from sitransforms.linear import Affine, Translation
        >>> shift, scale = Translation(ndim=2), Affine(ndim=2)
        >>> shift.set_parameters((1, 0))
        >>> scale.set_parameters((2, 0, 0, 2, 0, 0))
        >>> Composite(ndim=2, transforms=[shift, scale]).map((1.0, 1.0)).tolist()
        [[3.0, 2.0]]

        """
        x = np.atleast_2d(np.array(x, dtype="float64"))
        for xfm in reversed(self._transforms):
            x = xfm.map(x)
        return x

    def clone(self):
        """Create a deep copy, cloning every transform of the queue."""
        retval = self.__class__(ndim=self._ndim)
        retval._transforms = [xfm.clone().register() for xfm in self._transforms]
        retval._optimize = list(self._optimize)
        return retval

    def flatten(self):
        """List the transforms of the queue, expanding nested composites."""
        retval = []
        for xfm in self._transforms:
            if isinstance(xfm, Composite):
                retval += xfm.flatten()
            else:
                retval.append(xfm)
        return retval

    def to_string(self, indent=0):
        pad = " " * indent
        lines = [super().to_string(indent), f"{pad}  TransformQueue:"]
        for i, (xfm, flag) in enumerate(zip(self._transforms, self._optimize)):
            lines.append(f"{pad}  >>>>>>>>> [{i}] optimize={flag}")
            lines.append(xfm.to_string(indent + 4))
        return "\n".join(lines)
