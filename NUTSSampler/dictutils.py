# -*- coding: utf-8 -*-

__all__ = ["StateVector"]

from collections.abc import Mapping

import numpy as np


class StateVector(Mapping):
    """
    A read-only mapping from latent variable name to a real value.
    Positions, momenta and gradients of the Hamiltonian dynamics are all
    held as :class:`StateVector` objects.

    Vectors can only be combined when they cover exactly the same set of
    variables. Vectors with the same variables in a different order are
    realigned before the arithmetic is done.

    :param keys:
        Ordered sequence of variable names.

    :param values:
        Values, in the same order as ``keys``.
    """

    __slots__ = ("_keys", "_index", "_values")

    # keep numpy scalars from broadcasting over the keys
    __array_ufunc__ = None

    def __init__(self, keys, values):
        keys = tuple(keys)
        values = np.array(values, dtype=np.float64).reshape(-1)
        if len(values) != len(keys):
            raise ValueError("Keys and values do not have same length")

        values.flags.writeable = False
        self._keys = keys
        self._index = {key: ii for ii, key in enumerate(keys)}
        self._values = values

        if len(self._index) != len(keys):
            raise ValueError("Duplicate variable names in StateVector")

    @classmethod
    def _wrap(cls, template, values):
        """Build a vector sharing the keys of ``template``"""
        new = cls.__new__(cls)
        values.flags.writeable = False
        new._keys = template._keys
        new._index = template._index
        new._values = values
        return new

    def __getitem__(self, key):
        return self._values[self._index[key]]

    def __iter__(self):
        return iter(self._keys)

    def __len__(self):
        return len(self._keys)

    def __contains__(self, key):
        return key in self._index

    def __repr__(self):
        items = ", ".join("%r: %g" % (key, val) for key, val in zip(self._keys, self._values))
        return "StateVector({%s})" % items

    @property
    def array(self):
        """The values as a read-only numpy array."""
        return self._values

    def _aligned(self, other):
        """Values of ``other`` in the key order of this vector"""
        if not isinstance(other, StateVector):
            raise TypeError("Can only combine a StateVector with another StateVector")

        if other._keys is self._keys or other._keys == self._keys:
            return other._values

        if set(other._keys) != set(self._keys):
            raise ValueError("StateVectors do not cover the same variables")

        return np.array([other._values[other._index[key]] for key in self._keys])

    def __add__(self, other):
        return StateVector._wrap(self, self._values + self._aligned(other))

    def __sub__(self, other):
        return StateVector._wrap(self, self._values - self._aligned(other))

    def __mul__(self, scalar):
        if isinstance(scalar, StateVector):
            return NotImplemented
        return StateVector._wrap(self, self._values * float(scalar))

    __rmul__ = __mul__

    def __neg__(self):
        return StateVector._wrap(self, -self._values)

    def dot(self, other):
        """Inner product over the shared variables."""
        return float(np.dot(self._values, self._aligned(other)))

    def as_dict(self):
        return {key: float(val) for key, val in zip(self._keys, self._values)}
