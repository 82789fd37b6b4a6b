# -*- coding: utf-8 -*-

__all__ = ["RandomSource"]

import numpy as np


class RandomSource(object):
    """
    Source of random variates used by the sampler. All randomness in a
    sampling run goes through one of these objects, so that a run can be
    reproduced from its seed.

    :param seed: (optional)
        Seed for a new ``numpy.random.Generator``.

    :param generator: (optional)
        Existing ``numpy.random.Generator`` to draw from. Takes precedence
        over ``seed``.
    """

    def __init__(self, seed=None, generator=None):
        if generator is None:
            generator = np.random.default_rng(seed)
        self.stream = generator

    @classmethod
    def spawn(cls, nchain, seed=None):
        """
        Create independent random sources, one per chain.

        :param nchain:
            Number of chains.

        :param seed: (optional)
            Seed of the parent ``SeedSequence``.
        """
        ss = np.random.SeedSequence(seed)
        child_seeds = ss.generate_state(nchain)
        return [cls(generator=np.random.default_rng(s)) for s in child_seeds]

    def uniform(self):
        """Draw from Uniform(0, 1)"""
        return self.stream.random()

    def standard_normal(self, size=None):
        """Draw from a standard normal distribution"""
        return self.stream.standard_normal(size)
