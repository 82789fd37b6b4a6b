# -*- coding: utf-8 -*-

__all__ = ["DefaultBackend"]

import numpy as np


class DefaultBackend(object):
    """
    Default backend keeps the samples in memory as the sampler
    progresses. Samples are stored per monitored variable, and a few
    numpy arrays hold the per-sample diagnostics.

    :param bufsize: (optional)
        Initial size of the diagnostics arrays. They grow as
        needed. Default value is 1000.
    """

    def __init__(self, bufsize=1000):
        self.bufsize = bufsize
        self.reset()

    def reset(self):
        """
        Clear the samples and reset to the default state.
        """
        self.niter = 0
        self.size = 0

        self._samples = {}
        self._logpost = None
        self._treedepth = None
        self._nleapfrog = None
        self._divergent = None

    def extend(self, n):
        """
        Extend diagnostics arrays by n.

        :param n:
            Amount by which to extend arrays.
        """

        self.size = l = self.size + n
        if self._logpost is None:
            self._logpost = np.empty(l, dtype=np.float64)
            self._treedepth = np.zeros(l, dtype=np.int64)
            self._nleapfrog = np.zeros(l, dtype=np.int64)
            self._divergent = np.zeros(l, dtype=bool)
        else:
            self._logpost = np.resize(self._logpost, l)
            self._treedepth = np.resize(self._treedepth, l)
            self._nleapfrog = np.resize(self._nleapfrog, l)
            self._divergent = np.resize(self._divergent, l)

    def update_model(self, sample, logpost):
        """
        Append one sample.

        :param sample:
            Mapping from variable name to value.

        :param logpost:
            Log-probability at the sampled point.
        """

        i = self.niter
        if i >= self.size:
            self.extend(max(self.bufsize, i - self.size + 1))

        if i > 0 and set(sample) != set(self._samples):
            raise ValueError("Sample does not contain the monitored variables")

        for name, value in sample.items():
            self._samples.setdefault(name, []).append(value)

        self._logpost[i] = logpost
        self._treedepth[i] = 0
        self._nleapfrog[i] = 0
        self._divergent[i] = False
        self.niter += 1

    def update_transition(self, transition):
        """
        Record the diagnostics of the trajectory that produced the last
        sample.

        :param transition:
            A :class:`Transition` from the NUTS jump.
        """

        i = self.niter - 1
        self._treedepth[i] = transition.treedepth
        self._nleapfrog[i] = transition.nleapfrog
        self._divergent[i] = transition.diverged

    def get(self, name):
        """All samples of one variable, as a numpy array."""
        return np.array(self._samples[name])

    def mean(self, name):
        return np.mean(self.get(name), axis=0)

    def sample(self, i):
        """The i-th sample as a dictionary."""
        return {name: values[i] for name, values in self._samples.items()}

    def _subset(self, index):
        new = DefaultBackend(bufsize=self.bufsize)
        new.extend(len(index))
        new.niter = len(index)
        new._samples = {name: [values[i] for i in index] for name, values in self._samples.items()}
        new._logpost[:] = self.logpost[index]
        new._treedepth[:] = self.treedepth[index]
        new._nleapfrog[:] = self.nleapfrog[index]
        new._divergent[:] = self.divergent[index]
        return new

    def drop(self, n):
        """
        New backend without the first n samples, e.g. to discard burn-in.
        """
        return self._subset(np.arange(max(0, min(n, self.niter)), self.niter))

    def down_sample(self, n):
        """
        New backend keeping only every n-th sample.
        """
        n = int(n)
        assert n > 0, "Invalid down sampling argument"
        return self._subset(np.arange(0, self.niter, n))

    def __len__(self):
        return self.niter

    def __iter__(self):
        for i in range(self.niter):
            yield self.sample(i)

    @property
    def names(self):
        return list(self._samples)

    @property
    def logpost(self):
        return self._empty_or(self._logpost)

    @property
    def treedepth(self):
        return self._empty_or(self._treedepth)

    @property
    def nleapfrog(self):
        return self._empty_or(self._nleapfrog)

    @property
    def divergent(self):
        return self._empty_or(self._divergent)

    @property
    def ndivergent(self):
        return int(np.sum(self.divergent))

    def _empty_or(self, arr):
        if arr is None:
            return np.empty(0)
        return arr[:self.niter]
