import sys
import time
import warnings

import numpy as np

from .backends import DefaultBackend
from .nutsjump import DELTA_MAX, Candidate, NUTSJump
from .randomsource import RandomSource


class NUTSSampler(object):
    """
    No-U-Turn Sampler (NUTS) for drawing posterior samples from a
    :class:`Model` with continuous latent variables.

    Each sample is the result of one NUTS trajectory: fresh momenta are
    drawn, the trajectory is doubled in random directions until it starts
    to turn back on itself (or diverges), and a point is picked uniformly
    from the part of the trajectory inside the slice. The step size is
    fixed and the mass matrix is the identity.

    @param model: Model to sample from. It is moved around during sampling,
    and left at the last accepted position when done
    @param sample_from: Names of the latent or deterministic variables to
    record (default = all latent variables)
    @param stepsize: Leapfrog step size (default=0.1)
    @param max_tree_height: Maximum number of tree doublings per sample
    (default=None, no limit)
    @param delta_max: Energy error at which a trajectory is declared divergent
    (default=1000)
    @param random: RandomSource to draw from (default = new one from seed)
    @param seed: Seed used when no random source is given (default=None)
    @param verbose: Update current run-status to the screen (default=True)
    @param nprint: Number of samples between status updates (default=1000)

    """

    def __init__(
        self,
        model,
        sample_from=None,
        stepsize=0.1,
        max_tree_height=None,
        delta_max=DELTA_MAX,
        random=None,
        seed=None,
        verbose=True,
        nprint=1000,
    ):
        if not stepsize > 0:
            raise ValueError("stepsize = %g must be positive" % stepsize)

        if max_tree_height is not None and max_tree_height < 1:
            raise ValueError("max_tree_height = %d must be at least 1" % max_tree_height)

        if nprint < 1:
            raise ValueError("nprint = %d must be at least 1" % nprint)

        if sample_from is None:
            sample_from = model.latent_names

        for name in sample_from:
            if name not in model:
                raise ValueError("Can not sample from unknown variable {0}".format(name))

        if random is None:
            random = RandomSource(seed)

        self.model = model
        self.sample_from = list(sample_from)
        self.stepsize = stepsize
        self.max_tree_height = max_tree_height
        self.random = random
        self.verbose = verbose
        self.nprint = nprint

        self.jump = NUTSJump(
            model,
            self.sample_from,
            stepsize,
            random,
            max_tree_height=max_tree_height,
            delta_max=delta_max,
        )

    def sample(self, sample_count, backend=None):
        """
        Function to carry out NUTS sampling.

        @param sample_count: Number of samples to draw, including the
        starting point
        @param backend: Backend to store the samples in
        (default = new DefaultBackend)

        @return: the backend holding the samples

        """

        if sample_count < 1:
            raise ValueError("sample_count = %d must be at least 1" % sample_count)

        if backend is None:
            backend = DefaultBackend()

        # compute lnprob for initial point in chain
        lnprob0 = self.model.log_prob()
        if not np.isfinite(lnprob0):
            raise ValueError("Cannot start sampler on zero probability model")

        current = Candidate(
            self.model.position(),
            self.model.gradient(),
            lnprob0,
            self.model.take_sample(self.sample_from),
        )

        # record first values
        backend.update_model(current.sample, current.logp)

        self.tstart = time.time()
        self.ndivergent = 0
        self.nmaxdepth = 0

        for iter in range(1, sample_count):
            transition = self.jump(current)
            current = transition.accepted

            backend.update_model(current.sample, current.logp)
            backend.update_transition(transition)

            if transition.diverged:
                self.ndivergent += 1
            if transition.capped:
                self.nmaxdepth += 1

            if self.verbose and iter % self.nprint == 0:
                self.progress(iter, sample_count)

        # leave the model at the last accepted position
        self.model.set_and_propagate(current.position)

        if self.verbose:
            if sample_count > 1:
                self.progress(sample_count - 1, sample_count)
            print("\nRun Complete")

        if self.ndivergent > 0:
            warnings.warn(
                "There were {0} divergent transitions. Consider decreasing the step size.".format(self.ndivergent)
            )
        if self.nmaxdepth > 0:
            warnings.warn(
                "{0} transitions stopped at the maximum tree height of {1}.".format(
                    self.nmaxdepth, self.max_tree_height
                )
            )

        return backend

    def progress(self, iter, sample_count):
        """
        Print sampling progress along with the number of divergent
        transitions to the screen.

        @param iter: Iteration of the sampler
        @param sample_count: Total number of samples

        """

        sys.stdout.write("\r")
        sys.stdout.write(
            "Finished %2.2f percent in %f s Divergent transitions = %d"
            % ((iter + 1) / sample_count * 100, time.time() - self.tstart, self.ndivergent)
        )
        sys.stdout.flush()


def get_posterior_samples(model, sample_from, sample_count, stepsize, random=None, **kwargs):
    """
    Draw sample_count posterior samples of the variables in sample_from.

    @param model: Model to sample from
    @param sample_from: Names of the variables to record
    @param sample_count: Number of samples, including the starting point
    @param stepsize: Leapfrog step size
    @param random: RandomSource to draw from (default = new unseeded one)
    @param kwargs: Any further NUTSSampler keyword arguments

    @return: DefaultBackend holding the samples

    """
    kwargs.setdefault("verbose", False)
    sampler = NUTSSampler(model, sample_from=sample_from, stepsize=stepsize, random=random, **kwargs)
    return sampler.sample(sample_count)
