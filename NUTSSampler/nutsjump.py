"""
Implementation of the No-U-Turn-Sampler. Code follows algorithm 3
("Efficient NUTS") from the NUTS paper (Hoffman & Gelman, 2011), with a fixed
step size and an identity mass matrix.

reference: arXiv:1111.4246
"The No-U-Turn Sampler: Adaptively Setting Path Lengths in Hamiltonian Monte
Carlo", Matthew D. Hoffman & Andrew Gelman
"""

from collections import namedtuple

import numpy as np

from .dictutils import StateVector

# Energy error beyond which a trajectory is considered divergent
DELTA_MAX = 1000.0


# One boundary of a trajectory
Endpoint = namedtuple("Endpoint", ["position", "gradient", "momentum"])

# The point a (sub)tree currently proposes as its sample
Candidate = namedtuple("Candidate", ["position", "gradient", "logp", "sample"])

# Result of building a (sub)tree. nvalid counts the points inside the slice,
# cont is the continue flag, nleapfrog the number of leapfrog steps taken.
BuiltTree = namedtuple(
    "BuiltTree", ["backward", "forward", "accepted", "nvalid", "cont", "nleapfrog", "diverged"]
)

# Result of one full NUTS trajectory. capped is set when the height limit,
# not a U-turn or divergence, ended it.
Transition = namedtuple("Transition", ["accepted", "treedepth", "nleapfrog", "diverged", "capped"])


class NUTSJump(object):
    """Class for No-U-Turn-Sampling Hamiltonian Monte Carlo jumps"""

    def __init__(self, model, sample_from, stepsize, random, max_tree_height=None, delta_max=DELTA_MAX):
        """Initialize the NUTS jump

        :model:             Evaluation context (see :class:`Model`)
        :sample_from:       Names of the variables to snapshot at each point
        :stepsize:          Leapfrog step size epsilon
        :random:            Random source (see :class:`RandomSource`)
        :max_tree_height:   Optional cap on the number of tree doublings
        :delta_max:         Divergence threshold on the energy error
        """
        self.model = model
        self.sample_from = list(sample_from)
        self.epsilon = float(stepsize)
        self.random = random
        self.max_tree_height = max_tree_height
        self.delta_max = delta_max

    def draw_momenta(self):
        """Draw new momentum variables"""
        names = self.model.latent_names
        return StateVector(names, self.random.standard_normal(len(names)))

    def loghamiltonian(self, logp, r):
        """Value of the (negative) Hamiltonian, given a log-probability and momentum value"""
        try:
            return logp - 0.5 * r.dot(r)
        except ValueError:
            return np.nan

    def with_probability(self, probability):
        return self.random.uniform() < probability

    def leapfrog(self, theta, grad, r, epsilon):
        """Perfom a leapfrog jump in the Hamiltonian space. Moves the model
        to the new position.

        :theta:     Initial parameter position
        :grad:      Initial gradient
        :r:         Initial momentum
        :epsilon:   Step size, negative to integrate backwards in time

        output
        Endpoint with the new position, gradient and momentum
        """

        rprime = r + 0.5 * epsilon * grad  # half step in r
        thetaprime = theta + epsilon * rprime  # step in theta
        self.model.set_and_propagate(thetaprime)
        gradprime = self.model.gradient()  # compute gradient
        rprime = rprime + 0.5 * epsilon * gradprime  # half step in r

        return Endpoint(thetaprime, gradprime, rprime)

    def stop_criterion(self, forward, backward):
        """Compute the stop condition between two trajectory endpoints
        dot(dtheta, rminus) >= 0 & dot(dtheta, rplus) >= 0

        INPUTS
        ------
        forward, backward: Endpoint
            above and under end of the trajectory

        OUTPUTS
        -------
        criterion: bool
            True if the trajectory is not making a U-turn
        """
        dtheta = forward.position - backward.position
        inprod_plus = dtheta.dot(forward.momentum)
        inprod_min = dtheta.dot(backward.momentum)

        return bool((inprod_plus >= 0) and (inprod_min >= 0))

    def base_case(self, endpoint, logu, v):
        """Take a single leapfrog step in the direction v"""
        leap = self.leapfrog(endpoint.position, endpoint.gradient, endpoint.momentum, v * self.epsilon)
        logpprime = self.model.log_prob()
        joint = self.loghamiltonian(logpprime, leap.momentum)

        # Is the new point in the slice of the slice sampling step?
        nvalid = int(logu <= joint)
        # Is the simulation very inaccurate?
        cont = bool(logu < self.delta_max + joint)

        # minus=plus for all things here, since the "tree" is of depth 0.
        accepted = Candidate(leap.position, leap.gradient, logpprime, self.model.take_sample(self.sample_from))
        return BuiltTree(leap, leap, accepted, nvalid, cont, 1, not cont)

    def build_tree(self, endpoint, logu, v, j):
        """The main recursion tree, building 2**j leapfrog steps from endpoint
        in direction v.

        :endpoint:  Endpoint to start integrating from
        :logu:      Log of the slice variable
        :v:         Direction, -1 (backwards) or 1 (forwards)
        :j:         Height of the tree
        """

        if j == 0:
            return self.base_case(endpoint, logu, v)

        # Recursion: Implicitly build the height j-1 left and right subtrees.
        tree = self.build_tree(endpoint, logu, v, j - 1)

        # No need to keep going if the stopping criteria were met in the first subtree.
        if not tree.cont:
            return tree

        tree, other = self.build_other_half(tree, logu, v, j - 1)

        # Choose which subtree to propagate a sample up from.
        accepted = tree.accepted
        if self.with_probability(float(other.nvalid) / max(float(tree.nvalid + other.nvalid), 1.0)):
            accepted = other.accepted

        return tree._replace(
            accepted=accepted,
            nvalid=tree.nvalid + other.nvalid,
            cont=other.cont and self.stop_criterion(tree.forward, tree.backward),
            nleapfrog=tree.nleapfrog + other.nleapfrog,
            diverged=tree.diverged or other.diverged,
        )

    def build_other_half(self, tree, logu, v, j):
        """Build a height j tree off the v-side end of tree

        output
        tree:   tree with its v-side endpoint moved to the end of the new half
        other:  the new half
        """
        if v == -1:
            other = self.build_tree(tree.backward, logu, v, j)
            tree = tree._replace(backward=other.backward)
        else:
            other = self.build_tree(tree.forward, logu, v, j)
            tree = tree._replace(forward=other.forward)

        return tree, other

    def __call__(self, current):
        """Take one NUTS trajectory step

        :current:   Candidate accepted in the previous step

        output
        Transition holding the newly accepted Candidate
        """

        # Draw new momentum variables
        r0 = self.draw_momenta()
        joint = self.loghamiltonian(current.logp, r0)

        # Initial slice sampling variable, u ~ U(0, exp(joint))
        with np.errstate(divide="ignore"):
            logu = float(joint + np.log(self.random.uniform()))

        # Initialize the binary tree for this trajectory
        start = Endpoint(current.position, current.gradient, r0)
        tree = BuiltTree(start, start, current, 1, True, 0, False)

        j = 0  # Initial tree height j = 0
        capped = False
        while tree.cont:
            # Choose a direction. -1 = backwards, 1 = forwards.
            v = int(2 * (self.random.uniform() < 0.5) - 1)

            # Double the size of the tree.
            tree, other = self.build_other_half(tree, logu, v, j)

            # Decide whether or not to move to a point from the half-tree we
            # just generated.
            accepted = tree.accepted
            if other.cont:
                prob = float(other.nvalid) / tree.nvalid if tree.nvalid > 0 else 0.0
                if self.with_probability(prob):
                    accepted = other.accepted

            # Increment depth.
            j += 1

            # Decide if it's time to stop.
            cont = other.cont and self.stop_criterion(tree.forward, tree.backward)
            if cont and self.max_tree_height is not None and j >= self.max_tree_height:
                cont = False
                capped = True

            tree = tree._replace(
                accepted=accepted,
                nvalid=tree.nvalid + other.nvalid,
                cont=cont,
                nleapfrog=tree.nleapfrog + other.nleapfrog,
                diverged=tree.diverged or other.diverged,
            )

        return Transition(tree.accepted, j, tree.nleapfrog, tree.diverged, capped)
