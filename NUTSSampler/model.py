# -*- coding: utf-8 -*-

__all__ = ["Model", "numerical_grad"]

import copy

import numpy as np
import scipy.optimize as so

from .dictutils import StateVector


class Model(object):
    """
    A :class:`Model` is the evaluation context that the sampler works
    against. It owns the current assignment of the latent variables, the
    deterministic quantities derived from them, and the log-likelihood and
    log-prior functions (with gradients).

    The sampler never looks inside the functions. It only sets latent
    values, asks for the joint log-probability and its gradient, and takes
    snapshots of the variables it monitors.

    :param coords:
        Initial set of latent coordinates.

    :param pardict:
        Mapping dictionary for latent parameters.
        Format: dict['parname'] = parameter index

    :param loglike_grad:
        Log likelihood function. Takes the coordinate array and returns
        the log-likelihood and its gradient.

    :param logprior_grad: (optional)
        Log prior function, same signature as ``loglike_grad``. A flat
        prior is used when not given.

    :param loglargs: (optional)
        Additional non-keyword arguments to log likelihood function.

    :param loglkwargs: (optional)
        Additional keyword arguments to log likelihood function.

    :param logpargs: (optional)
        Additional non-keyword arguments to log prior function.

    :param logpkwargs: (optional)
        Additional keyword arguments to log prior function.

    .. note:: One :class:`Model` instance must only be used by one chain
              at a time. Use :meth:`copy` to give each chain its own.
    """

    def __init__(self, coords, pardict, loglike_grad, logprior_grad=None,
                 loglargs=[], loglkwargs={}, logpargs=[], logpkwargs={}):

        # wrap log likelihood and prior functions
        self._loglike_grad = _function_wrapper(loglike_grad, loglargs, loglkwargs)
        if logprior_grad is None:
            self._logprior_grad = _flat_prior
        else:
            self._logprior_grad = _function_wrapper(logprior_grad, logpargs, logpkwargs)

        self._coords = np.array(coords, dtype=np.float64).reshape(-1)
        self._pardict = dict(pardict)

        if len(self._coords) != len(self._pardict):
            raise ValueError('Parameter dictionary and coords do'
                             ' not have same length')
        if sorted(self._pardict.values()) != list(range(len(self._pardict))):
            raise ValueError('Parameter dictionary indices must run'
                             ' from 0 to ndim - 1')
        self.ndim = len(self._pardict)

        # latent names in coordinate order
        self.latent_names = tuple(sorted(self._pardict, key=self._pardict.get))

        # deterministic variables: name -> (function, parents), in
        # topological order
        self._deterministic = {}
        self._values = {}

        self._cache = None
        self.nevals = 0

        # Check the initial probabilities.
        if not np.isfinite(self.log_prob()):
            raise ValueError("Invalid (un-allowed) initial coordinates")

    def add_deterministic(self, name, fn, parents):
        """
        Add a variable that is a function of other variables. It is kept
        up to date by :meth:`propagate`.

        :param name:
            Name of the new variable.

        :param fn:
            Function of the parent values, called as ``fn(*values)``.

        :param parents:
            Names of latent or previously added deterministic variables.
        """
        if name in self._pardict or name in self._deterministic:
            raise ValueError("Variable {0} already exists".format(name))

        parents = tuple(parents)
        for parent in parents:
            if parent not in self:
                raise ValueError("Unknown parent {0} for variable {1}".format(parent, name))

        self._deterministic[name] = (fn, parents)
        self._values[name] = fn(*[self.get_value(p) for p in parents])

    def __contains__(self, name):
        return name in self._pardict or name in self._deterministic

    def get_value(self, name):
        """Current value of a latent or deterministic variable."""
        if name in self._pardict:
            return self._coords[self._pardict[name]]
        return self._values[name]

    def set_value(self, name, value):
        """
        Set the value of a latent variable. Call :meth:`propagate` before
        reading any deterministic variable that depends on it.
        """
        if name in self._deterministic:
            raise ValueError("Can not set deterministic variable {0}".format(name))

        self._coords[self._pardict[name]] = value
        self._cache = None

    def propagate(self, names):
        """
        Recompute every deterministic variable downstream of ``names``.

        :param names:
            Names of the variables that were changed.
        """
        changed = set(names)
        for name, (fn, parents) in self._deterministic.items():
            if changed.intersection(parents):
                self._values[name] = fn(*[self.get_value(p) for p in parents])
                changed.add(name)

    def set_and_propagate(self, values):
        """
        Set several latent variables and update their dependents.

        :param values:
            Mapping from latent name to new value, such as a
            :class:`StateVector`.
        """
        for name in values:
            self.set_value(name, values[name])
        self.propagate(values)

    def _evaluate(self):
        if self._cache is None:
            self.nevals += 1
            lp, lp_grad = self._logprior_grad(self._coords)
            lp_grad = np.asarray(lp_grad, dtype=np.float64)
            if not np.isfinite(lp):
                self._cache = (-np.inf, lp_grad)
            else:
                ll, ll_grad = self._loglike_grad(self._coords)
                self._cache = (lp + ll, lp_grad + np.asarray(ll_grad, dtype=np.float64))
        return self._cache

    def log_prob(self):
        """Joint log-probability at the current assignment."""
        return float(self._evaluate()[0])

    def gradient(self):
        """Gradient of the joint log-probability wrt the latent variables."""
        return StateVector(self.latent_names, self._evaluate()[1])

    def position(self):
        """Current latent assignment as a :class:`StateVector`."""
        return StateVector(self.latent_names, self._coords)

    def take_sample(self, names):
        """
        Snapshot of the given variables. Does not change the model.
        Latent values are stored as floats, deterministic values keep
        their type and mutable ones are copied.

        :param names:
            Names of latent or deterministic variables.
        """
        sample = {}
        for name in names:
            value = self.get_value(name)
            if name in self._pardict:
                sample[name] = float(value)
            elif isinstance(value, np.ndarray):
                sample[name] = np.copy(value)
            elif isinstance(value, (list, dict, set)):
                sample[name] = copy.copy(value)
            else:
                sample[name] = value
        return sample

    def copy(self):
        """Independent copy, e.g. for running another chain."""
        return copy.deepcopy(self)

    @property
    def coords(self):
        """The latent coordinate vector."""
        return np.copy(self._coords)

    @property
    def pardict(self):
        """The Parameter index dictionary"""
        return self._pardict


def numerical_grad(f, epsilon=None):
    """
    Turn a scalar log-density ``f(x)`` into a function returning the value
    and a finite difference estimate of its gradient.

    :param f:
        Function of the coordinate array returning a float.

    :param epsilon: (optional)
        Finite difference step. Defaults to the square root of machine
        precision.
    """
    if epsilon is None:
        epsilon = np.sqrt(np.finfo(float).eps)
    return _numerical_grad_wrapper(f, epsilon)


def _flat_prior(x):
    return 0.0, np.zeros_like(x)


class _numerical_grad_wrapper(object):

    def __init__(self, f, epsilon):
        self.f = f
        self.epsilon = epsilon

    def __call__(self, x, *args, **kwargs):
        value = self.f(x, *args, **kwargs)
        if not np.isfinite(value):
            return value, np.zeros_like(x)

        def func(y):
            return self.f(y, *args, **kwargs)

        grad = so.approx_fprime(np.copy(x), func, self.epsilon)
        return value, grad


class _function_wrapper(object):
    """
    This is a hack to make the likelihood function pickleable when ``args``
    or ``kwargs`` are also included.

    """

    def __init__(self, f, args, kwargs):
        self.f = f
        self.args = args
        self.kwargs = kwargs

    def __call__(self, x):
        return self.f(x, *self.args, **self.kwargs)
