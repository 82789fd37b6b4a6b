from unittest import TestCase

import numpy as np
import scipy.stats as ss

from NUTSSampler.dictutils import StateVector
from NUTSSampler.model import Model, numerical_grad


class GaussianLikelihood(object):
    def __init__(self, mu, sigma):
        self.mu = np.asarray(mu)
        self.sigma = np.asarray(sigma)
        self.ncalls = 0

    def lnlikefn(self, x):
        return np.sum(ss.norm.logpdf(x, loc=self.mu, scale=self.sigma))

    def lnlikefn_grad(self, x):
        self.ncalls += 1
        return self.lnlikefn(x), -(x - self.mu) / self.sigma ** 2


def uniform_prior_grad(x, pmin, pmax=10.0):
    if np.all(pmin <= x) and np.all(pmax >= x):
        return 0.0, np.zeros_like(x)
    return -np.inf, np.zeros_like(x)


class TestModel(TestCase):
    def setUp(self):
        self.like = GaussianLikelihood([1.0, -2.0], [0.5, 2.0])
        self.model = Model([0.0, 0.0], {"a": 0, "b": 1}, self.like.lnlikefn_grad)

    def test_log_prob_and_gradient(self):
        x = np.array([0.0, 0.0])
        self.assertAlmostEqual(self.model.log_prob(), self.like.lnlikefn(x))

        grad = self.model.gradient()
        self.assertIsInstance(grad, StateVector)
        self.assertEqual(tuple(grad), ("a", "b"))
        self.assertAlmostEqual(grad["a"], 4.0)
        self.assertAlmostEqual(grad["b"], -0.5)

    def test_latent_order_follows_pardict(self):
        model = Model([1.0, 2.0], {"second": 1, "first": 0}, self.like.lnlikefn_grad)
        self.assertEqual(model.latent_names, ("first", "second"))
        self.assertEqual(model.position().as_dict(), {"first": 1.0, "second": 2.0})

    def test_mismatched_pardict(self):
        with self.assertRaises(ValueError):
            Model([0.0, 0.0, 0.0], {"a": 0, "b": 1}, self.like.lnlikefn_grad)

        with self.assertRaises(ValueError):
            Model([0.0, 0.0], {"a": 0, "b": 2}, self.like.lnlikefn_grad)

    def test_invalid_initial_coordinates(self):
        with self.assertRaises(ValueError):
            Model(
                [-1.0, 0.0],
                {"a": 0, "b": 1},
                self.like.lnlikefn_grad,
                uniform_prior_grad,
                logpargs=[0.0],
            )

    def test_evaluation_is_cached(self):
        nevals = self.model.nevals
        self.model.log_prob()
        self.model.gradient()
        self.assertEqual(self.model.nevals, nevals)

        self.model.set_value("a", 1.0)
        self.model.log_prob()
        self.model.gradient()
        self.assertEqual(self.model.nevals, nevals + 1)
        self.assertAlmostEqual(self.model.gradient()["a"], 0.0)

    def test_zero_prior_skips_likelihood(self):
        model = Model(
            [0.5, 0.0],
            {"a": 0, "b": 1},
            self.like.lnlikefn_grad,
            uniform_prior_grad,
            logpargs=[0.0],
            logpkwargs={"pmax": 1.0},
        )
        ncalls = self.like.ncalls

        model.set_value("a", 2.0)

        self.assertEqual(model.log_prob(), -np.inf)
        self.assertEqual(self.like.ncalls, ncalls)

    def test_set_and_propagate(self):
        self.model.set_and_propagate(StateVector(("a", "b"), [3.0, 4.0]))
        np.testing.assert_array_equal(self.model.coords, [3.0, 4.0])
        self.assertEqual(self.model.position()["b"], 4.0)

    def test_coords_is_a_copy(self):
        coords = self.model.coords
        coords[0] = 100.0
        self.assertEqual(self.model.get_value("a"), 0.0)


class TestDeterministic(TestCase):
    def setUp(self):
        like = GaussianLikelihood([0.0, 0.0], [1.0, 1.0])
        self.model = Model([1.0, 2.0], {"a": 0, "b": 1}, like.lnlikefn_grad)
        self.model.add_deterministic("sum", lambda a, b: a + b, ["a", "b"])
        self.model.add_deterministic("double", lambda s: 2 * s, ["sum"])
        self.model.add_deterministic("square_a", lambda a: a ** 2, ["a"])

    def test_initial_values(self):
        self.assertEqual(self.model.get_value("sum"), 3.0)
        self.assertEqual(self.model.get_value("double"), 6.0)
        self.assertEqual(self.model.get_value("square_a"), 1.0)

    def test_propagate_cascades(self):
        self.model.set_value("b", 5.0)
        self.assertEqual(self.model.get_value("sum"), 3.0)

        self.model.propagate(["b"])
        self.assertEqual(self.model.get_value("sum"), 6.0)
        self.assertEqual(self.model.get_value("double"), 12.0)
        self.assertEqual(self.model.get_value("square_a"), 1.0)

    def test_set_and_propagate(self):
        self.model.set_and_propagate({"a": 3.0})
        self.assertEqual(self.model.get_value("sum"), 5.0)
        self.assertEqual(self.model.get_value("double"), 10.0)
        self.assertEqual(self.model.get_value("square_a"), 9.0)

    def test_can_not_set_deterministic(self):
        with self.assertRaises(ValueError):
            self.model.set_value("sum", 1.0)

    def test_unknown_parent(self):
        with self.assertRaises(ValueError):
            self.model.add_deterministic("bad", lambda c: c, ["c"])

    def test_duplicate_name(self):
        with self.assertRaises(ValueError):
            self.model.add_deterministic("a", lambda b: b, ["b"])

        with self.assertRaises(ValueError):
            self.model.add_deterministic("sum", lambda b: b, ["b"])

    def test_take_sample(self):
        sample = self.model.take_sample(["a", "double"])
        self.assertEqual(sample, {"a": 1.0, "double": 6.0})

    def test_take_sample_does_not_change_model(self):
        self.model.add_deterministic("vec", lambda a, b: np.array([a, b]), ["a", "b"])
        nevals = self.model.nevals

        sample1 = self.model.take_sample(["a", "sum", "vec"])
        sample1["vec"][0] = -1.0
        sample2 = self.model.take_sample(["a", "sum", "vec"])

        self.assertEqual(sample2["a"], 1.0)
        self.assertEqual(sample2["sum"], 3.0)
        np.testing.assert_array_equal(sample2["vec"], [1.0, 2.0])
        np.testing.assert_array_equal(self.model.coords, [1.0, 2.0])
        self.assertEqual(self.model.nevals, nevals)

    def test_take_sample_keeps_deterministic_type(self):
        self.model.add_deterministic("positive", lambda a: bool(a > 0), ["a"])
        self.model.add_deterministic("pair", lambda a, b: [a, b], ["a", "b"])
        self.model.add_deterministic("count", lambda a: int(a), ["a"])

        sample = self.model.take_sample(["positive", "pair", "count"])

        self.assertIsInstance(sample["positive"], bool)
        self.assertTrue(sample["positive"])
        self.assertIsInstance(sample["count"], int)
        self.assertEqual(sample["pair"], [1.0, 2.0])

        sample["pair"].append(3.0)
        self.assertEqual(self.model.get_value("pair"), [1.0, 2.0])

    def test_copy_is_independent(self):
        other = self.model.copy()
        other.set_and_propagate({"a": 10.0})

        self.assertEqual(other.get_value("sum"), 12.0)
        self.assertEqual(self.model.get_value("a"), 1.0)
        self.assertEqual(self.model.get_value("sum"), 3.0)


class TestNumericalGrad(TestCase):
    def test_matches_analytic_gradient(self):
        like = GaussianLikelihood([1.0, -2.0, 0.5], [0.5, 2.0, 1.0])
        x = np.array([0.3, -1.0, 2.0])

        value, grad = numerical_grad(like.lnlikefn)(x)
        _, analytic = like.lnlikefn_grad(x)

        self.assertAlmostEqual(value, like.lnlikefn(x))
        np.testing.assert_allclose(grad, analytic, rtol=1e-5, atol=1e-5)

    def test_model_with_numerical_gradient(self):
        def lnlikefn(x, mu, sigma=1.0):
            return np.sum(ss.norm.logpdf(x, loc=mu, scale=sigma))

        model = Model(
            [0.0, 1.0],
            {"a": 0, "b": 1},
            numerical_grad(lnlikefn),
            loglargs=[np.array([1.0, 1.0])],
            loglkwargs={"sigma": 2.0},
        )

        np.testing.assert_allclose(model.gradient().array, [0.25, 0.0], atol=1e-5)

    def test_zero_probability(self):
        value, grad = numerical_grad(lambda x: -np.inf)(np.array([1.0, 2.0]))
        self.assertEqual(value, -np.inf)
        np.testing.assert_array_equal(grad, [0.0, 0.0])
