#!/usr/bin/env python
# coding: utf-8


import numpy as np
import scipy.stats as ss

from NUTSSampler import NUTSSampler
from NUTSSampler.model import Model, numerical_grad

# ## Define the likelihood and prior
#
# Functions must read in parameter vector and output the log-likelihood or
# log-prior together with its gradient.
# Usually easiest to use a class if you need to store some other data or parameters


class SumLikelihood(object):
    def __init__(self, mu=20.0, sigma=1.0, observed=46.0):

        self.mu = mu
        self.sigma = sigma
        self.observed = observed

    def lnlikefn_grad(self, x):
        ll = ss.norm.logpdf(self.observed, loc=np.sum(x), scale=self.sigma)
        grad = np.ones_like(x) * (self.observed - np.sum(x)) / self.sigma ** 2
        return ll, grad

    def lnpriorfn(self, x):
        return np.sum(ss.norm.logpdf(x, loc=self.mu, scale=self.sigma))


# ## Setup model
#
# A and B both have a N(20, 1) prior and their sum is observed at 46 with unit
# noise. The prior has no hand written gradient, so a finite difference one is used.

# In[3]:


like = SumLikelihood()
model = Model([20.0, 20.0], {"A": 0, "B": 1}, like.lnlikefn_grad, numerical_grad(like.lnpriorfn))

# Deterministic variables are kept up to date while sampling and can be
# recorded like latent ones.
model.add_deterministic("A+B", lambda a, b: a + b, ["A", "B"])


# ## Setup sampler

# In[4]:


sampler = NUTSSampler.NUTSSampler(model, sample_from=["A", "B", "A+B"], stepsize=0.25, seed=1234)


# ## Run Sampler for 20000 steps

# In[5]:


samples = sampler.sample(20000)

samples = samples.drop(1000)
print("Posterior mean of A+B: {0:.3f} (expected 44)".format(samples.mean("A+B")))
print("Mean tree depth: {0:.2f}".format(np.mean(samples.treedepth)))
