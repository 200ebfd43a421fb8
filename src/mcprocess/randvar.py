r"""
mcprocess.randvar
=================

Random variate generators by inversion.

Every generator turns uniforms :math:`U \sim \mathcal{U}(0, 1)` from a
:class:`~mcprocess.streams.RandomStream` into variates of a target law through
its quantile function,

.. math::
   X = F^{-1}(U),

which keeps one uniform per variate and therefore plays well with common
random numbers, antithetic streams and quasi-Monte Carlo points. The quantile
functions themselves are :mod:`scipy.stats`'.

This module provides:

* :class:`NormalGen` – :math:`\mathcal{N}(\mu, \sigma^2)`.
* :class:`GammaGen` – gamma with shape :math:`\alpha` and rate :math:`\lambda`.
* :class:`BinomialGen` – binomial :math:`\mathrm{Bin}(n, p)`.
* :class:`Pearson5Gen` – Pearson type V (inverse gamma) with shape :math:`\alpha` and scale :math:`\beta`.
* :class:`PowerGen` – power law on :math:`[a, b]` with exponent :math:`c`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

import numpy as np
from scipy import stats

from .errors import InvalidParameterError
from .streams import RandomStream

__all__ = [
    "RandomVariateGen",
    "NormalGen",
    "GammaGen",
    "BinomialGen",
    "Pearson5Gen",
    "PowerGen",
]


class RandomVariateGen(ABC):
    r"""
    Base class for inversion generators bound to a :class:`RandomStream`.

    Subclasses validate their parameters in ``set_params``, which raises before
    assigning anything, and implement :meth:`_frozen`, which returns the frozen
    :mod:`scipy.stats` distribution to invert. The static ``inverse_f`` of each
    subclass samples without a generator instance:
    ``GammaGen.inverse_f(alpha, lam, stream.next_double())``.
    """

    def __init__(self, stream: RandomStream):
        self.stream = stream

    @abstractmethod
    def _frozen(self) -> Any:
        """Return the frozen scipy distribution."""

    @property
    def distribution(self) -> Any:
        """The frozen :mod:`scipy.stats` distribution being sampled."""
        return self._frozen()

    def set_stream(self, stream: RandomStream) -> None:
        self.stream = stream

    def next_double(self) -> float:
        """Draw one variate by inverting one uniform."""
        return float(self._frozen().ppf(self.stream.next_double()))

    def next_array(self, n: int) -> np.ndarray:
        """Draw ``n`` variates by inverting ``n`` uniforms."""
        return np.asarray(self._frozen().ppf(self.stream.next_array(n)), dtype=float)


class NormalGen(RandomVariateGen):
    r"""
    Normal variates :math:`X = \mu + \sigma\,\Phi^{-1}(U)`.

    Parameters
    ----------
    stream : RandomStream
        Source of uniforms.
    mu : float, default ``0.0``
        Mean.
    sigma : float, default ``1.0``
        Standard deviation, must be positive.
    """

    def __init__(self, stream: RandomStream, mu: float = 0.0, sigma: float = 1.0):
        super().__init__(stream)
        self.set_params(mu, sigma)

    def set_params(self, mu: float, sigma: float) -> None:
        if sigma <= 0.0:
            raise InvalidParameterError("sigma must be positive")
        self.mu = float(mu)
        self.sigma = float(sigma)

    def _frozen(self):
        return stats.norm(loc=self.mu, scale=self.sigma)

    def next_double(self) -> float:
        return self.mu + self.sigma * float(stats.norm.ppf(self.stream.next_double()))

    def next_array(self, n: int) -> np.ndarray:
        return self.mu + self.sigma * stats.norm.ppf(self.stream.next_array(n))

    @staticmethod
    def inverse_f(mu: float, sigma: float, u):
        r"""Normal quantile :math:`\mu + \sigma\,\Phi^{-1}(u)`."""
        return mu + sigma * stats.norm.ppf(u)


class GammaGen(RandomVariateGen):
    r"""
    Gamma variates with shape :math:`\alpha` and rate :math:`\lambda`.

    The density is :math:`f(x) = \lambda^\alpha x^{\alpha - 1} e^{-\lambda x} / \Gamma(\alpha)`
    for :math:`x > 0`, mean :math:`\alpha/\lambda` and variance :math:`\alpha/\lambda^2`.

    Parameters
    ----------
    stream : RandomStream
        Source of uniforms.
    alpha : float
        Shape, must be positive.
    lam : float, default ``1.0``
        Rate, must be positive.
    """

    def __init__(self, stream: RandomStream, alpha: float, lam: float = 1.0):
        super().__init__(stream)
        self.set_params(alpha, lam)

    def set_params(self, alpha: float, lam: float) -> None:
        if lam <= 0.0:
            raise InvalidParameterError("lam must be positive")
        if alpha <= 0.0:
            raise InvalidParameterError("alpha must be positive")
        self.alpha = float(alpha)
        self.lam = float(lam)

    def _frozen(self):
        return stats.gamma(a=self.alpha, scale=1.0 / self.lam)

    @staticmethod
    def inverse_f(alpha: float, lam: float, u):
        """Gamma quantile for shape ``alpha`` and rate ``lam``."""
        return stats.gamma.ppf(u, a=alpha, scale=1.0 / lam)


class BinomialGen(RandomVariateGen):
    r"""
    Binomial variates: number of successes in :math:`n` trials with probability :math:`p`.

    Parameters
    ----------
    stream : RandomStream
        Source of uniforms.
    n : int
        Number of trials, must be positive.
    p : float
        Success probability in :math:`[0, 1]`.
    """

    def __init__(self, stream: RandomStream, n: int, p: float):
        super().__init__(stream)
        self.set_params(n, p)

    def set_params(self, n: int, p: float) -> None:
        if p < 0.0 or p > 1.0:
            raise InvalidParameterError("p not in range [0, 1]")
        if n <= 0:
            raise InvalidParameterError("n must be positive")
        self.n = int(n)
        self.p = float(p)

    def _frozen(self):
        return stats.binom(n=self.n, p=self.p)

    def next_int(self) -> int:
        """Draw one binomial count."""
        return int(self._frozen().ppf(self.stream.next_double()))

    def next_array(self, n: int) -> np.ndarray:
        return np.asarray(self._frozen().ppf(self.stream.next_array(n)), dtype=np.int64)

    def next_double(self) -> float:
        return float(self.next_int())

    @staticmethod
    def inverse_f(n: int, p: float, u) -> int:
        """Binomial quantile: smallest ``k`` with ``P(X <= k) >= u``."""
        return int(stats.binom.ppf(u, n, p))


class Pearson5Gen(RandomVariateGen):
    r"""
    Pearson type V variates, i.e. inverse gamma with shape :math:`\alpha` and scale :math:`\beta`.

    If :math:`Y` is gamma with shape :math:`\alpha` and rate :math:`\beta`, then
    :math:`1/Y` is Pearson V with density
    :math:`\beta^\alpha x^{-\alpha-1} e^{-\beta/x} / \Gamma(\alpha)`.
    """

    def __init__(self, stream: RandomStream, alpha: float, beta: float = 1.0):
        super().__init__(stream)
        self.set_params(alpha, beta)

    def set_params(self, alpha: float, beta: float) -> None:
        if alpha <= 0.0:
            raise InvalidParameterError("alpha must be positive")
        if beta <= 0.0:
            raise InvalidParameterError("beta must be positive")
        self.alpha = float(alpha)
        self.beta = float(beta)

    def _frozen(self):
        return stats.invgamma(a=self.alpha, scale=self.beta)

    @staticmethod
    def inverse_f(alpha: float, beta: float, u):
        return stats.invgamma.ppf(u, a=alpha, scale=beta)


class PowerGen(RandomVariateGen):
    r"""
    Power-law variates on :math:`[a, b]` with CDF :math:`F(x) = \big((x - a)/(b - a)\big)^c`.

    The inverse is :math:`a + (b - a)\,U^{1/c}`. Arguments follow the order of
    :meth:`inverse_f`; :meth:`unit` builds the generator on :math:`[0, 1]`.

    Parameters
    ----------
    stream : RandomStream
        Source of uniforms.
    a, b : float
        Support bounds, ``a < b``.
    c : float
        Exponent, must be positive.
    """

    def __init__(self, stream: RandomStream, a: float, b: float, c: float):
        super().__init__(stream)
        self.set_params(a, b, c)

    @classmethod
    def unit(cls, stream: RandomStream, c: float) -> "PowerGen":
        """Power law on the unit interval, :math:`F(x) = x^c`."""
        return cls(stream, 0.0, 1.0, c)

    def set_params(self, a: float, b: float, c: float) -> None:
        if c <= 0.0:
            raise InvalidParameterError("c must be positive")
        if b <= a:
            raise InvalidParameterError("b must be greater than a")
        self.a = float(a)
        self.b = float(b)
        self.c = float(c)

    def _frozen(self):
        return stats.powerlaw(a=self.c, loc=self.a, scale=self.b - self.a)

    @staticmethod
    def inverse_f(a: float, b: float, c: float, u):
        return a + (b - a) * np.power(u, 1.0 / c)
