r"""
Critical values for confidence intervals.

Functions
    :func:`z_crit` – two-sided normal critical value
    :func:`t_crit` – two-sided Student-t critical value
    :func:`autocrit` – pick one of the two from the sample size
"""

from __future__ import annotations

from scipy.stats import norm
from scipy.stats import t as student_t

__all__ = ["z_crit", "t_crit", "autocrit"]

_AUTO_T_BELOW = 30


def z_crit(confidence: float) -> float:
    r"""
    Two-sided normal critical value :math:`z_{1-\alpha/2}`.

    Examples
    --------
    >>> round(z_crit(0.95), 4)
    1.96
    """
    if not 0.0 < confidence < 1.0:
        raise ValueError("confidence must be in (0,1)")
    return float(norm.ppf(0.5 + confidence / 2.0))


def t_crit(confidence: float, df: int) -> float:
    r"""Two-sided Student-t critical value :math:`t_{1-\alpha/2,\,df}`."""
    if not 0.0 < confidence < 1.0:
        raise ValueError("confidence must be in (0,1)")
    if df < 1:
        raise ValueError("df must be >= 1")
    return float(student_t.ppf(0.5 + confidence / 2.0, df))


def autocrit(confidence: float, n: int, method: str = "auto") -> tuple[float, str]:
    r"""
    Return ``(critical value, kind)`` for a CI on the mean of ``n`` observations.

    Parameters
    ----------
    confidence : float
        Confidence level in :math:`(0, 1)`.
    n : int
        Effective sample size.
    method : {"auto", "z", "t"}, default ``"auto"``
        ``"auto"`` uses Student-t with ``n - 1`` degrees of freedom when
        ``n < 30`` and z otherwise.

    Returns
    -------
    tuple of (float, str)
        The critical value and ``"z"`` or ``"t"``.
    """
    method = getattr(method, "value", method)
    if method == "auto":
        method = "t" if n < _AUTO_T_BELOW else "z"
    if method == "z":
        return z_crit(confidence), "z"
    if method == "t":
        return t_crit(confidence, max(1, n - 1)), "t"
    raise ValueError(f"method must be one of 'auto', 'z', 't', got '{method}'")
