"""
Numba-compiled elementwise kernels.

These are literal loops over the vector elements. They back the reference
VectorOps implementation, so accumulation happens strictly in index order
(no fastmath, no parallel reduction).
"""
import math

import numpy as np
from numba import njit


@njit(cache=True)
def dot_kernel(a, b):
    """Accumulate a[i] * b[i] in index order."""
    accum = 0.0
    for i in range(a.shape[0]):
        accum += a[i] * b[i]
    return accum


@njit(cache=True)
def add_kernel(a, b):
    for i in range(a.shape[0]):
        a[i] += b[i]


@njit(cache=True)
def sub_kernel(a, b):
    for i in range(a.shape[0]):
        a[i] -= b[i]


@njit(cache=True)
def scale_kernel(a, c):
    for i in range(a.shape[0]):
        a[i] *= c


@njit(cache=True)
def signed_log_kernel(a, small_value):
    """
    In-place sign-preserving natural log.

    |x| < small_value becomes 0, positive x becomes ln(x) and negative x
    becomes -ln(-x).
    """
    for i in range(a.shape[0]):
        x = a[i]
        if abs(x) < small_value:
            a[i] = 0.0
        elif x > 0.0:
            a[i] = math.log(x)
        else:
            a[i] = -math.log(-x)


@njit(cache=True)
def has_nan_kernel(a):
    for i in range(a.shape[0]):
        if np.isnan(a[i]):
            return True
    return False
