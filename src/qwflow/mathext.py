#   Copyright 2023-2024 Jianbo ZHU
#
#   Licensed under the Apache License, Version 2.0 (the "License");
#   you may not use this file except in compliance with the License.
#   You may obtain a copy of the License at
#
#       http://www.apache.org/licenses/LICENSE-2.0
#
#   Unless required by applicable law or agreed to in writing, software
#   distributed under the License is distributed on an "AS IS" BASIS,
#   WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
#   See the License for the specific language governing permissions and
#   limitations under the License.

import numpy as np
from scipy.special import expit
from scipy.integrate import quad


def fermidirac(x):
    '''
    Fermi-Dirac function:
      1/(1+e^x)

    Parameters
    ----------
    x : array_like
        Argument of the Fermi-Dirac function

    Returns
    -------
    ndarray
        An array of the same shape as x
    '''
    return expit((-1)*np.asarray(x))

def log1pexp(x):
    '''
    Softplus function ln(1+e^x), free of overflow for large positive x
    and of underflow to zero for large negative x.

    Parameters
    ----------
    x : array_like
        Argument of the function.

    Returns
    -------
    ndarray
        An array of the same shape as x
    '''
    return np.logaddexp(0, np.asarray(x, dtype=float))

def logexpm1(x):
    '''
    Inverse of the softplus function, ln(e^x-1), for x >= 0.

    It follows ln(expm1(x)) for small x, where expm1 keeps the precision
    near zero, and x+ln(1-e^(-x)) for large x, where e^x would overflow.
    ln(expm1(0)) is -inf.

    Parameters
    ----------
    x : array_like
        Argument of the function.

    Returns
    -------
    ndarray
        An array of the same shape as x
    '''
    x = np.asarray(x, dtype=float)
    with np.errstate(over='ignore', divide='ignore', invalid='ignore'):
        small = np.log(np.expm1(np.minimum(x, 1)))
        large = x + np.log1p(-np.exp(-x))
    return np.where(x > 1, large, small)

def vquad(func, a, b, args=(), *, where=True, fill_value=0, **kwargs):
    '''
    Extend `scipy.integrate.quad` by adding support for broadcasting over
    `a`, `b`, `args`, `where`, and `fill_value`. The `where` and `fill_value`
    parameters are introduced for enhanced flexibility in controlling
    integration.

    Note that this function is not a true ufunc in the numpy sense. It
    leverages broadcasting and Python loops to offer a convenient interface
    for integrating a function across varying ranges and with diverse
    parameters. It prioritizes ease of use over optimal performance.

    Parameters
    ----------
    func : callable
        A Python function or method to integrate.
    a : array_like
        Lower limit of integration.
    b : array_like
        Upper limit of integration.
    args : tuple of array_like, optional
        Extra arguments to pass to `func`. Each element of `args` will be
        broadcasted to match the shape of `a` and `b`. Default is an empty
        tuple.
    where : array_like, optional
        Boolean mask to specify where to perform the integration. Default
        is `True`, which means that the integration is performed everywhere.
    fill_value : array_like, optional
        The value to use for masked positions. Default is `0`.
    **kwargs
        Additional keyword arguments passed to `scipy.integrate.quad`.

    Returns
    -------
    ndarray
        Array of computed integral values with the same shape as the
        broadcasted shape of `a`, `b`, and each element of `args`.
    ndarray
        Array of estimated integration errors with the same shape as
        the first returned ndarray.

    Examples
    --------
    >>> vquad(lambda x, n: n*x**2, 0, [1, 2, 3], args=(3,))[0]
    array([ 1.,  8., 27.])
    '''
    broadcasted = np.broadcast(a, b, where, fill_value, *args)
    bshape = broadcasted.shape
    itg = np.empty(bshape)
    res = np.empty(bshape)
    indexed = np.ndindex(bshape)

    for idx, (ia, ib, unmask, default, *iargs) in zip(indexed, broadcasted):
        if unmask:
            itg[idx], res[idx] = quad(func, ia, ib, args=tuple(iargs), **kwargs)
        else:
            itg[idx], res[idx] = default, 0
    return itg, res

def _forward_diff(func, x, h):
    # this function does NOT check input, assuming numpy.ndarray inputs.
    # 4-point open rule on (x+h/4, x+h/2, x+3h/4, x+h), compared with
    # the 2-point rule on (x+h/2, x+h) to estimate the truncation error
    eps = np.finfo(float).eps
    f1 = func(x + h/4)
    f2 = func(x + h/2)
    f3 = func(x + 3*h/4)
    f4 = func(x + h)
    r2 = 2 * (f4-f2)
    r4 = 22/3 * (f4-f3) - 62/3 * (f3-f2) + 52/3 * (f2-f1)
    e4 = 2 * 20.67 * (np.abs(f4)+np.abs(f3)+np.abs(f2)+np.abs(f1)) * eps
    dy = np.maximum(np.abs(r2/h), np.abs(r4/h)) * np.abs(x/h) * eps
    result = r4 / h
    err_trunc = np.abs((r4-r2) / h)
    err_round = np.abs(e4 / h) + dy
    return result, err_round, err_trunc

def forward_deriv(func, x, h=1, adaptive=True):
    '''
    Numerical derivative using only points at and beyond `x`, which is
    useful when `func` is undefined below `x`.

    The derivative is evaluated by a 4-point forward rule with step `h`.
    The difference to a 2-point rule gives the truncation error, while
    the rounding error is estimated from machine precision. If `adaptive`
    is True and the truncation error dominates, the evaluation is repeated
    once with the step balancing both errors, and that result is kept
    when it is more accurate and consistent with the first one.

    Parameters
    ----------
    func : callable
        A function f(x) supporting numpy broadcasting.
    x : array_like
        Points at which the derivative is evaluated.
    h : array_like, optional
        Initial step size, by default 1.
    adaptive : bool, optional
        Whether to refine the step size, by default True.

    Returns
    -------
    ndarray
        Derivative values with the same shape as `x`.
    ndarray
        Estimated absolute errors with the same shape as `x`.
    '''
    x = np.asarray(x, dtype=float)
    h = np.broadcast_to(np.asarray(h, dtype=float), x.shape)
    if np.any(h <= 0):
        raise ValueError('Step size must be positive.')

    result, err_round, err_trunc = _forward_diff(func, x, h)
    error = err_round + err_trunc
    if not adaptive:
        return result, error

    refine = (err_round < err_trunc) & (err_round > 0) & (err_trunc > 0)
    if np.any(refine):
        ratio = np.ones_like(h)
        np.divide(err_round, 2*err_trunc, out=ratio, where=refine)
        h_opt = np.where(refine, h * np.sqrt(ratio), h)
        r_opt, round_opt, trunc_opt = _forward_diff(func, x, h_opt)
        error_opt = round_opt + trunc_opt
        accept = refine \
                 & (error_opt < error) \
                 & (np.abs(r_opt - result) < 4*error)
        result = np.where(accept, r_opt, result)
        error = np.where(accept, error_opt, error)
    return result, error
