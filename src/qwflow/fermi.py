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

'''
Fermi-Dirac statistics of carriers confined in 2D subbands.

Energies (`E`, `EF`, `Esb`) are in J on a common absolute scale,
temperatures (`T`) in K, masses (`m_d`) in kg and areal populations
(`N`) in m^-2. All functions support numpy-style broadcasting.
'''

import numpy as np

from .mathext import fermidirac, log1pexp, logexpm1
from .misc import kB, hbar, check_temperature


def dos2d(m_d):
    '''
    Density of states of a 2D subband (spin-degenerate), in 1/(J.m^2):

    .. math::

        \\rho = \\frac{m_d^{\\ast}}{\\pi \\hbar^2}
    '''
    return np.asarray(m_d) / (np.pi*hbar*hbar)

def occupation(EF, E, T):
    '''
    Fermi-Dirac occupation probability of a state at energy `E`:

    .. math::

        f(E) = \\frac{1}{e^{(E-E_F)/k_BT}+1}

    It saturates to 0 or 1 for large energy differences without overflow.
    '''
    T = check_temperature(T, 'occupation probability')
    return fermidirac((np.asarray(E)-EF)/(kB*T))

def occupation_ionized(EF, Ed, T):
    '''
    Ionization probability of a donor level `Ed` with degeneracy of 2:

    .. math::

        f(E_d) = \\frac{1}{\\frac{1}{2} e^{(E_d-E_F)/k_BT}+1}
    '''
    T = check_temperature(T, 'ionisation probability')
    return fermidirac((np.asarray(Ed)-EF)/(kB*T) - np.log(2))

def subband_population(Esb, EF, m_d, T):
    '''
    Areal population of a subband with its minimum at `Esb`, in m^-2,
    obtained from the closed form of the 2D Fermi integral:

    .. math::

        N = \\rho k_BT \\ln\\left[1+e^{(E_F-E_{sb})/k_BT}\\right]
    '''
    T = check_temperature(T, 'subband population')
    kT = kB*T
    return dos2d(m_d) * kT * log1pexp((np.asarray(EF)-Esb)/kT)

def subband_fermi(Esb, m_d, N, T):
    '''
    Quasi-Fermi energy of a single subband holding `N` carriers, in J.
    It is the inverse of :func:`subband_population`:

    .. math::

        E_F = E_{sb} + k_BT \\ln\\left[e^{N\\pi\\hbar^2/m_d^{\\ast}k_BT}-1\\right]

    which assumes that carriers can spread to any energy above the
    subband minimum. Empty subband (`N` = 0) gives -inf.
    '''
    T = check_temperature(T, 'quasi-Fermi energy')
    N = np.asarray(N, dtype=float)
    if np.any(N < 0):
        raise ValueError('Population must be non-negative.')
    kT = kB*T
    return Esb + kT * logexpm1(N/(dos2d(m_d)*kT))
