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

from collections import namedtuple
import numpy as np


kB = 1.380649e-23               #: Unit:: J/K
kB_eV = 8.617333262145179e-05   #: Unit:: eV/K
m_e = 9.1093837015e-31          #: Unit:: kg
hbar = 1.054571817e-34          #: Unit:: J.s
q = 1.602176634e-19             #: Unit:: C
NA = 6.02214076e23              #: Unit:: 1/mol

UNIT = {
    'T': 'K',
    'E': 'meV',
    'EF': 'meV',
    'm_d': 'm_e',
    'N': 'm^(-2)',
    'U': 'J/kg',
    'Cp': 'J/(kg.K)',
}
'''
====== ===================== =====================================
Key    Value                 Notes
====== ===================== =====================================
T      K                     Temperature
E      meV                   Subband minimum
EF     meV                   Quasi-Fermi energy
m_d    m_e                   Density-of-states effective mass
N      m^(-2)                Areal carrier population
U      J/kg                  Internal energy of lattice
Cp     J/(kg.K)              Specific heat capacity
====== ===================== =====================================

Units above are used by configuration files and command line outputs.
The numerical core itself works in SI units throughout.

:meta hide-value:
'''


class Tolerance(namedtuple('Tolerance', ['energy', 'step'])):
    '''
    Numerical tolerances shared by the solvers.

    Attributes
    ----------
    energy : float
        Width of the bisection bracket (in J) below which the Fermi
        energy is considered converged. Default is 1E-8 eV.
    step : float
        Initial step (in K) of the finite-difference derivative used
        to evaluate the specific heat. Default is 1 K.
    '''
    __slots__ = ()

    def __new__(cls, energy=1E-8*q, step=1.0):
        if energy <= 0:
            raise ValueError('Energy tolerance must be positive.')
        if step <= 0:
            raise ValueError('Finite-difference step must be positive.')
        return super().__new__(cls, energy, step)

    @classmethod
    def from_eV(cls, energy=1E-8, step=1.0):
        '''Build a tolerance from an energy width given in eV.'''
        return cls(energy*q, step)


DEFAULT_TOLERANCE = Tolerance()


class InvalidTemperatureError(ValueError):
    '''Raised when a temperature-dependent quantity gets T <= 0.'''
    pass


class NoSolutionInRangeError(RuntimeError):
    '''Raised when no quasi-Fermi energy exists inside the search bracket.'''
    pass


def check_temperature(T, what='the quantity'):
    '''
    Return T as ndarray, or raise InvalidTemperatureError if any
    element of it is not strictly positive.
    '''
    T = np.asarray(T, dtype=float)
    if np.any(~(T > 0)):
        raise InvalidTemperatureError(
            f'Cannot find {what} for T = {T} K (T > 0 is required).')
    return T
