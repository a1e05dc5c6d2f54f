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

import logging
from collections import namedtuple
import numpy as np

from .fermi import dos2d, subband_population, subband_fermi
from .misc import kB, m_e, q, DEFAULT_TOLERANCE, Tolerance
from .misc import NoSolutionInRangeError, check_temperature
from .utils import AttrDict, CfgParser

logger = logging.getLogger(__name__)

BRACKET_WIDTH = 100     # half-margin of the search bracket, in kB*T


class Subband(namedtuple('Subband', ['Emin', 'm_d'])):
    '''
    A quantized subband of a 2D carrier system.

    Attributes
    ----------
    Emin : float
        Energy of the subband minimum, in J.
    m_d : float
        Density-of-states effective mass, in kg.
    '''
    __slots__ = ()

    def __new__(cls, Emin, m_d):
        if not m_d > 0:
            raise ValueError('Density-of-states mass must be positive.')
        return super().__new__(cls, float(Emin), float(m_d))

    def __str__(self):
        return f'{self.__class__.__name__}(Emin={self.Emin/q*1E3:.6g} meV, '\
               f'm_d={self.m_d/m_e:.6g} m_e)'

    @property
    def rho(self):
        '''Density of states, in 1/(J.m^2).'''
        return float(dos2d(self.m_d))

    def population(self, EF, T):
        '''Population of the subband at Fermi energy `EF`, in m^-2.'''
        return subband_population(self.Emin, EF, self.m_d, T)

    def fermi(self, N, T):
        '''Quasi-Fermi energy when the subband alone holds `N` carriers.'''
        return subband_fermi(self.Emin, self.m_d, N, T)


class CarrierEnsemble:
    '''
    Carriers distributed over a ladder of subbands, sharing a single
    quasi-Fermi energy at temperature `T` with a total areal
    population `N`.
    '''
    def __init__(self, subbands, T, N):
        '''
        Parameters
        ----------
        subbands : sequence of Subband
            Subbands ordered by their minimum energy.
        T : float
            Temperature of the carrier distribution, in K.
        N : float
            Total areal population, in m^-2.

        Raises
        ------
        InvalidTemperatureError
            If `T` is not positive.
        ValueError
            If no subband is given, any item is not a :class:`Subband`,
            or `N` is negative.
        '''
        subbands = tuple(subbands)
        if len(subbands) == 0:
            raise ValueError('At least one subband is required.')
        for subband in subbands:
            if not isinstance(subband, Subband):
                raise ValueError('Only Subband objects are supported.')
        if not N >= 0:
            raise ValueError('Population must be non-negative.')
        self._subbands = subbands
        self._T = float(check_temperature(T, 'carrier distribution'))
        self._N = float(N)
        self._E = np.array([sb.Emin for sb in subbands])
        self._m = np.array([sb.m_d for sb in subbands])

    def __str__(self):
        pstr = f'{self.__class__.__name__}(T={self.T:.6g} K, N={self.N:.6g} m^-2):'
        for subband in self.subbands:
            pstr += f'\n  {str(subband)}'
        return pstr

    def __len__(self):
        return len(self._subbands)

    @property
    def subbands(self):
        return self._subbands

    @property
    def T(self):
        return self._T

    @property
    def N(self):
        return self._N

    @classmethod
    def from_arrays(cls, E, m_d, T, N):
        '''
        Build the ensemble from subband minima `E` (in J) and masses `m_d`
        (in kg). A single mass is shared by all subbands.
        '''
        E = np.atleast_1d(np.asarray(E, dtype=float))
        m_d = np.atleast_1d(np.asarray(m_d, dtype=float))
        if E.ndim != 1:
            raise ValueError('Subband minima must be 1-dimensional.')
        if m_d.size == 1:
            m_d = np.full_like(E, m_d.item())
        elif m_d.shape != E.shape:
            raise ValueError('Length of m_d is not the same as the number '
                             'of subband minima')
        return cls([Subband(e, m) for e, m in zip(E, m_d)], T, N)

    def populations(self, EF):
        '''Population of each subband at Fermi energy `EF`, in m^-2.'''
        return subband_population(self._E, EF, self._m, self.T)

    def population(self, EF):
        '''Total population at Fermi energy `EF`, in m^-2.'''
        return float(np.sum(self.populations(EF)))

    def residual(self, EF):
        '''Excess of the total population at `EF` over the target.'''
        return self.population(EF) - self.N

    def bracket(self):
        '''Initial search range (Emin, Emax) of the Fermi energy, in J.'''
        margin = BRACKET_WIDTH * kB * self.T
        return np.min(self._E) - margin, np.max(self._E) + margin

    def population_tolerance(self, tol=None):
        '''
        Bound of the population error of a Fermi energy converged to
        `tol.energy`, since dN/dEF never exceeds the total density of
        states of the ladder.
        '''
        tol = tol or DEFAULT_TOLERANCE
        return float(np.sum(dos2d(self._m))) * tol.energy

    def solve(self, tol=None):
        '''Quasi-Fermi energy of the ensemble, see :func:`find_fermi_global`.'''
        return find_fermi_global(self, tol)


def find_fermi_global(ensemble, tol=None):
    '''
    Find the quasi-Fermi energy of a carrier ensemble, so that the
    populations of all subbands sum up to the target population.

    The root is located by bisection inside the bracket given by
    :meth:`CarrierEnsemble.bracket`. The bracket is never widened
    automatically.

    Parameters
    ----------
    ensemble : CarrierEnsemble
        The carriers and subbands.
    tol : Tolerance, optional
        Convergence criterion, by default :data:`DEFAULT_TOLERANCE`.

    Returns
    -------
    float
        The quasi-Fermi energy, in J.

    Raises
    ------
    NoSolutionInRangeError
        If the residual population does not change sign across the
        bracket, i.e. the target population is unreachable.
    '''
    tol = tol or DEFAULT_TOLERANCE
    E_min, E_max = ensemble.bracket()

    sign_min = np.sign(ensemble.residual(E_min))
    sign_max = np.sign(ensemble.residual(E_max))
    if sign_min == sign_max:
        raise NoSolutionInRangeError(
            f'No quasi-Fermi energy in range [{E_min:.6g}, {E_max:.6g}] J '
            f'for N = {ensemble.N:.6g} m^-2 at T = {ensemble.T:.6g} K.')

    E_mid = (E_min+E_max)/2
    while abs(E_max-E_min) > tol.energy:
        if E_mid in (E_min, E_max):
            break   # no representable float left inside the bracket
        sign_mid = np.sign(ensemble.residual(E_mid))
        if sign_mid == sign_min:
            E_min = E_mid
        else:
            E_max = E_mid
        E_mid = (E_min+E_max)/2
    return float(E_mid)

def solve_fermi(E, m_d, N, T, tol=None):
    '''
    Quasi-Fermi energies of a subband ladder over broadcasted populations
    `N` (in m^-2) and temperatures `T` (in K). Subband minima `E` are
    in J and masses `m_d` in kg.

    Returns
    -------
    ndarray
        Quasi-Fermi energies in J, with the broadcasted shape of `N`
        and `T`.
    '''
    def _solve(iN, iT):
        ensemble = CarrierEnsemble.from_arrays(E, m_d, iT, iN)
        return find_fermi_global(ensemble, tol)
    return np.vectorize(_solve, otypes=[float])(N, T)

def populations(E, m_d, EF, T):
    '''
    Populations of subbands (in m^-2) at broadcasted Fermi energies `EF`
    and temperatures `T`. The subband index is the first axis of output.
    '''
    E = np.atleast_1d(np.asarray(E, dtype=float))
    m_d = np.broadcast_to(np.asarray(m_d, dtype=float), E.shape)
    EF, T = np.broadcast_arrays(EF, T)
    shape = (E.size,) + (1,)*EF.ndim
    return subband_population(E.reshape(shape), EF, m_d.reshape(shape), T)


def parse_Subbands(filename, specify=None):
    '''
    Parse subband ladder, populations and temperatures from a config file,
    then solve the quasi-Fermi energies and populations of subbands.

    Subband minima are given in meV (or with a trailing unit, see
    :meth:`CfgParser._parse_energy`), or as "file: <path>" whose last
    column is read in meV. Masses are in m_e, and populations in m^-2.
    '''
    config = CfgParser()
    with open(filename, 'r') as f:
        config.read_file(f)
        logger.info(f'Read configuration from {filename}')

    entry = config['entry']
    logger.debug('Found entry section')

    if specify is not None:
        entry.update(specify)
        logger.debug('Update specify setting to entry:\n  %s' % specify)

    dsp = "Parameter '{}' is required in entry section!"
    for key in ('E', 'm_d', 'N', 'T'):
        if key not in entry:
            raise ValueError(dsp.format(key))

    if entry['E'].strip().startswith('file:'):
        E = 1E-3 * q * entry.getarray('E')[-1]
        logger.debug('Read subband minima from file')
    else:
        E = np.array(entry.getenergy('E'))
    logger.info('Subband minima (meV): [%s]' % ', '.join(f'{i:.6g}' for i in 1E3*E/q))

    m_d = entry.getlist_float('m_d')
    if len(m_d) not in (1, len(E)):
        raise ValueError('Length of m_d is not the same as the number '
                         'of subband minima')
    logger.info('DOS masses (m_e): [%s]' % ', '.join(f'{i:.6g}' for i in m_d))
    m_d = m_e * np.array(m_d)

    try:
        N, T = np.broadcast_arrays(entry.getseq('N'), entry.getseq('T'))
    except ValueError:
        raise ValueError(f'Mismatch is between N and T')
    logger.debug('N: [%s]' % ', '.join(f'{i:.3g}' for i in N))
    logger.debug('T: [%s]' % ', '.join(f'{i:.3g}' for i in T))

    if 'tolerance' in entry:
        tol = Tolerance(entry.getenergy('tolerance')[0])
    else:
        tol = DEFAULT_TOLERANCE
    logger.info(f'Bisection tolerance: {tol.energy/q:.3g} eV')

    EF = solve_fermi(E, m_d, N, T, tol)
    logger.info('Solve quasi-Fermi energies successfully')

    out = AttrDict(T=T, N=N, EF=1E3*EF/q)
    for i, Ni in enumerate(populations(E, m_d, EF, T), start=1):
        out[f'N{i}'] = Ni
    return out
