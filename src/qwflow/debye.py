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
import numpy as np

from .mathext import vquad, forward_deriv
from .misc import kB, NA, DEFAULT_TOLERANCE, check_temperature
from .utils import AttrDict, ExecWrapper, CfgParser

logger = logging.getLogger(__name__)

_X_CUT = 100    # t^3/(e^t-1) beyond it is lost in double precision
_X_SERIES = 1E-3    # below it D3 is evaluated by its Taylor series


def _debye_kernel(t):
    if t > 0:
        return t*t*t/np.expm1(t)
    return 0.0

def debye3(x):
    '''
    Third-order Debye function:

    .. math::

        D_3(x) = \\frac{3}{x^3} \\int_0^x \\frac{t^3}{e^t-1} dt

    Parameters
    ----------
    x : array_like
        Non-negative argument, typically :math:`\\Theta_D/T`.

    Returns
    -------
    ndarray
        Function values with the same shape as `x`. D_3(0) is 1.
    '''
    x = np.asarray(x, dtype=float)
    if np.any(x < 0):
        raise ValueError('Argument of Debye function must be non-negative.')
    small = (x < _X_SERIES)
    upper = np.minimum(x, _X_CUT)
    itg, _ = vquad(_debye_kernel, 0, upper, where=~small,
                   epsabs=0, epsrel=1E-12, limit=200)
    series = 1 - 3*x/8 + x*x/20
    with np.errstate(divide='ignore', invalid='ignore'):
        return np.where(small, series, 3*itg/np.power(x, 3))


class DebyeModel:
    '''
    Debye model of the lattice specific heat capacity.

    The model is defined by the Debye temperature :math:`\\Theta_D`,
    the molar mass :math:`M` and the number of atoms per formula unit
    :math:`n`. With :math:`M` in kg/mol, energies are given in J/kg
    and heat capacities in J/(kg.K); use :meth:`molar` to convert them
    to molar quantities.

    Attributes
    ----------
    TD : float
        Debye temperature, in K.
    M : float
        Molar mass, in kg/mol.
    natoms : int
        Number of atoms per formula unit.
    '''
    tag = 'DEBYE'

    def __init__(self, TD, M, natoms=1):
        if not TD > 0:
            raise ValueError('Debye temperature must be positive.')
        if not M > 0:
            raise ValueError('Molar mass must be positive.')
        if natoms < 1 or int(natoms) != natoms:
            raise ValueError('Number of atoms must be a positive integer.')
        self._TD = float(TD)
        self._M = float(M)
        self._natoms = int(natoms)

    def __str__(self):
        return f'{self.__class__.__name__}(TD={self.TD:.6g}, '\
               f'M={self.M:.6g}, natoms={self.natoms})'

    @property
    def TD(self):
        return self._TD

    @property
    def M(self):
        return self._M

    @property
    def natoms(self):
        return self._natoms

    @property
    def T_match(self):
        '''
        Temperature at which the low- and high-temperature approximations
        give the same specific heat, in K:

        .. math::

            T_0 = \\Theta_D \\left(\\frac{5}{4\\pi^4}\\right)^{1/3}
        '''
        return self.TD * np.cbrt(1.25/np.power(np.pi, 4))

    def molar(self, value):
        '''Convert a per-kilogram quantity to the molar one.'''
        return np.asarray(value) * self.M

    def internal_energy(self, T):
        '''
        Internal energy of the lattice, in J/kg:

        .. math::

            U = \\frac{3 N_A k_B T n}{M} D_3(\\Theta_D/T)

        Raises
        ------
        InvalidTemperatureError
            If any `T` <= 0.
        '''
        T = check_temperature(T, 'internal energy')
        return 3 * NA * kB * T * self.natoms / self.M * debye3(self.TD/T)

    def specific_heat(self, T, step=None, full_output=False):
        '''
        Specific heat capacity in J/(kg.K), obtained by differentiating
        the internal energy with respect to temperature. Only points at
        and above `T` are sampled by the forward differences.

        Parameters
        ----------
        T : array_like
            Temperatures, in K.
        step : float, optional
            Initial step of finite differences, in K. By default,
            the step of :data:`DEFAULT_TOLERANCE` (1 K).
        full_output : bool, optional
            If True, return the estimated absolute error as well.

        Returns
        -------
        ndarray
            Specific heat capacity.
        ndarray, optional
            Estimated absolute error, if `full_output` is True.

        Raises
        ------
        InvalidTemperatureError
            If any `T` <= 0.
        '''
        T = check_temperature(T, 'specific heat capacity')
        step = DEFAULT_TOLERANCE.step if step is None else step
        cp, abserr = forward_deriv(self.internal_energy, T, step)
        if full_output:
            return cp, abserr
        return cp

    def specific_heat_lowT(self, T):
        '''
        Low-temperature (:math:`T^3` law) specific heat, in J/(kg.K):

        .. math::

            c = \\frac{12 \\pi^4 N_A k_B T^3 n}{5 \\Theta_D^3 M}
        '''
        T = np.asarray(T, dtype=float)
        pi4 = np.power(np.pi, 4)
        return 12*pi4*NA*kB*np.power(T/self.TD, 3)/5 * self.natoms/self.M

    def specific_heat_highT(self):
        '''
        High-temperature (Dulong-Petit) specific heat, in J/(kg.K):

        .. math::

            c = \\frac{3 N_A k_B n}{M}
        '''
        return 3*NA*kB*self.natoms/self.M

    def specific_heat_approx(self, T):
        '''
        Quick approximation of the specific heat, in J/(kg.K), using the
        high-temperature form above :attr:`T_match` and the low-temperature
        form otherwise.

        Note that the approximation is discontinuous at :attr:`T_match`,
        and it significantly overestimates the specific heat around there.
        '''
        T = np.asarray(T, dtype=float)
        return np.where(T > self.T_match,
                        self.specific_heat_highT(),
                        self.specific_heat_lowT(T))


EXECMETA = {
    'DEBYE': ExecWrapper(DebyeModel,
        args=['TD', 'M'],
        opts=['natoms'],
    ),
}


def parse_Debye(filename, specify=None):
    '''Parse Debye model and evaluate thermal properties from a config file'''
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

    material = entry.get('material')
    if material is None:
        raise ValueError(dsp.format('material'))
    content, xtype = config.pmatch(material)
    if xtype not in EXECMETA:
        raise ValueError(f'Unknown model of {material}: {xtype}')
    kwargs = {k: float(v) for k, v in content.items()}
    model = EXECMETA[xtype].execute(**kwargs)
    logger.info(f'Build model: {str(model)}')
    logger.info(f'Cross-over temperature of approximations: {model.T_match:.6g} K')

    T = entry.getseq('T')
    if T is None:
        raise ValueError(dsp.format('T'))
    T = np.asarray(T, dtype=float)
    logger.debug('T: [%s]' % ', '.join(f'{i:.3g}' for i in T))

    step = entry.getfloat('step', DEFAULT_TOLERANCE.step)
    props_default = 'T U Cp Cp_approx'.split()
    props = entry.getlist('properties', props_default)
    logger.info(f'Calculate properties: {", ".join(props)}')

    out = AttrDict()
    Cp, Cp_err = None, None
    for prop in props:
        if prop == 'T':
            out[prop] = T
        elif prop == 'U':
            out[prop] = model.internal_energy(T)
        elif prop in ('Cp', 'Cp_err'):
            if Cp is None:
                logger.debug(f'Differentiate internal energy (step = {step} K)')
                Cp, Cp_err = model.specific_heat(T, step, full_output=True)
            out[prop] = Cp if prop == 'Cp' else Cp_err
        elif prop == 'Cp_low':
            out[prop] = model.specific_heat_lowT(T)
        elif prop == 'Cp_high':
            out[prop] = np.full_like(T, model.specific_heat_highT())
        elif prop == 'Cp_approx':
            out[prop] = model.specific_heat_approx(T)
        else:
            raise ValueError(f'Unknown property: {prop}')
    return model, out
