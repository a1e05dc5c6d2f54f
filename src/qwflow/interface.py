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

import sys
import argparse, textwrap
from pathlib import PurePath
from datetime import datetime

import numpy as np

from ._version import __version__
from .utils import get_root_logger

CMD = 'qwf'
CPR = 'Copyright 2023-2024 Jianbo ZHU'
PKG = __package__.replace('qw', 'QW')
VISION = __version__
INFO = f'{PKG}({VISION})'
PLATFORM = f"{INFO} @ Python {sys.version}".replace('\n', '')
TIME = datetime.now().strftime('%Y.%m.%d %H:%M:%S')
DESCRIPTION = {
    'fermi': 'Solve quasi-Fermi energies of 2D subband ladders',
    'debye': 'Lattice heat capacity with the Debye model',
}

INFO_HELP = f'''
   ___  __        __  __ _
  / _ \\ \\ \\      / / / _| | _____      __
 | | | | \\ \\ /\\ / / | |_| |/ _ \\ \\ /\\ / /
 | |_| |  \\ V  V /  |  _| | (_) \\ V  V /
  \\__\\_\\   \\_/\\_/   |_| |_|\\___/ \\_/\\_/

                 {                 f'(v{VISION}, {CPR})':>45s}
______________________________________________________________________
>>> Carrier statistics & lattice thermodynamics of quantum wells

Usage: {CMD}-subcommand [-h] ...

Subcommands:
     fermi  {DESCRIPTION['fermi']}
     debye  {DESCRIPTION['debye']}
'''
FOOTNOTE = ''

LOG_LEVEL = 20
LOG_FMT = f'[{PKG}] %(message)s'

# some public options
OPTS = {
    # parser.add_argument('-H', '--headers', **OPTS['headers'])
    'headers': dict(
        action='store_true',
        help='Include headers without a hash character'
    ),

    # parser.add_argument('-b', '--bare', **OPTS['bare'])
    'bare': dict(
        action='store_true',
        help='Output data without header',
    ),

    # parser.add_argument('inputfile', **OPTS['inputf'])
    'inputf': dict(
        metavar='CONFIGFILE',
        help='Configuration file name (must be provided)',
    ),

    # parser.add_argument('outputfile', **OPTS['outputf'])
    'outputf': dict(
        metavar='OUTPUTFILE', nargs='?',
        help='Output file name (optional, auto-generated if omitted)',
    ),

    # parser.add_argument('-s', '--suffix', **OPTS['suffix'](task))
    'suffix': lambda suf: dict(
        default=f'{suf}',
        help=f'Suffix for generating the output file name (default: {suf})',
    ),
}

class _StoreDict(argparse.Action):
    # collect options which override the [entry] section of config file
    def __call__(self, parser, namespace, values, option_string=None):
        stored_params = getattr(namespace, 'stored_params', {})
        stored_params[self.dest] = values
        setattr(namespace, 'stored_params', stored_params)
        setattr(namespace, self.dest, values)

def _do_main(args=None):
    global LOG_LEVEL, LOG_FMT
    if __debug__:
        # disable by python -O option
        LOG_LEVEL = 10
        LOG_FMT = '[%(levelname)5s] %(message)s'

    args = args or sys.argv[1:]

    if len(args) > 0:
        task = args[0].lower()
        if task.startswith('fermi'):
            do_fermi(args[1:])
        elif task.startswith('debye'):
            do_debye(args[1:])
        else:
            do_help()
    else:
        print(PLATFORM)


def _wraptxt(title, description='', indent=2, width=75):
    if description:
        indentation = ' ' * indent
        contents = textwrap.fill(
            textwrap.dedent(description).strip(),
            initial_indent=indentation+'>>> ',
            subsequent_indent=indentation,
            width=width,
        )
        return title + '\n\n' + contents
    else:
        return title


def _suffixed(outputname, inputname, suffix, ext=None):
    '''
    Append suffix to inputname if outputname is absent, otherwise return itself.
    '''
    if outputname:
        return outputname

    p = PurePath(inputname)
    if p.suffix:
        return f'{p.stem}_{suffix}{ext or p.suffix}'
    else:
        return f'{p.stem}_{suffix}'


def _to_file(options, data, header='', labels=(), fmt='%.4f', fp=None):
    if fp is None:
        fp = _suffixed(options.outputfile, options.inputfile, options.suffix)

    if isinstance(data, dict):
        labels = labels or list(data.keys())
        data = np.vstack(list(data.values())).T

    if options.bare:
        np.savetxt(fp, data, fmt=fmt)
    else:
        header = f'{header} - {TIME} {INFO}' if header else f'{TIME} {INFO}'
        labels = '  '.join(labels) if not isinstance(labels, str) else labels
        if getattr(options, 'headers', False):
            header = labels or header
            comments = ''
        else:
            header += f'\n{labels}' if labels else ''
            comments = '#'
        np.savetxt(fp, data, fmt=fmt, header=header, comments=comments)
    return fp


def do_help():
    print(INFO_HELP)
    print(FOOTNOTE)


def do_fermi(args=None):
    from .subbands import parse_Subbands

    task = 'fermi'
    DESC = DESCRIPTION[task]
    parser = argparse.ArgumentParser(
        prog=f'{CMD}-{task}',
        formatter_class=argparse.RawTextHelpFormatter,
        epilog=FOOTNOTE,
        description=_wraptxt(f'{DESC} - {INFO}','''
            Finds the single quasi-Fermi energy shared by all subbands
            (defined in a configuration file) which accommodates the given
            areal population at each temperature, and reports the population
            of every subband. Fermi energies are in meV, on the same scale
            as the subband minima.
            ''')
        )

    parser.add_argument('-H', '--headers', **OPTS['headers'])

    parser.add_argument('-b', '--bare', **OPTS['bare'])

    parser.add_argument('--T', action=_StoreDict, metavar='VALUE',
        help="Temperature points in Kelvin.")

    parser.add_argument('--N', action=_StoreDict, metavar='VALUE',
        help="Areal populations in m^-2.")

    parser.add_argument('--E', action=_StoreDict, metavar='VALUE',
        help="Subband minima in meV, or followed by a unit (meV, eV or J).")

    parser.add_argument('--m_d', action=_StoreDict, metavar='VALUE',
        help="Density-of-states masses in m_e.")

    parser.add_argument('--tol', dest='tolerance', action=_StoreDict,
        metavar='VALUE', help="Bisection tolerance in meV, or followed by a unit\n"
        "(meV, eV or J), e.g. '1E-8 eV' (default: 1E-8 eV).")

    parser.add_argument('-p', '--properties',
        help='Specify the columns to output, separated by spaces.')

    parser.add_argument('inputfile', **OPTS['inputf'])

    parser.add_argument('outputfile', **OPTS['outputf'])

    parser.add_argument('-s', '--suffix', **OPTS['suffix'](task))

    options = parser.parse_args(args)

    logger = get_root_logger(level=LOG_LEVEL, fmt=LOG_FMT)
    logger.info(f'{DESC} - {TIME}')

    configfile = options.inputfile
    overriden = getattr(options, 'stored_params', {})
    out = parse_Subbands(filename=configfile, specify=overriden)

    props = options.properties
    if props is not None:
        out.retain(props.strip().split(), match_order=True)
    logger.info(f'Output properties: {list(out.keys())}')

    outputf = _suffixed(options.outputfile, configfile, options.suffix, '.txt')
    _to_file(options, out, fmt='%.6E', header='Quasi-Fermi energies', fp=outputf)
    logger.info(f'Save quasi-Fermi energies to {outputf} (Done)')


def do_debye(args=None):
    from .debye import parse_Debye

    task = 'debye'
    DESC = DESCRIPTION[task]
    parser = argparse.ArgumentParser(
        prog=f'{CMD}-{task}',
        formatter_class=argparse.RawTextHelpFormatter,
        epilog=FOOTNOTE,
        description=_wraptxt(f'{DESC} - {INFO}','''
            Evaluates the internal energy (U) and the specific heat (Cp) of
            a lattice from its Debye temperature, together with the
            low-temperature (Cp_low), Dulong-Petit (Cp_high) and combined
            (Cp_approx) approximations. Cp_err is the estimated error of
            the numerical derivative. All values are per kilogram.
            ''')
        )

    parser.add_argument('-H', '--headers', **OPTS['headers'])

    parser.add_argument('-b', '--bare', **OPTS['bare'])

    parser.add_argument('--T', action=_StoreDict, metavar='VALUE',
        help="Temperature points in Kelvin.")

    parser.add_argument('--step', action=_StoreDict, metavar='VALUE',
        help="Step of finite differences in Kelvin (default: 1).")

    parser.add_argument('-p', '--properties', action=_StoreDict,
        help='Specify the properties to be calculated, separated by spaces.')

    parser.add_argument('inputfile', **OPTS['inputf'])

    parser.add_argument('outputfile', **OPTS['outputf'])

    parser.add_argument('-s', '--suffix', **OPTS['suffix'](task))

    options = parser.parse_args(args)

    logger = get_root_logger(level=LOG_LEVEL, fmt=LOG_FMT)
    logger.info(f'{DESC} - {TIME}')

    configfile = options.inputfile
    overriden = getattr(options, 'stored_params', {})
    model, out = parse_Debye(filename=configfile, specify=overriden)

    outputf = _suffixed(options.outputfile, configfile, options.suffix, '.txt')
    _to_file(options, out, fmt='%.6E', header=str(model), fp=outputf)
    logger.info(f'Save thermal properties to {outputf} (Done)')
