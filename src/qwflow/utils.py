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

import re
import logging
from io import StringIO
from collections import OrderedDict
from collections.abc import Iterable, Sequence
from configparser import ConfigParser, ExtendedInterpolation, NoSectionError

import numpy as np

from .misc import q


_handlers = dict()
def get_root_logger(stdout=True, filename=None, mode='a', level=None,
                    fmt='[%(levelname)s] %(message)s',
                    datefmt='%Y-%m-%d %H:%M:%S',
                    file_fmt='%(asctime)s [%(levelname)s @ %(name)s] %(message)s',
                    *, pkgname=None):
    '''
    Get the package logger, attaching a console handler and (optionally)
    a file handler. Calling it again replaces the handlers installed by
    the previous call instead of stacking them.
    '''
    pkgname = pkgname or __package__
    logger = logging.getLogger(pkgname)
    targets = []
    if stdout:
        targets.append(('console', logging.StreamHandler(), fmt))
    if filename is not None:
        targets.append((filename, logging.FileHandler(filename, mode), file_fmt))
    for name, handler, hfmt in targets:
        token = (pkgname, name)
        if token in _handlers:
            logger.removeHandler(_handlers.pop(token))
        handler.setFormatter(logging.Formatter(fmt=hfmt, datefmt=datefmt))
        logger.addHandler(handler)
        _handlers[token] = handler
    if level is not None:
        logger.setLevel(level)
    return logger


class AttrDict(OrderedDict):
    '''
    An ordered dictionary holding named columns of results, which also
    supports attribute-style access of existing keys.

    Examples
    --------
    >>> d = AttrDict(T=[77, 300], EF=[12.5, -3.1])
    >>> d.EF
    [12.5, -3.1]
    '''
    def __getattr__(self, attr):
        try:
            return self[attr]
        except KeyError:
            raise AttributeError(attr)

    def retain(self, keys, match_order=False):
        '''
        Retain specified keys, optionally reordering them as in `keys`.

        Parameters
        ----------
        keys : Iterable or Sequence
            The keys to be retained. A Sequence is required when
            'match_order' is True. Unknown keys are ignored.
        match_order : bool, optional
            If True, the retained keys follow the order of `keys`.
            Default is False.

        Returns
        -------
        dict
            The removed keys and their values.

        Raises
        ------
        TypeError
            If 'keys' is not an Iterable, or not a Sequence when
            'match_order' is True.

        Examples
        --------
        >>> d = AttrDict(T=1, N=2, EF=3, N1=4)
        >>> d.retain(['EF', 'T'], match_order=True)
        {'N': 2, 'N1': 4}
        >>> list(d)
        ['EF', 'T']
        '''
        if not isinstance(keys, Iterable):
            raise TypeError("'keys' must be an Iterable.")
        if match_order and not isinstance(keys, Sequence):
            raise TypeError("When 'match_order' is True, "
                            "'keys' must be a Sequence.")

        popped = {key: self.pop(key) for key in list(self) if key not in keys}
        if match_order:
            for key in keys:
                if key in self:
                    self.move_to_end(key)
        return popped


class CfgParser(ConfigParser):
    '''
    A configuration parser derived from ConfigParser for input files of
    simulations:

    - Case sensitive options and section names which may hold whitespace.
    - Only '=' separates keys and values, and '#' starts (inline) comments.
    - `ExtendedInterpolation()` allows values to reference other values.
    - Converters for `array`, `list`, `list_float`, `seq` and `energy`,
      available as :meth:`getarray`, :meth:`getseq`, etc.
    - :meth:`pmatch` finds [SectionName.SectionType] type sections.
    '''
    ENERGY_UNITS = {'meV': 1E-3*q, 'eV': q, 'J': 1}

    def __init__(self,
                 allow_section_whitespace=True,
                 case_sensitive=True,
                 **kwargs):
        setting = {
            'delimiters': ('=',),
            'comment_prefixes': ('#',),
            'inline_comment_prefixes': ('#',),
            'interpolation': ExtendedInterpolation(),
            **kwargs,
            'converters': {
                'array': self._parse_array,
                'list': self._parse_list,
                'list_float': self._parse_list_float,
                'seq': self._parse_seq,
                'energy': self._parse_energy,
                **kwargs.get('converters', {}),
            },
        }
        super().__init__(**setting)
        if allow_section_whitespace:
            self.SECTCRE = re.compile(r"\[ *(?P<header>[^]]+?) *\]")
        if case_sensitive:
            self.optionxform = lambda x: x

    def pmatch(self, section):
        '''
        Retrieve the content and the type of the section named like
        [SectionName.SectionType], or [SectionName] whose type is itself.
        '''
        for sect, content in self.items():
            if sect.startswith(section+'.'):
                _, otype = sect.split('.', 1)
                return content, otype
            elif sect == section:
                return content, sect
        else:
            raise NoSectionError(f'{section}.<SectionType>')

    @staticmethod
    def _parse_array(text:str):
        # columns of the data become rows of the array
        text = text.strip()
        if text.startswith('file:'):
            sdata = text[5:].strip()
        elif text.startswith('array:'):
            sdata = StringIO(text[6:].strip())
        else:
            sdata = StringIO(text)
        return np.loadtxt(sdata, unpack=True, ndmin=2)

    @staticmethod
    def _parse_list(text:str):
        return [item for item in re.split(r'[\s,]+', text) if item]

    @staticmethod
    def _parse_list_float(text:str):
        return [float(item) for item in re.split(r'[\s,]+', text) if item]

    @classmethod
    def _parse_energy(cls, text:str):
        '''
        Energies in J, from values in meV unless the last item is one of
        the units 'meV', 'eV' or 'J', e.g. '0 35.2 120 meV'.
        '''
        items = [item for item in re.split(r'[\s,]+', text) if item]
        factor = cls.ENERGY_UNITS['meV']
        if items and items[-1] in cls.ENERGY_UNITS:
            factor = cls.ENERGY_UNITS[items.pop()]
        if not items:
            raise ValueError(f'No energy value is given: {text}')
        return [factor*float(item) for item in items]

    @staticmethod
    def _parse_seq(text:str):
        # 'a' -> [a], 'a:b' -> [a, a+1, ..., b], 'a:s:b' -> [a, a+s, ..., b]
        result = []
        for part in filter(None, re.split(r'(?<!:)[\s,]+(?!:)', text)):
            seq_parts = list(filter(None, re.split(r'[:\s]+', part)))
            if len(seq_parts) == 1:
                result.append(float(seq_parts[0]))
            elif len(seq_parts) in (2, 3):
                if len(seq_parts) == 2:
                    start, end = map(float, seq_parts)
                    step = 1.0
                else:
                    start, step, end = map(float, seq_parts)
                if step <= 0:
                    raise ValueError(f'Invalid sequence step: {text}')
                num = (end-start)/step
                if num < 0:
                    continue
                result.extend(start + i*step for i in range(int(num+1E-4)+1))
            else:
                raise ValueError(f'Invalid sequence format: {text}')
        return result


class ExecWrapper:
    '''
    A utility class for dynamically managing the arguments of a callable or
    a class constructor, e.g. to build a model from parameters read from
    a configuration file.

    Attributes
    ----------
    UNSET
        The unset flag for an argument.

    Parameters
    ----------
    obj : Any
        A callable object or class constructor to manage.
    args : list, optional
        The names of required arguments for the managed object.
    opts : list, optional
        The names of optional arguments for the managed object.
    '''

    UNSET = object()    #: :meta private:

    def __init__(self, obj, args=(), opts=()):
        self.obj = obj
        self.args = {key: self.UNSET for key in args}
        self.opts = {key: self.UNSET for key in opts}

    def execute(self, **kwargs):
        '''
        Executes the callable or instantiates the class, with given
        keyword arguments. Keywords that are neither required nor
        optional arguments are ignored.

        Raises
        ------
        ValueError
            If any required argument is missing.
        RuntimeError
            If the execution of the callable or the class instantiation fails.
        '''
        arguments = {**self.args,
                     **{k: v for k, v in kwargs.items() if k in self.args}}
        unset_args = [key for key, val in arguments.items() if val is self.UNSET]
        if unset_args:
            text = ', '.join(unset_args)
            raise ValueError(f'Argument(s) {text} is necessary but not given')
        arguments.update((k, v) for k, v in kwargs.items() if k in self.opts)
        try:
            return self.obj(**arguments)
        except Exception as e:
            raise RuntimeError(f'Failed to execute the object: {e}') from e
