import unittest
from configparser import NoSectionError

from qwflow.utils import AttrDict, CfgParser, ExecWrapper, get_root_logger
from qwflow.misc import q


CONFIG = '''
[entry]
T = 4 10:10:30 77
E = 0, 35.2 120  # meV
tol = 1E-8 eV
material = Al

[Al.DEBYE]
TD = 428
'''

class TestCfgParser(unittest.TestCase):
    def setUp(self):
        self.config = CfgParser()
        self.config.read_string(CONFIG)
        self.entry = self.config['entry']

    def test_seq(self):
        self.assertEqual(self.entry.getseq('T'), [4, 10, 20, 30, 77])
        self.assertEqual(CfgParser._parse_seq('1:3'), [1, 2, 3])
        self.assertEqual(CfgParser._parse_seq('5:1:3'), [])
        with self.assertRaises(ValueError):
            CfgParser._parse_seq('1:2:3:4')
        with self.assertRaises(ValueError):
            CfgParser._parse_seq('1:0:3')

    def test_energy(self):
        E = self.entry.getenergy('E')
        self.assertEqual(len(E), 3)
        self.assertAlmostEqual(E[1]/q, 35.2E-3)
        self.assertAlmostEqual(self.entry.getenergy('tol')[0]/q, 1E-8)
        self.assertEqual(CfgParser._parse_energy('2 J'), [2])
        with self.assertRaises(ValueError):
            CfgParser._parse_energy('eV')

    def test_pmatch(self):
        content, otype = self.config.pmatch(self.entry['material'])
        self.assertEqual(otype, 'DEBYE')
        self.assertEqual(content.getfloat('TD'), 428)
        with self.assertRaises(NoSectionError):
            self.config.pmatch('GaAs')


class TestAttrDict(unittest.TestCase):
    def test_retain(self):
        d = AttrDict(T=1, N=2, EF=3, N1=4)
        popped = d.retain(['EF', 'T'], match_order=True)
        self.assertEqual(list(d), ['EF', 'T'])
        self.assertEqual(popped, {'N': 2, 'N1': 4})
        self.assertEqual(d.EF, 3)
        with self.assertRaises(AttributeError):
            d.N


class TestExecWrapper(unittest.TestCase):
    def test_execute(self):
        wrapper = ExecWrapper(lambda a, b=2: a*b, args=['a'], opts=['b'])
        self.assertEqual(wrapper.execute(a=3), 6)
        self.assertEqual(wrapper.execute(a=3, b=3, c=4), 9)
        with self.assertRaises(ValueError):
            wrapper.execute(b=3)
        with self.assertRaises(RuntimeError):
            wrapper.execute(a=None)


class TestLogger(unittest.TestCase):
    def test_handlers_not_stacked(self):
        logger = get_root_logger(pkgname='qwflow.testlog')
        n = len(logger.handlers)
        logger = get_root_logger(level=10, pkgname='qwflow.testlog')
        self.assertEqual(len(logger.handlers), n)
        self.assertEqual(logger.level, 10)
