import unittest
import numpy as np

from qwflow.subbands import Subband, CarrierEnsemble, BRACKET_WIDTH
from qwflow.subbands import find_fermi_global, solve_fermi, populations
from qwflow.fermi import subband_fermi
from qwflow.misc import kB, m_e, q, Tolerance, DEFAULT_TOLERANCE
from qwflow.misc import NoSolutionInRangeError, InvalidTemperatureError


class TestCarrierEnsemble(unittest.TestCase):
    def setUp(self):
        # GaAs-like quantum well
        self.E = 1E-3 * q * np.array([10.0, 45.0, 100.0])
        self.m_d = 0.067 * m_e
        self.N = 1E15
        self.T = [4, 77, 300]

    def test_single_subband(self):
        for T in self.T:
            ensemble = CarrierEnsemble([Subband(self.E[0], self.m_d)], T, self.N)
            EF = ensemble.solve()
            ref = subband_fermi(self.E[0], self.m_d, self.N, T)
            self.assertLessEqual(abs(EF-ref), DEFAULT_TOLERANCE.energy)

    def test_multi_subbands(self):
        for T in self.T:
            ensemble = CarrierEnsemble.from_arrays(self.E, self.m_d, T, self.N)
            E_min, E_max = ensemble.bracket()
            EF = find_fermi_global(ensemble)
            self.assertGreater(EF, E_min)
            self.assertLess(EF, E_max)
            self.assertLessEqual(abs(ensemble.residual(EF)),
                                 ensemble.population_tolerance())

    def test_ladder_shares_carriers(self):
        ensemble = CarrierEnsemble.from_arrays(self.E, self.m_d, 300, self.N)
        EF = ensemble.solve()
        Ni = ensemble.populations(EF)
        self.assertEqual(Ni.shape, (3,))
        self.assertTrue(np.all(np.diff(Ni) < 0))
        # the upper subbands take some carriers from the lowest one
        single = subband_fermi(self.E[0], self.m_d, self.N, 300)
        self.assertLess(EF, single)

    def test_custom_tolerance(self):
        tol = Tolerance.from_eV(1E-4)
        ensemble = CarrierEnsemble.from_arrays(self.E, self.m_d, 77, self.N)
        EF_coarse = ensemble.solve(tol)
        EF_fine = ensemble.solve()
        self.assertLessEqual(abs(EF_coarse-EF_fine), tol.energy)
        self.assertLessEqual(abs(ensemble.residual(EF_coarse)),
                             ensemble.population_tolerance(tol))

    def test_unordered_ladder(self):
        ordered = CarrierEnsemble.from_arrays(self.E, self.m_d, 77, self.N)
        shuffled = CarrierEnsemble.from_arrays(self.E[::-1], self.m_d, 77, self.N)
        self.assertEqual(ordered.bracket(), shuffled.bracket())
        self.assertLessEqual(abs(ordered.solve()-shuffled.solve()),
                             DEFAULT_TOLERANCE.energy)

    def test_bracket(self):
        ensemble = CarrierEnsemble.from_arrays(self.E, self.m_d, 77, self.N)
        E_min, E_max = ensemble.bracket()
        self.assertAlmostEqual(E_min/q, (self.E[0] - BRACKET_WIDTH*kB*77)/q)
        self.assertAlmostEqual(E_max/q, (self.E[-1] + BRACKET_WIDTH*kB*77)/q)

    def test_distinct_masses(self):
        m_d = np.array([0.067, 0.08, 0.1]) * m_e
        ensemble = CarrierEnsemble.from_arrays(self.E, m_d, 300, 5E15)
        EF = ensemble.solve()
        self.assertLessEqual(abs(ensemble.residual(EF)),
                             ensemble.population_tolerance())

    def test_no_solution(self):
        ensemble = CarrierEnsemble.from_arrays(self.E, self.m_d, 300, 1E30)
        with self.assertRaises(NoSolutionInRangeError):
            ensemble.solve()

    def test_no_carriers(self):
        ensemble = CarrierEnsemble.from_arrays(self.E, self.m_d, 300, 0)
        with self.assertRaises(NoSolutionInRangeError):
            ensemble.solve()

    def test_invalid_inputs(self):
        with self.assertRaises(InvalidTemperatureError):
            CarrierEnsemble.from_arrays(self.E, self.m_d, 0, self.N)
        with self.assertRaises(InvalidTemperatureError):
            CarrierEnsemble.from_arrays(self.E, self.m_d, -1, self.N)
        with self.assertRaises(ValueError):
            CarrierEnsemble.from_arrays(self.E, self.m_d, 300, -1)
        with self.assertRaises(ValueError):
            CarrierEnsemble.from_arrays(self.E, self.m_d, 300, np.nan)
        with self.assertRaises(ValueError):
            CarrierEnsemble([], 300, self.N)
        with self.assertRaises(ValueError):
            CarrierEnsemble([(self.E[0], self.m_d)], 300, self.N)
        with self.assertRaises(ValueError):
            CarrierEnsemble.from_arrays(self.E, [self.m_d, self.m_d], 300, self.N)
        with self.assertRaises(ValueError):
            Subband(self.E[0], 0)


class TestSolveFermi(unittest.TestCase):
    def setUp(self):
        self.E = 1E-3 * q * np.array([10.0, 45.0])
        self.m_d = 0.067 * m_e

    def test_sweep(self):
        T = np.array([4, 77, 300])
        N = 2E15
        EF = solve_fermi(self.E, self.m_d, N, T)
        self.assertEqual(EF.shape, (3,))
        for iEF, iT in zip(EF, T):
            ensemble = CarrierEnsemble.from_arrays(self.E, self.m_d, iT, N)
            self.assertEqual(iEF, ensemble.solve())

    def test_populations(self):
        T = np.array([77, 300])
        N = np.array([1E15, 3E15])
        EF = solve_fermi(self.E, self.m_d, N, T)
        Ni = populations(self.E, self.m_d, EF, T)
        self.assertEqual(Ni.shape, (2, 2))
        np.testing.assert_allclose(np.sum(Ni, axis=0), N, rtol=1E-4)

    def test_sweep_failure(self):
        with self.assertRaises(NoSolutionInRangeError):
            solve_fermi(self.E, self.m_d, [1E15, 1E30], 300)


class TestTolerance(unittest.TestCase):
    def test_default(self):
        self.assertAlmostEqual(DEFAULT_TOLERANCE.energy/q, 1E-8)
        self.assertEqual(DEFAULT_TOLERANCE.step, 1)
        self.assertEqual(Tolerance.from_eV(1E-6, 0.5), Tolerance(1E-6*q, 0.5))

    def test_invalid(self):
        with self.assertRaises(ValueError):
            Tolerance(0)
        with self.assertRaises(ValueError):
            Tolerance(step=-1)
