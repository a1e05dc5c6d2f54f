import unittest
import numpy as np

from qwflow.mathext import fermidirac, log1pexp, logexpm1, vquad, forward_deriv


class TestStableFunctions(unittest.TestCase):
    def test_fermidirac(self):
        x = np.array([-1E3, -1, 0, 1, 1E3])
        f = fermidirac(x)
        np.testing.assert_allclose(f[1:4], 1/(np.exp(x[1:4])+1), rtol=1E-14)
        self.assertEqual(f[0], 1)
        self.assertEqual(f[-1], 0)

    def test_log1pexp(self):
        x = np.array([-800, -50, -1, 0, 1, 50, 800])
        y = log1pexp(x)
        self.assertTrue(np.all(np.isfinite(y)))
        self.assertAlmostEqual(y[3], np.log(2))
        self.assertAlmostEqual(y[1]/np.exp(-50), 1, places=12)
        self.assertEqual(y[-1], 800)
        np.testing.assert_allclose(y[2:5], np.log1p(np.exp(x[2:5])), rtol=1E-14)

    def test_logexpm1(self):
        x = np.array([1E-20, 1E-8, 0.5, 1, 2, 30, 800])
        y = logexpm1(x)
        self.assertTrue(np.all(np.isfinite(y)))
        np.testing.assert_allclose(y[:2], np.log(x[:2]), rtol=1E-8)
        np.testing.assert_allclose(y[2:6], np.log(np.expm1(x[2:6])), rtol=1E-14)
        self.assertEqual(y[-1], 800)
        self.assertEqual(logexpm1(0), -np.inf)

    def test_inverse_pair(self):
        x = np.linspace(-60, 60, 121)
        np.testing.assert_allclose(logexpm1(log1pexp(x)), x, rtol=1E-9, atol=1E-12)


class TestVquad(unittest.TestCase):
    def test_broadcast(self):
        func = lambda x, m, n: m*x**2 if x < 0 else n*x**3
        itg, err = vquad(func, [-1, -2], [1, 2], args=(3, [[4], [8], [12]]))
        self.assertEqual(itg.shape, (3, 2))
        np.testing.assert_allclose(itg, [[2, 24], [3, 40], [4, 56]])
        self.assertTrue(np.all(err < 1E-8))

    def test_where(self):
        itg, _ = vquad(lambda x: x, 0, [1, 2, 3],
                       where=[True, False, True], fill_value=-1)
        np.testing.assert_allclose(itg, [0.5, -1, 4.5])


class TestForwardDeriv(unittest.TestCase):
    def test_cubic_exact(self):
        # 4-point rule is exact for polynomials up to the third degree
        func = lambda x: x**3 - 2*x
        x = np.array([0.5, 2, 10])
        d, err = forward_deriv(func, x, h=1, adaptive=False)
        np.testing.assert_allclose(d, 3*x**2-2, rtol=1E-10)
        self.assertEqual(err.shape, x.shape)

    def test_exponential(self):
        x = np.array([0, 1, 5])
        d, err = forward_deriv(np.exp, x, h=0.5)
        np.testing.assert_allclose(d, np.exp(x), rtol=1E-6)
        self.assertTrue(np.all(np.abs(d-np.exp(x)) <= 10*err + 1E-12))

    def test_one_sided(self):
        # log(x) is undefined below x=0, so only forward points are valid
        with np.errstate(all='raise'):
            d, _ = forward_deriv(np.log, 1E-3, h=1E-4)
        self.assertAlmostEqual(float(d)*1E-3, 1, places=3)

    def test_invalid_step(self):
        with self.assertRaises(ValueError):
            forward_deriv(np.exp, 1, h=0)
