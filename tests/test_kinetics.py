import unittest
import numpy as np
from simpkin.constants import R_GAS
from simpkin.falloff import Troe
from simpkin.kinetics import ArrheniusRate, ChebyshevRate, FalloffRate, PlogRate

class TestArrhenius(unittest.TestCase):
    def test_constant(self):
        rate = ArrheniusRate(pre_exponential=10.0)
        self.assertAlmostEqual(rate.rate_constant(300.0), 10.0)

    def test_temperature_dependence(self):
        # k = A * T^b * exp(-Ea/RT)
        rate = ArrheniusRate(2.0, 0.5, 40000.0)
        T = 800.0
        expected = 2.0 * T**0.5 * np.exp(-40000.0 / (R_GAS * T))
        self.assertAlmostEqual(rate.rate_constant(T) / expected, 1.0, places=12)

    def test_ddT_matches_finite_difference(self):
        rate = ArrheniusRate(5.0e3, -1.2, 65000.0)
        T = 1200.0
        dT = T * 1e-7
        fd = (np.log(rate.rate_constant(T + dT)) - np.log(rate.rate_constant(T))) / dT
        self.assertAlmostEqual(rate.ddT(T) / fd, 1.0, places=5)


class TestPlog(unittest.TestCase):
    def setUp(self):
        self.rate = PlogRate(
            rates=[
                (1.0e4, ArrheniusRate(1.0)),
                (1.0e6, ArrheniusRate(100.0)),
            ]
        )

    def test_interpolates_in_log_pressure(self):
        # halfway in ln(P): geometric mean of the two rate constants
        k = self.rate.evaluate(300.0, np.log(300.0), np.log(1.0e5))
        self.assertAlmostEqual(k, 10.0, places=10)

    def test_clamps_outside_range(self):
        self.assertAlmostEqual(self.rate.evaluate(300.0, np.log(300.0), np.log(10.0)), 1.0)
        self.assertAlmostEqual(self.rate.evaluate(300.0, np.log(300.0), np.log(1.0e9)), 100.0)

    def test_expressions_at_same_pressure_are_summed(self):
        rate = PlogRate(
            rates=[
                (1.0e4, ArrheniusRate(1.0)),
                (1.0e4, ArrheniusRate(2.0)),
                (1.0e6, ArrheniusRate(30.0)),
            ]
        )
        self.assertAlmostEqual(rate.evaluate(300.0, np.log(300.0), np.log(1.0e4)), 3.0)
        self.assertAlmostEqual(rate.evaluate(300.0, np.log(300.0), np.log(1.0e5)), np.sqrt(90.0))

    def test_rejects_bad_input(self):
        with self.assertRaises(ValueError):
            PlogRate(rates=[])
        with self.assertRaises(ValueError):
            PlogRate(rates=[(0.0, ArrheniusRate(1.0))])


class TestChebyshev(unittest.TestCase):
    def test_constant_expansion(self):
        rate = ChebyshevRate((300.0, 2000.0), (1.0e3, 1.0e7), [[1.0]])
        self.assertAlmostEqual(rate.evaluate(500.0, 5.0), 10.0)

    def test_pressure_dependence(self):
        # log10(k) = T_1(P_reduced)
        rate = ChebyshevRate((300.0, 2000.0), (1.0e3, 1.0e7), [[0.0, 1.0]])
        self.assertAlmostEqual(rate.evaluate(500.0, 5.0), 1.0)
        self.assertAlmostEqual(rate.evaluate(500.0, 7.0), 10.0)
        self.assertAlmostEqual(rate.evaluate(500.0, 3.0), 0.1)

    def test_reduced_temperature_bounds(self):
        rate = ChebyshevRate((300.0, 2000.0), (1.0e3, 1.0e7), [[1.0]])
        self.assertAlmostEqual(rate.reduced_temperature(300.0), -1.0)
        self.assertAlmostEqual(rate.reduced_temperature(2000.0), 1.0)

    def test_invalid_range(self):
        with self.assertRaises(ValueError):
            ChebyshevRate((2000.0, 300.0), (1.0e3, 1.0e7), [[1.0]])
        with self.assertRaises(ValueError):
            ChebyshevRate((300.0, 2000.0), (0.0, 1.0e7), [[1.0]])


class TestFalloffRate(unittest.TestCase):
    def test_limits(self):
        rate = FalloffRate(
            low=ArrheniusRate(3.0), high=ArrheniusRate(7.0), falloff=Troe(0.5, 100.0, 1000.0)
        )
        k_low, k_high = rate.limits(300.0, np.log(300.0))
        self.assertAlmostEqual(k_low, 3.0)
        self.assertAlmostEqual(k_high, 7.0)
        self.assertEqual(rate.falloff.name, "Troe")

    def test_default_curve_is_lindemann(self):
        rate = FalloffRate(low=ArrheniusRate(1.0), high=ArrheniusRate(1.0))
        self.assertEqual(rate.falloff.name, "Lindemann")

if __name__ == '__main__':
    unittest.main()
