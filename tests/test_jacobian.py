import unittest
import numpy as np
from scipy import sparse
from simpkin.constants import R_GAS
from simpkin.errors import LegacyRateError
from simpkin.gas_kinetics import GasKinetics
from simpkin.thermo import IdealGasThermo

from mechanisms import PROPS, X0, elementary, full_mechanism, make_thermo, three_body


class RealGasThermo(IdealGasThermo):
    """Ideal-gas state reported under another equation-of-state tag."""

    type = "real-gas"


class FailingThermo(IdealGasThermo):
    """Raises from any property evaluation above ``limit``."""

    limit = None

    def _check(self):
        if self.limit is not None and self.temperature > self.limit:
            raise FloatingPointError(f"property evaluation failed at T={self.temperature}")

    def standard_chem_potentials(self):
        self._check()
        return super().standard_chem_potentials()

    @property
    def molar_density(self):
        self._check()
        return super().molar_density


class FailingRealGasThermo(FailingThermo):
    type = "real-gas"


def finite_difference(kin, query, h=1e-5):
    # central difference in T at constant P and composition
    thermo = kin.thermo
    T = thermo.temperature
    P = thermo.pressure
    thermo.set_state_TP(T * (1.0 + h), P)
    upper = query()
    thermo.set_state_TP(T * (1.0 - h), P)
    lower = query()
    thermo.set_state_TP(T, P)
    return (upper - lower) / (2.0 * h * T)


class TestTemperatureDerivatives(unittest.TestCase):
    def setUp(self):
        self.kin = GasKinetics(make_thermo(1100.0, 2.0e5))
        for reaction in full_mechanism():
            self.kin.add_reaction(reaction)

    def test_fwd_rate_constants(self):
        fd = finite_difference(self.kin, self.kin.get_fwd_rate_constants)
        np.testing.assert_allclose(self.kin.fwd_rate_constants_ddT(), fd, rtol=1e-4)

    def test_fwd_rates_of_progress(self):
        fd = finite_difference(self.kin, self.kin.get_fwd_rates_of_progress)
        np.testing.assert_allclose(self.kin.fwd_rates_of_progress_ddT(), fd, rtol=1e-4)

    def test_rev_rates_of_progress(self):
        fd = finite_difference(self.kin, self.kin.get_rev_rates_of_progress)
        np.testing.assert_allclose(
            self.kin.rev_rates_of_progress_ddT(), fd, rtol=1e-4, atol=1e-300
        )

    def test_net_rates_of_progress(self):
        fd = finite_difference(self.kin, self.kin.get_net_rates_of_progress)
        ddT = self.kin.net_rates_of_progress_ddT()
        scale = np.maximum(
            np.abs(self.kin.fwd_rates_of_progress_ddT()),
            np.abs(self.kin.rev_rates_of_progress_ddT()),
        )
        np.testing.assert_array_less(np.abs(ddT - fd), 1e-4 * scale + 1e-300)

    def test_state_untouched(self):
        before = self.kin.get_net_rates_of_progress()
        T = self.kin.thermo.temperature
        self.kin.rev_rates_of_progress_ddT()
        self.assertEqual(self.kin.thermo.temperature, T)
        np.testing.assert_array_equal(self.kin.get_net_rates_of_progress(), before)

    def test_constant_volume_terms(self):
        kin = GasKinetics(make_thermo(), jacobian_settings={"constant-pressure": False})
        kin.add_reaction(elementary())
        kin.add_reaction(three_body())
        T = kin.thermo.temperature
        ropf = kin.get_fwd_rates_of_progress()
        dlnk = np.array([10000.0 / (R_GAS * T) / T, (-1.0 + 200000.0 / (R_GAS * T)) / T])
        np.testing.assert_allclose(kin.fwd_rates_of_progress_ddT(), ropf * dlnk, rtol=1e-12)
        np.testing.assert_allclose(
            kin.fwd_rate_constants_ddT(), kin.get_fwd_rate_constants() * dlnk, rtol=1e-12
        )

    def test_non_ideal_equation_of_state(self):
        thermo = RealGasThermo(PROPS, 1100.0, 2.0e5, X0)
        kin = GasKinetics(thermo)
        for reaction in full_mechanism():
            kin.add_reaction(reaction)
        np.testing.assert_allclose(
            kin.fwd_rates_of_progress_ddT(), self.kin.fwd_rates_of_progress_ddT(), rtol=1e-5
        )
        np.testing.assert_allclose(
            kin.rev_rates_of_progress_ddT(), self.kin.rev_rates_of_progress_ddT(), rtol=1e-5
        )

    def test_state_restored_when_equilibrium_evaluation_fails(self):
        thermo = FailingThermo(PROPS, 1100.0, 2.0e5, X0)
        kin = GasKinetics(thermo)
        kin.add_reaction(three_body())
        thermo.limit = 1100.0
        with self.assertRaises(FloatingPointError):
            kin.rev_rates_of_progress_ddT()
        self.assertEqual(thermo.temperature, 1100.0)
        self.assertEqual(thermo.pressure, 2.0e5)

    def test_state_restored_when_density_evaluation_fails(self):
        thermo = FailingRealGasThermo(PROPS, 1100.0, 2.0e5, X0)
        kin = GasKinetics(thermo)
        kin.add_reaction(elementary())
        thermo.limit = 1100.0
        with self.assertRaises(FloatingPointError):
            kin.fwd_rates_of_progress_ddT()
        self.assertEqual(thermo.temperature, 1100.0)
        self.assertEqual(thermo.pressure, 2.0e5)


class TestConcentrationDerivatives(unittest.TestCase):
    def setUp(self):
        self.thermo = make_thermo()
        self.kin = GasKinetics(self.thermo, jacobian_settings={"mole-fraction-scaling": False})
        self.kin.add_reaction(elementary())
        self.kin.add_reaction(three_body())

        self.ctot = self.thermo.molar_density
        self.c = self.thermo.concentrations()
        self.concm = self.kin.get_third_body_concentrations()[1]
        self.kf = self.kin.get_fwd_rate_constants()
        self.kr = self.kin.get_rev_rate_constants()
        # species order: A, B, AB, N2; reaction 1 has efficiency 2 for N2
        self.eff = np.array([1.0, 1.0, 1.0, 2.0])

    def expected_fwd(self):
        cA, cB, cAB, _ = self.c
        k0, k1 = self.kf
        jac = np.zeros((2, 4))
        jac[0, 0] = k0 * cB
        jac[0, 1] = k0 * cA
        jac[1] = k1 * cAB * self.eff
        jac[1, 2] += k1 * self.concm
        return jac

    def expected_rev(self):
        cA, cB, _, _ = self.c
        kr = self.kr[1]
        jac = np.zeros((2, 4))
        jac[1] = kr * cA * cB * self.eff
        jac[1, 0] += kr * self.concm * cB
        jac[1, 1] += kr * self.concm * cA
        return jac

    def test_returns_sparse(self):
        jac = self.kin.fwd_rates_of_progress_ddC()
        self.assertTrue(sparse.issparse(jac))
        self.assertEqual(jac.shape, (2, 4))

    def test_fwd(self):
        np.testing.assert_allclose(
            self.kin.fwd_rates_of_progress_ddC().toarray(), self.expected_fwd(), rtol=1e-12
        )

    def test_rev(self):
        np.testing.assert_allclose(
            self.kin.rev_rates_of_progress_ddC().toarray(), self.expected_rev(), rtol=1e-10
        )

    def test_net(self):
        np.testing.assert_allclose(
            self.kin.net_rates_of_progress_ddC().toarray(),
            self.expected_fwd() - self.expected_rev(),
            rtol=1e-10,
        )

    def test_mole_fraction_scaling(self):
        self.kin.set_jacobian_settings({"mole-fraction-scaling": True})
        np.testing.assert_allclose(
            self.kin.fwd_rates_of_progress_ddC().toarray(),
            self.ctot * self.expected_fwd(),
            rtol=1e-12,
        )

    def test_skip_third_body_derivative(self):
        self.kin.set_jacobian_settings({"skip-third-body-derivative": True})
        k1 = self.kf[1]
        expected = self.expected_fwd()
        expected[1] = 0.0
        expected[1, 2] = k1 * self.concm
        np.testing.assert_allclose(
            self.kin.fwd_rates_of_progress_ddC().toarray(), expected, rtol=1e-12
        )

    def test_matches_finite_difference(self):
        # central difference in one concentration, the collider sum following it
        kin = GasKinetics(make_thermo(), jacobian_settings={"mole-fraction-scaling": False})
        for reaction in full_mechanism()[:2]:
            kin.add_reaction(reaction)
        thermo = kin.thermo
        T = thermo.temperature
        c0 = thermo.concentrations()
        jac = kin.net_rates_of_progress_ddC().toarray()
        for k in range(4):
            dc = 1e-6 * c0[k]
            rates = []
            for sign in (1.0, -1.0):
                c1 = c0.copy()
                c1[k] += sign * dc
                thermo.set_state_TPX(T, c1.sum() * R_GAS * T, c1)
                rates.append(kin.get_net_rates_of_progress())
            thermo.set_state_TPX(T, c0.sum() * R_GAS * T, c0)
            fd = (rates[0] - rates[1]) / (2.0 * dc)
            for i in range(2):
                np.testing.assert_allclose(
                    jac[i, k], fd[i], rtol=1e-4, atol=1e-6 * np.abs(jac[i]).max()
                )


class TestLegacyReactions(unittest.TestCase):
    def test_derivatives_rejected(self):
        kin = GasKinetics(make_thermo())
        kin.add_reaction(elementary())
        kin.add_reaction(three_body(legacy=True))
        # rate queries still work
        self.assertEqual(kin.get_net_rates_of_progress().shape, (2,))

        for query in (
            kin.fwd_rate_constants_ddT,
            kin.fwd_rates_of_progress_ddT,
            kin.rev_rates_of_progress_ddT,
            kin.net_rates_of_progress_ddT,
            kin.fwd_rates_of_progress_ddC,
            kin.rev_rates_of_progress_ddC,
            kin.net_rates_of_progress_ddC,
        ):
            with self.assertRaises(LegacyRateError) as ctx:
                query()
            self.assertIn("[1]", str(ctx.exception))


if __name__ == '__main__':
    unittest.main()
