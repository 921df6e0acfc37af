import unittest
import numpy as np
from simpkin.thirdbody import ThirdBodyCalc

class TestThirdBodyCalc(unittest.TestCase):
    def setUp(self):
        self.conc = np.array([1.0, 2.0, 3.0])
        self.total = 6.0
        self.calc = ThirdBodyCalc(3)
        self.calc.install(0, {1: 2.0})
        self.calc.install(4, {0: 0.0, 2: 5.0}, default_efficiency=0.5)

    def _update(self):
        work = np.zeros(self.calc.work_size)
        self.calc.update(self.conc, self.total, work)
        return work

    def test_enhanced_concentration(self):
        work = self._update()
        # sum(f_k c_k): 1*1 + 2*2 + 1*3
        self.assertAlmostEqual(work[0], 8.0)
        # 0*1 + 0.5*2 + 5*3
        self.assertAlmostEqual(work[1], 16.0)

    def test_copy_scatters_to_reactions(self):
        concm = np.zeros(5)
        self.calc.copy(self._update(), concm)
        np.testing.assert_allclose(concm, [8.0, 0.0, 0.0, 0.0, 16.0])

    def test_subset_matches_batch(self):
        batch = self._update()
        subset = np.zeros(self.calc.work_size)
        self.calc.update_subset([4, 0], self.conc, self.total, subset)
        np.testing.assert_array_equal(batch, subset)

    def test_replace_leaves_other_slots(self):
        before = self._update()
        self.calc.replace(4, {}, default_efficiency=1.0)
        after = self._update()
        self.assertEqual(after[0], before[0])
        self.assertAlmostEqual(after[1], 6.0)
        self.assertEqual(self.calc.slot(4), 1)

    def test_remove_keeps_slot_numbering(self):
        self.calc.remove(0)
        self.assertNotIn(0, self.calc)
        self.assertEqual(len(self.calc), 1)
        self.assertEqual(self.calc.work_size, 2)
        self.assertEqual(self.calc.slot(4), 1)

        work = np.full(2, -1.0)
        self.calc.update(self.conc, self.total, work)
        self.assertEqual(work[0], -1.0)
        self.assertAlmostEqual(work[1], 16.0)

    def test_duplicate_install(self):
        with self.assertRaises(ValueError):
            self.calc.install(0, {})

    def test_species_out_of_range(self):
        with self.assertRaises(IndexError):
            self.calc.install(7, {3: 1.0})

    def test_multiply_mass_action_only(self):
        self.calc.install(2, {}, mass_action=False)
        concm = np.array([2.0, 0.0, 3.0, 0.0, 4.0])
        values = np.ones(5)
        self.calc.multiply(values, concm)
        np.testing.assert_allclose(values, [2.0, 1.0, 1.0, 1.0, 4.0])

    def test_scale_order(self):
        out = np.zeros(5)
        self.calc.scale_order(np.arange(5.0), out)
        np.testing.assert_allclose(out, [0.0, 0.0, 0.0, 0.0, 4.0])

    def test_jacobian(self):
        rates = np.array([2.0, 0.0, 0.0, 0.0, 3.0])
        jac = self.calc.jacobian(rates).toarray()
        self.assertEqual(jac.shape, (5, 3))
        np.testing.assert_allclose(jac[0], [2.0, 4.0, 2.0])
        np.testing.assert_allclose(jac[4], [0.0, 1.5, 15.0])
        np.testing.assert_allclose(jac[1:4], 0.0)

if __name__ == '__main__':
    unittest.main()
