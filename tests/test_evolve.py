from __future__ import annotations

import itertools
import math
import runpy
import unittest
from unittest import mock

import numpy as np

from chemevln import driver
from chemevln.config import EvolveConfig
from chemevln.constants import STATUS_FAIL, STATUS_OK, STATUS_TIMEOUT
from chemevln.diagnostics import conservation_report
from chemevln.errors import ConfigurationError
from chemevln.evolve import error_scale, evolve
from chemevln.integrators import KapsRentrop, SemiImplicitExtrapolation
from chemevln.integrators.base import failed_step
from chemevln.state import ChemEvolution

from _networks import E, G0, H, HP, O, decay_network, grain_network, ionization_network, transmutation_network

NUMPY = EvolveConfig(backend="numpy")


def _fail(self, y, dydx, t, htry, eps, yscal):
    return failed_step(np.array(y, copy=True), t, htry)


def _ionization(zeta: float = 0.01, alpha: float = 0.1) -> ChemEvolution:
    return ChemEvolution.create(ionization_network(), rates=[zeta, alpha], initial={"A": 0.8, "A+": 0.2})


class TestEvolve(unittest.TestCase):
    def test_zero_duration_is_a_no_op(self) -> None:
        evln = _ionization()
        before = evln.numden.copy()
        self.assertEqual(evolve(evln, 0.0, dttry=1.0), STATUS_OK)
        np.testing.assert_array_equal(evln.numden, before)
        self.assertEqual(evln.t, 0.0)
        self.assertEqual(evln.dttry, 0.0)

    def test_invalid_tolerance(self) -> None:
        with self.assertRaises(ConfigurationError):
            evolve(_ionization(), 1.0, err=0.0)

    def test_ionization_balance(self) -> None:
        zeta, alpha = 0.01, 0.1
        evln = _ionization(zeta, alpha)
        status = evolve(evln, 1.0e4, dttry=1.0e-2, err=1.0e-6, config=NUMPY)
        self.assertEqual(status, STATUS_OK)
        x = (-zeta + math.sqrt(zeta * zeta + 4.0 * alpha * zeta)) / (2.0 * alpha)
        np.testing.assert_allclose(evln.numden[2], x, rtol=1.0e-4)
        np.testing.assert_allclose(zeta * evln.numden[1], alpha * evln.numden[2] * evln.numden[0], rtol=1.0e-3)
        self.assertEqual(evln.numden[0], evln.numden[2])
        self.assertAlmostEqual(evln.numden[1] + evln.numden[2], 1.0, places=12)
        self.assertAlmostEqual(evln.t / 1.0e4, 1.0, places=12)

    def test_step_hint_carried_between_calls(self) -> None:
        evln = _ionization()
        evolve(evln, 10.0, dttry=1.0e-2, err=1.0e-6, config=NUMPY)
        hint = evln.dttry
        self.assertGreater(hint, 0.0)
        self.assertAlmostEqual(evln.t, 10.0, places=12)
        with mock.patch.object(SemiImplicitExtrapolation, "advance", autospec=True, side_effect=SemiImplicitExtrapolation.advance) as spy:
            evolve(evln, 5.0, err=1.0e-6, config=NUMPY)
        self.assertEqual(spy.call_args_list[0].args[4], min(hint, 5.0))
        self.assertAlmostEqual(evln.t, 15.0, places=12)

    def test_missing_hint_defaults_to_duration(self) -> None:
        evln = ChemEvolution.create(decay_network(), rates=[1.0e-3], initial={"A": 1.0})
        with mock.patch.object(SemiImplicitExtrapolation, "advance", autospec=True, side_effect=SemiImplicitExtrapolation.advance) as spy:
            self.assertEqual(evolve(evln, 2.0, err=1.0e-6, config=NUMPY), STATUS_OK)
        self.assertEqual(spy.call_args_list[0].args[4], 2.0)

    def test_progress_logged(self) -> None:
        evln = _ionization()
        with self.assertLogs("chemevln.evolve", level="INFO") as captured:
            evolve(evln, 10.0, dttry=1.0e-2, config=NUMPY)
        self.assertIn("Chemical evolution started...", captured.output[0])
        self.assertIn("Evolution completed", captured.output[-1])

    def test_grain_network_conserves(self) -> None:
        net = grain_network()
        numden = np.zeros(net.n_species)
        numden[[H, HP, O, G0, E]] = [0.9, 0.1, 0.5, 1.0, 0.1]
        rates = np.array([1.0, 0.1, 0.01, 10.0, 1.0, 1.0, 0.1, 10.0, 1.0])
        evln = ChemEvolution(network=net, numden=numden, rates=rates)
        self.assertEqual(evolve(evln, 10.0, dttry=1.0e-3, err=1.0e-6, config=NUMPY), STATUS_OK)
        report = conservation_report(evln)
        self.assertTrue(report["all_checks_pass"], report)

    def test_error_scale(self) -> None:
        evln = _ionization()
        scal = error_scale(evln, np.array([0.0, -1.0, 2.0]), np.array([0.0, 1.0, -1.0]), 0.5, 1.0e-20)
        np.testing.assert_allclose(scal, [1.0e-20, 1.5, 2.5])
        evln.den_scale = np.array([1.0, 2.0, 3.0])
        np.testing.assert_array_equal(error_scale(evln, evln.numden, np.zeros(3), 0.5, 1.0e-20), [1.0, 2.0, 3.0])


class TestEvolveFailures(unittest.TestCase):
    def test_infeasible_makeup_returns_failure(self) -> None:
        evln = ChemEvolution.create(transmutation_network(), rates=[1.0], initial={"Z": 1.0})
        self.assertEqual(evolve(evln, 1.0, dttry=0.1, config=NUMPY), STATUS_FAIL)
        self.assertTrue(np.all(np.isfinite(evln.numden)))
        self.assertTrue(np.all(evln.numden >= 0.0))

    def test_falls_back_to_second_integrator(self) -> None:
        evln = _ionization()
        with mock.patch.object(SemiImplicitExtrapolation, "advance", autospec=True, side_effect=_fail), mock.patch.object(
            KapsRentrop, "advance", autospec=True, side_effect=KapsRentrop.advance
        ) as fallback:
            status = evolve(evln, 10.0, dttry=1.0e-2, err=1.0e-6, config=NUMPY)
        self.assertEqual(status, STATUS_OK)
        self.assertTrue(fallback.called)
        self.assertAlmostEqual(evln.t, 10.0, places=12)

    def test_all_integrators_failing(self) -> None:
        evln = _ionization()
        before = evln.numden.copy()
        with mock.patch.object(SemiImplicitExtrapolation, "advance", autospec=True, side_effect=_fail), mock.patch.object(
            KapsRentrop, "advance", autospec=True, side_effect=_fail
        ):
            with self.assertLogs("chemevln.evolve", level="INFO") as captured:
                status = evolve(evln, 10.0, dttry=1.0e-2, config=NUMPY)
        self.assertEqual(status, STATUS_FAIL)
        self.assertEqual(evln.t, 0.0)
        np.testing.assert_array_equal(evln.numden, before)
        self.assertTrue(any("calculation fails" in line for line in captured.output))
        self.assertIn("Evolution terminated", captured.output[-1])

    def test_failure_keeps_evolved_time(self) -> None:
        evln = _ionization()
        calls = itertools.count()
        original = SemiImplicitExtrapolation.advance

        def flaky(self, *args):
            if next(calls) < 3:
                return original(self, *args)
            return _fail(self, *args)

        with mock.patch.object(SemiImplicitExtrapolation, "advance", autospec=True, side_effect=flaky), mock.patch.object(
            KapsRentrop, "advance", autospec=True, side_effect=_fail
        ):
            status = evolve(evln, 1.0e4, dttry=1.0e-2, config=NUMPY)
        self.assertEqual(status, STATUS_FAIL)
        self.assertGreater(evln.t, 0.0)
        self.assertLess(evln.t, 1.0e4)
        self.assertTrue(np.all(evln.numden >= 0.0))

    def test_wall_clock_budget(self) -> None:
        evln = _ionization()
        clock = itertools.count(0.0, 1000.0)
        with mock.patch("chemevln.evolve.process_time", side_effect=lambda: next(clock)):
            status = evolve(evln, 1.0e4, dttry=1.0e-3, config=NUMPY)
        self.assertEqual(status, STATUS_TIMEOUT)
        self.assertGreater(evln.t, 0.0)
        self.assertLess(evln.t, 1.0e4)

    def test_explicit_integrator_order(self) -> None:
        evln = _ionization()
        config = EvolveConfig(integrators=("rosenbrock",), backend="numpy")
        with mock.patch.object(SemiImplicitExtrapolation, "advance", autospec=True) as primary:
            self.assertEqual(evolve(evln, 10.0, dttry=1.0e-2, err=1.0e-6, config=config), STATUS_OK)
        primary.assert_not_called()


class TestExampleDriver(unittest.TestCase):
    def test_example_run_reports_success(self) -> None:
        with mock.patch("chemevln.driver.logging.basicConfig"), self.assertLogs("chemevln.driver", level="INFO") as captured:
            status = driver.main()
        self.assertEqual(status, STATUS_OK)
        self.assertIn("status=0", captured.output[0])
        self.assertIn("'densities_nonnegative': True", captured.output[1])

    def test_module_entry_point_exit_code(self) -> None:
        with mock.patch("chemevln.driver.logging.basicConfig"), mock.patch("chemevln.driver.evolve", return_value=STATUS_FAIL):
            with self.assertRaises(SystemExit) as raised:
                runpy.run_module("chemevln", run_name="__main__")
        self.assertEqual(raised.exception.code, 1)


if __name__ == "__main__":
    unittest.main()
