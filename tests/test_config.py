from __future__ import annotations

import unittest

from chemevln.config import EvolveConfig
from chemevln.constants import MAX_RETRIES, WALL_CLOCK_LIMIT
from chemevln.errors import ConfigurationError


class TestEvolveConfig(unittest.TestCase):
    def test_defaults(self) -> None:
        cfg = EvolveConfig()
        self.assertEqual(cfg.integrators, ("extrapolation", "rosenbrock"))
        self.assertEqual(cfg.backend, "auto")
        self.assertEqual(cfg.wall_clock_limit, WALL_CLOCK_LIMIT)
        self.assertEqual(cfg.max_retries, MAX_RETRIES)

    def test_single_integrator_name(self) -> None:
        self.assertEqual(EvolveConfig(integrators="radau").integrators, ("radau",))

    def test_rejects_bad_values(self) -> None:
        bad = (
            {"integrators": ()},
            {"integrators": ("euler",)},
            {"integrators": ("radau", "radau")},
            {"backend": "jax"},
            {"wall_clock_limit": 0.0},
            {"wall_clock_limit": float("inf")},
            {"log_growth": 1.0},
            {"min_coverage": 1.5},
            {"scale_floor": 0.0},
            {"max_retries": 0},
            {"min_step": -1.0},
        )
        for kwargs in bad:
            with self.subTest(**{k: repr(v) for k, v in kwargs.items()}):
                with self.assertRaises(ConfigurationError):
                    EvolveConfig(**kwargs)

    def test_from_mapping(self) -> None:
        cfg = EvolveConfig.from_mapping(
            {"integrators": "radau, rosenbrock", "backend": " NumPy ", "max_retries": "12", "wall_clock_limit": "60"}
        )
        self.assertEqual(cfg.integrators, ("radau", "rosenbrock"))
        self.assertEqual(cfg.backend, "numpy")
        self.assertEqual(cfg.max_retries, 12)
        self.assertEqual(cfg.wall_clock_limit, 60.0)

    def test_from_mapping_rejects_unknown_keys(self) -> None:
        with self.assertRaises(ConfigurationError):
            EvolveConfig.from_mapping({"integrator": "radau"})

    def test_configuration_error_is_value_error(self) -> None:
        with self.assertRaises(ValueError):
            EvolveConfig(backend="gpu")


if __name__ == "__main__":
    unittest.main()
