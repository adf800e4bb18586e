"""
Verification Scenarios for configuration loading and the log format
"""

import logging
import os
import unittest
from unittest.mock import patch

from scanner.core import ConfigError, ScanConfig, ScannerFormatter, load_config, setup_logger


class TestLoadConfig(unittest.TestCase):
    def test_overrides_replace_defaults(self):
        cfg = load_config(min_time_ms=250, max_concurrent=8, similarity_threshold=0.75, similarity_metric="SEQUENCE")
        self.assertEqual(cfg.min_time_ms, 250)
        self.assertEqual(cfg.max_concurrent, 8)
        self.assertEqual(cfg.similarity_threshold, 0.75)
        self.assertEqual(cfg.similarity_metric, "sequence")

    def test_none_overrides_are_ignored(self):
        self.assertEqual(load_config(max_concurrent=None), load_config())

    def test_out_of_range_values_are_rejected(self):
        for overrides in (
            {"similarity_threshold": -0.1},
            {"similarity_threshold": 1.01},
            {"max_concurrent": 0},
            {"min_time_ms": -5},
            {"similarity_metric": "levenshtein"},
            {"request_timeout": 0},
        ):
            with self.assertRaises(ConfigError):
                load_config(**overrides)

    def test_numeric_env_values_are_read_at_load_time(self):
        with patch.dict(os.environ, {"MAX_CONCURRENT": "7", "SIMILARITY_THRESHOLD": "0.65", "MIN_TIME_MS": " 20 "}):
            cfg = load_config()
        self.assertEqual((cfg.max_concurrent, cfg.similarity_threshold, cfg.min_time_ms), (7, 0.65, 20))

    def test_flags_win_over_env_values(self):
        with patch.dict(os.environ, {"MAX_CONCURRENT": "7"}):
            self.assertEqual(load_config(max_concurrent=3).max_concurrent, 3)

    def test_malformed_env_values_raise_config_error(self):
        for name, value in (("MAX_CONCURRENT", "abc"), ("MIN_TIME_MS", "1.5"), ("SIMILARITY_THRESHOLD", "high"), ("REQUEST_TIMEOUT", "10s")):
            with self.subTest(name=name), patch.dict(os.environ, {name: value}):
                with self.assertRaises(ConfigError) as ctx:
                    load_config()
                self.assertIn(name, str(ctx.exception))

    def test_config_is_immutable(self):
        cfg = ScanConfig()
        with self.assertRaises(Exception):
            cfg.max_concurrent = 1


class TestLogging(unittest.TestCase):
    def test_formatter_includes_level_and_context(self):
        record = logging.LogRecord("scanner", logging.WARNING, __file__, 1, "slow host", None, None)
        record.context = "Worker-3"
        line = ScannerFormatter().format(record)
        self.assertTrue(line.startswith("[ "))
        self.assertTrue(line.endswith(" : WARNING : Worker-3 : slow host"))

    def test_formatter_defaults_to_root_context(self):
        record = logging.LogRecord("scanner", logging.INFO, __file__, 1, "hello", None, None)
        self.assertIn(" : INFO : root : hello", ScannerFormatter().format(record))

    def test_setup_logger_is_idempotent(self):
        first = setup_logger()
        handlers = list(first.handlers)
        second = setup_logger()
        self.assertIs(first, second)
        self.assertEqual(second.handlers, handlers)

    def test_child_loggers_propagate(self):
        child = setup_logger("scanner.sources_test_child")
        self.assertTrue(child.propagate)
        self.assertEqual(child.handlers, [])


if __name__ == "__main__":
    unittest.main()
