import logging
import unittest

import numpy as np

from src.polytope import logging_utils
from src.polytope.facet import Facet
from src.polytope.logging_utils import (
    ENV_LOG_FILE,
    ENV_LOG_LEVEL,
    _parse_log_level,
    log_once,
    setup_logging,
)


def _edge_on_cube(depth: float) -> Facet:
    return Facet.new_cube(
        np.array(
            [
                [0.0, 0.0, 0.0, 0.0],
                [0.0, 1.0, 0.0, 0.0],
                [0.0, 0.0, 1.0, 0.0],
                [1.0, 0.0, 0.0, depth],
                [0.0, 0.0, 0.0, 1.0],
            ]
        )
    )


class TestLogOnce(unittest.TestCase):
    def test_logs_once_per_key(self):
        logger = logging.getLogger("polytope.test.log_once")
        with self.assertLogs(logger, level="WARNING") as captured:
            self.assertTrue(log_once(logger, "test:once", logging.WARNING, "first %d", 1))
            self.assertFalse(log_once(logger, "test:once", logging.WARNING, "second %d", 2))
            self.assertTrue(log_once(logger, ("test:once", 2), logging.WARNING, "third %d", 3))
        self.assertEqual([r.getMessage() for r in captured.records], ["first 1", "third 3"])

    def test_each_edge_on_facet_is_reported(self):
        facets = [_edge_on_cube(2.0 + k) for k in range(3)]
        logging_utils._LOG_ONCE_KEYS.difference_update(
            {("facet:render_singular", i) for i in range(len(facets))}
        )
        with self.assertLogs("src.polytope.facet", level="DEBUG") as captured:
            self.assertEqual(list(Facet.do_all_occlusions(facets, np.eye(5))), [])
        messages = [r.getMessage() for r in captured.records]
        for i in range(len(facets)):
            self.assertIn(f"Facet {i} is seen edge-on; no textures emitted", messages)


class TestLogLevel(unittest.TestCase):
    def test_parse(self):
        self.assertEqual(_parse_log_level("debug"), logging.DEBUG)
        self.assertEqual(_parse_log_level(logging.INFO), logging.INFO)
        self.assertEqual(_parse_log_level(""), logging.WARNING)
        self.assertEqual(_parse_log_level("nonsense"), logging.WARNING)


def _detach_package_handlers():
    root = logging.getLogger()
    for handler in list(root.handlers):
        if handler.get_name() == "polytopeview":
            root.removeHandler(handler)
            handler.close()


def test_setup_logging_writes_file_once(monkeypatch, tmp_path):
    root = logging.getLogger()
    previous_level = root.level
    _detach_package_handlers()
    log_path = tmp_path / "logs" / "run.log"
    monkeypatch.setenv(ENV_LOG_FILE, str(log_path))
    monkeypatch.setenv(ENV_LOG_LEVEL, "info")
    try:
        assert setup_logging() == log_path
        assert setup_logging() == log_path
        assert sum(1 for h in root.handlers if h.get_name() == "polytopeview") == 1

        logging.getLogger("polytope.test.file").info("hello %s", "file")
        for handler in root.handlers:
            handler.flush()
        assert "hello file" in log_path.read_text(encoding="utf-8")
    finally:
        _detach_package_handlers()
        root.setLevel(previous_level)


def test_setup_logging_defaults_to_stderr(monkeypatch):
    root = logging.getLogger()
    previous_level = root.level
    _detach_package_handlers()
    monkeypatch.delenv(ENV_LOG_FILE, raising=False)
    monkeypatch.delenv(ENV_LOG_LEVEL, raising=False)
    try:
        assert setup_logging() is None
        handlers = [h for h in root.handlers if h.get_name() == "polytopeview"]
        assert len(handlers) == 1
        assert not isinstance(handlers[0], logging.FileHandler)
        assert handlers[0].level == logging.WARNING
    finally:
        _detach_package_handlers()
        root.setLevel(previous_level)
