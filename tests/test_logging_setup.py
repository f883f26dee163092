"""
Unit tests for JSON logging
"""

import json
import logging
import sys

from precipwiz.errors import DataLoadError
from precipwiz.logging_setup import JsonFormatter, get_logger


class TestLogging:
    """Logger naming and record format"""

    def test_logger_namespace(self):
        assert get_logger("frames").name == "precipwiz.frames"
        assert get_logger("precipwiz.world").name == "precipwiz.world"

    def test_configured_once(self):
        get_logger("a")
        get_logger("b")
        log = logging.getLogger("precipwiz")
        # pytest may attach its own capture handlers; count only ours
        ours = [h for h in log.handlers if isinstance(h.formatter, JsonFormatter)]
        assert len(ours) == 1
        assert log._precipwiz_configured is True
        assert log.propagate is False

    def test_json_record_with_year(self):
        rec = logging.LogRecord("precipwiz.frames", logging.INFO, __file__, 1, "loaded %d rows", (4,), None)
        rec.year = 1954
        out = json.loads(JsonFormatter().format(rec))
        assert out["lvl"] == "INFO"
        assert out["msg"] == "loaded 4 rows"
        assert out["year"] == 1954

    def test_exception_info(self):
        try:
            raise DataLoadError(1960, "file not found: x.csv")
        except DataLoadError:
            rec = logging.LogRecord("precipwiz.frames", logging.ERROR, __file__, 1, "boom", (), sys.exc_info())
        out = json.loads(JsonFormatter().format(rec))
        assert "Cannot load year 1960: file not found: x.csv" in out["exc_info"]
