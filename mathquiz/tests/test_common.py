"""
Tests for the shared logging, error and configuration helpers.
"""

import io
import json
import logging
import unittest

import pytest


class TestErrorHandling(unittest.TestCase):
    """Tests for the service error hierarchy."""

    def test_error_codes_map_to_http_status(self):
        from mathquiz.common.error_handling import (
            DatabaseError,
            ProgressNotFoundError,
            QuestionGenerationError,
            RoundStateError,
            SessionNotFoundError,
            ValidationError
        )

        self.assertEqual(SessionNotFoundError("s1").http_status, 404)
        self.assertEqual(ProgressNotFoundError("p1").http_status, 404)
        self.assertEqual(RoundStateError("busy").http_status, 409)
        self.assertEqual(ValidationError("bad").http_status, 422)
        self.assertEqual(QuestionGenerationError("down").http_status, 502)
        self.assertEqual(DatabaseError("down").http_status, 500)

    def test_to_dict_includes_cause(self):
        from mathquiz.common.error_handling import DatabaseError

        error = DatabaseError("Failed to save progress", details={"player_id": "p1"}, cause=KeyError("x"))
        data = error.to_dict()

        self.assertEqual(data["code"], "database_error")
        self.assertEqual(data["severity"], "error")
        self.assertEqual(data["details"]["player_id"], "p1")
        self.assertEqual(data["details"]["cause"]["type"], "KeyError")
        self.assertEqual(data["exception_type"], "DatabaseError")
        self.assertIsNone(data["stack_trace"])

    def test_convert_exception(self):
        from mathquiz.common.error_handling import (
            ErrorCode,
            MathQuizError,
            RoundStateError,
            convert_exception
        )

        converted = convert_exception(ValueError("bad value"), default_code=ErrorCode.DATABASE_ERROR)
        self.assertIsInstance(converted, MathQuizError)
        self.assertEqual(converted.code, ErrorCode.DATABASE_ERROR)
        self.assertEqual(converted.message, "bad value")
        self.assertIsInstance(converted.cause, ValueError)

        original = RoundStateError("busy")
        self.assertIs(convert_exception(original, context={"route": "answer"}), original)
        self.assertEqual(original.context, {"route": "answer"})

        self.assertEqual(convert_exception(RuntimeError()).message, "An unexpected error occurred")


class TestLogging(unittest.TestCase):
    """Tests for the logging helpers."""

    def setUp(self):
        from mathquiz.common.logger import JsonFormatter

        self.stream = io.StringIO()
        self.handler = logging.StreamHandler(self.stream)
        self.handler.setFormatter(JsonFormatter())
        self.logger = logging.getLogger("mathquiz.tests.json")
        self.logger.addHandler(self.handler)
        self.logger.setLevel(logging.DEBUG)
        self.logger.propagate = False

    def tearDown(self):
        self.logger.removeHandler(self.handler)
        self.logger.propagate = True

    def _records(self):
        return [json.loads(line) for line in self.stream.getvalue().splitlines()]

    def test_adapter_context_reaches_json_output(self):
        from mathquiz.common.logger import LoggerAdapter

        adapter = LoggerAdapter(self.logger, {"session_id": "s1"}).with_context(player_id="p1")
        adapter.info("round started", extra={"context": {"difficulty": 1.2}})

        record = self._records()[0]
        self.assertEqual(record["message"], "round started")
        self.assertEqual(record["difficulty"], 1.2)
        self.assertEqual(record["level"], "INFO")
        self.assertEqual(record["logger"], "mathquiz.tests.json")
        self.assertEqual(record["session_id"], "s1")
        self.assertEqual(record["player_id"], "p1")

    def test_json_output_includes_exception(self):
        try:
            raise KeyError("answer")
        except KeyError:
            self.logger.exception("payload incomplete")

        record = self._records()[0]
        self.assertEqual(record["level"], "ERROR")
        self.assertEqual(record["exception"]["type"], "KeyError")
        self.assertIn("Traceback", record["exception"]["traceback"])

    def test_with_context_uses_app_logger_children(self):
        from mathquiz.common.logger import with_context

        adapter = with_context("game.session", session_id="s1")

        self.assertEqual(adapter.logger.name, "mathquiz.game.session")
        self.assertEqual(adapter.extra, {"session_id": "s1"})

    def test_configure_logger_replaces_handlers(self):
        from mathquiz.common.logger import JsonFormatter, configure_logger

        configure_logger(name="mathquiz.tests.configure", level="debug", use_json=True)
        logger = configure_logger(name="mathquiz.tests.configure", level="debug", use_json=True)

        self.assertEqual(logger.level, logging.DEBUG)
        self.assertEqual(len(logger.handlers), 1)
        self.assertIsInstance(logger.handlers[0].formatter, JsonFormatter)


def test_configure_logger_writes_json_file(tmp_path):
    from mathquiz.common.logger import configure_logger

    log_file = tmp_path / "logs" / "mathquiz.log"
    logger = configure_logger(
        name="mathquiz.tests.file",
        level="INFO",
        use_json=True,
        log_file=str(log_file),
        console_output=False
    )
    try:
        logger.info("saved progress", extra={"context": {"player_id": "p1"}})
        logger.debug("not written")
        for handler in logger.handlers:
            handler.flush()

        lines = log_file.read_text(encoding="utf-8").splitlines()
        assert len(lines) == 1
        entry = json.loads(lines[0])
        assert entry["message"] == "saved progress"
        assert entry["player_id"] == "p1"
    finally:
        configure_logger(name="mathquiz.tests.file", console_output=False)


@pytest.mark.asyncio
async def test_log_execution_time_wraps_coroutines(caplog):
    from mathquiz.common.logger import log_execution_time

    logger = logging.getLogger("mathquiz.tests.timing")

    @log_execution_time(logger)
    async def multiply(a, b):
        return a * b

    @log_execution_time(logger)
    async def explode():
        raise ValueError("boom")

    with caplog.at_level(logging.DEBUG, logger="mathquiz.tests.timing"):
        assert await multiply(2, 3) == 6
        with pytest.raises(ValueError):
            await explode()

    assert multiply.__name__ == "multiply"
    messages = [record.getMessage() for record in caplog.records]
    assert any("multiply executed in" in message for message in messages)
    assert any("explode failed after" in message and "boom" in message for message in messages)


def test_settings_validate_log_level():
    from pydantic import ValidationError as SettingsError

    from mathquiz.config import Settings

    assert Settings(LOG_LEVEL="debug").LOG_LEVEL == "DEBUG"
    assert Settings(FRONTEND_URL="http://a.test, http://b.test").cors_origins == [
        "http://a.test",
        "http://b.test"
    ]
    with pytest.raises(SettingsError):
        Settings(LOG_LEVEL="chatty")
