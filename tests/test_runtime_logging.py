from __future__ import annotations

import io
import json
import os
import tempfile
import threading
import unittest
from pathlib import Path
from unittest.mock import patch

from flatcopy.runtime_logging import configure_runtime_logging, parse_level


class RuntimeLoggingTests(unittest.TestCase):
    def test_writes_jsonl_and_filters_by_level(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "runtime.jsonl"
            logger = configure_runtime_logging(level="info", log_file=path)
            logger.debug("debug.hidden", foo="bar")
            logger.info("info.visible", foo="bar")

            payloads = [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines()]
            self.assertTrue(any(item["event"] == "info.visible" for item in payloads))
            self.assertFalse(any(item["event"] == "debug.hidden" for item in payloads))

    def test_uses_environment_variables(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "from-env.jsonl"
            with patch.dict(
                os.environ,
                {"FLATCOPY_LOG_LEVEL": "debug", "FLATCOPY_LOG_FILE": str(path)},
                clear=False,
            ):
                logger = configure_runtime_logging()
                logger.debug("env.debug", alpha=1)

            payloads = [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines()]
            self.assertTrue(any(item["event"] == "env.debug" for item in payloads))

    def test_defaults_to_stderr(self) -> None:
        stream = io.StringIO()
        with patch.dict(os.environ, {}, clear=True), patch("sys.stderr", stream):
            logger = configure_runtime_logging()
            logger.error("copy.failed", path="a/x.txt")

        payload = json.loads(stream.getvalue().splitlines()[-1])
        self.assertEqual(payload["event"], "copy.failed")
        self.assertEqual(payload["level"], "error")
        self.assertEqual(payload["path"], "a/x.txt")

    def test_off_disables_output(self) -> None:
        stream = io.StringIO()
        with patch("sys.stderr", stream):
            logger = configure_runtime_logging(level="off")
            logger.error("ignored")
        self.assertEqual(stream.getvalue(), "")

    def test_concurrent_writers_do_not_interleave(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "runtime.jsonl"
            logger = configure_runtime_logging(level="info", log_file=path)

            def write(worker: int) -> None:
                for index in range(50):
                    logger.info("copy.done", worker=worker, index=index, filler="x" * 200)

            threads = [threading.Thread(target=write, args=(n,)) for n in range(8)]
            for thread in threads:
                thread.start()
            for thread in threads:
                thread.join()

            lines = path.read_text(encoding="utf-8").splitlines()
            payloads = [json.loads(line) for line in lines]

        self.assertEqual(sum(1 for item in payloads if item["event"] == "copy.done"), 400)

    def test_parse_level_aliases(self) -> None:
        self.assertEqual(parse_level("WARN"), "warning")
        self.assertEqual(parse_level("disabled"), "off")
        self.assertEqual(parse_level("bogus"), "info")
        self.assertEqual(parse_level(None, default="error"), "error")


if __name__ == "__main__":
    unittest.main()
