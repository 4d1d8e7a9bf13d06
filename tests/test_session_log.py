import tempfile
import unittest
from pathlib import Path

from command_prompt.config.paths import PromptPaths
from command_prompt.core import session_log
from command_prompt.core.session_log import SessionLogger, resolve_debug_config


class SessionLoggerTests(unittest.TestCase):
    def tearDown(self) -> None:
        session_log.set_active_logger(None)

    def _log_text(self, paths: PromptPaths) -> str:
        files = list(paths.logs_dir.glob("command_prompt_*.md"))
        self.assertEqual(len(files), 1)
        return files[0].read_text(encoding="utf-8")

    def test_logger_disabled_creates_no_file(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            paths = PromptPaths(Path(tmp))
            logger = SessionLogger(paths, None)
            logger.log_level("history", "error", "history.error", "nope")
            logger.log_keypress("controller", "tab", "complete")
            self.assertFalse(logger.enabled)
            self.assertFalse(paths.logs_dir.exists())

    def test_level_entries_write_markdown(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            paths = PromptPaths(Path(tmp))
            logger = SessionLogger(paths, "info")
            logger.log_level("history", "info", "history.backup", {"path": "x.json"})
            logger.log_level("history", "debug", "history.skipped", "hidden")
            logger.close()
            text = self._log_text(paths)
            self.assertIn("# Command Prompt Session Log", text)
            self.assertIn("info/history · history.backup", text)
            self.assertIn('"path": "x.json"', text)
            self.assertNotIn("hidden", text)

    def test_log_exception(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            paths = PromptPaths(Path(tmp))
            logger = SessionLogger(paths, "error")
            try:
                raise ValueError("boom")
            except ValueError as exc:
                logger.log_exception("controller", exc)
            logger.close()
            text = self._log_text(paths)
            self.assertIn("exception", text)
            self.assertIn("ValueError", text)
            self.assertIn("boom", text)

    def test_keypress_logging_requires_keys_type(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            paths = PromptPaths(Path(tmp))
            logger = SessionLogger(paths, "error")
            logger.log_keypress("controller", "tab", "complete")
            self.assertFalse(paths.logs_dir.exists())

            logger.configure(["keys"])
            logger.log_keypress("controller", "ctrl+end", "ctrl_end")
            text = self._log_text(paths)
            self.assertIn("keys/controller · keypress", text)
            self.assertIn('"key": "ctrl+end"', text)

    def test_module_helpers_use_active_logger(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            paths = PromptPaths(Path(tmp))
            session_log.log_warn("history", "ignored")
            self.assertFalse(paths.logs_dir.exists())

            session_log.set_active_logger(SessionLogger(paths, "all"))
            session_log.log_warn("history", "history.warn", "careful")
            session_log.log_debug("history", "history.debug")
            text = self._log_text(paths)
            self.assertIn("warn/history · history.warn", text)
            self.assertIn("debug/history · history.debug", text)

    def test_write_failure_disables_logger(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            blocker = Path(tmp) / "blocker"
            blocker.write_text("file", encoding="utf-8")
            logger = SessionLogger(PromptPaths(blocker), "all")
            logger.log_level("history", "error", "history.error")
            self.assertFalse(logger.enabled)


class DebugConfigTests(unittest.TestCase):
    def test_true_enables_everything(self) -> None:
        selection = resolve_debug_config(True)
        self.assertEqual(selection.enabled_types, frozenset({"keys"}))
        self.assertEqual(selection.enabled_levels, frozenset({"error", "warn", "info", "debug"}))

    def test_level_includes_more_severe_levels(self) -> None:
        selection = resolve_debug_config("warn")
        self.assertEqual(selection.enabled_levels, frozenset({"error", "warn"}))
        self.assertEqual(selection.enabled_types, frozenset())

    def test_list_of_tokens(self) -> None:
        selection = resolve_debug_config(["keys", "error", 3])
        self.assertEqual(selection.enabled_types, frozenset({"keys"}))
        self.assertEqual(selection.enabled_levels, frozenset({"error"}))

    def test_falsy_values(self) -> None:
        for raw in (None, False, "off", "", []):
            selection = resolve_debug_config(raw)
            self.assertFalse(selection.enabled_types or selection.enabled_levels)


if __name__ == "__main__":
    unittest.main()
