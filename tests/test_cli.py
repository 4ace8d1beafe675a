import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from s3nav.app import configure_logging, main
from s3nav.config import BrowserConfig


class TestCliDispatch(unittest.TestCase):
    def test_default_cli_runs_browser(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            missing = str(Path(temp_dir) / "missing.json")
            with patch("s3nav.app._run_browser", return_value=0) as run_browser:
                with patch("s3nav.app.configure_logging") as configure:
                    code = main(["--config", missing])

        self.assertEqual(code, 0)
        run_browser.assert_called_once_with(BrowserConfig())
        configure.assert_called_once_with(None, "INFO")

    def test_cli_options_override_config(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            config_path = Path(temp_dir) / "config.json"
            config_path.write_text('{"profile": "dev", "page_size": 50}')
            with patch("s3nav.app._run_browser", return_value=0) as run_browser:
                with patch("s3nav.app.configure_logging"):
                    main(
                        [
                            "--config",
                            str(config_path),
                            "--profile",
                            "prod",
                            "--region",
                            "us-west-2",
                            "--endpoint-url",
                            "http://localhost:9000",
                            "--download-dir",
                            "/tmp/out",
                            "--log-level",
                            "debug",
                        ]
                    )

        config = run_browser.call_args.args[0]
        self.assertEqual(config.profile, "prod")
        self.assertEqual(config.region, "us-west-2")
        self.assertEqual(config.endpoint_url, "http://localhost:9000")
        self.assertEqual(config.page_size, 50)
        self.assertEqual(config.download_dir, "/tmp/out")
        self.assertEqual(config.log_level, "DEBUG")

    def test_invalid_log_level_exits(self) -> None:
        with patch("s3nav.app._run_browser", return_value=0):
            with self.assertRaises(SystemExit):
                main(["--log-level", "loud"])

    def test_configure_logging_adds_file_sink(self) -> None:
        with patch("s3nav.app.logger") as logger_mock:
            configure_logging("/tmp/s3nav.log", "DEBUG")
        logger_mock.remove.assert_called_once_with()
        logger_mock.add.assert_called_once_with(
            Path("/tmp/s3nav.log"), level="DEBUG", rotation="5 MB"
        )

    def test_configure_logging_without_file_only_silences(self) -> None:
        with patch("s3nav.app.logger") as logger_mock:
            configure_logging(None)
        logger_mock.remove.assert_called_once_with()
        logger_mock.add.assert_not_called()


if __name__ == "__main__":
    unittest.main()
