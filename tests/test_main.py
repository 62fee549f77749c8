"""Tests for main.py CLI functionality."""

import os
from unittest.mock import patch

import pytest

from photo_gallery.core import GalleryConfig, PipelineState
from photo_gallery.main import main
from photo_gallery.testing.fakes import setup_test_photo_directory


@pytest.fixture(autouse=True)
def gallery_env():
    """Run every CLI test with a known password and no stray settings."""
    env = {"PASSWORD": "secret"}
    with patch.dict(os.environ, env):
        for name in ("PHOTO_DIRECTORY", "HTTP_HOST", "HTTP_PORT", "LOGIN",
                     "CONCURRENCY", "PROCESSOR", "FAILURE_POLICY", "DEBUG"):
            os.environ.pop(name, None)
        yield


class TestMainCLI:
    """Tests for the main CLI functionality."""

    def test_main_with_no_args_shows_help(self):
        """Test that running main without arguments shows help."""
        with patch("sys.argv", ["photo-gallery"]):
            with patch("argparse.ArgumentParser.print_help") as mock_help:
                with patch("sys.exit") as mock_exit:
                    main()
                    mock_help.assert_called_once()
                    mock_exit.assert_called_once_with(1)

    def test_main_version_command(self):
        """Test version command output."""
        with patch("sys.argv", ["photo-gallery", "version"]):
            with patch("builtins.print") as mock_print:
                with patch("sys.exit") as mock_exit:
                    main()
                    mock_print.assert_any_call("Photo Gallery")
                    mock_print.assert_any_call("Version 0.1.0")
                    mock_exit.assert_called_once_with(0)

    def test_main_serve_command_defaults(self):
        """Test serve command with no options."""
        with patch("photo_gallery.main.serve") as mock_serve:
            main(["serve"])

        config = mock_serve.call_args[0][0]
        assert isinstance(config, GalleryConfig)
        assert config.port == 3000
        assert config.login == "guest"
        assert config.password == "secret"
        assert config.processor == "multithread"
        assert config.failure_policy == "strict"
        assert config.photo_directory == os.path.abspath("samples")

    def test_main_serve_command_with_all_options(self, tmp_path):
        """Test serve command with all optional arguments."""
        test_args = [
            "serve",
            "--photo-directory",
            str(tmp_path),
            "--host",
            "127.0.0.1",
            "--port",
            "8080",
            "--concurrency",
            "3",
            "--processor",
            "asyncio",
            "--failure-policy",
            "relaxed",
            "--no-progress",
        ]

        with patch("photo_gallery.main.serve") as mock_serve:
            main(test_args)

        config = mock_serve.call_args[0][0]
        assert config.photo_directory == str(tmp_path)
        assert config.host == "127.0.0.1"
        assert config.port == 8080
        assert config.concurrency == 3
        assert config.processor == "asyncio"
        assert config.failure_policy == "relaxed"
        assert config.progress is False

    def test_main_environment_is_read(self, tmp_path):
        """Test that environment variables configure the gallery."""
        env = {"PHOTO_DIRECTORY": str(tmp_path), "HTTP_PORT": "9000", "LOGIN": "alice"}
        with patch.dict(os.environ, env):
            with patch("photo_gallery.main.serve") as mock_serve:
                main(["serve"])

        config = mock_serve.call_args[0][0]
        assert config.photo_directory == str(tmp_path)
        assert config.port == 9000
        assert config.login == "alice"

    def test_main_command_line_beats_environment(self):
        """Test that options override environment variables."""
        with patch.dict(os.environ, {"CONCURRENCY": "2"}):
            with patch("photo_gallery.main.serve") as mock_serve:
                main(["serve", "--concurrency", "5"])
        assert mock_serve.call_args[0][0].concurrency == 5

    def test_main_invalid_processor(self):
        """Test that argparse rejects unknown processors."""
        with pytest.raises(SystemExit) as exc_info:
            main(["build", "--processor", "gpu"])
        assert exc_info.value.code == 2

    def test_main_invalid_concurrency_exits(self):
        """Test that an invalid budget is a startup error."""
        with pytest.raises(SystemExit) as exc_info:
            main(["build", "--concurrency", "0"])
        assert exc_info.value.code == 1

    def test_main_debug_enables_debug_logging(self, tmp_path):
        """Test that --debug switches logging to DEBUG."""
        with patch("photo_gallery.main.set_debug_logging") as mock_debug:
            main(["build", "--photo-directory", str(tmp_path), "--no-progress", "--debug"])
        mock_debug.assert_called_once_with()


class TestBuildCommand:
    """Tests for the build command."""

    def test_build_prints_summary(self, tmp_path, capsys):
        """Test building thumbnails for a photo tree."""
        setup_test_photo_directory(str(tmp_path))

        main(["build", "--photo-directory", str(tmp_path), "--no-progress", "--concurrency", "2"])

        out = capsys.readouterr().out
        assert "Photos:        4" in out
        assert "Thumbnails:    4" in out
        assert "Failed:        0" in out
        assert "Multithreaded" in out

    def test_build_missing_directory_exits(self, tmp_path):
        """Test that an unreadable photo directory exits with status 1."""
        with pytest.raises(SystemExit) as exc_info:
            main(["build", "--photo-directory", str(tmp_path / "missing"), "--no-progress"])
        assert exc_info.value.code == 1

    def test_build_strict_failure_exits(self, tmp_path):
        """Test that a corrupt photo aborts startup under the strict policy."""
        setup_test_photo_directory(str(tmp_path))
        (tmp_path / "broken.jpg").write_bytes(b"garbage")

        with pytest.raises(SystemExit) as exc_info:
            main(["build", "--photo-directory", str(tmp_path), "--no-progress"])
        assert exc_info.value.code == 1

    def test_build_relaxed_failure_succeeds(self, tmp_path, capsys):
        """Test that the relaxed policy keeps going."""
        setup_test_photo_directory(str(tmp_path))
        (tmp_path / "broken.jpg").write_bytes(b"garbage")

        main([
            "build",
            "--photo-directory",
            str(tmp_path),
            "--no-progress",
            "--failure-policy",
            "relaxed",
        ])

        out = capsys.readouterr().out
        assert "Photos:        5" in out
        assert "Failed:        1" in out


class TestServeCommand:
    """Tests for the serve command."""

    def test_serve_starts_uvicorn_after_pipeline(self, tmp_path):
        """Test that the server is only started with a ready index."""
        setup_test_photo_directory(str(tmp_path))

        with patch("uvicorn.run") as mock_run:
            main([
                "serve",
                "--photo-directory",
                str(tmp_path),
                "--no-progress",
                "--port",
                "8123",
            ])

        mock_run.assert_called_once()
        app = mock_run.call_args[0][0]
        assert mock_run.call_args[1]["port"] == 8123
        assert mock_run.call_args[1]["host"] == "0.0.0.0"
        assert app.state.gallery.state is PipelineState.READY
        assert app.state.gallery.photo_count == 4

    def test_serve_does_not_start_on_failure(self, tmp_path):
        """Test that a failed pipeline never starts the server."""
        with patch("uvicorn.run") as mock_run:
            with pytest.raises(SystemExit) as exc_info:
                main(["serve", "--photo-directory", str(tmp_path / "missing"), "--no-progress"])
        assert exc_info.value.code == 1
        mock_run.assert_not_called()
