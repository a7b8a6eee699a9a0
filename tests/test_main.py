from __future__ import annotations

import sys
from unittest.mock import MagicMock, patch

import pytest

from depscout.__main__ import _print_startup_error, main


def _failing_import(blocked: str, error: ImportError):
    """Return an ``__import__`` replacement that raises *error* for *blocked*."""
    real_import = __import__

    def fake_import(name, *args, **kwargs):
        if name == blocked:
            raise error
        return real_import(name, *args, **kwargs)

    return fake_import


@pytest.mark.unit
class TestMain:
    """Tests for the ``python -m depscout`` entry point."""

    @pytest.mark.parametrize("exit_code", [0, 1, 130], ids=["success", "error", "interrupted"])
    def test_forwards_cli_exit_code(self, exit_code: int) -> None:
        """Test main returns whatever the CLI main returns."""
        cli_module = MagicMock()
        cli_module.main = MagicMock(return_value=exit_code)

        with patch.dict("sys.modules", {"depscout.cli": cli_module}):
            assert main() == exit_code

        cli_module.main.assert_called_once_with()

    def test_import_error_returns_one(self, capsys: pytest.CaptureFixture) -> None:
        """Test a broken CLI import is reported and mapped to exit code 1."""
        error = ImportError("No module named 'rich'")

        with patch("builtins.__import__", side_effect=_failing_import("depscout.cli", error)):
            result = main()

        assert result == 1
        assert "ImportError: No module named 'rich'" in capsys.readouterr().err


@pytest.mark.unit
class TestPrintStartupError:
    """Tests for _print_startup_error."""

    def test_includes_version(self, capsys: pytest.CaptureFixture) -> None:
        """Test the package version is printed when importable."""
        version_module = MagicMock(__version__="9.9.9")

        with patch.dict(sys.modules, {"depscout.__version__": version_module}):
            _print_startup_error(ImportError("boom"))

        captured = capsys.readouterr()
        assert "depscout version: 9.9.9" in captured.err
        assert "ImportError: boom" in captured.err
        assert captured.out == ""

    def test_unknown_version(self, capsys: pytest.CaptureFixture) -> None:
        """Test a missing version module is reported as unknown."""
        error = ImportError("no version")

        with patch(
            "builtins.__import__",
            side_effect=_failing_import("depscout.__version__", error),
        ):
            _print_startup_error(ImportError("boom"))

        assert "depscout version: <unknown>" in capsys.readouterr().err
