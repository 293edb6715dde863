"""
Tests for template rendering.
"""

import subprocess
from pathlib import Path
from unittest.mock import patch

import pytest

from cloudformation.models import TemplateRenderError
from deployment.template import TemplateRenderer


class TestTemplateRenderer:
    """Test TemplateRenderer."""

    def test_build_command(self) -> None:
        """Test the renderer command line."""
        renderer = TemplateRenderer()

        command = renderer.build_command(Path("infra/stacks/web.pkl"))

        assert command == [
            "pkl",
            "eval",
            "infra/stacks/web.pkl",
            "--project-dir",
            "infra/stacks",
            "--format",
            "json",
        ]

    def test_custom_command_and_format(self) -> None:
        """Test the executable and format are configurable."""
        renderer = TemplateRenderer(["/opt/pkl/bin/pkl", "eval"], output_format="yaml")

        command = renderer.build_command(Path("web.pkl"))

        assert command[0] == "/opt/pkl/bin/pkl"
        assert command[-2:] == ["--format", "yaml"]

    def test_render_returns_stdout(self) -> None:
        """Test the rendered document is the renderer's stdout."""
        completed = subprocess.CompletedProcess(
            args=[], returncode=0, stdout='{"Resources": {}}', stderr=""
        )
        with patch("deployment.template.subprocess.run", return_value=completed) as mock_run:
            body = TemplateRenderer().render("web.pkl")

        assert body == '{"Resources": {}}'
        args, kwargs = mock_run.call_args
        assert args[0][:3] == ["pkl", "eval", "web.pkl"]
        assert kwargs["capture_output"] is True
        assert kwargs["text"] is True

    def test_render_failure_carries_stderr(self) -> None:
        """Test a non-zero exit raises with the renderer's stderr unchanged."""
        stderr = "-- Pkl Error --\nCannot find module `base.pkl`.\n"
        completed = subprocess.CompletedProcess(
            args=[], returncode=1, stdout="", stderr=stderr
        )
        with patch("deployment.template.subprocess.run", return_value=completed):
            with pytest.raises(TemplateRenderError) as exc_info:
                TemplateRenderer().render("web.pkl")

        assert str(exc_info.value) == stderr

    def test_missing_executable_propagates(self) -> None:
        """Test a missing renderer binary is reported as an OS error."""
        with patch("deployment.template.subprocess.run", side_effect=FileNotFoundError("pkl")):
            with pytest.raises(FileNotFoundError):
                TemplateRenderer().render("web.pkl")
