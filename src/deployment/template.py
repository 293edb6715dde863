"""
Render stack templates with an external renderer process.
"""

import logging
import subprocess
from pathlib import Path
from typing import List, Optional, Sequence, Union

from cloudformation.models import TemplateRenderError

logger = logging.getLogger(__name__)


class TemplateRenderer:
    """Turn a template source file into a CloudFormation template body.

    The renderer is invoked as
    ``<command> <source> --project-dir <source dir> --format <format>``
    and must print the rendered document on stdout.
    """

    def __init__(
        self,
        command: Optional[Sequence[str]] = None,
        output_format: str = "json",
    ):
        """
        Initialize the renderer.

        Args:
            command: Renderer executable and leading arguments
            output_format: Wire format requested from the renderer
        """
        self.command = list(command) if command else ["pkl", "eval"]
        self.output_format = output_format

    def build_command(self, source: Path) -> List[str]:
        """Build the renderer command line for a source file."""
        return self.command + [
            str(source),
            "--project-dir",
            str(source.parent),
            "--format",
            self.output_format,
        ]

    def render(self, source: Union[str, Path]) -> str:
        """
        Render a template source file.

        Returns:
            The rendered template body

        Raises:
            TemplateRenderError: with the renderer's stderr, unmodified, when it
                exits with a non-zero status.
        """
        command = self.build_command(Path(source))
        logger.debug(f"Running command: {' '.join(command)}")

        result = subprocess.run(command, capture_output=True, text=True, check=False)
        logger.debug(f"Renderer exited with code {result.returncode}")

        if result.returncode != 0:
            raise TemplateRenderError(result.stderr)
        return result.stdout
