"""LESS parser: compile with an external ``lessc``, then parse the CSS."""

from __future__ import annotations

import asyncio
import logging

from scissors_core.errors import ParseError
from scissors_core.parser.base import Parser
from scissors_core.parser.css import CSSParser
from scissors_core.rules.models import RuleTree

logger = logging.getLogger(__name__)

DEFAULT_LESS_COMMAND = ["lessc", "-"]


class LessParser(Parser):
    """Runs the LESS compiler on stdin and parses its CSS output.

    The compile step is a suspension point; callers that may see several
    edits in flight must discard results that a newer edit has superseded.
    """

    css_type = "less"

    def __init__(
        self,
        command: list[str] | None = None,
        timeout: float = 30.0,
        css_parser: CSSParser | None = None,
    ) -> None:
        self.command = list(command or DEFAULT_LESS_COMMAND)
        self.timeout = timeout
        self._css = css_parser or CSSParser()

    async def parse(self, text: str) -> RuleTree:
        css = await self.compile(text)
        return self._css.parse_text(css)

    async def compile(self, text: str) -> str:
        """Compile LESS source to CSS text. Raises ParseError."""
        try:
            proc = await asyncio.create_subprocess_exec(
                *self.command,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as e:
            raise ParseError(f"LESS compiler not found: {self.command[0]}") from e

        try:
            stdout, stderr = await asyncio.wait_for(
                proc.communicate(text.encode()), timeout=self.timeout
            )
        except asyncio.TimeoutError:
            proc.kill()
            await proc.wait()
            raise ParseError(f"LESS compile timed out after {self.timeout}s") from None

        if proc.returncode != 0:
            detail = stderr.decode(errors="replace").strip()
            logger.debug("lessc exited %d: %s", proc.returncode, detail)
            raise ParseError(f"lessc exited {proc.returncode}: {detail[:200]}")
        return stdout.decode()
