"""Abstract parser interface."""

from abc import ABC, abstractmethod

from scissors_core.rules.models import RuleTree


class Parser(ABC):
    """Turns stylesheet source text into a RuleTree.

    Parsing may suspend (a LESS compile runs an external process), so the
    interface is async. Implementations raise ParseError on bad input.
    """

    css_type: str = "css"

    @abstractmethod
    async def parse(self, text: str) -> RuleTree:
        """Parse *text* into a fresh RuleTree."""
        ...
