"""Exceptions raised while loading configuration."""

from typing import List, Optional


class ConfigurationError(Exception):
    """
    Configuration could not be loaded or failed validation.

    Collects every validation error found so the operator can fix them in one
    pass, plus suggestions on how to fix them.
    """

    def __init__(
        self,
        message: str,
        errors: Optional[List[str]] = None,
        suggestions: Optional[List[str]] = None,
    ):
        self.message = message
        self.errors = list(errors or [])
        self.suggestions = list(suggestions or [])
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        lines = [self.message]

        if self.errors:
            lines.append("\nValidation Errors:")
            lines.extend(f"  {i}. {error}" for i, error in enumerate(self.errors, 1))

        if self.suggestions:
            lines.append("\nSuggestions:")
            lines.extend(f"  - {suggestion}" for suggestion in self.suggestions)

        return "\n".join(lines)

    def __str__(self) -> str:
        return self._format_message()
