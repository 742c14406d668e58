"""Translate technical errors to user-friendly messages."""

import re
from dataclasses import dataclass
from typing import List, Optional

from rich.markup import escape


@dataclass
class UserFriendlyError:
    """User-friendly error representation."""
    original_error: Exception
    title: str
    explanation: str
    actions: List[str]
    documentation: Optional[str] = None
    show_technical: bool = False


class ErrorTranslator:
    """Translate technical errors to user-friendly messages."""

    ERROR_PATTERNS = {
        # Stale cached payloads (must precede the generic malformed pattern)
        r"UnsupportedFormatVersion": {
            "title": "Index was built by an incompatible generator",
            "explanation": "The payload declares a formatVersion this reader does not understand. It is rejected rather than guessed at.",
            "actions": [
                "Regenerate the search index with the current documentation build",
                "Delete cached index payloads and reload",
            ],
        },

        r"MalformedIndex": {
            "title": "Search index is malformed",
            "explanation": "A payload failed validation. Crates that were already loaded are unaffected.",
            "actions": [
                "Check the item position cited in the technical details",
                "Regenerate the search index for that crate",
            ],
        },

        r"DanglingParentIndex|ParentChainTooDeep": {
            "title": "Search index is internally inconsistent",
            "explanation": "An item references a parent container the crate's Path Table does not contain.",
            "actions": [
                "Reload the crate from a freshly generated payload",
                "Run: docsearch crates to see which crates are loaded",
            ],
        },

        r"PayloadReadError": {
            "title": "Cannot read index file",
            "explanation": "The index file is missing or is not JSON / search-index.js.",
            "actions": [
                "Check the --index path",
                "Check index_paths in the config file",
            ],
        },

        r"InvalidSearchOptions": {
            "title": "Invalid search options",
            "explanation": "The search options are out of range.",
            "actions": [
                "Use a non-negative --limit",
                "Use kind labels such as fn, struct, enum, trait, method",
            ],
        },

        r"validation error for DocSearchConfig": {
            "title": "Invalid configuration",
            "explanation": "The configuration file or a DOCSEARCH_ environment variable holds a value out of range.",
            "actions": [
                "Fix the field named in the technical details",
                "Check DOCSEARCH_* environment variables",
            ],
        },

        r"config.*not.*found|no such file.*config": {
            "title": "Configuration missing",
            "explanation": "The configuration file was not found.",
            "actions": [
                "Create docsearch.yaml or pass --config",
            ],
        },
    }

    def translate(self, error: Exception) -> UserFriendlyError:
        """Convert exception to user-friendly format."""
        error_str = str(error)
        error_type = type(error).__name__
        full_error = f"{error_type}: {error_str}"

        for pattern, translation in self.ERROR_PATTERNS.items():
            if re.search(pattern, full_error, re.IGNORECASE):
                return UserFriendlyError(
                    original_error=error,
                    title=translation["title"],
                    explanation=translation["explanation"],
                    actions=translation["actions"],
                    documentation=translation.get("documentation"),
                    show_technical=True,
                )

        # Fallback for unknown errors
        return UserFriendlyError(
            original_error=error,
            title="Unexpected error",
            explanation=str(error),
            actions=[
                "Re-run with --log-level DEBUG",
                "Check logs for details",
            ],
            show_technical=True,
        )

    def format_for_cli(self, friendly_error: UserFriendlyError) -> str:
        """Format error for CLI display."""
        output = f"[bold red]{friendly_error.title}[/]\n\n"
        output += f"{friendly_error.explanation}\n\n"

        output += "[bold]How to fix:[/]\n"
        for i, action in enumerate(friendly_error.actions, 1):
            output += f"  {i}. {action}\n"

        if friendly_error.documentation:
            output += f"\n[dim]Learn more: {friendly_error.documentation}[/]"

        if friendly_error.show_technical:
            output += f"\n\n[dim]Technical details:[/]\n[dim]{escape(str(friendly_error.original_error))}[/]"

        return output
