"""Action directives — decoding the structured requests the assistant embeds in replies."""

from netops.actions.directive import (
    DirectiveParseError,
    DirectiveResult,
    NoDirective,
    ParsedDirective,
    extract,
    has_directive,
)

__all__ = [
    "DirectiveParseError",
    "DirectiveResult",
    "NoDirective",
    "ParsedDirective",
    "extract",
    "has_directive",
]
