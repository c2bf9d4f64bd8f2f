"""Date-expression engine.

This module provides:
- Generators that expand calendar parameters into concrete dates
- Modifiers that narrow a generated date set
- A legacy phrase resolver used as a fallback for malformed tool calls

Everything here is pure: the reference date and holidays are passed in.
"""

from workbot.dates.catalog import render_tool_catalog
from workbot.dates.expressions import resolve_expressions, synthesize_expressions
from workbot.dates.modifiers import apply_modifiers
from workbot.dates.pipeline import execute_date_pipeline
from workbot.dates.registry import GENERATORS, execute_date_tool, execute_date_tools
from workbot.dates.types import (
    GeneratorName,
    GeneratorResult,
    Modifier,
    ModifierContext,
    ModifierKind,
    PipelineResult,
    ToolCall,
)

__all__ = [
    "GENERATORS",
    "GeneratorName",
    "GeneratorResult",
    "Modifier",
    "ModifierContext",
    "ModifierKind",
    "PipelineResult",
    "ToolCall",
    "apply_modifiers",
    "execute_date_pipeline",
    "execute_date_tool",
    "execute_date_tools",
    "render_tool_catalog",
    "resolve_expressions",
    "synthesize_expressions",
]
