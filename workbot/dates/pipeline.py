"""Generator + modifier pipeline."""

from collections.abc import Sequence
from datetime import date

from workbot.dates.modifiers import apply_modifiers
from workbot.dates.registry import execute_date_tool
from workbot.dates.types import Modifier, ModifierContext, PipelineResult, ToolCall


def execute_date_pipeline(
    tool_call: ToolCall,
    modifiers: Sequence[Modifier],
    today: date,
    context: ModifierContext | None = None,
) -> PipelineResult:
    """Run a generator, then its modifiers in order.

    Args:
        tool_call: Generator producing the base date set
        modifiers: Ordered filters applied to the base set
        today: Reference date
        context: Holidays for exclude_holidays

    Returns:
        PipelineResult. success mirrors the generator; modifier failures
        never fail the pipeline and are listed in modifier_errors.
    """
    generated = execute_date_tool(tool_call, today)
    if not generated.success:
        return PipelineResult(
            success=False,
            dates=[],
            description=generated.description,
            generator_result=generated,
        )

    if not modifiers:
        return PipelineResult(
            success=True,
            dates=list(generated.dates),
            description=generated.description,
            generator_result=generated,
        )

    dates, errors = apply_modifiers(generated.dates, modifiers, context)
    return PipelineResult(
        success=True,
        dates=dates,
        description=f"{generated.description} -> {len(modifiers)} modifier(s) applied -> {len(dates)} dates",
        generator_result=generated,
        modifier_errors=errors,
    )
