"""Render the generator and modifier catalogue for the proposer prompt.

The text is derived from the registries and their parameter models, so
the language model is only ever told about tools that actually exist
with the parameters they actually accept.
"""

from typing import Any

from pydantic import BaseModel

from workbot.dates.modifiers import MODIFIERS
from workbot.dates.registry import GENERATORS


def _render_schema(schema: dict[str, Any], defs: dict[str, Any]) -> str:
    if "$ref" in schema:
        target = defs[schema["$ref"].split("/")[-1]]
        fields = ", ".join(
            f'"{name}": {_render_schema(prop, defs)}' for name, prop in target.get("properties", {}).items()
        )
        return "{ " + fields + " }"
    if "anyOf" in schema:
        options = [option for option in schema["anyOf"] if option.get("type") != "null"]
        return _render_schema(options[0], defs) if options else "null"
    if "enum" in schema:
        return " | ".join(f'"{value}"' for value in schema["enum"])
    if "const" in schema:
        return f'"{schema["const"]}"'
    if schema.get("type") == "array":
        return f"[{_render_schema(schema.get('items', {}), defs)}, ...]"
    if schema.get("format") == "date":
        return '"YYYY-MM-DD"'
    return f"<{schema.get('type', 'value')}>"


def render_params(model: type[BaseModel]) -> str:
    """One-line description of a params model, e.g. '{ "period": ..., "count": <integer> }'."""
    schema = model.model_json_schema()
    defs = schema.get("$defs", {})
    required = set(schema.get("required", []))
    fields = []
    for name, prop in schema.get("properties", {}).items():
        rendered = f'"{name}": {_render_schema(prop, defs)}'
        if name not in required:
            default = prop.get("default")
            rendered += " (optional" + (f", default {default}" if default is not None else "") + ")"
        fields.append(rendered)
    if not fields:
        return "{} (no parameters)"
    return "{ " + ", ".join(fields) + " }"


def render_tool_catalog() -> str:
    """Numbered generator list followed by the modifier list."""
    lines = [
        "AVAILABLE DATE TOOLS (GENERATORS):",
        'Select one tool to generate the base date set. Each action MUST include a "toolCall" field.',
        "Unless marked (includes weekends), tools return Monday-Friday dates only.",
        "",
    ]
    for number, (name, spec) in enumerate(GENERATORS.items(), start=1):
        marker = " (includes weekends)" if spec.weekend_aware else ""
        lines.append(f"{number}. {name}{marker}")
        lines.append(f"   {spec.summary}")
        if spec.examples:
            lines.append("   Use for: " + ", ".join(f'"{example}"' for example in spec.examples))
        lines.append(f"   Params: {render_params(spec.params_model)}")
        lines.append("")

    lines.extend(
        [
            "MODIFIERS (optional):",
            'Add a "modifiers" array to an action to narrow the generated dates. They apply in order.',
            "Only add modifiers when the command has constraints a single tool cannot express.",
            "",
        ]
    )
    for number, (kind, spec) in enumerate(MODIFIERS.items(), start=1):
        lines.append(f"M{number}. {kind} - {spec.summary}")
        lines.append(f"    Params: {render_params(spec.params_model)}")
    return "\n".join(lines)
