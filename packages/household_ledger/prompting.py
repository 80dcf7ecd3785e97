"""Prompt construction for the external categorization fallback.

This module builds:
- The system instructions listing the closed set of category ids.
- The user content carrying one normalized movement description.
- The strict ``response_format`` (JSON Schema) object for the OpenAI
  Responses API.
"""

from __future__ import annotations

from collections.abc import Sequence

from openai.types.responses.response_format_text_json_schema_config_param import (
    ResponseFormatTextJSONSchemaConfigParam,
)

from .categories import UNCATEGORIZED, Category


def build_system_instructions(categories: Sequence[Category]) -> str:
    """Return instructions naming every allowed ``id: name`` pair.

    The model must answer with exactly one id from the list, or
    ``uncategorized`` when unsure.
    """

    listing = ", ".join(f"{c.id}: {c.name}" for c in categories)
    return (
        "You categorize bank account movements for a household ledger. "
        f"Reply with exactly one category id from this list: {listing}. "
        f'If unsure, reply "{UNCATEGORIZED}". Output JSON only that conforms to the '
        "specified schema."
    )


def build_user_content(description: str) -> str:
    return f'Transaction: "{description}"'


def build_response_format(
    category_ids: Sequence[str],
) -> ResponseFormatTextJSONSchemaConfigParam:
    """Return the strict JSON Schema response_format object.

    Schema shape:
    {
      "type": "json_schema",
      "name": "movement_category",
      "schema": {
        "type": "object",
        "properties": {"category": {"type": "string", "enum": [..., "uncategorized"]}},
        "required": ["category"],
        "additionalProperties": false
      },
      "strict": true
    }
    """

    codes = [c for c in dict.fromkeys(str(i).strip() for i in category_ids) if c]
    if not codes:
        raise ValueError("category_ids must contain at least one non-blank id")
    if UNCATEGORIZED not in codes:
        codes.append(UNCATEGORIZED)

    result: ResponseFormatTextJSONSchemaConfigParam = {
        "type": "json_schema",
        "name": "movement_category",
        "schema": {
            "type": "object",
            "properties": {"category": {"type": "string", "enum": codes}},
            "required": ["category"],
            "additionalProperties": False,
        },
        "strict": True,
    }
    return result


__all__ = ["build_system_instructions", "build_user_content", "build_response_format"]
