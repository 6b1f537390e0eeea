import json
from textwrap import dedent
from typing import Any

from pydantic import BaseModel, TypeAdapter

ALLOWED_TYPES = BaseModel | list[BaseModel]

FENCE = "```"


def object_in_text_instructions[T: ALLOWED_TYPES](object_type: type[T]) -> str:
    """Tell the model to answer with a single fenced JSON block matching the object's schema."""

    json_schema: dict[str, Any] = TypeAdapter[T](object_type).json_schema()

    return dedent(
        f"""
Respond with a single structured object of type {object_type.__name__} and nothing else.

The schema for the object is:
```json
{json.dumps(obj=json_schema, indent=1)}
```

Place the JSON between ```json and ``` tags. Close every array, object and string and do not
leave trailing commas or other invalid JSON.
"""
    ).strip()


def extract_json_blocks_from_text(text: str) -> list[str]:
    """Extract the body of every fenced block in the text. An unterminated block runs to the end of the text."""

    blocks: list[str] = []
    current: list[str] | None = None

    for line in text.strip().splitlines():
        if line.strip().startswith(FENCE):
            if current is None:
                current = []
            else:
                blocks.append("\n".join(current))
                current = None
            continue

        if current is not None:
            current.append(line)

    if current:
        blocks.append("\n".join(current))

    return blocks


def extract_single_object_from_json_block[T: ALLOWED_TYPES](json_block_text: str, object_type: type[T]) -> T:
    """Validate a JSON document against the object type."""

    json_text: str = "\n".join([line.strip() for line in json_block_text.splitlines()])

    return TypeAdapter[T](object_type).validate_json(json_text)


def extract_single_object_from_text[T: ALLOWED_TYPES](text: str, object_type: type[T]) -> T:
    """Extract an object from a model response.

    The response may hold exactly one fenced JSON block surrounded by prose, or be a bare JSON document.

    Raises:
        ValueError: If the text holds several blocks, or no JSON that validates against the object type
            (pydantic's `ValidationError` is a `ValueError`).
    """

    blocks: list[str] = extract_json_blocks_from_text(text)

    if len(blocks) > 1:
        msg = f"Text must contain at most one Markdown JSON block. Received {len(blocks)}."
        raise ValueError(msg)

    json_text: str = blocks[0] if blocks else text.strip()

    return extract_single_object_from_json_block(json_block_text=json_text, object_type=object_type)
