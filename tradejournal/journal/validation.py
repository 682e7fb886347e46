"""
Entity Validation Module

The single gate every document passes through on its way to or from disk.
Reading distinguishes three failure stages so callers can tell them apart:
the file could not be read, the bytes are not JSON, or the JSON does not
describe a valid entity.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Type, TypeVar, Union

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from tradejournal.core.errors import (
    CorruptDataError,
    InvalidEntityError,
    NotFoundError,
    UnreadableError,
    Violation,
)
from tradejournal.journal.models import Thesis, Trade

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

ENUM_ERROR_TYPES = {"enum", "literal_error"}


def _violation_kind(error_type: str) -> str:
    if error_type == "missing":
        return "missing_field"
    if error_type in ENUM_ERROR_TYPES:
        return "invalid_enum"
    if error_type == "cross_field":
        return "cross_field"
    if error_type.endswith("_type") or "_parsing" in error_type:
        return "wrong_type"
    return "invalid_value"


def violations_from(exc: PydanticValidationError) -> List[Violation]:
    """Translate pydantic errors into journal violations with dotted field paths."""
    violations = []
    for error in exc.errors(include_url=False):
        location = [str(part) for part in error.get("loc", ())]
        context = error.get("ctx") or {}
        if not location and "field" in context:
            location = [str(context["field"])]
        violations.append(
            Violation(
                field=".".join(location) or "<document>",
                message=error.get("msg", "invalid"),
                kind=_violation_kind(error.get("type", "")),
            )
        )
    return violations


def validate_entity(model: Type[M], data: Any) -> M:
    """
    Validate raw parsed data into a typed entity.

    Args:
        model: Entity model class (Trade or Thesis)
        data: Parsed JSON value, or an existing model instance

    Returns:
        Validated model instance

    Raises:
        InvalidEntityError: If the data does not satisfy the entity schema
    """
    if isinstance(data, BaseModel):
        # Re-validate from the serialized form so in-place mutations are checked
        data = data.model_dump(mode="json", by_alias=True, exclude_none=True)

    if not isinstance(data, dict):
        raise InvalidEntityError(
            [Violation("<document>", f"expected an object, got {type(data).__name__}", "wrong_type")]
        )

    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        raise InvalidEntityError(violations_from(e), context={"entity": model.__name__}) from e


def validate_trade(data: Union[Dict[str, Any], Trade]) -> Trade:
    return validate_entity(Trade, data)


def validate_thesis(data: Union[Dict[str, Any], Thesis]) -> Thesis:
    return validate_entity(Thesis, data)


def parse_document(text: Union[str, bytes], source: str = "<memory>") -> Any:
    """Decode and parse JSON text, failing with CorruptDataError."""
    try:
        if isinstance(text, bytes):
            text = text.decode("utf-8")
        return json.loads(text)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise CorruptDataError(detail=f"{source}: {e}", original_error=e) from e


def parse_trade(text: Union[str, bytes], source: str = "<memory>") -> Trade:
    return validate_trade(parse_document(text, source))


def parse_thesis(text: Union[str, bytes], source: str = "<memory>") -> Thesis:
    return validate_thesis(parse_document(text, source))


def read_document(path: Path) -> bytes:
    """
    Read an entity file from disk.

    Raises:
        NotFoundError: If the file vanished between locate and read
        UnreadableError: For any other I/O failure
    """
    try:
        return path.read_bytes()
    except FileNotFoundError as e:
        raise NotFoundError(detail=str(path), original_error=e) from e
    except OSError as e:
        raise UnreadableError(detail=f"{path}: {e.strerror or e}", original_error=e) from e


def read_entity(model: Type[M], path: Path) -> M:
    """Read, parse and validate one entity file."""
    data = parse_document(read_document(path), source=str(path))
    return validate_entity(model, data)


def serialize_entity(entity: BaseModel) -> str:
    """Render an entity as the pretty-printed JSON stored on disk."""
    document = entity.model_dump(mode="json", by_alias=True, exclude_none=True)
    return json.dumps(document, indent=2, ensure_ascii=False) + "\n"
