"""Helpers that run request schemas before any write happens."""
from __future__ import annotations

from typing import Any, TypeVar

import pydantic
from loguru import logger

from glosa.utils.exceptions import ValidationError

ModelT = TypeVar("ModelT", bound=pydantic.BaseModel)


def validate_request(schema: type[ModelT], **data: Any) -> ModelT:
    """Validate keyword input against ``schema`` or raise ``ValidationError``."""

    try:
        return schema.model_validate(data)
    except pydantic.ValidationError as exc:
        errors = [
            {"field": ".".join(str(part) for part in error["loc"]), "message": error["msg"]}
            for error in exc.errors(include_url=False)
        ]
        logger.warning("Rejected invalid request", schema=schema.__name__, errors=errors)
        raise ValidationError(f"Invalid {schema.__name__} payload", details={"errors": errors}) from exc
