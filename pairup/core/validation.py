# pairup/core/validation.py
from typing import TypeVar

from fastapi import HTTPException, status
from pydantic import BaseModel, ValidationError

ModelT = TypeVar("ModelT", bound=BaseModel)


def field_errors(exc: ValidationError) -> dict[str, str]:
    """
    Flatten a pydantic ValidationError into {field: message}.

    Messages raised by our own validators (ValueError) are used verbatim,
    without pydantic's "Value error, " prefix. The first error per field wins.
    """
    errors: dict[str, str] = {}
    for err in exc.errors():
        field = ".".join(str(p) for p in err.get("loc", ())) or "__root__"
        ctx_error = (err.get("ctx") or {}).get("error")
        message = str(ctx_error) if isinstance(ctx_error, ValueError) else err["msg"]
        errors.setdefault(field, message)
    return errors


def validate_or_400(model: type[ModelT], data: dict) -> ModelT:
    """
    Validate `data` against `model`, raising HTTP 400 with field errors.

    Response detail:
        {"message": "<first error>", "errors": {"field": "message", ...}}
    """
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        errors = field_errors(exc)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"message": next(iter(errors.values())), "errors": errors},
        )
