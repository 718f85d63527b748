"""
Snippetbox — Form Decoder
===========================

What:  decode_post_form() reads a submitted form body into a pydantic model
       and wraps it in a Form that carries its own ValidationResult.
How:   Only fields the model declares are read (csrf_token and any other
       extras are ignored); the first submitted value of a field wins; blank
       values for non-string fields fall back to the model default so the
       handler's checks report them as ordinary field errors.

Error Mapping:
    Unparseable body / uncoercible value  → BadRequestError (400)
    Target is not a pydantic model class  → TypeError, never caught here;
                                            it is a programming error and
                                            ends in the recovery middleware
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Collection, Dict, Generic, Type, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from starlette.exceptions import HTTPException
from starlette.formparsers import MultiPartException
from starlette.requests import Request

from snippetbox.exceptions import BadRequestError
from snippetbox.forms.validator import ValidationResult

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


@dataclass
class Form(Generic[ModelT]):
    """
    A decoded submission: the typed value plus the errors found in it.

    The form owns its ValidationResult; handlers record failures through
    check_field() / add_non_field_error() and branch on `valid`.
    """

    data: ModelT
    result: ValidationResult = field(default_factory=ValidationResult)

    @property
    def valid(self) -> bool:
        return self.result.valid

    @property
    def field_errors(self) -> Dict[str, str]:
        return self.result.field_errors

    @property
    def non_field_errors(self):
        return self.result.non_field_errors

    def check_field(self, ok: bool, key: str, message: str) -> None:
        self.result.check_field(ok, key, message)

    def add_field_error(self, key: str, message: str) -> None:
        self.result.add_field_error(key, message)

    def add_non_field_error(self, message: str) -> None:
        self.result.add_non_field_error(message)

    def to_state(self, exclude: Collection[str] = ()) -> Dict[str, Any]:
        """Values (minus `exclude`) and errors, shaped for a page response."""
        return {
            "values": self.data.model_dump(exclude=set(exclude)),
            "field_errors": dict(self.result.field_errors),
            "non_field_errors": list(self.result.non_field_errors),
        }


async def decode_post_form(request: Request, model_cls: Type[ModelT]) -> Form[ModelT]:
    """
    Decode the request body into `model_cls`.

    Args:
        request:   Incoming request with a urlencoded or multipart body
        model_cls: pydantic model whose fields name the form fields

    Returns:
        Form wrapping the model instance and an empty ValidationResult.

    Raises:
        BadRequestError: Body cannot be parsed or a value has the wrong type
        TypeError:       `model_cls` is not a pydantic model class
    """
    if not (isinstance(model_cls, type) and issubclass(model_cls, BaseModel)):
        raise TypeError(
            f"decode_post_form() needs a pydantic model class, got {model_cls!r}"
        )

    try:
        submitted = await request.form()
    except (MultiPartException, HTTPException, UnicodeDecodeError) as e:
        logger.warning("Malformed form body on %s %s: %s", request.method, request.url.path, str(e))
        raise BadRequestError(context={"reason": type(e).__name__}) from e

    raw: Dict[str, Any] = {}
    for name, info in model_cls.model_fields.items():
        values = submitted.getlist(name)
        if not values:
            continue
        value = values[0]
        if value == "" and info.annotation is not str:
            continue
        raw[name] = value

    try:
        data = model_cls.model_validate(raw)
    except PydanticValidationError as e:
        first = e.errors()[0]
        field_name = ".".join(str(part) for part in first.get("loc", ()))
        logger.warning(
            "Undecodable form field '%s' on %s %s", field_name, request.method, request.url.path
        )
        raise BadRequestError(field=field_name or None) from e

    return Form(data=data)
