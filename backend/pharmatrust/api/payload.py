"""
Request bodies arrive either as JSON or as multipart forms carrying one image.

Form values that look like JSON objects or arrays (``items``, ``address``)
are decoded so both encodings validate against the same schema.
"""
import json
from typing import Optional, Tuple, Type, TypeVar

from fastapi import Request
from pydantic import BaseModel, ValidationError
from starlette.datastructures import UploadFile

from pharmatrust.api.response import describe_validation_errors
from pharmatrust.core.exceptions import BusinessError

M = TypeVar("M", bound=BaseModel)

FORM_TYPES = ("multipart/form-data", "application/x-www-form-urlencoded")


def _decode_form_value(value: str):
    stripped = value.strip()
    if stripped[:1] in ("{", "["):
        try:
            return json.loads(stripped)
        except ValueError:
            # left as text; schema validation reports it against the field
            return value
    return value


async def read_payload(request: Request, file_field: Optional[str] = None) -> Tuple[dict, Optional[UploadFile]]:
    """Return (fields, upload). ``upload`` is only accepted under ``file_field``."""
    content_type = request.headers.get("content-type", "")

    if not content_type.startswith(FORM_TYPES):
        raw = await request.body()
        if not raw:
            return {}, None
        try:
            data = json.loads(raw)
        except ValueError:
            raise BusinessError.bad_request("Request body is not valid JSON")
        if not isinstance(data, dict):
            raise BusinessError.bad_request("Request body must be a JSON object")
        return data, None

    form = await request.form()
    fields = {}
    upload = None
    for key, value in form.multi_items():
        if isinstance(value, UploadFile):
            if not value.filename:
                continue
            if key != file_field:
                raise BusinessError.bad_request(
                    "Unexpected field name. Please check the field name and try again."
                )
            if upload is not None:
                raise BusinessError.bad_request("Too many files. Only 1 file is allowed per request.")
            upload = value
            continue
        if value == "":
            continue
        fields[key] = _decode_form_value(value)
    return fields, upload


def parse_model(model: Type[M], data: dict) -> M:
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        errors = describe_validation_errors(exc.errors())
        raise BusinessError.bad_request("Validation error: " + "; ".join(errors), errors=errors)


def payload_with_file(file_field: str):
    """
    Dependency factory for routes taking a body plus one optional image.

    Usage:
        form = Depends(payload_with_file("medicineImage"))
        data, upload = form
    """
    async def dependency(request: Request) -> Tuple[dict, Optional[UploadFile]]:
        return await read_payload(request, file_field)

    return dependency
