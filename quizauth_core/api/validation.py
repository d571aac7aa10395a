"""Request body validation decorator.

@validate_request parses the JSON (or form) body into the Pydantic model
annotated on the view's body parameter. Parameters that Flask supplies from
the URL (request.view_args) are passed through unchanged.

Example:
```python
@auth_bp.post("/login")
@validate_request
def login(data: LoginRequest):
    ...
```
"""

import inspect
from functools import wraps

from flask import request
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from ..exceptions import ValidationError

# Body keys whose values are never echoed back
_SECRET_KEYS = ("password", "token")


def _format_errors(error: PydanticValidationError) -> list[dict]:
    """Flatten Pydantic errors to {field, message, expected_type} dicts."""
    return [
        {
            "field": ".".join(str(part) for part in err["loc"]),
            "message": err["msg"],
            "expected_type": err["type"],
        }
        for err in error.errors()
    ]


def _redact(body):
    """Mask secrets before echoing a body back in error details."""
    if not isinstance(body, dict):
        return body
    return {
        key: "***" if any(word in key.lower() for word in _SECRET_KEYS) else value
        for key, value in body.items()
    }


def _request_body() -> dict:
    body = request.get_json(silent=True)
    if body is None and request.form:
        body = request.form.to_dict()
    return body if body is not None else {}


def validate_request(f):
    """
    Validate the request body against the view's annotated Pydantic model.

    Raises:
        TypeError: At decoration time if the view has no parameters or its
            first parameter has no annotation; at request time if a body
            parameter is not annotated with a BaseModel subclass
        ValidationError: If the body does not match the model
    """
    signature = inspect.signature(f)
    params = list(signature.parameters.values())

    if not params:
        raise TypeError(f"{f.__name__} has no parameters to validate")
    if params[0].annotation is inspect.Parameter.empty:
        raise TypeError(f"First parameter of {f.__name__} lacks a type annotation")

    @wraps(f)
    def wrapper(*args, **kwargs):
        view_args = request.view_args or {}

        for param in params:
            if param.name in view_args or param.name in kwargs:
                continue

            model = param.annotation
            if not (inspect.isclass(model) and issubclass(model, BaseModel)):
                raise TypeError(
                    f"Body parameter '{param.name}' of {f.__name__} must be "
                    f"annotated with a Pydantic BaseModel subclass"
                )

            body = _request_body()
            if not isinstance(body, dict):
                raise ValidationError(
                    "Request body must be a JSON object",
                    {"model": model.__name__, "received": _redact(body)}
                )

            try:
                kwargs[param.name] = model.model_validate(body)
            except PydanticValidationError as e:
                raise ValidationError(
                    "Invalid request data",
                    {
                        "model": model.__name__,
                        "received": _redact(body),
                        "errors": _format_errors(e),
                    }
                )

        return f(*args, **kwargs)

    return wrapper
