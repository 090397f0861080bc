"""Router with automatic body parsing, form normalization, validation and response handling."""

import inspect
from collections.abc import Callable
from functools import wraps
from typing import Any

import orjson
from pydantic import BaseModel, ValidationError
from robyn import Request, Response, SubRouter, status_codes
from robyn.robyn import HttpMethod
from robyn.types import Body

from formschema.core.forms import decode_request_form
from formschema.core.logger import LogIcon, logger
from formschema.core.settings import settings as st
from formschema.models.core import BodyType, ContentType
from formschema.normalizer.brackets import normalize
from formschema.schema.node import model_schema

# Endpoint path -> body model, for OpenAPI form content patching
FORM_ENDPOINTS: dict[str, type[BaseModel]] = {}


def parse_endpoint_signature(sig: inspect.Signature) -> dict[str, tuple[BodyType, type | None]]:
    """Parse function signature for body parameters."""
    parsed: dict[str, tuple[BodyType, type | None]] = {}

    for name, param in sig.parameters.items():
        annotation = param.annotation

        match annotation:
            case type() if issubclass(annotation, BaseModel):
                parsed[name] = (BodyType.PYDANTIC, type(annotation.__name__, (annotation, Body), {}))
            case type() if issubclass(annotation, Body):
                parsed[name] = (BodyType.JSONABLE, annotation)
            case type() if annotation is dict:
                parsed[name] = (BodyType.JSONABLE, None)
            case _ if name == "body":
                parsed[name] = (BodyType.JSONABLE, None)

    return parsed


def unprocessable(description: str) -> Response:
    return Response(
        status_code=status_codes.HTTP_422_UNPROCESSABLE_ENTITY,
        headers={"content-type": "application/json"},
        description=description,
    )


def parse_request_body(
    body_config: dict[str, tuple[BodyType, type | None]],
    kwargs: dict[str, Any],
) -> Response | None:
    """Parse JSON/Pydantic body parameters."""
    for param_name, (body_type, model_cls) in body_config.items():
        if param_name not in kwargs:
            continue
        raw = kwargs[param_name]
        if not isinstance(raw, (str, bytes)):
            continue

        match body_type:
            case BodyType.PYDANTIC if model_cls:
                try:
                    kwargs[param_name] = model_cls.model_validate_json(raw)  # type: ignore[union-attr]
                except ValidationError as ex:
                    return unprocessable(ex.json())
            case BodyType.JSONABLE:
                try:
                    kwargs[param_name] = orjson.loads(raw)
                except orjson.JSONDecodeError as ex:
                    return unprocessable(orjson.dumps({"error": "invalid_json", "detail": str(ex)}).decode())
            case BodyType.RAW:
                pass
    return None


def parse_request_form(
    body_config: dict[str, tuple[BodyType, type | None]],
    request: Request,
    content_type: ContentType,
    kwargs: dict[str, Any],
) -> Response | None:
    """Decode a form body, map bracket-less keys to the model's schema names and validate."""
    if not body_config:
        return None

    fields = decode_request_form(request, content_type)

    for param_name, (body_type, model_cls) in body_config.items():
        match body_type:
            case BodyType.PYDANTIC if model_cls:
                body = fields
                if st.FORM_NORMALIZATION:
                    schema = model_schema(model_cls).root
                    body = normalize(fields, content_type, schema, max_depth=st.NORMALIZER_MAX_DEPTH)
                    logger.debug(
                        "Form body normalized",
                        icon=LogIcon.NORMALIZE,
                        model=model_cls.__name__,
                        content_type=str(content_type),
                        keys=sorted(map(str, body)),
                    )
                try:
                    kwargs[param_name] = model_cls.model_validate(body)  # type: ignore[union-attr]
                except ValidationError as ex:
                    logger.info("Form body rejected", icon=LogIcon.VALIDATION, errors=ex.error_count())
                    return unprocessable(ex.json())
            case BodyType.JSONABLE:
                kwargs[param_name] = fields
            case BodyType.RAW:
                pass
    return None


def parse_response(result: Any) -> Response:
    """Convert handler result to Response."""
    match result:
        case Response():
            return result
        case BaseModel():
            return Response(
                status_code=status_codes.HTTP_200_OK,
                headers={"content-type": "application/json"},
                description=result.model_dump_json(indent=4, by_alias=True),
            )
        case dict():
            return Response(
                status_code=status_codes.HTTP_200_OK,
                headers={"content-type": "application/json"},
                description=orjson.dumps(result).decode(),
            )
        case _:
            return Response(
                status_code=status_codes.HTTP_200_OK,
                headers={},
                description=str(result),
            )


HTTP_METHODS = (
    HttpMethod.GET,
    HttpMethod.POST,
    HttpMethod.PUT,
    HttpMethod.DELETE,
    HttpMethod.PATCH,
    HttpMethod.HEAD,
    HttpMethod.OPTIONS,
    HttpMethod.TRACE,
    HttpMethod.CONNECT,
)


def _register_form_endpoint(path: str, body_config: dict[str, tuple[BodyType, type | None]]) -> None:
    for body_type, model_cls in body_config.values():
        if body_type is BodyType.PYDANTIC and model_cls is not None:
            FORM_ENDPOINTS[path] = model_cls
            return


def _create_method_wrapper(original_method: Callable, router_prefix: str = "") -> Callable:
    @wraps(original_method)
    def method_wrapper(*args, **kwargs) -> Callable:
        endpoint = args[0] if args else kwargs.get("endpoint", "")
        decorator = original_method(*args, **kwargs)

        def handler_decorator(handler: Callable) -> Callable:
            sig = inspect.signature(handler)
            body_config = parse_endpoint_signature(sig)
            has_request_param = "request" in sig.parameters

            full_path = f"{router_prefix}{endpoint}".replace("//", "/")
            _register_form_endpoint(full_path, body_config)

            @wraps(handler)
            async def wrapped_handler(request: Request, **h_kwargs):
                content_type = ContentType.from_request(request)

                if content_type is not None and content_type.is_form:
                    if error := parse_request_form(body_config, request, content_type, h_kwargs):
                        return error
                elif error := parse_request_body(body_config, h_kwargs):
                    return error

                # Pass request to handler only if it declared it
                if has_request_param:
                    h_kwargs["request"] = request

                result = await handler(**h_kwargs)
                return parse_response(result)

            # Build signature: always include request for Robyn injection
            new_params = [inspect.Parameter("request", inspect.Parameter.POSITIONAL_OR_KEYWORD, annotation=Request)]
            for name, param in sig.parameters.items():
                if name == "request":
                    continue
                if name in body_config:
                    new_params.append(param.replace(annotation=body_config[name][1]))
                else:
                    new_params.append(param)

            wrapped_handler.__signature__ = sig.replace(parameters=new_params)  # type: ignore[attr-defined]
            return decorator(wrapped_handler)

        return handler_decorator

    return method_wrapper


class Router(SubRouter):
    """Enhanced SubRouter with automatic body parsing, form normalization and response handling."""

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._prefix = kwargs.get("prefix", "")
        self._wrap_methods()

    def _wrap_methods(self) -> None:
        """Wrap HTTP methods with parsing logic."""
        for method in HTTP_METHODS:
            method_name = str(method).split(".")[-1].lower()
            if hasattr(self, method_name):
                original_method = getattr(self, method_name)
                wrapped_method = _create_method_wrapper(original_method, self._prefix)
                setattr(self, method_name, wrapped_method)
