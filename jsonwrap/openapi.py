"""
FastAPI / OpenAPI bridge for foreign types.

Routes returning foreign values declare their response schema through a
ForeignOpenAPI instance, which registers the wrapped type in its own
SchemaRegistry. install() then merges the registry into the application's
``components.schemas`` when the OpenAPI document is first generated.

Two optional representations are supported:
- ``Foreign[Optional[T]]``: the wrapper's own provider marks the schema
  nullable (OptionalForeignSchema)
- ``Optional[Foreign[T]]``: the framework-level optional; the reference is
  kept as is and the value is only marked as not required (FrameworkOptional)

request_body() publishes a provider's ``is_required`` as ``requestBody.required``.

Invariants:
    - The registry is owned by the ForeignOpenAPI instance, never global
    - The OpenAPI document is generated once and cached on the app
    - The registry is frozen once its fragments are published

How to change safely:
    - Declare every route before the first request for /openapi.json
    - Use a separate ForeignOpenAPI per application
"""

from __future__ import annotations

import logging
from typing import Any, Callable, ClassVar, Dict

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from .config import ConflictPolicy, SchemaConfig
from .errors import ConflictingRegistrationError
from .foreign import Foreign, SchemaProvider
from .reflection.tracer import optional_inner
from .schema.registry import SchemaRegistry
from .schema.types import SchemaRef

logger = logging.getLogger(__name__)


class FrameworkOptional(SchemaProvider):
    """Provider for ``Optional[Foreign[T]]``: absence tracked outside the wrapper.

    The schema is the plain reference to T; nullability is not marked on it.
    """

    is_required: ClassVar[bool] = False

    def __init__(self, inner: SchemaProvider) -> None:
        self.inner = inner

    def name(self) -> str:
        return self.inner.name()

    def schema_ref(self) -> SchemaRef:
        return self.inner.schema_ref()

    def register(self, registry: SchemaRegistry) -> None:
        self.inner.register(registry)

    def to_json(self, value: Any) -> Any:
        if value is None:
            return None
        return self.inner.to_json(value)


def _is_foreign(annotation: Any) -> bool:
    return isinstance(annotation, type) and issubclass(annotation, Foreign)


def provider_for(annotation: Any) -> SchemaProvider:
    """Get the schema provider for a route annotation.

    Args:
        annotation: ``Foreign[...]`` or ``Optional[Foreign[...]]``

    Returns:
        The wrapper's own provider, or FrameworkOptional around it

    Raises:
        TypeError: If the annotation is not a (possibly optional) Foreign type
    """
    if _is_foreign(annotation):
        return annotation.provider()
    inner = optional_inner(annotation)
    if inner is not None and _is_foreign(inner):
        return FrameworkOptional(inner.provider())
    raise TypeError(f"No schema provider for {annotation!r}; wrap the type in Foreign[...]")


class ForeignOpenAPI:
    """Publishes foreign-type schemas in a FastAPI application's document.

    Example:
        >>> docs = ForeignOpenAPI()
        >>> @app.get("/hello", response_model=None, responses=docs.responses(Foreign[ForeignType]))
        ... def hello() -> JSONResponse:
        ...     return docs.json_response(Foreign[ForeignType], ForeignType(text="hello"))
        >>> docs.install(app)
    """

    def __init__(
        self,
        registry: SchemaRegistry | None = None,
        config: SchemaConfig | None = None,
    ) -> None:
        self.registry = registry if registry is not None else SchemaRegistry(config)

    def schema(self, annotation: Any) -> dict[str, Any]:
        """Register an annotation's type and get its wire fragment.

        Raises:
            TypeError: See provider_for()
            RegistryError: If the type's fragment cannot be bound
        """
        provider = provider_for(annotation)
        provider.register(self.registry)
        return provider.schema_ref().to_dict(self.registry.config.ref_prefix)

    def responses(
        self,
        annotation: Any,
        status_code: int = 200,
        description: str = "Successful Response",
    ) -> Dict[int | str, Dict[str, Any]]:
        """Build the ``responses`` argument of a route decorator.

        Args:
            annotation: ``Foreign[...]`` or ``Optional[Foreign[...]]``
            status_code: Response status code to document
            description: Response description

        Returns:
            OpenAPI response objects keyed by status code
        """
        return {
            status_code: {
                "description": description,
                "content": {"application/json": {"schema": self.schema(annotation)}},
            }
        }

    def request_body(
        self,
        annotation: Any,
        description: str | None = None,
    ) -> Dict[str, Any]:
        """Build the ``openapi_extra`` argument documenting a foreign request body.

        ``required`` comes from the provider: false for both optional shapes.

        Args:
            annotation: ``Foreign[...]`` or ``Optional[Foreign[...]]``
            description: Request body description

        Returns:
            Operation fragment with a ``requestBody`` object
        """
        provider = provider_for(annotation)
        body: Dict[str, Any] = {
            "required": provider.is_required,
            "content": {"application/json": {"schema": self.schema(annotation)}},
        }
        if description is not None:
            body["description"] = description
        return {"requestBody": body}

    def json_response(self, annotation: Any, value: Any, status_code: int = 200) -> JSONResponse:
        """Encode a value for a route and wrap it in a JSONResponse.

        Args:
            annotation: ``Foreign[...]`` or ``Optional[Foreign[...]]``
            value: Foreign instance, raw payload, or None
            status_code: Response status code

        Raises:
            SerializationError: If the value cannot be encoded
        """
        provider = provider_for(annotation)
        payload = value.value if isinstance(value, Foreign) else value
        return JSONResponse(content=provider.to_json(payload), status_code=status_code)

    def install(self, app: FastAPI) -> None:
        """Merge registry fragments into the app's OpenAPI document.

        Replaces ``app.openapi`` with a wrapper that generates the base
        document once, adds the registry's schemas to
        ``components.schemas`` and freezes the registry.

        Raises:
            ConflictingRegistrationError: (at generation time) if the app
                already publishes a different schema under a registered name
        """
        base_openapi: Callable[[], Dict[str, Any]] = app.openapi

        def openapi() -> Dict[str, Any]:
            if app.openapi_schema is not None:
                return app.openapi_schema

            document = base_openapi()
            components = document.setdefault("components", {})
            schemas = components.setdefault("schemas", {})
            for name, fragment in self.registry.to_dict().items():
                existing = schemas.get(name)
                if existing is not None and existing != fragment:
                    if self.registry.config.on_conflict is ConflictPolicy.IGNORE:
                        logger.warning(f"Keeping the application's own schema for '{name}'")
                        continue
                    raise ConflictingRegistrationError(name, existing=existing, new=fragment)
                schemas[name] = fragment

            if not self.registry.frozen:
                self.registry.freeze()
            logger.info(f"Published {len(self.registry)} foreign schemas in the OpenAPI document")

            app.openapi_schema = document
            return document

        app.openapi = openapi  # type: ignore[method-assign]
