"""
Demo API routes.

Each endpoint returns a ForeignType in one of the wrapper shapes. The
``responses`` argument of every route is built by ForeignOpenAPI, which
registers the foreign type when the route is declared.

POST /echo documents its request body with ForeignOpenAPI.request_body, which
marks the body optional because ``Foreign[Optional[T]]`` accepts null.

Note: ``Optional[Foreign[T]]`` routes are documented with the plain
reference; the response is not marked nullable in the document. Use
``Foreign[Optional[T]]`` when clients must see nullability.
"""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import JSONResponse

from jsonwrap import Foreign, ForeignOpenAPI

from .models import ForeignType, WrappedForeign

logger = logging.getLogger(__name__)

Hello = Foreign[ForeignType]
Wrapped = Foreign[WrappedForeign]
ForeignOpt = Foreign[Optional[ForeignType]]
OptionalHello = Optional[Foreign[ForeignType]]


def create_router(docs: ForeignOpenAPI) -> APIRouter:
    """Create the demo router, documenting foreign responses through ``docs``."""
    router = APIRouter(tags=["Demo"])

    @router.get("/hello", response_model=None, responses=docs.responses(Hello))
    async def hello() -> JSONResponse:
        return docs.json_response(Hello, Hello(ForeignType(text="hello")))

    @router.get("/wrapped", response_model=None, responses=docs.responses(Wrapped))
    async def wrapped() -> JSONResponse:
        value = WrappedForeign(ForeignType(text="wrapped value"))
        return docs.json_response(Wrapped, Wrapped(value))

    @router.get("/optional", response_model=None, responses=docs.responses(OptionalHello))
    async def optional() -> JSONResponse:
        return docs.json_response(OptionalHello, Hello(ForeignType(text="optional value")))

    @router.get("/optional-none", response_model=None, responses=docs.responses(OptionalHello))
    async def optional_none() -> JSONResponse:
        return docs.json_response(OptionalHello, None)

    @router.get("/foreign-opt", response_model=None, responses=docs.responses(ForeignOpt))
    async def foreign_opt() -> JSONResponse:
        value = ForeignOpt(ForeignType(text="using Foreign[Optional[T]]"))
        return docs.json_response(ForeignOpt, value)

    @router.get("/foreign-opt-none", response_model=None, responses=docs.responses(ForeignOpt))
    async def foreign_opt_none() -> JSONResponse:
        return docs.json_response(ForeignOpt, ForeignOpt(None))

    @router.post(
        "/echo",
        response_model=None,
        openapi_extra=docs.request_body(ForeignOpt, description="Value to echo, or null"),
        responses=docs.responses(ForeignOpt),
    )
    async def echo(request: Request) -> JSONResponse:
        data = await request.json() if await request.body() else None
        if data is None:
            value = None
        elif isinstance(data, dict) and isinstance(data.get("text"), str):
            value = ForeignType(text=data["text"])
        else:
            raise HTTPException(
                status_code=422, detail="Expected an object with a 'text' string, or null"
            )
        return docs.json_response(ForeignOpt, ForeignOpt(value))

    logger.debug(f"Demo routes registered {len(docs.registry)} foreign schemas")
    return router
