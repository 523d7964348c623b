"""
HTTP adaptor.

Exposes every registered resource under ``/{resource}`` and
``/{resource}/{id}``, maps engine errors onto status codes, and commits the
store's transaction after a successful mutation.
"""

import logging
import re
from collections.abc import Callable
from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, Request
from fastapi.responses import JSONResponse, Response

from rowgate.contracts.errors import ErrorKind, Result, RowgateError, ValidationFailed
from rowgate.engine import Engine
from rowgate.registry import ResourceRegistry
from rowgate.resources import ResourceSpec
from rowgate.serialization import to_jsonable

logger = logging.getLogger(__name__)

_NESTED_FILTER = re.compile(r"^filter\[(\w+)\]$")

STATUS_BY_KIND = {
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.UNAUTHORIZED: 401,
    ErrorKind.VALIDATION_FAILED: 422,
}


def query_params_to_dict(request: Request) -> dict[str, Any]:
    """
    Collect query params for the engine.

    Repeated keys become lists (``age=gt:18&age=lt:65``) and
    ``filter[field]=value`` keys are gathered under ``filter``.
    """
    params: dict[str, Any] = {}
    for key, value in request.query_params.multi_items():
        nested = _NESTED_FILTER.match(key)
        target = params.setdefault("filter", {}) if nested else params
        key = nested.group(1) if nested else key

        if key not in target:
            target[key] = value
        elif isinstance(target[key], list):
            target[key].append(value)
        else:
            target[key] = [target[key], value]
    return params


def error_response(error: RowgateError | None) -> Response:
    status = STATUS_BY_KIND.get(error.kind, 400) if error is not None else 400
    if isinstance(error, ValidationFailed):
        return JSONResponse(status_code=status, content={"errors": error.errors})
    message = error.message if error is not None else "Bad request"
    return JSONResponse(status_code=status, content={"error": message})


def build_router(
    registry: ResourceRegistry,
    engine: Engine,
    get_store: Callable[..., Any],
    get_actor: Callable[..., Any],
) -> APIRouter:
    """
    Build the CRUD router.

    Args:
        registry: Resources to expose
        engine: Engine executing the operations
        get_store: FastAPI dependency yielding a store (see ``rowgate.db.get_store``)
        get_actor: FastAPI dependency returning the caller's actor

    Returns:
        APIRouter to include in an application
    """
    router = APIRouter()

    def resolve(resource: str) -> ResourceSpec:
        spec = registry.fetch(resource)
        if spec is None:
            raise HTTPException(status_code=404, detail="Unknown resource")
        return spec

    def respond(result: Result, status_code: int = 200) -> Response:
        if not result.ok:
            return error_response(result.error)
        return JSONResponse(status_code=status_code, content=to_jsonable(result.value))

    def mutated(store, spec: ResourceSpec, result: Result, status_code: int) -> Response:
        if not result.ok:
            logger.info(
                f"{spec.name} mutation rejected: {result.error.kind}",
                extra={"resource": spec.name, "error": str(result.error.kind)},
            )
            store.rollback()
            return error_response(result.error)
        # Serialized first: committing expires the record's loaded state.
        content = to_jsonable(result.value)
        store.commit()
        if status_code == 204:
            return Response(status_code=204)
        return JSONResponse(status_code=status_code, content=content)

    @router.get("/{resource}")
    def list_resource(
        resource: str,
        request: Request,
        store=Depends(get_store),
        actor=Depends(get_actor),
    ):
        spec = resolve(resource)
        return respond(engine.list(store, spec, actor, query_params_to_dict(request)))

    @router.post("/{resource}")
    def create_resource(
        resource: str,
        request: Request,
        attrs: dict[str, Any] | None = Body(default=None),
        store=Depends(get_store),
        actor=Depends(get_actor),
    ):
        spec = resolve(resource)
        result = engine.create(store, spec, actor, attrs or {}, query_params_to_dict(request))
        return mutated(store, spec, result, 201)

    @router.get("/{resource}/{id}")
    def get_resource(
        resource: str,
        id: str,
        request: Request,
        store=Depends(get_store),
        actor=Depends(get_actor),
    ):
        spec = resolve(resource)
        return respond(engine.get(store, spec, actor, id, query_params_to_dict(request)))

    @router.api_route("/{resource}/{id}", methods=["PATCH", "PUT"])
    def update_resource(
        resource: str,
        id: str,
        request: Request,
        attrs: dict[str, Any] | None = Body(default=None),
        store=Depends(get_store),
        actor=Depends(get_actor),
    ):
        spec = resolve(resource)
        result = engine.update(store, spec, actor, id, attrs or {}, query_params_to_dict(request))
        return mutated(store, spec, result, 200)

    @router.delete("/{resource}/{id}")
    def delete_resource(
        resource: str,
        id: str,
        request: Request,
        store=Depends(get_store),
        actor=Depends(get_actor),
    ):
        spec = resolve(resource)
        result = engine.delete(store, spec, actor, id, query_params_to_dict(request))
        return mutated(store, spec, result, 204)

    return router
