"""
GraphQL over HTTP.

    POST {path}   JSON body {"query", "variables"?, "operationName"?}
    GET  {path}?query=...&variables=<json>&operationName=...   (queries only)

Malformed HTTP payloads are rejected with a 400 problem+json. Syntax and
validation errors come back in the GraphQL envelope with status 400;
execution (field) errors come back with status 200 next to ``data``.
"""

from __future__ import annotations

import inspect
import json
from typing import Any, Dict, Optional

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from graphql import (ExecutionResult, GraphQLError, GraphQLSchema,
                     OperationType, execute, get_operation_ast, parse,
                     validate)
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..errors import BadRequest
from ..logging import get_logger

log = get_logger(__name__)


def _envelope(errors) -> Dict[str, Any]:
    return {"errors": [e.formatted for e in errors]}


def _coerce_variables(raw: Any) -> Optional[Dict[str, Any]]:
    if raw is None or raw == "":
        return None
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except ValueError as e:
            raise BadRequest("variables must be a JSON object", details={"cause": str(e)}) from e
    if not isinstance(raw, dict):
        raise BadRequest("variables must be a JSON object")
    return raw


def _params(payload: Any) -> Dict[str, Any]:
    if not isinstance(payload, dict):
        raise BadRequest("GraphQL request body must be a JSON object")
    query = payload.get("query")
    if not isinstance(query, str) or not query.strip():
        raise BadRequest("GraphQL request must contain a non-empty 'query' string")
    op_name = payload.get("operationName")
    if op_name is not None and not isinstance(op_name, str):
        raise BadRequest("operationName must be a string")
    return {
        "query": query,
        "variables": _coerce_variables(payload.get("variables")),
        "operation_name": op_name or None,
    }


async def run_graphql(
    schema: GraphQLSchema,
    *,
    query: str,
    variables: Optional[Dict[str, Any]],
    operation_name: Optional[str],
    context: Dict[str, Any],
    allow_mutations: bool = True,
) -> JSONResponse:
    try:
        document = parse(query)
    except GraphQLError as e:
        return JSONResponse(_envelope([e]), status_code=400)

    errors = validate(schema, document)
    if errors:
        return JSONResponse(_envelope(errors), status_code=400)

    if not allow_mutations:
        op = get_operation_ast(document, operation_name)
        if op is not None and op.operation != OperationType.QUERY:
            raise StarletteHTTPException(
                405,
                detail=f"{op.operation.value} operations must be sent with POST",
                headers={"Allow": "POST"},
            )

    log.debug("graphql.execute", operation=operation_name)
    result = execute(
        schema,
        document,
        variable_values=variables,
        operation_name=operation_name,
        context_value=context,
    )
    if inspect.isawaitable(result):
        result = await result
    assert isinstance(result, ExecutionResult)

    if result.errors:
        log.info("graphql.errors", operation=operation_name, count=len(result.errors))
    return JSONResponse(result.formatted)


def _context(request: Request) -> Dict[str, Any]:
    state = request.app.state
    return {"request": request, "service": state.dry_run_service, "config": state.config}


def create_graphql_router(path: str = "/v1/graphql") -> APIRouter:
    router = APIRouter(tags=["graphql"])

    @router.post(path, response_model=None)
    async def graphql_post(request: Request) -> JSONResponse:
        try:
            payload = await request.json()
        except ValueError as e:
            raise BadRequest("request body is not valid JSON", details={"cause": str(e)}) from e
        params = _params(payload)
        return await run_graphql(request.app.state.schema, context=_context(request), **params)

    @router.get(path, response_model=None)
    async def graphql_get(request: Request) -> JSONResponse:
        params = _params(dict(request.query_params))
        return await run_graphql(
            request.app.state.schema,
            context=_context(request),
            allow_mutations=False,
            **params,
        )

    return router


__all__ = ["create_graphql_router", "run_graphql"]
