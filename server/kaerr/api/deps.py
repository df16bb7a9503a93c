"""Common FastAPI dependencies for routers."""

from __future__ import annotations

from fastapi import Depends, Header, Request

from kaerr.api.context import AppContext


def get_context(request: Request) -> AppContext:
    return request.app.state.context  # type: ignore[attr-defined]


def provide_context(context: AppContext = Depends(get_context)) -> AppContext:
    return context


def require_api_key(
    x_api_key: str | None = Header(default=None),
    context: AppContext = Depends(get_context),
) -> str | None:
    context.api_keys.enforce(x_api_key)
    return x_api_key


def limit_scoring(
    request: Request,
    x_api_key: str | None = Depends(require_api_key),
    context: AppContext = Depends(get_context),
) -> None:
    """Rate limit scoring calls per API key, or per client host without one."""

    client_key = x_api_key or (request.client.host if request.client else "anonymous")
    context.rate_limiter.check(client_key)
