"""Request-scoped access to the runtime built by the lifespan."""

from fastapi import Request

from formulary.runtime import Runtime


def get_runtime(request: Request) -> Runtime:
    return request.app.state.runtime
