from __future__ import annotations

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from wage_engine.container import Container
from wage_engine.core.exceptions import AuthenticationError
from wage_engine.core.logging import bind_request_context
from wage_engine.core.security import Actor

bearer_scheme = HTTPBearer(auto_error=False)


def get_container(request: Request) -> Container:
    return request.app.state.container


def get_actor(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    container: Container = Depends(get_container),
) -> Actor:
    if credentials is None:
        raise AuthenticationError("Missing bearer token")
    actor = container.users.actor_for_token(credentials.credentials)
    bind_request_context(actor=actor.identity, role=actor.role)
    return actor
