import logging
from collections.abc import Callable
from functools import wraps
from typing import Any
from uuid import uuid4

from fastapi import HTTPException
from fastapi import Request

from app.core.database import DatabaseError
from app.core.exceptions import ApiError
from app.core.exceptions import ServerError
from app.services.doc_builder import DocBuilderError

logger = logging.getLogger(__name__)


def handle_route_errors(message: str) -> Callable[[Callable], Callable]:
    """Decorator turning unexpected endpoint failures into ``ServerError(message)``.

    ``ApiError`` and ``HTTPException`` pass through untouched. When the endpoint
    declares a ``request: Request`` parameter, a request id is stored on
    ``request.state.request_id`` for log correlation.
    """

    def decorator(func: Callable) -> Callable:
        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            request_id = str(uuid4())
            request = kwargs.get("request")
            if isinstance(request, Request):
                request.state.request_id = request_id

            try:
                return await func(*args, **kwargs)
            except (ApiError, HTTPException):
                raise
            except DocBuilderError as e:
                logger.error("[%s] DocBuilderError in %s: %s", request_id, func.__name__, str(e), exc_info=True)
                raise ServerError(message, error=str(e)) from e
            except DatabaseError as e:
                # Query details were logged by the database layer
                logger.error("[%s] DatabaseError in %s: %s", request_id, func.__name__, str(e), exc_info=False)
                raise ServerError(message, error=str(e)) from e
            except Exception as e:
                logger.error("[%s] Unexpected error in %s: %s", request_id, func.__name__, str(e), exc_info=True)
                raise ServerError(message, error=str(e)) from e

        return wrapper

    return decorator
