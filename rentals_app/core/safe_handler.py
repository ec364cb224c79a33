import logging
from functools import wraps

from fastapi import HTTPException, Request

from .friendly_msg import get_friendly_message

logger = logging.getLogger(__name__)


def _find_request(args, kwargs) -> Request | None:
    for arg in list(args) + list(kwargs.values()):
        if isinstance(arg, Request):
            return arg
    return None


def _caller_id(args, kwargs) -> str:
    # cbv routes keep the user either as a parameter or on the view instance
    user = kwargs.get("current_user")
    if user is None:
        view = kwargs.get("self") or (args[0] if args else None)
        user = getattr(view, "current_user", None)
    return str(getattr(user, "id", None) or "anonymous")


def _context(request: Request | None, caller: str, func) -> str:
    if request is None:
        return f"{func.__name__} | User={caller}"
    client_ip = request.client.host if request.client else "unknown"
    trace_id = request.headers.get("X-Request-ID", "none")
    return (
        f"TraceID={trace_id} | {request.method} {request.url.path} | "
        f"User={caller} | Client={client_ip}"
    )


def safe_handler(func):
    @wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            return await func(*args, **kwargs)
        except HTTPException as e:
            context = _context(
                _find_request(args, kwargs), _caller_id(args, kwargs), func
            )
            logger.warning(f"[HTTPException] {context} | {e.status_code}: {e.detail}")
            raise
        except Exception as e:
            context = _context(
                _find_request(args, kwargs), _caller_id(args, kwargs), func
            )
            logger.error(
                f"[Unhandled Error] {context} | in {func.__name__} | Error: {e}",
                exc_info=True,
            )
            raise HTTPException(status_code=500, detail=get_friendly_message(e))

    return wrapper
