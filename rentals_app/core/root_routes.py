from fastapi import APIRouter
from fastapi.routing import APIRoute


def alias_root_routes(router: APIRouter) -> APIRouter:
    """Serve each "/" route of a cbv router at the bare mount prefix too.

    ``cbv`` includes its routes with an empty prefix, so a route path of ""
    cannot be declared on the class. Call this after the class is built and
    mount the router with a non-empty prefix.
    """
    for route in list(router.routes):
        if not isinstance(route, APIRoute) or route.path != "/":
            continue
        router.add_api_route(
            "",
            route.endpoint,
            methods=list(route.methods),
            status_code=route.status_code,
            response_model=route.response_model,
            name=f"{route.name}_root",
            include_in_schema=False,
        )
    return router
