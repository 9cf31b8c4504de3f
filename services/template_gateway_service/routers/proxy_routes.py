"""Backend pass-through routes.

Forwards every ``/api`` and ``/api/*`` request to the configured backend.
"""

from dishka.integrations.fastapi import DishkaRoute, FromDishka
from fastapi import APIRouter, Request, Response

from services.template_gateway_service.protocols import BackendProxyProtocol, MetricsProtocol

router = APIRouter(route_class=DishkaRoute)

PROXY_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"]


@router.api_route(
    "/api",
    methods=PROXY_METHODS,
    summary="Backend Proxy",
    include_in_schema=False,
)
@router.api_route(
    "/api/{path:path}",
    methods=PROXY_METHODS,
    summary="Backend Proxy",
    description="Relay the request unchanged to the configured backend",
)
async def proxy_backend_request(
    request: Request,
    proxy: FromDishka[BackendProxyProtocol],
    metrics: FromDishka[MetricsProtocol],
) -> Response:
    endpoint = "/api/*"
    with metrics.http_request_duration_seconds.labels(
        method=request.method, endpoint=endpoint
    ).time():
        response = await proxy.proxy(request)
    metrics.http_requests_total.labels(
        method=request.method, endpoint=endpoint, http_status=str(response.status_code)
    ).inc()
    return response
