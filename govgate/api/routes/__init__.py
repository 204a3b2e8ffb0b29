"""API routers."""

from govgate.api.routes.governance import router as governance_router
from govgate.api.routes.health import router as health_router

__all__: list[str] = ["governance_router", "health_router"]
