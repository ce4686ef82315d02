from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from shudenout.api import routes_admin, routes_health, routes_hotels
from shudenout.core.config import Settings, settings as default_settings
from shudenout.core.guardrail import Guardrail
from shudenout.core.logging import configure_logging
from shudenout.storage.breaker_registry import BreakerRegistry


def create_app(
    settings: Optional[Settings] = None,
    guardrail: Optional[Guardrail] = None,
) -> FastAPI:
    settings = settings or default_settings
    configure_logging(settings.log_level)
    app = FastAPI(title=settings.app_name, version="0.1.0")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Breaker state is the only cross-request memory; one registry per app
    registry = guardrail.registry if guardrail else BreakerRegistry()

    app.include_router(routes_health.router, tags=["health"])
    app.include_router(routes_hotels.router, tags=["hotels"])
    app.include_router(routes_admin.router, prefix="/admin", tags=["admin"])

    app.state.settings = settings
    app.state.breaker_registry = registry
    app.state.guardrail = guardrail or Guardrail(registry=registry)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
