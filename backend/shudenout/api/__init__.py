from fastapi import Depends
from starlette.requests import Request

from shudenout.core.config import Settings, settings as default_settings
from shudenout.core.guardrail import Guardrail
from shudenout.storage.breaker_registry import BreakerRegistry
from shudenout.tools.hotel_rakuten import RakutenTravelTool
from shudenout.tools.hotel_tool import HotelTool


def get_app_settings(request: Request) -> Settings:
    return getattr(request.app.state, "settings", None) or default_settings


def get_breaker_registry(request: Request) -> BreakerRegistry:
    # /hotels-search must answer with an envelope even on a half-built app
    registry = getattr(request.app.state, "breaker_registry", None)
    if registry is None:
        registry = BreakerRegistry()
        request.app.state.breaker_registry = registry
    return registry


def get_guardrail(
    request: Request, registry: BreakerRegistry = Depends(get_breaker_registry)
) -> Guardrail:
    guardrail = getattr(request.app.state, "guardrail", None)
    if guardrail is None:
        guardrail = Guardrail(registry=registry)
        request.app.state.guardrail = guardrail
    return guardrail


def get_hotel_tool(
    settings: Settings = Depends(get_app_settings),
    guardrail: Guardrail = Depends(get_guardrail),
) -> HotelTool:
    return RakutenTravelTool(settings=settings, guardrail=guardrail)
