from titletrack.api.v1.routers import build_v1_router, router

__all__ = ["build_v1_router", "router"]
