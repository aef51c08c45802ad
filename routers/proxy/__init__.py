"""Music-service forwarding endpoint."""

# Import _endpoint as side effect to register /proxy routes on router
import routers.proxy._endpoint as _endpoint  # noqa: F401
from routers.proxy._streaming import router

__all__ = [
    "router",
]
