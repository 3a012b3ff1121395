"""
Collector Module - Local collection server endpoints.
"""
from cyclersim.modules.collector.router import router
from cyclersim.modules.collector.service import CollectorService

__all__ = ["router", "CollectorService"]
