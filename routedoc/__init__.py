"""Generate OpenAPI documents from live route tables by static handler analysis."""

from .assembler import DocumentBuilder, build_document
from .models import DeclaredHandler, EntitySchema, HandlerAnalysis, Mount, Route, RouteEntry

__all__ = [
    "DeclaredHandler",
    "DocumentBuilder",
    "EntitySchema",
    "HandlerAnalysis",
    "Mount",
    "Route",
    "RouteEntry",
    "build_document",
]
