"""
asset_services -- request-level entrypoints over the asset kernel.

``LedgerGateway`` is what a transport layer (HTTP handler, CLI, job) calls.
It owns one transaction per request and turns typed kernel errors into
status-coded responses.
"""

from asset_services.gateway import HandlerResponse, LedgerGateway

__all__ = ["HandlerResponse", "LedgerGateway"]
