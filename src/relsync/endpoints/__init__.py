"""Concrete endpoint tables."""

from relsync.endpoints.http import RestEndpoints, rest_endpoints

__all__ = ["RestEndpoints", "rest_endpoints"]
