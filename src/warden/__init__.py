"""Warden - access control and request mediation core."""

__version__ = "0.1.0"
