"""API components - the gateway exposing treasury operations."""

from casino_treasury.api.gateway import CasinoGateway

__all__ = ["CasinoGateway"]
