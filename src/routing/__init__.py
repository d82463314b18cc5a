"""
Routing: Guard

Garde de navigation (autoriser / login / page par défaut), correspondance
chemin → module, table des routes et menu filtré.
"""

from .route_guard import (
    GuardDecision,
    GuardOutcome,
    RouteGuard,
    RouteModuleMap,
    RouteRequirement,
    normalize_path,
)
from .navigation import NavGroup, NavItem, NavigationMenu, Navigator, RouteTable

__all__ = [
    "GuardDecision",
    "GuardOutcome",
    "RouteGuard",
    "RouteModuleMap",
    "RouteRequirement",
    "RouteTable",
    "Navigator",
    "NavigationMenu",
    "NavGroup",
    "NavItem",
    "normalize_path",
]
