from __future__ import annotations

from collections.abc import Callable

_CAPABILITIES_ATTR = "__hrdesk_required_capabilities__"


def require_capability(*capabilities: str) -> Callable:
    """
    Mark an endpoint as needing extra capabilities on top of its route rule.

    Nothing is checked here; `enforce_security` reads the mark after routing.
    Stacking the decorator accumulates capabilities.
    """

    def mark(fn: Callable) -> Callable:
        setattr(fn, _CAPABILITIES_ATTR, required_capabilities(fn) | frozenset(capabilities))
        return fn

    return mark


def required_capabilities(endpoint: Callable | None) -> frozenset[str]:
    if endpoint is None:
        return frozenset()
    return getattr(endpoint, _CAPABILITIES_ATTR, frozenset())
