"""
Route access rules, loaded from ``config/security_config.yaml``.

Each route maps HTTP methods to an *access level*:

* ``public`` - no token needed;
* ``authenticated`` - any caller with an active profile;
* a capability name (``can_edit_employee``, ...) - the caller's permission
  set must grant it.

Paths may contain ``{param}`` templates. A literal path always beats a
template; among templates the one with more literal segments wins.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator

from hrdesk.security.permissions import CAPABILITIES

PUBLIC = "public"
AUTHENTICATED = "authenticated"

_ACCESS_LEVELS = frozenset(CAPABILITIES) | {"can_manage_organization", PUBLIC, AUTHENTICATED}


def _check_access(value: str) -> str:
    if value not in _ACCESS_LEVELS:
        raise ValueError(f"Unknown capability: {value}")
    return value


class AuthConfig(BaseModel):
    provider: str = "hosted"
    authorization_header: str = "Authorization"
    bearer_prefix: str = "Bearer"


class SecurityConfigModel(BaseModel):
    auth: AuthConfig = Field(default_factory=AuthConfig)
    default_access: str = AUTHENTICATED
    routes: dict[str, dict[str, str]] = Field(default_factory=dict)

    @field_validator("default_access")
    @classmethod
    def known_default(cls, value: str) -> str:
        return _check_access(value)

    @field_validator("routes")
    @classmethod
    def known_route_access(cls, value: dict[str, dict[str, str]]) -> dict[str, dict[str, str]]:
        normalized: dict[str, dict[str, str]] = {}
        for path, methods in value.items():
            if not path.startswith("/"):
                raise ValueError(f"Route path must start with '/': {path}")
            normalized[path] = {method.upper(): _check_access(access) for method, access in methods.items()}
        return normalized


@dataclass(frozen=True)
class EffectiveRule:
    auth_required: bool
    required_capability: str | None

    @classmethod
    def from_access(cls, access: str) -> EffectiveRule:
        if access == PUBLIC:
            return cls(auth_required=False, required_capability=None)
        if access == AUTHENTICATED:
            return cls(auth_required=True, required_capability=None)
        return cls(auth_required=True, required_capability=access)


@dataclass(frozen=True)
class _TemplateRoute:
    regex: re.Pattern[str]
    literal_segments: int
    methods: dict[str, str]


def _compile_template(path: str, methods: dict[str, str]) -> _TemplateRoute:
    segments = path.strip("/").split("/")
    pattern = "/".join("[^/]+" if re.fullmatch(r"\{[^/]+\}", s) else re.escape(s) for s in segments)
    literal = sum(1 for s in segments if not s.startswith("{"))
    return _TemplateRoute(regex=re.compile(rf"^/{pattern}$"), literal_segments=literal, methods=methods)


class SecurityConfig:
    def __init__(self, model: SecurityConfigModel):
        self.model = model
        self._literal: dict[str, dict[str, str]] = {}
        templates: list[_TemplateRoute] = []
        for path, methods in model.routes.items():
            if "{" in path:
                templates.append(_compile_template(path, methods))
            else:
                self._literal[path.rstrip("/") or "/"] = methods
        self._templates = sorted(templates, key=lambda t: t.literal_segments, reverse=True)

    @property
    def auth(self) -> AuthConfig:
        return self.model.auth

    def match(self, path: str, method: str) -> EffectiveRule:
        method = method.upper()
        path = path.rstrip("/") or "/"

        methods = self._literal.get(path)
        if methods is not None and method in methods:
            return EffectiveRule.from_access(methods[method])

        for route in self._templates:
            if method in route.methods and route.regex.match(path):
                return EffectiveRule.from_access(route.methods[method])

        return EffectiveRule.from_access(self.model.default_access)


def load_security_config(path: Path) -> SecurityConfig:
    raw: dict[str, Any] = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    if "security" not in raw:
        raise ValueError(f"Missing top-level 'security' key in config: {path}")
    return SecurityConfig(SecurityConfigModel.model_validate(raw["security"]))
