"""OpenAPI metadata and customization utilities.

Adds to the generated schema:
- Tags metadata
- An API Key security scheme (``X-API-Key``) applied to moderator-only
  operations (image deletion)
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI

_TAGS = [
    {
        "name": "Captcha",
        "description": "Issue image captchas for throttled write actions.",
    },
    {
        "name": "Images",
        "description": "Upload images and address their thumbnail variants.",
    },
    {
        "name": "Health",
        "description": "Liveness and readiness checks.",
    },
]


def apply_openapi_customizations(app: FastAPI) -> None:
    """Patch FastAPI's OpenAPI generation to add tags and the admin key scheme."""

    original_openapi = app.openapi

    def custom_openapi() -> Dict[str, Any]:
        schema = original_openapi()

        components = schema.setdefault("components", {})
        security_schemes = components.setdefault("securitySchemes", {})
        security_schemes.setdefault(
            "AdminApiKey",
            {
                "type": "apiKey",
                "in": "header",
                "name": "X-API-Key",
                "description": "Moderator API key (APP_ADMIN_API_KEYS).",
            },
        )

        tags = schema.setdefault("tags", [])
        existing_tag_names = {t.get("name") for t in tags}
        for tag in _TAGS:
            if tag["name"] not in existing_tag_names:
                tags.append(tag)

        for methods in schema.get("paths", {}).values():
            delete_op = methods.get("delete")
            if isinstance(delete_op, dict):
                delete_op["security"] = [{"AdminApiKey": []}]

        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]
