from __future__ import annotations

from typing import Any

from fastapi import Request

from product_catalog.services import ProductCatalog


def get_catalog(request: Request) -> ProductCatalog:
    # Built once by the application lifespan around the shared store handle.
    return request.app.state.catalog


async def form_payload(request: Request) -> dict[str, Any]:
    """Raw form fields, untyped. Repeated keys keep their last value."""
    form = await request.form()
    return {key: value for key, value in form.items() if isinstance(value, str)}
