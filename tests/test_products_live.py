# tests/test_products_live.py
# Checks against a running instance (CATALOG_BASE_URL). Skipped otherwise.
import os

import requests


def test_live_health_ok(base_url: str):
    r = requests.get(f"{base_url}/health", timeout=10)
    assert r.status_code == 200, r.text


def test_live_openapi_exposes_products_route(base_url: str):
    r = requests.get(f"{base_url}/openapi.json", timeout=10)
    assert r.status_code == 200, r.text
    paths = r.json().get("paths", {})
    assert "/v1/products" in paths, f"available paths: {sorted(paths)}"


def test_live_create_then_soft_delete(base_url: str):
    headers = {}
    token = os.getenv("CATALOG_WRITER_TOKEN", "").strip()
    if token:
        headers["Authorization"] = f"Bearer {token}"

    r = requests.post(
        f"{base_url}/v1/products",
        data={"name": "Live check", "price": "1"},
        headers=headers,
        timeout=10,
    )
    assert r.status_code == 201, r.text
    product_id = r.json()["data"]["id"]

    d = requests.delete(f"{base_url}/v1/products/{product_id}", headers=headers, timeout=10)
    assert d.status_code == 204, d.text

    listed = requests.get(f"{base_url}/v1/products", headers=headers, timeout=10)
    assert product_id not in [p["id"] for p in listed.json()]
