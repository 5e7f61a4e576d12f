from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

logger = logging.getLogger(__name__)

MAX_PRODUCTS = 5
BROWSER_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
    ),
    "Accept": "application/json",
    "Accept-Language": "ko-KR,ko;q=0.9,en;q=0.8",
    "Referer": "https://www.kurly.com/",
    "Origin": "https://www.kurly.com",
}


def _as_str(value: object) -> str | None:
    if value is None:
        return None
    return str(value)


def _first_section_items(payload: object) -> list:
    if not isinstance(payload, dict):
        return []
    data = payload.get("data")
    if not isinstance(data, dict):
        return []
    sections = data.get("listSections")
    if not isinstance(sections, list) or not sections:
        return []
    first = sections[0]
    if not isinstance(first, dict) or not isinstance(first.get("data"), dict):
        return []
    items = first["data"].get("items")
    return items if isinstance(items, list) else []


def shape_products(payload: object, limit: int = MAX_PRODUCTS) -> list[dict[str, Any]]:
    """Reshape a search response into ``{id, name, price, imageUrl}`` items."""
    products = []
    for item in _first_section_items(payload)[:limit]:
        if not isinstance(item, dict):
            continue
        price = item.get("discountedPrice") or item.get("salesPrice")
        products.append(
            {
                "id": _as_str(item.get("no")),
                "name": item.get("name"),
                "price": _as_str(price),
                "imageUrl": item.get("listImageUrl"),
            }
        )
    return products


class GroceryClient:
    def __init__(
        self,
        search_url: str,
        timeout: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.search_url = search_url
        self.timeout = timeout
        self._transport = transport

    def search(self, keyword: str | None) -> list[dict[str, Any]]:
        """
        Top products for ``keyword``. Upstream failures yield an empty list.
        """
        if not keyword:
            return []

        params = {"keyword": keyword, "page": 1, "sortType": 4}
        try:
            with httpx.Client(
                timeout=self.timeout,
                follow_redirects=True,
                transport=self._transport,
            ) as client:
                response = client.get(self.search_url, params=params, headers=BROWSER_HEADERS)
        except httpx.HTTPError as error:
            logger.error("grocery.request_fail keyword=%s error=%s", keyword, error)
            return []

        if not response.is_success:
            logger.error("grocery.bad_status keyword=%s status=%s", keyword, response.status_code)
            return []

        try:
            payload = response.json()
        except ValueError as error:
            logger.error("grocery.invalid_json keyword=%s error=%s", keyword, error)
            return []

        return shape_products(payload)
