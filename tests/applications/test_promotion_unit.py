"""Unit tests for the HTTP promotion bridge.

Uses httpx.MockTransport so no network access is needed.
"""

import asyncio
import json
from typing import List

import httpx

from src.applications.promotion import (
    HttpPromotionBridge,
    NullPromotionBridge,
    PromotionBridge,
    PromotionMeta,
)


def run_async(coro):
    return asyncio.run(coro)


def _bridge(handler, token=None) -> HttpPromotionBridge:
    return HttpPromotionBridge(
        "https://journal.example.edu/",
        token=token,
        transport=httpx.MockTransport(handler),
    )


class TestHttpPromotionBridge:

    def test_posts_opportunity_to_research_endpoint(self):
        requests: List[httpx.Request] = []

        def handler(request):
            requests.append(request)
            return httpx.Response(201, json={"id": "pos-1"})

        async def scenario():
            async with _bridge(handler, token="secret-token") as bridge:
                await bridge.promote("opp-1", PromotionMeta("Soil Lab", "Dr. Ruiz"))

        run_async(scenario())

        assert len(requests) == 1
        request = requests[0]
        assert request.method == "POST"
        assert str(request.url) == "https://journal.example.edu/api/research"
        assert request.headers["Authorization"] == "Bearer secret-token"
        assert json.loads(request.content) == {
            "opportunityId": "opp-1",
            "title": "Soil Lab",
            "piName": "Dr. Ruiz",
        }

    def test_empty_title_falls_back(self):
        bodies = []

        def handler(request):
            bodies.append(json.loads(request.content))
            return httpx.Response(200)

        async def scenario():
            async with _bridge(handler) as bridge:
                await bridge.promote("opp-2", PromotionMeta(title=""))

        run_async(scenario())

        assert bodies[0]["title"] == "Research Position"
        assert bodies[0]["piName"] is None

    def test_error_status_is_logged_not_raised(self, caplog):
        def handler(request):
            return httpx.Response(500, json={"error": "boom"})

        async def scenario():
            async with _bridge(handler) as bridge:
                await bridge.promote("opp-3", PromotionMeta())

        run_async(scenario())

        assert "Failed to create research position" in caplog.text

    def test_transport_error_is_logged_not_raised(self, caplog):
        def handler(request):
            raise httpx.ConnectError("unreachable", request=request)

        async def scenario():
            async with _bridge(handler) as bridge:
                await bridge.promote("opp-4", PromotionMeta())

        run_async(scenario())

        assert "Failed to create research position" in caplog.text

    def test_no_authorization_header_without_token(self):
        headers = []

        def handler(request):
            headers.append(request.headers)
            return httpx.Response(200)

        async def scenario():
            async with _bridge(handler) as bridge:
                await bridge.promote("opp-5", PromotionMeta())

        run_async(scenario())

        assert "Authorization" not in headers[0]


def test_bridges_satisfy_protocol():
    assert isinstance(NullPromotionBridge(), PromotionBridge)
    assert isinstance(HttpPromotionBridge("https://x.example"), PromotionBridge)


def test_null_bridge_does_nothing():
    run_async(NullPromotionBridge().promote("opp-1", PromotionMeta()))
