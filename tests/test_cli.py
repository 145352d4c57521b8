"""End-to-end tests for the typer CLI against a mocked fridge API."""

from __future__ import annotations

import json

import httpx
import pytest
from typer.testing import CliRunner

from fridgelist.cli import app
from fridgelist.config import get_settings
from fridgelist.integrations.fridge_api import FridgeApiClient
from tests.fakes import item_payload

runner = CliRunner()


class FakeFridgeServer:
    """Minimal in-process stand-in for the fridge API."""

    def __init__(self) -> None:
        self.items = [
            item_payload(1, "Milk"),
            item_payload(2, "Eggs", remaining=6.0, unit="pc", unit_price=0.25),
        ]
        self.synced: list[dict] = []
        self.deleted: list[int] = []
        self.down = False

    def __call__(self, request: httpx.Request) -> httpx.Response:
        if self.down:
            raise httpx.ConnectError("host unreachable", request=request)
        path = request.url.path
        if request.method == "GET" and path.endswith("/health"):
            return httpx.Response(200, json={"status": "ok"})
        if request.method == "GET" and path.endswith("/courses"):
            return httpx.Response(
                200,
                json={
                    "success": True,
                    "items": self.items,
                    "count": len(self.items),
                    "total_estime": sum(item["prix_estime"] for item in self.items),
                },
            )
        if request.method == "POST" and path.endswith("/courses/sync"):
            body = json.loads(request.content)
            self.synced.append(body)
            return httpx.Response(
                200,
                json={"success": True, "message": "ok", "items_modifies": len(body["achats"])},
            )
        if request.method == "DELETE":
            self.deleted.append(int(path.rsplit("/", 1)[-1]))
            return httpx.Response(200, json={"success": True})
        return httpx.Response(404)


@pytest.fixture()
def server(monkeypatch) -> FakeFridgeServer:
    fake = FakeFridgeServer()
    monkeypatch.setenv("FRIDGELIST_API_URL", "http://fridge.test/api/v1/")
    monkeypatch.setenv("FRIDGELIST_API_KEY", "cli-secret")
    monkeypatch.setenv("FRIDGELIST_LOG_LEVEL", "ERROR")
    get_settings.cache_clear()
    monkeypatch.setattr(
        "fridgelist.cli.FridgeApiClient",
        lambda config: FridgeApiClient(config, transport=httpx.MockTransport(fake)),
    )
    return fake


def test_list_fetches_when_cache_is_empty(server):
    result = runner.invoke(app, ["list", "--json"])

    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    assert payload["count"] == 2
    assert [item["ingredient_nom"] for item in payload["items"]] == ["Eggs", "Milk"]


def test_toggle_then_sync_pushes_purchases(server):
    assert runner.invoke(app, ["list"]).exit_code == 0

    toggled = runner.invoke(app, ["toggle", "1"])
    synced = runner.invoke(app, ["sync"])
    listed = runner.invoke(app, ["list", "--json"])

    assert toggled.exit_code == 0, toggled.output
    assert "Milk marked purchased" in toggled.stdout
    assert synced.exit_code == 0, synced.output
    assert "1 item(s) synced" in synced.stdout
    assert server.synced == [{"achats": [{"id": 1, "quantite_achetee": 2.0, "achete": True}]}]
    assert json.loads(listed.stdout)["count"] == 1


def test_quantity_is_bounded_by_remaining(server):
    runner.invoke(app, ["list"])

    result = runner.invoke(app, ["quantity", "2", "10"])

    assert result.exit_code == 0, result.output
    assert "Eggs: bought 6 of 6 pc" in result.stdout


def test_sync_without_purchases_fails(server):
    runner.invoke(app, ["list"])

    result = runner.invoke(app, ["sync"])

    assert result.exit_code == 1
    assert "No purchased items to sync" in result.output
    assert server.synced == []


def test_refresh_can_fall_back_to_cache(server):
    runner.invoke(app, ["list"])
    server.down = True

    strict = runner.invoke(app, ["refresh"])
    lenient = runner.invoke(app, ["refresh", "--fallback-to-cache"])

    assert strict.exit_code == 1
    assert "host unreachable" in strict.output
    assert lenient.exit_code == 0, lenient.output
    assert "Milk" in lenient.stdout


def test_delete_and_clear(server):
    runner.invoke(app, ["list"])

    deleted = runner.invoke(app, ["delete", "2"])
    cleared = runner.invoke(app, ["clear"])

    assert deleted.exit_code == 0, deleted.output
    assert server.deleted == [2]
    assert "Eggs removed from the list" in deleted.stdout
    assert "Local cache cleared" in cleared.stdout


def test_health_and_doctor(server):
    health = runner.invoke(app, ["health"])
    doctor = runner.invoke(app, ["doctor"])

    assert health.exit_code == 0
    assert "reachable" in health.stdout
    assert doctor.exit_code == 0, doctor.output
    assert "Summary" in doctor.stdout
