from __future__ import annotations

import random
from dataclasses import replace
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from pokefusion.app import Services, create_app, load_services
from pokefusion.config import Settings
from pokefusion.engine import FusionEngine
from pokefusion.entries import CustomEntryStore
from pokefusion.images import ImageResolver, SpriteIndex
from pokefusion.names import NameSplitTable
from pokefusion.roster import RosterStore

from conftest import ExplodingEntries, make_record

PNG_MAGIC = b"\x89PNG\r\n\x1a\n"


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    sprites = tmp_path / "sprites"
    (sprites / "custom").mkdir(parents=True)
    (sprites / "custom" / "1.4.png").write_bytes(PNG_MAGIC)
    (sprites / "autogen" / "25").mkdir(parents=True)
    (sprites / "autogen" / "25" / "25.133.png").write_bytes(PNG_MAGIC)
    (tmp_path / "assets" / "types").mkdir(parents=True)
    (tmp_path / "assets" / "types" / "fire.png").write_bytes(PNG_MAGIC)
    return Settings(sprites_dir=sprites, assets_dir=tmp_path / "assets", rate_limit_max=1000)


@pytest.fixture
def client(settings: Settings):
    with TestClient(create_app(settings)) as c:
        yield c


def test_index_and_health(client: TestClient) -> None:
    assert "/api/fusion" in client.get("/").json()["endpoints"]

    health = client.get("/api/health").json()
    assert health["ok"] is True
    assert health["pokemon"] == 17
    assert health["customEntries"] == 3


def test_pokemon_listing(client: TestClient) -> None:
    body = client.get("/api/pokemon").json()

    assert body["success"] is True
    assert body["data"]["count"] == 17
    assert body["data"]["pokemon"] == sorted(body["data"]["pokemon"])
    assert body["processingTime"].endswith("ms")

    types = client.get("/api/pokemon/types").json()["data"]
    assert types["16"] == ["Normal", "Flying"]


def test_fusion_end_to_end(client: TestClient) -> None:
    resp = client.get("/api/fusion", params={"head": "bulbasaur", "body": "Charmander"})

    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["fusionName"] == "Bulbamander"
    assert data["fusionId"] == "1.4"
    assert data["types"] == ["Grass"]
    assert data["stats"]["HP"] == 43
    assert data["stats"]["TOTAL"] == 317
    assert data["category"] == "Seed Lizard Pokémon"
    assert data["height"] == "65 cm"
    assert data["weight"] == "7 kg"
    # curated entry for 1.4; the 1.4a variant never surfaces
    assert data["pokedexEntry"].startswith("Bulbamander keeps the seed on its back warm")
    assert data["pokedexAuthor"] == "Sprite Team"
    assert data["imageRef"] == {"locator": "/sprites/custom/1.4.png", "attribution": "curated"}


def test_fusion_random_when_names_omitted(client: TestClient) -> None:
    data = client.get("/api/fusion").json()["data"]
    names = client.get("/api/pokemon").json()["data"]["pokemon"]

    assert data["headName"] in names
    assert data["bodyName"] in names


def test_projections(client: TestClient) -> None:
    params = {"head": "Pidgey", "body": "Lapras"}

    assert client.get("/api/fusion/names", params=params).json()["data"] == {
        "fusionName": "Pidpras", "headName": "Pidgey", "bodyName": "Lapras",
    }
    assert client.get("/api/fusion/types", params=params).json()["data"]["types"] == ["Flying", "Ice"]
    stats = client.get("/api/fusion/stats", params=params).json()["data"]["stats"]
    assert stats["HP"] == 40 * 2 // 3 + 130 // 3
    dex = client.get("/api/fusion/pokedex", params=params).json()["data"]
    assert dex["category"] == "Tiny Bird Transport Pokémon"
    assert dex["height"] == "140 cm"
    assert dex["pokedexAuthor"] == "Auto-generated"


def test_unknown_name_is_a_client_error(client: TestClient) -> None:
    resp = client.get("/api/fusion", params={"head": "NotARealCreature"})

    assert resp.status_code == 400
    body = resp.json()
    assert body["success"] is False
    assert "NotARealCreature" in body["error"]
    assert "/api/pokemon" in body["error"]

    resp = client.get("/api/fusion/types", params={"body": "Agumon"})
    assert resp.status_code == 400
    assert "body" in resp.json()["error"]


def test_overlong_name_reports_the_unknown_name(client: TestClient) -> None:
    resp = client.get("/api/fusion", params={"head": "x" * 100})

    assert resp.status_code == 400
    body = resp.json()
    assert body["provided"] == "x" * 100
    assert "/api/pokemon" in body["error"]


def test_fusion_image_redirects(client: TestClient) -> None:
    resp = client.get("/api/images/fusion/1/4", follow_redirects=False)
    assert resp.status_code == 302
    assert resp.headers["location"] == "/sprites/custom/1.4.png"
    assert resp.headers["x-sprite-attribution"] == "curated"

    resp = client.get("/api/images/fusion/25/133", follow_redirects=False)
    assert resp.headers["location"] == "/sprites/autogen/25/25.133.png"

    info = client.get("/api/images/fusion/3/3/info").json()["data"]
    assert info == {"locator": "/api/images/missing", "attribution": "missing"}


def test_fusion_image_invalid_params(client: TestClient) -> None:
    resp = client.get("/api/images/fusion/0/abc", follow_redirects=False)

    assert resp.status_code == 400
    body = resp.json()
    assert body["message"] == "headId and bodyId must be positive numbers"
    assert body["provided"] == {"headId": "0", "bodyId": "abc"}


def test_sprites_are_served(client: TestClient) -> None:
    resp = client.get("/api/images/fusion/1/4")
    assert resp.status_code == 200
    assert resp.content == PNG_MAGIC


def test_missing_sprite_placeholder(client: TestClient) -> None:
    resp = client.get("/api/images/missing")
    assert resp.status_code == 200
    assert resp.headers["content-type"] == "image/png"
    assert resp.content.startswith(PNG_MAGIC)


def test_type_icons(client: TestClient) -> None:
    assert client.get("/api/images/types/Fire").status_code == 200
    assert client.get("/api/images/types/f1").status_code == 400

    resp = client.get("/api/images/types/Water")
    assert resp.status_code == 404
    assert resp.json() == {"success": False, "error": "Type 'water' does not exist", "provided": "Water"}


def test_unknown_routes_use_error_envelope(client: TestClient) -> None:
    resp = client.get("/api/nothing")
    assert resp.status_code == 404
    assert resp.json() == {"success": False, "error": "Not Found"}

    assert client.get("/sprites/custom/9.9.png").status_code == 404


def test_missing_sprites_dir_is_not_mounted(settings: Settings, tmp_path: Path) -> None:
    with TestClient(create_app(replace(settings, sprites_dir=tmp_path / "absent"))) as client:
        resp = client.get("/sprites/custom/1.4.png")
        assert resp.status_code == 404
        assert resp.json()["success"] is False

        info = client.get("/api/images/fusion/1/4/info").json()["data"]
        assert info["attribution"] == "missing"


def test_fusion_card_renders_png(client: TestClient) -> None:
    resp = client.get("/api/fusion/card", params={"head": "Mew", "body": "Mewtwo"})

    assert resp.status_code == 200
    assert resp.headers["content-type"] == "image/png"
    assert resp.headers["x-fusion-id"] == "151.150"
    assert resp.content.startswith(PNG_MAGIC)


def test_rate_limit(settings: Settings) -> None:
    with TestClient(create_app(replace(settings, rate_limit_max=2))) as client:
        assert client.get("/api/pokemon").status_code == 200
        assert client.get("/api/pokemon").status_code == 200
        resp = client.get("/api/pokemon")

        assert resp.status_code == 429
        assert resp.json()["retryAfter"] >= 1
        assert "retry-after" in resp.headers
        # non-API paths are not counted
        assert client.get("/").status_code == 200


def test_url_size_limit(settings: Settings) -> None:
    with TestClient(create_app(replace(settings, max_url_length=40))) as client:
        resp = client.get("/api/fusion", params={"head": "Bulbasaur", "body": "Charmander"})
        assert resp.status_code == 414
        assert resp.json()["error"] == "URL too long"


def test_startup_fails_on_bad_roster(settings: Settings, tmp_path: Path) -> None:
    bad = tmp_path / "broken.json"
    bad.write_text("[]", encoding="utf-8")

    with pytest.raises(Exception):
        with TestClient(create_app(replace(settings, roster_path=bad))):
            pass


def test_missing_custom_entries_is_tolerated(settings: Settings, tmp_path: Path) -> None:
    services = load_services(replace(settings, custom_entries_path=tmp_path / "none.json"), rng=random.Random(2))
    assert len(services.entries) == 0
    assert services.engine.generate_fusion("Bulbasaur", "Charmander").pokedex_author == "Auto-generated"


def _broken_services() -> Services:
    roster = RosterStore([make_record(70, "Broken"), make_record(71, "Other", ("Water",))])
    splits = NameSplitTable({}, roster=roster)
    entries = ExplodingEntries.empty()
    images = ImageResolver.from_index(SpriteIndex())
    engine = FusionEngine(roster, splits, entries, images=images)
    return Services(roster, splits, entries, images, engine)


@pytest.mark.parametrize("environment, has_details", [("development", True), ("production", False)])
def test_computation_failure_is_a_server_error(settings: Settings, environment: str, has_details: bool) -> None:
    app = create_app(replace(settings, environment=environment), services=_broken_services())
    with TestClient(app) as client:
        resp = client.get("/api/fusion", params={"head": "Broken", "body": "Other"})

    assert resp.status_code == 500
    body = resp.json()
    assert body["success"] is False
    assert body["error"] == "Failed to generate fusion"
    assert ("details" in body) is has_details
