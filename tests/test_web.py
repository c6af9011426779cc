import pytest

from lurelands import app as app_module
from lurelands.app import create_app
from lurelands.core.models import Npc

NAMESPACE = "/game"


@pytest.fixture
def server(service):
    return create_app(service)


@pytest.fixture
def http(server):
    app, _ = server
    return app.test_client()


@pytest.fixture
def socket_client(server):
    app, socketio = server
    client = socketio.test_client(app, namespace=NAMESPACE)
    yield client
    if client.is_connected(NAMESPACE):
        client.disconnect(namespace=NAMESPACE)


def received(client, name):
    return [msg["args"][0] for msg in client.get_received(NAMESPACE) if msg["name"] == name]


def join(client, player_id="sock-1"):
    client.emit("join", {"player_id": player_id, "name": "Socky", "color": 0xFF112233}, namespace=NAMESPACE)


class TestHttp:

    def test_health(self, http):
        response = http.get("/health")
        assert response.status_code == 200
        assert response.get_json() == {"status": "ok"}

    def test_player_views(self, service, player, http):
        service.inventory.add(player.id, "fish_pond_1", 1, 2)

        assert http.get(f"/api/players/{player.id}").get_json()["name"] == "Angler"
        items = http.get(f"/api/players/{player.id}/inventory").get_json()["items"]
        assert [(i["item_id"], i["quantity"]) for i in items] == [("fish_pond_1", 2)]
        assert http.get(f"/api/players/{player.id}/stats").get_json()["level"] == 1
        quests = http.get(f"/api/players/{player.id}/quests").get_json()
        assert "guild_1" in [q["id"] for q in quests["available"]]

    def test_npc_interactions_view(self, service, player, http):
        service.create_npc(Npc(id="guild_master", name="Guild Master"))
        service.record_npc_interaction(player.id, "guild_master", "talked")

        rows = http.get(f"/api/players/{player.id}/npcs").get_json()["interactions"]
        assert [(r["npc_id"], r["talk_count"]) for r in rows] == [("guild_master", 1)]

    def test_unknown_player_is_404(self, http):
        assert http.get("/api/players/ghost").status_code == 404
        assert http.get("/api/players/ghost/stats").status_code == 404

    def test_degraded_mode(self, monkeypatch):
        monkeypatch.setattr(app_module, "build_game_service", lambda: None)
        app, _ = create_app()
        client = app.test_client()
        assert client.get("/health").status_code == 503
        assert client.get("/api/players/anyone").status_code == 503


class TestSockets:

    def test_join_sends_player_and_inventory(self, socket_client, service):
        join(socket_client)
        messages = socket_client.get_received(NAMESPACE)
        names = [m["name"] for m in messages]
        assert "player_data" in names
        assert "inventory" in names
        assert service.get_player("sock-1").is_online

    def test_events_before_join_are_rejected(self, socket_client):
        socket_client.emit("get_inventory", {}, namespace=NAMESPACE)
        errors = received(socket_client, "error")
        assert errors and errors[0]["event"] == "get_inventory"

    def test_catch_and_sell(self, socket_client, service):
        join(socket_client)
        socket_client.get_received(NAMESPACE)

        for _ in range(2):
            socket_client.emit("catch_fish", {"item_id": "fish_pond_2", "fish_type": "bass", "size": 20.0,
                                              "rarity": 1, "water_body_id": "pond"}, namespace=NAMESPACE)
        socket_client.get_received(NAMESPACE)

        socket_client.emit("sell_item", {"item_id": "fish_pond_2", "rarity": 1, "quantity": 2}, namespace=NAMESPACE)
        players = received(socket_client, "player_data")
        assert players[-1]["gold"] == 50
        assert service.inventory.total_owned("sock-1", "fish_pond_2", 1) == 0

    def test_rejections_become_error_events(self, socket_client, service):
        join(socket_client)
        socket_client.get_received(NAMESPACE)

        socket_client.emit("buy_item", {"item_id": "pole_4"}, namespace=NAMESPACE)
        errors = received(socket_client, "error")
        assert errors[0]["event"] == "buy_item"
        assert "1500" in errors[0]["message"]
        assert service.get_inventory("sock-1") == []

    def test_malformed_payload(self, socket_client):
        join(socket_client)
        socket_client.get_received(NAMESPACE)
        socket_client.emit("sell_item", {"item_id": "fish_pond_1"}, namespace=NAMESPACE)
        assert received(socket_client, "error")[0]["message"] == "Malformed request."

    def test_quests_over_socket(self, socket_client):
        join(socket_client)
        socket_client.get_received(NAMESPACE)

        socket_client.emit("accept_quest", {"quest_id": "guild_1"}, namespace=NAMESPACE)
        boards = received(socket_client, "quests")
        assert [pq["quest_id"] for pq in boards[-1]["active"]] == ["guild_1"]

    def test_disconnect_leaves_world(self, server, service):
        app, socketio = server
        client = socketio.test_client(app, namespace=NAMESPACE)
        join(client, "sock-2")
        client.disconnect(namespace=NAMESPACE)
        assert service.get_player("sock-2").is_online is False

    def test_reconnect_keeps_player_online(self, server, service):
        app, socketio = server
        first = socketio.test_client(app, namespace=NAMESPACE)
        second = socketio.test_client(app, namespace=NAMESPACE)
        join(first, "p")
        join(second, "p")

        first.disconnect(namespace=NAMESPACE)
        assert service.get_player("p").is_online is True
        second.get_received(NAMESPACE)
        second.emit("get_inventory", {}, namespace=NAMESPACE)
        assert received(second, "inventory") == [{"items": []}]

        second.disconnect(namespace=NAMESPACE)
        assert service.get_player("p").is_online is False

    def test_world_state_lists_other_online_players(self, server, service, player):
        app, socketio = server
        service.join_world("player-2", "Gone", 0xFF000000)
        service.leave_world("player-2")

        client = socketio.test_client(app, namespace=NAMESPACE)
        join(client, "sock-3")
        states = received(client, "world_state")
        assert [p["id"] for p in states[0]["players"]] == [player.id]
        client.disconnect(namespace=NAMESPACE)

    def test_npc_interaction(self, socket_client, service):
        service.create_npc(Npc(id="dock_worker", name="Dock Worker", can_trade=True))
        join(socket_client)
        socket_client.get_received(NAMESPACE)

        socket_client.emit("npc_interaction", {"npc_id": "dock_worker"}, namespace=NAMESPACE)
        socket_client.emit("npc_interaction", {"npc_id": "dock_worker", "interaction_type": "traded"},
                           namespace=NAMESPACE)
        rows = received(socket_client, "npc_interaction")
        assert [(r["talk_count"], r["has_traded"]) for r in rows] == [(1, False), (1, True)]

        socket_client.emit("npc_interaction", {"npc_id": "nobody"}, namespace=NAMESPACE)
        assert received(socket_client, "error")[0]["event"] == "npc_interaction"
