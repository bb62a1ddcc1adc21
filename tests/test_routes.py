"""
Tests for the HTTP API
"""
from unittest.mock import MagicMock, patch

import pytest
from sqlalchemy.exc import OperationalError

from services.enrichment import TmdbDetailSnapshot


LOG_FORM = {"title": "Inception", "media_type": "movie", "rating": 4.5, "tmdb_id": 27205}


class TestAuthRoutes:
    """Tests for signup, login and profile"""

    def test_signup_creates_profile_and_session(self, app):
        client = app.test_client()

        response = client.post("/api/auth/signup", json={
            "email": "Dana@Example.com", "password": "secret123", "username": "Dana_S", "full_name": "Dana",
        })

        assert response.status_code == 201
        data = response.get_json()["data"]
        assert data["email"] == "dana@example.com"
        assert data["profile"]["username"] == "dana_s"
        assert client.get("/api/auth/me").status_code == 200

    @pytest.mark.parametrize("username", ["ab", "bad name", "", "dash-name"])
    def test_signup_rejects_bad_usernames(self, app, username):
        response = app.test_client().post("/api/auth/signup", json={
            "email": "x@example.com", "password": "secret123", "username": username,
        })

        assert response.status_code == 400
        assert response.get_json()["details"]["field"] == "username"

    def test_duplicate_username_rejected(self, app, alice):
        response = app.test_client().post("/api/auth/signup", json={
            "email": "other@example.com", "password": "secret123", "username": "alice",
        })
        assert response.status_code == 400

    def test_bad_login(self, app, alice):
        response = app.test_client().post("/api/auth/login", json={"email": alice.email, "password": "wrong"})
        assert response.status_code == 401

    def test_anonymous_requests_get_json_401(self, app):
        response = app.test_client().get("/api/logs")
        assert response.status_code == 401
        assert response.get_json()["success"] is False

    def test_profile_update_syncs_profile(self, login, alice):
        client = login(alice)

        response = client.put("/api/auth/profile", json={"username": "Alice_W", "profile_color": "#ff0000"})

        assert response.status_code == 200
        assert response.get_json()["data"]["profile"]["username"] == "alice_w"
        assert client.get("/api/users/alice_w").status_code == 200

    def test_clients_keep_their_own_session(self, login, alice, bob):
        alice_client, bob_client = login(alice), login(bob)

        assert alice_client.get("/api/auth/me").get_json()["data"]["email"] == "alice@example.com"
        assert bob_client.get("/api/auth/me").get_json()["data"]["email"] == "bob@example.com"

    def test_change_password(self, app, login, alice):
        client = login(alice)

        short = client.post("/api/auth/password", json={"current_password": "secret123", "new_password": "abc"})
        assert short.status_code == 400
        assert short.get_json()["details"] == {
            "field": "new_password", "error": "Password must be at least 6 characters.",
        }

        wrong = client.post("/api/auth/password", json={"current_password": "nope", "new_password": "better456"})
        assert wrong.status_code == 401

        ok = client.post("/api/auth/password", json={"current_password": "secret123", "new_password": "better456"})
        assert ok.status_code == 200
        relogin = app.test_client().post("/api/auth/login", json={"email": alice.email, "password": "better456"})
        assert relogin.status_code == 200

    def test_logout(self, login, alice):
        client = login(alice)
        assert client.post("/api/auth/logout").status_code == 200
        assert client.get("/api/auth/me").status_code == 401


class TestLogRoutes:
    """Tests for /api/logs"""

    def test_crud(self, login, alice):
        client = login(alice)

        created = client.post("/api/logs", json=LOG_FORM)
        assert created.status_code == 201
        log_id = created.get_json()["data"]["id"]

        listed = client.get("/api/logs").get_json()["data"]
        assert [log["id"] for log in listed] == [log_id]

        updated = client.put(f"/api/logs/{log_id}", json=dict(LOG_FORM, rating=2.5))
        assert updated.get_json()["data"]["rating"] == 2.5

        assert client.delete(f"/api/logs/{log_id}").status_code == 200
        assert client.get(f"/api/logs/{log_id}").status_code == 404

    def test_validation_error_names_field(self, login, alice):
        response = login(alice).post("/api/logs", json=dict(LOG_FORM, rating=0))

        assert response.status_code == 400
        assert response.get_json()["details"]["field"] == "rating"

    def test_other_users_cannot_edit(self, login, alice, bob):
        log_id = login(alice).post("/api/logs", json=LOG_FORM).get_json()["data"]["id"]

        bob_client = login(bob)
        assert bob_client.put(f"/api/logs/{log_id}", json=LOG_FORM).status_code == 403
        assert bob_client.delete(f"/api/logs/{log_id}").status_code == 403
        assert bob_client.get(f"/api/logs/{log_id}").status_code == 403


class TestAnalyticsRoute:
    """Tests for /api/analytics"""

    def test_empty_history(self, login, alice):
        response = login(alice).get("/api/analytics")
        assert response.get_json()["data"] == {"has_data": False}

    def test_view_with_enrichment(self, login, alice):
        client = login(alice)
        client.post("/api/logs", json=LOG_FORM)
        client.post("/api/logs", json=dict(LOG_FORM, tmdb_id=1, title="Unknown"))

        def lookup(tmdb_id, media_type):
            if tmdb_id != 27205:
                raise RuntimeError("TMDB down")
            return TmdbDetailSnapshot(tmdb_id=tmdb_id, media_type=media_type, genres=("Action",),
                                      runtime=148, vote_average=8.4, release_year=2010)

        with patch("routes.analytics.build_enrichment_lookup", return_value=lookup):
            response = client.get("/api/analytics")

        data = response.get_json()["data"]
        assert response.status_code == 200
        assert data["has_data"] is True
        assert data["totals"]["total"] == 2
        assert data["genres"] == [{"name": "Action", "count": 1}]
        assert data["enrichment"]["enriched"] == 1

    def test_enrichment_capped_at_twenty_titles(self, login, alice):
        client = login(alice)
        for tmdb_id in range(1, 23):
            client.post("/api/logs", json=dict(LOG_FORM, tmdb_id=tmdb_id, title=f"Title {tmdb_id}"))
        calls = []

        def lookup(tmdb_id, media_type):
            calls.append(tmdb_id)
            return TmdbDetailSnapshot(tmdb_id=tmdb_id, media_type=media_type)

        with patch("routes.analytics.build_enrichment_lookup", return_value=lookup):
            data = client.get("/api/analytics").get_json()["data"]

        assert data["totals"]["total"] == 22
        assert len(calls) == 20
        assert len(set(calls)) == 20

    def test_without_tmdb_credentials(self, login, alice):
        client = login(alice)
        client.post("/api/logs", json=LOG_FORM)

        data = client.get("/api/analytics").get_json()["data"]

        assert data["totals"]["total"] == 1
        assert data["genres"] == []

    def test_datastore_failure_returns_no_data(self, login, alice):
        client = login(alice)
        failing = MagicMock(side_effect=OperationalError("SELECT", {}, Exception("db down")))

        with patch("routes.analytics.WatchLogRepository.get_all_by_user", failing):
            response = client.get("/api/analytics")

        assert response.status_code == 200
        assert response.get_json()["data"] == {"has_data": False}


class TestFriendRoutes:
    """Tests for friend requests and gated user pages"""

    def test_request_accept_and_view(self, login, alice, bob):
        alice_client, bob_client = login(alice), login(bob)
        alice_client.post("/api/logs", json=LOG_FORM)

        locked = bob_client.get("/api/users/alice").get_json()["data"]
        assert locked["locked"] is True
        assert locked["relationship"] == "none"
        assert "logs" not in locked

        sent = bob_client.post("/api/friends/requests", json={"username": "alice"})
        assert sent.status_code == 201
        assert sent.get_json()["data"]["relationship"] == "pending_sent"
        friendship_id = sent.get_json()["data"]["id"]

        incoming = alice_client.get("/api/friends/requests").get_json()["data"]["incoming"]
        assert [r["user"]["username"] for r in incoming] == ["bob"]

        assert bob_client.post(f"/api/friends/{friendship_id}/accept").status_code == 403
        assert alice_client.post(f"/api/friends/{friendship_id}/accept").status_code == 200

        page = bob_client.get("/api/users/alice").get_json()["data"]
        assert page["locked"] is False
        assert page["relationship"] == "friends"
        assert page["stats"]["total"] == 1
        assert [log["title"] for log in page["logs"]] == ["Inception"]

        assert bob_client.delete(f"/api/friends/{friendship_id}").status_code == 200
        assert bob_client.get("/api/users/alice").get_json()["data"]["locked"] is True

    def test_duplicate_request_returns_existing(self, login, alice, bob):
        client = login(alice)
        first = client.post("/api/friends/requests", json={"user_id": bob.id}).get_json()["data"]
        second = client.post("/api/friends/requests", json={"user_id": bob.id}).get_json()["data"]
        assert first["id"] == second["id"]

    def test_search_annotates_relationship(self, login, alice, bob, carol):
        client = login(alice)
        client.post("/api/friends/requests", json={"user_id": bob.id})

        results = client.get("/api/users/search?q=o").get_json()["data"]

        assert {r["username"]: r["relationship"] for r in results} == {"bob": "pending_sent", "carol": "none"}

    def test_unknown_user(self, login, alice):
        assert login(alice).get("/api/users/nobody").status_code == 404


class TestCollectionRoutes:
    """Tests for watchlist and lists"""

    def test_watchlist_duplicate_is_benign(self, login, alice):
        client = login(alice)
        item = {"tmdb_id": 1396, "media_type": "tv", "title": "Breaking Bad"}

        first = client.post("/api/watchlist", json=item)
        second = client.post("/api/watchlist", json=item)

        assert first.status_code == 201
        assert second.status_code == 200
        assert first.get_json()["data"]["id"] == second.get_json()["data"]["id"]
        assert len(client.get("/api/watchlist").get_json()["data"]) == 1

    def test_list_items_append_in_order(self, login, alice, bob):
        client = login(alice)
        list_id = client.post("/api/lists", json={"name": "Heists"}).get_json()["data"]["id"]

        client.post(f"/api/lists/{list_id}/items", json={"tmdb_id": 949, "media_type": "movie", "title": "Heat"})
        client.post(f"/api/lists/{list_id}/items", json={"tmdb_id": 161, "media_type": "movie", "title": "Ocean's"})

        data = client.get(f"/api/lists/{list_id}").get_json()["data"]
        assert [(i["title"], i["position"]) for i in data["items"]] == [("Heat", 0), ("Ocean's", 1)]

        bob_client = login(bob)
        assert bob_client.get(f"/api/lists/{list_id}").status_code == 403
        assert bob_client.delete(f"/api/lists/{list_id}").status_code == 403

    def test_append_after_removal_goes_last(self, login, alice):
        client = login(alice)
        list_id = client.post("/api/lists", json={"name": "Nolan"}).get_json()["data"]["id"]
        items_url = f"/api/lists/{list_id}/items"

        client.post(items_url, json={"tmdb_id": 77, "media_type": "movie", "title": "Memento"})
        middle = client.post(items_url, json={"tmdb_id": 1124, "media_type": "movie", "title": "The Prestige"})
        client.post(items_url, json={"tmdb_id": 27205, "media_type": "movie", "title": "Inception"})
        client.delete(f"{items_url}/{middle.get_json()['data']['id']}")
        client.post(items_url, json={"tmdb_id": 157336, "media_type": "movie", "title": "Interstellar"})

        items = client.get(f"/api/lists/{list_id}").get_json()["data"]["items"]
        assert [i["title"] for i in items] == ["Memento", "Inception", "Interstellar"]
        assert [i["position"] for i in items] == [0, 2, 3]

    def test_list_requires_name(self, login, alice):
        assert login(alice).post("/api/lists", json={"name": " "}).status_code == 400


class TestMediaRoutes:
    """Tests for the TMDB proxy routes"""

    def test_search_uses_client(self, login, alice):
        client = MagicMock()
        client.search.return_value = [{"id": 1, "title": "Heat"}]

        with patch("routes.media.get_tmdb_client", return_value=client):
            response = login(alice).get("/api/media/search?q=heat&type=movie")

        assert response.get_json()["data"] == [{"id": 1, "title": "Heat"}]
        client.search.assert_called_once_with("heat", "movie", 1)

    def test_provider_failure_is_bad_gateway(self, login, alice):
        response = login(alice).get("/api/media/movie/949")
        assert response.status_code == 502


class TestSystemRoutes:
    """Tests for health and metrics"""

    def test_health(self, app):
        response = app.test_client().get("/api/health")
        assert response.status_code == 200
        assert response.get_json()["data"]["checks"]["database"] == "ok"

    def test_metrics(self, app):
        response = app.test_client().get("/api/metrics")
        assert response.status_code == 200
        assert b"cinelog_api_requests_total" in response.data


class TestApiResponses:
    """Tests for the response helpers"""

    def test_helpers(self, app):
        from api_responses import validation_error_response
        from db import is_unique_violation

        with app.test_request_context():
            body, status = validation_error_response("rating", "Please select a rating")
            assert status == 400
            assert body.get_json()["details"] == {"field": "rating", "error": "Please select a rating"}

        assert is_unique_violation(ValueError("unique")) is False
