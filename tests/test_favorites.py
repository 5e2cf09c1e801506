import threading

import pytest
from fastapi import status

from mythboard.core.errors import StoreError, TargetNotFound
from mythboard.core.identity import Identity
from mythboard.core.locks import KeyedLock
from mythboard.services.favorites import FavoriteToggleEngine


class TestFavoriteApi:
    def test_toggle_on_and_off(self, client, post, alice):
        response = client.post(f"/api/favorites/{post['id']}", headers=alice)
        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {"post_id": post["id"], "favorited": True, "count": 1}

        response = client.post(f"/api/favorites/{post['id']}", headers=alice)
        assert response.json() == {"post_id": post["id"], "favorited": False, "count": 0}

    def test_state(self, client, post, alice, bob):
        client.post(f"/api/favorites/{post['id']}", headers=alice)
        client.post(f"/api/favorites/{post['id']}", headers=bob)
        client.post(f"/api/favorites/{post['id']}", headers=bob)

        assert client.get(f"/api/favorites/{post['id']}", headers=alice).json()["favorited"] is True
        bob_state = client.get(f"/api/favorites/{post['id']}", headers=bob).json()
        assert bob_state == {"post_id": post["id"], "favorited": False, "count": 1}

    def test_post_shows_favorites_count(self, client, post, alice, bob):
        client.post(f"/api/favorites/{post['id']}", headers=alice)
        client.post(f"/api/favorites/{post['id']}", headers=bob)
        assert client.get(f"/api/posts/{post['id']}").json()["favorites_count"] == 2

    def test_list_with_post_details(self, client, post, alice, bob, post_data):
        other = client.post("/api/posts", json={**post_data, "title": "The Lantern Ghost"}, headers=alice).json()
        client.post(f"/api/favorites/{post['id']}", headers=alice)
        client.post(f"/api/favorites/{other['id']}", headers=alice)
        client.post(f"/api/favorites/{other['id']}", headers=bob)

        favorites = client.get("/api/favorites", headers=alice).json()
        assert {entry["post_id"] for entry in favorites} == {post["id"], other["id"]}
        assert all(entry["user_identifier"] == "user_alice" for entry in favorites)
        titles = {entry["post"]["title"] for entry in favorites}
        assert titles == {post_data["title"], "The Lantern Ghost"}

    def test_remove_entry(self, client, post, alice):
        client.post(f"/api/favorites/{post['id']}", headers=alice)
        entry = client.get("/api/favorites", headers=alice).json()[0]

        response = client.delete(f"/api/favorites/entry/{entry['id']}", headers=alice)
        assert response.status_code == status.HTTP_204_NO_CONTENT
        assert client.get("/api/favorites", headers=alice).json() == []

    def test_cannot_remove_someone_elses_entry(self, client, post, alice, bob):
        client.post(f"/api/favorites/{post['id']}", headers=alice)
        entry = client.get("/api/favorites", headers=alice).json()[0]

        response = client.delete(f"/api/favorites/entry/{entry['id']}", headers=bob)
        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert len(client.get("/api/favorites", headers=alice).json()) == 1

    def test_missing_post(self, client, alice):
        response = client.post("/api/favorites/missing", headers=alice)
        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_deleted_post_drops_favorites(self, client, post, alice):
        client.post(f"/api/favorites/{post['id']}", headers=alice)
        client.delete(f"/api/posts/{post['id']}", headers=alice)
        assert client.get("/api/favorites", headers=alice).json() == []


class TestFavoriteEngine:
    A = Identity("user_a")

    @pytest.fixture
    def engine(self, favorite_repo):
        return FavoriteToggleEngine(favorite_repo, locks=KeyedLock())

    def test_toggle_flips_existence(self, engine, favorite_repo):
        assert engine.toggle(self.A, "p1").favorited is True
        assert len(favorite_repo.rows) == 1
        assert engine.toggle(self.A, "p1").favorited is False
        assert favorite_repo.rows == []

    def test_state_without_identity(self, engine):
        engine.toggle(self.A, "p1")
        state = engine.state(None, "p1")
        assert state.favorited is False
        assert state.count == 1

    def test_failed_insert_propagates(self, engine, favorite_repo):
        favorite_repo.fail_on.add("insert")
        with pytest.raises(StoreError):
            engine.toggle(self.A, "p1")
        assert favorite_repo.rows == []

    def test_remove_checks_owner(self, engine):
        engine.toggle(self.A, "p1")
        favorite_id = engine.repository.rows[0].id
        with pytest.raises(TargetNotFound):
            engine.remove(Identity("user_b"), favorite_id)
        engine.remove(self.A, favorite_id)
        assert engine.repository.rows == []

    def test_toggles_from_one_identity_serialize(self, engine, favorite_repo):
        favorite_repo.delay = 0.01
        errors = []
        results = []

        def toggle():
            try:
                results.append(engine.toggle(self.A, "p1").favorited)
            except StoreError as e:
                errors.append(e)

        threads = [threading.Thread(target=toggle) for _ in range(6)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert errors == []
        # each toggle starts from the state the previous one left behind
        assert sorted(results) == [False, False, False, True, True, True]
        assert favorite_repo.rows == []
