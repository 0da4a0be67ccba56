"""
Integration tests for the profile endpoints.
"""


class TestProfiles:

    def test_get_profile_anonymous(self, client, register):
        register("alice")

        response = client.get("/api/profiles/alice")

        assert response.status_code == 200
        assert response.json() == {
            "profile": {"username": "alice", "bio": "", "image": None, "following": False}
        }

    def test_unknown_profile(self, client):
        assert client.get("/api/profiles/nobody").status_code == 404

    def test_bad_token_on_optional_route_is_anonymous(self, client, register):
        register("alice")

        response = client.get("/api/profiles/alice", headers={"Authorization": "Bearer garbage"})

        assert response.status_code == 200
        assert response.json()["profile"]["following"] is False


class TestFollowing:

    def test_follow_and_unfollow(self, client, register, auth_headers):
        register("alice")
        bob = register("bob")

        followed = client.post("/api/profiles/alice/follow", headers=auth_headers(bob))
        assert followed.status_code == 200
        assert followed.json()["profile"]["following"] is True

        seen = client.get("/api/profiles/alice", headers=auth_headers(bob))
        assert seen.json()["profile"]["following"] is True

        unfollowed = client.delete("/api/profiles/alice/follow", headers=auth_headers(bob))
        assert unfollowed.status_code == 200
        assert unfollowed.json()["profile"]["following"] is False

    def test_follow_twice_is_noop(self, client, register, auth_headers):
        register("alice")
        bob = register("bob")

        client.post("/api/profiles/alice/follow", headers=auth_headers(bob))
        response = client.post("/api/profiles/alice/follow", headers=auth_headers(bob))

        assert response.status_code == 200
        assert response.json()["profile"]["following"] is True

    def test_cannot_follow_self(self, client, register, auth_headers):
        alice = register("alice")

        response = client.post("/api/profiles/alice/follow", headers=auth_headers(alice))

        assert response.status_code == 403

    def test_follow_unknown_user(self, client, register, auth_headers):
        bob = register("bob")

        assert client.post("/api/profiles/nobody/follow", headers=auth_headers(bob)).status_code == 404

    def test_follow_requires_auth(self, client, register):
        register("alice")

        assert client.post("/api/profiles/alice/follow").status_code == 401
        assert client.delete("/api/profiles/alice/follow").status_code == 401
