"""HTTP tests for the public, comment and moderation routes."""

from unittest.mock import Mock

import pytest
from fastapi.testclient import TestClient

import toastrank.main
from toastrank.core.context import get_client_ip, get_request_id


PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64

MOD_AUTH = ("admin", "basic-secret")


def upload(client: TestClient, filename: str = "toaster.png", content: bytes = PNG_BYTES):
    """Upload an image as a fresh client (no cooldown marker)."""
    client.cookies.clear()
    return client.post("/submit", files={"image": (filename, content, "image/png")})


@pytest.fixture
def toaster_id(client: TestClient) -> int:
    """Upload one toaster and return its id."""
    response = upload(client)
    assert response.status_code == 302
    client.cookies.clear()
    return client.get("/").json()["toasters"][0]["id"]


class TestListing:
    """Front page, hall of fame and rules."""

    def test_empty_front_page(self, client: TestClient) -> None:
        response = client.get("/")
        assert response.status_code == 200
        assert response.json() == {
            "toasters": [],
            "banner": "/banners/toast.gif",
            "voted": [],
        }

    def test_newest_first(self, client: TestClient) -> None:
        upload(client, "first.png")
        upload(client, "second.png")

        toasters = client.get("/").json()["toasters"]

        assert [t["id"] for t in toasters] == [2, 1]
        assert toasters[0]["image_url"] == f"/uploads/{toasters[0]['image']}"

    def test_hall_of_fame(self, client: TestClient, toaster_id: int) -> None:
        client.post(f"/rate/{toaster_id}", data={"rating": "9"})

        data = client.get("/hall-of-fame").json()

        assert data["toasters"][0]["id"] == toaster_id
        assert data["toasters"][0]["rating"] == 9.0

    def test_rules(self, client: TestClient) -> None:
        rules = client.get("/rules").json()["rules"]
        assert any("10 MB" in rule for rule in rules)

    def test_services_unavailable(self, bare_client: TestClient) -> None:
        response = bare_client.get("/")
        assert response.status_code == 503


class TestSubmit:
    """POST /submit."""

    def test_accepted(self, client: TestClient) -> None:
        response = upload(client)

        assert response.status_code == 302
        assert response.headers["location"] == "/"
        assert "lastUploadTime" in response.cookies

    def test_cooldown(self, client: TestClient) -> None:
        upload(client)

        response = client.post(
            "/submit", files={"image": ("again.png", PNG_BYTES, "image/png")}
        )

        assert response.status_code == 429
        assert "Retry-After" in response.headers
        assert len(client.get("/").json()["toasters"]) == 1

    def test_missing_file(self, client: TestClient) -> None:
        response = client.post("/submit", data={"note": "no image"})
        assert response.status_code == 400

    def test_wrong_type(self, client: TestClient) -> None:
        response = upload(client, "toaster.gif")
        assert response.status_code == 400
        assert response.json()["message"].startswith("Invalid file type")

    def test_too_large(self, client: TestClient) -> None:
        response = upload(client, "big.png", b"\x00" * (10 * 1024 * 1024 + 1))

        assert response.status_code == 413
        assert client.get("/").json()["toasters"] == []


class TestRate:
    """POST /rate/{id}."""

    def test_vote_sets_marker(self, client: TestClient, toaster_id: int) -> None:
        response = client.post(f"/rate/{toaster_id}", data={"rating": "7"})

        assert response.status_code == 302
        assert response.headers["location"] == "/"
        assert response.cookies[f"voted_on_{toaster_id}"] == "7"
        assert client.get("/").json()["voted"] == [toaster_id]

    def test_second_vote_is_soft_rejected(
        self, client: TestClient, toaster_id: int
    ) -> None:
        client.post(f"/rate/{toaster_id}", data={"rating": "7"})

        response = client.post(f"/rate/{toaster_id}", data={"rating": "2"})

        assert response.status_code == 200
        assert response.json() == {"message": "You have already voted on this toaster!"}
        toaster = client.get("/").json()["toasters"][0]
        assert toaster["votes"] == 1
        assert toaster["rating"] == 7.0

    @pytest.mark.parametrize("rating", ["0", "11", "abc", ""])
    def test_invalid_rating(self, client: TestClient, toaster_id: int, rating: str) -> None:
        response = client.post(f"/rate/{toaster_id}", data={"rating": rating})
        assert response.status_code == 400

    @pytest.mark.parametrize("path_id", ["999", "abc", "²"])
    def test_unknown_toaster(self, client: TestClient, path_id: str) -> None:
        response = client.post(f"/rate/{path_id}", data={"rating": "5"})
        assert response.status_code == 404

    def test_bad_rating_wins_over_bad_id(self, client: TestClient) -> None:
        response = client.post("/rate/abc", data={"rating": "0"})
        assert response.status_code == 400


class TestComments:
    """Comment routes."""

    def test_add_and_list(self, client: TestClient, toaster_id: int) -> None:
        response = client.post(
            f"/toasters/{toaster_id}/comment", data={"comment": "  so shiny  "}
        )
        assert response.status_code == 302
        assert response.headers["location"] == f"/toasters/{toaster_id}/comments"

        data = client.get(f"/toasters/{toaster_id}/comments").json()

        assert data["toaster"]["id"] == toaster_id
        assert [c["comment"] for c in data["comments"]] == ["so shiny"]

    def test_empty_comment(self, client: TestClient, toaster_id: int) -> None:
        response = client.post(f"/toasters/{toaster_id}/comment", data={"comment": "  "})
        assert response.status_code == 400

    def test_unknown_toaster(self, client: TestClient) -> None:
        assert client.get("/toasters/9/comments").status_code == 404
        response = client.post("/toasters/9/comment", data={"comment": "hi"})
        assert response.status_code == 404

    def test_non_ascii_digit_id(self, client: TestClient) -> None:
        assert client.get("/toasters/²/comments").status_code == 404
        response = client.post("/toasters/²/comment", data={"comment": "hi"})
        assert response.status_code == 404


class TestModeration:
    """Moderation routes."""

    def test_requires_basic_auth(self, client: TestClient) -> None:
        response = client.get("/mod")

        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == 'Basic realm="Admin Area"'

    def test_wrong_basic_auth(self, client: TestClient) -> None:
        assert client.get("/mod", auth=("admin", "wrong")).status_code == 401

    def test_console(self, client: TestClient) -> None:
        response = client.get("/mod", auth=MOD_AUTH)
        assert response.status_code == 200
        assert response.json()["moderator"] == "admin"

    def test_delete(self, client: TestClient, toaster_id: int) -> None:
        client.post(f"/toasters/{toaster_id}/comment", data={"comment": "bye"})

        response = client.post(
            "/mod/delete",
            data={"id": str(toaster_id), "password": "delete-secret"},
            auth=MOD_AUTH,
        )

        assert response.status_code == 200
        assert response.json()["message"] == "Toaster deleted successfully"
        assert client.get("/").json()["toasters"] == []
        assert client.get(f"/toasters/{toaster_id}/comments").status_code == 404

    def test_delete_wrong_password(self, client: TestClient, toaster_id: int) -> None:
        response = client.post(
            "/mod/delete",
            data={"id": str(toaster_id), "password": "nope"},
            auth=MOD_AUTH,
        )

        assert response.status_code == 401
        assert len(client.get("/").json()["toasters"]) == 1

    def test_delete_missing_fields(self, client: TestClient) -> None:
        response = client.post("/mod/delete", data={"id": "1"}, auth=MOD_AUTH)
        assert response.status_code == 400

    @pytest.mark.parametrize("raw_id", ["42", "²"])
    def test_delete_unknown(self, client: TestClient, raw_id: str) -> None:
        response = client.post(
            "/mod/delete",
            data={"id": raw_id, "password": "delete-secret"},
            auth=MOD_AUTH,
        )
        assert response.status_code == 404

    def test_delete_requires_outer_gate(
        self, client: TestClient, toaster_id: int
    ) -> None:
        response = client.post(
            "/mod/delete", data={"id": str(toaster_id), "password": "delete-secret"}
        )

        assert response.status_code == 401
        assert len(client.get("/").json()["toasters"]) == 1


class TestFallback:
    """Unknown paths and the error envelope."""

    def test_not_found_has_banner(self, client: TestClient) -> None:
        response = client.get("/no/such/page")

        assert response.status_code == 404
        data = response.json()
        assert data["error"] is True
        assert data["status_code"] == 404
        assert data["banner"] == "/banners/toast.gif"
        assert data["request_id"]

    def test_unhandled_error_is_logged_with_request_context(
        self, client: TestClient, store, monkeypatch
    ) -> None:
        logged = {}

        def record(event, **kwargs):
            logged[event] = {"request_id": get_request_id(), "client_ip": get_client_ip()}

        monkeypatch.setattr(toastrank.main, "logger", Mock(exception=Mock(side_effect=record)))
        store.fail_list = True
        failing_client = TestClient(client.app, raise_server_exceptions=False)

        response = failing_client.get(
            "/", headers={"X-Request-ID": "req-500", "X-Forwarded-For": "203.0.113.9"}
        )

        assert response.status_code == 500
        assert response.json()["request_id"] == "req-500"
        assert logged["unhandled_exception"] == {
            "request_id": "req-500",
            "client_ip": "203.0.113.9",
        }
