import pytest
from fastapi.testclient import TestClient

from api import create_app
from library import Library


def test_get_books(client):
    response = client.get("/books")
    assert response.status_code == 200
    books = response.json()
    assert [b["id"] for b in books] == ["1", "2", "3", "4"]
    assert [b["quantity"] for b in books] == [2, 20, 30, 40]
    assert set(books[0]) == {"id", "title", "author", "quantity"}


def test_responses_are_indented(client):
    response = client.get("/books/1")
    assert response.text.startswith('{\n    "id": "1"')


def test_create_book(client):
    payload = {"id": "5", "title": "Channels", "author": "Mr. Channel", "quantity": 3}
    response = client.post("/books", json=payload)
    assert response.status_code == 201
    assert response.json() == payload

    books = client.get("/books").json()
    assert [b["id"] for b in books] == ["1", "2", "3", "4", "5"]


def test_create_allows_duplicate_ids(client):
    payload = {"id": "1", "title": "Impostor", "author": "Anon", "quantity": 1}
    assert client.post("/books", json=payload).status_code == 201

    ids = [b["id"] for b in client.get("/books").json()]
    assert ids.count("1") == 2
    assert client.get("/books/1").json()["title"] == "Golang pointers"


def test_create_missing_fields_use_zero_values(client):
    response = client.post("/books", json={"title": "Untitled"})
    assert response.status_code == 201
    assert response.json() == {"id": "", "title": "Untitled", "author": "", "quantity": 0}


@pytest.mark.parametrize(
    "payload",
    [
        {"id": "6", "title": "T", "author": "A", "quantity": "3"},
        {"id": "6", "title": "T", "author": "A", "quantity": 2.5},
        {"id": 6, "title": "T", "author": "A", "quantity": 1},
        ["not", "an", "object"],
    ],
)
def test_create_rejects_malformed_payload(client, payload):
    response = client.post("/books", json=payload)
    assert response.status_code == 400
    body = response.json()
    assert body["message"] == "invalid book payload"
    assert body["errors"]
    assert len(client.get("/books").json()) == 4


def test_create_rejects_invalid_json(client):
    response = client.post("/books", content=b"{not json", headers={"Content-Type": "application/json"})
    assert response.status_code == 400
    assert len(client.get("/books").json()) == 4


def test_create_matches_keys_case_insensitively(client):
    response = client.post("/books", json={"ID": "8", "Title": "T", "AUTHOR": "A", "Quantity": 3})
    assert response.status_code == 201
    assert response.json() == {"id": "8", "title": "T", "author": "A", "quantity": 3}


def test_create_null_fields_keep_zero_values(client):
    response = client.post("/books", json={"id": "9", "title": None, "author": "A", "quantity": None})
    assert response.status_code == 201
    assert response.json() == {"id": "9", "title": "", "author": "A", "quantity": 0}


@pytest.mark.parametrize("quantity", [2 ** 63, -(2 ** 63) - 1, 99999999999999999999])
def test_create_rejects_quantity_outside_int64(client, quantity):
    response = client.post("/books", json={"id": "10", "title": "T", "author": "A", "quantity": quantity})
    assert response.status_code == 400
    assert len(client.get("/books").json()) == 4


def test_create_accepts_int64_bounds(client):
    response = client.post("/books", json={"id": "11", "title": "T", "author": "A", "quantity": 2 ** 63 - 1})
    assert response.status_code == 201
    assert response.json()["quantity"] == 2 ** 63 - 1


def test_get_book_by_id(client):
    response = client.get("/books/3")
    assert response.status_code == 200
    assert response.json()["title"] == "Golang routers"


def test_get_book_not_found(client):
    response = client.get("/books/999")
    assert response.status_code == 404
    assert response.json() == {"message": "Book not found"}


def test_checkout(client):
    response = client.patch("/checkout", params={"id": "1"})
    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "success"
    assert body["data"]["id"] == "1"
    assert body["data"]["quantity"] == 1


def test_checkout_until_unavailable(client):
    assert client.patch("/checkout", params={"id": "1"}).status_code == 200
    assert client.patch("/checkout", params={"id": "1"}).status_code == 200

    response = client.patch("/checkout", params={"id": "1"})
    assert response.status_code == 400
    assert response.json() == {"message": "book is not available at the moment, check in again later"}
    assert client.get("/books/1").json()["quantity"] == 0


def test_checkout_missing_id(client):
    response = client.patch("/checkout")
    assert response.status_code == 400
    assert response.json() == {"message": "missing query parameter 'id'"}


def test_checkout_unknown_id(client):
    response = client.patch("/checkout", params={"id": "999"})
    assert response.status_code == 404
    assert response.json() == {"message": "book not found"}


def test_checkout_empty_id_is_looked_up(client):
    response = client.patch("/checkout?id=")
    assert response.status_code == 404


def test_repeated_id_uses_first_value(client):
    response = client.patch("/checkout?id=1&id=999")
    assert response.status_code == 200
    assert response.json()["data"]["quantity"] == 1

    response = client.patch("/return?id=2&id=999")
    assert response.status_code == 200
    assert response.json()["quantity"] == 21


def test_return(client):
    response = client.patch("/return", params={"id": "2"})
    assert response.status_code == 200
    assert response.json() == {"id": "2", "title": "Goroutines", "author": "Mr. Goroutine", "quantity": 21}


def test_return_has_no_upper_bound(client):
    for expected in (3, 4, 5):
        assert client.patch("/return", params={"id": "1"}).json()["quantity"] == expected


def test_return_missing_and_unknown_id(client):
    response = client.patch("/return")
    assert response.status_code == 400
    assert response.json() == {"message": "missing query parameter 'id'"}

    response = client.patch("/return", params={"id": "999"})
    assert response.status_code == 404
    assert response.json() == {"message": "book not found"}


def test_checkout_and_return_round_trip_quantity(client):
    client.patch("/checkout", params={"id": "4"})
    client.patch("/return", params={"id": "4"})
    assert client.get("/books/4").json()["quantity"] == 40


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["total_books"] == 4
    assert "timestamp" in body


def test_unknown_route_uses_message_envelope(client):
    response = client.get("/nope")
    assert response.status_code == 404
    assert "message" in response.json()


def test_apps_do_not_share_state():
    first = TestClient(create_app(Library()))
    second = TestClient(create_app(Library(seed=False)))

    first.post("/books", json={"id": "9", "title": "T", "author": "A", "quantity": 1})
    assert len(first.get("/books").json()) == 5
    assert second.get("/books").json() == []


def test_unhandled_errors_return_500(lib, monkeypatch):
    def boom():
        raise RuntimeError("boom")

    monkeypatch.setattr(lib, "list_books", boom)
    test_client = TestClient(create_app(lib), raise_server_exceptions=False)
    response = test_client.get("/books")
    assert response.status_code == 500
    assert response.json() == {"message": "internal server error"}
