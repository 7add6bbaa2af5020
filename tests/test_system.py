import uuid

from staydesk.core.security import create_access_token


def test_root(client):
    response = client.get("/")

    assert response.status_code == 200
    assert response.json()["app_name"] == "StayDesk API"


def test_version(client):
    response = client.get("/api/version")

    assert response.json()["success"] is True


def test_validation_errors_are_422(client):
    response = client.post("/api/reservations/", json={"property_id": "not-a-uuid"})

    assert response.status_code == 422
    assert response.json()["detail"] == "Validation error"


def test_token_for_unknown_user_is_401(client, make_property, make_reservation):
    from datetime import date

    prop = make_property()
    reservation = make_reservation(prop, date(2024, 1, 1), date(2024, 1, 2))
    token = create_access_token(str(uuid.uuid4()))

    response = client.delete(
        f"/api/reservations/{reservation.id}", headers={"Authorization": f"Bearer {token}"}
    )

    assert response.status_code == 401


def test_garbage_token_is_401(client):
    response = client.post(
        "/api/reservations/",
        json={
            "property_id": str(uuid.uuid4()),
            "start_date": "2024-01-01",
            "end_date": "2024-01-02",
            "total_price": 1,
        },
        headers={"Authorization": "Bearer not-a-jwt"},
    )

    assert response.status_code == 401
