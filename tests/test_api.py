from fastapi.testclient import TestClient

from resource_ledger.auth import SESSION_COOKIE
from resource_ledger.constants import Role


def test_health(client: TestClient) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_login_sets_session(client: TestClient, password: str) -> None:
    response = client.post("/auth/login", json={"username": "hr-user", "password": password})
    assert response.status_code == 200, response.text
    body = response.json()
    assert body["user"]["username"] == "hr-user"
    assert body["user"]["role"] == "hr"
    assert SESSION_COOKIE in response.cookies

    # the cookie alone authenticates follow-up requests
    response = client.get("/auth/me")
    assert response.status_code == 200
    assert response.json()["fullName"] == "Hr User"

    # bearer token works as well
    client.cookies.clear()
    response = client.get("/auth/me", headers={"Authorization": f"Bearer {body['token']}"})
    assert response.status_code == 200


def test_login_rejects_bad_password(client: TestClient) -> None:
    response = client.post("/auth/login", json={"username": "hr-user", "password": "nope"})
    assert response.status_code == 401


def test_requests_without_session_are_rejected(client: TestClient) -> None:
    assert client.get("/resources").status_code == 401
    assert client.get("/resources", headers={"Authorization": "Bearer 1:1.forged"}).status_code == 401
    response = client.post("/movements", json={"resourceId": 1, "movementType": "ENTRY", "quantity": 1})
    assert response.status_code == 401


def test_resource_and_movement_flow(client: TestClient, auth_headers) -> None:
    hr = auth_headers(Role.HR)
    employee = auth_headers(Role.EMPLOYEE)

    # department
    response = client.post("/departments", json={"name": "Engineering"}, headers=hr)
    assert response.status_code == 201, response.text
    department_id = response.json()["id"]

    # resource
    payload = {"name": "Capacitación Anual", "initialBalance": 10, "departmentId": department_id}
    response = client.post("/resources", json=payload, headers=hr)
    assert response.status_code == 201, response.text
    resource = response.json()
    assert resource["slug"] == "capacitacion-anual"
    assert resource["initialBalance"] == 10
    assert resource["currentBalance"] == 10
    assert resource["department"]["name"] == "Engineering"
    assert resource["createdBy"]["username"] == "hr-user"
    assert resource["movementsCount"] == 0

    # entry, exit and adjustment
    for movement_type, quantity, expected in [("ENTRY", 5, 15), ("EXIT", 3, 12), ("ADJUSTMENT", -2, 10)]:
        response = client.post(
            "/movements",
            json={"resourceId": resource["id"], "movementType": movement_type, "quantity": quantity},
            headers=employee,
        )
        assert response.status_code == 201, response.text
        receipt = response.json()
        assert receipt["resource"]["currentBalance"] == expected
        assert receipt["movement"]["movementType"] == movement_type
        assert receipt["movement"]["performedBy"]["username"] == "employee-user"

    # detail reflects the history
    response = client.get(f"/resources/{resource['id']}", headers=employee)
    assert response.status_code == 200
    assert response.json()["movementsCount"] == 3
    assert response.json()["currentBalance"] == 10

    # balance series starts at the initial balance
    response = client.get(f"/resources/{resource['id']}/series", headers=employee)
    assert response.status_code == 200
    assert [point["balance"] for point in response.json()] == [10, 15, 12, 10]
    assert response.json()[0]["label"] == "initial"

    # totals and integrity
    totals = client.get(f"/resources/{resource['id']}/totals", headers=employee).json()
    assert totals == {"entries": 5, "exits": 3, "adjustments": -2, "count": 3}
    integrity = client.get(f"/resources/{resource['id']}/integrity", headers=employee).json()
    assert integrity["consistent"] is True
    assert integrity["movementCount"] == 3


def test_invalid_movement_is_a_bad_request(client: TestClient, auth_headers) -> None:
    hr = auth_headers(Role.HR)
    resource = client.post("/resources", json={"name": "Vacation Days", "initialBalance": 10}, headers=hr).json()

    response = client.post(
        "/movements",
        json={"resourceId": resource["id"], "movementType": "EXIT", "quantity": -1},
        headers=hr,
    )
    assert response.status_code == 400
    body = response.json()
    assert body["code"] == "validation_error"
    assert "quantity" in body["details"]

    # schema level failures use the same envelope
    response = client.post(
        "/movements",
        json={"resourceId": resource["id"], "movementType": "TRANSFER", "quantity": 1},
        headers=hr,
    )
    assert response.status_code == 400
    assert "movementType" in response.json()["details"]

    response = client.get(f"/resources/{resource['id']}", headers=hr)
    assert response.json()["currentBalance"] == 10


def test_permission_errors(client: TestClient, auth_headers) -> None:
    resource = client.post(
        "/resources", json={"name": "Vacation Days", "initialBalance": 10}, headers=auth_headers(Role.ADMIN)
    ).json()

    response = client.post(
        "/resources", json={"name": "Petty Cash", "initialBalance": 1}, headers=auth_headers(Role.MANAGER)
    )
    assert response.status_code == 403
    assert response.json()["code"] == "permission_denied"

    response = client.post(
        "/movements",
        json={"resourceId": resource["id"], "movementType": "ENTRY", "quantity": 1},
        headers=auth_headers(Role.FINANCE),
    )
    assert response.status_code == 403

    # read-only roles can still look
    response = client.get("/resources", headers=auth_headers(Role.CANDIDATE))
    assert response.status_code == 200
    assert [item["name"] for item in response.json()] == ["Vacation Days"]


def test_missing_resources_and_conflicts(client: TestClient, auth_headers) -> None:
    hr = auth_headers(Role.HR)
    assert client.get("/resources/999", headers=hr).status_code == 404
    response = client.post("/movements", json={"resourceId": 999, "movementType": "ENTRY", "quantity": 1}, headers=hr)
    assert response.status_code == 404

    assert client.post("/resources", json={"name": "Laptops", "initialBalance": 3}, headers=hr).status_code == 201
    response = client.post("/resources", json={"name": "LAPTOPS", "initialBalance": 3}, headers=hr)
    assert response.status_code == 409
    assert response.json()["details"] == {"slug": ["A resource with slug 'laptops' already exists"]}


def test_movement_pagination(client: TestClient, auth_headers) -> None:
    hr = auth_headers(Role.HR)
    resource = client.post("/resources", json={"name": "Overtime", "initialBalance": 0}, headers=hr).json()
    for quantity in range(1, 11):
        response = client.post(
            "/movements",
            json={"resourceId": resource["id"], "movementType": "ENTRY", "quantity": quantity},
            headers=hr,
        )
        assert response.status_code == 201

    response = client.get("/movements", params={"resourceId": resource["id"]}, headers=hr)
    assert response.status_code == 200
    page = response.json()
    assert page["total"] == 10
    assert page["page"] == 1
    assert page["pageSize"] == 8
    assert [item["quantity"] for item in page["items"]] == [10, 9, 8, 7, 6, 5, 4, 3]

    response = client.get("/movements", params={"resourceId": resource["id"], "page": 2}, headers=hr)
    assert [item["quantity"] for item in response.json()["items"]] == [2, 1]

    response = client.get("/movements", params={"resourceId": resource["id"], "pageSize": 1000}, headers=hr)
    assert response.json()["pageSize"] == 100
    assert len(response.json()["items"]) == 10

    response = client.get("/movements", params={"resourceId": resource["id"], "page": 0}, headers=hr)
    assert response.status_code == 400


def test_listing_filters_and_summary(client: TestClient, auth_headers) -> None:
    admin = auth_headers(Role.ADMIN)
    client.post("/resources", json={"name": "Training Budget", "initialBalance": 100}, headers=admin)
    client.post("/resources", json={"name": "Vacation Days", "initialBalance": 30, "status": "paused"}, headers=admin)

    response = client.get("/resources", params={"status": "paused"}, headers=admin)
    assert [item["name"] for item in response.json()] == ["Vacation Days"]

    response = client.get("/resources", params={"q": "train"}, headers=admin)
    assert [item["slug"] for item in response.json()] == ["training-budget"]

    summary = client.get("/resources/summary", headers=admin).json()
    assert summary == {"count": 2, "totalInitial": 130, "totalCurrent": 130, "variance": 0}


def test_logout_clears_cookie(client: TestClient, password: str) -> None:
    client.post("/auth/login", json={"username": "employee-user", "password": password})
    assert client.get("/auth/me").status_code == 200

    response = client.post("/auth/logout")
    assert response.status_code == 204
    assert client.get("/auth/me").status_code == 401


def test_departments(client: TestClient, auth_headers) -> None:
    hr = auth_headers(Role.HR)
    assert client.post("/departments", json={"name": "Sales"}, headers=hr).status_code == 201
    assert client.post("/departments", json={"name": "Engineering"}, headers=hr).status_code == 201
    assert client.post("/departments", json={"name": "Sales"}, headers=hr).status_code == 409
    assert client.post("/departments", json={"name": "Legal"}, headers=auth_headers(Role.EMPLOYEE)).status_code == 403

    response = client.get("/departments", headers=auth_headers(Role.FINANCE))
    assert response.status_code == 200
    assert [item["name"] for item in response.json()] == ["Engineering", "Sales"]


def test_out_of_range_amounts_are_bad_requests(client: TestClient, auth_headers) -> None:
    hr = auth_headers(Role.HR)

    response = client.post("/resources", json={"name": "Huge", "initialBalance": 1e30}, headers=hr)
    assert response.status_code == 400, response.text
    assert "initialBalance" in response.json()["details"]

    resource = client.post("/resources", json={"name": "Modest", "initialBalance": 5}, headers=hr).json()
    response = client.post(
        "/movements",
        json={"resourceId": resource["id"], "movementType": "ENTRY", "quantity": 1e30},
        headers=hr,
    )
    assert response.status_code == 400, response.text
    assert "quantity" in response.json()["details"]

    response = client.post(
        "/movements",
        json={"resourceId": resource["id"], "movementType": "ENTRY", "quantity": "lots"},
        headers=hr,
    )
    assert response.status_code == 400
    assert response.json()["code"] == "validation_error"
