from tests.conftest import ADMIN_PASSWORD


def upload(client, headers, codes, batch_name="Batch A", speed="16mbps", filename="codes.csv", **extra):
    content = "\n".join(codes).encode("utf-8")
    data = {"batch_name": batch_name, "speed": speed}
    data.update(extra)
    return client.post(
        "/admin/uploads",
        headers=headers,
        data=data,
        files={"file": (filename, content, "text/csv")},
    )


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_login_roles(client):
    response = client.post("/auth/login", json={"password": ADMIN_PASSWORD})
    assert response.status_code == 200
    assert response.json()["role"] == "admin"
    assert response.json()["token_type"] == "bearer"

    assert client.post("/auth/login", json={"password": "wrong"}).status_code == 401
    assert client.post("/auth/login", json={"password": ""}).status_code == 400


def test_session_info(client, user_headers):
    response = client.get("/auth/session", headers=user_headers)

    assert response.status_code == 200
    assert response.json()["role"] == "user"


def test_endpoints_require_a_session(client):
    assert client.get("/codes/availability").status_code == 401
    assert client.get("/admin/dashboard").status_code == 401
    assert client.get("/codes/current", headers={"Authorization": "Bearer not-a-token"}).status_code == 401


def test_admin_endpoints_reject_users(client, user_headers):
    assert client.get("/admin/dashboard", headers=user_headers).status_code == 403
    assert upload(client, user_headers, ["A"]).status_code == 403


def test_upload_and_preview(client, admin_headers):
    preview = client.post(
        "/admin/uploads/preview",
        headers=admin_headers,
        files={"file": ("codes.txt", b"Code\nunused  ABC123\nXYZ999\nabc,unused\nXYZ999\n", "text/plain")},
    )
    assert preview.status_code == 200
    assert preview.json()["codes_found"] == 3

    response = upload(client, admin_headers, ["Code", "unused  ABC123", "XYZ999", "abc,unused", "XYZ999"])
    assert response.status_code == 200
    body = response.json()
    assert body["inserted"] == 3
    assert body["speed"] == "16mbps"
    assert body["message"] == 'Successfully uploaded 3 codes to batch "Batch A"'

    batches = client.get("/admin/batches", headers=admin_headers).json()
    assert [(b["name"], b["code_count"]) for b in batches] == [("Batch A", 3)]


def test_upload_validation(client, admin_headers):
    assert upload(client, admin_headers, ["A"], batch_name="  ").status_code == 400
    assert upload(client, admin_headers, ["A"], speed="100mbps").status_code == 422
    assert upload(client, admin_headers, ["Code", "unused"]).status_code == 422

    assert upload(client, admin_headers, ["A"]).status_code == 200
    assert upload(client, admin_headers, ["B"], batch_name="batch a").status_code == 409
    assert upload(client, admin_headers, ["B"], batch_name="batch a", allow_duplicate_name="true").status_code == 200


def test_request_and_accept(client, admin_headers, user_headers):
    upload(client, admin_headers, ["ONLY"], speed="20mbps")

    shown = client.post("/codes/request", headers=user_headers, json={"speed": "20mbps"}).json()
    assert shown["status"] == "code_shown"
    assert shown["code"] == "ONLY"
    assert shown["retries_left"] == 3
    assert client.get("/codes/current", headers=user_headers).json()["code"] == "ONLY"

    accepted = client.post("/codes/accept", headers=user_headers).json()
    assert accepted["status"] == "accepted"
    assert accepted["code"] == "ONLY"
    assert accepted["reset_after_seconds"] is not None

    assert client.get("/codes/current", headers=user_headers).json()["status"] == "idle"
    assert client.post("/codes/accept", headers=user_headers).status_code == 409

    dashboard = client.get("/admin/dashboard", headers=admin_headers).json()
    assert dashboard["codes_used"] == 1
    assert dashboard["success_rate"] == 100
    assert dashboard["counts"]["20mbps"] == 0


def test_reject_until_retry_limit(client, admin_headers, user_headers):
    upload(client, admin_headers, ["C1", "C2", "C3", "C4", "C5"])

    state = client.post("/codes/request", headers=user_headers, json={"speed": "16mbps"}).json()
    state = client.post("/codes/reject", headers=user_headers).json()
    assert state["status"] == "code_shown"
    assert state["retries_left"] == 2
    state = client.post("/codes/reject", headers=user_headers).json()
    state = client.post("/codes/reject", headers=user_headers).json()

    assert state["status"] == "retry_limit_reached"
    assert state["code"] is None
    assert state["message"] == "Maximum retries reached. Please contact administrator."

    tiers = {t["speed"]: t for t in client.get("/codes/availability", headers=user_headers).json()["tiers"]}
    assert tiers["16mbps"]["count"] == 2


def test_request_from_empty_tier(client, user_headers):
    response = client.post("/codes/request", headers=user_headers, json={"speed": "50mbps"})

    assert response.status_code == 200
    assert response.json()["status"] == "exhausted"
    assert response.json()["message"] == "No 50 Mbps codes available. Please contact the administrator."


def test_dismiss_and_logout(client, admin_headers, user_headers):
    upload(client, admin_headers, ["A", "B"])
    client.post("/codes/request", headers=user_headers, json={"speed": "16mbps"})

    assert client.post("/codes/dismiss", headers=user_headers).json()["status"] == "idle"

    client.post("/codes/request", headers=user_headers, json={"speed": "16mbps"})
    assert client.post("/auth/logout", headers=user_headers).status_code == 200
    assert client.get("/codes/current", headers=user_headers).json()["status"] == "idle"


def test_history_and_export(client, admin_headers, user_headers):
    assert client.get("/admin/history/export", headers=admin_headers).status_code == 404

    upload(client, admin_headers, ["H1"], batch_name="Lobby")
    client.post("/codes/request", headers=user_headers, json={"speed": "16mbps"})
    client.post("/codes/accept", headers=user_headers)

    history = client.get("/admin/history", headers=admin_headers, params={"search": "lobby"}).json()
    assert history["filtered"] == 1
    assert history["entries"][0]["code_value"] == "H1"
    assert history["counts"]["total"] == 1

    export = client.get("/admin/history/export", headers=admin_headers)
    assert export.status_code == 200
    assert export.headers["content-type"].startswith("text/csv")
    assert "attachment" in export.headers["content-disposition"]
    assert export.text.splitlines()[0] == "Code,Batch Name,Speed,Used On"


def test_clear_all_needs_both_confirmations(client, admin_headers):
    upload(client, admin_headers, ["A", "B"])

    assert client.post("/admin/clear-all", headers=admin_headers, json={"confirm": True}).status_code == 400
    assert client.get("/admin/dashboard", headers=admin_headers).json()["total_available"] == 2

    response = client.post("/admin/clear-all", headers=admin_headers, json={"confirm": True, "final_confirm": True})
    assert response.status_code == 200

    dashboard = client.get("/admin/dashboard", headers=admin_headers).json()
    assert dashboard["total_available"] == 0
    assert dashboard["total_uploaded"] == 0
    assert dashboard["batches"] == 0
