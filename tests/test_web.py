def test_index_renders_form(client):
    response = client.get("/")
    assert response.status_code == 200
    body = response.get_data(as_text=True)
    assert "EMI Calculator" in body
    assert "schedule-table" not in body


def test_index_post_shows_schedule(client):
    response = client.post("/", data={"principal": "100000", "rate": "12", "tenure": "12", "action": "run"})
    body = response.get_data(as_text=True)
    assert response.status_code == 200
    assert "₹8,885" in body
    assert "schedule-table" in body
    assert "Enter valid loan details" not in body


def test_index_post_invalid_shows_neutral_state(client):
    response = client.post("/", data={"principal": "0", "rate": "12", "tenure": "12"})
    body = response.get_data(as_text=True)
    assert response.status_code == 200
    assert "Enter valid loan details" in body
    assert "schedule-table" not in body


def test_index_post_save_lists_quote(client):
    client.post(
        "/",
        data={"principal": "500000", "rate": "10.5", "tenure": "5", "tenure_unit": "years",
              "action": "save", "scenario_name": "Bank A"},
    )
    body = client.get("/").get_data(as_text=True)
    assert "Bank A" in body
    assert "60 months" in body


def test_api_emi(client):
    response = client.post("/api/emi", json={"principal": 100000, "rate": 12, "tenure": 12})
    assert response.status_code == 200
    data = response.get_json()
    assert data["installment"] == 8885.0
    assert data["summary"]["total_payable"] == 106620.0
    assert len(data["schedule"]) == 12
    assert data["schedule"][0] == {
        "period": 1,
        "due_date": None,
        "installment": 8885.0,
        "principal": 7885.0,
        "interest": 1000.0,
        "opening_balance": 100000.0,
        "closing_balance": 92115.0,
    }


def test_api_emi_accepts_years(client):
    response = client.post("/api/emi", json={"principal": "1,00,000", "rate": "0", "tenure": 1, "tenure_unit": "years"})
    assert response.status_code == 200
    assert response.get_json()["summary"]["tenure_months"] == 12


def test_api_emi_rejects_invalid_details(client):
    for payload in (
        {"principal": -1, "rate": 12, "tenure": 12},
        {"principal": 100000, "rate": "", "tenure": 12},
        {"principal": 100000, "rate": 12},
        {},
    ):
        response = client.post("/api/emi", json=payload)
        assert response.status_code == 400
        assert response.get_json()["message"] == "Enter valid loan details"


def test_api_emi_rejects_non_string_tenure_unit(client):
    response = client.post("/api/emi", json={"principal": 100000, "rate": 12, "tenure": 12, "tenure_unit": 5})
    assert response.status_code == 400
    data = response.get_json()
    assert data["message"] == "Enter valid loan details"
    assert data["error"].startswith("tenure_unit")


def test_api_emi_rejects_tenure_beyond_fifty_years(client):
    response = client.post("/api/emi", json={"principal": 100000, "rate": 1200, "tenure": 4000000})
    assert response.status_code == 400


def test_api_emi_rejects_non_json(client):
    response = client.post("/api/emi", data="not json", content_type="text/plain")
    assert response.status_code == 400


def test_api_restructure_preview(client):
    response = client.post(
        "/api/restructure/preview",
        json={"outstanding_principal": 300000, "interest_rate": 12, "remaining_months": 24, "new_interest_rate": 0},
    )
    assert response.status_code == 200
    data = response.get_json()
    assert data["proposed"]["emi_amount"] == 12500.0
    assert data["proposed"]["interest_rate"] == 0.0
    assert data["comparison"]["emi_difference"] < 0


def test_api_restructure_preview_requires_change(client):
    response = client.post(
        "/api/restructure/preview",
        json={"outstanding_principal": 300000, "interest_rate": 12, "remaining_months": 24},
    )
    assert response.status_code == 400


def test_api_scenarios_roundtrip(client):
    assert client.get("/api/scenarios").get_json() == []
    created = client.post("/api/scenarios", json={"name": "Bank A", "principal": 100000, "rate": 12, "tenure": 12})
    assert created.status_code == 201
    scenario_id = created.get_json()["id"]
    listed = client.get("/api/scenarios").get_json()
    assert [s["id"] for s in listed] == [scenario_id]
    assert listed[0]["summary"]["installment"] == 8885.0
    assert client.delete(f"/api/scenarios/{scenario_id}").status_code == 204
    assert client.delete(f"/api/scenarios/{scenario_id}").status_code == 404


def test_api_scenarios_are_capped(client):
    for i in range(5):
        client.post("/api/scenarios", json={"name": f"Q{i}", "principal": 100000, "rate": 12, "tenure": 12})
    names = [s["name"] for s in client.get("/api/scenarios").get_json()]
    assert names == ["Q2", "Q3", "Q4"]


def test_scenarios_are_per_session(app, client):
    client.post("/api/scenarios", json={"principal": 100000, "rate": 12, "tenure": 12})
    other = app.test_client()
    assert other.get("/api/scenarios").get_json() == []


def test_form_remove_and_clear(client):
    client.post("/api/scenarios", json={"name": "A", "principal": 100000, "rate": 12, "tenure": 12})
    client.post("/api/scenarios", json={"name": "B", "principal": 100000, "rate": 12, "tenure": 12})
    first = client.get("/api/scenarios").get_json()[0]["id"]
    response = client.post("/scenarios/remove", data={"scenario_id": first})
    assert response.status_code == 302
    assert [s["name"] for s in client.get("/api/scenarios").get_json()] == ["B"]
    client.post("/scenarios/clear")
    assert client.get("/api/scenarios").get_json() == []
