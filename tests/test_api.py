"""
Tests for the HTTP and WebSocket API
"""

import io
import pytest
import pandas as pd
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from main import app
from seatplan.core.config import settings
from seatplan.core.db import Base, get_db
from seatplan.services.plan_store import plan_store
from seatplan.utils.exceptions import InvalidSnapshot, MalformedInput, MissingRequiredColumn, PlusOneNotAllowed
from seatplan.utils.security import rate_limiter

# Test database setup
SQLALCHEMY_DATABASE_URL = "sqlite:///./test_api.db"
engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

ADMIN_HEADERS = {"Authorization": f"Bearer {settings.ADMIN_TOKEN}"}

GUEST_CSV = (
    "FirstName,LastName,AdditionalGuests,PartyID\n"
    "Alice,Smith,1,P1\n"
    "Bob,Jones,0,P2\n"
)

def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()

@pytest.fixture
def client():
    """Test client on a fresh database and empty plan store"""
    Base.metadata.create_all(bind=engine)
    app.dependency_overrides[get_db] = override_get_db
    plan_store.clear()
    rate_limiter.reset()
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
        plan_store.clear()
        Base.metadata.drop_all(bind=engine)

@pytest.fixture
def plan_code(client):
    """Public code of a newly created plan"""
    response = client.post("/admin/plans", json={"name": "Summer Gala"}, headers=ADMIN_HEADERS)
    assert response.status_code == 201
    return response.json()["data"]["public_code"]

@pytest.fixture
def loaded_plan(client, plan_code):
    """Plan with the sample guest list imported"""
    response = client.post(
        f"/admin/plans/{plan_code}/guests/import",
        files={"file": ("guests.csv", GUEST_CSV.encode("utf-8"), "text/csv")},
        headers=ADMIN_HEADERS
    )
    assert response.status_code == 200
    return plan_code

def add_table(client, plan_code, **kwargs):
    body = {"type": "table", "start_x": 0, "start_y": 0, "end_x": 100, "end_y": 50}
    body.update(kwargs)
    response = client.post(f"/admin/plans/{plan_code}/shapes", json=body, headers=ADMIN_HEADERS)
    assert response.status_code == 201
    return response.json()["data"]

def test_health_check(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}

def test_admin_routes_require_token(client):
    """Test admin endpoints reject missing or wrong tokens"""
    response = client.post("/admin/plans", json={"name": "X"})
    assert response.status_code in (401, 403)

    response = client.post("/admin/plans", json={"name": "X"}, headers={"Authorization": "Bearer wrong"})
    assert response.status_code == 401

def test_create_plan_and_get_details(client, plan_code):
    response = client.get(f"/admin/plans/{plan_code}", headers=ADMIN_HEADERS)
    assert response.status_code == 200

    data = response.json()["data"]
    assert data["name"] == "Summer Gala"
    assert data["total_guests"] == 0
    assert data["has_saved_snapshot"] is False

def test_unknown_plan_returns_error_envelope(client):
    response = client.get("/plans/NOPE")
    assert response.status_code == 404

    body = response.json()
    assert body["success"] is False
    assert body["error_code"] == "PLAN_NOT_FOUND"

def test_import_guest_list(client, loaded_plan):
    """Test an imported list shows up in the public plan state"""
    response = client.get(f"/plans/{loaded_plan}")
    assert response.status_code == 200

    state = response.json()["data"]
    assert [g["id"] for g in state["guests"]] == ["P1_Alice_Smith", "P1_Alice_Smith_plus1", "P2_Bob_Jones"]
    assert state["placedGuestIds"] == []
    assert state["shapes"] == []

def test_import_rejects_missing_columns(client, plan_code):
    response = client.post(
        f"/admin/plans/{plan_code}/guests/import",
        files={"file": ("guests.csv", b"Name,Table\nAlice,1\n", "text/csv")},
        headers=ADMIN_HEADERS
    )
    assert response.status_code == 422
    assert response.json()["error_code"] == "MISSING_REQUIRED_COLUMN"

def test_import_rejects_header_only_file(client, plan_code):
    """Test a guest list without data rows is unprocessable"""
    response = client.post(
        f"/admin/plans/{plan_code}/guests/import",
        files={"file": ("guests.csv", b"FirstName,LastName\n", "text/csv")},
        headers=ADMIN_HEADERS
    )
    assert response.status_code == 422
    assert response.json()["error_code"] == "MALFORMED_INPUT"

def test_validation_errors_are_422():
    for error in (MalformedInput, MissingRequiredColumn, InvalidSnapshot, PlusOneNotAllowed):
        assert error.status_code == 422

def test_merge_requires_loaded_list(client, plan_code):
    response = client.post(
        f"/admin/plans/{plan_code}/guests/merge",
        files={"file": ("guests.csv", GUEST_CSV.encode("utf-8"), "text/csv")},
        headers=ADMIN_HEADERS
    )
    assert response.status_code == 409
    assert response.json()["error_code"] == "NOTHING_TO_MERGE_INTO"

def test_merge_keeps_seated_guests(client, loaded_plan):
    """Test a merged list keeps seats for matching names"""
    table = add_table(client, loaded_plan)
    client.post(f"/admin/plans/{loaded_plan}/guests/P1_Alice_Smith/seat", json={"x": 50, "y": 25}, headers=ADMIN_HEADERS)

    updated = "FirstName,LastName,PartyID\nAlice,Smith,FAMILY\nCarol,King,FAMILY\n"
    response = client.post(
        f"/admin/plans/{loaded_plan}/guests/merge",
        files={"file": ("guests.csv", updated.encode("utf-8"), "text/csv")},
        headers=ADMIN_HEADERS
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["matched"] == 1
    assert data["added"] == 1

    tables = client.get(f"/plans/{loaded_plan}/tables").json()["data"]["tables"]
    assert tables[0]["shape_id"] == table["id"]
    assert tables[0]["guest_ids"] == ["FAMILY_Alice_Smith"]

def test_seat_and_move_table(client, loaded_plan):
    """Test seating a guest and moving the table carries the guest along"""
    table = add_table(client, loaded_plan)

    response = client.post(
        f"/admin/plans/{loaded_plan}/guests/P2_Bob_Jones/seat",
        json={"x": 50, "y": 25},
        headers=ADMIN_HEADERS
    )
    assert response.status_code == 200
    assert response.json()["data"]["table_id"] == table["id"]

    response = client.put(
        f"/admin/plans/{loaded_plan}/shapes/{table['id']}/position",
        json={"x": 100, "y": 100},
        headers=ADMIN_HEADERS
    )
    assert response.status_code == 200
    assert response.json()["data"]["seatedCount"] == 1

    state = client.get(f"/plans/{loaded_plan}").json()["data"]
    bob = next(g for g in state["guests"] if g["id"] == "P2_Bob_Jones")
    assert (bob["x"], bob["y"]) == (150, 125)

def test_seat_unknown_guest(client, loaded_plan):
    response = client.post(
        f"/admin/plans/{loaded_plan}/guests/nobody/seat",
        json={"x": 0, "y": 0},
        headers=ADMIN_HEADERS
    )
    assert response.status_code == 404
    assert response.json()["error_code"] == "UNKNOWN_GUEST"

def test_update_table_and_overfull_status(client, loaded_plan):
    table = add_table(client, loaded_plan)
    response = client.patch(
        f"/admin/plans/{loaded_plan}/shapes/{table['id']}",
        json={"label": "Head Table", "capacity": "1"},
        headers=ADMIN_HEADERS
    )
    assert response.json()["data"]["label"] == "Head Table"

    for guest_id, x in (("P1_Alice_Smith", 30), ("P2_Bob_Jones", 70)):
        client.post(f"/admin/plans/{loaded_plan}/guests/{guest_id}/seat", json={"x": x, "y": 25}, headers=ADMIN_HEADERS)

    data = client.get(f"/plans/{loaded_plan}/tables").json()["data"]
    assert data["overfull_count"] == 1
    assert data["tables"][0]["seated_count"] == 2

    legend = client.get(f"/plans/{loaded_plan}/legend").json()["data"]
    assert legend == [{"table": "Head Table", "guests": ["Alice Smith", "Bob Jones"]}]

def test_delete_shape_unseats_guests(client, loaded_plan):
    table = add_table(client, loaded_plan)
    client.post(f"/admin/plans/{loaded_plan}/guests/P2_Bob_Jones/seat", json={"x": 50, "y": 25}, headers=ADMIN_HEADERS)

    response = client.delete(f"/admin/plans/{loaded_plan}/shapes/{table['id']}", headers=ADMIN_HEADERS)
    assert response.json()["data"]["unseated_guest_ids"] == ["P2_Bob_Jones"]

    state = client.get(f"/plans/{loaded_plan}").json()["data"]
    assert state["shapes"] == []
    assert state["placedGuestIds"] == []

def test_plus_one_endpoint(client, loaded_plan):
    response = client.post(
        f"/admin/plans/{loaded_plan}/guests/P2_Bob_Jones/plus-one",
        json={"name": "Dana White"},
        headers=ADMIN_HEADERS
    )
    assert response.status_code == 201
    assert response.json()["data"]["id"] == "P2_Bob_Jones_plus1"

    response = client.post(
        f"/admin/plans/{loaded_plan}/guests/P2_Bob_Jones/plus-one",
        json={"name": ""},
        headers=ADMIN_HEADERS
    )
    assert response.status_code == 200
    assert response.json()["data"] is None

    response = client.post(
        f"/admin/plans/{loaded_plan}/guests/P2_Bob_Jones_plus1/plus-one",
        json={"name": "Another"},
        headers=ADMIN_HEADERS
    )
    assert response.status_code == 422
    assert response.json()["error_code"] == "PLUS_ONE_NOT_ALLOWED"

def test_pointer_drag_moves_guest(client, loaded_plan):
    """Test pointer down/move/up drags a placed guest"""
    client.post(f"/admin/plans/{loaded_plan}/guests/P2_Bob_Jones/seat", json={"x": 300, "y": 300}, headers=ADMIN_HEADERS)

    response = client.post(f"/admin/plans/{loaded_plan}/pointer/down", json={"x": 302, "y": 300}, headers=ADMIN_HEADERS)
    assert response.json()["data"]["drag"]["targetId"] == "P2_Bob_Jones"

    client.post(f"/admin/plans/{loaded_plan}/pointer/move", json={"x": 402, "y": 310}, headers=ADMIN_HEADERS)
    response = client.post(f"/admin/plans/{loaded_plan}/pointer/up", headers=ADMIN_HEADERS)
    assert response.json()["data"]["drag"]["kind"] == "guest"

    state = client.get(f"/plans/{loaded_plan}").json()["data"]
    bob = next(g for g in state["guests"] if g["id"] == "P2_Bob_Jones")
    assert (bob["x"], bob["y"]) == (400, 310)

def test_mark_and_cancel_deletion(client, loaded_plan):
    """Test an item dropped on the trash can be restored before commit"""
    table = add_table(client, loaded_plan)

    response = client.post(
        f"/admin/plans/{loaded_plan}/deletion",
        json={"kind": "shape", "id": table["id"]},
        headers=ADMIN_HEADERS
    )
    assert response.status_code == 202
    assert response.json()["data"]["deleting_ids"] == [table["id"]]

    state = client.get(f"/plans/{loaded_plan}").json()["data"]
    assert state["deletingIds"] == [table["id"]]

    response = client.delete(f"/admin/plans/{loaded_plan}/deletion", headers=ADMIN_HEADERS)
    assert response.json()["data"]["cancelled"] is True

    state = client.get(f"/plans/{loaded_plan}").json()["data"]
    assert state["deletingIds"] == []
    assert len(state["shapes"]) == 1

def test_save_and_load_snapshot(client, loaded_plan):
    """Test a saved snapshot restores the same plan"""
    add_table(client, loaded_plan)
    client.post(f"/admin/plans/{loaded_plan}/guests/P1_Alice_Smith/seat", json={"x": 50, "y": 25}, headers=ADMIN_HEADERS)

    response = client.post(f"/admin/plans/{loaded_plan}/save", headers=ADMIN_HEADERS)
    assert response.status_code == 200
    assert "seating_plan.json" in response.headers["content-disposition"]
    snapshot = response.json()
    assert snapshot["version"] == 2
    assert len(snapshot["allGuests"]) == 3

    details = client.get(f"/admin/plans/{loaded_plan}", headers=ADMIN_HEADERS).json()["data"]
    assert details["has_saved_snapshot"] is True

    client.post(f"/admin/plans/{loaded_plan}/clear", headers=ADMIN_HEADERS)
    assert client.get(f"/plans/{loaded_plan}").json()["data"]["shapes"] == []

    response = client.post(
        f"/admin/plans/{loaded_plan}/load",
        files={"file": ("seating_plan.json", response.content, "application/json")},
        headers=ADMIN_HEADERS
    )
    assert response.status_code == 200
    assert response.json()["data"] == {"guest_count": 3, "shape_count": 1}

    state = client.get(f"/plans/{loaded_plan}").json()["data"]
    assert state["placedGuestIds"] == ["P1_Alice_Smith"]

def test_saved_snapshot_survives_restart(client, loaded_plan):
    """Test a plan evicted from memory comes back from its saved snapshot"""
    client.post(f"/admin/plans/{loaded_plan}/save", headers=ADMIN_HEADERS)
    plan_store.clear()

    state = client.get(f"/plans/{loaded_plan}").json()["data"]
    assert len(state["guests"]) == 3

def test_load_invalid_snapshot_keeps_plan(client, loaded_plan):
    response = client.post(
        f"/admin/plans/{loaded_plan}/load",
        files={"file": ("seating_plan.json", b"{not json", "application/json")},
        headers=ADMIN_HEADERS
    )
    assert response.status_code == 422
    assert response.json()["error_code"] == "INVALID_SNAPSHOT"

    state = client.get(f"/plans/{loaded_plan}").json()["data"]
    assert len(state["guests"]) == 3

def test_export_legend_workbook(client, loaded_plan):
    add_table(client, loaded_plan)
    client.post(f"/admin/plans/{loaded_plan}/guests/P2_Bob_Jones/seat", json={"x": 50, "y": 25}, headers=ADMIN_HEADERS)

    response = client.get(f"/admin/plans/{loaded_plan}/export/legend.xlsx", headers=ADMIN_HEADERS)
    assert response.status_code == 200

    sheets = pd.read_excel(io.BytesIO(response.content), sheet_name=None)
    assert list(sheets) == ["Seating Legend", "Guest List"]
    assert sheets["Seating Legend"]["Guest"].tolist() == ["Bob Jones"]
    assert len(sheets["Guest List"]) == 3

def test_download_templates(client):
    response = client.get("/template/guest_list.csv")
    assert response.status_code == 200
    assert response.content.decode("utf-8").startswith("FirstName,LastName,AdditionalGuests,PartyID")

    response = client.get("/template/guest_list.xlsx")
    assert response.status_code == 200

    response = client.get("/template/guest_list.pdf")
    assert response.status_code == 404

def test_delete_plan(client, plan_code):
    response = client.delete(f"/admin/plans/{plan_code}", headers=ADMIN_HEADERS)
    assert response.status_code == 200

    response = client.get(f"/plans/{plan_code}")
    assert response.status_code == 404

def test_public_rate_limit(client, plan_code, monkeypatch):
    monkeypatch.setattr(settings, "RATE_LIMIT_PER_MINUTE", 2)

    assert client.get(f"/plans/{plan_code}").status_code == 200
    assert client.get(f"/plans/{plan_code}").status_code == 200
    assert client.get(f"/plans/{plan_code}").status_code == 429

def test_websocket_connection(client, plan_code):
    """Test the live update socket greets and answers pings"""
    with client.websocket_connect(f"/ws/plans/{plan_code}") as websocket:
        welcome = websocket.receive_json()
        assert welcome["type"] == "connection"
        assert welcome["plan_code"] == plan_code

        websocket.send_json({"type": "ping", "timestamp": 123})
        assert websocket.receive_json() == {"type": "pong", "timestamp": 123}
