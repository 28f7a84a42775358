"""
Tests for the upload service endpoints.
"""

import io

import pytest
from fastapi.testclient import TestClient
from openpyxl import Workbook

import api.main
from api.main import app
from core.config import AnalyticsConfig
from core.session import load_session

AUTH = {"Authorization": "tok"}
CSV_BYTES = b"Region,Sales\nA,10\nB,5\n"


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


def xlsx_bytes(rows):
    wb = Workbook()
    ws = wb.active
    for row in rows:
        ws.append(row)
    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()


def upload(client, name="sales.csv", content=CSV_BYTES, headers=AUTH):
    return client.post("/api/uploads", files={"file": (name, content)}, headers=headers)


class TestCreateUpload:
    def test_root(self, client):
        res = client.get("/")
        assert res.status_code == 200
        assert res.text == "API is running."

    def test_csv_upload(self, client):
        res = upload(client)
        assert res.status_code == 201
        body = res.json()
        assert body["message"] == "Upload saved"
        assert body["upload"]["fileName"] == "sales.csv"
        assert body["upload"]["rowCount"] == 3

        detail = client.get(f"/api/uploads/{body['upload']['id']}", headers=AUTH).json()
        assert detail["data"] == [["Region", "Sales"], ["A", "10"], ["B", "5"]]

    def test_xlsx_upload_keeps_numbers(self, client):
        content = xlsx_bytes([["Region", "Sales"], ["A", 10], ["B", 5.5], ["C"]])
        res = upload(client, name="sales.xlsx", content=content)
        assert res.status_code == 201
        detail = client.get(f"/api/uploads/{res.json()['upload']['id']}", headers=AUTH).json()
        assert detail["data"] == [["Region", "Sales"], ["A", 10], ["B", 5.5], ["C"]]

    def test_token_required(self, client):
        res = upload(client, headers={})
        assert res.status_code == 403
        assert res.json()["detail"] == "No token provided"

    def test_no_file(self, client):
        res = client.post("/api/uploads", headers=AUTH)
        assert res.status_code == 400
        assert res.json()["detail"] == "No file uploaded"

    @pytest.mark.parametrize("name,content", [
        ("notes.txt", b"hello"),
        ("sales.csv", b""),
        ("broken.xlsx", b"not a workbook"),
    ])
    def test_rejected_files(self, client, name, content):
        assert upload(client, name=name, content=content).status_code == 400

    def test_size_limit(self, client, monkeypatch):
        monkeypatch.setattr(api.main, "config", AnalyticsConfig(max_upload_bytes=8))
        res = upload(client)
        assert res.status_code == 400
        assert "8 byte limit" in res.json()["detail"]


class TestReadAndDelete:
    def test_list_is_scoped_to_owner(self, client):
        upload(client)
        upload(client, headers={"Authorization": "other"})
        res = client.get("/api/uploads", headers=AUTH)
        assert res.status_code == 200
        assert [u["fileName"] for u in res.json()] == ["sales.csv"]

    def test_other_owner_cannot_read(self, client):
        upload_id = upload(client).json()["upload"]["id"]
        assert client.get(f"/api/uploads/{upload_id}", headers={"Authorization": "other"}).status_code == 404

    def test_unknown_upload(self, client):
        assert client.get("/api/uploads/missing", headers=AUTH).status_code == 404

    def test_delete(self, client):
        upload_id = upload(client).json()["upload"]["id"]
        res = client.delete(f"/api/uploads/{upload_id}", headers=AUTH)
        assert res.json() == {"message": "Upload deleted"}
        assert client.get(f"/api/uploads/{upload_id}", headers=AUTH).status_code == 404
        assert client.delete(f"/api/uploads/{upload_id}", headers=AUTH).status_code == 404


def test_dashboard_session_over_an_uploaded_sheet(client):
    content = xlsx_bytes([["Monthly report"], ["Region", "Sales"], ["North", 10], ["North", 20], ["South", 5]])
    upload_id = upload(client, name="report.xlsx", content=content).json()["upload"]["id"]

    session = load_session(upload_id, "tok", client=client)
    assert session.file_name == "report.xlsx"
    assert session.set_header_row("custom", "2")
    session.auto_select_axes()
    assert (session.params.x_axis, session.params.y_axis) == ("Region", "Sales")
    assert session.get_chart_data()["datasets"][0]["data"] == [15.0, 5.0]
    assert session.get_highlight_summary() == "Highest average Sales is 15.00 for North in entire dataset."
