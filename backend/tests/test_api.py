"""Tests for the HTTP API."""

from io import BytesIO
from pathlib import Path
import shutil
import sys

import pandas as pd
import pytest
from fastapi.testclient import TestClient

# Add backend to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from contact_merger.api.main import create_app

CSV_DATA = (
    "name,code,destination\n"
    "foo1,1,ami-54d2a63b\n"
    "foo1,1,ami-54d2a63c\n"
    "foo1,2,ami-54d2a63b\n"
    "bar1,m3.large,ami-54d2a63b\n"
)

SELECTORS = {
    "group_by_field": "name",
    "code_field": "code",
    "destination_field": "destination",
    "label_fields": ["code", "destination"],
    "variable_fields": ["name"],
}


@pytest.fixture
def client(tmp_path):
    """Client backed by a private copy of the bundled configs."""
    config_dir = tmp_path / "config"
    shutil.copytree(Path(__file__).parent.parent / "config", config_dir)
    return TestClient(create_app(config_dir))


class TestHealth:
    def test_health(self, client):
        r = client.get("/health")
        assert r.status_code == 200
        assert r.json()["status"] == "healthy"


class TestMerge:
    """Test merging inline records."""

    def test_merge_records(self, client):
        records = [dict(zip(["name", "code", "destination"], line.split(",")))
                   for line in CSV_DATA.splitlines()[1:]]

        r = client.post("/api/merge", json={"records": records, "selectors": SELECTORS})
        assert r.status_code == 200

        result = r.json()["result"]
        assert result["foo1"]["labels"] == ["1", "ami-54d2a63b", "ami-54d2a63c", "2"]
        assert result["foo1"]["destinations"] == [
            {"code": "1", "destination": "ami-54d2a63b"},
            {"code": "1", "destination": "ami-54d2a63c"},
        ]
        assert result["bar1"]["variables"] == {"name": "bar1"}

    def test_merge_empty(self, client):
        r = client.post("/api/merge", json={"records": [], "selectors": SELECTORS})
        assert r.status_code == 200
        assert r.json()["result"] == {}
        assert r.json()["report"]["warning_count"] == 0

    def test_merge_reports_blank_keys(self, client):
        records = [{"name": "  ", "code": "1", "destination": "x"}]
        r = client.post("/api/merge", json={"records": records, "selectors": SELECTORS})

        report = r.json()["report"]
        assert report["skipped_count"] == 1
        assert report["warnings"][0]["row_index"] == 0

    def test_null_arguments_rejected(self, client):
        r = client.post("/api/merge", json={"records": None, "selectors": None})
        assert r.status_code == 422
        assert "argument must not be null" in r.text

    def test_null_selector_rejected(self, client):
        selectors = dict(SELECTORS, group_by_field=None)
        r = client.post("/api/merge", json={"records": [], "selectors": selectors})
        assert r.status_code == 422
        assert "argument must not be null" in r.text


class TestMergeFile:
    """Test upload endpoints."""

    def upload(self, name="contacts.csv"):
        return {"file": (name, CSV_DATA.encode(), "text/csv")}

    def test_merge_file(self, client):
        r = client.post(
            "/api/merge/file", files=self.upload(), data={"profile": "Contacts"}
        )
        assert r.status_code == 200
        body = r.json()
        assert set(body["result"]) == {"foo1", "bar1"}
        assert body["report"]["profile_name"] == "Contacts"
        assert body["report"]["input_rows"] == 4

    def test_unknown_profile(self, client):
        r = client.post(
            "/api/merge/file", files=self.upload(), data={"profile": "Nope"}
        )
        assert r.status_code == 404

    def test_unsupported_file(self, client):
        r = client.post(
            "/api/merge/file",
            files={"file": ("contacts.txt", b"x", "text/plain")},
            data={"profile": "Contacts"},
        )
        assert r.status_code == 400

    def test_validate(self, client):
        r = client.post(
            "/api/merge/validate", files=self.upload(), data={"profile": "Agents"}
        )
        assert r.status_code == 200
        assert r.json()["valid"] is False
        assert r.json()["row_count"] == 4

    def test_validate_checks_every_sheet(self, client):
        buffer = BytesIO()
        with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
            pd.DataFrame(
                {"name": ["foo1"], "code": ["1"], "destination": ["ami-54d2a63b"]}
            ).to_excel(writer, sheet_name="June", index=False)
            pd.DataFrame(
                {"name": ["bar1", "baz1"], "code": ["2", "3"]}
            ).to_excel(writer, sheet_name="July", index=False)

        r = client.post(
            "/api/merge/validate",
            files={"file": ("contacts.xlsx", buffer.getvalue(), "application/octet-stream")},
            data={"profile": "Contacts"},
        )
        assert r.status_code == 200
        body = r.json()
        assert body["valid"] is False
        assert body["row_count"] == 3
        assert [s["sheet_name"] for s in body["sheets"]] == ["June", "July"]
        assert body["sheets"][0]["warnings"] == []
        # destination is both the destination field and a label field
        assert len(body["sheets"][1]["warnings"]) == 2
        assert all("'destination'" in w for w in body["sheets"][1]["warnings"])
        assert body["warnings"][0].startswith("July: ")

    def test_preview(self, client):
        r = client.post("/api/merge/preview", files=self.upload(), data={"max_rows": "2"})
        assert r.status_code == 200
        assert r.json()["detected_profile"] == "Contacts"
        assert len(r.json()["previews"][0]["preview_rows"]) == 2

    def test_download(self, client):
        r = client.post(
            "/api/merge/download", files=self.upload(), data={"profile": "Contacts"}
        )
        assert r.status_code == 200
        assert "Contacts - contacts.json" in r.headers["content-disposition"]
        assert list(r.json()) == ["bar1", "foo1"]


class TestProfileConfig:
    """Test profile management endpoints."""

    def test_list(self, client):
        r = client.get("/api/config/profiles")
        names = [p["name"] for p in r.json()["profiles"]]
        assert "Contacts" in names

    def test_create_get_delete(self, client):
        payload = {"profile": {"name": "Leads"}, "selectors": SELECTORS}

        assert client.post("/api/config/profiles", json=payload).status_code == 200
        assert client.post("/api/config/profiles", json=payload).status_code == 409

        r = client.get("/api/config/profiles/Leads")
        assert r.json()["selectors"]["group_by_field"] == "name"

        assert client.delete("/api/config/profiles/Leads").status_code == 200
        assert client.get("/api/config/profiles/Leads").status_code == 404

    def test_invalid_profile(self, client):
        r = client.post("/api/config/profiles", json={"profile": {"name": "Bad"}})
        assert r.status_code == 400

    def test_update_global(self, client):
        r = client.put("/api/config/global", json={"logging": {"level": "debug"}})
        assert r.status_code == 200
        assert r.json()["config"]["logging"]["level"] == "DEBUG"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
