"""Tests for file reading, writing and profile detection."""

from io import BytesIO
import json
from pathlib import Path
import sys

import pytest
import yaml

# Add backend to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from contact_merger.core.aggregator import ContactAggregator
from contact_merger.core.config_models import MergeProfile, OutputConfig, Selectors
from contact_merger.io.file_reader import FileReader
from contact_merger.io.file_writer import FileWriter
from contact_merger.io.profile_detector import ProfileDetector

CSV_DATA = (
    "name,code,destination,note\n"
    "foo1,1,ami-54d2a63b,\n"
    "foo1,01,ami-54d2a63c,NA\n"
    "bar1,m3.large,ami-54d2a63b,x\n"
)


@pytest.fixture
def reader():
    return FileReader()


@pytest.fixture
def result():
    selectors = Selectors(
        group_by_field="name",
        code_field="code",
        destination_field="destination",
        label_fields=["code"],
    )
    records = [
        {"name": "zed", "code": "2", "destination": "b"},
        {"name": "amy", "code": "1", "destination": "a"},
    ]
    return ContactAggregator(selectors).aggregate(records)


class TestFileReader:
    """Test CSV reading into string records."""

    def test_values_are_strings(self, reader, tmp_path):
        path = tmp_path / "contacts.csv"
        path.write_text(CSV_DATA)

        [read] = reader.read_file(path)

        assert read.columns == ["name", "code", "destination", "note"]
        assert read.row_count == 3
        # Leading zeros and NA-like text survive untouched
        assert read.records[1] == {
            "name": "foo1", "code": "01", "destination": "ami-54d2a63c", "note": "NA",
        }
        assert read.records[0]["note"] == ""

    def test_file_like_requires_filename(self, reader):
        with pytest.raises(ValueError, match="filename required"):
            reader.read_file(BytesIO(CSV_DATA.encode()))

    def test_file_like(self, reader):
        [read] = reader.read_file(BytesIO(CSV_DATA.encode()), filename="upload.csv")
        assert read.filename == "upload.csv"
        assert read.sheet_name is None

    def test_latin1_fallback(self, reader):
        raw = "name,city\nPaul,Montréal\n".encode("latin-1")
        [read] = reader.read_file(BytesIO(raw), filename="latin.csv")
        assert read.records[0]["city"] == "Montréal"

    def test_unsupported_extension(self, reader):
        with pytest.raises(ValueError, match="Unsupported file type"):
            reader.read_file("contacts.txt")

    def test_header_only(self, reader):
        [read] = reader.read_file(BytesIO(b"name,code\n"), filename="empty.csv")
        assert read.records == []
        assert read.columns == ["name", "code"]

    def test_preview(self, reader):
        preview = reader.preview_file(
            BytesIO(CSV_DATA.encode()), filename="contacts.csv", max_rows=2
        )
        assert preview["total_rows"] == 3
        assert len(preview["previews"][0]["preview_rows"]) == 2


class TestFileWriter:
    """Test result serialization."""

    def test_json_sorted_groups(self, result):
        text = FileWriter().dumps(result)
        data = json.loads(text)

        assert list(data) == ["amy", "zed"]
        assert data["amy"] == {
            "labels": ["1"],
            "variables": {},
            "destinations": [{"code": "1", "destination": "a"}],
        }

    def test_yaml(self, result):
        writer = FileWriter(OutputConfig(format="yaml"))
        data = yaml.safe_load(writer.dumps(result))

        assert data["zed"]["labels"] == ["2"]

    def test_write_file(self, result, tmp_path):
        output = FileWriter().write(result, tmp_path / "out" / "merged.json")

        assert json.loads(Path(output).read_text())["zed"]["destinations"][0]["code"] == "2"

    def test_write_bytes(self, result):
        assert FileWriter().write_bytes(result).startswith(b"{")

    def test_format_filename(self):
        assert FileWriter().format_filename("Contacts", "june") == "Contacts - june.json"

    def test_format_filename_follows_yaml_format(self):
        writer = FileWriter(OutputConfig(format="yaml"))

        assert writer.format_filename("Contacts", "june") == "Contacts - june.yaml"

    def test_format_filename_format_override(self):
        writer = FileWriter()

        assert writer.format_filename("Contacts", "june", output_format="yaml") == "Contacts - june.yaml"

    def test_format_filename_fixed_template(self):
        writer = FileWriter(OutputConfig(format="yaml"))

        assert writer.format_filename("A", "b", template="{stem}-{profile}.out") == "b-A.out"


class TestProfileDetector:
    """Test filename-based profile detection."""

    @pytest.fixture
    def detector(self):
        selectors = {
            "group_by_field": "name",
            "code_field": "code",
            "destination_field": "destination",
        }
        profiles = {
            "Contacts": MergeProfile(profile={"name": "Contacts"}, selectors=selectors),
            "Contacts EU": MergeProfile(
                profile={"name": "Contacts EU"},
                selectors=selectors,
                filename_patterns=["CONTACTS_EU"],
            ),
            "Legacy": MergeProfile(
                profile={"name": "Legacy", "enabled": False}, selectors=selectors
            ),
        }
        return ProfileDetector(profiles)

    def test_detect(self, detector):
        assert detector.detect("exports/contacts_2025.csv") == "Contacts"

    def test_longest_pattern_wins(self, detector):
        assert detector.detect("contacts_eu_june.csv") == "Contacts EU"

    def test_disabled_profile(self, detector):
        assert detector.detect("legacy.csv") is None
        assert "Legacy" not in detector.list_enabled_profiles()

    def test_detect_all(self, detector):
        assert detector.detect_all(["a.csv", "contacts.csv"]) == {
            "a.csv": None,
            "contacts.csv": "Contacts",
        }


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
