import json
import shutil

from apothecary.config import DEFAULT_DATA_PATH
from verify_data import verify


def test_shipped_data_is_sound():
    assert verify() == []


def test_reports_profession_without_abilities(tmp_path):
    data_path = tmp_path / "data"
    shutil.copytree(DEFAULT_DATA_PATH, data_path)
    record_path = data_path / "database" / "professions" / "poisoner.json"
    record = json.loads(record_path.read_text(encoding="utf-8"))
    record["abilities"] = []
    record_path.write_text(json.dumps(record), encoding="utf-8")

    problems = verify(data_path)

    assert "poisoner: no abilities" in problems
