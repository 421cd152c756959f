"""Tests for artifact writing and the deduplicating merge."""

from mapharvest.core.output.artifacts import list_artifacts, read_dataset, write_dataset
from mapharvest.core.output.merge import MergeReducer, dedupe, record_key


def _row(name, address, phone="02 4000 0000"):
    return {"name": name, "phone_number": phone, "full_address": address}


def test_write_dataset_quotes_commas(tmp_path):
    path = tmp_path / "restaurants_0.csv"
    rows = [_row("Fish, Chips & Co", "1 Beach St, Thirroul NSW 2515, Australia")]

    assert write_dataset(rows, path)
    assert read_dataset(path) == rows


def test_write_dataset_skips_empty(tmp_path):
    path = tmp_path / "restaurants_0.csv"

    assert write_dataset([], path) is False
    assert not path.exists()


def test_record_key_is_case_insensitive():
    assert record_key(_row("Keira Thai", "5 Gipps Rd")) == record_key(_row("KEIRA THAI", "5 GIPPS RD"))
    assert record_key(_row("Keira Thai", "5 Gipps Rd")) != record_key(_row("Keira Thai", "7 Gipps Rd"))


def test_dedupe_keeps_first():
    rows = [
        _row("Keira Thai", "5 Gipps Rd", phone="1"),
        _row("Uni Pizza", "12 Northfields Ave"),
        _row("keira thai", "5 gipps rd", phone="2"),
    ]

    unique = dedupe(rows)

    assert [r["name"] for r in unique] == ["Keira Thai", "Uni Pizza"]
    assert unique[0]["phone_number"] == "1"


def test_merge_reads_sorted_and_dedupes(tmp_path):
    artifacts = tmp_path / "run"
    write_dataset([_row("Keira Thai", "5 Gipps Rd", phone="first")], artifacts / "restaurants_0.csv")
    write_dataset(
        [_row("Keira Thai", "5 Gipps Rd", phone="second"), _row("Uni Pizza", "12 Northfields Ave")],
        artifacts / "restaurants_1.csv",
    )
    (artifacts / "notes.txt").write_text("ignored", encoding="utf-8")
    output = tmp_path / "all_restaurants.csv"

    stats = MergeReducer().merge(artifacts, output)

    assert stats.files_read == 2
    assert stats.total_records == 3
    assert stats.unique_records == 2
    assert stats.output_path == output
    rows = read_dataset(output)
    assert rows[0]["phone_number"] == "first"
    assert [p.name for p in list_artifacts(artifacts)] == ["restaurants_0.csv", "restaurants_1.csv"]


def test_merge_follows_query_index_order(tmp_path):
    artifacts = tmp_path / "run"
    for index in (10, 2, 1):
        write_dataset([_row("Keira Thai", "5 Gipps Rd", phone=str(index))], artifacts / f"restaurants_{index}.csv")
    output = tmp_path / "all.csv"

    MergeReducer().merge(artifacts, output)

    assert [p.name for p in list_artifacts(artifacts)] == [
        "restaurants_1.csv",
        "restaurants_2.csv",
        "restaurants_10.csv",
    ]
    assert read_dataset(output)[0]["phone_number"] == "1"


def test_merge_is_idempotent(tmp_path):
    artifacts = tmp_path / "run"
    write_dataset([_row("A", "1 St"), _row("B", "2 St")], artifacts / "restaurants_0.csv")
    write_dataset([_row("b", "2 st"), _row("C", "3 St")], artifacts / "restaurants_1.csv")
    output = tmp_path / "all.csv"

    MergeReducer().merge(artifacts, output)
    first = output.read_bytes()
    MergeReducer().merge(artifacts, output)

    assert output.read_bytes() == first


def test_merge_empty_directory_writes_nothing(tmp_path):
    output = tmp_path / "all.csv"

    stats = MergeReducer().merge(tmp_path / "missing", output)

    assert stats.output_path is None
    assert stats.files_read == 0
    assert not output.exists()
