import io

import pytest

from bplusfile.blockfile import BlockFileError, BlockManager
from bplusfile.cli import SAMPLE_SIZE, insert_entries, main, print_entries, run
from bplusfile.record import Record
from bplusfile.tree import BPlusTree


def test_run_prints_sampled_ids_then_records(tmp_path):
    out = io.StringIO()
    sampled = run(1, tmp_path / "data.db", seed=0, out=out)
    assert len(sampled) == SAMPLE_SIZE
    lines = out.getvalue().splitlines()
    assert len(lines) == SAMPLE_SIZE + 1
    assert lines[0].split() == [str(record.id) for record in sampled]
    for record, line in zip(sampled, lines[1:]):
        assert line.startswith(f"({record.id},")
        assert line.endswith(")")


def test_run_ids_stay_below_range(tmp_path):
    sampled = run(3, tmp_path / "data.db", seed=5, out=io.StringIO())
    assert all(0 <= record.id < 30 for record in sampled)


def test_sampled_records_survive_reopen(tmp_path):
    path = tmp_path / "data.db"
    sampled = run(2, path, seed=7, out=io.StringIO())
    with BlockManager() as manager, BPlusTree.open(manager, path) as tree:
        for record in sampled:
            assert tree.get(record.id) is not None
            assert tree.get(record.id).id == record.id


def test_run_is_deterministic_for_a_seed(tmp_path):
    first, second = io.StringIO(), io.StringIO()
    run(4, tmp_path / "a.db", seed=11, out=first)
    run(4, tmp_path / "b.db", seed=11, out=second)
    assert first.getvalue() == second.getvalue()


def test_run_rejects_non_positive_entries(tmp_path):
    with pytest.raises(ValueError):
        run(0, tmp_path / "data.db", seed=0, out=io.StringIO())


def test_run_refuses_existing_file(tmp_path):
    path = tmp_path / "data.db"
    run(1, path, seed=0, out=io.StringIO())
    with pytest.raises(BlockFileError):
        run(1, path, seed=0, out=io.StringIO())


def test_insert_entries_stores_every_sampled_id(tmp_path):
    import random

    with BlockManager() as manager, BPlusTree.create(manager, tmp_path / "t.db") as tree:
        sampled = insert_entries(tree, 1, random.Random(3))
        assert len(sampled) == SAMPLE_SIZE
        assert all(record.id in tree for record in sampled)


def test_insert_entries_rejects_zero(tmp_path):
    import random

    with BlockManager() as manager, BPlusTree.create(manager, tmp_path / "t.db") as tree:
        with pytest.raises(ValueError):
            insert_entries(tree, 0, random.Random(0))


def test_print_entries_reports_stored_and_missing(tmp_path):
    stored = Record(4, "Anna", "Georgiou", "Volos")
    missing = Record(9, "Maria", "Nikolaou", "Patra")
    out = io.StringIO()
    with BlockManager() as manager, BPlusTree.create(manager, tmp_path / "t.db") as tree:
        tree.insert(stored)
        print_entries(tree, [stored, missing], out)
    assert out.getvalue().splitlines() == [
        "4 9 ",
        "(4,Anna,Georgiou,Volos)",
        "9: not found",
    ]


def test_main_writes_report(tmp_path, capsys):
    path = tmp_path / "data.db"
    assert main(["5", "--path", str(path), "--seed", "3"]) == 0
    lines = capsys.readouterr().out.splitlines()
    assert len(lines) == SAMPLE_SIZE + 1
    assert path.exists()


def test_main_reports_existing_file(tmp_path, capsys):
    path = tmp_path / "data.db"
    assert main(["1", "--path", str(path)]) == 0
    capsys.readouterr()
    assert main(["1", "--path", str(path)]) == 1
    assert "bplusfile:" in capsys.readouterr().err


@pytest.mark.parametrize("value", ["0", "-3", "ten"])
def test_main_rejects_bad_entry_count(tmp_path, value):
    with pytest.raises(SystemExit) as excinfo:
        main([value, "--path", str(tmp_path / "data.db")])
    assert excinfo.value.code == 2