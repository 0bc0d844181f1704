from __future__ import annotations

import json
import re
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "src"))

from crawl.cli import main

DAY_SCRIPT = Path(__file__).resolve().parents[1] / "examples" / "day.crawl"


def test_run_json_report(capsys) -> None:
    code = main(["run", str(DAY_SCRIPT), "--seed", "11", "--json"])
    out = capsys.readouterr().out
    report = json.loads(out)

    assert code == 0
    assert report["state"] == "done"
    assert report["events"][-1]["text"] == "players must eat rations daily"
    assert report["records"] == []


def test_run_trace_includes_records(capsys) -> None:
    main(["run", str(DAY_SCRIPT), "--seed", "11", "--json", "--trace"])
    report = json.loads(capsys.readouterr().out)

    kinds = [record["kind"] for record in report["records"]]
    assert kinds == ["LoadTable", "ProcedureCall"]


def test_persistent_facts_carry_between_runs(tmp_path: Path, capsys) -> None:
    script = tmp_path / "visit.crawl"
    script.write_text(
        'if persistent-fact? "visited" => reminder "welcome back"\n'
        'set-persistent-fact "visited"\n',
        encoding="utf-8",
    )
    facts = tmp_path / "facts.json"

    assert main(["run", str(script), "--facts", str(facts)]) == 0
    assert capsys.readouterr().out == ""
    assert main(["run", str(script), "--facts", str(facts)]) == 0
    assert capsys.readouterr().out == "[reminder] welcome back\n"
    assert json.loads(facts.read_text(encoding="utf-8"))["facts"] == ["visited"]


def test_console_labels_table_source(tmp_path: Path, capsys) -> None:
    tables = tmp_path / "tables"
    tables.mkdir()
    (tables / "sky.csv").write_text("roll,entry\n1-6,Overcast\n", encoding="utf-8")
    script = tmp_path / "sky.crawl"
    script.write_text('load table "sky.csv"\nroll on table "sky.csv"\n', encoding="utf-8")

    assert main(["run", str(script), "--tables", str(tables), "--seed", "3"]) == 0
    assert capsys.readouterr().out == "[table sky.csv] Overcast\n"


def test_runtime_error_exits_nonzero(tmp_path: Path, capsys) -> None:
    script = tmp_path / "bad.crawl"
    script.write_text('reminder "start"\nwander\n', encoding="utf-8")

    assert main(["run", str(script)]) == 1
    captured = capsys.readouterr()
    assert captured.out == "[reminder] start\n"
    assert "error: line 2: Procedure 'wander' is not declared." in captured.err


def test_syntax_error_exits_nonzero(tmp_path: Path, capsys) -> None:
    script = tmp_path / "bad.crawl"
    script.write_text("end\n", encoding="utf-8")

    assert main(["parse", str(script)]) == 1
    assert "Unexpected 'end'" in capsys.readouterr().err


def test_parse_rejects_duplicate_procedures(tmp_path: Path, capsys) -> None:
    script = tmp_path / "dup.crawl"
    script.write_text(
        'procedure p\n    reminder "a"\nend\nprocedure p\n    reminder "b"\nend\n',
        encoding="utf-8",
    )

    assert main(["parse", str(script)]) == 1
    captured = capsys.readouterr()
    assert captured.out == ""
    assert "Duplicate procedure 'p'" in captured.err


def test_parse_prints_statements(capsys) -> None:
    assert main(["parse", str(DAY_SCRIPT)]) == 0
    payload = json.loads(capsys.readouterr().out)

    kinds = [stmt["kind"] for stmt in payload["statements"]]
    assert kinds == ["load_table", "procedure", "procedure", "procedure_call"]


def test_roll_command(capsys) -> None:
    assert main(["roll", "2d6+3", "--seed", "4"]) == 0
    out = capsys.readouterr().out.strip()
    assert re.fullmatch(r"2d6 \+ 3 = \d+ \(\d, \d\)", out)


def test_roll_rejects_bad_notation(capsys) -> None:
    assert main(["roll", "1d1"]) == 1
    assert capsys.readouterr().err.startswith("error:")
