from __future__ import annotations

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "src"))

from crawl import Crawl, DiceEngine, MemoryFactBackend, SequenceSource
from crawl.errors import CollaboratorError

DAY_SCRIPT = Path(__file__).resolve().parents[1] / "examples" / "day.crawl"


def _crawl(faces: list[int], backend: MemoryFactBackend | None = None) -> Crawl:
    return Crawl(dice=DiceEngine(SequenceSource(faces)), fact_backend=backend)


def test_quiet_day_only_reminds_about_rations() -> None:
    crawl = _crawl([2, 5])
    result = crawl.execute_file(DAY_SCRIPT)

    assert result.ok
    assert result.ephemeral_facts == {"party is lost"}
    assert [(e.kind, e.text) for e in result.events] == [
        ("reminder", "players must eat rations daily")
    ]


def test_encounter_day_rolls_table_and_persists_ambush() -> None:
    backend = MemoryFactBackend()
    crawl = _crawl([4, 1, 5, 3, 4, 6], backend)
    result = crawl.execute_file(DAY_SCRIPT)

    assert result.ephemeral_facts == {"day has random encounter", "encounter distance 7"}
    assert result.persistent_facts == {"party was ambushed"}
    assert backend.facts == {"party was ambushed"}
    assert [(e.kind, e.text) for e in result.events] == [
        ("table", "Wolf pack"),
        ("reminder", "players must eat rations daily"),
    ]


def test_surprised_monsters_stay_ephemeral() -> None:
    backend = MemoryFactBackend()
    result = _crawl([6, 3, 1, 1, 1, 2], backend).execute_file(DAY_SCRIPT)

    assert "monsters are surprised" in result.ephemeral_facts
    assert "encounter distance 2" in result.ephemeral_facts
    assert backend.writes == []
    assert result.events[0].text == "Goblin patrol"


def test_missing_script_is_collaborator_error(tmp_path: Path) -> None:
    with pytest.raises(CollaboratorError):
        _crawl([]).execute_file(tmp_path / "missing.crawl")


def test_tables_resolve_relative_to_script(tmp_path: Path) -> None:
    (tmp_path / "loot.csv").write_text("roll,entry\n1-3,copper\n4-6,silver\n", encoding="utf-8")
    script = tmp_path / "loot.crawl"
    script.write_text('load table "loot.csv"\nroll on table "loot.csv"\n', encoding="utf-8")

    result = _crawl([6]).execute_file(script)

    assert [e.text for e in result.events] == ["silver"]
