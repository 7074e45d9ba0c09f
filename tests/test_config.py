from __future__ import annotations

from pathlib import Path

from backend.services.config import BASE_DIR, Settings


def test_dry_run_accepts_only_one_and_true() -> None:
    assert Settings(dry_run="1").is_dry_run
    assert Settings(dry_run="true").is_dry_run
    assert not Settings(dry_run="").is_dry_run
    assert not Settings(dry_run="0").is_dry_run
    assert not Settings(dry_run="yes").is_dry_run
    assert not Settings(dry_run="TRUE").is_dry_run


def test_dry_run_read_from_environment(monkeypatch) -> None:
    monkeypatch.setenv("DRY_RUN", "1")
    assert Settings().is_dry_run


def test_super_admin_flag_defaults_to_true() -> None:
    assert Settings().grant_super_admin
    assert Settings(admin_is_superadmin="").grant_super_admin
    assert Settings(admin_is_superadmin="TRUE").grant_super_admin
    assert not Settings(admin_is_superadmin="false").grant_super_admin


def test_database_path_resolution(tmp_path: Path) -> None:
    assert Settings(database_path="data/x.db").resolved_database_path == BASE_DIR / "data" / "x.db"
    absolute = tmp_path / "y.db"
    assert Settings(database_path=str(absolute)).resolved_database_path == absolute
