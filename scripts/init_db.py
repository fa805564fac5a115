"""Create the HRMS schema and, with ``--seed``, load the demo data.

Usage: ``APP_ENV=development python scripts/init_db.py [--seed]``
"""

from __future__ import annotations

import argparse
import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import get_settings_module

from src.hrms_system.hrms_system.database.bootstrap import apply_schema, apply_seed_sql, list_tables
from src.hrms_system.hrms_system.database.connection import DBConfig

REQUIRED_TABLES = (
    "departments",
    "positions",
    "employees",
    "position_history",
    "leave_types",
    "leave_policies",
    "leave_policy_entitlements",
    "leave_balances",
    "leave_applications",
    "leave_application_ranges",
    "leave_application_dates",
    "work_progress_reports",
    "work_progress_report_employees",
    "work_progress_report_remarks",
    "work_progress_report_timeline",
    "warning_types",
    "disciplinary_actions",
)


def main(argv=None) -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--seed", action="store_true", help="also load database/seed.sql")
    args = parser.parse_args(argv)

    settings = importlib.import_module(get_settings_module())
    db_config = dict(settings.DB_CONFIG)
    target = DBConfig.from_settings(db_config).describe()

    apply_schema(db_config, schema_path=REPO_ROOT / "database" / "schema.sql")
    tables = set(list_tables(db_config))
    missing = [t for t in REQUIRED_TABLES if t not in tables]
    if missing:
        raise SystemExit(f"Schema applied to {target} but tables are missing: {', '.join(missing)}")
    print(f"OK: schema ready -> {target} ({len(tables)} tables)")

    if args.seed:
        apply_seed_sql(db_config, seed_path=REPO_ROOT / "database" / "seed.sql")
        print(f"OK: demo departments, positions, leave policies and employees loaded -> {target}")


if __name__ == "__main__":
    main()
