"""Example: drive the workflow through the service layer (no Flask).

Runs against the demo rows from database/seed.sql.
"""

import importlib

from config import get_settings_module

from src.quarter_records.quarter_records.common.app_logger import setup_logging
from src.quarter_records.quarter_records.container import build_container


def main():
    settings = importlib.import_module(get_settings_module())
    setup_logging("INFO")
    container = build_container(db_config=settings.DB_CONFIG)

    for row in container.gradebook_service.list_section_grades(section_id=101, subject_id=7, period="Q1"):
        print(row)

    for package in container.package_service.list_packages(status="SUBMITTED", limit=5):
        print(package.package_id, package.section_id, package.subject_id, package.period.value)


if __name__ == "__main__":
    main()
