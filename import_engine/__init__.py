"""
import_engine - CSV product import pipeline.

Public API:
    run_import(file_content, options, plan_key=…) → ImportOutcome
    confirm_import(plan_key)                      → CommitReport
    load_staged_plan(plan_key) / discard_import(plan_key)
"""

from import_engine.importer import (                 # noqa: F401
    ImportOutcome, run_import, confirm_import, load_staged_plan, discard_import,
)
from import_engine.plan import ImportOptions, DuplicatePolicy, StagedPlan   # noqa: F401
from import_engine.report import CommitReport        # noqa: F401
from import_engine.errors import ImportFailure, NoStagedPlan               # noqa: F401
