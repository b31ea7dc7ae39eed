"""
OKRs component - objectives, key results and derived progress.
"""

from .component import (
    run_create_okr,
    run_delete_okr,
    run_get_okr,
    run_list_team_okrs,
    run_search_okrs,
    run_update_okr,
)
from .key_results import (
    run_add_key_result,
    run_delete_key_result,
    run_update_key_result,
    run_update_key_result_progress,
)
from .models import (
    AddKeyResultInput,
    CreateOkrInput,
    DeleteKeyResultInput,
    DeleteOkrInput,
    GetOkrInput,
    KeyResultDraft,
    KeyResultOutput,
    ListTeamOkrsInput,
    OkrListOutput,
    OkrOutput,
    SearchOkrsInput,
    UpdateKeyResultInput,
    UpdateKeyResultProgressInput,
    UpdateOkrInput,
)

__all__ = [
    # Entry points
    "run_add_key_result",
    "run_create_okr",
    "run_delete_key_result",
    "run_delete_okr",
    "run_get_okr",
    "run_list_team_okrs",
    "run_search_okrs",
    "run_update_key_result",
    "run_update_key_result_progress",
    "run_update_okr",
    # Input models
    "AddKeyResultInput",
    "CreateOkrInput",
    "DeleteKeyResultInput",
    "DeleteOkrInput",
    "GetOkrInput",
    "KeyResultDraft",
    "ListTeamOkrsInput",
    "SearchOkrsInput",
    "UpdateKeyResultInput",
    "UpdateKeyResultProgressInput",
    "UpdateOkrInput",
    # Output models
    "KeyResultOutput",
    "OkrListOutput",
    "OkrOutput",
]
