"""
First-run server state.

    department  "default"
    accounts    admin / admin  (administrator, token "0")
                user  / 1      (token "1")
    plan        ("default", "2019") — Centre outline "Centre_Plan_1", editable
    templates   "Centre", "VMOSA" — editable, no year
"""

from __future__ import annotations

from planner.documents.models import Department
from planner.documents.outlines import outline_document
from planner.engine.accounts import Account
from planner.engine.persistence import ServerState

DEFAULT_DEPARTMENT = "default"
ADMIN_ACCOUNT_ID = "bootstrap-admin"
ADMIN_USERNAME = "admin"
ADMIN_PASSWORD = "admin"
ADMIN_TOKEN = "0"
USER_ACCOUNT_ID = "bootstrap-user"
USER_USERNAME = "user"
USER_PASSWORD = "1"
USER_TOKEN = "1"
DEFAULT_PLAN_YEAR = "2019"


def default_state() -> ServerState:
    department = Department()
    department.plans[DEFAULT_PLAN_YEAR] = outline_document(
        "Centre", name="Centre_Plan_1", year=DEFAULT_PLAN_YEAR, editable=True
    )

    admin = Account(
        account_id=ADMIN_ACCOUNT_ID,
        username=ADMIN_USERNAME,
        password=ADMIN_PASSWORD,
        session_token=ADMIN_TOKEN,
        department=DEFAULT_DEPARTMENT,
        is_admin=True,
    )
    user = Account(
        account_id=USER_ACCOUNT_ID,
        username=USER_USERNAME,
        password=USER_PASSWORD,
        session_token=USER_TOKEN,
        department=DEFAULT_DEPARTMENT,
        is_admin=False,
    )

    return ServerState(
        accounts={admin.username: admin, user.username: user},
        sessions={ADMIN_TOKEN: admin.account_id, USER_TOKEN: user.account_id},
        departments={DEFAULT_DEPARTMENT: department},
        templates={
            "Centre": outline_document("Centre"),
            "VMOSA": outline_document("VMOSA"),
        },
    )
