"""REST paths consumed by the client."""

from __future__ import annotations

from urllib.parse import quote

AUTH_REGISTER = "/auth/register"
AUTH_LOGIN = "/auth/login"
AUTH_LOGOUT = "/auth/logout"
AUTH_PROFILE = "/auth/profile"

SALES_SAVE = "/sales/pr/save"
SALES_SUBMIT = "/sales/pr/submit"
SALES_LIST = "/sales/pr"

ANALYST_AVAILABLE = "/pa/pr"
ANALYST_MINE = "/pa/pr/my"


def _segment(pr_id: str) -> str:
    return quote(pr_id, safe="")


def sales_request(pr_id: str) -> str:
    return f"/sales/pr/{_segment(pr_id)}"


def sales_resubmit(pr_id: str) -> str:
    return f"{sales_request(pr_id)}/resubmit"


def sales_send_to_analyst(pr_id: str) -> str:
    return f"{sales_request(pr_id)}/send-to-pa"


def analyst_request(pr_id: str) -> str:
    return f"/pa/pr/{_segment(pr_id)}"


def analyst_assign(pr_id: str) -> str:
    return f"{analyst_request(pr_id)}/assign"


def analyst_decision(pr_id: str) -> str:
    return f"{analyst_request(pr_id)}/approve-reject"
