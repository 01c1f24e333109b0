# services/leaderboard.py

"""
Leaderboard rankings, joined client-side from the tasks and users
snapshots.

Only rated work counts. A user with nothing rated is left out of the
ranking entirely rather than ranked with a zero.
"""

from typing import Dict, List, Optional

from core.realtime import DerivedView, SubscriptionHub
from services.accounts import USERS_COLLECTION
from services.tasks import TASKS_COLLECTION, average_rating


def _rank(totals: Dict[str, List[float]], users: Dict[str, dict], domain: Optional[str]) -> List[dict]:
    rows = []
    for user_id, values in totals.items():
        if not values:
            continue
        user = users.get(user_id)
        if user is None:
            continue
        if domain and user.get("domain") != domain:
            continue
        rows.append({
            "user_id": user_id,
            "name": user.get("name") or user.get("email"),
            "email": user.get("email"),
            "avatar_url": user.get("avatar_url"),
            "domain": user.get("domain"),
            "average_rating": round(sum(values) / len(values), 2),
            "rated_count": len(values),
        })

    rows.sort(key=lambda r: (-r["average_rating"], -r["rated_count"], (r["name"] or "").lower()))
    for position, row in enumerate(rows, start=1):
        row["rank"] = position
    return rows


def member_board(tasks: List[dict], users: List[dict], domain: Optional[str] = None) -> List[dict]:
    """Each author's average over their rated submissions."""
    totals: Dict[str, List[float]] = {}
    for task in tasks:
        for submission in task.get("submissions") or []:
            score = submission.get("quality_score")
            author_id = (submission.get("author") or {}).get("id")
            if score and author_id:
                totals.setdefault(author_id, []).append(score)

    return _rank(totals, {u["id"]: u for u in users}, domain)


def lead_board(tasks: List[dict], users: List[dict], domain: Optional[str] = None) -> List[dict]:
    """Each lead's average over the task averages of tasks assigned to them."""
    totals: Dict[str, List[float]] = {}
    for task in tasks:
        lead_id = (task.get("assigned_to_lead") or {}).get("id")
        task_average = average_rating(task)
        if lead_id and task_average is not None:
            totals.setdefault(lead_id, []).append(task_average)

    return _rank(totals, {u["id"]: u for u in users}, domain)


def compute_leaderboard(tasks: List[dict], users: List[dict], domain: Optional[str] = None) -> dict:
    return {
        "members": member_board(tasks, users, domain),
        "leads": lead_board(tasks, users, domain),
    }


class LeaderboardView:
    """
    Live leaderboard over the tasks and users subscriptions.
    `value` is None until both have delivered.
    """

    def __init__(self, hub: SubscriptionHub, domain: Optional[str] = None, on_result=None):
        self.domain = domain
        self._view = DerivedView(
            hub,
            sources={
                "tasks": (TASKS_COLLECTION, None),
                "users": (USERS_COLLECTION, None),
            },
            compute=lambda tasks, users: compute_leaderboard(tasks, users, self.domain),
            on_result=on_result,
        )

    @property
    def value(self) -> Optional[dict]:
        return self._view.value

    def close(self):
        self._view.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
