# services/team.py

from typing import Dict, List, Optional

from core.domain_config import DomainConfig, normalize_email
from core.errors import NotFoundError
from core.store import DocumentStore
from services.accounts import USERS_COLLECTION


def _profile(user: dict) -> dict:
    return {
        "id": user["id"],
        "name": user.get("name"),
        "email": user.get("email"),
        "avatar_url": user.get("avatar_url"),
        "phone_number": user.get("phone_number"),
        "role": user.get("role"),
    }


def build_team(domain_map: Dict[str, dict], users: List[dict], domain: Optional[str] = None) -> List[dict]:
    """
    Per domain: leads and members joined with their user records by email.
    Emails that have never signed in are listed under `pending`.
    """
    by_email = {normalize_email(u.get("email")): u for u in users if u.get("email")}

    if domain is not None:
        if domain not in domain_map:
            raise NotFoundError(f'Domain "{domain}" not found.')
        names = [domain]
    else:
        names = sorted(domain_map)

    teams = []
    for name in names:
        entry = {"domain": name, "leads": [], "members": [], "pending": []}
        for list_name in ("leads", "members"):
            for email in domain_map[name].get(list_name) or []:
                user = by_email.get(normalize_email(email))
                if user is None:
                    entry["pending"].append(email)
                else:
                    entry[list_name].append(_profile(user))
        teams.append(entry)
    return teams


def get_team(store: DocumentStore, domain: Optional[str] = None) -> List[dict]:
    return build_team(DomainConfig(store).get_domain_map(), store.query(USERS_COLLECTION), domain)
