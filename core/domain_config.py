# core/domain_config.py

"""
Domain configuration: domain name → {leads, members}, plus the special
roles map for super-admins/admins who sit outside the domain structure.

An email belongs to at most one domain list at a time. The store has no
constraint for this; every add checks all domains first.
"""

from typing import Dict, List, Optional, Tuple

from core.errors import ConflictError, NotFoundError, RoleResolutionError, ValidationError
from core.store import DocumentStore, Query
from models.enums import ADMIN_ROLES, UserRole


DOMAINS_COLLECTION = "domains"
CONFIG_COLLECTION = "config"
SPECIAL_ROLES_ID = "specialRoles"

DomainMap = Dict[str, Dict[str, List[str]]]


def normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


# ============================================================
# Pure lookups
# ============================================================

def is_authorized_in(email: str, domain_map: DomainMap, special_roles: Dict[str, str]) -> bool:
    email = normalize_email(email)
    if not email:
        return False
    if email in special_roles:
        return True
    return any(
        email in (entry.get("leads") or []) or email in (entry.get("members") or [])
        for entry in domain_map.values()
    )


def resolve_role_in(email: str, domain_map: DomainMap, special_roles: Dict[str, str]) -> Tuple[str, Optional[str]]:
    """
    (role, domain) for an email: special roles first, then leads, then
    members. No match raises RoleResolutionError rather than defaulting to
    a domain-less member.
    """
    email = normalize_email(email)

    if email in special_roles:
        return special_roles[email], None

    for name in sorted(domain_map):
        if email in (domain_map[name].get("leads") or []):
            return UserRole.domain_lead.value, name

    for name in sorted(domain_map):
        if email in (domain_map[name].get("members") or []):
            return UserRole.member.value, name

    raise RoleResolutionError(email)


def find_membership(email: str, domain_map: DomainMap) -> Optional[Tuple[str, str]]:
    """(domain, "leads"|"members") holding the email, if any."""
    email = normalize_email(email)
    for name, entry in domain_map.items():
        for list_name in ("leads", "members"):
            if email in (entry.get(list_name) or []):
                return name, list_name
    return None


# ============================================================
# Store-backed access
# ============================================================
class DomainConfig:
    def __init__(self, store: DocumentStore):
        self.store = store

    # -----------------------------------------------------
    # Reads
    # -----------------------------------------------------
    def get_domain_map(self) -> DomainMap:
        return {
            doc["id"]: {
                "leads": list(doc.get("leads") or []),
                "members": list(doc.get("members") or []),
            }
            for doc in self.store.query(DOMAINS_COLLECTION)
        }

    def get_special_roles(self) -> Dict[str, str]:
        doc = self.store.get(CONFIG_COLLECTION, SPECIAL_ROLES_ID) or {}
        return {k: v for k, v in doc.items() if k != "id"}

    def is_authorized(self, email: str) -> bool:
        return is_authorized_in(email, self.get_domain_map(), self.get_special_roles())

    def resolve_role(self, email: str) -> Tuple[str, Optional[str]]:
        return resolve_role_in(email, self.get_domain_map(), self.get_special_roles())

    def _require_domain(self, domain: str) -> dict:
        doc = self.store.get(DOMAINS_COLLECTION, domain)
        if doc is None:
            raise NotFoundError(f'Domain "{domain}" not found.')
        return doc

    # -----------------------------------------------------
    # Membership writes
    # -----------------------------------------------------
    def _add(self, domain: Optional[str], email: Optional[str], list_name: str) -> dict:
        email = normalize_email(email)
        if not domain or not email:
            raise ValidationError("Domain and email are required.")

        doc = self._require_domain(domain)

        existing = find_membership(email, self.get_domain_map())
        if existing:
            raise ConflictError(f'This email already exists in domain "{existing[0]}".')

        entries = list(doc.get(list_name) or [])
        entries.append(email)
        return self.store.update(DOMAINS_COLLECTION, domain, {list_name: entries})

    def _remove(self, domain: Optional[str], email: Optional[str], list_name: str) -> dict:
        email = normalize_email(email)
        if not domain or not email:
            raise ValidationError("Domain and email are required.")

        doc = self._require_domain(domain)
        entries = [e for e in (doc.get(list_name) or []) if e != email]
        return self.store.update(DOMAINS_COLLECTION, domain, {list_name: entries})

    def add_member(self, domain: Optional[str], email: Optional[str]) -> dict:
        return self._add(domain, email, "members")

    def add_lead(self, domain: Optional[str], email: Optional[str]) -> dict:
        return self._add(domain, email, "leads")

    def remove_member(self, domain: Optional[str], email: Optional[str]) -> dict:
        return self._remove(domain, email, "members")

    def remove_lead(self, domain: Optional[str], email: Optional[str]) -> dict:
        return self._remove(domain, email, "leads")

    # -----------------------------------------------------
    # Domain lifecycle
    # -----------------------------------------------------
    def add_domain(self, name: Optional[str]) -> dict:
        name = (name or "").strip()
        if not name:
            raise ValidationError("Domain name is required.")
        if self.store.get(DOMAINS_COLLECTION, name) is not None:
            raise ConflictError("Domain already exists.")
        return self.store.set(DOMAINS_COLLECTION, name, {"name": name, "leads": [], "members": []})

    def delete_domain(self, name: Optional[str]) -> int:
        """Delete the domain and every task in it, all-or-nothing. Returns task count."""
        if not name:
            raise ValidationError("Domain name is required.")
        self._require_domain(name)

        tasks = self.store.query("tasks", Query(filters={"domain": name}))
        batch = self.store.batch()
        batch.delete(DOMAINS_COLLECTION, name)
        for task in tasks:
            batch.delete("tasks", task["id"])
        batch.commit()
        return len(tasks)

    # -----------------------------------------------------
    # Special roles
    # -----------------------------------------------------
    def set_special_role(self, email: Optional[str], role: Optional[str]) -> Dict[str, str]:
        email = normalize_email(email)
        if not email:
            raise ValidationError("Email is required.")
        if not role:
            raise ValidationError("Role is required.")
        if role not in ADMIN_ROLES:
            raise ValidationError(f"Special role must be one of: {', '.join(ADMIN_ROLES)}")

        roles = self.get_special_roles()
        roles[email] = role
        self.store.set(CONFIG_COLLECTION, SPECIAL_ROLES_ID, roles)
        return roles

    def remove_special_role(self, email: Optional[str]) -> Dict[str, str]:
        email = normalize_email(email)
        if not email:
            raise ValidationError("Email is required.")

        roles = self.get_special_roles()
        roles.pop(email, None)
        self.store.set(CONFIG_COLLECTION, SPECIAL_ROLES_ID, roles)
        return roles
