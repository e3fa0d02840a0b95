"""Capsule permission checks shared by the capsule and memory use cases."""

from memoryscape.domain.models.capsule import Capsule, ContributorRole, role_satisfies
from memoryscape.domain.models.errors import AccessDenied, NotFound
from memoryscape.domain.ports.capsule_repository import CapsuleRepository


async def load_capsule(capsules: CapsuleRepository, capsule_id: str) -> Capsule:
    """Load a capsule or raise NotFound."""
    capsule = await capsules.get(capsule_id)
    if capsule is None:
        raise NotFound("Capsule not found")
    return capsule


def require_role(capsule: Capsule, user_id: str, required: ContributorRole) -> ContributorRole:
    """Return the user's role, raising AccessDenied when it ranks below ``required``."""
    role = capsule.role_of(user_id)
    if role is None:
        raise AccessDenied("Access denied - not a capsule member")
    if not role_satisfies(role, required):
        raise AccessDenied(f"Access denied - {required.value} privileges required")
    return role
