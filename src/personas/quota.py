"""Persona quota checks.

The count/quota read and the later insert are separate statements, so two
concurrent creations can both pass. Accepted: worst case a user ends up one
persona over quota.
"""


class QuotaExceededError(Exception):
    """User already holds as many personas as their quota allows."""

    def __init__(self, count: int, quota: int):
        self.count = count
        self.quota = quota
        super().__init__(
            f"Persona limit reached ({count}/{quota}). Purchase more slots to create additional personas."
        )


def effective_quota(stored: int | None, free_limit: int) -> int:
    """Unset quota means the free tier."""
    return free_limit if stored is None else stored


def ensure_can_create(count: int, quota: int) -> None:
    if count >= quota:
        raise QuotaExceededError(count, quota)


def remaining_slots(count: int, quota: int) -> int:
    return max(quota - count, 0)
