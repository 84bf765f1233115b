"""Caller identity, as handed over by the upstream authentication layer."""

from dataclasses import dataclass

from shared.exceptions import ValidationError


@dataclass(frozen=True)
class UserIdentity:
    user_id: int
    role: str = "customer"

    def __post_init__(self):
        if isinstance(self.user_id, bool) or not isinstance(self.user_id, int) or self.user_id <= 0:
            raise ValidationError({"user_id": ["User id must be a positive integer"]})
