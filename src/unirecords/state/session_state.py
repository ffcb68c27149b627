from dataclasses import dataclass
from typing import Optional

from unirecords.models.entities import User


@dataclass
class SessionState:
    user: Optional[User] = None

    @property
    def is_admin(self) -> bool:
        return bool(self.user and self.user.is_admin)

    def clear(self) -> None:
        self.user = None
