"""Identity of the user a request is made for.

Login and registration belong to the identity provider. Code that needs
to know who is acting receives a UserContext explicitly.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class UserContext:
    """The signed-in user."""
    user_id: str
    email: str = ""
    first_name: str = ""
    last_name: str = ""
    phone: str = ""

    @property
    def display_name(self) -> str:
        name = f"{self.first_name} {self.last_name}".strip()
        return name or self.email or self.user_id

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Optional["UserContext"]:
        """Build a context from a provider profile, None if it has no id."""
        user_id = data.get("uid") or data.get("user_id") or data.get("id")
        if not user_id:
            return None
        return cls(
            user_id=str(user_id),
            email=data.get("email", ""),
            first_name=data.get("firstName", data.get("first_name", "")),
            last_name=data.get("lastName", data.get("last_name", "")),
            phone=data.get("phone", ""),
        )
