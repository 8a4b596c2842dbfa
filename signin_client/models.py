"""
Authenticated user record. Stored as JSON in persistent storage with the same keys the
profile endpoint returns (camelCase publicProfileUrl).
"""
from dataclasses import dataclass
from typing import Any

# dataclass field -> record key
_OPTIONAL_FIELDS = {
    "email": "email",
    "headline": "headline",
    "location": "location",
    "picture": "picture",
    "public_profile_url": "publicProfileUrl",
}


@dataclass(frozen=True)
class LinkedInUser:
    id: str
    name: str
    email: str | None = None
    headline: str | None = None
    location: str | None = None
    picture: str | None = None
    public_profile_url: str | None = None

    def to_dict(self) -> dict[str, str]:
        """Record form; absent optional fields are left out."""
        record = {"id": self.id, "name": self.name}
        for attr, key in _OPTIONAL_FIELDS.items():
            value = getattr(self, attr)
            if value is not None:
                record[key] = value
        return record

    @property
    def first_name(self) -> str:
        return self.name.split()[0]

    @property
    def initials(self) -> str:
        return "".join(word[0] for word in self.name.split())[:2].upper()


def _clean(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def validate_user_data(data: Any) -> LinkedInUser | None:
    """
    Shape check for a user record from storage or from the profile endpoint.
    id and name must be non-empty strings; optional fields survive only as strings.
    Returns None for anything that does not qualify.
    """
    if not isinstance(data, dict):
        return None
    user_id = _clean(data.get("id"))
    name = _clean(data.get("name"))
    if user_id is None or name is None:
        return None
    optional = {attr: _clean(data.get(key)) for attr, key in _OPTIONAL_FIELDS.items()}
    return LinkedInUser(id=user_id, name=name, **optional)
