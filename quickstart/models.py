# Models are stored in the Firebase Realtime Database, not Django DB.
#
# Database layout:
# - users/{uid}: User profile (username, email, lastSentWeeklyTimestamp)
# - posts/{postId}: Post with stars map and denormalized starCount
# - user-posts/{uid}/{postId}: Copy of each post under its author
#
# See database_service.py for the listeners that keep these in sync.
from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass
class User:
    username: Optional[str] = None
    email: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["User"]:
        if not isinstance(data, dict):
            return None
        return cls(
            username=data.get("username"),
            email=data.get("email"),
        )


@dataclass
class Post:
    uid: Optional[str] = None
    author: Optional[str] = None
    title: Optional[str] = None
    body: Optional[str] = None
    star_count: int = 0
    stars: Dict[str, bool] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["Post"]:
        if not isinstance(data, dict):
            return None
        return cls(
            uid=data.get("uid"),
            author=data.get("author"),
            title=data.get("title"),
            body=data.get("body"),
            star_count=data.get("starCount") or 0,
            stars=dict(data.get("stars") or {}),
        )
