"""
Plain data types exchanged between the client engine and the portal API.

``to_dict``/``from_dict`` use the API wire format, which for the roster is
also the format of the uploaded document and of the device-local cache.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

# Outcome codes, mirroring the server error taxonomy
VALIDATION = 'validation'
AUTHORIZATION = 'authorization'
REMOTE = 'remote'
PARTIAL_REPLACE = 'partial_replace'
PENDING = 'pending'
DISCARDED = 'discarded'


@dataclass(frozen=True)
class Outcome:
    """Result of a client operation.

    Operations never raise past their boundary; a failure carries a
    human-readable ``message`` fit for display and a machine ``code``.
    """
    ok: bool
    code: str = ''
    message: str = ''
    data: Any = None

    @classmethod
    def success(cls, data: Any = None, message: str = '') -> 'Outcome':
        return cls(ok=True, data=data, message=message)

    @classmethod
    def failure(cls, code: str, message: str) -> 'Outcome':
        return cls(ok=False, code=code, message=message)


def _parse_dt(value) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value).replace('Z', '+00:00'))


@dataclass
class Pharmacy:
    name: str
    location: str = ''
    contact1: str = ''
    contact2: str = ''
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    @classmethod
    def from_dict(cls, d: dict) -> 'Pharmacy':
        return cls(
            name=d['nom'],
            location=d.get('localisation') or '',
            contact1=d.get('contact1') or '',
            contact2=d.get('contact2') or '',
            latitude=d.get('latitude'),
            longitude=d.get('longitude'),
        )

    def to_dict(self) -> dict:
        return {
            'nom': self.name,
            'localisation': self.location,
            'contact1': self.contact1,
            'contact2': self.contact2,
            'latitude': self.latitude,
            'longitude': self.longitude,
        }


@dataclass
class WeekSchedule:
    label: str
    pharmacies: list[Pharmacy] = field(default_factory=list)

    @classmethod
    def from_dict(cls, d: dict) -> 'WeekSchedule':
        return cls(label=d['semaine'], pharmacies=[Pharmacy.from_dict(p) for p in d.get('pharmacies') or []])

    def to_dict(self) -> dict:
        return {'semaine': self.label, 'pharmacies': [p.to_dict() for p in self.pharmacies]}


@dataclass
class HealthPost:
    id: int
    title: str
    content: str
    created_at: datetime
    likes: int = 0
    image_url: Optional[str] = None
    publish_at: Optional[datetime] = None
    comment_count: int = 0

    @classmethod
    def from_dict(cls, d: dict) -> 'HealthPost':
        return cls(
            id=int(d['id']),
            title=d['title'],
            content=d['content'],
            created_at=_parse_dt(d['created_at']),
            likes=max(0, int(d.get('likes') or 0)),
            image_url=d.get('image_url'),
            publish_at=_parse_dt(d.get('publish_at')),
            comment_count=int(d.get('comment_count') or 0),
        )


@dataclass
class Comment:
    id: int
    post_id: int
    content: str
    created_at: datetime

    @classmethod
    def from_dict(cls, d: dict) -> 'Comment':
        return cls(id=int(d['id']), post_id=int(d['post_id']), content=d['content'], created_at=_parse_dt(d['created_at']))
