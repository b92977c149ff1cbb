from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class MeetingRecord:
    id: int
    param: str
    title: str
    description: Optional[str]
    place_enabled: bool
    created_at: datetime

    def to_dict(self):
        return {
            "id": self.id,
            "param": self.param,
            "title": self.title,
            "description": self.description,
            "place_enabled": self.place_enabled,
            "created_at": self.created_at.isoformat(),
        }


@dataclass(frozen=True)
class MemberRecord:
    id: int
    meeting_id: int
    nickname: str
    auth: bool
    user_id: Optional[int] = None

    def to_dict(self):
        return {"id": self.id, "nickname": self.nickname, "auth": self.auth}


@dataclass(frozen=True)
class PlaceRecord:
    id: int
    member_id: int
    latitude: float
    longitude: float


@dataclass(frozen=True)
class StationRecord:
    name: str
    line: str
    lat: float
    lng: float


@dataclass(frozen=True)
class UserMeetingRecord:
    meeting: MeetingRecord
    linked_at: datetime
    auth: bool


@dataclass(frozen=True)
class ScheduleRecord:
    meeting_id: int
    start_date: datetime
    end_date: datetime

    def to_dict(self):
        return {
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
        }
