import dataclasses
import itertools
import threading

from midpoint.extensions import utcnow
from midpoint.services.errors import Conflict, NotFound, ParamCollision
from midpoint.stores.records import (
    MeetingRecord,
    MemberRecord,
    PlaceRecord,
    ScheduleRecord,
    UserMeetingRecord,
)


class InMemoryMeetingStore:
    """Dict-backed store honouring the same contract as ``SqlMeetingStore``.

    Records live in per-entity tables keyed by id and refer to their owner by
    id. Every write happens under one lock, so a multi-record creation is
    either fully visible or not at all.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._ids = itertools.count(1)
        self._meetings = {}
        self._params = {}
        self._members = {}
        self._schedules = {}
        self._places = {}
        self._links = {}

    def _next_id(self):
        return next(self._ids)

    def param_exists(self, param):
        with self._lock:
            return param in self._params

    def create_meeting(
        self,
        param,
        title,
        description,
        place_enabled,
        creator_user_id,
        creator_nickname,
        start_date,
        end_date,
        check_creator_nickname=False,
    ):
        with self._lock:
            if param in self._params:
                raise ParamCollision()

            meeting = MeetingRecord(
                id=self._next_id(),
                param=param,
                title=title,
                description=description,
                place_enabled=bool(place_enabled),
                created_at=utcnow(),
            )
            # nothing is written until every check has passed
            if check_creator_nickname and self._nickname_count(meeting.id, creator_nickname):
                raise Conflict(f"Nickname '{creator_nickname}' is already taken.")

            member = MemberRecord(
                id=self._next_id(),
                meeting_id=meeting.id,
                nickname=creator_nickname,
                auth=True,
                user_id=creator_user_id,
            )
            schedule = ScheduleRecord(
                meeting_id=meeting.id, start_date=start_date, end_date=end_date
            )

            self._meetings[meeting.id] = meeting
            self._params[param] = meeting.id
            self._members[member.id] = member
            self._schedules[meeting.id] = schedule
            if creator_user_id is not None:
                self._links[(creator_user_id, meeting.id)] = (
                    creator_user_id,
                    meeting.id,
                    utcnow(),
                    self._next_id(),
                )
            return meeting

    def get_meeting(self, meeting_id):
        with self._lock:
            return self._meetings.get(meeting_id)

    def get_meeting_by_param(self, param):
        with self._lock:
            meeting_id = self._params.get(param)
            return self._meetings.get(meeting_id) if meeting_id else None

    def get_schedule(self, meeting_id):
        with self._lock:
            return self._schedules.get(meeting_id)

    def _nickname_count(self, meeting_id, nickname):
        return sum(
            1
            for member in self._members.values()
            if member.meeting_id == meeting_id and member.nickname == nickname
        )

    def count_members_with_nickname(self, meeting_id, nickname):
        with self._lock:
            return self._nickname_count(meeting_id, nickname)

    def add_member(self, meeting_id, nickname, user_id=None, auth=False):
        with self._lock:
            if meeting_id not in self._meetings:
                raise NotFound(f"Meeting {meeting_id} does not exist.")
            if self._nickname_count(meeting_id, nickname):
                raise Conflict(f"Nickname '{nickname}' is already taken.")

            member = MemberRecord(
                id=self._next_id(),
                meeting_id=meeting_id,
                nickname=nickname,
                auth=auth,
                user_id=user_id,
            )
            self._members[member.id] = member
            if user_id is not None and (user_id, meeting_id) not in self._links:
                self._links[(user_id, meeting_id)] = (
                    user_id,
                    meeting_id,
                    utcnow(),
                    self._next_id(),
                )
            return member

    def get_member(self, member_id):
        with self._lock:
            return self._members.get(member_id)

    def delete_member(self, member_id):
        with self._lock:
            member = self._members.pop(member_id, None)
            if member is None:
                return False

            for place_id in [
                place.id
                for place in self._places.values()
                if place.member_id == member_id
            ]:
                del self._places[place_id]
            if member.user_id is not None:
                self._links.pop((member.user_id, member.meeting_id), None)
            return True

    def add_place(self, member_id, latitude, longitude):
        with self._lock:
            if member_id not in self._members:
                raise NotFound(f"Member {member_id} does not exist.")
            place = PlaceRecord(
                id=self._next_id(),
                member_id=member_id,
                latitude=latitude,
                longitude=longitude,
            )
            self._places[place.id] = place
            return place.id

    def list_places(self, meeting_id):
        with self._lock:
            member_ids = {
                member.id
                for member in self._members.values()
                if member.meeting_id == meeting_id
            }
            return [
                place
                for place in sorted(self._places.values(), key=lambda p: p.id)
                if place.member_id in member_ids
            ]

    def list_members(self, meeting_id):
        with self._lock:
            if meeting_id not in self._meetings:
                return None
            return sorted(
                (
                    member
                    for member in self._members.values()
                    if member.meeting_id == meeting_id
                ),
                key=lambda member: member.id,
            )

    def get_membership(self, user_id, meeting_id):
        with self._lock:
            return next(
                (
                    member
                    for member in self._members.values()
                    if member.meeting_id == meeting_id and member.user_id == user_id
                ),
                None,
            )

    def list_meetings_for_user(self, user_id):
        with self._lock:
            links = sorted(
                (link for link in self._links.values() if link[0] == user_id),
                key=lambda link: (link[2], link[3]),
                reverse=True,
            )
            rows = []
            for _, meeting_id, linked_at, _ in links:
                own = next(
                    (
                        member
                        for member in self._members.values()
                        if member.meeting_id == meeting_id and member.user_id == user_id
                    ),
                    None,
                )
                rows.append(
                    UserMeetingRecord(
                        meeting=self._meetings[meeting_id],
                        linked_at=linked_at,
                        auth=bool(own and own.auth),
                    )
                )
            return rows

    def update_meeting(self, meeting_id, title=None, description=None):
        with self._lock:
            meeting = self._meetings.get(meeting_id)
            if meeting is None:
                return False

            changes = {}
            if title is not None:
                changes["title"] = title
            if description is not None:
                changes["description"] = description
            if changes:
                self._meetings[meeting_id] = dataclasses.replace(meeting, **changes)
            return True
