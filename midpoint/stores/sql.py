import logging
from contextlib import contextmanager

from sqlalchemy import and_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from midpoint.extensions import db
from midpoint.models import (
    Meeting,
    MeetingMember,
    MeetingPlace,
    MeetingSchedule,
    UserMeeting,
)
from midpoint.services.errors import (
    Conflict,
    CreationFailed,
    MeetingError,
    NotFound,
    ParamCollision,
    StorageFault,
)
from midpoint.stores.records import (
    MeetingRecord,
    MemberRecord,
    PlaceRecord,
    ScheduleRecord,
    UserMeetingRecord,
)

logger = logging.getLogger(__name__)


def _meeting_record(meeting):
    return MeetingRecord(
        id=meeting.id,
        param=meeting.param,
        title=meeting.title,
        description=meeting.description,
        place_enabled=bool(meeting.place_enabled),
        created_at=meeting.created_at,
    )


def _member_record(member):
    return MemberRecord(
        id=member.id,
        meeting_id=member.meeting_id,
        nickname=member.nickname,
        auth=bool(member.auth),
        user_id=member.user_id,
    )


@contextmanager
def _storage_guard(action):
    try:
        yield
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.exception("Meeting store failed to %s", action)
        raise StorageFault() from exc


class SqlMeetingStore:
    """Meeting persistence on the Flask-SQLAlchemy session.

    Must be used inside an application context; the session is scoped to
    that context and released at teardown.
    """

    def param_exists(self, param):
        with _storage_guard("check meeting param"):
            return Meeting.query.filter_by(param=param).count() > 0

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
        try:
            meeting = Meeting(
                param=param,
                title=title,
                description=description,
                place_enabled=place_enabled,
            )
            db.session.add(meeting)
            db.session.flush()

            if check_creator_nickname and MeetingMember.query.filter_by(
                meeting_id=meeting.id, nickname=creator_nickname
            ).count():
                raise Conflict(f"Nickname '{creator_nickname}' is already taken.")

            db.session.add(
                MeetingMember(
                    meeting_id=meeting.id,
                    user_id=creator_user_id,
                    nickname=creator_nickname,
                    auth=True,
                )
            )
            if creator_user_id is not None:
                db.session.add(
                    UserMeeting(user_id=creator_user_id, meeting_id=meeting.id)
                )
            db.session.add(
                MeetingSchedule(
                    meeting_id=meeting.id,
                    start_date=start_date,
                    end_date=end_date,
                )
            )
            db.session.commit()
        except IntegrityError as exc:
            db.session.rollback()
            if self.param_exists(param):
                raise ParamCollision() from exc
            logger.exception("Meeting creation violated a constraint; rolled back")
            raise CreationFailed() from exc
        except MeetingError:
            db.session.rollback()
            raise
        except Exception as exc:
            db.session.rollback()
            logger.exception("Meeting creation failed; rolled back")
            raise CreationFailed() from exc

        return _meeting_record(meeting)

    def get_meeting(self, meeting_id):
        with _storage_guard("load meeting"):
            meeting = db.session.get(Meeting, meeting_id)
            return _meeting_record(meeting) if meeting else None

    def get_meeting_by_param(self, param):
        with _storage_guard("load meeting by param"):
            meeting = Meeting.query.filter_by(param=param).first()
            return _meeting_record(meeting) if meeting else None

    def get_schedule(self, meeting_id):
        with _storage_guard("load schedule"):
            schedule = MeetingSchedule.query.filter_by(meeting_id=meeting_id).first()
            if schedule is None:
                return None
            return ScheduleRecord(
                meeting_id=schedule.meeting_id,
                start_date=schedule.start_date,
                end_date=schedule.end_date,
            )

    def count_members_with_nickname(self, meeting_id, nickname):
        with _storage_guard("count nicknames"):
            return MeetingMember.query.filter_by(
                meeting_id=meeting_id, nickname=nickname
            ).count()

    def _member_conflict(self, meeting_id, nickname, user_id):
        """Names the constraint an ``add_member`` insert tripped over."""
        with _storage_guard("classify member conflict"):
            if db.session.get(Meeting, meeting_id) is None:
                return NotFound(f"Meeting {meeting_id} does not exist.")
            if self.count_members_with_nickname(meeting_id, nickname):
                return Conflict(f"Nickname '{nickname}' is already taken.")
            if user_id is not None and (
                MeetingMember.query.filter_by(user_id=user_id, meeting_id=meeting_id).count()
                or UserMeeting.query.filter_by(user_id=user_id, meeting_id=meeting_id).count()
            ):
                return Conflict("You are already a member of this meeting.")
        return Conflict("Member could not be added.")

    def add_member(self, meeting_id, nickname, user_id=None, auth=False):
        with _storage_guard("load meeting"):
            if db.session.get(Meeting, meeting_id) is None:
                raise NotFound(f"Meeting {meeting_id} does not exist.")

        try:
            member = MeetingMember(
                meeting_id=meeting_id, user_id=user_id, nickname=nickname, auth=auth
            )
            db.session.add(member)
            if user_id is not None:
                linked = UserMeeting.query.filter_by(
                    user_id=user_id, meeting_id=meeting_id
                ).first()
                if linked is None:
                    db.session.add(UserMeeting(user_id=user_id, meeting_id=meeting_id))
            db.session.commit()
        except IntegrityError as exc:
            db.session.rollback()
            raise self._member_conflict(meeting_id, nickname, user_id) from exc
        except SQLAlchemyError as exc:
            db.session.rollback()
            logger.exception("Could not add member to meeting %s", meeting_id)
            raise StorageFault() from exc

        return _member_record(member)

    def get_member(self, member_id):
        with _storage_guard("load member"):
            member = db.session.get(MeetingMember, member_id)
            return _member_record(member) if member else None

    def delete_member(self, member_id):
        with _storage_guard("delete member"):
            member = db.session.get(MeetingMember, member_id)
            if member is None:
                return False

            MeetingPlace.query.filter_by(member_id=member.id).delete(
                synchronize_session=False
            )
            if member.user_id is not None:
                UserMeeting.query.filter_by(
                    user_id=member.user_id, meeting_id=member.meeting_id
                ).delete(synchronize_session=False)
            db.session.delete(member)
            db.session.commit()
            return True

    def add_place(self, member_id, latitude, longitude):
        try:
            place = MeetingPlace(
                member_id=member_id, latitude=latitude, longitude=longitude
            )
            db.session.add(place)
            db.session.commit()
        except IntegrityError as exc:
            # member row vanished between lookup and insert
            db.session.rollback()
            raise NotFound(f"Member {member_id} does not exist.") from exc
        except SQLAlchemyError as exc:
            db.session.rollback()
            logger.exception("Could not add place for member %s", member_id)
            raise StorageFault() from exc

        return place.id

    def list_places(self, meeting_id):
        with _storage_guard("list places"):
            places = (
                MeetingPlace.query.join(
                    MeetingMember, MeetingMember.id == MeetingPlace.member_id
                )
                .filter(MeetingMember.meeting_id == meeting_id)
                .order_by(MeetingPlace.id)
                .all()
            )
            return [
                PlaceRecord(
                    id=place.id,
                    member_id=place.member_id,
                    latitude=place.latitude,
                    longitude=place.longitude,
                )
                for place in places
            ]

    def list_members(self, meeting_id):
        with _storage_guard("list members"):
            if db.session.get(Meeting, meeting_id) is None:
                return None
            members = (
                MeetingMember.query.filter_by(meeting_id=meeting_id)
                .order_by(MeetingMember.id)
                .all()
            )
            return [_member_record(member) for member in members]

    def get_membership(self, user_id, meeting_id):
        with _storage_guard("load membership"):
            member = MeetingMember.query.filter_by(
                user_id=user_id, meeting_id=meeting_id
            ).first()
            return _member_record(member) if member else None

    def list_meetings_for_user(self, user_id):
        with _storage_guard("list user meetings"):
            rows = (
                db.session.query(Meeting, UserMeeting.created_at, MeetingMember.auth)
                .join(UserMeeting, UserMeeting.meeting_id == Meeting.id)
                .outerjoin(
                    MeetingMember,
                    and_(
                        MeetingMember.meeting_id == Meeting.id,
                        MeetingMember.user_id == UserMeeting.user_id,
                    ),
                )
                .filter(UserMeeting.user_id == user_id)
                .order_by(UserMeeting.created_at.desc(), UserMeeting.id.desc())
                .all()
            )
            return [
                UserMeetingRecord(
                    meeting=_meeting_record(meeting),
                    linked_at=linked_at,
                    auth=bool(auth),
                )
                for meeting, linked_at, auth in rows
            ]

    def update_meeting(self, meeting_id, title=None, description=None):
        values = {}
        if title is not None:
            values["title"] = title
        if description is not None:
            values["description"] = description

        with _storage_guard("update meeting"):
            if not values:
                return db.session.get(Meeting, meeting_id) is not None
            updated = Meeting.query.filter_by(id=meeting_id).update(
                values, synchronize_session=False
            )
            db.session.commit()
            return updated > 0
