import enum
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from midpoint.services.errors import (
    AllocationExhausted,
    Conflict,
    InvalidInput,
    NotFound,
    ParamCollision,
    Unauthorized,
)
from midpoint.services.geo import centroid, haversine_distance, rank_by_distance
from midpoint.services.identifiers import DEFAULT_MAX_ATTEMPTS, IdentifierAllocator

logger = logging.getLogger(__name__)

DEFAULT_SUGGESTION_LIMIT = 5
CREATED_AT_FORMAT = "%Y-%m-%d %H:%M:%S"
MAX_NICKNAME_LENGTH = 50
MAX_TITLE_LENGTH = 200


class MeetingState(enum.Enum):
    CREATED = "CREATED"
    PLACES_COLLECTING = "PLACES_COLLECTING"
    SUGGESTION_READY = "SUGGESTION_READY"


@dataclass(frozen=True)
class StationSuggestion:
    name: str
    line: str
    lat: float
    lng: float
    distance: float

    def to_dict(self):
        return {
            "name": self.name,
            "line": self.line,
            "lat": self.lat,
            "lng": self.lng,
            "distance": round(self.distance),
        }


@dataclass(frozen=True)
class PlaceSuggestion:
    center: Tuple[float, float]
    stations: List[StationSuggestion] = field(default_factory=list)

    def to_dict(self):
        lat, lng = self.center
        return {
            "center": {"latitude": lat, "longitude": lng},
            "stations": [station.to_dict() for station in self.stations],
        }


def _clean_text(value, field_name="Value"):
    if value is None:
        return ""
    if not isinstance(value, str):
        raise InvalidInput(f"{field_name} must be a string.")
    return value.strip()


def _validate_title(title):
    if not title:
        raise InvalidInput("Meeting title is required.")
    if len(title) > MAX_TITLE_LENGTH:
        raise InvalidInput(f"Meeting title must be at most {MAX_TITLE_LENGTH} characters.")
    return title


def _validate_nickname(nickname):
    if not nickname:
        raise InvalidInput("Nickname is required.")
    if len(nickname) > MAX_NICKNAME_LENGTH:
        raise InvalidInput(
            f"Nickname must be at most {MAX_NICKNAME_LENGTH} characters."
        )
    return nickname


def _validate_coordinates(latitude, longitude):
    try:
        lat = float(latitude)
        lng = float(longitude)
    except (TypeError, ValueError):
        raise InvalidInput("Latitude and longitude must be numbers.") from None
    if not -90.0 <= lat <= 90.0:
        raise InvalidInput("Latitude must be between -90 and 90.")
    if not -180.0 <= lng <= 180.0:
        raise InvalidInput("Longitude must be between -180 and 180.")
    return lat, lng


class MeetingService:
    """Meeting lifecycle on top of a meeting store and a station catalog.

    ``store`` is a ``SqlMeetingStore`` or ``InMemoryMeetingStore``;
    ``catalog`` is anything with ``all_stations()``.
    """

    def __init__(
        self,
        store,
        catalog,
        max_attempts=DEFAULT_MAX_ATTEMPTS,
        suggestion_limit=DEFAULT_SUGGESTION_LIMIT,
        validate_creator_nickname=False,
        enforce_schedule_order=True,
        allocator=None,
    ):
        self.store = store
        self.catalog = catalog
        self.max_attempts = max_attempts
        self.suggestion_limit = suggestion_limit
        self.validate_creator_nickname = validate_creator_nickname
        self.enforce_schedule_order = enforce_schedule_order
        self.allocator = allocator or IdentifierAllocator(
            store.param_exists, max_attempts=max_attempts
        )

    @classmethod
    def from_config(cls, config, store, catalog):
        return cls(
            store,
            catalog,
            max_attempts=config.get("PARAM_MAX_ATTEMPTS", DEFAULT_MAX_ATTEMPTS),
            suggestion_limit=config.get("SUGGESTION_LIMIT", DEFAULT_SUGGESTION_LIMIT),
            validate_creator_nickname=config.get("VALIDATE_CREATOR_NICKNAME", False),
            enforce_schedule_order=config.get("ENFORCE_SCHEDULE_ORDER", True),
        )

    def _require_meeting(self, meeting_id):
        meeting = self.store.get_meeting(meeting_id)
        if meeting is None:
            raise NotFound(f"Meeting {meeting_id} does not exist.")
        return meeting

    def create_meeting(
        self,
        actor_user_id,
        title,
        nickname,
        start_date,
        end_date,
        description=None,
        place_enabled=False,
    ):
        title = _validate_title(_clean_text(title, "Title"))
        nickname = _validate_nickname(_clean_text(nickname, "Nickname"))
        description = _clean_text(description, "Description") or None
        if start_date is None or end_date is None:
            raise InvalidInput("Start and end dates are required.")
        if self.enforce_schedule_order and end_date < start_date:
            raise InvalidInput("End date must not be before start date.")

        for _ in range(self.max_attempts):
            param = self.allocator.allocate()
            try:
                meeting = self.store.create_meeting(
                    param=param,
                    title=title,
                    description=description,
                    place_enabled=bool(place_enabled),
                    creator_user_id=actor_user_id,
                    creator_nickname=nickname,
                    start_date=start_date,
                    end_date=end_date,
                    check_creator_nickname=self.validate_creator_nickname,
                )
            except ParamCollision:
                logger.warning("Meeting param %s was taken concurrently; retrying", param)
                continue

            logger.info(
                "Created meeting %s (param=%s, creator_user=%s)",
                meeting.id,
                meeting.param,
                actor_user_id,
            )
            return meeting

        raise AllocationExhausted(
            f"Meeting param kept colliding after {self.max_attempts} attempts."
        )

    def get_meeting(self, param):
        meeting = self.store.get_meeting_by_param(param)
        if meeting is None:
            raise NotFound("Meeting does not exist.")
        return meeting

    def get_schedule(self, meeting_id):
        self._require_meeting(meeting_id)
        return self.store.get_schedule(meeting_id)

    def join_meeting(self, meeting_id, nickname, user_id=None):
        nickname = _validate_nickname(_clean_text(nickname, "Nickname"))
        self._require_meeting(meeting_id)

        if user_id is not None and self.store.get_membership(user_id, meeting_id):
            raise Conflict("You are already a member of this meeting.")
        if not self.check_nickname_available(meeting_id, nickname):
            raise Conflict(f"Nickname '{nickname}' is already taken.")

        return self.store.add_member(meeting_id, nickname, user_id=user_id)

    def list_members(self, meeting_id):
        members = self.store.list_members(meeting_id)
        if members is None:
            raise NotFound(f"Meeting {meeting_id} does not exist.")
        return members

    def check_nickname_available(self, meeting_id, nickname):
        return self.store.count_members_with_nickname(meeting_id, nickname) == 0

    def propose_place(self, member_id, latitude, longitude):
        lat, lng = _validate_coordinates(latitude, longitude)
        if self.store.get_member(member_id) is None:
            raise NotFound(f"Member {member_id} does not exist.")
        return self.store.add_place(member_id, lat, lng)

    def list_meetings_for_user(self, user_id):
        return [
            {
                "id": row.meeting.id,
                "title": row.meeting.title,
                "param": row.meeting.param,
                "description": row.meeting.description,
                "place_enabled": row.meeting.place_enabled,
                "created_at": row.linked_at.strftime(CREATED_AT_FORMAT),
                "auth": row.auth,
            }
            for row in self.store.list_meetings_for_user(user_id)
        ]

    def update_meeting(self, meeting_id, title=None, description=None):
        self._require_meeting(meeting_id)
        if title is not None:
            title = _validate_title(_clean_text(title, "Title"))
        if description is not None:
            description = _clean_text(description, "Description")

        if not self.store.update_meeting(meeting_id, title=title, description=description):
            raise NotFound(f"Meeting {meeting_id} does not exist.")
        return self.store.get_meeting(meeting_id)

    def is_authorized(self, user_id, meeting_id):
        member = self.store.get_membership(user_id, meeting_id)
        if member is None:
            raise NotFound("You are not a member of this meeting.")
        return member.auth

    def require_authorized(self, user_id, meeting_id):
        self._require_meeting(meeting_id)
        if user_id is None:
            raise Unauthorized()
        try:
            authorized = self.is_authorized(user_id, meeting_id)
        except NotFound:
            raise Unauthorized() from None
        if not authorized:
            raise Unauthorized()

    def find_member(self, member_id):
        return self.store.get_member(member_id)

    def remove_member(self, member_id):
        if self.store.delete_member(member_id):
            logger.info("Removed member %s", member_id)

    def suggest_place(self, meeting_id) -> Optional[PlaceSuggestion]:
        places = self.store.list_places(meeting_id)
        if not places:
            return None

        center = centroid((place.latitude, place.longitude) for place in places)
        ranked = rank_by_distance(
            center,
            self.catalog.all_stations(),
            key=lambda station: (station.lat, station.lng),
        )
        stations = [
            StationSuggestion(
                name=station.name,
                line=station.line,
                lat=station.lat,
                lng=station.lng,
                distance=haversine_distance(center[0], center[1], station.lat, station.lng),
            )
            for station in ranked[: self.suggestion_limit]
        ]
        return PlaceSuggestion(center=center, stations=stations)

    def meeting_state(self, meeting_id):
        members = self.list_members(meeting_id)
        places = self.store.list_places(meeting_id)
        if not places:
            return MeetingState.CREATED

        proposers = {place.member_id for place in places}
        if all(member.id in proposers for member in members):
            return MeetingState.SUGGESTION_READY
        return MeetingState.PLACES_COLLECTING
