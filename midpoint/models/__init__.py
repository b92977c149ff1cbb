from midpoint.models.meeting import Meeting
from midpoint.models.meeting_member import MeetingMember
from midpoint.models.meeting_place import MeetingPlace
from midpoint.models.meeting_schedule import MeetingSchedule
from midpoint.models.station import Station
from midpoint.models.user import User
from midpoint.models.user_meeting import UserMeeting

__all__ = [
    "User",
    "Meeting",
    "MeetingMember",
    "MeetingSchedule",
    "MeetingPlace",
    "UserMeeting",
    "Station",
]
