from datetime import datetime, timezone

from flask import current_app, request
from flask_login import current_user, login_required

from midpoint.services.errors import (
    CreationFailed,
    InvalidInput,
    MeetingError,
    StorageFault,
)
from midpoint.services.meetings import MeetingService
from midpoint.stores import SqlMeetingStore, SqlStationCatalog


def meeting_service():
    return MeetingService.from_config(
        current_app.config, SqlMeetingStore(), SqlStationCatalog()
    )


def _actor_id():
    return current_user.id if current_user.is_authenticated else None


def _payload():
    return request.get_json(silent=True) or request.form.to_dict()


def _parse_datetime(raw, field):
    if not raw:
        return None
    try:
        value = datetime.fromisoformat(str(raw).strip())
    except ValueError:
        raise InvalidInput(f"'{field}' must be an ISO 8601 date.") from None
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def _parse_bool(raw):
    if isinstance(raw, bool):
        return raw
    return str(raw or "").strip().lower() in ("1", "true", "y", "yes", "on")


def _parse_int(raw, field):
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise InvalidInput(f"'{field}' must be an integer.") from None


def register_meeting_routes(app):
    @app.errorhandler(MeetingError)
    def handle_meeting_error(exc):
        if isinstance(exc, (CreationFailed, StorageFault)):
            current_app.logger.error(
                "%s %s failed: %s", request.method, request.path, exc.message
            )
        return {"ok": False, "error": exc.message, "kind": exc.kind}, exc.status_code

    @app.route("/meetings", methods=["POST"])
    def create_meeting():
        data = _payload()
        meeting = meeting_service().create_meeting(
            _actor_id(),
            title=data.get("title"),
            nickname=data.get("nickname"),
            start_date=_parse_datetime(data.get("start_date"), "start_date"),
            end_date=_parse_datetime(data.get("end_date"), "end_date"),
            description=data.get("description"),
            place_enabled=_parse_bool(data.get("place_enabled")),
        )
        return {"ok": True, "meeting": meeting.to_dict()}, 201

    @app.route("/meetings/by-param/<param>")
    def meeting_by_param(param):
        service = meeting_service()
        meeting = service.get_meeting(param)
        schedule = service.get_schedule(meeting.id)
        members = service.list_members(meeting.id)
        return {
            "ok": True,
            "meeting": meeting.to_dict(),
            "schedule": schedule.to_dict() if schedule else None,
            "members": [member.to_dict() for member in members],
            "state": service.meeting_state(meeting.id).value,
        }

    @app.route("/meetings/<int:meeting_id>/members", methods=["GET", "POST"])
    def meeting_members(meeting_id):
        service = meeting_service()
        if request.method == "POST":
            member = service.join_meeting(
                meeting_id, _payload().get("nickname"), user_id=_actor_id()
            )
            return {"ok": True, "member": member.to_dict()}, 201

        members = service.list_members(meeting_id)
        return {"ok": True, "members": [member.to_dict() for member in members]}

    @app.route("/meetings/<int:meeting_id>/nickname")
    def check_nickname(meeting_id):
        nickname = (request.args.get("nickname") or "").strip()
        if not nickname:
            raise InvalidInput("Nickname is required.")
        available = meeting_service().check_nickname_available(meeting_id, nickname)
        return {"ok": True, "available": available}

    @app.route("/meetings/places", methods=["POST"])
    def propose_place():
        data = _payload()
        place_id = meeting_service().propose_place(
            _parse_int(data.get("member_id"), "member_id"),
            data.get("latitude"),
            data.get("longitude"),
        )
        return {"ok": True, "place_id": place_id}, 201

    @app.route("/meetings")
    @login_required
    def my_meetings():
        return {
            "ok": True,
            "meetings": meeting_service().list_meetings_for_user(current_user.id),
        }

    @app.route("/meetings/<int:meeting_id>", methods=["PATCH"])
    @login_required
    def update_meeting(meeting_id):
        service = meeting_service()
        service.require_authorized(current_user.id, meeting_id)

        data = _payload()
        meeting = service.update_meeting(
            meeting_id,
            title=data.get("title"),
            description=data.get("description"),
        )
        return {"ok": True, "meeting": meeting.to_dict()}

    @app.route("/meetings/<int:meeting_id>/auth")
    @login_required
    def meeting_auth(meeting_id):
        return {
            "ok": True,
            "auth": meeting_service().is_authorized(current_user.id, meeting_id),
        }

    @app.route("/meetings/members/<int:member_id>", methods=["DELETE"])
    @login_required
    def remove_member(member_id):
        service = meeting_service()
        member = service.find_member(member_id)
        if member is not None and member.user_id != current_user.id:
            service.require_authorized(current_user.id, member.meeting_id)

        service.remove_member(member_id)
        current_app.logger.info(
            "User %s removed member %s", current_user.id, member_id
        )
        return {"ok": True}

    @app.route("/meetings/<int:meeting_id>/place")
    def suggested_place(meeting_id):
        suggestion = meeting_service().suggest_place(meeting_id)
        return {"ok": True, "suggestion": suggestion.to_dict() if suggestion else {}}

    @app.route("/meetings/<int:meeting_id>/state")
    def meeting_state(meeting_id):
        return {"ok": True, "state": meeting_service().meeting_state(meeting_id).value}
