from midpoint.extensions import db, utcnow


class Meeting(db.Model):
    __tablename__ = "meetings"

    id = db.Column(db.Integer, primary_key=True)
    param = db.Column(db.String(36), unique=True, nullable=False, index=True)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=True)
    place_enabled = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    members = db.relationship("MeetingMember", backref="meeting", lazy=True)
    schedule = db.relationship(
        "MeetingSchedule", backref="meeting", uselist=False, lazy=True
    )
    user_links = db.relationship("UserMeeting", backref="meeting", lazy=True)
