from midpoint.extensions import db, utcnow


class UserMeeting(db.Model):
    __tablename__ = "users_to_meetings"
    __table_args__ = (
        db.UniqueConstraint("user_id", "meeting_id", name="uq_user_meeting"),
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    meeting_id = db.Column(db.Integer, db.ForeignKey("meetings.id"), nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
