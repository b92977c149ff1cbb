from midpoint.extensions import db, utcnow


class MeetingMember(db.Model):
    __tablename__ = "meeting_members"
    __table_args__ = (
        db.UniqueConstraint("meeting_id", "nickname", name="uq_member_meeting_nickname"),
    )

    id = db.Column(db.Integer, primary_key=True)
    meeting_id = db.Column(
        db.Integer, db.ForeignKey("meetings.id"), nullable=False, index=True
    )
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, index=True)
    nickname = db.Column(db.String(50), nullable=False)
    auth = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    places = db.relationship("MeetingPlace", backref="member", lazy=True)
