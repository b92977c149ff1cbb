from flask_login import UserMixin

from midpoint.extensions import db, utcnow


class User(UserMixin, db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(80), unique=True, nullable=False)
    email = db.Column(db.String(255), unique=True, nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    memberships = db.relationship("MeetingMember", backref="user", lazy=True)
    meeting_links = db.relationship("UserMeeting", backref="user", lazy=True)
