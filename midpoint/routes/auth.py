from flask import current_app, jsonify, request
from flask_login import current_user, login_required, login_user, logout_user
from sqlalchemy.exc import IntegrityError
from werkzeug.security import check_password_hash, generate_password_hash

from midpoint.extensions import db
from midpoint.models import MeetingMember, User, UserMeeting


def _hash_password(password):
    return generate_password_hash(password, method="pbkdf2:sha256")


def register_auth_routes(app):
    @app.route("/users/join", methods=["POST"])
    def signup():
        data = request.get_json(silent=True) or {}
        username = (data.get("username") or "").strip()
        email = (data.get("email") or "").strip().lower()
        password = data.get("password") or ""

        if not username or not email or not password:
            return jsonify({"ok": False, "error": "Username, email and password are required."}), 400
        if len(password) < 8:
            return jsonify({"ok": False, "error": "Password must be at least 8 characters long."}), 400

        new_user = User(
            username=username,
            email=email,
            password_hash=_hash_password(password),
        )

        try:
            db.session.add(new_user)
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            return jsonify({"ok": False, "error": "Username or email already registered."}), 409
        except Exception:
            db.session.rollback()
            current_app.logger.exception("Could not register user %s", username)
            return jsonify({"ok": False, "error": "Database error: Could not register user."}), 500

        return jsonify({"ok": True, "user": {"id": new_user.id, "username": new_user.username}}), 201

    @app.route("/users/check", methods=["POST"])
    def check_username():
        data = request.get_json(silent=True) or {}
        username = (data.get("username") or "").strip()
        user = User.query.filter_by(username=username).first()
        return jsonify({"exists": user is not None})

    @app.route("/users/login", methods=["POST"])
    def login():
        data = request.get_json(silent=True) or {}
        username = data.get("username")
        password = data.get("password") or ""
        remember = bool(data.get("remember"))

        user = User.query.filter_by(username=username).first()
        if not user or not check_password_hash(user.password_hash, password):
            return jsonify({"ok": False, "error": "Invalid username or password."}), 401

        login_user(user, remember=remember)
        return jsonify({"ok": True, "user": {"id": user.id, "username": user.username}})

    @app.route("/users/password", methods=["PUT"])
    def update_password():
        data = request.get_json(silent=True) or {}
        username = data.get("username")
        password = data.get("password") or ""
        new_password = data.get("new_password") or ""

        user = User.query.filter_by(username=username).first()
        if not user:
            return jsonify({"ok": False, "error": "User not found."}), 404
        if not check_password_hash(user.password_hash, password):
            return jsonify({"ok": False, "error": "Invalid username or password."}), 401
        if len(new_password) < 8:
            return jsonify({"ok": False, "error": "Password must be at least 8 characters long."}), 400

        user.password_hash = _hash_password(new_password)
        db.session.commit()
        return jsonify({"ok": True})

    @app.route("/users", methods=["DELETE"])
    @login_required
    def remove_user():
        user = db.session.get(User, current_user.id)

        try:
            # Memberships stay in their meetings as anonymous members.
            MeetingMember.query.filter_by(user_id=user.id).update(
                {"user_id": None}, synchronize_session=False
            )
            UserMeeting.query.filter_by(user_id=user.id).delete(
                synchronize_session=False
            )
            db.session.delete(user)
            db.session.commit()
        except Exception:
            db.session.rollback()
            current_app.logger.exception("Could not delete user %s", user.id)
            return jsonify({"ok": False, "error": "Database error: Could not delete user."}), 500

        logout_user()
        return jsonify({"ok": True})

    @app.route("/users/logout", methods=["POST"])
    @login_required
    def logout():
        logout_user()
        return jsonify({"ok": True})
