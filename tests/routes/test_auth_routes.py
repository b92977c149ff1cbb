from werkzeug.security import check_password_hash

from midpoint.models import MeetingMember, User, UserMeeting


def test_signup_and_duplicate(client, db_session):
    payload = {"username": "carol", "email": "Carol@Example.com", "password": "long-enough"}

    response = client.post("/users/join", json=payload)
    assert response.status_code == 201
    assert response.get_json()["user"]["username"] == "carol"
    assert User.query.filter_by(username="carol").one().email == "carol@example.com"

    response = client.post("/users/join", json=payload)
    assert response.status_code == 409


def test_signup_validation(client):
    response = client.post("/users/join", json={"username": "dave", "email": "d@example.com"})
    assert response.status_code == 400

    response = client.post(
        "/users/join", json={"username": "dave", "email": "d@example.com", "password": "short"}
    )
    assert response.status_code == 400


def test_check_username(client, user):
    assert client.post("/users/check", json={"username": "alice"}).get_json() == {"exists": True}
    assert client.post("/users/check", json={"username": "zed"}).get_json() == {"exists": False}


def test_login_and_logout(client, user):
    response = client.post("/users/login", json={"username": "alice", "password": "wrong"})
    assert response.status_code == 401

    response = client.post(
        "/users/login", json={"username": "alice", "password": "correct-horse"}
    )
    assert response.status_code == 200
    assert response.get_json()["user"]["id"] == user.id
    assert client.get("/meetings").status_code == 200

    assert client.post("/users/logout").status_code == 200
    assert client.get("/meetings").status_code == 401


def test_update_password(client, user, db_session):
    response = client.put(
        "/users/password",
        json={"username": "nobody", "password": "x", "new_password": "whatever-long"},
    )
    assert response.status_code == 404

    response = client.put(
        "/users/password",
        json={"username": "alice", "password": "wrong", "new_password": "whatever-long"},
    )
    assert response.status_code == 401

    response = client.put(
        "/users/password",
        json={"username": "alice", "password": "correct-horse", "new_password": "new-password-1"},
    )
    assert response.status_code == 200
    assert check_password_hash(db_session.get(User, user.id).password_hash, "new-password-1")


def test_remove_user_keeps_memberships_anonymous(auth_client, user, db_session):
    user_id = user.id
    created = auth_client.post(
        "/meetings",
        json={
            "title": "Lunch",
            "nickname": "alice",
            "start_date": "2026-11-02T12:00:00",
            "end_date": "2026-11-02T13:00:00",
        },
    ).get_json()["meeting"]

    response = auth_client.delete("/users")

    assert response.status_code == 200
    assert db_session.get(User, user_id) is None
    member = MeetingMember.query.filter_by(meeting_id=created["id"]).one()
    assert member.user_id is None
    assert member.nickname == "alice"
    assert UserMeeting.query.count() == 0
