from flask import Flask

from midpoint.config import Config
from midpoint.extensions import db, login_manager, migrate
from midpoint.models import User
from midpoint.routes import register_routes


def create_app(test_config=None):
    app = Flask(__name__)
    app.config.from_object(Config)
    if test_config:
        app.config.update(test_config)

    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)

    @login_manager.user_loader
    def load_user(user_id):
        return db.session.get(User, int(user_id))

    @login_manager.unauthorized_handler
    def unauthorized():
        return {"ok": False, "error": "Login required.", "kind": "Unauthorized"}, 401

    register_routes(app)
    return app


__all__ = ["db", "migrate", "create_app"]
