from midpoint.routes.auth import register_auth_routes
from midpoint.routes.meetings import register_meeting_routes


def register_routes(app):
    register_auth_routes(app)
    register_meeting_routes(app)
