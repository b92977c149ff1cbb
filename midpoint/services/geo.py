import math

# Equatorial radius in meters (WGS-84).
EARTH_RADIUS = 6378137


class EmptyInput(ValueError):
    pass


def haversine_distance(lat1, lng1, lat2, lng2):
    """Great-circle distance between two coordinates in meters."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlambda = math.radians(lng2 - lng1)

    a = (
        math.sin(dphi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
    )
    return 2 * EARTH_RADIUS * math.asin(min(1.0, math.sqrt(a)))


def centroid(points):
    """Geographic centre of ``(lat, lng)`` pairs.

    Each point is projected onto the unit sphere, the cartesian vectors are
    averaged and the mean is projected back to latitude/longitude.
    """
    points = list(points)
    if not points:
        raise EmptyInput("Cannot compute the centre of zero points.")
    if len(points) == 1:
        lat, lng = points[0]
        return float(lat), float(lng)

    x = y = z = 0.0
    for lat, lng in points:
        phi = math.radians(lat)
        lam = math.radians(lng)
        x += math.cos(phi) * math.cos(lam)
        y += math.cos(phi) * math.sin(lam)
        z += math.sin(phi)

    count = len(points)
    x /= count
    y /= count
    z /= count

    lng = math.atan2(y, x)
    lat = math.atan2(z, math.sqrt(x * x + y * y))
    return math.degrees(lat), math.degrees(lng)


def _as_point(candidate):
    return candidate[0], candidate[1]


def rank_by_distance(origin, candidates, key=_as_point):
    """Candidates ordered nearest first; equal distances keep input order."""
    origin_lat, origin_lng = origin

    def distance(candidate):
        lat, lng = key(candidate)
        return haversine_distance(origin_lat, origin_lng, lat, lng)

    return sorted(candidates, key=distance)
