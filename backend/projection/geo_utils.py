# geo_utils.py
import math

from .mercator import GeodeticPoint

EARTH_RADIUS_M = 6371000


def haversine_distance(lat1, lon1, lat2, lon2):
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlambda = math.radians(lon2 - lon1)

    a = math.sin(dphi/2)**2 + math.cos(phi1)*math.cos(phi2)*math.sin(dlambda/2)**2
    return 2 * EARTH_RADIUS_M * math.atan2(math.sqrt(a), math.sqrt(1-a))


def distance_between(a: GeodeticPoint, b: GeodeticPoint) -> float:
    """Great-circle distance in metres between two geodetic points."""
    return haversine_distance(a.latitude, a.longitude, b.latitude, b.longitude)
