"""Internal constants shared across the library."""

USER_AGENT = "pyallogas/0.1"

# ------------------------------------------------------------------
# Location
# ------------------------------------------------------------------

#: Yaoundé city centre, used whenever a live fix cannot be obtained.
FALLBACK_LATITUDE = 3.848
FALLBACK_LONGITUDE = 11.502

DEFAULT_LOCATION_TIMEOUT_S = 15.0
DEFAULT_LOCATION_MAXIMUM_AGE_S = 300.0
DEFAULT_PERMISSION_PROMPT_TIMEOUT_S = 10.0

MSG_PERMISSION_DENIED = "Location access denied. Showing sellers near the default location."
MSG_POSITION_UNAVAILABLE = "Location unavailable. Showing sellers near the default location."
MSG_TIMEOUT = "Location request timed out. Showing sellers near the default location."
MSG_NOT_SUPPORTED = "Geolocation not supported. Showing sellers near the default location."

# ------------------------------------------------------------------
# Geometry
# ------------------------------------------------------------------

EARTH_RADIUS_KM = 6371.0
POLYLINE_PRECISION = 5

# ------------------------------------------------------------------
# Routing
# ------------------------------------------------------------------

ORS_BASE_URL = "https://api.openrouteservice.org"
ORS_DEFAULT_PROFILE = "driving-car"
OSRM_BASE_URL = "https://router.project-osrm.org"
OSRM_DEFAULT_PROFILE = "driving"

DEFAULT_ROUTE_TIMEOUT_S = 10.0
ROUTE_CACHE_TTL_S = 10 * 60.0
ROUTE_CACHE_MAX_ENTRIES = 50
ROUTE_KEY_PRECISION = 6

# ------------------------------------------------------------------
# Catalog
# ------------------------------------------------------------------

KNOWN_BRANDS: tuple[str, ...] = ("SCTM", "BOCOM", "OILIBYA", "CAMGAZ", "TOTAL", "TRADEX")

#: Bottles at or below this weight are sold as the "small" size class.
SMALL_BOTTLE_MAX_KG = 6.0
