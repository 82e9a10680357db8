"""Application constants."""

USER_AGENT = "budgetmap/0.3 (+municipal budget map)"
COMMANDS = (
    "decode",
    "locate",
    "search",
    "serve",
)
EXIT_SUCCESS = 0
EXIT_NOT_FOUND = 10
EXIT_HARD_FAIL = 20

TOPOLOGY_TYPE = "Topology"
WEB_MERCATOR_EPSG = 3857
WEB_MERCATOR_ALIASES = (3857, 900913, 102100, 102113)
WGS84_EPSG = 4326
# Half the equatorial circumference of the spherical Web Mercator projection.
WEB_MERCATOR_BOUND = 20037508.34

MILLION = 1_000_000
RECENT_ALLOCATIONS_LIMIT = 100

JSON_LOG_FIELDS = (
    "timestamp",
    "run_id",
    "stage",
    "source",
    "event",
    "status",
    "duration_ms",
    "features_in",
    "features_out",
    "error_code",
    "message",
)
