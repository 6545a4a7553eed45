"""
Constants for chuk-mcp-dtm server.

All magic strings, zone tables, source attributions, and limits live here.
"""


class ServerConfig:
    NAME = "chuk-mcp-dtm"
    VERSION = "0.1.0"
    DESCRIPTION = "Tiled DTM Elevation, Histogram & Profile MCP Server"


class StorageProvider:
    MEMORY = "memory"
    S3 = "s3"
    FILESYSTEM = "filesystem"


class SessionProvider:
    MEMORY = "memory"
    REDIS = "redis"


class EnvVar:
    TILE_REPOSITORIES = "DTM_TILE_REPOSITORIES"
    REPOSITORY_CSV = "DTM_REPOSITORY_CSV"
    LOG_LEVEL = "DTM_LOG_LEVEL"
    ARTIFACTS_PROVIDER = "CHUK_ARTIFACTS_PROVIDER"
    BUCKET_NAME = "BUCKET_NAME"
    REDIS_URL = "REDIS_URL"
    ARTIFACTS_PATH = "CHUK_ARTIFACTS_PATH"
    AWS_ACCESS_KEY_ID = "AWS_ACCESS_KEY_ID"
    AWS_SECRET_ACCESS_KEY = "AWS_SECRET_ACCESS_KEY"
    AWS_ENDPOINT_URL_S3 = "AWS_ENDPOINT_URL_S3"
    MCP_STDIO = "MCP_STDIO"


LOG_LEVELS = {
    "debug": "DEBUG",
    "info": "INFO",
    "warn": "WARNING",
    "warning": "WARNING",
    "error": "ERROR",
}
DEFAULT_LOG_LEVEL = "info"


# ---------------------------------------------------------------------------
# Tiles
# ---------------------------------------------------------------------------

TILE_SIZE_M = 1000
# Primary, secondary, tertiary. A fourth overlapping record lands in slot 3.
TILE_VARIANTS = (1, 2, 3)
MAX_TILE_VARIANTS = len(TILE_VARIANTS)

# Domain-wide missing elevation marker, checked alongside each raster's nodata
NO_DATA_SENTINEL = -9999.0
NO_DATA_THRESHOLD = -9998.9

SUPPORTED_DTYPES = (
    "uint8",
    "int8",
    "int16",
    "uint16",
    "int32",
    "uint32",
    "float32",
    "float64",
)

REPOSITORY_CSV_HEADER = ["Index", "Path", "Source", "Actuality"]

# Raw tile delivery
RAW_TILE_FORMAT = "GeoTIFF"
RAW_TILE_MIME_TYPE = "image/tiff"
RAW_TILE_REF_PREFIX = "dtm/"


# ---------------------------------------------------------------------------
# UTM zones (ETRS89 / UTM, EPSG:258xx)
# ---------------------------------------------------------------------------

UTM_EPSG_BASE = 25800
WGS84_CRS = "EPSG:4326"

# (lon_min, lon_max, zone, neighbor-threshold, east neighbor, west neighbor)
ZONE_BANDS: list[tuple[float, float, int, float, int, int]] = [
    (0.0, 6.0, 31, 3.0, 32, 30),
    (6.0, 12.0, 32, 9.0, 33, 31),
    (12.0, 18.0, 33, 15.0, 34, 32),
]

SUPPORTED_REQUEST_ZONES = (32, 33)

# Coverage guard for geographic requests
LON_MIN = 5.5
LON_MAX = 15.3
LAT_MIN = 47.0
LAT_MAX = 55.3


def epsg_for_zone(zone: int) -> int:
    """Return the ETRS89 / UTM EPSG code for a zone number."""
    return UTM_EPSG_BASE + zone


# ---------------------------------------------------------------------------
# Histogram
# ---------------------------------------------------------------------------


class HistogramType:
    STANDARD = "standard"
    EQUAL_WIDTH = "equal_width"
    QUANTILE = "quantile"


HISTOGRAM_TYPES = [HistogramType.STANDARD, HistogramType.EQUAL_WIDTH, HistogramType.QUANTILE]
DEFAULT_HISTOGRAM_TYPE = HistogramType.STANDARD
MIN_BINS = 1
MAX_BINS = 999
DEFAULT_BINS = 10

# Expansion applied when every value is identical
DEGENERATE_RANGE_FACTOR = 0.0001
DEGENERATE_RANGE_MIN = 0.0001


# ---------------------------------------------------------------------------
# Profile
# ---------------------------------------------------------------------------

MIN_PROFILE_POINTS = 2
MAX_PROFILE_POINTS = 2000
DEFAULT_PROFILE_POINTS = 100
MIN_STEP_SIZE_M = 1.0
MAX_STEP_SIZE_M = 1000.0
DEFAULT_STEP_SIZE_M = 1.0


# ---------------------------------------------------------------------------
# Source attributions
# ---------------------------------------------------------------------------

UNKNOWN_ATTRIBUTION = "unknown"

ELEVATION_SOURCES: dict[str, dict[str, str]] = {
    "DE-BW": {
        "code": "DE-BW",
        "name": "Baden-Württemberg",
        "attribution": "© GeoBasis-DE / LGL-BW (2025), dl-de/by-2-0",
    },
    "DE-BY": {
        "code": "DE-BY",
        "name": "Bayern",
        "attribution": (
            "Datenquelle: Bayerische Vermessungsverwaltung – geodaten.bayern.de, cc-by/4.0"
        ),
    },
    "DE-BE": {
        "code": "DE-BE",
        "name": "Berlin",
        "attribution": "siehe Brandenburg",
    },
    "DE-BB": {
        "code": "DE-BB",
        "name": "Brandenburg",
        "attribution": "© GeoBasis-DE / LGB, dl-de/by-2-0",
    },
    "DE-HB": {
        "code": "DE-HB",
        "name": "Bremen",
        "attribution": (
            "Quellenvermerk: Landesamt GeoInformation Bremen, cc-by/4.0, Quelle verändert"
        ),
    },
    "DE-HH": {
        "code": "DE-HH",
        "name": "Hamburg",
        "attribution": (
            "Quellenvermerk: Freie und Hansestadt Hamburg, Landesbetrieb Geoinformation "
            "und Vermessung (LGV), dl-de/by-2-0"
        ),
    },
    "DE-HE": {
        "code": "DE-HE",
        "name": "Hessen",
        "attribution": (
            "Geobasisdaten © Hessische Verwaltung für Bodenmanagement und Geoinformation, "
            "dl-de/by-2-0"
        ),
    },
    "DE-MV": {
        "code": "DE-MV",
        "name": "Mecklenburg-Vorpommern",
        "attribution": "© GeoBasis-DE/MV (2025), dl-de/by-2-0, Quelle verändert",
    },
    "DE-NI": {
        "code": "DE-NI",
        "name": "Niedersachsen",
        "attribution": "© GeoBasis-DE / LGLN (2025), cc-by/4.0",
    },
    "DE-NW": {
        "code": "DE-NW",
        "name": "Nordrhein-Westfalen",
        "attribution": "© GeoBasis-DE / NRW (2025), dl-de/by-2-0",
    },
    "DE-RP": {
        "code": "DE-RP",
        "name": "Rheinland-Pfalz",
        "attribution": "© GeoBasis-DE / LVermGeoRP (2025), dl-de/by-2-0",
    },
    "DE-SL": {
        "code": "DE-SL",
        "name": "Saarland",
        "attribution": "© GeoBasis DE/LVGL-SL (2025), dl-de/by-2-0",
    },
    "DE-SN": {
        "code": "DE-SN",
        "name": "Sachsen",
        "attribution": "© GeoBasis-DE / GeoSN (2025), dl-de/by-2-0",
    },
    "DE-ST": {
        "code": "DE-ST",
        "name": "Sachsen-Anhalt",
        "attribution": "© GeoBasis-DE / LVermGeo ST, dl-de/by-2-0, Quelle verändert",
    },
    "DE-SH": {
        "code": "DE-SH",
        "name": "Schleswig-Holstein",
        "attribution": "© GeoBasis-DE / LVermGeo SH, cc-by/4.0, Quelle verändert",
    },
    "DE-TH": {
        "code": "DE-TH",
        "name": "Thüringen",
        "attribution": "© GDI-Th (2025), dl-de/by-2-0",
    },
}

ALL_SOURCE_CODES = list(ELEVATION_SOURCES.keys())


def get_attribution(code: str) -> str:
    """Return the attribution text for a region code, or 'unknown'."""
    source = ELEVATION_SOURCES.get(code)
    if source is None:
        return UNKNOWN_ATTRIBUTION
    return source["attribution"]


# Tool families reported by dtm_capabilities
POINT_TOOLS = ["dtm_point", "dtm_utm_point", "dtm_points"]
ANALYSIS_TOOLS = ["dtm_histogram", "dtm_profile"]
DOWNLOAD_TOOLS = ["dtm_raw_tile"]


class ErrorMessages:
    TILE_NOT_FOUND = "tile [{}] not found"
    TILE_NOT_FOUND_BOTH_ZONES = (
        "no tile found for lon {}, lat {} (zone {}: {:.1f}/{:.1f}, zone {}: {:.1f}/{:.1f})"
    )
    INVALID_LONGITUDE = "invalid longitude {} (supported: 0 to 18 degrees east)"
    TRANSFORM_FAILED = "coordinate transformation to {} failed for ({}, {})"
    DESCRIPTOR_READ_FAILED = "error reading tile descriptor file [{}]: {}"
    DESCRIPTOR_PARSE_FAILED = "error parsing tile descriptor file [{}]: {}"
    RASTER_MISSING = "raster file [{}] does not exist"
    RASTER_OPEN_FAILED = "error opening raster [{}]: {}"
    RASTER_ROTATED = "raster [{}] is rotated or skewed (geotransform {})"
    RASTER_INVALID_TRANSFORM = "raster [{}] has zero pixel width or height"
    PIXEL_OUT_OF_RANGE = "pixel ({}, {}) for ({}, {}) outside raster [{}] of size {}x{}"
    UNSUPPORTED_DTYPE = "unsupported data type {} in raster [{}]"
    NO_DATA = "no data at ({}, {}) in raster [{}]"
    INVALID_REQUEST_ZONE = "invalid zone {} (supported: {})"
    INVALID_REQUEST_LON = "longitude {} outside supported range {} to {}"
    INVALID_REQUEST_LAT = "latitude {} outside supported range {} to {}"
    INVALID_HISTOGRAM_TYPE = "Invalid histogram type '{}'. Available: {}"
    INVALID_BINS = "number of bins must be between {} and {}, got {}"
    INVALID_BOUND = "invalid histogram bound '{}': not a number"
    INVERTED_USER_RANGE = "minimum ({}) must be less than maximum ({})"
    INVERTED_FILTER_RANGE = "filter minimum ({}) must be less than filter maximum ({})"
    INVERTED_EFFECTIVE_RANGE = "effective minimum ({}) must be less than effective maximum ({})"
    PROFILE_MIXED_POINT = "point {} must use either UTM or lon/lat coordinates, not both"
    PROFILE_MISSING_POINT = "point {} requires UTM or lon/lat coordinates"
    PROFILE_MIXED_SYSTEMS = "both points must use the same coordinate system"
    PROFILE_ZONE_MISMATCH = "both UTM points must be in the same zone ({} != {})"
    PROFILE_INVALID_POINTS = "max_total_points must be between {} and {}, got {}"
    PROFILE_INVALID_STEP = "min_step_size must be between {} and {}, got {}"
    PROFILE_IDENTICAL_POINTS = "start and end points are identical"
    NO_POINTS = "At least one point is required"
    INVALID_POINT_PAIR = "point must be a [lon, lat] pair, got {!r}"
    UTM_INCOMPLETE = "easting and northing are required together with zone"
    LOCATION_REQUIRED = "either UTM (zone, easting, northing) or lon/lat coordinates must be set"
    UNKNOWN_SOURCE = "Unknown elevation source '{}'. Available: {}"
    NO_ARTIFACT_STORE = "No artifact store available. Configure CHUK_ARTIFACTS_PROVIDER."
    RASTER_READ_FAILED = "error reading raster file [{}]: {}"


class SuccessMessages:
    SOURCES_LIST = "{} elevation sources available"
    SOURCE_DESCRIBE = "Source: {} ({})"
    POINT_ELEVATION = "Elevation at point: {:.2f}m (tile {})"
    POINTS_ELEVATION = "Retrieved elevation for {} of {} points"
    HISTOGRAM_COMPLETE = "Histogram computed for {} tile(s)"
    PROFILE_COMPLETE = "Profile sampled: {} of {} points over {:.1f}m"
    TILE_INFO = "{} tile variant(s) cover the location"
    RAW_TILE = "{} raw tile(s) stored ({} bytes)"
    STATUS = "DTM MCP Server v{} ({} tiles indexed)"
