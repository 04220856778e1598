"""Constants for Met Office DataHub."""

DOMAIN = "metoffice_datahub"

PLATFORMS = ["sensor"]

CONFIG_VERSION = 1
INTEGRATION_VERSION = "2024.8.24"

# ---------------------------------------------------------------------------
# Configuration keys
# ---------------------------------------------------------------------------
CONF_API_KEY = "api_key"
CONF_LATITUDE = "latitude"
CONF_LONGITUDE = "longitude"
CONF_CHILDREN = "children"  # which satellite entities to create: T and/or H
CONF_SCAN_INTERVAL_MIN = "scan_interval_min"

# ---------------------------------------------------------------------------
# Satellite entity flags
# ---------------------------------------------------------------------------
CHILD_TEMPERATURE = "T"
CHILD_HUMIDITY = "H"

CHILD_OPTIONS = [CHILD_TEMPERATURE, CHILD_HUMIDITY]

# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------
DEFAULT_NAME = "Met Office DataHub"
DEFAULT_CHILDREN = "T and H"
DEFAULT_STARTUP_DELAY_S = 10
DEFAULT_SCAN_INTERVAL_MIN = 10

MIN_SCAN_INTERVAL_MIN = 5
MAX_SCAN_INTERVAL_MIN = 180

# ---------------------------------------------------------------------------
# DataHub site-specific API
# ---------------------------------------------------------------------------
DATAHUB_URL = "https://data.hub.api.metoffice.gov.uk/sitespecific/v0/point/hourly"
DATAHUB_HEADER_API_KEY = "apikey"
ATTRIBUTION = "Data provided by the Met Office Weather DataHub"

# ---------------------------------------------------------------------------
# Entity state keys written on every successful cycle
# ---------------------------------------------------------------------------
KEY_CURRENT_TEMPERATURE = "CurrentTemperature"
KEY_MAX_TEMP = "MaxTemp"
KEY_MIN_TEMP = "MinTemp"
KEY_CURRENT_LEVEL = "CurrentLevel"
KEY_PRESSURE = "Pressure"
KEY_LOCATION_NAME = "LocationName"
KEY_MODEL_RUN_DATE = "modelRunDate"
KEY_LAST_UPDATE = "LastUpdate"

# Namespace for the verbatim mirror of the latest time-series reading
NS_LATEST = "latest"

# ---------------------------------------------------------------------------
# Satellite entity naming (suffix appended to the primary entity id)
# ---------------------------------------------------------------------------
SUFFIX_TEMPERATURE = "temperature"
SUFFIX_HUMIDITY = "humidity"

NAME_TEMPERATURE = "Met Temperature"
NAME_HUMIDITY = "Met Humidity"

UNIT_PRESSURE_MBAR = "mbar"
