import re

# Regex Constants
RE_LANGUAGE_KEY = re.compile(r"^(?:name|admin|official_name|title|label)_([a-z]{2,3})$", re.IGNORECASE)
RE_STRUCTURAL_KEY = re.compile(
    r"^(name|admin|official_name|country_name|sovereignt|cntry_name|cntrynam|name_long|formal_en)(_[a-z]{2,3})?$",
    re.IGNORECASE,
)
RE_AUTOFILL_KEY = re.compile(r"^(name|official_name|country_name|name_long|formal_en)(_[a-z]{2,3})?$", re.IGNORECASE)
RE_TRANSLATION_LANG = re.compile(r"_([a-z]{2,3}(?:-[a-z]{2,4})?)$", re.IGNORECASE)

# Key preferences (lowercase, in priority order)
PREFERRED_NAME_KEYS = (
    "name", "admin", "sovereignt", "name_en", "official_name",
    "country_name", "cntry_name", "cntrynam", "name_long", "formal_en",
)
PREFERRED_SOVEREIGNTY_KEYS = (
    "sovereignt", "sov_a3", "admin0_sov_name", "sovereign",
    "admin0_a3_us", "iso_a2_eh", "admin0_sovereignty",
)
FALLBACK_SOVEREIGNTY_KEY = "sovereignt"
PREFERRED_ID_KEYS = ("iso_a3", "admin", "name", "id", "geoid")
DEFAULT_ID_PREFERENCE = ("iso_a3", "admin", "id")
EDITABLE_ID_KEYS = ("iso_a3", "sov_a3", "adm0_a3")
ENGLISH_NAME_KEYS = ("name_en", "name_eng")

NO_ID_SENTINEL = "none_found"

# Analysis thresholds
MAX_VALUE_SAMPLES = 5
NAME_COVERAGE_RATIO = 0.5
ID_COVERAGE_RATIO = 0.8
ID_UNIQUENESS_RATIO = 0.6
ID_FALLBACK_COUNT = 5

# Merge defaults
DEFAULT_ID_PROPERTY = "iso_a3"
DEFAULT_GEOMETRY_PRECISION = 6
MIN_GEOMETRY_PRECISION = 0
MAX_GEOMETRY_PRECISION = 10

SETTINGS_FILE_VERSION = 1

DEFAULT_DATASET_A_NAME = "DatasetA"
DEFAULT_DATASET_B_NAME = "DatasetB"
FUSED_NAME_TEMPLATE = "Fused GeoJSON - {a} & {b}"
DEFAULT_OUTPUT_PREFIX = "merged"
