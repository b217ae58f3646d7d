from decimal import Decimal

"""
Constants used throughout the Kavita Audit application.
"""

# Analysis Thresholds
GAP_TOLERANCE = Decimal("1.1")  # Absorbs the "N followed by N.5" companion chapter pattern
VOLUME_RELATIVE_THRESHOLD = Decimal(2)  # Second volume holding a chapter below this restarts numbering
FIRST_VOLUME_NUMBER = 1

# Filename Conventions
PRIMARY_FILENAME_TEMPLATE = r"Vol\. {volume} Ch\. 0*{chapter}"
VOLUME_ONE_FILENAME_TEMPLATE = r"Chapter 0*{chapter}"
PATH_SEPARATOR = "/"

# Report Labels
REPORT_BANNER = "Missing Chapters: \n\n--------------------------\n"
LABEL_MISSING = "Missing Chapters"
LABEL_DUPLICATES = "Duplicate Chapters"
LABEL_MISMATCHES = "File Name Mismatches"
LABEL_UNANALYZABLE = "Unanalyzable Chapters"
MISSING_RANGE_SEPARATOR = ", "
ISSUE_SEPARATOR = "\n"

# Output Files
DEFAULT_REPORT_FILENAME = "MissingChapters.log"
DEFAULT_LOG_FILENAME = "kavita_audit.log"

# Kavita API Configuration
KAVITA_PLUGIN_NAME = "Kavita_List"
KAVITA_AUTH_ENDPOINT = "/api/Plugin/authenticate/"
KAVITA_SERIES_ENDPOINT = "/api/Series/all-v2/"
KAVITA_VOLUMES_ENDPOINT = "/api/Series/volumes"
KAVITA_API_MARKER = "/api"
KAVITA_OPDS_MARKER = "/opds/"
KAVITA_FILTER_FIELD_LIBRARY = 19  # FilterField.Libraries
KAVITA_FILTER_COMPARISON_EQUAL = 0
KAVITA_FILTER_COMBINATION_OR = 0
KAVITA_SORT_FIELD_SORT_NAME = 1
KAVITA_TIMEOUT_SECONDS = 30
KAVITA_RETRY_COUNT = 3
KAVITA_RETRY_BACKOFF_FACTOR = 0.5
KAVITA_RETRY_STATUS_FORCELIST = (500, 502, 503, 504)
