"""Constants shared across the world migration tool."""

# Resource identifier of the world itself, used for world metadata.
WORLD_RESOURCE_ID = 0

# Label used when declaring the world class.
WORLD_LABEL = "world"

# Substring of the remote error returned when a class hash is declared twice.
CLASS_ALREADY_DECLARED = "Class already declared"

# Cairo felts are smaller than 2**251 + 17 * 2**192 + 1.
FIELD_PRIME = 2**251 + 17 * 2**192 + 1

# Maximum number of bytes packed in one ByteArray word / short string.
BYTES_PER_WORD = 31

# JSON-RPC method exposed by development nodes listing pre-funded accounts.
PREDEPLOYED_ACCOUNTS_METHOD = "dev_predeployedAccounts"
PREDEPLOYED_ACCOUNTS_TIMEOUT = 5

# Default output locations
DEFAULT_CONFIG_FILE = "profile.yaml"
DEFAULT_OUTPUT_DIR = "migration_output"
MANIFEST_FILE = "manifest.json"
REPORT_FILE = "migration_report.yaml"
