# config.py

"""Configuration settings for the OpenStack metrics collector."""

# Authentication defaults
DEFAULT_DOMAIN = "default"

# Last compute microversion that embeds the flavor id in servers.
# Hypervisor capacity counters also disappear at 2.88.
COMPUTE_API_VERSION = "2.46"

# Recommended polling interval in seconds (60 minutes)
DEFAULT_INTERVAL = 3600

# Series names are prefixed by the output sinks, not by the aggregators
DEFAULT_MEASUREMENT_PREFIX = "openstack_"

# Bucket used for volumes that report no type
DEFAULT_VOLUME_TYPE = "default"

# Required OpenStack environment variables
REQUIRED_ENV_VARS = [
    'OS_AUTH_URL',
    'OS_PROJECT_NAME',
    'OS_USERNAME',
    'OS_PASSWORD'
]

# Environment variables checked for the authentication domain, in order
DOMAIN_ENV_VARS = [
    'OS_USER_DOMAIN_NAME',
    'OS_DOMAIN_NAME'
]

INSECURE_ENV_VAR = 'OS_INSECURE'
TRUTHY_VALUES = {'1', 'true', 'yes', 'on'}

# Emitted series
IDENTITY_TOTAL = "identity_total"
HYPERVISOR = "hypervisor"
HYPERVISOR_TOTAL = "hypervisor_total"
SERVER_STATE = "server_state"
SERVER_STATE_TOTAL = "server_state_total"
SERVER_STATS = "server_stats"
SERVER_STATS_TOTAL = "server_stats_total"
VOLUME_COUNT = "volume_count"
VOLUME_COUNT_TOTAL = "volume_count_total"
VOLUME_SIZE = "volume_size"
VOLUME_SIZE_TOTAL = "volume_size_total"
STORAGE_POOL = "storage_pool"

# InfluxDB HTTP sink
INFLUXDB_DEFAULT_DATABASE = "openstack"
INFLUXDB_TIMEOUT = 30  # seconds

# Logging format
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
