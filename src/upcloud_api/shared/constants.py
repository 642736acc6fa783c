"""
UpCloud API - Endpoint Constants

This module contains the UpCloud API endpoint paths and default wait timeouts.
All paths are relative to the versioned API root (https://api.upcloud.com/1.2).
"""

DEFAULT_API_URL = "https://api.upcloud.com"
DEFAULT_API_VERSION = "1.2"
DEFAULT_ZONE = "fi-hel1"
DEFAULT_STORAGE_TIER = "maxiops"

# Account & catalogue
API_ACCOUNT = "account"
API_PLAN = "plan"
API_SERVER_SIZE = "server_size"

# Servers
API_SERVER = "server"
API_SERVER_DETAIL = "server/{uuid}"
API_SERVER_START = "server/{uuid}/start"
API_SERVER_STOP = "server/{uuid}/stop"
API_SERVER_RESTART = "server/{uuid}/restart"
API_SERVER_STORAGE_ATTACH = "server/{uuid}/storage/attach"
API_SERVER_STORAGE_DETACH = "server/{uuid}/storage/detach"
API_SERVER_TAG = "server/{uuid}/tag/{tags}"
API_SERVER_UNTAG = "server/{uuid}/untag/{tags}"

# Firewall
API_FIREWALL_RULES = "server/{uuid}/firewall_rule"
API_FIREWALL_RULE = "server/{uuid}/firewall_rule/{position}"

# Storage
API_STORAGE = "storage"
API_STORAGE_TYPE = "storage/{type}"
API_STORAGE_DETAIL = "storage/{uuid}"
API_STORAGE_CLONE = "storage/{uuid}/clone"
API_STORAGE_TEMPLATIZE = "storage/{uuid}/templatize"
API_STORAGE_BACKUP = "storage/{uuid}/backup"
API_STORAGE_RESTORE = "storage/{uuid}/restore"
API_STORAGE_FAVORITE = "storage/{uuid}/favorite"

STORAGE_TYPES = ("public", "private", "normal", "backup", "cdrom", "template", "favorite")

# Tags
API_TAGS = "tags"
API_TAG = "tag"
API_TAG_DETAIL = "tag/{name}"

# IP addresses
API_IP_ADDRESS = "ip_address"
API_IP_ADDRESS_DETAIL = "ip_address/{address}"

IP_FAMILIES = ("IPv4", "IPv6")

# Server states
SERVER_STATE_STARTED = "started"
SERVER_STATE_STOPPED = "stopped"
SERVER_STATE_MAINTENANCE = "maintenance"

# Storage states
STORAGE_STATE_ONLINE = "online"

# Wait deadlines (seconds)
STOP_SERVER_TIMEOUT = 300
START_SERVER_TIMEOUT = 300
STORAGE_OPERATION_TIMEOUT = 600
RESTORE_BACKUP_TIMEOUT = 1200
