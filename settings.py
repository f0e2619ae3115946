from config.loader import get_config_loader

config = get_config_loader()

# Gateway version reported by the version endpoints
VERSION = "0.1.0"

# Server configuration
PORT = config.get("PORT", 8081)
LOG_LEVEL = config.get("LOG_LEVEL", "info")
BIND_ADDRESS = config.get("BIND_ADDRESS", "127.0.0.1")

# GitHub device flow and Copilot endpoints
DEVICE_CODE_URL = config.get("DEVICE_CODE_URL", "https://github.com/login/device/code")
OAUTH_TOKEN_URL = config.get("OAUTH_TOKEN_URL", "https://github.com/login/oauth/access_token")
COPILOT_TOKEN_URL = config.get("COPILOT_TOKEN_URL", "https://api.github.com/copilot_internal/v2/token")
COPILOT_MODELS_URL = config.get("COPILOT_MODELS_URL", "https://models.dev/api.json")
COPILOT_API_BASE_URL = config.get("COPILOT_API_BASE_URL", "https://api.githubcopilot.com")
CLIENT_ID = config.get("CLIENT_ID", "Iv1.b507a08c87ecfe98")
OAUTH_SCOPE = "read:user"
DEVICE_GRANT_TYPE = "urn:ietf:params:oauth:grant-type:device_code"

# Service tokens are treated as expired this many seconds early
TOKEN_EXPIRY_BUFFER = 60

# Credential storage (one JSON file per record)
CREDENTIALS_DIR = config.get("CREDENTIALS_DIR", "~/.config/copilot-gateway")
ACCESS_TOKEN_RECORD = "access_token"
SERVICE_TOKEN_RECORD = "token"

# Timeout configuration
# Connection timeout: Time to establish TCP connection
CONNECT_TIMEOUT = config.get("CONNECT_TIMEOUT", 10.0)
# Read timeout: Time between receiving data chunks, important for detecting stalled streams
READ_TIMEOUT = config.get("READ_TIMEOUT", 60.0)
# Request timeout: Total timeout for non-streaming requests
REQUEST_TIMEOUT = config.get("REQUEST_TIMEOUT", 120.0)
# Stream timeout: Total timeout for streaming requests
STREAM_TIMEOUT = config.get("STREAM_TIMEOUT", 600.0)

# Stream tracing / debugging
STREAM_TRACE_ENABLED = config.get("STREAM_TRACE_ENABLED", False)
STREAM_TRACE_DIR = config.get("STREAM_TRACE_DIR", "stream_traces")
STREAM_TRACE_MAX_BYTES = config.get("STREAM_TRACE_MAX_BYTES", 262144)
