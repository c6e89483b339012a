"""
Central Configuration File

ALL configuration values live here. This is the single source of truth.

Guidelines:
- Secrets (service account keys, folder IDs) should be in .env, NOT here
- Import these settings in modules: from config.settings import CHUNK_DURATION_SECONDS
- Every value can be overridden from the environment
"""

import os
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# =============================================================================
# CAPTURE CONFIGURATION
# =============================================================================

# Length of each recorded chunk (seconds). 300 = 5 minutes.
# Constant for the lifetime of a session.
CHUNK_DURATION_SECONDS = int(os.getenv("CHUNK_DURATION_SECONDS", "300"))

# Elapsed-time counter resolution (seconds)
ELAPSED_TICK_INTERVAL = 1.0

# Display capture (X11 display name, e.g. ":0.0")
CAPTURE_DISPLAY = os.getenv("CAPTURE_DISPLAY", os.getenv("DISPLAY", ":0.0"))

# Camera capture
DEFAULT_CAMERA_DEVICE = os.getenv("CAMERA_DEVICE", "/dev/video0")

# Audio capture (PulseAudio default source)
CAPTURE_AUDIO = os.getenv("CAPTURE_AUDIO", "true").lower() == "true"
AUDIO_INPUT_DEVICE = os.getenv("AUDIO_INPUT_DEVICE", "default")
AUDIO_INPUT_FORMAT = "pulse"

# Video settings
VIDEO_FPS = int(os.getenv("VIDEO_FPS", "30"))
VIDEO_WIDTH = 1920
VIDEO_HEIGHT = 1080

# Where FFmpeg writes segments before they are read into memory
SEGMENT_TEMP_DIR = Path(os.getenv("SEGMENT_TEMP_DIR", "./temp_segments"))

# How long to wait for FFmpeg to open the capture device during acquisition
CAPTURE_PROBE_TIMEOUT = float(os.getenv("CAPTURE_PROBE_TIMEOUT", "10"))

# Platform hint used for mobile/desktop classification (user agent string or
# platform name). Empty = detect from the running platform.
CAPTURE_DEVICE_HINT = os.getenv("CAPTURE_DEVICE_HINT", "")

# =============================================================================
# UPLOAD QUEUE CONFIGURATION
# =============================================================================

# Retry ceiling: a chunk gets 1 initial attempt + MAX_UPLOAD_RETRIES retries
MAX_UPLOAD_RETRIES = int(os.getenv("MAX_UPLOAD_RETRIES", "3"))

# Backoff before retry n is RETRY_BASE_DELAY_SECONDS * 2**n  (2s, 4s, 8s)
RETRY_BASE_DELAY_SECONDS = float(os.getenv("RETRY_BASE_DELAY_SECONDS", "1.0"))

# How often to re-check the network while it is reported down (seconds)
CONNECTIVITY_POLL_INTERVAL = float(os.getenv("CONNECTIVITY_POLL_INTERVAL", "5.0"))

# Pending chunk count that triggers a backpressure warning (0 = disabled)
QUEUE_HIGH_WATER_MARK = int(os.getenv("QUEUE_HIGH_WATER_MARK", "12"))

# Chunks that exhaust their retries are saved here (empty = keep in memory only)
FAILED_CHUNKS_DIR = os.getenv("FAILED_CHUNKS_DIR", "./failed_chunks")

# Network Connectivity Monitoring
NETWORK_CHECK_TIMEOUT = 3  # Timeout for connectivity check (seconds)
NETWORK_CHECK_HOST = os.getenv("NETWORK_CHECK_HOST", "8.8.8.8")  # Google DNS
NETWORK_CHECK_PORT = int(os.getenv("NETWORK_CHECK_PORT", "53"))  # DNS port
NETWORK_CHECK_CACHE_SECONDS = 2.0  # Reuse a probe result for this long

# =============================================================================
# UPLOAD ENDPOINT CONFIGURATION
# =============================================================================

# Base URL of the backend relay (the client posts to {UPLOAD_API_URL}/upload)
UPLOAD_API_URL = os.getenv("UPLOAD_API_URL", "http://localhost:5000")

# Per-request timeout for a chunk upload (seconds)
UPLOAD_TIMEOUT = float(os.getenv("UPLOAD_TIMEOUT", "120"))

# Timeout for the backend liveness probe (seconds)
HTTP_TIMEOUT = 30

# Multipart field names shared by client and backend
UPLOAD_ROUTE = "/upload"
UPLOAD_FIELD_CHUNK = "chunk"
UPLOAD_FIELD_FILENAME = "filename"

# Size ceiling enforced by the backend (bytes)
MAX_UPLOAD_BYTES = int(os.getenv("MAX_UPLOAD_BYTES", str(50 * 1024 * 1024)))  # 50 MB

# =============================================================================
# BACKEND RELAY CONFIGURATION
# =============================================================================

# Port the backend listens on (hosting platforms inject PORT)
BACKEND_PORT = int(os.getenv("PORT", "5000"))

# Origin allowed to call the backend from a browser
CORS_ORIGIN = os.getenv("CORS_ORIGIN", "*")

# =============================================================================
# LOGGING CONFIGURATION
# =============================================================================

LOG_DIR = os.getenv("LOG_DIR", "/var/log/recorder")
LOG_SERVICE_FILE = "recorder.log"
LOG_BACKEND_FILE = "backend.log"
LOG_BACKUP_DAYS = 7

# =============================================================================
# SECRETS (loaded from .env)
# =============================================================================
# IMPORTANT: These should NEVER be committed to version control!
# Create a .env file in the project root with these values

# Google Drive destination folder
DRIVE_FOLDER_ID = os.getenv("FOLDER_ID", "")

# Service account key as inline JSON (hosted deployments)
GOOGLE_JSON_KEY = os.getenv("GOOGLE_JSON_KEY", "")

# Service account key file (local development)
GOOGLE_SERVICE_ACCOUNT_FILE = os.getenv(
    "GOOGLE_SERVICE_ACCOUNT_FILE",
    "service-account.json",
)

# Authorized-user token with refresh token (alternative to a service account)
GOOGLE_TOKEN_PATH = os.getenv("GOOGLE_TOKEN_PATH", "credentials/token.json")
