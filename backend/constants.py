"""
Backend Constants

Google Drive API values and fixed response strings for the relay.
Tunable values (port, folder, CORS origin, size limit) live in
config/settings.py.
"""

# =============================================================================
# GOOGLE DRIVE API
# =============================================================================

# Full Drive scope: the service account writes into a folder shared with it
DRIVE_SCOPES = ["https://www.googleapis.com/auth/drive"]

DRIVE_API_SERVICE_NAME = "drive"
DRIVE_API_VERSION = "v3"

# Fields requested from files.create
DRIVE_RESPONSE_FIELDS = "id, name, webViewLink"

# Stored MIME type for every chunk
UPLOAD_MIME_TYPE = "video/webm"

# Link format used when the API does not return webViewLink
DRIVE_FILE_LINK = "https://drive.google.com/file/d/{file_id}/view"


# =============================================================================
# RESPONSES
# =============================================================================

LIVENESS_MESSAGE = "Screen Recorder Backend is Running!"

ERROR_NO_FILE = "No file uploaded"
ERROR_MISSING_FOLDER = "Server misconfigured: Missing FOLDER_ID"
ERROR_UPLOAD_FAILED = "Upload to Drive failed"
ERROR_TOO_LARGE = "File too large"

# Remote name when the client sends none: recording_<epoch ms>.webm
FALLBACK_NAME_FORMAT = "recording_{timestamp_ms}.webm"
