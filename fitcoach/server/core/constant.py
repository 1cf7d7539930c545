"""Server-wide constants."""

PROJECT_NAME = "fitcoach"
API_V1_STR = "/api/v1"
VERSION = "0.1.0"
