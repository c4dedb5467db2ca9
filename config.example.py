# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
Do NOT commit real secrets (the API token belongs in .env, which is gitignored).

This file exists to make the repo self-documenting even without opening .env.example.
"""

ENV_VARS = {
    # App / logging
    "OPSDESK_APP_NAME": "App display name (default: opsdesk).",
    "OPSDESK_LOG_LEVEL": "Console logging level (default: INFO).",
    # Remote API
    "OPSDESK_API_BASE_URL": (
        "REST API base URL (default: http://localhost:5000/api; NEXT_PUBLIC_API_URL is accepted too)."
    ),
    "OPSDESK_API_TOKEN": "Bearer token sent with every request (optional).",
    "OPSDESK_CONNECT_TIMEOUT_SECONDS": "HTTP connect timeout (default: 5).",
    "OPSDESK_READ_TIMEOUT_SECONDS": "HTTP read timeout (default: 20).",
    "OPSDESK_LOAD_STATUS_REFS": (
        "Fetch task and order status collections at startup and send reference ids (true/false)."
    ),
    # Acting user
    "OPSDESK_USER_ID": "Id of the user the console acts as (default: anonymous).",
    "OPSDESK_ROLE": "admin | collaborateur | client | author (responsable == admin; default: author).",
    # Connectors
    "OPSDESK_CONSOLE_ENABLED": "Run the interactive console when no command is given (true/false).",
    # Paths (gitignored)
    "OPSDESK_DATA_DIR": "Local data directory for logs (default: .local/opsdesk).",
}
