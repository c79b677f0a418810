# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
Keep your .env local (gitignored).

This file exists to make the repo self-documenting even without opening .env.
"""

ENV_VARS = {
    # App / logging
    "TASKPAD_APP_NAME": "App display name, used as the REPL prompt (default: taskpad).",
    "TASKPAD_LOG_LEVEL": "Console logging level (default: INFO). The log file always gets DEBUG.",
    # Presentation
    "TASKPAD_CONSOLE_ENABLED": "Run the console REPL (true/false, default: true).",
    # Storage
    "TASKPAD_STORAGE_BACKEND": "sqlite | memory (default: sqlite). memory keeps nothing across runs.",
    "TASKPAD_DATA_DIR": "Local data directory for the database and taskpad.log (default: .local/taskpad).",
    "TASKPAD_KV_DB_PATH": "Key-value SQLite path (default: <data_dir>/storage.sqlite3).",
    # Task defaults
    "TASKPAD_DEFAULT_CATEGORY_ID": "Category id given to new tasks without one (default: 1, Personal).",
}
