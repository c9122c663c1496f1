"""Local server with auto-reload; creates missing record tables first."""
import os
import sys

import uvicorn

from hospital_services.setup_db import setup_database

HOST = os.getenv("API_HOST", "127.0.0.1")
PORT = int(os.getenv("API_PORT", "8000"))


def main():
    # Picked up by the reloaded server process, which turns on SQL echo
    os.environ.setdefault("ENVIRONMENT", "development")
    if not setup_database():
        sys.exit(1)
    uvicorn.run("hospital_services.main:app", host=HOST, port=PORT, reload=True, log_level="info")


if __name__ == "__main__":
    main()
