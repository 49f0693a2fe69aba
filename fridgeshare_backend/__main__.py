"""Run the development server with ``python -m fridgeshare_backend``."""

import os

from fridgeshare_backend import app, close_database

try:
    app.run(host="0.0.0.0", port=int(os.environ.get("PORT", "8000")))
finally:
    close_database(app)
