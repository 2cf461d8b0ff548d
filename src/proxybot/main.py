# autoflake: skip_file

# Initialize environment variables
import dotenv

dotenv.load_dotenv()

# Initialize settings and logging
import logging

from .common.settings import load_settings
from .logging_setup import setup_logging

settings = load_settings()
setup_logging(settings)
logger = logging.getLogger(__name__)

# Start the server
import os

from aiohttp import web

from .server import create_app

app = create_app(settings)

if __name__ == "__main__":
    web.run_app(app, host="0.0.0.0", port=int(os.getenv("PORT", "8080")))
