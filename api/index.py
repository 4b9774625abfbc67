from mangum import Mangum

from points.api import app
from points.config import settings
from points.logging_config import setup_logging

setup_logging(settings.LOG_LEVEL, settings.LOG_DIR)

handler = Mangum(app)
