import logging
import sys
from ..config import settings

def setup_logging():
    """Configures application logging."""
    if settings.LOG_LEVEL:
        log_level = logging.getLevelName(settings.LOG_LEVEL.upper())
        if not isinstance(log_level, int):
            log_level = logging.INFO
    else:
        log_level = logging.DEBUG if settings.DEBUG else logging.INFO
    log_format = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

    logging.basicConfig(
        level=log_level,
        format=log_format,
        handlers=[
            logging.StreamHandler(sys.stdout) # Log to console
        ]
    )

    # Quieten noisy libraries
    logging.getLogger("werkzeug").setLevel(logging.WARNING)
    logging.getLogger("engineio").setLevel(logging.WARNING)
    logging.getLogger("socketio").setLevel(logging.WARNING)
    logging.getLogger("pymongo").setLevel(logging.WARNING)

    log = logging.getLogger(__name__)
    log.info(f"Logging configured with level: {logging.getLevelName(log_level)}")
