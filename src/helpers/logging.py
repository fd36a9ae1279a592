import logging
import os

logger = logging.getLogger()
logger.setLevel(os.environ.get("log_level", "INFO").upper())

log_format = "[%(levelname)s] %(filename)s:%(lineno)d:%(funcName)s: %(message)s"
date_format = "%Y-%m-%dT%H:%M:%S"

# The lambda runtime installs its own handler on the root logger
formatter = logging.Formatter(fmt=log_format, datefmt=date_format)
for handler in logger.handlers:
    handler.setFormatter(formatter)


logging.getLogger("boto3").setLevel(logging.WARNING)
logging.getLogger("botocore").setLevel(logging.WARNING)
logging.getLogger("urllib3").setLevel(logging.WARNING)
