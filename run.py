# run.py
import logging
import os
import sys

import uvicorn

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("platewatch")


def _port() -> int:
    raw = os.getenv("PORT", "8000")
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"Invalid PORT '{raw}', falling back to 8000")
        return 8000


def main():
    host = os.getenv("HOST", "0.0.0.0")
    port = _port()
    logger.info(f"Serving Platewatch on {host}:{port}")
    try:
        # Single process: OCR readers are loaded in memory, scale with OCR_POOL_SIZE
        uvicorn.run("platewatch.main:app", host=host, port=port, workers=1, access_log=True)
    except Exception as e:
        logger.error(f"Server exited with error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
