"""
Entry point for the ielts-center service.

Run with:
    uvicorn main:app --reload --port 8100
    python main.py
"""
import uvicorn

from config import get_settings
from ielts_center.api.main import app
from ielts_center.log import configure_logging

settings = get_settings()

if __name__ == "__main__":
    configure_logging()
    uvicorn.run(
        "ielts_center.api.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=True,
        log_level=settings.log_level.lower(),
    )
