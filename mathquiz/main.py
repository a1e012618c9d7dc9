"""
Main application entry point for the MathQuiz service.

Usage:
    - Direct: python -m mathquiz.main
    - ASGI server: uvicorn mathquiz.main:app
"""

import os

from mathquiz import create_app
from mathquiz.common.logger import app_logger

# Setup module logger
logger = app_logger.getChild("main")

# Create the FastAPI application
app = create_app()

# Entry point for running the application directly
if __name__ == "__main__":
    import uvicorn

    host = os.environ.get("HOST", "0.0.0.0")
    port = int(os.environ.get("PORT", 8000))
    reload_enabled = os.environ.get("RELOAD", "false").lower() == "true"

    logger.info(f"Starting server on {host}:{port} (reload: {reload_enabled})")

    uvicorn.run(
        "mathquiz.main:app",
        host=host,
        port=port,
        reload=reload_enabled,
        log_level="info"
    )
