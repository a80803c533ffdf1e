"""Main entry point for snapinspect."""

import os
from pathlib import Path

import uvicorn
from dotenv import load_dotenv

from snapinspect.api import create_fastapi_app
from snapinspect.logging_config import setup_logging
from sim import Sim


def main():
    """Run the application."""
    project_root = Path(__file__).resolve().parent.parent
    load_dotenv(project_root / ".env")
    setup_logging()

    # Get configuration from environment
    api_host = os.getenv("API_HOST", "localhost")
    api_port = int(os.getenv("API_PORT", "8000"))

    # Set SIM instance for control router
    from snapinspect.api.routes import control
    control.set_sim_instance(Sim())

    # Create FastAPI app
    app = create_fastapi_app()

    # Run with uvicorn
    uvicorn.run(
        app,
        host=api_host,
        port=api_port,
        log_level="info",
    )


if __name__ == "__main__":
    main()
