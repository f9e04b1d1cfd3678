"""FastAPI application entry point."""

import uvicorn
from ddtrace import patch_all

from speakr_query.app import create_app
from speakr_query.dependencies import get_config

patch_all()

app = create_app()


def main():
    """Serves the API with uvicorn."""
    config = get_config()
    uvicorn.run(app, host=config.api.host, port=config.api.port, log_config=None)


if __name__ == "__main__":
    main()
