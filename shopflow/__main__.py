"""
Entry point.

Run: python -m shopflow
"""

import os

import uvicorn
from dotenv import load_dotenv

from shopflow.api import create_app
from shopflow.config import Settings, configure_logging


def main() -> None:
    load_dotenv()
    settings = Settings.from_env(os.environ)
    configure_logging(settings.log_level)
    uvicorn.run(create_app(settings=settings), host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    main()
