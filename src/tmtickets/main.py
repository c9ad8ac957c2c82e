"""Application entry point for the TM Tickets backend server."""

from tmtickets.app import App
from tmtickets.config import Config
from tmtickets.logging import setup_logging
from tmtickets.web.runner import run_server


def main() -> None:
    config = Config()
    setup_logging(config.debug, service="tmtickets", backend=config.storage_backend)
    app = App(config)
    run_server(app, config)


if __name__ == "__main__":
    main()
