import argparse

import uvicorn

from media_relay.api.app import create_app
from media_relay.config import get_settings


def parse_args() -> argparse.Namespace:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Run the media relay HTTP server.")
    parser.add_argument("--host", default=settings.relay_host, help="Bind address (RELAY_HOST).")
    parser.add_argument("--port", type=int, default=settings.relay_port, help="Listening port (RELAY_PORT).")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    settings = get_settings()
    app = create_app(settings)
    uvicorn.run(app, host=args.host, port=args.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
