"""Simple entrypoint to run the Closet Comfort service locally."""

import uvicorn

from closet_app.config import ClosetConfig
from closet_app.logging_config import configure_logging


def main() -> None:
    config = ClosetConfig.from_env()
    configure_logging(config.log_level)
    uvicorn.run("server.api:app", host="0.0.0.0", port=8080, reload=False)


if __name__ == "__main__":
    main()
