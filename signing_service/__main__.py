import logging

import uvicorn

from .config import load_settings
from .logging_config import configure_logging
from .main import create_app


def main() -> None:
    settings = load_settings()
    configure_logging(settings.log_level, json_format=settings.log_json, log_file=settings.log_file)
    logging.getLogger(__name__).info(
        "starting signing service on %s:%d (env=%s)", settings.host, settings.port, settings.env
    )
    app = create_app(settings=settings)
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    main()
