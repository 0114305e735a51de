"""Run the chat adapter with uvicorn: ``python -m chat_adapter``."""

import uvicorn

from .config_loader import load_config
from .main import create_app
from .settings import AdapterSettings


def main() -> None:
    settings = AdapterSettings.from_config(load_config(missing_ok=True))
    app = create_app(settings=settings)
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
