"""Development entrypoint."""

import uvicorn

from app.config import get_settings


def main() -> None:
    """Serve the dashboard API with auto-reload.

    Returns
    -------
    None
        Blocks until the server stops.
    """
    settings = get_settings()
    if not settings.atlas_api_key:
        print("Set ATLAS_PANEL_ATLAS_API_KEY to enable proxied Atlas routes.")
    uvicorn.run("app.main:app", reload=True)


if __name__ == "__main__":
    main()
