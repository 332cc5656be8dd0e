"""
Driver Onboarding Backend
=========================
Entry point. Run with: uvicorn main:app --reload
or ``python main.py`` to use the host / port from settings.
"""

import uvicorn

from driver_onboarding.api.app import create_app
from driver_onboarding.config import settings

app = create_app()

if __name__ == "__main__":
    uvicorn.run(
        "main:app", host=settings.api_host, port=settings.api_port, reload=True
    )
