"""eggtimer REST API.

Usage::

    uvicorn eggtimer.api:create_app --factory --port 3000
"""

from eggtimer.api.app import create_app

__all__ = ["create_app"]
