"""Rate limiter shared by the API route modules."""

import os

from slowapi import Limiter
from slowapi.util import get_remote_address

# os.devnull prevents slowapi from reading a .env file
limiter = Limiter(
    key_func=get_remote_address,
    storage_uri="memory://",
    config_filename=os.devnull,
    default_limits=["1000/hour"],
)
