"""
Shared Flask extension instances.

Created as a separate module to avoid circular imports when route
blueprints need access to extensions that are initialised in create_app().
"""
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()

cors = CORS()

# Storage URI and default limits come from RATELIMIT_* config keys.
limiter = Limiter(key_func=get_remote_address)
