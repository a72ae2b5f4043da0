from .auth import auth_bp
from .clients import clients_bp
from .jobs import jobs_bp
from .recurring import recurring_bp

__all__ = ['auth_bp', 'clients_bp', 'jobs_bp', 'recurring_bp']
