"""SQLAlchemy models package"""
from .tenant import Tenant
from .user import User
from .client import Client
from .job import Job

__all__ = [
    'Tenant',
    'User',
    'Client',
    'Job',
]
