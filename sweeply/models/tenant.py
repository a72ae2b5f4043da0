"""Tenant model"""
from sweeply.extensions import db
from .base import BaseModel


class Tenant(BaseModel):
    """
    Tenant model - a cleaning business using the platform
    Each tenant has isolated clients and jobs
    """
    __tablename__ = 'tenants'

    name = db.Column(db.String(255), nullable=False)
    slug = db.Column(db.String(100), unique=True, nullable=False, index=True)
    status = db.Column(db.String(50), nullable=False, default='active')
    contact_email = db.Column(db.String(255), nullable=False)

    # Relationships
    users = db.relationship('User', backref='tenant', lazy='dynamic', cascade='all, delete-orphan')
    clients = db.relationship('Client', backref='tenant', lazy='dynamic', cascade='all, delete-orphan')

    def __repr__(self):
        return f'<Tenant {self.name} ({self.slug})>'

    def is_active(self):
        """Check if tenant is active"""
        return self.status in ['active', 'trial']
