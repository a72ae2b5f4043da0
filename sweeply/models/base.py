"""
Base model with common fields and methods
"""
import uuid
from datetime import date, datetime, time, timezone
from decimal import Decimal

from sweeply.extensions import db


def utcnow():
    return datetime.now(timezone.utc)


class BaseModel(db.Model):
    """Abstract base model with common fields"""
    __abstract__ = True

    id = db.Column(db.Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    def to_dict(self, exclude=None):
        """
        Convert model to dictionary

        Args:
            exclude (list): List of fields to exclude

        Returns:
            dict: Model as dictionary
        """
        exclude = exclude or []
        data = {}

        for column in self.__table__.columns:
            if column.name not in exclude:
                data[column.name] = _serialize(getattr(self, column.name))

        return data


def _serialize(value):
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, time):
        return value.strftime('%H:%M')
    if isinstance(value, Decimal):
        return float(value)
    return value


class TenantMixin:
    """Mixin for multi-tenant models"""
    tenant_id = db.Column(db.Uuid(as_uuid=True), db.ForeignKey('tenants.id', ondelete='CASCADE'), nullable=False, index=True)

    @classmethod
    def for_tenant(cls, tenant_id):
        """
        Query records for specific tenant

        Args:
            tenant_id: UUID of tenant

        Returns:
            Query: Filtered query for tenant
        """
        query = cls.query.filter(cls.tenant_id == tenant_id)
        if hasattr(cls, 'deleted_at'):
            query = query.filter(cls.deleted_at.is_(None))
        return query
