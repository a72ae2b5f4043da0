"""Client model"""
from sweeply.extensions import db
from .base import BaseModel, TenantMixin


class Client(BaseModel, TenantMixin):
    """
    Client model - the homes and businesses a tenant cleans for
    """
    __tablename__ = 'clients'

    name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), index=True)
    phone = db.Column(db.String(50))

    # Address
    address = db.Column(db.String(255))
    city = db.Column(db.String(100))
    state = db.Column(db.String(50))
    zip = db.Column(db.String(20))

    notes = db.Column(db.Text)
    deleted_at = db.Column(db.DateTime(timezone=True), nullable=True)

    __table_args__ = (
        db.Index('idx_clients_name', 'tenant_id', 'name'),
    )

    # Relationships
    jobs = db.relationship('Job', backref='client', lazy='dynamic')

    def __repr__(self):
        return f'<Client {self.name}>'

    def summary(self):
        """Subset of fields embedded in job payloads"""
        return {
            'id': str(self.id),
            'name': self.name,
            'email': self.email,
            'phone': self.phone,
            'address': self.address,
            'city': self.city,
            'state': self.state,
            'zip': self.zip,
        }
