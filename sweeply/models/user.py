"""User model"""
import bcrypt

from sweeply.extensions import db
from .base import BaseModel, TenantMixin

ROLES = ('admin', 'manager', 'staff')


class User(BaseModel, TenantMixin):
    """
    User model - owners and staff who log in to manage a tenant's schedule
    """
    __tablename__ = 'users'

    email = db.Column(db.String(255), nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)

    first_name = db.Column(db.String(100), nullable=False)
    last_name = db.Column(db.String(100), nullable=False)
    phone = db.Column(db.String(50))

    role = db.Column(db.String(50), nullable=False, default='staff')
    status = db.Column(db.String(50), nullable=False, default='active')

    last_login_at = db.Column(db.DateTime(timezone=True))

    __table_args__ = (
        db.UniqueConstraint('tenant_id', 'email', name='unique_email_per_tenant'),
    )

    def __repr__(self):
        return f'<User {self.email} ({self.role})>'

    def set_password(self, password):
        """Hash and set password"""
        self.password_hash = bcrypt.hashpw(password.encode('utf-8'), bcrypt.gensalt()).decode('utf-8')

    def check_password(self, password):
        """Verify password against hash"""
        if not self.password_hash:
            return False
        return bcrypt.checkpw(password.encode('utf-8'), self.password_hash.encode('utf-8'))

    @property
    def full_name(self):
        return f'{self.first_name} {self.last_name}'

    def is_admin(self):
        return self.role == 'admin'

    def to_dict(self):
        data = super().to_dict(exclude=['password_hash'])
        data['full_name'] = self.full_name
        return data
