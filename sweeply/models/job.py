"""Job model"""
from sweeply.extensions import db
from .base import BaseModel, TenantMixin

SERVICE_TYPES = ('regular', 'deep_clean', 'move_in', 'move_out', 'post_construction', 'one_time')
PROPERTY_TYPES = ('residential', 'commercial')
JOB_STATUSES = ('scheduled', 'in_progress', 'completed', 'cancelled')

# Columns copied from a recurring parent onto each generated instance.
INSTANCE_FIELDS = (
    'tenant_id', 'client_id', 'created_by', 'title', 'description', 'service_type',
    'property_type', 'scheduled_time', 'estimated_duration', 'arrival_window_start',
    'arrival_window_end', 'estimated_price', 'address', 'special_instructions',
    'access_instructions', 'square_footage', 'number_of_floors', 'building_type',
    'number_of_bedrooms', 'number_of_bathrooms', 'house_type', 'line_items',
)


class Job(BaseModel, TenantMixin):
    """
    Job model - a unit of scheduled cleaning work

    A job is one of three kinds:
    - standalone: ``is_recurring`` false and no ``parent_job_id``
    - recurring parent: ``is_recurring`` true, carries the recurrence pattern
    - instance: ``parent_job_id`` points at the parent that generated it
    """
    __tablename__ = 'jobs'

    client_id = db.Column(db.Uuid(as_uuid=True), db.ForeignKey('clients.id', ondelete='RESTRICT'), nullable=False)
    created_by = db.Column(db.Uuid(as_uuid=True), db.ForeignKey('users.id', ondelete='SET NULL'))

    # Job details
    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text)
    service_type = db.Column(db.String(50), nullable=False)
    property_type = db.Column(db.String(50), nullable=False, default='residential')
    status = db.Column(db.String(50), nullable=False, default='scheduled')

    # Scheduling
    scheduled_date = db.Column(db.Date, nullable=False)
    scheduled_time = db.Column(db.Time)
    estimated_duration = db.Column(db.Integer)  # minutes
    arrival_window_start = db.Column(db.Time)
    arrival_window_end = db.Column(db.Time)
    actual_start_time = db.Column(db.DateTime(timezone=True))
    actual_end_time = db.Column(db.DateTime(timezone=True))

    # Pricing
    estimated_price = db.Column(db.Numeric(10, 2))
    actual_price = db.Column(db.Numeric(10, 2))
    line_items = db.Column(db.JSON)  # [{description, quantity, price}]

    # Location & instructions
    address = db.Column(db.String(255))
    special_instructions = db.Column(db.Text)
    access_instructions = db.Column(db.Text)

    # Commercial
    square_footage = db.Column(db.Integer)
    number_of_floors = db.Column(db.Integer)
    building_type = db.Column(db.String(100))

    # Residential
    number_of_bedrooms = db.Column(db.Integer)
    number_of_bathrooms = db.Column(db.Numeric(4, 1))
    house_type = db.Column(db.String(100))

    completion_notes = db.Column(db.Text)

    # Recurrence (parents only)
    is_recurring = db.Column(db.Boolean, nullable=False, default=False)
    parent_job_id = db.Column(db.Uuid(as_uuid=True), db.ForeignKey('jobs.id', ondelete='CASCADE'), index=True)
    recurring_frequency = db.Column(db.String(20))
    recurring_end_type = db.Column(db.String(20))
    recurring_end_date = db.Column(db.Date)
    recurring_occurrences = db.Column(db.Integer)
    recurring_days_of_week = db.Column(db.JSON)  # 0=Sunday .. 6=Saturday
    recurring_day_of_month = db.Column(db.Integer)

    __table_args__ = (
        db.CheckConstraint(
            "status IN ('scheduled', 'in_progress', 'completed', 'cancelled')",
            name='ck_jobs_status',
        ),
        db.CheckConstraint(
            "property_type IN ('residential', 'commercial')",
            name='ck_jobs_property_type',
        ),
        db.CheckConstraint(
            "recurring_end_type IS NULL OR recurring_end_type IN ('never', 'date', 'occurrences')",
            name='ck_jobs_recurring_end_type',
        ),
        db.Index('idx_jobs_status', 'tenant_id', 'status'),
        db.Index('idx_jobs_scheduled_date', 'tenant_id', 'scheduled_date'),
        db.Index('idx_jobs_client_id', 'tenant_id', 'client_id'),
    )

    def __repr__(self):
        return f'<Job {self.title} {self.scheduled_date} - {self.status}>'

    def to_dict(self, include_client=False):
        """Convert to dictionary with optional client summary"""
        data = super().to_dict()
        data['line_items'] = self.line_items or []
        if include_client:
            data['client'] = self.client.summary() if self.client else None
        return data
