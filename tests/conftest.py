"""
Pytest configuration and fixtures for Sweeply backend tests
"""
import pytest
from datetime import date

from sweeply import create_app, db
from sweeply.models import Client, Job, Tenant, User
from sweeply.utils.auth import generate_token


@pytest.fixture(scope='function')
def app():
    """Create application instance with a fresh in-memory database"""
    app = create_app('testing')

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client"""
    return app.test_client()


@pytest.fixture
def test_tenant(app):
    """Create a test tenant"""
    tenant = Tenant(
        name='Sparkle Cleaning',
        slug='sparkle-cleaning',
        contact_email='owner@sparkle.example.com',
        status='active',
    )
    db.session.add(tenant)
    db.session.commit()
    return tenant


@pytest.fixture
def other_tenant(app):
    """A second tenant, for isolation checks"""
    tenant = Tenant(
        name='Other Cleaners',
        slug='other-cleaners',
        contact_email='owner@other.example.com',
        status='active',
    )
    db.session.add(tenant)
    db.session.commit()
    return tenant


@pytest.fixture
def test_admin(test_tenant):
    """Create the tenant's admin user"""
    user = User(
        tenant_id=test_tenant.id,
        email='owner@sparkle.example.com',
        first_name='Jane',
        last_name='Owner',
        role='admin',
        status='active',
    )
    user.set_password('OwnerPass123')
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture
def test_staff(test_tenant):
    """Create a staff user"""
    user = User(
        tenant_id=test_tenant.id,
        email='staff@sparkle.example.com',
        first_name='Sam',
        last_name='Staff',
        role='staff',
        status='active',
    )
    user.set_password('StaffPass123')
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture
def test_client_record(test_tenant):
    """Create a client of the test tenant"""
    record = Client(
        tenant_id=test_tenant.id,
        name='Maria Lopez',
        email='maria@example.com',
        phone='555-0100',
        address='12 Elm Street',
        city='Springfield',
        state='IL',
        zip='62701',
    )
    db.session.add(record)
    db.session.commit()
    return record


def _headers(user):
    token = generate_token(user.id, user.tenant_id, user.role)
    return {
        'Authorization': f'Bearer {token}',
        'Content-Type': 'application/json'
    }


@pytest.fixture
def auth_headers(test_admin):
    """Auth headers for the tenant admin"""
    return _headers(test_admin)


@pytest.fixture
def staff_headers(test_staff):
    """Auth headers for a staff user"""
    return _headers(test_staff)


@pytest.fixture
def job_data(test_client_record):
    """Minimal valid payload for a standalone job"""
    return {
        'client_id': str(test_client_record.id),
        'title': 'Standard clean',
        'service_type': 'regular',
        'scheduled_date': '2024-03-15',
        'scheduled_time': '10:00',
        'estimated_duration': 120,
    }


@pytest.fixture
def recurring_data(job_data):
    """Weekly series starting Monday 2024-01-01"""
    data = dict(job_data)
    data.update({
        'title': 'Weekly clean',
        'scheduled_date': '2024-01-01',
        'scheduled_time': '09:00',
        'is_recurring': True,
        'recurring_frequency': 'weekly',
        'recurring_days_of_week': [1],
        'recurring_end_type': 'never',
    })
    return data


@pytest.fixture
def job_factory(test_tenant, test_client_record):
    """Insert Job rows directly, bypassing the services"""
    def _create_job(**kwargs):
        defaults = {
            'tenant_id': test_tenant.id,
            'client_id': test_client_record.id,
            'title': 'Standard clean',
            'service_type': 'regular',
            'property_type': 'residential',
            'status': 'scheduled',
            'scheduled_date': date(2024, 3, 15),
            'is_recurring': False,
        }
        defaults.update(kwargs)

        job = Job(**defaults)
        db.session.add(job)
        db.session.commit()
        return job

    return _create_job
