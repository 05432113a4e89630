import pytest
from django.core.cache import cache
from rest_framework.test import APIClient

from ward.models import User


@pytest.fixture(autouse=True)
def _clear_cache():
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def doctor(db):
    return User.objects.create_user(username='dr_test', password='P@ssw0rd1', role=User.ROLE_DOCTOR,
                                    name='Dr. Test', department='Neurology')


@pytest.fixture
def administrator(db):
    return User.objects.create_user(username='ward_admin', password='P@ssw0rd1',
                                    role=User.ROLE_ADMINISTRATOR, name='Ward Admin')


@pytest.fixture
def api(doctor):
    client = APIClient()
    client.force_authenticate(doctor)
    return client
