"""
Pytest configuration and shared fixtures
"""
import os
import sys
import pytest
from contextlib import contextmanager
from pathlib import Path
from unittest.mock import MagicMock

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

os.environ.setdefault('FLASK_ENV', 'testing')


@pytest.fixture
def app_config(tmp_path):
    """Fixture providing test configuration that logs into a temp directory"""
    from config import TestingConfig

    class IsolatedTestingConfig(TestingConfig):
        LOG_DIR = str(tmp_path / 'logs')

    return IsolatedTestingConfig


@pytest.fixture
def app(app_config):
    """Flask application built by the factory with the testing config"""
    from app_init import create_app
    return create_app(app_config)


@pytest.fixture
def client(app):
    """Flask test client"""
    return app.test_client()


@pytest.fixture
def mock_session():
    """A MagicMock standing in for a SQLAlchemy session"""
    return MagicMock(name='session')


@pytest.fixture
def fake_db_session(mock_session):
    """Drop-in replacement for database.connection.get_db_session"""
    @contextmanager
    def _session():
        yield mock_session

    return _session


@pytest.fixture
def test_env_vars():
    """Fixture providing test environment variables"""
    original_env = os.environ.copy()

    os.environ['FLASK_ENV'] = 'testing'

    yield

    # Restore original environment
    os.environ.clear()
    os.environ.update(original_env)


@pytest.fixture
def sample_customer_data():
    """Fixture providing a valid customer payload"""
    return {
        'name': '成都小王服饰',
        'contact_name': '王小明',
        'phones': ['13800000000'],
        'wechats': ['wx_wang'],
        'province': '四川',
        'city': '成都',
        'tags': ['重点客户'],
        'state': 1,
        'level': 2,
    }
