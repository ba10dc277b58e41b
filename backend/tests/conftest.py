import os, sys, pytest
# Ensure backend directory is on path so 'repairdesk' and 'tests' can be imported
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)
from repairdesk import create_app, get_db
from repairdesk.models.base import Base
# Import all model modules to ensure tables are registered before create_all
import repairdesk.models.user  # noqa: F401
import repairdesk.models.customer  # noqa: F401
import repairdesk.models.product  # noqa: F401
import repairdesk.models.repair  # noqa: F401
import repairdesk.models.notification  # noqa: F401
import repairdesk.models.audit  # noqa: F401

@pytest.fixture(scope='session', autouse=True)
def app_instance():
    os.environ['DATABASE_URL'] = 'sqlite+pysqlite:///:memory:'
    app = create_app()
    # After app and blueprints are registered, ensure all tables exist
    with app.app_context():
        engine = get_db().get_bind()
        Base.metadata.create_all(engine)
    yield app

@pytest.fixture()
def app_context(app_instance):
    with app_instance.app_context():
        yield app_instance

@pytest.fixture()
def client(app_instance):
    return app_instance.test_client()
