"""
Labor Hours - Test Configuration and Fixtures
"""
import os
from typing import AsyncGenerator, Iterable, Optional
import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import NullPool
from faker import Faker

# Set testing environment
os.environ['ENVIRONMENT'] = 'testing'
os.environ['DATABASE_URL'] = 'sqlite+aiosqlite:///./test_laborhours.db'
os.environ['SECRET_KEY'] = 'test-secret-key-for-testing-only'
os.environ['JWT_SECRET_KEY'] = 'test-jwt-secret-key-for-testing'
os.environ['RATE_LIMIT_ENABLED'] = 'false'
os.environ['BCRYPT_ROUNDS'] = '4'
os.environ['LOG_FILE'] = ''
os.environ['SENDGRID_API_KEY'] = ''

from laborhours.main import app
from laborhours.core.database import Base, get_db
from laborhours.core.security import create_access_token
from laborhours.models import (
    AppRole, User, Process1, Process2, Process3, Process4, System, EmailTemplate
)
from laborhours.services.provisioner import UserProvisioner, build_provision_request
from laborhours.services.user_store import UserStore

fake = Faker()

# Test database setup
TEST_DATABASE_URL = 'sqlite+aiosqlite:///./test_laborhours.db'
test_engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=NullPool)
TestSessionLocal = async_sessionmaker(
    bind=test_engine,
    class_=AsyncSession,
    expire_on_commit=False
)

CATEGORY_IDS = ["1.1", "1.2", "2.1"]
USER_PASSWORD = "Test#pass1"


@pytest.fixture(scope='function')
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create a fresh database session for each test"""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with TestSessionLocal() as session:
        yield session
        await session.rollback()

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create test client with database override"""
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url='http://test') as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
async def process_tree(db_session: AsyncSession) -> list:
    """
    Three active categories with a small tree below 1.1 and 2.1, one
    inactive category, and two systems.
    """
    db_session.add_all([
        Process1(f1_index="1.1", f1_name="Finance", sort=1),
        Process1(f1_index="1.2", f1_name="Controlling", sort=2),
        Process1(f1_index="2.1", f1_name="Human Resources", sort=3),
        Process1(f1_index="9.9", f1_name="Retired", sort=4, is_active=False),
    ])
    await db_session.flush()
    db_session.add_all([
        Process2(f2_index="1.1.1", f1_index="1.1", f2_name="Accounting", sort=1),
        Process2(f2_index="2.1.1", f1_index="2.1", f2_name="Recruiting", sort=1),
    ])
    await db_session.flush()
    db_session.add_all([
        Process3(f3_index="1.1.1.1", f2_index="1.1.1", f3_name="Bookkeeping", sort=1),
        Process3(f3_index="2.1.1.1", f2_index="2.1.1", f3_name="Interviews", sort=1),
    ])
    await db_session.flush()
    db_session.add_all([
        Process4(f4_index="1.1.1.1.2", f3_index="1.1.1.1", f4_name="Payables", sort=2),
        Process4(f4_index="1.1.1.1.1", f3_index="1.1.1.1", f4_name="Receivables", sort=1),
        Process4(f4_index="1.1.1.1.3", f3_index="1.1.1.1", f4_name="Legacy", sort=3, is_active=False),
        Process4(f4_index="2.1.1.1.1", f3_index="2.1.1.1", f4_name="Screening", sort=1),
        System(system_name="SAP ERP"),
        System(system_name="Microsoft Excel"),
    ])
    await db_session.commit()
    return list(CATEGORY_IDS)


@pytest.fixture
async def email_template(db_session: AsyncSession) -> EmailTemplate:
    template = EmailTemplate(
        subject="Welcome {{full_name}}",
        html_template="<p>{{email}} / {{password}} / {{login_url}}</p>",
    )
    db_session.add(template)
    await db_session.commit()
    return template


async def create_user(
    db: AsyncSession,
    role: AppRole = AppRole.USER,
    categories: Iterable[str] = ("1.1",),
    email: Optional[str] = None,
    password: str = USER_PASSWORD,
) -> User:
    """Provision a user through the regular create steps"""
    store = UserStore(db)
    request = build_provision_request(
        email=email or fake.unique.email(),
        categories=list(categories),
        all_categories=await store.all_category_ids(),
        full_name=fake.name(),
        role=role,
        password=password,
    )
    outcome = await UserProvisioner(store).provision(request)
    assert outcome.success, outcome.error
    return await store.get_identity(outcome.user_id)


def auth_headers_for(user: User) -> dict:
    token = create_access_token({'sub': str(user.id), 'email': user.email})
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture
async def test_user(db_session: AsyncSession, process_tree) -> User:
    """Regular user with access to categories 1.1 and 1.2"""
    return await create_user(db_session, categories=["1.1", "1.2"])


@pytest.fixture
async def admin_user(db_session: AsyncSession, process_tree) -> User:
    """Administrator (access to every category)"""
    return await create_user(db_session, role=AppRole.ADMIN)


@pytest.fixture
def auth_headers(test_user: User) -> dict:
    """Generate authentication headers for test user"""
    return auth_headers_for(test_user)


@pytest.fixture
def admin_auth_headers(admin_user: User) -> dict:
    """Generate authentication headers for admin user"""
    return auth_headers_for(admin_user)


@pytest.fixture
def user_factory(db_session: AsyncSession):
    """Create extra users inside a test"""
    async def _create(**kwargs) -> User:
        return await create_user(db_session, **kwargs)
    return _create


@pytest.fixture
def headers_for():
    """Build bearer headers for any user"""
    return auth_headers_for
