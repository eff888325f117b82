# tests/repositories/test_sqlalchemy_repositories.py
import pytest
from unittest.mock import MagicMock
from sqlalchemy import create_engine
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import sessionmaker

from scholance.database.database import Base
from scholance.database.db_connector import DBConnector
from scholance.database import models
from scholance.repositories.sqlalchemy import (
    SqlalchemyProjectRepository, SqlalchemyUserRepository, SqlalchemyOrganizationRepository,
)

# ===================================================================
#  Fixture 설정 (인메모리 SQLite)
# ===================================================================

@pytest.fixture
def db_session():
    """테스트마다 새 인메모리 SQLite DB와 세션을 만듭니다."""
    engine = create_engine("sqlite://")
    Base.metadata.create_all(bind=engine)
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    yield session
    session.close()
    engine.dispose()

@pytest.fixture
def user_repo(db_session):
    return SqlalchemyUserRepository(db_session)

@pytest.fixture
def project_repo(db_session):
    return SqlalchemyProjectRepository(db_session)

@pytest.fixture
def organization_repo(db_session):
    return SqlalchemyOrganizationRepository(db_session)


def make_user(user_id="s1", **overrides):
    fields = dict(id=user_id, name="Sam", user_type="student", email=f"{user_id}@uni.edu",
                  projects=[], portfolio_entries=[])
    fields.update(overrides)
    return models.User(**fields)


def make_project(project_id="p1", status="active"):
    return models.Project(
        id=project_id, title="Logo", summary="Design a logo", status=status,
        liaison_id="liaison-1", organization_id="org-1",
        deliverables=[], specs=[], supplemental_resources=[], comments=[], entries=[],
    )

# ===================================================================
#  리포지토리 테스트
# ===================================================================
class TestUserRepository:
    def test_push_and_pull_project(self, user_repo):
        """프로젝트 ID 추가는 중복 없이, 제거는 해당 ID만 빠지는지 테스트합니다."""
        user_repo.create(make_user())

        assert user_repo.push_project("s1", "p1")
        assert user_repo.push_project("s1", "p1")
        assert user_repo.push_project("s1", "p2")
        assert user_repo.find_by_id("s1").projects == ["p1", "p2"]

        assert user_repo.pull_project("s1", "p1")
        assert user_repo.find_by_id("s1").projects == ["p2"]

    def test_missing_user_returns_false(self, user_repo):
        assert user_repo.push_project("ghost", "p1") is False
        assert user_repo.push_portfolio_entry("ghost", {"id": "pe1"}) is False
        assert user_repo.set_organization("ghost", "org-1") is False

    def test_push_portfolio_entry_appends(self, user_repo):
        user_repo.create(make_user(portfolio_entries=[{"id": "pe0"}]))

        user_repo.push_portfolio_entry("s1", {"id": "pe1"})

        assert [e["id"] for e in user_repo.find_by_id("s1").portfolio_entries] == ["pe0", "pe1"]

    def test_find_by_ids_ignores_missing(self, user_repo):
        user_repo.create(make_user("s1"))
        user_repo.create(make_user("s2"))

        found = user_repo.find_by_ids(["s1", "ghost"])

        assert [u.id for u in found] == ["s1"]
        assert user_repo.find_by_ids([]) == []


class TestProjectRepository:
    def test_list_filters_by_status(self, project_repo):
        project_repo.create(make_project("p1", "active"))
        project_repo.create(make_project("p2", "complete"))

        assert [p.id for p in project_repo.list({"status": "complete"})] == ["p2"]
        assert len(project_repo.list({})) == 2

    def test_save_persists_reassigned_json(self, project_repo):
        """JSON 컬럼에 새 리스트를 다시 할당하면 변경이 저장되는지 테스트합니다."""
        project = project_repo.create(make_project())

        project.entries = project.entries + [{"id": "e1", "student": "s1"}]
        project_repo.save(project)

        assert project_repo.find_by_id("p1").entries == [{"id": "e1", "student": "s1"}]

    def test_delete(self, project_repo):
        project = project_repo.create(make_project())

        assert project_repo.delete(project) is True
        assert project_repo.find_by_id("p1") is None


class TestOrganizationRepository:
    def test_list_by_domain(self, organization_repo):
        organization_repo.create(models.Organization(id="o1", name="Acme", domain="acme.com", liaisons=[]))
        organization_repo.create(models.Organization(id="o2", name="Beta", domain="beta.io", liaisons=[]))

        assert [o.id for o in organization_repo.list({"domain": "beta.io"})] == ["o2"]
        assert [o.name for o in organization_repo.list({})] == ["Acme", "Beta"]


class TestDBConnector:
    def test_closes_session_on_success(self):
        session = MagicMock()

        with DBConnector(session_factory=lambda: session) as opened:
            assert opened is session

        session.close.assert_called_once()
        session.rollback.assert_not_called()

    def test_rolls_back_on_error(self):
        session = MagicMock()

        with pytest.raises(RuntimeError):
            with DBConnector(session_factory=lambda: session):
                raise RuntimeError("boom")

        session.rollback.assert_called_once()
        session.close.assert_called_once()


class TestFailedCommit:
    def test_session_usable_after_failed_commit(self, db_session, user_repo, project_repo):
        """커밋이 실패하면 세션이 롤백되어 같은 세션의 다음 쓰기가 성공하는지 테스트합니다."""
        # === Arrange ===
        user_repo.create(make_user())
        project = project_repo.create(make_project())
        user = user_repo.find_by_id("s1")
        user.email = None

        # === Act & Assert ===
        with pytest.raises(IntegrityError):
            user_repo.save(user)

        project.entries = [{"id": "e1", "student": "s1"}]
        project_repo.save(project)

        assert project_repo.find_by_id("p1").entries == [{"id": "e1", "student": "s1"}]
        assert user_repo.find_by_id("s1").email == "s1@uni.edu"

    def test_failed_commit_rolls_back_and_reraises(self):
        session = MagicMock()
        session.commit.side_effect = OperationalError("COMMIT", {}, Exception("db down"))
        repo = SqlalchemyUserRepository(session)

        with pytest.raises(OperationalError):
            repo.save(make_user())

        session.rollback.assert_called_once()
        session.refresh.assert_not_called()
