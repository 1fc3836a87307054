"""
Unit tests for VersionService
"""
import threading
from uuid import uuid4

import pytest
from sqlalchemy import create_engine, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from app.core.database import Base
from app.core.errors import BadRequestError, ConflictError, NotFoundError, UnauthorizedError
from app.models.profile import Profile
from app.models.version import PromptVersion
from app.services.repository_service import RepositoryService
from app.services.version_service import VersionService


@pytest.fixture
def version_service(db: Session):
    """Create VersionService instance"""
    return VersionService(db)


@pytest.fixture
def repository(db: Session, alice):
    return RepositoryService(db).create_repository(identity=alice, name="Summarizer")


class TestCreateVersion:
    """Test cases for version creation and numbering"""

    def test_first_version_is_one(self, version_service: VersionService, repository, alice):
        version = version_service.create_version(
            repository_id=repository.id,
            identity=alice,
            prompt_text="Summarize {{text}}",
            variables={"text": "string"},
            model_settings={"temperature": 0.2},
            notes="Initial",
        )

        assert version.version_number == 1
        assert version.repository_id == repository.id
        assert version.user_id == "user_alice"
        assert version.variables == {"text": "string"}
        assert version.model_settings == {"temperature": 0.2}
        assert version.notes == "Initial"

    def test_numbers_increase_by_one(self, version_service: VersionService, repository, alice, bob):
        numbers = [
            version_service.create_version(repository.id, identity, prompt_text=f"Prompt {i}").version_number
            for i, identity in enumerate([alice, bob, alice])
        ]
        assert numbers == [1, 2, 3]

    def test_numbering_is_per_repository(self, db: Session, version_service: VersionService, repository, alice):
        other = RepositoryService(db).create_repository(identity=alice, name="Other")
        version_service.create_version(repository.id, alice, prompt_text="A")
        version_service.create_version(repository.id, alice, prompt_text="B")

        assert version_service.create_version(other.id, alice, prompt_text="C").version_number == 1

    def test_structured_fields_default_to_none(self, version_service: VersionService, repository, alice):
        version = version_service.create_version(repository.id, alice, prompt_text="Plain")

        assert version.variables is None
        assert version.model_settings is None
        assert version.notes is None

    def test_requires_identity(self, version_service: VersionService, repository):
        with pytest.raises(UnauthorizedError):
            version_service.create_version(repository.id, None, prompt_text="Anonymous")

    @pytest.mark.parametrize("prompt_text", [None, "", "   ", 7])
    def test_prompt_text_required(self, version_service: VersionService, repository, alice, prompt_text):
        with pytest.raises(BadRequestError) as exc_info:
            version_service.create_version(repository.id, alice, prompt_text=prompt_text)
        assert exc_info.value.message == "Prompt text is required"

    def test_unknown_repository(self, version_service: VersionService, alice):
        with pytest.raises(NotFoundError):
            version_service.create_version(uuid4(), alice, prompt_text="Orphan")

    def test_private_repository_rejects_other_users(self, db: Session, version_service: VersionService, alice, bob):
        private = RepositoryService(db).create_repository(identity=alice, name="Mine", is_public=False)

        with pytest.raises(NotFoundError):
            version_service.create_version(private.id, bob, prompt_text="Intrusion")
        assert version_service.create_version(private.id, alice, prompt_text="Mine").version_number == 1

    def test_collision_is_retried(self, version_service: VersionService, repository, alice, monkeypatch):
        """A concurrent writer taking the number triggers a retry with a fresh number"""
        version_service.create_version(repository.id, alice, prompt_text="First")

        original = VersionService._next_version_number
        calls = []

        def stale_then_fresh(self, repository_id):
            calls.append(repository_id)
            # First attempt sees a stale maximum, as a racing writer would
            if len(calls) == 1:
                return 1
            return original(self, repository_id)

        monkeypatch.setattr(VersionService, "_next_version_number", stale_then_fresh)

        version = version_service.create_version(repository.id, alice, prompt_text="Second")

        assert version.version_number == 2
        assert len(calls) == 2

    def test_conflict_after_max_attempts(self, db: Session, repository, alice, monkeypatch):
        service = VersionService(db, max_attempts=2)
        service.create_version(repository.id, alice, prompt_text="First")
        monkeypatch.setattr(VersionService, "_next_version_number", lambda self, repository_id: 1)

        with pytest.raises(ConflictError):
            service.create_version(repository.id, alice, prompt_text="Lost race")

        assert db.query(PromptVersion).filter_by(repository_id=repository.id).count() == 1

    def test_unique_constraint(self, db: Session, repository):
        db.add(PromptVersion(repository_id=repository.id, version_number=1, prompt_text="a", user_id="u"))
        db.commit()
        db.add(PromptVersion(repository_id=repository.id, version_number=1, prompt_text="b", user_id="u"))

        with pytest.raises(IntegrityError):
            db.commit()
        db.rollback()


class TestGetVersion:
    """Test cases for version lookup"""

    def test_get_version(self, version_service: VersionService, repository, alice):
        created = version_service.create_version(repository.id, alice, prompt_text="Find me")

        assert version_service.get_version(repository.id, created.id).prompt_text == "Find me"
        assert version_service.get_version_by_number(repository.id, 1).id == created.id

    def test_version_from_another_repository(self, db: Session, version_service: VersionService, repository, alice):
        other = RepositoryService(db).create_repository(identity=alice, name="Other")
        foreign = version_service.create_version(other.id, alice, prompt_text="Elsewhere")

        with pytest.raises(NotFoundError) as exc_info:
            version_service.get_version(repository.id, foreign.id)
        assert exc_info.value.message == "Target version not found"

    def test_missing_number(self, version_service: VersionService, repository):
        with pytest.raises(NotFoundError) as exc_info:
            version_service.get_version_by_number(repository.id, 4)
        assert exc_info.value.message == "Version 4 not found"


class TestListVersions:
    """Test cases for version history"""

    def test_newest_first_with_editor(self, db: Session, version_service: VersionService, repository, alice, bob):
        db.add(Profile(external_id="user_alice", email="alice@example.com", full_name="Alice Example"))
        db.commit()
        version_service.create_version(repository.id, alice, prompt_text="One")
        version_service.create_version(repository.id, bob, prompt_text="Two")

        history = version_service.list_versions(repository.id)

        assert [entry["version_number"] for entry in history] == [2, 1]
        assert history[0]["editor"] is None
        assert history[1]["editor"] == {"full_name": "Alice Example", "email": "alice@example.com"}

    def test_empty_history(self, version_service: VersionService, repository):
        assert version_service.list_versions(repository.id) == []

    def test_private_history_hidden(self, db: Session, version_service: VersionService, alice, bob):
        private = RepositoryService(db).create_repository(identity=alice, name="Mine", is_public=False)

        with pytest.raises(NotFoundError):
            version_service.list_versions(private.id, bob)


class TestRollback:
    """Test cases for rollback"""

    def test_rollback_creates_copy_as_new_version(
        self, version_service: VersionService, repository, alice, bob
    ):
        """Rolling back to v1 after v2 yields v3 with v1's content, leaving v1 and v2 intact"""
        v1 = version_service.create_version(
            repository.id, alice, prompt_text="A", variables={"x": 1}, model_settings={"t": 0}, notes="first",
        )
        v2 = version_service.create_version(repository.id, alice, prompt_text="B", notes="second")

        v3 = version_service.rollback_to_version(repository.id, v1.id, bob)

        assert v3.version_number == 3
        assert v3.prompt_text == "A"
        assert v3.variables == {"x": 1}
        assert v3.model_settings == {"t": 0}
        assert v3.user_id == "user_bob"
        assert v3.notes == f"Rolled back to version 1 (ID: {v1.id}). Original notes: first"

        history = version_service.list_versions(repository.id)
        assert [entry["version_number"] for entry in history] == [3, 2, 1]
        assert history[1]["prompt_text"] == "B"
        assert history[1]["id"] == str(v2.id)
        assert history[2]["notes"] == "first"

    def test_rollback_without_notes(self, version_service: VersionService, repository, alice):
        v1 = version_service.create_version(repository.id, alice, prompt_text="A")
        version_service.create_version(repository.id, alice, prompt_text="B")

        v3 = version_service.rollback_to_version(repository.id, v1.id, alice)

        assert v3.notes == f"Rolled back to version 1 (ID: {v1.id}). Original notes: "

    def test_rollback_requires_identity(self, version_service: VersionService, repository, alice):
        v1 = version_service.create_version(repository.id, alice, prompt_text="A")

        with pytest.raises(UnauthorizedError):
            version_service.rollback_to_version(repository.id, v1.id, None)

    def test_rollback_to_unknown_version(self, version_service: VersionService, repository, alice):
        with pytest.raises(NotFoundError) as exc_info:
            version_service.rollback_to_version(repository.id, uuid4(), alice)
        assert exc_info.value.message == "Target version not found"

    def test_hello_world_scenario(self, version_service: VersionService, repository, alice):
        v1 = version_service.create_version(repository.id, alice, prompt_text="Hello")
        version_service.create_version(repository.id, alice, prompt_text="Hello world")

        v3 = version_service.rollback_to_version(repository.id, v1.id, alice)

        assert v3.version_number == 3
        assert v3.prompt_text == "Hello"
        assert "Rolled back to version 1" in v3.notes
        assert [entry["version_number"] for entry in version_service.list_versions(repository.id)] == [3, 2, 1]


class TestConcurrentCreates:
    """Concurrent writers on a file-backed database"""

    def test_parallel_creates_number_one_to_n(self, tmp_path, alice):
        import app.models  # noqa: F401

        engine = create_engine(
            f"sqlite:///{tmp_path / 'versions.db'}",
            connect_args={"check_same_thread": False, "timeout": 30},
        )
        Base.metadata.create_all(bind=engine)
        make_session = sessionmaker(bind=engine, autoflush=False)
        writers = 8

        with make_session() as session:
            repository_id = RepositoryService(session).create_repository(identity=alice, name="Race").id

        barrier = threading.Barrier(writers)
        numbers, errors = [], []
        lock = threading.Lock()

        def write(index):
            with make_session() as session:
                barrier.wait()
                try:
                    version = VersionService(session, max_attempts=writers).create_version(
                        repository_id, alice, prompt_text=f"Writer {index}"
                    )
                except Exception as e:
                    with lock:
                        errors.append(e)
                    return
                with lock:
                    numbers.append(version.version_number)

        threads = [threading.Thread(target=write, args=(index,)) for index in range(writers)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        try:
            assert errors == []
            assert sorted(numbers) == list(range(1, writers + 1))
            with make_session() as session:
                stored = session.scalars(
                    select(PromptVersion.version_number).where(PromptVersion.repository_id == repository_id)
                ).all()
            assert sorted(stored) == list(range(1, writers + 1))
        finally:
            engine.dispose()
