import sys
from pathlib import Path

# Ajoute la racine du projet au PYTHONPATH EN PREMIER
sys.path.insert(0, str(Path(__file__).parent.parent))

import uuid

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

# Engine SQLite pour les tests AVANT d'importer l'app
SQLALCHEMY_TEST_DATABASE_URL = "sqlite:///./test.db"
test_engine = create_engine(
    SQLALCHEMY_TEST_DATABASE_URL,
    connect_args={"check_same_thread": False}
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)

# PATCH: remplacer engine et SessionLocal de core.database AVANT d'importer l'app
import taskboard.core.database
taskboard.core.database.engine = test_engine
taskboard.core.database.SessionLocal = TestingSessionLocal

from taskboard.core.database import Base, get_db
from taskboard.core.config import settings
from taskboard.core.security import create_access_token
from taskboard.main import app
from taskboard.models.column import BoardColumn
from taskboard.models.project import Project, ProjectMember
from taskboard.models.task import Task
from taskboard.models.user import User, UserRole
from taskboard.services.access_service import Principal


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


# Override la dépendance
app.dependency_overrides[get_db] = override_get_db


@pytest.fixture(autouse=True)
def setup_teardown():
    """Crée et nettoie la DB avant/après chaque test"""
    Base.metadata.drop_all(bind=test_engine)
    Base.metadata.create_all(bind=test_engine)
    yield
    Base.metadata.drop_all(bind=test_engine)


@pytest.fixture(autouse=True)
def upload_dir(tmp_path, monkeypatch):
    """Les images uploadées vont dans un dossier temporaire"""
    target = tmp_path / "uploads"
    monkeypatch.setattr(settings, "UPLOAD_DIR", str(target))
    return target


@pytest.fixture
def client():
    """Client de test FastAPI"""
    from fastapi.testclient import TestClient
    return TestClient(app)


@pytest.fixture
def db():
    """Session DB pour les tests"""
    db = TestingSessionLocal()
    yield db
    db.close()


@pytest.fixture
def make_user(db):
    """Fabrique d'utilisateurs (mot de passe: password123)"""
    def _make(name: str = None, role: UserRole = UserRole.USER) -> User:
        name = name or f"user{uuid.uuid4().hex[:8]}"
        user = User(email=f"{name}@test.com", username=name, role=role)
        user.set_password("password123")
        db.add(user)
        db.commit()
        db.refresh(user)
        return user
    return _make


def headers_for(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user.id, user.email)}"}


def principal_for(user: User) -> Principal:
    return Principal.from_user(user)


def column_orders(db, column_id: int) -> list:
    """(task_id, order) des cartes actives d'une colonne, dans l'ordre d'affichage"""
    db.expire_all()
    tasks = db.query(Task).filter(
        Task.column_id == column_id,
        Task.is_archived == False
    ).order_by(Task.order, Task.id).all()
    return [(t.id, t.order) for t in tasks]


@pytest.fixture
def board(db, make_user):
    """Projet P: organizer alice, membre bob, colonnes "To Do" (vide) et "Doing" (A=0, B=1).

    carol n'a aucun accès, dave est admin plateforme.
    """
    alice = make_user("alice")
    bob = make_user("bob")
    carol = make_user("carol")
    dave = make_user("dave", role=UserRole.ADMIN)

    project = Project(title="P", description="Demo board", organizer_id=alice.id)
    db.add(project)
    db.commit()
    db.refresh(project)

    db.add(ProjectMember(project_id=project.id, user_id=bob.id))
    todo = BoardColumn(project_id=project.id, title="To Do", order=0)
    doing = BoardColumn(project_id=project.id, title="Doing", order=1)
    db.add_all([todo, doing])
    db.commit()

    task_a = Task(project_id=project.id, column_id=doing.id, title="A", description="first", order=0)
    task_b = Task(project_id=project.id, column_id=doing.id, title="B", description="second", order=1)
    db.add_all([task_a, task_b])
    db.commit()

    return {
        "project": project,
        "todo": todo,
        "doing": doing,
        "a": task_a,
        "b": task_b,
        "alice": alice,
        "bob": bob,
        "carol": carol,
        "dave": dave,
    }
