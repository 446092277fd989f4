# tests/conftest.py
import io
import pytest
from fastapi.testclient import TestClient

from campusbooks.config import Settings
from campusbooks.db import init_db, make_engine, make_session_factory
from campusbooks.main import create_app
from campusbooks.api.deps import get_storage
from campusbooks.storage import MemStorage, SqlStorage

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64

def book_form(**overrides):
    form = {
        "title": "Introduction to Algorithms",
        "author": "Cormen",
        "subject": "Computer Science",
        "condition": "Used",
        "price": "450",
        "phone": "9876543210",
    }
    form.update(overrides)
    return form

def book_data(**overrides):
    data = book_form(**overrides)
    data["price"] = int(data["price"])
    data.setdefault("image_url", "/uploads/cover.png")
    return data

def image_file(name="cover.png", content=PNG_BYTES, content_type="image/png"):
    return {"image": (name, io.BytesIO(content), content_type)}

@pytest.fixture
def settings(tmp_path):
    return Settings(
        database_url=f"sqlite:///{tmp_path / 'test.db'}",
        upload_dir=str(tmp_path / "uploads"),
        session_secret="test-secret",
        require_login=False,
    )

@pytest.fixture
def mem_storage():
    return MemStorage()

@pytest.fixture
def sql_storage(settings):
    engine = make_engine(settings)
    init_db(engine)
    session = make_session_factory(engine)()
    yield SqlStorage(session)
    session.close()
    engine.dispose()

@pytest.fixture(params=["memory", "sql"])
def storage(request):
    # every storage test runs against both implementations
    if request.param == "memory":
        return request.getfixturevalue("mem_storage")
    return request.getfixturevalue("sql_storage")

@pytest.fixture
def app(settings, mem_storage):
    app = create_app(settings)
    app.dependency_overrides[get_storage] = lambda: mem_storage
    return app

@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c
