# tests/unit/conftest.py
"""单元测试专用 fixtures.

提供隔离的环境变量、基于内存 SQLite 的 Flask 应用,以及测试用的 Post/Comment/Tag 模型。
"""

import pytest

from formfacade import create_app, db
from formfacade.models import RecordMixin
from formfacade.settings import Settings, get_settings


class Post(RecordMixin, db.Model):
    __tablename__ = "posts"

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(255))

    validations = {"title": {"presence": True}}


class Comment(RecordMixin, db.Model):
    __tablename__ = "comments"

    id = db.Column(db.Integer, primary_key=True)
    body = db.Column(db.Text)

    validations = {"body": {"presence": True}}


class Tag(RecordMixin, db.Model):
    __tablename__ = "tags"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(64), unique=True)

    validations = {"name": {"presence": True}}


@pytest.fixture(autouse=True)
def _unit_test_env(monkeypatch):
    """为 unit tests 强制注入隔离环境变量.

    目标:
    - unit tests 只使用内存 SQLite
    - 避免开发者本机环境变量影响测试稳定性
    """
    monkeypatch.setenv("FLASK_ENV", "testing")
    monkeypatch.setenv("DATABASE_URL", "sqlite:///:memory:")
    monkeypatch.setenv("SECRET_KEY", "test-secret-key")
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    monkeypatch.delenv("ENABLE_DEBUG_LOG", raising=False)
    monkeypatch.delenv("FORMFACADE_COMMIT_ON_SAVE", raising=False)
    monkeypatch.delenv("FORMFACADE_SAVEPOINTS", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def app():
    """创建测试应用并在应用上下文中建表."""
    settings = Settings.load()
    app = create_app(settings=settings)
    app.config["TESTING"] = True
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def post_model():
    return Post


@pytest.fixture
def comment_model():
    return Comment


@pytest.fixture
def tag_model():
    return Tag
