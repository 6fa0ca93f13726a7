import json
from types import SimpleNamespace

import pytest

from neuropath import create_app
from neuropath.config import config
from neuropath.services.ai_service import ai_service


class FakeLLM:
    """Stands in for ``AIService._chat_completion_with_timeout``.

    Queue replies with ``reply()``; set ``error`` to make every call raise.
    """

    def __init__(self):
        self.replies = []
        self.calls = []
        self.error = None

    def reply(self, content):
        if not isinstance(content, str):
            content = json.dumps(content)
        self.replies.append(content)

    def __call__(self, model, messages, timeout_s=60, **kwargs):
        self.calls.append({"model": model, "messages": messages, "timeout_s": timeout_s, **kwargs})
        if self.error is not None:
            raise self.error
        content = self.replies.pop(0) if self.replies else ""
        return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


@pytest.fixture
def data_dir(tmp_path, monkeypatch):
    monkeypatch.setattr(config, "DATA_DIR", str(tmp_path))
    monkeypatch.setattr(config, "GAME_SESSIONS_PATH", str(tmp_path / "game_sessions.json"))
    monkeypatch.setattr(config, "ACTIVITY_SESSIONS_PATH", str(tmp_path / "activity_sessions.json"))
    monkeypatch.setattr(config, "USERS_STORE_PATH", str(tmp_path / "users.json"))
    monkeypatch.setattr(config, "LOG_DIR", str(tmp_path / "logs"))
    return tmp_path


@pytest.fixture
def llm(monkeypatch):
    fake = FakeLLM()
    monkeypatch.setattr(ai_service, "_chat_completion_with_timeout", fake)
    return fake


@pytest.fixture
def app(data_dir, llm):
    app = create_app()
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()


def write_json(path, data):
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f)


def game_record(user_id=1, game_type="MemoryMatch", score=100, accuracy=80.0, created="2025-11-03T10:00:00Z", **extra):
    record = {
        "id": f"{user_id}-{game_type}-{created}",
        "userId": user_id,
        "username": extra.pop("username", "Sam Lee"),
        "gameType": game_type,
        "gameMode": "Practice",
        "difficulty": extra.pop("difficulty", 1),
        "score": score,
        "accuracy": accuracy,
        "totalMoves": extra.pop("totalMoves", 20),
        "correctMoves": extra.pop("correctMoves", 8),
        "errorCount": 2,
        "timeTakenSeconds": extra.pop("timeTakenSeconds", 60),
        "createdAt": created,
        "status": "Completed",
    }
    record.update(extra)
    return record
