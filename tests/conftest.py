import os

os.environ.setdefault("GEMINI_API_KEY", "test-key")

import pytest
from fastapi.testclient import TestClient

import main


class FakeModelClient:
    def __init__(self, reply: str = "{}", error: Exception = None):
        self.reply = reply
        self.error = error
        self.calls = []

    async def generate(self, prompt: str, prefer_json: bool = True) -> str:
        self.calls.append((prompt, prefer_json))
        if self.error is not None:
            raise self.error
        return self.reply


@pytest.fixture
def fake_model():
    return FakeModelClient()


@pytest.fixture
def client(fake_model):
    main.app.dependency_overrides[main.get_model_client] = lambda: fake_model
    with TestClient(main.app) as c:
        yield c
    main.app.dependency_overrides.clear()


@pytest.fixture
def quiz_payload():
    return {
        "subject": "Math",
        "chapter": "Algebra",
        "totalQuestions": 5,
        "answeredQuestions": 4,
        "wrongAnswers": [
            {
                "questionText": "2 + 2 = ?",
                "options": [{"text": "3"}, {"text": "4"}],
                "selectedIndex": 0,
                "correctIndex": 1,
                "explanation": "Two plus two is four.",
            }
        ],
    }
