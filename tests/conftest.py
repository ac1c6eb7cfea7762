# SPDX-FileCopyrightText: 2023 Mark Liffiton <liffiton@gmail.com>
#
# SPDX-License-Identifier: AGPL-3.0-only

import json
from collections.abc import Callable, Generator
from pathlib import Path

import openai
import pytest
from dotenv import find_dotenv, load_dotenv

from langloop import Workspace, create_workspace
from langloop.kvstore import MemoryStore, WriteError
from langloop.llm import LLM
from langloop.testing.mocks import (
    mock_async_completion,
    mock_async_speech,
    mock_async_transcription,
)

ENV_VARS = (
    'OPENAI_API_KEY',
    'LANGLOOP_MODEL',
    'LANGLOOP_OPENAI_BASE_URL',
    'LANGLOOP_DATABASE',
    'LANGLOOP_DEBOUNCE_SECONDS',
    'LANGLOOP_MAX_ATTEMPTS',
    'LANGLOOP_TESTING',
)


@pytest.fixture(scope='session', autouse=True)
def _load_env() -> None:
    env_file = find_dotenv('.env.test')
    if env_file:
        load_dotenv(env_file)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """ Keep a developer's environment (or .env file) out of the tests. """
    for var in ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setattr('langloop.config.load_dotenv', lambda *_args, **_kwargs: False)


@pytest.fixture
def set_completion(monkeypatch: pytest.MonkeyPatch) -> Callable[[str], None]:
    """ Returns a function that sets the text the mocked model will reply with. """
    def set_content(content: str) -> None:
        monkeypatch.setattr(openai.resources.chat.AsyncCompletions, "create", mock_async_completion(content))
    return set_content


@pytest.fixture
def grammar_reply(set_completion: Callable[[str], None]) -> Callable[..., None]:
    """ Set the mocked model's reply to a grammar response with the given issues. """
    def set_issues(*issues: dict[str, str]) -> None:
        set_completion(json.dumps({"issues": list(issues)}))
    return set_issues


@pytest.fixture
def workspace(monkeypatch: pytest.MonkeyPatch) -> Generator[Workspace, None, None]:
    """ Provides a workspace with openai monkey patched to *not* send requests.
    The mocked model replies with an empty grammar response unless a test
    sets another reply (see set_completion).
    """
    monkeypatch.setattr(openai.resources.chat.AsyncCompletions, "create", mock_async_completion())
    monkeypatch.setattr(openai.resources.audio.AsyncTranscriptions, "create", mock_async_transcription("I red the book"))
    monkeypatch.setattr(openai.resources.audio.AsyncSpeech, "create", mock_async_speech(b"ID3fake"))

    yield create_workspace(
        test_config={
            'testing': True,
            'openai_api_key': 'invalid',  # ensure an invalid API key for testing
        },
    )


@pytest.fixture
def llm(workspace: Workspace) -> LLM:
    return workspace.llm


class FailingStore(MemoryStore):
    ''' A store whose writes always fail. '''
    def set(self, key: str, value: str) -> None:
        raise WriteError(key, "disk full")


@pytest.fixture
def failing_store() -> FailingStore:
    return FailingStore()


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    return tmp_path / 'test.db'
