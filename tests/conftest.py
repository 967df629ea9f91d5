"""
Shared fixtures: a scripted text backend and a recording query executor, so
the translation pipeline runs without an LLM provider or a MongoDB server.
"""
import os

# keep test runs from writing log files
os.environ.setdefault("LOG_FILE", "")

import pytest

import DB.executor as executor_module
from LLM.backend import BackendCallError


class ScriptedBackend:
    """Async stand-in for LLM.backend.invoke_text, answering per stage."""

    def __init__(self, analysis="**Query Analysis:**\n- Operation: find", compilation='{"a": 1}', fail_stage=None):
        self.responses = {"analysis": analysis, "compilation": compilation}
        self.fail_stage = fail_stage
        self.calls = []

    async def __call__(self, prompt, config):
        self.calls.append((prompt, config))
        if config.stage == self.fail_stage:
            raise BackendCallError(config.stage, "quota exceeded")
        return self.responses[config.stage]

    def prompt_for(self, stage):
        for prompt, config in self.calls:
            if config.stage == stage:
                return prompt
        return None


class RecordingExecutor:
    def __init__(self, results=None, error=None):
        self.results = results if results is not None else [{"_id": "1", "name": "Ada"}]
        self.error = error
        self.calls = []

    def __call__(self, validated):
        self.calls.append(validated)
        if self.error is not None:
            raise self.error
        return self.results


@pytest.fixture
def backend():
    return ScriptedBackend()


@pytest.fixture
def recording_executor():
    return RecordingExecutor()


@pytest.fixture
def reset_mongo_handle():
    """Drop the process-wide MongoDB handle before and after a test."""
    executor_module._client = None
    executor_module._database = None
    yield
    executor_module._client = None
    executor_module._database = None


def pytest_configure(config):
    config.addinivalue_line("markers", "integration: needs a live MongoDB or LLM provider")


@pytest.fixture
def make_backend():
    return ScriptedBackend


@pytest.fixture
def make_executor():
    return RecordingExecutor
