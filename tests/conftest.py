import os
import sys

import pytest

# Ensure src/ is importable when tests run from the repo root without an install
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "src")))

from pantry_planner.config import reset_provider_config
from pantry_planner.llm.gateway import reset_gateway

LLM_ENV_VARS = (
    "LLM_PROVIDER",
    "OLLAMA_BASE_URL",
    "OLLAMA_VISION_MODEL",
    "OLLAMA_TEXT_MODEL",
    "ANTHROPIC_API_KEY",
    "ANTHROPIC_MODEL",
    "LLM_MAX_TOKENS",
    "LLM_TIMEOUT_SECONDS",
)


@pytest.fixture(autouse=True)
def isolated_llm_env(monkeypatch, tmp_path):
    for name in LLM_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    # Keep any developer .env out of reach of the config loader
    monkeypatch.chdir(tmp_path)
    reset_provider_config()
    reset_gateway()
    yield
    reset_provider_config()
    reset_gateway()
