"""Tests for the command line interface."""

import json
from pathlib import Path

import httpx
import pytest
import respx
from typer.testing import CliRunner

from llmanki.cli import app
from llmanki.cli_commands.shared import reset_cli_state
from llmanki.config import reset_config
from tests.fixtures import analysis_json, snapshot_document

GROQ_URL = "https://api.groq.com/openai/v1/chat/completions"

runner = CliRunner()


def _completion(text: str) -> httpx.Response:
    return httpx.Response(200, json={"choices": [{"message": {"content": text}}]})


@pytest.fixture(autouse=True)
def clean_state(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    for name in ("LLMANKI_CONFIG", "LLM_API_KEY", "LLM_PROVIDER", "LLM_MODEL"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    reset_cli_state()
    reset_config()
    yield
    reset_cli_state()
    reset_config()


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    path = tmp_path / "config.yaml"
    path.write_text(
        "llm_provider: groq\n"
        "llm_api_key: test-key\n"
        "request_delay_ms: 0\n"
        f"cache_dir: {tmp_path / 'cache'}\n",
        encoding="utf-8",
    )
    return path


@pytest.fixture
def collection_file(tmp_path: Path) -> Path:
    path = tmp_path / "biology.json"
    path.write_text(json.dumps(snapshot_document(3)), encoding="utf-8")
    return path


def _invoke(*args: str):
    return runner.invoke(app, list(args))


def test_providers(config_file: Path) -> None:
    result = _invoke("providers", "--config", str(config_file))
    assert result.exit_code == 0
    assert "anthropic" in result.output
    assert "Configured: groq" in result.output


def test_render(config_file: Path, collection_file: Path) -> None:
    result = _invoke("render", str(collection_file), "2", "--config", str(config_file))
    assert result.exit_code == 0
    assert "Question 2" in result.output
    assert "Answer 2" in result.output


def test_render_unknown_card(config_file: Path, collection_file: Path) -> None:
    result = _invoke("render", str(collection_file), "99", "--config", str(config_file))
    assert result.exit_code == 1
    assert "Card not found" in result.output


def test_analyze_then_cached(config_file: Path, collection_file: Path) -> None:
    with respx.mock() as router:
        route = router.post(GROQ_URL).mock(return_value=_completion(analysis_json(score=8)))
        first = _invoke("analyze", str(collection_file), "Biology", "--config", str(config_file))
        assert first.exit_code == 0, first.output
        assert "3 results (3 analyzed, 0 from cache)" in first.output
        assert route.call_count == 3

    reset_cli_state()
    with respx.mock(assert_all_called=False) as router:
        route = router.post(GROQ_URL).mock(return_value=_completion(analysis_json()))
        second = _invoke("analyze", str(collection_file), "Biology", "--config", str(config_file))
        assert second.exit_code == 0, second.output
        assert "3 results (0 analyzed, 3 from cache)" in second.output
        assert route.call_count == 0


def test_analyze_max_cards_and_concurrent(config_file: Path, collection_file: Path) -> None:
    with respx.mock() as router:
        route = router.post(GROQ_URL).mock(return_value=_completion(analysis_json()))
        result = _invoke(
            "analyze",
            str(collection_file),
            "Biology",
            "--max-cards",
            "2",
            "--concurrent",
            "--config",
            str(config_file),
        )
    assert result.exit_code == 0, result.output
    assert route.call_count == 2


def test_analyze_rate_limited(config_file: Path, collection_file: Path) -> None:
    with respx.mock() as router:
        router.post(GROQ_URL).mock(
            return_value=httpx.Response(429, text="Rate limit reached, retry after 30 seconds")
        )
        result = _invoke("analyze", str(collection_file), "Biology", "--config", str(config_file))
    assert result.exit_code == 1
    assert "Error" in result.output
    assert "Retry after 30 seconds" in result.output


def test_analyze_unknown_deck(config_file: Path, collection_file: Path) -> None:
    result = _invoke("analyze", str(collection_file), "Chemistry", "--config", str(config_file))
    assert result.exit_code == 1
    assert "Deck not found" in result.output
    assert "Biology" in result.output


def test_analyze_requires_api_key(tmp_path: Path, collection_file: Path) -> None:
    path = tmp_path / "nokey.yaml"
    path.write_text(f"cache_dir: {tmp_path / 'cache'}\n", encoding="utf-8")
    result = _invoke("analyze", str(collection_file), "Biology", "--config", str(path))
    assert result.exit_code == 1
    assert "requires an API key" in result.output


def test_insights_after_analyze(config_file: Path, collection_file: Path) -> None:
    with respx.mock() as router:
        router.post(GROQ_URL).mock(
            return_value=_completion(analysis_json(score=6, feedback={"overallScore": 6, "issues": ["Vague"]}))
        )
        assert _invoke(
            "analyze", str(collection_file), "Biology", "--config", str(config_file)
        ).exit_code == 0

    coverage = json.dumps(
        {
            "summary": "Covers the basics.",
            "knowledgeCoverage": {"overallCoverage": "fair", "coverageScore": 5, "gaps": []},
            "suggestedCards": [],
        }
    )
    reset_cli_state()
    with respx.mock() as router:
        router.post(GROQ_URL).mock(return_value=_completion(coverage))
        result = _invoke("insights", str(collection_file), "Biology", "--config", str(config_file))

    assert result.exit_code == 0, result.output
    assert "Covers the basics." in result.output
    assert "3x Vague" in result.output
    assert "Coverage: fair (5/10)" in result.output


def test_insights_without_results(config_file: Path, collection_file: Path) -> None:
    result = _invoke("insights", str(collection_file), "Biology", "--config", str(config_file))
    assert result.exit_code == 1
    assert "No analyzed cards" in result.output


def test_cache_stats_and_clear(config_file: Path, collection_file: Path) -> None:
    empty = _invoke("cache-stats", "--config", str(config_file))
    assert empty.exit_code == 0
    assert "empty" in empty.output

    with respx.mock() as router:
        router.post(GROQ_URL).mock(return_value=_completion(analysis_json()))
        _invoke("analyze", str(collection_file), "Biology", "--config", str(config_file))

    stats = _invoke("cache-stats", "--config", str(config_file))
    assert stats.exit_code == 0
    assert "biology.json" in stats.output
    assert "Shared results: 3" in stats.output

    cleared = _invoke("cache-clear", "--yes", "--config", str(config_file))
    assert cleared.exit_code == 0
    assert "Deleted" in cleared.output

    after = _invoke("cache-stats", "--config", str(config_file))
    assert "empty" in after.output


def test_cache_clear_declined(config_file: Path) -> None:
    result = runner.invoke(app, ["cache-clear", "--config", str(config_file)], input="n\n")
    assert result.exit_code == 1


def test_bad_config_file(tmp_path: Path, collection_file: Path) -> None:
    path = tmp_path / "broken.yaml"
    path.write_text("llm_provider: [oops\n", encoding="utf-8")
    result = _invoke("render", str(collection_file), "1", "--config", str(path))
    assert result.exit_code == 1
    assert "Failed to parse config file" in result.output
