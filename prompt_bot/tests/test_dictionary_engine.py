import json
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from prompt_bot.core.dictionary_engine import (
    DictionaryEngine,
    DictionaryEntryNotFound,
    DictionaryLookupError,
    parse_dictionary_command,
)


@pytest.mark.parametrize(
    ("text", "native", "expected"),
    [
        ("define industry", "en", "industry"),
        ("Define  Industry ", "ja", "Industry"),
        ("look up presentation", "ja", "presentation"),
        ('What does "kotoba" mean?', "en", "kotoba"),
        ("define", "en", ""),
        ("presentation 意味", "ja", "presentation"),
        ("industry とは", "ja", "industry"),
        ("presentation 意味", "en", None),
        ("I like defining things", "en", None),
    ],
)
def test_parse_dictionary_command(text, native, expected):
    assert parse_dictionary_command(text, native) == expected


def _jisho(handler):
    return DictionaryEngine(transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_japanese_lookup_uses_jisho_first_entry():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.params["keyword"] == "勉強"
        return httpx.Response(
            200,
            json={
                "data": [
                    {
                        "japanese": [{"word": "勉強", "reading": "べんきょう"}],
                        "senses": [
                            {"parts_of_speech": ["Noun", "Suru verb"], "english_definitions": ["study"]},
                            {"parts_of_speech": ["Noun"], "english_definitions": ["diligence", "working hard"]},
                            {"parts_of_speech": [], "english_definitions": ["experience"]},
                            {"parts_of_speech": [], "english_definitions": ["discount"]},
                        ],
                    }
                ]
            },
        )

    entry = await _jisho(handler).lookup("勉強", "ja")

    assert entry.title == "勉強 (べんきょう)"
    assert len(entry.senses) == 3
    assert entry.senses[0].part_of_speech == "Noun, Suru verb"
    assert entry.senses[1].meaning == "diligence; working hard"
    assert entry.provider == "Jisho.org"
    assert entry.source_url.startswith("https://jisho.org/search/")


@pytest.mark.asyncio
async def test_japanese_lookup_without_results_is_not_found():
    engine = _jisho(lambda request: httpx.Response(200, json={"data": []}))
    with pytest.raises(DictionaryEntryNotFound) as excinfo:
        await engine.lookup("ほげ", "ja")
    assert excinfo.value.search_url


@pytest.mark.asyncio
async def test_japanese_lookup_http_error_is_lookup_error():
    engine = _jisho(lambda request: httpx.Response(503))
    with pytest.raises(DictionaryLookupError):
        await engine.lookup("勉強", "ja")


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload",
    [
        {"data": ["oops"]},
        {"data": [{"japanese": ["勉強"], "senses": []}]},
        {"data": [{"japanese": [], "senses": ["study"]}]},
        {"data": [{"japanese": [], "senses": [{"english_definitions": [1, 2]}]}]},
    ],
)
async def test_japanese_lookup_malformed_payload_is_lookup_error(payload):
    engine = _jisho(lambda request: httpx.Response(200, json=payload))
    with pytest.raises(DictionaryLookupError) as excinfo:
        await engine.lookup("勉強", "ja")
    assert type(excinfo.value) is DictionaryLookupError


@pytest.mark.asyncio
async def test_english_lookup_parses_json_entry():
    openai = MagicMock()
    openai.configured = True
    openai.chat_completion = AsyncMock(
        return_value=json.dumps(
            {
                "word": "presentation",
                "reading": "|prɛzənˈteɪʃ(ə)n|",
                "definitions": [{"part_of_speech": "Noun", "japanese_meaning": "発表 (はっぴょう)"}],
            }
        )
    )
    engine = DictionaryEngine(openai, model="gpt-dict")

    entry = await engine.lookup("presentation", "en")

    assert entry.headword == "presentation"
    assert entry.senses[0].meaning == "発表 (はっぴょう)"
    assert openai.chat_completion.await_args.kwargs["json_mode"] is True
    assert openai.chat_completion.await_args.kwargs["model"] == "gpt-dict"


@pytest.mark.asyncio
async def test_english_lookup_without_key_fails_cleanly():
    with pytest.raises(DictionaryLookupError):
        await DictionaryEngine(None).lookup("presentation", "en")


@pytest.mark.asyncio
async def test_english_lookup_with_garbage_reply_fails_cleanly():
    openai = MagicMock()
    openai.configured = True
    openai.chat_completion = AsyncMock(return_value="not json")
    with pytest.raises(DictionaryLookupError):
        await DictionaryEngine(openai).lookup("presentation", "en")
