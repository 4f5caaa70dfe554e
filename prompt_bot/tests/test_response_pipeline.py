import asyncio
from dataclasses import replace
from unittest.mock import AsyncMock, MagicMock

import pytest

from prompt_bot.core.dictionary_engine import DictionaryEngine, DictionaryEntry, DictionaryEntryNotFound, DictionarySense
from prompt_bot.core.response_pipeline import ResponsePipeline, ResponseState, normalize_emoji
from prompt_bot.core.ui_engine import GENERIC_ERROR, LANGUAGE_SELECTION_NEEDED
from prompt_bot.tests.conftest import PROMPT_CHANNEL_ID


USER = 101


@pytest.mark.asyncio
async def test_accepted_japanese_response_is_posted_rewarded_and_recorded(pipeline, state, gateway, prompt_engine):
    state.registry.set_target_language(USER, "ja")
    handle = state.registry.pseudonym_for(USER).handle

    result = await pipeline.handle_direct_message(USER, "これは简单な文です")

    assert result.state is ResponseState.ACCEPTED
    assert result.detected_language == "ja"
    channel_id = gateway.post_to_channel.await_args.args[0]
    embed = gateway.post_to_channel.await_args.kwargs["embed"]
    assert channel_id == PROMPT_CHANNEL_ID
    assert embed.author.name == handle
    assert embed.description == "これは简单な文です"
    prompt_engine.generate_feedback.assert_awaited_once_with("これは简单な文です", "ja")
    assert state.ledger.get(USER) == 1

    submissions = state.submissions.for_user(USER)
    assert len(submissions) == 1
    submission = submissions[0]
    assert submission.language == "ja"
    assert submission.target_language == "ja"
    assert submission.pseudonym == handle
    assert submission.feedback == "Nice work!"
    assert result.submission == submission


@pytest.mark.asyncio
async def test_feedback_goes_to_the_author_privately(pipeline, state, gateway):
    state.registry.set_target_language(USER, "en")

    await pipeline.handle_direct_message(USER, "I went to the park today.")

    assert gateway.send_direct.await_count == 1
    assert gateway.send_direct.await_args.args[0] == USER
    feedback_ref = gateway.send_direct.await_args
    tracked = state.tracker.feedback_for(USER, 9001)
    assert tracked is not None and tracked.feedback_text == "Nice work!"
    public_embed = gateway.post_to_channel.await_args.kwargs["embed"]
    assert "Nice work!" not in (public_embed.description or "")
    assert "Nice work!" in feedback_ref.kwargs["embed"].description


@pytest.mark.asyncio
async def test_wrong_language_is_rejected_without_side_effects(pipeline, state, gateway, prompt_engine):
    state.registry.set_target_language(USER, "en")

    result = await pipeline.handle_direct_message(USER, "こんにちは")

    assert result.state is ResponseState.REJECTED
    assert result.detected_language == "ja"
    gateway.post_to_channel.assert_not_awaited()
    prompt_engine.generate_feedback.assert_not_awaited()
    assert state.submissions.for_user(USER) == []
    assert state.ledger.get(USER) == 0
    message = gateway.send_direct.await_args.kwargs["content"]
    assert "English" in message


@pytest.mark.asyncio
async def test_unknown_language_names_expected_language(pipeline, state, gateway):
    state.registry.set_target_language(USER, "ja")

    result = await pipeline.handle_direct_message(USER, "12345")

    assert result.state is ResponseState.REJECTED
    assert result.detected_language == "unknown"
    assert "Japanese" in gateway.send_direct.await_args.kwargs["content"]
    assert state.ledger.get(USER) == 0


@pytest.mark.asyncio
async def test_unset_target_language_asks_for_selection(pipeline, state, gateway):
    result = await pipeline.handle_direct_message(USER, "Hello there")

    assert result.state is ResponseState.AWAITING_LANGUAGE_SELECTION
    gateway.send_direct.assert_awaited_once_with(USER, content=LANGUAGE_SELECTION_NEEDED)
    gateway.post_to_channel.assert_not_awaited()
    assert state.registry.get(USER) is not None
    assert state.ledger.get(USER) == 0


@pytest.mark.asyncio
async def test_blank_messages_are_ignored(pipeline, gateway):
    result = await pipeline.handle_direct_message(USER, "   ")
    assert result.state is ResponseState.IGNORED
    gateway.send_direct.assert_not_awaited()


@pytest.mark.asyncio
async def test_missing_channel_is_reported(state, gateway, prompt_engine, sample_config):
    config = replace(sample_config, prompt_channel_id=None)
    pipeline = ResponsePipeline(state, gateway, prompt_engine, config)
    state.registry.set_target_language(USER, "en")

    result = await pipeline.handle_direct_message(USER, "Hello there")

    assert result.state is ResponseState.NOT_CONFIGURED
    gateway.post_to_channel.assert_not_awaited()
    assert state.ledger.get(USER) == 0


@pytest.mark.asyncio
async def test_reward_amount_comes_from_config(state, gateway, prompt_engine, sample_config):
    config = replace(sample_config, rewards=replace(sample_config.rewards, submission=3))
    pipeline = ResponsePipeline(state, gateway, prompt_engine, config)
    state.registry.set_target_language(USER, "en")

    await pipeline.handle_direct_message(USER, "Hello there")
    await pipeline.handle_direct_message(USER, "Hello again")

    assert state.ledger.get(USER) == 6
    assert len(state.submissions.for_user(USER)) == 2


@pytest.mark.asyncio
async def test_feedback_delivery_failure_keeps_post_but_awards_nothing(pipeline, state, gateway):
    state.registry.set_target_language(USER, "en")
    gateway.send_direct.side_effect = RuntimeError("DMs closed")

    with pytest.raises(RuntimeError):
        await pipeline.handle_direct_message(USER, "Hello there")

    gateway.post_to_channel.assert_awaited_once()
    assert state.ledger.get(USER) == 0
    assert state.submissions.for_user(USER) == []


@pytest.mark.asyncio
async def test_feedback_generation_failure_awards_nothing(pipeline, state, gateway, prompt_engine):
    state.registry.set_target_language(USER, "en")
    prompt_engine.generate_feedback.side_effect = RuntimeError("model exploded")

    with pytest.raises(RuntimeError):
        await pipeline.handle_direct_message(USER, "Hello there")

    gateway.post_to_channel.assert_awaited_once()
    gateway.send_direct.assert_not_awaited()
    assert state.ledger.get(USER) == 0
    assert len(state.submissions) == 0


@pytest.mark.asyncio
async def test_length_fallback_counts_message_as_sent(pipeline, state, gateway):
    state.registry.set_target_language(USER, "en")
    padded = " " * 30 + "Café au lait, s'il vous plaît"

    result = await pipeline.handle_direct_message(USER, padded)

    assert result.state is ResponseState.ACCEPTED
    assert result.detected_language == "en"
    assert gateway.post_to_channel.await_args.kwargs["embed"].description == "Café au lait, s'il vous plaît"


@pytest.mark.asyncio
async def test_concurrent_messages_from_one_user_do_not_lose_points(pipeline, state):
    state.registry.set_target_language(USER, "en")

    await asyncio.gather(*(pipeline.handle_direct_message(USER, f"Message number {word}") for word in "abcde"))

    assert state.ledger.get(USER) == 5


@pytest.mark.asyncio
async def test_reply_is_threaded_and_uses_reply_reward(state, gateway, prompt_engine, sample_config):
    config = replace(sample_config, rewards=replace(sample_config.rewards, reply=2))
    pipeline = ResponsePipeline(state, gateway, prompt_engine, config)
    state.registry.set_target_language(USER, "ja")

    result = await pipeline.handle_reply(USER, "いいですね！", PROMPT_CHANNEL_ID, 4242, "ZZ-9 🐸🌵")

    assert result.state is ResponseState.ACCEPTED
    args = gateway.reply_to_message.await_args
    assert args.args == (PROMPT_CHANNEL_ID, 4242)
    assert args.kwargs["embed"].footer.text == "Replying to ZZ-9 🐸🌵"
    assert state.ledger.get(USER) == 2
    assert result.submission.parent_message_id == 4242
    assert result.submission.is_reply


@pytest.mark.asyncio
async def test_reply_in_wrong_language_is_rejected(pipeline, state, gateway):
    state.registry.set_target_language(USER, "ja")

    result = await pipeline.handle_reply(USER, "Nice one", PROMPT_CHANNEL_ID, 4242, None)

    assert result.state is ResponseState.REJECTED
    assert "Japanese" in result.message
    gateway.reply_to_message.assert_not_awaited()
    gateway.send_direct.assert_not_awaited()
    assert state.ledger.get(USER) == 0


# ----------------------------------------------------------------------
# Reactions
# ----------------------------------------------------------------------


@pytest.mark.asyncio
async def test_kudos_reward_the_reacting_user(pipeline, state):
    assert await pipeline.handle_reaction(202, 1234, "⭐️") == "kudos"
    assert await pipeline.handle_reaction(202, 1234, "👏") == "kudos"
    assert state.ledger.get(202) == 2
    assert state.registry.get(202) is not None


@pytest.mark.asyncio
async def test_other_emoji_do_nothing(pipeline, state):
    assert await pipeline.handle_reaction(202, 1234, "😂") is None
    assert state.ledger.get(202) == 0


@pytest.mark.asyncio
async def test_self_kudos_allowed_by_default(pipeline, state):
    state.registry.set_target_language(USER, "en")
    result = await pipeline.handle_direct_message(USER, "Hello there")

    await pipeline.handle_reaction(USER, result.submission.public_message_id, "⭐")

    assert state.ledger.get(USER) == 2


@pytest.mark.asyncio
async def test_self_kudos_can_be_disabled(state, gateway, prompt_engine, sample_config):
    pipeline = ResponsePipeline(state, gateway, prompt_engine, replace(sample_config, allow_self_kudos=False))
    state.registry.set_target_language(USER, "en")
    result = await pipeline.handle_direct_message(USER, "Hello there")

    assert await pipeline.handle_reaction(USER, result.submission.public_message_id, "⭐") is None
    assert await pipeline.handle_reaction(303, result.submission.public_message_id, "⭐") == "kudos"
    assert state.ledger.get(USER) == 1
    assert state.ledger.get(303) == 1


@pytest.mark.asyncio
async def test_help_on_tracked_prompt_sends_readings(pipeline, state, gateway):
    state.registry.set_target_language(USER, "ja")
    state.tracker.remember_prompt(USER, 77, "大学の中で、一番好きな場所はどこですか？", "ja")

    assert await pipeline.handle_reaction(USER, 77, "❓") == "reading"
    embed = gateway.send_direct.await_args.kwargs["embed"]
    assert embed.description.startswith("大学の中で")


@pytest.mark.asyncio
async def test_help_on_prompt_for_english_learner_explains_limit(pipeline, state, gateway):
    state.registry.set_target_language(USER, "en")
    state.tracker.remember_prompt(USER, 77, "What did you eat?", "en")

    assert await pipeline.handle_reaction(USER, 77, "❓") is None
    assert "Japanese" in gateway.send_direct.await_args.kwargs["content"]


@pytest.mark.asyncio
async def test_help_on_feedback_requests_detailed_correction(pipeline, state, gateway, prompt_engine):
    prompt_engine.generate_detailed_correction = AsyncMock(return_value="🔴 → 🟢")
    state.registry.set_target_language(USER, "en")
    state.tracker.remember_feedback(USER, 88, "Nice", "I goed home")

    assert await pipeline.handle_reaction(USER, 88, "❔") == "correction"
    prompt_engine.generate_detailed_correction.assert_awaited_once_with("I goed home", "en")


@pytest.mark.asyncio
async def test_help_on_untracked_message_is_ignored(pipeline, gateway):
    assert await pipeline.handle_reaction(USER, 999, "❓") is None
    gateway.send_direct.assert_not_awaited()


def test_normalize_emoji_strips_variation_selector():
    assert normalize_emoji("⭐️") == "⭐"


# ----------------------------------------------------------------------
# Dictionary gate
# ----------------------------------------------------------------------


def _dictionary(entry=None, error=None):
    dictionary = MagicMock(spec=DictionaryEngine)
    dictionary.lookup = AsyncMock(return_value=entry, side_effect=error)
    return dictionary


@pytest.mark.asyncio
async def test_dictionary_command_bypasses_validation(state, gateway, prompt_engine, sample_config):
    entry = DictionaryEntry("industry", "|ˈɪndəstri|", (DictionarySense("Noun", "産業 (さんぎょう)"),), "OpenAI")
    dictionary = _dictionary(entry)
    pipeline = ResponsePipeline(state, gateway, prompt_engine, sample_config, dictionary=dictionary)
    state.registry.set_target_language(USER, "ja")

    result = await pipeline.handle_direct_message(USER, "define industry")

    assert result.state is ResponseState.DICTIONARY_LOOKUP
    dictionary.lookup.assert_awaited_once_with("industry", "en")
    gateway.delete_message.assert_awaited_once()
    final = gateway.send_direct.await_args
    assert final.kwargs["embed"].title == "📖 industry (|ˈɪndəstri|)"
    gateway.post_to_channel.assert_not_awaited()
    assert state.ledger.get(USER) == 0


@pytest.mark.asyncio
async def test_dictionary_not_found_and_delete_failure_are_soft(state, gateway, prompt_engine, sample_config):
    dictionary = _dictionary(error=DictionaryEntryNotFound("ほげ", "https://jisho.org/search/%E3%81%BB%E3%81%92"))
    gateway.delete_message.side_effect = RuntimeError("already gone")
    pipeline = ResponsePipeline(state, gateway, prompt_engine, sample_config, dictionary=dictionary)
    state.registry.set_target_language(USER, "en")

    result = await pipeline.handle_direct_message(USER, "ほげ 意味")

    assert result.state is ResponseState.DICTIONARY_LOOKUP
    assert "couldn't find" in result.message
    assert "jisho.org" in gateway.send_direct.await_args.kwargs["content"]


@pytest.mark.asyncio
async def test_dictionary_without_word_shows_usage(state, gateway, prompt_engine, sample_config):
    dictionary = _dictionary()
    pipeline = ResponsePipeline(state, gateway, prompt_engine, sample_config, dictionary=dictionary)
    state.registry.set_target_language(USER, "en")

    result = await pipeline.handle_direct_message(USER, "define ")

    assert result.state is ResponseState.DICTIONARY_LOOKUP
    assert "define industry" in result.message
    dictionary.lookup.assert_not_awaited()


@pytest.mark.asyncio
async def test_dictionary_rejects_unsupported_words(state, gateway, prompt_engine, sample_config):
    dictionary = _dictionary()
    pipeline = ResponsePipeline(state, gateway, prompt_engine, sample_config, dictionary=dictionary)
    state.registry.set_target_language(USER, "en")

    result = await pipeline.handle_direct_message(USER, "look up ¿qué?")

    assert "only define English or Japanese" in result.message
    dictionary.lookup.assert_not_awaited()


def test_generic_error_text_is_user_friendly():
    assert "try again" in GENERIC_ERROR
