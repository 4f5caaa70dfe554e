"""Fan-out of one shared bilingual prompt to every member of the prompt channel."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional
import uuid

from .bot_state import BotState
from .models import MessageRef, PromptBroadcast
from .prompt_engine import PromptEngine
from .ui_engine import LANGUAGE_SELECTION_NEEDED, SETUP_REMINDER, PromptUIEngine

if TYPE_CHECKING:  # pragma: no cover
    from .chat_gateway import DiscordChatGateway


logger = logging.getLogger(__name__)


class PromptBroadcaster:
    """Generate a prompt, announce it, then DM each member their half of it.

    A failure to reach one member (closed DMs, left the server) is counted on
    the broadcast and logged; the remaining members still get their prompt.
    """

    def __init__(
        self,
        state: BotState,
        gateway: "DiscordChatGateway",
        prompt_engine: PromptEngine,
        channel_id: Optional[int],
        *,
        ui: Optional[PromptUIEngine] = None,
    ) -> None:
        self.state = state
        self.gateway = gateway
        self.prompt_engine = prompt_engine
        self.channel_id = channel_id
        self.ui = ui or PromptUIEngine()

    async def broadcast(self, trigger: str = "scheduled") -> Optional[PromptBroadcast]:
        channel_id = self.channel_id
        if not channel_id:
            logger.warning("No prompt channel configured; skipping %s broadcast (set PROMPT_CHANNEL_ID)", trigger)
            return None

        prompt = await self.prompt_engine.generate_prompt()
        announcement = await self.gateway.post_to_channel(
            channel_id,
            embed=self.ui.build_announcement_embed(prompt),
        )
        broadcast = PromptBroadcast(
            broadcast_id=uuid.uuid4().hex,
            prompt=prompt,
            trigger=trigger,
            announcement=announcement,
        )
        self.state.submissions.record_broadcast(broadcast)
        logger.info("Posted %s prompt announcement (%s) to channel %s", trigger, prompt.category, channel_id)

        try:
            members = await self.gateway.list_channel_members(channel_id)
        except Exception as exc:
            logger.error("Could not list members of channel %s: %s", channel_id, exc)
            return broadcast

        for member in members:
            if member.is_bot:
                continue
            try:
                user = self.state.registry.get_or_create(member.user_id)
                language = user.target_language
                if language:
                    ref = await self.gateway.send_direct(
                        member.user_id,
                        embed=self.ui.build_prompt_embed(prompt, language),
                    )
                    self.state.tracker.remember_prompt(
                        member.user_id, ref.message_id, prompt.for_language(language), language
                    )
                    broadcast.delivered += 1
                else:
                    await self.gateway.send_direct(member.user_id, content=SETUP_REMINDER)
                    broadcast.reminded += 1
            except Exception as exc:
                broadcast.failed += 1
                logger.warning("Could not deliver prompt to %s: %s", member.user_id, exc)

        logger.info(
            "Broadcast %s complete: %s prompts, %s reminders, %s failures",
            broadcast.broadcast_id,
            broadcast.delivered,
            broadcast.reminded,
            broadcast.failed,
        )
        return broadcast

    async def send_test_prompt(self, user_id: int) -> Optional[MessageRef]:
        """DM a freshly generated prompt to one user only; nothing is announced."""

        user = self.state.registry.get_or_create(user_id)
        language = user.target_language
        if not language:
            await self.gateway.send_direct(user_id, content=LANGUAGE_SELECTION_NEEDED)
            return None
        prompt = await self.prompt_engine.generate_prompt()
        ref = await self.gateway.send_direct(
            user_id,
            content="🚀 Test prompt generated! Reply here to respond.",
            embed=self.ui.build_prompt_embed(prompt, language),
        )
        self.state.tracker.remember_prompt(user_id, ref.message_id, prompt.for_language(language), language)
        logger.info("Test prompt sent to user %s", user_id)
        return ref


__all__ = ["PromptBroadcaster"]
