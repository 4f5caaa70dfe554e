"""Thin adapter between the core services and discord.py.

The pipeline and broadcaster only ever see :class:`MessageRef` and
:class:`ChannelMember` values coming back from here, which keeps them free of
discord.py objects and easy to drive with ``AsyncMock`` in tests.
"""

from __future__ import annotations

import logging
from typing import List, Optional

import discord
from discord.ext import commands

from .models import ChannelMember, MessageRef


logger = logging.getLogger(__name__)


class ChannelUnavailable(LookupError):
    """The configured channel is unknown or not a text channel."""


class DiscordChatGateway:
    def __init__(self, bot: commands.Bot) -> None:
        self.bot = bot

    async def _resolve_user(self, user_id: int) -> discord.abc.User:
        user = self.bot.get_user(user_id)
        if user is None:
            user = await self.bot.fetch_user(user_id)
        return user

    async def _resolve_channel(self, channel_id: int) -> discord.abc.Messageable:
        channel = self.bot.get_channel(channel_id)
        if channel is None:
            try:
                channel = await self.bot.fetch_channel(channel_id)
            except (discord.NotFound, discord.Forbidden) as exc:
                raise ChannelUnavailable(f"Channel {channel_id} is not reachable") from exc
        if not isinstance(channel, discord.abc.Messageable):
            raise ChannelUnavailable(f"Channel {channel_id} cannot receive messages")
        return channel

    async def send_direct(
        self,
        user_id: int,
        *,
        content: Optional[str] = None,
        embed: Optional[discord.Embed] = None,
        view: Optional[discord.ui.View] = None,
    ) -> MessageRef:
        user = await self._resolve_user(user_id)
        kwargs = {"content": content, "embed": embed}
        if view is not None:
            kwargs["view"] = view
        message = await user.send(**kwargs)
        return MessageRef(message.channel.id, message.id)

    async def post_to_channel(
        self,
        channel_id: int,
        *,
        content: Optional[str] = None,
        embed: Optional[discord.Embed] = None,
        view: Optional[discord.ui.View] = None,
    ) -> MessageRef:
        channel = await self._resolve_channel(channel_id)
        kwargs = {"content": content, "embed": embed}
        if view is not None:
            kwargs["view"] = view
        message = await channel.send(**kwargs)
        return MessageRef(message.channel.id, message.id)

    async def reply_to_message(
        self,
        channel_id: int,
        message_id: int,
        *,
        content: Optional[str] = None,
        embed: Optional[discord.Embed] = None,
        view: Optional[discord.ui.View] = None,
    ) -> MessageRef:
        channel = await self._resolve_channel(channel_id)
        parent = channel.get_partial_message(message_id)  # type: ignore[attr-defined]
        kwargs = {"content": content, "embed": embed, "mention_author": False}
        if view is not None:
            kwargs["view"] = view
        message = await parent.reply(**kwargs)
        return MessageRef(message.channel.id, message.id)

    async def delete_message(self, ref: MessageRef) -> None:
        channel = self.bot.get_channel(ref.channel_id)
        if channel is None:
            channel = await self.bot.fetch_channel(ref.channel_id)
        await channel.get_partial_message(ref.message_id).delete()  # type: ignore[union-attr]

    async def list_channel_members(self, channel_id: int) -> List[ChannelMember]:
        channel = await self._resolve_channel(channel_id)
        members = getattr(channel, "members", None) or []
        return [
            ChannelMember(
                user_id=member.id,
                display_name=getattr(member, "display_name", str(member)),
                is_bot=bool(getattr(member, "bot", False)),
            )
            for member in members
        ]


__all__ = ["ChannelUnavailable", "DiscordChatGateway"]
