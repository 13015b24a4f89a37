from __future__ import annotations

import logging
from typing import Optional

import discord
from discord.ext import commands

from application.context import AppContext
from application.rendering import LineCard
from application.services import (
    ExternalContext,
    SignalResponse,
    bind_line_message,
    create_line,
    find_line_for_message,
    get_leaderboard,
    get_stats,
    lock_line,
    resolve_line,
    signal_added,
    signal_removed,
)
from interfaces.commands import CommandError, help_text, parse_bet_command

logger = logging.getLogger(__name__)

PROVIDER = "discord"
NOTICE_TTL_SECONDS = 15


def _build_external_context(user: discord.abc.User) -> ExternalContext:
    """Create an `ExternalContext` from a Discord user."""

    return ExternalContext(
        provider=PROVIDER,
        provider_user_id=str(user.id),
        display_name=user.display_name or user.name,
    )


def encode_message_ref(channel_id: int, message_id: int) -> str:
    return f"{PROVIDER}:{channel_id}:{message_id}"


def decode_message_ref(message_ref: str) -> tuple[int, int]:
    parts = message_ref.split(":")
    if len(parts) != 3 or parts[0] != PROVIDER:
        raise ValueError(f"Not a Discord message reference: {message_ref}")
    return int(parts[1]), int(parts[2])


def create_discord_bot(app: AppContext) -> commands.Bot:
    """
    Configure and return a Discord bot wired to the betting services.

    Members bet by reacting to a line's message; the message is found
    through the reference stored on the line when it was posted.
    """

    intents = discord.Intents.default()
    intents.message_content = True
    intents.guilds = True
    intents.members = True
    intents.reactions = True

    # Disable the default help command so `!bet help` is the only help.
    bot = commands.Bot(command_prefix="!", intents=intents, help_command=None)

    async def _fetch_message(message_ref: str) -> Optional[discord.Message]:
        channel_id, message_id = decode_message_ref(message_ref)
        try:
            channel = bot.get_channel(channel_id) or await bot.fetch_channel(channel_id)
            return await channel.fetch_message(message_id)
        except discord.HTTPException:
            logger.warning("Could not fetch bound message %s", message_ref, exc_info=True)
            return None

    async def _update_card(message_ref: Optional[str], card: Optional[LineCard]) -> None:
        if message_ref is None or card is None:
            return
        message = await _fetch_message(message_ref)
        if message is None:
            return
        try:
            await message.edit(content=card.text)
        except discord.HTTPException:
            logger.warning("Could not update card for line %s", card.line_id, exc_info=True)

    @bot.event
    async def on_ready():
        logger.info("Discord bot logged in as %s (id=%s)", bot.user, bot.user.id)

    @bot.command(name="bet")
    async def bet_cmd(ctx: commands.Context, *, text: str = ""):
        try:
            command = parse_bet_command(text, prefix="!")
        except CommandError as exc:
            await ctx.send(str(exc))
            return

        actor = _build_external_context(ctx.author)

        if command.action == "create":
            await _handle_create(ctx, actor, command.question, command.options)
        elif command.action == "lock":
            result = lock_line(app, actor, command.line_id)
            if not result.success:
                await ctx.send(result.error_message)
                return
            await _update_card(result.line.message_ref, result.card)
            await ctx.send(f"Betting line {command.line_id} has been locked.")
        elif command.action == "resolve":
            result = resolve_line(app, actor, command.line_id, command.winner)
            if not result.success:
                await ctx.send(result.error_message)
                return
            await _update_card(result.line.message_ref, result.card)
            await ctx.send(result.announcement)
        elif command.action == "stats":
            result = get_stats(app, actor)
            await ctx.send(result.text)
        elif command.action == "leaderboard":
            result = get_leaderboard(app, actor)
            await ctx.send(result.text if result.success else result.error_message)
        else:
            await ctx.send(help_text(prefix="!", stake_unit=app.config.stake_unit))

    async def _handle_create(ctx: commands.Context, actor: ExternalContext, question, options):
        result = create_line(app, actor, question, options)
        if not result.success:
            await ctx.send(result.error_message)
            return

        card = result.card
        message = await ctx.send(card.text)
        bind_line_message(app, card.line_id, encode_message_ref(message.channel.id, message.id))

        for option in card.options:
            try:
                await message.add_reaction(option.symbol)
            except discord.HTTPException:
                logger.warning(
                    "Could not add reaction %r for line %s", option.symbol, card.line_id
                )

        await ctx.send(f"Betting line created! Line ID: {card.line_id}")

    async def _notify(channel_id: int, user_id: int, response: SignalResponse) -> None:
        if not response.notice:
            return
        channel = bot.get_channel(channel_id)
        if channel is None:
            return
        try:
            await channel.send(f"<@{user_id}> {response.notice}", delete_after=NOTICE_TTL_SECONDS)
        except discord.HTTPException:
            logger.warning("Could not notify member %s", user_id, exc_info=True)

    def _line_for(payload: discord.RawReactionActionEvent):
        if bot.user is not None and payload.user_id == bot.user.id:
            return None
        message_ref = encode_message_ref(payload.channel_id, payload.message_id)
        return find_line_for_message(app, message_ref)

    @bot.event
    async def on_raw_reaction_add(payload: discord.RawReactionActionEvent):
        line = _line_for(payload)
        if line is None:
            return

        user = payload.member or await bot.fetch_user(payload.user_id)
        if user.bot:
            return

        response = signal_added(app, _build_external_context(user), line.id, str(payload.emoji))
        await _notify(payload.channel_id, payload.user_id, response)
        if response.card is None:
            return

        await _update_card(line.message_ref, response.card)
        if response.previous_symbol:
            # Keep only the member's current choice visible.
            message = await _fetch_message(line.message_ref)
            if message is not None:
                try:
                    await message.remove_reaction(response.previous_symbol, user)
                except discord.HTTPException:
                    logger.debug("Could not remove previous reaction", exc_info=True)

    @bot.event
    async def on_raw_reaction_remove(payload: discord.RawReactionActionEvent):
        line = _line_for(payload)
        if line is None:
            return

        actor = ExternalContext(
            provider=PROVIDER,
            provider_user_id=str(payload.user_id),
            display_name=str(payload.user_id),
        )
        response = signal_removed(app, actor, line.id, str(payload.emoji))
        await _notify(payload.channel_id, payload.user_id, response)
        await _update_card(line.message_ref, response.card)

    @bot.event
    async def on_command_error(ctx: commands.Context, error: commands.CommandError):
        if isinstance(error, commands.CommandNotFound):
            return
        logger.error("Command %s failed", ctx.command, exc_info=error)
        await ctx.send("Something went wrong while handling that command.")

    return bot
