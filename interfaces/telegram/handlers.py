from __future__ import annotations

import logging
from typing import Optional

import telebot
from telebot.apihelper import ApiTelegramException
from telebot.types import InlineKeyboardButton, InlineKeyboardMarkup

from application.context import AppContext
from application.rendering import LineCard
from application.services import (
    ExternalContext,
    SignalResponse,
    bind_line_message,
    create_line,
    get_leaderboard,
    get_stats,
    lock_line,
    resolve_line,
    toggle_signal,
)
from domain.errors import LineNotOpen
from domain.models import LineStatus
from interfaces.commands import CommandError, help_text, parse_bet_command
from interfaces.telegram.callback_data import (
    encode_stake_choice,
    is_stake_choice,
    parse_stake_choice,
)

logger = logging.getLogger(__name__)

PROVIDER = "telegram"


def _build_external_context(user) -> ExternalContext:
    """Extract a channel-agnostic context object from a Telegram user."""

    name = " ".join(p for p in (user.first_name, user.last_name) if p)
    return ExternalContext(
        provider=PROVIDER,
        provider_user_id=str(user.id),
        display_name=name or user.username or str(user.id),
    )


def encode_message_ref(chat_id: int, message_id: int) -> str:
    return f"{PROVIDER}:{chat_id}:{message_id}"


def decode_message_ref(message_ref: str) -> tuple[int, int]:
    parts = message_ref.split(":")
    if len(parts) != 3 or parts[0] != PROVIDER:
        raise ValueError(f"Not a Telegram message reference: {message_ref}")
    return int(parts[1]), int(parts[2])


def build_markup(card: LineCard) -> Optional[InlineKeyboardMarkup]:
    """One button per option while the line is open; none afterwards."""

    if card.locked or card.resolved:
        return None

    markup = InlineKeyboardMarkup(row_width=2)
    markup.add(
        *[
            InlineKeyboardButton(
                f"{o.symbol} {o.option} ({o.stakes})",
                callback_data=encode_stake_choice(card.line_id, o.symbol),
            )
            for o in card.options
        ]
    )
    return markup


def press_notice(response: SignalResponse) -> str:
    """Text for the toast shown after a button press."""

    if response.notice:
        return response.notice
    line = response.line
    if line is not None and line.status != LineStatus.OPEN:
        return LineNotOpen.default_message
    return ""


def create_telegram_bot(bot_token: str, app: AppContext) -> telebot.TeleBot:
    """
    Configure and return a TeleBot instance wired to the betting services.

    Telegram has no reaction events for bots in groups by default, so each
    option is an inline button; pressing it toggles the member's stake.
    """

    bot = telebot.TeleBot(bot_token)

    def _update_card(message_ref: Optional[str], card: Optional[LineCard]) -> None:
        if message_ref is None or card is None:
            return
        chat_id, message_id = decode_message_ref(message_ref)
        try:
            bot.edit_message_text(
                card.text,
                chat_id=chat_id,
                message_id=message_id,
                reply_markup=build_markup(card),
            )
        except ApiTelegramException:
            logger.warning("Could not update card for line %s", card.line_id, exc_info=True)

    @bot.message_handler(commands=["start", "help"])
    def handle_help(message):
        bot.send_message(
            message.chat.id,
            help_text(prefix="/", signal_word="Tap", stake_unit=app.config.stake_unit),
        )

    @bot.message_handler(commands=["bet"])
    def handle_bet(message):
        _, _, text = (message.text or "").partition(" ")
        try:
            command = parse_bet_command(text, prefix="/")
        except CommandError as exc:
            bot.reply_to(message, str(exc))
            return

        actor = _build_external_context(message.from_user)

        if command.action == "create":
            result = create_line(app, actor, command.question, command.options)
            if not result.success:
                bot.reply_to(message, result.error_message)
                return
            card = result.card
            posted = bot.send_message(message.chat.id, card.text, reply_markup=build_markup(card))
            bind_line_message(app, card.line_id, encode_message_ref(posted.chat.id, posted.message_id))
            bot.reply_to(message, f"Betting line created! Line ID: {card.line_id}")

        elif command.action == "lock":
            result = lock_line(app, actor, command.line_id)
            if not result.success:
                bot.reply_to(message, result.error_message)
                return
            _update_card(result.line.message_ref, result.card)
            bot.reply_to(message, f"Betting line {command.line_id} has been locked.")

        elif command.action == "resolve":
            result = resolve_line(app, actor, command.line_id, command.winner)
            if not result.success:
                bot.reply_to(message, result.error_message)
                return
            _update_card(result.line.message_ref, result.card)
            bot.send_message(message.chat.id, result.announcement)

        elif command.action == "stats":
            bot.reply_to(message, get_stats(app, actor).text)

        elif command.action == "leaderboard":
            result = get_leaderboard(app, actor)
            bot.reply_to(message, result.text if result.success else result.error_message)

        else:
            handle_help(message)

    @bot.callback_query_handler(func=lambda call: is_stake_choice(call.data))
    def handle_stake_choice(call):
        try:
            line_id, symbol = parse_stake_choice(call.data)
        except ValueError:
            bot.answer_callback_query(call.id, "Invalid selection.")
            return

        actor = _build_external_context(call.from_user)
        response = toggle_signal(app, actor, line_id, symbol)

        bot.answer_callback_query(call.id, press_notice(response))

        if response.card is not None:
            _update_card(
                encode_message_ref(call.message.chat.id, call.message.message_id),
                response.card,
            )

    return bot
