from __future__ import annotations

from telegram import Update, ChatMember
from telegram.error import TelegramError
from telegram.ext import ContextTypes

from .config import logger
from .state import get_state


async def is_group_admin(update: Update, context: ContextTypes.DEFAULT_TYPE) -> bool:
    if not update.effective_chat or not update.effective_user:
        return False
    chat_id = update.effective_chat.id
    user_id = update.effective_user.id
    try:
        member = await context.bot.get_chat_member(chat_id, user_id)
        return member.status in [ChatMember.ADMINISTRATOR, ChatMember.OWNER]
    except TelegramError as e:
        logger.warning(f"Could not check admin status of {user_id} in {chat_id}: {e}")
        return False


async def is_authorized_admin(update: Update, context: ContextTypes.DEFAULT_TYPE) -> bool:
    if not update.effective_chat:
        return False
    chat = update.effective_chat
    if chat.type == "private":
        return True
    if not get_state(context).admin_only:
        return True
    if chat.type in ["group", "supergroup"]:
        return await is_group_admin(update, context)
    return False


async def guard_admin(update: Update, context: ContextTypes.DEFAULT_TYPE) -> bool:
    if not await is_authorized_admin(update, context):
        if update.effective_message:
            await update.effective_message.reply_text("❌ Only group admins can change puzzle subscriptions.")
        return False
    return True
