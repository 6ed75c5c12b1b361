"""
Telegram bot for Cerebro.

Mobile capture and quick views via Telegram. Every authorized Telegram
user captures on behalf of the configured Cerebro session.
"""

import asyncio
import logging
from typing import Any

from telegram import Update
from telegram.ext import (
    Application,
    CommandHandler,
    ContextTypes,
    MessageHandler,
    filters,
)

from cerebro.capture import capture
from cerebro.classifier import Classifier
from cerebro.config import (
    ensure_dirs,
    load_config,
    load_session,
    parse_authorized_users,
    setup_logging,
)
from cerebro.db import Database
from cerebro.errors import AuthenticationError, PersistenceError
from cerebro.models import ENTRY_TYPES
from cerebro.surfacing import (
    GOAL_PERIOD_LABELS,
    entry_title,
    format_board,
    format_capture_result,
    format_id,
)

logger = logging.getLogger(__name__)

HELP_TEXT = (
    "Cerebro Commands:\n\n"
    "/tasks - List open tasks\n"
    "/list [type] - List entries\n"
    "/board - Kanban board\n"
    "/goals - Goals and progress\n"
    "/done <id> - Mark an entry as done\n"
    "/find <query> - Search entries\n"
    "/id - Show your user ID\n"
    "/help - Show this message\n\n"
    "Send any text to capture it."
)


def get_bot_config() -> dict[str, Any]:
    """Get bot configuration."""
    config = load_config()
    bot_config = config.get("telegram", {})

    token = bot_config.get("token")
    if not token:
        raise ValueError(
            "Telegram bot token not found. "
            "Set CEREBRO_TELEGRAM_TOKEN env var or add to config.toml"
        )

    return {
        "token": token,
        "authorized_users": parse_authorized_users(bot_config),
        "config": config,
    }


def is_authorized(user_id: int, authorized_users: set[int]) -> bool:
    """Check if user is authorized."""
    # If no users configured, deny all (secure default)
    if not authorized_users:
        return False
    return user_id in authorized_users


async def _check_authorized(update: Update, context: ContextTypes.DEFAULT_TYPE) -> bool:
    """Reply and return False for unknown users."""
    if not update.effective_user or not update.message:
        return False

    user_id = update.effective_user.id
    if is_authorized(user_id, context.bot_data.get("authorized_users", set())):
        return True

    logger.warning(f"Unauthorized message attempt from user {user_id}")
    await update.message.reply_text(f"Unauthorized. Your ID: {user_id}")
    return False


def format_entries_telegram(entries: list[dict], title: str, limit: int = 10) -> str:
    """Format entries for Telegram (plain text, compact)."""
    if not entries:
        return f"{title}\n\nNo entries found."

    lines = [f"{title}", ""]

    for entry in entries[:limit]:
        extra = ""
        if entry.get("priority") == "urgent":
            extra += " !"
        if entry.get("due_date"):
            extra += f" [due:{entry['due_date']}]"
        lines.append(f"{format_id(entry['id'])} [{entry['entry_type']}] {entry_title(entry)[:40]}{extra}")

    if len(entries) > limit:
        lines.append(f"\n... and {len(entries) - limit} more")

    return "\n".join(lines)


def format_goals_telegram(goals: list[dict]) -> str:
    """Goals as compact lines."""
    if not goals:
        return "No goals yet."

    lines = []
    for goal in goals:
        label = GOAL_PERIOD_LABELS[goal["period_type"]]
        lines.append(
            f"{goal['emoji']} {goal['title'][:40]} - {goal['current']:g}/{goal['target']:g} "
            f"{goal['unit']} ({label})"
        )
    return "\n".join(lines)


async def start_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /start command."""
    if not update.effective_user:
        return

    user_id = update.effective_user.id
    authorized_users = context.bot_data.get("authorized_users", set())

    if is_authorized(user_id, authorized_users):
        await update.message.reply_text("Cerebro bot ready. Send any message to capture it.\n\n" + HELP_TEXT)
    else:
        await update.message.reply_text(
            f"Unauthorized. Your user ID: {user_id}\n"
            "Add this ID to CEREBRO_TELEGRAM_USERS to authorize."
        )


async def id_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /id command - show user's Telegram ID."""
    if not update.effective_user:
        return

    await update.message.reply_text(f"Your Telegram user ID: {update.effective_user.id}")


async def help_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /help command."""
    if not update.effective_user:
        return

    await update.message.reply_text(HELP_TEXT)


async def handle_message(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle incoming messages - run them through the capture pipeline."""
    if not await _check_authorized(update, context):
        return

    text = update.message.text
    if not text:
        await update.message.reply_text("Only text messages are supported.")
        return

    config = context.bot_data["config"]

    try:
        ensure_dirs()
        # The pipeline blocks on HTTP; keep the event loop free
        result = await asyncio.to_thread(
            capture,
            text,
            load_session(config),
            Classifier(config),
            Database(),
        )
    except AuthenticationError as e:
        await update.message.reply_text(f"Error: {e}. Configure a Cerebro user first.")
        return
    except ValueError as e:
        await update.message.reply_text(f"Error: {e}")
        return
    except PersistenceError as e:
        logger.error(f"Failed to save capture: {e}")
        await update.message.reply_text(f"Save failed, try again: {e}")
        return

    reply = format_capture_result(result)
    if result.ai_failed:
        reply = "AI unavailable, saved with defaults.\n" + reply
    await update.message.reply_text(reply)
    logger.info(f"Captured from Telegram user {update.effective_user.id}: {result.record['id']}")


async def tasks_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /tasks command - list open tasks."""
    if not await _check_authorized(update, context):
        return

    try:
        entries = Database().get_entries(entry_type="task", limit=15)
        await update.message.reply_text(format_entries_telegram(entries, "TASKS"))
    except Exception as e:
        await update.message.reply_text(f"Error: {e}")


async def list_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /list command - list entries with optional type filter."""
    if not await _check_authorized(update, context):
        return

    entry_type = None
    if context.args:
        entry_type = context.args[0].lower()
        if entry_type not in ENTRY_TYPES:
            await update.message.reply_text(
                f"Invalid type: {entry_type}\n"
                f"Valid types: {', '.join(ENTRY_TYPES)}"
            )
            return

    try:
        entries = Database().get_entries(entry_type=entry_type, limit=15)
        title = f"{entry_type.upper()}S" if entry_type else "ENTRIES"
        await update.message.reply_text(format_entries_telegram(entries, title))
    except Exception as e:
        await update.message.reply_text(f"Error: {e}")


async def board_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /board command - Kanban board of tasks."""
    if not await _check_authorized(update, context):
        return

    group_by = "priority" if context.args and context.args[0] == "priority" else "status"

    try:
        entries = Database().get_entries(entry_type="task", include_done=True, limit=100)
        await update.message.reply_text(format_board(entries, group_by))
    except Exception as e:
        await update.message.reply_text(f"Error: {e}")


async def goals_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /goals command."""
    if not await _check_authorized(update, context):
        return

    try:
        await update.message.reply_text(format_goals_telegram(Database().get_goals()))
    except Exception as e:
        await update.message.reply_text(f"Error: {e}")


async def done_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /done command - complete an entry."""
    if not await _check_authorized(update, context):
        return

    if not context.args:
        await update.message.reply_text("Usage: /done <id>")
        return

    identifier = context.args[0]

    try:
        db = Database()
        entry_id = db.resolve_id(identifier)
        if not entry_id:
            await update.message.reply_text(f"Entry not found: {identifier}")
            return

        if db.complete_entry(entry_id):
            await update.message.reply_text(f"Completed: {identifier}")
        else:
            await update.message.reply_text(f"Already done: {identifier}")
    except Exception as e:
        await update.message.reply_text(f"Error: {e}")


async def find_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /find command - search entries."""
    if not await _check_authorized(update, context):
        return

    if not context.args:
        await update.message.reply_text("Usage: /find <query>")
        return

    query = " ".join(context.args)

    try:
        entries = Database().search(query, limit=10)
        await update.message.reply_text(format_entries_telegram(entries, f"SEARCH: {query}"))
    except Exception as e:
        await update.message.reply_text(f"Error: {e}")


def run_bot() -> None:
    """Run the Telegram bot."""
    bot_config = get_bot_config()
    setup_logging(bot_config["config"], default_level="INFO")

    app = Application.builder().token(bot_config["token"]).build()

    app.bot_data["authorized_users"] = bot_config["authorized_users"]
    app.bot_data["config"] = bot_config["config"]

    app.add_handler(CommandHandler("start", start_command))
    app.add_handler(CommandHandler("help", help_command))
    app.add_handler(CommandHandler("id", id_command))
    app.add_handler(CommandHandler("tasks", tasks_command))
    app.add_handler(CommandHandler("list", list_command))
    app.add_handler(CommandHandler("board", board_command))
    app.add_handler(CommandHandler("goals", goals_command))
    app.add_handler(CommandHandler("done", done_command))
    app.add_handler(CommandHandler("find", find_command))
    app.add_handler(MessageHandler(filters.TEXT & ~filters.COMMAND, handle_message))

    if bot_config["authorized_users"]:
        logger.info(f"Bot starting. Authorized users: {bot_config['authorized_users']}")
    else:
        logger.warning("No authorized users configured! Bot will deny all messages.")

    app.run_polling(allowed_updates=Update.ALL_TYPES)


def main() -> int:
    """Entry point for CLI."""
    try:
        run_bot()
        return 0
    except ValueError as e:
        print(f"Error: {e}")
        return 1
    except KeyboardInterrupt:
        print("\nBot stopped.")
        return 0


if __name__ == "__main__":
    import sys
    sys.exit(main())
