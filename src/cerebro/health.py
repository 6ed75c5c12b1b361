"""
Health check module for Cerebro.

Reports system status across all components.
"""

from typing import Any

from cerebro.config import get_db_path, load_config, load_session, parse_authorized_users


def check_database() -> tuple[str, str]:
    """Check database status."""
    db_path = get_db_path()
    if not db_path.exists():
        return "!", "Not created yet (first capture creates it)"

    try:
        from cerebro.db import Database
        db = Database()
        stats = db.get_stats()
        return "✓", f"OK ({stats['total_entries']} entries, {stats['total_goals']} goals)"
    except Exception as e:
        return "✗", f"Error: {e}"


def check_session(config: dict[str, Any]) -> tuple[str, str]:
    """Check that a user is signed in."""
    session = load_session(config)
    if not session:
        return "✗", "No user (set CEREBRO_USER_ID)"
    if not session.access_token:
        return "!", f"{session.user_id} (no access token, anon key only)"
    return "✓", f"OK ({session.user_id})"


def check_classifier(config: dict[str, Any]) -> tuple[str, str]:
    """Check classifier endpoint configuration."""
    classifier_config = config.get("classifier", {})
    if not classifier_config.get("functions_url"):
        return "✗", "No endpoint (captures save with defaults)"
    if not classifier_config.get("anon_key"):
        return "!", "No anon key (no fallback transport)"
    return "✓", f"OK ({classifier_config.get('function_name', 'classify-entry')})"


def check_llm(config: dict[str, Any]) -> tuple[str, str]:
    """Check the model key used by `cerebro classify`."""
    llm_config = config.get("llm", {})
    provider = llm_config.get("provider", "gemini")
    if not llm_config.get(f"{provider}_api_key"):
        return "-", f"No {provider} key (only needed for `cerebro classify`)"
    return "✓", f"OK ({provider.title()})"


def check_telegram(config: dict[str, Any]) -> tuple[str, str]:
    """Check Telegram bot status."""
    tg_config = config.get("telegram", {})
    if not tg_config.get("token"):
        return "-", "Not configured"

    try:
        users = parse_authorized_users(tg_config)
    except ValueError:
        return "✗", "Invalid authorized_users"
    if not users:
        return "!", "No authorized users"

    return "✓", f"OK ({len(users)} users)"


def run_health_check() -> dict[str, tuple[str, str]]:
    """Run all health checks."""
    config = load_config()
    return {
        "Database": check_database(),
        "Session": check_session(config),
        "Classifier": check_classifier(config),
        "LLM": check_llm(config),
        "Telegram": check_telegram(config),
    }


def format_health_report(checks: dict[str, tuple[str, str]]) -> str:
    """Format health check results."""
    lines = ["Cerebro Health Check", "-" * 40]

    for name, (status, message) in checks.items():
        lines.append(f"{status} {name}: {message}")

    return "\n".join(lines)
