"""
MCP Server for Cerebro.

Exposes cerebro functionality as tools for AI assistants.
"""

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import Tool, TextContent

from cerebro.capture import capture
from cerebro.classifier import Classifier
from cerebro.config import ensure_dirs, load_config, load_session
from cerebro.db import Database
from cerebro.errors import AuthenticationError, PersistenceError
from cerebro.models import STATUSES
from cerebro.surfacing import (
    format_capture_result,
    format_goals,
    get_board_formatted,
    get_entries_formatted,
    search_entries_formatted,
)

# Create MCP server
server = Server("cerebro")


@server.list_tools()
async def list_tools() -> list[Tool]:
    """List available tools."""
    return [
        Tool(
            name="cerebro_capture",
            description="Capture text into cerebro. It is classified into a task, note, insight, bookmark or goal and saved.",
            inputSchema={
                "type": "object",
                "properties": {
                    "text": {
                        "type": "string",
                        "description": "The text to capture",
                    },
                },
                "required": ["text"],
            },
        ),
        Tool(
            name="cerebro_search",
            description="Search cerebro entries using full-text search.",
            inputSchema={
                "type": "object",
                "properties": {
                    "query": {
                        "type": "string",
                        "description": "Search query",
                    },
                    "limit": {
                        "type": "integer",
                        "description": "Maximum results to return (default: 10)",
                        "default": 10,
                    },
                },
                "required": ["query"],
            },
        ),
        Tool(
            name="cerebro_tasks",
            description="List tasks from cerebro, optionally filtered by status.",
            inputSchema={
                "type": "object",
                "properties": {
                    "status": {
                        "type": "string",
                        "description": "Filter by status (optional)",
                        "enum": list(STATUSES),
                    },
                    "include_done": {
                        "type": "boolean",
                        "description": "Include done tasks (default: false)",
                        "default": False,
                    },
                },
            },
        ),
        Tool(
            name="cerebro_board",
            description="Show the task Kanban board grouped by status or priority.",
            inputSchema={
                "type": "object",
                "properties": {
                    "group_by": {
                        "type": "string",
                        "enum": ["status", "priority"],
                        "default": "status",
                    },
                },
            },
        ),
        Tool(
            name="cerebro_goals",
            description="List goals with their progress for the current period.",
            inputSchema={
                "type": "object",
                "properties": {
                    "period_type": {
                        "type": "string",
                        "enum": ["daily", "weekly", "monthly"],
                    },
                },
            },
        ),
        Tool(
            name="cerebro_move",
            description="Move an entry to another status (pending, in_progress, done).",
            inputSchema={
                "type": "object",
                "properties": {
                    "entry_id": {
                        "type": "string",
                        "description": "Entry ID or its first 8 characters",
                    },
                    "status": {
                        "type": "string",
                        "enum": list(STATUSES),
                    },
                },
                "required": ["entry_id", "status"],
            },
        ),
        Tool(
            name="cerebro_progress",
            description="Add progress to a goal.",
            inputSchema={
                "type": "object",
                "properties": {
                    "goal_id": {
                        "type": "string",
                        "description": "Goal ID or its first 8 characters",
                    },
                    "amount": {
                        "type": "number",
                        "description": "Amount to add (default: 1)",
                        "default": 1,
                    },
                },
                "required": ["goal_id"],
            },
        ),
    ]


@server.call_tool()
async def call_tool(name: str, arguments: dict) -> list[TextContent]:
    """Handle tool calls."""
    handler = TOOLS.get(name)
    if handler is None:
        return [TextContent(type="text", text=f"Unknown tool: {name}")]
    try:
        return await handler(arguments)
    except Exception as e:
        return [TextContent(type="text", text=f"Error: {e}")]


async def tool_capture(args: dict) -> list[TextContent]:
    """Classify and save a capture."""
    text = args.get("text", "").strip()
    if not text:
        return [TextContent(type="text", text="Error: Empty capture")]

    config = load_config()
    ensure_dirs()
    try:
        result = capture(text, load_session(config), Classifier(config), Database())
    except (AuthenticationError, PersistenceError) as e:
        return [TextContent(type="text", text=f"Error: {e}")]

    message = format_capture_result(result)
    if result.ai_failed:
        message = "AI classification unavailable, saved with defaults.\n" + message
    return [TextContent(type="text", text=message)]


async def tool_search(args: dict) -> list[TextContent]:
    """Search entries."""
    query = args.get("query", "").strip()
    limit = args.get("limit", 10)

    if not query:
        return [TextContent(type="text", text="Error: Empty query")]

    return [TextContent(type="text", text=search_entries_formatted(query, limit=limit))]


async def tool_tasks(args: dict) -> list[TextContent]:
    """List tasks."""
    result = get_entries_formatted(
        entry_type="task",
        status=args.get("status"),
        include_done=args.get("include_done", False),
    )
    return [TextContent(type="text", text=result)]


async def tool_board(args: dict) -> list[TextContent]:
    """Kanban board."""
    group_by = args.get("group_by", "status")
    if group_by not in ("status", "priority"):
        return [TextContent(type="text", text=f"Error: Invalid group_by '{group_by}'")]
    return [TextContent(type="text", text=get_board_formatted(group_by=group_by))]


async def tool_goals(args: dict) -> list[TextContent]:
    """List goals."""
    goals = Database().get_goals(period_type=args.get("period_type"))
    return [TextContent(type="text", text=format_goals(goals))]


async def tool_move(args: dict) -> list[TextContent]:
    """Change an entry's status."""
    identifier = args.get("entry_id", "").strip()
    status = args.get("status", "").strip()

    if not identifier:
        return [TextContent(type="text", text="Error: No entry_id provided")]
    if status not in STATUSES:
        return [TextContent(type="text", text=f"Error: Invalid status '{status}'")]

    db = Database()
    entry_id = db.resolve_id(identifier)
    if not entry_id:
        return [TextContent(type="text", text=f"Entry not found: {identifier}")]

    db.update_status(entry_id, status)
    return [TextContent(type="text", text=f"Moved {identifier} → {status}")]


async def tool_progress(args: dict) -> list[TextContent]:
    """Add progress to a goal."""
    identifier = args.get("goal_id", "").strip()
    amount = args.get("amount", 1)

    if not identifier:
        return [TextContent(type="text", text="Error: No goal_id provided")]

    db = Database()
    goal_id = db.resolve_id(identifier, table="goals")
    if not goal_id:
        return [TextContent(type="text", text=f"Goal not found: {identifier}")]

    goal = db.add_goal_progress(goal_id, amount)
    return [TextContent(type="text", text=format_goals([goal]))]


TOOLS = {
    "cerebro_capture": tool_capture,
    "cerebro_search": tool_search,
    "cerebro_tasks": tool_tasks,
    "cerebro_board": tool_board,
    "cerebro_goals": tool_goals,
    "cerebro_move": tool_move,
    "cerebro_progress": tool_progress,
}


async def main():
    """Run the MCP server."""
    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, server.create_initialization_options())


def run() -> None:
    """Console-script entry point."""
    import asyncio
    asyncio.run(main())


if __name__ == "__main__":
    run()
