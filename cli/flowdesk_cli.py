#!/usr/bin/env python
"""
cli/flowdesk_cli.py – poke at a FlowDesk store from the terminal
================================================================
$ uv run cli/flowdesk_cli.py demo
$ FLOWDESK_STORAGE=file uv run cli/flowdesk_cli.py show --tab projects
"""

from __future__ import annotations

import argparse
import asyncio
import logging
from typing import List

from colorama import init as colorama_init, Fore, Style
colorama_init(autoreset=True)

from flowdesk.config import Settings, load_settings
from flowdesk.engine import MutationEngine, MutationResult
from flowdesk.events import EventBus, EventKind, FlowEvent, NotificationLevel
from flowdesk.models import Collection, Entity
from flowdesk.selection import EntityTab, SelectionState
from flowdesk.storage import create_adapter
from flowdesk.store import EntityStore

log = logging.getLogger("flowdesk.cli")

LEVEL_COLOURS = {
    NotificationLevel.SUCCESS: Fore.GREEN,
    NotificationLevel.ERROR: Fore.RED,
    NotificationLevel.INFO: Fore.CYAN,
}


# ╭──────────────────────────────────────────────────────────────────╮
# │ 1.  WIRING                                                      │
# ╰──────────────────────────────────────────────────────────────────╯
def build_engine(settings: Settings) -> MutationEngine:
    bus = EventBus()
    store = EntityStore(create_adapter(settings), bus)
    selection = SelectionState(bus)
    selection.attach(bus)
    return MutationEngine(store, selection, bus,
                          actor_id=settings.actor_id,
                          log_activity=settings.activity_log)


def print_toast(event: FlowEvent) -> None:
    colour = LEVEL_COLOURS.get(event.level, "")
    print(f"{colour}● {event.message}{Style.RESET_ALL}")


def print_items(title: str, items: List[Entity]) -> None:
    print(f"\n{Style.BRIGHT}{title} ({len(items)}){Style.RESET_ALL}")
    for item in items:
        extra = getattr(item, "status", None)
        suffix = f"  [{extra.value}]" if extra is not None else ""
        print(f"  {Fore.YELLOW}{item.id[:8]}{Style.RESET_ALL}  {item.label}{suffix}")


def expect(result: MutationResult) -> Entity:
    if not result.ok:
        raise SystemExit(result.message)
    return result.value


# ╭──────────────────────────────────────────────────────────────────╮
# │ 2.  COMMANDS                                                    │
# ╰──────────────────────────────────────────────────────────────────╯
async def run_demo(engine: MutationEngine) -> None:
    """Project → workspace → task → subtask, then delete the project."""
    expect(await engine.load())
    project = expect(await engine.create_project({"name": "Launch", "category": "work"}))
    workspace = expect(await engine.create_workspace({"name": "Beta", "projectId": project.id}))
    ship = expect(await engine.create_task({"title": "Ship", "workspaceId": workspace.id,
                                            "dueDate": "2024-03-15"}))
    expect(await engine.create_subtask(ship.id, {"title": "QA"}))
    expect(await engine.create_note({"title": "Release notes", "workspaceId": workspace.id,
                                     "tags": "launch, beta ,"}))

    await engine.selection.select_project(project.id)
    await engine.choose_workspace(workspace.id)
    print_items("Tasks in Beta", engine.resolver.visible(engine.selection))
    print_items("Subtasks of Ship", engine.resolver.subtasks_of(ship.id))

    await engine.invite_collaborator("nobody@example.com", project.id, "project")

    expect(await engine.delete_project(project.id))
    for collection in (Collection.PROJECTS, Collection.WORKSPACES, Collection.TASKS, Collection.NOTES):
        print_items(collection.value.capitalize(), engine.store.all(collection))
    print_items("Activity", engine.resolver.recent_activity())


async def run_show(engine: MutationEngine, tab: str) -> None:
    expect(await engine.load())
    await engine.selection.select_tab(EntityTab(tab))
    print_items(tab.capitalize(), engine.resolver.visible(engine.selection))


async def run(args: argparse.Namespace) -> None:
    settings = load_settings()
    logging.basicConfig(level=args.log_level or settings.log_level,
                        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s")
    engine = build_engine(settings)
    engine.bus.subscribe(print_toast, kinds=[EventKind.NOTIFICATION])
    try:
        if args.command == "demo":
            await run_demo(engine)
        else:
            await run_show(engine, args.tab)
    finally:
        await engine.store.adapter.close()


# ╭──────────────────────────────────────────────────────────────────╮
# │ 3.  CLI ENTRY-POINT                                             │
# ╰──────────────────────────────────────────────────────────────────╯
def cli() -> None:
    parser = argparse.ArgumentParser(description="FlowDesk store CLI")
    parser.add_argument("--log-level", default=None, help="override FLOWDESK_LOG_LEVEL")
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("demo", help="run the launch scenario")
    show = sub.add_parser("show", help="list what a tab shows")
    show.add_argument("--tab", choices=[t.value for t in EntityTab], default=EntityTab.TASKS.value)
    args = parser.parse_args()
    asyncio.run(run(args))


if __name__ == "__main__":
    cli()
