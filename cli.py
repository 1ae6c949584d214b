#!/usr/bin/env python3
"""
Development Workflow Tracker - terminal runner.

Walks the situation flows interactively and inspects the answer store.
"""

import sys
from pathlib import Path

from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.prompt import Prompt, Confirm
from rich.table import Table
from rich import box

from config import CYCLE_START_SITUATION, TRANSITION_LIMIT
from models import CycleSummary, QuestionType
from repositories import AnswerStore, StoreError, create_store
from workflow import (
    FlowNavigator,
    WorkflowReadModel,
    build_prompt_context,
    fill_template,
    format_cycle_markdown,
)

console = Console()


def list_cycles(store: AnswerStore):
    cycles = store.cycles.list()
    if not cycles:
        console.print("[dim]No cycles yet.[/dim]")
        return

    table = Table(title="Cycles", box=box.ROUNDED)
    table.add_column("#", style="cyan", justify="right")
    table.add_column("Status")
    table.add_column("Started")
    table.add_column("Completed")
    table.add_column("Answers", justify="right")

    for cycle in cycles:
        status = "[green]active[/green]" if cycle.is_active else "completed"
        table.add_row(
            str(cycle.cycle_number),
            status,
            cycle.started_at[:19],
            (cycle.completed_at or "-")[:19],
            str(len(store.answers.by_cycle(cycle.id))),
        )

    console.print(table)


def show_cycle(store: AnswerStore, number: int):
    for cycle in store.cycles.list():
        if cycle.cycle_number == number:
            summary = CycleSummary(cycle=cycle, answers=store.answers.by_cycle(cycle.id))
            console.print(Markdown(format_cycle_markdown(summary)))
            return
    console.print(f"[red]No cycle #{number}[/red]")


def show_context(store: AnswerStore, situation: str):
    context = build_prompt_context(store, situation)

    table = Table(title=f"Prompt context for {situation}", box=box.ROUNDED, show_lines=True)
    table.add_column("Key", style="cyan")
    table.add_column("Value")
    for key, value in context.items():
        table.add_row(key, value or "[dim](empty)[/dim]")
    console.print(table)


def list_snapshots(store: AnswerStore):
    snapshots = store.snapshots.list()
    if not snapshots:
        console.print("[dim]No saved states.[/dim]")
        return

    table = Table(title="Saved states", box=box.ROUNDED)
    table.add_column("ID", style="cyan", justify="right")
    table.add_column("Situation")
    table.add_column("Saved")
    table.add_column("Answers", justify="right")
    table.add_column("Description")
    for s in snapshots:
        table.add_row(str(s.id), s.situation, s.saved_at[:19], str(s.answer_count), s.description or "")
    console.print(table)


def show_status(store: AnswerStore):
    info = store.info()
    model = WorkflowReadModel(store)
    active = store.cycles.active()

    lines = [
        f"Mode: [cyan]{info['mode']}[/cyan]{' (read-only)' if info['read_only'] else ''}",
        f"Location: {info['location'] or '-'}",
        f"Active cycle: {('#' + str(active.cycle_number)) if active else '-'}",
        f"Current state: {model.current_state() or '-'}",
        "",
    ]
    lines += [f"{name}: {count}" for name, count in info["counts"].items()]
    console.print(Panel("\n".join(lines), title="Store", box=box.ROUNDED))


def _ask(question):
    """Prompt for one answer in the shape the question expects."""
    if question.type == QuestionType.YESNO:
        return Confirm.ask(question.question)

    if question.type == QuestionType.MULTIPLE:
        for i, option in enumerate(question.options, 1):
            console.print(f"  {i}. {option}")
        choices = [str(i) for i in range(1, len(question.options) + 1)]
        choice = Prompt.ask("Choice", choices=choices)
        return question.options[int(choice) - 1]

    if question.allow_multiple:
        console.print("[dim]One entry per line; empty line to finish.[/dim]")
        entries = []
        while True:
            entry = Prompt.ask(question.question if not entries else f"#{len(entries) + 1}", default="")
            if not entry.strip():
                if entries:
                    return entries
                continue
            entries.append(entry)

    while True:
        answer = Prompt.ask(question.question)
        if answer.strip():
            return answer


def run_flow(store: AnswerStore, situation: str):
    """Interactive loop until the flow completes or the user quits."""
    nav = FlowNavigator(store)
    nav.enter(situation)
    reader = WorkflowReadModel(store)

    while True:
        question = nav.current_question
        if question is None:
            console.print(f"[yellow]{nav.situation} has no questions.[/yellow]")
            return

        console.print(f"\n[bold cyan]{nav.situation}[/bold cyan] [dim]({question.id})[/dim]")

        shown = reader.display_data(question)
        if shown and question.show_data:
            body = "\n".join(f"- {s}" for s in shown) if isinstance(shown, list) else shown
            console.print(Panel(body, title=question.show_data.label, box=box.ROUNDED))

        if question.prompt_template:
            context = build_prompt_context(store, nav.situation)
            console.print(Panel(
                fill_template(question.prompt_template.template, context),
                title="AI prompt",
                box=box.ROUNDED,
            ))

        if nav.can_go_back and Confirm.ask("[dim]Go back?[/dim]", default=False):
            nav.go_back()
            continue

        outcome = nav.advance(question.id, _ask(question))

        if outcome is None:
            console.print("[green]Flow complete.[/green]")
            return
        if outcome.limit_reached:
            console.print(
                f"[red]Returned to implementation {TRANSITION_LIMIT} times in a row. "
                f"Not going back again.[/red]"
            )
        if outcome.next_situation:
            console.print(f"[green]-> {outcome.next_situation}[/green]")
            if not Confirm.ask("Continue?", default=True):
                return


def cli():
    import argparse

    parser = argparse.ArgumentParser(
        description="Development workflow tracker",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  devflow                          # Walk the flow from Dumping
  devflow --situation Designing    # Start from a situation
  devflow --cycles                 # List cycles
  devflow --cycle 2                # Markdown dump of cycle #2
  devflow --context Designing      # Show prompt context
  devflow --export backup.db       # Export the database
  devflow --offline                # Use the local cache only
        """
    )
    parser.add_argument("--situation", "-s", default=CYCLE_START_SITUATION, help="Situation to start in")
    parser.add_argument("--cycles", action="store_true", help="List cycles")
    parser.add_argument("--cycle", type=int, metavar="N", help="Show cycle N as markdown")
    parser.add_argument("--context", metavar="SITUATION", help="Show prompt context for a situation")
    parser.add_argument("--snapshots", action="store_true", help="List saved states")
    parser.add_argument("--save", metavar="SITUATION", help="Save current answers as a state")
    parser.add_argument("--restore", type=int, metavar="ID", help="Restore a saved state")
    parser.add_argument("--status", action="store_true", help="Show store status")
    parser.add_argument("--export", metavar="FILE", help="Export the database")
    parser.add_argument("--import", dest="import_file", metavar="FILE", help="Replace the database from a file")
    parser.add_argument("--location", metavar="PATH", help="Set the byte-store location")
    parser.add_argument("--server", help="Byte-store server URL")
    parser.add_argument("--cache", type=Path, help="Local cache file")
    parser.add_argument("--offline", action="store_true", help="Skip the byte-store server")
    args = parser.parse_args()

    try:
        store = create_store(server_url=args.server, cache_path=args.cache, offline=args.offline)

        if args.location:
            console.print(f"[green]Location:[/green] {store.set_location(args.location)}")
        elif args.status:
            show_status(store)
        elif args.cycles:
            list_cycles(store)
        elif args.cycle is not None:
            show_cycle(store, args.cycle)
        elif args.context:
            show_context(store, args.context)
        elif args.snapshots:
            list_snapshots(store)
        elif args.save:
            description = Prompt.ask("Description", default="")
            snapshot_id = store.snapshots.save(args.save, description or None)
            console.print(f"[green]Saved state {snapshot_id}[/green]")
        elif args.restore is not None:
            situation = store.snapshots.restore(args.restore)
            console.print(f"[green]Restored state {args.restore}[/green] ({situation})")
        elif args.export:
            Path(args.export).write_bytes(store.export_bytes())
            console.print(f"[green]Exported to[/green] {args.export}")
        elif args.import_file:
            if Confirm.ask("This replaces all current data. Continue?", default=False):
                store.import_bytes(Path(args.import_file).read_bytes())
                console.print("[green]Imported.[/green]")
        else:
            run_flow(store, args.situation)

    except StoreError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)
    except KeyboardInterrupt:
        console.print("\n[dim]Interrupted.[/dim]")


if __name__ == "__main__":
    cli()
