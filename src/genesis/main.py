"""CLI entrypoint for the axioms self-study app."""

from __future__ import annotations

import argparse
import asyncio
from collections.abc import Callable

from .assistant import AssistantClient, ChatSession
from .config import Settings, configure_logging, get_settings
from .models import Message
from .service import StudyService

InputFn = Callable[[str], str]
PrintFn = Callable[[str], None]
BACK_COMMANDS = {":back", ":b", "back"}
MENU_QUIT_COMMANDS = {"q"}
FLOW_EXIT_COMMANDS = {":quit", ":exit", ":q"}
MENU_BACK_COMMANDS = {"b"}
TIER_COMMANDS = {":flash": "flash", ":pro": "pro"}
LOCKED_PLACEHOLDER = "Evolution continues..."


class QuitApp(Exception):
    """Signal immediate app exit from nested menu flows."""


def _settings() -> Settings:
    """Return process settings."""
    return get_settings()


def _service(settings: Settings) -> StudyService:
    """Create app service with the configured database path."""
    return StudyService(
        db_path=settings.db_path,
        storage_key=settings.GENESIS_STORAGE_KEY,
        date_format=settings.GENESIS_INSIGHT_DATE_FORMAT,
    )


def _session(service: StudyService, settings: Settings) -> ChatSession:
    """Create a coach conversation grounded on the loaded curriculum."""
    return ChatSession(AssistantClient(service.levels, settings))


def run(argv: list[str] | None = None) -> int:
    """Run the CLI application."""
    parser = argparse.ArgumentParser(prog="genesis", description="Axioms of Being self-study")
    parser.add_argument("command", nargs="?", default="play", choices=["play", "dashboard"])
    args = parser.parse_args(argv)
    settings = _settings()
    configure_logging(settings.GENESIS_LOG_LEVEL)
    if args.command == "dashboard":
        service = _service(settings)
        try:
            _dashboard_flow(service, print)
        finally:
            service.close()
        return 0
    return play_shell(settings=settings)


def play_shell(input_fn: InputFn = input, print_fn: PrintFn = print, settings: Settings | None = None) -> int:
    """Run persistent menu-driven shell."""
    settings = settings or _settings()
    service = _service(settings)
    try:
        session = _session(service, settings)
        level_index = 0
        try:
            while True:
                level = service.levels[level_index]
                print_fn("\n=== Axioms of Being ===")
                print_fn(f"Level {level.id} ({level.code}): {level.name}")
                print_fn("1) Study")
                print_fn("2) Choose level")
                print_fn("3) Dashboard")
                print_fn("4) Coach")
                print_fn("q) Quit")
                choice = input_fn("Choose: ").strip().lower()

                if choice == "1":
                    _study_flow(service, session, level_index, input_fn, print_fn)
                elif choice == "2":
                    level_index = _choose_level_flow(service, level_index, input_fn, print_fn)
                elif choice == "3":
                    _dashboard_flow(service, print_fn)
                elif choice == "4":
                    _coach_flow(session, input_fn, print_fn)
                elif choice in MENU_QUIT_COMMANDS:
                    return 0
                else:
                    print_fn("Invalid choice.")
        except QuitApp:
            return 0
    finally:
        service.close()


def _choose_level_flow(service: StudyService, current: int, input_fn: InputFn, print_fn: PrintFn) -> int:
    """Pick a level; locked levels cannot be entered."""
    states = service.list_level_states()
    print_fn("\n=== Levels ===")
    code_width = max(len("Code"), max(len(state.level.code) for state in states))
    header = f"{'#':>2} {'Code':<{code_width}} {'Status':<9} Name"
    print_fn(header)
    print_fn("-" * len(header))
    for state in states:
        if state.locked:
            status = "locked"
        elif state.complete:
            status = "complete"
        else:
            status = f"{state.studied}/{len(state.level.axioms)}"
        marker = "*" if state.index == current else " "
        print_fn(f"{state.index + 1:>2} {state.level.code:<{code_width}} {status:<9} {state.level.name}{marker}")
    print_fn("b) Back")
    print_fn("q) Quit")

    choice = input_fn("Choose level: ").strip().lower()
    if choice in MENU_BACK_COMMANDS:
        return current
    if choice in MENU_QUIT_COMMANDS:
        raise QuitApp()
    if not choice.isdigit():
        print_fn("Invalid choice.")
        return current
    index = int(choice) - 1
    if not (0 <= index < len(states)):
        print_fn("Invalid choice.")
        return current
    if states[index].locked:
        print_fn("That level is locked. Study every axiom of the previous level first.")
        return current
    return index


def _study_flow(
    service: StudyService, session: ChatSession, level_index: int, input_fn: InputFn, print_fn: PrintFn
) -> None:
    """List axioms of the selected level and open one."""
    level = service.levels[level_index]
    while True:
        print_fn(f"\nLayer {level.id} - {level.code}")
        print_fn(level.name)
        if level.subtitle:
            print_fn(level.subtitle)
        states = service.list_axiom_states(level_index)
        for state in states:
            if state.locked:
                print_fn(f"{state.index + 1:>2}) [locked] {LOCKED_PLACEHOLDER}")
                continue
            mark = "x" if state.studied else " "
            print_fn(f"{state.index + 1:>2}) [{mark}] {state.axiom.id:<4} {state.axiom.title}")
        print_fn("b) Back")
        print_fn("q) Quit")

        choice = input_fn("Choose axiom: ").strip().lower()
        if choice in MENU_BACK_COMMANDS:
            return
        if choice in MENU_QUIT_COMMANDS:
            raise QuitApp()
        if not choice.isdigit():
            print_fn("Invalid choice.")
            continue
        index = int(choice) - 1
        if not (0 <= index < len(states)):
            print_fn("Invalid choice.")
            continue
        if states[index].locked:
            print_fn("This axiom is locked. Mark the previous one as studied first.")
            continue
        _axiom_flow(service, session, states[index].axiom.id, input_fn, print_fn)


def _axiom_flow(
    service: StudyService, session: ChatSession, axiom_id: str, input_fn: InputFn, print_fn: PrintFn
) -> None:
    """Show one axiom with its note and insights, and accept study actions."""
    axiom = service.get_axiom(axiom_id)
    while True:
        studied = service.state.is_studied(axiom_id)
        print_fn(f"\n=== {axiom.id}: {axiom.title} ===")
        print_fn(axiom.description)
        if axiom.explanation:
            print_fn(f"\n{axiom.explanation}")
        if axiom.practice:
            print_fn(f"\nPractice: {axiom.practice}")
        print_fn(f"\nStatus: {'studied' if studied else 'not studied'}")
        note = service.progress.notes.get(axiom_id, "")
        print_fn(f"Note: {note}" if note else "Note: -")
        insights = service.insights_for(axiom_id)
        if insights:
            print_fn("Insights:")
            for insight in insights:
                print_fn(f"- {insight.date}: {insight.text}")
        print_fn("t) Toggle studied")
        print_fn("n) Edit note")
        print_fn("i) Add insight")
        print_fn("c) Ask the coach")
        print_fn("b) Back")
        print_fn("q) Quit")

        choice = input_fn("Choose: ").strip().lower()
        if choice in MENU_BACK_COMMANDS:
            return
        if choice in MENU_QUIT_COMMANDS:
            raise QuitApp()
        if choice == "t":
            now_studied = service.toggle_studied(axiom_id)
            print_fn("Marked as studied." if now_studied else "Marked as not studied.")
        elif choice == "n":
            text = input_fn("Your note (blank clears): ")
            service.update_note(axiom_id, text)
            print_fn("Note saved.")
        elif choice == "i":
            text = input_fn("Insight of the day: ")
            if service.add_insight(axiom_id, text) is None:
                print_fn("Nothing recorded.")
            else:
                print_fn("Insight recorded.")
        elif choice == "c":
            suggestion = session.focus_on(axiom)
            _coach_flow(session, input_fn, print_fn, suggestion=suggestion)
        else:
            print_fn("Invalid choice.")


def _dashboard_flow(service: StudyService, print_fn: PrintFn) -> None:
    """Print progress dashboard."""
    summary = service.dashboard()
    print_fn("\n=== Your Path ===")
    print_fn(f"Progress: {summary.percent}%")
    print_fn(f"Axioms: {summary.studied}/{summary.total}")
    print_fn(f"Levels complete: {len(summary.completed_levels)}")

    print_fn("\nLevel map:")
    for row in summary.levels:
        print_fn(f"- {row.code:<5} {row.studied:>2}/{row.total:<2} {row.stage:<9} {row.name}")

    print_fn("\nRecent insights:")
    if not summary.recent_insights:
        print_fn("No recorded insights yet...")
    for insight in summary.recent_insights:
        print_fn(f'- [{insight.axiom_id}] {insight.date}: "{insight.text}"')

    if summary.journal:
        print_fn("\nJournal:")
        for entry in summary.journal:
            print_fn(f"{entry.level_code} {entry.axiom.id}: {entry.axiom.title}")
            if entry.note:
                print_fn(f"  Note: {entry.note}")
            for insight in entry.insights:
                print_fn(f"  {insight.date}: {insight.text}")


def _coach_flow(session: ChatSession, input_fn: InputFn, print_fn: PrintFn, suggestion: str = "") -> None:
    """Converse with the coach until the learner leaves."""
    print_fn(f"\n=== Coach ({session.tier}) ===")
    print_fn("Commands: :flash, :pro, :reset, :key, :b")
    for message in session.messages:
        _print_message(message, print_fn)
    if not session.key_selected:
        _select_key_flow(session, input_fn, print_fn)

    while True:
        if suggestion:
            print_fn(f"Suggested: {suggestion}")
            print_fn("(press Enter to send it)")
        text = input_fn("You: ")
        lowered = text.strip().lower()
        if lowered in BACK_COMMANDS:
            return
        if lowered in FLOW_EXIT_COMMANDS:
            raise QuitApp()
        if lowered in TIER_COMMANDS:
            session.set_tier(TIER_COMMANDS[lowered])
            print_fn(f"Model tier: {session.tier}")
            continue
        if lowered == ":reset":
            session.reset()
            _print_message(session.messages[-1], print_fn)
            continue
        if lowered == ":key":
            _select_key_flow(session, input_fn, print_fn)
            continue
        if not lowered and suggestion:
            text = suggestion
        suggestion = ""
        if not text.strip():
            continue

        print_fn("Deep contemplation...")
        reply = asyncio.run(session.send(text))
        if reply is None:
            continue
        _print_message(reply, print_fn)
        if reply.action == "select-key":
            _select_key_flow(session, input_fn, print_fn)


def _select_key_flow(session: ChatSession, input_fn: InputFn, print_fn: PrintFn) -> None:
    """Let the learner enter an API key for this run."""
    key = input_fn("Gemini API key (blank to skip): ")
    if session.select_key(key):
        _print_message(session.messages[-1], print_fn)
    else:
        print_fn("No key entered.")


def _print_message(message: Message, print_fn: PrintFn) -> None:
    """Render one chat message."""
    speaker = "You" if message.role == "user" else "Coach"
    for index, paragraph in enumerate(message.text.split("\n")):
        print_fn(f"{speaker}: {paragraph}" if index == 0 else f"  {paragraph}")


def main_entry() -> None:
    """Console script entrypoint."""
    raise SystemExit(run())


if __name__ == "__main__":  # pragma: no cover
    main_entry()
