from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Callable

import flet as ft

from logit.core.analytics import semester_overview
from logit.core.summaries import displayed_semesters, format_duration
from logit.services.storage import Storage, StorageError
from logit.services.validation import InvalidInput
from logit.state.app_state import AppState
from logit.state.session_state import ElapsedTicker
from logit.ui.theme import ThemeConfig

logger = logging.getLogger(__name__)

INPUT_FORMAT = "%Y-%m-%dT%H:%M"


def _parse_input(value: str) -> datetime:
    try:
        return datetime.strptime((value or "").strip(), INPUT_FORMAT)
    except ValueError as exc:
        raise InvalidInput("Please fill all fields") from exc


def build_semester_bar(
    page: ft.Page,
    store: Storage,
    state: AppState,
    ticker: ElapsedTicker,
    theme: ThemeConfig,
    refresh_all: Callable[[], None],
) -> ft.Control:
    new_name = ft.TextField(label="New semester", width=220, dense=True)
    error = ft.Text(color=ft.Colors.RED)

    def fail(exc: Exception) -> None:
        logger.warning("Semester action failed: %s", exc)
        error.value = str(exc)
        page.update()

    def add_semester(_: ft.ControlEvent) -> None:
        try:
            semester_id = store.add_semester(new_name.value)
            if not state.viewing_archived:
                state.select_semester(semester_id)
            refresh_all()
        except (InvalidInput, StorageError) as exc:
            fail(exc)

    def select(semester_id: int) -> None:
        ticker.cancel()
        state.study.clear()
        state.select_semester(semester_id)
        refresh_all()

    def toggle_archive(semester_id: int, archived: bool) -> None:
        try:
            store.set_semester_archived(semester_id, not archived)
            if state.active_semester_id == semester_id:
                state.select_semester(None)
            refresh_all()
        except StorageError as exc:
            fail(exc)

    def delete(semester_id: int) -> None:
        try:
            store.delete_semester(semester_id)
            if state.active_semester_id == semester_id:
                state.select_semester(None)
            refresh_all()
        except StorageError as exc:
            fail(exc)

    def rename(semester_id: int, field: ft.TextField) -> None:
        try:
            store.rename_semester(semester_id, field.value)
            refresh_all()
        except (InvalidInput, StorageError) as exc:
            fail(exc)

    def toggle_view(_: ft.ControlEvent) -> None:
        state.viewing_archived = not state.viewing_archived
        refresh_all()

    tabs = []
    for sem in displayed_semesters(store.list_semesters(), state.viewing_archived):
        active = sem.id == state.active_semester_id
        rename_field = ft.TextField(value=sem.name, width=140, dense=True)
        tabs.append(
            ft.Row(
                [
                    ft.TextButton(
                        sem.name,
                        on_click=lambda _, sid=sem.id: select(sid),
                        style=ft.ButtonStyle(color=theme.accent_color if active else theme.text_color),
                    ),
                    ft.PopupMenuButton(
                        items=[
                            ft.PopupMenuItem(content=rename_field),
                            ft.PopupMenuItem(text="Rename", on_click=lambda _, sid=sem.id, f=rename_field: rename(sid, f)),
                            ft.PopupMenuItem(
                                text="Unarchive" if sem.archived else "Archive",
                                on_click=lambda _, sid=sem.id, a=sem.archived: toggle_archive(sid, a),
                            ),
                            ft.PopupMenuItem(text="Delete", on_click=lambda _, sid=sem.id: delete(sid)),
                        ]
                    ),
                ],
                spacing=0,
            )
        )

    return ft.Column(
        [
            ft.Row(
                [
                    *tabs,
                    new_name,
                    ft.IconButton(icon=ft.Icons.ADD, on_click=add_semester),
                    ft.TextButton("Back to active" if state.viewing_archived else "Archived", on_click=toggle_view),
                ],
                wrap=True,
            ),
            error,
        ]
    )


def build_tracker_view(
    page: ft.Page,
    store: Storage,
    state: AppState,
    ticker: ElapsedTicker,
    theme: ThemeConfig,
    refresh_all: Callable[[], None],
) -> ft.Control:
    if state.active_semester_id is None:
        return ft.Text("Create or select a semester to start tracking")

    semester_id = state.active_semester_id
    subjects = store.list_subjects(semester_id)
    sessions = store.list_sessions(semester_id)
    overview = semester_overview(sessions)

    error = ft.Text(color=ft.Colors.RED)
    elapsed = ft.Text(format_duration(state.study.elapsed_seconds()), size=36, color=theme.primary_color)
    subject_dd = ft.Dropdown(
        label="Class",
        width=260,
        options=[ft.dropdown.Option(s.name) for s in subjects],
        value=state.selected_subject or None,
    )
    new_subject = ft.TextField(label="New class", width=220)

    log_id: dict[str, int | None] = {"id": None}
    log_subject = ft.Dropdown(label="Class", width=220, options=[ft.dropdown.Option(s.name) for s in subjects])
    log_start = ft.TextField(label="Start (YYYY-MM-DDTHH:MM)", width=220)
    log_end = ft.TextField(label="End (YYYY-MM-DDTHH:MM)", width=220)
    log_form = ft.Column(visible=False)

    def fail(exc: Exception) -> None:
        logger.warning("Tracker action failed: %s", exc)
        error.value = str(exc)
        page.update()

    def on_subject_change(_: ft.ControlEvent) -> None:
        match = next((s for s in subjects if s.name == subject_dd.value), None)
        if match is None:
            state.clear_subject()
        else:
            state.select_subject(match.id, match.name, match.assignment_types)
        refresh_all()

    def on_tick(seconds: float) -> None:
        elapsed.value = format_duration(seconds)
        page.update()

    def start(_: ft.ControlEvent) -> None:
        try:
            state.study.start(state.selected_subject)
        except InvalidInput as exc:
            fail(exc)
            return
        ticker.on_tick = on_tick
        ticker.start()
        refresh_all()

    def stop(_: ft.ControlEvent) -> None:
        ticker.cancel()
        try:
            subject, started, finished = state.study.stop()
            store.add_session(semester_id, subject, started, finished)
        except (InvalidInput, StorageError) as exc:
            fail(exc)
            return
        refresh_all()

    def add_subject(_: ft.ControlEvent) -> None:
        try:
            store.add_subject(semester_id, new_subject.value)
            refresh_all()
        except (InvalidInput, StorageError) as exc:
            fail(exc)

    def delete_subject(subject_id: int) -> None:
        try:
            store.delete_subject(subject_id)
            if state.selected_subject_id == subject_id:
                state.clear_subject()
            refresh_all()
        except StorageError as exc:
            fail(exc)

    def open_log_form(session=None) -> None:
        if session is None:
            now = datetime.now()
            log_id["id"] = None
            log_subject.value = state.selected_subject or (subjects[0].name if subjects else None)
            log_start.value = (now - timedelta(hours=1)).strftime(INPUT_FORMAT)
            log_end.value = now.strftime(INPUT_FORMAT)
        else:
            log_id["id"] = session.id
            log_subject.value = session.subject
            log_start.value = session.start_time.strftime(INPUT_FORMAT)
            log_end.value = session.end_time.strftime(INPUT_FORMAT)
        log_form.visible = True
        page.update()

    def save_log(_: ft.ControlEvent) -> None:
        try:
            start_at = _parse_input(log_start.value)
            end_at = _parse_input(log_end.value)
            if log_id["id"] is None:
                store.add_session(semester_id, log_subject.value, start_at, end_at)
            else:
                store.update_session(log_id["id"], log_subject.value, start_at, end_at)
            refresh_all()
        except (InvalidInput, StorageError) as exc:
            fail(exc)

    def delete_log(session_id: int) -> None:
        try:
            store.delete_session(session_id)
            refresh_all()
        except StorageError as exc:
            fail(exc)

    def cancel_log(_: ft.ControlEvent) -> None:
        log_form.visible = False
        page.update()

    subject_dd.on_change = on_subject_change
    if state.study.is_studying:
        ticker.on_tick = on_tick
    log_form.controls = [
        ft.Row([log_subject, log_start, log_end], wrap=True),
        ft.Row([ft.ElevatedButton("Save Log", on_click=save_log), ft.TextButton("Cancel", on_click=cancel_log)]),
    ]

    timer_button = (
        ft.ElevatedButton("Stop", on_click=stop, bgcolor=ft.Colors.RED_400)
        if state.study.is_studying
        else ft.ElevatedButton("Start Studying", on_click=start, bgcolor=theme.primary_color)
    )

    summary_lines = [
        ft.Text(f"• {s.name}: {format_duration(s.total_seconds)}") for s in overview.summaries
    ] or [ft.Text("No study time logged yet")]

    class_lines = [
        ft.Row(
            [
                ft.Text(s.name),
                ft.IconButton(icon=ft.Icons.DELETE, on_click=lambda _, sid=s.id: delete_subject(sid)),
            ],
            alignment=ft.MainAxisAlignment.SPACE_BETWEEN,
        )
        for s in subjects
    ]

    log_lines = [
        ft.Row(
            [
                ft.Text(
                    f"{s.start_time:%Y-%m-%d %H:%M} – {s.end_time:%H:%M}  {s.subject}  "
                    f"{format_duration(s.duration_seconds)}"
                ),
                ft.Row(
                    [
                        ft.IconButton(icon=ft.Icons.EDIT, on_click=lambda _, sess=s: open_log_form(sess)),
                        ft.IconButton(icon=ft.Icons.DELETE, on_click=lambda _, sid=s.id: delete_log(sid)),
                    ]
                ),
            ],
            alignment=ft.MainAxisAlignment.SPACE_BETWEEN,
        )
        for s in sessions
    ] or [ft.Text("No sessions yet")]

    return ft.Column(
        [
            ft.Row([subject_dd, timer_button]),
            elapsed,
            error,
            ft.Divider(),
            ft.Text(f"Semester total: {format_duration(overview.total_seconds)}", size=20, weight=ft.FontWeight.BOLD),
            *summary_lines,
            ft.Divider(),
            ft.Text("Classes", size=20, weight=ft.FontWeight.BOLD),
            ft.Row([new_subject, ft.IconButton(icon=ft.Icons.ADD, on_click=add_subject)]),
            *class_lines,
            ft.Divider(),
            ft.Row(
                [
                    ft.Text("Study Log", size=20, weight=ft.FontWeight.BOLD),
                    ft.TextButton("Add Log", on_click=lambda _: open_log_form()),
                ],
                alignment=ft.MainAxisAlignment.SPACE_BETWEEN,
            ),
            log_form,
            *log_lines,
        ]
    )
