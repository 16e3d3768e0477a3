from __future__ import annotations

import logging
from datetime import date
from typing import Callable, Dict

import flet as ft

from logit.core.analytics import analyse_subject
from logit.core.grades import percentage_from_points
from logit.services.storage import Storage, StorageError
from logit.services.validation import InvalidInput, clean_target
from logit.state.app_state import AppState
from logit.ui.theme import ThemeConfig

logger = logging.getLogger(__name__)


def build_calculator_view(
    page: ft.Page,
    store: Storage,
    state: AppState,
    theme: ThemeConfig,
    refresh_all: Callable[[], None],
) -> ft.Control:
    if state.selected_subject_id is None or state.active_semester_id is None:
        return ft.Text("Select a class on the Tracker tab")

    try:
        subject = store.get_subject(state.selected_subject_id)
    except StorageError:
        state.clear_subject()
        return ft.Text("Select a class on the Tracker tab")

    categories = list(subject.assignment_types)
    entries = store.list_grade_entries(subject.id)
    assessments = store.list_assessments(subject.id)
    analytics = analyse_subject(
        subject,
        store.list_sessions(state.active_semester_id),
        assessments,
        entries,
        state.target_grade,
    )

    status = ft.Text(color=ft.Colors.RED)
    new_type = ft.TextField(label="New type", width=180)
    weight_fields: Dict[str, ft.TextField] = {
        c: ft.TextField(label=f"{c} %", width=110, value=f"{subject.grade_weights.get(c, 0):g}") for c in categories
    }
    target = ft.TextField(label="Target grade %", width=140, value=f"{state.target_grade:g}")

    entry_name = ft.TextField(label="Assignment", width=180)
    entry_score = ft.TextField(label="Score", width=90)
    entry_total = ft.TextField(label="Total", width=90, value="100")
    entry_category = ft.Dropdown(
        label="Category",
        width=160,
        options=[ft.dropdown.Option(c) for c in categories],
        value=categories[0] if categories else None,
    )
    track = ft.Checkbox(label="Track as assessment (dated today)", value=False)
    editing: dict[str, int | None] = {"id": None}

    def set_status(message: str, is_error: bool = True) -> None:
        status.value = message
        status.color = ft.Colors.RED_400 if is_error else ft.Colors.GREEN_400
        page.update()

    def fail(exc: Exception) -> None:
        logger.warning("Calculator action failed: %s", exc)
        set_status(str(exc))

    def add_type(_: ft.ControlEvent) -> None:
        try:
            updated = store.add_category(subject.id, new_type.value)
            state.visible_types[updated.assignment_types[-1]] = True
            refresh_all()
        except (InvalidInput, StorageError) as exc:
            fail(exc)

    def rename_type(old: str, field: ft.TextField) -> None:
        try:
            store.rename_category(subject.id, old, field.value)
            was_visible = state.visible_types.pop(old, True)
            state.visible_types[field.value.strip()] = was_visible
            refresh_all()
        except (InvalidInput, StorageError) as exc:
            fail(exc)

    def delete_type(name: str) -> None:
        try:
            store.delete_category(subject.id, name)
            state.visible_types.pop(name, None)
            refresh_all()
        except (InvalidInput, StorageError) as exc:
            fail(exc)

    def save_config(_: ft.ControlEvent) -> None:
        try:
            target_grade = clean_target(target.value)
            weights = {c: float(f.value or 0) for c, f in weight_fields.items()}
            store.set_weights(subject.id, weights)
            state.target_grade = target_grade
        except ValueError as exc:
            fail(exc if isinstance(exc, InvalidInput) else InvalidInput("Weights and target must be numbers"))
            return
        except StorageError as exc:
            fail(exc)
            return
        refresh_all()

    def save_entry(_: ft.ControlEvent) -> None:
        try:
            if editing["id"] is not None:
                store.update_grade_entry(
                    editing["id"], entry_name.value, entry_score.value, entry_total.value, entry_category.value
                )
            elif track.value:
                percentage = percentage_from_points(float(entry_score.value), float(entry_total.value))
                store.add_assessment(subject.id, entry_name.value, entry_category.value, date.today(), percentage)
            else:
                store.add_grade_entry(
                    subject.id, entry_name.value, entry_score.value, entry_total.value, entry_category.value
                )
            refresh_all()
        except ValueError as exc:
            fail(exc if isinstance(exc, InvalidInput) else InvalidInput("Please fill all fields."))
        except StorageError as exc:
            fail(exc)

    def edit_entry(entry) -> None:
        editing["id"] = entry.id
        entry_name.value = entry.name
        entry_score.value = f"{entry.score:g}"
        entry_total.value = f"{entry.total_points:g}"
        entry_category.value = entry.category
        page.update()

    def delete_entry(entry_id: int) -> None:
        try:
            store.delete_grade_entry(entry_id)
            refresh_all()
        except StorageError as exc:
            fail(exc)

    def toggle_absolute(_: ft.ControlEvent) -> None:
        state.show_absolute = not state.show_absolute
        refresh_all()

    type_rows = []
    for c in categories:
        rename_field = ft.TextField(value=c, width=160, dense=True)
        type_rows.append(
            ft.Row(
                [
                    rename_field,
                    weight_fields[c],
                    ft.TextButton("Rename", on_click=lambda _, old=c, f=rename_field: rename_type(old, f)),
                    ft.IconButton(icon=ft.Icons.DELETE, on_click=lambda _, name=c: delete_type(name)),
                ]
            )
        )

    entry_rows = [
        ft.Row(
            [
                ft.Text(f"{e.name} [{e.category}] {e.score:g}/{e.total_points:g}"),
                ft.Row(
                    [
                        ft.IconButton(icon=ft.Icons.EDIT, on_click=lambda _, item=e: edit_entry(item)),
                        ft.IconButton(icon=ft.Icons.DELETE, on_click=lambda _, eid=e.id: delete_entry(eid)),
                    ]
                ),
            ],
            alignment=ft.MainAxisAlignment.SPACE_BETWEEN,
        )
        for e in entries
    ] + [ft.Text(f"{a.name} [{a.type}] {a.grade}% (tracked)") for a in assessments]

    result = analytics.grade
    if result is None:
        result_lines = [ft.Text("Add a type and some grades to see your standing")]
    else:
        headline = (
            f"Absolute: {result.absolute_average}%" if state.show_absolute else f"Current grade: {result.current_grade}%"
        )
        result_lines = [
            ft.Row(
                [
                    ft.Text(headline, size=24, weight=ft.FontWeight.BOLD, color=theme.primary_color),
                    ft.TextButton("Show normalized" if state.show_absolute else "Show absolute", on_click=toggle_absolute),
                ]
            ),
            ft.Text(f"Remaining weight: {result.remaining_weight}%"),
            ft.Text(f"Needed on remaining work for {state.target_grade:g}%: {result.required_score}%"),
        ]
        if result.has_regression and result.predicted_hours != "0":
            result_lines.append(ft.Text(f"Predicted study time per assessment: {result.predicted_hours}h"))
        elif not result.has_regression:
            result_lines.append(ft.Text("Log more graded assessments to predict study hours"))

    return ft.Column(
        [
            ft.Text(f"{subject.name} – Grade Calculator", size=22, weight=ft.FontWeight.BOLD),
            *result_lines,
            ft.Divider(),
            ft.Text("Types & Weights", size=20, weight=ft.FontWeight.BOLD),
            ft.Row([new_type, ft.IconButton(icon=ft.Icons.ADD, on_click=add_type)]),
            *type_rows,
            ft.Row([target, ft.ElevatedButton("Save Configuration", on_click=save_config)]),
            status,
            ft.Divider(),
            ft.Text("Grades", size=20, weight=ft.FontWeight.BOLD),
            ft.Row([entry_name, entry_score, entry_total, entry_category], wrap=True),
            ft.Row([track, ft.ElevatedButton("Save Grade", on_click=save_entry)]),
            *entry_rows,
        ]
    )
