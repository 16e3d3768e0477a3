from __future__ import annotations

import logging
from datetime import date
from typing import Callable

import flet as ft

from logit.core.analytics import analyse_subject
from logit.core.summaries import efficiency_points, format_duration, graded_points
from logit.services.storage import Storage, StorageError
from logit.services.validation import InvalidInput
from logit.state.app_state import AppState
from logit.ui.theme import ThemeConfig

logger = logging.getLogger(__name__)


def _bar(value: float, top: float, color: str) -> ft.Container:
    width = max(6, int(220 * (value / top))) if top > 0 else 6
    return ft.Container(width=width, height=12, bgcolor=color, border_radius=6)


def build_analytics_view(
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
    analytics = analyse_subject(
        subject,
        store.list_sessions(state.active_semester_id),
        store.list_assessments(subject.id),
        store.list_grade_entries(subject.id),
        state.target_grade,
        state.visible_types,
    )

    error = ft.Text(color=ft.Colors.RED)
    name = ft.TextField(label="Name", width=200)
    kind = ft.Dropdown(
        label="Type",
        width=160,
        options=[ft.dropdown.Option(c) for c in categories],
        value=categories[0] if categories else None,
    )
    when = ft.TextField(label="Date (YYYY-MM-DD)", width=160, value=date.today().isoformat())
    grade = ft.TextField(label="Grade %", width=100)
    editing: dict[str, int | None] = {"id": None}

    def fail(exc: Exception) -> None:
        logger.warning("Assessment action failed: %s", exc)
        error.value = str(exc)
        page.update()

    def save(_: ft.ControlEvent) -> None:
        try:
            if editing["id"] is None:
                store.add_assessment(subject.id, name.value, kind.value, when.value, grade.value)
            else:
                store.update_assessment(editing["id"], name.value, kind.value, when.value, grade.value)
            refresh_all()
        except (InvalidInput, StorageError) as exc:
            fail(exc)

    def edit(item) -> None:
        editing["id"] = item.id
        name.value = item.name
        kind.value = item.type
        when.value = item.date.isoformat()
        grade.value = item.grade
        page.update()

    def delete(assessment_id: int) -> None:
        try:
            store.delete_assessment(assessment_id)
            refresh_all()
        except StorageError as exc:
            fail(exc)

    def toggle(category: str) -> None:
        state.toggle_type(category)
        refresh_all()

    filters = ft.Row(
        [
            ft.Checkbox(label=c, value=bool(state.visible_types.get(c)), on_change=lambda _, c=c: toggle(c))
            for c in categories
        ],
        wrap=True,
    )

    rows = [
        ft.Row(
            [
                ft.Text(
                    f"{a.date.isoformat()}  {a.name} [{a.type}]  {a.grade}%  "
                    f"{format_duration(a.calculated_time)} ({a.hours}h)  eff {a.efficiency}"
                ),
                ft.Row(
                    [
                        ft.IconButton(icon=ft.Icons.EDIT, on_click=lambda _, item=a: edit(item)),
                        ft.IconButton(icon=ft.Icons.DELETE, on_click=lambda _, aid=a.id: delete(aid)),
                    ]
                ),
            ],
            alignment=ft.MainAxisAlignment.SPACE_BETWEEN,
        )
        for a in analytics.visible
    ] or [ft.Text("No assessments to show")]

    scatter = graded_points(analytics.annotated)
    top_grade = max((y for _, y, _ in scatter), default=0)
    scatter_rows = [
        ft.Row([ft.Text(f"{label}: {x}h", width=260), _bar(y, top_grade, theme.primary_color), ft.Text(f"{y}%")])
        for x, y, label in scatter
    ]
    efficiencies = efficiency_points(analytics.annotated)
    top_eff = max((e for _, e in efficiencies), default=0)
    efficiency_rows = [
        ft.Row([ft.Text(label, width=260), _bar(e, top_eff, theme.accent_color), ft.Text(f"{e}")])
        for label, e in efficiencies
    ]

    if analytics.regression is None:
        trend = ft.Text("Not enough data for a prediction yet (need 2+ graded assessments with study time)")
    else:
        trend = ft.Text(
            f"Grade ≈ {analytics.regression.slope:.2f} × hours + {analytics.regression.intercept:.2f}"
        )

    return ft.Column(
        [
            ft.Text(f"{subject.name} – Assessments", size=22, weight=ft.FontWeight.BOLD),
            ft.Row([name, kind, when, grade, ft.ElevatedButton("Save Assessment", on_click=save)], wrap=True),
            error,
            filters,
            *rows,
            ft.Divider(),
            ft.Text("Hours vs Grade", size=20, weight=ft.FontWeight.BOLD),
            trend,
            *scatter_rows,
            ft.Divider(),
            ft.Text(f"Efficiency (avg {analytics.average_efficiency} pts/hr)", size=20, weight=ft.FontWeight.BOLD),
            *efficiency_rows,
        ]
    )
