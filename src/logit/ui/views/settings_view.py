from __future__ import annotations

from typing import Callable

import flet as ft

from logit.ui.theme import ThemeConfig


def build_settings_view(
    page: ft.Page,
    theme: ThemeConfig,
    on_change: Callable[[ThemeConfig], None],
) -> ft.Control:
    fields = {
        "primary_color": ft.TextField(label="Primary color", width=160, value=theme.primary_color),
        "accent_color": ft.TextField(label="Accent color", width=160, value=theme.accent_color),
        "background_color": ft.TextField(label="Background", width=160, value=theme.background_color),
        "text_color": ft.TextField(label="Text color", width=160, value=theme.text_color),
    }

    def apply(_: ft.ControlEvent) -> None:
        on_change(theme.update(**{k: (f.value or "").strip() or getattr(theme, k) for k, f in fields.items()}))

    def reset(_: ft.ControlEvent) -> None:
        on_change(theme.reset())

    return ft.Column(
        [
            ft.Text("Appearance", size=22, weight=ft.FontWeight.BOLD),
            ft.Row(list(fields.values()), wrap=True),
            ft.Row(
                [
                    ft.ElevatedButton("Apply", on_click=apply),
                    ft.OutlinedButton("Reset to defaults", on_click=reset),
                ]
            ),
        ]
    )
