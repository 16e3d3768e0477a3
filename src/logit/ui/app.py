from __future__ import annotations

import logging
from typing import Optional

import flet as ft

from logit.config.settings import Settings, settings as default_settings
from logit.services.storage import Storage
from logit.state.app_state import AppState
from logit.state.session_state import ElapsedTicker
from logit.ui.theme import ThemeConfig
from logit.ui.views.analytics_view import build_analytics_view
from logit.ui.views.calculator_view import build_calculator_view
from logit.ui.views.settings_view import build_settings_view
from logit.ui.views.tracker_view import build_semester_bar, build_tracker_view

logger = logging.getLogger(__name__)


class LogItApp:
    def __init__(
        self,
        page: ft.Page,
        store: Storage,
        theme: ThemeConfig,
        config: Settings = default_settings,
    ) -> None:
        self.page = page
        self.page.title = "LogIt"
        self.page.scroll = ft.ScrollMode.AUTO
        self.store = store
        self.theme = theme
        self.state = AppState(target_grade=config.target_grade)
        self.ticker = ElapsedTicker(lambda _: None, interval=config.tick_seconds, spawn=page.run_task)
        self.page.on_disconnect = self.teardown
        self.page.on_close = self.teardown

    def run(self) -> None:
        semesters = [s for s in self.store.list_semesters() if not s.archived]
        if semesters:
            self.state.select_semester(semesters[0].id)
        self.show_main_app()

    def teardown(self, _: Optional[ft.ControlEvent] = None) -> None:
        self.ticker.cancel()
        self.state.study.clear()
        logger.info("Shell closed")

    def apply_theme(self) -> None:
        self.page.bgcolor = self.theme.background_color
        self.page.theme = ft.Theme(color_scheme_seed=self.theme.primary_color)

    def change_theme(self, theme: ThemeConfig) -> None:
        self.theme = theme
        self.store.save_preferences(theme.to_preferences())
        self.show_main_app()

    def show_main_app(self) -> None:
        self.page.clean()
        self.apply_theme()

        semester_container = ft.Container()
        tracker_container = ft.Container()
        analytics_container = ft.Container()
        calculator_container = ft.Container()
        settings_container = ft.Container()

        def refresh_all() -> None:
            semester_container.content = build_semester_bar(
                self.page, self.store, self.state, self.ticker, self.theme, refresh_all
            )
            tracker_container.content = build_tracker_view(
                self.page, self.store, self.state, self.ticker, self.theme, refresh_all
            )
            analytics_container.content = build_analytics_view(self.page, self.store, self.state, self.theme, refresh_all)
            calculator_container.content = build_calculator_view(
                self.page, self.store, self.state, self.theme, refresh_all
            )
            settings_container.content = build_settings_view(self.page, self.theme, self.change_theme)
            self.page.update()

        tabs = ft.Tabs(
            selected_index=0,
            tabs=[
                ft.Tab(text="Tracker", content=tracker_container),
                ft.Tab(text="Analytics", content=analytics_container),
                ft.Tab(text="Calculator", content=calculator_container),
                ft.Tab(text="Settings", content=settings_container),
            ],
            expand=1,
        )

        self.page.add(
            ft.Text("LogIt", size=28, weight=ft.FontWeight.BOLD, color=self.theme.text_color),
            semester_container,
            tabs,
        )
        refresh_all()


def main(page: ft.Page, config: Settings = default_settings) -> None:
    store = Storage(config.db_path)
    theme = ThemeConfig.from_preferences(store.load_preferences())
    LogItApp(page, store, theme, config).run()
