import logging

import flet as ft

from logit.config.settings import settings
from logit.ui.app import main


def run() -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ft.app(
        target=main,
        view=ft.AppView.WEB_BROWSER if settings.web_mode else ft.AppView.FLET_APP,
        port=settings.port,
    )


if __name__ == "__main__":
    run()
