import os
import sys
from collections.abc import Mapping, Sequence

from django.apps import AppConfig
from django.conf import settings

MANAGEMENT_SCRIPTS = ("manage.py", "django-admin")


def is_serving_process(argv: Sequence[str], environ: Mapping[str, str]) -> bool:
    """True unless this is a non-server management command or the runserver reloader parent."""
    if len(argv) < 2 or os.path.basename(argv[0]) not in MANAGEMENT_SCRIPTS:
        return True
    if argv[1] != "runserver":
        return False
    return environ.get("RUN_MAIN") == "true" or "--noreload" in argv


class AuctionsConfig(AppConfig):
    name = "auctions"
    verbose_name = "Live auctions"

    def ready(self) -> None:
        if not settings.AUCTION["SWEEPER_AUTOSTART"]:
            return
        if not is_serving_process(sys.argv, os.environ):
            return
        from auctions.container import get_container

        get_container().sweeper.start()
