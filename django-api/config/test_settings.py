from config.settings import *  # noqa: F401,F403
from config.settings import AUCTION

AUCTION = {**AUCTION, "ADMIN_TOKEN": "test-admin-token", "SWEEPER_AUTOSTART": False}
