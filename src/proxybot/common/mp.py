import logging
import os

from mixpanel import Mixpanel

logger = logging.getLogger(__name__)


class SilentMixpanel:
    def __init__(self, token: str = ""):
        pass

    def track(self, distinct_id, event: str, properties: dict | None = None):
        pass

    def people_set(self, distinct_id, properties: dict | None = None):
        pass


def _build_client() -> Mixpanel | SilentMixpanel:
    token = os.getenv("MIXPANEL_PROJECT_TOKEN")
    if not token:
        logger.info("MIXPANEL_PROJECT_TOKEN is not set, analytics disabled")
        return SilentMixpanel()
    return Mixpanel(token)


mp = _build_client()


def mute_mp_for_tests():
    global mp
    mp = SilentMixpanel()
