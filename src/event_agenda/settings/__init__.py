import os


def get_settings_module() -> str:
    # APP_ENV picks the settings module; anything unrecognized means development.
    env = os.getenv("APP_ENV", "development").lower()

    if env in {"prod", "production"}:
        return "event_agenda.settings.production"

    if env in {"test", "testing"}:
        return "event_agenda.settings.testing"

    return "event_agenda.settings.development"
