from textual.app import App
from textual.theme import Theme

newsprint_theme = Theme(
    name="Newsprint",
    primary="#1F6FEB",
    secondary="#6E7781",
    accent="#D29922",
    foreground="#E6EDF3",
    background="#0D1117",
    surface="#161B22",
    panel="#21262D",
    success="#3FB950",
    warning="#D29922",
    error="#F85149",
    dark=True,
)

midnight_theme = Theme(
    name="Midnight",
    primary="#BD93F9",
    secondary="#6272A4",
    accent="#FF79C6",
    foreground="#F8F8F2",
    background="#1E1F29",
    surface="#282A36",
    panel="#343746",
    success="#50FA7B",
    warning="#F1FA8C",
    error="#FF5555",
    dark=True,
)

solarized_theme = Theme(
    name="Solarized",
    primary="#268BD2",
    secondary="#2AA198",
    accent="#B58900",
    foreground="#839496",
    background="#002B36",
    surface="#073642",
    panel="#0A4252",
    success="#859900",
    warning="#CB4B16",
    error="#DC322F",
    dark=True,
)

THEMES = [newsprint_theme, midnight_theme, solarized_theme]

_REGISTERED_FLAG = "_storyfeed_themes_registered"


def register_themes(app: App) -> bool:
    """Register the bundled themes on ``app`` once.

    Safe to call repeatedly; only the first call per app has an effect.
    Returns whether this call registered them.
    """
    if getattr(app, _REGISTERED_FLAG, False):
        return False

    for theme in THEMES:
        app.register_theme(theme)
    setattr(app, _REGISTERED_FLAG, True)
    return True
