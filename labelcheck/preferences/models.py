from enum import Enum


class Theme(str, Enum):
    DARK = "dark"
    LIGHT = "light"


DEFAULT_THEME = Theme.DARK
