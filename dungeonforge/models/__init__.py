# Model package init
from .layout_record import LayoutRecord  # noqa: F401 re-export

__all__ = ["LayoutRecord"]
