"""
UI/view constants centralized for reuse across view modules.

Only layout numbers, button glyphs and dialog result codes live here; display
paths and total-count text come from the core catalog service.
"""

from __future__ import annotations

# Dialog result returned when the row count changed and the dialog must be rebuilt
REFRESH_RESULT: int = 2

# Layout
DIALOG_WIDTH: int = 800
GROUP_BOX_MARGIN: int = 15
ROW_MARGIN_BOTTOM: int = 6
SOURCE_NUM_PHOTOS_WIDTH: int = 100
SOURCE_TOTAL_PHOTOS_WIDTH: int = 70
SOURCE_BUTTON_WIDTH: int = 35
DESTINATION_NAME_WIDTH: int = 300

# Text
DIALOG_TITLE: str = "Collection Creator"
SOURCE_ADD_TITLE: str = "➕"  # U+2795 HEAVY PLUS SIGN
SOURCE_REMOVE_TITLE: str = "❌"  # U+274C CROSS MARK
ACTION_VERB: str = "Create"
CANCEL_VERB: str = "Cancel"

# Upper bound accepted by the photo count field
MAX_REQUESTED_COUNT: float = 1_000_000.0
