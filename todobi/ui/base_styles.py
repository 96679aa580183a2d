"""Shared CSS for todobi modals.

Every dialog in todobi is a ModalScreen holding a single Container. The
fragments below style that frame, its form fields, its text roles and its
button row; components append their own sizing:

    from todobi.ui.base_styles import MODAL_BASE_CSS, BUTTON_BASE_CSS

    class ConfirmModal(ModalScreen):
        DEFAULT_CSS = MODAL_BASE_CSS + BUTTON_BASE_CSS + f'''
        ConfirmModal > Container {{
            width: 56;
        }}
        '''
"""

from .theme import (
    ACCENT,
    BACKGROUND,
    BORDER,
    COMMENT,
    DANGER,
    FOREGROUND,
    MODAL_OVERLAY_BG,
    SELECTION,
    SUCCESS,
    WARNING,
)


# Dimmed overlay and the dialog box itself
_FRAME_CSS = f"""
ModalScreen {{
    align: center middle;
    background: {MODAL_OVERLAY_BG};
}}

ModalScreen > Container {{
    height: auto;
    max-height: 90%;
    padding: 1 2;
    background: {BACKGROUND};
    border: thick {ACCENT};
}}

ModalScreen .modal-header {{
    width: 100%;
    height: 3;
    margin-bottom: 1;
    content-align: center middle;
    text-style: bold;
    color: {ACCENT};
    border-bottom: solid {BORDER};
}}
"""

# Task and category forms
_FORM_CSS = f"""
ModalScreen .field-label {{
    width: 100%;
    height: 1;
    margin-top: 1;
    color: {COMMENT};
}}

ModalScreen Input, ModalScreen TextArea {{
    width: 100%;
    background: {BORDER};
    color: {FOREGROUND};
    border: solid {SELECTION};
}}

ModalScreen TextArea {{
    height: 6;
}}

ModalScreen Input:focus, ModalScreen TextArea:focus {{
    border: solid {ACCENT};
}}
"""

# Read-only text inside dialogs
_TEXT_CSS = f"""
ModalScreen .info-text {{
    width: 100%;
    height: auto;
    padding-bottom: 1;
    color: {FOREGROUND};
}}

ModalScreen .help-text {{
    width: 100%;
    height: auto;
    margin-top: 1;
    text-align: center;
    color: {COMMENT};
}}

ModalScreen .error-message {{
    width: 100%;
    height: auto;
    text-style: bold;
    color: {DANGER};
}}

ModalScreen .button-container {{
    layout: horizontal;
    width: 100%;
    height: 3;
    margin-top: 1;
    align: center middle;
}}
"""

MODAL_BASE_CSS = _FRAME_CSS + _FORM_CSS + _TEXT_CSS


def _button_variant(variant: str, color: str) -> str:
    """CSS for a colored button class (outlined, filled on hover)."""
    return f"""
Button.{variant} {{
    border: solid {color};
}}

Button.{variant}:hover {{
    background: {color};
    color: {BACKGROUND};
}}
"""


BUTTON_BASE_CSS = f"""
Button {{
    min-width: 15;
    height: 3;
    margin: 0 1;
    background: {SELECTION};
    color: {FOREGROUND};
    border: solid {BORDER};
}}

Button:hover {{
    background: {BORDER};
    border: solid {ACCENT};
}}
""" + "".join(
    _button_variant(variant, color)
    for variant, color in (("success", SUCCESS), ("error", DANGER), ("warning", WARNING))
)
