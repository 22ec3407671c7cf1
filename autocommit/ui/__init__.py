# UI Module for autocommit

from .dialogs import SecretDialog, SummaryDialog, DIALOG_CSS

__all__ = [
    'SecretDialog',
    'SummaryDialog',
    'DIALOG_CSS'
]
