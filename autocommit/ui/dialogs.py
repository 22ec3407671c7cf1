"""
Dialogs Module - Modal prompts for push credentials and commit summaries
"""

from typing import Optional

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Container, Horizontal
from textual.screen import ModalScreen
from textual.widgets import Button, Input, Label


class _PromptDialog(ModalScreen[Optional[str]]):
    """Single-line input dialog that dismisses with the entered text or None"""

    BINDINGS = [
        Binding("escape", "cancel", "Cancel"),
    ]

    masked = False

    def __init__(self, prompt: str, value: str = ""):
        """
        Initialize the dialog

        Args:
            prompt: Label shown above the input
            value: Initial input text
        """
        super().__init__()
        self.prompt = prompt
        self.initial_value = value

    def compose(self) -> ComposeResult:
        """Create the dialog layout"""
        with Container(classes="prompt-dialog"):
            with Horizontal(classes="prompt-header"):
                yield Label(self.prompt.strip(), classes="title")
                yield Label("Press ESC to cancel", classes="escape-hint")
            yield Input(value=self.initial_value, password=self.masked, id="prompt-input")
            with Horizontal():
                yield Button("Cancel", id="cancel-prompt", variant="error")
                yield Button("OK", id="confirm-prompt", variant="success")

    def on_mount(self) -> None:
        self.query_one("#prompt-input", Input).focus()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        self.dismiss(event.value)

    def on_button_pressed(self, event: Button.Pressed) -> None:
        """Handle button presses"""
        if event.button.id == "confirm-prompt":
            self.dismiss(self.query_one("#prompt-input", Input).value)
        elif event.button.id == "cancel-prompt":
            self.dismiss(None)

    def action_cancel(self) -> None:
        self.dismiss(None)


class SecretDialog(_PromptDialog):
    """Masked input for a password or key passphrase requested by git push"""

    masked = True


class SummaryDialog(_PromptDialog):
    """Commit summary input, pre-filled with the default message"""


DIALOG_CSS = """
SecretDialog, SummaryDialog {
    align: center middle;
}

.prompt-dialog {
    width: 60%;
    height: auto;
    padding: 1;
    background: $surface;
    border: solid $accent;
}

.prompt-header {
    height: auto;
    margin-bottom: 1;
}

.escape-hint {
    color: $text-muted;
    margin-left: 2;
}

#prompt-input {
    margin-bottom: 1;
}
"""
