"""Application entrypoint."""

from __future__ import annotations

import logging
import threading
from enum import Enum
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape

from config import AgentSettings, JsonConfigStore, load_env_file
from errors import ERROR_MESSAGES, ConfigurationError
from hotkey import GlobalHotkeyAdapter
from log_config import configure_logging
from models import SessionState, TranscriptionResult
from recorder import SoundDeviceRecorder, SoxRecorder
from recording_session import RecordingSession
from session_controller import SessionController
from transcriber_factory import create_transcriber

logger = logging.getLogger(__name__)
console = Console()


class RecorderChoice(str, Enum):
    SOX = "sox"
    SOUNDDEVICE = "sounddevice"


class App:
    def __init__(
        self,
        settings: AgentSettings,
        provider: Optional[str] = None,
        recorder: RecorderChoice = RecorderChoice.SOX,
    ) -> None:
        self.settings = settings
        capture = SoxRecorder() if recorder is RecorderChoice.SOX else SoundDeviceRecorder()
        self.session = RecordingSession(
            recorder=capture,
            audio_dir=settings.audio_dir,
            on_state_change=self._on_state_change,
        )
        self.transcriber = create_transcriber(settings, provider)
        self.controller = SessionController(
            session=self.session,
            transcriber=self.transcriber,
            on_transcript=self._on_transcript,
            on_error=self._on_error,
        )
        self.hotkey = GlobalHotkeyAdapter(hotkey=settings.hotkey)

    def initialize(self) -> None:
        try:
            self.transcriber.initialize()
        except ConfigurationError as exc:
            console.print(f"[yellow]Transcriber not ready:[/yellow] {exc}")
            console.print("[dim]The agent will keep running but transcription may fail.[/dim]")

    # ------------------------------------------------------------------
    # Callbacks
    # ------------------------------------------------------------------

    def _on_state_change(self, from_state: SessionState, to_state: SessionState) -> None:
        if to_state == SessionState.RECORDING:
            console.print(f"[red]● Recording...[/red] press {self.hotkey.hotkey} again to stop")
        else:
            console.print("[dim]Idle[/dim]")

    def _on_transcript(self, result: TranscriptionResult, path: Path) -> None:
        console.rule("Transcription")
        console.print(result.text or "[dim](empty)[/dim]")
        duration = f"{result.duration_seconds:.2f}s" if result.duration_seconds is not None else "n/a"
        console.print(f"[dim]{path.name} · {result.language or 'auto'} · {duration}[/dim]")

    def _on_error(self, code: str, message: str) -> None:
        console.print(f"[red]{ERROR_MESSAGES.get(code, code)}[/red]")
        console.print(f"[dim]{code}:[/dim] {escape(message)}")

    # ------------------------------------------------------------------
    # Hotkey handler
    # ------------------------------------------------------------------

    def _on_hotkey(self) -> None:
        # stop waits for the capture to drain and for the backend call,
        # so keep it off the listener thread
        threading.Thread(target=self.controller.toggle, daemon=True).start()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def run(self) -> int:
        self.initialize()
        try:
            self.hotkey.start(on_toggle=self._on_hotkey)
        except (RuntimeError, ValueError) as exc:
            console.print(f"[red]Hotkey disabled:[/red] {exc}")
            return 1
        console.print(
            f"Provider [bold]{self.transcriber.get_provider_name()}[/bold] · "
            f"press [bold]{self.hotkey.hotkey}[/bold] to start recording"
        )
        try:
            self.hotkey.join()
        except KeyboardInterrupt:
            pass
        finally:
            self.quit()
        return 0

    def quit(self) -> None:
        self.hotkey.stop()
        self.controller.shutdown()


app = typer.Typer(
    name="whisper-agent",
    help="Record from the microphone on a global hotkey and transcribe with Whisper.",
    add_completion=False,
)


@app.command()
def main(
    provider: Optional[str] = typer.Option(None, "--provider", "-p", help="local, groq or openai"),
    env_file: Optional[Path] = typer.Option(None, "--env-file", help="Load settings from a .env file"),
    hotkey: Optional[str] = typer.Option(None, "--hotkey", help="pynput binding, e.g. <ctrl>+<shift>+<space>"),
    recorder: RecorderChoice = typer.Option(RecorderChoice.SOX, "--recorder", help="Capture backend"),
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging"),
) -> None:
    configure_logging(verbose)
    load_env_file(env_file)

    store = JsonConfigStore()
    if hotkey:
        store.set_hotkey(hotkey)
    settings = AgentSettings.from_env(store=store)

    try:
        agent = App(settings, provider=provider, recorder=recorder)
    except ConfigurationError as exc:
        console.print(f"[red]Configuration error:[/red] {exc}")
        raise typer.Exit(code=2)
    raise typer.Exit(code=agent.run())


if __name__ == "__main__":
    app()
