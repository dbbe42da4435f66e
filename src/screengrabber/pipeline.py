"""Post-capture processing.

Stages run in a fixed order, each taking the current file path and the
captured area and returning the (possibly new) path:

1. flash      white flash over the area and/or shutter sound
2. move       temporary file to its final templated location
3. clipboard  file URI or image data
4. notify     desktop notification
5. upload     to the configured provider, asynchronously

A stage that raises is logged and the remaining stages still run.
"""

import logging
import os
from typing import Callable, Optional

from . import APP_NAME, files, providers
from .capture import CaptureResult
from .clipboard import Clipboard
from .config import Config, get_config
from .geometry import Rect
from .notification import Notifier
from .providers import Provider, UploadEvent

log = logging.getLogger(__name__)

Stage = Callable[[str, Rect], str]
Finished = Callable[[Optional[str]], None]


def _default_flash(area: Rect) -> None:
    from .ui.flash import flash

    flash(area)


def _default_sound() -> None:
    from .ui.flash import play_shutter

    play_shutter()


class Pipeline:
    """Turns a capture result into a saved, shared screenshot."""

    def __init__(
        self,
        config: Optional[Config] = None,
        flash: Optional[Callable[[Rect], None]] = None,
        sound: Optional[Callable[[], None]] = None,
        clipboard: Optional[Clipboard] = None,
        notifier: Optional[Notifier] = None,
        provider_factory: Optional[Callable[[str], Optional[Provider]]] = None,
        app_name: str = APP_NAME,
    ):
        self.config = config or get_config()
        self.app_name = app_name
        self.clipboard = clipboard or Clipboard()
        self.notifier = notifier or Notifier(app_name)
        self._flash = flash or _default_flash
        self._sound = sound or _default_sound
        self._provider_factory = provider_factory or providers.new_by_name
        self._provider: Optional[Provider] = None
        self._on_finished: Optional[Finished] = None

        self.stages: list[tuple[str, Stage]] = [
            ("flash", self._stage_flash),
            ("move", self._stage_move),
            ("clipboard", self._stage_clipboard),
            ("notify", self._stage_notify),
            ("upload", self._stage_upload),
        ]

    @property
    def uploading(self) -> bool:
        return self._provider is not None

    def run(self, result: CaptureResult, on_finished: Optional[Finished] = None) -> Optional[str]:
        """Process ``result``; returns the local path after the last stage.

        ``on_finished`` is called once with that path (None for a failed
        capture), after the upload completes when there is one.
        """
        self._on_finished = on_finished

        if not result.success or not result.path or result.area.is_empty:
            log.info("Nothing to process for failed capture of %s", result.area)
            if result.path:
                # Never leave a temporary capture behind
                files.remove(result.path)
            self._finish(None)
            return None

        path = result.path
        for name, stage in self.stages:
            try:
                path = stage(path, result.area)
            except Exception as e:
                log.error("Stage '%s' failed: %s", name, e, exc_info=True)

        if not self.uploading:
            self._finish(path)
        return path

    def cancel(self) -> None:
        """Abandon an upload in flight; its result is never applied."""
        self._on_finished = None
        self.cancel_upload()

    def _finish(self, path: Optional[str]) -> None:
        on_finished, self._on_finished = self._on_finished, None
        if on_finished is not None:
            on_finished(path)

    # Stages

    def _stage_flash(self, path: str, area: Rect) -> str:
        if self.config.flash_video:
            self._flash(area)
        if self.config.flash_audio:
            self._sound()
        return path

    def _stage_move(self, path: str, area: Rect) -> str:
        if not self.config.template:
            return path
        destination = files.screenshot_path(area, self.config.template)
        return files.move(path, destination)

    def _stage_clipboard(self, path: str, area: Rect) -> str:
        if self.config.clipboard == "uri":
            self.clipboard.set_text(files.to_uri(path))
        elif self.config.clipboard == "image":
            self.clipboard.set_image(path)
        return path

    def _stage_notify(self, path: str, area: Rect) -> str:
        if self.config.notifications:
            self.notifier.show(self.app_name, files.to_uri(path))
        return path

    def _stage_upload(self, path: str, area: Rect) -> str:
        name = self.config.upload_provider
        if not name:
            return path
        if not os.path.exists(path):
            log.warning("Not uploading missing file %s", path)
            return path

        provider = self._provider_factory(name)
        if provider is None:
            log.warning("Unknown upload provider %r, skipping upload", name)
            return path

        self.cancel_upload()
        self._provider = provider
        provider.done.connect(lambda event: self._on_uploaded(provider, path, event))
        log.info("Uploading %s to %s", path, provider.title)
        try:
            provider.upload(path)
        except Exception:
            self.cancel_upload()
            raise
        return path

    def cancel_upload(self) -> None:
        provider, self._provider = self._provider, None
        if provider is not None:
            log.debug("Cancelling upload to %s", provider.title)
            provider.destroy()

    # Upload completion

    def _on_uploaded(self, provider: Provider, path: str, event: UploadEvent) -> None:
        if provider is not self._provider:
            return
        self._provider = None
        provider.destroy()

        if event.success and not event.provider.get("url"):
            # Local provider: the earlier clipboard and notification stand
            log.debug("Kept %s locally", path)
        elif event.success:
            url = event.url
            log.info("Uploaded %s to %s", path, url)
            if self.config.notifications:
                self.notifier.show("Screenshot Uploaded", url)
            if self.config.clipboard != "none":
                self.clipboard.set_text(url)
            if self.config.delete_after_upload:
                files.remove(path)
        else:
            error = event.error or providers.UNKNOWN_ERROR
            log.warning("Upload to %s failed: %s", provider.title, error)
            if self.config.notifications:
                self.notifier.show("Upload Failed", error, "dialog-error")

        self._finish(path)
