"""Tkinter-Presenter: Meldungsdialoge und Bild-Popup."""

from __future__ import annotations

import logging
import tkinter as tk
from pathlib import Path
from tkinter import messagebox, ttk
from typing import Optional

from PIL import Image, ImageTk, UnidentifiedImageError

LOGGER = logging.getLogger(__name__)

TITLE = "Defect Marker"


class TkPresenter:
    """Modale Dialoge auf einem unsichtbaren Root-Fenster."""

    def __init__(self, title: str = TITLE, image_size: tuple[int, int] = (600, 600)) -> None:
        self.title = title
        self.image_size = image_size
        self._root: Optional[tk.Tk] = None

    @property
    def root(self) -> tk.Tk:
        if self._root is None:
            self._root = tk.Tk()
            self._root.withdraw()
        return self._root

    def info(self, message: str) -> None:
        LOGGER.info(message)
        messagebox.showinfo(self.title, message, parent=self.root)

    def warning(self, message: str) -> None:
        LOGGER.warning(message)
        messagebox.showwarning(self.title, message, parent=self.root)

    def error(self, message: str) -> None:
        LOGGER.error(message)
        messagebox.showerror("Fehler", message, parent=self.root)

    def show_image(self, path: Path) -> None:
        """Öffnet das Bild modal, skaliert auf Fenstergröße (Seitenverhältnis bleibt)."""
        try:
            image = load_image(Path(path))
        except (OSError, UnidentifiedImageError) as exc:
            self.error(f"Das Bild konnte nicht geöffnet werden ({path}): {exc}")
            return
        window = DefectImageWindow(self.root, image, self.image_size)
        window.grab_set()
        self.root.wait_window(window)

    def close(self) -> None:
        if self._root is not None:
            self._root.destroy()
            self._root = None


class DefectImageWindow(tk.Toplevel):
    def __init__(self, master: tk.Misc, image: Image.Image, size: tuple[int, int]) -> None:
        super().__init__(master)
        self.title("Defektbild")
        self.geometry(f"{size[0]}x{size[1]}")
        self._original = image
        self._photo: Optional[ImageTk.PhotoImage] = None
        frame = ttk.Frame(self)
        frame.pack(fill=tk.BOTH, expand=True)
        self._label = ttk.Label(frame, anchor=tk.CENTER)
        self._label.pack(fill=tk.BOTH, expand=True)
        self.bind("<Configure>", self._on_resize)
        self.bind("<Escape>", lambda _event: self.destroy())
        self._render(*size)

    def _on_resize(self, event: tk.Event) -> None:
        if event.widget is self:
            self._render(event.width, event.height)

    def _render(self, width: int, height: int) -> None:
        if width < 2 or height < 2:
            return
        scale = min(width / self._original.width, height / self._original.height)
        target = (max(1, int(self._original.width * scale)), max(1, int(self._original.height * scale)))
        # PhotoImage-Referenz halten, sonst räumt der GC das Bild weg
        self._photo = ImageTk.PhotoImage(self._original.resize(target, Image.Resampling.LANCZOS))
        self._label.configure(image=self._photo)


def load_image(path: Path) -> Image.Image:
    """Liest das Bild vollständig ein, bevor ein Fenster entsteht."""
    with Image.open(path) as image:
        image.load()
        return image.copy()
