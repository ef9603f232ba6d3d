import logging
import sys
import tkinter as tk
from pathlib import Path
from tkinter import filedialog, messagebox, ttk
from typing import Optional

from PIL import ImageTk
from tkinterdnd2 import DND_FILES, TkinterDnD

from .config import (
    DEFAULT_PLAY_SPEED_MS,
    MAX_PLAY_SPEED_MS,
    MIN_PLAY_SPEED_MS,
    MODE_CREATE,
    MODE_EDIT,
    configure_logging,
)
from .coords import round_half_up
from .errors import ParseError, SpriteSheetError
from .loader import expand_png_paths, load_sheet_image, read_metadata
from .render import draw_markers, magnifier_view
from .session import Session
from .sheet import ExportPayload

logger = logging.getLogger(__name__)

BaseTk = TkinterDnD.Tk


class SpriteSheetEditorApp(BaseTk):
    def __init__(self) -> None:
        super().__init__()
        self.title("Sprite Sheet Editor")
        self.geometry("1400x900")
        self.minsize(960, 640)

        self.session = Session()
        self.session.attach_playback(
            self.after, self.after_cancel, DEFAULT_PLAY_SPEED_MS, on_frame=self._after_frame_change
        )

        self.preview_photo: Optional[ImageTk.PhotoImage] = None
        self.magnifier_photo: Optional[ImageTk.PhotoImage] = None
        self.status_var = tk.StringVar(value="Ready.")
        self.coords_var = tk.StringVar(value="X: 0, Y: 0")
        self.frame_info_var = tk.StringVar(value="Frame 0 of 0")
        self.category_name_var = tk.StringVar(value="")
        self.speed_var = tk.IntVar(value=DEFAULT_PLAY_SPEED_MS)
        self.speed_text_var = tk.StringVar(value=f"{DEFAULT_PLAY_SPEED_MS}ms")
        self.edit_files_var = tk.StringVar(value="No sprite sheet or data file loaded.")
        self.point_vars: dict[tuple[str, int], tuple[tk.StringVar, tk.StringVar]] = {}

        self._build_ui()
        self._setup_dnd()
        self._apply_mode_ui()
        self._refresh_all()
        self.protocol("WM_DELETE_WINDOW", self._on_close)

    # Layout -----------------------------------------------------------------

    def _build_ui(self) -> None:
        root = ttk.Frame(self)
        root.pack(fill="both", expand=True, padx=10, pady=10)
        root.columnconfigure(1, weight=1)
        root.rowconfigure(0, weight=1)

        left = ttk.Frame(root)
        left.grid(row=0, column=0, sticky="nsw")
        center = ttk.Frame(root)
        center.grid(row=0, column=1, sticky="nsew", padx=(10, 10))
        right = ttk.Frame(root)
        right.grid(row=0, column=2, sticky="nsew")
        center.columnconfigure(0, weight=1)
        center.rowconfigure(0, weight=1)

        # Left panel: mode, inputs, frame list, export.
        mode_row = ttk.Frame(left)
        mode_row.pack(fill="x")
        ttk.Button(mode_row, text="Create New", command=lambda: self._set_mode(MODE_CREATE)).pack(side="left")
        ttk.Button(mode_row, text="Edit Existing", command=lambda: self._set_mode(MODE_EDIT)).pack(side="left", padx=5)

        self.upload_section = ttk.Frame(left)
        ttk.Button(self.upload_section, text="Add PNG Frames", command=self._add_images).pack(fill="x", pady=(8, 0))

        self.edit_section = ttk.Frame(left)
        ttk.Button(self.edit_section, text="Sprite Sheet PNG", command=self._choose_sheet_image).pack(fill="x", pady=(8, 0))
        ttk.Button(self.edit_section, text="Data File (XML/JSON)", command=self._choose_metadata).pack(fill="x", pady=(4, 0))
        ttk.Label(self.edit_section, textvariable=self.edit_files_var, foreground="#808080", wraplength=260).pack(
            anchor="w", pady=(4, 0)
        )
        ttk.Button(self.edit_section, text="Load For Editing", command=self._load_edit_data).pack(fill="x", pady=(4, 0))

        self.list_header = ttk.Label(left, text="Frames", font=("Segoe UI", 10, "bold"))
        self.listbox = tk.Listbox(left, width=36, height=20, exportselection=False)
        self.listbox.bind("<<ListboxSelect>>", self._on_list_select)

        self.export_frame = ttk.Frame(left)
        ttk.Separator(self.export_frame, orient="horizontal").pack(fill="x", pady=10)
        ttk.Label(self.export_frame, text="Export", font=("Segoe UI", 10, "bold")).pack(anchor="w")
        ttk.Button(self.export_frame, text="Generate Sprite Sheet", command=self._export_sheet).pack(fill="x", pady=(6, 4))
        ttk.Button(self.export_frame, text="Export XML", command=self._export_xml).pack(fill="x")
        ttk.Button(self.export_frame, text="Export JSON", command=self._export_json).pack(fill="x", pady=(4, 0))

        # Center panel: frame canvas, navigation, playback.
        self.canvas = tk.Canvas(center, bg="#1c1c1c", highlightthickness=1, highlightbackground="#4a4a4a")
        self.canvas.grid(row=0, column=0, sticky="nsew")
        self.canvas.bind("<ButtonPress-1>", self._on_canvas_click)
        self.canvas.bind("<Motion>", self._on_canvas_motion)
        self.canvas.bind("<Leave>", lambda _e: self.magnifier.grid_remove())

        hud = ttk.Frame(center)
        hud.grid(row=1, column=0, sticky="ew", pady=(8, 0))
        hud.columnconfigure(7, weight=1)
        self.prev_btn = ttk.Button(hud, text="< Prev", command=self._previous_frame)
        self.prev_btn.grid(row=0, column=0)
        ttk.Label(hud, textvariable=self.frame_info_var, width=16, anchor="center").grid(row=0, column=1, padx=6)
        self.next_btn = ttk.Button(hud, text="Next >", command=self._next_frame)
        self.next_btn.grid(row=0, column=2)
        ttk.Button(hud, text="Play", command=self._start_play).grid(row=0, column=3, padx=(12, 0))
        ttk.Button(hud, text="Stop", command=self._stop_play).grid(row=0, column=4, padx=(4, 0))
        ttk.Scale(
            hud,
            from_=MIN_PLAY_SPEED_MS,
            to=MAX_PLAY_SPEED_MS,
            variable=self.speed_var,
            command=self._on_speed_slider,
        ).grid(row=0, column=5, sticky="ew", padx=(12, 4))
        ttk.Label(hud, textvariable=self.speed_text_var, width=8).grid(row=0, column=6, sticky="w")
        ttk.Label(hud, textvariable=self.coords_var, foreground="#808080").grid(row=1, column=0, columnspan=8, sticky="w")
        self.magnifier = ttk.Label(center)
        self.magnifier.grid(row=2, column=0, sticky="w", pady=(6, 0))
        self.magnifier.grid_remove()

        # Right panel: categories, points, legacy import.
        right.columnconfigure(0, weight=1)
        right.rowconfigure(2, weight=1)
        ttk.Label(right, text="Point Categories", font=("Segoe UI", 10, "bold")).grid(row=0, column=0, sticky="w")
        add_row = ttk.Frame(right)
        add_row.grid(row=1, column=0, sticky="ew", pady=(4, 6))
        entry = ttk.Entry(add_row, textvariable=self.category_name_var, width=24)
        entry.pack(side="left", fill="x", expand=True)
        entry.bind("<Return>", lambda _e: self._add_category())
        ttk.Button(add_row, text="Add Category", command=self._add_category).pack(side="left", padx=(6, 0))
        self.categories_frame = ttk.Frame(right)
        self.categories_frame.grid(row=2, column=0, sticky="nsew")

        ttk.Separator(right, orient="horizontal").grid(row=3, column=0, sticky="ew", pady=10)
        ttk.Label(right, text="Import Legacy Positions (XML)", font=("Segoe UI", 10, "bold")).grid(row=4, column=0, sticky="w")
        self.import_text = tk.Text(right, width=48, height=8)
        self.import_text.grid(row=5, column=0, sticky="ew", pady=(4, 4))
        ttk.Button(right, text="Import Positions", command=self._import_positions).grid(row=6, column=0, sticky="e")
        ttk.Label(right, textvariable=self.status_var, wraplength=360).grid(row=7, column=0, sticky="w", pady=(8, 0))

    def _apply_mode_ui(self) -> None:
        for widget in (self.upload_section, self.edit_section, self.list_header, self.listbox, self.export_frame):
            widget.pack_forget()
        section = self.upload_section if self.session.mode == MODE_CREATE else self.edit_section
        section.pack(fill="x")
        self.list_header.pack(anchor="w", pady=(10, 0))
        self.listbox.pack(fill="both", expand=True, pady=(6, 6))
        self.export_frame.pack(fill="x")

    def _setup_dnd(self) -> None:
        try:
            # Register multiple targets; some environments only dispatch on widgets.
            self.drop_target_register(DND_FILES)
            self.listbox.drop_target_register(DND_FILES)
            self.canvas.drop_target_register(DND_FILES)
            self.dnd_bind("<<Drop>>", self._on_drop)
            self.listbox.dnd_bind("<<Drop>>", self._on_drop)
            self.canvas.dnd_bind("<<Drop>>", self._on_drop)
            self.status_var.set("Ready. Drag/drop enabled.")
        except tk.TclError as exc:
            logger.warning("Drag/drop unavailable: %s", exc)
            self.status_var.set("Ready. Drag/drop failed to initialize; using file picker.")

    # Refresh ----------------------------------------------------------------

    def _refresh_all(self) -> None:
        self._refresh_frame_list()
        self._refresh_categories()
        self._render_frame()

    def _refresh_frame_list(self) -> None:
        self.listbox.delete(0, tk.END)
        for idx, frame in enumerate(self.session.frames):
            self.listbox.insert(tk.END, f"{idx + 1}. {frame.label()}")
        active = self.session.frames.active_idx
        if active is not None:
            self.listbox.selection_clear(0, tk.END)
            self.listbox.selection_set(active)
            self.listbox.see(active)
        self.frame_info_var.set(self.session.frame_label())
        state = "normal" if self.session.current_frame() is not None else "disabled"
        self.prev_btn.config(state=state)
        self.next_btn.config(state=state)

    def _refresh_categories(self) -> None:
        for child in self.categories_frame.winfo_children():
            child.destroy()
        self.point_vars.clear()
        frame = self.session.current_frame()
        for category in self.session.model.categories():
            box = ttk.LabelFrame(self.categories_frame, text=category)
            box.pack(fill="x", pady=(0, 6))
            header = ttk.Frame(box)
            header.pack(fill="x")
            ttk.Button(header, text=f"Add {category} Point", command=lambda c=category: self._add_point(c)).pack(side="left")
            ttk.Label(header, text=f"Points: {self.session.template.count(category)}").pack(side="left", padx=6)
            ttk.Button(header, text="Remove", command=lambda c=category: self._remove_category(c)).pack(side="right")
            if frame is None:
                continue
            for i in range(self.session.template.count(category)):
                self._add_point_row(box, category, i, *self.session.point_fields(category, i))

    def _add_point_row(self, parent: ttk.LabelFrame, category: str, index: int, x: str, y: str) -> None:
        row = ttk.Frame(parent)
        row.pack(fill="x", pady=1)
        selected = self.session.model.is_selected(category, index)
        ttk.Label(row, text=f"{'> ' if selected else ''}{category} {index + 1}:", width=14).pack(side="left")
        x_var = tk.StringVar(value=x)
        y_var = tk.StringVar(value=y)
        self.point_vars[(category, index)] = (x_var, y_var)
        for var in (x_var, y_var):
            e = ttk.Entry(row, textvariable=var, width=6)
            e.pack(side="left", padx=(0, 4))
            e.bind("<Return>", lambda _e, c=category, i=index: self._apply_point_fields(c, i))
            e.bind("<FocusOut>", lambda _e, c=category, i=index: self._apply_point_fields(c, i))
        ttk.Button(row, text="Select", command=lambda: self._select_point(category, index)).pack(side="left")
        ttk.Button(row, text="Clear", command=lambda: self._clear_point(category, index)).pack(side="left", padx=2)
        ttk.Button(row, text="x", width=2, command=lambda: self._remove_point(category, index)).pack(side="left")

    def _render_frame(self) -> None:
        self.canvas.delete("all")
        frame = self.session.current_frame()
        if frame is None:
            self.preview_photo = None
            return
        preview = draw_markers(frame.image, self.session.markers())
        self.preview_photo = ImageTk.PhotoImage(preview)
        self.canvas.config(scrollregion=(0, 0, frame.width, frame.height))
        self.canvas.create_image(0, 0, image=self.preview_photo, anchor="nw")

    # Error reporting ----------------------------------------------------------

    def _report(self, title: str, exc: Exception) -> None:
        logger.error("%s: %s", title, exc)
        messagebox.showerror(title, str(exc))
        self.status_var.set(f"{title}: {exc}")

    def _warn(self, title: str, warnings: list[str]) -> None:
        if warnings:
            messagebox.showwarning(title, "\n".join(warnings[:10]))

    # Modes and loading ------------------------------------------------------

    def _set_mode(self, mode: str) -> None:
        self.session.set_mode(mode)
        self.edit_files_var.set("No sprite sheet or data file loaded.")
        self._apply_mode_ui()
        self._refresh_all()

    def _on_drop(self, event) -> None:  # pragma: no cover
        paths = list(self.tk.splitlist(event.data))
        if self.session.mode == MODE_EDIT:
            for path in paths:
                if str(path).lower().endswith(".png"):
                    self._load_sheet_image(path)
                else:
                    self._load_metadata(path)
            return
        self._ingest_paths(paths)

    def _add_images(self) -> None:
        paths = filedialog.askopenfilenames(title="Select PNG images", filetypes=[("PNG files", "*.png")])
        if paths:
            self._ingest_paths(list(paths))

    def _ingest_paths(self, paths: list[str]) -> None:
        try:
            result = self.session.load_paths(expand_png_paths(paths))
        except SpriteSheetError as exc:
            self._report("Load images", exc)
            return
        self._refresh_all()
        self.status_var.set(f"Loaded {len(result.images)} frame(s).")
        self._warn("Skipped files", result.skipped)

    def _choose_sheet_image(self) -> None:
        path = filedialog.askopenfilename(title="Select sprite sheet", filetypes=[("PNG files", "*.png")])
        if path:
            self._load_sheet_image(path)

    def _load_sheet_image(self, path: str) -> None:
        try:
            self.session.set_sheet_image(load_sheet_image(path))
        except (SpriteSheetError, OSError) as exc:
            self._report("Sprite sheet", exc)
            return
        self._update_edit_files_text()

    def _choose_metadata(self) -> None:
        path = filedialog.askopenfilename(
            title="Select sprite data",
            filetypes=[("Sprite data", "*.xml *.json"), ("XML files", "*.xml"), ("JSON files", "*.json")],
        )
        if path:
            self._load_metadata(path)

    def _load_metadata(self, path: str) -> None:
        try:
            self.session.set_edit_record(read_metadata(path))
        except (SpriteSheetError, OSError) as exc:
            self._report("Sprite data", exc)
            return
        self._update_edit_files_text()

    def _update_edit_files_text(self) -> None:
        parts = []
        if self.session.sheet_image is not None:
            w, h = self.session.sheet_image.size
            parts.append(f"Sheet: {w}x{h}")
        if self.session.edit_record is not None:
            parts.append(f"Data: {len(self.session.edit_record.frames)} frame(s)")
        self.edit_files_var.set("   ".join(parts) or "No sprite sheet or data file loaded.")

    def _load_edit_data(self) -> None:
        try:
            report = self.session.load_edit_data()
        except SpriteSheetError as exc:
            self._report("Load edit data", exc)
            return
        self._apply_mode_ui()
        self._refresh_all()
        self.status_var.set(f"Successfully loaded {report.frames_loaded} frames for editing.")
        self._warn("Load warnings", report.warnings)

    # Navigation and playback -------------------------------------------------

    def _on_list_select(self, _event=None) -> None:
        sel = self.listbox.curselection()
        if not sel or int(sel[0]) == self.session.frames.active_idx:
            return
        self.session.select_frame(int(sel[0]))
        self._after_frame_change()

    def _after_frame_change(self) -> None:
        self.coords_var.set("X: 0, Y: 0")
        self._refresh_all()

    def _previous_frame(self) -> None:
        if self.session.previous_frame() is not None:
            self._after_frame_change()

    def _next_frame(self) -> None:
        if self.session.next_frame() is not None:
            self._after_frame_change()

    def _start_play(self) -> None:
        if self.session.start_playback():
            self.status_var.set("Playing...")

    def _stop_play(self) -> None:
        self.session.stop_playback()
        self.status_var.set("Stopped.")

    def _on_speed_slider(self, _value=None) -> None:
        speed = int(float(self.speed_var.get()))
        self.speed_text_var.set(f"{speed}ms")
        self.session.set_play_speed(speed)

    # Canvas -------------------------------------------------------------------

    def _on_canvas_click(self, event) -> None:
        if self.session.current_frame() is None:
            return
        x, y = self.canvas.canvasx(event.x), self.canvas.canvasy(event.y)
        stored = self.session.place_selected_point(x, y)
        if stored is not None:
            self.coords_var.set(f"X: {round_half_up(x)}, Y: {round_half_up(y)}")
            self._refresh_categories()
            self._render_frame()

    def _on_canvas_motion(self, event) -> None:
        frame = self.session.current_frame()
        if frame is None:
            return
        x, y = self.canvas.canvasx(event.x), self.canvas.canvasy(event.y)
        sel = self.session.selection
        if sel is not None:
            self.coords_var.set(
                f"Selected: {sel.label()} - X: {round_half_up(x)}, Y: {round_half_up(y)} - Click to set"
            )
        else:
            self.coords_var.set(f"X: {round_half_up(x)}, Y: {round_half_up(y)}")
        self.magnifier_photo = ImageTk.PhotoImage(magnifier_view(frame.image, x, y))
        self.magnifier.config(image=self.magnifier_photo)
        self.magnifier.grid()

    # Categories and points ---------------------------------------------------

    def _add_category(self) -> None:
        try:
            name = self.session.add_category(self.category_name_var.get())
        except SpriteSheetError as exc:
            self._report("Add category", exc)
            return
        self.category_name_var.set("")
        self.status_var.set(f"Added category {name}.")
        self._refresh_categories()

    def _remove_category(self, category: str) -> None:
        self.session.remove_category(category)
        self._refresh_categories()
        self._render_frame()

    def _add_point(self, category: str) -> None:
        self.session.add_point(category)
        self._refresh_categories()
        self._render_frame()

    def _remove_point(self, category: str, index: int) -> None:
        try:
            self.session.remove_point(category, index)
        except SpriteSheetError as exc:
            self._report("Remove point", exc)
            return
        self._refresh_categories()
        self._render_frame()

    def _select_point(self, category: str, index: int) -> None:
        ref = self.session.select_point(category, index)
        self.coords_var.set(f"Selected: {ref.label()} - Click on image to set position")
        self._refresh_categories()
        self._render_frame()

    def _clear_point(self, category: str, index: int) -> None:
        self.session.clear_current_point(category, index)
        self._refresh_categories()
        self._render_frame()

    def _apply_point_fields(self, category: str, index: int) -> None:
        if (category, index) not in self.point_vars or self.session.current_frame() is None:
            return
        x_var, y_var = self.point_vars[(category, index)]
        try:
            stored = self.session.edit_current_point(category, index, x_var.get(), y_var.get())
        except ParseError as exc:
            self.status_var.set(str(exc))
            return
        except SpriteSheetError as exc:
            logger.debug("Ignoring edit of stale point row: %s", exc)
            return
        if stored is not None:
            self._render_frame()

    def _import_positions(self) -> None:
        text = self.import_text.get("1.0", tk.END).strip()
        try:
            report = self.session.import_positions(text)
        except SpriteSheetError as exc:
            self._report("Import positions", exc)
            return
        self._refresh_categories()
        self._render_frame()
        self.status_var.set(f"Successfully imported data for {len(report.categories)} categories from XML.")
        self._warn("Import warnings", report.warnings)

    # Export -------------------------------------------------------------------

    def _save_payload(self, payload: ExportPayload) -> None:
        ext = Path(payload.filename).suffix
        target = filedialog.asksaveasfilename(
            title=f"Save {payload.filename}",
            initialfile=payload.filename,
            defaultextension=ext,
            filetypes=[(payload.mime_type, f"*{ext}")],
        )
        if not target:
            return
        try:
            Path(target).write_bytes(payload.data)
        except OSError as exc:
            self._report("Export", exc)
            return
        self.status_var.set(f"Saved {target}")

    def _export_sheet(self) -> None:
        try:
            payload = self.session.export_sheet()
        except SpriteSheetError as exc:
            self._report("Generate sprite sheet", exc)
            return
        self._save_payload(payload)

    def _export_xml(self) -> None:
        try:
            payload = self.session.export_xml()
        except SpriteSheetError as exc:
            self._report("Export XML", exc)
            return
        self._save_payload(payload)

    def _export_json(self) -> None:
        try:
            payload = self.session.export_json()
        except SpriteSheetError as exc:
            self._report("Export JSON", exc)
            return
        self._save_payload(payload)

    def _on_close(self) -> None:
        self.session.stop_playback()
        self.destroy()


def main() -> int:
    configure_logging()
    app = SpriteSheetEditorApp()
    app.mainloop()
    return 0


if __name__ == "__main__":
    sys.exit(main())
