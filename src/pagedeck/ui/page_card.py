"""
PageDeck - Page Card Widget

A GTK4 widget showing one page of the collection: its thumbnail (or a
placeholder when the image failed), the page number, rotation badge,
deleted overlay and selection border.
"""

import gi

gi.require_version("Gtk", "4.0")
from gi.repository import Gdk, GLib, GObject, Gtk
from PIL import Image

from pagedeck.constants import DEFAULT_FOOTER_HEIGHT_PX
from pagedeck.editor.page_model import PageEntry
from pagedeck.editor.thumbnail_loader import apply_rotation, to_png_bytes
from pagedeck.utils.i18n import _


class PageCard(Gtk.Box):
    """Widget representing a single page cell.

    Signals:
        card-clicked: Emitted on a primary click; the argument is True while Shift is held
        rotate-left-clicked: Emitted when the rotate left button is clicked
        rotate-right-clicked: Emitted when the rotate right button is clicked
        delete-toggled: Emitted when the delete / restore button is clicked
        page-dropped: Emitted when another card is dropped here; carries its page number
    """

    __gsignals__ = {
        "card-clicked": (GObject.SignalFlags.RUN_FIRST, None, (bool,)),
        "rotate-left-clicked": (GObject.SignalFlags.RUN_FIRST, None, ()),
        "rotate-right-clicked": (GObject.SignalFlags.RUN_FIRST, None, ()),
        "delete-toggled": (GObject.SignalFlags.RUN_FIRST, None, ()),
        "page-dropped": (GObject.SignalFlags.RUN_FIRST, None, (int,)),
    }

    def __init__(self, entry: PageEntry, width: int, height: int) -> None:
        """Initialize the page card.

        Args:
            entry: Page entry displayed by this card
            width: Cell width in pixels
            height: Cell height in pixels, footer included
        """
        super().__init__(orientation=Gtk.Orientation.VERTICAL, spacing=4)

        self._entry = entry
        self._rotation = entry.rotation
        self._deleted = entry.deleted
        self._selected = False
        self._base_image: Image.Image | None = None
        self._failed = False

        self.add_css_class("page-card")
        self._setup_ui()
        self.set_cell_size(width, height)
        self._update_appearance()

    def _setup_ui(self) -> None:
        """Set up the widget UI."""
        self._overlay = Gtk.Overlay()

        self._frame = Gtk.Frame()
        self._frame.add_css_class("page-card-frame")

        self._image_box = Gtk.Box(orientation=Gtk.Orientation.VERTICAL)
        self._image_box.set_valign(Gtk.Align.CENTER)

        self._spinner = Gtk.Spinner()
        self._spinner.set_size_request(32, 32)
        self._spinner.set_halign(Gtk.Align.CENTER)
        self._spinner.set_valign(Gtk.Align.CENTER)
        self._spinner.set_vexpand(True)
        self._spinner.start()

        self._picture = Gtk.Picture()
        self._picture.set_content_fit(Gtk.ContentFit.CONTAIN)
        self._picture.set_visible(False)

        self._placeholder = Gtk.Image.new_from_icon_name("image-missing-symbolic")
        self._placeholder.set_pixel_size(48)
        self._placeholder.set_vexpand(True)
        self._placeholder.set_tooltip_text(_("Preview unavailable"))
        self._placeholder.set_visible(False)

        self._image_box.append(self._spinner)
        self._image_box.append(self._picture)
        self._image_box.append(self._placeholder)
        self._frame.set_child(self._image_box)

        self._rotation_badge = Gtk.Label()
        self._rotation_badge.add_css_class("rotation-badge")
        self._rotation_badge.set_halign(Gtk.Align.END)
        self._rotation_badge.set_valign(Gtk.Align.START)
        self._rotation_badge.set_margin_top(4)
        self._rotation_badge.set_margin_end(4)
        self._rotation_badge.set_visible(False)

        self._deleted_overlay = Gtk.Box()
        self._deleted_overlay.add_css_class("deleted-overlay")
        self._deleted_overlay.set_halign(Gtk.Align.FILL)
        self._deleted_overlay.set_valign(Gtk.Align.FILL)
        self._deleted_overlay.set_visible(False)

        deleted_label = Gtk.Label(label=_("Deleted"))
        deleted_label.add_css_class("deleted-label")
        deleted_label.set_halign(Gtk.Align.CENTER)
        deleted_label.set_valign(Gtk.Align.CENTER)
        deleted_label.set_hexpand(True)
        self._deleted_overlay.append(deleted_label)

        self._overlay.set_child(self._frame)
        self._overlay.add_overlay(self._rotation_badge)
        self._overlay.add_overlay(self._deleted_overlay)
        self.append(self._overlay)

        # Footer: page label and per-page controls
        footer = Gtk.Box(orientation=Gtk.Orientation.HORIZONTAL, spacing=4)
        footer.set_halign(Gtk.Align.CENTER)
        footer.set_size_request(-1, DEFAULT_FOOTER_HEIGHT_PX - 4)

        self._rotate_left_btn = self._make_button(
            "object-rotate-left-symbolic", _("Rotate this page to the left")
        )
        self._rotate_left_btn.connect("clicked", self._on_rotate_left_clicked)
        footer.append(self._rotate_left_btn)

        self._page_label = Gtk.Label()
        self._page_label.add_css_class("page-number-label")
        footer.append(self._page_label)

        self._rotate_right_btn = self._make_button(
            "object-rotate-right-symbolic", _("Rotate this page to the right")
        )
        self._rotate_right_btn.connect("clicked", self._on_rotate_right_clicked)
        footer.append(self._rotate_right_btn)

        self._delete_btn = self._make_button("user-trash-symbolic", _("Delete this page"))
        self._delete_btn.connect("clicked", self._on_delete_clicked)
        footer.append(self._delete_btn)

        self.append(footer)

        click_gesture = Gtk.GestureClick()
        click_gesture.set_button(Gdk.BUTTON_PRIMARY)
        click_gesture.connect("pressed", self._on_pressed)
        self._overlay.add_controller(click_gesture)

        drag_source = Gtk.DragSource()
        drag_source.set_actions(Gdk.DragAction.MOVE)
        drag_source.connect("prepare", self._on_drag_prepare)
        self.add_controller(drag_source)

        drop_target = Gtk.DropTarget.new(GObject.TYPE_INT, Gdk.DragAction.MOVE)
        drop_target.connect("drop", self._on_drop)
        self.add_controller(drop_target)

    @staticmethod
    def _make_button(icon_name: str, tooltip: str) -> Gtk.Button:
        button = Gtk.Button()
        button.set_icon_name(icon_name)
        button.add_css_class("flat")
        button.add_css_class("circular")
        button.set_tooltip_text(tooltip)
        return button

    # --- Event handlers ---

    def _on_pressed(self, gesture: Gtk.GestureClick, _n_press: int, _x: float, _y: float) -> None:
        state = gesture.get_current_event_state()
        self.emit("card-clicked", bool(state & Gdk.ModifierType.SHIFT_MASK))

    def _on_rotate_left_clicked(self, _button: Gtk.Button) -> None:
        self.emit("rotate-left-clicked")

    def _on_rotate_right_clicked(self, _button: Gtk.Button) -> None:
        self.emit("rotate-right-clicked")

    def _on_delete_clicked(self, _button: Gtk.Button) -> None:
        self.emit("delete-toggled")

    def _on_drag_prepare(
        self, _source: Gtk.DragSource, _x: float, _y: float
    ) -> Gdk.ContentProvider | None:
        value = GObject.Value(GObject.TYPE_INT, self._entry.page_number)
        return Gdk.ContentProvider.new_for_value(value)

    def _on_drop(self, _target: Gtk.DropTarget, value: int, _x: float, _y: float) -> bool:
        if value == self._entry.page_number:
            return False
        self.emit("page-dropped", value)
        return True

    # --- State ---

    @property
    def entry(self) -> PageEntry:
        return self._entry

    @property
    def page_number(self) -> int:
        return self._entry.page_number

    @property
    def image_reference(self) -> str:
        return self._entry.image_reference

    @property
    def selected(self) -> bool:
        return self._selected

    @selected.setter
    def selected(self, value: bool) -> None:
        if self._selected != value:
            self._selected = value
            self._update_appearance()

    @property
    def failed(self) -> bool:
        return self._failed

    def set_cell_size(self, width: int, height: int) -> None:
        image_height = max(0, height - DEFAULT_FOOTER_HEIGHT_PX)
        self._image_box.set_size_request(width, image_height)
        self._picture.set_size_request(width, image_height)
        self.set_size_request(width, height)

    def update_from_entry(self) -> None:
        """Refresh the card after its entry was rotated or (un)deleted."""
        rotation_changed = self._entry.rotation != self._rotation
        self._rotation = self._entry.rotation
        self._deleted = self._entry.deleted
        self._update_appearance()
        if rotation_changed and self._base_image is not None:
            self._show_image()

    def _update_appearance(self) -> None:
        """Update widget appearance based on current state."""
        self._page_label.set_text(str(self._entry.page_number))

        if self._rotation != 0:
            self._rotation_badge.set_text(f"↻{self._rotation}°")
            self._rotation_badge.set_visible(True)
        else:
            self._rotation_badge.set_visible(False)

        if self._selected:
            self._frame.add_css_class("selected")
        else:
            self._frame.remove_css_class("selected")

        if self._deleted:
            self.add_css_class("deleted")
            self._deleted_overlay.set_visible(True)
            self._delete_btn.set_icon_name("edit-undo-symbolic")
            self._delete_btn.set_tooltip_text(_("Restore this page"))
        else:
            self.remove_css_class("deleted")
            self._deleted_overlay.set_visible(False)
            self._delete_btn.set_icon_name("user-trash-symbolic")
            self._delete_btn.set_tooltip_text(_("Delete this page"))

    # --- Thumbnail ---

    def set_thumbnail(self, image: Image.Image) -> None:
        """Show a decoded thumbnail, turned to the entry's rotation."""
        self._base_image = image
        self._failed = False
        self._show_image()

    def _show_image(self) -> None:
        rotated = apply_rotation(self._base_image, self._rotation)
        texture = Gdk.Texture.new_from_bytes(GLib.Bytes.new(to_png_bytes(rotated)))
        self._picture.set_paintable(texture)

        self._spinner.stop()
        self._spinner.set_visible(False)
        self._placeholder.set_visible(False)
        self._picture.set_visible(True)

    def show_placeholder(self) -> None:
        """Replace the spinner with a persistent placeholder (the image failed)."""
        self._failed = True
        self._base_image = None
        self._spinner.stop()
        self._spinner.set_visible(False)
        self._picture.set_visible(False)
        self._placeholder.set_visible(True)
