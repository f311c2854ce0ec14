"""
Pointer Controller for DEPTH HANDS

Pointer-device sink: relative cursor moves, button down/up and single clicks.
Uses pynput for cross-platform mouse control and screeninfo to keep the cursor
on screen.
"""

from dataclasses import dataclass
from typing import Tuple

try:
    from pynput.mouse import Controller as MouseController, Button
    PYNPUT_AVAILABLE = True
except ImportError:
    PYNPUT_AVAILABLE = False
    print("⚠ pynput not available. Install with: pip install pynput")

try:
    import screeninfo
    SCREENINFO_AVAILABLE = True
except ImportError:
    SCREENINFO_AVAILABLE = False
    print("⚠ screeninfo not available. Install with: pip install screeninfo")

from depth_hands.utils.math_utils import clamp


@dataclass
class ScreenBounds:
    """Screen dimensions and boundaries."""
    width: int
    height: int
    padding: int = 0

    def clamp(self, x: int, y: int) -> Tuple[int, int]:
        """Clamp coordinates to screen bounds."""
        x = clamp(x, self.padding, self.width - self.padding - 1)
        y = clamp(y, self.padding, self.height - self.padding - 1)
        return (int(x), int(y))


class PointerController:
    """
    Moves and clicks the system mouse.
    All methods are fire-and-forget: failures are reported, never raised.
    """

    def __init__(self, config=None):
        """
        Initialize pointer controller.

        Args:
            config: Configuration object (from config_manager)
        """
        if not PYNPUT_AVAILABLE:
            raise RuntimeError("pynput library is required. Install with: pip install pynput")

        self.mouse = MouseController()

        if config:
            from depth_hands.config.config_manager import get_pointer_setting
            self.bounds_padding = int(get_pointer_setting('bounds_padding', 0))
            self.fallback_width = int(get_pointer_setting('fallback_screen_width', 1920))
            self.fallback_height = int(get_pointer_setting('fallback_screen_height', 1080))
        else:
            self.bounds_padding = 0
            self.fallback_width = 1920
            self.fallback_height = 1080

        self.screen = self._get_screen_bounds()
        self.paused = False

    def _get_screen_bounds(self) -> ScreenBounds:
        """Get screen dimensions."""
        if SCREENINFO_AVAILABLE:
            try:
                monitors = screeninfo.get_monitors()
                if monitors:
                    primary = monitors[0]
                    return ScreenBounds(width=primary.width, height=primary.height, padding=self.bounds_padding)
            except screeninfo.ScreenInfoError as e:
                print(f"⚠ Error getting screen info: {e}")

        print(f"⚠ Using default screen resolution {self.fallback_width}x{self.fallback_height}")
        return ScreenBounds(width=self.fallback_width, height=self.fallback_height, padding=self.bounds_padding)

    def toggle_pause(self):
        """Toggle pause state."""
        self.paused = not self.paused
        return self.paused

    def _button(self, button: str):
        return {
            'left': Button.left,
            'right': Button.right,
            'middle': Button.middle
        }.get(button, Button.left)

    def move_relative(self, dx: int, dy: int):
        """
        Move the cursor by (dx, dy) screen pixels, staying on screen.
        """
        if self.paused:
            return

        try:
            x, y = self.mouse.position
            self.mouse.position = self.screen.clamp(int(x) + int(dx), int(y) + int(dy))
        except Exception as e:
            print(f"⚠ Error moving cursor: {e}")

    def press(self, button: str = 'left'):
        """Hold a mouse button down."""
        if self.paused:
            return
        try:
            self.mouse.press(self._button(button))
        except Exception as e:
            print(f"⚠ Error pressing {button} button: {e}")

    def release(self, button: str = 'left'):
        """Release a mouse button. Works while paused so no button stays stuck."""
        try:
            self.mouse.release(self._button(button))
        except Exception as e:
            print(f"⚠ Error releasing {button} button: {e}")

    def click(self, button: str = 'left'):
        """Single click."""
        if self.paused:
            return
        try:
            self.mouse.click(self._button(button), 1)
        except Exception as e:
            print(f"⚠ Error clicking: {e}")


__all__ = [
    'PYNPUT_AVAILABLE',
    'ScreenBounds',
    'PointerController',
]
