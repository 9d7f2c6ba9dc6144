from .overlay import (
    sheet_to_surface, draw_pads, draw_cursor, draw_corners, draw_calibration_status, draw_message
)
