from .camera_manager import open_camera, frame_size
