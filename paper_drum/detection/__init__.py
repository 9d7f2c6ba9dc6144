"""
Detector collaborators: MediaPipe fingertip tracking (detection.hand) and
AprilTag corner markers (detection.markers). Imported directly by the runner
so the geometry core does not pull in the model runtimes.
"""
